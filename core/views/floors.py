from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.permissions import IsInstituteMember, IsOwner
from core.serializers.halls import FloorUpdateSerializer
from core.services import halls as svc


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, IsInstituteMember])
def floor_detail(request, floor_id):
    floor = svc.get_floor(request.user, floor_id)
    if request.method == 'GET':
        data = svc.serialize_floor(floor)
        data['hall'] = {'id': floor.hall_id, 'name': floor.hall.name}
        return Response(data)

    if not IsOwner().has_permission(request, None):
        raise PermissionDenied(IsOwner.message)
    if request.method == 'PUT':
        s = FloorUpdateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        return Response(svc.serialize_floor(svc.update_floor(request.user, floor, s.validated_data)))

    svc.delete_floor(request.user, floor)
    return Response({'message': 'Floor deleted successfully'})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsInstituteMember])
def floor_rooms(request, floor_id):
    floor = svc.get_floor(request.user, floor_id)
    rooms = floor.rooms.prefetch_related('occupants').order_by('room_number')
    return Response([svc.serialize_room(r) for r in rooms])
