from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.permissions import IsInstituteMember, IsManager
from core.serializers.halls import OccupantSerializer, RoomStatusSerializer, RoomUpdateSerializer
from core.services import halls as svc


def _room_detail(room):
    data = svc.serialize_room(room)
    data['floor'] = {'id': room.floor_id, 'name': room.floor.name, 'floorNumber': room.floor.floor_number}
    data['hall'] = {'id': room.hall_id, 'name': room.hall.name}
    return data


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated, IsInstituteMember])
def room_detail(request, room_id):
    room = svc.get_room(request.user, room_id)
    if request.method == 'GET':
        return Response(_room_detail(room))

    if not IsManager().has_permission(request, None):
        raise PermissionDenied(IsManager.message)
    s = RoomUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    return Response(_room_detail(svc.update_room(room, s.validated_data)))


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsManager])
def room_status(request, room_id):
    room = svc.get_room(request.user, room_id)
    s = RoomStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    return Response(_room_detail(svc.set_room_status(room, s.validated_data['status'])))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsManager])
def add_occupant(request, room_id):
    room = svc.get_room(request.user, room_id)
    s = OccupantSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    return Response(_room_detail(svc.add_occupant(room, s.validated_data['studentId'])))


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, IsManager])
def remove_occupant(request, room_id, user_id):
    room = svc.get_room(request.user, room_id)
    return Response(_room_detail(svc.remove_occupant(room, user_id)))
