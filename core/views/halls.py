"""
Hall endpoints.

Every lookup is scoped to the caller's institute; a hall id from another
institute answers 404 exactly like a missing one.  Reads are open to any
institute account, writes to the owner.
"""
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.permissions import IsInstituteMember, IsOwner
from core.serializers.halls import (
    AssignManagerSerializer,
    FloorCreateSerializer,
    FloorWithDetailsSerializer,
    HallCreateSerializer,
    HallUpdateSerializer,
)
from core.services import halls as svc


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsInstituteMember])
def list_halls(request):
    halls = svc.halls_for(request.user).order_by('-created_at')
    return Response([svc.serialize_hall(h) for h in halls])


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsOwner])
def create_hall(request):
    s = HallCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    hall = svc.create_hall(request.user, s.validated_data)
    return Response(svc.serialize_hall(hall), status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, IsInstituteMember])
def hall_detail(request, hall_id):
    hall = svc.get_hall(request.user, hall_id)
    if request.method == 'GET':
        return Response(svc.serialize_hall(hall))

    # writes are owner only
    if not IsOwner().has_permission(request, None):
        raise PermissionDenied(IsOwner.message)
    if request.method == 'PUT':
        s = HallUpdateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        hall = svc.update_hall(request.user, hall, s.validated_data)
        return Response(svc.serialize_hall(hall))

    svc.delete_hall(request.user, hall)
    return Response({'message': 'Hall deleted successfully'})


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsOwner])
def assign_manager(request, hall_id):
    hall = svc.get_hall(request.user, hall_id)
    s = AssignManagerSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    hall = svc.assign_manager(request.user, hall, s.validated_data.get('managerId'))
    return Response(svc.serialize_hall(hall))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsInstituteMember])
def hall_floors(request, hall_id):
    hall = svc.get_hall(request.user, hall_id)
    return Response([svc.serialize_floor(f) for f in hall.floors.order_by('floor_number')])


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsOwner])
def create_floor(request, hall_id):
    hall = svc.get_hall(request.user, hall_id)
    s = FloorCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    floor = svc.create_floor(request.user, hall, s.validated_data)
    return Response(svc.serialize_floor(floor), status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsOwner])
def create_floor_with_details(request, hall_id):
    hall = svc.get_hall(request.user, hall_id)
    s = FloorWithDetailsSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    floor, created = svc.create_floor_with_empty_rooms(request.user, hall, s.validated_data)
    return Response({
        'message': 'Floor created successfully',
        'floor': svc.serialize_floor(floor),
        'roomsCreated': created,
    }, status=status.HTTP_201_CREATED)
