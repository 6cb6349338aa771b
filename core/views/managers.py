"""Owner-side management of hall manager accounts."""
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.permissions import IsOwner
from core.serializers.people import ManagerCreateSerializer, ManagerDetailsSerializer
from core.services.managers import create_manager, manager_or_404, managers_of, serialize_manager


def _created(manager):
    return Response({
        'message': 'Manager created successfully',
        'manager': {
            'id': manager.id,
            'userId': manager.user_id,
            'fullName': manager.full_name,
            'email': manager.email,
            'username': manager.user.username,
            'hallId': manager.hall_id,
        },
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsOwner])
def create_with_details(request):
    s = ManagerDetailsSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    return _created(create_manager(request.user, s.validated_data))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsOwner])
def create(request):
    s = ManagerCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    return _created(create_manager(request.user, s.validated_data))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsOwner])
def available(request):
    return Response([serialize_manager(m) for m in managers_of(request.user.institute_id)])


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsOwner])
def detail(request, manager_id):
    return Response(serialize_manager(manager_or_404(request.user, manager_id)))
