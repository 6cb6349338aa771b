"""
Public, read-only browsing of halls and rooms.

Nothing returned here identifies a resident: rooms expose occupancy
counts, never occupant lists.
"""
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from core.models import Floor, Hall, Room


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def halls(request):
    institute_id = request.query_params.get('instituteId')
    if not institute_id:
        raise ValidationError('instituteId is required')
    qs = Hall.objects.filter(is_active=True, institute_id=institute_id).order_by('name')
    return Response([
        {
            'id': h.id,
            'name': h.name,
            'type': h.type,
            'location': h.location,
            'capacity': h.capacity,
            'facilities': h.facilities,
            'totalRooms': h.total_rooms,
            'occupiedRooms': h.occupied_rooms,
            'availableRooms': h.available_rooms,
        }
        for h in qs
    ])


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def hall_floors(request, hall_id):
    qs = Floor.objects.filter(hall_id=hall_id, hall__is_active=True, is_active=True).order_by('floor_number')
    return Response([
        {
            'id': f.id,
            'name': f.name,
            'floorNumber': f.floor_number,
            'totalRooms': f.total_rooms,
            'occupiedRooms': f.occupied_rooms,
            'availableRooms': f.total_rooms - (f.occupied_rooms or 0),
        }
        for f in qs
    ])


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def floor_rooms(request, floor_id):
    qs = Room.objects.filter(floor_id=floor_id, is_active=True).order_by('room_number')
    return Response([
        {
            'id': r.id,
            'roomNumber': r.room_number,
            'type': r.type,
            'capacity': r.capacity,
            'currentOccupancy': r.current_occupancy,
            'status': r.status,
            'pricePerBed': float(r.price_per_bed),
            'facilities': r.facilities,
        }
        for r in qs
    ])
