"""Hall, floor and room inventory operations."""
from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Count, F, Q
from rest_framework.exceptions import NotFound, ValidationError

from core.models import Floor, Hall, Manager, Role, Room, User
from core.services.audit import log_action

logger = logging.getLogger(__name__)

DEFAULT_PRICE_PER_BED = Decimal('5000')


def room_stats(rooms) -> dict:
    agg = rooms.aggregate(
        total=Count('id'),
        occupied=Count('id', filter=Q(status=Room.STATUS_OCCUPIED)),
        available=Count('id', filter=Q(status=Room.STATUS_AVAILABLE)),
        maintenance=Count('id', filter=Q(status=Room.STATUS_MAINTENANCE)),
    )
    return {
        'totalRooms': agg['total'],
        'occupiedRooms': agg['occupied'],
        'availableRooms': agg['available'],
        'maintenanceRooms': agg['maintenance'],
    }


def user_brief(user: User | None) -> dict | None:
    if user is None:
        return None
    return {'id': user.id, 'fullName': user.full_name, 'email': user.email, 'phone': user.phone}


def serialize_hall(hall: Hall, with_stats: bool = True) -> dict:
    data = {
        'id': hall.id,
        'instituteId': hall.institute_id,
        'name': hall.name,
        'location': hall.location,
        'type': hall.type,
        'capacity': hall.capacity,
        'manager': user_brief(hall.manager),
        'facilities': hall.facilities,
        'description': hall.description,
        'totalFloors': hall.total_floors,
        'totalRooms': hall.total_rooms,
        'occupiedRooms': hall.occupied_rooms,
        'availableRooms': hall.available_rooms,
        'isActive': hall.is_active,
        'createdAt': hall.created_at,
        'updatedAt': hall.updated_at,
    }
    if with_stats:
        data['totalFloors'] = hall.floors.count()
        data.update(room_stats(hall.rooms.all()))
    return data


def serialize_floor(floor: Floor, with_stats: bool = True) -> dict:
    data = {
        'id': floor.id,
        'hallId': floor.hall_id,
        'floorNumber': floor.floor_number,
        'name': floor.name,
        'description': floor.description,
        'totalRooms': floor.total_rooms,
        'roomsPerType': floor.rooms_per_type,
        'facilities': floor.facilities,
        'occupiedRooms': floor.occupied_rooms,
        'isActive': floor.is_active,
        'createdAt': floor.created_at,
    }
    if with_stats:
        data.update(room_stats(floor.rooms.all()))
    return data


def serialize_room(room: Room, with_occupants: bool = True) -> dict:
    data = {
        'id': room.id,
        'floorId': room.floor_id,
        'hallId': room.hall_id,
        'roomNumber': room.room_number,
        'type': room.type,
        'capacity': room.capacity,
        'currentOccupancy': room.current_occupancy,
        'facilities': room.facilities,
        'pricePerBed': float(room.price_per_bed),
        'status': room.status,
        'isActive': room.is_active,
    }
    if with_occupants:
        data['occupants'] = [user_brief(u) for u in room.occupants.all()]
    return data


# ---------------------------------------------------------------------------
# Scoping
# ---------------------------------------------------------------------------
def halls_for(user):
    return Hall.objects.select_related('manager').filter(institute_id=user.institute_id)


def get_hall(user, hall_id) -> Hall:
    hall = halls_for(user).filter(pk=hall_id).first()
    if hall is None:
        raise NotFound('Hall not found')
    return hall


def get_floor(user, floor_id) -> Floor:
    floor = Floor.objects.select_related('hall').filter(pk=floor_id, hall__institute_id=user.institute_id).first()
    if floor is None:
        raise NotFound('Floor not found')
    return floor


def get_room(user, room_id) -> Room:
    room = (Room.objects.select_related('hall', 'floor')
            .filter(pk=room_id, hall__institute_id=user.institute_id).first())
    if room is None:
        raise NotFound('Room not found')
    return room


def _manager_user(user, manager_id) -> User | None:
    if not manager_id:
        return None
    manager = User.objects.filter(
        pk=manager_id, user_type=Role.MANAGER, institute_id=user.institute_id
    ).first()
    if manager is None:
        raise ValidationError({'managerId': 'Manager not found in this institute'})
    return manager


# ---------------------------------------------------------------------------
# Halls
# ---------------------------------------------------------------------------
@transaction.atomic
def create_hall(user, data: dict) -> Hall:
    manager = _manager_user(user, data.get('managerId'))
    hall = Hall.objects.create(
        institute_id=user.institute_id,
        name=data['name'],
        location=data['location'],
        type=data['type'],
        capacity=data['capacity'],
        manager=manager,
        facilities=data.get('facilities') or [],
        description=data.get('description') or '',
    )
    if manager is not None:
        _sync_manager_profile(manager, hall)
    log_action(user=user, action='hall_created', object_type='hall', object_id=hall.id, detail={'name': hall.name})
    return hall


HALL_FIELDS = {
    'name': 'name',
    'location': 'location',
    'type': 'type',
    'capacity': 'capacity',
    'facilities': 'facilities',
    'description': 'description',
    'isActive': 'is_active',
}


def update_hall(user, hall: Hall, data: dict) -> Hall:
    for key, attr in HALL_FIELDS.items():
        if key in data:
            setattr(hall, attr, data[key])
    hall.save()
    log_action(user=user, action='hall_updated', object_type='hall', object_id=hall.id,
               detail={'fields': sorted(k for k in data if k in HALL_FIELDS)})
    return hall


@transaction.atomic
def delete_hall(user, hall: Hall) -> None:
    if hall.students.exists():
        raise ValidationError('Hall still has registered students')
    hall_id, name = hall.id, hall.name
    Manager.objects.filter(hall=hall).update(hall=None)
    # cascades to floors and rooms
    hall.delete()
    log_action(user=user, action='hall_deleted', object_type='hall', object_id=hall_id, detail={'name': name})


@transaction.atomic
def assign_manager(user, hall: Hall, manager_id) -> Hall:
    manager = _manager_user(user, manager_id)
    previous = hall.manager
    if previous is not None and previous != manager:
        Manager.objects.filter(user=previous, hall=hall).update(hall=None)
    hall.manager = manager
    hall.save(update_fields=['manager', 'updated_at'])
    if manager is not None:
        _sync_manager_profile(manager, hall)
    log_action(user=user, action='manager_assigned', object_type='hall', object_id=hall.id,
               detail={'managerId': manager.id if manager else None,
                       'previousManagerId': previous.id if previous else None})
    return hall


def _sync_manager_profile(manager: User, hall: Hall) -> None:
    Manager.objects.filter(user=manager).update(hall=hall)


# ---------------------------------------------------------------------------
# Floors
# ---------------------------------------------------------------------------
def _room_number(floor_number: int, index: int) -> str:
    return f'{floor_number}{index:02d}'


def _bump_hall(hall: Hall, floors: int, rooms: int) -> None:
    Hall.objects.filter(pk=hall.pk).update(
        total_floors=F('total_floors') + floors,
        total_rooms=F('total_rooms') + rooms,
        available_rooms=F('available_rooms') + rooms,
    )
    hall.refresh_from_db()


@transaction.atomic
def create_floor(user, hall: Hall, data: dict) -> Floor:
    """Create a floor and its rooms from a ``roomsPerType`` breakdown."""
    per_type = {t: int(data.get('roomsPerType', {}).get(t, 0) or 0) for t in Room.CAPACITY_BY_TYPE}
    total = sum(per_type.values())
    floor = Floor.objects.create(
        hall=hall,
        floor_number=data['floorNumber'],
        name=data['name'],
        description=data.get('description') or '',
        total_rooms=total,
        rooms_per_type=per_type,
        facilities=data.get('facilities') or [],
    )
    price = data.get('pricePerBed') or DEFAULT_PRICE_PER_BED
    room_facilities = data.get('roomFacilities') or []
    rooms, counter = [], 1
    for room_type, count in per_type.items():
        for _ in range(count):
            rooms.append(Room(
                floor=floor, hall=hall,
                room_number=_room_number(floor.floor_number, counter),
                type=room_type,
                capacity=Room.CAPACITY_BY_TYPE[room_type],
                price_per_bed=price,
                facilities=room_facilities,
            ))
            counter += 1
    Room.objects.bulk_create(rooms)
    _bump_hall(hall, 1, total)
    log_action(user=user, action='floor_created', object_type='floor', object_id=floor.id,
               detail={'hallId': hall.id, 'rooms': total})
    return floor


@transaction.atomic
def create_floor_with_empty_rooms(user, hall: Hall, data: dict) -> tuple[Floor, int]:
    total = data['totalRooms']
    floor = Floor.objects.create(
        hall=hall,
        floor_number=data['floorNumber'],
        name=data['name'],
        description=data.get('description') or '',
        facilities=data.get('facilities') or [],
        total_rooms=total,
        rooms_per_type={'double': total},
    )
    Room.objects.bulk_create([
        Room(floor=floor, hall=hall, room_number=_room_number(floor.floor_number, i),
             type='double', capacity=2, price_per_bed=DEFAULT_PRICE_PER_BED)
        for i in range(1, total + 1)
    ])
    _bump_hall(hall, 1, total)
    log_action(user=user, action='floor_created', object_type='floor', object_id=floor.id,
               detail={'hallId': hall.id, 'rooms': total})
    return floor, total


FLOOR_FIELDS = {
    'name': 'name',
    'description': 'description',
    'facilities': 'facilities',
    'floorNumber': 'floor_number',
    'isActive': 'is_active',
}


def update_floor(user, floor: Floor, data: dict) -> Floor:
    for key, attr in FLOOR_FIELDS.items():
        if key in data:
            setattr(floor, attr, data[key])
    floor.save()
    return floor


@transaction.atomic
def delete_floor(user, floor: Floor) -> None:
    hall = floor.hall
    room_count = floor.rooms.count()
    floor_id = floor.id
    floor.delete()
    Hall.objects.filter(pk=hall.pk).update(
        total_floors=F('total_floors') - 1,
        total_rooms=F('total_rooms') - room_count,
    )
    # save() recomputes available_rooms from the counters
    hall.refresh_from_db()
    hall.save()
    log_action(user=user, action='floor_deleted', object_type='floor', object_id=floor_id,
               detail={'hallId': hall.id, 'rooms': room_count})


# ---------------------------------------------------------------------------
# Rooms
# ---------------------------------------------------------------------------
ROOM_FIELDS = {
    'type': 'type',
    'capacity': 'capacity',
    'facilities': 'facilities',
    'pricePerBed': 'price_per_bed',
    'status': 'status',
    'isActive': 'is_active',
}


def update_room(room: Room, data: dict) -> Room:
    for key, attr in ROOM_FIELDS.items():
        if key in data:
            setattr(room, attr, data[key])
    room.save()
    return room


def set_room_status(room: Room, status: str) -> Room:
    # explicit status changes (maintenance, reserved) bypass the occupancy rule
    Room.objects.filter(pk=room.pk).update(status=status)
    room.refresh_from_db()
    return room


def add_occupant(room: Room, user_id) -> Room:
    if room.current_occupancy >= room.capacity:
        raise ValidationError('Room is full')
    occupant = User.objects.filter(pk=user_id, institute_id=room.hall.institute_id).first()
    if occupant is None:
        raise NotFound('Student not found')
    room.occupants.add(occupant)
    room.sync_occupancy()
    return room


def remove_occupant(room: Room, user_id) -> Room:
    room.occupants.remove(*room.occupants.filter(pk=user_id))
    room.sync_occupancy()
    _release_if_empty(room)
    return room


def _release_if_empty(room: Room) -> None:
    if room.current_occupancy < room.capacity and room.status == Room.STATUS_OCCUPIED:
        Room.objects.filter(pk=room.pk).update(status=Room.STATUS_AVAILABLE)
        room.refresh_from_db()
