import logging
import secrets
import string
import time

from django.db import transaction
from django.db.models import Sum
from rest_framework.exceptions import NotFound, ValidationError

from core.models import Floor, Hall, Institute, Role, Room, User
from core.services.audit import log_action
from core.services.halls import room_stats

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


def _base36(n: int) -> str:
    out = ''
    while True:
        n, r = divmod(n, 36)
        out = _BASE36[r] + out
        if not n:
            return out


def generate_institute_id() -> str:
    stamp = _base36(int(time.time() * 1000))
    suffix = ''.join(secrets.choice(_BASE36) for _ in range(5))
    return f'INST-{stamp}-{suffix}'.upper()


@transaction.atomic
def register_institute(data: dict) -> Institute:
    if Institute.objects.filter(eiin=data['eiin']).exists():
        raise ValidationError('EIIN already registered')
    if Institute.objects.filter(email__iexact=data['email']).exists():
        raise ValidationError('Email already registered')
    if User.objects.filter(username=data['username']).exists():
        raise ValidationError('Username already taken')

    institute = Institute.objects.create(
        institute_id=generate_institute_id(),
        eiin=data['eiin'],
        name=data['name'],
        type=data['type'],
        location=data['location'],
        address=data['address'],
        owner_name=data['ownerName'],
        contact=data['contact'],
        email=data['email'],
    )
    owner = User.objects.create_user(
        username=data['username'],
        password=data['password'],
        email=data['email'],
        full_name=data['ownerName'],
        phone=data['contact'],
        user_type=Role.OWNER,
        institute_id=institute.institute_id,
    )
    log_action(user=owner, action='institute_registered', object_type='institute',
               object_id=institute.institute_id, detail={'name': institute.name})
    logger.info('institute %s registered (%s)', institute.institute_id, institute.name)
    return institute


def institute_or_404(institute_id: str, active_only: bool = False) -> Institute:
    qs = Institute.objects.filter(institute_id=institute_id)
    if active_only:
        qs = qs.filter(is_active=True)
    institute = qs.first()
    if institute is None:
        raise NotFound('Institute not found')
    return institute


def owner_stats(institute_id: str) -> dict:
    halls = Hall.objects.filter(institute_id=institute_id)
    stats = room_stats(Room.objects.filter(hall__in=halls))
    return {
        'totalHalls': halls.count(),
        'totalRooms': stats['totalRooms'],
        'totalCapacity': halls.aggregate(total=Sum('capacity'))['total'] or 0,
        'occupiedRooms': stats['occupiedRooms'],
        'totalFloors': Floor.objects.filter(hall__in=halls).count(),
        'availableRooms': stats['availableRooms'],
        'maintenanceRooms': stats['maintenanceRooms'],
    }
