from __future__ import annotations

from django.db import transaction
from rest_framework.exceptions import NotFound, ValidationError

from core.models import Hall, Manager, Role, User
from core.services.audit import log_action


@transaction.atomic
def create_manager(owner, data: dict) -> Manager:
    if User.objects.filter(username=data['username']).exists():
        raise ValidationError('Username already exists')
    hall = None
    if data.get('hallId'):
        hall = Hall.objects.filter(pk=data['hallId'], institute_id=owner.institute_id).first()
        if hall is None:
            raise ValidationError({'hallId': 'Hall not found in this institute'})

    user = User.objects.create_user(
        username=data['username'],
        password=data['password'],
        email=data['email'],
        phone=data['phone'],
        full_name=data['fullName'],
        user_type=Role.MANAGER,
        institute_id=owner.institute_id,
    )
    manager = Manager.objects.create(
        user=user,
        hall=hall,
        full_name=data['fullName'],
        age=data.get('age'),
        blood_group=data.get('bloodGroup') or '',
        rank=data.get('rank') or '',
        salary=data.get('salary'),
        phone=data['phone'],
        email=data['email'],
        address=data.get('address') or '',
        nid=data.get('nid') or '',
        join_date=data.get('joinDate'),
    )
    if hall is not None and hall.manager_id is None:
        hall.manager = user
        hall.save(update_fields=['manager', 'updated_at'])
    log_action(user=owner, action='manager_created', object_type='manager', object_id=manager.id,
               detail={'username': user.username, 'hallId': hall.id if hall else None})
    return manager


def managers_of(institute_id: str):
    return (Manager.objects.select_related('user', 'hall')
            .filter(user__institute_id=institute_id).order_by('full_name'))


def manager_or_404(owner, manager_id) -> Manager:
    manager = managers_of(owner.institute_id).filter(pk=manager_id).first()
    if manager is None:
        raise NotFound('Manager not found')
    return manager


def serialize_manager(m: Manager) -> dict:
    return {
        'id': m.id,
        'userId': m.user_id,
        'username': m.user.username,
        'fullName': m.full_name,
        'age': m.age,
        'bloodGroup': m.blood_group,
        'rank': m.rank,
        'salary': float(m.salary) if m.salary is not None else None,
        'phone': m.phone,
        'email': m.email,
        'address': m.address,
        'nid': m.nid,
        'joinDate': m.join_date,
        'isActive': m.is_active,
        'hall': {'id': m.hall_id, 'name': m.hall.name} if m.hall_id else None,
        'hallName': m.hall.name if m.hall_id else None,
    }
