from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from core.models import Attendance, Manager, MealHistory, Role, Room, Student, User
from core.services.audit import log_action

logger = logging.getLogger(__name__)


def manager_profile_or_404(user) -> Manager:
    profile = Manager.objects.select_related('hall').filter(user=user).first()
    if profile is None:
        raise NotFound('Manager profile not found')
    if profile.hall_id is None:
        raise NotFound('Manager is not assigned to a hall')
    return profile


def student_profile_or_404(user) -> Student:
    profile = Student.objects.select_related('hall', 'room', 'user').filter(user=user).first()
    if profile is None:
        raise NotFound('Student profile not found')
    return profile


def student_in_hall_or_404(hall, student_id) -> Student:
    student = Student.objects.select_related('room', 'user').filter(pk=student_id, hall=hall).first()
    if student is None:
        raise NotFound('Student not found')
    return student


def serialize_student(s: Student) -> dict:
    return {
        'id': s.id,
        'userId': s.user_id,
        'hallId': s.hall_id,
        'hallName': s.hall.name if s.hall_id else None,
        'roomId': s.room_id,
        'fullName': s.full_name,
        'age': s.age,
        'bloodGroup': s.blood_group,
        'department': s.department,
        'studentId': s.student_id,
        'phone': s.phone,
        'email': s.email,
        'roomNumber': s.room_number,
        'floorNumber': s.floor_number,
        'emergencyContact': s.emergency_contact,
        'address': s.address,
        'mealStatus': s.meal_status,
        'isPresent': s.is_present,
        'lastCheckIn': s.last_check_in,
        'joinDate': s.join_date,
    }


def serialize_attendance(a: Attendance) -> dict:
    return {
        'id': a.id,
        'studentId': a.student_id,
        'student': {
            'fullName': a.student.full_name,
            'studentId': a.student.student_id,
            'roomNumber': a.student.room_number,
        },
        'date': a.date,
        'isPresent': a.is_present,
        'checkIn': a.check_in,
        'checkOut': a.check_out,
        'remarks': a.remarks,
    }


def _room_with_free_bed(hall, room_number) -> Room:
    room = Room.objects.select_for_update().filter(hall=hall, room_number=room_number).first()
    if room is None:
        raise NotFound('Room not found')
    if room.current_occupancy >= room.capacity:
        raise ValidationError('Room is full')
    return room


@transaction.atomic
def register_student(manager_user, hall, data: dict) -> Student:
    if Student.objects.filter(student_id=data['studentId']).exists():
        raise ValidationError('Student ID already exists')
    if User.objects.filter(username=data['username']).exists():
        raise ValidationError('Username already exists')
    room = _room_with_free_bed(hall, data['roomNumber'])

    user = User.objects.create_user(
        username=data['username'],
        password=data['password'],
        email=data['email'],
        full_name=data['fullName'],
        phone=data['phone'],
        user_type=Role.STUDENT,
        institute_id=manager_user.institute_id,
    )
    student = Student.objects.create(
        user=user,
        hall=hall,
        room=room,
        full_name=data['fullName'],
        age=data['age'],
        blood_group=data['bloodGroup'],
        department=data['department'],
        student_id=data['studentId'],
        phone=data['phone'],
        email=data['email'],
        room_number=room.room_number,
        floor_number=room.floor.floor_number,
        emergency_contact=data['emergencyContact'],
        address=data['address'],
    )
    room.occupants.add(user)
    room.sync_occupancy()
    log_action(user=manager_user, action='student_registered', object_type='student', object_id=student.id,
               detail={'studentId': student.student_id, 'room': room.room_number})
    logger.info('student %s registered in hall %s room %s', student.student_id, hall.id, room.room_number)
    return student


def _vacate(student: Student) -> None:
    room = student.room
    if room is None:
        return
    room.occupants.remove(student.user)
    room.sync_occupancy()
    if room.status == Room.STATUS_OCCUPIED and room.current_occupancy < room.capacity:
        Room.objects.filter(pk=room.pk).update(status=Room.STATUS_AVAILABLE)


@transaction.atomic
def shift_room(manager_user, student: Student, new_room_number) -> Student:
    if student.room is not None and student.room.room_number == str(new_room_number):
        return student
    target = _room_with_free_bed(student.hall, new_room_number)
    old_number = student.room_number
    _vacate(student)
    target.occupants.add(student.user)
    target.sync_occupancy()
    student.room = target
    student.room_number = target.room_number
    student.floor_number = target.floor.floor_number
    student.save(update_fields=['room', 'room_number', 'floor_number'])
    log_action(user=manager_user, action='student_room_shifted', object_type='student', object_id=student.id,
               detail={'from': old_number, 'to': target.room_number})
    return student


@transaction.atomic
def remove_from_room(manager_user, student: Student) -> Student:
    old_number = student.room_number
    _vacate(student)
    student.room = None
    student.room_number = ''
    student.floor_number = None
    student.save(update_fields=['room', 'room_number', 'floor_number'])
    log_action(user=manager_user, action='student_room_removed', object_type='student', object_id=student.id,
               detail={'from': old_number})
    return student


def set_meal_status(student: Student, status: bool, changed_by) -> Student:
    student.meal_status = bool(status)
    student.save(update_fields=['meal_status'])
    MealHistory.objects.create(
        student=student,
        date=timezone.now(),
        status=student.meal_status,
        changed_by=changed_by if isinstance(changed_by, User) else None,
    )
    return student


def hall_attendance(hall, day):
    return (Attendance.objects.select_related('student')
            .filter(student__hall=hall, date=day).order_by('student__room_number'))


def mark_attendance(manager_user, student: Student, *, day, is_present: bool, check_in=None,
                    check_out=None, remarks: str = '') -> Attendance:
    record, _ = Attendance.objects.update_or_create(
        student=student, date=day,
        defaults={
            'is_present': is_present,
            'check_in': check_in,
            'check_out': check_out,
            'remarks': remarks or '',
            'marked_by': manager_user,
        },
    )
    if day == timezone.localdate():
        student.is_present = is_present
        fields = ['is_present']
        if is_present:
            student.last_check_in = timezone.now()
            fields.append('last_check_in')
        student.save(update_fields=fields)
    return record
