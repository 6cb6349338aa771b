"""
Manager dashboard endpoints.

Everything here works on the hall the calling manager is assigned to.
Payments are the exception: the owner may list and acknowledge payments
across the whole institute.
"""
from __future__ import annotations

from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.models import Complaint, Institute
from core.permissions import IsManager
from core.serializers.complaints import ComplaintUpdateSerializer, serialize_complaint
from core.serializers.meals import DailyMenuSerializer, DefaultMenuSerializer, plain_meals
from core.serializers.people import (
    AttendanceMarkSerializer,
    MealStatusSerializer,
    ShiftRoomSerializer,
    StudentRegisterSerializer,
)
from core.services import meals as meal_svc
from core.services import students as student_svc
from core.services.audit import log_action
from core.services.managers import serialize_manager
from core.services.payments import acknowledge_receipt, payments_in_scope, serialize_payment


def _hall(request):
    return student_svc.manager_profile_or_404(request.user).hall


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsManager])
def profile(request):
    return Response(serialize_manager(student_svc.manager_profile_or_404(request.user)))


# ---------------------------------------------------------------------------
# Students
# ---------------------------------------------------------------------------
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsManager])
def students(request):
    hall = _hall(request)
    qs = hall.students.select_related('hall').order_by('room_number', 'full_name')
    return Response([student_svc.serialize_student(s) for s in qs])


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsManager])
def register_student(request):
    hall = _hall(request)
    s = StudentRegisterSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    student = student_svc.register_student(request.user, hall, s.validated_data)
    return Response({
        'message': 'Student registered successfully',
        'student': {
            'id': student.id,
            'fullName': student.full_name,
            'studentId': student.student_id,
            'roomNumber': student.room_number,
        },
    }, status=status.HTTP_201_CREATED)


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsManager])
def toggle_meal(request, student_id):
    student = student_svc.student_in_hall_or_404(_hall(request), student_id)
    s = MealStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    student = student_svc.set_meal_status(student, s.validated_data['mealStatus'], request.user)
    return Response({'message': 'Meal status updated', 'mealStatus': student.meal_status})


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsManager])
def shift_room(request, student_id):
    student = student_svc.student_in_hall_or_404(_hall(request), student_id)
    s = ShiftRoomSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    student = student_svc.shift_room(request.user, student, s.validated_data['newRoomNumber'])
    return Response({'message': 'Room updated', 'student': student_svc.serialize_student(student)})


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsManager])
def remove_room(request, student_id):
    student = student_svc.student_in_hall_or_404(_hall(request), student_id)
    student = student_svc.remove_from_room(request.user, student)
    return Response({'message': 'Student removed from room', 'student': student_svc.serialize_student(student)})


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsManager])
def attendance(request):
    hall = _hall(request)
    if request.method == 'GET':
        records = student_svc.hall_attendance(hall, timezone.localdate())
        return Response([student_svc.serialize_attendance(a) for a in records])

    s = AttendanceMarkSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    student = student_svc.student_in_hall_or_404(hall, vd['studentId'])
    record = student_svc.mark_attendance(
        request.user, student,
        day=vd.get('date') or timezone.localdate(),
        is_present=vd['isPresent'],
        check_in=vd.get('checkIn'),
        check_out=vd.get('checkOut'),
        remarks=vd.get('remarks', ''),
    )
    return Response(student_svc.serialize_attendance(record))


# ---------------------------------------------------------------------------
# Menus and meal statistics
# ---------------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsManager])
def menu(request):
    hall = _hall(request)
    today = timezone.localdate()
    if request.method == 'GET':
        return Response(meal_svc.menu_for(hall, today))

    s = DailyMenuSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    daily = meal_svc.save_daily_menu(
        request.user, hall, plain_meals(s.validated_data['meals']),
        dict(s.validated_data.get('mealPrices') or {}), today,
    )
    return Response({'date': daily.date, 'meals': daily.meals, 'mealPrices': daily.meal_prices,
                     'defaultApplied': False})


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated, IsManager])
def default_menu(request):
    hall = _hall(request)
    if request.method == 'GET':
        return Response(meal_svc.default_menu(hall))

    s = DefaultMenuSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    institute = Institute.objects.get(institute_id=hall.institute_id)
    saved = meal_svc.save_default_menu(request.user, hall, institute, plain_meals(s.validated_data['meals']))
    return Response({'meals': saved.meals, 'updatedAt': saved.updated_at})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsManager])
def meal_stats(request):
    return Response(meal_svc.meal_stats(_hall(request)))


# ---------------------------------------------------------------------------
# Complaints
# ---------------------------------------------------------------------------
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsManager])
def complaints(request):
    qs = Complaint.objects.select_related('student').filter(student__hall=_hall(request)).order_by('-created_at')
    return Response([serialize_complaint(c) for c in qs])


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsManager])
def update_complaint(request, complaint_id):
    complaint = (Complaint.objects.select_related('student')
                 .filter(pk=complaint_id, student__hall=_hall(request)).first())
    if complaint is None:
        raise NotFound('Complaint not found')
    s = ComplaintUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    new_status = vd.get('status')
    if new_status is None and 'resolved' in vd:
        new_status = Complaint.STATUS_RESOLVED if vd['resolved'] else Complaint.STATUS_PENDING
    if new_status is not None:
        complaint.status = new_status
        complaint.resolved_at = timezone.now() if new_status == Complaint.STATUS_RESOLVED else None
    if 'response' in vd:
        complaint.response = vd['response']
    complaint.save()
    log_action(user=request.user, action='complaint_updated', object_type='complaint', object_id=complaint.id,
               detail={'status': complaint.status})
    return Response(serialize_complaint(complaint))


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsManager])
def payments(request):
    qs = payments_in_scope(request.user).order_by('-created_at')
    return Response([serialize_payment(p, with_student=True) for p in qs])


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsManager])
def receive_payment(request, payment_id):
    payment = acknowledge_receipt(request.user, payment_id)
    return Response({'ok': True, 'payment': serialize_payment(payment)})
