from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.models import Complaint, Institute, Student
from core.permissions import IsStudent
from core.serializers.complaints import ComplaintCreateSerializer
from core.serializers.meals import HistoryQuerySerializer, MealSelectSerializer
from core.services import meals as meal_svc
from core.services.audit import log_action
from core.services.payments import serialize_payment
from core.services.students import serialize_student, set_meal_status, student_profile_or_404


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStudent])
def profile(request):
    return Response(serialize_student(student_profile_or_404(request.user)))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStudent])
def roommates(request):
    me = student_profile_or_404(request.user)
    if me.room_id is None:
        return Response([])
    mates = Student.objects.filter(room_id=me.room_id).exclude(pk=me.pk).order_by('full_name')
    return Response([
        {
            'id': s.id,
            'fullName': s.full_name,
            'studentId': s.student_id,
            'department': s.department,
            'bloodGroup': s.blood_group,
            'phone': s.phone,
        }
        for s in mates
    ])


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStudent])
def meal_history(request):
    me = student_profile_or_404(request.user)
    rows = me.meal_history.order_by('-date')[:30]
    return Response([{'id': h.id, 'date': h.date, 'status': h.status, 'changedAt': h.changed_at} for h in rows])


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsStudent])
def toggle_meal(request):
    me = student_profile_or_404(request.user)
    me = set_meal_status(me, not me.meal_status, request.user)
    return Response({'message': 'Meal status updated', 'mealStatus': me.meal_status})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStudent])
def attendance_history(request):
    me = student_profile_or_404(request.user)
    rows = me.attendance.order_by('-date')[:30]
    return Response([
        {'id': a.id, 'date': a.date, 'isPresent': a.is_present, 'checkIn': a.check_in,
         'checkOut': a.check_out, 'remarks': a.remarks}
        for a in rows
    ])


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStudent])
def complaint(request):
    me = student_profile_or_404(request.user)
    s = ComplaintCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    c = Complaint.objects.create(student=me, **s.validated_data)
    log_action(user=request.user, action='complaint_submitted', object_type='complaint', object_id=c.id,
               detail={'category': c.category})
    return Response({'message': 'Complaint submitted successfully', 'id': c.id}, status=status.HTTP_201_CREATED)


# ---------------------------------------------------------------------------
# Meals
# ---------------------------------------------------------------------------
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStudent])
def menu(request):
    me = student_profile_or_404(request.user)
    return Response(meal_svc.menu_for(me.hall, timezone.localdate()))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStudent])
def meals_today(request):
    return Response(meal_svc.selection_for(student_profile_or_404(request.user)))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStudent])
def meals_history(request):
    q = HistoryQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    me = student_profile_or_404(request.user)
    return Response(meal_svc.selection_history(me, q.validated_data['days']))


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsStudent])
def select_meals(request):
    me = student_profile_or_404(request.user)
    s = MealSelectSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    institute = Institute.objects.get(institute_id=me.hall.institute_id)
    selection = meal_svc.select_meals(
        me, institute, lunch=s.validated_data['lunch'], dinner=s.validated_data['dinner'],
    )
    return Response({'message': 'Meal selection saved', **meal_svc.serialize_selection(selection)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStudent])
def payments(request):
    me = student_profile_or_404(request.user)
    return Response([serialize_payment(p) for p in me.payments.order_by('-created_at')])
