"""
URL mappings for the hostel backend API.

Paths match the ones the web front end calls.  Trailing slashes are
deliberately omitted (``APPEND_SLASH`` is off).
"""
from django.urls import include, path

from . import auth_views
from .views import (
    floors,
    guest,
    halls,
    health,
    institute,
    manager,
    managers,
    owner,
    payments,
    rooms,
    student,
)

urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),

    # Authentication
    path('api/auth/login', auth_views.login_view, name='auth-login'),
    path('api/auth/guest-login', auth_views.guest_login_view, name='auth-guest-login'),
    path('api/auth/verify', auth_views.verify_view, name='auth-verify'),
    path('api/auth/refresh', auth_views.refresh_view, name='auth-refresh'),
    path('api/auth/change-password', auth_views.change_password_view, name='auth-change-password'),
    path('api/auth/forgot-password', auth_views.forgot_password_view, name='auth-forgot-password'),
    path('api/auth/reset-password', auth_views.reset_password_view, name='auth-reset-password'),
    path('api/auth/user-info', auth_views.user_info_view, name='auth-user-info'),
    path('api/auth/logout', auth_views.logout_view, name='auth-logout'),

    # Institute
    path('api/institute/register', institute.register, name='institute-register'),
    path('api/institute/verify/<str:institute_id>', institute.verify, name='institute-verify'),

    # Owner
    path('api/owner/profile', owner.profile, name='owner-profile'),
    path('api/owner/stats', owner.stats, name='owner-stats'),
    path('api/owner/dashboard-summary', owner.dashboard_summary, name='owner-dashboard-summary'),

    # Halls
    path('api/halls', halls.list_halls, name='hall-list'),
    path('api/halls/create', halls.create_hall, name='hall-create'),
    path('api/halls/<int:hall_id>', halls.hall_detail, name='hall-detail'),
    path('api/halls/<int:hall_id>/assign-manager', halls.assign_manager, name='hall-assign-manager'),
    path('api/halls/<int:hall_id>/floors', halls.hall_floors, name='hall-floors'),
    path('api/halls/<int:hall_id>/floors/create', halls.create_floor, name='hall-floor-create'),
    path('api/halls/<int:hall_id>/floors/create-with-details', halls.create_floor_with_details,
         name='hall-floor-create-with-details'),

    # Floors
    path('api/floors/<int:floor_id>', floors.floor_detail, name='floor-detail'),
    path('api/floors/<int:floor_id>/rooms', floors.floor_rooms, name='floor-rooms'),

    # Rooms
    path('api/rooms/<int:room_id>', rooms.room_detail, name='room-detail'),
    path('api/rooms/<int:room_id>/status', rooms.room_status, name='room-status'),
    path('api/rooms/<int:room_id>/occupants', rooms.add_occupant, name='room-add-occupant'),
    path('api/rooms/<int:room_id>/occupants/<int:user_id>', rooms.remove_occupant, name='room-remove-occupant'),

    # Managers (owner side)
    path('api/managers/create-with-details', managers.create_with_details, name='managers-create-with-details'),
    path('api/managers/create', managers.create, name='managers-create'),
    path('api/managers/available', managers.available, name='managers-available'),
    path('api/managers/<int:manager_id>', managers.detail, name='managers-detail'),

    # Manager dashboard
    path('api/manager/profile', manager.profile, name='manager-profile'),
    path('api/manager/students', manager.students, name='manager-students'),
    path('api/manager/register-student', manager.register_student, name='manager-register-student'),
    path('api/manager/toggle-meal/<int:student_id>', manager.toggle_meal, name='manager-toggle-meal'),
    path('api/manager/students/<int:student_id>/shift-room', manager.shift_room, name='manager-shift-room'),
    path('api/manager/students/<int:student_id>/remove-room', manager.remove_room, name='manager-remove-room'),
    path('api/manager/attendance', manager.attendance, name='manager-attendance'),
    path('api/manager/menu', manager.menu, name='manager-menu'),
    path('api/manager/menu/default', manager.default_menu, name='manager-default-menu'),
    path('api/manager/dashboard/meal-stats', manager.meal_stats, name='manager-meal-stats'),
    path('api/manager/complaints', manager.complaints, name='manager-complaints'),
    path('api/manager/complaints/<int:complaint_id>', manager.update_complaint, name='manager-complaint-update'),
    path('api/manager/payments', manager.payments, name='manager-payments'),
    path('api/manager/payments/<int:payment_id>/receive', manager.receive_payment, name='manager-payment-receive'),

    # Student
    path('api/student/profile', student.profile, name='student-profile'),
    path('api/student/roommates', student.roommates, name='student-roommates'),
    path('api/student/meal-history', student.meal_history, name='student-meal-history'),
    path('api/student/toggle-meal', student.toggle_meal, name='student-toggle-meal'),
    path('api/student/attendance-history', student.attendance_history, name='student-attendance-history'),
    path('api/student/complaint', student.complaint, name='student-complaint'),
    path('api/student/menu', student.menu, name='student-menu'),
    path('api/student/meals/today', student.meals_today, name='student-meals-today'),
    path('api/student/meals/history', student.meals_history, name='student-meals-history'),
    path('api/student/meals/select', student.select_meals, name='student-meals-select'),
    path('api/student/payments', student.payments, name='student-payments'),

    # Guest
    path('api/guest/halls', guest.halls, name='guest-halls'),
    path('api/guest/halls/<int:hall_id>/floors', guest.hall_floors, name='guest-hall-floors'),
    path('api/guest/floors/<int:floor_id>/rooms', guest.floor_rooms, name='guest-floor-rooms'),

    # Payments
    path('api/payment/init', payments.init, name='payment-init'),
    path('api/payment/success', payments.success, name='payment-success'),
    path('api/payment/fail', payments.fail, name='payment-fail'),
    path('api/payment/cancel', payments.cancel, name='payment-cancel'),
    path('api/payment/ipn', payments.ipn, name='payment-ipn'),
]
