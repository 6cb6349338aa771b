"""
Django admin registrations for the core models.

Superusers can inspect institutes, halls, residents and payment records
through ``/admin/``.  Payment status is read-only here: it only changes
through the gateway callbacks and the stale payment sweep.
"""

from django.contrib import admin

from .models import (
    Attendance,
    AuditEvent,
    Complaint,
    DailyMenu,
    DefaultMenu,
    Floor,
    Hall,
    Institute,
    Manager,
    MealHistory,
    MealSelection,
    Payment,
    Room,
    Student,
    User,
)


@admin.register(Institute)
class InstituteAdmin(admin.ModelAdmin):
    list_display = ('institute_id', 'name', 'type', 'eiin', 'email', 'is_active', 'created_at')
    list_filter = ('type', 'is_active')
    search_fields = ('institute_id', 'name', 'eiin', 'email')


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'user_type', 'institute_id', 'full_name', 'is_active', 'is_staff')
    list_filter = ('user_type', 'is_active')
    search_fields = ('username', 'full_name', 'email', 'institute_id')


@admin.register(Hall)
class HallAdmin(admin.ModelAdmin):
    list_display = ('name', 'institute_id', 'type', 'capacity', 'total_rooms', 'available_rooms', 'manager')
    list_filter = ('type', 'is_active')
    search_fields = ('name', 'institute_id')


@admin.register(Floor)
class FloorAdmin(admin.ModelAdmin):
    list_display = ('hall', 'floor_number', 'name', 'total_rooms', 'occupied_rooms')
    list_filter = ('hall',)


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ('room_number', 'hall', 'floor', 'type', 'capacity', 'current_occupancy', 'status')
    list_filter = ('status', 'type', 'hall')
    search_fields = ('room_number',)


@admin.register(Manager)
class ManagerAdmin(admin.ModelAdmin):
    list_display = ('full_name', 'user', 'hall', 'email', 'phone')
    search_fields = ('full_name', 'user__username', 'email')


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ('student_id', 'full_name', 'hall', 'room_number', 'meal_status')
    list_filter = ('hall', 'meal_status')
    search_fields = ('student_id', 'full_name', 'user__username')


@admin.register(Complaint)
class ComplaintAdmin(admin.ModelAdmin):
    list_display = ('subject', 'student', 'category', 'status', 'created_at')
    list_filter = ('status', 'category')


@admin.register(Attendance)
class AttendanceAdmin(admin.ModelAdmin):
    list_display = ('student', 'date', 'is_present', 'check_in', 'check_out')
    list_filter = ('date', 'is_present')


@admin.register(MealHistory)
class MealHistoryAdmin(admin.ModelAdmin):
    list_display = ('student', 'date', 'status', 'changed_by')


@admin.register(MealSelection)
class MealSelectionAdmin(admin.ModelAdmin):
    list_display = ('student', 'hall', 'date', 'breakfast', 'lunch', 'dinner')
    list_filter = ('date', 'hall')


@admin.register(DailyMenu)
class DailyMenuAdmin(admin.ModelAdmin):
    list_display = ('hall', 'date', 'created_by')
    list_filter = ('hall',)


@admin.register(DefaultMenu)
class DefaultMenuAdmin(admin.ModelAdmin):
    list_display = ('hall', 'institute', 'updated_by', 'updated_at')


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ('tran_id', 'student', 'amount', 'currency', 'status', 'received_by_manager', 'created_at')
    list_filter = ('status', 'received_by_manager')
    search_fields = ('tran_id', 'val_id', 'student__student_id')
    readonly_fields = ('tran_id', 'status', 'val_id', 'session_key', 'gateway_response', 'created_at', 'updated_at')


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('action', 'user', 'institute_id', 'object_type', 'object_id', 'created_at')
    list_filter = ('action',)
    search_fields = ('institute_id', 'object_id')
