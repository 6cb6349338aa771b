"""
Database models for the hostel backend.

These models capture the tenants (institutes), their residential
inventory (halls, floors, rooms), the people living and working there
(students, managers) and the day-to-day records kept about them:
meals, attendance, complaints and mess bill payments.  Field names are
snake_case here; views translate them to the camelCase keys the
front-end expects.
"""
from __future__ import annotations

from typing import Optional

from django.contrib.auth.models import AbstractUser
from django.core.validators import MinValueValidator
from django.db import models


class Role(models.TextChoices):
    """The closed set of account types.

    Anything that is not one of these values (a stale token, a hand
    edited row) parses to ``None`` and is never granted access.
    """
    OWNER = 'owner', 'Owner'
    MANAGER = 'manager', 'Manager'
    STUDENT = 'student', 'Student'
    GUEST = 'guest', 'Guest'

    @classmethod
    def parse(cls, value) -> Optional['Role']:
        try:
            return cls(value)
        except ValueError:
            return None


BLOOD_GROUP_CHOICES = [(g, g) for g in ('A+', 'A-', 'B+', 'B-', 'O+', 'O-', 'AB+', 'AB-')]
MEALS = ('breakfast', 'lunch', 'dinner')


def empty_meals() -> dict:
    return {meal: [] for meal in MEALS}


def zero_prices() -> dict:
    return {meal: 0 for meal in MEALS}


class Institute(models.Model):
    """A tenant organisation owning halls, users and billing."""
    TYPE_CHOICES = [
        ('university', 'University'),
        ('college', 'College'),
        ('school', 'School'),
        ('private', 'Private'),
    ]
    institute_id = models.CharField(max_length=40, unique=True)
    eiin = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=255)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    location = models.CharField(max_length=255)
    address = models.CharField(max_length=500)
    owner_name = models.CharField(max_length=255)
    contact = models.CharField(max_length=50)
    email = models.EmailField(unique=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.name} ({self.institute_id})"


class User(AbstractUser):
    """Login account for every role.

    ``institute_id`` stores the institute's public identifier rather
    than a foreign key so that the guest pseudo-account (``all``) and
    token claims use the same representation.
    """
    user_type = models.CharField(max_length=10, choices=Role.choices, default=Role.STUDENT, db_index=True)
    institute_id = models.CharField(max_length=40, blank=True, db_index=True)
    full_name = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=30, blank=True)

    @property
    def role(self) -> Optional[Role]:
        return Role.parse(self.user_type)

    def __str__(self) -> str:
        return f"{self.username} ({self.user_type})"


class Hall(models.Model):
    """A dormitory building containing floors and rooms.

    The counters are denormalised aggregates maintained by the floor
    endpoints; list and detail views recompute live room statistics.
    """
    TYPE_CHOICES = [
        ('boys', 'Boys'),
        ('girls', 'Girls'),
        ('mixed', 'Mixed'),
    ]
    institute_id = models.CharField(max_length=40, db_index=True)
    name = models.CharField(max_length=255)
    location = models.CharField(max_length=255)
    type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    capacity = models.PositiveIntegerField()
    manager = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='assigned_halls'
    )
    facilities = models.JSONField(default=list, blank=True)
    description = models.TextField(blank=True)
    total_floors = models.IntegerField(default=0)
    total_rooms = models.IntegerField(default=0)
    occupied_rooms = models.IntegerField(default=0)
    available_rooms = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        self.available_rooms = self.total_rooms - self.occupied_rooms
        update_fields = kwargs.get('update_fields')
        if update_fields is not None and 'available_rooms' not in update_fields:
            kwargs['update_fields'] = list(update_fields) + ['available_rooms']
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.name} ({self.institute_id})"


class Floor(models.Model):
    hall = models.ForeignKey(Hall, on_delete=models.CASCADE, related_name='floors')
    floor_number = models.IntegerField()
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    total_rooms = models.IntegerField(default=0)
    rooms_per_type = models.JSONField(default=dict, blank=True)
    facilities = models.JSONField(default=list, blank=True)
    occupied_rooms = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.name} (hall={self.hall_id})"


class Room(models.Model):
    TYPE_CHOICES = [
        ('single', 'Single'),
        ('double', 'Double'),
        ('triple', 'Triple'),
        ('dormitory', 'Dormitory'),
    ]
    STATUS_AVAILABLE = 'available'
    STATUS_OCCUPIED = 'occupied'
    STATUS_MAINTENANCE = 'maintenance'
    STATUS_RESERVED = 'reserved'
    STATUS_CHOICES = [
        (STATUS_AVAILABLE, 'Available'),
        (STATUS_OCCUPIED, 'Occupied'),
        (STATUS_MAINTENANCE, 'Maintenance'),
        (STATUS_RESERVED, 'Reserved'),
    ]
    CAPACITY_BY_TYPE = {'single': 1, 'double': 2, 'triple': 3, 'dormitory': 4}

    floor = models.ForeignKey(Floor, on_delete=models.CASCADE, related_name='rooms')
    hall = models.ForeignKey(Hall, on_delete=models.CASCADE, related_name='rooms')
    room_number = models.CharField(max_length=20)
    type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    capacity = models.PositiveIntegerField()
    current_occupancy = models.PositiveIntegerField(default=0)
    occupants = models.ManyToManyField(User, blank=True, related_name='rooms')
    facilities = models.JSONField(default=list, blank=True)
    price_per_bed = models.DecimalField(max_digits=10, decimal_places=2)
    # 常按状态统计，加索引
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default=STATUS_AVAILABLE, db_index=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [models.Index(fields=['hall', 'room_number'])]

    def save(self, *args, **kwargs):
        if self.current_occupancy >= self.capacity:
            self.status = self.STATUS_OCCUPIED
        elif self.current_occupancy > 0:
            self.status = self.STATUS_AVAILABLE
        super().save(*args, **kwargs)

    def sync_occupancy(self) -> None:
        """Recount occupants and persist the derived status."""
        self.current_occupancy = self.occupants.count()
        self.save()

    def __str__(self) -> str:
        return f"Room {self.room_number} (hall={self.hall_id})"


class Manager(models.Model):
    """Profile of a hall manager.  ``hall`` stays empty until assigned."""
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='manager_profile')
    hall = models.ForeignKey(Hall, null=True, blank=True, on_delete=models.SET_NULL, related_name='managers')
    full_name = models.CharField(max_length=255)
    age = models.PositiveIntegerField(null=True, blank=True)
    blood_group = models.CharField(max_length=3, choices=BLOOD_GROUP_CHOICES, blank=True)
    rank = models.CharField(max_length=100, blank=True)
    salary = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    phone = models.CharField(max_length=30, blank=True)
    email = models.EmailField(blank=True)
    address = models.CharField(max_length=500, blank=True)
    nid = models.CharField(max_length=50, blank=True)
    join_date = models.DateField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.full_name} (hall={self.hall_id})"


class Student(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='student_profile')
    hall = models.ForeignKey(Hall, on_delete=models.CASCADE, related_name='students')
    room = models.ForeignKey(Room, null=True, blank=True, on_delete=models.SET_NULL, related_name='students')
    full_name = models.CharField(max_length=255)
    age = models.PositiveIntegerField()
    blood_group = models.CharField(max_length=3, choices=BLOOD_GROUP_CHOICES)
    department = models.CharField(max_length=255)
    student_id = models.CharField(max_length=50, unique=True)
    phone = models.CharField(max_length=30)
    email = models.EmailField()
    room_number = models.CharField(max_length=20, blank=True)
    floor_number = models.IntegerField(null=True, blank=True)
    emergency_contact = models.CharField(max_length=100)
    address = models.CharField(max_length=500)
    meal_status = models.BooleanField(default=True)
    is_present = models.BooleanField(default=True)
    last_check_in = models.DateTimeField(null=True, blank=True)
    join_date = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.full_name} ({self.student_id})"


class Complaint(models.Model):
    CATEGORY_CHOICES = [
        ('general', 'General'),
        ('maintenance', 'Maintenance'),
        ('meal', 'Meal'),
        ('security', 'Security'),
        ('roommate', 'Roommate'),
        ('emergency', 'Emergency'),
    ]
    STATUS_PENDING = 'pending'
    STATUS_RESOLVED = 'resolved'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        ('in-progress', 'In progress'),
        (STATUS_RESOLVED, 'Resolved'),
        ('rejected', 'Rejected'),
    ]
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name='complaints')
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES)
    subject = models.CharField(max_length=255)
    description = models.TextField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    response = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    resolved_at = models.DateTimeField(null=True, blank=True)

    def __str__(self) -> str:
        return f"{self.subject} ({self.status})"


class Attendance(models.Model):
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name='attendance')
    date = models.DateField()
    is_present = models.BooleanField(default=False)
    check_in = models.CharField(max_length=20, blank=True, null=True)
    check_out = models.CharField(max_length=20, blank=True, null=True)
    marked_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    remarks = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [models.UniqueConstraint(fields=['student', 'date'], name='uniq_attendance_student_date')]
        indexes = [models.Index(fields=['student', '-date'])]

    def __str__(self) -> str:
        return f"attendance s={self.student_id} {self.date} present={self.is_present}"


class MealHistory(models.Model):
    """One row per meal on/off toggle."""
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name='meal_history')
    date = models.DateTimeField()
    status = models.BooleanField()
    changed_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    changed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [models.Index(fields=['student', '-date'])]


class MealSelection(models.Model):
    """A student's meal choice for one day with the prices at that time."""
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name='meal_selections')
    hall = models.ForeignKey(Hall, on_delete=models.CASCADE, related_name='meal_selections')
    institute = models.ForeignKey(Institute, on_delete=models.CASCADE, related_name='meal_selections')
    date = models.DateField()
    breakfast = models.BooleanField(default=False)
    lunch = models.BooleanField(default=False)
    dinner = models.BooleanField(default=False)
    prices = models.JSONField(default=zero_prices)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [models.UniqueConstraint(fields=['student', 'date'], name='uniq_meal_selection_student_date')]
        indexes = [models.Index(fields=['hall', 'date'])]

    def cost(self) -> float:
        return sum(float(self.prices.get(meal) or 0) for meal in MEALS if getattr(self, meal))


class DailyMenu(models.Model):
    institute_id = models.CharField(max_length=40)
    hall = models.ForeignKey(Hall, on_delete=models.CASCADE, related_name='daily_menus')
    date = models.DateField()
    meals = models.JSONField(default=empty_meals)
    meal_prices = models.JSONField(default=zero_prices)
    created_by = models.ForeignKey(User, null=True, on_delete=models.SET_NULL, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [models.UniqueConstraint(fields=['hall', 'date'], name='uniq_daily_menu_hall_date')]


class DefaultMenu(models.Model):
    institute = models.ForeignKey(Institute, on_delete=models.CASCADE, related_name='default_menus')
    hall = models.OneToOneField(Hall, on_delete=models.CASCADE, related_name='default_menu')
    meals = models.JSONField(default=empty_meals)
    updated_by = models.ForeignKey(User, null=True, on_delete=models.SET_NULL, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)


class Payment(models.Model):
    """A mess bill payment made through the payment gateway.

    A transaction is created ``pending`` and moves exactly once to one
    of the terminal states.  ``core.services.payments.transition`` is
    the only code that writes ``status``.  The receipt flag is set by a
    hall manager and only on ``success`` transactions.
    """
    STATUS_PENDING = 'pending'
    STATUS_SUCCESS = 'success'
    STATUS_FAILED = 'failed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = (
        (STATUS_PENDING, 'pending'),
        (STATUS_SUCCESS, 'success'),
        (STATUS_FAILED, 'failed'),
        (STATUS_CANCELLED, 'cancelled'),
    )
    TERMINAL_STATUSES = frozenset({STATUS_SUCCESS, STATUS_FAILED, STATUS_CANCELLED})

    student = models.ForeignKey(Student, on_delete=models.PROTECT, related_name='payments')
    amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0.01)])
    currency = models.CharField(max_length=3, default='BDT')
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    tran_id = models.CharField(max_length=64, unique=True, editable=False)
    val_id = models.CharField(max_length=128, blank=True, null=True)
    session_key = models.CharField(max_length=255, blank=True, null=True)
    gateway_response = models.JSONField(blank=True, null=True)
    received_by_manager = models.BooleanField(default=False)
    received_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['student', 'created_at']),
            models.Index(fields=['status', 'created_at']),
        ]

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES

    def __str__(self) -> str:
        return f"{self.tran_id} {self.amount} {self.currency} [{self.status}]"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    institute_id = models.CharField(max_length=40, blank=True, db_index=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.CharField(max_length=64, blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at']),
            models.Index(fields=['object_type', 'object_id', 'created_at']),
        ]

    def __str__(self):
        return f"{self.action}:{self.object_type}:{self.object_id}@{self.created_at:%F %T}"
