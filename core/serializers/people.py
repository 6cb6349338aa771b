import bleach
from rest_framework import serializers

from core.models import BLOOD_GROUP_CHOICES


def _clean(v):
    return bleach.clean((v or '').strip(), strip=True)


class ManagerCreateSerializer(serializers.Serializer):
    fullName = serializers.CharField(max_length=255)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=30)
    username = serializers.CharField(min_length=4, max_length=150)
    password = serializers.CharField(min_length=6, write_only=True)

    def validate_fullName(self, v):
        v = _clean(v)
        if not v:
            raise serializers.ValidationError('Full name is required')
        return v


class ManagerDetailsSerializer(ManagerCreateSerializer):
    age = serializers.IntegerField(min_value=18, max_value=100, required=False, allow_null=True)
    bloodGroup = serializers.ChoiceField(choices=BLOOD_GROUP_CHOICES, required=False, allow_blank=True)
    rank = serializers.CharField(max_length=100, required=False, allow_blank=True)
    salary = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True)
    address = serializers.CharField(max_length=500, required=False, allow_blank=True)
    nid = serializers.CharField(max_length=50, required=False, allow_blank=True)
    joinDate = serializers.DateField(required=False, allow_null=True)
    hallId = serializers.IntegerField(required=False, allow_null=True)

    def validate_address(self, v):
        return _clean(v)


class StudentRegisterSerializer(serializers.Serializer):
    fullName = serializers.CharField(max_length=255)
    age = serializers.IntegerField(min_value=10, max_value=100)
    bloodGroup = serializers.ChoiceField(choices=BLOOD_GROUP_CHOICES)
    department = serializers.CharField(max_length=255)
    studentId = serializers.CharField(max_length=50)
    phone = serializers.CharField(max_length=30)
    email = serializers.EmailField()
    roomNumber = serializers.CharField(max_length=20)
    floorNumber = serializers.IntegerField(required=False, allow_null=True)
    username = serializers.CharField(min_length=4, max_length=150)
    password = serializers.CharField(min_length=6, write_only=True)
    emergencyContact = serializers.CharField(max_length=100)
    address = serializers.CharField(max_length=500)

    def validate_fullName(self, v):
        return _clean(v)

    def validate_address(self, v):
        return _clean(v)

    def validate_studentId(self, v):
        return v.strip()


class MealStatusSerializer(serializers.Serializer):
    mealStatus = serializers.BooleanField()


class AttendanceMarkSerializer(serializers.Serializer):
    studentId = serializers.IntegerField()
    date = serializers.DateField(required=False)
    isPresent = serializers.BooleanField()
    checkIn = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)
    checkOut = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)
    remarks = serializers.CharField(max_length=255, required=False, allow_blank=True)


class ShiftRoomSerializer(serializers.Serializer):
    newRoomNumber = serializers.CharField(max_length=20)
