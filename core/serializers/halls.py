from rest_framework import serializers

from core.models import Hall, Room


class HallCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    location = serializers.CharField(max_length=255)
    type = serializers.ChoiceField(choices=Hall.TYPE_CHOICES)
    capacity = serializers.IntegerField(min_value=1)
    managerId = serializers.IntegerField(required=False, allow_null=True)
    facilities = serializers.ListField(child=serializers.CharField(), required=False)
    description = serializers.CharField(required=False, allow_blank=True)


class HallUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False)
    location = serializers.CharField(max_length=255, required=False)
    type = serializers.ChoiceField(choices=Hall.TYPE_CHOICES, required=False)
    capacity = serializers.IntegerField(min_value=1, required=False)
    facilities = serializers.ListField(child=serializers.CharField(), required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    isActive = serializers.BooleanField(required=False)


class AssignManagerSerializer(serializers.Serializer):
    managerId = serializers.IntegerField(required=False, allow_null=True)


class RoomsPerTypeSerializer(serializers.Serializer):
    single = serializers.IntegerField(min_value=0, required=False, default=0)
    double = serializers.IntegerField(min_value=0, required=False, default=0)
    triple = serializers.IntegerField(min_value=0, required=False, default=0)
    dormitory = serializers.IntegerField(min_value=0, required=False, default=0)


class FloorCreateSerializer(serializers.Serializer):
    floorNumber = serializers.IntegerField(min_value=0)
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)
    facilities = serializers.ListField(child=serializers.CharField(), required=False)
    roomsPerType = RoomsPerTypeSerializer(required=False)
    pricePerBed = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    roomFacilities = serializers.ListField(child=serializers.CharField(), required=False)


class FloorWithDetailsSerializer(serializers.Serializer):
    floorNumber = serializers.IntegerField(min_value=0)
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)
    facilities = serializers.ListField(child=serializers.CharField(), required=False)
    totalRooms = serializers.IntegerField(min_value=1, max_value=99)


class FloorUpdateSerializer(serializers.Serializer):
    floorNumber = serializers.IntegerField(min_value=0, required=False)
    name = serializers.CharField(max_length=255, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    facilities = serializers.ListField(child=serializers.CharField(), required=False)
    isActive = serializers.BooleanField(required=False)


class RoomUpdateSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=Room.TYPE_CHOICES, required=False)
    capacity = serializers.IntegerField(min_value=1, required=False)
    facilities = serializers.ListField(child=serializers.CharField(), required=False)
    pricePerBed = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    status = serializers.ChoiceField(choices=Room.STATUS_CHOICES, required=False)
    isActive = serializers.BooleanField(required=False)


class RoomStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Room.STATUS_CHOICES, error_messages={
        'invalid_choice': 'Invalid status',
        'required': 'Invalid status',
    })


class OccupantSerializer(serializers.Serializer):
    studentId = serializers.IntegerField()
