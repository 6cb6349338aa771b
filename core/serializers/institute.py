from rest_framework import serializers

from core.models import Institute


class InstituteRegisterSerializer(serializers.Serializer):
    eiin = serializers.CharField(max_length=50, error_messages={'blank': 'EIIN is required'})
    name = serializers.CharField(max_length=255, error_messages={'blank': 'Institute name is required'})
    type = serializers.ChoiceField(choices=Institute.TYPE_CHOICES, error_messages={
        'invalid_choice': 'Invalid institute type',
    })
    location = serializers.CharField(max_length=255)
    address = serializers.CharField(max_length=500)
    ownerName = serializers.CharField(max_length=255)
    contact = serializers.CharField(max_length=50)
    email = serializers.EmailField(error_messages={'invalid': 'Valid email is required'})
    username = serializers.CharField(min_length=4, max_length=150, error_messages={
        'min_length': 'Username must be at least 4 characters',
    })
    password = serializers.CharField(min_length=6, write_only=True, error_messages={
        'min_length': 'Password must be at least 6 characters',
    })

    def validate_username(self, v):
        return v.strip()
