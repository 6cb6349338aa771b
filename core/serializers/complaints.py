import bleach
from rest_framework import serializers

from core.models import Complaint


def _plain(v):
    return bleach.clean((v or '').strip(), tags=set(), attributes={}, strip=True)


class ComplaintCreateSerializer(serializers.Serializer):
    category = serializers.ChoiceField(choices=Complaint.CATEGORY_CHOICES, default='general')
    subject = serializers.CharField(max_length=255)
    description = serializers.CharField(max_length=5000)

    def validate_subject(self, v):
        v = _plain(v)
        if not v:
            raise serializers.ValidationError('Subject is required')
        return v

    def validate_description(self, v):
        v = _plain(v)
        if not v:
            raise serializers.ValidationError('Description is required')
        return v


class ComplaintUpdateSerializer(serializers.Serializer):
    resolved = serializers.BooleanField(required=False)
    status = serializers.ChoiceField(choices=Complaint.STATUS_CHOICES, required=False)
    response = serializers.CharField(max_length=5000, required=False, allow_blank=True)

    def validate_response(self, v):
        return _plain(v)

    def validate(self, attrs):
        if 'resolved' not in attrs and 'status' not in attrs and 'response' not in attrs:
            raise serializers.ValidationError('Nothing to update')
        return attrs


def serialize_complaint(c: Complaint) -> dict:
    return {
        'id': c.id,
        'student': {
            'id': c.student_id,
            'fullName': c.student.full_name,
            'studentId': c.student.student_id,
            'roomNumber': c.student.room_number,
        },
        'category': c.category,
        'subject': c.subject,
        'description': c.description,
        'status': c.status,
        'resolved': c.status == Complaint.STATUS_RESOLVED,
        'response': c.response,
        'createdAt': c.created_at,
        'resolvedAt': c.resolved_at,
    }
