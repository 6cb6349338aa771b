from typing import Any, Dict, Optional

from django.contrib.auth import get_user_model

from core.models import AuditEvent

User = get_user_model()


def log_action(*, user, action: str, object_type: Optional[str] = None, object_id=None,
               detail: Optional[Dict[str, Any]] = None, institute_id: Optional[str] = None) -> AuditEvent:
    return AuditEvent.objects.create(
        user=user if isinstance(user, User) else None,
        institute_id=institute_id or getattr(user, 'institute_id', '') or '',
        action=action,
        object_type=object_type,
        object_id=str(object_id) if object_id is not None else None,
        detail=detail or {},
    )


def recent_activity(institute_id: str, limit: int = 10) -> list[dict]:
    events = AuditEvent.objects.filter(institute_id=institute_id).order_by('-created_at')[:limit]
    return [
        {
            'type': e.action,
            'objectType': e.object_type,
            'objectId': e.object_id,
            'detail': e.detail,
            'timestamp': e.created_at,
        }
        for e in events
    ]
