"""
ASGI config for the hostel project.

Every endpoint is plain request/response HTTP, so the standard Django
ASGI handler is sufficient.
"""
import os

from django.core.asgi import get_asgi_application  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "hostel.settings")

application = get_asgi_application()
