"""
WSGI config for the hostel project.

It exposes the WSGI callable as a module-level variable named ``application``.
"""
import os

from django.core.wsgi import get_wsgi_application  # type: ignore

# Set the default settings module for the 'django' program.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'hostel.settings')

# Obtain the WSGI application for use by the server
application = get_wsgi_application()
