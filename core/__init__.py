"""Core application for the hostel backend.

This package contains models, serializers, services, views and route
registrations implementing the API contract expected by the web front end.
"""
