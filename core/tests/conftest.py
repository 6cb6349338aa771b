import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from core.authentication import issue_tokens
from core.models import Institute, Role, User
from core.services.halls import create_floor, create_hall
from core.services.managers import create_manager
from core.services.students import register_student

PASSWORD = 'P@ssw0rd1'


@pytest.fixture(autouse=True)
def _clear_throttles():
    # throttle counters live in the locmem cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api():
    return APIClient()


def auth(user) -> APIClient:
    c = APIClient()
    access, _ = issue_tokens(user)
    c.credentials(HTTP_AUTHORIZATION=f'Bearer {access}')
    return c


@pytest.fixture
def auth_client():
    return auth


@pytest.fixture
def institute(db):
    return Institute.objects.create(
        institute_id='INST-TEST-00001',
        eiin='100001',
        name='Test University',
        type='university',
        location='Dhaka',
        address='1 Test Road',
        owner_name='Olivia Owner',
        contact='01711111111',
        email='owner@test.edu',
    )


@pytest.fixture
def owner(institute):
    return User.objects.create_user(
        username='owner1', password=PASSWORD, email='owner@test.edu', full_name='Olivia Owner',
        user_type=Role.OWNER, institute_id=institute.institute_id,
    )


@pytest.fixture
def hall(owner):
    hall = create_hall(owner, {'name': 'North Hall', 'location': 'Campus', 'type': 'boys', 'capacity': 40})
    # rooms 101 (single), 102 and 103 (double)
    create_floor(owner, hall, {'floorNumber': 1, 'name': 'First', 'roomsPerType': {'single': 1, 'double': 2}})
    hall.refresh_from_db()
    return hall


@pytest.fixture
def manager(owner, hall):
    return create_manager(owner, {
        'fullName': 'Mina Manager', 'email': 'manager@test.edu', 'phone': '01722222222',
        'username': 'manager1', 'password': PASSWORD, 'hallId': hall.id,
    })


def _register(manager, hall, *, student_id='S-001', username='student1', room='102'):
    return register_student(manager.user, hall, {
        'fullName': f'Student {student_id}', 'age': 21, 'bloodGroup': 'A+', 'department': 'CSE',
        'studentId': student_id, 'phone': '01733333333', 'email': f'{username}@test.edu',
        'roomNumber': room, 'username': username, 'password': PASSWORD,
        'emergencyContact': '01744444444', 'address': 'Dhaka',
    })


@pytest.fixture
def make_student(manager, hall):
    def _make(**kwargs):
        return _register(manager, hall, **kwargs)
    return _make


@pytest.fixture
def student(make_student):
    return make_student()


@pytest.fixture
def owner_client(owner):
    return auth(owner)


@pytest.fixture
def manager_client(manager):
    return auth(manager.user)


@pytest.fixture
def student_client(student):
    return auth(student.user)
