# core/management/commands/seed_demo_institute.py
from django.core.management.base import BaseCommand
from django.db import transaction

from core.models import Hall, Institute, Manager, Student, User
from core.services.halls import create_floor, create_hall
from core.services.institutes import register_institute
from core.services.managers import create_manager
from core.services.students import register_student

DEMO_EIIN = 'DEMO-0001'
DEMO_PASSWORD = '123456'


class Command(BaseCommand):
    help = "Create a demo institute with one hall, a manager and a student (idempotent)."

    @transaction.atomic
    def handle(self, *args, **opts):
        institute = Institute.objects.filter(eiin=DEMO_EIIN).first()
        if institute is None:
            institute = register_institute({
                'eiin': DEMO_EIIN,
                'name': 'Demo University',
                'type': 'university',
                'location': 'Dhaka',
                'address': '1 Demo Road, Dhaka',
                'ownerName': 'Demo Owner',
                'contact': '01700000000',
                'email': 'owner@demo.edu',
                'username': 'demo_owner',
                'password': DEMO_PASSWORD,
            })
            self.stdout.write(self.style.SUCCESS(f"created institute {institute.institute_id}"))
        owner = User.objects.get(username='demo_owner')

        hall = Hall.objects.filter(institute_id=institute.institute_id, name='Demo Hall').first()
        if hall is None:
            hall = create_hall(owner, {'name': 'Demo Hall', 'location': 'Campus', 'type': 'mixed', 'capacity': 20})
            create_floor(owner, hall, {'floorNumber': 1, 'name': 'First Floor',
                                       'roomsPerType': {'single': 2, 'double': 4}})
            self.stdout.write(self.style.SUCCESS(f"created hall {hall.id} with 6 rooms"))

        manager_user = User.objects.filter(username='demo_manager').first()
        if manager_user is None:
            manager = create_manager(owner, {
                'fullName': 'Demo Manager', 'email': 'manager@demo.edu', 'phone': '01700000001',
                'username': 'demo_manager', 'password': DEMO_PASSWORD, 'hallId': hall.id,
            })
            manager_user = manager.user
            self.stdout.write(self.style.SUCCESS("created manager demo_manager"))
        elif not Manager.objects.filter(user=manager_user, hall=hall).exists():
            Manager.objects.filter(user=manager_user).update(hall=hall)

        if not Student.objects.filter(student_id='DEMO-S-001').exists():
            hall.refresh_from_db()
            register_student(manager_user, hall, {
                'fullName': 'Demo Student', 'age': 20, 'bloodGroup': 'O+', 'department': 'CSE',
                'studentId': 'DEMO-S-001', 'phone': '01700000002', 'email': 'student@demo.edu',
                'roomNumber': '103', 'username': 'demo_student', 'password': DEMO_PASSWORD,
                'emergencyContact': '01700000003', 'address': 'Dhaka',
            })
            self.stdout.write(self.style.SUCCESS("created student demo_student in room 103"))

        self.stdout.write(self.style.SUCCESS(
            f"Demo institute ready: {institute.institute_id} (password for all demo users: {DEMO_PASSWORD})"))
