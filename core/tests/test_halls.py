"""Hall, floor and room inventory plus the public guest views."""
import pytest

from core.models import AuditEvent, Floor, Hall, Institute, Manager, Role, Room, User
from core.services.halls import create_hall

pytestmark = pytest.mark.django_db


@pytest.fixture
def other_institute_hall(db):
    Institute.objects.create(
        institute_id='INST-OTHER', eiin='999', name='Other', type='school', location='Sylhet',
        address='x', owner_name='x', contact='x', email='other@x.edu',
    )
    other_owner = User.objects.create_user(username='other_owner', password='x' * 8,
                                           user_type=Role.OWNER, institute_id='INST-OTHER')
    return create_hall(other_owner, {'name': 'Elsewhere', 'location': 'x', 'type': 'mixed', 'capacity': 5})


# ---------------------------------------------------------------------------
# Halls
# ---------------------------------------------------------------------------
def test_owner_creates_hall(owner_client, owner):
    r = owner_client.post('/api/halls/create', {
        'name': 'East Hall', 'location': 'Campus', 'type': 'girls', 'capacity': 100,
        'facilities': ['wifi', 'gym'],
    }, format='json')
    assert r.status_code == 201
    hall = Hall.objects.get(name='East Hall')
    assert hall.institute_id == owner.institute_id
    assert hall.facilities == ['wifi', 'gym']
    assert AuditEvent.objects.filter(action='hall_created', object_id=str(hall.id)).exists()


def test_create_hall_validates_type(owner_client):
    r = owner_client.post('/api/halls/create', {'name': 'X', 'location': 'Y', 'type': 'castle', 'capacity': 1},
                          format='json')
    assert r.status_code == 400


def test_manager_cannot_create_hall(manager_client):
    r = manager_client.post('/api/halls/create', {'name': 'X', 'location': 'Y', 'type': 'boys', 'capacity': 1},
                            format='json')
    assert r.status_code == 403


def test_list_halls_scoped_to_institute(owner_client, hall, other_institute_hall):
    r = owner_client.get('/api/halls')
    assert r.status_code == 200
    assert [h['id'] for h in r.data] == [hall.id]
    assert r.data[0]['totalRooms'] == 3
    assert r.data[0]['availableRooms'] == 3


def test_hall_of_other_institute_is_404(owner_client, other_institute_hall):
    assert owner_client.get(f'/api/halls/{other_institute_hall.id}').status_code == 404


def test_hall_detail_counts_maintenance_rooms(owner_client, hall):
    Room.objects.filter(hall=hall, room_number='101').update(status=Room.STATUS_MAINTENANCE)
    r = owner_client.get(f'/api/halls/{hall.id}')
    assert r.status_code == 200
    assert r.data['maintenanceRooms'] == 1
    assert r.data['availableRooms'] == 2
    assert r.data['totalFloors'] == 1


def test_owner_updates_hall(owner_client, hall):
    r = owner_client.put(f'/api/halls/{hall.id}', {'name': 'Renamed', 'capacity': 55}, format='json')
    assert r.status_code == 200
    hall.refresh_from_db()
    assert hall.name == 'Renamed'
    assert hall.capacity == 55
    assert hall.type == 'boys'


def test_manager_cannot_update_hall(manager_client, hall):
    assert manager_client.put(f'/api/halls/{hall.id}', {'name': 'X'}, format='json').status_code == 403


def test_delete_hall_cascades_floors_and_rooms(owner_client, hall, manager):
    r = owner_client.delete(f'/api/halls/{hall.id}')
    assert r.status_code == 200
    assert not Hall.objects.filter(pk=hall.id).exists()
    assert not Floor.objects.exists()
    assert not Room.objects.exists()
    manager.refresh_from_db()
    assert manager.hall is None


def test_delete_hall_with_students_is_refused(owner_client, hall, student):
    r = owner_client.delete(f'/api/halls/{hall.id}')
    assert r.status_code == 400
    assert Hall.objects.filter(pk=hall.id).exists()


def test_assign_manager_keeps_profile_in_sync(owner_client, owner, hall, manager):
    second_hall = create_hall(owner, {'name': 'West Hall', 'location': 'x', 'type': 'boys', 'capacity': 10})
    r = owner_client.put(f'/api/halls/{second_hall.id}/assign-manager', {'managerId': manager.user_id},
                         format='json')
    assert r.status_code == 200
    assert r.data['manager']['id'] == manager.user_id
    manager.refresh_from_db()
    assert manager.hall_id == second_hall.id

    r = owner_client.put(f'/api/halls/{second_hall.id}/assign-manager', {'managerId': None}, format='json')
    assert r.status_code == 200
    assert r.data['manager'] is None
    assert Manager.objects.get(pk=manager.pk).hall is None


def test_assign_unknown_manager_is_400(owner_client, hall):
    r = owner_client.put(f'/api/halls/{hall.id}/assign-manager', {'managerId': 99999}, format='json')
    assert r.status_code == 400


# ---------------------------------------------------------------------------
# Floors
# ---------------------------------------------------------------------------
def test_create_floor_with_room_types(owner_client, hall):
    r = owner_client.post(f'/api/halls/{hall.id}/floors/create', {
        'floorNumber': 2, 'name': 'Second',
        'roomsPerType': {'single': 1, 'triple': 1, 'dormitory': 2},
        'pricePerBed': '4500.00',
    }, format='json')
    assert r.status_code == 201
    floor = Floor.objects.get(hall=hall, floor_number=2)
    rooms = {room.room_number: room for room in floor.rooms.all()}
    assert sorted(rooms) == ['201', '202', '203', '204']
    assert rooms['201'].capacity == 1
    assert rooms['202'].capacity == 3
    assert rooms['204'].capacity == 4
    assert float(rooms['203'].price_per_bed) == 4500.0
    hall.refresh_from_db()
    assert hall.total_floors == 2
    assert hall.total_rooms == 7
    assert hall.available_rooms == 7


def test_create_floor_default_price(owner_client, hall):
    owner_client.post(f'/api/halls/{hall.id}/floors/create',
                      {'floorNumber': 3, 'name': 'Third', 'roomsPerType': {'double': 1}}, format='json')
    room = Room.objects.get(hall=hall, room_number='301')
    assert float(room.price_per_bed) == 5000.0
    assert room.capacity == 2


def test_create_floor_with_details(owner_client, hall):
    r = owner_client.post(f'/api/halls/{hall.id}/floors/create-with-details',
                          {'floorNumber': 4, 'name': 'Fourth', 'totalRooms': 12}, format='json')
    assert r.status_code == 201
    assert r.data['roomsCreated'] == 12
    rooms = Room.objects.filter(floor__floor_number=4, hall=hall)
    assert rooms.count() == 12
    assert set(rooms.values_list('capacity', flat=True)) == {2}
    assert rooms.filter(room_number='412').exists()
    hall.refresh_from_db()
    assert hall.total_rooms == 15


def test_create_floor_with_details_bounds(owner_client, hall):
    r = owner_client.post(f'/api/halls/{hall.id}/floors/create-with-details',
                          {'floorNumber': 5, 'name': 'Fifth', 'totalRooms': 0}, format='json')
    assert r.status_code == 400


def test_hall_floors_and_floor_rooms(owner_client, hall):
    floors = owner_client.get(f'/api/halls/{hall.id}/floors')
    assert floors.status_code == 200
    assert len(floors.data) == 1
    floor_id = floors.data[0]['id']
    assert floors.data[0]['totalRooms'] == 3

    detail = owner_client.get(f'/api/floors/{floor_id}')
    assert detail.status_code == 200
    assert detail.data['hall']['id'] == hall.id

    rooms = owner_client.get(f'/api/floors/{floor_id}/rooms')
    assert [room['roomNumber'] for room in rooms.data] == ['101', '102', '103']


def test_update_floor(owner_client, hall):
    floor = hall.floors.get()
    r = owner_client.put(f'/api/floors/{floor.id}', {'name': 'Ground'}, format='json')
    assert r.status_code == 200
    floor.refresh_from_db()
    assert floor.name == 'Ground'


def test_delete_floor_decrements_hall_counters(owner_client, hall):
    floor = hall.floors.get()
    r = owner_client.delete(f'/api/floors/{floor.id}')
    assert r.status_code == 200
    hall.refresh_from_db()
    assert hall.total_floors == 0
    assert hall.total_rooms == 0
    assert hall.available_rooms == 0
    assert not Room.objects.filter(hall=hall).exists()


def test_manager_cannot_delete_floor(manager_client, hall):
    floor = hall.floors.get()
    assert manager_client.delete(f'/api/floors/{floor.id}').status_code == 403


# ---------------------------------------------------------------------------
# Rooms
# ---------------------------------------------------------------------------
def test_room_detail_lists_occupants(manager_client, hall, student):
    room = Room.objects.get(hall=hall, room_number='102')
    r = manager_client.get(f'/api/rooms/{room.id}')
    assert r.status_code == 200
    assert r.data['currentOccupancy'] == 1
    assert r.data['occupants'][0]['id'] == student.user_id
    assert r.data['floor']['floorNumber'] == 1


def test_manager_updates_room(manager_client, hall):
    room = Room.objects.get(hall=hall, room_number='103')
    r = manager_client.put(f'/api/rooms/{room.id}', {'pricePerBed': '6000.00', 'facilities': ['fan']},
                           format='json')
    assert r.status_code == 200
    assert r.data['pricePerBed'] == 6000.0
    assert r.data['facilities'] == ['fan']


def test_student_cannot_update_room(student_client, hall):
    room = Room.objects.get(hall=hall, room_number='103')
    assert student_client.put(f'/api/rooms/{room.id}', {'capacity': 5}, format='json').status_code == 403


def test_room_status_patch(manager_client, hall):
    room = Room.objects.get(hall=hall, room_number='101')
    r = manager_client.patch(f'/api/rooms/{room.id}/status', {'status': 'maintenance'}, format='json')
    assert r.status_code == 200
    room.refresh_from_db()
    assert room.status == Room.STATUS_MAINTENANCE

    bad = manager_client.patch(f'/api/rooms/{room.id}/status', {'status': 'flooded'}, format='json')
    assert bad.status_code == 400
    assert bad.data['error']['message'] == {'status': ['Invalid status']}


def test_add_and_remove_occupant(manager_client, hall, student, make_student):
    single = Room.objects.get(hall=hall, room_number='101')
    other = make_student(student_id='S-002', username='student2', room='103')

    r = manager_client.post(f'/api/rooms/{single.id}/occupants', {'studentId': other.user_id}, format='json')
    assert r.status_code == 200
    single.refresh_from_db()
    assert single.current_occupancy == 1
    assert single.status == Room.STATUS_OCCUPIED

    full = manager_client.post(f'/api/rooms/{single.id}/occupants', {'studentId': student.user_id}, format='json')
    assert full.status_code == 400
    assert full.data['error']['message'] == 'Room is full'

    r = manager_client.delete(f'/api/rooms/{single.id}/occupants/{other.user_id}')
    assert r.status_code == 200
    single.refresh_from_db()
    assert single.current_occupancy == 0
    assert single.status == Room.STATUS_AVAILABLE


# ---------------------------------------------------------------------------
# Owner dashboard
# ---------------------------------------------------------------------------
def test_owner_stats(owner_client, hall, student):
    Room.objects.filter(hall=hall, room_number='101').update(status=Room.STATUS_MAINTENANCE)
    r = owner_client.get('/api/owner/stats')
    assert r.status_code == 200
    assert r.data['totalHalls'] == 1
    assert r.data['totalRooms'] == 3
    assert r.data['totalFloors'] == 1
    assert r.data['maintenanceRooms'] == 1
    assert r.data['totalCapacity'] == 40


def test_owner_profile_and_summary(owner_client, institute, hall):
    profile = owner_client.get('/api/owner/profile')
    assert profile.status_code == 200
    assert profile.data['instituteName'] == institute.name
    assert profile.data['eiin'] == institute.eiin

    summary = owner_client.get('/api/owner/dashboard-summary')
    assert summary.status_code == 200
    assert summary.data['recentHalls'][0]['id'] == hall.id
    assert any(a['type'] == 'hall_created' for a in summary.data['activities'])


def test_owner_endpoints_reject_manager(manager_client):
    assert manager_client.get('/api/owner/stats').status_code == 403


# ---------------------------------------------------------------------------
# Guest browsing
# ---------------------------------------------------------------------------
def test_guest_halls_require_institute_id(api):
    assert api.get('/api/guest/halls').status_code == 400


def test_guest_halls_lists_active_halls(api, hall, institute, other_institute_hall):
    inactive = Hall.objects.create(institute_id=institute.institute_id, name='Closed', location='x',
                                   type='boys', capacity=1, is_active=False)
    r = api.get('/api/guest/halls', {'instituteId': institute.institute_id})
    assert r.status_code == 200
    ids = [h['id'] for h in r.data]
    assert ids == [hall.id]
    assert inactive.id not in ids
    assert 'manager' not in r.data[0]


def test_guest_floors_and_rooms_hide_occupants(api, hall, student):
    floors = api.get(f'/api/guest/halls/{hall.id}/floors')
    assert floors.status_code == 200
    assert floors.data[0]['availableRooms'] == 3

    rooms = api.get(f"/api/guest/floors/{floors.data[0]['id']}/rooms")
    assert rooms.status_code == 200
    room = next(r for r in rooms.data if r['roomNumber'] == '102')
    assert room['currentOccupancy'] == 1
    assert 'occupants' not in room
