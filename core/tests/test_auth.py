import pytest
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken

from core.models import AuditEvent, Institute, User

pytestmark = pytest.mark.django_db

PASSWORD = 'P@ssw0rd1'


def login(api, username, password, institute_id, user_type):
    return api.post('/api/auth/login', {
        'username': username,
        'password': password,
        'instituteId': institute_id,
        'userType': user_type,
    }, format='json')


def test_login_returns_tokens_and_user(api, owner, institute):
    r = login(api, 'owner1', PASSWORD, institute.institute_id, 'owner')
    assert r.status_code == 200
    assert r.data['success'] is True
    assert r.data['token'] and r.data['refresh']
    assert r.data['user']['userType'] == 'owner'
    assert r.data['user']['instituteId'] == institute.institute_id
    owner.refresh_from_db()
    assert owner.last_login is not None


def test_login_unknown_institute_is_404(api, owner):
    r = login(api, 'owner1', PASSWORD, 'INST-NOPE', 'owner')
    assert r.status_code == 404
    assert r.data['error']['message'] == 'Institute not found'


def test_login_wrong_password_is_401(api, owner, institute):
    r = login(api, 'owner1', 'wrong-password', institute.institute_id, 'owner')
    assert r.status_code == 401
    assert r.data['error']['message'] == 'Invalid credentials'
    assert AuditEvent.objects.filter(action='login', detail__result='fail').exists()


def test_login_with_other_user_type_is_401(api, owner, institute):
    r = login(api, 'owner1', PASSWORD, institute.institute_id, 'manager')
    assert r.status_code == 401


def test_login_inactive_user_is_401(api, owner, institute):
    owner.is_active = False
    owner.save(update_fields=['is_active'])
    r = login(api, 'owner1', PASSWORD, institute.institute_id, 'owner')
    assert r.status_code == 401


def test_login_missing_fields_is_400(api):
    r = api.post('/api/auth/login', {'username': 'owner1'}, format='json')
    assert r.status_code == 400
    assert r.data['ok'] is False


def test_login_rejects_unknown_user_type(api, owner, institute):
    r = login(api, 'owner1', PASSWORD, institute.institute_id, 'superadmin')
    assert r.status_code == 400


def test_token_authenticates_and_verify_returns_claims(api, owner, institute):
    token = login(api, 'owner1', PASSWORD, institute.institute_id, 'owner').data['token']
    api.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
    r = api.get('/api/auth/verify')
    assert r.status_code == 200
    assert r.data['valid'] is True
    assert r.data['user']['username'] == 'owner1'
    assert r.data['user']['userType'] == 'owner'
    assert r.data['user']['instituteId'] == institute.institute_id


def test_missing_or_bad_token_is_401(api):
    assert api.get('/api/auth/verify').status_code == 401
    api.credentials(HTTP_AUTHORIZATION='Bearer not-a-jwt')
    assert api.get('/api/auth/verify').status_code == 401


def test_refresh_issues_new_token(owner_client):
    r = owner_client.post('/api/auth/refresh')
    assert r.status_code == 200
    assert r.data['token']


def test_change_password(owner, owner_client):
    r = owner_client.post('/api/auth/change-password',
                          {'currentPassword': 'wrong', 'newPassword': 'newpass1'}, format='json')
    assert r.status_code == 401

    r = owner_client.post('/api/auth/change-password',
                          {'currentPassword': PASSWORD, 'newPassword': '123'}, format='json')
    assert r.status_code == 400

    r = owner_client.post('/api/auth/change-password',
                          {'currentPassword': PASSWORD, 'newPassword': 'newpass1'}, format='json')
    assert r.status_code == 200
    owner.refresh_from_db()
    assert owner.check_password('newpass1')


def test_forgot_password_hides_token_by_default(settings, api, owner, institute):
    settings.PASSWORD_RESET_EXPOSE_TOKEN = False
    r = api.post('/api/auth/forgot-password',
                 {'email': 'owner@test.edu', 'instituteId': institute.institute_id}, format='json')
    assert r.status_code == 200
    assert 'resetToken' not in r.data

    unknown = api.post('/api/auth/forgot-password',
                       {'email': 'nobody@test.edu', 'instituteId': institute.institute_id}, format='json')
    assert unknown.data['message'] == r.data['message']


def test_reset_password_with_exposed_token(settings, api, owner, institute):
    settings.PASSWORD_RESET_EXPOSE_TOKEN = True
    r = api.post('/api/auth/forgot-password',
                 {'email': 'owner@test.edu', 'instituteId': institute.institute_id}, format='json')
    uid, token = r.data['uid'], r.data['resetToken']

    bad = api.post('/api/auth/reset-password',
                   {'uid': uid, 'resetToken': 'bad-token', 'newPassword': 'resetpass'}, format='json')
    assert bad.status_code == 400

    ok = api.post('/api/auth/reset-password',
                  {'uid': uid, 'resetToken': token, 'newPassword': 'resetpass'}, format='json')
    assert ok.status_code == 200
    owner.refresh_from_db()
    assert owner.check_password('resetpass')

    # tokens are single use: the password hash changed
    again = api.post('/api/auth/reset-password',
                     {'uid': uid, 'resetToken': token, 'newPassword': 'another1'}, format='json')
    assert again.status_code == 400


def test_user_info_lists_assigned_halls(manager, manager_client, hall):
    r = manager_client.get('/api/auth/user-info')
    assert r.status_code == 200
    assert r.data['username'] == 'manager1'
    assert r.data['assignedHalls'] == [{'id': hall.id, 'name': hall.name}]


def test_logout_blacklists_outstanding_tokens(api, owner, institute):
    data = login(api, 'owner1', PASSWORD, institute.institute_id, 'owner').data
    api.credentials(HTTP_AUTHORIZATION=f"Bearer {data['token']}")
    r = api.post('/api/auth/logout', {}, format='json')
    assert r.status_code == 200
    assert r.data['blacklisted'] >= 1
    outstanding = OutstandingToken.objects.filter(user=owner)
    assert BlacklistedToken.objects.filter(token__in=outstanding).count() == outstanding.count()


def test_logout_with_foreign_refresh_token_is_rejected(api, owner, institute, manager):
    other_refresh = login(api, 'manager1', PASSWORD, institute.institute_id, 'manager').data['refresh']
    token = login(api, 'owner1', PASSWORD, institute.institute_id, 'owner').data['token']
    api.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
    r = api.post('/api/auth/logout', {'refresh': other_refresh}, format='json')
    assert r.status_code == 400


# ---------------------------------------------------------------------------
# Guest
# ---------------------------------------------------------------------------
def test_guest_login_and_access(settings, api):
    settings.GUEST_USERNAME = 'guest'
    settings.GUEST_PASSWORD = 'pass'
    r = api.post('/api/auth/guest-login', {'username': 'guest', 'password': 'pass'}, format='json')
    assert r.status_code == 200
    assert r.data['user']['userType'] == 'guest'

    api.credentials(HTTP_AUTHORIZATION=f"Bearer {r.data['token']}")
    verify = api.get('/api/auth/verify')
    assert verify.status_code == 200
    assert verify.data['user']['userType'] == 'guest'
    assert verify.data['user']['userId'] == 'guest-user'
    # guest is not an institute member
    assert api.get('/api/halls').status_code == 403


def test_guest_login_wrong_password(settings, api):
    settings.GUEST_USERNAME = 'guest'
    settings.GUEST_PASSWORD = 'pass'
    r = api.post('/api/auth/guest-login', {'username': 'guest', 'password': 'nope'}, format='json')
    assert r.status_code == 401


def test_guest_login_disabled_without_credentials(settings, api):
    settings.GUEST_USERNAME = ''
    settings.GUEST_PASSWORD = ''
    r = api.post('/api/auth/guest-login', {'username': 'guest', 'password': 'pass'}, format='json')
    assert r.status_code == 401


# ---------------------------------------------------------------------------
# Institute registration
# ---------------------------------------------------------------------------
REGISTRATION = {
    'eiin': '200002',
    'name': 'New College',
    'type': 'college',
    'location': 'Chattogram',
    'address': '2 College Road',
    'ownerName': 'Nadia Owner',
    'contact': '01855555555',
    'email': 'owner@college.edu',
    'username': 'nadia',
    'password': 'secret1',
}


def test_register_institute_creates_owner(api):
    r = api.post('/api/institute/register', REGISTRATION, format='json')
    assert r.status_code == 201
    institute_id = r.data['instituteId']
    assert institute_id.startswith('INST-')
    assert r.data['instituteName'] == 'New College'

    owner = User.objects.get(username='nadia')
    assert owner.user_type == 'owner'
    assert owner.institute_id == institute_id
    assert login(api, 'nadia', 'secret1', institute_id, 'owner').status_code == 200


@pytest.mark.parametrize('field,value,message', [
    ('eiin', '100001', 'EIIN already registered'),
    ('email', 'OWNER@test.edu', 'Email already registered'),
    ('username', 'owner1', 'Username already taken'),
])
def test_register_institute_duplicates(api, owner, field, value, message):
    r = api.post('/api/institute/register', {**REGISTRATION, field: value}, format='json')
    assert r.status_code == 400
    assert r.data['error']['message'] == message
    assert Institute.objects.count() == 1


def test_register_institute_validates_fields(api):
    r = api.post('/api/institute/register', {**REGISTRATION, 'username': 'abc', 'type': 'club'}, format='json')
    assert r.status_code == 400
    assert not Institute.objects.exists()


def test_verify_institute(api, institute):
    r = api.get(f'/api/institute/verify/{institute.institute_id}')
    assert r.status_code == 200
    assert r.data == {'exists': True, 'instituteName': 'Test University', 'instituteType': 'university'}

    missing = api.get('/api/institute/verify/INST-NOPE')
    assert missing.status_code == 404
    assert missing.data['exists'] is False
