from io import StringIO

import pytest
import requests
from django.core.management import call_command

from core.exceptions import GatewayError
from core.models import Hall, Institute, Payment, Room, Student, User
from core.services import gateway as gateway_module
from core.services.gateway import MockGateway, SSLCommerzGateway, get_gateway
from core.services.payments import generate_tran_id, normalize_method


class FakeResponse:
    def __init__(self, body, status_code=200, text=''):
        self._body = body
        self.status_code = status_code
        self.text = text

    def json(self):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


def test_get_gateway_follows_setting(settings):
    settings.PAYMENT_GATEWAY_BACKEND = 'core.services.gateway.MockGateway'
    assert isinstance(get_gateway(), MockGateway)
    assert get_gateway().is_mock
    settings.PAYMENT_GATEWAY_BACKEND = 'core.services.gateway.SSLCommerzGateway'
    assert isinstance(get_gateway(), SSLCommerzGateway)
    assert not get_gateway().is_mock


def test_initiate_posts_form_with_timeout(monkeypatch, settings):
    settings.SSLCZ_TIMEOUT = 7
    seen = {}

    def fake_post(url, data=None, timeout=None):
        seen.update(url=url, data=data, timeout=timeout)
        return FakeResponse({'status': 'SUCCESS', 'GatewayPageURL': 'https://pay/x', 'sessionKey': 'K'})

    monkeypatch.setattr(gateway_module.requests, 'post', fake_post)
    result = SSLCommerzGateway(init_url='https://gw/init').initiate({'tran_id': 'T1'})
    assert result.url == 'https://pay/x'
    assert result.session_key == 'K'
    assert result.completed is False
    assert seen == {'url': 'https://gw/init', 'data': {'tran_id': 'T1'}, 'timeout': 7}


def test_initiate_wraps_network_errors(monkeypatch):
    def boom(*args, **kwargs):
        raise requests.ConnectTimeout('slow')

    monkeypatch.setattr(gateway_module.requests, 'post', boom)
    with pytest.raises(GatewayError) as exc:
        SSLCommerzGateway(init_url='https://gw/init').initiate({'tran_id': 'T1'})
    assert exc.value.raw == {'error': 'slow'}
    assert exc.value.status_code == 502


def test_validate_falls_back_to_raw_text(monkeypatch):
    monkeypatch.setattr(gateway_module.requests, 'get',
                        lambda url, params=None, timeout=None: FakeResponse(ValueError('x'), text='oops'))
    assert SSLCommerzGateway(validation_url='https://gw/v').validate('V1') == {'raw': 'oops'}


def test_validate_lets_network_errors_propagate(monkeypatch):
    def boom(*args, **kwargs):
        raise requests.ConnectionError('down')

    monkeypatch.setattr(gateway_module.requests, 'get', boom)
    with pytest.raises(requests.RequestException):
        SSLCommerzGateway(validation_url='https://gw/v').validate('V1')


def test_mock_gateway_completes_immediately(settings):
    settings.FRONTEND_BASE = 'http://front'
    result = MockGateway().initiate({'tran_id': 'TXN_1_ab'})
    assert result.completed is True
    assert result.url == 'http://front/payment/success?tran_id=TXN_1_ab'


def test_tran_id_format():
    tran_id = generate_tran_id()
    prefix, millis, suffix = tran_id.split('_')
    assert prefix == 'TXN'
    assert millis.isdigit() and len(millis) >= 13
    assert len(suffix) == 8
    assert generate_tran_id() != tran_id


@pytest.mark.parametrize('raw,expected', [
    ('bKash', 'bkash'),
    (' VISA ', 'visa'),
    ('dbbl', 'dbbl'),
    ('paypal', None),
    ('', None),
    (None, None),
])
def test_normalize_method(raw, expected):
    assert normalize_method(raw) == expected


# ---------------------------------------------------------------------------
# Management commands and health
# ---------------------------------------------------------------------------
@pytest.mark.django_db
def test_seed_demo_institute_is_idempotent():
    call_command('seed_demo_institute', stdout=StringIO())
    call_command('seed_demo_institute', stdout=StringIO())
    assert Institute.objects.filter(eiin='DEMO-0001').count() == 1
    assert Hall.objects.filter(name='Demo Hall').count() == 1
    assert Room.objects.filter(hall__name='Demo Hall').count() == 6
    assert User.objects.filter(username__startswith='demo_').count() == 3
    student = Student.objects.get(student_id='DEMO-S-001')
    assert student.room.current_occupancy == 1
    assert not Payment.objects.exists()


@pytest.mark.django_db
def test_healthz(api):
    r = api.get('/healthz')
    assert r.status_code == 200
    assert r.json() == {'ok': True, 'db': True}
