"""
Payment gateway clients.

Views and the payment service talk to a ``PaymentGateway``; which
implementation they get is decided by the ``PAYMENT_GATEWAY_BACKEND``
setting.  ``SSLCommerzGateway`` performs the real HTTP calls with
``requests``; ``MockGateway`` never touches the network and reports
every initiation as already completed, for environments where no store
account has been provisioned.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import requests
from django.conf import settings
from django.utils.module_loading import import_string

from core.exceptions import GatewayError

logger = logging.getLogger(__name__)


@dataclass
class Initiation:
    """Result of a successful initiation call."""
    url: str
    session_key: Optional[str] = None
    completed: bool = False
    raw: Dict[str, Any] = field(default_factory=dict)


class PaymentGateway:
    is_mock = False

    def credentials(self) -> Dict[str, str]:
        return {'store_id': settings.SSLCZ_STORE_ID, 'store_passwd': settings.SSLCZ_STORE_PASSWD}

    def initiate(self, payload: Dict[str, Any]) -> Initiation:
        raise NotImplementedError

    def validate(self, val_id: str) -> Dict[str, Any]:
        raise NotImplementedError


def _parse_body(resp: requests.Response) -> Dict[str, Any]:
    try:
        body = resp.json()
    except ValueError:
        return {'raw': resp.text}
    return body if isinstance(body, dict) else {'raw': body}


class SSLCommerzGateway(PaymentGateway):
    """SSLCommerz v4 hosted checkout.

    Initiation is a form encoded POST that answers with JSON carrying
    ``status`` and ``GatewayPageURL``.  Validation is a GET against the
    validator API with ``format=json``.
    """

    def __init__(self, init_url: Optional[str] = None, validation_url: Optional[str] = None,
                 timeout: Optional[float] = None):
        self.init_url = init_url or settings.SSLCZ_INIT_URL
        self.validation_url = validation_url or settings.SSLCZ_VALIDATION_URL
        self.timeout = timeout or settings.SSLCZ_TIMEOUT

    def initiate(self, payload: Dict[str, Any]) -> Initiation:
        try:
            resp = requests.post(self.init_url, data=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning('gateway init request failed tran_id=%s: %s', payload.get('tran_id'), e)
            raise GatewayError('SSLCommerz init failed', raw={'error': str(e)})
        body = _parse_body(resp)
        if body.get('status') == 'SUCCESS' and body.get('GatewayPageURL'):
            return Initiation(
                url=body['GatewayPageURL'],
                session_key=body.get('sessionkey') or body.get('sessionKey'),
                raw=body,
            )
        logger.warning('gateway init rejected tran_id=%s http=%s reason=%s',
                       payload.get('tran_id'), resp.status_code, body.get('failedreason'))
        raise GatewayError('SSLCommerz init failed', raw=body)

    def validate(self, val_id: str) -> Dict[str, Any]:
        params = {'val_id': val_id, **self.credentials(), 'format': 'json'}
        # 网络异常向上抛出，由调用方决定记录保持 pending
        resp = requests.get(self.validation_url, params=params, timeout=self.timeout)
        return _parse_body(resp)


class MockGateway(PaymentGateway):
    is_mock = True

    def initiate(self, payload: Dict[str, Any]) -> Initiation:
        tran_id = payload['tran_id']
        url = f"{settings.FRONTEND_BASE}/payment/success?{urlencode({'tran_id': tran_id})}"
        return Initiation(url=url, completed=True, raw={'status': 'MOCK', 'tran_id': tran_id})

    def validate(self, val_id: str) -> Dict[str, Any]:
        return {'status': 'VALID', 'val_id': val_id, 'mock': True}


def get_gateway() -> PaymentGateway:
    """Instantiate the configured backend (resolved on each call so tests can override settings)."""
    return import_string(settings.PAYMENT_GATEWAY_BACKEND)()
