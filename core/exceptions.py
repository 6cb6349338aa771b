import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class Conflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Conflicting state.'
    default_code = 'conflict'


class GatewayError(APIException):
    """The payment gateway rejected a request or answered with an unknown shape."""
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = 'Payment gateway request failed.'
    default_code = 'gateway_error'

    def __init__(self, detail=None, *, raw=None):
        super().__init__(detail)
        self.raw = raw


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        view = context.get('view')
        logger.exception('unhandled error in %s', getattr(view, '__name__', None) or type(view).__name__)
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': str(exc)}}, status=500)
    message = _message(resp.data)
    code = getattr(exc, 'default_code', None) or 'api_error'
    error = {'code': code, 'message': message}
    if isinstance(exc, GatewayError):
        error['detail'] = exc.raw
    return Response({'ok': False, 'error': error}, status=resp.status_code, headers=_passthrough_headers(resp))


def _message(data):
    # normalize response
    if isinstance(data, dict):
        data = data.get('detail', data)
    if isinstance(data, list) and len(data) == 1:
        return data[0]
    return data


def _passthrough_headers(resp):
    return {k: v for k, v in resp.items() if k in ('WWW-Authenticate', 'Retry-After')}
