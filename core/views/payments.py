"""
Payment gateway endpoints.

``init`` is called by the student's browser through the API.  The other
four are called by the gateway: ``success``, ``fail`` and ``cancel`` are
browser redirects and therefore always answer with a redirect, even when
something goes wrong; ``ipn`` is a server to server notification.
None of the four are rate limited.
"""
import logging

from django.http import HttpResponseRedirect
from rest_framework.decorators import (
    api_view,
    authentication_classes,
    parser_classes,
    permission_classes,
    throttle_classes,
)
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle

from core.models import Payment
from core.permissions import IsStudent
from core.serializers.payments import IpnSerializer, PaymentInitSerializer
from core.services import payments as svc

logger = logging.getLogger(__name__)

CALLBACK_PARSERS = [FormParser, MultiPartParser, JSONParser]


def _payload(request) -> dict:
    data = request.data
    if hasattr(data, 'dict'):
        return data.dict()
    return dict(data) if isinstance(data, dict) else {}


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStudent])
@throttle_classes([ScopedRateThrottle])
def init(request):
    s = PaymentInitSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    return Response(svc.initiate_payment(request.user, s.validated_data['amount'], s.validated_data.get('method')))

init.cls.throttle_scope = 'payment_init'


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
@throttle_classes([])
@parser_classes(CALLBACK_PARSERS)
def success(request):
    try:
        target = svc.handle_success_callback(_payload(request))
    except Exception:
        logger.exception('success callback failed')
        target = svc.generic_failure_redirect()
    return HttpResponseRedirect(target)


def _closing(request, status):
    try:
        target = svc.handle_closing_callback(_payload(request), status)
    except Exception:
        logger.exception('%s callback failed', status)
        target = svc.redirect_for_status(status, None)
    return HttpResponseRedirect(target)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
@throttle_classes([])
@parser_classes(CALLBACK_PARSERS)
def fail(request):
    return _closing(request, Payment.STATUS_FAILED)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
@throttle_classes([])
@parser_classes(CALLBACK_PARSERS)
def cancel(request):
    return _closing(request, Payment.STATUS_CANCELLED)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
@throttle_classes([])
@parser_classes(CALLBACK_PARSERS)
def ipn(request):
    payload = _payload(request)
    IpnSerializer(data=payload).is_valid(raise_exception=True)
    svc.record_ipn(payload)
    return Response({'received': True})
