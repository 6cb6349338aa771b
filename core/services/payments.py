"""
Mess bill payment lifecycle.

A payment is inserted ``pending`` when a student starts a checkout and
is closed exactly once by the gateway callbacks (``success``,
``failed`` or ``cancelled``).  ``transition`` is the only function that
writes ``Payment.status``:

* applying the status a payment already has is a no-op;
* applying a different terminal status to a closed payment raises
  ``TransitionConflict``, leaves the row untouched and records a
  ``payment_conflict`` audit event.

The IPN notification only stores the gateway payload.  Manager receipt
is an independent flag allowed on ``success`` payments only.
"""
from __future__ import annotations

import logging
import secrets
import time
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import requests
from django.conf import settings
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from core.exceptions import Conflict, GatewayError
from core.models import Payment, Role, Student
from core.services.audit import log_action
from core.services.gateway import get_gateway

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ('bkash', 'nagad', 'visa', 'master', 'amex', 'qcash', 'upay', 'city', 'dbbl')
VALID_VALIDATION_STATUSES = ('VALID', 'VALIDATED')


class TransitionConflict(Exception):
    def __init__(self, payment: Payment, requested: str):
        super().__init__(f'{payment.tran_id}: {payment.status} -> {requested} rejected')
        self.payment = payment
        self.current = payment.status
        self.requested = requested


def generate_tran_id() -> str:
    return f'TXN_{int(time.time() * 1000)}_{secrets.token_hex(4)}'


def normalize_method(method) -> Optional[str]:
    """Return the gateway channel name, or ``None`` for anything unknown."""
    if not method:
        return None
    value = str(method).strip().lower()
    return value if value in ALLOWED_METHODS else None


def callback_urls() -> Dict[str, str]:
    base = f'{settings.BACKEND_BASE}/api/payment'
    return {
        'success_url': f'{base}/success',
        'fail_url': f'{base}/fail',
        'cancel_url': f'{base}/cancel',
        'ipn_url': f'{base}/ipn',
    }


def build_gateway_payload(student: Student, amount: Decimal, tran_id: str, method=None) -> Dict[str, Any]:
    # the gateway rejects empty customer fields
    payload = {
        **get_gateway().credentials(),
        'total_amount': str(amount),
        'currency': settings.PAYMENT_CURRENCY,
        'tran_id': tran_id,
        **callback_urls(),
        'cus_name': student.full_name or 'Student',
        'cus_email': student.email or 'no@email.com',
        'cus_add1': student.address or 'N/A',
        'cus_city': 'N/A',
        'cus_postcode': '0000',
        'cus_country': 'Bangladesh',
        'cus_phone': student.phone or '00000000000',
        'product_name': 'Mess Bill',
        'product_category': 'Services',
        'product_profile': 'general',
        'shipping_method': 'NO',
        'num_of_item': 1,
    }
    channel = normalize_method(method)
    if channel:
        payload['multi_card_name'] = channel
    return payload


# ---------------------------------------------------------------------------
# Redirect targets
# ---------------------------------------------------------------------------
def _frontend(path: str, **params) -> str:
    query = {k: v for k, v in params.items() if v}
    return f'{settings.FRONTEND_BASE}{path}' + (f'?{urlencode(query)}' if query else '')


def generic_failure_redirect() -> str:
    return _frontend('/', payment='failed')


def redirect_for_status(status: str, tran_id: Optional[str]) -> str:
    if status == Payment.STATUS_SUCCESS:
        return _frontend('/payment/success', tran_id=tran_id)
    if status == Payment.STATUS_CANCELLED:
        return _frontend('/payment/cancel', tran_id=tran_id)
    if status == Payment.STATUS_FAILED:
        return _frontend('/payment/fail', tran_id=tran_id)
    return generic_failure_redirect()


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------
def find_payment(tran_id) -> Optional[Payment]:
    """Lookup by transaction id; ``None`` when absent or not given."""
    if not tran_id:
        return None
    return Payment.objects.select_related('student').filter(tran_id=str(tran_id)).first()


def transition(payment: Payment, new_status: str, *, source: str, val_id: Optional[str] = None,
               gateway_response: Optional[Dict[str, Any]] = None) -> bool:
    """Close ``payment`` with ``new_status``.

    Returns ``True`` when the row changed and ``False`` when the payment
    already had that status.  Raises ``TransitionConflict`` when it is
    closed with a different one.  ``payment`` is refreshed in place.
    """
    if new_status not in Payment.TERMINAL_STATUSES:
        raise ValueError(f'not a terminal status: {new_status}')

    with transaction.atomic():
        locked = Payment.objects.select_for_update().get(pk=payment.pk)
        current, closed = locked.status, locked.is_terminal
        if not closed:
            locked.status = new_status
            fields = ['status', 'updated_at']
            if val_id:
                locked.val_id = val_id
                fields.append('val_id')
            if gateway_response is not None:
                locked.gateway_response = gateway_response
                fields.append('gateway_response')
            locked.save(update_fields=fields)
    payment.refresh_from_db()

    if current == new_status:
        logger.info('payment %s already %s, %s ignored', payment.tran_id, current, source)
        return False
    if closed:
        logger.warning('payment %s is %s, rejected %s from %s', payment.tran_id, current, new_status, source)
        log_action(user=None, action='payment_conflict', object_type='payment', object_id=payment.tran_id,
                   institute_id=_institute_of(payment),
                   detail={'current': current, 'requested': new_status, 'source': source,
                           'payload': gateway_response})
        raise TransitionConflict(payment, new_status)

    logger.info('payment %s pending -> %s (%s)', payment.tran_id, new_status, source)
    log_action(user=None, action=f'payment_{new_status}', object_type='payment', object_id=payment.tran_id,
               institute_id=_institute_of(payment), detail={'source': source, 'val_id': val_id})
    return True


def _institute_of(payment: Payment) -> str:
    return payment.student.user.institute_id if payment.student_id else ''


# ---------------------------------------------------------------------------
# Initiation
# ---------------------------------------------------------------------------
def initiate_payment(user, amount: Decimal, method=None) -> Dict[str, Any]:
    minimum = Decimal(str(settings.PAYMENT_MIN_AMOUNT))
    if amount is None or amount < minimum:
        raise ValidationError({'amount': f'Invalid amount (minimum {minimum} {settings.PAYMENT_CURRENCY})'})
    student = Student.objects.select_related('user').filter(user=user).first()
    if student is None:
        raise NotFound('Student not found')

    tran_id = generate_tran_id()
    gateway = get_gateway()
    payload = build_gateway_payload(student, amount, tran_id, method)
    # unique constraint on tran_id: a collision raises IntegrityError here
    payment = Payment.objects.create(
        student=student, amount=amount, currency=settings.PAYMENT_CURRENCY, tran_id=tran_id,
    )
    logger.info('payment %s created amount=%s student=%s', tran_id, amount, student.student_id)
    log_action(user=user, action='payment_init', object_type='payment', object_id=tran_id,
               detail={'amount': str(amount), 'method': payload.get('multi_card_name'), 'mock': gateway.is_mock})

    try:
        result = gateway.initiate(payload)
    except GatewayError as e:
        # gateway never accepted the transaction: leave it pending for the sweep
        Payment.objects.filter(pk=payment.pk).update(gateway_response=e.raw, updated_at=timezone.now())
        log_action(user=user, action='payment_init_failed', object_type='payment', object_id=tran_id,
                   detail={'response': e.raw})
        raise

    if result.completed:
        transition(payment, Payment.STATUS_SUCCESS, source='mock', gateway_response=result.raw)
        return {'ok': True, 'mock': True, 'url': result.url, 'tran_id': tran_id}

    payment.session_key = result.session_key
    payment.save(update_fields=['session_key', 'updated_at'])
    return {'ok': True, 'url': result.url, 'tran_id': tran_id}


# ---------------------------------------------------------------------------
# Callbacks
# ---------------------------------------------------------------------------
def is_valid_validation(result: Dict[str, Any], tran_id: str) -> bool:
    if result.get('status') not in VALID_VALIDATION_STATUSES:
        return False
    reported = result.get('tran_id')
    return not reported or reported == tran_id


def handle_success_callback(data: Dict[str, Any]) -> str:
    """Validate a success redirect and return the URL to send the browser to."""
    tran_id = data.get('tran_id')
    val_id = data.get('val_id')
    payment = find_payment(tran_id)
    if payment is None:
        logger.warning('success callback for unknown transaction %r', tran_id)
        return generic_failure_redirect()

    if payment.status == Payment.STATUS_SUCCESS:
        # repeated delivery: no second validation call
        return redirect_for_status(payment.status, payment.tran_id)
    if payment.status != Payment.STATUS_PENDING:
        return _apply(payment, Payment.STATUS_SUCCESS, source='success_callback', gateway_response=data)

    if not val_id:
        return _apply(payment, Payment.STATUS_FAILED, source='success_callback',
                      gateway_response={'reason': 'missing val_id', 'callback': data})
    try:
        result = get_gateway().validate(val_id)
    except requests.RequestException as e:
        logger.warning('validation call failed for %s: %s', payment.tran_id, e)
        return generic_failure_redirect()

    if is_valid_validation(result, payment.tran_id):
        return _apply(payment, Payment.STATUS_SUCCESS, source='success_callback', val_id=val_id,
                      gateway_response=result)
    logger.warning('validation rejected payment %s status=%s', payment.tran_id, result.get('status'))
    return _apply(payment, Payment.STATUS_FAILED, source='success_callback', val_id=val_id,
                  gateway_response=result)


def handle_closing_callback(data: Dict[str, Any], status: str) -> str:
    """Fail/cancel redirect.  Unknown transactions still get a redirect."""
    tran_id = data.get('tran_id')
    payment = find_payment(tran_id)
    if payment is None:
        logger.info('%s callback for unknown transaction %r', status, tran_id)
        return redirect_for_status(status, tran_id)
    return _apply(payment, status, source=f'{status}_callback', gateway_response=data)


def _apply(payment: Payment, status: str, **kwargs) -> str:
    try:
        transition(payment, status, **kwargs)
    except TransitionConflict:
        # already recorded by transition(); the browser follows the stored outcome
        pass
    return redirect_for_status(payment.status, payment.tran_id)


def record_ipn(data: Dict[str, Any]) -> bool:
    """Store an IPN payload on its payment.  Never changes the status."""
    tran_id = data['tran_id']
    updated = Payment.objects.filter(tran_id=tran_id).update(gateway_response=data, updated_at=timezone.now())
    payment = find_payment(tran_id)
    log_action(user=None, action='payment_ipn', object_type='payment', object_id=tran_id,
               institute_id=_institute_of(payment) if payment else None,
               detail={'matched': bool(updated), 'payload': data})
    logger.info('ipn for %s matched=%s status=%s', tran_id, bool(updated), data.get('status'))
    return bool(updated)


# ---------------------------------------------------------------------------
# Manager side
# ---------------------------------------------------------------------------
def payments_in_scope(user):
    qs = Payment.objects.select_related('student', 'student__user', 'student__hall')
    if Role.parse(user.user_type) == Role.OWNER:
        return qs.filter(student__hall__institute_id=user.institute_id)
    profile = getattr(user, 'manager_profile', None)
    if profile is None or profile.hall_id is None:
        return qs.none()
    return qs.filter(student__hall_id=profile.hall_id)


def acknowledge_receipt(user, payment_id) -> Payment:
    payment = payments_in_scope(user).filter(pk=payment_id).first()
    if payment is None:
        raise NotFound('Payment not found')

    with transaction.atomic():
        locked = Payment.objects.select_for_update().get(pk=payment.pk)
        if locked.status != Payment.STATUS_SUCCESS:
            logger.warning('receipt rejected for %s in status %s', locked.tran_id, locked.status)
            raise Conflict(f'Only successful payments can be marked received (status: {locked.status})')
        if locked.received_by_manager:
            return locked
        locked.received_by_manager = True
        locked.received_at = timezone.now()
        locked.save(update_fields=['received_by_manager', 'received_at', 'updated_at'])

    log_action(user=user, action='payment_received', object_type='payment', object_id=locked.tran_id,
               detail={'amount': str(locked.amount)})
    logger.info('payment %s marked received by %s', locked.tran_id, user.username)
    return locked


def expire_stale_payments(older_than_hours: Optional[int] = None, dry_run: bool = False) -> list[str]:
    """Close pending payments the gateway never completed."""
    hours = older_than_hours if older_than_hours is not None else settings.PAYMENT_PENDING_TTL_HOURS
    cutoff = timezone.now() - timedelta(hours=hours)
    stale = list(Payment.objects.select_related('student__user')
                 .filter(status=Payment.STATUS_PENDING, created_at__lt=cutoff).order_by('created_at'))
    expired = []
    for payment in stale:
        if dry_run:
            expired.append(payment.tran_id)
            continue
        try:
            if transition(payment, Payment.STATUS_FAILED, source='expiry'):
                expired.append(payment.tran_id)
        except TransitionConflict:
            continue
    return expired


def serialize_payment(p: Payment, with_student: bool = False) -> dict:
    data = {
        'id': p.id,
        'tranId': p.tran_id,
        'amount': float(p.amount),
        'currency': p.currency,
        'status': p.status,
        'valId': p.val_id,
        'receivedByManager': p.received_by_manager,
        'receivedAt': p.received_at,
        'createdAt': p.created_at,
        'updatedAt': p.updated_at,
    }
    if with_student:
        s = p.student
        data['student'] = {
            'id': s.id,
            'fullName': s.full_name,
            'studentId': s.student_id,
            'roomNumber': s.room_number,
            'phone': s.phone,
        }
    return data
