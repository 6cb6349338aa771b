"""
Daily menus and per-student meal selections.

Students pick lunch and dinner for one day at a time (breakfast is
always on).  Selections are accepted between ``MEAL_SELECTION_OPEN_HOUR``
in the evening and ``MEAL_SELECTION_CLOSE_HOUR`` the next morning; after
the opening hour the choice applies to the following day.  Each saved
selection keeps a snapshot of the meal prices in force for that date so
later menu edits do not change past bills.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.db.models import Count, Q
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from core.models import MEALS, DailyMenu, DefaultMenu, MealSelection, empty_meals

logger = logging.getLogger(__name__)


def local_now(now: Optional[datetime] = None) -> datetime:
    return timezone.localtime(now or timezone.now())


def selection_open(now: datetime) -> bool:
    hour = local_now(now).hour
    return hour >= settings.MEAL_SELECTION_OPEN_HOUR or hour < settings.MEAL_SELECTION_CLOSE_HOUR


def active_date(now: Optional[datetime] = None) -> date:
    """The day a selection made at ``now`` applies to."""
    current = local_now(now)
    if current.hour >= settings.MEAL_SELECTION_OPEN_HOUR:
        return current.date() + timedelta(days=1)
    return current.date()


def sum_prices(meals: dict) -> dict:
    totals = {}
    for meal in MEALS:
        totals[meal] = float(sum(Decimal(str(item.get('price') or 0)) for item in (meals or {}).get(meal, [])))
    return totals


def menu_for(hall, day: date) -> dict:
    """Daily menu for ``day``, falling back to the hall's default menu."""
    daily = DailyMenu.objects.filter(hall=hall, date=day).first()
    if daily is not None:
        return {'date': day, 'meals': daily.meals, 'mealPrices': daily.meal_prices, 'defaultApplied': False}
    default = DefaultMenu.objects.filter(hall=hall).first()
    if default is not None:
        return {'date': day, 'meals': default.meals, 'mealPrices': sum_prices(default.meals),
                'defaultApplied': True}
    return {'date': day, 'meals': empty_meals(), 'mealPrices': sum_prices({}), 'defaultApplied': False}


def save_daily_menu(user, hall, meals: dict, meal_prices: Optional[dict] = None,
                    day: Optional[date] = None) -> DailyMenu:
    day = day or timezone.localdate()
    prices = sum_prices(meals)
    if meal_prices:
        prices.update({k: float(v) for k, v in meal_prices.items() if k in MEALS})
    menu, _ = DailyMenu.objects.update_or_create(
        hall=hall, date=day,
        defaults={
            'institute_id': hall.institute_id,
            'meals': meals,
            'meal_prices': prices,
            'created_by': user,
        },
    )
    return menu


def default_menu(hall) -> dict:
    menu = DefaultMenu.objects.filter(hall=hall).first()
    return {'meals': menu.meals if menu else empty_meals(), 'updatedAt': menu.updated_at if menu else None}


def save_default_menu(user, hall, institute, meals: dict) -> DefaultMenu:
    menu, _ = DefaultMenu.objects.update_or_create(
        hall=hall,
        defaults={'institute': institute, 'meals': meals, 'updated_by': user},
    )
    return menu


def serialize_selection(sel: MealSelection) -> dict:
    return {
        'date': sel.date,
        'breakfast': sel.breakfast,
        'lunch': sel.lunch,
        'dinner': sel.dinner,
        'prices': sel.prices,
        'cost': sel.cost(),
        'updatedAt': sel.updated_at,
    }


def select_meals(student, institute, *, lunch: bool, dinner: bool, now: Optional[datetime] = None) -> MealSelection:
    if not selection_open(now):
        raise ValidationError(
            f'Meal selection is open from {settings.MEAL_SELECTION_OPEN_HOUR}:00 '
            f'until {settings.MEAL_SELECTION_CLOSE_HOUR}:00'
        )
    day = active_date(now)
    prices = menu_for(student.hall, day)['mealPrices']
    selection, created = MealSelection.objects.update_or_create(
        student=student, date=day,
        defaults={
            'hall': student.hall,
            'institute': institute,
            'breakfast': True,
            'lunch': bool(lunch),
            'dinner': bool(dinner),
            'prices': {meal: float(prices.get(meal) or 0) for meal in MEALS},
        },
    )
    logger.info('meal selection %s for student=%s date=%s', 'created' if created else 'updated',
                student.student_id, day)
    return selection


def selection_for(student, now: Optional[datetime] = None) -> dict:
    day = active_date(now)
    sel = MealSelection.objects.filter(student=student, date=day).first()
    if sel is None:
        return {'date': day, 'saved': False}
    return {**serialize_selection(sel), 'saved': True}


def selection_history(student, days: int, now: Optional[datetime] = None) -> list[dict]:
    since = local_now(now).date() - timedelta(days=days)
    qs = MealSelection.objects.filter(student=student, date__gte=since).order_by('-date')
    return [serialize_selection(s) for s in qs]


def _counts(qs) -> dict:
    return qs.aggregate(
        breakfast=Count('id', filter=Q(breakfast=True)),
        lunch=Count('id', filter=Q(lunch=True)),
        dinner=Count('id', filter=Q(dinner=True)),
    )


def meal_stats(hall, now: Optional[datetime] = None) -> dict:
    today = local_now(now).date()
    month = MealSelection.objects.filter(hall=hall, date__year=today.year, date__month=today.month)
    monthly = _counts(month)
    monthly['revenue'] = round(sum(sel.cost() for sel in month), 2)
    return {
        'today': _counts(MealSelection.objects.filter(hall=hall, date=today)),
        'monthly': monthly,
    }
