from rest_framework import serializers

from core.models import MEALS


class MenuItemSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=120)
    price = serializers.FloatField(min_value=0, required=False, default=0)
    image = serializers.CharField(max_length=500, required=False, allow_blank=True)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True)


class MealsSerializer(serializers.Serializer):
    breakfast = MenuItemSerializer(many=True, required=False, default=list)
    lunch = MenuItemSerializer(many=True, required=False, default=list)
    dinner = MenuItemSerializer(many=True, required=False, default=list)


class MealPricesSerializer(serializers.Serializer):
    breakfast = serializers.FloatField(min_value=0, required=False)
    lunch = serializers.FloatField(min_value=0, required=False)
    dinner = serializers.FloatField(min_value=0, required=False)


class DailyMenuSerializer(serializers.Serializer):
    meals = MealsSerializer()
    mealPrices = MealPricesSerializer(required=False)


class DefaultMenuSerializer(serializers.Serializer):
    meals = MealsSerializer()


class MealSelectSerializer(serializers.Serializer):
    breakfast = serializers.BooleanField(required=False, default=True)
    lunch = serializers.BooleanField(required=False, default=False)
    dinner = serializers.BooleanField(required=False, default=False)


class HistoryQuerySerializer(serializers.Serializer):
    days = serializers.IntegerField(required=False, min_value=1, max_value=365, default=30)


def plain_meals(validated) -> dict:
    """Turn nested validated data into plain JSON-ready dicts."""
    return {meal: [dict(item) for item in validated.get(meal, [])] for meal in MEALS}
