"""Goal Calculation - Pure functions for daily water targets.

All functions are pure: same input always produces same output, no side effects.
"""

from decimal import Decimal, ROUND_HALF_UP

from .models import ActivityLevel, WeatherCondition, Profile


# Baseline hydration need per kg of body mass
ML_PER_KG = 35

# Goals are rounded to this many ml
ROUNDING_INTERVAL = 50

ACTIVITY_MULTIPLIERS: dict[ActivityLevel, float] = {
    ActivityLevel.SEDENTARY: 1.0,
    ActivityLevel.LIGHT: 1.1,
    ActivityLevel.MODERATE: 1.2,
    ActivityLevel.ACTIVE: 1.3,
    ActivityLevel.VERY_ACTIVE: 1.4,
}

# Flat additions in ml
WEATHER_ADJUSTMENTS: dict[WeatherCondition, int] = {
    WeatherCondition.COOL: 0,
    WeatherCondition.MILD: 200,
    WeatherCondition.WARM: 400,
    WeatherCondition.HOT: 600,
}

# Every enum member needs a table entry
if set(ACTIVITY_MULTIPLIERS) != set(ActivityLevel):
    raise RuntimeError("ACTIVITY_MULTIPLIERS is missing an activity level")
if set(WEATHER_ADJUSTMENTS) != set(WeatherCondition):
    raise RuntimeError("WEATHER_ADJUSTMENTS is missing a weather condition")


def round_to_interval(amount: float | Decimal, interval: int = ROUNDING_INTERVAL) -> int:
    """Round to the nearest multiple of interval, halves rounding up.

    Floats go through their shortest repr, so 3325.0 counts as an exact half.

    Args:
        amount: Amount in ml
        interval: Rounding step in ml

    Returns:
        Nearest multiple of interval
    """
    if not isinstance(amount, Decimal):
        amount = Decimal(str(amount))
    steps = (amount / interval).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(steps) * interval


def compute_daily_goal(
    weight: float,
    activity_level: ActivityLevel | str,
    weather_condition: WeatherCondition | str,
) -> int:
    """Calculate the daily water goal in ml.

    goal = weight * 35 * activity multiplier + weather adjustment,
    rounded to the nearest 50 ml.

    Weight is not range-checked; callers validate it first (see Profile).

    Args:
        weight: Body weight in kg
        activity_level: Activity level (enum member or its value)
        weather_condition: Weather condition (enum member or its value)

    Returns:
        Daily goal in ml, a multiple of 50

    Raises:
        ValueError: If activity level or weather condition is unknown
    """
    multiplier = ACTIVITY_MULTIPLIERS[ActivityLevel.parse(activity_level)]
    adjustment = WEATHER_ADJUSTMENTS[WeatherCondition.parse(weather_condition)]

    # Decimal keeps products like 75 * 35 * 1.4 = 3675 exact
    activity_adjusted = Decimal(str(weight)) * ML_PER_KG * Decimal(str(multiplier))
    return round_to_interval(activity_adjusted + adjustment)


def build_profile(
    weight: float,
    activity_level: ActivityLevel | str,
    weather_condition: WeatherCondition | str,
) -> Profile:
    """Create a validated profile with its daily goal filled in.

    The goal is computed once here; it is not recomputed if the profile
    values change later.

    Raises:
        ValueError: If the level or condition is unknown
        pydantic.ValidationError: If weight is outside 30-300 kg
    """
    level = ActivityLevel.parse(activity_level)
    weather = WeatherCondition.parse(weather_condition)

    return Profile(
        weight=weight,
        activity_level=level,
        weather_condition=weather,
        daily_goal=compute_daily_goal(weight, level, weather),
    )
