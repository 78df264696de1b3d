"""Unit Conversions - Pure functions for weight and volume units."""

KG_TO_LB = 2.20462
ML_TO_OZ = 0.033814
OZ_TO_ML = 29.5735

# Weights below this (kg) are valid but worth confirming with the user
UNUSUAL_WEIGHT_THRESHOLD = 20.0


def kg_to_lb(kg: float) -> float:
    return kg * KG_TO_LB


def lb_to_kg(lb: float) -> float:
    return lb / KG_TO_LB


def ml_to_oz(ml: float) -> float:
    return ml * ML_TO_OZ


def oz_to_ml(oz: float) -> float:
    return oz * OZ_TO_ML


def to_kilograms(weight: float, unit: str = "kg") -> float:
    """Convert a weight given in kg or lb to kg.

    Args:
        weight: The weight value
        unit: "kg" or "lb" (case-insensitive)

    Returns:
        Weight in kg

    Raises:
        ValueError: If unit is not kg or lb
    """
    normalized = unit.strip().lower()
    if normalized == "kg":
        return weight
    if normalized == "lb":
        return lb_to_kg(weight)
    raise ValueError(f"Invalid weight unit: {unit!r}")


def is_unusual_weight(weight: float, unit: str = "kg") -> bool:
    """Check if a positive weight is below the unusual-weight threshold."""
    weight_kg = to_kilograms(weight, unit)
    return 0 < weight_kg < UNUSUAL_WEIGHT_THRESHOLD
