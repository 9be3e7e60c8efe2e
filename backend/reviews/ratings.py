"""
Weighted detail ratings per business category.

Each category has a fixed table of (field, weight) pairs. Numeric fields are
1-5 sub-ratings; enumerated fields go through an ordinal map first. Fields
without data are left out of both the weighted sum and the total weight, so
an unrated criterion never drags the score down.
"""
import math
from collections.abc import Mapping
from typing import Dict, List, Optional, Tuple

# Quiet is good: the scale is inverted relative to the noise label
NOISE_LEVEL_MAP = {
    'very-quiet': 5,
    'quiet': 4,
    'moderate': 3,
    'noisy': 2,
    'very-noisy': 1,
}

RESPONSIVENESS_MAP = {
    'excellent': 5,
    'good': 4,
    'fair': 3,
    'poor': 2,
    'very-poor': 1,
    'n/a': None,
}

QUALITY_MAP = {
    'excellent': 5,
    'good': 4,
    'average': 3,
    'poor': 2,
    'very-poor': 1,
}

# (field, weight, ordinal map or None for numeric sub-ratings)
WeightedField = Tuple[str, float, Optional[Dict[str, Optional[int]]]]

CATEGORY_WEIGHTS: Dict[str, List[WeightedField]] = {
    'hotels': [
        ('bed_quality', 2.0, None),
        ('room_cleanliness', 2.0, None),
        ('noise_level', 1.5, NOISE_LEVEL_MAP),
        ('wifi_quality', 1.0, None),
        ('shower_quality', 1.0, None),
        ('checkin_experience', 1.0, None),
        ('staff_responsiveness', 0.5, RESPONSIVENESS_MAP),
    ],
    'fbos': [
        ('service_speed', 2.0, None),
        ('staff_attitude', 2.0, None),
        ('crew_lounge_quality', 1.5, None),
        ('fbo_amenities_quality', 1.0, None),
        ('communication', 1.0, None),
        ('bathroom_quality', 0.5, None),
        ('fbo_wifi_quality', 0.5, None),
    ],
    'restaurants': [
        ('food_quality', 2.5, None),
        ('restaurant_service_speed', 1.5, None),
        ('atmosphere', 1.0, QUALITY_MAP),
    ],
    'rentals': [
        ('rental_process_speed', 2.0, None),
        ('vehicle_condition', 2.0, None),
        ('staff_helpfulness', 1.5, None),
        ('pricing_transparency', 1.0, QUALITY_MAP),
    ],
}


def _read_field(review, name: str):
    if isinstance(review, Mapping):
        return review.get(name)
    return getattr(review, name, None)


def convert_to_scale(value, mapping: Dict[str, Optional[int]]) -> Optional[int]:
    """Looks up an enumerated label; unknown or unmapped labels are absent."""
    if not value or not isinstance(value, str):
        return None
    return mapping.get(value)


def _numeric(value) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def round_half_up(value: float, places: int = 1) -> float:
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


def calculate_weighted_average(fields: List[Tuple[Optional[float], float]]) -> Optional[float]:
    """
    Weighted mean over the (value, weight) pairs that carry a value.

    Returns:
        Mean rounded half-up to one decimal, or None when nothing contributed
    """
    total_weight = 0.0
    weighted_sum = 0.0

    for value, weight in fields:
        if value is not None and value > 0:
            weighted_sum += value * weight
            total_weight += weight

    if total_weight == 0:
        return None
    return round_half_up(weighted_sum / total_weight)


def calculate_category_rating(category: str, review) -> Optional[float]:
    """
    Computes the detailed score for a review of the given category.

    Args:
        category: 'hotels', 'fbos', 'restaurants' or 'rentals'
        review: Mapping or object exposing the snake_case sub-rating fields

    Returns:
        Score in 1.0-5.0 rounded to one decimal, or None if no sub-field is rated
        (or the category is unknown)
    """
    table = CATEGORY_WEIGHTS.get(category)
    if table is None or review is None:
        return None

    fields = []
    for name, weight, mapping in table:
        raw = _read_field(review, name)
        if mapping is not None:
            value = convert_to_scale(raw, mapping)
        else:
            value = _numeric(raw)
        fields.append((value, weight))

    return calculate_weighted_average(fields)
