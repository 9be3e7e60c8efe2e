"""
Per-business aggregates for directory listings: review counts, averages and
the share of reviews reporting each category amenity.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Dict, List, Optional, Sequence, Tuple

AmenityPredicate = Tuple[str, Callable[[object], bool]]


def _is_true(field: str) -> Callable[[object], bool]:
    return lambda review: getattr(review, field, None) is True


def _in(field: str, values: Sequence[str]) -> Callable[[object], bool]:
    return lambda review: getattr(review, field, None) in values


def _present_except(field: str, excluded: Sequence[str]) -> Callable[[object], bool]:
    def predicate(review):
        value = getattr(review, field, None)
        return bool(value) and value not in excluded
    return predicate


def _positive(field: str) -> Callable[[object], bool]:
    def predicate(review):
        value = getattr(review, field, None)
        return value is not None and value > 0
    return predicate


AMENITY_PREDICATES: Dict[str, List[AmenityPredicate]] = {
    'hotels': [
        ('crew_rates_pct', _is_true('crew_recognition')),
        ('shuttle_pct', _is_true('shuttle_service')),
        ('fitness_pct', _is_true('fitness_center')),
        ('breakfast_pct', _present_except('breakfast', ('not-available',))),
        ('laundry_pct', _present_except('laundry_available', ('none',))),
        ('blackout_pct', _is_true('blackout_curtains')),
    ],
    'fbos': [
        ('crew_car_pct', _in('crew_car_availability', ('always', 'usually'))),
        ('catering_pct', _is_true('catering_available')),
        ('hangar_pct', _in('hangar_availability', ('yes-easy', 'yes-limited'))),
        ('twentyfour_seven_pct', _is_true('twentyfour_seven_service')),
    ],
    'restaurants': [
        ('wifi_pct', _is_true('restaurant_wifi_available')),
        ('healthy_pct', _is_true('healthy_options')),
        ('vegetarian_pct', _is_true('vegetarian_options')),
        ('vegan_pct', _is_true('vegan_options')),
        ('takeout_pct', _positive('takeout_quality')),
    ],
    'rentals': [
        ('after_hours_pct', _is_true('after_hours_access')),
        ('fbo_delivery_pct', _is_true('fbo_delivery')),
        ('crew_rates_pct', _is_true('crew_rates_available')),
    ],
}


def _round(value: Decimal, places: str) -> float:
    return float(value.quantize(Decimal(places), rounding=ROUND_HALF_UP))


def amenity_percentages(category: str, reviews: Sequence) -> Dict[str, Optional[int]]:
    """
    Share of reviews reporting each amenity, as a whole percentage.
    Reviews that skipped a question count as "no".

    Returns:
        Dict of amenity key to percentage, or None values when there are no reviews
    """
    predicates = AMENITY_PREDICATES.get(category, [])
    total = len(reviews)
    result = {}
    for key, predicate in predicates:
        if total == 0:
            result[key] = None
            continue
        hits = sum(1 for review in reviews if predicate(review))
        result[key] = int(_round(Decimal(hits * 100) / Decimal(total), '1'))
    return result


def average_rating(values) -> Optional[float]:
    """Mean of the non-null values, rounded half-up to one decimal."""
    present = [Decimal(str(v)) for v in values if v is not None]
    if not present:
        return None
    return _round(sum(present) / len(present), '0.1')


def has_recommendations(reviews: Sequence) -> Optional[bool]:
    """True if any reviewer recommends the place, None if nobody answered."""
    answers = [r.would_recommend for r in reviews if r.would_recommend is not None]
    if not answers:
        return None
    return any(answers)


def summarize_business(business, reviews: Sequence) -> Dict:
    """
    Builds the listing row for one business from its visible reviews.

    Args:
        business: Business instance
        reviews: Visible reviews of the business, newest first

    Returns:
        Dict ready for JSON serialization
    """
    latest = max((r.created_at for r in reviews), default=None)
    summary = {
        'business_id': business.pk,
        'business_slug': business.business_slug,
        'category': business.category,
        'location_name': business.location_name,
        'address': business.address,
        'phone': business.phone,
        'latitude': business.latitude,
        'longitude': business.longitude,
        'airport_code': business.airport_code,
        'approved': business.approved,
        'review_count': len(reviews),
        'avg_rating': average_rating(r.overall_rating for r in reviews),
        'calculated_rating': average_rating(r.calculated_rating for r in reviews),
        'latest_review_date': latest.isoformat() if latest else None,
        'has_recommendations': has_recommendations(reviews),
    }
    summary.update(amenity_percentages(business.category, reviews))
    return summary
