from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from locations.models import Business, Category


# Category-specific 1-5 sub-ratings (0 / null means "not rated")
HOTEL_RATING_FIELDS = ('bed_quality', 'room_cleanliness', 'wifi_quality', 'shower_quality', 'checkin_experience')
FBO_RATING_FIELDS = (
    'service_speed', 'staff_attitude', 'crew_lounge_quality', 'fbo_amenities_quality',
    'communication', 'bathroom_quality', 'fbo_wifi_quality',
)
RESTAURANT_RATING_FIELDS = ('food_quality', 'restaurant_service_speed', 'takeout_quality')
RENTAL_RATING_FIELDS = ('rental_process_speed', 'vehicle_condition', 'staff_helpfulness')

# Enumerated labels mapped onto ordinal scales by the rating engine or amenity stats
CHOICE_FIELDS = (
    'noise_level', 'staff_responsiveness', 'breakfast', 'laundry_available',
    'crew_car_availability', 'hangar_availability', 'atmosphere', 'pricing_transparency',
)

# Yes/no amenities, null when the reviewer skipped the question
AMENITY_FLAG_FIELDS = (
    'crew_recognition', 'shuttle_service', 'fitness_center', 'blackout_curtains',
    'catering_available', 'twentyfour_seven_service',
    'restaurant_wifi_available', 'healthy_options', 'vegetarian_options', 'vegan_options',
    'after_hours_access', 'fbo_delivery', 'crew_rates_available',
)

SUB_RATING_FIELDS = HOTEL_RATING_FIELDS + FBO_RATING_FIELDS + RESTAURANT_RATING_FIELDS + RENTAL_RATING_FIELDS
DETAIL_FIELDS = SUB_RATING_FIELDS + CHOICE_FIELDS + AMENITY_FLAG_FIELDS


def _sub_rating(help_text=''):
    return models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MaxValueValidator(5)],
        help_text=help_text,
    )


def _choice(help_text=''):
    return models.CharField(max_length=30, blank=True, default='', help_text=help_text)


def _flag():
    return models.BooleanField(null=True, blank=True)


class ReviewStatus(models.TextChoices):
    DRAFT = 'draft', 'Draft'
    PUBLISHED = 'published', 'Published'


class ReviewQuerySet(models.QuerySet):

    def visible(self):
        """Published reviews that are not waiting on moderation"""
        return self.filter(status=ReviewStatus.PUBLISHED, flagged=False)

    def flagged(self):
        return self.filter(flagged=True)


class Review(models.Model):
    """
    A crew member's review of a business near an airport.
    Stores the user-supplied headline rating next to the derived
    calculated_rating and the spam check outcome.
    """
    business = models.ForeignKey(
        Business,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='reviews',
    )
    category = models.CharField(max_length=20, choices=Category.choices)
    airport_code = models.CharField(max_length=4, blank=True, default='')
    location_name = models.CharField(max_length=255)
    business_slug = models.SlugField(max_length=255, blank=True, default='')
    address = models.CharField(max_length=512, blank=True, default='')
    phone = models.CharField(max_length=50, blank=True, default='')
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)

    overall_rating = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(5)],
        help_text="User-supplied 1-5 star rating",
    )
    review_text = models.TextField(blank=True, default='')
    would_recommend = models.BooleanField(null=True, blank=True)
    visit_date = models.DateField(null=True, blank=True)
    aircraft_type = models.CharField(max_length=100, blank=True, default='')

    # Subject id from the auth provider, not a local FK
    user_id = models.CharField(max_length=255, null=True, blank=True)
    user_email = models.CharField(max_length=254, null=True, blank=True)

    status = models.CharField(max_length=20, choices=ReviewStatus.choices, default=ReviewStatus.PUBLISHED)
    is_quick_log = models.BooleanField(default=False)

    # Moderation
    flagged = models.BooleanField(default=False)
    spam_score = models.PositiveSmallIntegerField(default=0)
    spam_reasons = models.JSONField(default=list, blank=True)
    calculated_rating = models.FloatField(null=True, blank=True, help_text="Weighted detail score (1.0 - 5.0)")

    # Hotels
    bed_quality = _sub_rating()
    room_cleanliness = _sub_rating()
    noise_level = _choice("very-quiet, quiet, moderate, noisy, very-noisy")
    wifi_quality = _sub_rating()
    shower_quality = _sub_rating()
    checkin_experience = _sub_rating()
    staff_responsiveness = _choice("excellent, good, fair, poor, very-poor, n/a")
    crew_recognition = _flag()
    shuttle_service = _flag()
    fitness_center = _flag()
    breakfast = _choice("not-available or a description of what is served")
    laundry_available = _choice("none, self-service, valet")
    blackout_curtains = _flag()

    # FBOs
    service_speed = _sub_rating()
    staff_attitude = _sub_rating()
    crew_lounge_quality = _sub_rating()
    fbo_amenities_quality = _sub_rating()
    communication = _sub_rating()
    bathroom_quality = _sub_rating()
    fbo_wifi_quality = _sub_rating()
    crew_car_availability = _choice("always, usually, sometimes, rarely, never")
    catering_available = _flag()
    hangar_availability = _choice("yes-easy, yes-limited, no")
    twentyfour_seven_service = _flag()

    # Restaurants
    food_quality = _sub_rating()
    restaurant_service_speed = _sub_rating()
    takeout_quality = _sub_rating()
    atmosphere = _choice("excellent, good, average, poor, very-poor")
    restaurant_wifi_available = _flag()
    healthy_options = _flag()
    vegetarian_options = _flag()
    vegan_options = _flag()

    # Rentals
    rental_process_speed = _sub_rating()
    vehicle_condition = _sub_rating()
    staff_helpfulness = _sub_rating()
    pricing_transparency = _choice("excellent, good, average, poor, very-poor")
    after_hours_access = _flag()
    fbo_delivery = _flag()
    crew_rates_available = _flag()

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ReviewQuerySet.as_manager()

    class Meta:
        db_table = 'reviews_review'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['category', 'created_at'], name='review_category_created_idx'),
            models.Index(fields=['business_slug', 'category'], name='review_slug_category_idx'),
            models.Index(fields=['flagged'], name='review_flagged_idx'),
        ]

    def __str__(self):
        return f"Review of {self.location_name} - {self.overall_rating}/5"

    @property
    def is_visible(self):
        return self.status == ReviewStatus.PUBLISHED and not self.flagged
