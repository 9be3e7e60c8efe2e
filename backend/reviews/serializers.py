"""
DRF Serializers for review submission, public output and moderation.
Incoming payloads use the camelCase keys of the review forms; validated_data
comes out keyed by model field name.
"""
from rest_framework import serializers

from locations.models import Business, Category
from locations.services import GeoService
from .aggregation import average_rating
from .models import AMENITY_FLAG_FIELDS, CHOICE_FIELDS, SUB_RATING_FIELDS, Review


def camel_case(name: str) -> str:
    """'crew_car_availability' -> 'crewCarAvailability'"""
    head, *rest = name.split('_')
    return head + ''.join(part.capitalize() for part in rest)


def _source(name: str) -> dict:
    # DRF rejects a source equal to the field name
    camel = camel_case(name)
    return {} if camel == name else {'source': name}


def validate_coordinates(attrs: dict) -> dict:
    """Coordinates are optional, but when sent they come as a valid pair"""
    lat, lon = attrs.get('latitude'), attrs.get('longitude')
    if lat is None and lon is None:
        return attrs
    if not GeoService.is_location_valid(lat, lon):
        raise serializers.ValidationError(
            {'coordinates': 'latitude (-90..90) and longitude (-180..180) must be sent together'}
        )
    return attrs


class ReviewSubmissionSerializer(serializers.Serializer):
    """Validates the full review form"""

    category = serializers.ChoiceField(choices=Category.choices)
    airport = serializers.CharField(max_length=4, source='airport_code')
    locationName = serializers.CharField(max_length=255, source='location_name')
    address = serializers.CharField(max_length=512)
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True)
    latitude = serializers.FloatField(required=False, allow_null=True)
    longitude = serializers.FloatField(required=False, allow_null=True)
    overallRating = serializers.IntegerField(min_value=1, max_value=5, source='overall_rating')
    # Length is checked by the submission service so the error matches quick logs
    reviewText = serializers.CharField(source='review_text', trim_whitespace=False)
    wouldRecommend = serializers.BooleanField(required=False, allow_null=True, source='would_recommend')
    visitDate = serializers.DateField(required=False, allow_null=True, source='visit_date')
    aircraftType = serializers.CharField(max_length=100, required=False, allow_blank=True, source='aircraft_type')
    userEmail = serializers.EmailField(required=False, allow_blank=True, source='user_email')

    def get_fields(self):
        """Adds the optional category detail fields"""
        fields = super().get_fields()
        for name in SUB_RATING_FIELDS:
            fields[camel_case(name)] = serializers.IntegerField(
                required=False, allow_null=True, min_value=0, max_value=5, **_source(name)
            )
        for name in CHOICE_FIELDS:
            fields[camel_case(name)] = serializers.CharField(
                required=False, allow_blank=True, max_length=30, **_source(name)
            )
        for name in AMENITY_FLAG_FIELDS:
            fields[camel_case(name)] = serializers.BooleanField(
                required=False, allow_null=True, **_source(name)
            )
        return fields

    def validate(self, attrs):
        return validate_coordinates(attrs)


class QuickLogSerializer(serializers.Serializer):
    """Rating-only review logged from the trip view"""

    ACTION_CHOICES = ['draft', 'publish']

    category = serializers.ChoiceField(choices=Category.choices)
    locationName = serializers.CharField(max_length=255, source='location_name')
    overallRating = serializers.IntegerField(min_value=1, max_value=5, source='overall_rating')
    airportCode = serializers.CharField(max_length=4, required=False, allow_blank=True, source='airport_code')
    address = serializers.CharField(max_length=512, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True)
    latitude = serializers.FloatField(required=False, allow_null=True)
    longitude = serializers.FloatField(required=False, allow_null=True)
    wouldRecommend = serializers.BooleanField(required=False, allow_null=True, source='would_recommend')
    crewFriendly = serializers.BooleanField(required=False, allow_null=True, source='crew_friendly')
    action = serializers.ChoiceField(choices=ACTION_CHOICES, default='publish')

    def validate(self, attrs):
        return validate_coordinates(attrs)


class ReviewSerializer(serializers.ModelSerializer):
    """Public representation of a review"""

    class Meta:
        model = Review
        exclude = ['user_id', 'user_email', 'spam_score', 'spam_reasons', 'flagged']


class NearbyReviewSerializer(serializers.ModelSerializer):
    """Compact review row for the airport feed"""

    class Meta:
        model = Review
        fields = [
            'id',
            'category',
            'business_slug',
            'location_name',
            'airport_code',
            'overall_rating',
            'calculated_rating',
            'review_text',
            'would_recommend',
            'is_quick_log',
            'created_at',
        ]


class UserReviewSerializer(serializers.ModelSerializer):
    """Row in a user's own review list, drafts included"""

    class Meta:
        model = Review
        fields = [
            'id',
            'category',
            'location_name',
            'business_slug',
            'address',
            'airport_code',
            'overall_rating',
            'review_text',
            'status',
            'is_quick_log',
            'created_at',
            'updated_at',
        ]


class AdminReviewSerializer(serializers.ModelSerializer):
    """Full review including submitter and spam metadata"""

    class Meta:
        model = Review
        fields = '__all__'


class AdminBusinessSerializer(serializers.ModelSerializer):
    """Business row with review count and average for the approval queue"""

    review_count = serializers.IntegerField(read_only=True)
    avg_rating = serializers.SerializerMethodField()

    class Meta:
        model = Business
        fields = [
            'id',
            'business_slug',
            'category',
            'location_name',
            'address',
            'phone',
            'latitude',
            'longitude',
            'airport_code',
            'approved',
            'review_count',
            'avg_rating',
            'created_at',
            'updated_at',
        ]

    def get_avg_rating(self, obj):
        return average_rating([getattr(obj, 'avg_rating', None)])


class FlagUpdateSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    flagged = serializers.BooleanField()


class ApprovalUpdateSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    approved = serializers.BooleanField()
