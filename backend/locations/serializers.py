"""
DRF Serializers for airports and search logging.
"""
from rest_framework import serializers
from .models import Airport, Category, SearchLog


class AirportSerializer(serializers.ModelSerializer):
    """Airport row for the search box"""

    code = serializers.CharField(read_only=True)

    class Meta:
        model = Airport
        fields = [
            'id',
            'code',
            'iata_code',
            'icao_code',
            'name',
            'city',
            'latitude',
            'longitude',
        ]


class SearchLogSerializer(serializers.ModelSerializer):
    """
    Incoming search analytics. Every field is optional; the frontend sends
    camelCase keys.
    """

    airportCode = serializers.CharField(
        source='airport_code', max_length=10, required=False, allow_blank=True, allow_null=True
    )
    locationSearched = serializers.CharField(
        source='location_searched', max_length=255, required=False, allow_blank=True, allow_null=True
    )
    category = serializers.ChoiceField(
        choices=Category.choices, required=False, allow_blank=True, allow_null=True
    )

    class Meta:
        model = SearchLog
        fields = ['airportCode', 'locationSearched', 'category']
