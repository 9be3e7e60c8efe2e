from django.db import models


class Category(models.TextChoices):
    """Business categories reviewed by crews"""
    HOTELS = 'hotels', 'Hotel'
    FBOS = 'fbos', 'FBO'
    RESTAURANTS = 'restaurants', 'Restaurant'
    RENTALS = 'rentals', 'Car Rental'


class Airport(models.Model):
    """
    Airport reference data. Listings and nearby searches are bounded by the
    distance from one of these points.
    """
    iata_code = models.CharField(max_length=3, blank=True, default='', db_index=True)
    icao_code = models.CharField(max_length=4, blank=True, default='', db_index=True)
    name = models.CharField(max_length=255)
    city = models.CharField(max_length=255, blank=True, default='')
    latitude = models.FloatField()
    longitude = models.FloatField()

    class Meta:
        db_table = 'locations_airport'
        ordering = ['iata_code']

    def __str__(self):
        return f"{self.iata_code or self.icao_code} - {self.name}"

    @property
    def code(self):
        return self.iata_code or self.icao_code


class Business(models.Model):
    """
    Canonical record for a reviewed place (hotel, FBO, restaurant, rental desk).
    Reviews point at a Business so listings aggregate on one row even when
    reviewers type slightly different addresses.
    """
    business_slug = models.SlugField(max_length=255)
    category = models.CharField(max_length=20, choices=Category.choices)
    location_name = models.CharField(max_length=255, help_text="Name of the business as submitted")
    address = models.CharField(max_length=512, blank=True, default='')
    phone = models.CharField(max_length=50, blank=True, default='')

    # Plain lat/lon columns, distances are computed in GeoService
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)

    airport_code = models.CharField(max_length=4, blank=True, default='')

    # New businesses wait for an admin before they are considered vetted
    approved = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'locations_business'
        constraints = [
            models.UniqueConstraint(fields=['business_slug', 'category'], name='unique_business_slug_category'),
        ]
        indexes = [
            models.Index(fields=['category'], name='business_category_idx'),
            models.Index(fields=['airport_code'], name='business_airport_idx'),
        ]

    def __str__(self):
        return f"{self.location_name} ({self.category})"


class SearchLog(models.Model):
    """Fire-and-forget analytics row written for each search"""
    user_id = models.CharField(max_length=255, blank=True, null=True)
    airport_code = models.CharField(max_length=10, blank=True, null=True)
    location_searched = models.CharField(max_length=255, blank=True, null=True)
    category = models.CharField(max_length=20, blank=True, null=True)
    searched_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'locations_search_log'
        ordering = ['-searched_at']

    def __str__(self):
        return f"Search {self.airport_code or '-'} / {self.category or '-'}"
