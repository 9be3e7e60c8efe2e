from django.contrib import admin
from .models import Airport, Business, SearchLog


@admin.register(Airport)
class AirportAdmin(admin.ModelAdmin):
    list_display = ['iata_code', 'icao_code', 'name', 'city']
    search_fields = ['iata_code', 'icao_code', 'name', 'city']


@admin.register(Business)
class BusinessAdmin(admin.ModelAdmin):
    """
    Admin interface for businesses.
    Newly submitted businesses show up here unapproved.
    """
    list_display = ['location_name', 'category', 'airport_code', 'approved', 'created_at']
    list_filter = ['category', 'approved', 'created_at']
    search_fields = ['location_name', 'business_slug', 'address', 'airport_code']
    readonly_fields = ['id', 'created_at', 'updated_at']

    fieldsets = (
        ('Basic Information', {
            'fields': ('id', 'location_name', 'business_slug', 'category')
        }),
        ('Contact', {
            'fields': ('address', 'phone')
        }),
        ('Location', {
            'fields': ('latitude', 'longitude', 'airport_code')
        }),
        ('Moderation', {
            'fields': ('approved',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


@admin.register(SearchLog)
class SearchLogAdmin(admin.ModelAdmin):
    list_display = ['airport_code', 'category', 'location_searched', 'user_id', 'searched_at']
    list_filter = ['category', 'searched_at']
    readonly_fields = ['searched_at']
