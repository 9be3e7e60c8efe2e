from django.contrib import admin
from .models import Review


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    """
    Admin interface for reviews with spam check results.
    """
    list_display = ['location_name', 'category', 'airport_code', 'overall_rating', 'spam_score', 'flagged',
                    'status', 'created_at']
    list_filter = ['category', 'flagged', 'status', 'is_quick_log', 'created_at']
    search_fields = ['location_name', 'business_slug', 'review_text', 'user_email']
    readonly_fields = ['id', 'spam_score', 'spam_reasons', 'calculated_rating', 'created_at', 'updated_at']
    raw_id_fields = ['business']
    actions = ['flag_reviews', 'unflag_reviews']

    fieldsets = (
        ('Review', {
            'fields': ('id', 'business', 'category', 'location_name', 'airport_code', 'overall_rating',
                       'review_text', 'would_recommend', 'visit_date', 'aircraft_type')
        }),
        ('Submitter', {
            'fields': ('user_id', 'user_email')
        }),
        ('Moderation', {
            'fields': ('status', 'is_quick_log', 'flagged', 'spam_score', 'spam_reasons', 'calculated_rating')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    @admin.action(description="Flag selected reviews")
    def flag_reviews(self, request, queryset):
        queryset.update(flagged=True)

    @admin.action(description="Unflag selected reviews")
    def unflag_reviews(self, request, queryset):
        queryset.update(flagged=False)
