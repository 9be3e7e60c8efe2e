"""
URL routing for reviews app.
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import AdminLocationsView, AdminReviewsView, AdminStatsView, ReviewViewSet

router = DefaultRouter()
router.register(r'reviews', ReviewViewSet, basename='review')

app_name = 'reviews'

urlpatterns = [
    path('admin/reviews/', AdminReviewsView.as_view(), name='admin-reviews'),
    path('admin/locations/', AdminLocationsView.as_view(), name='admin-locations'),
    path('admin/stats/', AdminStatsView.as_view(), name='admin-stats'),
    path('', include(router.urls)),
]
