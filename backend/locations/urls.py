"""
URL routing for locations app.
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import AirportViewSet, BusinessViewSet, SearchLogView

router = DefaultRouter()
router.register(r'airports', AirportViewSet, basename='airport')
router.register(r'businesses', BusinessViewSet, basename='business')

app_name = 'locations'

urlpatterns = [
    path('search-log/', SearchLogView.as_view(), name='search-log'),
    path('', include(router.urls)),
]
