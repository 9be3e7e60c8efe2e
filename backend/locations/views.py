"""
API views for locations app endpoints.
"""
import logging

from django.conf import settings
from django.db import DatabaseError
from rest_framework import status, viewsets
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from reviews.serializers import ReviewSerializer
from reviews.services import ListingService
from .models import Category
from .serializers import AirportSerializer, SearchLogSerializer
from .services import AirportService, parse_radius

logger = logging.getLogger(__name__)


def _invalid_category():
    return Response(
        {'error': f"Invalid category. Expected one of: {', '.join(Category.values)}"},
        status=status.HTTP_400_BAD_REQUEST
    )


class AirportViewSet(viewsets.ViewSet):
    """
    Airport lookup for the search box.
    """
    permission_classes = [AllowAny]

    def list(self, request):
        """
        Query parameters:
        - q: str matched against codes, city and name (optional)
        """
        airports = AirportService.search(request.query_params.get('q', ''))
        serializer = AirportSerializer(airports, many=True)
        return Response({
            'count': len(airports),
            'results': serializer.data
        })


class BusinessViewSet(viewsets.ViewSet):
    """
    Directory of reviewed businesses, aggregated from visible reviews.
    """
    permission_classes = [AllowAny]
    lookup_field = 'slug'
    lookup_value_regex = '[-a-z0-9]+'

    def list(self, request):
        """
        Businesses in a category, optionally bounded by distance to an airport.

        Query parameters:
        - category: hotels|fbos|restaurants|rentals (required)
        - airport: IATA or ICAO code (optional)
        - radius: float in miles (default: 30)
        """
        category = request.query_params.get('category')
        if category not in Category.values:
            return _invalid_category()

        radius = parse_radius(request.query_params.get('radius'), settings.CREWINTEL_DEFAULT_RADIUS_MILES)
        if radius is None:
            return Response({'error': 'radius must be a positive number'}, status=status.HTTP_400_BAD_REQUEST)

        code = request.query_params.get('airport')
        origin = None
        if code:
            origin = AirportService.resolve_point(code)
            if origin is None:
                return Response({'error': 'Airport not found'}, status=status.HTTP_404_NOT_FOUND)

        results = ListingService.list_businesses(category, origin=origin, radius_miles=radius)
        return Response({
            'category': category,
            'airport': code.upper() if code else None,
            'radius_miles': radius if origin else None,
            'count': len(results),
            'results': results,
        })

    def retrieve(self, request, slug=None):
        """
        One business with its reviews.

        Query parameters:
        - category: hotels|fbos|restaurants|rentals (required)
        """
        category = request.query_params.get('category')
        if category not in Category.values:
            return _invalid_category()

        detail = ListingService.business_detail(slug, category)
        if detail is None:
            return Response({'error': 'Business not found'}, status=status.HTTP_404_NOT_FOUND)

        return Response({
            'business': detail['business'],
            'reviews': ReviewSerializer(detail['reviews'], many=True).data,
        })


class SearchLogView(APIView):
    """
    Records a search for analytics. Always answers 200 so a logging problem
    never surfaces in the search UI.
    """
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = SearchLogSerializer(data=request.data)
        if not serializer.is_valid():
            logger.warning(f"Rejected search log payload: {serializer.errors}")
            return Response({'success': False})

        user_id = str(request.user.pk) if request.user.is_authenticated else None
        try:
            serializer.save(user_id=user_id)
        except DatabaseError:
            logger.exception("Error logging search")
            return Response({'success': False})

        return Response({'success': True})
