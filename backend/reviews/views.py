"""
API views for reviews app endpoints.
"""
from django.conf import settings
from django.shortcuts import get_object_or_404
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from locations.models import Business
from locations.services import AirportService, parse_radius
from .models import Review
from .serializers import (
    AdminBusinessSerializer,
    AdminReviewSerializer,
    ApprovalUpdateSerializer,
    FlagUpdateSerializer,
    NearbyReviewSerializer,
    QuickLogSerializer,
    ReviewSerializer,
    ReviewSubmissionSerializer,
    UserReviewSerializer,
)
from .services import ListingService, ModerationService, ReviewSubmissionService, ReviewValidationError


def _user_id(request):
    if request.user and request.user.is_authenticated:
        return str(request.user.pk)
    return None


class ReviewViewSet(viewsets.GenericViewSet):
    """
    ViewSet for submitting and reading reviews.
    Public reads only see published, unflagged reviews; `mine` and `expand`
    are scoped to the signed-in author.
    """
    queryset = Review.objects.visible()
    serializer_class = ReviewSerializer
    permission_classes = [AllowAny]

    def create(self, request):
        """
        Submit a full review.

        Body: camelCase review form (category, airport, locationName, address,
        overallRating, reviewText and optional category details).
        """
        serializer = ReviewSubmissionSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {'error': 'Invalid review payload', 'details': serializer.errors},
                status=status.HTTP_400_BAD_REQUEST
            )

        data = dict(serializer.validated_data)
        submitted_email = data.pop('user_email', None) or None
        user_email = request.user.email if _user_id(request) and request.user.email else submitted_email

        try:
            result = ReviewSubmissionService().submit(data, user_id=_user_id(request), user_email=user_email)
        except ReviewValidationError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({
            'success': True,
            'review_id': result.review.pk,
            'business_slug': result.review.business_slug,
            'spam_check': result.spam.to_dict(),
            'verdict': result.verdict,
        }, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        review = self.get_object()
        return Response(self.get_serializer(review).data)

    @action(detail=False, methods=['post'], url_path='quick-log', permission_classes=[IsAuthenticated])
    def quick_log(self, request):
        """
        Log a rating-only review from a trip.

        Body: category, locationName, overallRating, optional airportCode,
        address, phone, latitude, longitude, wouldRecommend, crewFriendly and
        action ('draft' or 'publish').
        """
        serializer = QuickLogSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {'error': 'Invalid quick log payload', 'details': serializer.errors},
                status=status.HTTP_400_BAD_REQUEST
            )

        try:
            result = ReviewSubmissionService().quick_log(dict(serializer.validated_data), user_id=_user_id(request))
        except ReviewValidationError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        review = result.review
        return Response({
            'success': True,
            'review_id': review.pk,
            'status': review.status,
            'message': 'Saved as draft' if review.status == 'draft' else 'Published',
        }, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'], permission_classes=[IsAuthenticated])
    def mine(self, request):
        """The signed-in user's reviews, drafts included, most recently edited first"""
        reviews = Review.objects.filter(user_id=_user_id(request)).order_by('-updated_at', '-id')
        return Response({'reviews': UserReviewSerializer(reviews, many=True).data})

    @action(detail=True, methods=['get', 'post'], permission_classes=[IsAuthenticated])
    def expand(self, request, pk=None):
        """
        One of the signed-in user's own reviews, for completing a quick log.

        GET   the stored review, drafts included
        POST  camelCase review form; fields left out keep their logged values
        """
        if not str(pk).isdigit():
            return Response({'error': 'Invalid review ID'}, status=status.HTTP_400_BAD_REQUEST)

        review = Review.objects.filter(pk=int(pk), user_id=_user_id(request)).first()
        if review is None:
            return Response({'error': 'Review not found or unauthorized'}, status=status.HTTP_404_NOT_FOUND)

        if request.method == 'GET':
            return Response({'review': ReviewSerializer(review).data})

        serializer = ReviewSubmissionSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(
                {'error': 'Invalid review payload', 'details': serializer.errors},
                status=status.HTTP_400_BAD_REQUEST
            )

        data = dict(serializer.validated_data)
        data.pop('user_email', None)
        try:
            result = ReviewSubmissionService().complete_draft(review, data, user_email=request.user.email or None)
        except ReviewValidationError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({
            'success': True,
            'review_id': result.review.pk,
            'status': result.review.status,
            'calculated_rating': result.review.calculated_rating,
            'spam_check': result.spam.to_dict(),
            'verdict': result.verdict,
        })

    @action(detail=False, methods=['get'])
    def nearby(self, request):
        """
        Most recent reviews near an airport.

        Query parameters:
        - airport: IATA or ICAO code (required)
        - radius: float in miles (default: 30)
        """
        code = request.query_params.get('airport')
        if not code:
            return Response({'error': 'airport is required'}, status=status.HTTP_400_BAD_REQUEST)

        radius = parse_radius(request.query_params.get('radius'), settings.CREWINTEL_DEFAULT_RADIUS_MILES)
        if radius is None:
            return Response({'error': 'radius must be a positive number'}, status=status.HTTP_400_BAD_REQUEST)

        origin = AirportService.resolve_point(code)
        if origin is None:
            return Response({'error': 'Airport not found'}, status=status.HTTP_404_NOT_FOUND)

        pairs = ListingService.nearby_reviews(origin, radius, limit=settings.CREWINTEL_NEARBY_REVIEWS_LIMIT)
        results = []
        for review, distance in pairs:
            row = NearbyReviewSerializer(review).data
            row['distance_from_airport'] = round(distance, 1)
            results.append(row)

        return Response({
            'airport': code.upper(),
            'radius_miles': radius,
            'count': len(results),
            'results': results,
        })


class AdminReviewsView(APIView):
    """
    Moderation queue for reviews.

    GET    ?status=flagged&category=hotels  latest 100 reviews
    PATCH  {id, flagged}                    flag or unflag a review
    DELETE ?id=<review id>                  remove a review
    """
    permission_classes = [IsAdminUser]

    def get(self, request):
        reviews = ModerationService.reviews_for_admin(
            status=request.query_params.get('status'),
            category=request.query_params.get('category'),
        )
        return Response({'reviews': AdminReviewSerializer(reviews, many=True).data})

    def patch(self, request):
        serializer = FlagUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({'error': 'Missing id or flagged'}, status=status.HTTP_400_BAD_REQUEST)

        review = get_object_or_404(Review, pk=serializer.validated_data['id'])
        ModerationService.set_flagged(review, serializer.validated_data['flagged'])
        return Response({'success': True, 'review': AdminReviewSerializer(review).data})

    def delete(self, request):
        review_id = request.query_params.get('id')
        if not review_id or not review_id.isdigit():
            return Response({'error': 'Missing review ID'}, status=status.HTTP_400_BAD_REQUEST)

        review = get_object_or_404(Review, pk=int(review_id))
        ModerationService.delete_review(review)
        return Response({'success': True})


class AdminLocationsView(APIView):
    """
    Approval queue for businesses created by submissions.

    GET    ?status=pending|approved|all
    PATCH  {id, approved}
    DELETE ?id=<business id>  also deletes the business's reviews
    """
    permission_classes = [IsAdminUser]

    def get(self, request):
        locations = ModerationService.locations_for_admin(status=request.query_params.get('status', 'all'))
        return Response({'locations': AdminBusinessSerializer(locations, many=True).data})

    def patch(self, request):
        serializer = ApprovalUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({'error': 'Missing id or approved'}, status=status.HTTP_400_BAD_REQUEST)

        business = get_object_or_404(Business, pk=serializer.validated_data['id'])
        ModerationService.set_approved(business, serializer.validated_data['approved'])
        return Response({
            'success': True,
            'location': AdminBusinessSerializer(business).data,
        })

    def delete(self, request):
        business_id = request.query_params.get('id')
        if not business_id or not business_id.isdigit():
            return Response({'error': 'Missing location ID'}, status=status.HTTP_400_BAD_REQUEST)

        business = get_object_or_404(Business, pk=int(business_id))
        deleted_reviews = ModerationService.delete_location(business)
        return Response({'success': True, 'deleted_reviews': deleted_reviews})


class AdminStatsView(APIView):
    """Dashboard counters for the admin panel"""
    permission_classes = [IsAdminUser]

    def get(self, request):
        return Response(ModerationService.stats())
