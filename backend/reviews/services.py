"""
Domain services for the reviews app: review submission, directory listings
and admin moderation. Views stay thin and call into these classes.
"""
import logging
import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, List, Optional, Tuple

from django.db import transaction
from django.db.models import Avg, Count, Prefetch
from django.utils import timezone

from locations.dtos import GeoPoint
from locations.models import Business, Category
from locations.services import DEFAULT_RADIUS_MILES, GeoService
from notifications.services import get_notification_service

from .aggregation import summarize_business
from .models import DETAIL_FIELDS, Review, ReviewStatus
from .ratings import calculate_category_rating
from .spam import SpamCheckResult, score_submission, verdict

logger = logging.getLogger(__name__)

MIN_REVIEW_LENGTH = 50
NEARBY_CANDIDATE_LIMIT = 100
NEARBY_PAGE_SIZE = 10
RECENT_SNIPPETS = 2
ADMIN_PAGE_SIZE = 100

# Review columns a completed quick log can carry besides the detail fields
COMPLETION_FIELDS = (
    'category', 'airport_code', 'location_name', 'address', 'phone', 'latitude', 'longitude',
    'overall_rating', 'review_text', 'would_recommend', 'visit_date', 'aircraft_type',
)


class ReviewValidationError(Exception):
    """Raised when a submission is missing data or carries invalid values."""


def slugify_business_name(name: str) -> str:
    """
    Derives the business slug shared by every review of the same place.
    'Hilton Garden Inn - DEN!' -> 'hilton-garden-inn-den'
    """
    slug = (name or '').lower()
    slug = re.sub(r'[^a-z0-9\s-]', '', slug)
    slug = re.sub(r'\s+', '-', slug)
    slug = re.sub(r'-+', '-', slug)
    return slug.strip().strip('-')


def _valid_rating(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= 5


@dataclass
class SubmissionResult:
    """Outcome of a review submission"""
    review: Review
    spam: Optional[SpamCheckResult]
    business_created: bool

    @property
    def verdict(self) -> Optional[str]:
        return verdict(self.spam) if self.spam else None


class ReviewSubmissionService:
    """
    Stores new reviews. Every full submission is spam-scored and rated
    before it is persisted, then announced to the admin.
    """

    def __init__(self, notifier=None):
        self.notifier = notifier

    def submit(self, data: Dict, user_id: Optional[str] = None, user_email: Optional[str] = None) -> SubmissionResult:
        """
        Validates and stores a full review.

        Args:
            data: snake_case payload (category, airport_code, location_name, address,
                  overall_rating, review_text and optional detail fields)
            user_id: Subject id of the submitting user, if signed in
            user_email: Email of the submitting user, if known

        Returns:
            SubmissionResult with the stored review and its spam check

        Raises:
            ReviewValidationError: required data missing or invalid
        """
        self._validate_submission(data)

        category = data['category']
        location_name = data['location_name'].strip()
        review_text = data['review_text']
        overall_rating = data['overall_rating']

        spam_result = score_submission(review_text, user_email, location_name, overall_rating)

        with transaction.atomic():
            business, created = self._upsert_business(data)
            review = Review(
                business=business,
                category=category,
                airport_code=data['airport_code'].strip().upper(),
                location_name=location_name,
                business_slug=business.business_slug,
                address=data['address'],
                phone=data.get('phone') or '',
                latitude=data.get('latitude'),
                longitude=data.get('longitude'),
                overall_rating=overall_rating,
                review_text=review_text,
                would_recommend=data.get('would_recommend'),
                visit_date=data.get('visit_date'),
                aircraft_type=data.get('aircraft_type') or '',
                user_id=user_id,
                user_email=user_email,
                status=ReviewStatus.PUBLISHED,
                flagged=spam_result.auto_flag,
                spam_score=spam_result.score,
                spam_reasons=list(spam_result.reasons),
            )
            for name in DETAIL_FIELDS:
                if name in data and data[name] is not None:
                    setattr(review, name, data[name])
            review.calculated_rating = calculate_category_rating(category, review)
            review.save()

        logger.info(
            f"Stored review {review.pk} for {business.business_slug} ({category}): "
            f"spam_score={spam_result.score} verdict={verdict(spam_result)}"
        )
        if spam_result.auto_flag:
            logger.warning(f"Review {review.pk} auto-flagged: {', '.join(spam_result.reasons)}")

        notifier = self.notifier or get_notification_service()
        notifier.review_submitted(review, spam_result=spam_result, new_business=business if created else None)

        return SubmissionResult(review=review, spam=spam_result, business_created=created)

    def quick_log(self, data: Dict, user_id: str) -> SubmissionResult:
        """
        Stores a minimal rating-only review, as a draft or published.
        Quick logs carry no text, so they skip spam scoring.
        """
        category = data.get('category')
        if category not in Category.values:
            raise ReviewValidationError("Category is required")
        if not (data.get('location_name') or '').strip():
            raise ReviewValidationError("Location name is required")
        if not _valid_rating(data.get('overall_rating')):
            raise ReviewValidationError("Valid rating (1-5) is required")

        status = ReviewStatus.DRAFT if data.get('action') == 'draft' else ReviewStatus.PUBLISHED

        with transaction.atomic():
            business, created = self._upsert_business(data)
            review = Review.objects.create(
                business=business,
                category=category,
                airport_code=(data.get('airport_code') or '').strip().upper(),
                location_name=data['location_name'].strip(),
                business_slug=business.business_slug,
                address=data.get('address') or '',
                phone=data.get('phone') or '',
                latitude=data.get('latitude'),
                longitude=data.get('longitude'),
                overall_rating=data['overall_rating'],
                review_text='',
                would_recommend=data.get('would_recommend'),
                crew_recognition=data.get('crew_friendly'),
                user_id=user_id,
                status=status,
                is_quick_log=True,
            )

        logger.info(f"Stored quick log {review.pk} for {business.business_slug} as {status}")
        return SubmissionResult(review=review, spam=None, business_created=created)

    def complete_draft(self, review: Review, data: Dict, user_email: Optional[str] = None) -> SubmissionResult:
        """
        Turns a quick log or draft into a full published review.

        Category and location stay as logged. Every other field in data
        replaces the stored value, then the merged review goes through the
        same checks, spam scoring and rating as a new submission.

        Raises:
            ReviewValidationError: the review is already complete, or the
                merged review is missing required data
        """
        if review.status == ReviewStatus.PUBLISHED and not review.is_quick_log:
            raise ReviewValidationError("Review is already complete")

        merged = {name: getattr(review, name) for name in COMPLETION_FIELDS}
        merged.update({
            name: value for name, value in data.items()
            if name not in ('category', 'location_name')
        })
        self._validate_submission(merged)

        user_email = user_email or review.user_email
        spam_result = score_submission(
            merged['review_text'], user_email, review.location_name, merged['overall_rating']
        )

        with transaction.atomic():
            business, created = self._upsert_business(merged)
            for name in COMPLETION_FIELDS:
                setattr(review, name, merged[name])
            for name in DETAIL_FIELDS:
                if name in data and data[name] is not None:
                    setattr(review, name, data[name])
            review.business = business
            review.business_slug = business.business_slug
            review.airport_code = (merged['airport_code'] or '').strip().upper()
            review.phone = merged['phone'] or ''
            review.aircraft_type = merged['aircraft_type'] or ''
            review.user_email = user_email
            review.status = ReviewStatus.PUBLISHED
            review.is_quick_log = False
            review.flagged = spam_result.auto_flag
            review.spam_score = spam_result.score
            review.spam_reasons = list(spam_result.reasons)
            review.calculated_rating = calculate_category_rating(review.category, review)
            review.save()

        logger.info(
            f"Completed quick log {review.pk} for {business.business_slug}: "
            f"spam_score={spam_result.score} verdict={verdict(spam_result)}"
        )
        if spam_result.auto_flag:
            logger.warning(f"Review {review.pk} auto-flagged: {', '.join(spam_result.reasons)}")

        notifier = self.notifier or get_notification_service()
        notifier.review_submitted(review, spam_result=spam_result, new_business=business if created else None)

        return SubmissionResult(review=review, spam=spam_result, business_created=created)

    @staticmethod
    def _validate_submission(data: Dict) -> None:
        required = ('category', 'airport_code', 'location_name', 'address', 'overall_rating', 'review_text')
        for name in required:
            value = data.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ReviewValidationError("Missing required fields")
        if data['category'] not in Category.values:
            raise ReviewValidationError(f"Unknown category: {data['category']}")
        if not _valid_rating(data['overall_rating']):
            raise ReviewValidationError("Valid rating (1-5) is required")
        if len(data['review_text']) < MIN_REVIEW_LENGTH:
            raise ReviewValidationError(f"Review must be at least {MIN_REVIEW_LENGTH} characters")

    @staticmethod
    def _upsert_business(data: Dict) -> Tuple[Business, bool]:
        """
        Finds the business for (slug, category) or creates it unapproved.
        Contact details and coordinates from the newest submission win.
        """
        slug = slugify_business_name(data.get('location_name', ''))
        if not slug:
            raise ReviewValidationError("Location name must contain letters or numbers")

        airport_code = (data.get('airport_code') or '').strip().upper()
        business, created = Business.objects.get_or_create(
            business_slug=slug,
            category=data['category'],
            defaults={
                'location_name': data['location_name'].strip(),
                'address': data.get('address') or '',
                'phone': data.get('phone') or '',
                'latitude': data.get('latitude'),
                'longitude': data.get('longitude'),
                'airport_code': airport_code,
                'approved': False,
            },
        )
        if not created:
            changed = []
            for name in ('phone', 'latitude', 'longitude'):
                value = data.get(name)
                if value not in (None, ''):
                    setattr(business, name, value)
                    changed.append(name)
            if changed:
                business.save(update_fields=changed + ['updated_at'])
        else:
            logger.info(f"Created business {slug} ({business.category}) pending approval")
        return business, created


def review_snippet(review: Review) -> Dict:
    return {
        'id': review.pk,
        'review_text': review.review_text,
        'overall_rating': review.overall_rating,
        'would_recommend': review.would_recommend,
        'created_at': review.created_at.isoformat() if review.created_at else None,
    }


class ListingService:
    """
    Directory listings and airport-bounded searches over visible reviews.
    """

    @staticmethod
    def _businesses_with_reviews(category: str):
        visible = Review.objects.visible().order_by('-created_at', '-id')
        return Business.objects.filter(category=category).prefetch_related(
            Prefetch('reviews', queryset=visible, to_attr='visible_reviews')
        )

    @staticmethod
    def list_businesses(category: str, origin: Optional[GeoPoint] = None,
                        radius_miles: float = DEFAULT_RADIUS_MILES) -> List[Dict]:
        """
        Aggregated listing rows for a category.

        Args:
            category: Business category to list
            origin: Airport point; when given, rows are bounded to radius_miles
                    and ordered nearest first
            radius_miles: Inclusive search radius

        Returns:
            List of business summaries with the most recent review snippets
        """
        rows = []
        for business in ListingService._businesses_with_reviews(category):
            reviews = business.visible_reviews
            if not reviews:
                continue
            summary = summarize_business(business, reviews)
            summary['recent_reviews'] = [review_snippet(r) for r in reviews[:RECENT_SNIPPETS]]
            rows.append((business, summary))

        # Newest activity first; also the tie-break order for equal distances
        rows.sort(key=lambda row: row[1]['latest_review_date'] or '', reverse=True)

        if origin is None:
            return [summary for _, summary in rows]

        nearby = GeoService.annotate_within_radius(
            rows, origin, radius_miles, lambda row: GeoService.locate_record(row[0])
        )
        return [dict(summary, distance_from_airport=distance) for (_, summary), distance in nearby]

    @staticmethod
    def business_detail(slug: str, category: str) -> Optional[Dict]:
        """
        One business with all of its visible reviews, newest first.
        Returns None when the business does not exist.
        """
        business = ListingService._businesses_with_reviews(category).filter(business_slug=slug).first()
        if business is None:
            return None
        reviews = business.visible_reviews
        return {
            'business': summarize_business(business, reviews),
            'reviews': reviews,
        }

    @staticmethod
    def nearby_reviews(origin: GeoPoint, radius_miles: float = DEFAULT_RADIUS_MILES,
                       limit: int = NEARBY_PAGE_SIZE) -> List[Tuple[Review, float]]:
        """
        Most recent visible reviews within radius_miles of origin.

        Returns:
            Up to `limit` (review, distance) pairs, newest first
        """
        candidates = list(
            Review.objects.visible()
            .filter(latitude__isnull=False, longitude__isnull=False)
            .order_by('-created_at', '-id')[:NEARBY_CANDIDATE_LIMIT]
        )
        nearby = GeoService.annotate_within_radius(candidates, origin, radius_miles, GeoService.locate_record)
        nearby.sort(key=lambda pair: (pair[0].created_at, pair[0].pk), reverse=True)
        return nearby[:limit]


class ModerationService:
    """
    Admin-side queries and actions: flag review, approve business, stats.
    """

    @staticmethod
    def reviews_for_admin(status: Optional[str] = None, category: Optional[str] = None):
        queryset = Review.objects.select_related('business').order_by('-created_at', '-id')
        if status == 'flagged':
            queryset = queryset.flagged()
        if category:
            queryset = queryset.filter(category=category)
        return queryset[:ADMIN_PAGE_SIZE]

    @staticmethod
    def set_flagged(review: Review, flagged: bool) -> Review:
        review.flagged = flagged
        review.save(update_fields=['flagged', 'updated_at'])
        logger.info(f"Review {review.pk} {'flagged' if flagged else 'unflagged'} by admin")
        return review

    @staticmethod
    def delete_review(review: Review) -> None:
        review_id = review.pk
        review.delete()
        logger.info(f"Review {review_id} deleted by admin")

    @staticmethod
    def locations_for_admin(status: Optional[str] = None):
        queryset = Business.objects.annotate(
            review_count=Count('reviews'),
            avg_rating=Avg('reviews__overall_rating'),
        ).order_by('-created_at', '-id')
        if status == 'pending':
            queryset = queryset.filter(approved=False)
        elif status == 'approved':
            queryset = queryset.filter(approved=True)
        return queryset[:ADMIN_PAGE_SIZE]

    @staticmethod
    def set_approved(business: Business, approved: bool) -> Business:
        business.approved = approved
        business.save(update_fields=['approved', 'updated_at'])
        logger.info(f"Business {business.business_slug} {'approved' if approved else 'unapproved'} by admin")
        return business

    @staticmethod
    def delete_location(business: Business) -> int:
        """Deletes a business and, through the FK cascade, its reviews."""
        review_count = business.reviews.count()
        slug = business.business_slug
        business.delete()
        logger.info(f"Business {slug} deleted by admin with {review_count} reviews")
        return review_count

    @staticmethod
    def stats() -> Dict:
        week_ago = timezone.now() - timedelta(days=7)
        by_category = (
            Review.objects.values('category')
            .annotate(count=Count('id'))
            .order_by('-count', 'category')
        )
        return {
            'total_reviews': Review.objects.count(),
            'total_locations': Business.objects.count(),
            'total_users': Review.objects.exclude(user_email__isnull=True).exclude(user_email='')
            .values('user_email').distinct().count(),
            'reviews_by_category': [{'category': row['category'], 'count': row['count']} for row in by_category],
            'recent_reviews': Review.objects.filter(created_at__gt=week_ago).count(),
            'pending_locations': Business.objects.filter(approved=False).count(),
            'flagged_reviews': Review.objects.flagged().count(),
        }
