import unittest
from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import MagicMock

from django.contrib.auth.models import User
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from locations.dtos import GeoPoint
from locations.models import Airport, Business
from .aggregation import amenity_percentages, average_rating, has_recommendations
from .models import Review, ReviewStatus
from .ratings import calculate_category_rating, round_half_up
from .serializers import QuickLogSerializer, ReviewSubmissionSerializer, camel_case
from .services import (
    ListingService,
    ModerationService,
    ReviewSubmissionService,
    ReviewValidationError,
    slugify_business_name,
)
from .spam import SpamCheckResult, score_submission, verdict

CLEAN_TEXT = (
    "The crew rooms were quiet and clean, the shuttle ran every twenty minutes "
    "from the FBO and staff knew our schedule."
)


class CategoryRatingTests(unittest.TestCase):

    def test_hotel_weighted_average(self):
        """All hotel fields rated: weighted mean over the full table."""
        review = {
            'bed_quality': 5,
            'room_cleanliness': 4,
            'noise_level': 'quiet',
            'wifi_quality': 3,
            'shower_quality': 4,
            'checkin_experience': 5,
            'staff_responsiveness': 'excellent',
        }
        # 38.5 / 9.0
        self.assertEqual(calculate_category_rating('hotels', review), 4.3)

    def test_hotel_all_top_marks(self):
        review = {'bed_quality': 5, 'room_cleanliness': 5, 'noise_level': 'very-quiet'}
        self.assertEqual(calculate_category_rating('hotels', review), 5.0)

    def test_fbo_weighted_average(self):
        """All fbo fields rated: weighted mean over the full table."""
        review = {
            'service_speed': 5,
            'staff_attitude': 5,
            'crew_lounge_quality': 4,
            'fbo_amenities_quality': 3,
            'communication': 4,
            'bathroom_quality': 2,
            'fbo_wifi_quality': 1,
        }
        # 34.5 / 8.5
        self.assertEqual(calculate_category_rating('fbos', review), 4.1)

    def test_rental_weighted_average(self):
        """All rental fields rated, pricing on the quality scale."""
        review = {
            'rental_process_speed': 4,
            'vehicle_condition': 5,
            'staff_helpfulness': 3,
            'pricing_transparency': 'poor',
        }
        # 24.5 / 6.5
        self.assertEqual(calculate_category_rating('rentals', review), 3.8)

    def test_missing_fields_do_not_drag_score_down(self):
        self.assertEqual(calculate_category_rating('hotels', {'bed_quality': 4}), 4.0)

    def test_not_applicable_responsiveness_is_absent(self):
        review = {'bed_quality': 4, 'staff_responsiveness': 'n/a'}
        self.assertEqual(calculate_category_rating('hotels', review), 4.0)

    def test_restaurant_uses_quality_scale(self):
        review = {'food_quality': 5, 'restaurant_service_speed': 3, 'atmosphere': 'poor'}
        # (12.5 + 4.5 + 2.0) / 5.0
        self.assertEqual(calculate_category_rating('restaurants', review), 3.8)

    def test_numeric_strings_parsed_and_booleans_ignored(self):
        review = {'rental_process_speed': '4', 'vehicle_condition': True}
        self.assertEqual(calculate_category_rating('rentals', review), 4.0)

    def test_unusable_values_are_absent(self):
        review = {
            'service_speed': 0,
            'staff_attitude': -3,
            'crew_lounge_quality': float('nan'),
            'communication': float('inf'),
            'bathroom_quality': 'great',
        }
        self.assertIsNone(calculate_category_rating('fbos', review))

    def test_unrecognised_label_is_absent(self):
        self.assertIsNone(calculate_category_rating('hotels', {'noise_level': 'deafening'}))

    def test_other_category_fields_ignored(self):
        self.assertIsNone(calculate_category_rating('hotels', {'service_speed': 5, 'food_quality': 4}))

    def test_unknown_category(self):
        self.assertIsNone(calculate_category_rating('spas', {'bed_quality': 5}))
        self.assertIsNone(calculate_category_rating('hotels', None))

    def test_reads_object_attributes(self):
        review = SimpleNamespace(food_quality=4, restaurant_service_speed=None, atmosphere='excellent')
        # (10.0 + 5.0) / 3.5
        self.assertEqual(calculate_category_rating('restaurants', review), 4.3)

    def test_round_half_up(self):
        self.assertEqual(round_half_up(2.25), 2.3)
        self.assertEqual(round_half_up(3.75), 3.8)
        self.assertEqual(round_half_up(4.0), 4.0)


class SpamScoringTests(unittest.TestCase):

    def test_clean_review_scores_zero(self):
        result = score_submission(CLEAN_TEXT, 'pilot@example.com', 'Hilton Garden Inn', 4)
        self.assertEqual(result.score, 0)
        self.assertEqual(result.reasons, [])
        self.assertFalse(result.auto_flag)
        self.assertEqual(verdict(result), 'approve')

    def test_short_extreme_review(self):
        result = score_submission('Nice place.', None, 'Hilton Garden Inn', 5)
        self.assertEqual(result.score, 25)
        self.assertEqual(result.reasons, ['Very short review', 'Extreme rating with minimal detail'])

    def test_url_counts_twice(self):
        text = "Visit http://cheap-rooms.example.com for the best rates on crew rooms near the airport every night."
        result = score_submission(text, None, 'Crew Inn', 3)
        self.assertEqual(result.score, 45)
        self.assertEqual(result.reasons, ['Spam pattern: "http://cheap-rooms.example.com"', 'Contains URLs'])
        self.assertEqual(verdict(result), 'review')
        self.assertFalse(result.auto_flag)

    def test_keyboard_spam_is_auto_flagged(self):
        result = score_submission('asdf asdf asdf', None, 'Crew Inn', 1)
        self.assertEqual(result.score, 65)
        self.assertEqual(
            result.reasons,
            ['Very short review', 'Keyboard spam pattern', 'Extreme rating with minimal detail'],
        )
        self.assertTrue(result.auto_flag)
        self.assertEqual(verdict(result), 'flag')

    def test_keyboard_pattern_matches_inside_words(self):
        text = CLEAN_TEXT + " We tested the crew car too."
        result = score_submission(text, None, 'Crew Inn', 4)
        self.assertIn('Keyboard spam pattern', result.reasons)

    def test_score_is_capped(self):
        text = "BUY NOW!!! FREE DEAL!!! CLICK HERE!!! http://spam.example www.spam.example"
        result = score_submission(text, '12345@tempmail.com', 'Crew Inn', 5)
        self.assertEqual(result.score, 100)
        self.assertTrue(result.auto_flag)
        self.assertIn('Excessive punctuation', result.reasons)
        self.assertIn('Suspicious email address', result.reasons)

    def test_suspicious_email_counts_once(self):
        result = score_submission(CLEAN_TEXT, '123456@tempmail.com', 'Hilton Garden Inn', 4)
        self.assertEqual(result.score, 20)
        self.assertEqual(result.reasons, ['Suspicious email address'])

    def test_generic_content(self):
        text = "Great place, highly recommend, amazing staff and a terrible parking lot."
        result = score_submission(text, None, 'Airport Suites', 4)
        self.assertEqual(result.score, 15)
        self.assertEqual(result.reasons, ['Generic template-like content'])

    def test_location_echo_adds_points_without_reason(self):
        text = "The Aloft Denver shuttle was on time and the rooms were quiet enough."
        result = score_submission(text, None, 'Aloft Denver', 3)
        self.assertEqual(result.score, 5)
        self.assertEqual(result.reasons, [])

    def test_missing_inputs_never_raise(self):
        result = score_submission(None, None, None, None)
        # Short text plus the empty location name echo
        self.assertEqual(result.score, 20)
        self.assertEqual(result.reasons, ['Very short review'])

    def test_boolean_rating_is_not_extreme(self):
        result = score_submission('Nice place.', None, 'Crew Inn', True)
        self.assertNotIn('Extreme rating with minimal detail', result.reasons)

    def test_verdict_thresholds(self):
        self.assertEqual(verdict(SpamCheckResult(score=60)), 'flag')
        self.assertEqual(verdict(SpamCheckResult(score=59)), 'review')
        self.assertEqual(verdict(SpamCheckResult(score=30)), 'review')
        self.assertEqual(verdict(SpamCheckResult(score=29)), 'approve')


class AggregationTests(unittest.TestCase):

    def test_amenity_percentages_round_half_up(self):
        reviews = [SimpleNamespace(vegan_options=(i == 0)) for i in range(8)]
        result = amenity_percentages('restaurants', reviews)
        self.assertEqual(result['vegan_pct'], 13)
        self.assertEqual(result['wifi_pct'], 0)

    def test_hotel_amenities(self):
        reviews = [
            SimpleNamespace(shuttle_service=True, breakfast='continental', laundry_available='none'),
            SimpleNamespace(shuttle_service=True, breakfast='not-available', laundry_available='valet'),
            SimpleNamespace(shuttle_service=None, breakfast='', laundry_available=''),
        ]
        result = amenity_percentages('hotels', reviews)
        self.assertEqual(result['shuttle_pct'], 67)
        self.assertEqual(result['breakfast_pct'], 33)
        self.assertEqual(result['laundry_pct'], 33)

    def test_no_reviews(self):
        result = amenity_percentages('fbos', [])
        self.assertIsNone(result['crew_car_pct'])

    def test_average_rating(self):
        self.assertEqual(average_rating([4, 5]), 4.5)
        self.assertEqual(average_rating([4, 4, 5]), 4.3)
        self.assertEqual(average_rating([2.25, None]), 2.3)
        self.assertIsNone(average_rating([None]))

    def test_has_recommendations(self):
        self.assertIsNone(has_recommendations([SimpleNamespace(would_recommend=None)]))
        self.assertTrue(has_recommendations([
            SimpleNamespace(would_recommend=False),
            SimpleNamespace(would_recommend=True),
        ]))


class SlugTests(unittest.TestCase):

    def test_slugify_business_name(self):
        self.assertEqual(slugify_business_name('Hilton Garden Inn - DEN!'), 'hilton-garden-inn-den')
        self.assertEqual(slugify_business_name("  Joe's  Diner  "), 'joes-diner')
        self.assertEqual(slugify_business_name('!!!'), '')


class SubmissionSerializerTests(unittest.TestCase):

    def test_camel_case(self):
        self.assertEqual(camel_case('crew_car_availability'), 'crewCarAvailability')
        self.assertEqual(camel_case('communication'), 'communication')

    def test_detail_fields_mapped_to_model_names(self):
        serializer = ReviewSubmissionSerializer(data={
            'category': 'fbos',
            'airport': 'KDEN',
            'locationName': 'Signature Flight Support',
            'address': '1 FBO Way',
            'overallRating': 4,
            'reviewText': CLEAN_TEXT,
            'serviceSpeed': 5,
            'communication': 4,
            'crewCarAvailability': 'always',
            'cateringAvailable': True,
        })
        self.assertTrue(serializer.is_valid(), serializer.errors)
        data = serializer.validated_data
        self.assertEqual(data['location_name'], 'Signature Flight Support')
        self.assertEqual(data['service_speed'], 5)
        self.assertEqual(data['communication'], 4)
        self.assertEqual(data['crew_car_availability'], 'always')
        self.assertTrue(data['catering_available'])

    def test_coordinates_validated_as_pair(self):
        form = {
            'category': 'hotels',
            'airport': 'DEN',
            'locationName': 'Hilton Garden Inn',
            'address': '16475 E 40th Cir, Aurora, CO',
            'overallRating': 4,
            'reviewText': CLEAN_TEXT,
        }
        self.assertTrue(ReviewSubmissionSerializer(data=form).is_valid())
        self.assertTrue(ReviewSubmissionSerializer(data=dict(form, latitude=39.85, longitude=-104.67)).is_valid())

        out_of_range = ReviewSubmissionSerializer(data=dict(form, latitude=91, longitude=-104.67))
        self.assertFalse(out_of_range.is_valid())
        self.assertIn('coordinates', out_of_range.errors)

        latitude_only = ReviewSubmissionSerializer(data=dict(form, latitude=39.85))
        self.assertFalse(latitude_only.is_valid())

        quick = QuickLogSerializer(data={
            'category': 'hotels', 'locationName': 'Inn', 'overallRating': 4, 'latitude': 39.85, 'longitude': -181,
        })
        self.assertFalse(quick.is_valid())
        self.assertIn('coordinates', quick.errors)


def hotel_payload(**overrides):
    data = {
        'category': 'hotels',
        'airport_code': 'den',
        'location_name': 'Hilton Garden Inn',
        'address': '16475 E 40th Cir, Aurora, CO',
        'overall_rating': 4,
        'review_text': CLEAN_TEXT,
        'bed_quality': 5,
        'noise_level': 'quiet',
        'shuttle_service': True,
    }
    data.update(overrides)
    return data


class ReviewSubmissionServiceTests(TestCase):

    def setUp(self):
        self.notifier = MagicMock()
        self.service = ReviewSubmissionService(notifier=self.notifier)

    def test_submit_creates_business_and_review(self):
        result = self.service.submit(hotel_payload(), user_id='7', user_email='pilot@example.com')

        review = result.review
        self.assertTrue(result.business_created)
        self.assertEqual(result.verdict, 'approve')
        self.assertEqual(review.business_slug, 'hilton-garden-inn')
        self.assertEqual(review.airport_code, 'DEN')
        self.assertEqual(review.calculated_rating, 4.6)
        self.assertEqual(review.spam_score, 0)
        self.assertFalse(review.flagged)
        self.assertTrue(review.shuttle_service)

        business = Business.objects.get()
        self.assertFalse(business.approved)
        self.assertEqual(review.business, business)
        self.notifier.review_submitted.assert_called_once_with(
            review, spam_result=result.spam, new_business=business
        )

    def test_existing_business_is_reused_and_updated(self):
        self.service.submit(hotel_payload())
        result = self.service.submit(hotel_payload(location_name='HILTON garden inn', phone='303-555-0100'))

        self.assertFalse(result.business_created)
        self.assertEqual(Business.objects.count(), 1)
        self.assertEqual(Business.objects.get().phone, '303-555-0100')
        _, kwargs = self.notifier.review_submitted.call_args
        self.assertIsNone(kwargs['new_business'])

    def test_same_name_in_other_category_is_separate_business(self):
        self.service.submit(hotel_payload())
        self.service.submit(hotel_payload(category='restaurants', food_quality=4))
        self.assertEqual(Business.objects.count(), 2)

    def test_short_text_rejected(self):
        with self.assertRaises(ReviewValidationError) as ctx:
            self.service.submit(hotel_payload(review_text='Too short'))
        self.assertIn('at least 50 characters', str(ctx.exception))
        self.assertEqual(Review.objects.count(), 0)
        self.notifier.review_submitted.assert_not_called()

    def test_missing_fields_rejected(self):
        with self.assertRaises(ReviewValidationError):
            self.service.submit(hotel_payload(address=''))
        with self.assertRaises(ReviewValidationError):
            self.service.submit(hotel_payload(overall_rating=6))
        with self.assertRaises(ReviewValidationError):
            self.service.submit(hotel_payload(category='spas'))

    def test_spam_is_stored_flagged(self):
        text = "asdf qwer zxcv, click here for a free deal on rooms near the airport every day!!"
        result = self.service.submit(hotel_payload(review_text=text))

        review = result.review
        self.assertTrue(review.flagged)
        self.assertGreaterEqual(review.spam_score, 60)
        self.assertIn('Keyboard spam pattern', review.spam_reasons)
        self.assertFalse(Review.objects.visible().filter(pk=review.pk).exists())

    def test_quick_log_draft(self):
        result = self.service.quick_log({
            'category': 'restaurants',
            'location_name': 'Denver Deli',
            'overall_rating': 5,
            'crew_friendly': True,
            'action': 'draft',
        }, user_id='7')

        review = result.review
        self.assertEqual(review.status, ReviewStatus.DRAFT)
        self.assertTrue(review.is_quick_log)
        self.assertEqual(review.review_text, '')
        self.assertTrue(review.crew_recognition)
        self.assertFalse(review.is_visible)
        self.assertIsNone(result.spam)

    def test_quick_log_requires_rating(self):
        with self.assertRaises(ReviewValidationError):
            self.service.quick_log({'category': 'hotels', 'location_name': 'Inn', 'overall_rating': 0}, user_id='7')

    def _draft(self):
        return self.service.quick_log({
            'category': 'hotels',
            'location_name': 'Hilton Garden Inn',
            'overall_rating': 4,
            'action': 'draft',
        }, user_id='7').review

    def test_complete_draft_publishes(self):
        draft = self._draft()

        result = self.service.complete_draft(draft, {
            'airport_code': 'den',
            'address': '16475 E 40th Cir, Aurora, CO',
            'review_text': CLEAN_TEXT,
            'bed_quality': 5,
            'room_cleanliness': 5,
            'noise_level': 'very-quiet',
            'category': 'fbos',
        }, user_email='pilot@example.com')

        review = Review.objects.get(pk=draft.pk)
        self.assertEqual(review.status, ReviewStatus.PUBLISHED)
        self.assertFalse(review.is_quick_log)
        self.assertEqual(review.category, 'hotels')
        self.assertEqual(review.airport_code, 'DEN')
        self.assertEqual(review.calculated_rating, 5.0)
        self.assertEqual(review.spam_score, 0)
        self.assertFalse(review.flagged)
        self.assertEqual(review.user_email, 'pilot@example.com')
        self.assertTrue(review.is_visible)
        self.assertEqual(result.verdict, 'approve')
        self.assertEqual(Business.objects.count(), 1)
        self.notifier.review_submitted.assert_called_once_with(
            result.review, spam_result=result.spam, new_business=None
        )

    def test_complete_draft_rescored(self):
        draft = self._draft()
        text = "asdf qwer zxcv, click here for a free deal on rooms near the airport every day!!"

        result = self.service.complete_draft(draft, {
            'airport_code': 'DEN', 'address': '1 Main St', 'review_text': text,
        })

        self.assertTrue(result.review.flagged)
        self.assertIn('Keyboard spam pattern', result.review.spam_reasons)
        self.assertFalse(Review.objects.visible().filter(pk=draft.pk).exists())

    def test_complete_draft_requires_full_review(self):
        draft = self._draft()

        with self.assertRaises(ReviewValidationError):
            self.service.complete_draft(draft, {'airport_code': 'DEN', 'address': '1 Main St'})
        with self.assertRaises(ReviewValidationError):
            self.service.complete_draft(draft, {
                'airport_code': 'DEN', 'address': '1 Main St', 'review_text': 'Too short',
            })

        draft.refresh_from_db()
        self.assertEqual(draft.status, ReviewStatus.DRAFT)
        self.notifier.review_submitted.assert_not_called()

    def test_complete_rejects_full_review(self):
        result = self.service.submit(hotel_payload(), user_id='7')

        with self.assertRaises(ReviewValidationError) as ctx:
            self.service.complete_draft(result.review, {'review_text': CLEAN_TEXT})
        self.assertEqual(str(ctx.exception), 'Review is already complete')


class ListingServiceTests(TestCase):

    def setUp(self):
        # DEN
        self.origin = GeoPoint(latitude=39.8561, longitude=-104.6737)
        self.near = Business.objects.create(
            business_slug='near-inn', category='hotels', location_name='Near Inn',
            latitude=39.85, longitude=-104.67,
        )
        self.mid = Business.objects.create(
            business_slug='mid-inn', category='hotels', location_name='Mid Inn',
            latitude=40.0, longitude=-104.67,
        )
        self.far = Business.objects.create(
            business_slug='far-inn', category='hotels', location_name='Far Inn',
            latitude=38.83, longitude=-104.82,
        )
        self.quiet = Business.objects.create(
            business_slug='quiet-inn', category='hotels', location_name='Quiet Inn',
            latitude=39.86, longitude=-104.67,
        )
        now = timezone.now()
        self.near_review = self._review(self.near, 5, now - timedelta(days=3), shuttle_service=True)
        self._review(self.near, 3, now - timedelta(days=2))
        self.mid_review = self._review(self.mid, 4, now - timedelta(days=1))
        self._review(self.far, 2, now)
        # Hidden reviews never count
        self._review(self.quiet, 5, now, flagged=True)

    def _review(self, business, rating, created_at, **extra):
        review = Review.objects.create(
            business=business,
            category=business.category,
            location_name=business.location_name,
            business_slug=business.business_slug,
            latitude=business.latitude,
            longitude=business.longitude,
            overall_rating=rating,
            review_text=CLEAN_TEXT,
            **extra
        )
        Review.objects.filter(pk=review.pk).update(created_at=created_at)
        review.refresh_from_db()
        return review

    def test_list_without_airport_newest_first(self):
        rows = ListingService.list_businesses('hotels')
        self.assertEqual([row['business_slug'] for row in rows], ['far-inn', 'mid-inn', 'near-inn'])

        near = rows[2]
        self.assertEqual(near['review_count'], 2)
        self.assertEqual(near['avg_rating'], 4.0)
        self.assertEqual(near['shuttle_pct'], 50)
        self.assertEqual(len(near['recent_reviews']), 2)
        self.assertNotIn('distance_from_airport', near)

    def test_list_near_airport_sorted_by_distance(self):
        rows = ListingService.list_businesses('hotels', origin=self.origin, radius_miles=30)
        self.assertEqual([row['business_slug'] for row in rows], ['near-inn', 'mid-inn'])
        self.assertLess(rows[0]['distance_from_airport'], rows[1]['distance_from_airport'])

    def test_business_detail(self):
        detail = ListingService.business_detail('near-inn', 'hotels')
        self.assertEqual(detail['business']['review_count'], 2)
        self.assertEqual(detail['reviews'][1], self.near_review)
        self.assertIsNone(ListingService.business_detail('near-inn', 'fbos'))

    def test_nearby_reviews_most_recent_first(self):
        pairs = ListingService.nearby_reviews(self.origin, 30)
        self.assertEqual([review.business_slug for review, _ in pairs], ['mid-inn', 'near-inn', 'near-inn'])
        self.assertEqual(pairs[0][0], self.mid_review)

    def test_nearby_reviews_limit(self):
        pairs = ListingService.nearby_reviews(self.origin, 30, limit=1)
        self.assertEqual(len(pairs), 1)


class ModerationServiceTests(TestCase):

    def setUp(self):
        self.business = Business.objects.create(business_slug='crew-inn', category='hotels', location_name='Crew Inn')
        self.review = Review.objects.create(
            business=self.business, category='hotels', location_name='Crew Inn', overall_rating=4,
            review_text=CLEAN_TEXT, user_email='a@example.com',
        )
        Review.objects.create(
            business=self.business, category='hotels', location_name='Crew Inn', overall_rating=1,
            review_text='asdf', user_email='a@example.com', flagged=True,
        )
        Review.objects.create(category='fbos', location_name='Jet Center', overall_rating=5, user_email='b@example.com')

    def test_stats(self):
        stats = ModerationService.stats()
        self.assertEqual(stats['total_reviews'], 3)
        self.assertEqual(stats['total_locations'], 1)
        self.assertEqual(stats['total_users'], 2)
        self.assertEqual(stats['reviews_by_category'][0], {'category': 'hotels', 'count': 2})
        self.assertEqual(stats['recent_reviews'], 3)
        self.assertEqual(stats['pending_locations'], 1)
        self.assertEqual(stats['flagged_reviews'], 1)

    def test_flagged_filter(self):
        self.assertEqual(len(ModerationService.reviews_for_admin(status='flagged')), 1)
        self.assertEqual(len(ModerationService.reviews_for_admin(category='fbos')), 1)

    def test_delete_location_removes_reviews(self):
        deleted = ModerationService.delete_location(self.business)
        self.assertEqual(deleted, 2)
        self.assertEqual(Review.objects.count(), 1)

    def test_locations_for_admin_counts(self):
        row = ModerationService.locations_for_admin(status='pending')[0]
        self.assertEqual(row.review_count, 2)
        self.assertEqual(row.avg_rating, 2.5)
        self.assertEqual(len(ModerationService.locations_for_admin(status='approved')), 0)


class ReviewAPITests(APITestCase):

    def setUp(self):
        Airport.objects.create(iata_code='DEN', icao_code='KDEN', name='Denver International',
                               city='Denver', latitude=39.8561, longitude=-104.6737)
        self.user = User.objects.create_user(username='pilot', email='pilot@example.com', password='testpass123')
        self.list_url = reverse('reviews:review-list')
        self.nearby_url = reverse('reviews:review-nearby')
        self.quick_log_url = reverse('reviews:review-quick-log')

    def _payload(self, **overrides):
        data = {
            'category': 'hotels',
            'airport': 'DEN',
            'locationName': 'Hilton Garden Inn',
            'address': '16475 E 40th Cir, Aurora, CO',
            'latitude': 39.85,
            'longitude': -104.67,
            'overallRating': 4,
            'reviewText': CLEAN_TEXT,
            'bedQuality': 5,
            'roomCleanliness': 4,
        }
        data.update(overrides)
        return data

    def test_submit_review(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.post(self.list_url, self._payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['verdict'], 'approve')
        review = Review.objects.get(pk=response.data['review_id'])
        self.assertEqual(review.user_id, str(self.user.pk))
        self.assertEqual(review.user_email, 'pilot@example.com')
        self.assertEqual(review.bed_quality, 5)
        self.assertEqual(review.calculated_rating, 4.5)

    def test_submit_short_review(self):
        response = self.client.post(self.list_url, self._payload(reviewText='Too short'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Review must be at least 50 characters')

    def test_submit_invalid_payload(self):
        response = self.client.post(self.list_url, self._payload(overallRating=9), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('overallRating', response.data['details'])

    def test_submit_out_of_range_coordinates(self):
        response = self.client.post(self.list_url, self._payload(latitude=123.4), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('coordinates', response.data['details'])
        self.assertEqual(Review.objects.count(), 0)

    def test_retrieve_hides_flagged(self):
        review = Review.objects.create(category='hotels', location_name='Inn', overall_rating=3, flagged=True)
        response = self.client.get(reverse('reviews:review-detail', kwargs={'pk': review.pk}))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_quick_log_requires_login(self):
        data = {'category': 'hotels', 'locationName': 'Inn', 'overallRating': 4}
        response = self.client.post(self.quick_log_url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_quick_log(self):
        self.client.force_authenticate(user=self.user)
        data = {'category': 'hotels', 'locationName': 'Inn', 'overallRating': 4, 'action': 'draft'}
        response = self.client.post(self.quick_log_url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'draft')

    def test_mine_requires_login(self):
        response = self.client.get(reverse('reviews:review-mine'))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_mine_lists_own_reviews_with_drafts(self):
        other = User.objects.create_user(username='copilot', password='testpass123')
        draft = Review.objects.create(category='hotels', location_name='Inn', overall_rating=4,
                                      user_id=str(self.user.pk), status=ReviewStatus.DRAFT, is_quick_log=True)
        flagged = Review.objects.create(category='fbos', location_name='Jet Center', overall_rating=2,
                                        user_id=str(self.user.pk), flagged=True)
        Review.objects.create(category='hotels', location_name='Inn', overall_rating=5, user_id=str(other.pk))

        self.client.force_authenticate(user=self.user)
        response = self.client.get(reverse('reviews:review-mine'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        ids = {row['id'] for row in response.data['reviews']}
        self.assertEqual(ids, {draft.pk, flagged.pk})
        row = next(row for row in response.data['reviews'] if row['id'] == draft.pk)
        self.assertEqual(row['status'], 'draft')
        self.assertTrue(row['is_quick_log'])

    def test_expand_is_owner_scoped(self):
        other = User.objects.create_user(username='copilot', password='testpass123')
        review = Review.objects.create(category='hotels', location_name='Inn', overall_rating=4,
                                       user_id=str(other.pk), status=ReviewStatus.DRAFT)

        url = reverse('reviews:review-expand', kwargs={'pk': review.pk})
        self.assertEqual(self.client.get(url).status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.user)
        self.assertEqual(self.client.get(url).status_code, status.HTTP_404_NOT_FOUND)
        missing = reverse('reviews:review-expand', kwargs={'pk': review.pk + 100})
        self.assertEqual(self.client.get(missing).status_code, status.HTTP_404_NOT_FOUND)
        bad_id = reverse('reviews:review-expand', kwargs={'pk': 'abc'})
        self.assertEqual(self.client.get(bad_id).status_code, status.HTTP_400_BAD_REQUEST)

    def test_expand_completes_quick_log(self):
        self.client.force_authenticate(user=self.user)
        data = {'category': 'hotels', 'locationName': 'Hilton Garden Inn', 'overallRating': 4, 'action': 'draft'}
        review_id = self.client.post(self.quick_log_url, data, format='json').data['review_id']
        url = reverse('reviews:review-expand', kwargs={'pk': review_id})

        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['review']['status'], 'draft')

        response = self.client.post(url, {
            'airport': 'DEN',
            'address': '16475 E 40th Cir, Aurora, CO',
            'reviewText': CLEAN_TEXT,
            'bedQuality': 5,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'published')
        self.assertEqual(response.data['calculated_rating'], 5.0)
        self.assertEqual(response.data['verdict'], 'approve')
        review = Review.objects.get(pk=review_id)
        self.assertFalse(review.is_quick_log)
        self.assertEqual(review.user_email, 'pilot@example.com')
        detail = self.client.get(reverse('reviews:review-detail', kwargs={'pk': review_id}))
        self.assertEqual(detail.status_code, status.HTTP_200_OK)

    def test_expand_rejects_incomplete_form(self):
        self.client.force_authenticate(user=self.user)
        review = Review.objects.create(category='hotels', location_name='Inn', overall_rating=4,
                                       user_id=str(self.user.pk), status=ReviewStatus.DRAFT, is_quick_log=True)
        url = reverse('reviews:review-expand', kwargs={'pk': review.pk})

        response = self.client.post(url, {'reviewText': 'Too short'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        review.refresh_from_db()
        self.assertEqual(review.status, ReviewStatus.DRAFT)

    def test_nearby(self):
        self.client.post(self.list_url, self._payload(), format='json')
        response = self.client.get(self.nearby_url, {'airport': 'kden'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertIn('distance_from_airport', response.data['results'][0])

    def test_nearby_errors(self):
        self.assertEqual(self.client.get(self.nearby_url).status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get(self.nearby_url, {'airport': 'ZZZ'})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.get(self.nearby_url, {'airport': 'DEN', 'radius': '-5'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class AdminAPITests(APITestCase):

    def setUp(self):
        self.staff = User.objects.create_user(username='admin', password='testpass123', is_staff=True)
        self.user = User.objects.create_user(username='pilot', password='testpass123')
        self.business = Business.objects.create(business_slug='crew-inn', category='hotels', location_name='Crew Inn')
        self.review = Review.objects.create(
            business=self.business, category='hotels', location_name='Crew Inn', overall_rating=4,
            review_text=CLEAN_TEXT, flagged=True,
        )

    def test_requires_staff(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.get(reverse('reviews:admin-stats'))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_flagged_and_unflag(self):
        self.client.force_authenticate(user=self.staff)
        url = reverse('reviews:admin-reviews')

        response = self.client.get(url, {'status': 'flagged'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['reviews']), 1)

        response = self.client.patch(url, {'id': self.review.pk, 'flagged': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.review.refresh_from_db()
        self.assertFalse(self.review.flagged)

    def test_delete_review(self):
        self.client.force_authenticate(user=self.staff)
        url = reverse('reviews:admin-reviews')
        self.assertEqual(self.client.delete(url).status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.delete(f"{url}?id={self.review.pk}")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Review.objects.exists())

    def test_approve_location(self):
        self.client.force_authenticate(user=self.staff)
        url = reverse('reviews:admin-locations')

        response = self.client.get(url, {'status': 'pending'})
        self.assertEqual(response.data['locations'][0]['review_count'], 1)

        response = self.client.patch(url, {'id': self.business.pk, 'approved': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.business.refresh_from_db()
        self.assertTrue(self.business.approved)

        response = self.client.patch(url, {'id': 9999, 'approved': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_stats(self):
        self.client.force_authenticate(user=self.staff)
        response = self.client.get(reverse('reviews:admin-stats'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['flagged_reviews'], 1)
        self.assertEqual(response.data['pending_locations'], 1)
