import math
import unittest

from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from reviews.models import Review
from .dtos import GeoPoint
from .models import Airport, Business, SearchLog
from .services import AirportService, GeoService, parse_radius

DEN = GeoPoint(latitude=39.8561, longitude=-104.6737)


class GeoServiceTests(unittest.TestCase):

    def test_distance_to_self_is_zero(self):
        self.assertEqual(GeoService.distance_miles(39.8561, -104.6737, 39.8561, -104.6737), 0.0)

    def test_distance_is_symmetric(self):
        there = GeoService.distance_miles(39.8561, -104.6737, 33.9416, -118.4085)
        back = GeoService.distance_miles(33.9416, -118.4085, 39.8561, -104.6737)
        self.assertAlmostEqual(there, back, places=9)
        # DEN to LAX is roughly 860 statute miles
        self.assertGreater(there, 840)
        self.assertLess(there, 880)

    def test_radius_is_inclusive(self):
        target = GeoPoint(latitude=40.0, longitude=-104.6737)
        radius = GeoService.point_distance(DEN, target)
        result = GeoService.filter_within_radius([target], DEN, radius, lambda p: p)
        self.assertEqual(result, [target])

    def test_sorted_nearest_first_and_stable(self):
        items = [
            {'name': 'far', 'latitude': 40.2, 'longitude': -104.6737},
            {'name': 'tie-a', 'latitude': 40.0, 'longitude': -104.6737},
            {'name': 'near', 'latitude': 39.86, 'longitude': -104.6737},
            {'name': 'tie-b', 'latitude': 40.0, 'longitude': -104.6737},
        ]
        result = GeoService.filter_within_radius(items, DEN, 30, GeoService.locate_record)
        self.assertEqual([item['name'] for item in result], ['near', 'tie-a', 'tie-b', 'far'])

    def test_excludes_unusable_coordinates(self):
        def locate(item):
            if item == 'raises':
                raise KeyError(item)
            return item

        items = [
            None,
            'raises',
            GeoPoint(latitude=None, longitude=-104.67),
            GeoPoint(latitude='north', longitude=-104.67),
            GeoPoint(latitude=math.nan, longitude=-104.67),
            GeoPoint(latitude=39.85, longitude=math.inf),
            GeoPoint(latitude=39.85, longitude=-104.67),
        ]
        result = GeoService.annotate_within_radius(items, DEN, 30, locate)
        self.assertEqual(len(result), 1)
        self.assertEqual(result[0][0], GeoPoint(latitude=39.85, longitude=-104.67))

    def test_invalid_reference_yields_nothing(self):
        ref = GeoPoint(latitude=math.nan, longitude=0)
        items = [GeoPoint(latitude=0, longitude=0)]
        self.assertEqual(GeoService.filter_within_radius(items, ref, 30, lambda p: p), [])

    def test_is_location_valid(self):
        self.assertTrue(GeoService.is_location_valid(39.85, -104.67))
        self.assertFalse(GeoService.is_location_valid(91, 0))
        self.assertFalse(GeoService.is_location_valid(0, 181))
        self.assertFalse(GeoService.is_location_valid(None, 0))

    def test_parse_radius(self):
        self.assertEqual(parse_radius(None, 30), 30.0)
        self.assertEqual(parse_radius('12.5', 30), 12.5)
        self.assertIsNone(parse_radius('0', 30))
        self.assertIsNone(parse_radius('nan', 30))
        self.assertIsNone(parse_radius('far', 30))


class AirportServiceTests(TestCase):

    def setUp(self):
        self.den = Airport.objects.create(iata_code='DEN', icao_code='KDEN', name='Denver International',
                                          city='Denver', latitude=39.8561, longitude=-104.6737)
        Airport.objects.create(iata_code='APA', icao_code='KAPA', name='Centennial',
                               city='Englewood', latitude=39.5701, longitude=-104.8493)

    def test_resolve_by_either_code(self):
        self.assertEqual(AirportService.resolve('den'), self.den)
        self.assertEqual(AirportService.resolve('KDEN'), self.den)
        self.assertIsNone(AirportService.resolve('LAX'))
        self.assertIsNone(AirportService.resolve(''))

    def test_search(self):
        self.assertEqual(AirportService.search('denver'), [self.den])
        self.assertEqual(len(AirportService.search('')), 2)
        self.assertEqual(len(AirportService.search('', limit=1)), 1)


class LocationAPITests(APITestCase):

    def setUp(self):
        Airport.objects.create(iata_code='DEN', icao_code='KDEN', name='Denver International',
                               city='Denver', latitude=39.8561, longitude=-104.6737)
        self.hotel = Business.objects.create(
            business_slug='hilton-garden-inn', category='hotels', location_name='Hilton Garden Inn',
            latitude=39.85, longitude=-104.67, airport_code='DEN',
        )
        Review.objects.create(
            business=self.hotel, category='hotels', location_name='Hilton Garden Inn',
            business_slug='hilton-garden-inn', overall_rating=4, would_recommend=True,
        )
        self.list_url = reverse('locations:business-list')

    def test_airport_search(self):
        response = self.client.get(reverse('locations:airport-list'), {'q': 'den'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['code'], 'DEN')

    def test_business_list_requires_category(self):
        response = self.client.get(self.list_url)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_business_list(self):
        response = self.client.get(self.list_url, {'category': 'hotels'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        row = response.data['results'][0]
        self.assertEqual(row['business_slug'], 'hilton-garden-inn')
        self.assertEqual(row['review_count'], 1)
        self.assertEqual(row['avg_rating'], 4.0)
        self.assertTrue(row['has_recommendations'])

    def test_business_list_near_airport(self):
        response = self.client.get(self.list_url, {'category': 'hotels', 'airport': 'DEN', 'radius': '5'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertLess(response.data['results'][0]['distance_from_airport'], 1)

        response = self.client.get(self.list_url, {'category': 'fbos', 'airport': 'DEN'})
        self.assertEqual(response.data['count'], 0)

    def test_business_list_unknown_airport(self):
        response = self.client.get(self.list_url, {'category': 'hotels', 'airport': 'ZZZ'})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_business_detail(self):
        url = reverse('locations:business-detail', kwargs={'slug': 'hilton-garden-inn'})
        response = self.client.get(url, {'category': 'hotels'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['business']['location_name'], 'Hilton Garden Inn')
        self.assertEqual(len(response.data['reviews']), 1)

        response = self.client.get(url, {'category': 'rentals'})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_search_log(self):
        url = reverse('locations:search-log')
        response = self.client.post(url, {'airportCode': 'DEN', 'category': 'hotels'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        log = SearchLog.objects.get()
        self.assertEqual(log.airport_code, 'DEN')
        self.assertIsNone(log.user_id)

    def test_search_log_bad_payload_still_ok(self):
        url = reverse('locations:search-log')
        response = self.client.post(url, {'category': 'spas'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['success'])
        self.assertFalse(SearchLog.objects.exists())
