from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import requests
from django.test import SimpleTestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.exceptions import NotFound
from rest_framework.test import APITestCase

from reviews.spam import SpamCheckResult
from notifications.handlers import exception_handler
from notifications.services import (
    EmailNotificationService,
    NotificationService,
    SlackNotificationService,
    star_line,
)


def make_review(**overrides):
    data = {
        'pk': 42,
        'category': 'hotels',
        'location_name': 'Hilton Garden Inn',
        'airport_code': 'DEN',
        'overall_rating': 4,
        'review_text': 'Quiet rooms <script>alert(1)</script>',
        'user_email': 'pilot@example.com',
        'spam_score': 0,
        'spam_reasons': [],
        'flagged': False,
    }
    data.update(overrides)
    return SimpleNamespace(**data)


def ok_response():
    return MagicMock(ok=True, status_code=200)


class EmailNotificationServiceTest(SimpleTestCase):
    """Test cases for the Resend email wrapper"""

    def setUp(self):
        self.service = EmailNotificationService(
            api_key='re_test',
            admin_email='admin@example.com',
            from_email='CrewIntel <noreply@example.com>',
            base_url='https://example.com',
        )

    def test_star_line(self):
        self.assertEqual(star_line(4), '★★★★☆')
        self.assertEqual(star_line(None), '☆☆☆☆☆')

    @patch('notifications.services.requests.post')
    def test_new_review_email(self, mock_post):
        mock_post.return_value = ok_response()

        sent = self.service.send_new_review_notification(make_review())

        self.assertTrue(sent)
        payload = mock_post.call_args.kwargs['json']
        self.assertEqual(payload['to'], 'admin@example.com')
        self.assertEqual(payload['subject'], 'New review: Hilton Garden Inn (★★★★☆)')
        self.assertIn('&lt;script&gt;', payload['html'])
        self.assertNotIn('<script>', payload['html'])
        self.assertEqual(mock_post.call_args.kwargs['headers']['Authorization'], 'Bearer re_test')

    @patch('notifications.services.requests.post')
    def test_auto_flagged_subject(self, mock_post):
        mock_post.return_value = ok_response()
        spam = SpamCheckResult(score=65, reasons=['Keyboard spam pattern'], auto_flag=True)

        self.service.send_new_review_notification(make_review(), spam_result=spam)

        payload = mock_post.call_args.kwargs['json']
        self.assertTrue(payload['subject'].startswith('[AUTO-FLAGGED] '))
        self.assertIn('Keyboard spam pattern', payload['html'])

    @patch('notifications.services.requests.post')
    def test_needs_review_subject(self, mock_post):
        mock_post.return_value = ok_response()
        spam = SpamCheckResult(score=45, reasons=['Contains URLs'], auto_flag=False)

        self.service.send_new_review_notification(make_review(), spam_result=spam)

        self.assertTrue(mock_post.call_args.kwargs['json']['subject'].startswith('[NEEDS REVIEW] '))

    @patch('notifications.services.requests.post')
    def test_new_location_email(self, mock_post):
        mock_post.return_value = ok_response()
        business = SimpleNamespace(category='fbos', location_name='Jet Center', airport_code='APA', address='1 Hangar Rd')

        self.assertTrue(self.service.send_new_location_notification(business))
        self.assertIn('Pending your approval', mock_post.call_args.kwargs['json']['html'])

    @patch('notifications.services.requests.post')
    def test_skipped_without_api_key(self, mock_post):
        service = EmailNotificationService(api_key='', admin_email='admin@example.com')

        self.assertFalse(service.send_new_review_notification(make_review()))
        mock_post.assert_not_called()

    @patch('notifications.services.requests.post')
    def test_http_errors_are_not_raised(self, mock_post):
        mock_post.side_effect = requests.ConnectionError('boom')
        self.assertFalse(self.service.send_new_review_notification(make_review()))

        mock_post.side_effect = None
        mock_post.return_value = MagicMock(ok=False, status_code=422, text='invalid')
        self.assertFalse(self.service.send_new_review_notification(make_review()))


class SlackNotificationServiceTest(SimpleTestCase):
    """Test cases for the Slack webhook wrapper"""

    @patch('notifications.services.requests.post')
    def test_notify_info(self, mock_post):
        mock_post.return_value = ok_response()
        service = SlackNotificationService(webhook_url='https://hooks.example.com/x', debug=False)

        self.assertTrue(service.notify_info('New review', 'Hilton Garden Inn', {'Review ID': 42}))
        payload = mock_post.call_args.kwargs['json']
        self.assertEqual(payload['text'], 'New review')
        self.assertEqual(len(payload['blocks']), 2)

    @patch('notifications.services.requests.post')
    def test_errors_skipped_in_debug(self, mock_post):
        service = SlackNotificationService(webhook_url='https://hooks.example.com/x', debug=True)

        self.assertFalse(service.notify_error(ValueError('bad'), {'page': '/review'}))
        mock_post.assert_not_called()

    @patch('notifications.services.requests.post')
    def test_notify_error(self, mock_post):
        mock_post.return_value = ok_response()
        service = SlackNotificationService(webhook_url='https://hooks.example.com/x', debug=False)

        self.assertTrue(service.notify_error(ValueError('bad'), {'page': '/review'}))
        self.assertEqual(mock_post.call_args.kwargs['json']['text'], 'Error in CrewIntel')

    @patch('notifications.services.requests.post')
    def test_no_webhook(self, mock_post):
        service = SlackNotificationService(webhook_url='', debug=False)

        self.assertFalse(service.notify_info('title', 'message'))
        mock_post.assert_not_called()


class NotificationServiceTest(SimpleTestCase):
    """Test cases for the submission fan-out"""

    def setUp(self):
        self.email = MagicMock()
        self.slack = MagicMock()
        self.service = NotificationService(email=self.email, slack=self.slack)

    def test_existing_business(self):
        results = self.service.review_submitted(make_review())

        self.assertEqual(set(results), {'email', 'slack'})
        self.email.send_new_location_notification.assert_not_called()
        self.email.send_new_review_notification.assert_called_once()

    def test_new_business(self):
        business = SimpleNamespace(category='hotels', location_name='Hilton Garden Inn')

        results = self.service.review_submitted(make_review(), new_business=business)

        self.assertIn('location_email', results)
        self.email.send_new_location_notification.assert_called_once_with(business)
        _, kwargs = self.email.send_new_review_notification.call_args
        self.assertTrue(kwargs['is_new_location'])


class ExceptionHandlerTest(SimpleTestCase):
    """Test cases for the API exception handler"""

    def setUp(self):
        self.request = SimpleNamespace(path='/api/reviews/nearby/', user=SimpleNamespace(email='pilot@example.com'))
        self.view = SimpleNamespace()

    @patch('notifications.handlers.get_notification_service')
    def test_unhandled_error_reported(self, mock_service):
        error = RuntimeError('database unavailable')

        response = exception_handler(error, {'request': self.request, 'view': self.view})

        self.assertIsNone(response)
        mock_service.return_value.slack.notify_error.assert_called_once_with(error, {
            'page': '/api/reviews/nearby/',
            'user_email': 'pilot@example.com',
            'component': 'SimpleNamespace',
        })

    @patch('notifications.handlers.get_notification_service')
    def test_api_errors_not_reported(self, mock_service):
        response = exception_handler(NotFound(), {'request': self.request, 'view': self.view})

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        mock_service.assert_not_called()


class ExceptionHandlerAPITest(APITestCase):
    """Unhandled errors raised inside a view reach Slack"""

    @patch('notifications.handlers.get_notification_service')
    @patch('reviews.views.AirportService.resolve_point')
    def test_view_error_reported(self, mock_resolve, mock_service):
        mock_resolve.side_effect = RuntimeError('database unavailable')

        with self.assertRaises(RuntimeError):
            self.client.get(reverse('reviews:review-nearby'), {'airport': 'DEN'})

        notify_error = mock_service.return_value.slack.notify_error
        notify_error.assert_called_once()
        error, context = notify_error.call_args.args
        self.assertIs(error, mock_resolve.side_effect)
        self.assertEqual(context['page'], '/api/reviews/nearby/')
        self.assertEqual(context['component'], 'ReviewViewSet')
        self.assertIsNone(context['user_email'])
