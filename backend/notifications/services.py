"""
Admin notification fan-out: transactional email through the Resend HTTP API
and Slack incoming webhooks. Delivery problems are logged and reported as a
False return value; they never interrupt the request that triggered them.
"""
import logging
import traceback
from typing import Dict, List, Optional

import requests
from django.conf import settings
from django.utils.html import escape

logger = logging.getLogger(__name__)


CATEGORY_LABELS = {
    'hotels': 'Hotel',
    'fbos': 'FBO',
    'restaurants': 'Restaurant',
    'rentals': 'Car Rental',
}

REVIEW_ALERT_THRESHOLD = 30


def category_label(category: str) -> str:
    return CATEGORY_LABELS.get(category, category)


def star_line(rating) -> str:
    """Renders a 1-5 rating as filled and empty stars."""
    try:
        filled = max(0, min(5, int(rating)))
    except (TypeError, ValueError):
        filled = 0
    return '★' * filled + '☆' * (5 - filled)


class EmailNotificationService:
    """
    Wrapper around the Resend email API.
    Sends moderation alerts to the site admin address.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        admin_email: Optional[str] = None,
        from_email: Optional[str] = None,
        base_url: Optional[str] = None,
    ):
        """
        Initialize the email service.
        Falls back to Django settings for any value not provided.
        """
        self.api_key = api_key if api_key is not None else settings.RESEND_API_KEY
        self.admin_email = admin_email or settings.ADMIN_EMAIL
        self.from_email = from_email or settings.NOTIFICATION_FROM_EMAIL
        self.base_url = base_url or settings.SITE_BASE_URL
        self.api_url = settings.RESEND_API_URL
        self.timeout = settings.NOTIFICATION_TIMEOUT_SECONDS

    def send_new_review_notification(self, review, spam_result=None, is_new_location: bool = False) -> bool:
        """
        Emails the admin about a freshly submitted review.

        Args:
            review: Review instance that was just stored
            spam_result: SpamCheckResult computed at submission time
            is_new_location: True when the submission created its business

        Returns:
            bool: True if Resend accepted the message
        """
        score = spam_result.score if spam_result else review.spam_score
        reasons = list(spam_result.reasons) if spam_result else list(review.spam_reasons or [])
        auto_flagged = spam_result.auto_flag if spam_result else review.flagged

        stars = star_line(review.overall_rating)
        label = category_label(review.category)

        subject_prefix = ''
        alert_html = ''
        if auto_flagged:
            subject_prefix = '[AUTO-FLAGGED] '
            alert_html = self._spam_banner(
                f"Auto-flagged as potential spam (Score: {score}/100)", reasons, '#fef2f2', '#dc2626'
            )
        elif score >= REVIEW_ALERT_THRESHOLD:
            subject_prefix = '[NEEDS REVIEW] '
            alert_html = self._spam_banner(
                f"Suspicious content detected (Score: {score}/100)", reasons, '#fefce8', '#a16207'
            )

        new_location_badge = (
            '<span style="background: #3b82f6; color: white; padding: 2px 8px; border-radius: 4px;">NEW LOCATION</span>'
            if is_new_location else ''
        )
        body_text = escape(review.review_text or '').replace('\n', '<br>')

        html = f"""
        <div style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 600px;">
          <h2 style="color: #1e40af;">New {escape(label)} Review {new_location_badge}</h2>
          {alert_html}
          <div style="background: #f8fafc; padding: 16px; border-radius: 8px;">
            <h3 style="margin: 0 0 8px 0;">{escape(review.location_name)}</h3>
            <p style="margin: 0; color: #64748b;">{escape(review.airport_code)} &bull; {escape(label)}</p>
            <p style="margin: 8px 0 0 0; font-size: 20px;">{stars}</p>
          </div>
          <div style="border: 1px solid #e2e8f0; padding: 16px; border-radius: 8px;">
            <p style="margin: 0; line-height: 1.6;">{body_text}</p>
          </div>
          <p style="color: #64748b; font-size: 14px;">
            <strong>Submitted by:</strong> {escape(review.user_email or 'Anonymous')}<br>
            <strong>Review ID:</strong> {review.pk}
          </p>
          <a href="{escape(self.base_url)}/admin">Open Admin Panel</a>
        </div>
        """

        subject = f"{subject_prefix}New review: {review.location_name} ({stars})"
        return self._send(subject, html)

    def send_new_location_notification(self, business) -> bool:
        """
        Emails the admin about a business created by a submission.
        New businesses stay unapproved until reviewed.
        """
        label = category_label(business.category)
        html = f"""
        <div style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 600px;">
          <h2 style="color: #1e40af;">New {escape(label)} Added</h2>
          <div style="background: #fef3c7; border: 1px solid #fcd34d; padding: 12px; border-radius: 8px;">
            <strong style="color: #92400e;">Pending your approval</strong>
          </div>
          <div style="background: #f8fafc; padding: 16px; border-radius: 8px;">
            <h3 style="margin: 0 0 8px 0;">{escape(business.location_name)}</h3>
            <p style="margin: 0; color: #64748b;">{escape(business.airport_code)} &bull; {escape(label)}</p>
            <p style="margin: 8px 0 0 0; color: #475569;">{escape(business.address)}</p>
          </div>
          <a href="{escape(self.base_url)}/admin">Review &amp; Approve</a>
        </div>
        """
        subject = f"New location pending approval: {business.location_name}"
        return self._send(subject, html)

    @staticmethod
    def _spam_banner(title: str, reasons: List[str], background: str, color: str) -> str:
        items = ''.join(f'<li>{escape(reason)}</li>' for reason in reasons)
        return (
            f'<div style="background: {background}; padding: 12px; border-radius: 8px;">'
            f'<strong style="color: {color};">{escape(title)}</strong>'
            f'<ul style="margin: 8px 0 0 0; padding-left: 20px;">{items}</ul>'
            f'</div>'
        )

    def _send(self, subject: str, html: str) -> bool:
        if not self.api_key:
            logger.info("RESEND_API_KEY not configured, skipping email notification")
            return False

        try:
            response = requests.post(
                self.api_url,
                headers={
                    'Authorization': f"Bearer {self.api_key}",
                    'Content-Type': 'application/json',
                },
                json={
                    'from': self.from_email,
                    'to': self.admin_email,
                    'subject': subject,
                    'html': html,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Error sending email notification: {str(e)}")
            return False

        if not response.ok:
            logger.error(f"Failed to send email ({response.status_code}): {response.text}")
            return False

        logger.info(f"Email notification sent: {subject}")
        return True


class SlackNotificationService:
    """
    Posts Block Kit messages to a Slack incoming webhook.
    """

    def __init__(self, webhook_url: Optional[str] = None, debug: Optional[bool] = None):
        self.webhook_url = webhook_url if webhook_url is not None else settings.SLACK_WEBHOOK_URL
        self.debug = settings.DEBUG if debug is None else debug
        self.timeout = settings.NOTIFICATION_TIMEOUT_SECONDS

    def notify_info(self, title: str, message: str, context: Optional[Dict] = None) -> bool:
        """
        Sends an informational message, with optional key/value context fields.
        """
        blocks = [
            {
                'type': 'section',
                'text': {'type': 'mrkdwn', 'text': f"*{title}*\n{message}"},
            }
        ]
        if context:
            blocks.append({
                'type': 'section',
                'fields': [
                    {'type': 'mrkdwn', 'text': f"*{key}:*\n{value}"}
                    for key, value in list(context.items())[:10]
                ],
            })
        return self._post({'text': title, 'blocks': blocks})

    def notify_error(self, error: BaseException, context: Optional[Dict] = None) -> bool:
        """
        Reports an application error. Only sent outside DEBUG; in development
        the error is logged instead.
        """
        context = context or {}
        if self.debug:
            logger.error(f"Error (dev): {error} context={context}")
            return False

        stack = ''.join(traceback.format_exception(type(error), error, error.__traceback__))[:500]
        message = {
            'text': 'Error in CrewIntel',
            'blocks': [
                {
                    'type': 'header',
                    'text': {'type': 'plain_text', 'text': 'Application Error'},
                },
                {
                    'type': 'section',
                    'fields': [
                        {'type': 'mrkdwn', 'text': f"*Error:*\n{error}"},
                        {'type': 'mrkdwn', 'text': f"*Page:*\n{context.get('page', 'Unknown')}"},
                    ],
                },
                {
                    'type': 'section',
                    'fields': [
                        {'type': 'mrkdwn', 'text': f"*User:*\n{context.get('user_email') or 'Anonymous'}"},
                        {'type': 'mrkdwn', 'text': f"*Component:*\n{context.get('component', 'N/A')}"},
                    ],
                },
                {
                    'type': 'section',
                    'text': {'type': 'mrkdwn', 'text': f"*Stack Trace:*\n```{stack or 'No stack trace'}```"},
                },
            ],
        }
        return self._post(message)

    def _post(self, payload: Dict) -> bool:
        if not self.webhook_url:
            return False
        try:
            response = requests.post(self.webhook_url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Failed to send Slack notification: {str(e)}")
            return False
        if not response.ok:
            logger.error(f"Slack webhook returned {response.status_code}")
            return False
        return True


class NotificationService:
    """
    Fans a review submission out to every configured channel.
    """

    def __init__(self, email: Optional[EmailNotificationService] = None,
                 slack: Optional[SlackNotificationService] = None):
        self.email = email or EmailNotificationService()
        self.slack = slack or SlackNotificationService()

    def review_submitted(self, review, spam_result=None, new_business=None) -> Dict[str, bool]:
        """
        Sends the new-review email, a new-location email when the submission
        created its business, and a Slack summary.

        Returns:
            Mapping of channel name to delivery success
        """
        results = {
            'email': self.email.send_new_review_notification(
                review, spam_result=spam_result, is_new_location=new_business is not None
            ),
        }
        if new_business is not None:
            results['location_email'] = self.email.send_new_location_notification(new_business)

        score = spam_result.score if spam_result else review.spam_score
        results['slack'] = self.slack.notify_info(
            f"New {category_label(review.category)} review",
            f"{review.location_name} ({review.airport_code or 'n/a'}) {star_line(review.overall_rating)}",
            {'Review ID': review.pk, 'Spam score': score, 'Flagged': review.flagged},
        )
        return results


# Global instance for easy access
_notification_service = None


def get_notification_service() -> NotificationService:
    """
    Get or create the global NotificationService instance.
    """
    global _notification_service
    if _notification_service is None:
        _notification_service = NotificationService()
    return _notification_service
