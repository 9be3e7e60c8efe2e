"""
DRF exception handler that reports unhandled API errors to Slack.
"""
import logging

from rest_framework.views import exception_handler as drf_exception_handler

from .services import get_notification_service

logger = logging.getLogger(__name__)


def exception_handler(exc, context):
    """
    Delegates to DRF's handler. Exceptions DRF does not turn into a
    response end up as 500s, so those are posted to Slack first.
    """
    response = drf_exception_handler(exc, context)
    if response is not None:
        return response

    request = context.get('request')
    view = context.get('view')
    user = getattr(request, 'user', None)
    error_context = {
        'page': request.path if request is not None else None,
        'user_email': getattr(user, 'email', None) or None,
        'component': type(view).__name__ if view is not None else None,
    }
    logger.error(f"Unhandled API error in {error_context['component']}: {exc}")
    get_notification_service().slack.notify_error(exc, error_context)
    return None
