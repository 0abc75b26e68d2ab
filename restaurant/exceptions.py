from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
from django.core.exceptions import ValidationError, ObjectDoesNotExist
from django.db import IntegrityError
import logging

from .lifecycle import LifecycleError

logger = logging.getLogger(__name__)


def smartserve_exception_handler(exc, context):
    """
    Turn domain and database errors raised below the views into
    ``{"error": ...}`` responses. Everything else keeps DRF's rendering.
    """
    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get('view')
    view_name = view.__class__.__name__ if view is not None else 'unknown view'

    if isinstance(exc, LifecycleError):
        logger.warning("%s refused in %s: %s", exc.code, view_name, exc)
        return Response(
            {'error': str(exc), 'code': exc.code},
            status=status.HTTP_400_BAD_REQUEST
        )

    if isinstance(exc, ValidationError):
        logger.warning("Validation error in %s: %s", view_name, exc.messages)
        details = exc.message_dict if hasattr(exc, 'error_dict') else {'non_field_errors': exc.messages}
        return Response(
            {'error': ' '.join(exc.messages), 'details': details},
            status=status.HTTP_400_BAD_REQUEST
        )

    if isinstance(exc, ObjectDoesNotExist):
        return Response(
            {'error': 'Resource not found.'},
            status=status.HTTP_404_NOT_FOUND
        )

    if isinstance(exc, IntegrityError):
        logger.error("Integrity error in %s: %s", view_name, exc)
        return Response(
            {'error': 'This operation violates database constraints.'},
            status=status.HTTP_400_BAD_REQUEST
        )

    return None
