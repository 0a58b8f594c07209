import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)

# DRF's own exceptions mapped onto the lifecycle error codes.
DRF_CODES = (
    ((exceptions.NotAuthenticated, exceptions.AuthenticationFailed), 'unauthenticated'),
    ((exceptions.PermissionDenied, DjangoPermissionDenied), 'forbidden'),
    ((exceptions.NotFound, Http404), 'not_found'),
    ((exceptions.ValidationError, exceptions.ParseError), 'invalid_argument'),
)


def _first_message(detail):
    if isinstance(detail, dict):
        field, value = next(iter(detail.items()))
        message = _first_message(value)
        return message if field == 'non_field_errors' else f"{field}: {message}"
    if isinstance(detail, list):
        return _first_message(detail[0]) if detail else ''
    return str(detail)


def _code_for(exc):
    from core.exceptions import LifecycleError

    if isinstance(exc, LifecycleError):
        return exc.default_code
    for classes, code in DRF_CODES:
        if isinstance(exc, classes):
            return code
    return getattr(exc, 'default_code', 'error')


def exception_handler(exc, context):
    """
    Render every error as ``{"error": <message>, "code": <code>}``.
    Unexpected exceptions are logged and returned as a generic 500.
    """
    response = drf_exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.exception(f"Unhandled error in {view.__class__.__name__ if view else 'view'}: {exc}")
        return Response(
            {'error': 'An unexpected error occurred.', 'code': 'internal_error'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    detail = getattr(exc, 'detail', None)
    if detail is None:
        detail = response.data.get('detail', response.data) if isinstance(response.data, dict) else response.data
    response.data = {'error': _first_message(detail), 'code': _code_for(exc)}
    if response.status_code >= 500:
        logger.error(f"Upstream failure: {response.data['error']}")
    return response
