from django.utils.translation import gettext_lazy as _
from rest_framework import status
from rest_framework.exceptions import APIException


# Lifecycle error taxonomy. Services raise these before any write happens;
# DRF renders them through api.handlers.exception_handler.

class LifecycleError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = _('Request could not be processed.')
    default_code = 'error'


class InvalidArgument(LifecycleError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = _('Invalid or missing input.')
    default_code = 'invalid_argument'


class PreconditionFailed(LifecycleError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = _('The operation is not allowed in the current state.')
    default_code = 'precondition_failed'


class Unauthenticated(LifecycleError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = _('Authentication required.')
    default_code = 'unauthenticated'


class Forbidden(LifecycleError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = _('You do not have permission to perform this action.')
    default_code = 'forbidden'


class NotFound(LifecycleError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = _('Not found.')
    default_code = 'not_found'


class Conflict(LifecycleError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = _('The request conflicts with existing state.')
    default_code = 'conflict'


class EscrowServiceError(LifecycleError):
    """
    The Escrow Settlement Service failed or rejected the request.
    Local state is left untouched; callers may retry with the same settlement reference.
    """
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = _('The escrow settlement service is unavailable. Please retry.')
    default_code = 'escrow_service_error'

    def __init__(self, detail=None, code=None, retryable=True):
        super().__init__(detail, code)
        self.retryable = retryable
