"""Error taxonomy shared by the lifecycle core.

Every error carries a stable ``default_code`` so clients can render role and
state specific messages, e.g. "only the employer can confirm completion".
"""
import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class CoreError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request could not be processed.'
    default_code = 'error'

    @property
    def code(self):
        return self.detail.code


class NotFoundError(CoreError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'
    default_code = 'not_found'


class ForbiddenError(CoreError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You do not have permission to perform this action.'
    default_code = 'forbidden'


class InvalidRoleError(CoreError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Your role cannot perform this transition.'
    default_code = 'invalid_role'


class InvalidTransitionError(CoreError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'This transition is not allowed from the current state.'
    default_code = 'invalid_transition'


class DuplicateApplicationError(CoreError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'You have already applied to this job.'
    default_code = 'duplicate_application'


class DependencyUnavailableError(CoreError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'A backing service is unavailable, please retry.'
    default_code = 'dependency_unavailable'


def exception_handler(exc, context):
    """Render core errors as ``{"error": ..., "code": ...}``."""
    if isinstance(exc, CoreError):
        if isinstance(exc, DependencyUnavailableError):
            logger.error(f"Dependency unavailable in {context.get('view').__class__.__name__}: {exc.detail}")
        return Response({"error": str(exc.detail), "code": exc.code}, status=exc.status_code)
    return drf_exception_handler(exc, context)
