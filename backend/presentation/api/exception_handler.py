import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from domain.shared.exceptions import (
    DomainException,
    EntityNotFoundException,
    ValidationException,
    BusinessRuleViolationException,
    StatusTransitionException,
    InsufficientStockException,
    MissingStockDataException,
)

logger = logging.getLogger(__name__)

# Checked in order, so subclasses come before their bases
DOMAIN_STATUS_CODES = (
    (InsufficientStockException, status.HTTP_409_CONFLICT),
    (MissingStockDataException, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (StatusTransitionException, status.HTTP_409_CONFLICT),
    (BusinessRuleViolationException, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ValidationException, status.HTTP_400_BAD_REQUEST),
    (EntityNotFoundException, status.HTTP_404_NOT_FOUND),
)


def get_domain_status_code(exc: DomainException) -> int:
    for exc_class, status_code in DOMAIN_STATUS_CODES:
        if isinstance(exc, exc_class):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def custom_exception_handler(exc, context):
    """
    Render domain exceptions as ``{"error", "detail", "details"}``.

    Anything else goes through the default DRF handler.
    """
    if isinstance(exc, DomainException):
        status_code = get_domain_status_code(exc)
        view = context.get('view')
        logger.warning(
            f"{exc.code} in {view.__class__.__name__ if view else 'unknown view'}: "
            f"{exc.message}"
        )
        return Response(
            {
                'error': exc.code,
                'detail': exc.message,
                'details': exc.details,
            },
            status=status_code,
        )

    return exception_handler(exc, context)
