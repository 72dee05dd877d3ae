"""
Service exception handler mixin.
Translates service layer exceptions into DRF exceptions with structured
logging, so views stay free of try/except blocks.
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.exceptions import PermissionDenied as DRFPermissionDenied
from rest_framework.exceptions import ValidationError as DRFValidationError

from ..exceptions import TransitionError

logger = logging.getLogger(__name__)


class WorkflowAPIException(APIException):
    """
    DRF exception carrying a workflow outcome.

    The response body is ``{"detail": <message>, "code": <code>}`` with the
    HTTP status of the originating TransitionError.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "transition_error"

    def __init__(self, error: TransitionError):
        self.status_code = error.status_code
        super().__init__(
            detail={"detail": error.message, "code": error.code}, code=error.code
        )


class ServiceExceptionHandlerMixin:
    """
    Mixin for handling service layer exceptions in views.

    Mapping:
    - TransitionError family -> 404 / 403 / 409 / 422 with its code
    - Django ValidationError -> 400
    - PermissionError -> 403
    - DRF exceptions -> re-raised unchanged
    - anything else -> generic 500 without internal details

    Usage:
        result = self.handle_service_call(
            self.workflow_service.transition,
            transaction_id, actor, action
        )
    """

    def handle_service_call(self, service_call, *args, **kwargs):
        """
        Execute service call with exception translation and logging.

        Args:
            service_call: Service method to execute
            *args: Positional arguments for service call
            **kwargs: Keyword arguments for service call

        Returns:
            Any: Result from service call

        Raises:
            WorkflowAPIException: For workflow outcomes
            DRFValidationError: For business rule violations
            DRFPermissionDenied: For authorization failures
            APIException: For unexpected service errors
        """
        # Extract context for logging
        service_name = getattr(service_call, "__self__", self).__class__.__name__
        method_name = getattr(service_call, "__name__", str(service_call))
        request = getattr(self, "request", None)
        user_id = getattr(getattr(request, "user", None), "id", None) if request else None

        logger.debug(
            "Service call execution initiated",
            extra={
                "service_name": service_name,
                "method_name": method_name,
                "user_id": user_id,
                "args_count": len(args),
                "kwargs_keys": list(kwargs.keys()),
                "action": "service_call_start",
                "component": "ServiceExceptionHandlerMixin",
            },
        )

        try:
            result = service_call(*args, **kwargs)

            logger.debug(
                "Service call completed successfully",
                extra={
                    "service_name": service_name,
                    "method_name": method_name,
                    "user_id": user_id,
                    "result_type": type(result).__name__,
                    "action": "service_call_success",
                    "component": "ServiceExceptionHandlerMixin",
                },
            )

            return result

        except TransitionError as e:
            logger.warning(
                "Workflow transition not applied",
                extra={
                    "service_name": service_name,
                    "method_name": method_name,
                    "user_id": user_id,
                    "error_type": type(e).__name__,
                    "error_code": e.code,
                    "status_code": e.status_code,
                    "transaction_id": str(e.transaction_id) if e.transaction_id else None,
                    "current_status": e.current_status,
                    "requested_action": e.action,
                    "action": "service_transition_error",
                    "component": "ServiceExceptionHandlerMixin",
                    "severity": "medium",
                },
            )
            raise WorkflowAPIException(e)

        except DRFValidationError as e:
            # Re-raise DRF validation errors directly
            logger.warning(
                "Service validation error (DRF)",
                extra={
                    "service_name": service_name,
                    "method_name": method_name,
                    "user_id": user_id,
                    "error_type": "DRFValidationError",
                    "error_detail": e.detail,
                    "action": "service_validation_error_drf",
                    "component": "ServiceExceptionHandlerMixin",
                    "severity": "medium",
                },
            )
            raise

        except DjangoValidationError as e:
            # Convert Django ValidationError to DRF ValidationError
            if hasattr(e, "error_dict"):
                error_detail = e.message_dict
            else:
                error_detail = e.messages

            logger.warning(
                "Service validation error (Django)",
                extra={
                    "service_name": service_name,
                    "method_name": method_name,
                    "user_id": user_id,
                    "error_type": "DjangoValidationError",
                    "error_messages": e.messages,
                    "action": "service_validation_error_django",
                    "component": "ServiceExceptionHandlerMixin",
                    "severity": "medium",
                },
            )

            raise DRFValidationError(error_detail)

        except DRFPermissionDenied as e:
            # Re-raise DRF permission errors directly
            logger.warning(
                "Service permission denied (DRF)",
                extra={
                    "service_name": service_name,
                    "method_name": method_name,
                    "user_id": user_id,
                    "error_type": "DRFPermissionDenied",
                    "error_detail": e.detail,
                    "action": "service_permission_denied_drf",
                    "component": "ServiceExceptionHandlerMixin",
                    "severity": "high",
                },
            )
            raise

        except PermissionError as e:
            # Convert Python PermissionError to DRF PermissionDenied
            logger.warning(
                "Service permission denied (Python)",
                extra={
                    "service_name": service_name,
                    "method_name": method_name,
                    "user_id": user_id,
                    "error_type": "PermissionError",
                    "error_message": str(e),
                    "action": "service_permission_denied_python",
                    "component": "ServiceExceptionHandlerMixin",
                    "severity": "high",
                },
            )

            raise DRFPermissionDenied(str(e))

        except APIException as e:
            # Re-raise DRF API exceptions directly
            logger.error(
                "Service API exception",
                extra={
                    "service_name": service_name,
                    "method_name": method_name,
                    "user_id": user_id,
                    "error_type": "APIException",
                    "error_detail": e.detail,
                    "status_code": e.status_code,
                    "action": "service_api_exception",
                    "component": "ServiceExceptionHandlerMixin",
                    "severity": "high",
                },
            )
            raise

        except Exception as e:
            # Handle unexpected service errors
            logger.error(
                "Service operation failed unexpectedly",
                extra={
                    "service_name": service_name,
                    "method_name": method_name,
                    "user_id": user_id,
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                    "args_count": len(args),
                    "kwargs_keys": list(kwargs.keys()),
                    "action": "service_unexpected_error",
                    "component": "ServiceExceptionHandlerMixin",
                    "severity": "critical",
                },
                exc_info=True,  # Include full stack trace
            )

            # Create a generic API exception to prevent information leakage
            raise APIException(detail="Service operation failed", code="service_error")
