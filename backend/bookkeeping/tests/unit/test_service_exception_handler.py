# bookkeeping/tests/unit/test_service_exception_handler.py
from unittest.mock import Mock, patch

import pytest
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework.exceptions import (
    APIException,
    PermissionDenied as DRFPermissionDenied,
    ValidationError as DRFValidationError,
)

from bookkeeping.exceptions import (
    TerminalStateError,
    TransactionNotFound,
    TransitionConflict,
    TransitionForbidden,
)
from bookkeeping.mixins.service_exception_handler import (
    ServiceExceptionHandlerMixin,
    WorkflowAPIException,
)


class MockService:
    """A mock service to simulate different exception scenarios."""

    def method_success(self):
        return "success"

    def method_django_validation_error(self):
        raise DjangoValidationError("Only draft transactions can be updated.")

    def method_django_field_error(self):
        raise DjangoValidationError({"amount": ["Transaction amount must be positive."]})

    def method_drf_validation_error(self):
        raise DRFValidationError("DRF validation error")

    def method_python_permission_error(self):
        raise PermissionError("Your role does not allow modifying transactions.")

    def method_drf_permission_denied(self):
        raise DRFPermissionDenied("DRF permission denied")

    def method_generic_exception(self):
        raise Exception("connection string with password")


class TestServiceExceptionHandlerMixin:
    def setup_method(self, method):
        self.mixin_instance = ServiceExceptionHandlerMixin()
        self.mixin_instance.request = Mock()
        self.mixin_instance.request.user = Mock(id=1)
        self.mock_service = MockService()

    @patch("bookkeeping.mixins.service_exception_handler.logger")
    def test_success(self, mock_logger):
        result = self.mixin_instance.handle_service_call(self.mock_service.method_success)
        assert result == "success"

        success_calls = [
            kwargs for args, kwargs in mock_logger.debug.call_args_list
            if args[0] == "Service call completed successfully"
        ]
        assert success_calls
        assert success_calls[0]["extra"]["service_name"] == "MockService"
        assert success_calls[0]["extra"]["user_id"] == 1

    @pytest.mark.parametrize(
        "error_class,status_code,code",
        [
            (TransactionNotFound, 404, "not_found"),
            (TransitionForbidden, 403, "forbidden"),
            (TransitionConflict, 409, "conflict"),
            (TerminalStateError, 422, "terminal_state"),
        ],
    )
    @patch("bookkeeping.mixins.service_exception_handler.logger")
    def test_transition_errors_map_to_status(self, mock_logger, error_class, status_code, code):
        def failing():
            raise error_class(transaction_id="tx-1", current_status="submitted", action="lock")

        with pytest.raises(WorkflowAPIException) as exc_info:
            self.mixin_instance.handle_service_call(failing)

        assert exc_info.value.status_code == status_code
        assert exc_info.value.detail["code"] == code
        assert exc_info.value.detail["detail"] == error_class.default_message
        extra = mock_logger.warning.call_args.kwargs["extra"]
        assert extra["error_code"] == code
        assert extra["transaction_id"] == "tx-1"

    @patch("bookkeeping.mixins.service_exception_handler.logger")
    def test_django_validation_error(self, mock_logger):
        with pytest.raises(DRFValidationError) as exc_info:
            self.mixin_instance.handle_service_call(
                self.mock_service.method_django_validation_error
            )
        assert exc_info.value.detail == ["Only draft transactions can be updated."]

    @patch("bookkeeping.mixins.service_exception_handler.logger")
    def test_django_field_validation_error_keeps_fields(self, mock_logger):
        with pytest.raises(DRFValidationError) as exc_info:
            self.mixin_instance.handle_service_call(self.mock_service.method_django_field_error)
        assert "amount" in exc_info.value.detail

    @patch("bookkeeping.mixins.service_exception_handler.logger")
    def test_drf_validation_error_reraised(self, mock_logger):
        with pytest.raises(DRFValidationError, match="DRF validation error"):
            self.mixin_instance.handle_service_call(self.mock_service.method_drf_validation_error)

    @patch("bookkeeping.mixins.service_exception_handler.logger")
    def test_permission_error(self, mock_logger):
        with pytest.raises(DRFPermissionDenied):
            self.mixin_instance.handle_service_call(
                self.mock_service.method_python_permission_error
            )
        assert mock_logger.warning.call_args.kwargs["extra"]["severity"] == "high"

    @patch("bookkeeping.mixins.service_exception_handler.logger")
    def test_drf_permission_denied_reraised(self, mock_logger):
        with pytest.raises(DRFPermissionDenied, match="DRF permission denied"):
            self.mixin_instance.handle_service_call(self.mock_service.method_drf_permission_denied)

    @patch("bookkeeping.mixins.service_exception_handler.logger")
    def test_unexpected_error_does_not_leak(self, mock_logger):
        with pytest.raises(APIException) as exc_info:
            self.mixin_instance.handle_service_call(self.mock_service.method_generic_exception)

        assert exc_info.value.status_code == 500
        assert "password" not in str(exc_info.value.detail)
        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args.kwargs["extra"]["severity"] == "critical"
