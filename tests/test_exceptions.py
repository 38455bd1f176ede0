"""Tests for the kernel exception hierarchy and its HTTP boundary mapping."""

import pytest

from transport_kernel.exceptions import (
    ApprovalNotFoundError,
    AuthorizationError,
    ForbiddenActionError,
    InvalidDecisionError,
    NoSeatsAvailableError,
    NotFoundError,
    RequisitionNotPendingError,
    ResourceConflictError,
    TicketValidationError,
    TransportKernelError,
    TripNotFoundError,
    UnauthorizedApproverError,
    ValidationError,
    WorkflowError,
    error_payload,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "exc, family, status",
        [
            (ApprovalNotFoundError("a-1"), NotFoundError, 404),
            (InvalidDecisionError("MAYBE"), ValidationError, 400),
            (RequisitionNotPendingError("r-1", "APPROVED"), WorkflowError, 400),
            (UnauthorizedApproverError("a-1", "USER", "HOD"), AuthorizationError, 403),
            (ForbiddenActionError("delete requisition", "HOD"), AuthorizationError, 403),
            (ResourceConflictError("Vehicle", "v-1", "r-2"), TransportKernelError, 409),
            (ResourceConflictError("Driver", "d-1", "t-2", "trip"), TransportKernelError, 409),
            (TripNotFoundError("t-1"), NotFoundError, 404),
            (TicketValidationError("fare", "must not be negative"), ValidationError, 400),
            (NoSeatsAvailableError("t-1"), WorkflowError, 400),
        ],
    )
    def test_family_and_status(self, exc, family, status):
        assert isinstance(exc, family)
        assert isinstance(exc, TransportKernelError)
        assert exc.http_status == status

    def test_codes_are_distinct_per_class(self):
        assert ApprovalNotFoundError.code != NotFoundError.code
        assert UnauthorizedApproverError.code != ForbiddenActionError.code


class TestErrorPayload:
    def test_kernel_error_keeps_status_code_and_details(self):
        status, body = error_payload(RequisitionNotPendingError("r-1", "REJECTED"))

        assert status == 400
        assert body["code"] == "REQUISITION_NOT_PENDING"
        assert "r-1" in body["message"]
        assert body["details"] == {"requisition_id": "r-1", "status": "REJECTED"}

    def test_unexpected_error_is_500(self):
        status, body = error_payload(RuntimeError("db connection reset"))

        assert status == 500
        assert body["code"] == TransportKernelError.code
        assert body["message"] == "db connection reset"
        assert "details" not in body

    def test_production_hides_unexpected_message(self):
        status, body = error_payload(RuntimeError("secret dsn"), production=True)

        assert status == 500
        assert body["message"] == "Server Error"

    def test_production_keeps_kernel_messages(self):
        status, body = error_payload(ApprovalNotFoundError("a-9"), production=True)

        assert status == 404
        assert "a-9" in body["message"]
