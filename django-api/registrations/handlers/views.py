"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Map domain errors to HTTP responses
- Never contain business logic
- Never expose internal error details
"""

from django.core.cache import cache
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from registrations.cache_keys import (
    event_list_key,
    event_summary_key,
    registration_key,
)
from registrations.conf import get_setting
from registrations.domain.errors import (
    DomainError,
    ErrorCode,
    InsufficientInventoryError,
    TicketSalesClosedError,
    ValidationError,
)
from registrations.handlers.serializers import (
    RegistrationFormDataSerializer,
    RegistrationSerializer,
    RegistrationSummarySerializer,
    StatusUpdateSerializer,
    SubmissionResultSerializer,
)
from registrations.services.factory import build_registration_service

ERROR_STATUS = {
    ErrorCode.VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.FORM_NOT_ACTIVE: status.HTTP_404_NOT_FOUND,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INSUFFICIENT_INVENTORY: status.HTTP_409_CONFLICT,
    ErrorCode.TICKET_SALES_CLOSED: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_STATUS_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorCode.DUPLICATE_CONFIRMATION_CODE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.PERSISTENCE_FAILED: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.STORE_TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
}


def error_response(error: DomainError) -> Response:
    body: dict = {"code": error.code.value, "message": error.message}
    if isinstance(error, ValidationError):
        body["field_errors"] = error.field_errors
    if isinstance(error, (InsufficientInventoryError, TicketSalesClosedError)):
        body["ticket_type_id"] = error.ticket_type_id
    return Response({"error": body}, status=ERROR_STATUS[error.code])


def invalid_payload_response(errors: dict) -> Response:
    return Response(
        {
            "error": {
                "code": ErrorCode.VALIDATION_FAILED.value,
                "message": "Request body is malformed",
                "field_errors": errors,
            }
        },
        status=status.HTTP_400_BAD_REQUEST,
    )


class EventRegistrationsView(APIView):
    """Handler for POST/GET /api/events/{event_id}/registrations"""

    def post(self, request: Request, event_id: str) -> Response:
        serializer = RegistrationFormDataSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_payload_response(serializer.errors)
        try:
            result = build_registration_service().submit(event_id, serializer.to_form_data())
        except DomainError as error:
            return error_response(error)
        return Response(SubmissionResultSerializer(result).data, status=status.HTTP_201_CREATED)

    def get(self, request: Request, event_id: str) -> Response:
        key = event_list_key(event_id)
        data = cache.get(key)
        if data is None:
            try:
                registrations = build_registration_service().list_event_registrations(event_id)
            except DomainError as error:
                return error_response(error)
            data = RegistrationSerializer(registrations, many=True).data
            cache.set(key, data, get_setting("CACHE_TIMEOUT"))
        return Response(data)


class RegistrationSummaryView(APIView):
    """Handler for GET /api/events/{event_id}/registrations/summary"""

    def get(self, request: Request, event_id: str) -> Response:
        key = event_summary_key(event_id)
        data = cache.get(key)
        if data is None:
            try:
                summary = build_registration_service().get_summary(event_id)
            except DomainError as error:
                return error_response(error)
            data = RegistrationSummarySerializer(summary).data
            cache.set(key, data, get_setting("CACHE_TIMEOUT"))
        return Response(data)


class RegistrationDetailView(APIView):
    """Handler for GET /api/registrations/{registration_id}"""

    def get(self, request: Request, registration_id: str) -> Response:
        key = registration_key(registration_id)
        data = cache.get(key)
        if data is None:
            try:
                registration = build_registration_service().get_registration(registration_id)
            except DomainError as error:
                return error_response(error)
            data = RegistrationSerializer(registration).data
            cache.set(key, data, get_setting("CACHE_TIMEOUT"))
        return Response(data)


class RegistrationStatusView(APIView):
    """Handler for PATCH /api/registrations/{registration_id}/status"""

    def patch(self, request: Request, registration_id: str) -> Response:
        serializer = StatusUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_payload_response(serializer.errors)
        data = serializer.validated_data
        try:
            registration = build_registration_service().update_status(
                registration_id,
                data["status"],
                data.get("payment_status"),
                approved_by=data["approved_by"],
            )
        except DomainError as error:
            return error_response(error)
        return Response(RegistrationSerializer(registration).data)


class RegistrationByCodeView(APIView):
    """Handler for GET /api/registrations/by-code/{confirmation_code}"""

    def get(self, request: Request, confirmation_code: str) -> Response:
        try:
            registration = build_registration_service().get_registration_by_code(
                confirmation_code
            )
        except DomainError as error:
            return error_response(error)
        return Response(RegistrationSerializer(registration).data)
