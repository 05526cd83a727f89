"""Serializers for request parsing and domain-to-response transformation."""

from rest_framework import serializers

from registrations.domain import (
    ParticipantData,
    PaymentStatus,
    RegistrationFormData,
    RegistrationStatus,
    TicketRequest,
    UploadedFile,
)


class UploadedFileSerializer(serializers.Serializer):
    """Reference to a file already stored by the upload service."""

    id = serializers.CharField()
    field_id = serializers.CharField()
    file_name = serializers.CharField()
    file_url = serializers.URLField()
    file_size = serializers.IntegerField(min_value=0)
    mime_type = serializers.CharField()
    uploaded_at = serializers.DateTimeField(required=False, allow_null=True)


class ParticipantInputSerializer(serializers.Serializer):
    """Shape-only checks; field rules are applied by the ValidationEngine."""

    first_name = serializers.CharField(allow_blank=True, trim_whitespace=False)
    last_name = serializers.CharField(allow_blank=True, trim_whitespace=False)
    email = serializers.CharField(allow_blank=True)
    phone = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    custom_field_values = serializers.DictField(required=False, default=dict)
    uploaded_files = UploadedFileSerializer(many=True, required=False, default=list)


class TicketRequestSerializer(serializers.Serializer):
    ticket_type_id = serializers.CharField()
    quantity = serializers.IntegerField()


class RegistrationFormDataSerializer(serializers.Serializer):
    """Parses a submission payload into RegistrationFormData."""

    primary_participant = ParticipantInputSerializer()
    additional_participants = ParticipantInputSerializer(many=True, required=False, default=list)
    ticket_selections = TicketRequestSerializer(many=True, allow_empty=True)
    agree_to_terms = serializers.BooleanField(default=False)
    marketing_opt_in = serializers.BooleanField(default=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def to_form_data(self) -> RegistrationFormData:
        data = self.validated_data
        return RegistrationFormData(
            primary_participant=_participant_data(data["primary_participant"]),
            additional_participants=tuple(
                _participant_data(p) for p in data["additional_participants"]
            ),
            ticket_selections=tuple(
                TicketRequest(ticket_type_id=t["ticket_type_id"], quantity=t["quantity"])
                for t in data["ticket_selections"]
            ),
            agree_to_terms=data["agree_to_terms"],
            marketing_opt_in=data["marketing_opt_in"],
            notes=data["notes"],
        )


def _participant_data(data: dict) -> ParticipantData:
    return ParticipantData(
        first_name=data["first_name"],
        last_name=data["last_name"],
        email=data["email"],
        phone=data.get("phone") or None,
        custom_field_values=data["custom_field_values"],
        uploaded_files=tuple(UploadedFile(**f) for f in data["uploaded_files"]),
    )


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[s.value for s in RegistrationStatus])
    payment_status = serializers.ChoiceField(
        choices=[s.value for s in PaymentStatus], required=False, allow_null=True
    )
    approved_by = serializers.CharField(
        required=False, allow_blank=True, default="", max_length=255
    )


class SubmissionResultSerializer(serializers.Serializer):
    registration_id = serializers.CharField(source="registration_id.value")
    confirmation_code = serializers.CharField(source="confirmation_code.value")


class ParticipantSerializer(serializers.Serializer):
    """Serializer for Participant domain model."""

    id = serializers.UUIDField(source="id.value")
    first_name = serializers.CharField()
    last_name = serializers.CharField()
    email = serializers.CharField()
    phone = serializers.CharField(allow_null=True)
    custom_field_values = serializers.DictField()
    uploaded_files = UploadedFileSerializer(many=True)


class TicketSelectionSerializer(serializers.Serializer):
    """Serializer for TicketSelection domain model."""

    ticket_type_id = serializers.UUIDField(source="ticket_type_id.value")
    quantity = serializers.IntegerField()
    unit_price = serializers.DecimalField(
        source="unit_price.amount", max_digits=10, decimal_places=2
    )


class RegistrationSerializer(serializers.Serializer):
    """Serializer for Registration domain model."""

    id = serializers.UUIDField(source="id.value")
    event_id = serializers.UUIDField(source="event_id.value")
    form_config_id = serializers.UUIDField(source="form_config_id.value")
    primary_participant = ParticipantSerializer()
    additional_participants = ParticipantSerializer(many=True)
    ticket_selections = TicketSelectionSerializer(many=True)
    total_amount = serializers.DecimalField(
        source="total_amount.amount", max_digits=10, decimal_places=2
    )
    status = serializers.CharField(source="status.value")
    payment_status = serializers.CharField(source="payment_status.value")
    confirmation_code = serializers.CharField(source="confirmation_code.value")
    registration_date = serializers.DateTimeField()
    approved_at = serializers.DateTimeField(allow_null=True)
    approved_by = serializers.CharField(allow_blank=True)
    notes = serializers.CharField(allow_blank=True)
    marketing_opt_in = serializers.BooleanField()
    created_at = serializers.DateTimeField(allow_null=True)
    updated_at = serializers.DateTimeField(allow_null=True)


class RegistrationSummarySerializer(serializers.Serializer):
    """Serializer for RegistrationSummary domain model."""

    total_registrations = serializers.IntegerField()
    confirmed_registrations = serializers.IntegerField()
    pending_registrations = serializers.IntegerField()
    cancelled_registrations = serializers.IntegerField()
    waitlisted_registrations = serializers.IntegerField()
    total_revenue = serializers.DecimalField(
        source="total_revenue.amount", max_digits=12, decimal_places=2
    )
    tickets_sold = serializers.DictField(child=serializers.IntegerField())
    registrations_by_date = serializers.DictField(child=serializers.IntegerField())
