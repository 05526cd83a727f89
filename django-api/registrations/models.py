"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
"""

import uuid

from django.db import models

from registrations.domain import FieldType, PaymentStatus, RegistrationStatus


def _choices(enum_cls) -> list[tuple[str, str]]:
    return [(member.value, member.value.title()) for member in enum_cls]


class FormConfig(models.Model):
    """Persistence model for an event's registration form."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event_id = models.UUIDField(db_index=True)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    allow_group_registration = models.BooleanField(default=False)
    max_group_size = models.PositiveIntegerField(blank=True, null=True)
    requires_approval = models.BooleanField(default=False)
    confirmation_message = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-updated_at"]
        indexes = [
            models.Index(fields=["event_id", "is_active"], name="form_config_event_active_idx"),
        ]

    def __str__(self) -> str:
        return self.title


class CustomField(models.Model):
    """Persistence model for a form's custom field definition."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    form_config = models.ForeignKey(
        FormConfig, on_delete=models.CASCADE, related_name="custom_fields"
    )
    name = models.CharField(max_length=100)
    label = models.CharField(max_length=255)
    field_type = models.CharField(max_length=20, choices=_choices(FieldType))
    required = models.BooleanField(default=False)
    placeholder = models.CharField(max_length=255, blank=True)
    options = models.JSONField(default=list, blank=True)
    min_length = models.PositiveIntegerField(blank=True, null=True)
    max_length = models.PositiveIntegerField(blank=True, null=True)
    pattern = models.CharField(max_length=500, blank=True)
    file_types = models.JSONField(default=list, blank=True)
    max_file_size = models.PositiveIntegerField(blank=True, null=True)
    order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["order"]
        constraints = [
            models.UniqueConstraint(
                fields=["form_config", "name"], name="unique_custom_field_name"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.label} ({self.field_type})"


class TicketType(models.Model):
    """Persistence model for ticket types.

    available_quantity is only written through conditional UPDATE
    statements in DjangoTicketInventoryStore.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event_id = models.UUIDField(db_index=True)
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    max_quantity = models.PositiveIntegerField()
    available_quantity = models.PositiveIntegerField()
    is_active = models.BooleanField(default=True)
    sales_start_date = models.DateTimeField(blank=True, null=True)
    sales_end_date = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["event_id", "is_active"], name="ticket_type_event_active_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(max_quantity__gte=1),
                name="ticket_type_max_quantity_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(available_quantity__lte=models.F("max_quantity")),
                name="ticket_type_available_lte_max",
            ),
        ]

    def save(self, *args, **kwargs):
        if self._state.adding and self.available_quantity is None:
            self.available_quantity = self.max_quantity
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.name} - {self.price}"


class Registration(models.Model):
    """Persistence model for registrations."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event_id = models.UUIDField(db_index=True)
    form_config = models.ForeignKey(
        FormConfig, on_delete=models.PROTECT, related_name="registrations"
    )
    total_amount = models.DecimalField(max_digits=10, decimal_places=2)
    status = models.CharField(max_length=20, choices=_choices(RegistrationStatus))
    payment_status = models.CharField(max_length=20, choices=_choices(PaymentStatus))
    payment_id = models.CharField(max_length=255, blank=True)
    confirmation_code = models.CharField(max_length=8, unique=True)
    notes = models.TextField(blank=True)
    marketing_opt_in = models.BooleanField(default=False)
    registration_date = models.DateTimeField()
    approved_at = models.DateTimeField(blank=True, null=True)
    approved_by = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-registration_date"]
        indexes = [
            models.Index(fields=["event_id", "-registration_date"], name="registration_event_date_idx"),
        ]

    def __str__(self) -> str:
        return self.confirmation_code


class Participant(models.Model):
    """Persistence model for a registration's participants.

    Position 0 is the primary participant.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    registration = models.ForeignKey(
        Registration, on_delete=models.CASCADE, related_name="participants"
    )
    position = models.PositiveSmallIntegerField()
    first_name = models.CharField(max_length=255)
    last_name = models.CharField(max_length=255)
    email = models.EmailField()
    phone = models.CharField(max_length=32, blank=True)
    custom_field_values = models.JSONField(default=dict, blank=True)
    uploaded_files = models.JSONField(default=list, blank=True)

    class Meta:
        ordering = ["position"]
        constraints = [
            models.UniqueConstraint(
                fields=["registration", "position"], name="unique_participant_position"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.first_name} {self.last_name}"


class RegistrationTicket(models.Model):
    """Persistence model for a ticket selection with its price snapshot."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    registration = models.ForeignKey(
        Registration, on_delete=models.CASCADE, related_name="ticket_selections"
    )
    ticket_type = models.ForeignKey(
        TicketType, on_delete=models.PROTECT, related_name="registration_tickets"
    )
    position = models.PositiveSmallIntegerField(default=0)
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)

    class Meta:
        ordering = ["position"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="registration_ticket_quantity_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.quantity} x {self.ticket_type_id}"
