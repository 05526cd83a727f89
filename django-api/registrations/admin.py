from django.contrib import admin, messages

from registrations.domain import RegistrationStatus
from registrations.domain.errors import DomainError
from registrations.models import (
    CustomField,
    FormConfig,
    Participant,
    Registration,
    RegistrationTicket,
    TicketType,
)
from registrations.services.factory import build_registration_service


class CustomFieldInline(admin.TabularInline):
    model = CustomField
    extra = 1


class ParticipantInline(admin.TabularInline):
    model = Participant
    extra = 0
    can_delete = False
    readonly_fields = [
        "position",
        "first_name",
        "last_name",
        "email",
        "phone",
        "custom_field_values",
        "uploaded_files",
    ]

    def has_add_permission(self, request, obj=None) -> bool:
        return False


class RegistrationTicketInline(admin.TabularInline):
    model = RegistrationTicket
    extra = 0
    can_delete = False
    readonly_fields = ["ticket_type", "quantity", "unit_price"]

    def has_add_permission(self, request, obj=None) -> bool:
        return False


@admin.register(FormConfig)
class FormConfigAdmin(admin.ModelAdmin):
    list_display = ["title", "event_id", "requires_approval", "is_active", "updated_at"]
    list_filter = ["is_active", "requires_approval"]
    search_fields = ["title", "event_id"]
    inlines = [CustomFieldInline]


@admin.register(TicketType)
class TicketTypeAdmin(admin.ModelAdmin):
    list_display = ["name", "event_id", "price", "max_quantity", "available_quantity", "is_active"]
    list_filter = ["is_active"]
    search_fields = ["name", "event_id"]
    # Capacity changes go through the inventory service only.
    readonly_fields = ["available_quantity"]


def _apply_status(modeladmin, request, queryset, status: str) -> None:
    service = build_registration_service()
    for registration in queryset:
        try:
            service.update_status(
                str(registration.pk), status, approved_by=request.user.get_username()
            )
        except DomainError as exc:
            modeladmin.message_user(
                request, f"{registration.confirmation_code}: {exc.message}", messages.ERROR
            )
        else:
            modeladmin.message_user(
                request, f"{registration.confirmation_code}: {status}", messages.SUCCESS
            )


@admin.action(description="Confirm selected registrations")
def confirm_registrations(modeladmin, request, queryset):
    _apply_status(modeladmin, request, queryset, RegistrationStatus.CONFIRMED.value)


@admin.action(description="Cancel selected registrations")
def cancel_registrations(modeladmin, request, queryset):
    _apply_status(modeladmin, request, queryset, RegistrationStatus.CANCELLED.value)


@admin.register(Registration)
class RegistrationAdmin(admin.ModelAdmin):
    """Registrations are created by submission and change status through actions only."""

    list_display = [
        "confirmation_code",
        "event_id",
        "status",
        "payment_status",
        "total_amount",
        "registration_date",
    ]
    list_filter = ["status", "payment_status"]
    search_fields = ["confirmation_code", "event_id", "participants__email"]
    readonly_fields = [
        "event_id",
        "form_config",
        "status",
        "payment_status",
        "payment_id",
        "total_amount",
        "confirmation_code",
        "notes",
        "marketing_opt_in",
        "registration_date",
        "approved_at",
        "approved_by",
        "created_at",
        "updated_at",
    ]
    inlines = [ParticipantInline, RegistrationTicketInline]
    actions = [confirm_registrations, cancel_registrations]

    def has_add_permission(self, request) -> bool:
        return False
