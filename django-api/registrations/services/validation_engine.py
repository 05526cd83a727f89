"""Validation of submitted participants against event field definitions.

Field definitions are compiled into a closed set of rule variants,
one per field type, and each variant has exactly one check function.
"""

import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from django.utils.dateparse import parse_date, parse_datetime

from registrations.domain import (
    CustomField,
    FieldType,
    Participant,
    ParticipantData,
    ParticipantId,
)
from registrations.domain.errors import ValidationError

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r"\+?[1-9]\d{0,14}")
NAME_MAX_LENGTH = 255
EMAIL_MAX_LENGTH = 254

FieldErrors = dict[str, list[str]]


@dataclass(frozen=True)
class TextSpec:
    min_length: int | None = None
    max_length: int | None = None
    pattern: re.Pattern[str] | None = None


@dataclass(frozen=True)
class EmailSpec:
    pass


@dataclass(frozen=True)
class PhoneSpec:
    pass


@dataclass(frozen=True)
class SelectSpec:
    options: tuple[str, ...] = ()


@dataclass(frozen=True)
class CheckboxSpec:
    pass


@dataclass(frozen=True)
class DateSpec:
    pass


@dataclass(frozen=True)
class FileSpec:
    """File type and size limits are enforced by the upload collaborator."""

    file_types: tuple[str, ...] = ()
    max_file_size: int | None = None


FieldSpec = TextSpec | EmailSpec | PhoneSpec | SelectSpec | CheckboxSpec | DateSpec | FileSpec


@dataclass(frozen=True)
class FieldValidator:
    """A compiled custom field: what to check and how to report it."""

    field_id: str
    name: str
    label: str
    required: bool
    spec: FieldSpec


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _check_text(spec: TextSpec, label: str, value: Any) -> list[str]:
    if not isinstance(value, str):
        return [f"{label} must be text"]
    errors = []
    if spec.min_length and len(value) < spec.min_length:
        errors.append(f"Minimum {spec.min_length} characters required")
    if spec.max_length and len(value) > spec.max_length:
        errors.append(f"Maximum {spec.max_length} characters allowed")
    if spec.pattern is not None and not spec.pattern.search(value):
        errors.append("Invalid format")
    return errors


def _check_max_length(value: str, limit: int) -> list[str]:
    if len(value) > limit:
        return [f"Maximum {limit} characters allowed"]
    return []


def _check_email(spec: EmailSpec, label: str, value: Any) -> list[str]:
    if not isinstance(value, str):
        return ["Invalid email address"]
    try:
        validate_email(value)
    except DjangoValidationError:
        return ["Invalid email address"]
    return []


def _check_phone(spec: PhoneSpec, label: str, value: Any) -> list[str]:
    if not isinstance(value, str) or not PHONE_PATTERN.fullmatch(value):
        return ["Invalid phone number"]
    return []


def _check_select(spec: SelectSpec, label: str, value: Any) -> list[str]:
    if not isinstance(value, str):
        return [f"{label} must be one of the listed options"]
    if spec.options and value not in spec.options:
        return [f"{label} must be one of: {', '.join(spec.options)}"]
    return []


def _check_checkbox(spec: CheckboxSpec, label: str, value: Any) -> list[str]:
    if not isinstance(value, bool):
        return [f"{label} must be true or false"]
    return []


def _check_date(spec: DateSpec, label: str, value: Any) -> list[str]:
    if isinstance(value, date):
        return []
    if isinstance(value, str):
        try:
            if parse_date(value) or parse_datetime(value):
                return []
        except ValueError:
            # well formatted but not a real calendar date, e.g. 2024-02-30
            pass
    return ["Invalid date"]


def _check_file(spec: FileSpec, label: str, value: Any) -> list[str]:
    return []


_CHECKS: dict[type, Callable[[Any, str, Any], list[str]]] = {
    TextSpec: _check_text,
    EmailSpec: _check_email,
    PhoneSpec: _check_phone,
    SelectSpec: _check_select,
    CheckboxSpec: _check_checkbox,
    DateSpec: _check_date,
    FileSpec: _check_file,
}


def _compile_pattern(field: CustomField) -> re.Pattern[str] | None:
    if not field.rules.pattern:
        return None
    try:
        return re.compile(field.rules.pattern)
    except re.error:
        logger.warning(
            "Ignoring invalid pattern on custom field",
            extra={"field_id": field.id, "field_name": field.name, "pattern": field.rules.pattern},
        )
        return None


def spec_for(field: CustomField) -> FieldSpec:
    """Map a field definition to its validation spec."""
    if field.type in (FieldType.TEXT, FieldType.TEXTAREA):
        return TextSpec(
            min_length=field.rules.min_length,
            max_length=field.rules.max_length,
            pattern=_compile_pattern(field),
        )
    if field.type is FieldType.EMAIL:
        return EmailSpec()
    if field.type is FieldType.PHONE:
        return PhoneSpec()
    if field.type is FieldType.SELECT:
        return SelectSpec(options=tuple(field.options))
    if field.type is FieldType.CHECKBOX:
        return CheckboxSpec()
    if field.type is FieldType.DATE:
        return DateSpec()
    return FileSpec(file_types=field.rules.file_types, max_file_size=field.rules.max_file_size)


class ValidationEngine:
    """Compiles field definitions and validates participants against them."""

    def compile(self, fields: list[CustomField] | tuple[CustomField, ...]) -> list[FieldValidator]:
        ordered = sorted(fields, key=lambda f: f.order)
        return [
            FieldValidator(
                field_id=field.id,
                name=field.name,
                label=field.label,
                required=field.required,
                spec=spec_for(field),
            )
            for field in ordered
        ]

    def collect_errors(
        self,
        participant: ParticipantData,
        validators: list[FieldValidator],
        prefix: str = "",
    ) -> FieldErrors:
        """Return every field error for a participant, keyed by dotted path."""
        errors: FieldErrors = {}

        def add(path: str, messages: list[str]) -> None:
            if messages:
                errors.setdefault(f"{prefix}{path}", []).extend(messages)

        for name, label in (("first_name", "First name"), ("last_name", "Last name")):
            value = getattr(participant, name)
            if _is_blank(value):
                add(name, [f"{label} is required"])
            else:
                add(name, _check_max_length(value.strip(), NAME_MAX_LENGTH))
        email_errors = _check_email(EmailSpec(), "Email", participant.email)
        if not email_errors:
            email_errors = _check_max_length(participant.email.strip(), EMAIL_MAX_LENGTH)
        add("email", email_errors)
        if not _is_blank(participant.phone):
            add("phone", _check_phone(PhoneSpec(), "Phone", participant.phone))

        values: Mapping[str, Any] = participant.custom_field_values or {}
        for validator in validators:
            path = f"custom_field_values.{validator.name}"
            add(path, self._check_field(validator, participant, values.get(validator.name)))

        return errors

    def validate(
        self, participant: ParticipantData, validators: list[FieldValidator]
    ) -> Participant:
        """Return a validated Participant.

        Raises:
            ValidationError: If any base or custom field fails.
        """
        errors = self.collect_errors(participant, validators)
        if errors:
            raise ValidationError(errors)
        return self.accept(participant)

    def accept(self, participant: ParticipantData) -> Participant:
        """Turn already-validated participant data into a Participant."""
        return Participant(
            id=ParticipantId.new(),
            first_name=participant.first_name.strip(),
            last_name=participant.last_name.strip(),
            email=participant.email.strip(),
            phone=participant.phone or None,
            custom_field_values=dict(participant.custom_field_values or {}),
            uploaded_files=tuple(participant.uploaded_files),
        )

    def _check_field(
        self, validator: FieldValidator, participant: ParticipantData, value: Any
    ) -> list[str]:
        if isinstance(validator.spec, FileSpec):
            has_upload = any(f.field_id == validator.field_id for f in participant.uploaded_files)
            if validator.required and _is_blank(value) and not has_upload:
                return [f"{validator.label} is required"]
            return []

        if isinstance(validator.spec, CheckboxSpec):
            if validator.required and value is not True:
                return [f"{validator.label} is required"]
            if value is None:
                return []
            return _check_checkbox(validator.spec, validator.label, value)

        if _is_blank(value):
            return [f"{validator.label} is required"] if validator.required else []
        return _CHECKS[type(validator.spec)](validator.spec, validator.label, value)
