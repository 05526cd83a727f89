"""Unit tests for ValidationEngine.

Run with: pytest tests/test_validation_engine.py -v
"""

import logging

import pytest

from registrations.domain import CustomField, FieldRules, FieldType, UploadedFile
from registrations.domain.errors import ValidationError
from registrations.services.validation_engine import (
    CheckboxSpec,
    FileSpec,
    SelectSpec,
    TextSpec,
    ValidationEngine,
    spec_for,
)
from tests.fakes import make_participant


def field(name: str, type: FieldType, required: bool = False, order: int = 0, **kwargs) -> CustomField:
    return CustomField(
        id=f"field-{name}",
        name=name,
        label=name.replace("_", " ").title(),
        type=type,
        required=required,
        order=order,
        **kwargs,
    )


@pytest.fixture
def engine() -> ValidationEngine:
    return ValidationEngine()


def errors_for(engine, fields, **participant):
    return engine.collect_errors(make_participant(**participant), engine.compile(fields))


class TestCompile:
    """Tests for compiling field definitions."""

    def test_validators_follow_display_order(self, engine):
        """compile sorts validators by field order."""
        validators = engine.compile(
            [field("b", FieldType.TEXT, order=2), field("a", FieldType.TEXT, order=1)]
        )
        assert [v.name for v in validators] == ["a", "b"]

    def test_textarea_maps_to_text_spec(self):
        """Text and textarea share the text rules."""
        spec = spec_for(field("bio", FieldType.TEXTAREA, rules=FieldRules(max_length=10)))
        assert spec == TextSpec(max_length=10)

    def test_select_and_file_specs(self):
        """Select keeps its options and file keeps its limits."""
        assert spec_for(field("size", FieldType.SELECT, options=("S", "M"))) == SelectSpec(
            options=("S", "M")
        )
        file_spec = spec_for(
            field("cv", FieldType.FILE, rules=FieldRules(file_types=(".pdf",), max_file_size=1024))
        )
        assert file_spec == FileSpec(file_types=(".pdf",), max_file_size=1024)
        assert spec_for(field("ok", FieldType.CHECKBOX)) == CheckboxSpec()

    def test_invalid_pattern_is_ignored_and_logged(self, caplog):
        """A broken regex leaves the field unconstrained instead of crashing."""
        with caplog.at_level(logging.WARNING, logger="registrations.services.validation_engine"):
            spec = spec_for(field("code", FieldType.TEXT, rules=FieldRules(pattern="[unclosed")))
        assert spec.pattern is None
        assert "Ignoring invalid pattern" in caplog.text


class TestBaseFields:
    """Tests for the fields every participant has."""

    def test_valid_participant_has_no_errors(self, engine):
        """A complete participant passes."""
        assert errors_for(engine, []) == {}

    def test_names_are_required(self, engine):
        """Blank first and last names are reported."""
        errors = errors_for(engine, [], first_name=" ", last_name="")
        assert errors == {
            "first_name": ["First name is required"],
            "last_name": ["Last name is required"],
        }

    def test_email_must_be_valid(self, engine):
        """An invalid email is reported."""
        assert errors_for(engine, [], email="not-an-email") == {"email": ["Invalid email address"]}

    def test_names_longer_than_storage_are_rejected(self, engine):
        """Names that would not fit the participant table are reported."""
        errors = errors_for(engine, [], first_name="A" * 256, last_name="L" * 255)
        assert errors == {"first_name": ["Maximum 255 characters allowed"]}

    def test_overlong_email_is_rejected(self, engine):
        """A syntactically valid address longer than 254 characters is reported."""
        domain = ".".join(["b" * 60] * 4) + ".com"
        email = "a" * 60 + "@" + domain
        assert len(email) > 254
        assert errors_for(engine, [], email=email) == {
            "email": ["Maximum 254 characters allowed"]
        }

    def test_phone_is_optional(self, engine):
        """A missing phone is fine."""
        assert errors_for(engine, [], phone=None) == {}

    @pytest.mark.parametrize(
        "phone", ["0123456", "+1-555-0100", "phone", "+1234567890123456", "+447700900123\n"]
    )
    def test_phone_must_match_pattern(self, engine, phone):
        """A present phone must look like an E.164 number."""
        assert errors_for(engine, [], phone=phone) == {"phone": ["Invalid phone number"]}


class TestCustomFields:
    """Tests for each custom field type."""

    def test_required_text_missing(self, engine):
        """A required text field must be non-empty."""
        errors = errors_for(engine, [field("company", FieldType.TEXT, required=True)])
        assert errors == {"custom_field_values.company": ["Company is required"]}

    def test_optional_text_missing(self, engine):
        """An optional text field may be absent."""
        assert errors_for(engine, [field("company", FieldType.TEXT)]) == {}

    def test_text_length_limits(self, engine):
        """min_length and max_length are enforced."""
        fields = [
            field("nickname", FieldType.TEXT, rules=FieldRules(min_length=3, max_length=5)),
        ]
        short = errors_for(engine, fields, custom_field_values={"nickname": "ab"})
        long = errors_for(engine, fields, custom_field_values={"nickname": "abcdef"})
        assert short == {"custom_field_values.nickname": ["Minimum 3 characters required"]}
        assert long == {"custom_field_values.nickname": ["Maximum 5 characters allowed"]}

    def test_text_pattern(self, engine):
        """A text value must match the field's pattern."""
        fields = [field("badge", FieldType.TEXT, rules=FieldRules(pattern=r"^[A-Z]{3}$"))]
        assert errors_for(engine, fields, custom_field_values={"badge": "ABC"}) == {}
        assert errors_for(engine, fields, custom_field_values={"badge": "abc"}) == {
            "custom_field_values.badge": ["Invalid format"]
        }

    def test_invalid_pattern_accepts_any_value(self, engine):
        """A field with a broken regex validates as unconstrained text."""
        fields = [field("badge", FieldType.TEXT, rules=FieldRules(pattern="(oops"))]
        assert errors_for(engine, fields, custom_field_values={"badge": "anything"}) == {}

    def test_email_field(self, engine):
        """An email custom field checks address syntax."""
        fields = [field("manager_email", FieldType.EMAIL)]
        assert errors_for(engine, fields, custom_field_values={"manager_email": "x@y"}) == {
            "custom_field_values.manager_email": ["Invalid email address"]
        }

    def test_phone_field(self, engine):
        """A phone custom field uses the phone pattern."""
        fields = [field("emergency_phone", FieldType.PHONE)]
        assert errors_for(engine, fields, custom_field_values={"emergency_phone": "+15550100"}) == {}
        assert errors_for(engine, fields, custom_field_values={"emergency_phone": "call me"}) == {
            "custom_field_values.emergency_phone": ["Invalid phone number"]
        }
        assert errors_for(
            engine, fields, custom_field_values={"emergency_phone": "+447700900123\n"}
        ) == {"custom_field_values.emergency_phone": ["Invalid phone number"]}

    def test_select_must_be_declared_option(self, engine):
        """A select value must be one of the options."""
        fields = [field("size", FieldType.SELECT, options=("S", "M", "L"))]
        assert errors_for(engine, fields, custom_field_values={"size": "M"}) == {}
        assert errors_for(engine, fields, custom_field_values={"size": "XL"}) == {
            "custom_field_values.size": ["Size must be one of: S, M, L"]
        }

    def test_required_checkbox_must_be_true(self, engine):
        """A required checkbox must be ticked."""
        fields = [field("code_of_conduct", FieldType.CHECKBOX, required=True)]
        assert errors_for(engine, fields, custom_field_values={"code_of_conduct": True}) == {}
        assert errors_for(engine, fields, custom_field_values={"code_of_conduct": False}) == {
            "custom_field_values.code_of_conduct": ["Code Of Conduct is required"]
        }

    def test_optional_checkbox_accepts_false(self, engine):
        """An optional checkbox may be false."""
        fields = [field("newsletter", FieldType.CHECKBOX)]
        assert errors_for(engine, fields, custom_field_values={"newsletter": False}) == {}

    @pytest.mark.parametrize("value", ["2026-02-28", "2026-02-28T10:00:00Z"])
    def test_date_accepts_calendar_dates(self, engine, value):
        """Dates and datetimes parse."""
        fields = [field("birth_date", FieldType.DATE)]
        assert errors_for(engine, fields, custom_field_values={"birth_date": value}) == {}

    @pytest.mark.parametrize("value", ["2026-02-30", "yesterday", "28/02/2026"])
    def test_date_rejects_invalid_values(self, engine, value):
        """Impossible or unparseable dates are reported."""
        fields = [field("birth_date", FieldType.DATE)]
        assert errors_for(engine, fields, custom_field_values={"birth_date": value}) == {
            "custom_field_values.birth_date": ["Invalid date"]
        }

    def test_required_file_needs_a_reference(self, engine):
        """A required file field is satisfied by an uploaded file for that field."""
        cv = field("cv", FieldType.FILE, required=True)
        missing = errors_for(engine, [cv])
        uploaded = errors_for(
            engine,
            [cv],
            uploaded_files=(
                UploadedFile(
                    id="f1",
                    field_id=cv.id,
                    file_name="cv.pdf",
                    file_url="https://files.example.com/cv.pdf",
                    file_size=2048,
                    mime_type="application/pdf",
                ),
            ),
        )
        assert missing == {"custom_field_values.cv": ["Cv is required"]}
        assert uploaded == {}

    def test_prefix_is_applied_to_every_key(self, engine):
        """Errors are namespaced by the caller's prefix."""
        validators = engine.compile([field("company", FieldType.TEXT, required=True)])
        errors = engine.collect_errors(
            make_participant(email="bad"), validators, prefix="additional_participants.0."
        )
        assert set(errors) == {
            "additional_participants.0.email",
            "additional_participants.0.custom_field_values.company",
        }


class TestValidate:
    """Tests for validate()."""

    def test_returns_participant_with_stripped_names(self, engine):
        """A valid participant is returned with a fresh id."""
        participant = engine.validate(make_participant(first_name=" Ada "), [])
        assert participant.first_name == "Ada"
        assert participant.id is not None

    def test_raises_with_all_errors(self, engine):
        """Every failing field is reported at once."""
        with pytest.raises(ValidationError) as exc_info:
            engine.validate(make_participant(first_name="", email="nope"), [])
        assert set(exc_info.value.field_errors) == {"first_name", "email"}
