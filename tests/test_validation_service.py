"""Tests for registration submission validation"""

import pytest

from paper_intake.errors import ValidationFailure, Violation
from paper_intake.models.choices import FormType, ReceiptPreference
from paper_intake.services.validation_service import (
    ValidationEngine,
    check_unknown_fields,
    conditional_requirement,
    is_valid_email,
)
from tests.config import EMAIL_RECEIPT_SUBMISSION, OTHER_FORM_SUBMISSION


def _fields(exc_info) -> set[str]:
    return {v.field for v in exc_info.value.violations}


class TestValidationEngine:
    """Test base, enum and cross-field rules"""

    def setup_method(self):
        self.engine = ValidationEngine()

    def test_minimal_submission_passes(self, valid_submission):
        result = self.engine.validate(valid_submission)

        assert result.form_type == FormType.AD01
        assert result.pen_colour_not_used.value == "BLUE"
        assert result.guidance_read.value == "YES"
        assert result.form_type_other_text is None
        assert result.receipt_preference is None

    @pytest.mark.parametrize("missing", ["formType", "penColourNotUsed", "guidanceRead"])
    def test_missing_required_field_fails(self, valid_submission, missing):
        del valid_submission[missing]

        with pytest.raises(ValidationFailure) as exc_info:
            self.engine.validate(valid_submission)

        assert Violation(missing, "is required") in exc_info.value.violations

    def test_null_required_field_counts_as_missing(self, valid_submission):
        valid_submission["guidanceRead"] = None

        with pytest.raises(ValidationFailure) as exc_info:
            self.engine.validate(valid_submission)

        assert exc_info.value.violations == [Violation("guidanceRead", "is required")]

    @pytest.mark.parametrize(
        "field,value",
        [
            ("formType", "AD02"),
            ("penColourNotUsed", "INVALID_COLOR"),
            ("guidanceRead", "MAYBE"),
            ("receiptPreference", "post"),
        ],
    )
    def test_unknown_enum_value_fails(self, valid_submission, field, value):
        valid_submission[field] = value

        with pytest.raises(ValidationFailure) as exc_info:
            self.engine.validate(valid_submission)

        assert _fields(exc_info) == {field}
        assert exc_info.value.violations[0].reason.startswith("must be one of: ")

    def test_enum_values_are_case_sensitive(self, valid_submission):
        valid_submission["penColourNotUsed"] = "blue"

        with pytest.raises(ValidationFailure):
            self.engine.validate(valid_submission)

    def test_other_form_type_requires_text(self):
        submission = dict(OTHER_FORM_SUBMISSION)
        del submission["formTypeOtherText"]

        with pytest.raises(ValidationFailure) as exc_info:
            self.engine.validate(submission)

        assert exc_info.value.violations == [
            Violation("formTypeOtherText", "is required when formType is OTHER")
        ]

    @pytest.mark.parametrize("blank", ["", None])
    def test_other_form_type_rejects_blank_text(self, blank):
        submission = dict(OTHER_FORM_SUBMISSION, formTypeOtherText=blank)

        with pytest.raises(ValidationFailure) as exc_info:
            self.engine.validate(submission)

        assert _fields(exc_info) == {"formTypeOtherText"}

    def test_other_form_type_with_text_passes(self):
        result = self.engine.validate(dict(OTHER_FORM_SUBMISSION))

        assert result.form_type == FormType.OTHER
        assert result.form_type_other_text == "Custom Form Type"

    def test_other_text_is_dropped_for_listed_form_types(self, valid_submission):
        valid_submission["formTypeOtherText"] = "not needed"

        result = self.engine.validate(valid_submission)

        assert result.form_type_other_text is None

    def test_email_preference_requires_address(self):
        submission = dict(EMAIL_RECEIPT_SUBMISSION)
        del submission["emailAddress"]

        with pytest.raises(ValidationFailure) as exc_info:
            self.engine.validate(submission)

        assert exc_info.value.violations == [
            Violation("emailAddress", "is required when receiptPreference is email")
        ]

    @pytest.mark.parametrize(
        "address",
        [
            "not-an-email",
            "jane@",
            "@example.com",
            "jane doe@example.com",
            "jane@example.com\n",
        ],
    )
    def test_email_preference_rejects_malformed_address(self, address):
        submission = dict(EMAIL_RECEIPT_SUBMISSION, emailAddress=address)

        with pytest.raises(ValidationFailure) as exc_info:
            self.engine.validate(submission)

        assert exc_info.value.violations == [
            Violation("emailAddress", "must be a valid email address")
        ]

    def test_email_preference_with_address_passes(self):
        result = self.engine.validate(dict(EMAIL_RECEIPT_SUBMISSION))

        assert result.receipt_preference == ReceiptPreference.EMAIL
        assert result.email_address == "jane.doe@example.com"
        assert result.mobile_phone_number is None

    def test_phone_preference_requires_number(self, valid_submission):
        valid_submission["receiptPreference"] = "phone"

        with pytest.raises(ValidationFailure) as exc_info:
            self.engine.validate(valid_submission)

        assert exc_info.value.violations == [
            Violation("mobilePhoneNumber", "is required when receiptPreference is phone")
        ]

    def test_phone_preference_rejects_empty_number(self, valid_submission):
        valid_submission.update(receiptPreference="phone", mobilePhoneNumber="")

        with pytest.raises(ValidationFailure) as exc_info:
            self.engine.validate(valid_submission)

        assert _fields(exc_info) == {"mobilePhoneNumber"}

    def test_phone_number_format_is_unconstrained(self, valid_submission):
        valid_submission.update(receiptPreference="phone", mobilePhoneNumber="call me")

        result = self.engine.validate(valid_submission)

        assert result.mobile_phone_number == "call me"

    def test_no_receipt_preference_requires_no_contact(self, valid_submission):
        valid_submission["receiptPreference"] = "none"

        result = self.engine.validate(valid_submission)

        assert result.receipt_preference == ReceiptPreference.NONE
        assert result.email_address is None

    def test_null_receipt_preference_is_allowed(self, valid_submission):
        valid_submission["receiptPreference"] = None

        assert self.engine.validate(valid_submission).receipt_preference is None

    def test_contact_fields_are_dropped_when_not_selected(self, valid_submission):
        valid_submission.update(
            receiptPreference="phone",
            mobilePhoneNumber="07700 900123",
            emailAddress="jane@example.com",
        )

        result = self.engine.validate(valid_submission)

        assert result.mobile_phone_number == "07700 900123"
        assert result.email_address is None

    def test_malformed_email_fails_even_without_email_preference(self, valid_submission):
        valid_submission["emailAddress"] = "nope"

        with pytest.raises(ValidationFailure) as exc_info:
            self.engine.validate(valid_submission)

        assert _fields(exc_info) == {"emailAddress"}

    def test_unknown_field_fails_regardless_of_other_fields(self, valid_submission):
        valid_submission["unknownProperty"] = "This should not be here"

        with pytest.raises(ValidationFailure) as exc_info:
            self.engine.validate(valid_submission)

        assert exc_info.value.violations == [
            Violation("unknownProperty", "is not an allowed field")
        ]

    def test_snake_case_field_names_are_unknown(self, valid_submission):
        valid_submission["receipt_preference"] = "none"

        with pytest.raises(ValidationFailure) as exc_info:
            self.engine.validate(valid_submission)

        assert _fields(exc_info) == {"receipt_preference"}

    def test_every_violation_is_reported(self):
        submission = {
            "formType": "OTHER",
            "penColourNotUsed": "PURPLE",
            "receiptPreference": "email",
            "extra": 1,
        }

        with pytest.raises(ValidationFailure) as exc_info:
            self.engine.validate(submission)

        assert _fields(exc_info) == {
            "extra",
            "guidanceRead",
            "penColourNotUsed",
            "formTypeOtherText",
            "emailAddress",
        }

    def test_empty_submission_reports_all_required_fields(self):
        violations = self.engine.collect_violations({})

        assert violations == [
            Violation("formType", "is required"),
            Violation("penColourNotUsed", "is required"),
            Violation("guidanceRead", "is required"),
        ]

    def test_non_string_values_are_rejected(self, valid_submission):
        valid_submission.update(formType=1, mobilePhoneNumber=7700900123)

        with pytest.raises(ValidationFailure) as exc_info:
            self.engine.validate(valid_submission)

        assert set(exc_info.value.violations) == {
            Violation("formType", "must be a string"),
            Violation("mobilePhoneNumber", "must be a string"),
        }

    @pytest.mark.parametrize("body", [[], "AD01", 42, None])
    def test_non_object_input_fails(self, body):
        with pytest.raises(ValidationFailure) as exc_info:
            self.engine.validate(body)

        assert exc_info.value.violations == [Violation("(root)", "must be a JSON object")]

    def test_validation_does_not_mutate_input(self, valid_submission):
        valid_submission["formTypeOtherText"] = "kept"
        snapshot = dict(valid_submission)

        self.engine.validate(valid_submission)

        assert valid_submission == snapshot


class TestValidationChecks:
    """Test the individual checks the engine is composed from"""

    def test_engine_runs_only_given_checks(self):
        engine = ValidationEngine(checks=[check_unknown_fields])

        assert engine.collect_violations({"bogus": True}) == [
            Violation("bogus", "is not an allowed field")
        ]
        assert engine.collect_violations({}) == []

    def test_conditional_requirement_only_fires_on_trigger(self):
        check = conditional_requirement("receiptPreference", "phone", "mobilePhoneNumber")

        assert check({"receiptPreference": "email"}) == []
        assert check({"receiptPreference": "phone", "mobilePhoneNumber": "1"}) == []
        assert check({"receiptPreference": "phone"}) == [
            Violation("mobilePhoneNumber", "is required when receiptPreference is phone")
        ]

    def test_duplicate_violations_are_collapsed(self):
        engine = ValidationEngine(checks=[check_unknown_fields, check_unknown_fields])

        assert len(engine.collect_violations({"bogus": 1})) == 1

    @pytest.mark.parametrize(
        "address,expected",
        [
            ("jane.doe@example.com", True),
            ("first+tag@sub.example.co.uk", True),
            ("UPPER@EXAMPLE.COM", True),
            ("no-at-sign.example.com", False),
            ("two@@example.com", False),
            ("trailing@example.", False),
            ("jane@example.com\n", False),
            ("\njane@example.com", False),
        ],
    )
    def test_email_grammar(self, address, expected):
        assert is_valid_email(address) is expected
