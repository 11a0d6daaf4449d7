"""Registration submission validation.

The schema is closed: any field outside ``KNOWN_FIELDS`` is rejected. Rules are
small composable checks, each returning zero or more violations. Every check
runs on every submission so the caller can report all problems at once.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Iterable, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from paper_intake.errors import ValidationFailure, Violation
from paper_intake.models.choices import (
    FormType,
    GuidanceRead,
    PenColour,
    ReceiptPreference,
    values_of,
)

KNOWN_FIELDS = (
    "formType",
    "formTypeOtherText",
    "penColourNotUsed",
    "guidanceRead",
    "receiptPreference",
    "emailAddress",
    "mobilePhoneNumber",
)

REQUIRED_FIELDS = ("formType", "penColourNotUsed", "guidanceRead")

ENUM_FIELDS = {
    "formType": FormType,
    "penColourNotUsed": PenColour,
    "guidanceRead": GuidanceRead,
    "receiptPreference": ReceiptPreference,
}

ROOT_FIELD = "(root)"

# Same grammar as the "email" format of common JSON schema validators
EMAIL_PATTERN = re.compile(
    r"[a-z0-9!#$%&'*+/=?^_`{|}~-]+(?:\.[a-z0-9!#$%&'*+/=?^_`{|}~-]+)*"
    r"@(?:[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)+"
    r"[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?",
    re.IGNORECASE,
)

Check = Callable[[dict], Iterable[Violation]]


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def is_valid_email(value: str) -> bool:
    return EMAIL_PATTERN.fullmatch(value) is not None


# Checks
def check_unknown_fields(submission: dict) -> list[Violation]:
    return [
        Violation(str(key), "is not an allowed field")
        for key in submission
        if key not in KNOWN_FIELDS
    ]


def check_required_fields(submission: dict) -> list[Violation]:
    return [
        Violation(name, "is required")
        for name in REQUIRED_FIELDS
        if submission.get(name) is None
    ]


def check_string_types(submission: dict) -> list[Violation]:
    """Every known field, when given a non-null value, must be a string"""
    return [
        Violation(name, "must be a string")
        for name in KNOWN_FIELDS
        if submission.get(name) is not None and not isinstance(submission[name], str)
    ]


def check_enum_membership(submission: dict) -> list[Violation]:
    violations = []
    for name, enum_cls in ENUM_FIELDS.items():
        value = submission.get(name)
        if not isinstance(value, str):
            continue
        allowed = values_of(enum_cls)
        if value not in allowed:
            violations.append(
                Violation(name, f"must be one of: {', '.join(allowed)}")
            )
    return violations


def check_email_format(submission: dict) -> list[Violation]:
    value = submission.get("emailAddress")
    if isinstance(value, str) and value and not is_valid_email(value):
        return [Violation("emailAddress", "must be a valid email address")]
    return []


def conditional_requirement(discriminant: str, trigger: str, dependent: str) -> Check:
    """Build a check requiring ``dependent`` to be non-empty when
    ``discriminant`` equals ``trigger``."""

    reason = f"is required when {discriminant} is {trigger}"

    def check(submission: dict) -> list[Violation]:
        if submission.get(discriminant) != trigger:
            return []
        if _is_blank(submission.get(dependent)):
            return [Violation(dependent, reason)]
        return []

    check.__name__ = f"require_{dependent}_when_{discriminant}_{trigger}"
    return check


DEFAULT_CHECKS: tuple[Check, ...] = (
    check_unknown_fields,
    check_required_fields,
    check_string_types,
    check_enum_membership,
    check_email_format,
    conditional_requirement("formType", FormType.OTHER.value, "formTypeOtherText"),
    conditional_requirement(
        "receiptPreference", ReceiptPreference.EMAIL.value, "emailAddress"
    ),
    conditional_requirement(
        "receiptPreference", ReceiptPreference.PHONE.value, "mobilePhoneNumber"
    ),
)


class ValidatedSubmission(BaseModel):
    """A submission that passed every check, with conditional fields
    cleared whenever their discriminant does not call for them."""

    model_config = ConfigDict(frozen=True)

    form_type: FormType
    form_type_other_text: Optional[str] = None
    pen_colour_not_used: PenColour
    guidance_read: GuidanceRead
    receipt_preference: Optional[ReceiptPreference] = None
    email_address: Optional[str] = None
    mobile_phone_number: Optional[str] = None


class ValidationEngine:
    """Validates raw registration submissions against the closed schema"""

    def __init__(self, checks: Sequence[Check] = DEFAULT_CHECKS):
        self.checks = tuple(checks)

    def collect_violations(self, submission: Any) -> list[Violation]:
        """Run every check and return all violations, without duplicates"""
        if not isinstance(submission, dict):
            return [Violation(ROOT_FIELD, "must be a JSON object")]

        violations: list[Violation] = []
        for check in self.checks:
            for violation in check(submission):
                if violation not in violations:
                    violations.append(violation)
        return violations

    def validate(self, submission: Any) -> ValidatedSubmission:
        """
        Validate a decoded JSON submission.

        Args:
            submission: Untrusted input, usually the parsed request body

        Returns:
            ValidatedSubmission: Normalised, typed submission

        Raises:
            ValidationFailure: Carrying every violated rule
        """
        violations = self.collect_violations(submission)
        if violations:
            raise ValidationFailure(violations)
        return self._normalise(submission)

    @staticmethod
    def _normalise(submission: dict) -> ValidatedSubmission:
        form_type = FormType(submission["formType"])
        preference = submission.get("receiptPreference")
        preference = ReceiptPreference(preference) if preference is not None else None

        return ValidatedSubmission(
            form_type=form_type,
            form_type_other_text=(
                submission.get("formTypeOtherText")
                if form_type == FormType.OTHER
                else None
            ),
            pen_colour_not_used=PenColour(submission["penColourNotUsed"]),
            guidance_read=GuidanceRead(submission["guidanceRead"]),
            receipt_preference=preference,
            email_address=(
                submission.get("emailAddress")
                if preference == ReceiptPreference.EMAIL
                else None
            ),
            mobile_phone_number=(
                submission.get("mobilePhoneNumber")
                if preference == ReceiptPreference.PHONE
                else None
            ),
        )
