"""Intake workflow: validate -> allocate reference -> persist -> accept"""

import enum
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

from paper_intake.errors import (
    AllocationExhausted,
    DuplicateKey,
    NotFound,
    StorageUnavailable,
)
from paper_intake.models.registration import RegistrationRecord, new_registration_id
from paper_intake.services.reference_allocator import MAX_ATTEMPTS, ReferenceAllocator
from paper_intake.services.registration_store import RegistrationStore
from paper_intake.services.validation_service import (
    ValidatedSubmission,
    ValidationEngine,
)

logger = logging.getLogger(__name__)

REGISTRATION_ID_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)


class IntakeStage(str, enum.Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    REFERENCE_ALLOCATED = "reference_allocated"
    PERSISTED = "persisted"
    ACCEPTED = "accepted"


@dataclass(frozen=True)
class IntakeResult:
    id: str
    reference_number: str


def is_registration_id(value: str) -> bool:
    """True if value has the canonical 8-4-4-4-12 hex UUID shape"""
    return REGISTRATION_ID_PATTERN.fullmatch(value) is not None


def build_record(
    submission: ValidatedSubmission, registration_id: str, reference_number: str
) -> RegistrationRecord:
    return RegistrationRecord(
        id=registration_id,
        reference_number=reference_number,
        form_type=submission.form_type.value,
        form_type_other_text=submission.form_type_other_text,
        pen_colour_not_used=submission.pen_colour_not_used.value,
        guidance_read=submission.guidance_read.value,
        receipt_preference=(
            submission.receipt_preference.value
            if submission.receipt_preference is not None
            else None
        ),
        email_address=submission.email_address,
        mobile_phone_number=submission.mobile_phone_number,
    )


class IntakeWorkflow:
    """Orchestrates a single submission through to a stored registration.

    Each stage either advances or raises; a failed stage never leaves a
    record behind. A duplicate key on insert means another submission took
    the same reference between our check and our insert, so allocation is
    retried with a fresh id and reference, at most ``max_insert_attempts``
    times.
    """

    def __init__(
        self,
        store: RegistrationStore,
        validator: Optional[ValidationEngine] = None,
        allocator: Optional[ReferenceAllocator] = None,
        max_insert_attempts: int = MAX_ATTEMPTS,
    ):
        self.store = store
        self.validator = validator or ValidationEngine()
        self.allocator = allocator or ReferenceAllocator()
        self.max_insert_attempts = max_insert_attempts

    async def submit(self, raw_input: Any) -> IntakeResult:
        """
        Validate, allocate and persist a raw submission.

        Returns:
            IntakeResult: The new registration's id and reference number

        Raises:
            ValidationFailure: If the submission breaks any rule
            AllocationExhausted: If no free reference could be secured
            StorageUnavailable: If the store fails
        """
        stage = IntakeStage.RECEIVED
        logger.debug(f"Submission {stage.value}")

        submission = self.validator.validate(raw_input)
        stage = IntakeStage.VALIDATED
        logger.debug(f"Submission {stage.value}: formType={submission.form_type.value}")

        for attempt in range(1, self.max_insert_attempts + 1):
            try:
                reference_number = await self.allocator.allocate(self.store)
            except AllocationExhausted as e:
                logger.error(f"Reference allocation failed at stage {stage.value}: {e}")
                raise
            except StorageUnavailable as e:
                logger.error(f"Storage failure during allocation: {e}")
                raise
            stage = IntakeStage.REFERENCE_ALLOCATED

            record = build_record(submission, new_registration_id(), reference_number)
            try:
                await self.store.insert(record)
            except DuplicateKey as e:
                logger.warning(
                    f"Insert attempt {attempt}/{self.max_insert_attempts} lost a race "
                    f"on {e.field}; allocating again"
                )
                continue
            except StorageUnavailable as e:
                logger.error(f"Storage failure persisting registration {record.id}: {e}")
                raise
            stage = IntakeStage.PERSISTED
            logger.debug(f"Registration {record.id} {stage.value}")

            stage = IntakeStage.ACCEPTED
            logger.info(
                f"Registration {record.id} {stage.value} "
                f"with reference {record.reference_number}"
            )
            return IntakeResult(id=record.id, reference_number=record.reference_number)

        logger.error(
            f"Gave up after {self.max_insert_attempts} insert attempts hit duplicate keys"
        )
        raise AllocationExhausted(self.max_insert_attempts)

    async def get(self, registration_id: str) -> RegistrationRecord:
        """
        Fetch a stored registration.

        Malformed ids are reported exactly like missing records so the shape
        of the input reveals nothing about what is stored.

        Raises:
            NotFound: If the id is malformed or unknown
            StorageUnavailable: If the store fails
        """
        if not is_registration_id(registration_id):
            raise NotFound(registration_id)

        record = await self.store.find_by_id(registration_id.lower())
        if record is None:
            raise NotFound(registration_id)
        return record
