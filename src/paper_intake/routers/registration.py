"""Registration endpoints"""

from datetime import datetime
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from paper_intake.errors import ValidationFailure, Violation
from paper_intake.models.choices import (
    FormType,
    GuidanceRead,
    PenColour,
    ReceiptPreference,
    values_of,
)
from paper_intake.routers.dependencies import get_intake_workflow
from paper_intake.services.intake_workflow import IntakeWorkflow
from paper_intake.services.validation_service import ROOT_FIELD

router = APIRouter(prefix="/registrations", tags=["Registrations"])


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegistrationRequest(CamelModel):
    """Documented shape of a submission. The body itself is checked by the
    validation engine so that every violation is reported together."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid"
    )

    form_type: str = Field(..., json_schema_extra={"enum": values_of(FormType)})
    form_type_other_text: Optional[str] = Field(
        None, description="Required and non-empty when formType is OTHER"
    )
    pen_colour_not_used: str = Field(
        ..., json_schema_extra={"enum": values_of(PenColour)}
    )
    guidance_read: str = Field(..., json_schema_extra={"enum": values_of(GuidanceRead)})
    receipt_preference: Optional[str] = Field(
        None, json_schema_extra={"enum": values_of(ReceiptPreference)}
    )
    email_address: Optional[str] = Field(
        None, description="Required, valid email when receiptPreference is email"
    )
    mobile_phone_number: Optional[str] = Field(
        None, description="Required and non-empty when receiptPreference is phone"
    )


class RegistrationCreatedResponse(CamelModel):
    id: str = Field(..., description="Registration UUID")
    reference_number: str = Field(
        ...,
        description="8-character reference shown to the submitter",
        json_schema_extra={"example": "K7Q2ZP4M"},
    )


class RegistrationResponse(CamelModel):
    id: str
    reference_number: str
    form_type: str
    form_type_other_text: Optional[str] = None
    pen_colour_not_used: str
    guidance_read: str
    receipt_preference: Optional[str] = None
    email_address: Optional[str] = None
    mobile_phone_number: Optional[str] = None
    created_at: Optional[datetime] = None


class FieldError(BaseModel):
    field: str
    reason: str


class ErrorResponse(BaseModel):
    status: str = Field("error", json_schema_extra={"example": "error"})
    message: str
    errors: Optional[List[FieldError]] = None


_request_schema = RegistrationRequest.model_json_schema(by_alias=True)


async def _read_json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        raise ValidationFailure([Violation(ROOT_FIELD, "must be a JSON object")])


@router.post(
    "",
    status_code=201,
    summary="Create a new registration record",
    description="Validate and store a completed form submission",
    response_model=RegistrationCreatedResponse,
    responses={
        422: {"model": ErrorResponse, "description": "Validation error"},
        503: {"model": ErrorResponse, "description": "Service unavailable"},
    },
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": _request_schema}},
        }
    },
)
async def create_registration(
    request: Request,
    workflow: IntakeWorkflow = Depends(get_intake_workflow),
):
    payload = await _read_json_body(request)
    result = await workflow.submit(payload)
    return RegistrationCreatedResponse(
        id=result.id, reference_number=result.reference_number
    )


@router.get(
    "/{registration_id}",
    summary="Get a registration by ID",
    description="Retrieve a previously submitted registration record",
    response_model=RegistrationResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Registration not found"},
        503: {"model": ErrorResponse, "description": "Service unavailable"},
    },
)
async def get_registration(
    registration_id: str,
    workflow: IntakeWorkflow = Depends(get_intake_workflow),
):
    record = await workflow.get(registration_id)
    return RegistrationResponse(
        id=record.id,
        reference_number=record.reference_number,
        form_type=record.form_type,
        form_type_other_text=record.form_type_other_text,
        pen_colour_not_used=record.pen_colour_not_used,
        guidance_read=record.guidance_read,
        receipt_preference=record.receipt_preference,
        email_address=record.email_address,
        mobile_phone_number=record.mobile_phone_number,
        created_at=record.created_at,
    )
