"""Database models for Paper Intake"""

from paper_intake.models.registration import RegistrationRecord
from paper_intake.models.schema_catalog import REGISTRATION_SCHEMA, SchemaCatalog

__all__ = [
    "RegistrationRecord",
    "SchemaCatalog",
    "REGISTRATION_SCHEMA",
]
