"""FastAPI dependencies resolving the objects built at startup"""

from fastapi import Depends, Request

from paper_intake.services.intake_workflow import IntakeWorkflow
from paper_intake.services.registration_store import RegistrationStore


def get_store(request: Request) -> RegistrationStore:
    """Get the registration store created in the application lifespan"""
    return request.app.state.store


def get_intake_workflow(
    store: RegistrationStore = Depends(get_store),
) -> IntakeWorkflow:
    return IntakeWorkflow(store)
