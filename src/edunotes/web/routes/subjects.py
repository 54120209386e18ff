"""Subject endpoints."""

from fastapi import APIRouter, Depends, status

from edunotes.core.authorization import Principal
from edunotes.core.content import (
    create_subject,
    delete_subject,
    get_subject,
    list_subjects,
    update_subject,
)
from edunotes.web.deps import get_principal
from edunotes.web.schemas import SubjectCreate, SubjectListResponse, SubjectResponse

router = APIRouter(prefix="/api/subjects", tags=["subjects"])


@router.get("", response_model=SubjectListResponse)
def read_subjects(principal: Principal = Depends(get_principal)) -> SubjectListResponse:
    """List subjects ordered by name."""
    subjects = [SubjectResponse.model_validate(s) for s in list_subjects(principal)]
    return SubjectListResponse(subjects=subjects, count=len(subjects))


@router.post("", response_model=SubjectResponse, status_code=status.HTTP_201_CREATED)
def add_subject(
    body: SubjectCreate,
    principal: Principal = Depends(get_principal),
) -> SubjectResponse:
    """Create a subject (admin)."""
    subject = create_subject(principal, body.name, body.description)
    return SubjectResponse.model_validate(subject)


@router.get("/{subject_id}", response_model=SubjectResponse)
def read_subject(
    subject_id: str,
    principal: Principal = Depends(get_principal),
) -> SubjectResponse:
    """Get a specific subject by ID."""
    return SubjectResponse.model_validate(get_subject(principal, subject_id))


@router.patch("/{subject_id}", response_model=SubjectResponse)
def edit_subject(
    subject_id: str,
    body: SubjectCreate,
    principal: Principal = Depends(get_principal),
) -> SubjectResponse:
    """Rename or redescribe a subject (admin)."""
    subject = update_subject(principal, subject_id, body.name, body.description)
    return SubjectResponse.model_validate(subject)


@router.delete("/{subject_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_subject(
    subject_id: str,
    principal: Principal = Depends(get_principal),
) -> None:
    """Delete a subject with all its notes and videos (admin)."""
    delete_subject(principal, subject_id)
