"""Note endpoints (PDF notes)."""

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from edunotes.config.app_config import AppConfig
from edunotes.core.authorization import Action, EntityKind, Principal, authorize
from edunotes.core.content import delete_note, list_notes, upload_note
from edunotes.core.storage import FileStorage
from edunotes.web.deps import get_config, get_principal, get_storage
from edunotes.web.schemas import NoteListResponse, NoteResponse

router = APIRouter(prefix="/api/notes", tags=["notes"])


@router.get("", response_model=NoteListResponse)
def read_notes(
    subject_id: str | None = None,
    principal: Principal = Depends(get_principal),
) -> NoteListResponse:
    """List notes newest first. Empty for accounts without access."""
    notes = [NoteResponse.model_validate(n) for n in list_notes(principal, subject_id)]
    return NoteListResponse(notes=notes, count=len(notes))


@router.post("", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
def add_note(
    subject_id: str = Form(...),
    title: str = Form(""),
    file: UploadFile | None = File(None),
    principal: Principal = Depends(get_principal),
    config: AppConfig = Depends(get_config),
    storage: FileStorage = Depends(get_storage),
) -> NoteResponse:
    """Upload a PDF and create a note for it (admin)."""
    authorize(principal, Action.CREATE, EntityKind.NOTE)

    # One byte past the limit is enough for check_pdf_upload to reject it
    max_bytes = config.storage.max_upload_bytes
    data = file.file.read(max_bytes + 1) if file is not None else None
    filename = file.filename if file is not None else None

    note = upload_note(
        principal,
        subject_id,
        title,
        filename,
        data,
        storage,
        max_bytes,
    )
    return NoteResponse.model_validate(note)


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_note(
    note_id: str,
    principal: Principal = Depends(get_principal),
) -> None:
    """Delete a note (admin)."""
    delete_note(principal, note_id)
