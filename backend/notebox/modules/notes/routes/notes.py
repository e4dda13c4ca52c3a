from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from notebox.core.errors import NoteboxError
from notebox.db import GetDb
from notebox.modules.auth.deps import RequireAuthenticated, UserContext
from notebox.modules.notes.deps import GetEncryptionCodec
from notebox.modules.notes.schemas import (
    AutosaveResponse,
    MessageResponse,
    NoteAutosave,
    NoteCreate,
    NoteEnvelope,
    NoteListResponse,
    NoteMutationResponse,
    NoteStatsResponse,
    NoteUpdate,
    NoteVisibility,
    PublicNoteEnvelope,
)
from notebox.modules.notes.services import notes_service
from notebox.modules.notes.services.encryption_codec import EncryptionCodec
from notebox.modules.notes.services.query_filters import DEFAULT_PAGE_LIMIT, NoteListFilters
from notebox.modules.notes.utils.http_errors import _handle_db_error, _handle_notes_error


router = APIRouter(prefix="/api/notes", tags=["notes"])


@router.get("", response_model=NoteListResponse)
def ListNotes(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1),
    search: Optional[str] = Query(None),
    tag: Optional[str] = Query(None),
    draft_only: Optional[bool] = Query(None),
    sort_by: str = Query("updated_at"),
    sort_order: str = Query("desc"),
    visibility: Optional[NoteVisibility] = Query(None),
    label_id: Optional[int] = Query(None),
    category_id: Optional[int] = Query(None),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    infinite_scroll: bool = Query(False),
    db: Session = Depends(GetDb),
    codec: EncryptionCodec = Depends(GetEncryptionCodec),
    user: UserContext = Depends(RequireAuthenticated),
):
    """List notes with filters, sorting and pagination."""
    filters = NoteListFilters(
        search=search,
        tag=tag,
        draft_only=draft_only,
        visibility=visibility,
        date_from=date_from,
        date_to=date_to,
        label_id=label_id,
        category_id=category_id,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
        infinite_scroll=infinite_scroll,
    )
    try:
        return notes_service.ListNotes(db, codec, user, filters)
    except NoteboxError as exc:
        _handle_notes_error(exc)
    except SQLAlchemyError as exc:
        _handle_db_error(exc)


@router.get("/stats/overview", response_model=NoteStatsResponse)
def GetNoteStats(
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
):
    """Counts of the caller's notes by draft, public and encrypted state."""
    try:
        return NoteStatsResponse(stats=notes_service.GetNoteStats(db, user))
    except SQLAlchemyError as exc:
        _handle_db_error(exc)


@router.get("/public/{share_id}", response_model=PublicNoteEnvelope)
def GetPublicNote(
    share_id: str,
    db: Session = Depends(GetDb),
    codec: EncryptionCodec = Depends(GetEncryptionCodec),
):
    """Read a published public note by share id. No authentication."""
    try:
        return PublicNoteEnvelope(note=notes_service.FetchPublicNote(db, codec, share_id))
    except NoteboxError as exc:
        _handle_notes_error(exc)
    except SQLAlchemyError as exc:
        _handle_db_error(exc)


@router.post("", response_model=NoteMutationResponse, status_code=status.HTTP_201_CREATED)
def CreateNote(
    data: NoteCreate,
    db: Session = Depends(GetDb),
    codec: EncryptionCodec = Depends(GetEncryptionCodec),
    user: UserContext = Depends(RequireAuthenticated),
):
    """Create a new note."""
    try:
        note = notes_service.CreateNote(db, codec, user, data)
        return NoteMutationResponse(message="Note created successfully", note=note)
    except NoteboxError as exc:
        _handle_notes_error(exc)
    except SQLAlchemyError as exc:
        _handle_db_error(exc)


@router.get("/{note_id}", response_model=NoteEnvelope)
def GetNote(
    note_id: int,
    db: Session = Depends(GetDb),
    codec: EncryptionCodec = Depends(GetEncryptionCodec),
    user: UserContext = Depends(RequireAuthenticated),
):
    """Get a single note by ID."""
    try:
        return NoteEnvelope(note=notes_service.FetchNote(db, codec, user, note_id))
    except NoteboxError as exc:
        _handle_notes_error(exc)
    except SQLAlchemyError as exc:
        _handle_db_error(exc)


@router.put("/{note_id}", response_model=NoteMutationResponse)
def UpdateNote(
    note_id: int,
    data: NoteUpdate,
    db: Session = Depends(GetDb),
    codec: EncryptionCodec = Depends(GetEncryptionCodec),
    user: UserContext = Depends(RequireAuthenticated),
):
    """Update an existing note."""
    try:
        note = notes_service.UpdateNote(db, codec, user, note_id, data)
        return NoteMutationResponse(message="Note updated successfully", note=note)
    except NoteboxError as exc:
        _handle_notes_error(exc)
    except SQLAlchemyError as exc:
        _handle_db_error(exc)


@router.patch("/{note_id}/autosave", response_model=AutosaveResponse)
def AutosaveNote(
    note_id: int,
    data: NoteAutosave,
    db: Session = Depends(GetDb),
    codec: EncryptionCodec = Depends(GetEncryptionCodec),
    user: UserContext = Depends(RequireAuthenticated),
):
    """Save title and content without touching note state."""
    try:
        saved_at = notes_service.AutosaveNote(db, codec, user, note_id, data)
        return AutosaveResponse(message="Note auto-saved successfully", auto_saved_at=saved_at)
    except NoteboxError as exc:
        _handle_notes_error(exc)
    except SQLAlchemyError as exc:
        _handle_db_error(exc)


@router.delete("/{note_id}", response_model=MessageResponse)
def DeleteNote(
    note_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
):
    """Delete a note."""
    try:
        notes_service.DeleteNote(db, user, note_id)
        return MessageResponse(message="Note deleted successfully")
    except NoteboxError as exc:
        _handle_notes_error(exc)
    except SQLAlchemyError as exc:
        _handle_db_error(exc)
