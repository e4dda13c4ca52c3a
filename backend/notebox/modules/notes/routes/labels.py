from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from notebox.core.errors import NoteboxError
from notebox.db import GetDb
from notebox.modules.auth.deps import RequireAuthenticated, UserContext
from notebox.modules.notes.deps import GetEncryptionCodec
from notebox.modules.notes.schemas import (
    AssignmentResponse,
    CategoryAssignRequest,
    CategoryCreate,
    CategoryEnvelope,
    CategoryListResponse,
    CategoryUpdate,
    LabelAssignRequest,
    LabelCreate,
    LabelEnvelope,
    LabelListResponse,
    LabelUpdate,
    MessageResponse,
    NotesWithTagsResponse,
    TagKind,
)
from notebox.modules.notes.services import tag_service
from notebox.modules.notes.services.encryption_codec import EncryptionCodec
from notebox.modules.notes.utils.http_errors import _handle_db_error, _handle_notes_error


router = APIRouter(prefix="/api", tags=["labels"])


# Labels
@router.get("/labels", response_model=LabelListResponse)
def ListLabels(
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
):
    try:
        return LabelListResponse(labels=tag_service.ListLabels(db, user))
    except SQLAlchemyError as exc:
        _handle_db_error(exc)


@router.post("/labels", response_model=LabelEnvelope, status_code=status.HTTP_201_CREATED)
def CreateLabel(
    data: LabelCreate,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
):
    try:
        label = tag_service.CreateLabel(db, user, data)
        return LabelEnvelope(message="Label created successfully", label=label)
    except NoteboxError as exc:
        _handle_notes_error(exc)
    except SQLAlchemyError as exc:
        _handle_db_error(exc)


@router.put("/labels/{label_id}", response_model=LabelEnvelope)
def UpdateLabel(
    label_id: int,
    data: LabelUpdate,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
):
    try:
        label = tag_service.UpdateLabel(db, user, label_id, data)
        return LabelEnvelope(message="Label updated successfully", label=label)
    except NoteboxError as exc:
        _handle_notes_error(exc)
    except SQLAlchemyError as exc:
        _handle_db_error(exc)


@router.delete("/labels/{label_id}", response_model=MessageResponse)
def DeleteLabel(
    label_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
):
    try:
        tag_service.DeleteLabel(db, user, label_id)
        return MessageResponse(message="Label deleted successfully")
    except NoteboxError as exc:
        _handle_notes_error(exc)
    except SQLAlchemyError as exc:
        _handle_db_error(exc)


# Categories
@router.get("/categories", response_model=CategoryListResponse)
def ListCategories(
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
):
    try:
        return CategoryListResponse(categories=tag_service.ListCategories(db, user))
    except SQLAlchemyError as exc:
        _handle_db_error(exc)


@router.post("/categories", response_model=CategoryEnvelope, status_code=status.HTTP_201_CREATED)
def CreateCategory(
    data: CategoryCreate,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
):
    try:
        category = tag_service.CreateCategory(db, user, data)
        return CategoryEnvelope(message="Category created successfully", category=category)
    except NoteboxError as exc:
        _handle_notes_error(exc)
    except SQLAlchemyError as exc:
        _handle_db_error(exc)


@router.put("/categories/{category_id}", response_model=CategoryEnvelope)
def UpdateCategory(
    category_id: int,
    data: CategoryUpdate,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
):
    try:
        category = tag_service.UpdateCategory(db, user, category_id, data)
        return CategoryEnvelope(message="Category updated successfully", category=category)
    except NoteboxError as exc:
        _handle_notes_error(exc)
    except SQLAlchemyError as exc:
        _handle_db_error(exc)


@router.delete("/categories/{category_id}", response_model=MessageResponse)
def DeleteCategory(
    category_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
):
    """Delete a category; child categories are detached, not deleted."""
    try:
        tag_service.DeleteCategory(db, user, category_id)
        return MessageResponse(message="Category deleted successfully")
    except NoteboxError as exc:
        _handle_notes_error(exc)
    except SQLAlchemyError as exc:
        _handle_db_error(exc)


# Assignments
@router.post("/notes/{note_id}/labels", response_model=AssignmentResponse)
def AssignLabels(
    note_id: int,
    data: LabelAssignRequest,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
):
    """Replace the note's labels with labelIds."""
    try:
        assigned = tag_service.AssignTags(db, user, note_id, TagKind.Label, data.labelIds)
        return AssignmentResponse(message="Labels assigned successfully", tagIds=assigned)
    except NoteboxError as exc:
        _handle_notes_error(exc)
    except SQLAlchemyError as exc:
        _handle_db_error(exc)


@router.post("/notes/{note_id}/categories", response_model=AssignmentResponse)
def AssignCategories(
    note_id: int,
    data: CategoryAssignRequest,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
):
    """Replace the note's categories with categoryIds."""
    try:
        assigned = tag_service.AssignTags(db, user, note_id, TagKind.Category, data.categoryIds)
        return AssignmentResponse(message="Categories assigned successfully", tagIds=assigned)
    except NoteboxError as exc:
        _handle_notes_error(exc)
    except SQLAlchemyError as exc:
        _handle_db_error(exc)


@router.get("/notes-with-labels", response_model=NotesWithTagsResponse)
def ListNotesWithLabels(
    label_id: Optional[int] = Query(None),
    category_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(GetDb),
    codec: EncryptionCodec = Depends(GetEncryptionCodec),
    user: UserContext = Depends(RequireAuthenticated),
):
    """Notes with their labels and categories attached."""
    try:
        notes = tag_service.ListNotesWithTags(db, codec, user, label_id, category_id, search)
        return NotesWithTagsResponse(notes=notes)
    except NoteboxError as exc:
        _handle_notes_error(exc)
    except SQLAlchemyError as exc:
        _handle_db_error(exc)
