import logging
from collections import defaultdict
from typing import Iterable, List

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from notebox.core.errors import ConflictError, InternalError, NotFoundError, ValidationError
from notebox.modules.auth.deps import NowUtc, UserContext
from notebox.modules.notes.models import Category, Label, Note, NoteCategory, NoteLabel
from notebox.modules.notes.schemas import (
    CategoryCreate,
    CategoryUpdate,
    LabelCreate,
    LabelUpdate,
    NoteWithTagsOut,
    TagKind,
    TagSummaryOut,
)
from notebox.modules.notes.services import note_store
from notebox.modules.notes.services.encryption_codec import EncryptionCodec
from notebox.modules.notes.services.notes_service import BuildNoteResponse
from notebox.modules.notes.services.query_filters import SearchCondition

logger = logging.getLogger("notes.tags")

NON_NULLABLE_TAG_FIELDS = ("name", "color", "icon")


def _TagModel(kind: TagKind):
    return Label if kind == TagKind.Label else Category


def _LinkModel(kind: TagKind):
    if kind == TagKind.Label:
        return NoteLabel, NoteLabel.label_id
    return NoteCategory, NoteCategory.category_id


def _KindName(kind: TagKind) -> str:
    return "Label" if kind == TagKind.Label else "Category"


def _RejectExplicitNulls(changes: dict) -> None:
    for name in NON_NULLABLE_TAG_FIELDS:
        if name in changes and changes[name] is None:
            raise ValidationError(f"{name} cannot be null", field=name)


def _CommitUnique(db: Session, kind: TagKind) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(f"{_KindName(kind)} name already exists") from exc


def _RequireOwnedTag(db: Session, kind: TagKind, owner_id: int, tag_id: int):
    model = _TagModel(kind)
    record = db.query(model).filter(model.id == tag_id, model.owner_id == owner_id).first()
    if not record:
        raise NotFoundError(f"{_KindName(kind)} not found")
    return record


def _ValidateParentCategory(db: Session, owner_id: int, category_id: int | None, parent_id: int | None) -> None:
    """Parents must be owned by the same user and may not create a cycle."""
    if parent_id is None:
        return
    if category_id is not None and parent_id == category_id:
        raise ValidationError("A category cannot be its own parent", field="parent_category_id")

    parents = dict(
        db.query(Category.id, Category.parent_category_id).filter(Category.owner_id == owner_id).all()
    )
    if parent_id not in parents:
        raise ValidationError("Parent category not found", field="parent_category_id")
    if category_id is None:
        return

    seen = set()
    current = parent_id
    while current is not None and current not in seen:
        if current == category_id:
            raise ValidationError("A category cannot be moved under its own descendant", field="parent_category_id")
        seen.add(current)
        current = parents.get(current)


# Labels
def ListLabels(db: Session, user: UserContext) -> List[Label]:
    return db.query(Label).filter(Label.owner_id == user.Id).order_by(Label.name.asc(), Label.id.asc()).all()


def CreateLabel(db: Session, user: UserContext, data: LabelCreate) -> Label:
    now = NowUtc()
    label = Label(
        owner_id=user.Id,
        name=data.name,
        color=data.color or "#667eea",
        icon=data.icon or "🏷️",
        description=data.description or None,
        created_at=now,
        updated_at=now,
    )
    db.add(label)
    _CommitUnique(db, TagKind.Label)
    db.refresh(label)
    return label


def UpdateLabel(db: Session, user: UserContext, label_id: int, data: LabelUpdate) -> Label:
    changes = data.model_dump(exclude_unset=True)
    _RejectExplicitNulls(changes)
    label = _RequireOwnedTag(db, TagKind.Label, user.Id, label_id)
    for key, value in changes.items():
        setattr(label, key, value)
    label.updated_at = NowUtc()
    _CommitUnique(db, TagKind.Label)
    db.refresh(label)
    return label


def DeleteLabel(db: Session, user: UserContext, label_id: int) -> None:
    label = _RequireOwnedTag(db, TagKind.Label, user.Id, label_id)
    db.query(NoteLabel).filter(NoteLabel.label_id == label.id).delete(synchronize_session=False)
    db.delete(label)
    db.commit()


# Categories
def ListCategories(db: Session, user: UserContext) -> List[Category]:
    return (
        db.query(Category)
        .filter(Category.owner_id == user.Id)
        .order_by(Category.name.asc(), Category.id.asc())
        .all()
    )


def CreateCategory(db: Session, user: UserContext, data: CategoryCreate) -> Category:
    _ValidateParentCategory(db, user.Id, None, data.parent_category_id)
    now = NowUtc()
    category = Category(
        owner_id=user.Id,
        name=data.name,
        color=data.color or "#28a745",
        icon=data.icon or "📁",
        description=data.description or None,
        parent_category_id=data.parent_category_id,
        created_at=now,
        updated_at=now,
    )
    db.add(category)
    _CommitUnique(db, TagKind.Category)
    db.refresh(category)
    return category


def UpdateCategory(db: Session, user: UserContext, category_id: int, data: CategoryUpdate) -> Category:
    changes = data.model_dump(exclude_unset=True)
    _RejectExplicitNulls(changes)
    category = _RequireOwnedTag(db, TagKind.Category, user.Id, category_id)
    if "parent_category_id" in changes:
        _ValidateParentCategory(db, user.Id, category.id, changes["parent_category_id"])
    for key, value in changes.items():
        setattr(category, key, value)
    category.updated_at = NowUtc()
    _CommitUnique(db, TagKind.Category)
    db.refresh(category)
    return category


def DeleteCategory(db: Session, user: UserContext, category_id: int) -> None:
    """Delete a category; its children become top-level categories."""
    category = _RequireOwnedTag(db, TagKind.Category, user.Id, category_id)
    db.execute(
        update(Category)
        .where(Category.parent_category_id == category.id)
        .values(parent_category_id=None)
        .execution_options(synchronize_session=False)
    )
    db.query(NoteCategory).filter(NoteCategory.category_id == category.id).delete(synchronize_session=False)
    db.delete(category)
    db.commit()


# Assignments
def AssignTags(db: Session, user: UserContext, note_id: int, kind: TagKind, tag_ids: Iterable[int]) -> List[int]:
    """Replace every assignment of one kind on a note with tag_ids.

    The delete and the inserts share one transaction, so readers see either
    the old set or the new one and never an empty set in between.
    """
    note = note_store.RequireOwnedNote(db, user.Id, note_id)
    wanted = sorted({int(tag_id) for tag_id in tag_ids})

    model = _TagModel(kind)
    if wanted:
        owned = {
            row[0]
            for row in db.query(model.id).filter(model.owner_id == user.Id, model.id.in_(wanted)).all()
        }
        unknown = [tag_id for tag_id in wanted if tag_id not in owned]
        if unknown:
            field = "labelIds" if kind == TagKind.Label else "categoryIds"
            raise ValidationError(
                f"Unknown {kind.value} ids: {', '.join(str(tag_id) for tag_id in unknown)}",
                field=field,
            )

    link_model, link_column = _LinkModel(kind)
    try:
        db.query(link_model).filter(link_model.note_id == note.id).delete(synchronize_session=False)
        now = NowUtc()
        db.add_all(
            link_model(note_id=note.id, **{link_column.key: tag_id, "created_at": now})
            for tag_id in wanted
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("tag assignment failed note_id=%s kind=%s", note_id, kind.value)
        raise InternalError("Could not save tag assignments") from exc

    logger.info("tags assigned note_id=%s kind=%s count=%s", note.id, kind.value, len(wanted))
    return wanted


def ListAssignedTagIds(db: Session, user: UserContext, note_id: int, kind: TagKind) -> List[int]:
    note = note_store.RequireOwnedNote(db, user.Id, note_id)
    link_model, link_column = _LinkModel(kind)
    rows = db.query(link_column).filter(link_model.note_id == note.id).order_by(link_column.asc()).all()
    return [row[0] for row in rows]


def _LoadTagSummaries(db: Session, note_ids: List[int], kind: TagKind) -> dict:
    summaries = defaultdict(list)
    if not note_ids:
        return summaries
    model = _TagModel(kind)
    link_model, link_column = _LinkModel(kind)
    rows = (
        db.query(link_model.note_id, model.id, model.name, model.color, model.icon)
        .join(model, model.id == link_column)
        .filter(link_model.note_id.in_(note_ids))
        .order_by(model.name.asc(), model.id.asc())
        .all()
    )
    for note_id, tag_id, name, color, icon in rows:
        summaries[note_id].append(TagSummaryOut(id=tag_id, name=name, color=color, icon=icon))
    return summaries


def ListNotesWithTags(
    db: Session,
    codec: EncryptionCodec,
    user: UserContext,
    label_id: int | None = None,
    category_id: int | None = None,
    search: str | None = None,
) -> List[NoteWithTagsOut]:
    """Notes joined with their labels and categories, newest first."""
    query = db.query(Note).filter(Note.owner_id == user.Id)
    if label_id is not None:
        query = query.filter(Note.label_links.any(NoteLabel.label_id == label_id))
    if category_id is not None:
        query = query.filter(Note.category_links.any(NoteCategory.category_id == category_id))
    if search and search.strip():
        query = query.filter(SearchCondition(search.strip()))
    notes = query.order_by(Note.updated_at.desc(), Note.id.desc()).all()

    note_ids = [note.id for note in notes]
    labels = _LoadTagSummaries(db, note_ids, TagKind.Label)
    categories = _LoadTagSummaries(db, note_ids, TagKind.Category)
    return [
        NoteWithTagsOut(
            **BuildNoteResponse(note, codec).model_dump(),
            labels=labels.get(note.id, []),
            categories=categories.get(note.id, []),
        )
        for note in notes
    ]
