from typing import List, Tuple

from sqlalchemy import case, func, update
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value

from notebox.core.errors import NotFoundError
from notebox.modules.notes.models import Note, NoteCategory, NoteLabel, NoteShare
from notebox.modules.notes.services.query_filters import NoteQuerySpec


def GetOwnedNote(db: Session, owner_id: int, note_id: int) -> Note | None:
    return db.query(Note).filter(Note.id == note_id, Note.owner_id == owner_id).first()


def RequireOwnedNote(db: Session, owner_id: int, note_id: int) -> Note:
    # Missing and foreign notes look the same to the caller.
    note = GetOwnedNote(db, owner_id, note_id)
    if not note:
        raise NotFoundError("Note not found")
    return note


def GetPublishedNoteByShareId(db: Session, share_id: str) -> Note | None:
    return (
        db.query(Note)
        .filter(
            Note.public_share_id == share_id,
            Note.is_public == True,
            Note.is_draft == False,
        )
        .first()
    )


def InsertNote(db: Session, note: Note) -> Note:
    db.add(note)
    db.flush()
    return note


def WriteShareId(db: Session, note: Note, share_id: str) -> None:
    """Store a share id with a single UPDATE so a unique violation can be retried."""
    db.execute(update(Note).where(Note.id == note.id).values(public_share_id=share_id))
    set_committed_value(note, "public_share_id", share_id)


def DeleteOwnedNote(db: Session, owner_id: int, note_id: int) -> int:
    owned_id = db.query(Note.id).filter(Note.id == note_id, Note.owner_id == owner_id).scalar()
    if owned_id is None:
        return 0
    db.query(NoteLabel).filter(NoteLabel.note_id == owned_id).delete(synchronize_session=False)
    db.query(NoteCategory).filter(NoteCategory.note_id == owned_id).delete(synchronize_session=False)
    db.query(NoteShare).filter(NoteShare.note_id == owned_id).delete(synchronize_session=False)
    return (
        db.query(Note)
        .filter(Note.id == note_id, Note.owner_id == owner_id)
        .delete(synchronize_session=False)
    )


def CountNotes(db: Session, conditions: list) -> int:
    return db.query(func.count(Note.id)).filter(*conditions).scalar() or 0


def QueryNotePage(db: Session, spec: NoteQuerySpec) -> Tuple[List[Note], int]:
    """Fetch one page and the filtered total from the same statement.

    The total rides along as a window count, so the page and the number it
    reports can never disagree. A page past the end has no rows to carry
    it, so that case falls back to a plain count.
    """
    rows = (
        db.query(Note, func.count(Note.id).over().label("total_count"))
        .filter(*spec.Conditions)
        .order_by(*spec.OrderBy)
        .offset(spec.Offset)
        .limit(spec.Limit)
        .all()
    )
    if rows:
        return [row[0] for row in rows], int(rows[0][1])
    if spec.Offset == 0:
        return [], 0
    return [], CountNotes(db, spec.Conditions)


def CountNotesByState(db: Session, owner_id: int) -> dict:
    def _count_where(condition):
        return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)

    row = (
        db.query(
            func.count(Note.id),
            _count_where(Note.is_draft == True),
            _count_where(Note.is_draft == False),
            _count_where(Note.is_public == True),
            _count_where(Note.is_encrypted == True),
        )
        .filter(Note.owner_id == owner_id)
        .one()
    )
    total, drafts, published, public, encrypted = (int(value or 0) for value in row)
    return {
        "total": total,
        "drafts": drafts,
        "published": published,
        "public": public,
        "encrypted": encrypted,
    }
