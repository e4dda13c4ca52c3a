import logging
import time
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from notebox.core.config import ShareIdMaxAttempts
from notebox.core.errors import ConflictError, DecryptionError, NotFoundError, ValidationError
from notebox.modules.auth.deps import NowUtc, UserContext
from notebox.modules.notes.models import Note
from notebox.modules.notes.schemas import (
    NoteAutosave,
    NoteCreate,
    NoteListResponse,
    NoteOut,
    NoteStatsOut,
    NoteUpdate,
    PublicNoteOut,
)
from notebox.modules.notes.services import note_store, share_ids
from notebox.modules.notes.services.encryption_codec import EncryptionCodec
from notebox.modules.notes.services.query_filters import (
    BuildNoteQuerySpec,
    BuildPagination,
    DescribeFilters,
    NoteListFilters,
)
from notebox.modules.notes.services.tag_list import ParseTags, SerializeTags

logger = logging.getLogger("notes")

NON_NULLABLE_UPDATE_FIELDS = ("title", "tags", "is_encrypted", "is_public", "is_draft")


def _WriteContent(note: Note, codec: EncryptionCodec, plaintext: str, encrypted: bool) -> None:
    """Store plaintext in exactly one of the two content columns."""
    if encrypted:
        note.encrypted_content = codec.Encrypt(plaintext)
        note.content = None
    else:
        note.content = plaintext
        note.encrypted_content = None
    note.is_encrypted = encrypted


def ReadContent(note: Note, codec: EncryptionCodec) -> str | None:
    """Plaintext for a response; unreadable ciphertext becomes a sentinel."""
    if note.is_encrypted and note.encrypted_content is not None:
        return codec.DecryptOrSentinel(note.encrypted_content, note.id)
    return note.content


def _ReadContentStrict(note: Note, codec: EncryptionCodec) -> str:
    if note.is_encrypted and note.encrypted_content is not None:
        try:
            return codec.Decrypt(note.encrypted_content)
        except DecryptionError as exc:
            logger.warning("cannot re-encode unreadable content note_id=%s", note.id)
            raise ConflictError("Note content cannot be decrypted") from exc
    return note.content or ""


def _RejectExplicitNulls(changes: dict, fields) -> None:
    for name in fields:
        if name in changes and changes[name] is None:
            raise ValidationError(f"{name} cannot be null", field=name)


def _AllocateShareId(db: Session, note: Note) -> str:
    """Give a flushed note a fresh share id, retrying on unique collisions."""
    attempts = ShareIdMaxAttempts()
    for attempt in range(1, attempts + 1):
        candidate = share_ids.GenerateShareId()
        try:
            with db.begin_nested():
                note_store.WriteShareId(db, note, candidate)
        except IntegrityError:
            logger.warning("share id collision note_id=%s attempt=%s", note.id, attempt)
            continue
        return candidate
    logger.error("share id allocation exhausted note_id=%s attempts=%s", note.id, attempts)
    raise ConflictError("Could not allocate a unique share id")


def BuildNoteResponse(note: Note, codec: EncryptionCodec, plaintext: str | None = None) -> NoteOut:
    """Build NoteOut from Note model; ciphertext never leaves this function."""
    content = plaintext if plaintext is not None else ReadContent(note, codec)
    return NoteOut(
        id=note.id,
        owner_id=note.owner_id,
        title=note.title,
        content=content,
        is_encrypted=note.is_encrypted,
        is_draft=note.is_draft,
        is_public=note.is_public,
        public_share_id=note.public_share_id,
        tags=ParseTags(note.tags),
        created_at=note.created_at,
        updated_at=note.updated_at,
        published_at=note.published_at,
        auto_saved_at=note.auto_saved_at,
    )


def _BuildPublicNoteResponse(note: Note, codec: EncryptionCodec) -> PublicNoteOut:
    return PublicNoteOut(
        id=note.id,
        title=note.title,
        content=ReadContent(note, codec),
        is_encrypted=note.is_encrypted,
        tags=ParseTags(note.tags),
        created_at=note.created_at,
        updated_at=note.updated_at,
        published_at=note.published_at,
    )


def CreateNote(db: Session, codec: EncryptionCodec, user: UserContext, data: NoteCreate) -> NoteOut:
    """Create a note; public notes are always published."""
    now = NowUtc()
    plaintext = data.content or ""
    is_public = data.is_public
    is_draft = data.is_draft and not is_public

    note = Note(
        owner_id=user.Id,
        title=data.title,
        tags=SerializeTags(data.tags),
        is_draft=is_draft,
        is_public=is_public,
        created_at=now,
        updated_at=now,
        published_at=None if is_draft else now,
    )
    _WriteContent(note, codec, plaintext, data.is_encrypted)

    note_store.InsertNote(db, note)
    if is_public:
        _AllocateShareId(db, note)
    db.commit()
    db.refresh(note)

    logger.info(
        "note created note_id=%s owner_id=%s draft=%s public=%s encrypted=%s",
        note.id,
        user.Id,
        note.is_draft,
        note.is_public,
        note.is_encrypted,
    )
    return BuildNoteResponse(note, codec, plaintext=plaintext)


def UpdateNote(
    db: Session,
    codec: EncryptionCodec,
    user: UserContext,
    note_id: int,
    data: NoteUpdate,
) -> NoteOut:
    """Apply only the fields present in the request body."""
    changes = data.model_dump(exclude_unset=True)
    _RejectExplicitNulls(changes, NON_NULLABLE_UPDATE_FIELDS)

    note = note_store.RequireOwnedNote(db, user.Id, note_id)
    now = NowUtc()

    if "title" in changes:
        note.title = changes["title"]
    if "tags" in changes:
        note.tags = SerializeTags(changes["tags"])

    plaintext = None
    target_encrypted = changes.get("is_encrypted", note.is_encrypted)
    if "content" in changes:
        plaintext = changes["content"] or ""
        _WriteContent(note, codec, plaintext, target_encrypted)
    elif target_encrypted != note.is_encrypted:
        plaintext = _ReadContentStrict(note, codec)
        _WriteContent(note, codec, plaintext, target_encrypted)

    target_public = changes.get("is_public", note.is_public)
    target_draft = changes.get("is_draft", note.is_draft)
    if target_public and target_draft:
        # Whichever flag the caller set explicitly wins; a bare draft request unpublishes.
        if changes.get("is_public") is True:
            target_draft = False
        else:
            target_public = False

    note.is_draft = target_draft
    if not target_draft and note.published_at is None:
        note.published_at = now

    needs_share_id = False
    if target_public:
        needs_share_id = not note.public_share_id
    else:
        note.public_share_id = None
    note.is_public = target_public
    note.updated_at = now

    db.flush()
    if needs_share_id:
        _AllocateShareId(db, note)
    db.commit()
    db.refresh(note)

    logger.info("note updated note_id=%s fields=%s", note.id, ",".join(sorted(changes)))
    return BuildNoteResponse(note, codec, plaintext=plaintext)


def AutosaveNote(
    db: Session,
    codec: EncryptionCodec,
    user: UserContext,
    note_id: int,
    data: NoteAutosave,
) -> datetime:
    """Save title/content only; encryption follows the note's current flag."""
    changes = data.model_dump(exclude_unset=True)
    _RejectExplicitNulls(changes, ("title",))

    note = note_store.RequireOwnedNote(db, user.Id, note_id)
    now = NowUtc()

    if "title" in changes:
        note.title = changes["title"]
    if "content" in changes:
        _WriteContent(note, codec, changes["content"] or "", note.is_encrypted)
    note.auto_saved_at = now
    note.updated_at = now

    db.commit()
    logger.debug("note autosaved note_id=%s", note_id)
    return now


def DeleteNote(db: Session, user: UserContext, note_id: int) -> None:
    """Delete a note together with its label and category assignments."""
    deleted = note_store.DeleteOwnedNote(db, user.Id, note_id)
    if not deleted:
        db.rollback()
        raise NotFoundError("Note not found")
    db.commit()
    logger.info("note deleted note_id=%s owner_id=%s", note_id, user.Id)


def FetchNote(db: Session, codec: EncryptionCodec, user: UserContext, note_id: int) -> NoteOut:
    note = note_store.RequireOwnedNote(db, user.Id, note_id)
    return BuildNoteResponse(note, codec)


def FetchPublicNote(db: Session, codec: EncryptionCodec, share_id: str) -> PublicNoteOut:
    """Anonymous read by share id; drafts and private notes stay hidden."""
    note = note_store.GetPublishedNoteByShareId(db, share_id)
    if not note:
        raise NotFoundError("Public note not found")
    return _BuildPublicNoteResponse(note, codec)


def ListNotes(
    db: Session,
    codec: EncryptionCodec,
    user: UserContext,
    filters: NoteListFilters,
) -> NoteListResponse:
    spec = BuildNoteQuerySpec(user.Id, filters, db.get_bind().dialect.name)
    notes, total = note_store.QueryNotePage(db, spec)
    return NoteListResponse(
        notes=[BuildNoteResponse(note, codec) for note in notes],
        pagination=BuildPagination(spec.Page, spec.Limit, total, filters.infinite_scroll),
        meta={
            "query_time": int(time.time() * 1000),
            "filters_applied": DescribeFilters(filters),
        },
    )


def GetNoteStats(db: Session, user: UserContext) -> NoteStatsOut:
    return NoteStatsOut(**note_store.CountNotesByState(db, user.Id))
