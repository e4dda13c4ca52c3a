import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from notebox.core.errors import DecryptionError
from notebox.modules.notes.models import Note
from notebox.modules.notes.services.encryption_codec import EncryptionCodec

logger = logging.getLogger("notes.crypto")


@dataclass
class RotationResult:
    Scanned: int = 0
    Rotated: int = 0
    Failed: int = 0


def RotateNoteKeys(db: Session, codec: EncryptionCodec, batch_size: int = 200, dry_run: bool = False) -> RotationResult:
    """Re-encrypt every encrypted note body under the codec's primary key.

    Rows are walked in id order and committed per batch. Rows no configured
    key can open are counted and left untouched.
    """
    result = RotationResult()
    last_id = 0
    batch_size = max(1, batch_size)

    while True:
        batch = (
            db.query(Note)
            .filter(
                Note.id > last_id,
                Note.is_encrypted == True,  # noqa: E712
                Note.encrypted_content.isnot(None),
            )
            .order_by(Note.id.asc())
            .limit(batch_size)
            .all()
        )
        if not batch:
            break

        for note in batch:
            result.Scanned += 1
            try:
                rotated = codec.Rotate(note.encrypted_content)
            except DecryptionError:
                result.Failed += 1
                logger.warning("key rotation skipped note_id=%s: no key opens it", note.id)
                continue
            if not dry_run:
                # updated_at is left alone; rotation is not a user edit.
                note.encrypted_content = rotated
            result.Rotated += 1
        last_id = batch[-1].id

        if dry_run:
            db.rollback()
        else:
            db.commit()
        logger.info("key rotation batch done through note_id=%s rotated=%s", last_id, result.Rotated)

    return result
