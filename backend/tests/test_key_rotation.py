from notebox.modules.notes.models import Note
from notebox.modules.notes.schemas import NoteCreate
from notebox.modules.notes.services import notes_service
from notebox.modules.notes.services.encryption_codec import EncryptionCodec
from notebox.modules.notes.services.key_rotation import RotateNoteKeys


def _seed(db, codec, user, count):
    return [
        notes_service.CreateNote(
            db, codec, user, NoteCreate(title=f"Secret {index}", content=f"body {index}", is_encrypted=True)
        ).id
        for index in range(count)
    ]


def test_rotation_moves_rows_to_primary_key(db, owner):
    old_key = EncryptionCodec.GenerateKey()
    new_key = EncryptionCodec.GenerateKey()
    note_ids = _seed(db, EncryptionCodec([old_key]), owner, 5)
    notes_service.CreateNote(db, EncryptionCodec([old_key]), owner, NoteCreate(title="Plain", content="open"))

    result = RotateNoteKeys(db, EncryptionCodec([new_key, old_key]), batch_size=2)

    assert result.Scanned == 5
    assert result.Rotated == 5
    assert result.Failed == 0
    only_new = EncryptionCodec([new_key])
    db.expire_all()
    for note in db.query(Note).filter(Note.id.in_(note_ids)).all():
        assert only_new.Decrypt(note.encrypted_content).startswith("body ")


def test_dry_run_writes_nothing_and_counts_failures(db, owner):
    old_key = EncryptionCodec.GenerateKey()
    note_ids = _seed(db, EncryptionCodec([old_key]), owner, 2)
    broken = db.query(Note).filter(Note.id == note_ids[0]).one()
    broken.encrypted_content = "garbage"
    db.commit()
    before = {note.id: note.encrypted_content for note in db.query(Note).all()}

    result = RotateNoteKeys(db, EncryptionCodec([EncryptionCodec.GenerateKey(), old_key]), dry_run=True)

    assert result.Scanned == 2
    assert result.Rotated == 1
    assert result.Failed == 1
    db.expire_all()
    assert {note.id: note.encrypted_content for note in db.query(Note).all()} == before
