from fastapi import HTTPException, Request, status

from notebox.core.config import LoadEncryptionKeys
from notebox.modules.notes.services.encryption_codec import EncryptionCodec


def BuildEncryptionCodec() -> EncryptionCodec:
    keys = LoadEncryptionKeys()
    try:
        return EncryptionCodec(keys)
    except ValueError as exc:
        raise RuntimeError("NOTES_ENCRYPTION_KEYS contains an invalid Fernet key") from exc


def GetEncryptionCodec(request: Request) -> EncryptionCodec:
    codec = getattr(request.app.state, "encryption_codec", None)
    if codec is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Note encryption is not configured",
        )
    return codec
