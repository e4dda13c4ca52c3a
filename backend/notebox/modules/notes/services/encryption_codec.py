import logging
from typing import Sequence

from cryptography.fernet import Fernet, InvalidToken, MultiFernet

from notebox.core.errors import DecryptionError

logger = logging.getLogger("notes.crypto")

CONTENT_UNAVAILABLE = "[Content unavailable]"


class EncryptionCodec:
    """Authenticated symmetric encryption for note bodies.

    Wraps Fernet (AES-128-CBC with an HMAC-SHA256 tag), so tampered or
    truncated ciphertext is rejected instead of decoding to garbage. The
    first key encrypts; every key is tried on decrypt, which lets a new key
    be rolled out before old rows are re-encrypted.
    """

    def __init__(self, keys: Sequence[str | bytes]):
        if not keys:
            raise ValueError("At least one encryption key is required")
        fernets = []
        for key in keys:
            raw = key.encode("ascii") if isinstance(key, str) else key
            try:
                fernets.append(Fernet(raw))
            except (ValueError, TypeError) as exc:
                raise ValueError("Invalid encryption key material") from exc
        self._fernet = MultiFernet(fernets)

    @staticmethod
    def GenerateKey() -> str:
        return Fernet.generate_key().decode("ascii")

    def Encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def Decrypt(self, ciphertext: str) -> str:
        try:
            token = ciphertext.encode("ascii")
            return self._fernet.decrypt(token).decode("utf-8")
        except (InvalidToken, UnicodeError, AttributeError) as exc:
            raise DecryptionError("Failed to decrypt content") from exc

    def Rotate(self, ciphertext: str) -> str:
        """Re-encrypt a token under the primary key."""
        try:
            return self._fernet.rotate(ciphertext.encode("ascii")).decode("ascii")
        except (InvalidToken, UnicodeError, AttributeError) as exc:
            raise DecryptionError("Failed to rotate content") from exc

    def DecryptOrSentinel(self, ciphertext: str, note_id: int | None = None) -> str:
        try:
            return self.Decrypt(ciphertext)
        except DecryptionError:
            logger.warning("decryption failed for note_id=%s", note_id)
            return CONTENT_UNAVAILABLE
