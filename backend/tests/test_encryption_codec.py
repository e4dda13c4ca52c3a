import pytest
from cryptography.fernet import Fernet

from notebox.core.errors import DecryptionError
from notebox.modules.notes.services.encryption_codec import CONTENT_UNAVAILABLE, EncryptionCodec


def test_round_trip_keeps_empty_and_multibyte_text(codec):
    for text in ["", "plain", "héllo wörld ✓ 日本語 🎉"]:
        token = codec.Encrypt(text)
        assert token != text
        assert codec.Decrypt(token) == text


def test_encrypt_is_not_deterministic(codec):
    assert codec.Encrypt("same") != codec.Encrypt("same")


def test_tampered_ciphertext_is_rejected(codec):
    token = codec.Encrypt("secret body")
    middle = len(token) // 2
    swapped = "A" if token[middle] != "A" else "B"
    tampered = token[:middle] + swapped + token[middle + 1:]
    with pytest.raises(DecryptionError):
        codec.Decrypt(tampered)


def test_garbage_ciphertext_is_rejected(codec):
    with pytest.raises(DecryptionError):
        codec.Decrypt("not a token")


def test_ciphertext_from_another_key_is_rejected(codec):
    foreign = EncryptionCodec([EncryptionCodec.GenerateKey()])
    with pytest.raises(DecryptionError):
        codec.Decrypt(foreign.Encrypt("hello"))


def test_invalid_key_material_fails_construction():
    with pytest.raises(ValueError):
        EncryptionCodec(["too-short"])
    with pytest.raises(ValueError):
        EncryptionCodec([])


def test_secondary_key_still_decrypts_and_rotate_moves_to_primary():
    old_key = Fernet.generate_key().decode("ascii")
    new_key = Fernet.generate_key().decode("ascii")
    old_codec = EncryptionCodec([old_key])
    token = old_codec.Encrypt("rotating")

    rolled = EncryptionCodec([new_key, old_key])
    assert rolled.Decrypt(token) == "rotating"

    rotated = rolled.Rotate(token)
    assert EncryptionCodec([new_key]).Decrypt(rotated) == "rotating"


def test_decrypt_or_sentinel_hides_failures(codec):
    assert codec.DecryptOrSentinel("broken", note_id=7) == CONTENT_UNAVAILABLE
