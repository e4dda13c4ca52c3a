import os

DEFAULT_SHARE_ID_MAX_ATTEMPTS = 5


def _require_env(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise RuntimeError(f"Missing required env var: {name}")
    return value


def _env_truthy(name: str) -> bool:
    value = os.getenv(name, "").strip().lower()
    return value in {"1", "true", "yes", "on"}


def _read_int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer") from exc


def LoadEncryptionKeys() -> list[str]:
    """Primary key first; the rest are only used to decrypt older rows."""
    raw = _require_env("NOTES_ENCRYPTION_KEYS")
    keys = [part.strip() for part in raw.split(",") if part.strip()]
    if not keys:
        raise RuntimeError("Missing required env var: NOTES_ENCRYPTION_KEYS")
    return keys


def ShareIdMaxAttempts() -> int:
    return max(1, _read_int_env("SHARE_ID_MAX_ATTEMPTS", DEFAULT_SHARE_ID_MAX_ATTEMPTS))
