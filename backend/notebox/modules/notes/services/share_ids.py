import secrets

SHARE_ID_LENGTH = 12


def GenerateShareId() -> str:
    """Return a 12 character lowercase hex token."""
    return secrets.token_hex(SHARE_ID_LENGTH // 2)
