#!/usr/bin/env python3
"""
rotate_encryption_key.py - Re-encrypt stored note bodies under the primary key.

Put the new key first in NOTES_ENCRYPTION_KEYS and keep the old keys after it,
deploy, then run this script. Once it reports zero failures the old keys can
be removed.

Usage examples:
  python scripts/rotate_encryption_key.py --dry-run
  python scripts/rotate_encryption_key.py --env-file /path/to/.env --batch-size 500
  python scripts/rotate_encryption_key.py --generate-key

Flags:
  --env-file PATH
    Load environment variables from PATH before connecting (default: .env).
  --batch-size N
    Rows per transaction (default: 200).
  --dry-run
    Decrypt and re-encrypt in memory without writing anything.
  --generate-key
    Print a fresh Fernet key and exit.
"""
import argparse
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from sqlalchemy.orm import sessionmaker

BACKEND_DIR = Path(__file__).resolve().parents[1] / "backend"
sys.path.append(str(BACKEND_DIR))

from notebox.core.logging import setup_logging  # noqa: E402
from notebox.db import BuildAdminConnectionUrl, BuildEngine  # noqa: E402
from notebox.modules.notes.deps import BuildEncryptionCodec  # noqa: E402
from notebox.modules.notes.services.encryption_codec import EncryptionCodec  # noqa: E402
from notebox.modules.notes.services.key_rotation import RotateNoteKeys  # noqa: E402

DEFAULT_ENV_PATH = ".env"
DEFAULT_BATCH_SIZE = 200


def LoadEnvFile(EnvPath: str) -> None:
    if not EnvPath:
        return
    if not os.path.exists(EnvPath):
        raise RuntimeError(f"Env file not found: {EnvPath}")
    load_dotenv(dotenv_path=EnvPath)


def ParseArgs() -> argparse.Namespace:
    Parser = argparse.ArgumentParser(description="Re-encrypt note bodies under the primary encryption key.")
    Parser.add_argument(
        "--env-file",
        default=DEFAULT_ENV_PATH,
        help=f"Path to .env file (default: {DEFAULT_ENV_PATH}).",
    )
    Parser.add_argument(
        "--batch-size",
        type=int,
        default=DEFAULT_BATCH_SIZE,
        help=f"Rows per transaction (default: {DEFAULT_BATCH_SIZE}).",
    )
    Parser.add_argument("--dry-run", action="store_true", help="Do not write rotated ciphertext.")
    Parser.add_argument("--generate-key", action="store_true", help="Print a new key and exit.")
    Args = Parser.parse_args()
    if Args.batch_size < 1:
        Parser.error("--batch-size must be at least 1.")
    return Args


def Main() -> int:
    Args = ParseArgs()
    if Args.generate_key:
        print(EncryptionCodec.GenerateKey())
        return 0

    if Args.env_file != DEFAULT_ENV_PATH or os.path.exists(Args.env_file):
        LoadEnvFile(Args.env_file)
    os.environ.setdefault("LOG_FILE_PATH", "")
    setup_logging()

    Codec = BuildEncryptionCodec()
    Engine = BuildEngine(BuildAdminConnectionUrl())
    Session = sessionmaker(bind=Engine, autocommit=False, autoflush=False)
    try:
        with Session() as Db:
            Result = RotateNoteKeys(Db, Codec, batch_size=Args.batch_size, dry_run=Args.dry_run)
    finally:
        Engine.dispose()

    Mode = "dry run" if Args.dry_run else "rotation"
    print(f"{Mode}: scanned={Result.Scanned} rotated={Result.Rotated} failed={Result.Failed}")
    return 1 if Result.Failed else 0


if __name__ == "__main__":
    raise SystemExit(Main())
