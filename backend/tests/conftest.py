import os

os.environ.setdefault("LOG_FILE_PATH", "")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from notebox.db import Base, ConfigureSqlite
from notebox.modules.auth.deps import UserContext
from notebox.modules.auth.models import User
from notebox.modules.notes import models as notes_models  # noqa: F401
from notebox.modules.notes.services.encryption_codec import EncryptionCodec


@pytest.fixture()
def engine():
    built = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    ConfigureSqlite(built)
    Base.metadata.create_all(built)
    yield built
    built.dispose()


@pytest.fixture()
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def codec():
    return EncryptionCodec([EncryptionCodec.GenerateKey()])


def _add_user(db, username):
    user = User(username=username, email=f"{username}@example.com")
    db.add(user)
    db.commit()
    return UserContext(Id=user.id, Username=user.username)


@pytest.fixture()
def owner(db):
    return _add_user(db, "alice")


@pytest.fixture()
def other_owner(db):
    return _add_user(db, "bob")
