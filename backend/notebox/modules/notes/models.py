from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import relationship

from notebox.db import Base


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class Note(Base):
    __tablename__ = "notes"
    # Filtered so any number of private notes can hold a NULL share id on SQL Server.
    __table_args__ = (
        Index(
            "ux_notes_public_share_id",
            "public_share_id",
            unique=True,
            mssql_where=text("public_share_id IS NOT NULL"),
            sqlite_where=text("public_share_id IS NOT NULL"),
            postgresql_where=text("public_share_id IS NOT NULL"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=True)
    encrypted_content = Column(Text, nullable=True)
    is_encrypted = Column(Boolean, nullable=False, default=False)
    is_draft = Column(Boolean, nullable=False, default=True, index=True)
    is_public = Column(Boolean, nullable=False, default=False, index=True)
    public_share_id = Column(String(50), nullable=True)
    tags = Column(Text, nullable=True)  # JSON array of strings
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    published_at = Column(DateTime(timezone=True), nullable=True)
    auto_saved_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    owner = relationship("User", back_populates="notes")
    label_links = relationship("NoteLabel", back_populates="note", cascade="all, delete-orphan", passive_deletes=True)
    category_links = relationship("NoteCategory", back_populates="note", cascade="all, delete-orphan", passive_deletes=True)
    shares = relationship("NoteShare", back_populates="note", cascade="all, delete-orphan", passive_deletes=True)


class NoteShare(Base):
    # Reserved for per-user sharing; nothing writes to it yet.
    __tablename__ = "note_shares"

    id = Column(Integer, primary_key=True, index=True)
    note_id = Column(Integer, ForeignKey("notes.id", ondelete="CASCADE"), nullable=False, index=True)
    shared_with_user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    permission = Column(String(20), default="read")  # read, write, admin
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    note = relationship("Note", back_populates="shares")


class Label(Base):
    __tablename__ = "labels"
    __table_args__ = (UniqueConstraint("user_id", "name", name="ux_labels_user_name"),)

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False, index=True)
    color = Column(String(7), nullable=False, default="#667eea")
    icon = Column(String(50), nullable=False, default="🏷️")
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    note_links = relationship("NoteLabel", back_populates="label", cascade="all, delete-orphan")


class Category(Base):
    __tablename__ = "categories"
    __table_args__ = (UniqueConstraint("user_id", "name", name="ux_categories_user_name"),)

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False, index=True)
    color = Column(String(7), nullable=False, default="#28a745")
    icon = Column(String(50), nullable=False, default="📁")
    description = Column(Text, nullable=True)
    parent_category_id = Column(
        Integer, ForeignKey("categories.id"), nullable=True, index=True
    )
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    note_links = relationship("NoteCategory", back_populates="category", cascade="all, delete-orphan")


class NoteLabel(Base):
    __tablename__ = "note_labels"
    __table_args__ = (UniqueConstraint("note_id", "label_id", name="ux_note_labels_pair"),)

    id = Column(Integer, primary_key=True, index=True)
    note_id = Column(Integer, ForeignKey("notes.id", ondelete="CASCADE"), nullable=False, index=True)
    label_id = Column(Integer, ForeignKey("labels.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    note = relationship("Note", back_populates="label_links")
    label = relationship("Label", back_populates="note_links")


class NoteCategory(Base):
    __tablename__ = "note_categories"
    __table_args__ = (UniqueConstraint("note_id", "category_id", name="ux_note_categories_pair"),)

    id = Column(Integer, primary_key=True, index=True)
    note_id = Column(Integer, ForeignKey("notes.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    note = relationship("Note", back_populates="category_links")
    category = relationship("Category", back_populates="note_links")
