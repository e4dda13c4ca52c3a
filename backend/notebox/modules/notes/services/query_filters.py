import math
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import func, or_

from notebox.core.errors import ValidationError
from notebox.modules.notes.models import Note, NoteCategory, NoteLabel
from notebox.modules.notes.schemas import NoteVisibility
from notebox.modules.notes.services.tag_list import LIKE_ESCAPE, EscapeLike, TagMatchPattern, TagNeedle

DEFAULT_PAGE_LIMIT = 20
MAX_PAGE_LIMIT = 100
DEFAULT_SORT_FIELD = "updated_at"
MSSQL_BINARY_COLLATION = "Latin1_General_BIN2"

SORTABLE_COLUMNS = {
    "created_at": Note.created_at,
    "updated_at": Note.updated_at,
    "title": Note.title,
    "published_at": Note.published_at,
    "auto_saved_at": Note.auto_saved_at,
}


@dataclass
class NoteListFilters:
    search: str | None = None
    tag: str | None = None
    draft_only: bool | None = None
    visibility: NoteVisibility | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    label_id: int | None = None
    category_id: int | None = None
    sort_by: str | None = None
    sort_order: str | None = None
    page: int = 1
    limit: int = DEFAULT_PAGE_LIMIT
    infinite_scroll: bool = False


@dataclass
class NoteQuerySpec:
    Conditions: list = field(default_factory=list)
    OrderBy: list = field(default_factory=list)
    Page: int = 1
    Limit: int = DEFAULT_PAGE_LIMIT
    Offset: int = 0


def SearchCondition(search: str):
    pattern = f"%{EscapeLike(search)}%"
    return or_(
        Note.title.ilike(pattern, escape=LIKE_ESCAPE),
        Note.content.ilike(pattern, escape=LIKE_ESCAPE),
    )


def TagCondition(tag: str, dialect_name: str | None = None):
    """Exact, case-sensitive membership of one tag in the serialized array."""
    if dialect_name == "sqlite":
        # SQLite LIKE folds ASCII case whatever the collation; instr does not.
        return func.instr(Note.tags, TagNeedle(tag)) > 0
    column = Note.tags
    if dialect_name == "mssql":
        column = column.collate(MSSQL_BINARY_COLLATION)
    return column.like(TagMatchPattern(tag), escape=LIKE_ESCAPE)


def BuildNoteConditions(owner_id: int, filters: NoteListFilters, dialect_name: str | None = None) -> list:
    if filters.date_from and filters.date_to and filters.date_from > filters.date_to:
        raise ValidationError("date_from must not be after date_to", field="date_from")

    conditions = [Note.owner_id == owner_id]

    if filters.draft_only is not None:
        conditions.append(Note.is_draft == filters.draft_only)

    if filters.visibility == NoteVisibility.Public:
        conditions.append(Note.is_public == True)
    elif filters.visibility == NoteVisibility.Private:
        conditions.append(Note.is_public == False)
    elif filters.visibility == NoteVisibility.Encrypted:
        conditions.append(Note.is_encrypted == True)

    search = (filters.search or "").strip()
    if search:
        conditions.append(SearchCondition(search))

    tag = (filters.tag or "").strip()
    if tag:
        conditions.append(TagCondition(tag, dialect_name))

    if filters.date_from:
        conditions.append(Note.created_at >= filters.date_from)
    if filters.date_to:
        conditions.append(Note.created_at <= filters.date_to)

    if filters.label_id is not None:
        conditions.append(Note.label_links.any(NoteLabel.label_id == filters.label_id))
    if filters.category_id is not None:
        conditions.append(Note.category_links.any(NoteCategory.category_id == filters.category_id))

    return conditions


def ResolveSortField(sort_by: str | None) -> str:
    return sort_by if sort_by in SORTABLE_COLUMNS else DEFAULT_SORT_FIELD


def BuildOrderBy(sort_by: str | None, sort_order: str | None) -> list:
    column = SORTABLE_COLUMNS[ResolveSortField(sort_by)]
    primary = column.asc() if (sort_order or "").lower() == "asc" else column.desc()
    # id desc breaks ties so equal sort keys never reshuffle between pages
    return [primary, Note.id.desc()]


def ClampLimit(limit: int | None) -> int:
    if not limit or limit < 1:
        return DEFAULT_PAGE_LIMIT
    return min(limit, MAX_PAGE_LIMIT)


def ClampPage(page: int | None) -> int:
    if not page or page < 1:
        return 1
    return page


def BuildNoteQuerySpec(owner_id: int, filters: NoteListFilters, dialect_name: str | None = None) -> NoteQuerySpec:
    page = ClampPage(filters.page)
    limit = ClampLimit(filters.limit)
    return NoteQuerySpec(
        Conditions=BuildNoteConditions(owner_id, filters, dialect_name),
        OrderBy=BuildOrderBy(filters.sort_by, filters.sort_order),
        Page=page,
        Limit=limit,
        Offset=(page - 1) * limit,
    )


def BuildPagination(page: int, limit: int, total: int, infinite_scroll: bool = False) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit) if limit else 0,
        "hasNext": page * limit < total,
        "hasPrev": page > 1,
        "isInfiniteScroll": infinite_scroll,
    }


def DescribeFilters(filters: NoteListFilters) -> dict:
    return {
        "search": bool((filters.search or "").strip()),
        "tag": bool((filters.tag or "").strip()),
        "draft_only": filters.draft_only is not None,
        "visibility": filters.visibility is not None,
        "date_range": bool(filters.date_from or filters.date_to),
    }
