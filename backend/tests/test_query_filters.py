from datetime import datetime

import pytest
from sqlalchemy.dialects import mssql, sqlite

from notebox.core.config import ShareIdMaxAttempts, _read_int_env
from notebox.core.errors import ValidationError
from notebox.modules.notes.services.query_filters import (
    MAX_PAGE_LIMIT,
    BuildNoteQuerySpec,
    BuildPagination,
    ClampLimit,
    ClampPage,
    DescribeFilters,
    NoteListFilters,
    ResolveSortField,
    TagCondition,
)
from notebox.modules.notes.services.tag_list import NormalizeTags, ParseTags, SerializeTags, TagMatchPattern


def test_unknown_sort_field_falls_back_to_updated_at():
    assert ResolveSortField("title") == "title"
    assert ResolveSortField("password") == "updated_at"
    assert ResolveSortField(None) == "updated_at"


def test_limit_is_capped_and_defaulted():
    assert ClampLimit(500) == MAX_PAGE_LIMIT
    assert ClampLimit(0) == 20
    assert ClampLimit(None) == 20
    assert ClampLimit(15) == 15


def test_page_below_one_becomes_one():
    assert ClampPage(0) == 1
    assert ClampPage(-3) == 1
    assert ClampPage(4) == 4


def test_query_spec_offset_uses_clamped_values():
    spec = BuildNoteQuerySpec(1, NoteListFilters(page=3, limit=1000))
    assert spec.Limit == MAX_PAGE_LIMIT
    assert spec.Offset == 200
    assert len(spec.OrderBy) == 2


def test_inverted_date_range_is_rejected():
    filters = NoteListFilters(date_from=datetime(2026, 2, 1), date_to=datetime(2026, 1, 1))
    with pytest.raises(ValidationError) as exc_info:
        BuildNoteQuerySpec(1, filters)
    assert exc_info.value.field == "date_from"


def test_pagination_math():
    pagination = BuildPagination(page=2, limit=10, total=25)
    assert pagination["totalPages"] == 3
    assert pagination["hasNext"] is True
    assert pagination["hasPrev"] is True

    last = BuildPagination(page=3, limit=10, total=25, infinite_scroll=True)
    assert last["hasNext"] is False
    assert last["isInfiniteScroll"] is True

    empty = BuildPagination(page=1, limit=20, total=0)
    assert empty["totalPages"] == 0
    assert empty["hasNext"] is False
    assert empty["hasPrev"] is False


def test_describe_filters_ignores_blank_search():
    applied = DescribeFilters(NoteListFilters(search="   ", tag="work", draft_only=False))
    assert applied["search"] is False
    assert applied["tag"] is True
    assert applied["draft_only"] is True
    assert applied["date_range"] is False


def test_tags_are_normalized_and_parsed_leniently():
    assert NormalizeTags([" work ", "work", "", "home"]) == ["work", "home"]
    assert ParseTags(SerializeTags(["café", "x"])) == ["café", "x"]
    assert ParseTags("not json") == []
    assert ParseTags('{"a": 1}') == []
    assert ParseTags(None) == []


def test_tag_pattern_escapes_like_wildcards():
    assert TagMatchPattern("100%") == '%"100\\%"%'
    assert TagMatchPattern("a_b") == '%"a\\_b"%'


def test_tag_condition_uses_case_sensitive_comparison_per_dialect():
    sqlite_sql = str(TagCondition("work", "sqlite").compile(dialect=sqlite.dialect()))
    mssql_sql = str(TagCondition("work", "mssql").compile(dialect=mssql.dialect()))

    assert "instr(" in sqlite_sql
    assert "COLLATE Latin1_General_BIN2" in mssql_sql
    assert "LIKE" in mssql_sql


def test_int_env_rejects_garbage(monkeypatch):
    monkeypatch.setenv("SHARE_ID_MAX_ATTEMPTS", "lots")
    with pytest.raises(RuntimeError):
        ShareIdMaxAttempts()

    monkeypatch.setenv("SHARE_ID_MAX_ATTEMPTS", "")
    assert ShareIdMaxAttempts() == 5
    assert _read_int_env("SQLALCHEMY_POOL_SIZE_UNSET_FOR_TEST", 7) == 7
