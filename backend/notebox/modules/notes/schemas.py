from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class NoteVisibility(str, Enum):
    Public = "public"
    Private = "private"
    Encrypted = "encrypted"


class TagKind(str, Enum):
    Label = "label"
    Category = "category"


# Note schemas
class NoteCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_encrypted: bool = False
    is_public: bool = False
    is_draft: bool = True


class NoteUpdate(BaseModel):
    """Every field is optional; only fields sent by the client are applied."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = None
    tags: Optional[List[str]] = None
    is_encrypted: Optional[bool] = None
    is_public: Optional[bool] = None
    is_draft: Optional[bool] = None


class NoteAutosave(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = None


class NoteOut(BaseModel):
    id: int
    owner_id: int
    title: str
    content: Optional[str] = None
    is_encrypted: bool
    is_draft: bool
    is_public: bool
    public_share_id: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    published_at: Optional[datetime] = None
    auto_saved_at: Optional[datetime] = None


class PublicNoteOut(BaseModel):
    id: int
    title: str
    content: Optional[str] = None
    is_encrypted: bool
    tags: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    published_at: Optional[datetime] = None


class PaginationOut(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int
    hasNext: bool
    hasPrev: bool
    isInfiniteScroll: bool = False


class FiltersAppliedOut(BaseModel):
    search: bool
    tag: bool
    draft_only: bool
    visibility: bool
    date_range: bool


class ListMetaOut(BaseModel):
    query_time: int
    filters_applied: FiltersAppliedOut


class NoteListResponse(BaseModel):
    notes: List[NoteOut]
    pagination: PaginationOut
    meta: ListMetaOut


class NoteEnvelope(BaseModel):
    note: NoteOut


class PublicNoteEnvelope(BaseModel):
    note: PublicNoteOut


class NoteMutationResponse(BaseModel):
    message: str
    note: NoteOut


class AutosaveResponse(BaseModel):
    message: str
    auto_saved_at: datetime


class MessageResponse(BaseModel):
    message: str


class NoteStatsOut(BaseModel):
    total: int
    drafts: int
    published: int
    public: int
    encrypted: int


class NoteStatsResponse(BaseModel):
    stats: NoteStatsOut


# Label and category schemas
class LabelCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    icon: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None


class LabelUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    icon: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None


class CategoryCreate(LabelCreate):
    parent_category_id: Optional[int] = None


class CategoryUpdate(LabelUpdate):
    parent_category_id: Optional[int] = None


class LabelOut(BaseModel):
    id: int
    owner_id: int
    name: str
    color: str
    icon: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CategoryOut(LabelOut):
    parent_category_id: Optional[int] = None


class LabelListResponse(BaseModel):
    labels: List[LabelOut]


class LabelEnvelope(BaseModel):
    message: str
    label: LabelOut


class CategoryListResponse(BaseModel):
    categories: List[CategoryOut]


class CategoryEnvelope(BaseModel):
    message: str
    category: CategoryOut


# Assignment schemas
class LabelAssignRequest(BaseModel):
    labelIds: List[int]


class CategoryAssignRequest(BaseModel):
    categoryIds: List[int]


class AssignmentResponse(BaseModel):
    message: str
    tagIds: List[int]


class TagSummaryOut(BaseModel):
    id: int
    name: str
    color: str
    icon: str


class NoteWithTagsOut(NoteOut):
    labels: List[TagSummaryOut] = Field(default_factory=list)
    categories: List[TagSummaryOut] = Field(default_factory=list)


class NotesWithTagsResponse(BaseModel):
    notes: List[NoteWithTagsOut]
