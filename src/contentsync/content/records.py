"""Record types for every content domain and their row/legacy mappings.

Rows are the remote store's snake_case dicts. Legacy dicts are the camelCase
objects older admin builds kept in the local cache.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Literal

PostStatus = Literal["draft", "published"]

CONTENT_FIELDS = (
    "title",
    "subtitle",
    "content",
    "meta_title",
    "meta_description",
    "featured_image_url",
    "button_text",
    "button_url",
)


def _known(cls, row: dict) -> dict:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in row.items() if k in names}


def _compact(obj) -> dict:
    """Dataclass → row dict, dropping None so upserts leave other columns alone."""
    return {k: v for k, v in asdict(obj).items() if v is not None}


def _pick(data: dict, *names: str, default: Any = None) -> Any:
    for name in names:
        if data.get(name) is not None:
            return data[name]
    return default


@dataclass
class Setting:
    """A keyed JSON value in one of the settings tables."""

    key: str
    value: Any
    created_at: str | None = None
    updated_at: str | None = None

    def to_row(self) -> dict:
        row = {"setting_key": self.key, "setting_value": self.value}
        if self.created_at:
            row["created_at"] = self.created_at
        if self.updated_at:
            row["updated_at"] = self.updated_at
        return row

    @classmethod
    def from_row(cls, row: dict) -> Setting:
        return cls(
            key=row["setting_key"],
            value=row.get("setting_value"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


@dataclass
class ContentRecord:
    """Page content, one per page_key. None means "not set" and is never written."""

    page_key: str
    title: str | None = None
    subtitle: str | None = None
    content: str | None = None
    meta_title: str | None = None
    meta_description: str | None = None
    featured_image_url: str | None = None
    button_text: str | None = None
    button_url: str | None = None
    is_published: bool = True
    created_at: str | None = None
    updated_at: str | None = None

    def to_row(self) -> dict:
        return _compact(self)

    @classmethod
    def from_row(cls, row: dict) -> ContentRecord:
        return cls(**_known(cls, row))

    def field_value(self, name: str) -> Any:
        if name not in CONTENT_FIELDS:
            raise ValueError(f"Unknown content field '{name}'")
        return getattr(self, name)


@dataclass
class Post:
    """Blog post."""

    id: str
    title: str
    slug: str
    content: str = ""
    excerpt: str = ""
    featured_image: str | None = None
    featured_image_alt: str | None = None
    video_url: str | None = None
    author: str = "FastNow Team"
    categories: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    status: PostStatus = "draft"
    meta_description: str | None = None
    meta_keywords: str | None = None
    show_author_box: bool = True
    created_at: str | None = None
    updated_at: str | None = None
    published_at: str | None = None

    def to_row(self) -> dict:
        row = _compact(self)
        # published_at is cleared explicitly when a post goes back to draft
        row["published_at"] = self.published_at
        return row

    @classmethod
    def from_row(cls, row: dict):
        return cls(**_known(cls, row))

    @classmethod
    def _legacy_kwargs(cls, data: dict) -> dict:
        status = data.get("status")
        return {
            "id": str(data["id"]) if data.get("id") is not None else "",
            "title": str(data.get("title") or ""),
            "slug": str(data.get("slug") or ""),
            "content": data.get("content") or "",
            "excerpt": data.get("excerpt") or "",
            "featured_image": _pick(data, "featuredImage", "featured_image") or None,
            "featured_image_alt": _pick(data, "featuredImageAlt", "featured_image_alt") or None,
            "video_url": _pick(data, "videoUrl", "video_url") or None,
            "author": data.get("author") or "FastNow Team",
            "categories": list(data.get("categories") or []),
            "tags": list(data.get("tags") or []),
            "status": "published" if status == "published" else "draft",
            "meta_description": _pick(data, "metaDescription", "meta_description"),
            "meta_keywords": _pick(data, "metaKeywords", "meta_keywords"),
            "show_author_box": bool(_pick(data, "showAuthorBox", "show_author_box", default=True)),
            "created_at": _pick(data, "createdAt", "created_at"),
            "updated_at": _pick(data, "updatedAt", "updated_at"),
            "published_at": _pick(data, "publishedAt", "published_at"),
        }

    @classmethod
    def from_legacy(cls, data: dict):
        """Build from a camelCase post object written by the old admin UI."""
        return cls(**cls._legacy_kwargs(data))


@dataclass
class TimelinePost(Post):
    """Fasting timeline post, one per hour of a fast (0-96)."""

    hour: int = 0
    whats_happening: str | None = None
    how_youre_feeling: str | None = None

    @classmethod
    def _legacy_kwargs(cls, data: dict) -> dict:
        kwargs = super()._legacy_kwargs(data)
        kwargs["hour"] = int(data.get("hour") or 0)
        kwargs["whats_happening"] = _pick(data, "whatsHappening", "whats_happening")
        kwargs["how_youre_feeling"] = _pick(data, "howYoureFeeling", "how_youre_feeling")
        return kwargs


@dataclass
class Motivator:
    id: str
    title: str
    description: str = ""
    image_url: str = ""
    caption: str = ""
    category: str = "personal"
    subcategory: str = ""
    difficulty: str = "easy"
    timeframe: str = ""
    tags: list[str] = field(default_factory=list)
    is_active: bool = True
    is_featured: bool = False
    is_predefined: bool = False
    sort_order: int = 0
    times_used: int = 0
    total_sessions: int = 0
    completed_sessions: int = 0
    total_time_spent: int = 0

    def to_row(self) -> dict:
        return _compact(self)

    @classmethod
    def from_row(cls, row: dict) -> Motivator:
        return cls(**_known(cls, row))

    @classmethod
    def from_legacy(cls, data: dict) -> Motivator:
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            description=data.get("description") or "",
            # `image` is the pre-imageUrl field name
            image_url=_pick(data, "imageUrl", "image_url", "image", default=""),
            caption=data.get("caption") or "",
            category=data.get("category") or "personal",
            subcategory=data.get("subcategory") or "",
            difficulty=data.get("difficulty") or "easy",
            timeframe=data.get("timeframe") or "",
            tags=list(data.get("tags") or []),
            is_active=bool(_pick(data, "isActive", "is_active", default=True)),
            is_featured=bool(_pick(data, "isFeatured", "is_featured", default=False)),
            is_predefined=bool(_pick(data, "isPredefined", "is_predefined", default=False)),
            sort_order=int(_pick(data, "sortOrder", "sort_order", default=0)),
            times_used=int(_pick(data, "timesUsed", "times_used", default=0)),
            total_sessions=int(_pick(data, "totalSessions", "total_sessions", default=0)),
            completed_sessions=int(
                _pick(data, "completedSessions", "completed_sessions", default=0)
            ),
            total_time_spent=int(_pick(data, "totalTimeSpent", "total_time_spent", default=0)),
        )


@dataclass
class FastingHour:
    hour: int
    day: int
    title: str
    body_state: str = ""
    common_feelings: list[str] = field(default_factory=list)
    encouragement: str = ""
    motivator_tags: list[str] = field(default_factory=list)
    difficulty: str = "easy"
    phase: str = "preparation"
    tips: list[str] = field(default_factory=list)
    scientific_info: str = ""
    image_url: str = ""
    positive_symptoms: list[str] = field(default_factory=list)
    challenging_symptoms: list[str] = field(default_factory=list)
    autophagy_milestone: bool = False
    ketosis_milestone: bool = False
    fat_burning_milestone: bool = False

    def to_row(self) -> dict:
        return _compact(self)

    @classmethod
    def from_row(cls, row: dict) -> FastingHour:
        return cls(**_known(cls, row))

    @classmethod
    def from_legacy(cls, data: dict) -> FastingHour:
        hour = int(data["hour"])
        symptoms = data.get("symptoms")
        if not isinstance(symptoms, dict):
            symptoms = {}
        milestones = data.get("milestones")
        if not isinstance(milestones, dict):
            milestones = {}
        return cls(
            hour=hour,
            day=int(data.get("day") or hour // 24 + 1),
            title=str(data.get("title") or ""),
            body_state=_pick(data, "bodyState", "body_state", default=""),
            common_feelings=list(_pick(data, "commonFeelings", "common_feelings", default=[])),
            encouragement=data.get("encouragement") or "",
            motivator_tags=list(_pick(data, "motivatorTags", "motivator_tags", default=[])),
            difficulty=data.get("difficulty") or "easy",
            phase=data.get("phase") or "preparation",
            tips=list(data.get("tips") or []),
            scientific_info=_pick(data, "scientificInfo", "scientific_info", default=""),
            image_url=_pick(data, "imageUrl", "image_url", default=""),
            positive_symptoms=list(symptoms.get("positive") or []),
            challenging_symptoms=list(symptoms.get("challenging") or []),
            autophagy_milestone=bool(milestones.get("autophagy", False)),
            ketosis_milestone=bool(milestones.get("ketosis", False)),
            fat_burning_milestone=bool(milestones.get("fatBurning", False)),
        )
