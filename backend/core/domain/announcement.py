"""Announcement domain rules: visibility and revision snapshots.

Everything in this module is pure; no database or clock access.  Callers pass
``now`` explicitly so the same inputs always give the same answer.
"""
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from core.exceptions import ContentValidationError

TITLE_MAX_LENGTH = 500


class ChangeType(str, Enum):
    """Why a revision was written."""
    CREATE = "CREATE"
    EDIT = "EDIT"
    PUBLISH = "PUBLISH"
    UNPUBLISH = "UNPUBLISH"
    RESTORE = "RESTORE"


class VisibilityReason(str, Enum):
    """Which rule decided an announcement's visibility."""
    TAKEN_DOWN = "taken_down"
    SCHEDULED = "scheduled"
    PUBLISHED = "published"
    UNPUBLISHED = "unpublished"


class LifecycleState(str, Enum):
    """Informal lifecycle state implied by the publish flags."""
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    PUBLISHED = "published"
    TAKEN_DOWN = "taken_down"


_STATE_BY_REASON = {
    VisibilityReason.TAKEN_DOWN: LifecycleState.TAKEN_DOWN,
    VisibilityReason.SCHEDULED: LifecycleState.SCHEDULED,
    VisibilityReason.PUBLISHED: LifecycleState.PUBLISHED,
    VisibilityReason.UNPUBLISHED: LifecycleState.DRAFT,
}


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalise a datetime to aware UTC; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class VisibilityDecision:
    """Outcome of the visibility rules for one announcement at one instant."""
    visible: bool
    reason: VisibilityReason

    @property
    def state(self) -> LifecycleState:
        return _STATE_BY_REASON[self.reason]


def evaluate_visibility(
    is_published: bool,
    scheduled_at: Optional[datetime],
    takedown_at: Optional[datetime],
    now: datetime,
) -> VisibilityDecision:
    """
    Decide whether an announcement is publicly visible at ``now``.

    Rules, first match wins:
        1. takedown_at set and now >= takedown_at: hidden
        2. scheduled_at set and now < scheduled_at: hidden
        3. otherwise visible iff is_published
    """
    now = as_utc(now)
    takedown_at = as_utc(takedown_at)
    scheduled_at = as_utc(scheduled_at)

    if takedown_at is not None and now >= takedown_at:
        return VisibilityDecision(False, VisibilityReason.TAKEN_DOWN)
    if scheduled_at is not None and now < scheduled_at:
        return VisibilityDecision(False, VisibilityReason.SCHEDULED)
    if is_published:
        return VisibilityDecision(True, VisibilityReason.PUBLISHED)
    return VisibilityDecision(False, VisibilityReason.UNPUBLISHED)


def resolve_visibility(
    is_published: bool,
    scheduled_at: Optional[datetime],
    takedown_at: Optional[datetime],
    now: datetime,
) -> bool:
    """Boolean shorthand for :func:`evaluate_visibility`."""
    return evaluate_visibility(is_published, scheduled_at, takedown_at, now).visible


def publish_transition(was_published: bool, is_published: bool) -> Optional[ChangeType]:
    """Change type for a flip of the publish flag, or None when it did not flip."""
    if not was_published and is_published:
        return ChangeType.PUBLISH
    if was_published and not is_published:
        return ChangeType.UNPUBLISH
    return None


@dataclass(frozen=True)
class RevisionSnapshot:
    """The editable fields frozen into every revision."""
    title: str
    content: str
    excerpt: Optional[str] = None
    image_path: Optional[str] = None

    FIELDS = ("title", "content", "excerpt", "image_path")

    def validate(self) -> None:
        if not self.title or not self.title.strip():
            raise ContentValidationError("Title must not be empty")
        if len(self.title) > TITLE_MAX_LENGTH:
            raise ContentValidationError(
                f"Title must be at most {TITLE_MAX_LENGTH} characters"
            )
        if self.content is None:
            raise ContentValidationError("Content must not be null")

    def changed_fields(self, other: "RevisionSnapshot") -> list[str]:
        """Names of the fields whose values differ between the two snapshots."""
        return [name for name in self.FIELDS if getattr(self, name) != getattr(other, name)]

    def as_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def of(cls, source) -> "RevisionSnapshot":
        """Build a snapshot from any object exposing the snapshot attributes."""
        return cls(
            title=source.title,
            content=source.content,
            excerpt=source.excerpt,
            image_path=source.image_path,
        )
