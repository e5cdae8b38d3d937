# Domain Entities
# Pure business rules with no external dependencies
from .announcement import (
    ChangeType,
    LifecycleState,
    RevisionSnapshot,
    VisibilityDecision,
    VisibilityReason,
    as_utc,
    evaluate_visibility,
    publish_transition,
    resolve_visibility,
)
from .media import ImageMedia, Media, MediaKind, UploadedVideoMedia, YouTubeMedia

__all__ = [
    "ChangeType",
    "LifecycleState",
    "RevisionSnapshot",
    "VisibilityDecision",
    "VisibilityReason",
    "as_utc",
    "evaluate_visibility",
    "publish_transition",
    "resolve_visibility",
    "ImageMedia",
    "Media",
    "MediaKind",
    "UploadedVideoMedia",
    "YouTubeMedia",
]
