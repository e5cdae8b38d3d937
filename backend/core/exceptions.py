"""
Domain exceptions raised by the service layer.

Routes translate these into HTTP responses; services never raise
HTTPException themselves.
"""


class ContentError(Exception):
    """Base class for content-management errors."""


class NotFoundError(ContentError):
    """Referenced announcement, revision or category does not exist."""

    def __init__(self, resource: str, resource_id: str | None = None):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")


class ConflictError(ContentError):
    """A concurrent writer won a race that could not be resolved by retrying."""


class ContentValidationError(ContentError):
    """Submitted content is malformed (e.g. empty title)."""


class CategoryInUseError(ContentError):
    """Category still has announcements attached and cannot be deleted."""

    def __init__(self, announcement_count: int):
        self.announcement_count = announcement_count
        super().__init__(
            f"Cannot delete category with {announcement_count} announcements. "
            "Move or delete announcements first."
        )


class AlreadyExistsError(ContentError):
    """A record with the same unique key already exists."""
