"""Error taxonomy for the review workflow."""

from __future__ import annotations


class ReviewError(Exception):
    """Base class for errors surfaced to reviewers and donors."""


class ValidationError(ReviewError):
    """Malformed or missing input, raised before any store mutation.

    ``fields`` maps each offending field name to a human-readable message.
    """

    def __init__(self, fields: dict[str, str]) -> None:
        self.fields = dict(fields)
        summary = ", ".join(f"{name}: {msg}" for name, msg in self.fields.items())
        super().__init__(f"Invalid input ({summary})")


class InvalidTransition(ReviewError):
    """A review action was attempted from a state that does not allow it."""

    def __init__(self, contribution_id: str, current: str, target: str) -> None:
        self.contribution_id = contribution_id
        self.current = current
        self.target = target
        super().__init__(
            f"Contribution {contribution_id} cannot move from '{current}' to '{target}'"
        )


class UploadError(ReviewError):
    """Payment evidence could not be stored.

    ``retryable`` is False when the file itself was refused (type, size, name).
    """

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        self.retryable = retryable
        super().__init__(message)


class NotFoundError(ReviewError):
    """A referenced contribution does not exist."""

    def __init__(self, contribution_id: str) -> None:
        self.contribution_id = contribution_id
        super().__init__(f"Contribution {contribution_id} not found")
