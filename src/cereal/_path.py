"""Immutable field paths used to locate decode and encode errors."""

from __future__ import annotations

from typing import Final

ROOT_SEGMENT: Final = "<root>"


class FieldPath:
    """Ordered breadcrumb of field names and array indices.

    Paths never change after construction. Descending into a container
    returns a new path, so an error raised inside one branch of a document
    always reports the ancestors it was actually reached through.
    """

    __slots__ = ("segments",)

    def __init__(self, segments: tuple[str, ...] = (ROOT_SEGMENT,)) -> None:
        """Initialize a path from its segments.

        Args:
            segments: Path segments, outermost first
        """
        self.segments: Final = segments

    def child(self, key: str) -> FieldPath:
        """Returns the path of a field nested under this one.

        Args:
            key: Map key of the nested field

        Returns:
            A new path one segment longer
        """
        return FieldPath((*self.segments, key))

    def index(self, position: int) -> FieldPath:
        """Returns the path of an array element nested under this one."""
        return self.child(str(position))

    @property
    def depth(self) -> int:
        return len(self.segments)

    def __str__(self) -> str:
        return ".".join(self.segments)

    def __repr__(self) -> str:
        return f"FieldPath({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FieldPath):
            return NotImplemented
        return self.segments == other.segments

    def __hash__(self) -> int:
        return hash(self.segments)


ROOT: Final = FieldPath()
