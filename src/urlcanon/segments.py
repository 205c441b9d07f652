from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator


class SegmentState(Enum):
    KEPT = "kept"
    REMOVED = "removed"
    # A ".." with nothing left of it to cancel. Preserved in the output.
    UNRESOLVED = "unresolved"


@dataclass
class Segment:
    start: int
    end: int
    trailing_slash: bool
    state: SegmentState = SegmentState.KEPT

    @property
    def survives(self) -> bool:
        return self.state is not SegmentState.REMOVED


class SegmentTable:
    """Segment slices of one path. The length never changes after construction."""

    def __init__(self, path: str, segments: list[Segment]) -> None:
        self.path = path
        self._segments = tuple(segments)

    def __len__(self) -> int:
        return len(self._segments)

    def __iter__(self) -> Iterator[Segment]:
        return iter(self._segments)

    def __getitem__(self, index: int) -> Segment:
        return self._segments[index]

    def text(self, index: int) -> str:
        segment = self._segments[index]
        return self.path[segment.start : segment.end]

    def is_dot(self, index: int) -> bool:
        return self.text(index) == "."

    def is_dot_dot(self, index: int) -> bool:
        return self.text(index) == ".."

    def remove(self, index: int) -> None:
        self._segments[index].state = SegmentState.REMOVED

    def first_surviving(self) -> int | None:
        for index, segment in enumerate(self._segments):
            if segment.survives:
                return index
        return None

    def surviving(self) -> list[Segment]:
        return [segment for segment in self._segments if segment.survives]
