from __future__ import annotations

from loguru import logger

from urlcanon.errors import InternalError
from urlcanon.segments import Segment, SegmentState, SegmentTable

_DOT_SEGMENTS = frozenset({".", ".."})


def normalize_path(path: str) -> str:
    """Remove dot-segments and collapse repeated slashes in a URL path.

    ``.`` segments are dropped and each ``..`` cancels the nearest surviving
    segment to its left. A ``..`` with nothing to cancel (a leading ``..`` or
    one following other unresolved ``..``) is preserved rather than clamped at
    the root. Trailing slashes survive, so ``/a/b/..`` becomes ``/a/``.

    Paths that are already normal are returned unchanged.
    """
    if not path:
        return path

    normal, segment_count = scan_path(path)
    if normal:
        return path

    table = split_segments(path, expected=segment_count)
    remove_dot_segments(table)
    leading_dot = needs_leading_dot(table)
    normalized = join_segments(table, leading_dot=leading_dot)

    logger.trace(
        "Normalized path {path!r} -> {normalized!r}",
        path=path,
        normalized=normalized,
    )
    return normalized


def scan_path(path: str) -> tuple[bool, int]:
    """Return whether ``path`` is already normal, and its segment count."""
    length = len(path)
    idx = 0
    while idx < length and path[idx] == "/":
        idx += 1
    normal = idx <= 1

    count = 0
    while idx < length:
        end = path.find("/", idx)
        if end < 0:
            end = length
        if path[idx:end] in _DOT_SEGMENTS:
            normal = False
        count += 1
        idx = end + 1
        while idx < length and path[idx] == "/":
            normal = False
            idx += 1
    return normal, count


def split_segments(path: str, *, expected: int | None = None) -> SegmentTable:
    length = len(path)
    idx = 0
    while idx < length and path[idx] == "/":
        idx += 1

    segments: list[Segment] = []
    while idx < length:
        end = path.find("/", idx)
        if end < 0:
            end = length
        segments.append(Segment(start=idx, end=end, trailing_slash=end < length))
        idx = end
        while idx < length and path[idx] == "/":
            idx += 1

    if expected is not None and len(segments) != expected:
        raise InternalError(
            f"Split {path!r} into {len(segments)} segments, expected {expected}"
        )
    return SegmentTable(path, segments)


def remove_dot_segments(table: SegmentTable) -> None:
    # Indices of surviving segments, innermost last.
    stack: list[int] = []
    for index, segment in enumerate(table):
        if table.is_dot(index):
            table.remove(index)
        elif table.is_dot_dot(index):
            if stack and not table.is_dot_dot(stack[-1]):
                table.remove(stack.pop())
                table.remove(index)
            else:
                segment.state = SegmentState.UNRESOLVED
                stack.append(index)
        else:
            stack.append(index)

    for index in stack:
        if not table[index].survives:
            raise InternalError(f"Removed segment {index} is still referenced")


def needs_leading_dot(table: SegmentTable) -> bool:
    """A relative path whose dot-segments were removed must not start with ``x:``.

    Otherwise the first segment would read as a URI scheme.
    """
    if table.path.startswith("/"):
        return False
    first = table.first_surviving()
    if first is None or first == 0:
        return False
    return ":" in table.text(first)


def join_segments(table: SegmentTable, *, leading_dot: bool = False) -> str:
    parts: list[str] = []
    if table.path.startswith("/"):
        parts.append("/")
    if leading_dot:
        parts.append("./")
    for segment in table.surviving():
        parts.append(table.path[segment.start : segment.end])
        if segment.trailing_slash:
            parts.append("/")

    joined = "".join(parts)
    if len(joined) > len(table.path):
        raise InternalError(
            f"Normalized path {joined!r} is longer than its input {table.path!r}"
        )
    return joined
