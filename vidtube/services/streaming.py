import re
from typing import AsyncIterator

import aiofiles

from vidtube.errors import RangeNotSatisfiable

_RANGE_RE = re.compile(r"^bytes=(\d+)-(\d*)$")


def parse_range(header: str, size: int) -> tuple[int, int]:
    """
    Parse a single ``bytes=<start>-[<end>]`` range against a blob of ``size`` bytes.

    Returns the inclusive ``(start, end)`` span. ``end`` defaults to and is
    clamped to the last byte. Suffix ranges, multiple ranges, non-numeric
    values, ``start > end`` and ``start >= size`` are not satisfiable.
    """
    match = _RANGE_RE.match(header.strip())
    if not match:
        raise RangeNotSatisfiable(size)
    start = int(match.group(1))
    end = int(match.group(2)) if match.group(2) else size - 1
    if start >= size or start > end:
        raise RangeNotSatisfiable(size)
    return start, min(end, size - 1)


async def iter_file(path: str, start: int, end: int, chunk_size: int = 64 * 1024) -> AsyncIterator[bytes]:
    """Yield bytes ``start..end`` (inclusive) of a file, one chunk at a time."""
    remaining = end - start + 1
    async with aiofiles.open(path, "rb") as f:
        await f.seek(start)
        while remaining > 0:
            chunk = await f.read(min(chunk_size, remaining))
            if not chunk:
                break
            remaining -= len(chunk)
            yield chunk
