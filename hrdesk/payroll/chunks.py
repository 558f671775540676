"""Chunked batch-apply with per-chunk outcomes.

A failing chunk is recorded and the remaining chunks still run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ChunkResult:
    index: int
    size: int
    applied: int
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def chunked(rows: Sequence[T], size: int) -> list[Sequence[T]]:
    if size < 1:
        raise ValueError("chunk size must be positive")
    return [rows[i:i + size] for i in range(0, len(rows), size)]


async def apply_in_chunks(
    rows: Sequence[T],
    size: int,
    apply: Callable[[Sequence[T]], Awaitable[int]],
) -> list[ChunkResult]:
    """Run ``apply`` on each chunk; ``apply`` returns how many rows it wrote."""
    results = []
    for index, chunk in enumerate(chunked(rows, size)):
        try:
            applied = await apply(chunk)
        except Exception as exc:
            logger.error("Chunk %d (%d rows) failed: %s", index, len(chunk), exc)
            results.append(ChunkResult(index, len(chunk), 0, str(exc)))
            continue
        results.append(ChunkResult(index, len(chunk), applied))
    return results


def summarize_failures(results: Sequence[ChunkResult]) -> Optional[str]:
    """One warning line for all failed chunks, or None."""
    failed = [r for r in results if not r.ok]
    if not failed:
        return None
    lost = sum(r.size for r in failed)
    details = "; ".join(f"chunk {r.index}: {r.error}" for r in failed)
    return f"{len(failed)} of {len(results)} chunks failed ({lost} lines not inserted): {details}"
