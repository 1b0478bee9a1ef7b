"""
Slug generation for artifact records.

A slug is the normalized display name plus a millisecond timestamp from a
per-process clock that never repeats a value. Uniqueness comes from
construction; the catalog store rejects duplicates as a backstop.
"""

from __future__ import annotations

import re
import threading
import time
from typing import Callable, Optional

from shared_utils.constants import LogScope
from shared_utils.error_handler import InvalidNameError
from shared_utils.logging_utils import get_scoped_logger

logger = get_scoped_logger(LogScope.SLUG)

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def slugify(name: Optional[str]) -> str:
    """Lowercase, collapse every non ``[a-z0-9]`` run to ``-``, trim dashes.

    Raises:
        InvalidNameError: If nothing remains after normalization.
    """
    base = _NON_SLUG_CHARS.sub("-", (name or "").lower()).strip("-")
    if not base:
        raise InvalidNameError(name or "")
    return base


def _wall_clock_ms() -> int:
    return time.time_ns() // 1_000_000


class SlugGenerator:
    """Builds ``<slugified-name>-<epoch-ms>`` slugs.

    Each call consumes a strictly greater millisecond value than the last
    one, so two submissions of the same name in this process never collide
    even when they land in the same millisecond.
    """

    def __init__(self, clock: Callable[[], int] = _wall_clock_ms) -> None:
        self._clock = clock
        self._last_ms = 0
        self._lock = threading.Lock()

    def next_timestamp_ms(self) -> int:
        with self._lock:
            now = self._clock()
            self._last_ms = now if now > self._last_ms else self._last_ms + 1
            return self._last_ms

    def make_slug(self, name: Optional[str], timestamp_ms: Optional[int] = None) -> str:
        """Derive a unique slug for ``name``.

        Args:
            name: Human-supplied display name.
            timestamp_ms: Suffix to use; drawn from the monotonic clock when omitted.

        Raises:
            InvalidNameError: If the name is empty or has no slug-safe characters.
        """
        base = slugify(name)
        suffix = timestamp_ms if timestamp_ms is not None else self.next_timestamp_ms()
        slug = f"{base}-{suffix}"
        logger.debug("slug_generated", slug=slug)
        return slug
