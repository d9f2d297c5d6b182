"""
Bootstrap planner — only create what does not exist yet.

Planning is a set difference keyed on resource name: ``desired`` minus
whatever the live directory already holds. Existence queries run
concurrently; the result keeps the order of ``desired``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterable

logger = logging.getLogger(__name__)


async def plan_missing(
    desired: Iterable[str],
    exists: Callable[[str], Awaitable[bool]],
) -> list[str]:
    """Return the desired names that do not exist.

    Args:
        desired: Resource names that should exist. Duplicates are ignored.
        exists: Coroutine function answering "does this name exist?".

    Returns:
        Missing names, in the order they were desired.

    Raises:
        The first exception raised by ``exists``, after every query has
        finished.
    """
    names = list(dict.fromkeys(desired))
    answers = await asyncio.gather(*(exists(n) for n in names), return_exceptions=True)

    missing = []
    for name, answer in zip(names, answers):
        if isinstance(answer, BaseException):
            raise answer
        if not answer:
            missing.append(name)

    logger.debug("Planned %d of %d resources for creation", len(missing), len(names))
    return missing
