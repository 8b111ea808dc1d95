from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Hashable, Optional

from .candidate import Candidate
from .config import SlugConfig
from .exceptions import ResolutionExhausted
from .records import RecordAccessor

logger = logging.getLogger(__name__)


class ExistenceCheck(ABC):
    """Read-only query telling whether a slug is already taken."""

    @abstractmethod
    def exists(self, value: str, exclude_identity: Optional[Hashable] = None) -> bool:
        """Return ``True`` if a record other than ``exclude_identity`` holds ``value``."""


def resolve_unique(
    candidate: Candidate,
    config: SlugConfig,
    existence_check: ExistenceCheck,
    record: Optional[RecordAccessor] = None,
) -> str:
    """Return a slug that ``existence_check`` reports as free.

    Kept slugs and configurations without ``ensure_unique`` pass through
    untouched. Otherwise the configured suffix generator is asked for new
    values derived from the candidate until one is free, giving up with
    :class:`ResolutionExhausted` after ``config.max_iterations`` retries.
    Errors raised by the existence check propagate unchanged.
    """
    if not (config.ensure_unique and candidate.is_new):
        return candidate.value

    exclude = _excluded_identity(config, record)
    generator = config.generator
    base = current = candidate.value
    iteration = 0
    while existence_check.exists(current, exclude):
        logger.debug("Slug %r is taken (iteration %d)", current, iteration)
        if iteration >= config.max_iterations:
            logger.warning(
                "Giving up on slug %r after %d attempts", base, iteration + 1
            )
            raise ResolutionExhausted(base, iteration + 1)
        iteration += 1
        current = generator.generate(base, iteration, record)
    if iteration:
        logger.info("Slug %r was taken, using %r", base, current)
    return current


def _excluded_identity(
    config: SlugConfig, record: Optional[RecordAccessor]
) -> Optional[Hashable]:
    if record is None or not config.unique_check.exclude_self:
        return None
    return record.identity()
