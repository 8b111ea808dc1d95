from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from .config import Attributes, Producer, SlugConfig
from .events import ModelEvent
from .records import RecordAccessor
from .utils import slugify

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    """Slug proposed for one save, before uniqueness resolution.

    ``is_new`` is ``False`` when the stored slug is kept as is; only new
    candidates go through the uniqueness search.
    """

    value: str
    is_new: bool


def build_candidate(
    record: RecordAccessor,
    config: SlugConfig,
    event: Optional[ModelEvent] = None,
) -> Candidate:
    source = config.source
    if isinstance(source, Producer):
        return Candidate(_as_text(source.producer.produce(event)), is_new=True)
    if not isinstance(source, Attributes):
        raise TypeError(f"Unsupported slug source: {source!r}")

    stored = record.get(config.slug_field)
    if stored:
        if config.immutable:
            logger.debug("Keeping immutable slug %r", stored)
            return Candidate(_as_text(stored), is_new=False)
        changed = [name for name in source.names if record.is_changed(name)]
        if not changed:
            logger.debug("Source attributes unchanged, keeping slug %r", stored)
            return Candidate(_as_text(stored), is_new=False)
        logger.debug("Regenerating slug, changed attributes: %s", ", ".join(changed))

    parts = [_as_text(record.get(name)) for name in source.names]
    value = slugify(config.separator.join(parts), separator=config.separator)
    return Candidate(value, is_new=True)


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)
