"""
Attribute behaviors run by a :class:`~slugdantic.collection.Collection` while
records are saved.

A behavior maps lifecycle events to the fields it fills. :class:`SluggableBehavior`
fills a slug field from other fields of the record::

    posts = Collection(
        BlogPost,
        path="posts",
        format="yaml",
        behaviors=[SluggableBehavior(SlugConfig.from_attributes("title", ensure_unique=True))],
    )
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional

from pydantic import BaseModel

from .candidate import build_candidate
from .config import Attributes, SlugConfig
from .events import Event, ModelEvent
from .exceptions import ConfigurationError, DetachedBehaviorError
from .resolver import ExistenceCheck, resolve_unique

if TYPE_CHECKING:
    from .collection import Collection

logger = logging.getLogger(__name__)


class AttributeBehavior(ABC):
    """Assign a computed value to record fields when given events fire.

    Parameters
    ----------
    attributes:
        Mapping from :class:`Event` to the field name (or names) receiving the
        value returned by :meth:`get_value`.
    """

    def __init__(self, attributes: Mapping[Event, str | Iterable[str]]) -> None:
        self.attributes: dict[Event, tuple[str, ...]] = {
            Event(event): (fields,) if isinstance(fields, str) else tuple(fields)
            for event, fields in attributes.items()
        }

    def attach(self, collection: "Collection[Any]") -> None:
        """Called once when the behavior is bound to a collection."""

    def handles(self, event: Event) -> bool:
        return event in self.attributes

    def evaluate(self, event: ModelEvent) -> None:
        fields = self.attributes.get(event.name)
        if not fields:
            return
        value = self.get_value(event)
        for name in fields:
            event.record.set(name, value)

    @abstractmethod
    def get_value(self, event: ModelEvent) -> Any:
        """Compute the value assigned for ``event``."""


class SluggableBehavior(AttributeBehavior):
    """Fill a slug field, optionally keeping it unique across the collection.

    The slug is regenerated when it is empty, or when one of the source
    attributes changed and the slug is not ``immutable``. With
    ``ensure_unique`` a new slug is suffixed until the existence check reports
    it free; the field is written only once a value has been resolved.
    """

    def __init__(
        self,
        config: SlugConfig,
        existence_check: Optional[ExistenceCheck] = None,
    ) -> None:
        config.validate()
        super().__init__({event: config.slug_field for event in config.events})
        self.config = config
        self.existence_check = existence_check

    def attach(self, collection: "Collection[Any]") -> None:
        self._check_fields(collection.model)
        if self.existence_check is None:
            self.existence_check = collection.existence_check(self.config.check_field)

    def get_value(self, event: ModelEvent) -> str:
        candidate = build_candidate(event.record, self.config, event)
        if not (self.config.ensure_unique and candidate.is_new):
            return candidate.value
        if self.existence_check is None:
            raise DetachedBehaviorError(
                "ensure_unique requires an existence check; attach the behavior "
                "to a Collection or pass existence_check explicitly."
            )
        slug = resolve_unique(candidate, self.config, self.existence_check, event.record)
        logger.debug("Resolved slug %r for %s", slug, type(event.model).__name__)
        return slug

    def _check_fields(self, model: type[BaseModel]) -> None:
        names = [self.config.slug_field]
        if self.config.unique_check.target_field:
            names.append(self.config.unique_check.target_field)
        if isinstance(self.config.source, Attributes):
            names.extend(self.config.source.names)
        unknown = [name for name in names if name not in model.model_fields]
        if unknown:
            raise ConfigurationError(
                f"{model.__name__} has no field(s) {', '.join(unknown)} used by the slug behavior."
            )
