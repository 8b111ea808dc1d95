"""
Slug generation for disk-backed Pydantic collections.

:class:`SluggableBehavior` derives a URL-safe slug from record fields when a
:class:`Collection` saves a record, and can keep it unique across the
collection by suffixing colliding values.
"""

from .behaviors import AttributeBehavior, SluggableBehavior
from .candidate import Candidate, build_candidate
from .collection import Collection, CollectionExistenceCheck
from .config import (
    Attributes,
    IncrementingSuffix,
    Producer,
    SlugConfig,
    SuffixGenerator,
    UniqueCheck,
    ValueProducer,
)
from .events import Event, ModelEvent
from .exceptions import (
    ConfigurationError,
    DetachedBehaviorError,
    ResolutionExhausted,
    StoreUnavailable,
)
from .handlers import FileHandler
from .records import RecordAccessor, TrackedRecord
from .resolver import ExistenceCheck, resolve_unique
from .utils import slugify

__all__ = (
    "Attributes",
    "AttributeBehavior",
    "Candidate",
    "Collection",
    "CollectionExistenceCheck",
    "ConfigurationError",
    "DetachedBehaviorError",
    "Event",
    "ExistenceCheck",
    "FileHandler",
    "IncrementingSuffix",
    "ModelEvent",
    "Producer",
    "RecordAccessor",
    "ResolutionExhausted",
    "SlugConfig",
    "SluggableBehavior",
    "StoreUnavailable",
    "SuffixGenerator",
    "TrackedRecord",
    "UniqueCheck",
    "ValueProducer",
    "build_candidate",
    "resolve_unique",
    "slugify",
)
