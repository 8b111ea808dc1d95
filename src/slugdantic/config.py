from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional, Union

from .events import Event
from .exceptions import ConfigurationError
from .settings import get_settings

if TYPE_CHECKING:
    from .events import ModelEvent
    from .records import RecordAccessor


class ValueProducer(ABC):
    """Strategy computing a slug value from the event being handled."""

    @abstractmethod
    def produce(self, event: "ModelEvent") -> Any:
        """Return the raw slug value for ``event``."""

    @classmethod
    def of(cls, value: Callable[["ModelEvent"], Any] | Any) -> "ValueProducer":
        """Wrap a function of the event, or a fixed value used for every event."""
        if callable(value):
            return _FunctionProducer(value)
        return _ConstantProducer(value)


class SuffixGenerator(ABC):
    """Strategy deriving the next slug to try after a collision."""

    @abstractmethod
    def generate(
        self, base_slug: str, iteration: int, record: Optional["RecordAccessor"]
    ) -> str:
        """Return the candidate for ``iteration`` (starting at 1)."""

    @classmethod
    def of(
        cls, func: Callable[[str, int, Optional["RecordAccessor"]], str]
    ) -> "SuffixGenerator":
        return _FunctionSuffix(func)


class _FunctionProducer(ValueProducer):
    def __init__(self, func: Callable[["ModelEvent"], Any]) -> None:
        self._func = func

    def produce(self, event: "ModelEvent") -> Any:
        return self._func(event)


class _ConstantProducer(ValueProducer):
    def __init__(self, value: Any) -> None:
        self._value = value

    def produce(self, event: "ModelEvent") -> Any:
        return self._value


class _FunctionSuffix(SuffixGenerator):
    def __init__(self, func: Callable[[str, int, Optional["RecordAccessor"]], str]) -> None:
        self._func = func

    def generate(
        self, base_slug: str, iteration: int, record: Optional["RecordAccessor"]
    ) -> str:
        return self._func(base_slug, iteration, record)


@dataclass(frozen=True)
class IncrementingSuffix(SuffixGenerator):
    """Default generator: ``base-2``, ``base-3``, ... for iterations 1, 2, ..."""

    separator: str = "-"

    def generate(
        self, base_slug: str, iteration: int, record: Optional["RecordAccessor"]
    ) -> str:
        return f"{base_slug}{self.separator}{iteration + 1}"


@dataclass(frozen=True)
class Attributes:
    """Slug computed from record fields, concatenated in the given order."""

    names: tuple[str, ...]


@dataclass(frozen=True)
class Producer:
    """Slug computed by a :class:`ValueProducer`."""

    producer: ValueProducer

    @classmethod
    def of(cls, value: Callable[["ModelEvent"], Any] | Any) -> "Producer":
        return cls(ValueProducer.of(value))


SourceSpec = Union[Attributes, Producer]


@dataclass(frozen=True)
class UniqueCheck:
    """How slug uniqueness is checked against the store.

    ``target_field`` defaults to the slug field itself. With ``exclude_self``
    the record being saved never collides with its own stored value.
    """

    target_field: str | None = None
    exclude_self: bool = True


@dataclass(frozen=True)
class SlugConfig:
    """Immutable configuration for :class:`~slugdantic.behaviors.SluggableBehavior`."""

    source: SourceSpec | None = None
    slug_field: str = "slug"
    immutable: bool = False
    ensure_unique: bool = False
    unique_check: UniqueCheck = field(default_factory=UniqueCheck)
    suffix_generator: SuffixGenerator | None = None
    max_iterations: int = field(default_factory=lambda: get_settings().max_iterations)
    separator: str = field(default_factory=lambda: get_settings().separator)
    events: tuple[Event, ...] = (Event.BEFORE_VALIDATE,)

    @classmethod
    def from_attributes(cls, attribute: str | Iterable[str], **options: Any) -> "SlugConfig":
        names = (attribute,) if isinstance(attribute, str) else tuple(attribute)
        return cls(source=Attributes(names), **options)

    @classmethod
    def from_producer(
        cls,
        producer: ValueProducer | Callable[["ModelEvent"], Any] | Any,
        **options: Any,
    ) -> "SlugConfig":
        if not isinstance(producer, ValueProducer):
            producer = ValueProducer.of(producer)
        return cls(source=Producer(producer), **options)

    @property
    def check_field(self) -> str:
        return self.unique_check.target_field or self.slug_field

    @property
    def generator(self) -> SuffixGenerator:
        if self.suffix_generator is not None:
            return self.suffix_generator
        return IncrementingSuffix()

    def validate(self) -> None:
        """Raise :class:`ConfigurationError` if the configuration is unusable."""
        if self.source is None:
            raise ConfigurationError('Either "attribute" or "value" source must be specified.')
        if isinstance(self.source, Attributes) and not self.source.names:
            raise ConfigurationError("At least one source attribute is required.")
        if isinstance(self.source, Producer) and not isinstance(self.source.producer, ValueProducer):
            raise ConfigurationError("Producer sources need a ValueProducer; use Producer.of().")
        if not self.slug_field:
            raise ConfigurationError("slug_field must be a non-empty field name.")
        if self.max_iterations < 1:
            raise ConfigurationError("max_iterations must be at least 1.")
        if not self.events:
            raise ConfigurationError("At least one event must be configured.")
