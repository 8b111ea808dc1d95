from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Hashable, Optional

from pydantic import BaseModel

_MISSING = object()


class RecordAccessor(ABC):
    """Field-level view of a record, as seen by behaviors."""

    @property
    @abstractmethod
    def model(self) -> BaseModel:
        """The underlying Pydantic instance."""

    @abstractmethod
    def get(self, field: str) -> Any:
        """Return the current value of ``field`` (``None`` when unset)."""

    @abstractmethod
    def set(self, field: str, value: Any) -> None:
        """Assign ``value`` to ``field`` on the record."""

    @abstractmethod
    def is_changed(self, field: str) -> bool:
        """Whether ``field`` differs from the last loaded or written state."""

    @abstractmethod
    def identity(self) -> Optional[Hashable]:
        """Primary identity of a persisted record, ``None`` for new ones."""


class TrackedRecord(RecordAccessor):
    """Wrap a Pydantic model together with its last persisted snapshot.

    ``snapshot`` is the ``model_dump()`` captured when the record was read from
    or written to the store. Without one the record is new: it has no
    identity and any field holding a value counts as changed.
    """

    def __init__(
        self,
        model: BaseModel,
        *,
        snapshot: Mapping[str, Any] | None = None,
        identity: Hashable | None = None,
    ) -> None:
        self._model = model
        self._snapshot = dict(snapshot) if snapshot is not None else None
        self._identity = identity

    @property
    def model(self) -> BaseModel:
        return self._model

    @property
    def is_new(self) -> bool:
        return self._snapshot is None

    def get(self, field: str) -> Any:
        return getattr(self._model, field, None)

    def set(self, field: str, value: Any) -> None:
        setattr(self._model, field, value)

    def is_changed(self, field: str) -> bool:
        if field not in type(self._model).model_fields:
            return False
        current = self._model.model_dump(include={field}).get(field)
        if self._snapshot is None:
            return current is not None
        previous = self._snapshot.get(field, _MISSING)
        if previous is _MISSING:
            return current is not None
        return current != previous

    def identity(self) -> Optional[Hashable]:
        return self._identity
