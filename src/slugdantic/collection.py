from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Generic, Hashable, Iterable, Iterator, List, Mapping, Optional, Sequence, TypeVar
from uuid import uuid4
import weakref

from pydantic import BaseModel

from .behaviors import AttributeBehavior, SluggableBehavior
from .events import Event, ModelEvent
from .exceptions import (
    InconsistentFormatError,
    MissingPathError,
    StoreUnavailable,
    UnknownFormatError,
)
from .handlers import READ_ERRORS, FileHandler, JsonHandler, YamlHandler
from .records import TrackedRecord
from .resolver import ExistenceCheck
from .utils import slugify

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)
Predicate = Callable[[T], bool]

FORMAT_REGISTRY: Mapping[str, type[FileHandler]] = {
    "json": JsonHandler,
    ".json": JsonHandler,
    "yaml": YamlHandler,
    "yml": YamlHandler,
    ".yaml": YamlHandler,
    ".yml": YamlHandler,
}

EXTENSION_REGISTRY: Mapping[str, type[FileHandler]] = {
    ".json": JsonHandler,
    ".yaml": YamlHandler,
    ".yml": YamlHandler,
}

NAME_FIELDS = ("slug", "id", "name", "title")


def _resolve_handler(name: str) -> FileHandler:
    try:
        handler_cls = FORMAT_REGISTRY[name.lower()]
    except KeyError as exc:
        raise UnknownFormatError(f"Unsupported format '{name}'") from exc
    return handler_cls()


# Files are replaced on write, so a new inode marks any rewrite.
_Stamp = tuple[int, int, int]


def _stamp(path: Path) -> _Stamp:
    stat = path.stat()
    return (stat.st_ino, stat.st_mtime_ns, stat.st_size)


@dataclass(frozen=True)
class _SortInstruction:
    field: str
    descending: bool = False


@dataclass
class _Tracked(Generic[T]):
    ref: weakref.ReferenceType[T]
    path: Path
    snapshot: dict


class Collection(Generic[T]):
    """Disk-backed collection of Pydantic models with a save lifecycle.

    Parameters
    ----------
    model:
        Pydantic model type used to validate each record found on disk.
    path:
        Root directory where files live. Created automatically if missing.
    format:
        Named handler for interpreting files (``"json"`` or ``"yaml"``).
        Required when the directory is empty or mixed, otherwise it can be
        inferred from existing files.
    recursive:
        When ``True``, the collection scans sub-directories with ``Path.rglob``;
        otherwise only files directly inside ``path`` are considered.
    behaviors:
        :class:`~slugdantic.behaviors.AttributeBehavior` instances run on every
        ``add``/``update``/``save``, in order.

    Records keep the file they were loaded from (or written to) as their
    identity. Saving fires ``BEFORE_VALIDATE``, validates the model, fires
    ``BEFORE_INSERT`` or ``BEFORE_UPDATE`` and only then writes the file, so a
    failing behavior leaves the disk untouched.
    """

    def __init__(
        self,
        model: type[T],
        path: Path | str,
        *,
        format: str | None = None,
        recursive: bool = False,
        behaviors: Sequence[AttributeBehavior] = (),
    ) -> None:
        self.model = model
        self.root = Path(path).expanduser().resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self._recursive = recursive
        self._handler = (
            _resolve_handler(format)
            if format is not None
            else self._infer_handler()
        )

        self._model_cache: dict[Path, T] = {}
        self._stamps: dict[Path, _Stamp] = {}
        self._tracked: dict[int, _Tracked[T]] = {}

        self.behaviors: list[AttributeBehavior] = []
        for behavior in behaviors:
            self.attach(behavior)

    def attach(self, behavior: AttributeBehavior) -> None:
        behavior.attach(self)
        self.behaviors.append(behavior)

    def existence_check(self, field: str) -> "CollectionExistenceCheck[T]":
        return CollectionExistenceCheck(self, field)

    # Query entrypoints -------------------------------------------------
    def query(self) -> "CollectionQuery[T]":
        return CollectionQuery(self)

    def filter(self, predicate: Predicate) -> "CollectionQuery[T]":
        return self.query().filter(predicate)

    def order_by(self, field: str) -> "CollectionQuery[T]":
        return self.query().order_by(field)

    def to_list(self) -> List[T]:
        return self.query().to_list()

    def count(self) -> int:
        return self.query().count()

    def first(self) -> Optional[T]:
        return self.query().first()

    def exists(self, predicate: Predicate | None = None) -> bool:
        if predicate is None:
            return self.first() is not None
        return self.filter(predicate).first() is not None

    def __iter__(self) -> Iterator[T]:
        return iter(self.query())

    def get(self, filename: str | Path) -> Optional[T]:
        """Load a single file by name relative to the collection root."""
        target = self._absolute(filename)
        if not target.is_file():
            return None
        if target.suffix.lower() not in self._extensions():
            return None
        return self._load_model(target)

    # Lifecycle operations ----------------------------------------------
    def add(self, model: T, path: Path | str | None = None) -> Path:
        """Insert ``model``; a model this collection already tracks is updated instead."""
        if self._lookup_path(model) is not None:
            return self.update(model)
        record = self.record_for(model)
        self._run_events(record, insert=True)
        target = self._prepare_path(model, explicit_path=path)
        self._write(model, target)
        return target

    def update(self, model: T) -> Path:
        path = self._lookup_path(model)
        if path is None:
            raise MissingPathError(
                "Cannot update model that was not loaded from disk. "
                "Use add() or save(), or provide path explicitly."
            )
        self._run_events(self.record_for(model), insert=False)
        self._write(model, path)
        return path

    def save(self, model: T) -> Path:
        if self._lookup_path(model) is None:
            return self.add(model)
        return self.update(model)

    def delete(self, target: T | str | Path) -> None:
        if isinstance(target, BaseModel):
            path = self._lookup_path(target)
            if path is None:
                raise MissingPathError("Model has no associated path; cannot delete")
            self._tracked.pop(id(target), None)
        else:
            path = self._absolute(target)
        self._model_cache.pop(path, None)
        self._stamps.pop(path, None)
        if path.exists():
            path.unlink()

    def refresh(self, model: T) -> T:
        path = self._lookup_path(model)
        if path is None:
            raise MissingPathError("Model has no associated path; cannot refresh")
        return self._load_model(path, force=True)

    def path_for(self, model: T) -> Path | None:
        return self._lookup_path(model)

    def record_for(self, model: T) -> TrackedRecord:
        """Wrap ``model`` with the snapshot and identity known to this collection."""
        entry = self._entry(model)
        if entry is None:
            return TrackedRecord(model)
        return TrackedRecord(model, snapshot=entry.snapshot, identity=entry.path)

    # Internal helpers --------------------------------------------------
    def _run_events(self, record: TrackedRecord, *, insert: bool) -> None:
        self._fire(Event.BEFORE_VALIDATE, record, insert)
        self.model.model_validate(record.model.model_dump())
        self._fire(Event.BEFORE_INSERT if insert else Event.BEFORE_UPDATE, record, insert)

    def _fire(self, name: Event, record: TrackedRecord, insert: bool) -> None:
        event = ModelEvent(name=name, record=record, is_insert=insert)
        for behavior in self.behaviors:
            if behavior.handles(name):
                behavior.evaluate(event)

    def _write(self, model: T, path: Path) -> None:
        data = model.model_dump()
        self._handler.write(path, data)
        self._register_model(model, path, data)
        self._model_cache[path] = model
        self._stamps[path] = _stamp(path)
        logger.debug("Wrote %s to %s", type(model).__name__, path)

    def _absolute(self, filename: str | Path) -> Path:
        path = Path(filename)
        if not path.is_absolute():
            path = (self.root / path).resolve()
        return path

    def _extensions(self) -> tuple[str, ...]:
        return self._handler.extensions or (self._handler.extension,)

    def _prepare_path(self, model: T, explicit_path: Path | str | None = None) -> Path:
        if explicit_path is not None:
            return self._absolute(explicit_path)
        stem = self._derive_stem(model)
        candidate = self.root / f"{stem}{self._handler.extension}"
        counter = 1
        while candidate.exists():
            candidate = self.root / f"{stem}-{counter}{self._handler.extension}"
            counter += 1
        return candidate

    def _derive_stem(self, model: T) -> str:
        data = model.model_dump()
        for key in self._name_fields():
            value = data.get(key)
            if isinstance(value, str):
                stem = slugify(value)
                if stem:
                    return stem
        return uuid4().hex

    def _name_fields(self) -> Iterable[str]:
        slug_fields = [
            behavior.config.slug_field
            for behavior in self.behaviors
            if isinstance(behavior, SluggableBehavior)
        ]
        return dict.fromkeys([*slug_fields, *NAME_FIELDS])

    def _register_model(self, model: T, path: Path, snapshot: dict) -> None:
        model_id = id(model)

        def _cleanup(_: weakref.ReferenceType[T]) -> None:
            self._tracked.pop(model_id, None)

        self._tracked[model_id] = _Tracked(weakref.ref(model, _cleanup), path, snapshot)

    def _load_model(self, path: Path, *, force: bool = False) -> T:
        stamp = _stamp(path)
        if not force and path in self._model_cache and self._stamps.get(path) == stamp:
            return self._model_cache[path]
        data = self._handler.read(path)
        instance = self.model.model_validate(data)
        self._register_model(instance, path, instance.model_dump())
        self._model_cache[path] = instance
        self._stamps[path] = stamp
        return instance

    def _entry(self, model: T) -> _Tracked[T] | None:
        entry = self._tracked.get(id(model))
        if entry is None:
            return None
        if entry.ref() is not model:
            self._tracked.pop(id(model), None)
            return None
        return entry

    def _lookup_path(self, model: T) -> Path | None:
        entry = self._entry(model)
        return entry.path if entry is not None else None

    def _iter_paths(self) -> Iterable[Path]:
        seen: set[Path] = set()
        for suffix in dict.fromkeys(self._extensions()):
            pattern = f"*{suffix}"
            iterator = self.root.rglob(pattern) if self._recursive else self.root.glob(pattern)
            for path in sorted(iterator):
                if path.is_file() and path not in seen:
                    seen.add(path)
                    yield path

    def _infer_handler(self) -> FileHandler:
        seen_handlers: set[type[FileHandler]] = set()
        iterator = self.root.rglob("*") if self._recursive else self.root.glob("*")
        for path in iterator:
            if not path.is_file() or path.name.startswith("."):
                continue
            suffix = path.suffix.lower()
            handler_cls = EXTENSION_REGISTRY.get(suffix)
            if handler_cls is None:
                raise UnknownFormatError(
                    f"Cannot infer handler: file '{path.name}' has unsupported extension '{suffix}'. "
                    "Pass format=... explicitly."
                )
            seen_handlers.add(handler_cls)
            if len(seen_handlers) > 1:
                raise InconsistentFormatError(
                    "Multiple file formats detected in collection. "
                    "Pass format=... explicitly to disambiguate."
                )
        if not seen_handlers:
            raise UnknownFormatError(
                "Cannot infer format for empty collection. "
                "Pass format=... explicitly."
            )
        handler_cls = next(iter(seen_handlers))
        return handler_cls()


class CollectionExistenceCheck(ExistenceCheck, Generic[T]):
    """Answer slug existence queries by scanning a collection's records.

    Records are compared through the collection cache, so in-memory changes to
    models the collection handed out are visible before they are saved. A file
    rewritten on disk since it was cached is read again and its saved state wins.
    """

    def __init__(self, collection: Collection[T], field: str) -> None:
        self.collection = collection
        self.field = field

    def exists(self, value: str, exclude_identity: Optional[Hashable] = None) -> bool:
        try:
            for path in self.collection._iter_paths():
                if exclude_identity is not None and path == exclude_identity:
                    continue
                item = self.collection._load_model(path)
                if getattr(item, self.field, None) == value:
                    return True
        except READ_ERRORS as exc:
            raise StoreUnavailable(
                f"Cannot check '{self.field}' in {self.collection.root}: {exc}"
            ) from exc
        return False


class CollectionQuery(Generic[T]):
    """Lazy query pipeline over a collection."""

    def __init__(self, collection: Collection[T]) -> None:
        self._collection = collection
        self._predicates: List[Predicate] = []
        self._sort: Optional[_SortInstruction] = None

    # Pipeline construction ---------------------------------------------
    def filter(self, predicate: Predicate) -> "CollectionQuery[T]":
        next_query = self._clone()
        next_query._predicates.append(predicate)
        return next_query

    def order_by(self, field: str) -> "CollectionQuery[T]":
        descending = field.startswith("-")
        normalized = field[1:] if descending else field
        next_query = self._clone()
        next_query._sort = _SortInstruction(field=normalized, descending=descending)
        return next_query

    # Materialization ---------------------------------------------------
    def to_list(self) -> List[T]:
        items = [self._collection._load_model(path) for path in self._collection._iter_paths()]
        for predicate in self._predicates:
            items = [item for item in items if predicate(item)]
        if self._sort is not None:
            key = self._sort.field
            items.sort(key=lambda item, key=key: getattr(item, key), reverse=self._sort.descending)
        return items

    def count(self) -> int:
        return len(self.to_list())

    def first(self) -> Optional[T]:
        for item in self:
            return item
        return None

    def __iter__(self) -> Iterator[T]:
        return iter(self.to_list())

    # Utilities ---------------------------------------------------------
    def _clone(self) -> "CollectionQuery[T]":
        clone = CollectionQuery(self._collection)
        clone._predicates = list(self._predicates)
        clone._sort = self._sort
        return clone
