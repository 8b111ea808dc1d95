from __future__ import annotations

import os
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import orjson
import yaml

# Errors a handler may raise while reading a record file.
READ_ERRORS: tuple[type[BaseException], ...] = (OSError, ValueError, yaml.YAMLError)


class FileHandler(ABC):
    """Translate between record files and dictionaries.

    Subclasses only implement the codec; reading and the atomic
    write-then-rename live here.
    """

    extension: str
    extensions: tuple[str, ...] | None = None

    @abstractmethod
    def decode(self, raw: bytes, *, source: Path) -> dict[str, Any]:
        """Turn file contents into a dictionary payload for Pydantic."""

    @abstractmethod
    def encode(self, data: Mapping[str, Any]) -> bytes:
        """Serialize a dictionary payload."""

    def read(self, path: Path) -> dict[str, Any]:
        return self.decode(path.read_bytes(), source=path)

    def write(self, path: Path, data: Mapping[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        staging = path.with_name(f".{path.name}.tmp")
        try:
            staging.write_bytes(self.encode(data))
            os.replace(staging, path)
        except BaseException:
            staging.unlink(missing_ok=True)
            raise


class JsonHandler(FileHandler):
    extension = ".json"
    extensions = (".json",)

    def decode(self, raw: bytes, *, source: Path) -> dict[str, Any]:
        payload = orjson.loads(raw)
        if not isinstance(payload, dict):
            raise ValueError(f"JSON file {source} did not produce an object")
        return payload

    def encode(self, data: Mapping[str, Any]) -> bytes:
        return orjson.dumps(dict(data), option=orjson.OPT_INDENT_2 | orjson.OPT_APPEND_NEWLINE)


class YamlHandler(FileHandler):
    extension = ".yaml"
    extensions = (".yaml", ".yml")

    def decode(self, raw: bytes, *, source: Path) -> dict[str, Any]:
        payload = yaml.safe_load(raw.decode("utf-8")) or {}
        if not isinstance(payload, dict):
            raise ValueError(f"YAML file {source} did not produce a mapping")
        return payload

    def encode(self, data: Mapping[str, Any]) -> bytes:
        text = yaml.safe_dump(dict(data), allow_unicode=True, sort_keys=False)
        return text.encode("utf-8")
