from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel

if TYPE_CHECKING:
    from .records import RecordAccessor


class Event(str, Enum):
    """Points of a record's save path that behaviors can hook into."""

    BEFORE_VALIDATE = "before_validate"
    BEFORE_INSERT = "before_insert"
    BEFORE_UPDATE = "before_update"


@dataclass(frozen=True)
class ModelEvent:
    """Context handed to behaviors while a record is being saved."""

    name: Event
    record: "RecordAccessor"
    is_insert: bool

    @property
    def model(self) -> BaseModel:
        return self.record.model
