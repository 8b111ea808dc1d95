from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from slugdantic import Candidate, Event, ModelEvent, SlugConfig, TrackedRecord, build_candidate


class Person(BaseModel):
    first: str = ""
    last: Optional[str] = None
    slug: str = ""
    email: str = ""


def loaded(model: Person) -> TrackedRecord:
    return TrackedRecord(model, snapshot=model.model_dump(), identity="person.yaml")


def test_new_record_gets_fresh_slug() -> None:
    record = TrackedRecord(Person(first="Ada", last="Lovelace"))
    config = SlugConfig.from_attributes(["first", "last"])

    assert build_candidate(record, config) == Candidate("ada-lovelace", is_new=True)


def test_attribute_order_is_concatenation_order() -> None:
    record = TrackedRecord(Person(first="Hello", last="World"))

    forward = build_candidate(record, SlugConfig.from_attributes(["first", "last"]))
    backward = build_candidate(record, SlugConfig.from_attributes(["last", "first"]))

    assert forward.value == "hello-world"
    assert backward.value == "world-hello"


def test_missing_attribute_values_are_blank() -> None:
    record = TrackedRecord(Person(first="Ada"))

    candidate = build_candidate(record, SlugConfig.from_attributes(["first", "last"]))

    assert candidate.value == "ada"


def test_empty_normalization_still_yields_candidate() -> None:
    record = TrackedRecord(Person(first="!!!"))

    candidate = build_candidate(record, SlugConfig.from_attributes("first"))

    assert candidate == Candidate("", is_new=True)


def test_unchanged_sources_keep_stored_slug() -> None:
    person = Person(first="Ada", last="Lovelace", slug="countess")
    record = loaded(person)
    person.email = "ada@example.com"

    candidate = build_candidate(record, SlugConfig.from_attributes(["first", "last"]))

    assert candidate == Candidate("countess", is_new=False)


def test_changed_source_regenerates_mutable_slug() -> None:
    person = Person(first="Ada", last="Lovelace", slug="ada-lovelace")
    record = loaded(person)
    person.last = "King"

    candidate = build_candidate(record, SlugConfig.from_attributes(["first", "last"]))

    assert candidate == Candidate("ada-king", is_new=True)


def test_immutable_slug_survives_source_changes() -> None:
    person = Person(first="Ada", last="Lovelace", slug="ada-lovelace")
    record = loaded(person)
    person.first = "Augusta"
    person.last = "King"

    config = SlugConfig.from_attributes(["first", "last"], immutable=True)

    assert build_candidate(record, config) == Candidate("ada-lovelace", is_new=False)


def test_immutable_slug_is_filled_when_empty() -> None:
    record = loaded(Person(first="Ada"))
    config = SlugConfig.from_attributes("first", immutable=True)

    assert build_candidate(record, config) == Candidate("ada", is_new=True)


def test_new_record_with_preset_slug_is_regenerated() -> None:
    record = TrackedRecord(Person(first="Ada", slug="custom"))

    candidate = build_candidate(record, SlugConfig.from_attributes("first"))

    assert candidate == Candidate("ada", is_new=True)


def test_producer_output_is_always_new() -> None:
    person = Person(first="Ada", slug="existing")
    record = loaded(person)
    event = ModelEvent(name=Event.BEFORE_VALIDATE, record=record, is_insert=False)
    config = SlugConfig.from_producer(lambda evt: f"user-{evt.model.first.lower()}")

    assert build_candidate(record, config, event) == Candidate("user-ada", is_new=True)


def test_producer_none_becomes_empty() -> None:
    record = TrackedRecord(Person())
    event = ModelEvent(name=Event.BEFORE_VALIDATE, record=record, is_insert=True)
    config = SlugConfig.from_producer(lambda evt: None)

    assert build_candidate(record, config, event).value == ""
