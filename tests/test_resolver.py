from __future__ import annotations

from typing import Hashable, Optional

import pytest
from pydantic import BaseModel

from slugdantic import (
    Candidate,
    ExistenceCheck,
    ResolutionExhausted,
    SlugConfig,
    StoreUnavailable,
    SuffixGenerator,
    TrackedRecord,
    UniqueCheck,
    resolve_unique,
)


class Article(BaseModel):
    title: str = ""
    slug: str = ""


class RecordingCheck(ExistenceCheck):
    def __init__(self, taken: set[str] | None = None, always: bool = False) -> None:
        self.taken = taken or set()
        self.always = always
        self.calls: list[tuple[str, Optional[Hashable]]] = []

    def exists(self, value: str, exclude_identity: Optional[Hashable] = None) -> bool:
        self.calls.append((value, exclude_identity))
        return self.always or value in self.taken


class BrokenCheck(ExistenceCheck):
    def exists(self, value: str, exclude_identity: Optional[Hashable] = None) -> bool:
        raise StoreUnavailable("disk on fire")


def unique_config(**options) -> SlugConfig:
    return SlugConfig.from_attributes("title", ensure_unique=True, **options)


def test_free_candidate_is_returned_after_one_check() -> None:
    check = RecordingCheck()

    assert resolve_unique(Candidate("post", True), unique_config(), check) == "post"
    assert [value for value, _ in check.calls] == ["post"]


def test_default_suffix_skips_to_two() -> None:
    check = RecordingCheck(taken={"post", "post-1"})

    slug = resolve_unique(Candidate("post", True), unique_config(), check)

    assert slug == "post-2"
    assert [value for value, _ in check.calls] == ["post", "post-2"]


def test_suffixes_keep_counting_from_the_base() -> None:
    check = RecordingCheck(taken={"post", "post-2", "post-3"})

    slug = resolve_unique(Candidate("post", True), unique_config(), check)

    assert slug == "post-4"
    assert [value for value, _ in check.calls] == ["post", "post-2", "post-3", "post-4"]


def test_kept_slug_skips_existence_check() -> None:
    check = RecordingCheck(always=True)

    assert resolve_unique(Candidate("post", False), unique_config(), check) == "post"
    assert check.calls == []


def test_uniqueness_disabled_skips_existence_check() -> None:
    check = RecordingCheck(always=True)
    config = SlugConfig.from_attributes("title")

    assert resolve_unique(Candidate("post", True), config, check) == "post"
    assert check.calls == []


def test_exhaustion_is_bounded() -> None:
    check = RecordingCheck(always=True)

    with pytest.raises(ResolutionExhausted) as excinfo:
        resolve_unique(Candidate("post", True), unique_config(max_iterations=5), check)

    assert excinfo.value.base == "post"
    assert excinfo.value.attempts == 6
    assert len(check.calls) == 6


def test_empty_candidate_is_resolved() -> None:
    check = RecordingCheck(taken={""})

    assert resolve_unique(Candidate("", True), unique_config(), check) == "-2"


def test_custom_generator_receives_record() -> None:
    record = TrackedRecord(Article(title="Post"))
    seen: list[tuple[str, int, object]] = []

    def generate(base: str, iteration: int, owner) -> str:
        seen.append((base, iteration, owner))
        return f"{base}-v{iteration}"

    check = RecordingCheck(taken={"post", "post-v1"})
    config = unique_config(suffix_generator=SuffixGenerator.of(generate))

    slug = resolve_unique(Candidate("post", True), config, check, record)

    assert slug == "post-v2"
    assert seen == [("post", 1, record), ("post", 2, record)]


def test_current_record_is_excluded() -> None:
    record = TrackedRecord(Article(title="Post"), snapshot={"title": "Old", "slug": "old"}, identity="old.yaml")
    check = RecordingCheck()

    resolve_unique(Candidate("post", True), unique_config(), check, record)

    assert check.calls == [("post", "old.yaml")]


def test_new_record_is_never_excluded() -> None:
    record = TrackedRecord(Article(title="Post"))
    check = RecordingCheck()

    resolve_unique(Candidate("post", True), unique_config(), check, record)

    assert check.calls == [("post", None)]


def test_self_exclusion_can_be_disabled() -> None:
    record = TrackedRecord(Article(title="Post"), snapshot={"title": "Old", "slug": "old"}, identity="old.yaml")
    check = RecordingCheck()
    config = unique_config(unique_check=UniqueCheck(exclude_self=False))

    resolve_unique(Candidate("post", True), config, check, record)

    assert check.calls == [("post", None)]


def test_store_errors_propagate() -> None:
    with pytest.raises(StoreUnavailable):
        resolve_unique(Candidate("post", True), unique_config(), BrokenCheck())
