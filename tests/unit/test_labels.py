from __future__ import annotations

import pytest

from headerlabels.labels import CacheInitError, LabelCache, LabelError, LabelExistsError


class FakeProvider:
    def __init__(self, existing: dict[str, str] | None = None) -> None:
        self.labels = dict(existing or {})
        self.lookups: list[str] = []
        self.creates: list[str] = []
        self.create_error: Exception | None = None
        self.created_elsewhere = False
        self.list_error: Exception | None = None

    def get_by_name(self, name: str) -> str | None:
        self.lookups.append(name)
        return self.labels.get(name)

    def create(self, name: str) -> str:
        self.creates.append(name)
        if self.created_elsewhere:
            self.labels[name] = f"handle:{name}"
            raise LabelExistsError(name)
        if self.create_error is not None:
            raise self.create_error
        self.labels[name] = f"handle:{name}"
        return self.labels[name]

    def all_labels(self) -> dict[str, str]:
        if self.list_error is not None:
            raise self.list_error
        return dict(self.labels)


def test_creates_missing_label_once_per_run():
    provider = FakeProvider()
    cache = LabelCache(provider)

    first = cache.get_or_create("GitHub/kind/bug")
    second = cache.get_or_create("GitHub/kind/bug")

    assert first == second == "handle:GitHub/kind/bug"
    assert provider.creates == ["GitHub/kind/bug"]
    assert provider.lookups == ["GitHub/kind/bug"]
    assert "GitHub/kind/bug" in cache


def test_existing_label_is_not_recreated():
    provider = FakeProvider({"GitHub/processed": "h1"})

    assert LabelCache(provider).get_or_create("GitHub/processed") == "h1"
    assert provider.creates == []


def test_concurrent_creation_retries_lookup():
    provider = FakeProvider()
    provider.created_elsewhere = True

    handle = LabelCache(provider).get_or_create("GitHub/sig/node")

    assert handle == "handle:GitHub/sig/node"
    assert provider.lookups == ["GitHub/sig/node", "GitHub/sig/node"]


def test_exists_error_without_label_is_fatal():
    provider = FakeProvider()
    provider.create_error = LabelExistsError("GitHub/x")

    with pytest.raises(LabelError, match="not found"):
        LabelCache(provider).get_or_create("GitHub/x")


def test_other_creation_failures_surface_as_label_error():
    provider = FakeProvider()
    provider.create_error = OSError("disk full")
    cache = LabelCache(provider)

    with pytest.raises(LabelError, match="disk full"):
        cache.get_or_create("GitHub/x")
    assert "GitHub/x" not in cache


def test_warm_prepopulates_without_lookups():
    provider = FakeProvider({"GitHub/a": "h1", "GitHub/b": "h2"})
    cache = LabelCache(provider)

    cache.warm()

    assert len(cache) == 2
    assert cache.get_or_create("GitHub/b") == "h2"
    assert provider.lookups == []


def test_warm_failure_raises_cache_init_error():
    provider = FakeProvider()
    provider.list_error = ConnectionError("unreachable")

    with pytest.raises(CacheInitError, match="unreachable"):
        LabelCache(provider).warm()
