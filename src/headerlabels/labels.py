"""Per-run cache in front of a labeling provider."""

from __future__ import annotations

import logging

from .ports import LabelHandle, LabelProvider

LOGGER = logging.getLogger(__name__)


class LabelError(RuntimeError):
    """Raised when a label cannot be resolved or created."""


class LabelExistsError(LabelError):
    """Raised by providers when creating a label that already exists."""


class CacheInitError(LabelError):
    """Raised when existing labels cannot be enumerated before a run."""


class LabelCache:
    """Resolve label names to provider handles, creating labels on demand.

    A cache belongs to a single run. Handles are never invalidated while the
    run lasts and must not be carried over into the next one.
    """

    def __init__(self, provider: LabelProvider) -> None:
        self._provider = provider
        self._handles: dict[str, LabelHandle] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._handles

    def __len__(self) -> int:
        return len(self._handles)

    def warm(self) -> None:
        """Pre-populate the cache with every label the provider already knows."""

        try:
            existing = self._provider.all_labels()
        except Exception as exc:
            raise CacheInitError(f"Failed to enumerate existing labels: {exc}") from exc
        self._handles.update(existing)
        LOGGER.debug("Label cache warmed with %s label(s)", len(existing))

    def get_or_create(self, name: str) -> LabelHandle:
        """Return the handle for ``name``, creating the label when missing."""

        cached = self._handles.get(name)
        if cached is not None:
            return cached

        handle = self._lookup(name)
        if handle is None:
            handle = self._create(name)
        self._handles[name] = handle
        return handle

    def _create(self, name: str) -> LabelHandle:
        try:
            handle = self._provider.create(name)
        except LabelExistsError:
            LOGGER.debug("Label '%s' appeared concurrently; retrying lookup", name)
            handle = self._lookup(name)
            if handle is None:
                raise LabelError(f"Label '{name}' reported as existing but not found") from None
            return handle
        except LabelError:
            raise
        except Exception as exc:
            raise LabelError(f"Failed to create label '{name}': {exc}") from exc
        LOGGER.info("Created label '%s'", name)
        return handle

    def _lookup(self, name: str) -> LabelHandle | None:
        try:
            return self._provider.get_by_name(name)
        except Exception as exc:
            raise LabelError(f"Failed to look up label '{name}': {exc}") from exc


__all__ = ["CacheInitError", "LabelCache", "LabelError", "LabelExistsError"]
