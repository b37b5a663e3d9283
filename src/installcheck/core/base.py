"""Base classes for configuration and state models.

Kept separate from config.py so that log.py can build its sink
models on top of BaseConfig without a circular import.
"""

from __future__ import annotations

import sys
from typing import Protocol, runtime_checkable

from pydantic import BaseModel


@runtime_checkable
class Closeable(Protocol):
    """Anything with a close() method."""

    def close(self) -> None:
        ...


class BaseCloseable(BaseModel):
    """Pydantic model that closes its Closeable fields on close().

    Closing walks the model fields in declaration order and calls
    close() on every child implementing Closeable. A failing child
    is reported on stderr and the remaining children are still
    closed, so the cascade State -> Config -> Logger -> Sink always
    runs to the end.
    """

    def close(self):
        for field_name in self.__class__.model_fields:
            child = getattr(self, field_name, None)
            if child is None or not isinstance(child, Closeable):
                continue
            try:
                child.close()
            except Exception as e:
                print(
                    f"Warning: Error closing {field_name}: {e}",
                    file=sys.stderr,
                )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):  # noqa: U100
        self.close()
        return False


class BaseConfig(BaseCloseable):
    """Marker base for configuration sections (YAML/env/CLI)."""


class BaseState(BaseCloseable):
    """Marker base for runtime state sections."""


__all__ = ["Closeable", "BaseCloseable", "BaseConfig", "BaseState"]
