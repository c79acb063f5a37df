"""Loading of signing secrets without echoing their values."""
from __future__ import annotations

import os
from typing import Final

__all__ = ["MissingSecretError", "require_secret", "is_placeholder"]


class MissingSecretError(RuntimeError):
    """Raised when a required secret is unset or still a placeholder."""


_PLACEHOLDER_VALUES: Final[frozenset[str]] = frozenset(
    {"changeme", "change-me", "placeholder", "example", "sample", "secret", "your-key-here"}
)


def is_placeholder(value: str | None) -> bool:
    if not value:
        return True
    normalized = value.strip().lower()
    return not normalized or normalized in _PLACEHOLDER_VALUES


def require_secret(name: str, configured: str | None = None) -> str:
    """Return the trimmed secret for ``name``.

    ``configured`` is the value resolved by the settings layer; the process
    environment is consulted only when it is absent.
    """

    value = configured if configured is not None else os.getenv(name)
    if is_placeholder(value):
        raise MissingSecretError(f"{name} is required and must not use a placeholder value")
    return value.strip()
