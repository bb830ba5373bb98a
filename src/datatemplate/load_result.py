"""LoadResult for safe data loading operations.

This is a small error monad used by the loader layer for file I/O and
parsing. The render core itself raises exceptions (see exceptions.py); the
loader converts both I/O and render errors into failed results so callers
such as the CLI can report them without try/except.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class LoadStatus(str, Enum):
    """Status of a loading operation."""

    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class LoadResult(Generic[T]):  # noqa: UP046
    """
    Result of loading (and optionally rendering) a data file.

    A successful result may legitimately hold ``None`` (an empty YAML
    document), so only failures are checked for consistency.

    Usage:
        result = load_data_from_file("config.yaml")
        if result.is_success:
            data = result.value
        else:
            print(f"Load error: {result.error}")
    """

    status: LoadStatus
    value: T | None = None
    error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.status == LoadStatus.FAILED and not self.error:
            raise ValueError("Failed result must have an error message")

    @property
    def is_success(self) -> bool:
        return self.status == LoadStatus.SUCCESS

    @property
    def is_failure(self) -> bool:
        return self.status == LoadStatus.FAILED

    @classmethod
    def success(cls, value: T, metadata: dict[str, Any] | None = None) -> "LoadResult[T]":
        """Create a successful load result."""
        return cls(status=LoadStatus.SUCCESS, value=value, metadata=metadata or {})

    @classmethod
    def failure(cls, error: str, metadata: dict[str, Any] | None = None) -> "LoadResult[T]":
        """Create a failed load result.

        Args:
            error: Error message describing the failure
            metadata: Optional metadata dictionary (defaults to empty dict)
        """
        return cls(status=LoadStatus.FAILED, error=error, metadata=metadata or {})
