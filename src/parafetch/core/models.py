"""Source and result records for prioritized parallel fetching.

``Source`` is what the caller hands in; ``FetchResult`` is what comes back,
exactly one per source. Both are frozen so that concurrent tasks can hold
references without coordinating.

Example::

    sources = [
        Source("Primary API", "https://api.example.com/v1", priority=10),
        Source("Backup API", "https://backup.example.com/v1", priority=5),
        Source("Cache", "https://cache.example.com/v1", priority=1),
    ]
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Source:
    """A named, prioritized remote source.

    Attributes:
        name: Identifier used in results and log lines. Should be unique
            within one fetch operation.
        url: Opaque handle passed to the fetch capability. Not validated.
        priority: Sort key for results, higher first. Any integer,
            negative and duplicate values included.
    """

    name: str
    url: str
    priority: int = 0


@dataclass(frozen=True, slots=True)
class FetchResult:
    """Terminal outcome of fetching one :class:`Source`.

    ``success`` is true exactly when ``data`` is not ``None``; construction
    rejects anything else. :meth:`succeeded` and :meth:`failed` are the usual
    way in.
    """

    source: str
    data: str | None
    success: bool
    priority: int = 0

    def __post_init__(self) -> None:
        if self.success != (self.data is not None):
            raise ValueError(
                f"success={self.success} does not match data={self.data!r} for {self.source!r}"
            )

    @classmethod
    def succeeded(cls, source: Source, data: str) -> FetchResult:
        """Result for a source whose fetch returned ``data``."""
        return cls(source=source.name, data=data, success=True, priority=source.priority)

    @classmethod
    def failed(cls, source: Source) -> FetchResult:
        """Result for a source that exhausted or aborted its attempts."""
        return cls(source=source.name, data=None, success=False, priority=source.priority)

    def to_dict(self) -> dict[str, Any]:
        """Serialise for logging / CLI output."""
        return {
            "source": self.source,
            "priority": self.priority,
            "success": self.success,
            "data": self.data,
        }
