"""Clip records produced by the table parser.

A parsed row is either a :class:`ReadyClip`, which has resolved times, or
an :class:`ErrorClip`, which keeps the raw cells and a message. Error rows
have no times to read.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class ClipStatus(str, Enum):
    """Parse status of a clip row."""

    READY = "ready"
    ERROR = "error"


class DelimiterStrategy(str, Enum):
    """How cells are split out of each input line."""

    PIPE = "pipe"  # Markdown tables, "| a | b |"
    TAB = "tab"  # Spreadsheet paste
    REGEX = "regex"  # Columns aligned with runs of spaces


@dataclass(frozen=True)
class Bounded:
    """Clip ends at a fixed time."""

    end: float


@dataclass(frozen=True)
class Unbounded:
    """Clip runs until the end of the source."""


ClipEnd = Union[Bounded, Unbounded]


@dataclass(frozen=True)
class ReadyClip:
    """A row whose time range parsed successfully.

    Attributes:
        id: Row-derived identifier, e.g. ``clip-3``
        source_file_name: Video file the clip is cut from
        start_time_str: Raw time-range cell as typed
        end_time_str: Raw time-range cell as typed
        start_seconds: Clip start, 0 for full-source clips
        end: ``Bounded`` end time or ``Unbounded``
        description: Free text, may be empty
    """

    id: str
    source_file_name: str
    start_time_str: str
    end_time_str: str
    start_seconds: float
    end: ClipEnd
    description: str = ""

    @property
    def status(self) -> ClipStatus:
        return ClipStatus.READY

    @property
    def end_seconds(self) -> float | None:
        """End time in seconds, or None when the clip is unbounded."""
        if isinstance(self.end, Bounded):
            return self.end.end
        return None

    @property
    def is_full_source(self) -> bool:
        return isinstance(self.end, Unbounded)


@dataclass(frozen=True)
class ErrorClip:
    """A row with a file name and time text that could not be parsed."""

    id: str
    source_file_name: str
    start_time_str: str
    end_time_str: str
    error_message: str
    description: str = ""

    @property
    def status(self) -> ClipStatus:
        return ClipStatus.ERROR


ClipSegment = Union[ReadyClip, ErrorClip]


@dataclass(frozen=True)
class ParseOutcome:
    """Result of parsing one block of table text.

    Attributes:
        clips: Parsed rows in source order, ready and failed alike
        errors: Table-level errors; empty whenever a header row was found
        strategy: Detected delimiter strategy, None for empty input
    """

    clips: tuple[ClipSegment, ...] = ()
    errors: tuple[str, ...] = ()
    strategy: DelimiterStrategy | None = None

    @property
    def ready_clips(self) -> list[ReadyClip]:
        return [c for c in self.clips if isinstance(c, ReadyClip)]

    @property
    def error_clips(self) -> list[ErrorClip]:
        return [c for c in self.clips if isinstance(c, ErrorClip)]

    @property
    def has_errors(self) -> bool:
        """True if the table failed or any row failed."""
        return bool(self.errors) or any(isinstance(c, ErrorClip) for c in self.clips)

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        rows = []
        for clip in self.clips:
            row = {
                "id": clip.id,
                "source_file_name": clip.source_file_name,
                "start_time_str": clip.start_time_str,
                "end_time_str": clip.end_time_str,
                "description": clip.description,
                "status": clip.status.value,
            }
            if isinstance(clip, ReadyClip):
                row["start_seconds"] = clip.start_seconds
                row["end_seconds"] = clip.end_seconds
            else:
                row["error_message"] = clip.error_message
            rows.append(row)

        return {
            "strategy": self.strategy.value if self.strategy else None,
            "clips": rows,
            "errors": list(self.errors),
        }
