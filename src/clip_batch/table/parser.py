"""Cut-list table parser.

Turns loosely formatted table text into clip records. Handles:
- Markdown tables with or without border pipes
- Tab-separated rows pasted from a spreadsheet
- Plain text columns aligned with two or more spaces
- Noise lines before the header row
- Markdown separator rows (|---|:---:|)
- Full-width colons in time ranges ("00：10 - 00：20")
- Full-source markers ("全片段", "Full")
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from clip_batch import timecode
from clip_batch.config import ParserSettings
from clip_batch.logging import get_logger
from clip_batch.models.clip import (
    Bounded,
    ClipSegment,
    DelimiterStrategy,
    ErrorClip,
    ParseOutcome,
    ReadyClip,
    Unbounded,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class HeaderMatch:
    """Location of the header row and its key columns.

    Attributes:
        line_index: Index of the header among the non-empty lines
        file_index: Column holding the source file name
        time_index: Column holding the time range
        description_index: Column holding the description, or -1
    """

    line_index: int
    file_index: int
    time_index: int
    description_index: int = -1


class TableParser:
    """Parser for pasted cut-list tables.

    The parser holds only its settings, so one instance can be reused for
    every edit of the input.

    Example usage:
        parser = TableParser()
        outcome = parser.parse(text)
        for clip in outcome.ready_clips:
            print(clip.source_file_name, clip.start_seconds)
    """

    # Fallback splitter: two or more whitespace characters, or a single tab
    REGEX_SPLIT_PATTERN = re.compile(r"\s{2,}|\t")

    # Characters that make up markdown separator rows
    SEPARATOR_CHARS_PATTERN = re.compile(r"[|\-\s:]")

    RANGE_SPLIT_PATTERN = re.compile(r"-|to")

    FULLWIDTH_COLON = "："

    def __init__(self, settings: ParserSettings | None = None):
        """Initialize the parser.

        Args:
            settings: Keyword table and detection settings; defaults if None
        """
        self.settings = settings or ParserSettings()

    def parse(self, text: str) -> ParseOutcome:
        """Parse table text into clip records.

        Args:
            text: Raw multi-line table text

        Returns:
            ParseOutcome with clips in row order and any table-level error
        """
        # Only "\n" ends a row; other Unicode line breaks can sit inside a cell
        lines = [line for line in text.split("\n") if line.strip()]
        if not lines:
            return ParseOutcome()

        strategy = self.detect_strategy(lines)
        logger.debug(f"Detected delimiter strategy: {strategy.value}", extra={"lines": len(lines)})

        header = self.find_header(lines, strategy)
        if header is None:
            logger.info("No header row found", extra={"strategy": strategy.value})
            return ParseOutcome(
                errors=(
                    "Could not identify columns. Please ensure your table has headers "
                    f"like 'File' and 'Time'. Detected format: {strategy.value}.",
                ),
                strategy=strategy,
            )

        logger.debug(
            f"Header found on line {header.line_index}",
            extra={
                "file_column": header.file_index,
                "time_column": header.time_index,
                "description_column": header.description_index,
            },
        )

        clips: list[ClipSegment] = []
        for index in range(header.line_index + 1, len(lines)):
            line = lines[index]
            if self.is_separator_row(line):
                continue

            clip = self._parse_row(index, self.split_line(line, strategy), header)
            if clip is not None:
                clips.append(clip)

        return ParseOutcome(clips=tuple(clips), strategy=strategy)

    def detect_strategy(self, lines: list[str]) -> DelimiterStrategy:
        """Guess the delimiter convention from the first few lines.

        Pipes win over tabs, tabs win over aligned whitespace.

        Args:
            lines: Non-empty input lines

        Returns:
            Detected DelimiterStrategy
        """
        sample = lines[: self.settings.sample_size]
        pipe_count = sum(line.count("|") for line in sample)
        tab_count = sum(line.count("\t") for line in sample)

        if pipe_count >= len(sample):
            return DelimiterStrategy.PIPE
        if tab_count > 0:
            return DelimiterStrategy.TAB
        return DelimiterStrategy.REGEX

    @classmethod
    def split_line(cls, line: str, strategy: DelimiterStrategy) -> list[str]:
        """Split one line into trimmed cells.

        Args:
            line: Input line
            strategy: Delimiter strategy to apply

        Returns:
            List of cell strings
        """
        if strategy == DelimiterStrategy.PIPE:
            parts = line.split("|")
            # "| a | b |" splits to ["", " a ", " b ", ""]
            if parts and not parts[0].strip():
                parts.pop(0)
            if parts and not parts[-1].strip():
                parts.pop()
            return [p.strip() for p in parts]

        if strategy == DelimiterStrategy.TAB:
            return [p.strip() for p in line.split("\t")]

        return [p.strip() for p in cls.REGEX_SPLIT_PATTERN.split(line.strip())]

    def find_header(self, lines: list[str], strategy: DelimiterStrategy) -> HeaderMatch | None:
        """Find the first line naming both a file column and a time column.

        Args:
            lines: Non-empty input lines
            strategy: Delimiter strategy to split with

        Returns:
            HeaderMatch, or None if no line qualifies
        """
        keywords = self.settings.keywords
        keep_first = self.settings.column_match == "first"

        for line_index, line in enumerate(lines):
            found = {"file": -1, "time": -1, "description": -1}

            for col, cell in enumerate(self.split_line(line, strategy)):
                for category, current in found.items():
                    if keep_first and current != -1:
                        continue
                    if keywords.matches(category, cell):
                        found[category] = col

            file_index = found["file"]
            time_index = found["time"]
            description_index = found["description"]

            if file_index != -1 and time_index != -1:
                return HeaderMatch(
                    line_index=line_index,
                    file_index=file_index,
                    time_index=time_index,
                    description_index=description_index,
                )

        return None

    @classmethod
    def is_separator_row(cls, line: str) -> bool:
        """Check for rows like ``|---|:---:|`` that carry no data."""
        return not cls.SEPARATOR_CHARS_PATTERN.sub("", line)

    def is_full_source(self, time_text: str) -> bool:
        """Check whether a time cell asks for the whole source file."""
        lowered = time_text.lower()
        return any(marker.lower() in lowered for marker in self.settings.full_markers)

    def _parse_row(
        self,
        index: int,
        cells: list[str],
        header: HeaderMatch,
    ) -> ClipSegment | None:
        """Build a clip from one data row.

        Args:
            index: Line index, used for the clip id
            cells: Split cells of the row
            header: Located header columns

        Returns:
            ReadyClip or ErrorClip, or None if the row lacks a file or time
        """
        if len(cells) <= header.file_index or len(cells) <= header.time_index:
            return None

        file_name = cells[header.file_index]
        time_raw = cells[header.time_index]
        if not file_name or not time_raw:
            return None

        description = ""
        if 0 <= header.description_index < len(cells):
            description = cells[header.description_index]

        clip_id = f"clip-{index}"
        time_text = time_raw.replace(self.FULLWIDTH_COLON, ":").strip()

        if self.is_full_source(time_text):
            return ReadyClip(
                id=clip_id,
                source_file_name=file_name,
                start_time_str=time_raw,
                end_time_str=time_raw,
                start_seconds=0.0,
                end=Unbounded(),
                description=description,
            )

        error = None
        parts = [p.strip() for p in self.RANGE_SPLIT_PATTERN.split(time_text)]
        if len(parts) != 2:
            error = f"Invalid range format: {time_raw}"
        else:
            start = timecode.to_seconds(parts[0])
            end = timecode.to_seconds(parts[1])
            if timecode.is_invalid(start) or timecode.is_invalid(end):
                error = f"Invalid time format: {time_raw}"
            elif end < start:
                error = f"End time precedes start time: {time_raw}"

        if error is not None:
            logger.debug(error, extra={"clip_id": clip_id, "file": file_name})
            return ErrorClip(
                id=clip_id,
                source_file_name=file_name,
                start_time_str=time_raw,
                end_time_str=time_raw,
                error_message=error,
                description=description,
            )

        return ReadyClip(
            id=clip_id,
            source_file_name=file_name,
            start_time_str=time_raw,
            end_time_str=time_raw,
            start_seconds=start,
            end=Bounded(end),
            description=description,
        )


def parse(text: str, settings: ParserSettings | None = None) -> ParseOutcome:
    """Parse table text with a fresh :class:`TableParser`."""
    return TableParser(settings).parse(text)
