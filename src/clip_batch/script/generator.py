"""Extraction script generator.

Turns parsed clips into a shell script of ffmpeg stream-copy commands.
Each clip window is widened by the padding on both sides and clamped at 0.

The ffmpeg line seeks on the input side (``-ss`` before ``-i``) and
copies streams (``-c copy``). This is fast, but a cut may start on the
nearest keyframe instead of the exact time.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Iterable

from clip_batch.config import ScriptDialect, ScriptSettings
from clip_batch.logging import get_logger
from clip_batch.models.clip import Bounded, ClipSegment, ReadyClip

logger = get_logger(__name__)

# Characters Windows refuses in file names, plus runs of whitespace
_UNSAFE_FILENAME_PATTERN = re.compile(r'[\\/:*?"<>|]|\s+')

RULE = "=========================================="


@dataclass(frozen=True)
class ExtractionWindow:
    """Padded time window for one clip.

    Attributes:
        start: Seek position in seconds, never negative
        end: Padded end in seconds, None to read until end of source
    """

    start: float
    end: float | None = None

    @property
    def bounded(self) -> bool:
        return self.end is not None

    @property
    def duration(self) -> float | None:
        """Seconds to extract, or None for an open-ended window."""
        if self.end is None:
            return None
        return self.end - self.start


@dataclass(frozen=True)
class ClipCommand:
    """One planned extraction: the clip, its window and where it goes."""

    index: int
    clip: ReadyClip
    window: ExtractionWindow
    output_name: str


def compute_window(clip: ReadyClip, padding: float) -> ExtractionWindow:
    """Apply symmetric padding to a clip's time range.

    Args:
        clip: Parsed clip
        padding: Seconds to add before the start and after the end

    Returns:
        ExtractionWindow with the start clamped at 0
    """
    start = max(0.0, clip.start_seconds - padding)
    if isinstance(clip.end, Bounded):
        return ExtractionWindow(start=start, end=clip.end.end + padding)
    return ExtractionWindow(start=start)


def sanitize_description(text: str) -> str:
    """Make free text safe to embed in a file name.

    Illegal filename characters and whitespace runs each become ``_``.
    """
    return _UNSAFE_FILENAME_PATTERN.sub("_", text.strip())


def build_output_name(index: int, clip: ReadyClip, extension: str = ".mp4") -> str:
    """Build the output file name for a clip.

    Args:
        index: 1-based sequence number
        clip: Clip being extracted
        extension: Output file extension including the dot

    Returns:
        Name such as ``003_ep01.mp4_opening_scene.mp4``
    """
    parts = [f"{index:03d}", sanitize_description(clip.source_file_name)]
    safe_description = sanitize_description(clip.description)
    if safe_description:
        parts.append(safe_description)
    return "_".join(parts) + extension


def default_script_name(clip_count: int, dialect: ScriptDialect = ScriptDialect.BATCH) -> str:
    """Suggested file name for a generated script."""
    return f"run_cuts_{clip_count}_clips{_DIALECTS[dialect].extension}"


class _BatchDialect:
    """Windows cmd.exe batch file."""

    extension = ".bat"
    line_ending = "\r\n"
    path_separator = "\\"

    def quote(self, value: str) -> str:
        # Double quotes cannot appear in Windows paths; percent signs must be doubled
        return '"' + value.replace("%", "%%") + '"'

    def echo(self, text: str) -> str:
        return f"echo {text}"

    def preamble(self, tool: str, output_dir: str) -> list[str]:
        return [
            "@echo off",
            "chcp 65001 >nul",
            self.echo("Starting clip-batch processing..."),
            self.echo(RULE),
            "",
            f"where {tool} >nul 2>nul",
            "if %errorlevel% neq 0 (",
            f"    echo Error: {tool} not found in PATH.",
            f"    echo Please download {tool} and place it in this folder or add it to your PATH.",
            "    pause",
            "    exit /b 1",
            ")",
            "",
            f"if not exist {self.quote(output_dir)} mkdir {self.quote(output_dir)}",
            "",
        ]

    def announce(self, output_path: str) -> str:
        return self.echo(f"Processing: {self.quote(output_path)}")

    def postamble(self, output_dir: str) -> list[str]:
        return [
            "",
            self.echo(RULE),
            self.echo(f"All done! Files are in the {self.quote(output_dir)} folder."),
            "pause",
        ]


class _ShellDialect:
    """POSIX sh script."""

    extension = ".sh"
    line_ending = "\n"
    path_separator = "/"

    _ESCAPE_PATTERN = re.compile(r'(["$`\\])')

    def quote(self, value: str) -> str:
        return '"' + self._ESCAPE_PATTERN.sub(r"\\\1", value) + '"'

    def echo(self, text: str) -> str:
        return f"echo {self.quote(text)}"

    def preamble(self, tool: str, output_dir: str) -> list[str]:
        return [
            "#!/bin/sh",
            "",
            self.echo("Starting clip-batch processing..."),
            self.echo(RULE),
            "",
            f"if ! command -v {tool} >/dev/null 2>&1; then",
            f"    {self.echo(f'Error: {tool} not found in PATH.')} >&2",
            f"    {self.echo(f'Please install {tool} or add it to your PATH.')} >&2",
            "    exit 1",
            "fi",
            "",
            f"mkdir -p {self.quote(output_dir)}",
            "",
        ]

    def announce(self, output_path: str) -> str:
        return self.echo(f"Processing: {output_path}")

    def postamble(self, output_dir: str) -> list[str]:
        return [
            "",
            self.echo(RULE),
            self.echo(f'All done! Files are in the "{output_dir}" folder.'),
        ]


_DIALECTS = {
    ScriptDialect.BATCH: _BatchDialect(),
    ScriptDialect.SHELL: _ShellDialect(),
}


class ScriptGenerator:
    """Builds ffmpeg extraction scripts from parsed clips.

    Generation never raises: error rows are skipped and a negative or
    non-finite padding is treated as 0.

    Example usage:
        generator = ScriptGenerator(ScriptSettings(dialect=ScriptDialect.SHELL))
        script = generator.generate(outcome.clips, padding=0.5)
    """

    def __init__(self, settings: ScriptSettings | None = None):
        """Initialize the generator.

        Args:
            settings: Output directory, extension, tool and dialect; defaults if None
        """
        self.settings = settings or ScriptSettings()
        self._dialect = _DIALECTS[self.settings.dialect]

    def _effective_padding(self, padding: float | None) -> float:
        if padding is None:
            return self.settings.padding
        if not math.isfinite(padding) or padding < 0:
            logger.warning(f"Padding {padding} treated as 0")
            return 0.0
        return padding

    def plan(self, clips: Iterable[ClipSegment], padding: float | None = None) -> list[ClipCommand]:
        """Compute windows and output names for every ready clip.

        Args:
            clips: Parsed clips in source order
            padding: Seconds of padding; the configured padding if None

        Returns:
            ClipCommand list, numbered from 1 in source order
        """
        pad = self._effective_padding(padding)
        ready = [clip for clip in clips if isinstance(clip, ReadyClip)]

        return [
            ClipCommand(
                index=index,
                clip=clip,
                window=compute_window(clip, pad),
                output_name=build_output_name(index, clip, self.settings.output_extension),
            )
            for index, clip in enumerate(ready, start=1)
        ]

    def output_path(self, command: ClipCommand) -> str:
        """Output path of a planned clip, relative to the script's folder."""
        return f"{self.settings.output_dir}{self._dialect.path_separator}{command.output_name}"

    def command_line(self, command: ClipCommand) -> str:
        """Render the ffmpeg invocation for one planned clip."""
        dialect = self._dialect
        args = [
            self.settings.tool,
            "-hide_banner",
            "-loglevel", "error",
            "-ss", f"{command.window.start:.3f}",
            "-i", dialect.quote(command.clip.source_file_name),
        ]
        if command.window.duration is not None:
            args.extend(["-t", f"{command.window.duration:.3f}"])
        args.extend(["-c", "copy", dialect.quote(self.output_path(command))])
        return " ".join(args)

    def generate(self, clips: Iterable[ClipSegment], padding: float | None = None) -> str:
        """Generate the full script document.

        Args:
            clips: Parsed clips in source order; error rows are skipped
            padding: Seconds of padding; the configured padding if None

        Returns:
            Script text using the dialect's line endings
        """
        dialect = self._dialect
        commands = self.plan(clips, padding)

        lines = dialect.preamble(self.settings.tool, self.settings.output_dir)
        for command in commands:
            lines.append(dialect.announce(self.output_path(command)))
            lines.append(self.command_line(command))
        lines.extend(dialect.postamble(self.settings.output_dir))

        logger.info(
            f"Generated script with {len(commands)} commands",
            extra={"dialect": self.settings.dialect.value},
        )
        return dialect.line_ending.join(lines) + dialect.line_ending


def generate_script(
    clips: Iterable[ClipSegment],
    padding: float | None = None,
    settings: ScriptSettings | None = None,
) -> str:
    """Generate a script with a fresh :class:`ScriptGenerator`."""
    return ScriptGenerator(settings).generate(clips, padding)
