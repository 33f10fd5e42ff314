"""Data models for clip-batch."""

from __future__ import annotations

from clip_batch.models.clip import (
    Bounded,
    ClipEnd,
    ClipSegment,
    ClipStatus,
    DelimiterStrategy,
    ErrorClip,
    ParseOutcome,
    ReadyClip,
    Unbounded,
)

__all__ = [
    "Bounded",
    "ClipEnd",
    "ClipSegment",
    "ClipStatus",
    "DelimiterStrategy",
    "ErrorClip",
    "ParseOutcome",
    "ReadyClip",
    "Unbounded",
]
