"""Extraction script generation.

Turns parsed clips into ffmpeg command scripts for Windows batch or POSIX sh.
"""

from clip_batch.script.generator import (
    ClipCommand,
    ExtractionWindow,
    ScriptGenerator,
    build_output_name,
    compute_window,
    default_script_name,
    generate_script,
    sanitize_description,
)

__all__ = [
    "ClipCommand",
    "ExtractionWindow",
    "ScriptGenerator",
    "build_output_name",
    "compute_window",
    "default_script_name",
    "generate_script",
    "sanitize_description",
]
