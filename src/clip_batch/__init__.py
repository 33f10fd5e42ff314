"""Clip Batch - cut lists to ffmpeg extraction scripts.

Parses clip tables pasted from spreadsheets, markdown or plain text and
generates a script that cuts every listed clip out of its source video:

    outcome = parse(text)
    script = generate_script(outcome.clips, padding=0.5)
"""

__version__ = "0.1.0"

from clip_batch.models.clip import ParseOutcome
from clip_batch.script.generator import generate_script
from clip_batch.table.parser import parse

__all__ = [
    "ParseOutcome",
    "generate_script",
    "parse",
]
