"""Cut-list table parsing.

Detects the delimiter convention and header row of pasted table text
and extracts clip records from the data rows.
"""

from clip_batch.table.parser import HeaderMatch, TableParser, parse

__all__ = [
    "HeaderMatch",
    "TableParser",
    "parse",
]
