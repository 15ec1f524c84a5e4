"""Locate the JSON arrays TCMSP embeds in its inline Kendo grid scripts.

A TCMSP result page carries its tables as literal ``data: [...]`` arrays
inside ``<script>`` blocks, one per grid. Which array is which is only known
from its position in the page, so callers address them by ordinal: the
``index``-th array counted over every script region in document order.
"""

import json
import re
from typing import Any, Dict, List

from bs4 import BeautifulSoup

from .errors import ExtractionError

Record = Dict[str, Any]

DATA_MARKER = re.compile(r"\bdata\s*:\s*(?=\[)")


def script_regions(page: str) -> List[str]:
    soup = BeautifulSoup(page, "lxml")
    return [script.string or script.get_text() for script in soup.find_all("script")]


def _array_end(text: str, start: int) -> int:
    """Index of the bracket closing the array opened at ``start``, or -1."""
    depth = 0
    quote = None
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if quote:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                quote = None
            continue
        if ch in ("'", '"'):
            quote = ch
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return i
    return -1


def find_blocks(page: str) -> List[str]:
    """Every ``data: [...]`` array literal in the page, marker stripped."""
    blocks: List[str] = []
    for region in script_regions(page):
        pos = 0
        while True:
            m = DATA_MARKER.search(region, pos)
            if not m:
                break
            start = m.end()
            end = _array_end(region, start)
            if end == -1:
                # Unterminated literal: nothing after it can be trusted either.
                break
            blocks.append(region[start : end + 1].strip())
            pos = end + 1
    return blocks


def extract_records(page: str, index: int) -> List[Record]:
    """Parse the ``index``-th embedded array of ``page`` into row dicts.

    Raises ExtractionError when the page has no such block or the block is
    not a JSON array of objects.
    """
    blocks = find_blocks(page)
    if not blocks:
        raise ExtractionError("no embedded data block in page")
    if index < 0 or index >= len(blocks):
        raise ExtractionError(f"block #{index} requested, page has {len(blocks)}")
    try:
        data = json.loads(blocks[index])
    except ValueError as exc:
        raise ExtractionError(f"block #{index} is not valid JSON: {exc}") from exc
    if not isinstance(data, list) or not all(isinstance(x, dict) for x in data):
        raise ExtractionError(f"block #{index} is not an array of records")
    return data
