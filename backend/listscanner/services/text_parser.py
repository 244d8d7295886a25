"""
List Scanner Backend — OCR Text Parser
=======================================

What:  Turns raw recognized text into ordered item candidates.
How:   Line-based rules, applied in this order:
           1. CRLF → LF, split into lines
           2. trim each line
           3. strip one leading bullet/numbering marker
              ("-", "•", "*", or digits followed by "." or ")")
           4. drop lines shorter than MIN_ITEM_LENGTH
           5. truncate lines longer than MAX_ITEM_LENGTH
           6. number survivors 0, 1, 2, ... in original order
Who:   Called by ListCreationService; `normalize_item_text` is also used by
       ItemRepository for manually added / edited items.

The parser is pure: no I/O, no logging, no error cases. Malformed input
simply produces fewer (possibly zero) candidates; whether an empty result
is an error is the caller's decision.

Example:
    >>> [c.text for c in parse_text_to_items("- milk\\n2) eggs\\n* bread")]
    ['milk', 'eggs', 'bread']
"""

import re
from dataclasses import dataclass
from typing import List, Optional

from listscanner.models.item import MAX_ITEM_LENGTH, MIN_ITEM_LENGTH, Item

BULLET_PATTERN = re.compile(r"^\s*(?:[-•*]|\d+[.)])\s*")


@dataclass(frozen=True)
class ItemCandidate:
    """A parsed, not yet persisted item."""

    text: str
    position: int

    def to_item(self, list_id: int) -> Item:
        return Item(list_id=list_id, text=self.text, position=self.position, is_checked=False)


def _clean_line(line: str) -> str:
    return BULLET_PATTERN.sub("", line.strip(), count=1)


def parse_text_to_items(text: str) -> List[ItemCandidate]:
    """
    Parse recognized text into item candidates.

    Args:
        text: Raw OCR output. Any string is accepted, including "".

    Returns:
        Candidates with contiguous zero-based positions; empty when no line
        survives the filters.
    """
    lines = text.replace("\r\n", "\n").split("\n")
    survivors = [
        cleaned[:MAX_ITEM_LENGTH]
        for cleaned in map(_clean_line, lines)
        if len(cleaned) >= MIN_ITEM_LENGTH
    ]
    return [ItemCandidate(text=line, position=index) for index, line in enumerate(survivors)]


def normalize_item_text(text: str) -> Optional[str]:
    """
    Trim and cap user-entered item text.

    Returns None when the trimmed text is too short to be an item. Unlike
    OCR lines, bullet markers are kept: the user typed them on purpose.
    """
    trimmed = text.strip()
    if len(trimmed) < MIN_ITEM_LENGTH:
        return None
    return trimmed[:MAX_ITEM_LENGTH]
