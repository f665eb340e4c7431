"""
Decoding of the HTML character references found in page metadata.
"""
from __future__ import annotations

from typing import Tuple

# (escape sequence, literal) in the order they are checked
ENTITIES: Tuple[Tuple[str, str], ...] = (
    ("&#39;", "'"),
    ("&quot;", '"'),
    ("&amp;", "&"),
)


def decode_tail(partial: str) -> str:
    """Collapse a known escape sequence if ``partial`` now ends with one."""
    for escape, literal in ENTITIES:
        if partial.endswith(escape):
            partial = partial[: -len(escape)] + literal
    return partial


def decode(text: str) -> str:
    """
    Decode ``&#39;``, ``&quot;`` and ``&amp;`` in ``text``.

    Characters are accumulated one at a time and the tail is re-checked after
    each one, so the result matches what the field extractor produces when it
    reads the same characters. Unknown sequences pass through unchanged.
    """
    decoded = ""
    for ch in text:
        decoded = decode_tail(decoded + ch)
    return decoded
