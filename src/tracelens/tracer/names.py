"""Pad/element name normalization and the prefix matching policy.

Tracers report pads with run-time decorations (`queue0_src`, `sink_0`,
`audiotestsrc0.src_0`) while the graph only knows the names written in the
pipeline description. Both helpers here are heuristics: several raw names
collapse onto the same canonical name, and prefix matching can bind a short
id such as `a` to an unrelated `audiotestsrc0_src`.
"""

from __future__ import annotations


def normalize_name(raw: str) -> str:
    """Return the text before the first underscore of a raw pad/element name."""

    head, _sep, _tail = raw.partition("_")
    return head


def prefix_match(entity_id: str, raw_name: str) -> bool:
    """Return True when the raw name starts with `entity_id`.

    The raw name is used rather than `normalize_name(raw_name)` so element
    ids that contain an underscore (`avdec_h264`) still match their pads.
    Anything the canonical name matches, the raw name matches too.
    """

    if not entity_id:
        return False
    return raw_name.startswith(entity_id)
