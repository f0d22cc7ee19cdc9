"""Compiled tracer line grammars.

Each grammar is a set of GstStructure-style fields (`key=(type)value`). A
grammar matches a line when every one of its fields is present; field order
and any surrounding noise are ignored. Values stop at `,`, `;` or whitespace
so the structure's field separators never end up inside a capture.
"""

from __future__ import annotations

from dataclasses import dataclass
import re


_VALUE = r"(?P<value>[^,;\s]+)"


def _field(key: str, type_tag: str) -> re.Pattern[str]:
    return re.compile(rf"(?<![\w-]){re.escape(key)}=\({type_tag}\){_VALUE}")


@dataclass(frozen=True, slots=True)
class Grammar:
    """Named field patterns for one tracer."""

    name: str
    fields: dict[str, re.Pattern[str]]

    def match(self, line: str) -> dict[str, str] | None:
        """Return captured raw values by field, or None if any field is absent."""

        captured: dict[str, str] = {}
        for field_name, pattern in self.fields.items():
            found = pattern.search(line)
            if found is None:
                return None
            captured[field_name] = found.group("value")
        return captured


THROUGHPUT = Grammar(
    name="bitrate",
    fields={
        "pad": _field("pad", "string"),
        "bitrate": _field("bitrate", "guint64"),
    },
)

FRAME_RATE = Grammar(
    name="framerate",
    fields={
        "pad": _field("pad", "string"),
        "fps": _field("fps", "(?:uint|guint|double|gdouble)"),
    },
)

PROCESSING_TIME = Grammar(
    name="proctime",
    fields={
        "element": _field("element", "string"),
        "time": _field("time", "string"),
    },
)

INTER_ELEMENT_LATENCY = Grammar(
    name="interlatency",
    fields={
        "from_pad": _field("from_pad", "string"),
        "to_pad": _field("to_pad", "string"),
        "time": _field("time", "string"),
    },
)

UINT_PATTERN = re.compile(r"\d+", re.ASCII)
FLOAT_PATTERN = re.compile(r"\d+(?:\.\d+)?(?:[eE][+-]?\d+)?", re.ASCII)
DURATION_PATTERN = re.compile(
    r"(?P<hours>\d+):(?P<minutes>\d{1,2}):(?P<seconds>\d{1,2})\.(?P<fraction>\d{1,9})",
    re.ASCII,
)
