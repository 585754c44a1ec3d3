"""
JSON utilities backed by orjson
===============================

Thin wrapper that keeps the familiar ``dumps``/``loads`` interface while using
orjson underneath, plus newline-delimited framing for progressive responses.
"""

from typing import Any, Optional

import orjson


def dumps(obj: Any, indent: Optional[int] = None) -> str:
    """
    Serialize obj to a JSON string.

    Args:
        obj: Object to serialize
        indent: Any non-None value pretty prints with two spaces

    Note:
        orjson.dumps returns bytes, this function returns str
    """
    option = 0
    if indent is not None:
        option |= orjson.OPT_INDENT_2
    return orjson.dumps(obj, option=option).decode("utf-8")


def dumps_line(obj: Any) -> bytes:
    """Serialize obj as one NDJSON record (UTF-8 bytes terminated by a newline)."""
    return orjson.dumps(obj, option=orjson.OPT_APPEND_NEWLINE)


def loads(s: Any) -> Any:
    """Deserialize a JSON document given as str or bytes."""
    return orjson.loads(s)
