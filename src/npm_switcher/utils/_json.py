from typing import cast

import orjson


def dump_json(data: object) -> bytes:
    """Serialize ``data`` as indented JSON with a trailing newline."""
    return orjson.dumps(data, option=orjson.OPT_INDENT_2 | orjson.OPT_APPEND_NEWLINE)


def load_json(content: str | bytes) -> dict[str, object] | list[object] | None:
    """Load and parse a JSON document.

    Args:
        content: The JSON text to parse.

    Returns:
        The parsed JSON data as a dictionary or list, or None if parsing fails.
    """
    try:
        return cast("dict[str, object] | list[object]", orjson.loads(content))
    except orjson.JSONDecodeError:
        return None
