"""
Best-effort repair of JSON written by the editor extension.

The extension occasionally leaves files with a dropped opening or closing
brace, or with missing commas between properties or array elements. Repair
only handles one-property-per-line formatting; anything it cannot fix is
reported as unparseable rather than raised.
"""

import json
import re
from typing import Any

from task_reader.config.constants import ACTIVE_TASKS_KEY
from task_reader.utils.logger import log_debug, log_info, log_warning

# A property line ending in a scalar, followed by a line starting a new key
_MISSING_PROPERTY_COMMA = re.compile(
    r'(":\s*(?:"[^"]*"|-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?|true|false|null))\s*\n\s*(")'
)
# An object closing on one line with the next object opening on another
_MISSING_ELEMENT_COMMA = re.compile(r"(})\s*\n\s*({)")


def _is_valid_json(text: str) -> bool:
    try:
        json.loads(text)
    except (ValueError, RecursionError):
        return False
    return True


def repair_json(text: str, expected_key: str | None = ACTIVE_TASKS_KEY) -> str:
    """Attempt to repair malformed JSON text.

    Args:
        text: Raw file contents
        expected_key: Top-level key whose opening brace may have been dropped

    Returns:
        Repaired text that parses strictly, or the original text unchanged
        when it was already valid or could not be repaired
    """
    if not isinstance(text, str) or not text.strip():
        return text

    if _is_valid_json(text):
        return text

    candidate = text.strip()

    if not candidate.startswith("["):
        if not candidate.startswith("{"):
            if expected_key and candidate.startswith(f'"{expected_key}"'):
                candidate = "{" + candidate
            else:
                log_debug("JSON repair: unrecognized opening, giving up")
                return text

        if not candidate.endswith("}"):
            if candidate.endswith("]"):
                candidate += "}"
            else:
                log_debug("JSON repair: unrecognized closing, giving up")
                return text

    candidate = _MISSING_PROPERTY_COMMA.sub(r"\1,\n    \2", candidate)
    candidate = _MISSING_ELEMENT_COMMA.sub(r"\1,\n  \2", candidate)

    if not _is_valid_json(candidate):
        log_debug("JSON repair: text still invalid after heuristics")
        return text

    log_info("Repaired malformed JSON", {"original_length": len(text)})
    return candidate


def parse_with_repair(
    text: str, expected_key: str | None = ACTIVE_TASKS_KEY, source: str = ""
) -> Any | None:
    """Parse JSON, repairing it if needed.

    Returns None (a degraded parse) when the text is empty, not a string, or
    cannot be repaired. Never raises for malformed input.
    """
    if not isinstance(text, str) or not text.strip():
        return None

    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        pass

    repaired = repair_json(text, expected_key)
    if repaired is not text:
        try:
            return json.loads(repaired)
        except (ValueError, RecursionError):
            pass

    log_warning("Unparseable JSON, degrading to empty result", {"source": source})
    return None


def salvage_objects(text: str, required_keys: tuple[str, ...] = ()) -> list[dict]:
    """Pull every complete JSON object out of damaged text, in file order.

    Used when a file cannot be parsed or repaired as a whole, for example a
    conversation cut off mid-write. Decoding restarts at each ``{`` that is
    not inside an object already recovered. Objects lacking all of
    ``required_keys`` are skipped; with no keys every object is kept.
    """
    if not isinstance(text, str):
        return []

    decoder = json.JSONDecoder()
    objects: list[dict] = []
    position = text.find("{")
    while position >= 0:
        try:
            value, end = decoder.raw_decode(text, position)
        except (ValueError, RecursionError):
            position = text.find("{", position + 1)
            continue

        if isinstance(value, dict) and (
            not required_keys or any(key in value for key in required_keys)
        ):
            objects.append(value)
            position = text.find("{", end)
        else:
            position = text.find("{", position + 1)

    log_debug("Salvaged JSON objects", {"count": len(objects)})
    return objects
