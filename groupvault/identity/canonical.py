"""
Canonical JSON encoding for signed commands.

Signers and the verifier must produce identical bytes for the same command,
so the encoding is fixed:

- Object keys sorted lexicographically (Unicode code point order)
- No whitespace between tokens
- UTF-8 output, non-ASCII characters emitted as-is
- Arrays keep their order
"""

import json
from typing import Any, Dict, List, Union


def canonicalize(obj: Any) -> bytes:
    """
    Convert a command payload to its canonical byte form.

    Returns:
        UTF-8 encoded bytes of canonical JSON

    Raises:
        ValueError: If the payload holds a value JSON cannot represent
    """
    canonical = _canonicalize_value(obj)
    return json.dumps(canonical, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def canonicalize_str(obj: Any) -> str:
    """Return canonical JSON as string."""
    return canonicalize(obj).decode("utf-8")


def _canonicalize_value(value: Any) -> Any:
    if value is None or isinstance(value, (bool, str)):
        return value
    elif isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            raise ValueError("Cannot canonicalize non-finite float")
        return value
    elif isinstance(value, int):
        return value
    elif isinstance(value, dict):
        return _canonicalize_object(value)
    elif isinstance(value, (list, tuple)):
        return _canonicalize_array(value)
    else:
        raise ValueError(f"Cannot canonicalize type: {type(value)}")


def _canonicalize_object(obj: Dict[str, Any]) -> Dict[str, Any]:
    for key in obj:
        if not isinstance(key, str):
            raise ValueError(f"Object keys must be strings, got {type(key)}")
    return {k: _canonicalize_value(obj[k]) for k in sorted(obj)}


def _canonicalize_array(arr: Union[List, tuple]) -> List:
    return [_canonicalize_value(item) for item in arr]
