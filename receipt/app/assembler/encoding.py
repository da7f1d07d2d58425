"""
Submitted data encoding.

The renderer receives the submitted form data as an opaque string.
The only guarantees are determinism (identical data always encodes to
identical text) and reversibility; the encoding is canonical JSON
(sorted keys, compact separators, UTF-8) wrapped in base64.
"""

import base64
import json
from decimal import Decimal
from typing import Any


def _canonical_json_default(obj: Any) -> str:
    if isinstance(obj, Decimal):
        return str(obj)
    raise TypeError(
        f"Object of type {obj.__class__.__name__} is not JSON serializable"
    )


def canonicalize(data: Any) -> bytes:
    return json.dumps(
        data,
        sort_keys=True,
        ensure_ascii=False,
        separators=(",", ":"),
        default=_canonical_json_default,
    ).encode("utf-8")


def encode_submitted_data(data: Any) -> str:
    return base64.b64encode(canonicalize(data)).decode("ascii")


def decode_submitted_data(encoded: str) -> Any:
    return json.loads(base64.b64decode(encoded, validate=True).decode("utf-8"))
