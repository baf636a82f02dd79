from __future__ import annotations

import json


def _parse_payload_array(payload: object) -> list[object]:
    """Return the events embedded in an entry payload.

    The payload may be a literal list or a JSON string encoding a list.
    Anything else, including malformed JSON, yields no events.
    """

    if isinstance(payload, list):
        return payload
    if isinstance(payload, str):
        try:
            parsed = json.loads(payload)
        except ValueError:
            return []
        if isinstance(parsed, list):
            return parsed
    return []
