"""
Helpers for the shapes the workshop backend uses for its JSON responses.

The backend serializes with reference preservation turned on, so a list may
arrive bare, as ``{"$id": "1", "$values": [...]}``, wrapped in ``{"data": [...]}``
or, for single-result lookups, as the lone object itself.
"""
from typing import Any, Optional

from walkin_desk.errors import MalformedResponse


def unwrap_references(data: Any) -> Any:
    """
    Recursively strip reference metadata from a decoded JSON document.

    ``$id``/``$ref`` keys are dropped, other ``$``-prefixed keys lose their
    prefix, and an object that carried a ``$values`` list collapses into that
    list. A plain ``values`` key is ordinary data and is left alone.
    """
    if isinstance(data, list):
        return [unwrap_references(item) for item in data]

    if isinstance(data, dict):
        wrapped = isinstance(data.get("$values"), list)
        cleaned = {}
        for key, value in data.items():
            if key in ("$id", "$ref"):
                continue
            new_key = key[1:] if key.startswith("$") else key
            cleaned[new_key] = unwrap_references(value)

        if wrapped:
            return cleaned["values"]
        return cleaned

    return data


def normalize_list(raw: Any, single_key: Optional[str] = None) -> list:
    """
    Turn any list-bearing response shape into a plain list.

    Accepts a bare list, ``{"$values": [...]}`` and ``{"data": [...]}``. When
    ``single_key`` is given, an object carrying that key is treated as a
    one-element list. Anything else raises MalformedResponse.
    """
    if isinstance(raw, list):
        return raw

    if isinstance(raw, dict):
        for wrapper in ("$values", "data"):
            if isinstance(raw.get(wrapper), list):
                return raw[wrapper]
        if single_key and raw.get(single_key) is not None:
            return [raw]

    raise MalformedResponse()
