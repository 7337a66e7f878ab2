import hashlib
import json
from typing import Any, Mapping

from teachgen.services.errors import InvalidInput


def canonical_json(request: Mapping[str, Any]) -> str:
    """Serialize a request with sorted keys at every nesting level."""
    if not isinstance(request, Mapping):
        raise InvalidInput("Generation request must be a mapping")
    try:
        return json.dumps(dict(request), sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise InvalidInput(f"Generation request is not serializable: {exc}") from exc


def fingerprint(request: Mapping[str, Any]) -> str:
    return hashlib.md5(canonical_json(request).encode("utf-8")).hexdigest()
