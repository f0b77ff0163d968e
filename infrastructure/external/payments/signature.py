"""
HMAC-SHA256 checksum for SecurePay callbacks.

The digest is taken over the payload minus its ``checksum``/``signature``
keys, serialized the way PHP's ``json_encode`` does by default: compact
separators, ``\\uXXXX`` for non-ASCII and ``\\/`` for forward slashes.
Key order is the payload's own unless ``sort_keys`` is set. Mappings are
shaped like PHP arrays first: an empty one encodes as ``[]`` and one keyed
``"0".."n-1"`` in order encodes as a list.
"""
from __future__ import annotations

import hashlib
import hmac
import json
from typing import Any, Mapping, Optional

SIGNATURE_FIELDS = ("checksum", "signature")


def _as_php_array(value: Any) -> Any:
    if isinstance(value, Mapping):
        if not value:
            return []
        if [str(k) for k in value] == [str(i) for i in range(len(value))]:
            return [_as_php_array(v) for v in value.values()]
        return {k: _as_php_array(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_as_php_array(v) for v in value]
    return value


def canonical_json(data: Mapping[str, Any], *, sort_keys: bool = False) -> str:
    encoded = json.dumps(_as_php_array(data), separators=(",", ":"), ensure_ascii=True, sort_keys=sort_keys)
    return encoded.replace("/", "\\/")


def strip_signature(payload: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in payload.items() if k not in SIGNATURE_FIELDS}


def compute_checksum(payload: Mapping[str, Any], secret: str, *, sort_keys: bool = False) -> str:
    message = canonical_json(strip_signature(payload), sort_keys=sort_keys)
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


def extract_signature(payload: Mapping[str, Any], signature: Optional[str] = None) -> Optional[str]:
    for candidate in (signature, payload.get("checksum"), payload.get("signature")):
        if candidate is not None:
            return str(candidate) or None
    return None


def verify_checksum(
    payload: Mapping[str, Any],
    secret: str,
    signature: Optional[str] = None,
    *,
    sort_keys: bool = False,
) -> bool:
    supplied = extract_signature(payload, signature)
    if not supplied:
        return False
    try:
        expected = compute_checksum(payload, secret, sort_keys=sort_keys)
    except (TypeError, ValueError):
        # payload values that JSON cannot encode can never match
        return False
    return hmac.compare_digest(expected.encode("utf-8"), supplied.encode("utf-8"))
