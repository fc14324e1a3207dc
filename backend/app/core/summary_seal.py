"""
Sealed summary tokens.

A chat summary is handed to the client as a signed bearer token of the form
``SS1.<payload>.<signature>``. The payload is Base64URL (no padding) of the
summary JSON, the signature is Base64URL of HMAC-SHA256 over the payload
segment text. Nothing is stored server-side; the token is the only copy.

``seal_summary`` raises on caller bugs. ``unseal_summary`` never raises and
returns ``None`` for every kind of bad token, so callers have one branch:
treat it as if no summary was ever saved.
"""
import base64
import binascii
import hashlib
import hmac
import json
import logging
import math
import re
import time
from typing import Any, Dict, Optional, Union

from app.schemas.summary import SealedSummary

logger = logging.getLogger(__name__)

TOKEN_PREFIX = "SS1"
PAYLOAD_VERSION = 1
TASK_ID_PATTERN = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")

_B64URL_CHARS = re.compile(r"^[A-Za-z0-9_-]*$")
_LONE_SURROGATE = re.compile("[\ud800-\udfff]")


class InvalidSummaryInput(ValueError):
    """Raised when a summary is sealed without a secret, user id or task id"""
    pass


def now_ms() -> int:
    return int(time.time() * 1000)


# Base64URL codec

def b64url_encode(data: Union[str, bytes]) -> str:
    """Encode bytes (or UTF-8 text) as unpadded Base64URL"""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def b64url_decode(encoded: str) -> Optional[bytes]:
    """Decode unpadded Base64URL, returning None for malformed input"""
    if not isinstance(encoded, str) or not _B64URL_CHARS.match(encoded):
        return None
    # A single leftover character can't carry a whole byte
    if len(encoded) % 4 == 1:
        return None
    padded = encoded + "=" * (-len(encoded) % 4)
    try:
        return base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError):
        return None


# HMAC signer

def sign(secret: str, message: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).digest()
    return b64url_encode(digest)


def signatures_match(expected: str, actual: str) -> bool:
    return hmac.compare_digest(expected.encode("ascii", "replace"), actual.encode("ascii", "replace"))


# Seal / unseal

def _serialize(payload: SealedSummary) -> str:
    # Compact separators and raw UTF-8 so the output matches JSON.stringify,
    # which also escapes unpaired surrogates instead of emitting them
    text = json.dumps(payload.model_dump(by_alias=True), separators=(",", ":"), ensure_ascii=False)
    return _LONE_SURROGATE.sub(lambda m: "\\u%04x" % ord(m.group()), text)


def seal_summary(
    secret: str,
    user_id: str,
    task_id: str,
    summary: str,
    issued_at_ms: Optional[int] = None
) -> str:
    """Seal a summary for a user/task into a signed token"""
    if not secret:
        raise InvalidSummaryInput("SUMMARY_SECRET is required")
    if not user_id or not task_id or not isinstance(user_id, str) or not isinstance(task_id, str):
        raise InvalidSummaryInput("user_id and task_id are required")
    if not isinstance(summary, str):
        raise InvalidSummaryInput("summary must be a string")
    if issued_at_ms is not None and not _is_number(issued_at_ms):
        raise InvalidSummaryInput("issued_at_ms must be a finite number")

    payload = SealedSummary(
        v=PAYLOAD_VERSION,
        uid=user_id,
        taskId=task_id,
        summary=summary,
        ts=now_ms() if issued_at_ms is None else issued_at_ms
    )
    payload_segment = b64url_encode(_serialize(payload))
    signature_segment = sign(secret, payload_segment)

    return f"{TOKEN_PREFIX}.{payload_segment}.{signature_segment}"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _check_structure(data: Dict[str, Any]) -> bool:
    version = data.get("v")
    return (
        isinstance(version, int) and not isinstance(version, bool) and version == PAYLOAD_VERSION
        and isinstance(data.get("uid"), str)
        and isinstance(data.get("taskId"), str)
        and isinstance(data.get("summary"), str)
        and _is_number(data.get("ts"))
    )


def _reject(reason: str) -> None:
    logger.debug("Rejected summary token: %s", reason)
    return None


def unseal_summary(secret: str, token: str) -> Optional[SealedSummary]:
    """Verify a token and return its payload, or None if it can't be trusted"""
    if not secret or not token or not isinstance(token, str):
        return _reject("missing")
    if not token.isascii():
        return _reject("encoding")

    parts = token.split(".")
    if len(parts) != 3:
        return _reject("segments")

    prefix, payload_segment, signature_segment = parts
    if prefix != TOKEN_PREFIX:
        return _reject("prefix")

    # Authenticate before decoding anything
    if not signatures_match(sign(secret, payload_segment), signature_segment):
        return _reject("signature")

    raw = b64url_decode(payload_segment)
    if raw is None:
        return _reject("encoding")

    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return _reject("json")

    if not isinstance(data, dict) or not _check_structure(data):
        return _reject("structure")

    return SealedSummary(
        v=data["v"],
        uid=data["uid"],
        taskId=data["taskId"],
        summary=data["summary"],
        ts=data["ts"]
    )


def is_valid_task_id(task_id: Any) -> bool:
    """Check a task id against the allowed charset (1-64 of A-Za-z0-9._:-)"""
    if not isinstance(task_id, str):
        return False
    return TASK_ID_PATTERN.fullmatch(task_id) is not None
