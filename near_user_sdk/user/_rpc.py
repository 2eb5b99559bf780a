"""
JSON-RPC request and response mapping shared by ``RpcUser`` and
``AsyncRpcUser``.

Only the logical request shapes live here; the HTTP round trip belongs to
each transport.
"""
import base64
import os
import urllib.parse
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..exceptions import NotFoundError, RejectedError, TransportError, UserError
from ..signer.keys import PublicKey
from ..transaction import hash_from_str, hash_to_str

M = TypeVar('M', bound=BaseModel)

DEFAULT_RPC_URL = "http://localhost:3030"
RPC_REQUEST_ID = "dontcare"

NOT_FOUND_CAUSES = frozenset({
    "UNKNOWN_ACCOUNT",
    "UNKNOWN_ACCESS_KEY",
    "UNKNOWN_BLOCK",
    "UNKNOWN_CHUNK",
    "UNKNOWN_TRANSACTION",
    "UNKNOWN_EPOCH",
})
REJECTED_CAUSES = frozenset({"INVALID_TRANSACTION"})

# Free-form messages older nodes send instead of a structured cause
LEGACY_NOT_FOUND_MARKERS = ("does not exist", "DB Not Found Error", "UNKNOWN_BLOCK")

# Account views read the head, not the final block: the final block trails by
# a few heights and would still show the nonce from before the last commit
QUERY_FINALITY = "optimistic"


def resolve_rpc_url(url: Optional[str] = None) -> str:
    """
    Resolve and validate the node URL.

    Falls back to ``NEAR_RPC_URL`` and then to a local node. Bare
    ``host:port`` addresses are treated as ``http://``.

    Raises:
        ValueError: If the URL uses plain http for a non-local host and
            ``NEAR_INSECURE_RPC=1`` is not set
    """
    url = url or os.environ.get("NEAR_RPC_URL") or DEFAULT_RPC_URL
    if "://" not in url:
        url = f"http://{url}"

    parsed = urllib.parse.urlparse(url)
    host = parsed.hostname or ""
    is_local = host in ("localhost", "127.0.0.1", "::1")
    if parsed.scheme != "https" and not is_local:
        if os.environ.get("NEAR_INSECURE_RPC") != "1":
            raise ValueError(
                f"RPC URL must use https:// for non-local nodes (got: {parsed.scheme}://). "
                "Set NEAR_INSECURE_RPC=1 to allow plain HTTP."
            )
    return url.rstrip("/")


def resolve_timeout(timeout: Optional[float] = None) -> Optional[float]:
    """Request timeout in seconds; None means wait indefinitely."""
    if timeout is not None:
        return timeout
    env_timeout = os.environ.get("NEAR_RPC_TIMEOUT")
    if env_timeout:
        try:
            return float(env_timeout)
        except ValueError:
            raise ValueError(f"NEAR_RPC_TIMEOUT must be a number of seconds, got {env_timeout!r}")
    return None


def build_request(method: str, params: Any) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": RPC_REQUEST_ID, "method": method, "params": params}


def _is_legacy_not_found(text: str) -> bool:
    return any(marker in text for marker in LEGACY_NOT_FOUND_MARKERS)


def error_from_rpc(error: Any) -> UserError:
    """
    Map a JSON-RPC error object to the matching ``UserError``.

    Structured errors carry a ``cause.name``; older nodes only send a message
    and a free-form ``data`` field, which is matched on its content.
    """
    if not isinstance(error, dict):
        return TransportError(f"RPC error: {error}")

    cause = error.get("cause")
    cause_name = cause.get("name") if isinstance(cause, dict) else None
    message = error.get("message") or "RPC error"
    data = error.get("data")
    text = f"{message}: {data}" if data else message

    if cause_name in NOT_FOUND_CAUSES:
        return NotFoundError(text, cause_name, data)
    if cause_name in REJECTED_CAUSES:
        return RejectedError(text, cause_name, data)
    if cause_name is None:
        if isinstance(data, dict) and ("TxExecutionError" in data or "InvalidTxError" in data):
            return RejectedError(text, None, data)
        if isinstance(data, str) and _is_legacy_not_found(data):
            return NotFoundError(text, None, data)
    return TransportError(text, cause_name, data)


def parse_response(method: str, body: Any) -> Any:
    """
    Extract ``result`` from a JSON-RPC response body.

    Raises:
        UserError: The mapped error if the node returned one
        TransportError: If the body is not a JSON-RPC response
    """
    if not isinstance(body, dict):
        raise TransportError(f"Malformed response to {method}: {body!r}")
    if body.get("error") is not None:
        raise error_from_rpc(body["error"])
    if "result" not in body:
        raise TransportError(f"Response to {method} has neither result nor error")

    result = body["result"]
    # Older nodes report query failures inside the result
    if isinstance(result, dict) and isinstance(result.get("error"), str):
        message = result["error"]
        if _is_legacy_not_found(message):
            raise NotFoundError(message)
        raise TransportError(message)
    return result


def validate(model: Type[M], result: Any, what: str) -> M:
    try:
        return model.model_validate(result)
    except ValidationError as e:
        raise TransportError(f"Malformed {what} response: {e}") from e


def decode_hash(value: str, what: str = "hash") -> bytes:
    try:
        return hash_from_str(value)
    except ValueError as e:
        raise TransportError(f"Malformed {what} {value!r}: {e}") from e


# ── request parameters ───────────────────────────────────────────────────

def view_account_params(account_id: str, finality: str = QUERY_FINALITY) -> Dict[str, Any]:
    return {"request_type": "view_account", "finality": finality, "account_id": account_id}


def view_access_key_params(
    account_id: str,
    public_key: PublicKey,
    finality: str = QUERY_FINALITY
) -> Dict[str, Any]:
    return {
        "request_type": "view_access_key",
        "finality": finality,
        "account_id": account_id,
        "public_key": str(public_key),
    }


def view_state_params(account_id: str, prefix: bytes, finality: str = QUERY_FINALITY) -> Dict[str, Any]:
    return {
        "request_type": "view_state",
        "finality": finality,
        "account_id": account_id,
        "prefix_base64": base64.b64encode(prefix).decode("ascii"),
    }


def block_params(height: Optional[int] = None) -> Dict[str, Any]:
    if height is None:
        return {"finality": "final"}
    return {"block_id": height}


def tx_status_params(hash: bytes, sender_id: str) -> List[str]:
    return [hash_to_str(hash), sender_id]
