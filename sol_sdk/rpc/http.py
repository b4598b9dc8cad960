from __future__ import annotations

"""
HTTP JSON-RPC client (sync) over httpx.

- Friendly to unit tests: pass `transport=httpx.MockTransport(handler)`.
- Read calls retry transient transport failures and 429/502/503/504 with
  jittered exponential backoff.
- `send_transaction` is never retried by the transport. Whether a failed send
  reached the node is reported through the RpcError code:
  `NOT_SENT` (connect failure, 429/503) or `TRANSPORT` (timeout, connection
  lost, 502/504, or any other 5xx without a JSON-RPC error object).

Example:
    from sol_sdk.rpc.http import RpcClient
    with RpcClient("https://api.devnet.solana.com") as rpc:
        print(rpc.get_block_height())
"""

import base64
import json
import logging
import time
from dataclasses import dataclass, field
from itertools import count
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Union,
)

import httpx

from ..address import AddressLike, as_address
from ..errors import JsonRpcCode, RpcError, raise_for_jsonrpc_result
from ..types.core import AccountInfoDict, BlockhashDict, SignatureStatusDict
from ..utils.retry import RetryError, retry_call
from ..version import __version__ as SDK_VERSION

log = logging.getLogger(__name__)

JSON = Union[dict, list, str, int, float, bool, None]
Params = Union[Sequence[Any], Mapping[str, Any], None]

# Statuses where the node (or its proxy) refused before processing.
_NOT_SENT_HTTP = (429, 503)
# Statuses where an upstream may have received the request.
_UNKNOWN_HTTP = (502, 504)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _is_retriable(exc: BaseException) -> bool:
    return isinstance(exc, RpcError) and exc.is_transport


def _http_error(r: httpx.Response, code: int, payload: Dict[str, Any]) -> RpcError:
    return RpcError(
        code=code,
        message=f"HTTP {r.status_code}",
        data=r.text[:256],
        method=payload["method"],
        request_id=payload["id"],
        http_status=r.status_code,
    )


@dataclass
class RpcClient:
    """Synchronous JSON-RPC 2.0 client for a ledger node."""

    url: str
    timeout: float = 10.0
    max_retries: int = 3
    backoff_base: float = 0.25
    backoff_max: float = 3.0
    commitment: Optional[str] = None
    headers: Optional[Mapping[str, str]] = None
    transport: Optional[httpx.BaseTransport] = None
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)
    _id_counter: Iterable[int] = field(default_factory=lambda: count(start=_now_ms()), repr=False)
    _client: Any = field(init=False, default=None, repr=False)

    def __post_init__(self) -> None:
        merged_headers: Dict[str, str] = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": f"sol-sdk-py/{SDK_VERSION}",
        }
        if self.headers:
            merged_headers.update(dict(self.headers))
        self._client = httpx.Client(
            timeout=self.timeout,
            headers=merged_headers,
            transport=self.transport,
        )

    @classmethod
    def from_config(cls, cfg: Any, **kwargs: Any) -> "RpcClient":
        """Build from an `SDKConfig`."""
        return cls(
            url=cfg.rpc_url,
            timeout=cfg.request_timeout,
            max_retries=cfg.max_retries,
            backoff_base=cfg.backoff_factor,
            commitment=cfg.commitment,
            headers=cfg.http_headers(),
            **kwargs,
        )

    # --- context manager -------------------------------------------------

    def __enter__(self) -> "RpcClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()

    def close(self) -> None:
        if self._client is not None:
            self._client.close()

    # --- generic JSON-RPC ------------------------------------------------

    def request(self, method: str, params: Params = None, *, retry: bool = True) -> JSON:
        """Perform a single JSON-RPC request and return `result` or raise RpcError."""
        payload = self._make_payload(method, params)
        if not retry:
            return self._send_once(payload)
        return self._send_with_retries(payload)

    # --- ledger methods --------------------------------------------------

    def get_latest_blockhash(self, *, commitment: Optional[str] = None) -> BlockhashDict:
        res = self.request("getLatestBlockhash", [self._config(commitment)])
        value = res["value"]
        return BlockhashDict(
            blockhash=str(value["blockhash"]),
            lastValidBlockHeight=int(value["lastValidBlockHeight"]),
        )

    def get_block_height(self, *, commitment: Optional[str] = None) -> int:
        return int(self.request("getBlockHeight", [self._config(commitment)]))

    def get_balance(self, address: AddressLike, *, commitment: Optional[str] = None) -> int:
        res = self.request("getBalance", [str(as_address(address)), self._config(commitment)])
        return int(res["value"])

    def get_account_info(
        self,
        address: AddressLike,
        *,
        commitment: Optional[str] = None,
        encoding: str = "base64",
    ) -> Optional[AccountInfoDict]:
        res = self.request(
            "getAccountInfo",
            [str(as_address(address)), self._config(commitment, encoding=encoding)],
        )
        return res["value"]

    def get_minimum_balance_for_rent_exemption(
        self, size: int, *, commitment: Optional[str] = None
    ) -> int:
        if size < 0:
            raise ValueError("account size must be non-negative")
        params: List[Any] = [int(size)]
        cfg = self._config(commitment)
        if cfg:
            params.append(cfg)
        return int(self.request("getMinimumBalanceForRentExemption", params))

    def send_transaction(
        self,
        raw: Union[str, bytes],
        *,
        skip_preflight: bool = False,
        preflight_commitment: Optional[str] = None,
        max_retries: Optional[int] = None,
    ) -> str:
        """
        Submit a signed transaction. Returns the node-reported signature.

        Never retried here; see module docstring for the error codes.
        """
        encoded = raw if isinstance(raw, str) else base64.b64encode(bytes(raw)).decode("ascii")
        cfg: Dict[str, Any] = {"encoding": "base64", "skipPreflight": bool(skip_preflight)}
        pc = preflight_commitment or self.commitment
        if pc:
            cfg["preflightCommitment"] = pc
        if max_retries is not None:
            cfg["maxRetries"] = int(max_retries)
        return str(self.request("sendTransaction", [encoded, cfg], retry=False))

    def get_signature_statuses(
        self, signatures: Sequence[str], *, search_history: bool = False
    ) -> List[Optional[SignatureStatusDict]]:
        res = self.request(
            "getSignatureStatuses",
            [list(signatures), {"searchTransactionHistory": bool(search_history)}],
        )
        return list(res["value"])

    def get_transaction(
        self, signature: str, *, commitment: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        cfg = self._config(commitment, encoding="json", maxSupportedTransactionVersion=0)
        return self.request("getTransaction", [signature, cfg])

    # --- internals -------------------------------------------------------

    def _config(self, commitment: Optional[str], **extra: Any) -> Dict[str, Any]:
        cfg: Dict[str, Any] = {}
        c = commitment or self.commitment
        if c:
            cfg["commitment"] = c
        cfg.update(extra)
        return cfg

    def _make_payload(self, method: str, params: Params) -> Dict[str, Any]:
        if params is None:
            params = []
        elif isinstance(params, Mapping):
            params = dict(params)
        elif isinstance(params, Sequence) and not isinstance(params, (str, bytes, bytearray)):
            params = list(params)
        else:
            params = [params]  # type: ignore[list-item]
        return {"jsonrpc": "2.0", "id": next(self._id_counter), "method": method, "params": params}

    def _send_with_retries(self, payload: Dict[str, Any]) -> JSON:
        def _on_retry(attempt: int, exc: BaseException, delay: float) -> None:
            log.warning(
                "rpc %s attempt %d failed (%s); retrying in %.2fs",
                payload["method"],
                attempt,
                exc,
                delay,
            )

        try:
            return retry_call(
                self._send_once,
                payload,
                retries=self.max_retries,
                base=self.backoff_base,
                max_delay=self.backoff_max,
                retry_if=_is_retriable,
                on_retry=_on_retry,
                sleep=self.sleep,
            )
        except RetryError as e:
            raise e.last_exception from None

    def _send_once(self, payload: Dict[str, Any]) -> JSON:
        method = payload["method"]
        body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
        log.debug("rpc -> %s id=%s", method, payload["id"])
        try:
            r = self._client.post(self.url, content=body)
        except (httpx.ConnectError, httpx.ConnectTimeout, httpx.PoolTimeout) as e:
            raise RpcError(
                code=JsonRpcCode.NOT_SENT,
                message="connection failed before the request was sent",
                data=str(e),
                method=method,
                request_id=payload["id"],
            ) from e
        except (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError) as e:
            raise RpcError(
                code=JsonRpcCode.TRANSPORT,
                message="network error after the request was sent",
                data=str(e),
                method=method,
                request_id=payload["id"],
            ) from e

        if r.status_code in _NOT_SENT_HTTP or r.status_code in _UNKNOWN_HTTP:
            code = JsonRpcCode.NOT_SENT if r.status_code in _NOT_SENT_HTTP else JsonRpcCode.TRANSPORT
            raise _http_error(r, code, payload)
        try:
            resp = r.json()
        except ValueError as e:
            if r.status_code >= 500:
                raise _http_error(r, JsonRpcCode.TRANSPORT, payload) from e
            raise RpcError(
                code=JsonRpcCode.INTERNAL_ERROR,
                message="Non-JSON response from RPC",
                data=f"HTTP {r.status_code}: {r.text[:256]}",
                method=method,
                http_status=r.status_code,
            ) from e

        # a server-side failure without a JSON-RPC error object says nothing
        # about whether the request was processed
        if r.status_code >= 500 and not (isinstance(resp, dict) and isinstance(resp.get("error"), dict)):
            raise _http_error(r, JsonRpcCode.TRANSPORT, payload)

        if not isinstance(resp, dict):
            raise RpcError(
                code=JsonRpcCode.INTERNAL_ERROR,
                message="Invalid JSON-RPC response type",
                data=type(resp).__name__,
                method=method,
            )
        raise_for_jsonrpc_result(resp, method=method, http_status=r.status_code)
        if "result" not in resp:
            raise RpcError(
                code=JsonRpcCode.INTERNAL_ERROR,
                message="Malformed JSON-RPC response",
                data=resp,
                method=method,
            )
        return resp["result"]


__all__ = ["RpcClient"]
