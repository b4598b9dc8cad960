"""
SDK configuration: RPC endpoint, cluster, commitment, and retry/timeouts.

- Loads sane defaults and supports overrides via environment variables (SOLSDK_*).
- Provides helpers for building HTTP headers and validating endpoints.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from .version import __version__

_DEFAULT_RPC = "http://127.0.0.1:8899"
_DEFAULT_CLUSTER = "devnet"
_DEFAULT_COMMITMENT = "confirmed"
_DEFAULT_CACHE = str(Path(".local_keys") / "keys.json")

CLUSTER_URLS: Dict[str, str] = {
    "mainnet-beta": "https://api.mainnet-beta.solana.com",
    "devnet": "https://api.devnet.solana.com",
    "testnet": "https://api.testnet.solana.com",
    "localnet": _DEFAULT_RPC,
}
COMMITMENTS = ("processed", "confirmed", "finalized")
_INDEX_LIMIT = 256  # account indices are a single byte


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    return v if v is not None else default


def _ensure_scheme(url: Optional[str], allowed: tuple[str, ...]) -> Optional[str]:
    if not url:
        return url
    lower = url.lower()
    if not any(lower.startswith(f"{sch}://") for sch in allowed):
        raise ValueError(f"URL must start with {allowed}, got: {url!r}")
    return url


def _check_cluster(name: str) -> str:
    if name not in CLUSTER_URLS and name != "custom":
        raise ValueError(f"unknown cluster {name!r}; expected one of {sorted(CLUSTER_URLS)} or 'custom'")
    return name


def _check_commitment(name: str) -> str:
    if name not in COMMITMENTS:
        raise ValueError(f"unknown commitment {name!r}; expected one of {COMMITMENTS}")
    return name


def _check_max_accounts(n: int) -> int:
    if not 1 <= n <= _INDEX_LIMIT:
        raise ValueError(f"max_accounts must be in 1..{_INDEX_LIMIT}, got {n}")
    return n


@dataclass(slots=True)
class SDKConfig:
    # Core
    rpc_url: str = field(default_factory=lambda: _DEFAULT_RPC)
    cluster: str = _DEFAULT_CLUSTER
    commitment: str = _DEFAULT_COMMITMENT
    # HTTP behavior (retries apply to read calls only)
    request_timeout: float = 10.0
    max_retries: int = 3
    backoff_factor: float = 0.25
    # Message limits
    max_accounts: int = _INDEX_LIMIT
    # Local state
    cache_path: str = _DEFAULT_CACHE
    # Headers / identity
    user_agent: str = field(default_factory=lambda: f"sol-sdk-py/{__version__}")

    @classmethod
    def from_env(cls, prefix: str = "SOLSDK_") -> "SDKConfig":
        """
        Create config from environment variables:

        SOLSDK_RPC_URL          (http/https)
        SOLSDK_CLUSTER          (mainnet-beta|devnet|testnet|localnet|custom)
        SOLSDK_COMMITMENT       (processed|confirmed|finalized)
        SOLSDK_TIMEOUT          (float seconds, HTTP)
        SOLSDK_MAX_RETRIES      (int)
        SOLSDK_BACKOFF          (float)
        SOLSDK_MAX_ACCOUNTS     (int)
        SOLSDK_CACHE_PATH       (path)
        SOLSDK_USER_AGENT       (str)
        """
        rpc = _env(f"{prefix}RPC_URL", _DEFAULT_RPC)
        cluster = _env(f"{prefix}CLUSTER", _DEFAULT_CLUSTER) or _DEFAULT_CLUSTER
        commitment = _env(f"{prefix}COMMITMENT", _DEFAULT_COMMITMENT) or _DEFAULT_COMMITMENT
        timeout = float(_env(f"{prefix}TIMEOUT", "10.0"))
        retries = int(_env(f"{prefix}MAX_RETRIES", "3"))
        backoff = float(_env(f"{prefix}BACKOFF", "0.25"))
        max_accounts = int(_env(f"{prefix}MAX_ACCOUNTS", "256"))
        cache = _env(f"{prefix}CACHE_PATH", _DEFAULT_CACHE)
        ua = _env(f"{prefix}USER_AGENT", f"sol-sdk-py/{__version__}")

        _ensure_scheme(rpc, ("http", "https"))
        _check_cluster(cluster)
        _check_commitment(commitment)
        _check_max_accounts(max_accounts)

        return cls(
            rpc_url=rpc or _DEFAULT_RPC,
            cluster=cluster,
            commitment=commitment,
            request_timeout=timeout,
            max_retries=retries,
            backoff_factor=backoff,
            max_accounts=max_accounts,
            cache_path=cache or _DEFAULT_CACHE,
            user_agent=ua or f"sol-sdk-py/{__version__}",
        )

    @classmethod
    def with_overrides(
        cls, base: Optional["SDKConfig"] = None, **overrides: Any
    ) -> "SDKConfig":
        """
        Build from an existing config plus keyword overrides.
        Unknown keys and None values are ignored.
        """
        base = base or cls.from_env()
        data = base.to_dict()
        data.update({k: v for k, v in overrides.items() if k in data and v is not None})
        if overrides.get("rpc_url") is not None:
            _ensure_scheme(data["rpc_url"], ("http", "https"))
        if overrides.get("cluster") is not None:
            _check_cluster(data["cluster"])
        if overrides.get("commitment") is not None:
            _check_commitment(data["commitment"])
        if overrides.get("max_accounts") is not None:
            _check_max_accounts(int(data["max_accounts"]))
        return cls(**data)

    @classmethod
    def for_cluster(cls, cluster: str, **overrides: Any) -> "SDKConfig":
        """Public endpoint of a well-known cluster."""
        if cluster not in CLUSTER_URLS:
            raise ValueError(f"no public endpoint for cluster {cluster!r}")
        return cls.with_overrides(cls(), rpc_url=CLUSTER_URLS[cluster], cluster=cluster, **overrides)

    def http_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": self.user_agent,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rpc_url": self.rpc_url,
            "cluster": self.cluster,
            "commitment": self.commitment,
            "request_timeout": float(self.request_timeout),
            "max_retries": int(self.max_retries),
            "backoff_factor": float(self.backoff_factor),
            "max_accounts": int(self.max_accounts),
            "cache_path": str(self.cache_path),
            "user_agent": self.user_agent,
        }


__all__ = ["SDKConfig", "CLUSTER_URLS", "COMMITMENTS"]
