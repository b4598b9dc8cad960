"""
Block-explorer links for transactions and addresses.

    explorer_url(signature="5h3...")            # devnet transaction page
    explorer_url(address=mint, cluster="mainnet-beta")
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlencode

from .address import AddressLike, as_address
from .utils.base58 import is_base58

__all__ = ["EXPLORER_BASE", "CLUSTERS", "explorer_url"]

EXPLORER_BASE = "https://explorer.solana.com"
CLUSTERS = ("mainnet-beta", "devnet", "testnet", "localnet", "custom")


def explorer_url(
    *,
    signature: Optional[str] = None,
    address: Optional[AddressLike] = None,
    cluster: str = "devnet",
    custom_url: Optional[str] = None,
    base: str = EXPLORER_BASE,
) -> str:
    """
    Link to a transaction (`signature`) or account (`address`) page.

    Exactly one of `signature` / `address` must be given. `localnet` points the
    explorer at the default local validator; `custom` needs `custom_url`.
    """
    if (signature is None) == (address is None):
        raise ValueError("pass exactly one of signature= or address=")
    if cluster not in CLUSTERS:
        raise ValueError(f"unknown cluster {cluster!r}; expected one of {', '.join(CLUSTERS)}")

    if signature is not None:
        if not is_base58(signature, expected_len=64):
            raise ValueError(f"not a transaction signature: {signature!r}")
        path = f"/tx/{signature}"
    else:
        path = f"/address/{as_address(address)}"

    query = {}
    if cluster == "localnet":
        query = {"cluster": "custom", "customUrl": custom_url or "http://localhost:8899"}
    elif cluster == "custom":
        if not custom_url:
            raise ValueError("cluster='custom' requires custom_url")
        query = {"cluster": "custom", "customUrl": custom_url}
    elif cluster != "mainnet-beta":
        query = {"cluster": cluster}

    url = base.rstrip("/") + path
    return f"{url}?{urlencode(query)}" if query else url
