"""
sol_sdk.rpc
-----------

JSON-RPC access to a ledger node.

This package exposes:
- RpcClient: HTTP JSON-RPC client (see .http)

Import style:

    from sol_sdk.rpc import RpcClient
    rpc = RpcClient(url="http://127.0.0.1:8899")
"""

from __future__ import annotations

from .http import RpcClient

__all__ = ["RpcClient"]
