"""Async gateway to the remote image-archive contract.

Every read goes out as a JSON-RPC ``eth_call`` and every write as an
``eth_sendTransaction`` against a single ``/api/rpc`` endpoint. The contract
call itself (method name plus string arguments) travels JSON-encoded in the
``data`` field of the first param.

Example:
    async with httpx.AsyncClient() as client:
        gateway = ContractGateway(client, rpc_url, contract_address)
        records = await gateway.query("list_recent", ["50"])
"""

from __future__ import annotations

import itertools
import json
import logging
from typing import Any, Optional, Sequence

import httpx


class ContractGatewayError(RuntimeError):
    """Raised when the remote service is unreachable or answers with an error."""

    def __init__(self, method: str, detail: str) -> None:
        super().__init__(f"{method}: {detail}")
        self.method = method
        self.detail = detail


class RecordFormatError(ContractGatewayError):
    """Raised when the remote service answers with an unexpected shape."""


class ContractGateway:
    """Issue contract reads and writes over JSON-RPC.

    Args:
        client: Shared `httpx.AsyncClient`. Its lifetime is owned by the caller.
        rpc_url: Base URL of the RPC node; ``/api/rpc`` is appended.
        contract_address: Address of the deployed image-archive contract.
    """

    READ_RPC_METHOD = "eth_call"
    WRITE_RPC_METHOD = "eth_sendTransaction"

    def __init__(self, client: httpx.AsyncClient, rpc_url: str, contract_address: str) -> None:
        if client is None:
            raise ValueError("HTTP client must be provided.")
        if not contract_address:
            raise ValueError("Contract address must be provided.")
        self._client = client
        self.endpoint = rpc_url.rstrip("/") + "/api/rpc"
        self.contract_address = contract_address
        self._ids = itertools.count(1)

    async def query(self, method: str, args: Optional[Sequence[str]] = None) -> Any:
        """Run a side-effect free contract read and return its decoded result.

        String results are JSON-decoded when possible and returned raw otherwise.
        """
        result = await self._call(self.READ_RPC_METHOD, method, args)
        if isinstance(result, str):
            try:
                return json.loads(result)
            except ValueError:
                return result
        return result

    async def mutate(self, method: str, args: Optional[Sequence[str]] = None) -> Any:
        """Submit a contract write. Never retried here."""
        return await self._call(self.WRITE_RPC_METHOD, method, args)

    def _build_envelope(self, rpc_method: str, method: str, args: Sequence[str]) -> dict:
        return {
            "jsonrpc": "2.0",
            "method": rpc_method,
            "params": [
                {
                    "to": self.contract_address,
                    "data": json.dumps({"method": method, "args": list(args)}),
                }
            ],
            "id": next(self._ids),
        }

    async def _call(self, rpc_method: str, method: str, args: Optional[Sequence[str]]) -> Any:
        envelope = self._build_envelope(rpc_method, method, [str(a) for a in (args or [])])
        try:
            response = await self._client.post(self.endpoint, json=envelope)
        except httpx.HTTPError as exc:
            logging.error("Error calling %s: %s", method, exc)
            raise ContractGatewayError(method, f"transport failure ({exc.__class__.__name__})") from exc

        if response.status_code >= 400:
            logging.error("Error calling %s: HTTP %s", method, response.status_code)
            raise ContractGatewayError(method, f"HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as exc:
            logging.error("Error decoding %s response: %s", method, exc)
            raise RecordFormatError(method, "response body is not JSON") from exc

        if not isinstance(body, dict):
            raise RecordFormatError(method, "response envelope is not an object")

        error = body.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            logging.error("Error calling %s: %s", method, message)
            raise ContractGatewayError(method, message or "remote error")

        return body.get("result")
