import os
from typing import Optional

DEFAULT_RPC_URL = "https://studio.genlayer.com"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_RECENT_COUNT = 50


class ContractConfig:
    """
    Connection settings for the image-archive contract, read from the environment.

    - CONTRACT_ADDRESS is required. A RuntimeError is raised if it is missing.
    - GENLAYER_RPC_URL defaults to the public studio node.
    - GENLAYER_TIMEOUT is the HTTP timeout in seconds (default 30).
    - RECENT_IMAGES_COUNT is the size of the baseline feed (default 50).

    Explicit keyword arguments win over environment variables.
    """

    def __init__(
        self,
        contract_address: Optional[str] = None,
        rpc_url: Optional[str] = None,
        timeout: Optional[float] = None,
        recent_count: Optional[int] = None,
    ) -> None:
        address = contract_address or os.getenv("CONTRACT_ADDRESS")
        if address is None or not address.strip():
            raise RuntimeError(
                "CONTRACT_ADDRESS environment variable must be set to the address "
                "of the deployed image-archive contract."
            )

        self.contract_address = address.strip()
        self.rpc_url = (rpc_url or os.getenv("GENLAYER_RPC_URL") or DEFAULT_RPC_URL).rstrip("/")
        self.timeout = self._number(timeout, "GENLAYER_TIMEOUT", DEFAULT_TIMEOUT_SECONDS, float)
        self.recent_count = self._number(recent_count, "RECENT_IMAGES_COUNT", DEFAULT_RECENT_COUNT, int)

        if self.recent_count <= 0:
            raise RuntimeError(f"RECENT_IMAGES_COUNT must be positive, got {self.recent_count}")

    @staticmethod
    def _number(explicit, env_name: str, default, cast):
        if explicit is not None:
            return cast(explicit)
        raw = os.getenv(env_name)
        if raw is None or not raw.strip():
            return default
        try:
            return cast(raw)
        except ValueError as exc:
            raise RuntimeError(f"{env_name}={raw!r} is not a valid number") from exc
