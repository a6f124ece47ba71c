"""Async Data Access Layer for image-archive contract records.

Provides ImageDAL, which turns raw contract payloads into `ImageRecord`,
`ComparisonResult` and count values. Anything that does not fit the expected
shape raises `RecordFormatError`, so callers treat it like a remote failure.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from dal.contract_gateway import ContractGateway, RecordFormatError
from models.image_record import ComparisonResult, ImageAnalysis, ImageRecord, Rarity
from models.search_models import QueryIdentity


class ImageDAL:
    """Data access layer for contract-held image records.

    The constructor accepts a `ContractGateway` (or any object exposing async
    ``query(method, args)`` and ``mutate(method, args)``).
    """

    def __init__(self, gateway: ContractGateway) -> None:
        self._gateway = gateway
        self._parsers: Dict[str, Callable[[str, Any], Any]] = {
            "count_images": self._parse_count,
            "list_recent": self._parse_record_list,
            "get_record_by_id": self._parse_optional_record,
            "filter_by_style_tag": self._parse_record_list,
            "filter_by_dominant_color": self._parse_record_list,
            "search": self._parse_record_list,
        }

    async def load(self, identity: QueryIdentity) -> Any:
        """Run the read named by `identity` and return its parsed result.

        Raises:
            ValueError: If `identity` names a method this layer does not read.
            ContractGatewayError: On transport, remote or shape failures.
        """
        parser = self._parsers.get(identity.method)
        if parser is None:
            raise ValueError(f"Unsupported read method: {identity.method}")
        raw = await self._gateway.query(identity.method, list(identity.args))
        return parser(identity.method, raw)

    def loader_for(self, identity: QueryIdentity) -> Callable[[], Awaitable[Any]]:
        """Return a zero-argument coroutine function that loads `identity`."""

        async def _load() -> Any:
            return await self.load(identity)

        return _load

    async def compare_images(self, id_a: str, id_b: str) -> ComparisonResult:
        """Ask the remote service to judge two records head-to-head."""
        raw = await self._gateway.query("compare_images", [id_a, id_b])
        if not isinstance(raw, Mapping):
            raise RecordFormatError("compare_images", "comparison is not an object")
        return ComparisonResult(
            verdict=str(raw.get("verdict") or ""),
            image_a=self._payload_to_record("compare_images", raw.get("image_a")),
            image_b=self._payload_to_record("compare_images", raw.get("image_b")),
        )

    async def add_image_and_rate(self, image_base64: str, title: str, uploader: str, timestamp: str) -> Any:
        """Submit a new image for analysis. Returns the remote confirmation as-is."""
        return await self._gateway.mutate("add_image_and_rate", [image_base64, title, uploader, timestamp])

    @staticmethod
    def _parse_count(method: str, raw: Any) -> int:
        if isinstance(raw, bool):
            raise RecordFormatError(method, "count is not a number")
        try:
            return int(raw)
        except (TypeError, ValueError) as exc:
            raise RecordFormatError(method, "count is not a number") from exc

    def _parse_record_list(self, method: str, raw: Any) -> List[ImageRecord]:
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise RecordFormatError(method, "expected a list of records")
        return [self._payload_to_record(method, item) for item in raw]

    def _parse_optional_record(self, method: str, raw: Any) -> Optional[ImageRecord]:
        if not raw:
            return None
        return self._payload_to_record(method, raw)

    @staticmethod
    def _payload_to_record(method: str, payload: Any) -> ImageRecord:
        """Convert a contract record dictionary into an ImageRecord."""
        if not isinstance(payload, Mapping) or not payload.get("id"):
            raise RecordFormatError(method, "record without an id")
        analysis = payload.get("analysis")
        if not isinstance(analysis, Mapping):
            raise RecordFormatError(method, f"record {payload['id']} has no analysis")
        try:
            parsed = ImageAnalysis(
                rating=float(analysis["rating"]),
                rarity=Rarity(analysis["rarity"]),
                color_profile=str(analysis.get("color_profile") or ""),
                dominant_colors=_as_str_tuple(analysis.get("dominant_colors")),
                style_tags=_as_str_tuple(analysis.get("style_tags")),
                emotion=str(analysis.get("emotion") or ""),
                rationale=str(analysis.get("rationale") or ""),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise RecordFormatError(method, f"record {payload['id']} has a malformed analysis") from exc

        return ImageRecord(
            id=str(payload["id"]),
            title=str(payload.get("title") or ""),
            uploader=str(payload.get("uploader") or ""),
            timestamp=str(payload.get("timestamp") or ""),
            image_base64=str(payload.get("image_base64") or ""),
            analysis=parsed,
        )


def _as_str_tuple(values: Any) -> tuple:
    if values is None:
        return ()
    if not isinstance(values, (list, tuple)):
        raise TypeError("expected a list of strings")
    return tuple(str(v) for v in values)
