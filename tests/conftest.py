import asyncio
from typing import Any, Dict, List, Optional, Tuple

import pytest

from dal.contract_gateway import ContractGatewayError


class FakeGateway:
    """In-memory stand-in for the contract gateway.

    Outcomes are queued per method; the last queued outcome repeats. An
    exception instance as an outcome is raised instead of returned.
    """

    def __init__(self) -> None:
        self.outcomes: Dict[str, List[Any]] = {}
        self.calls: List[Tuple[str, str, List[str]]] = []
        self.gate: Optional[asyncio.Event] = None

    def set(self, method: str, *outcomes: Any) -> None:
        self.outcomes[method] = list(outcomes)

    def calls_for(self, method: str) -> List[List[str]]:
        return [args for _, name, args in self.calls if name == method]

    async def query(self, method: str, args=None) -> Any:
        return await self._answer("query", method, args)

    async def mutate(self, method: str, args=None) -> Any:
        return await self._answer("mutate", method, args)

    async def _answer(self, kind: str, method: str, args) -> Any:
        self.calls.append((kind, method, list(args or [])))
        if self.gate is not None:
            await self.gate.wait()
        queue = self.outcomes.get(method)
        if not queue:
            raise ContractGatewayError(method, "no outcome configured")
        outcome = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _record_payload(
    record_id: str,
    rating: float = 7.0,
    rarity: str = "rare",
    style_tags=("minimal",),
    dominant_colors=("#112233",),
    title: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "id": record_id,
        "title": title or f"Image {record_id}",
        "uploader": "tester",
        "timestamp": "2024-05-01T12:00:00.000Z",
        "image_base64": "aGVsbG8=",
        "analysis": {
            "rating": rating,
            "rarity": rarity,
            "color_profile": "cool tones",
            "dominant_colors": list(dominant_colors),
            "style_tags": list(style_tags),
            "emotion": "calm",
            "rationale": "balanced composition",
        },
    }


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def record_payload():
    return _record_payload
