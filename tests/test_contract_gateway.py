import asyncio
import json
from dataclasses import replace

import httpx
import pytest

from dal.contract_gateway import ContractGateway, ContractGatewayError, RecordFormatError
from dal.image_dal import ImageDAL
from models.image_record import Rarity
from models.search_models import QueryIdentity

ADDRESS = "0xabc"


def _run_with(handler, call):
    """Run `call(gateway)` against a gateway whose HTTP traffic goes to `handler`."""

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            gateway = ContractGateway(client, "https://node.example/", ADDRESS)
            return await call(gateway)

    return asyncio.run(scenario())


def test_query_sends_eth_call_envelope_and_decodes_string_result():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": "[1, 2]"})

    result = _run_with(handler, lambda gw: gw.query("list_recent", ["50"]))

    assert result == [1, 2]
    assert seen["url"] == "https://node.example/api/rpc"
    body = seen["body"]
    assert body["method"] == "eth_call"
    assert body["params"][0]["to"] == ADDRESS
    assert json.loads(body["params"][0]["data"]) == {"method": "list_recent", "args": ["50"]}


def test_query_returns_raw_text_when_not_json():
    def handler(request):
        return httpx.Response(200, json={"result": "pending"})

    assert _run_with(handler, lambda gw: gw.query("count_images")) == "pending"


def test_mutate_uses_send_transaction_and_keeps_result():
    methods = []

    def handler(request):
        methods.append(json.loads(request.content)["method"])
        return httpx.Response(200, json={"result": "0xhash"})

    result = _run_with(handler, lambda gw: gw.mutate("add_image_and_rate", ["b64", "t", "u", "ts"]))

    assert result == "0xhash"
    assert methods == ["eth_sendTransaction"]


def test_error_member_raises():
    def handler(request):
        return httpx.Response(200, json={"error": {"code": -32000, "message": "execution reverted"}})

    with pytest.raises(ContractGatewayError, match="execution reverted"):
        _run_with(handler, lambda gw: gw.query("search", ["", "0", ""]))


def test_http_status_and_bad_body_raise():
    with pytest.raises(ContractGatewayError, match="HTTP 503"):
        _run_with(lambda request: httpx.Response(503), lambda gw: gw.query("count_images"))
    with pytest.raises(RecordFormatError):
        _run_with(lambda request: httpx.Response(200, text="<html>"), lambda gw: gw.query("count_images"))


def test_transport_failure_raises():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ContractGatewayError, match="transport failure"):
        _run_with(handler, lambda gw: gw.query("count_images"))


def test_dal_parses_records(gateway, record_payload):
    gateway.set("filter_by_dominant_color", [record_payload("p1", rarity="unique", dominant_colors=("#ff0000",))])

    records = asyncio.run(ImageDAL(gateway).load(QueryIdentity("filter_by_dominant_color", ("#ff0000",))))

    record = records[0]
    assert record.id == "p1"
    assert record.analysis.rarity is Rarity.UNIQUE
    assert record.analysis.dominant_colors == ("#ff0000",)


def test_dal_rejects_malformed_records(gateway, record_payload):
    broken = record_payload("p2")
    broken["analysis"]["rarity"] = "legendary"
    gateway.set("search", [broken])

    with pytest.raises(RecordFormatError):
        asyncio.run(ImageDAL(gateway).load(QueryIdentity("search", ("", "0", ""))))


def test_dal_missing_record_is_none(gateway):
    gateway.set("get_record_by_id", None)

    assert asyncio.run(ImageDAL(gateway).load(QueryIdentity("get_record_by_id", ("nope",)))) is None


def test_dal_count_accepts_numeric_strings(gateway):
    gateway.set("count_images", "12")

    assert asyncio.run(ImageDAL(gateway).load(QueryIdentity("count_images"))) == 12


def test_records_are_identified_by_id(gateway, record_payload):
    gateway.set("get_record_by_id", record_payload("p3"))

    record = asyncio.run(ImageDAL(gateway).load(QueryIdentity("get_record_by_id", ("p3",))))

    assert record == replace(record, title="renamed")
    assert record != replace(record, id="p4")
    assert len({record, replace(record, uploader="someone else")}) == 1
