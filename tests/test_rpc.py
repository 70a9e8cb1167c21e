import contextlib
import json

import pytest
import websockets

from contractkit.rpc import RawParams, RpcError, RpcRequest, parse_value, ss58_decode

ALICE = "5GrwvaEF5zXb26Fz9rcQpDWS57CtERHpNehXCPcNoHGKutQY"
ALICE_HEX = "0xd43593c715fdd31c61141abd04a99fd6822c8558854ccde39a5684e7a56da27d"


def assert_raw_params_value(inputs, expected):
    raw_params = RawParams(list(inputs))
    expected = "".join(c for c in expected if not c.isspace())
    assert raw_params.to_json() == expected


def test_parse_ss58_works():
    assert_raw_params_value([ALICE, '"sr25"'], f'["{ALICE_HEX}","sr25"]')


def test_parse_seq_works():
    assert_raw_params_value(["(1, 0x1234, true)"], '[[1,"0x1234",true]]')


def test_parse_map_works():
    expected = f"""[{{
        "hello": true,
        "a": 4,
        "b": "{ALICE_HEX}",
        "c": "test"
    }}]"""
    assert_raw_params_value([f'{{hello: true, a: 4, b: {ALICE}, c: "test"}}'], expected)


def test_empty_params_give_none():
    assert RawParams([]).to_json() is None
    assert RawParams([]).values is None


def test_invalid_params_raise():
    with pytest.raises(RpcError, match="Method parameters parsing failed"):
        RawParams(["(1, 2"])
    with pytest.raises(RpcError, match="Method parameters parsing failed"):
        RawParams(['"unterminated'])


def test_ss58_decode_alice():
    assert "0x" + ss58_decode(ALICE).hex() == ALICE_HEX


def test_ss58_decode_rejects_bad_input():
    with pytest.raises(ValueError):
        ss58_decode(ALICE[:-1] + "Z")
    with pytest.raises(ValueError):
        ss58_decode("0OIl")
    with pytest.raises(ValueError):
        ss58_decode("")


def test_parse_value_primitives():
    assert parse_value("false") is False
    assert parse_value("  -42") == -42
    assert parse_value("1_000") == 1000
    assert parse_value('"a\\"b\\n"') == 'a"b\n'
    assert parse_value("'x'") == "x"
    assert parse_value("<1 0 1>") == [True, False, True]


def test_parse_value_composites_and_variants():
    assert parse_value("()") == []
    assert parse_value("{}") == {}
    assert parse_value("(1, (2, 3),)") == [1, [2, 3]]
    assert parse_value("Some(5)") == {"name": "Some", "values": [5]}
    assert parse_value("Point { x: 1, y: 2 }") == {
        "name": "Point",
        "values": {"x": 1, "y": 2},
    }
    assert parse_value('{"quoted key": 1}') == {"quoted key": 1}


def test_parse_value_hex_is_kept_as_string():
    assert parse_value("0xdeadbeef") == "0xdeadbeef"


def test_parse_value_errors():
    with pytest.raises(ValueError):
        parse_value("")
    with pytest.raises(ValueError):
        parse_value("none")
    with pytest.raises(ValueError):
        parse_value(str(2**128))
    with pytest.raises(TypeError):
        parse_value(5)


@contextlib.asynccontextmanager
async def _node(methods_result, replies=None, noise=False):
    seen = []
    replies = replies or {}

    async def handler(connection):
        async for message in connection:
            request = json.loads(message)
            seen.append(request)
            if noise:
                await connection.send(
                    json.dumps({"jsonrpc": "2.0", "method": "note", "params": {}})
                )
            if request["method"] == "rpc_methods":
                body = {"result": methods_result}
            else:
                body = replies[request["method"]]
            await connection.send(
                json.dumps({"jsonrpc": "2.0", "id": request["id"], **body})
            )

    server = await websockets.serve(handler, "127.0.0.1", 0)
    try:
        port = server.sockets[0].getsockname()[1]
        yield f"ws://127.0.0.1:{port}", seen
    finally:
        server.close()
        await server.wait_closed()


METHODS = {
    "methods": [
        "author_hasKey",
        "chain_subscribeNewHeads",
        "state_unstable_call",
        "author_submitAndWatchExtrinsic",
        "system_name",
    ]
}


@pytest.mark.asyncio
async def test_supported_methods_are_filtered():
    async with _node(METHODS) as (url, _):
        async with RpcRequest(url) as rpc:
            assert await rpc.supported_methods() == ["author_hasKey", "system_name"]


@pytest.mark.asyncio
async def test_raw_call_sends_params_and_returns_result():
    replies = {"author_hasKey": {"result": True}}
    async with _node(METHODS, replies, noise=True) as (url, seen):
        async with RpcRequest(url) as rpc:
            result = await rpc.raw_call("author_hasKey", RawParams([ALICE, '"sr25"']))
    assert result is True
    assert seen[-1]["method"] == "author_hasKey"
    assert seen[-1]["params"] == [ALICE_HEX, "sr25"]


@pytest.mark.asyncio
async def test_raw_call_without_params_omits_them():
    replies = {"system_name": {"result": "node"}}
    async with _node(METHODS, replies) as (url, seen):
        async with RpcRequest(url) as rpc:
            assert await rpc.raw_call("system_name", RawParams([])) == "node"
    assert "params" not in seen[-1]


@pytest.mark.asyncio
async def test_raw_call_unknown_method():
    async with _node(METHODS) as (url, _):
        async with RpcRequest(url) as rpc:
            with pytest.raises(RpcError) as info:
                await rpc.raw_call("chain_subscribeNewHeads", RawParams([]))
    assert str(info.value) == (
        "Method not found, supported methods: author_hasKey, system_name"
    )


@pytest.mark.asyncio
async def test_raw_call_error_response():
    replies = {"system_name": {"error": {"code": -32000, "message": "boom"}}}
    async with _node(METHODS, replies) as (url, _):
        async with RpcRequest(url) as rpc:
            with pytest.raises(RpcError, match="^Raw RPC call failed: boom"):
                await rpc.raw_call("system_name", RawParams([]))


@pytest.mark.asyncio
async def test_methods_field_missing():
    async with _node({"version": 1}) as (url, _):
        async with RpcRequest(url) as rpc:
            with pytest.raises(RpcError, match="Methods field parsing failed!"):
                await rpc.supported_methods()