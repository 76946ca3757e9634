"""请求 / 响应信封"""

import json

import pytest

from qqbotapi import DecodeError, Group, Request, Response, User


def test_request_to_json():
    req = Request(action="send_group_msg", params={"group_id": 1001, "message": "hi"}, echo=12345)
    assert json.loads(req.to_json()) == {
        "action": "send_group_msg",
        "params": {"group_id": 1001, "message": "hi"},
        "echo": 12345,
    }


def test_request_default_params():
    assert json.loads(Request(action="get_login_info").to_json())["params"] == {}


def test_echo_keeps_type_across_round_trip():
    req = Request(action="get_login_info", echo=12345)
    echo = json.loads(req.to_json())["echo"]
    raw = json.dumps({"status": "ok", "retcode": 0, "data": None, "echo": echo})

    resp = Response.from_json(raw)
    assert resp.echo == 12345
    assert isinstance(resp.echo, int)


@pytest.mark.parametrize("echo", ["12345", {"seq": 1}, [1, "a"], 1.5])
def test_echo_preserved_verbatim(echo):
    raw = json.dumps({"status": "ok", "retcode": 0, "echo": echo})
    assert Response.from_json(raw).echo == echo


def test_response_from_bytes_and_dict():
    raw = {"status": "async", "retcode": 1, "data": None, "echo": 3}
    assert Response.from_json(json.dumps(raw).encode()).status == "async"
    assert Response.from_json(raw).retcode == 1


def test_failed_response_is_data():
    resp = Response.from_json('{"status": "failed", "retcode": 100, "data": null, "echo": 1}')
    assert resp.status == "failed"
    assert resp.retcode == 100
    assert resp.data is None


def test_decode_data_on_demand():
    resp = Response.from_json(json.dumps({
        "status": "ok",
        "retcode": 0,
        "data": [{"group_id": 1, "group_name": "a"}, {"group_id": 2, "group_name": "b"}],
    }))
    assert isinstance(resp.data, list)
    groups = resp.decode(list[Group])
    assert [g.group_id for g in groups] == [1, 2]


def test_decode_wrong_shape():
    resp = Response(status="ok", retcode=0, data="oops")
    with pytest.raises(DecodeError):
        resp.decode(User)


@pytest.mark.parametrize("raw", ["not json", "[1, 2]", '{"retcode": "x"}'])
def test_malformed_response(raw):
    with pytest.raises(DecodeError):
        Response.from_json(raw)


def test_deeply_nested_response_is_decode_error():
    with pytest.raises(DecodeError):
        Response.from_json("[" * 100000)
