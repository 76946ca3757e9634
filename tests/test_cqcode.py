"""CQ 码解析与编码"""

from qqbotapi.cqcode import Message, Segment, escape, parse_cq_string, parse_segments, unescape


def test_parse_plain_string():
    assert parse_cq_string("hello") == [Segment.text("hello")]


def test_parse_empty_string():
    assert parse_cq_string("") == []


def test_parse_cq_codes_between_text():
    msg = parse_cq_string("你好[CQ:at,qq=10001] 在吗&#91;笑&#93;")
    assert msg == [
        Segment("text", {"text": "你好"}),
        Segment("at", {"qq": "10001"}),
        Segment("text", {"text": " 在吗[笑]"}),
    ]


def test_parse_cq_code_param_escapes():
    msg = parse_cq_string("[CQ:image,file=a.jpg,url=http://x/?a=1&amp;b=2&#44;3]")
    assert msg == [Segment("image", {"file": "a.jpg", "url": "http://x/?a=1&b=2,3"})]


def test_parse_cq_code_without_params():
    assert parse_cq_string("[CQ:shake]") == [Segment("shake", {})]


def test_parse_segments():
    msg = parse_segments([
        {"type": "text", "data": {"text": "hi "}},
        {"type": "at", "data": {"qq": "all"}},
        {"type": "shake", "data": None},
    ])
    assert msg == [Segment.text("hi "), Segment.at("all"), Segment("shake", {})]


def test_parse_single_segment_object():
    assert parse_segments({"type": "face", "data": {"id": "14"}}) == [Segment.face(14)]


def test_tolerant_parse_accepts_both_shapes():
    assert Message.parse("hi").extract_plain_text() == "hi"
    assert Message.parse([{"type": "text", "data": {"text": "hi"}}]).extract_plain_text() == "hi"


def test_tolerant_parse_falls_back_to_empty():
    assert Message.parse({"unexpected": True}) == []
    assert Message.parse(12345) == []
    assert Message.parse([{"type": "text", "data": "oops"}]) == []
    assert Message.parse(None) == []


def test_extract_plain_text_skips_other_segments():
    msg = Message([Segment.at(1), Segment.text("a"), Segment.image("x.png"), Segment.text("b")])
    assert msg.extract_plain_text() == "ab"


def test_to_cq_string_escapes():
    msg = Message([Segment.text("[1,2]&"), Segment.image("a,b.png")])
    assert msg.to_cq_string() == "&#91;1,2&#93;&amp;[CQ:image,file=a&#44;b.png]"
    assert parse_cq_string(msg.to_cq_string()) == msg


def test_to_list():
    msg = Message([Segment.reply(99), Segment.text("ok")])
    assert msg.to_list() == [
        {"type": "reply", "data": {"id": "99"}},
        {"type": "text", "data": {"text": "ok"}},
    ]


def test_escape_unescape():
    assert escape("a,b", escape_comma=False) == "a,b"
    assert unescape(escape("&#91;[,]&")) == "&#91;[,]&"
