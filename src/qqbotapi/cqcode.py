"""
CQ 码消息格式

消息内容在线上有两种表示:
    - 字符串: "你好[CQ:at,qq=10001]"，其中 & [ ] , 经过转义
    - 消息段数组: [{"type": "text", "data": {"text": "你好"}}, ...]

本模块负责把两种表示解析为 Message（有序的消息段序列），
以及把 Message 编码回线上格式用于发送。
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Union

logger = logging.getLogger("qq-bot-api")

# [CQ:type,key=value,...]
_CQ_CODE_RE = re.compile(r"\[CQ:([A-Za-z0-9_.\-]+)((?:,[^,\]]*)*)\]")


def escape(text: str, *, escape_comma: bool = True) -> str:
    """转义 CQ 码特殊字符。纯文本不需要转义逗号，CQ 码参数值需要。"""
    text = text.replace("&", "&amp;").replace("[", "&#91;").replace("]", "&#93;")
    if escape_comma:
        text = text.replace(",", "&#44;")
    return text


def unescape(text: str) -> str:
    # &amp; 必须最后替换
    return (
        text.replace("&#44;", ",")
        .replace("&#91;", "[")
        .replace("&#93;", "]")
        .replace("&amp;", "&")
    )


@dataclass
class Segment:
    """
    消息段

    Attributes:
        type: 消息段类型，如 text / at / face / image / record / reply
        data: 类型相关参数，如 text 段为 {"text": "..."}，at 段为 {"qq": "10001"}
    """
    type: str
    data: dict[str, Any] = field(default_factory=dict)

    # -------- 常用消息段 --------

    @classmethod
    def text(cls, text: str) -> "Segment":
        return cls("text", {"text": text})

    @classmethod
    def at(cls, qq: Union[int, str]) -> "Segment":
        """@某人，qq 为 "all" 时表示 @全体成员"""
        return cls("at", {"qq": str(qq)})

    @classmethod
    def face(cls, face_id: int) -> "Segment":
        return cls("face", {"id": str(face_id)})

    @classmethod
    def image(cls, file: str) -> "Segment":
        return cls("image", {"file": file})

    @classmethod
    def record(cls, file: str) -> "Segment":
        return cls("record", {"file": file})

    @classmethod
    def reply(cls, message_id: int) -> "Segment":
        return cls("reply", {"id": str(message_id)})

    # -------- 编码 --------

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "data": dict(self.data)}

    def to_cq_string(self) -> str:
        if self.type == "text":
            return escape(str(self.data.get("text", "")), escape_comma=False)
        params = "".join(
            f",{key}={escape(str(value))}" for key, value in self.data.items()
        )
        return f"[CQ:{self.type}{params}]"


class Message(list):
    """有序的消息段序列"""

    def __init__(self, segments: Iterable[Segment] = ()):
        super().__init__(segments)

    @classmethod
    def parse(cls, raw: Any) -> "Message":
        """
        解析线上消息内容，兼容字符串和消息段数组两种表示。

        两种表示都无法解析时返回空消息，不抛出异常，
        保证同一事件的其他字段仍能正常处理。
        """
        if raw is None:
            return cls()
        if isinstance(raw, str):
            return parse_cq_string(raw)
        try:
            return parse_segments(raw)
        except (TypeError, ValueError) as e:
            logger.warning("无法解析消息内容, 按空消息处理: %s", e)
            return cls()

    def extract_plain_text(self) -> str:
        """拼接所有 text 段，忽略 @、图片等非文本内容"""
        return "".join(
            str(seg.data.get("text", "")) for seg in self if seg.type == "text"
        )

    def to_cq_string(self) -> str:
        return "".join(seg.to_cq_string() for seg in self)

    def to_list(self) -> list[dict[str, Any]]:
        return [seg.to_dict() for seg in self]

    def __str__(self) -> str:
        return self.to_cq_string()


def parse_segments(raw: Any) -> Message:
    """解析消息段数组；单个消息段对象视为只有一个元素的数组"""
    if isinstance(raw, dict):
        raw = [raw]
    if not isinstance(raw, list):
        raise TypeError(f"消息段数组应为 list, 实际类型: {type(raw).__name__}")

    segments = []
    for item in raw:
        if not isinstance(item, dict) or not isinstance(item.get("type"), str):
            raise ValueError(f"无效的消息段: {item!r}")
        data = item.get("data") or {}
        if not isinstance(data, dict):
            raise ValueError(f"消息段 data 应为对象: {item!r}")
        segments.append(Segment(item["type"], dict(data)))
    return Message(segments)


def parse_cq_string(raw: str) -> Message:
    """解析 CQ 码字符串，CQ 码之间的文本按纯文本段处理"""
    message = Message()
    pos = 0
    for match in _CQ_CODE_RE.finditer(raw):
        if match.start() > pos:
            message.append(Segment.text(unescape(raw[pos:match.start()])))

        data = {}
        for param in match.group(2).split(",")[1:]:
            key, _, value = param.partition("=")
            if key:
                data[key] = unescape(value)
        message.append(Segment(match.group(1), data))
        pos = match.end()

    if pos < len(raw):
        message.append(Segment.text(unescape(raw[pos:])))
    return message
