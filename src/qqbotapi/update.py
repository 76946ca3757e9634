"""
上报事件（update）解析与归一化

远端推送的事件是一个扁平的 JSON 对象，按 post_type 区分类别:

    post_type     类型               主要字段
    message       MessageUpdate      message_type / message_id / sender / message
    notice        NoticeUpdate       notice_type / operator_id / file
    request       RequestUpdate      request_type / flag / comment
    meta_event    MetaEventUpdate    meta_event_type
    其他          Update             仅公共字段，未知字段原样保留

除线上字段外，每个 update 还有两个推导字段（不出现在线上，也不会被序列化）:
    text:    消息内容的纯文本
    message: 结构化的 Message，仅 message 事件有值，其余为 None

未知的 post_type / sub_type / notice_type 等取值不视为错误，原样保留。
"""

import json
import logging
from typing import Any, Optional, Union

from pydantic import Field, PrivateAttr

from . import cqcode
from .errors import DecodeError
from .models import Chat, File, Message, User, WireModel

logger = logging.getLogger("qq-bot-api")


class Update(WireModel):
    time: int = 0
    self_id: int = 0
    post_type: str = ""
    sub_type: str = ""
    user_id: int = 0
    # 线上字段名为 "message"，与推导出的 message 属性区分
    raw_content: Any = Field(None, alias="message")

    _text: str = PrivateAttr("")
    _message: Optional[Message] = PrivateAttr(None)

    def model_post_init(self, context: Any) -> None:
        self._normalize()

    def _normalize(self) -> None:
        if self.raw_content is not None:
            self._text = cqcode.Message.parse(self.raw_content).extract_plain_text()

    @property
    def text(self) -> str:
        return self._text

    @property
    def message(self) -> Optional[Message]:
        return self._message


class MessageUpdate(Update):
    post_type: str = "message"
    message_type: str = ""  # "private"、"group"、"discuss"
    message_id: int = 0
    group_id: int = 0
    discuss_id: int = 0
    font: int = 0
    anonymous: Any = None
    anonymous_flag: str = ""
    sender: Optional[User] = None

    def _normalize(self) -> None:
        content = cqcode.Message.parse(self.raw_content)
        self._text = content.extract_plain_text()

        chat = self._build_chat()
        self._message = Message(
            message_id=self.message_id,
            from_user=self._build_sender(),
            chat=chat,
            content=content,
            text=self._text,
            sub_type=self.sub_type if chat.is_group() else "",
            font=self.font,
        )

    def _build_chat(self) -> Chat:
        chat_ids = {
            "private": self.user_id,
            "group": self.group_id,
            "discuss": self.discuss_id,
        }
        chat = Chat(id=chat_ids.get(self.message_type, 0), type=self.message_type)
        if chat.is_private():
            chat.sub_type = self.sub_type
        return chat

    def _build_sender(self) -> User:
        """
        复制 sender 作为消息发送者，不修改原始字段。

        sender 缺失时仅用 user_id 构造；匿名消息的 anonymous 字段
        ({"id", "name", "flag"}，旧版为匿名名字符串) 合并到匿名相关属性。
        """
        data: dict[str, Any] = {"user_id": self.user_id}
        if self.sender is not None:
            data.update(self.sender.model_dump(exclude_unset=True))

        if isinstance(self.anonymous, dict):
            data.update(
                anonymous_id=self.anonymous.get("id"),
                anonymous_name=self.anonymous.get("name"),
                anonymous_flag=self.anonymous.get("flag"),
            )
        elif isinstance(self.anonymous, str) and self.anonymous:
            data["anonymous_name"] = self.anonymous
        if self.anonymous_flag and not data.get("anonymous_flag"):
            data["anonymous_flag"] = self.anonymous_flag

        return User.model_validate(data)


class NoticeUpdate(Update):
    post_type: str = "notice"
    notice_type: str = ""
    group_id: int = 0
    discuss_id: int = 0
    operator_id: int = 0
    file: Optional[File] = None


class RequestUpdate(Update):
    post_type: str = "request"
    request_type: str = ""  # "friend"、"group"
    group_id: int = 0
    flag: str = ""
    comment: str = ""  # 验证信息，旧版接口放在 message 字段

    def _normalize(self) -> None:
        super()._normalize()
        if not self._text:
            self._text = self.comment


class MetaEventUpdate(Update):
    post_type: str = "meta_event"
    meta_event_type: str = ""  # "lifecycle"、"heartbeat"
    event: str = ""


_UPDATE_TYPES: dict[str, type[Update]] = {
    "message": MessageUpdate,
    "notice": NoticeUpdate,
    "request": RequestUpdate,
    "meta_event": MetaEventUpdate,
}


def parse_update(raw: Union[str, bytes, dict[str, Any]]) -> Update:
    """
    把一条上报事件解析为对应的 Update 子类，并完成归一化。

    Args:
        raw: JSON 文本或已解码的对象

    Raises:
        DecodeError: JSON 无效、不是对象，或字段类型不匹配
    """
    if not isinstance(raw, dict):
        try:
            raw = json.loads(raw)
        except (ValueError, RecursionError) as e:
            raise DecodeError(f"无效的 JSON: {e}") from e
        if not isinstance(raw, dict):
            raise DecodeError(f"update 应为 JSON 对象, 实际类型: {type(raw).__name__}")

    post_type = raw.get("post_type")
    cls = _UPDATE_TYPES.get(post_type, Update) if isinstance(post_type, str) else Update
    try:
        update = cls.model_validate(raw)
    except ValueError as e:
        # 包括 pydantic 的 ValidationError
        raise DecodeError(
            f"解析 update 失败: {e}", details={"post_type": post_type}
        ) from e

    logger.debug("收到 update [%s] %s", update.post_type, update.text[:100])
    return update
