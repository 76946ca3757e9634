"""
qq-bot-api — QQ 机器人接口数据模型

把 OneBot / CoolQ HTTP API 推送的事件解析为结构化对象，
并定义调用接口时使用的请求 / 响应信封。

安装:
    pip install qq-bot-api            # 仅数据模型
    pip install qq-bot-api[client]    # 附带 WebSocket 客户端

使用:
    from qqbotapi import parse_update

    update = parse_update(raw_json)
    if update.message is not None:
        print(update.message.from_user.name, update.message.text)
"""

from . import cqcode
from .envelope import Request, Response
from .errors import ActionFailed, ConnectionClosed, DecodeError, QQBotError
from .models import Chat, File, Group, Message, User
from .update import (
    MessageUpdate,
    MetaEventUpdate,
    NoticeUpdate,
    RequestUpdate,
    Update,
    parse_update,
)

__version__ = "0.1.0"
__all__ = [
    "cqcode",
    "Request",
    "Response",
    "QQBotError",
    "DecodeError",
    "ActionFailed",
    "ConnectionClosed",
    "User",
    "Group",
    "File",
    "Chat",
    "Message",
    "Update",
    "MessageUpdate",
    "NoticeUpdate",
    "RequestUpdate",
    "MetaEventUpdate",
    "parse_update",
    "QQBotClient",
]


def __getattr__(name: str):
    if name == "QQBotClient":
        from .client import QQBotClient
        return QQBotClient
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
