"""
错误类型

    QQBotError    — 所有错误的基类
    DecodeError   — 线上 JSON 无法解析为对应结构
    ActionFailed  — 接口调用返回 status="failed"（仅由客户端的便捷方法抛出）
    ConnectionClosed — 等待响应期间 WebSocket 连接断开
"""

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .envelope import Response


class QQBotError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class DecodeError(QQBotError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("decode_error", message, details)


class ActionFailed(QQBotError):
    def __init__(self, action: str, response: "Response"):
        super().__init__(
            "action_failed",
            f"调用 {action} 失败: retcode={response.retcode}",
            {"action": action, "retcode": response.retcode},
        )
        self.response = response


class ConnectionClosed(QQBotError):
    def __init__(self, message: str = "WebSocket 连接已关闭"):
        super().__init__("connection_closed", message)
