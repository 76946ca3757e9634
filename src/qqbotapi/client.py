"""
OneBot WebSocket 客户端

通过一条 WebSocket 连接（OneBot 正向 WebSocket 的通用端点）同时完成:
    - 调用接口: 发送 {"action", "params", "echo"}，按 echo 匹配响应
    - 接收事件: 上报的事件解析为 Update，按收到的顺序放入队列

连接断开后事件流结束，不做自动重连。

依赖:
    pip install qq-bot-api[client]
"""

import asyncio
import inspect
import itertools
import json
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Union

try:
    import aiohttp
except ImportError:
    raise ImportError(
        "客户端功能需要 aiohttp，请执行: pip install qq-bot-api[client]"
    ) from None

from . import cqcode
from .envelope import Request, Response
from .errors import ActionFailed, ConnectionClosed, DecodeError
from .models import Chat, Group, User
from .update import Update, parse_update

logger = logging.getLogger("qq-bot-api")

# 接口调用的默认超时秒数
DEFAULT_API_TIMEOUT = 30

MessageLike = Union[str, cqcode.Segment, cqcode.Message]
UpdateHandler = Callable[[Update], Union[None, Awaitable[None]]]


def _message_param(message: MessageLike) -> Union[str, list[dict[str, Any]]]:
    """字符串按 CQ 码原样发送，消息段转为数组格式"""
    if isinstance(message, cqcode.Segment):
        return [message.to_dict()]
    if isinstance(message, cqcode.Message):
        return message.to_list()
    return message


class QQBotClient:
    """
    QQ Bot WebSocket 客户端

    用法:
        client = QQBotClient("ws://127.0.0.1:6700/")
        await client.start()

        me = await client.get_login_info()
        async for update in client.updates():
            msg = update.message
            if msg is not None and msg.chat.is_group():
                await client.send_msg(msg.chat, "收到: " + msg.text)

        await client.stop()
    """

    def __init__(self, ws_url: str, *, api_timeout: float = DEFAULT_API_TIMEOUT):
        self.ws_url = ws_url
        self.api_timeout = api_timeout

        self._session: Optional[aiohttp.ClientSession] = None
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self._recv_task: Optional[asyncio.Task] = None
        self._echo = itertools.count(1)
        self._pending: dict[int, asyncio.Future[Response]] = {}
        # None 作为事件流结束标记
        self._updates: asyncio.Queue[Optional[Update]] = asyncio.Queue()

    @property
    def connected(self) -> bool:
        return self._ws is not None and not self._ws.closed

    # -------- 启停 --------

    async def start(self):
        """建立 WebSocket 连接，并在后台任务中持续接收消息"""
        self._updates = asyncio.Queue()
        self._pending.clear()
        self._session = aiohttp.ClientSession()
        try:
            self._ws = await self._session.ws_connect(self.ws_url)
        except Exception:
            await self._session.close()
            self._session = None
            raise
        self._recv_task = asyncio.create_task(self._recv_loop())
        logger.info("已连接到 %s", self.ws_url)

    async def stop(self):
        """关闭连接，清理所有资源"""
        if self._ws and not self._ws.closed:
            await self._ws.close()

        if self._recv_task and not self._recv_task.done():
            self._recv_task.cancel()
            try:
                await self._recv_task
            except asyncio.CancelledError:
                pass
        self._recv_task = None

        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
        logger.info("客户端已停止")

    def run(self, handler: UpdateHandler):
        """阻塞运行: 连接后把每个 update 交给 handler，直到连接断开或 Ctrl+C"""

        async def _main():
            await self.start()
            try:
                async for update in self.updates():
                    await self._dispatch(handler, update)
            finally:
                await self.stop()

        try:
            asyncio.run(_main())
        except KeyboardInterrupt:
            pass

    async def _dispatch(self, handler: UpdateHandler, update: Update):
        try:
            result = handler(update)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("处理 update 时出错")

    # -------- 接收循环 --------

    async def _recv_loop(self):
        try:
            async for msg in self._ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    self._handle_frame(msg.data)
                elif msg.type in (aiohttp.WSMsgType.CLOSED, aiohttp.WSMsgType.ERROR):
                    break
        except Exception:
            logger.exception("WebSocket 接收循环异常")
        finally:
            logger.warning("WebSocket 连接已断开: %s", self.ws_url)
            for fut in self._pending.values():
                if not fut.done():
                    fut.set_exception(ConnectionClosed())
            self._updates.put_nowait(None)

    def _handle_frame(self, raw: str):
        """分发一帧数据: 带 post_type 的是事件，其余是接口响应"""
        logger.debug("收到数据: %s", raw[:200])
        try:
            data = json.loads(raw)
        except (ValueError, RecursionError):
            logger.warning("丢弃无效的 JSON 数据: %s", raw[:200])
            return
        if not isinstance(data, dict):
            logger.warning("丢弃非对象数据: %s", raw[:200])
            return

        if "post_type" in data:
            try:
                update = parse_update(data)
            except DecodeError as e:
                logger.warning("丢弃无法解析的 update: %s", e)
                return
            self._updates.put_nowait(update)
        else:
            self._resolve(data)

    def _resolve(self, data: dict[str, Any]):
        try:
            response = Response.from_json(data)
        except DecodeError as e:
            logger.warning("丢弃无法解析的响应: %s", e)
            return

        echo = response.echo
        fut = self._pending.get(echo) if isinstance(echo, int) else None
        if fut is None:
            logger.debug("没有等待中的请求与 echo=%r 对应, 忽略", echo)
            return
        if not fut.done():
            fut.set_result(response)

    # -------- 事件流 --------

    async def updates(self) -> AsyncIterator[Update]:
        """按收到的顺序逐个产出 update，连接断开后结束"""
        while True:
            update = await self._updates.get()
            if update is None:
                # 留给其他消费者
                self._updates.put_nowait(None)
                return
            yield update

    # -------- 接口调用 --------

    async def call(self, action: str, **params: Any) -> Response:
        """
        调用接口并等待响应。

        status 为 "failed" 时同样返回 Response，由调用方决定如何处理。

        Raises:
            RuntimeError:         尚未连接
            ConnectionClosed:     等待期间连接断开
            asyncio.TimeoutError: 超过 api_timeout 未收到响应
        """
        if not self.connected:
            raise RuntimeError("客户端尚未连接, 请先调用 start()")

        echo = next(self._echo)
        request = Request(action=action, params=params, echo=echo)
        fut: asyncio.Future[Response] = asyncio.get_running_loop().create_future()
        self._pending[echo] = fut
        try:
            await self._ws.send_str(request.to_json())
            return await asyncio.wait_for(fut, self.api_timeout)
        finally:
            self._pending.pop(echo, None)

    async def _call_ok(self, action: str, **params: Any) -> Response:
        response = await self.call(action, **params)
        if response.status == "failed":
            raise ActionFailed(action, response)
        return response

    @staticmethod
    def _message_id(response: Response) -> Optional[int]:
        # status 为 "async" 时没有 data
        data = response.decode(Optional[dict[str, Any]])
        if not data or data.get("message_id") is None:
            return None
        return int(data["message_id"])

    # -------- 发送消息 --------

    async def send_private_msg(self, user_id: int, message: MessageLike,
                               auto_escape: bool = False) -> Optional[int]:
        """发送私聊消息，返回消息 ID"""
        response = await self._call_ok(
            "send_private_msg", user_id=user_id,
            message=_message_param(message), auto_escape=auto_escape,
        )
        return self._message_id(response)

    async def send_group_msg(self, group_id: int, message: MessageLike,
                             auto_escape: bool = False) -> Optional[int]:
        """发送群消息，返回消息 ID"""
        response = await self._call_ok(
            "send_group_msg", group_id=group_id,
            message=_message_param(message), auto_escape=auto_escape,
        )
        return self._message_id(response)

    async def send_discuss_msg(self, discuss_id: int, message: MessageLike,
                               auto_escape: bool = False) -> Optional[int]:
        """发送讨论组消息，返回消息 ID"""
        response = await self._call_ok(
            "send_discuss_msg", discuss_id=discuss_id,
            message=_message_param(message), auto_escape=auto_escape,
        )
        return self._message_id(response)

    async def send_msg(self, chat: Chat, message: MessageLike,
                       auto_escape: bool = False) -> Optional[int]:
        """向 chat 所在的会话发送消息，按会话类型自动路由"""
        if chat.is_private():
            return await self.send_private_msg(chat.id, message, auto_escape)
        if chat.is_group():
            return await self.send_group_msg(chat.id, message, auto_escape)
        if chat.is_discuss():
            return await self.send_discuss_msg(chat.id, message, auto_escape)
        raise ValueError(f"未知的会话类型: {chat.type!r}")

    async def delete_msg(self, message_id: int):
        """撤回消息"""
        await self._call_ok("delete_msg", message_id=message_id)

    # -------- 查询 --------

    async def get_login_info(self) -> User:
        response = await self._call_ok("get_login_info")
        return response.decode(User)

    async def get_stranger_info(self, user_id: int, no_cache: bool = False) -> User:
        response = await self._call_ok(
            "get_stranger_info", user_id=user_id, no_cache=no_cache
        )
        return response.decode(User)

    async def get_group_list(self) -> list[Group]:
        response = await self._call_ok("get_group_list")
        return response.decode(list[Group])

    async def get_group_member_info(self, group_id: int, user_id: int,
                                    no_cache: bool = False) -> User:
        response = await self._call_ok(
            "get_group_member_info", group_id=group_id,
            user_id=user_id, no_cache=no_cache,
        )
        return response.decode(User)

    async def get_group_member_list(self, group_id: int) -> list[User]:
        response = await self._call_ok("get_group_member_list", group_id=group_id)
        return response.decode(list[User])

    # -------- 处理请求 --------

    async def set_friend_add_request(self, flag: str, approve: bool = True,
                                     remark: str = ""):
        """处理加好友请求，flag 取自 RequestUpdate.flag"""
        await self._call_ok(
            "set_friend_add_request", flag=flag, approve=approve, remark=remark
        )

    async def set_group_add_request(self, flag: str, sub_type: str,
                                    approve: bool = True, reason: str = ""):
        """处理加群请求/邀请，sub_type 为 "add" 或 "invite" """
        await self._call_ok(
            "set_group_add_request", flag=flag, sub_type=sub_type,
            approve=approve, reason=reason,
        )
