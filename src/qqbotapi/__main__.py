"""
QQ Bot 入口脚本: 连接 OneBot 端点并把收到的事件打印到日志

用法:
    python -m qqbotapi                               # 使用 config.yaml 与默认地址
    python -m qqbotapi --url ws://127.0.0.1:6700/    # 指定 WebSocket 地址
    python -m qqbotapi --config bot.yaml --env .env  # 指定配置文件

地址优先级: 命令行参数 > 环境变量 QQBOT_WS_URL > config.yaml > 默认值
"""

import argparse
import asyncio
import logging
import os
from typing import Optional

from .client import QQBotClient
from .config import AppConfig, load_env, setup_logging
from .update import MessageUpdate, NoticeUpdate, RequestUpdate, Update

logger = logging.getLogger("qq-bot-api")


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="qq-bot-api — 连接 OneBot 端点并打印收到的事件",
    )
    p.add_argument(
        "--config", default="config.yaml",
        help="配置文件路径 (默认: config.yaml)",
    )
    p.add_argument(
        "--env", default=None,
        help=".env 文件路径 (默认: 当前目录下的 .env)",
    )
    p.add_argument(
        "--url", default=None,
        help="OneBot WebSocket 地址 (可通过环境变量 QQBOT_WS_URL 覆盖配置文件)",
    )
    return p.parse_args(argv)


def resolve_ws_url(url: Optional[str], config: AppConfig) -> str:
    """命令行参数 > 环境变量 QQBOT_WS_URL > 配置文件"""
    return url or os.environ.get("QQBOT_WS_URL") or config.bot.ws_url


def describe(update: Update) -> str:
    """把 update 格式化为一行日志"""
    if isinstance(update, MessageUpdate) and update.message is not None:
        msg = update.message
        return f"[{msg.chat.type}:{msg.chat.id}] {msg.from_user}: {msg.text}"
    if isinstance(update, NoticeUpdate):
        return f"[notice:{update.notice_type}] user={update.user_id}"
    if isinstance(update, RequestUpdate):
        return f"[request:{update.request_type}] user={update.user_id} {update.text}"
    return f"[{update.post_type or 'unknown'}]"


async def main(argv=None):
    args = parse_args(argv)

    load_env(args.env)
    config = AppConfig.from_yaml(args.config)
    setup_logging(config.log.dir, getattr(logging, config.log.level.upper(), logging.INFO))

    client = QQBotClient(resolve_ws_url(args.url, config), api_timeout=config.bot.api_timeout)

    await client.start()
    try:
        me = await client.get_login_info()
        logger.info("Bot [%s] 已上线", me)
        async for update in client.updates():
            logger.info("%s", describe(update))
    finally:
        await client.stop()


def run():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
