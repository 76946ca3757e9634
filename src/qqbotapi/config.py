"""
配置加载与日志设置

提供:
    AppConfig       — pydantic 配置模型，通过 config.yaml 管理
    load_env()      — 从 .env 文件加载环境变量
    setup_logging() — 配置全局日志格式，可选同时输出到目录
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class BotConfig(BaseModel):
    ws_url: str = Field("ws://127.0.0.1:6700/", description="OneBot WebSocket 地址")
    api_timeout: float = Field(30, description="接口调用超时秒数")


class LogConfig(BaseModel):
    level: str = Field("INFO", description="日志级别")
    dir: Optional[str] = Field(None, description="日志输出目录，不指定则仅控制台")


class AppConfig(BaseModel):
    bot: BotConfig = Field(default_factory=BotConfig)
    log: LogConfig = Field(default_factory=LogConfig)

    @classmethod
    def from_yaml(cls, path: str | Path = "config.yaml") -> "AppConfig":
        p = Path(path)
        if not p.exists():
            return cls()
        with open(p, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls.model_validate(data)


def load_env(env_path: Optional[str] = None):
    """
    加载 .env 文件到 os.environ。

    Args:
        env_path: .env 文件路径。未指定时使用当前目录下的 .env
    """
    load_dotenv(Path(env_path) if env_path else Path(".env"))


def setup_logging(log_dir: Optional[str] = None, level: int = logging.INFO):
    """
    配置全局日志。

    日志始终输出到控制台，如果指定了 log_dir 则同时写入该目录下
    以启动时间命名的日志文件（格式: YYYYMMDD_HHMMSS.log）。

    Args:
        log_dir: 日志输出目录，None 表示仅控制台输出
        level:   日志级别，默认 INFO
    """
    fmt = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"

    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if log_dir:
        dir_path = Path(log_dir)
        dir_path.mkdir(parents=True, exist_ok=True)
        filename = datetime.now().strftime("%Y%m%d_%H%M%S") + ".log"
        handlers.append(logging.FileHandler(dir_path / filename, encoding="utf-8"))

    logging.basicConfig(level=level, format=fmt, datefmt=datefmt, handlers=handlers)
