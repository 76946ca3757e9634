"""
QQ 实体数据结构

User / Group / File 直接由线上 JSON 解析，基于 pydantic；
Chat / Message 由 update 归一化推导得出，不出现在线上，基于标准库 dataclass。
"""

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

from . import cqcode


class WireModel(BaseModel):
    """
    线上结构的公共基类

    - 保留未声明的字段（可通过属性或 model_extra 访问）
    - 值为 null 的字段按缺省处理，避免 null 覆盖默认的零值
    """
    model_config = ConfigDict(extra="allow")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class User(WireModel):
    """
    QQ 用户

    同一结构承载三类信息，按上下文只有部分字段有值:
        - 基本资料: user_id / nickname / sex / age / area
        - 群成员:   card / title / role / join_time 等
        - 匿名:     anonymous_id / anonymous_name / anonymous_flag
    """
    user_id: int = 0
    nickname: str = ""
    sex: str = ""  # "male"、"female"、"unknown"
    age: int = 0
    area: str = ""
    # 群成员
    card: str = ""
    card_changeable: bool = False
    title: str = ""
    title_expire_time: int = 0
    level: str = ""
    role: str = ""  # "owner"、"admin"、"member"
    unfriendly: bool = False
    join_time: int = 0
    last_sent_time: int = 0
    # 匿名
    anonymous_id: int = 0
    anonymous_name: str = ""
    anonymous_flag: str = ""

    @property
    def name(self) -> str:
        """显示名: 匿名名 > 群名片 > 昵称 > QQ 号"""
        return self.anonymous_name or self.card or self.nickname or str(self.user_id)

    def __str__(self) -> str:
        prefix = f"[{self.title}]" if self.title else ""
        return prefix + self.name


class Group(WireModel):
    group_id: int = 0
    group_name: str = ""


class File(WireModel):
    """群文件元数据，busid 用于向接口换取实际文件内容"""
    id: str = ""
    name: str = ""
    size: int = 0
    busid: int = 0


@dataclass
class Chat:
    """消息所在的会话"""
    id: int
    type: str  # "private"、"group"、"discuss"
    sub_type: str = ""  # 仅 type 为 "private" 时有效: "friend"、"group"、"discuss"、"other"

    def is_private(self) -> bool:
        return self.type == "private"

    def is_group(self) -> bool:
        return self.type == "group"

    def is_discuss(self) -> bool:
        return self.type == "discuss"


@dataclass
class Message:
    """
    一条消息

    Attributes:
        message_id: 消息 ID
        from_user:  发送者
        chat:       所在会话
        content:    消息段序列
        text:       纯文本内容
        sub_type:   仅群消息有效: "normal"、"anonymous"、"notice"
        font:       字体 ID
    """
    message_id: int
    from_user: User
    chat: Chat
    content: cqcode.Message = field(default_factory=cqcode.Message)
    text: str = ""
    sub_type: str = ""
    font: int = 0

    def is_anonymous(self) -> bool:
        return self.sub_type == "anonymous"

    def is_notice(self) -> bool:
        return self.sub_type == "notice"
