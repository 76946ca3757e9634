"""
接口调用的请求 / 响应信封

    请求: {"action": "send_group_msg", "params": {...}, "echo": 1}
    响应: {"status": "ok", "retcode": 0, "data": {...}, "echo": 1}

echo 由调用方生成，远端原样返回，用于把异步响应对应回请求，
因此在整个往返中保持原值和原类型（整数不会变成字符串）。
data 的结构取决于具体 action，这里不做解释，由调用方通过 decode() 按需解析。
"""

import json
from typing import Any, Union

from pydantic import Field, TypeAdapter, ValidationError

from .errors import DecodeError
from .models import WireModel


class Request(WireModel):
    action: str
    params: dict[str, Any] = Field(default_factory=dict)
    echo: Any = None

    def to_json(self) -> str:
        return json.dumps(
            {"action": self.action, "params": self.params, "echo": self.echo},
            ensure_ascii=False,
        )


class Response(WireModel):
    """
    接口响应

    data 保存 JSON 解码后的原始值（dict / list / 标量），不是原始字节，
    也不按 action 做任何解释；需要结构化对象时调用 decode()。
    """
    status: str = ""  # "ok"、"async"、"failed"
    retcode: int = 0
    data: Any = None
    echo: Any = None

    @classmethod
    def from_json(cls, raw: Union[str, bytes, dict[str, Any]]) -> "Response":
        if not isinstance(raw, dict):
            try:
                raw = json.loads(raw)
            except (ValueError, RecursionError) as e:
                raise DecodeError(f"无效的 JSON: {e}") from e
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            raise DecodeError(f"解析响应失败: {e}") from e

    def decode(self, tp: Any) -> Any:
        """
        按类型解析 data。

        用法:
            user = resp.decode(User)
            groups = resp.decode(list[Group])
        """
        try:
            return TypeAdapter(tp).validate_python(self.data)
        except ValidationError as e:
            raise DecodeError(f"解析响应 data 失败: {e}", details={"echo": self.echo}) from e
