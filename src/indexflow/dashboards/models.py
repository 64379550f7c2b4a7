"""可视化服务已保存对象数据模型定义模块."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..gateway import MalformedResponseError
from ..typing import JSONDict

INDEX_PATTERN_TYPE = "index-pattern"
TIMESTAMP_FIELD = "@timestamp"


@dataclass
class SavedObject:
    """已保存的索引模式对象.

    Attributes:
        id: 对象 ID
        title: 标题，由逗号分隔的若干索引通配模式组成
    """

    id: str
    title: str

    @classmethod
    def from_dict(cls, data: JSONDict) -> SavedObject:
        """
        Raises:
            MalformedResponseError: 当对象缺少 id 时抛出
        """
        if not isinstance(data, dict) or not data.get("id"):
            raise MalformedResponseError(f"已保存对象缺少 id: {data!r}")
        attributes = data.get("attributes") or {}
        return cls(id=data["id"], title=attributes.get("title", ""))

    @property
    def sub_patterns(self) -> list[str]:
        return self.title.split(",")


@dataclass
class SavedObjectPage:
    """``_find`` 接口的一页结果.

    Attributes:
        total: 服务端报告的对象总数
        page: 页码，从 1 开始
        saved_objects: 本页对象
    """

    total: int = 0
    page: int = 1
    saved_objects: list[SavedObject] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: JSONDict) -> SavedObjectPage:
        return cls(
            total=int(data.get("total") or 0),
            page=int(data.get("page") or 1),
            saved_objects=[
                SavedObject.from_dict(item) for item in data.get("saved_objects") or []
            ],
        )


@dataclass
class IndexPatternAttributes:
    """新建索引模式时的属性.

    Attributes:
        title: 索引模式标题
        time_field_name: 时间字段名称
    """

    title: str
    time_field_name: str = TIMESTAMP_FIELD

    def to_saved_object(self) -> JSONDict:
        """构造 ``_bulk_create`` 接口的单个对象."""
        return {
            "type": INDEX_PATTERN_TYPE,
            "attributes": {"title": self.title, "timeFieldName": self.time_field_name},
        }
