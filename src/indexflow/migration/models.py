"""数据流迁移数据模型定义模块."""

from dataclasses import dataclass
from enum import Enum

from ..typing import JSONDict


class IndexClass(Enum):
    """旧索引分类枚举."""

    SYSTEM = "system"
    APPLICATION = "application"


class MigrationState(Enum):
    """迁移监视器状态枚举.

    Attributes:
        IDLE: 没有正在进行的迁移
        RUNNING: 已派发迁移任务，等待其完成
    """

    IDLE = "idle"
    RUNNING = "running"


@dataclass
class LegacyIndex:
    """待迁移的旧索引.

    Attributes:
        name: 旧索引名称
        index_class: 索引分类
        data_stream: 目标数据流名称
    """

    name: str
    index_class: IndexClass
    data_stream: str


@dataclass
class ReindexPayload:
    """重建索引请求.

    Attributes:
        source: 源索引
        dest: 目标数据流
        retention_seconds: 保留时间窗口（秒），为 None 时迁移全部文档
    """

    source: str
    dest: str
    retention_seconds: int | None = None

    def to_dict(self) -> JSONDict:
        """构造 ``_reindex`` 请求体.

        Examples:
            >>> ReindexPayload("verrazzano-namespace-a", "verrazzano-application-a", 20).to_dict()["source"]
            {'index': 'verrazzano-namespace-a', 'query': {'range': {'@timestamp': {'gte': 'now-20s', 'lt': 'now/s'}}}}
        """
        source: JSONDict = {"index": self.source}
        if self.retention_seconds is not None:
            source["query"] = {
                "range": {
                    "@timestamp": {
                        "gte": f"now-{self.retention_seconds}s",
                        "lt": "now/s",
                    }
                }
            }
        return {
            "conflicts": "proceed",
            "source": source,
            "dest": {"index": self.dest, "op_type": "create"},
        }


@dataclass
class MigrationReport:
    """一次迁移任务的结果汇总.

    Attributes:
        system_indices: 已迁移的系统索引
        application_indices: 已迁移的应用索引
        patterns_rewritten: 是否执行了索引模式改写
    """

    system_indices: list[str]
    application_indices: list[str]
    patterns_rewritten: bool = False

    @property
    def migrated_count(self) -> int:
        return len(self.system_indices) + len(self.application_indices)
