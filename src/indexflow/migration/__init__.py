"""数据流迁移模块 - 将旧索引重建到数据流，并由监视器以非阻塞方式驱动.

主要组件:
    - DataStreamMigrationEngine: 迁移引擎
    - MigrationMonitor: Idle/Running 状态机
    - classify_index / get_retention_seconds: 索引分类与保留时间计算
    - ReindexPayload: 重建索引请求

使用示例:
    from indexflow.migration import DataStreamMigrationEngine, MigrationMonitor

    monitor = MigrationMonitor(DataStreamMigrationEngine(gateway), health_gate)
    monitor.reconcile(instance)
"""

from .engine import DataStreamMigrationEngine
from .exceptions import (
    IndexDeleteError,
    IndexListError,
    MigrationError,
    ReindexError,
    RetentionParseError,
    TemplateWaitTimeoutError,
)
from .models import (
    IndexClass,
    LegacyIndex,
    MigrationReport,
    MigrationState,
    ReindexPayload,
)
from .monitor import MigrationMonitor
from .utils import (
    classify_index,
    data_stream_for,
    get_application_indices,
    get_retention_seconds,
    get_system_indices,
    is_system_index,
    to_legacy_index,
)

__all__ = [
    # 迁移
    "DataStreamMigrationEngine",
    "MigrationMonitor",
    # 工具函数
    "classify_index",
    "data_stream_for",
    "get_application_indices",
    "get_retention_seconds",
    "get_system_indices",
    "is_system_index",
    "to_legacy_index",
    # 模型
    "IndexClass",
    "LegacyIndex",
    "MigrationReport",
    "MigrationState",
    "ReindexPayload",
    # 异常
    "MigrationError",
    "TemplateWaitTimeoutError",
    "RetentionParseError",
    "IndexListError",
    "ReindexError",
    "IndexDeleteError",
]
