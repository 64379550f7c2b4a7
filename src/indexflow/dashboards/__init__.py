"""可视化服务索引模式模块 - 迁移后改写已保存的索引模式，并维护默认索引模式.

主要组件:
    - DashboardsPatternRewriter: 索引模式改写器
    - construct_updated_pattern: 计算单个标题的改写结果
    - SavedObject: 已保存对象模型

使用示例:
    from indexflow.dashboards import DashboardsPatternRewriter

    rewriter = DashboardsPatternRewriter(dashboards_gateway)
    rewriter.rewrite_patterns()
"""

from .exceptions import (
    DashboardsError,
    PatternCreateError,
    PatternDeleteError,
    PatternQueryError,
    PatternUpdateError,
)
from .models import IndexPatternAttributes, SavedObject, SavedObjectPage
from .tool import DashboardsPatternRewriter, construct_updated_pattern, is_system_pattern

__all__ = [
    # 改写器
    "DashboardsPatternRewriter",
    "construct_updated_pattern",
    "is_system_pattern",
    # 模型
    "SavedObject",
    "SavedObjectPage",
    "IndexPatternAttributes",
    # 异常
    "DashboardsError",
    "PatternQueryError",
    "PatternUpdateError",
    "PatternDeleteError",
    "PatternCreateError",
]
