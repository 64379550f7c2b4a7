"""可视化服务索引模式异常定义模块."""

from ..exceptions import IndexFlowError


class DashboardsError(IndexFlowError):
    """可视化服务基础异常类."""

    pass


class PatternQueryError(DashboardsError):
    """分页查询索引模式失败时抛出."""

    pass


class PatternUpdateError(DashboardsError):
    """更新索引模式标题失败时抛出."""

    pass


class PatternDeleteError(DashboardsError):
    """删除重复索引模式失败时抛出."""

    pass


class PatternCreateError(DashboardsError):
    """批量创建默认索引模式失败时抛出."""

    pass
