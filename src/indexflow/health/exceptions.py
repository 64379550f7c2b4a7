"""集群健康检查异常定义模块."""

from ..exceptions import IndexFlowError


class ClusterHealthError(IndexFlowError):
    """集群健康检查基础异常类."""

    pass


class ClusterNotGreenError(ClusterHealthError):
    """集群健康状态不是 green 时抛出."""

    pass


class NodeCountMismatchError(ClusterHealthError):
    """集群中的节点数少于声明的副本数时抛出."""

    pass


class NodeVersionMismatchError(ClusterHealthError):
    """存在未运行目标版本的节点时抛出."""

    pass


class DataNodeCountError(ClusterHealthError):
    """数据节点数不足以调整数据节点规格时抛出."""

    pass
