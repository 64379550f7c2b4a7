"""集群健康检查模块 - 报告集群颜色、节点数与节点版本.

主要组件:
    - ClusterHealthGate: 就绪与健康检查
    - WorkloadLister: 工作负载查询协议
    - WorkloadStatus / NodeInfo: 数据模型
"""

from .exceptions import (
    ClusterHealthError,
    ClusterNotGreenError,
    DataNodeCountError,
    NodeCountMismatchError,
    NodeVersionMismatchError,
)
from .models import NodeInfo, WorkloadLister, WorkloadStatus
from .tool import ClusterHealthGate

__all__ = [
    "ClusterHealthGate",
    "WorkloadLister",
    "WorkloadStatus",
    "NodeInfo",
    "ClusterHealthError",
    "ClusterNotGreenError",
    "NodeCountMismatchError",
    "NodeVersionMismatchError",
    "DataNodeCountError",
]
