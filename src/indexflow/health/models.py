"""集群健康检查数据模型定义模块."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from ..typing import JSONDict

HEALTH_GREEN = "green"
MIN_DATA_NODES_FOR_RESIZE = 2

INSTANCE_LABEL = "vmo.v1.verrazzano.io"
COMPONENT_LABEL = "verrazzano-component"
OPENSEARCH_COMPONENT = "opensearch"


@dataclass
class WorkloadStatus:
    """工作负载副本状态.

    Attributes:
        name: 工作负载名称
        ready_replicas: 就绪副本数
        replicas: 期望副本数
    """

    name: str = ""
    ready_replicas: int = 0
    replicas: int = 0

    @property
    def ready(self) -> bool:
        return self.ready_replicas == self.replicas


class WorkloadLister(Protocol):
    """按标签选择器列出工作负载的外部协作者."""

    def list_workloads(self, namespace: str, selector: dict[str, str]) -> list[WorkloadStatus]:
        ...


@dataclass
class NodeInfo:
    """``_nodes/settings`` 中的单个节点.

    Attributes:
        node_id: 节点 ID
        name: 节点名称
        version: 节点运行的版本号
        roles: 节点角色
    """

    node_id: str
    name: str = ""
    version: str = ""
    roles: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, node_id: str, data: JSONDict) -> NodeInfo:
        return cls(
            node_id=node_id,
            name=data.get("name", ""),
            version=data.get("version", ""),
            roles=list(data.get("roles") or []),
        )
