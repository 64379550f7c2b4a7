"""集群健康检查工具模块."""

from __future__ import annotations

import logging

from ..config import ReindexConfig
from ..gateway import ClusterGateway, MalformedResponseError, expect_status
from ..models import MonitoringInstance
from .exceptions import (
    ClusterNotGreenError,
    DataNodeCountError,
    NodeCountMismatchError,
    NodeVersionMismatchError,
)
from .models import (
    COMPONENT_LABEL,
    HEALTH_GREEN,
    INSTANCE_LABEL,
    MIN_DATA_NODES_FOR_RESIZE,
    OPENSEARCH_COMPONENT,
    NodeInfo,
    WorkloadLister,
)

logger = logging.getLogger(__name__)


class ClusterHealthGate:
    """集群健康检查.

    作为其他组件的前置条件：is_ready 判断 OpenSearch 工作负载是否全部就绪，
    check_health 校验集群颜色、节点数与节点版本。

    Args:
        gateway: 搜索集群网关
        workload_lister: 工作负载查询器
        config: 运行配置，提供目标版本号
    """

    def __init__(
        self,
        gateway: ClusterGateway,
        workload_lister: WorkloadLister,
        config: ReindexConfig | None = None,
    ):
        self.gateway = gateway
        self.workload_lister = workload_lister
        self.config = config or ReindexConfig.from_env()

    def is_ready(self, instance: MonitoringInstance) -> bool:
        """OpenSearch 工作负载恰好一个且就绪副本数等于期望副本数时返回 True.

        查询出错、没有或存在多个匹配的工作负载都视为未就绪，不抛出异常。
        """
        selector = {INSTANCE_LABEL: instance.name, COMPONENT_LABEL: OPENSEARCH_COMPONENT}
        try:
            workloads = self.workload_lister.list_workloads(instance.namespace, selector)
        except Exception as e:
            logger.error(f"获取 OpenSearch 工作负载失败: {e}")
            return False

        if not workloads:
            logger.warning("等待 OpenSearch 工作负载创建")
            return False
        if len(workloads) > 1:
            logger.error(f"OpenSearch 工作负载数量无效: {len(workloads)}")
            return False
        return workloads[0].ready

    # ============================================================
    # 健康检查
    # ============================================================

    def get_cluster_status(self) -> str:
        response = expect_status(
            self.gateway.request("GET", "/_cluster/health"), 200, "获取集群健康状态"
        )
        return response.json_object().get("status", "")

    def get_nodes(self) -> list[NodeInfo]:
        response = expect_status(
            self.gateway.request("GET", "/_nodes/settings"), 200, "获取节点设置"
        )
        nodes = response.json_object().get("nodes") or {}
        if not isinstance(nodes, dict):
            raise MalformedResponseError(f"节点设置响应的 nodes 字段不是对象: {nodes!r}")
        return [NodeInfo.from_dict(node_id, data) for node_id, data in nodes.items()]

    def check_health(
        self,
        instance: MonitoringInstance,
        require_node_count: bool,
        require_version: bool,
    ) -> None:
        """校验集群健康状态.

        OpenSearch 未启用时直接返回，以便卸载集群。

        Raises:
            ClusterNotGreenError: 集群状态不是 green 时抛出
            NodeCountMismatchError: 节点数少于声明的副本数时抛出
            NodeVersionMismatchError: 配置了目标版本且存在未运行该版本的节点时抛出
        """
        if not instance.opensearch.enabled:
            return

        status = self.get_cluster_status()
        if status != HEALTH_GREEN:
            raise ClusterNotGreenError(f"OpenSearch 健康状态为 {status}")

        nodes = self.get_nodes()

        if require_node_count:
            expected = instance.opensearch.node_count
            if len(nodes) < expected:
                raise NodeCountMismatchError(
                    f"预期 {expected} 个 OpenSearch 节点，实际 {len(nodes)} 个"
                )

        if require_version and not self.config.target_version:
            logger.debug("未配置目标版本，跳过节点版本校验")
        elif require_version:
            target = self.config.target_version
            for node in nodes:
                if node.version != target:
                    raise NodeVersionMismatchError(
                        f"并非所有 OpenSearch 节点都已升级到 {target} 版本"
                        f"（节点 {node.name or node.node_id} 为 {node.version}）"
                    )

    def is_green(self, instance: MonitoringInstance) -> None:
        self.check_health(instance, require_node_count=False, require_version=False)

    def is_updated(self, instance: MonitoringInstance) -> None:
        self.check_health(instance, require_node_count=True, require_version=True)

    def is_data_resizable(self, instance: MonitoringInstance) -> None:
        """至少有 2 个数据节点且集群已更新时才允许调整数据节点规格.

        Raises:
            DataNodeCountError: 数据节点不足时抛出
        """
        if not instance.opensearch.enabled:
            return
        if instance.opensearch.data_node_count < MIN_DATA_NODES_FOR_RESIZE:
            raise DataNodeCountError(
                f"数据节点少于 {MIN_DATA_NODES_FOR_RESIZE} 个时无法调整 OpenSearch 规格，"
                f"请先将集群扩容到至少 {MIN_DATA_NODES_FOR_RESIZE} 个数据节点"
            )
        self.is_updated(instance)
