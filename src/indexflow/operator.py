"""搜索集群运维入口模块.

SearchClusterOperator 是外部协调器每轮调用的门面：

- configure_ism / sync_default_ism_policies / delete_default_ism_policies /
  set_auto_expand_indices 在后台执行并立即返回 Future，调用方在下一轮读取结果
- migrate_old_indices 委托给迁移监视器，按其状态机同步返回或抛出异常

OpenSearch 未启用或集群未就绪时，各入口都视为无操作成功。

使用示例:
    operator = SearchClusterOperator.for_instance(instance, workload_lister)
    future = operator.configure_ism(instance)
    ...
    future.result()  # 下一轮协调时读取
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Callable, TypeVar

from .config import EndpointConfig, ReindexConfig
from .dashboards import DashboardsPatternRewriter
from .gateway import (
    ClusterGateway,
    ConnectionConfig,
    GatewayConfig,
    GatewayFactory,
    MalformedResponseError,
    ServiceRole,
    expect_status,
)
from .health import ClusterHealthGate, WorkloadLister
from .ism import DefaultPolicyManager, ISMPolicyManager
from .migration import DataStreamMigrationEngine, MigrationMonitor
from .models import MonitoringInstance

logger = logging.getLogger(__name__)

T = TypeVar("T")

ISM_PLUGIN_TEMPLATE = "ism-plugin-template"
AUTO_EXPAND_TEMPLATE_BODY = {
    "index_patterns": [".opendistro*"],
    "priority": 0,
    "template": {"settings": {"auto_expand_replicas": "0-1"}},
}


class SearchClusterOperator:
    """搜索集群运维门面.

    Args:
        opensearch: 搜索集群网关
        workload_lister: 工作负载查询器，用于判断集群是否就绪
        dashboards: 可视化服务网关，未部署时为 None
        config: 迁移配置，默认从环境变量读取
        executor: 执行 ISM 相关任务的执行器，默认单线程线程池，保证写入按提交顺序进行
        migration_engine: 自定义迁移引擎，默认基于 opensearch 网关创建
    """

    def __init__(
        self,
        opensearch: ClusterGateway,
        workload_lister: WorkloadLister,
        dashboards: ClusterGateway | None = None,
        config: ReindexConfig | None = None,
        executor: Executor | None = None,
        migration_engine: DataStreamMigrationEngine | None = None,
    ):
        self.config = config or ReindexConfig.from_env()
        self.opensearch = opensearch
        self.dashboards = dashboards
        self.health_gate = ClusterHealthGate(opensearch, workload_lister, self.config)
        self.policy_manager = ISMPolicyManager(opensearch)
        self.default_policy_manager = DefaultPolicyManager(opensearch, self.policy_manager)
        self.rewriter = (
            DashboardsPatternRewriter(dashboards, self.config) if dashboards is not None else None
        )
        self.migration_engine = migration_engine or DataStreamMigrationEngine(
            opensearch, self.config, rewriter=self.rewriter
        )
        self.monitor = MigrationMonitor(self.migration_engine, self.health_gate)
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="indexflow-ism"
        )
        self._factory: GatewayFactory | None = None

    @classmethod
    def for_instance(
        cls,
        instance: MonitoringInstance,
        workload_lister: WorkloadLister,
        config: ReindexConfig | None = None,
        connection_config: ConnectionConfig | None = None,
    ) -> SearchClusterOperator:
        """根据实例推导服务地址并创建网关."""
        endpoints = EndpointConfig.for_instance(instance)
        gateway_configs = [GatewayConfig(endpoint=endpoints.opensearch)]
        if instance.dashboards.enabled and endpoints.dashboards:
            gateway_configs.append(
                GatewayConfig(endpoint=endpoints.dashboards, role=ServiceRole.DASHBOARDS)
            )
        factory = GatewayFactory(gateway_configs, connection_config)
        dashboards = (
            factory.get_gateway(ServiceRole.DASHBOARDS)
            if factory.has_role(ServiceRole.DASHBOARDS)
            else None
        )
        operator = cls(
            factory.get_gateway(ServiceRole.OPENSEARCH),
            workload_lister,
            dashboards=dashboards,
            config=config,
        )
        operator._factory = factory
        return operator

    def _submit(self, task: Callable[[], T]) -> Future[T]:
        return self._executor.submit(task)

    def _can_operate(self, instance: MonitoringInstance) -> bool:
        return instance.opensearch.enabled and self.health_gate.is_ready(instance)

    # ============================================================
    # ISM 策略
    # ============================================================

    def configure_ism(self, instance: MonitoringInstance) -> Future[None]:
        """在后台同步声明的 ISM 策略."""

        def task() -> None:
            if not self._can_operate(instance):
                return
            self.policy_manager.reconcile(instance.opensearch.policies)

        return self._submit(task)

    def sync_default_ism_policies(self, instance: MonitoringInstance) -> Future[None]:
        """在后台同步内置默认策略，实例禁用默认策略时为无操作."""

        def task() -> None:
            if instance.opensearch.disable_default_policy:
                return
            if not self._can_operate(instance):
                return
            logger.debug("同步默认 ISM 策略")
            self.default_policy_manager.sync()

        return self._submit(task)

    def delete_default_ism_policies(self, instance: MonitoringInstance) -> Future[None]:
        """实例禁用默认策略时，在后台删除内置默认策略."""

        def task() -> None:
            if not instance.opensearch.disable_default_policy:
                return
            if not self._can_operate(instance):
                return
            self.default_policy_manager.delete()

        return self._submit(task)

    def set_auto_expand_indices(self, instance: MonitoringInstance) -> Future[None]:
        """单节点集群上让 ISM 插件索引的副本数随节点数自动扩展（最多 1 个）."""

        def task() -> None:
            if not instance.opensearch.enabled:
                return
            if not instance.opensearch.is_single_node_cluster():
                return
            if not self.health_gate.is_ready(instance):
                return
            response = self.opensearch.request(
                "PUT",
                f"/_index_template/{ISM_PLUGIN_TEMPLATE}",
                body=AUTO_EXPAND_TEMPLATE_BODY,
            )
            expect_status(response, 200, "更新索引默认设置")
            body = response.json_object()
            if not body.get("acknowledged"):
                raise MalformedResponseError(
                    f"更新索引设置未被确认，实际响应: {body}"
                )

        return self._submit(task)

    # ============================================================
    # 迁移与索引模式
    # ============================================================

    def migrate_old_indices(self, instance: MonitoringInstance) -> None:
        """推进旧索引迁移状态机，详见 MigrationMonitor.reconcile."""
        self.monitor.reconcile(instance)

    def create_default_index_patterns(self, instance: MonitoringInstance) -> list[str]:
        """可视化服务启用时创建缺失的默认索引模式."""
        if not instance.dashboards.enabled or self.rewriter is None:
            logger.debug("OpenSearch Dashboards 未启用，跳过创建默认索引模式")
            return []
        return self.rewriter.create_default_index_patterns()

    # ============================================================
    # 生命周期管理
    # ============================================================

    def __enter__(self) -> SearchClusterOperator:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """关闭执行器与自行创建的网关."""
        if self._owns_executor:
            self._executor.shutdown(wait=True)
        self.monitor.shutdown(wait=True)
        if self._factory is not None:
            self._factory.close_all()
