"""indexflow - OpenSearch Index Lifecycle and Data Stream Migration Toolkit.

这是一个用于维护 OpenSearch 索引生命周期策略、将旧索引迁移到数据流的 Python 库。

主要功能:
    - ISMPolicyManager: 声明式 ISM 策略的同步、应用与清理
    - DataStreamMigrationEngine / MigrationMonitor: 旧索引到数据流的迁移
    - DashboardsPatternRewriter: 迁移后改写可视化服务的索引模式
    - ClusterHealthGate: 集群就绪与健康检查
    - SearchClusterOperator: 供外部协调器调用的门面

使用示例:
    from indexflow import MonitoringInstance, OpenSearchSpec, SearchClusterOperator

    instance = MonitoringInstance(name="system", opensearch=OpenSearchSpec(enabled=True))
    operator = SearchClusterOperator.for_instance(instance, workload_lister)
    operator.configure_ism(instance).result()
"""

__version__ = "0.1.0"

# 导出配置与实例声明
from indexflow.config import EndpointConfig, ReindexConfig

# 导出组件
from indexflow.dashboards import DashboardsPatternRewriter, construct_updated_pattern

# 导出异常
from indexflow.exceptions import ConfigurationError, IndexFlowError
from indexflow.gateway import ClusterGateway, GatewayFactory, TransportGateway
from indexflow.health import ClusterHealthGate
from indexflow.ism import DefaultPolicyManager, ISMPolicyManager
from indexflow.migration import DataStreamMigrationEngine, MigrationMonitor, MigrationState
from indexflow.models import (
    DashboardsSpec,
    IndexManagementPolicy,
    MonitoringInstance,
    NodeGroup,
    NodeRole,
    OpenSearchSpec,
    RolloverPolicy,
)
from indexflow.operator import SearchClusterOperator
from indexflow.utils import parse_time_to_seconds

__all__ = [
    # 版本
    "__version__",
    # 配置
    "ReindexConfig",
    "EndpointConfig",
    # 实例声明
    "MonitoringInstance",
    "OpenSearchSpec",
    "DashboardsSpec",
    "IndexManagementPolicy",
    "RolloverPolicy",
    "NodeGroup",
    "NodeRole",
    # 组件
    "ClusterGateway",
    "TransportGateway",
    "GatewayFactory",
    "ISMPolicyManager",
    "DefaultPolicyManager",
    "DataStreamMigrationEngine",
    "MigrationMonitor",
    "MigrationState",
    "DashboardsPatternRewriter",
    "construct_updated_pattern",
    "ClusterHealthGate",
    "SearchClusterOperator",
    "parse_time_to_seconds",
    # 异常
    "IndexFlowError",
    "ConfigurationError",
]
