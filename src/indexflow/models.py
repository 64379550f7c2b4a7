"""实例声明数据模型定义模块.

描述外部协调器传入的实例声明，包括：
- RolloverPolicy: 滚动条件
- IndexManagementPolicy: 声明式索引管理策略
- NodeGroup: OpenSearch 节点组
- OpenSearchSpec: OpenSearch 配置
- DashboardsSpec: OpenSearch Dashboards 配置
- MonitoringInstance: 实例声明

这些对象在一次协调过程中只读。
"""

from dataclasses import dataclass, field
from enum import Enum

from .exceptions import ConfigurationError
from .utils import validate_size_format

DEFAULT_MIN_INDEX_AGE = "7d"
DEFAULT_ROLLOVER_INDEX_AGE = "1d"


class NodeRole(Enum):
    """OpenSearch 节点角色枚举."""

    MASTER = "master"
    DATA = "data"
    INGEST = "ingest"


@dataclass
class RolloverPolicy:
    """滚动条件模型.

    Attributes:
        min_index_age: 触发滚动的最小索引年龄，为空时使用默认值 "1d"
        min_size: 触发滚动的最小主分片大小，如 "1gb"
        min_doc_count: 触发滚动的最小文档数

    Raises:
        ConfigurationError: 当 min_size 格式不合法或 min_doc_count 为负数时抛出
    """

    min_index_age: str | None = None
    min_size: str | None = None
    min_doc_count: int | None = None

    def __post_init__(self) -> None:
        """校验滚动条件合法性."""
        if self.min_size is not None and not validate_size_format(self.min_size):
            raise ConfigurationError(
                f"min_size 格式不合法: {self.min_size!r}，应为大小格式（如 '1gb'）"
            )
        if self.min_doc_count is not None and self.min_doc_count < 0:
            raise ConfigurationError(
                f"min_doc_count 不能为负数，当前值: {self.min_doc_count}"
            )


@dataclass
class IndexManagementPolicy:
    """声明式索引管理策略模型.

    Attributes:
        policy_name: 策略名称，同时作为集群端 ISM 策略 ID
        index_pattern: 策略管理的索引通配模式（仅支持 ``*``）
        min_index_age: 索引删除前的最小年龄，为空时使用默认值 "7d"
        rollover: 滚动条件

    Raises:
        ConfigurationError: 当策略名称或索引模式为空时抛出

    Examples:
        >>> policy = IndexManagementPolicy(
        ...     policy_name="verrazzano-system",
        ...     index_pattern="verrazzano-system",
        ...     min_index_age="14d",
        ... )
        >>> policy.effective_min_index_age
        '14d'
    """

    policy_name: str
    index_pattern: str
    min_index_age: str | None = None
    rollover: RolloverPolicy = field(default_factory=RolloverPolicy)

    def __post_init__(self) -> None:
        """校验策略参数合法性."""
        if not self.policy_name:
            raise ConfigurationError("policy_name 不能为空")
        if not self.index_pattern:
            raise ConfigurationError("index_pattern 不能为空")

    @property
    def effective_min_index_age(self) -> str:
        return self.min_index_age or DEFAULT_MIN_INDEX_AGE


@dataclass
class NodeGroup:
    """OpenSearch 节点组模型.

    Attributes:
        name: 节点组名称
        replicas: 副本数
        roles: 节点角色列表
    """

    name: str
    replicas: int = 1
    roles: list[NodeRole] = field(default_factory=lambda: [NodeRole.MASTER])

    def __post_init__(self) -> None:
        if self.replicas < 0:
            raise ConfigurationError(f"节点组 {self.name} 的 replicas 不能为负数")


@dataclass
class OpenSearchSpec:
    """OpenSearch 配置模型.

    Attributes:
        enabled: 是否启用 OpenSearch
        policies: 声明的索引管理策略，按声明顺序处理
        nodes: 节点组列表
        disable_default_policy: 是否禁用内置默认策略
    """

    enabled: bool = False
    policies: list[IndexManagementPolicy] = field(default_factory=list)
    nodes: list[NodeGroup] = field(default_factory=list)
    disable_default_policy: bool = False

    @property
    def node_count(self) -> int:
        """所有节点组副本数之和."""
        return sum(node.replicas for node in self.nodes)

    @property
    def data_node_count(self) -> int:
        return sum(node.replicas for node in self.nodes if NodeRole.DATA in node.roles)

    @property
    def master_node_count(self) -> int:
        return sum(
            node.replicas for node in self.nodes if NodeRole.MASTER in node.roles
        )

    def is_single_node_cluster(self) -> bool:
        """判断是否为单节点集群（仅一个主节点且总副本数为 1）."""
        return self.master_node_count == 1 and self.node_count == 1


@dataclass
class DashboardsSpec:
    """OpenSearch Dashboards 配置模型."""

    enabled: bool = False


@dataclass
class MonitoringInstance:
    """实例声明模型.

    Attributes:
        name: 实例名称
        namespace: 实例所在命名空间
        opensearch: OpenSearch 配置
        dashboards: OpenSearch Dashboards 配置

    Examples:
        >>> instance = MonitoringInstance(
        ...     name="system",
        ...     namespace="verrazzano-system",
        ...     opensearch=OpenSearchSpec(enabled=True),
        ... )
    """

    name: str
    namespace: str = "default"
    opensearch: OpenSearchSpec = field(default_factory=OpenSearchSpec)
    dashboards: DashboardsSpec = field(default_factory=DashboardsSpec)

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigurationError("实例名称不能为空")
