"""运行配置模块.

提供数据流迁移与服务地址相关的配置模型，包括：
- ReindexConfig: 系统命名空间白名单、系统数据流名称、索引前缀、目标版本
- EndpointConfig: OpenSearch 与 OpenSearch Dashboards 的 HTTP 地址

两者均支持通过环境变量覆盖默认值。
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .exceptions import ConfigurationError

if TYPE_CHECKING:
    from .models import MonitoringInstance

NAMESPACES_ENV = "VERRAZZANO_NAMESPACES_ARRAY"
DATA_STREAM_NAME_ENV = "VERRAZZANO_DATA_STREAM_NAME"
TARGET_VERSION_ENV = "OPENSEARCH_WAIT_TARGET_VERSION"
MASTER_HTTP_ENDPOINT_ENV = "VMO_MASTER_HTTP_ENDPOINT"
DASHBOARDS_HTTP_ENDPOINT_ENV = "VMO_DASHBOARDS_HTTP_ENDPOINT"

DEFAULT_SYSTEM_NAMESPACES: tuple[str, ...] = (
    "kube-system",
    "verrazzano-system",
    "istio-system",
    "keycloak",
    "metallb-system",
    "default",
    "cert-manager",
    "local-path-storage",
    "rancher-operator-system",
    "fleet-system",
    "ingress-nginx",
    "cattle-system",
    "verrazzano-install",
    "monitoring",
)
DEFAULT_DATA_STREAM_NAME = "verrazzano-system"
DEFAULT_INDEX_PREFIX = "verrazzano"
DEFAULT_DATA_STREAM_TEMPLATE = "verrazzano-data-stream"

OPENSEARCH_HTTP_PORT = 9200
DASHBOARDS_HTTP_PORT = 5601


@dataclass
class ReindexConfig:
    """旧索引迁移配置模型.

    Attributes:
        system_namespaces: 系统命名空间白名单，落在其中的命名空间索引归为系统索引
        data_stream_name: 系统数据流名称
        index_prefix: 旧索引与数据流共享的名称前缀
        target_version: 集群节点期望运行的版本号，为空时不校验版本
        data_stream_template: 声明数据流的索引模板名称，迁移前须已存在

    Raises:
        ConfigurationError: 当数据流名称或前缀为空时抛出

    Examples:
        >>> config = ReindexConfig(system_namespaces=("kube-system",))
        >>> config.namespace_index_prefix
        'verrazzano-namespace-'
    """

    system_namespaces: tuple[str, ...] = DEFAULT_SYSTEM_NAMESPACES
    data_stream_name: str = DEFAULT_DATA_STREAM_NAME
    index_prefix: str = DEFAULT_INDEX_PREFIX
    target_version: str = ""
    data_stream_template: str = DEFAULT_DATA_STREAM_TEMPLATE

    def __post_init__(self) -> None:
        """校验配置参数合法性."""
        if not self.data_stream_name:
            raise ConfigurationError("data_stream_name 不能为空")
        if not self.index_prefix:
            raise ConfigurationError("index_prefix 不能为空")
        self.system_namespaces = tuple(ns for ns in self.system_namespaces if ns)

    @classmethod
    def from_env(cls) -> ReindexConfig:
        """从环境变量构建配置，未设置的变量使用默认值."""
        namespaces = os.getenv(NAMESPACES_ENV, "")
        return cls(
            system_namespaces=(
                tuple(namespaces.split(",")) if namespaces else DEFAULT_SYSTEM_NAMESPACES
            ),
            data_stream_name=os.getenv(DATA_STREAM_NAME_ENV) or DEFAULT_DATA_STREAM_NAME,
            target_version=os.getenv(TARGET_VERSION_ENV, ""),
        )

    @property
    def namespace_index_prefix(self) -> str:
        """按命名空间命名的旧索引前缀，如 ``verrazzano-namespace-``."""
        return f"{self.index_prefix}-namespace-"

    @property
    def application_stream_prefix(self) -> str:
        """应用数据流名称前缀，如 ``verrazzano-application-``."""
        return f"{self.index_prefix}-application-"

    @property
    def journal_index(self) -> str:
        return f"{self.index_prefix}-systemd-journal"

    @property
    def logstash_index_prefix(self) -> str:
        return f"{self.index_prefix}-logstash-"


@dataclass
class EndpointConfig:
    """服务地址配置模型.

    Attributes:
        opensearch: OpenSearch HTTP 地址
        dashboards: OpenSearch Dashboards HTTP 地址（未部署时可为空）
    """

    opensearch: str
    dashboards: str = ""

    def __post_init__(self) -> None:
        """校验地址合法性."""
        if not self.opensearch:
            raise ConfigurationError("opensearch 地址不能为空")

    @classmethod
    def for_instance(cls, instance: MonitoringInstance) -> EndpointConfig:
        """根据实例名称推导集群内服务地址.

        环境变量 ``VMO_MASTER_HTTP_ENDPOINT`` / ``VMO_DASHBOARDS_HTTP_ENDPOINT``
        存在时优先使用，便于在端口转发等无法直接访问集群服务的场景下调试。
        """
        opensearch = os.getenv(MASTER_HTTP_ENDPOINT_ENV) or (
            f"http://vmi-{instance.name}-es-master-http:{OPENSEARCH_HTTP_PORT}"
        )
        dashboards = os.getenv(DASHBOARDS_HTTP_ENDPOINT_ENV) or (
            f"http://vmi-{instance.name}-osd:{DASHBOARDS_HTTP_PORT}"
        )
        return cls(opensearch=opensearch, dashboards=dashboards)
