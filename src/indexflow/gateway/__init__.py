"""集群 REST 网关模块 - 统一封装对搜索集群与可视化服务 HTTP 接口的访问.

主要组件:
    - ClusterGateway: 网关抽象基类
    - TransportGateway: 基于 Elasticsearch 客户端传输层的实现
    - GatewayFactory: 网关工厂，按服务角色管理网关的创建与生命周期
    - GatewayConfig: 网关配置模型
    - ConnectionConfig: 连接参数模型
    - GatewayResponse: HTTP 响应模型
    - ServiceRole: 服务角色枚举

使用示例:
    from indexflow.gateway import GatewayConfig, GatewayFactory, ServiceRole

    factory = GatewayFactory([GatewayConfig(endpoint="http://localhost:9200")])
    gateway = factory.get_gateway(ServiceRole.OPENSEARCH)
"""

from .exceptions import (
    GatewayConfigError,
    GatewayError,
    GatewayNotFoundError,
    GatewayTransportError,
    MalformedResponseError,
    UnexpectedStatusError,
)
from .models import ConnectionConfig, GatewayConfig, GatewayResponse, ServiceRole
from .tool import ClusterGateway, GatewayFactory, TransportGateway, expect_status

__all__ = [
    # 网关
    "ClusterGateway",
    "TransportGateway",
    "GatewayFactory",
    "expect_status",
    # 模型
    "GatewayConfig",
    "ConnectionConfig",
    "GatewayResponse",
    "ServiceRole",
    # 异常
    "GatewayError",
    "GatewayConfigError",
    "GatewayNotFoundError",
    "GatewayTransportError",
    "MalformedResponseError",
    "UnexpectedStatusError",
]
