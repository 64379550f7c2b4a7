"""集群 REST 网关工具模块.

提供对搜索集群与可视化服务 HTTP 接口的最小封装：
- ClusterGateway: 网关抽象基类，所有组件只依赖它，测试时可替换
- TransportGateway: 基于 Elasticsearch 客户端传输层的实现
- GatewayFactory: 按服务角色创建、缓存和关闭网关
- expect_status: 校验响应状态码的辅助函数

使用示例:
    from indexflow.gateway import GatewayFactory, GatewayConfig, ServiceRole

    with GatewayFactory([GatewayConfig(endpoint="http://localhost:9200")]) as factory:
        gateway = factory.get_gateway(ServiceRole.OPENSEARCH)
        response = gateway.request("GET", "/_cluster/health")
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import urlencode

from elastic_transport import SerializationError, TransportError
from elasticsearch import Elasticsearch

from ..typing import HeaderDict, QueryParams
from .exceptions import (
    GatewayConfigError,
    GatewayNotFoundError,
    GatewayTransportError,
    MalformedResponseError,
    UnexpectedStatusError,
)
from .models import ConnectionConfig, GatewayConfig, GatewayResponse, ServiceRole

logger = logging.getLogger(__name__)

APPLICATION_JSON = "application/json"


class ClusterGateway(ABC):
    """集群 REST 网关抽象基类.

    请求按调用顺序同步发出，非 2xx 状态码不会抛出异常，由调用方按预期状态码判断。
    """

    @property
    @abstractmethod
    def endpoint(self) -> str:
        """服务 HTTP 地址."""

    @abstractmethod
    def request(
        self,
        method: str,
        path: str,
        *,
        params: QueryParams | None = None,
        body: Any = None,
        headers: HeaderDict | None = None,
    ) -> GatewayResponse:
        """发出一次 HTTP 请求.

        Args:
            method: HTTP 方法（GET/PUT/POST/DELETE）
            path: 以 ``/`` 开头的请求路径
            params: 查询参数
            body: JSON 请求体
            headers: 额外请求头

        Returns:
            GatewayResponse 响应对象

        Raises:
            GatewayTransportError: 网络或连接失败时抛出
            MalformedResponseError: 响应体无法解码时抛出
        """

    def close(self) -> None:
        """释放底层连接."""


class TransportGateway(ClusterGateway):
    """基于 Elasticsearch 客户端传输层的网关实现.

    直接调用 ``client.transport.perform_request``，绕过高层 API 的产品校验
    与状态码异常映射，从而可以访问 OpenSearch 与 OpenSearch Dashboards。

    Args:
        config: 网关配置
        connection_config: 连接参数，默认使用 ConnectionConfig 的默认值
    """

    def __init__(
        self,
        config: GatewayConfig,
        connection_config: ConnectionConfig | None = None,
    ) -> None:
        self._config = config
        self._connection_config = connection_config or ConnectionConfig()
        self._client = self._create_client()
        logger.info(f"初始化 {config.role.value} 网关: {config.endpoint}")

    @property
    def endpoint(self) -> str:
        return self._config.endpoint

    def _create_client(self) -> Elasticsearch:
        """根据网关配置创建 Elasticsearch 客户端实例.

        根据认证方式（Basic Auth / API Key / Bearer Token / 无认证）
        和 SSL 配置构建客户端，并关闭传输层的一切重试。

        Returns:
            Elasticsearch 客户端实例
        """
        kwargs: dict = {
            "hosts": [self._config.endpoint],
            "max_retries": 0,
            "retry_on_status": (),
            "retry_on_timeout": False,
            "request_timeout": self._connection_config.request_timeout,
            "http_compress": self._connection_config.http_compress,
            "connections_per_node": self._connection_config.connections_per_node,
        }

        # Basic Auth 认证
        if self._config.username and self._config.password:
            kwargs["basic_auth"] = (self._config.username, self._config.password)

        # API Key 认证
        if self._config.api_key:
            kwargs["api_key"] = self._config.api_key

        # Bearer Token 认证
        if self._config.bearer_token:
            kwargs["bearer_auth"] = self._config.bearer_token

        # SSL/TLS 配置
        if self._config.ca_certs:
            kwargs["ca_certs"] = self._config.ca_certs
        if self._config.endpoint.startswith("https://"):
            kwargs["verify_certs"] = self._config.verify_certs

        return Elasticsearch(**kwargs)

    def request(
        self,
        method: str,
        path: str,
        *,
        params: QueryParams | None = None,
        body: Any = None,
        headers: HeaderDict | None = None,
    ) -> GatewayResponse:
        target = path if path.startswith("/") else f"/{path}"
        if params:
            target = f"{target}?{urlencode(params)}"

        request_headers: dict[str, str] = {"accept": APPLICATION_JSON}
        if body is not None:
            request_headers["content-type"] = APPLICATION_JSON
        request_headers.update(self._config.headers)
        if headers:
            request_headers.update(headers)

        logger.debug(f"{method} {self._config.endpoint}{target}")
        try:
            response = self._client.transport.perform_request(
                method,
                target,
                body=body,
                headers=request_headers,
            )
        except SerializationError as e:
            raise MalformedResponseError(
                f"解析 {method} {self._config.endpoint}{target} 的响应失败: {e}"
            ) from e
        except TransportError as e:
            raise GatewayTransportError(
                f"请求 {method} {self._config.endpoint}{target} 失败: {e}"
            ) from e

        return GatewayResponse(status=response.meta.status, body=response.body)

    def close(self) -> None:
        self._client.close()


def expect_status(
    response: GatewayResponse,
    expected: int,
    action: str,
) -> GatewayResponse:
    """校验响应状态码.

    Args:
        response: 网关响应
        expected: 预期的 HTTP 状态码
        action: 操作描述，用于拼接错误信息

    Returns:
        原响应对象，便于链式取值

    Raises:
        UnexpectedStatusError: 当状态码与预期不符时抛出

    Examples:
        >>> body = expect_status(gateway.request("GET", "/_cluster/health"), 200, "获取集群健康状态").body
    """
    if response.status != expected:
        raise UnexpectedStatusError(f"{action}失败", expected, response.status)
    return response


class GatewayFactory:
    """网关工厂.

    按服务角色惰性创建并缓存网关，支持上下文管理器自动关闭。

    Args:
        configs: 网关配置列表，不可为空，每个角色至多一个
        connection_config: 连接参数
    """

    def __init__(
        self,
        configs: list[GatewayConfig],
        connection_config: ConnectionConfig | None = None,
    ) -> None:
        if not configs:
            raise GatewayConfigError("configs 不能为空，请提供至少一个网关配置")
        self._configs = {config.role: config for config in configs}
        self._connection_config = connection_config or ConnectionConfig()
        self._gateways: dict[ServiceRole, ClusterGateway] = {}

    def get_gateway(self, role: ServiceRole) -> ClusterGateway:
        """获取指定角色的网关.

        Raises:
            GatewayNotFoundError: 当指定角色没有配置时抛出
        """
        if role in self._gateways:
            return self._gateways[role]
        if role not in self._configs:
            raise GatewayNotFoundError(f"未找到角色为 {role.value} 的网关配置")
        gateway = TransportGateway(self._configs[role], self._connection_config)
        self._gateways[role] = gateway
        return gateway

    def has_role(self, role: ServiceRole) -> bool:
        return role in self._configs

    # ============================================================
    # 生命周期管理
    # ============================================================

    def __enter__(self) -> GatewayFactory:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """上下文管理器退出，自动关闭所有网关."""
        self.close_all()

    def close_all(self) -> None:
        """关闭所有已创建的网关并清空缓存."""
        for role, gateway in self._gateways.items():
            try:
                gateway.close()
            except TransportError as e:
                logger.warning(f"关闭 {role.value} 网关失败: {e}")
        self._gateways.clear()
