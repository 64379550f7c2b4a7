"""集群 REST 网关数据模型定义模块.

提供网关相关的数据模型，包括：
- ServiceRole: 服务角色枚举
- GatewayConfig: 单个服务的连接信息
- ConnectionConfig: 连接参数
- GatewayResponse: HTTP 响应
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .exceptions import GatewayConfigError, MalformedResponseError


class ServiceRole(Enum):
    """服务角色枚举.

    Attributes:
        OPENSEARCH: 搜索集群
        DASHBOARDS: 可视化服务
    """

    OPENSEARCH = "opensearch"
    DASHBOARDS = "dashboards"


@dataclass
class GatewayConfig:
    """网关配置模型.

    定义单个服务的访问地址、角色和认证方式。

    Attributes:
        endpoint: 服务 HTTP 地址（必需，需包含协议头）
        role: 服务角色，默认 OPENSEARCH
        username: Basic Auth 用户名
        password: Basic Auth 密码
        api_key: API Key 认证（字符串或元组）
        bearer_token: Bearer Token 认证
        ca_certs: CA 证书文件路径
        verify_certs: 是否验证 SSL 证书，默认 True
        headers: 每个请求都附带的请求头

    Raises:
        GatewayConfigError: 当 endpoint 为空或缺少协议头时抛出

    Examples:
        >>> config = GatewayConfig(
        ...     endpoint="http://vmi-system-osd:5601",
        ...     role=ServiceRole.DASHBOARDS,
        ...     headers={"osd-xsrf": "true"},
        ... )
    """

    endpoint: str
    role: ServiceRole = ServiceRole.OPENSEARCH
    username: str | None = None
    password: str | None = None
    api_key: str | tuple[str, str] | None = None
    bearer_token: str | None = None
    ca_certs: str | None = None
    verify_certs: bool = True
    headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """校验网关配置参数合法性."""
        if not self.endpoint:
            raise GatewayConfigError("endpoint 不能为空")
        if not self.endpoint.startswith(("http://", "https://")):
            raise GatewayConfigError(
                f"endpoint 必须以 http:// 或 https:// 开头，当前值: {self.endpoint!r}"
            )
        self.endpoint = self.endpoint.rstrip("/")


@dataclass
class ConnectionConfig:
    """连接参数模型.

    重试次数固定为 0：所有重试都交给下一轮协调完成。

    Attributes:
        connections_per_node: 每个节点的连接数，默认 10，必须 >= 1
        request_timeout: 请求超时时间（秒），默认 30，必须 >= 0
        http_compress: 是否启用 HTTP 压缩，默认 False

    Raises:
        GatewayConfigError: 当参数不合法时抛出
    """

    connections_per_node: int = 10
    request_timeout: float = 30
    http_compress: bool = False

    def __post_init__(self) -> None:
        """校验连接参数合法性."""
        if self.connections_per_node < 1:
            raise GatewayConfigError(
                f"connections_per_node 必须 >= 1，当前值: {self.connections_per_node}"
            )
        if self.request_timeout < 0:
            raise GatewayConfigError(
                f"request_timeout 必须 >= 0，当前值: {self.request_timeout}"
            )


@dataclass
class GatewayResponse:
    """HTTP 响应模型.

    Attributes:
        status: HTTP 状态码
        body: 解码后的响应体（JSON 对象、列表或文本），无响应体时为 None
    """

    status: int
    body: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json_object(self) -> dict[str, Any]:
        """以 JSON 对象形式返回响应体，无响应体时返回空字典."""
        if self.body is None or self.body == "":
            return {}
        if not isinstance(self.body, dict):
            raise MalformedResponseError(
                f"响应体不是 JSON 对象: {type(self.body).__name__}"
            )
        return self.body
