"""集群 REST 网关异常定义模块."""

from ..exceptions import IndexFlowError


class GatewayError(IndexFlowError):
    """网关基础异常类.

    所有网关相关异常的基类，继承自 IndexFlowError。
    """

    pass


class GatewayConfigError(GatewayError):
    """网关配置校验异常.

    当网关配置参数不合法时抛出，例如地址为空、超时时间为负数等。
    """

    pass


class GatewayNotFoundError(GatewayError):
    """网关未找到异常.

    当请求的服务角色在工厂中没有对应配置时抛出。
    """

    pass


class GatewayTransportError(GatewayError):
    """传输层异常.

    网络或连接失败时抛出，对当前操作总是致命的，网关内部不做重试。
    """

    pass


class MalformedResponseError(GatewayError):
    """响应解析异常.

    当响应体无法按 JSON 解码，或结构与预期不符时抛出。
    """

    pass


class UnexpectedStatusError(GatewayError):
    """非预期状态码异常.

    Attributes:
        expected: 预期的 HTTP 状态码
        actual: 实际收到的 HTTP 状态码
    """

    def __init__(self, message: str, expected: int, actual: int) -> None:
        super().__init__(f"{message}（预期状态码 {expected}，实际 {actual}）")
        self.expected = expected
        self.actual = actual
