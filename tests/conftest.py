"""共享测试 fixtures."""

from collections.abc import Callable
from unittest.mock import MagicMock

import pytest

from indexflow.gateway import ClusterGateway, GatewayResponse

# 路由表: (method, path) -> 响应 / 异常 / 按顺序返回的响应列表
Routes = dict[tuple[str, str], object]


def _build_route_gateway(routes: Routes) -> MagicMock:
    pending = {key: list(value) if isinstance(value, list) else value for key, value in routes.items()}

    def request(method, path, *, params=None, body=None, headers=None):
        key = (method, path)
        if key not in pending:
            raise AssertionError(f"未预期的请求: {method} {path}")
        answer = pending[key]
        if isinstance(answer, list):
            # 列表按顺序消费，最后一个响应重复返回
            answer = answer.pop(0) if len(answer) > 1 else answer[0]
        if isinstance(answer, Exception):
            raise answer
        return answer

    gateway = MagicMock(spec=ClusterGateway)
    gateway.endpoint = "http://opensearch:9200"
    gateway.request.side_effect = request
    return gateway


@pytest.fixture
def route_gateway() -> Callable[[Routes], MagicMock]:
    """返回按 (method, path) 应答的模拟网关构造函数."""
    return _build_route_gateway


@pytest.fixture
def ok() -> Callable[..., GatewayResponse]:
    """返回构造 GatewayResponse 的快捷函数."""

    def build(status: int = 200, body: object = None) -> GatewayResponse:
        return GatewayResponse(status=status, body=body)

    return build


def requests_of(gateway: MagicMock, method: str | None = None) -> list[tuple[str, str, dict]]:
    """按调用顺序列出网关收到的请求 (method, path, kwargs)."""
    result = []
    for call in gateway.request.call_args_list:
        call_method, call_path = call.args
        if method is None or call_method == method:
            result.append((call_method, call_path, call.kwargs))
    return result


@pytest.fixture
def sent() -> Callable[..., list[tuple[str, str, dict]]]:
    """返回列出网关已收到请求的函数."""
    return requests_of
