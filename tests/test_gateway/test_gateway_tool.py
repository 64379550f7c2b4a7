"""集群 REST 网关单元测试.

覆盖 TransportGateway 的客户端构建、请求发送与异常转换，
GatewayFactory 的缓存与生命周期管理，以及 expect_status。
"""

from unittest.mock import MagicMock, patch

import pytest
from elastic_transport import ConnectionError as TransportConnectionError
from elastic_transport import SerializationError

from indexflow.gateway.exceptions import (
    GatewayConfigError,
    GatewayNotFoundError,
    GatewayTransportError,
    MalformedResponseError,
    UnexpectedStatusError,
)
from indexflow.gateway.models import (
    ConnectionConfig,
    GatewayConfig,
    GatewayResponse,
    ServiceRole,
)
from indexflow.gateway.tool import GatewayFactory, TransportGateway, expect_status

ES_PATCH_PATH = "indexflow.gateway.tool.Elasticsearch"


# ============================================================
# 辅助 fixtures
# ============================================================


@pytest.fixture
def opensearch_config() -> GatewayConfig:
    """创建 OpenSearch 网关配置."""
    return GatewayConfig(endpoint="http://opensearch:9200")


@pytest.fixture
def dashboards_config() -> GatewayConfig:
    """创建 Dashboards 网关配置."""
    return GatewayConfig(endpoint="http://osd:5601/", role=ServiceRole.DASHBOARDS)


def _transport_response(status: int, body) -> MagicMock:
    response = MagicMock()
    response.meta.status = status
    response.body = body
    return response


# ============================================================
# TransportGateway 测试
# ============================================================


class TestTransportGatewayClient:
    """客户端构建测试."""

    @patch(ES_PATCH_PATH)
    def test_retries_disabled(self, mock_es, opensearch_config) -> None:
        """测试传输层重试被关闭."""
        TransportGateway(opensearch_config)
        kwargs = mock_es.call_args[1]
        assert kwargs["hosts"] == ["http://opensearch:9200"]
        assert kwargs["max_retries"] == 0
        assert kwargs["retry_on_status"] == ()
        assert kwargs["retry_on_timeout"] is False

    @patch(ES_PATCH_PATH)
    def test_basic_auth(self, mock_es) -> None:
        """测试 Basic Auth 认证."""
        config = GatewayConfig(
            endpoint="https://opensearch:9200",
            username="admin",
            password="secret",
            verify_certs=False,
        )
        TransportGateway(config)
        kwargs = mock_es.call_args[1]
        assert kwargs["basic_auth"] == ("admin", "secret")
        assert kwargs["verify_certs"] is False

    @patch(ES_PATCH_PATH)
    def test_connection_config_applied(self, mock_es, opensearch_config) -> None:
        """测试连接参数传入客户端."""
        TransportGateway(opensearch_config, ConnectionConfig(request_timeout=5, http_compress=True))
        kwargs = mock_es.call_args[1]
        assert kwargs["request_timeout"] == 5
        assert kwargs["http_compress"] is True


class TestTransportGatewayRequest:
    """请求发送测试."""

    @patch(ES_PATCH_PATH)
    def test_get_returns_status_and_body(self, mock_es, opensearch_config) -> None:
        """测试 GET 请求返回状态码与响应体."""
        transport = mock_es.return_value.transport
        transport.perform_request.return_value = _transport_response(200, {"status": "green"})

        response = TransportGateway(opensearch_config).request("GET", "/_cluster/health")

        assert response == GatewayResponse(status=200, body={"status": "green"})
        args, kwargs = transport.perform_request.call_args
        assert args == ("GET", "/_cluster/health")
        assert kwargs["body"] is None
        assert "content-type" not in kwargs["headers"]

    @patch(ES_PATCH_PATH)
    def test_write_sets_content_type_and_params(self, mock_es, opensearch_config) -> None:
        """测试写请求带 content-type 且查询参数拼接到路径."""
        transport = mock_es.return_value.transport
        transport.perform_request.return_value = _transport_response(201, {"_id": "p"})

        TransportGateway(opensearch_config).request(
            "PUT",
            "_plugins/_ism/policies/p",
            params={"if_seq_no": 3, "if_primary_term": 1},
            body={"policy": {}},
            headers={"osd-xsrf": "true"},
        )

        args, kwargs = transport.perform_request.call_args
        assert args == ("PUT", "/_plugins/_ism/policies/p?if_seq_no=3&if_primary_term=1")
        assert kwargs["headers"]["content-type"] == "application/json"
        assert kwargs["headers"]["osd-xsrf"] == "true"

    @patch(ES_PATCH_PATH)
    def test_non_2xx_does_not_raise(self, mock_es, opensearch_config) -> None:
        """测试非 2xx 状态码不抛出异常."""
        transport = mock_es.return_value.transport
        transport.perform_request.return_value = _transport_response(404, {"error": "x"})

        response = TransportGateway(opensearch_config).request("GET", "/_plugins/_ism/policies/p")

        assert response.status == 404
        assert not response.ok

    @patch(ES_PATCH_PATH)
    def test_transport_error_translated(self, mock_es, opensearch_config) -> None:
        """测试传输层异常转换为 GatewayTransportError."""
        transport = mock_es.return_value.transport
        transport.perform_request.side_effect = TransportConnectionError("connection refused")

        with pytest.raises(GatewayTransportError, match="opensearch:9200"):
            TransportGateway(opensearch_config).request("GET", "/_cluster/health")

    @patch(ES_PATCH_PATH)
    def test_serialization_error_translated(self, mock_es, opensearch_config) -> None:
        """测试响应解码失败转换为 MalformedResponseError."""
        transport = mock_es.return_value.transport
        transport.perform_request.side_effect = SerializationError("bad json")

        with pytest.raises(MalformedResponseError):
            TransportGateway(opensearch_config).request("GET", "/_cluster/health")


# ============================================================
# expect_status 测试
# ============================================================


class TestExpectStatus:
    """expect_status 测试."""

    def test_matching_status_returns_response(self) -> None:
        """测试状态码相符时返回原响应."""
        response = GatewayResponse(status=201, body={})
        assert expect_status(response, 201, "创建策略") is response

    def test_mismatch_raises_with_codes(self) -> None:
        """测试状态码不符时异常携带预期与实际状态码."""
        with pytest.raises(UnexpectedStatusError) as exc_info:
            expect_status(GatewayResponse(status=500), 200, "创建策略")
        assert exc_info.value.expected == 200
        assert exc_info.value.actual == 500
        assert "创建策略失败" in str(exc_info.value)


# ============================================================
# GatewayFactory 测试
# ============================================================


class TestGatewayFactory:
    """GatewayFactory 测试."""

    def test_empty_configs_raises_error(self) -> None:
        """测试空配置列表抛出 GatewayConfigError."""
        with pytest.raises(GatewayConfigError, match="configs 不能为空"):
            GatewayFactory([])

    @patch(ES_PATCH_PATH)
    def test_gateway_cached_per_role(self, mock_es, opensearch_config) -> None:
        """测试同一角色的网关只创建一次."""
        factory = GatewayFactory([opensearch_config])
        first = factory.get_gateway(ServiceRole.OPENSEARCH)
        second = factory.get_gateway(ServiceRole.OPENSEARCH)
        assert first is second
        mock_es.assert_called_once()

    @patch(ES_PATCH_PATH)
    def test_missing_role_raises(self, mock_es, opensearch_config) -> None:
        """测试未配置的角色抛出 GatewayNotFoundError."""
        factory = GatewayFactory([opensearch_config])
        assert not factory.has_role(ServiceRole.DASHBOARDS)
        with pytest.raises(GatewayNotFoundError):
            factory.get_gateway(ServiceRole.DASHBOARDS)

    @patch(ES_PATCH_PATH)
    def test_context_manager_closes_gateways(
        self, mock_es, opensearch_config, dashboards_config
    ) -> None:
        """测试上下文管理器退出时关闭所有网关."""
        with GatewayFactory([opensearch_config, dashboards_config]) as factory:
            factory.get_gateway(ServiceRole.OPENSEARCH)
            dashboards = factory.get_gateway(ServiceRole.DASHBOARDS)
            assert dashboards.endpoint == "http://osd:5601"
        assert mock_es.return_value.close.call_count == 2
        assert factory._gateways == {}
