"""数据流迁移引擎模块.

将按命名空间命名的旧索引重建到数据流并删除原索引：
1. 等待数据流索引模板创建
2. 列出旧索引并分类为系统索引与应用索引
3. 按匹配策略计算保留时间窗口，逐个重建索引并删除原索引（系统索引先于应用索引）
4. 可视化服务启用时改写已保存的索引模式

整个任务要么全部成功，要么在第一个致命错误处中止；重建使用 ``op_type=create``，
因此重复执行是安全的。
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Callable

from ..config import ReindexConfig
from ..gateway import ClusterGateway, MalformedResponseError, expect_status
from ..models import IndexManagementPolicy, MonitoringInstance
from .exceptions import (
    IndexDeleteError,
    IndexListError,
    ReindexError,
    TemplateWaitTimeoutError,
)
from .models import IndexClass, MigrationReport, ReindexPayload
from .utils import (
    data_stream_for,
    get_application_indices,
    get_retention_seconds,
    get_system_indices,
)

if TYPE_CHECKING:
    from ..dashboards import DashboardsPatternRewriter

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_POLL_INTERVAL = 5.0
DEFAULT_TEMPLATE_WAIT_TIMEOUT = 120.0


class DataStreamMigrationEngine:
    """数据流迁移引擎.

    Args:
        gateway: 搜索集群网关
        config: 迁移配置，默认从环境变量读取
        rewriter: 索引模式改写器，为 None 时跳过改写
        template_poll_interval: 轮询索引模板的间隔（秒）
        template_wait_timeout: 等待索引模板的总超时（秒）
        sleep: 等待函数，便于测试替换
        clock: 单调时钟函数，便于测试替换
    """

    def __init__(
        self,
        gateway: ClusterGateway,
        config: ReindexConfig | None = None,
        rewriter: DashboardsPatternRewriter | None = None,
        template_poll_interval: float = DEFAULT_TEMPLATE_POLL_INTERVAL,
        template_wait_timeout: float = DEFAULT_TEMPLATE_WAIT_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        if template_poll_interval < 0 or template_wait_timeout < 0:
            raise ValueError("template_poll_interval 与 template_wait_timeout 不能为负数")
        self.gateway = gateway
        self.config = config or ReindexConfig.from_env()
        self.rewriter = rewriter
        self.template_poll_interval = template_poll_interval
        self.template_wait_timeout = template_wait_timeout
        self._sleep = sleep
        self._clock = clock

    def migrate(self, instance: MonitoringInstance) -> MigrationReport:
        """执行一次完整的迁移任务.

        Returns:
            MigrationReport 迁移结果汇总

        Raises:
            TemplateWaitTimeoutError: 等待索引模板超时时抛出
            IndexListError: 获取索引列表失败时抛出
            RetentionParseError: 保留时间无法解析时抛出
            ReindexError: 重建索引失败时抛出
            IndexDeleteError: 删除旧索引失败时抛出
            DashboardsError: 改写索引模式失败时抛出
        """
        self.wait_for_template()

        logger.debug("检查需要迁移到数据流的旧索引")
        indices = self.list_indices()
        system_indices = get_system_indices(indices, self.config)
        app_indices = get_application_indices(indices, self.config)
        report = MigrationReport(system_indices, app_indices)

        if report.migrated_count:
            logger.info("开始将旧索引迁移到数据流")

        policies = instance.opensearch.policies
        self.reindex_and_delete(policies, system_indices, IndexClass.SYSTEM)
        self.reindex_and_delete(policies, app_indices, IndexClass.APPLICATION)

        if report.migrated_count:
            logger.info(f"旧索引迁移完成，共迁移 {report.migrated_count} 个索引")
        else:
            logger.debug("没有需要迁移的旧索引")

        if instance.dashboards.enabled and self.rewriter is not None:
            self.rewriter.rewrite_patterns()
            report.patterns_rewritten = True
        return report

    # ============================================================
    # 前置条件
    # ============================================================

    def template_exists(self, template_name: str) -> bool:
        """检查索引模板是否存在."""
        response = self.gateway.request("GET", f"/_index_template/{template_name}")
        if response.status == 404:
            return False
        expect_status(response, 200, f"查询索引模板 '{template_name}'")
        return True

    def wait_for_template(self) -> None:
        """按固定间隔轮询，直到数据流索引模板存在.

        Raises:
            TemplateWaitTimeoutError: 超过 template_wait_timeout 仍未创建时抛出
        """
        template_name = self.config.data_stream_template
        deadline = self._clock() + self.template_wait_timeout
        while not self.template_exists(template_name):
            if self._clock() >= deadline:
                raise TemplateWaitTimeoutError(
                    f"等待索引模板 '{template_name}' 超时（{self.template_wait_timeout} 秒）"
                )
            logger.debug(f"索引模板 '{template_name}' 尚未创建，{self.template_poll_interval} 秒后重试")
            self._sleep(self.template_poll_interval)

    def data_stream_exists(self, data_stream: str) -> bool:
        """检查数据流是否存在."""
        response = self.gateway.request("GET", f"/_data_stream/{data_stream}")
        if response.status == 404:
            return False
        expect_status(response, 200, f"查询数据流 '{data_stream}'")
        return True

    # ============================================================
    # 迁移步骤
    # ============================================================

    def list_indices(self) -> list[str]:
        """列出所有带共享前缀的索引名称.

        Raises:
            IndexListError: 状态码不是 200 时抛出
            MalformedResponseError: 响应不是索引列表时抛出
        """
        response = self.gateway.request(
            "GET",
            f"/_cat/indices/{self.config.index_prefix}-*",
            params={"format": "json", "h": "index"},
        )
        if response.status != 200:
            raise IndexListError(f"获取索引列表失败，状态码: {response.status}")
        if not isinstance(response.body, list):
            raise MalformedResponseError(
                f"索引列表响应不是数组: {type(response.body).__name__}"
            )
        indices = sorted(
            row["index"] for row in response.body if isinstance(row, dict) and row.get("index")
        )
        logger.debug(f"找到索引: {indices}")
        return indices

    def reindex_and_delete(
        self,
        policies: list[IndexManagementPolicy],
        indices: list[str],
        index_class: IndexClass,
    ) -> None:
        """逐个重建索引到数据流，成功后删除原索引."""
        for index in indices:
            data_stream = data_stream_for(index, index_class, self.config)
            retention_seconds = get_retention_seconds(policies, data_stream)
            logger.info(f"将索引 '{index}' 的数据重建到数据流 '{data_stream}'")
            self.reindex(ReindexPayload(index, data_stream, retention_seconds))
            logger.info(f"清理索引 '{index}'")
            self.delete_index(index)
            logger.info(f"索引 '{index}' 清理完成")

    def reindex(self, payload: ReindexPayload) -> None:
        """
        Raises:
            ReindexError: 状态码不是 200 时抛出
        """
        response = self.gateway.request("POST", "/_reindex", body=payload.to_dict())
        if response.status != 200:
            logger.error(f"从 '{payload.source}' 重建到 '{payload.dest}' 失败")
            raise ReindexError(
                f"从 '{payload.source}' 重建到 '{payload.dest}' 失败，"
                f"状态码: {response.status}，响应: {response.body}"
            )
        logger.info(f"从 '{payload.source}' 重建到 '{payload.dest}' 完成: {response.body}")

    def delete_index(self, index: str) -> None:
        response = self.gateway.request("DELETE", f"/{index}")
        logger.debug(f"删除索引响应: {response.body}")
        if response.status != 200:
            raise IndexDeleteError(
                f"删除索引 '{index}' 失败，状态码: {response.status}，响应: {response.body}"
            )
