"""迁移监视器模块.

以 Idle/Running 两态状态机驱动后台迁移任务，每次协调调用都立即返回：

- Idle: 派发迁移任务并切换到 Running
- Running: 非阻塞检查任务的 Future；未完成则保持 Running，完成后回到 Idle，
  若任务失败则把异常抛给调用方（失败不会粘滞，下次调用重新派发）

监视器不做内部加锁，只应由单个协调循环调用。
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import TYPE_CHECKING

from ..models import MonitoringInstance
from .engine import DataStreamMigrationEngine
from .models import MigrationReport, MigrationState

if TYPE_CHECKING:
    from ..health import ClusterHealthGate

logger = logging.getLogger(__name__)


class MigrationMonitor:
    """迁移监视器.

    Args:
        engine: 数据流迁移引擎
        health_gate: 集群健康检查，用于判断集群是否就绪
        executor: 执行迁移任务的执行器，默认单线程线程池

    Example:
        >>> monitor = MigrationMonitor(engine, health_gate)
        >>> monitor.reconcile(instance)  # 派发
        >>> monitor.reconcile(instance)  # 观察进度或结果
    """

    def __init__(
        self,
        engine: DataStreamMigrationEngine,
        health_gate: ClusterHealthGate,
        executor: Executor | None = None,
    ):
        self.engine = engine
        self.health_gate = health_gate
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="indexflow-migration"
        )
        self._state = MigrationState.IDLE
        self._future: Future[MigrationReport] | None = None
        self.last_report: MigrationReport | None = None

    @property
    def state(self) -> MigrationState:
        return self._state

    def reconcile(self, instance: MonitoringInstance) -> None:
        """推进一次迁移状态机.

        Raises:
            IndexFlowError: 上一次派发的迁移任务失败时，抛出其异常
        """
        if not instance.opensearch.enabled:
            return
        if not self.health_gate.is_ready(instance):
            logger.debug("OpenSearch 尚未就绪，跳过旧索引迁移")
            return

        if self._state is MigrationState.IDLE:
            self._future = self._executor.submit(self.engine.migrate, instance)
            self._state = MigrationState.RUNNING
            logger.debug("已派发旧索引迁移任务")
            return

        future = self._future
        if future is None or not future.done():
            logger.info("旧索引迁移进行中")
            return

        self._state = MigrationState.IDLE
        self._future = None
        error = future.exception()
        if error is not None:
            logger.error(f"旧索引迁移失败: {error}")
            raise error
        self.last_report = future.result()
        logger.debug("旧索引迁移任务已完成")

    def shutdown(self, wait: bool = True) -> None:
        """关闭自行创建的执行器."""
        if self._owns_executor:
            self._executor.shutdown(wait=wait)
