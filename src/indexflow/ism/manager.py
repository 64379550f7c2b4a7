"""ISM 策略管理核心模块."""

from __future__ import annotations

import logging

from ..gateway import (
    ClusterGateway,
    GatewayTransportError,
    UnexpectedStatusError,
    expect_status,
)
from ..models import DEFAULT_ROLLOVER_INDEX_AGE, IndexManagementPolicy, RolloverPolicy
from ..typing import JSONDict
from .exceptions import (
    PolicyAttachError,
    PolicyConflictError,
    PolicyFetchError,
    PolicyWriteError,
)
from .models import (
    DELETE_STATE,
    INGEST_STATE,
    MANAGED_POLICY_DESCRIPTION,
    InlinePolicy,
    ISMPolicy,
    ISMTemplate,
    PolicyList,
    PolicyState,
    PolicyTransition,
    PolicyWriteResult,
    WriteOutcome,
)

logger = logging.getLogger(__name__)

ISM_POLICIES_PATH = "/_plugins/_ism/policies"
ISM_ADD_PATH = "/_plugins/_ism/add"


def build_rollover_action(rollover: RolloverPolicy) -> JSONDict:
    """构造 rollover 动作参数，未声明的滚动年龄使用默认值 "1d"."""
    action: JSONDict = {}
    if rollover.min_doc_count is not None:
        action["min_doc_count"] = rollover.min_doc_count
    if rollover.min_size is not None:
        action["min_size"] = rollover.min_size
    action["min_index_age"] = rollover.min_index_age or DEFAULT_ROLLOVER_INDEX_AGE
    return action


def build_ism_policy(policy: IndexManagementPolicy) -> ISMPolicy:
    """根据声明式策略构造期望的 ISM 策略文档.

    生成 ``ingest`` 与 ``delete`` 两个状态：ingest 状态执行滚动，
    索引年龄达到 ``min_index_age`` 后迁移到 delete 状态删除索引。

    Examples:
        >>> desired = build_ism_policy(
        ...     IndexManagementPolicy(policy_name="p", index_pattern="*")
        ... )
        >>> desired.policy.default_state
        'ingest'
    """
    return ISMPolicy(
        policy=InlinePolicy(
            default_state=INGEST_STATE,
            description=MANAGED_POLICY_DESCRIPTION,
            ism_template=[ISMTemplate(index_patterns=[policy.index_pattern], priority=1)],
            states=[
                PolicyState(
                    name=INGEST_STATE,
                    actions=[{"rollover": build_rollover_action(policy.rollover)}],
                    transitions=[
                        PolicyTransition(
                            state_name=DELETE_STATE,
                            min_index_age=policy.effective_min_index_age,
                        )
                    ],
                ),
                PolicyState(
                    name=DELETE_STATE,
                    actions=[{"delete": {}}],
                ),
            ],
        )
    )


def policy_needs_update(desired: ISMPolicy, existing: ISMPolicy) -> bool:
    """判断策略文档是否发生变化.

    只比较初始状态、完整状态列表和 ISM 模板列表；ID、序列号等元数据不参与比较。
    """
    new_document = desired.policy
    old_document = existing.policy
    return (
        new_document.default_state != old_document.default_state
        or new_document.states != old_document.states
        or new_document.ism_template != old_document.ism_template
    )


class ISMPolicyManager:
    """ISM 策略管理器.

    负责声明式策略的创建、更新、应用到已有索引以及清理不再声明的受管策略。
    所有请求按顺序同步发出。

    Args:
        gateway: 搜索集群网关

    Example:
        >>> manager = ISMPolicyManager(gateway)
        >>> manager.reconcile([IndexManagementPolicy("logs", "logs-*")])
    """

    def __init__(self, gateway: ClusterGateway):
        if gateway is None:
            raise ValueError("gateway 不能为 None")
        self.gateway = gateway

    # ============================================================
    # 协调入口
    # ============================================================

    def reconcile(self, policies: list[IndexManagementPolicy]) -> None:
        """将集群端策略与声明的策略集合同步.

        按声明顺序逐个创建或更新策略，全部处理完成后再清理不再声明的受管策略。
        任一步骤失败都会中止本轮协调并抛出异常，下一轮协调从头重试。

        Raises:
            PolicyFetchError: 获取策略返回非预期状态码时抛出
            PolicyConflictError: 乐观并发前置条件不满足时抛出
            PolicyWriteError: 写入策略失败时抛出
            PolicyAttachError: 将策略应用到已有索引失败时抛出
        """
        for policy in policies:
            self.sync_policy(policy)
        self.cleanup_policies(policies)

    def sync_policy(self, policy: IndexManagementPolicy) -> PolicyWriteResult:
        """创建或更新单个声明式策略，有变化时应用到匹配的已有索引."""
        existing = self.get_policy(policy.policy_name)
        result = self.put_policy(policy.policy_name, build_ism_policy(policy), existing)
        updated = self.check_write_result(policy.policy_name, result)
        if updated is not None:
            self.add_policy_to_indices(
                policy.index_pattern, updated.id or policy.policy_name
            )
        return result

    # ============================================================
    # 策略读写
    # ============================================================

    def get_policy(self, policy_name: str) -> ISMPolicy:
        """按名称获取策略.

        Returns:
            ISMPolicy，status 为 200 表示存在，404 表示不存在

        Raises:
            PolicyFetchError: 状态码不是 200 或 404 时抛出
        """
        response = self.gateway.request("GET", f"{ISM_POLICIES_PATH}/{policy_name}")
        if response.status == 404:
            return ISMPolicy(status=404)
        if response.status != 200:
            raise PolicyFetchError(
                f"获取 ISM 策略 '{policy_name}' 失败，状态码: {response.status}"
            )
        return ISMPolicy.from_dict(response.json_object(), status=response.status)

    def put_policy(
        self,
        policy_name: str,
        desired: ISMPolicy,
        existing: ISMPolicy,
    ) -> PolicyWriteResult:
        """按需写入策略.

        策略已存在时携带 seq_no/primary_term 作为前置条件更新（预期 200），
        不存在时直接创建（预期 201）；文档没有变化时不发出任何请求。

        Raises:
            PolicyFetchError: existing 的状态码既不是 200 也不是 404 时抛出
            UnexpectedStatusError: 写入返回无法归类的状态码时抛出
        """
        if not policy_needs_update(desired, existing):
            logger.debug(f"ISM 策略 '{policy_name}' 没有变化，跳过写入")
            return PolicyWriteResult(WriteOutcome.UNCHANGED)

        path = f"{ISM_POLICIES_PATH}/{policy_name}"
        if existing.status == 200:
            params = {
                "if_seq_no": existing.seq_no,
                "if_primary_term": existing.primary_term,
            }
            expected, outcome = 200, WriteOutcome.UPDATED
        elif existing.status == 404:
            params = None
            expected, outcome = 201, WriteOutcome.CREATED
        else:
            raise PolicyFetchError(
                f"获取 ISM 策略 '{policy_name}' 时的状态码无效: {existing.status}"
            )

        try:
            response = self.gateway.request(
                "PUT", path, params=params, body=desired.to_request_body()
            )
        except GatewayTransportError as e:
            return PolicyWriteResult(WriteOutcome.TRANSPORT_FAILURE, error=e)

        if response.status == expected:
            written = ISMPolicy.from_dict(response.json_object(), status=response.status)
            return PolicyWriteResult(outcome, policy=written, status=response.status)
        if response.status == 409:
            return PolicyWriteResult(WriteOutcome.CONFLICT, status=response.status)
        if response.status == 404:
            return PolicyWriteResult(WriteOutcome.NOT_FOUND, status=response.status)
        raise UnexpectedStatusError(
            f"写入 ISM 策略 '{policy_name}' 失败", expected, response.status
        )

    def check_write_result(
        self, policy_name: str, result: PolicyWriteResult
    ) -> ISMPolicy | None:
        """解释写入结果.

        Returns:
            新建或更新后的策略；没有变化时返回 None

        Raises:
            PolicyConflictError: 结果为 CONFLICT 时抛出
            PolicyWriteError: 结果为 NOT_FOUND 或 TRANSPORT_FAILURE 时抛出
        """
        if result.outcome is WriteOutcome.UNCHANGED:
            return None
        if result.outcome is WriteOutcome.CREATED:
            logger.info(f"ISM 策略 '{policy_name}' 创建成功")
            return result.policy
        if result.outcome is WriteOutcome.UPDATED:
            logger.info(f"ISM 策略 '{policy_name}' 更新成功")
            return result.policy
        if result.outcome is WriteOutcome.CONFLICT:
            raise PolicyConflictError(
                f"更新 ISM 策略 '{policy_name}' 时版本冲突，策略已被其他写入修改"
            )
        if result.outcome is WriteOutcome.NOT_FOUND:
            raise PolicyWriteError(f"更新 ISM 策略 '{policy_name}' 时策略已不存在")
        logger.error(f"写入 ISM 策略 '{policy_name}' 时传输失败: {result.error}")
        raise PolicyWriteError(
            f"写入 ISM 策略 '{policy_name}' 失败: {result.error}"
        ) from result.error

    def add_policy_to_indices(self, index_pattern: str, policy_id: str) -> None:
        """将策略应用到当前匹配 index_pattern 的所有索引.

        Raises:
            PolicyAttachError: 状态码不是 200 或传输失败时抛出
        """
        try:
            response = self.gateway.request(
                "POST",
                f"{ISM_ADD_PATH}/{index_pattern}",
                body={"policy_id": policy_id},
            )
            expect_status(response, 200, f"将 ISM 策略 '{policy_id}' 应用到 '{index_pattern}'")
        except (GatewayTransportError, UnexpectedStatusError) as e:
            raise PolicyAttachError(
                f"将 ISM 策略 '{policy_id}' 应用到索引 '{index_pattern}' 失败: {e}"
            ) from e
        logger.info(f"ISM 策略 '{policy_id}' 已应用到索引 '{index_pattern}'")

    # ============================================================
    # 策略清理
    # ============================================================

    def list_policies(self) -> PolicyList:
        """获取集群上的全部策略，策略索引尚未创建（404）时返回空列表."""
        response = self.gateway.request("GET", ISM_POLICIES_PATH)
        if response.status == 404:
            return PolicyList()
        expect_status(response, 200, "查询 ISM 策略列表")
        return PolicyList.from_dict(response.json_object())

    def delete_policy(self, policy_name: str, ignore_missing: bool = False) -> bool:
        """删除策略.

        Args:
            policy_name: 策略名称
            ignore_missing: 为 True 时策略不存在不视为错误

        Returns:
            是否删除了策略
        """
        response = self.gateway.request("DELETE", f"{ISM_POLICIES_PATH}/{policy_name}")
        if response.status == 404 and ignore_missing:
            logger.debug(f"ISM 策略 '{policy_name}' 不存在，无需删除")
            return False
        expect_status(response, 200, f"删除 ISM 策略 '{policy_name}'")
        logger.info(f"ISM 策略 '{policy_name}' 删除成功")
        return True

    def cleanup_policies(self, policies: list[IndexManagementPolicy]) -> list[str]:
        """删除带受管标记但已不在声明集合中的策略，非受管策略永远不会被删除.

        Returns:
            被删除的策略 ID 列表
        """
        expected = {policy.policy_name for policy in policies}
        deleted: list[str] = []
        for remote in self.list_policies().policies:
            if remote.policy.is_managed and remote.id and remote.id not in expected:
                self.delete_policy(remote.id)
                deleted.append(remote.id)
        return deleted
