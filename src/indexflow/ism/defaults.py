"""内置默认 ISM 策略管理模块.

系统默认策略 ``vz-system`` 与应用默认策略 ``vz-application`` 来自随包分发的
JSON 文件，而不是实例声明。同步时不做垃圾回收。
"""

from __future__ import annotations

import json
import logging
from importlib import resources

from ..gateway import ClusterGateway, expect_status
from .exceptions import DefaultPolicyError, PolicyValidationError
from .manager import ISMPolicyManager
from .models import ISMPolicy

logger = logging.getLogger(__name__)

SYSTEM_DEFAULT_POLICY = "vz-system"
APPLICATION_DEFAULT_POLICY = "vz-application"

# 默认策略名称 -> 策略文件名
DEFAULT_POLICY_FILES: dict[str, str] = {
    SYSTEM_DEFAULT_POLICY: "vz-system-default-ISM-policy.json",
    APPLICATION_DEFAULT_POLICY: "vz-application-default-ISM-policy.json",
}

# 默认策略名称 -> 其管理的数据流模式
DEFAULT_POLICY_DATA_STREAMS: dict[str, str] = {
    SYSTEM_DEFAULT_POLICY: "verrazzano-system",
    APPLICATION_DEFAULT_POLICY: "verrazzano-application-*",
}

ISM_EXPLAIN_PATH = "/_plugins/_ism/explain"
ISM_REMOVE_PATH = "/_plugins/_ism/remove"


def load_default_policy(policy_name: str) -> ISMPolicy:
    """加载随包分发的默认策略.

    Raises:
        DefaultPolicyError: 策略名称未知、文件无法解析或缺少 ISM 模板时抛出
    """
    file_name = DEFAULT_POLICY_FILES.get(policy_name)
    if file_name is None:
        raise DefaultPolicyError(f"未知的默认 ISM 策略: {policy_name}")
    try:
        content = (
            resources.files("indexflow.ism")
            .joinpath("default_policies")
            .joinpath(file_name)
            .read_text(encoding="utf-8")
        )
        policy = ISMPolicy.from_dict(json.loads(content))
    except (OSError, ValueError, PolicyValidationError) as e:
        raise DefaultPolicyError(f"加载默认 ISM 策略文件 '{file_name}' 失败: {e}") from e
    if not policy.policy.ism_template:
        raise DefaultPolicyError(f"默认 ISM 策略文件 '{file_name}' 缺少 ism_template")
    policy.id = policy_name
    return policy


def patterns_overlap(existing: list[str], wanted: list[str]) -> bool:
    """判断两组索引模式是否存在相同项."""
    return bool(set(existing) & set(wanted))


class DefaultPolicyManager:
    """默认 ISM 策略管理器.

    Args:
        gateway: 搜索集群网关
        policy_manager: 复用其写入路径的策略管理器，默认基于同一网关创建
    """

    def __init__(
        self,
        gateway: ClusterGateway,
        policy_manager: ISMPolicyManager | None = None,
    ):
        self.gateway = gateway
        self.policy_manager = policy_manager or ISMPolicyManager(gateway)

    def sync(self) -> list[ISMPolicy]:
        """创建或更新全部默认策略.

        Returns:
            各默认策略同步后的文档
        """
        synced = []
        for policy_name in DEFAULT_POLICY_FILES:
            synced.append(self.sync_policy(policy_name))
        return synced

    def sync_policy(self, policy_name: str) -> ISMPolicy:
        """同步单个默认策略.

        已存在同优先级且索引模式有交集的其他策略时视为已被覆盖，跳过写入；
        若匹配到的正是该默认策略本身，则照常比较并按需更新。
        """
        desired = load_default_policy(policy_name)
        if self.equivalent_policy_exists(desired):
            return desired

        existing = self.policy_manager.get_policy(policy_name)
        patterns = desired.policy.ism_template[0].index_patterns
        logger.debug(f"同步索引模式 {patterns} 的默认 ISM 策略 '{policy_name}'")
        result = self.policy_manager.put_policy(policy_name, desired, existing)
        written = self.policy_manager.check_write_result(policy_name, result)
        return written or desired

    def equivalent_policy_exists(self, desired: ISMPolicy) -> bool:
        """检查集群上是否已有覆盖该默认策略的其他策略."""
        template = desired.policy.ism_template[0]
        for remote in self.policy_manager.list_policies().policies:
            if not remote.policy.ism_template:
                continue
            remote_template = remote.policy.ism_template[0]
            if remote_template.priority != template.priority:
                continue
            if not patterns_overlap(remote_template.index_patterns, template.index_patterns):
                continue
            if remote.id == desired.id:
                logger.info(f"默认 ISM 策略 '{desired.id}' 已存在，检查是否需要更新")
                return False
            logger.debug(
                f"索引模式 {template.index_patterns} 已由 ISM 策略 '{remote.id}' 管理，"
                f"跳过默认策略 '{desired.id}'"
            )
            return True
        return False

    # ============================================================
    # 默认策略删除
    # ============================================================

    def delete(self) -> None:
        """删除全部默认策略，并将其从对应数据流的当前写索引上移除."""
        for policy_name, pattern in DEFAULT_POLICY_DATA_STREAMS.items():
            self.policy_manager.delete_policy(policy_name, ignore_missing=True)
            for index in self.get_write_indices(pattern):
                if self.index_managed_by(index, policy_name):
                    self.remove_policy_from_index(index)

    def get_write_indices(self, data_stream_pattern: str) -> list[str]:
        """获取匹配模式的各数据流的当前写索引（最后一个后备索引），数据流不存在时返回空列表."""
        response = self.gateway.request("GET", f"/_data_stream/{data_stream_pattern}")
        if response.status == 404:
            return []
        expect_status(response, 200, f"查询数据流 '{data_stream_pattern}'")
        write_indices = []
        for data_stream in response.json_object().get("data_streams") or []:
            backing_indices = data_stream.get("indices") or []
            if backing_indices:
                write_indices.append(backing_indices[-1].get("index_name", ""))
        return [index for index in write_indices if index]

    def index_managed_by(self, index: str, policy_name: str) -> bool:
        """判断索引当前是否由指定策略管理."""
        response = self.gateway.request("GET", f"{ISM_EXPLAIN_PATH}/{index}")
        expect_status(response, 200, f"查询索引 '{index}' 的 ISM 状态")
        entry = response.json_object().get(index) or {}
        if not isinstance(entry, dict):
            return False
        policy_id = entry.get("index.plugins.index_state_management.policy_id") or entry.get(
            "policy_id"
        )
        return policy_id == policy_name

    def remove_policy_from_index(self, index: str) -> None:
        response = self.gateway.request("POST", f"{ISM_REMOVE_PATH}/{index}")
        expect_status(response, 200, f"移除索引 '{index}' 的 ISM 策略")
        logger.info(f"已移除索引 '{index}' 的默认 ISM 策略")
