"""ISM 策略管理模块 - 声明式索引生命周期策略的同步与默认策略管理.

主要组件:
    - ISMPolicyManager: 声明式策略的创建、更新、应用与清理
    - DefaultPolicyManager: 内置默认策略的同步与删除
    - build_ism_policy: 由声明式策略构造 ISM 策略文档
    - policy_needs_update: 判断策略文档是否变化
    - ISMPolicy / InlinePolicy / PolicyState: 策略文档模型
    - WriteOutcome / PolicyWriteResult: 写入结果

使用示例:
    from indexflow.ism import ISMPolicyManager

    manager = ISMPolicyManager(gateway)
    manager.reconcile(instance.opensearch.policies)
"""

from .defaults import (
    APPLICATION_DEFAULT_POLICY,
    SYSTEM_DEFAULT_POLICY,
    DefaultPolicyManager,
    load_default_policy,
)
from .exceptions import (
    DefaultPolicyError,
    PolicyAttachError,
    PolicyConflictError,
    PolicyError,
    PolicyFetchError,
    PolicyValidationError,
    PolicyWriteError,
)
from .manager import ISMPolicyManager, build_ism_policy, policy_needs_update
from .models import (
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

__all__ = [
    # 管理器
    "ISMPolicyManager",
    "DefaultPolicyManager",
    "build_ism_policy",
    "policy_needs_update",
    "load_default_policy",
    "SYSTEM_DEFAULT_POLICY",
    "APPLICATION_DEFAULT_POLICY",
    # 模型
    "MANAGED_POLICY_DESCRIPTION",
    "ISMPolicy",
    "InlinePolicy",
    "ISMTemplate",
    "PolicyList",
    "PolicyState",
    "PolicyTransition",
    "PolicyWriteResult",
    "WriteOutcome",
    # 异常
    "PolicyError",
    "PolicyValidationError",
    "PolicyFetchError",
    "PolicyConflictError",
    "PolicyWriteError",
    "PolicyAttachError",
    "DefaultPolicyError",
]
