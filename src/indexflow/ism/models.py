"""ISM 策略数据模型定义模块.

集群端 ISM 策略文档的类型化表示，以及策略写入结果：
- ISMTemplate / PolicyTransition / PolicyState / InlinePolicy: 策略文档结构
- ISMPolicy: 带并发控制元数据的远端策略
- PolicyList: 策略列表响应
- WriteOutcome / PolicyWriteResult: 写入结果
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ..typing import ActionList, JSONDict
from .exceptions import PolicyValidationError

# 标记由本系统管理的策略的描述值
MANAGED_POLICY_DESCRIPTION = "__vmi-managed__"

INGEST_STATE = "ingest"
DELETE_STATE = "delete"

# 服务端为每个动作补充的默认字段，读取策略时去除
SERVER_RETRY_KEY = "retry"
SERVER_COPY_ALIAS_KEY = "copy_alias"


def normalize_action(action: JSONDict) -> JSONDict:
    """去除服务端补充的默认字段，使读取到的动作可以与构造的动作直接比较.

    Examples:
        >>> normalize_action({
        ...     "retry": {"count": 3, "backoff": "exponential", "delay": "1m"},
        ...     "rollover": {"min_index_age": "1d", "copy_alias": False},
        ... })
        {'rollover': {'min_index_age': '1d'}}
    """
    normalized: JSONDict = {}
    for name, params in action.items():
        if name == SERVER_RETRY_KEY:
            continue
        if isinstance(params, dict) and params.get(SERVER_COPY_ALIAS_KEY) is False:
            params = {k: v for k, v in params.items() if k != SERVER_COPY_ALIAS_KEY}
        normalized[name] = params
    return normalized


@dataclass
class ISMTemplate:
    """ISM 模板，决定新建索引自动套用哪个策略.

    Attributes:
        index_patterns: 索引通配模式列表
        priority: 优先级，多个模板同时匹配时取较高者
    """

    index_patterns: list[str] = field(default_factory=list)
    priority: int = 0

    @classmethod
    def from_dict(cls, data: JSONDict) -> ISMTemplate:
        return cls(
            index_patterns=list(data.get("index_patterns") or []),
            priority=int(data.get("priority") or 0),
        )

    def to_dict(self) -> JSONDict:
        return {"index_patterns": list(self.index_patterns), "priority": self.priority}


@dataclass
class PolicyTransition:
    """状态迁移.

    Attributes:
        state_name: 目标状态名称
        min_index_age: 迁移条件，索引最小年龄
    """

    state_name: str
    min_index_age: str = ""

    @classmethod
    def from_dict(cls, data: JSONDict) -> PolicyTransition:
        conditions = data.get("conditions") or {}
        return cls(
            state_name=data.get("state_name", ""),
            min_index_age=conditions.get("min_index_age", ""),
        )

    def to_dict(self) -> JSONDict:
        return {
            "state_name": self.state_name,
            "conditions": {"min_index_age": self.min_index_age},
        }


@dataclass
class PolicyState:
    """策略状态.

    Attributes:
        name: 状态名称
        actions: 动作列表，每个动作是单键字典，如 ``{"delete": {}}``
        transitions: 状态迁移列表
    """

    name: str
    actions: ActionList = field(default_factory=list)
    transitions: list[PolicyTransition] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: JSONDict) -> PolicyState:
        return cls(
            name=data.get("name", ""),
            actions=[normalize_action(item) for item in data.get("actions") or []],
            transitions=[
                PolicyTransition.from_dict(item) for item in data.get("transitions") or []
            ],
        )

    def to_dict(self) -> JSONDict:
        result: JSONDict = {"name": self.name}
        if self.actions:
            result["actions"] = self.actions
        if self.transitions:
            result["transitions"] = [t.to_dict() for t in self.transitions]
        return result


@dataclass
class InlinePolicy:
    """策略文档主体.

    Attributes:
        default_state: 索引初始状态
        description: 策略描述，由本系统管理的策略为 ``__vmi-managed__``
        states: 状态列表
        ism_template: ISM 模板列表
    """

    default_state: str = ""
    description: str = ""
    states: list[PolicyState] = field(default_factory=list)
    ism_template: list[ISMTemplate] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: JSONDict) -> InlinePolicy:
        return cls(
            default_state=data.get("default_state", ""),
            description=data.get("description", ""),
            states=[PolicyState.from_dict(item) for item in data.get("states") or []],
            ism_template=[
                ISMTemplate.from_dict(item) for item in data.get("ism_template") or []
            ],
        )

    def to_dict(self) -> JSONDict:
        return {
            "default_state": self.default_state,
            "description": self.description,
            "states": [state.to_dict() for state in self.states],
            "ism_template": [template.to_dict() for template in self.ism_template],
        }

    @property
    def is_managed(self) -> bool:
        return self.description == MANAGED_POLICY_DESCRIPTION


@dataclass
class ISMPolicy:
    """集群端 ISM 策略.

    Attributes:
        policy: 策略文档主体
        id: 策略 ID
        seq_no: 序列号，用于乐观并发更新
        primary_term: 主分片任期，用于乐观并发更新
        status: 获取策略时观察到的 HTTP 状态码（200 存在，404 不存在）
    """

    policy: InlinePolicy = field(default_factory=InlinePolicy)
    id: str | None = None
    seq_no: int | None = None
    primary_term: int | None = None
    status: int | None = None

    @classmethod
    def from_dict(cls, data: JSONDict, status: int | None = None) -> ISMPolicy:
        """从接口响应解析策略，忽略 last_updated_time 等服务端附加字段.

        Raises:
            PolicyValidationError: 当 policy 字段不是 JSON 对象时抛出
        """
        policy_data = data.get("policy") or {}
        if not isinstance(policy_data, dict):
            raise PolicyValidationError(
                f"策略文档的 policy 字段必须是对象，当前类型: {type(policy_data).__name__}"
            )
        return cls(
            policy=InlinePolicy.from_dict(policy_data),
            id=data.get("_id"),
            seq_no=data.get("_seq_no"),
            primary_term=data.get("_primary_term"),
            status=status,
        )

    def to_request_body(self) -> JSONDict:
        """构造写入接口的请求体."""
        return {"policy": self.policy.to_dict()}

    @property
    def exists(self) -> bool:
        return self.status == 200


@dataclass
class PolicyList:
    """策略列表响应.

    Attributes:
        policies: 策略列表
        total_policies: 服务端报告的策略总数
    """

    policies: list[ISMPolicy] = field(default_factory=list)
    total_policies: int = 0

    @classmethod
    def from_dict(cls, data: JSONDict) -> PolicyList:
        policies = [ISMPolicy.from_dict(item) for item in data.get("policies") or []]
        return cls(
            policies=policies,
            total_policies=int(data.get("total_policies", len(policies))),
        )


class WriteOutcome(Enum):
    """策略写入结果枚举."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    TRANSPORT_FAILURE = "transport_failure"


@dataclass
class PolicyWriteResult:
    """策略写入结果.

    Attributes:
        outcome: 写入结果类型
        policy: 写入后服务端返回的策略（仅 CREATED/UPDATED 时存在）
        status: 写入请求的 HTTP 状态码
        error: 传输层异常（仅 TRANSPORT_FAILURE 时存在）
    """

    outcome: WriteOutcome
    policy: ISMPolicy | None = None
    status: int | None = None
    error: Exception | None = None

    @property
    def changed(self) -> bool:
        return self.outcome in (WriteOutcome.CREATED, WriteOutcome.UPDATED)
