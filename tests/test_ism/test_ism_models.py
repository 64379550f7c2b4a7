"""ISM 策略数据模型单元测试."""

import pytest

from indexflow.ism.exceptions import PolicyValidationError
from indexflow.ism.models import (
    MANAGED_POLICY_DESCRIPTION,
    ISMPolicy,
    ISMTemplate,
    PolicyList,
    PolicyState,
    PolicyTransition,
    PolicyWriteResult,
    WriteOutcome,
    normalize_action,
)


class TestISMPolicyParsing:
    """ISMPolicy 解析测试."""

    def test_from_dict_reads_metadata(self) -> None:
        """测试解析 ID 与并发控制元数据."""
        policy = ISMPolicy.from_dict(
            {
                "_id": "logs",
                "_seq_no": 12,
                "_primary_term": 3,
                "policy": {
                    "policy_id": "logs",
                    "description": MANAGED_POLICY_DESCRIPTION,
                    "last_updated_time": 1690000000000,
                    "default_state": "ingest",
                    "states": [],
                    "ism_template": [{"index_patterns": ["logs-*"], "priority": 1}],
                },
            },
            status=200,
        )
        assert policy.id == "logs"
        assert policy.seq_no == 12
        assert policy.primary_term == 3
        assert policy.exists
        assert policy.policy.is_managed
        assert policy.policy.ism_template == [ISMTemplate(["logs-*"], 1)]

    def test_policy_field_must_be_object(self) -> None:
        """测试 policy 字段不是对象时抛出 PolicyValidationError."""
        with pytest.raises(PolicyValidationError):
            ISMPolicy.from_dict({"_id": "x", "policy": ["not", "an", "object"]})

    def test_missing_fields_default(self) -> None:
        """测试缺失字段使用默认值."""
        policy = ISMPolicy.from_dict({})
        assert policy.id is None
        assert policy.policy.states == []
        assert not policy.policy.is_managed

    def test_unmanaged_description(self) -> None:
        """测试非受管描述."""
        policy = ISMPolicy.from_dict({"policy": {"description": "hand written"}})
        assert not policy.policy.is_managed


class TestPolicyStateSerialization:
    """PolicyState 序列化测试."""

    def test_empty_lists_omitted(self) -> None:
        """测试空动作与空迁移不输出."""
        assert PolicyState(name="delete").to_dict() == {"name": "delete"}

    def test_transition_conditions(self) -> None:
        """测试迁移条件序列化."""
        state = PolicyState(
            name="ingest",
            transitions=[PolicyTransition(state_name="delete", min_index_age="3d")],
        )
        assert state.to_dict()["transitions"] == [
            {"state_name": "delete", "conditions": {"min_index_age": "3d"}}
        ]

    def test_parse_then_compare(self) -> None:
        """测试解析后的状态与构造的状态相等."""
        parsed = PolicyState.from_dict(
            {
                "name": "ingest",
                "actions": [{"rollover": {"min_index_age": "1d"}}],
                "transitions": [
                    {"state_name": "delete", "conditions": {"min_index_age": "7d"}}
                ],
            }
        )
        assert parsed == PolicyState(
            name="ingest",
            actions=[{"rollover": {"min_index_age": "1d"}}],
            transitions=[PolicyTransition("delete", "7d")],
        )

    def test_server_defaults_stripped(self) -> None:
        """测试解析时去除服务端补充的 retry 与 copy_alias 字段."""
        parsed = PolicyState.from_dict(
            {
                "name": "ingest",
                "actions": [
                    {
                        "retry": {"count": 3, "backoff": "exponential", "delay": "1m"},
                        "rollover": {"min_index_age": "1d", "copy_alias": False},
                    }
                ],
            }
        )
        assert parsed.actions == [{"rollover": {"min_index_age": "1d"}}]


class TestNormalizeAction:
    """normalize_action 测试."""

    def test_explicit_copy_alias_kept(self) -> None:
        """测试显式开启的 copy_alias 保留."""
        action = {"rollover": {"min_index_age": "1d", "copy_alias": True}}
        assert normalize_action(action) == action

    def test_empty_params(self) -> None:
        """测试无参数动作保持不变."""
        assert normalize_action({"delete": {}, "retry": {"count": 3}}) == {"delete": {}}


class TestPolicyList:
    """PolicyList 测试."""

    def test_from_dict(self) -> None:
        """测试解析策略列表."""
        result = PolicyList.from_dict(
            {"policies": [{"_id": "a"}, {"_id": "b"}], "total_policies": 2}
        )
        assert [policy.id for policy in result.policies] == ["a", "b"]
        assert result.total_policies == 2

    def test_total_defaults_to_length(self) -> None:
        """测试缺少总数时使用列表长度."""
        assert PolicyList.from_dict({"policies": [{"_id": "a"}]}).total_policies == 1


class TestPolicyWriteResult:
    """PolicyWriteResult 测试."""

    @pytest.mark.parametrize(
        "outcome, changed",
        [
            (WriteOutcome.CREATED, True),
            (WriteOutcome.UPDATED, True),
            (WriteOutcome.UNCHANGED, False),
            (WriteOutcome.CONFLICT, False),
            (WriteOutcome.NOT_FOUND, False),
            (WriteOutcome.TRANSPORT_FAILURE, False),
        ],
    )
    def test_changed(self, outcome, changed) -> None:
        """测试是否产生写入."""
        assert PolicyWriteResult(outcome).changed is changed
