"""ISM 策略管理器单元测试."""

import copy

import pytest

from indexflow.gateway import GatewayTransportError, UnexpectedStatusError
from indexflow.ism.exceptions import (
    PolicyAttachError,
    PolicyConflictError,
    PolicyFetchError,
    PolicyWriteError,
)
from indexflow.ism.manager import ISMPolicyManager, build_ism_policy, policy_needs_update
from indexflow.ism.models import ISMPolicy, WriteOutcome
from indexflow.models import IndexManagementPolicy, RolloverPolicy

POLICIES_PATH = "/_plugins/_ism/policies"


def _declared(name: str = "p", pattern: str = "*", **kwargs) -> IndexManagementPolicy:
    return IndexManagementPolicy(policy_name=name, index_pattern=pattern, **kwargs)


def _remote_document(policy: IndexManagementPolicy, seq_no: int = 5, primary_term: int = 1) -> dict:
    """构造服务端返回的策略文档，附带服务端才有的字段."""
    body = build_ism_policy(policy).to_request_body()
    body["policy"]["policy_id"] = policy.policy_name
    body["policy"]["last_updated_time"] = 1690000000000
    body["policy"]["schema_version"] = 17
    return {
        "_id": policy.policy_name,
        "_version": 1,
        "_seq_no": seq_no,
        "_primary_term": primary_term,
        **body,
    }


def _server_shaped_document(policy: IndexManagementPolicy) -> dict:
    """构造服务端补充了 retry 与 copy_alias 默认值的策略文档."""
    document = _remote_document(policy)
    for state in document["policy"]["states"]:
        for action in state.get("actions", []):
            if "rollover" in action:
                action["rollover"]["copy_alias"] = False
            action["retry"] = {"count": 3, "backoff": "exponential", "delay": "1m"}
    return document


def _policy_list(*documents: dict) -> dict:
    return {"policies": list(documents), "total_policies": len(documents)}


# ============================================================
# 策略构造与比较
# ============================================================


class TestBuildISMPolicy:
    """build_ism_policy 测试."""

    def test_default_values(self) -> None:
        """测试未声明年龄时使用默认值."""
        document = build_ism_policy(_declared()).to_request_body()["policy"]
        assert document["default_state"] == "ingest"
        assert document["description"] == "__vmi-managed__"
        assert document["ism_template"] == [{"index_patterns": ["*"], "priority": 1}]
        ingest, delete = document["states"]
        assert ingest["actions"] == [{"rollover": {"min_index_age": "1d"}}]
        assert ingest["transitions"] == [
            {"state_name": "delete", "conditions": {"min_index_age": "7d"}}
        ]
        assert delete == {"name": "delete", "actions": [{"delete": {}}]}

    def test_rollover_copied_verbatim(self) -> None:
        """测试滚动参数原样复制."""
        policy = _declared(
            min_index_age="14d",
            rollover=RolloverPolicy(min_index_age="2d", min_size="5gb", min_doc_count=1000),
        )
        state = build_ism_policy(policy).policy.states[0]
        assert state.actions == [
            {"rollover": {"min_doc_count": 1000, "min_size": "5gb", "min_index_age": "2d"}}
        ]
        assert state.transitions[0].min_index_age == "14d"


class TestPolicyNeedsUpdate:
    """policy_needs_update 测试."""

    def test_identical_documents(self) -> None:
        """测试相同文档不需要更新."""
        desired = build_ism_policy(_declared())
        existing = ISMPolicy.from_dict(_remote_document(_declared()), status=200)
        assert not policy_needs_update(desired, existing)

    def test_metadata_only_change(self) -> None:
        """测试只有 ID 等元数据不同时不需要更新."""
        desired = build_ism_policy(_declared())
        existing = ISMPolicy.from_dict(_remote_document(_declared()), status=200)
        existing.id = "another-id"
        existing.seq_no = 99
        assert not policy_needs_update(desired, existing)

    def test_description_only_change(self) -> None:
        """测试只有描述不同时不需要更新."""
        desired = build_ism_policy(_declared())
        existing = ISMPolicy.from_dict(_remote_document(_declared()), status=200)
        existing.policy.description = "edited by hand"
        assert not policy_needs_update(desired, existing)

    def test_default_state_change(self) -> None:
        """测试初始状态不同时需要更新."""
        desired = build_ism_policy(_declared())
        existing = copy.deepcopy(desired)
        existing.policy.default_state = "hot"
        assert policy_needs_update(desired, existing)

    def test_states_change(self) -> None:
        """测试状态列表不同时需要更新."""
        desired = build_ism_policy(_declared(min_index_age="3d"))
        existing = build_ism_policy(_declared(min_index_age="7d"))
        assert policy_needs_update(desired, existing)

    def test_ism_template_change(self) -> None:
        """测试 ISM 模板不同时需要更新."""
        desired = build_ism_policy(_declared(pattern="logs-*"))
        existing = build_ism_policy(_declared(pattern="metrics-*"))
        assert policy_needs_update(desired, existing)

    def test_absent_policy(self) -> None:
        """测试远端策略不存在时需要创建."""
        assert policy_needs_update(build_ism_policy(_declared()), ISMPolicy(status=404))


# ============================================================
# 协调流程
# ============================================================


class TestReconcile:
    """reconcile 测试."""

    def test_create_then_attach(self, route_gateway, ok, sent) -> None:
        """测试策略不存在时创建（预期 201）并应用到匹配 * 的索引."""
        declared = _declared(min_index_age="7d", rollover=RolloverPolicy(min_index_age="1d"))
        gateway = route_gateway(
            {
                ("GET", f"{POLICIES_PATH}/p"): ok(404, {"error": "not found"}),
                ("PUT", f"{POLICIES_PATH}/p"): ok(201, _remote_document(declared, seq_no=0)),
                ("POST", "/_plugins/_ism/add/*"): ok(200, {"updated_indices": 2, "failures": False}),
                ("GET", POLICIES_PATH): ok(200, _policy_list(_remote_document(declared))),
            }
        )

        ISMPolicyManager(gateway).reconcile([declared])

        calls = sent(gateway)
        assert [(method, path) for method, path, _ in calls] == [
            ("GET", f"{POLICIES_PATH}/p"),
            ("PUT", f"{POLICIES_PATH}/p"),
            ("POST", "/_plugins/_ism/add/*"),
            ("GET", POLICIES_PATH),
        ]
        put_kwargs = calls[1][2]
        assert put_kwargs["params"] is None
        assert put_kwargs["body"] == build_ism_policy(declared).to_request_body()
        assert calls[2][2]["body"] == {"policy_id": "p"}

    def test_second_reconcile_issues_no_writes(self, route_gateway, ok, sent) -> None:
        """测试输入不变时重复协调不发出任何写请求."""
        declared = _declared()
        gateway = route_gateway(
            {
                ("GET", f"{POLICIES_PATH}/p"): ok(200, _remote_document(declared)),
                ("GET", POLICIES_PATH): ok(200, _policy_list(_remote_document(declared))),
            }
        )
        manager = ISMPolicyManager(gateway)

        manager.reconcile([declared])
        manager.reconcile([declared])

        assert all(method == "GET" for method, _, _ in sent(gateway))

    def test_server_defaults_do_not_trigger_writes(self, route_gateway, ok, sent) -> None:
        """测试服务端为动作补充 retry/copy_alias 默认值时不视为变化."""
        declared = _declared(rollover=RolloverPolicy(min_index_age="1d", min_size="5gb"))
        remote = _server_shaped_document(declared)
        gateway = route_gateway(
            {
                ("GET", f"{POLICIES_PATH}/p"): ok(200, remote),
                ("GET", POLICIES_PATH): ok(200, _policy_list(remote)),
            }
        )

        ISMPolicyManager(gateway).reconcile([declared])

        assert [m for m, _, _ in sent(gateway) if m != "GET"] == []

    def test_update_uses_concurrency_precondition(self, route_gateway, ok, sent) -> None:
        """测试更新时携带 seq_no/primary_term 前置条件."""
        old = _declared(min_index_age="7d")
        new = _declared(min_index_age="30d")
        gateway = route_gateway(
            {
                ("GET", f"{POLICIES_PATH}/p"): ok(200, _remote_document(old, seq_no=7, primary_term=2)),
                ("PUT", f"{POLICIES_PATH}/p"): ok(200, _remote_document(new, seq_no=8, primary_term=2)),
                ("POST", "/_plugins/_ism/add/*"): ok(200, {}),
                ("GET", POLICIES_PATH): ok(200, _policy_list()),
            }
        )

        ISMPolicyManager(gateway).reconcile([new])

        _, _, put_kwargs = sent(gateway, "PUT")[0]
        assert put_kwargs["params"] == {"if_seq_no": 7, "if_primary_term": 2}

    def test_fetch_error(self, route_gateway, ok) -> None:
        """测试获取策略返回非 200/404 时抛出 PolicyFetchError."""
        gateway = route_gateway({("GET", f"{POLICIES_PATH}/p"): ok(500)})
        with pytest.raises(PolicyFetchError, match="500"):
            ISMPolicyManager(gateway).reconcile([_declared()])

    def test_conflict_is_fatal(self, route_gateway, ok, sent) -> None:
        """测试版本冲突抛出 PolicyConflictError 且不应用策略."""
        gateway = route_gateway(
            {
                ("GET", f"{POLICIES_PATH}/p"): ok(200, _remote_document(_declared(min_index_age="1d"))),
                ("PUT", f"{POLICIES_PATH}/p"): ok(409, {"error": "version_conflict_engine_exception"}),
            }
        )
        with pytest.raises(PolicyConflictError):
            ISMPolicyManager(gateway).reconcile([_declared()])
        assert sent(gateway, "POST") == []

    def test_unexpected_write_status(self, route_gateway, ok) -> None:
        """测试写入返回无法归类的状态码时抛出 UnexpectedStatusError."""
        gateway = route_gateway(
            {
                ("GET", f"{POLICIES_PATH}/p"): ok(404),
                ("PUT", f"{POLICIES_PATH}/p"): ok(400, {"error": "bad request"}),
            }
        )
        with pytest.raises(UnexpectedStatusError) as exc_info:
            ISMPolicyManager(gateway).reconcile([_declared()])
        assert exc_info.value.expected == 201
        assert exc_info.value.actual == 400

    def test_transport_failure_on_write(self, route_gateway, ok) -> None:
        """测试写入时传输失败抛出 PolicyWriteError."""
        gateway = route_gateway(
            {
                ("GET", f"{POLICIES_PATH}/p"): ok(404),
                ("PUT", f"{POLICIES_PATH}/p"): GatewayTransportError("connection reset"),
            }
        )
        manager = ISMPolicyManager(gateway)
        result = manager.put_policy("p", build_ism_policy(_declared()), ISMPolicy(status=404))
        assert result.outcome is WriteOutcome.TRANSPORT_FAILURE
        with pytest.raises(PolicyWriteError, match="connection reset"):
            manager.reconcile([_declared()])

    def test_attach_failure_skips_cleanup(self, route_gateway, ok, sent) -> None:
        """测试应用策略失败时中止本轮协调，不执行清理."""
        gateway = route_gateway(
            {
                ("GET", f"{POLICIES_PATH}/p"): ok(404),
                ("PUT", f"{POLICIES_PATH}/p"): ok(201, _remote_document(_declared())),
                ("POST", "/_plugins/_ism/add/*"): ok(500),
            }
        )
        with pytest.raises(PolicyAttachError):
            ISMPolicyManager(gateway).reconcile([_declared()])
        assert ("GET", POLICIES_PATH) not in [(m, p) for m, p, _ in sent(gateway)]

    def test_policies_processed_in_order(self, route_gateway, ok, sent) -> None:
        """测试按声明顺序处理策略，清理在最后执行."""
        first = _declared("b-policy", "b-*")
        second = _declared("a-policy", "a-*")
        gateway = route_gateway(
            {
                ("GET", f"{POLICIES_PATH}/b-policy"): ok(200, _remote_document(first)),
                ("GET", f"{POLICIES_PATH}/a-policy"): ok(200, _remote_document(second)),
                ("GET", POLICIES_PATH): ok(200, _policy_list()),
            }
        )
        ISMPolicyManager(gateway).reconcile([first, second])
        assert [path for _, path, _ in sent(gateway)] == [
            f"{POLICIES_PATH}/b-policy",
            f"{POLICIES_PATH}/a-policy",
            POLICIES_PATH,
        ]


class TestCleanupPolicies:
    """受管策略清理测试."""

    def test_only_undeclared_managed_policies_deleted(self, route_gateway, ok, sent) -> None:
        """测试只删除不再声明的受管策略，非受管策略不受影响."""
        declared = _declared("keep", "keep-*")
        stale = _remote_document(_declared("stale", "stale-*"))
        unmanaged = _remote_document(_declared("custom", "custom-*"))
        unmanaged["policy"]["description"] = "user policy"
        gateway = route_gateway(
            {
                ("GET", POLICIES_PATH): ok(
                    200, _policy_list(_remote_document(declared), stale, unmanaged)
                ),
                ("DELETE", f"{POLICIES_PATH}/stale"): ok(200, {"result": "deleted"}),
            }
        )

        deleted = ISMPolicyManager(gateway).cleanup_policies([declared])

        assert deleted == ["stale"]
        assert [path for _, path, _ in sent(gateway, "DELETE")] == [f"{POLICIES_PATH}/stale"]

    def test_missing_policy_index_treated_as_empty(self, route_gateway, ok) -> None:
        """测试策略索引不存在（404）时视为没有策略."""
        gateway = route_gateway({("GET", POLICIES_PATH): ok(404)})
        assert ISMPolicyManager(gateway).cleanup_policies([]) == []

    def test_delete_failure(self, route_gateway, ok) -> None:
        """测试删除失败时抛出 UnexpectedStatusError."""
        gateway = route_gateway(
            {
                ("GET", POLICIES_PATH): ok(200, _policy_list(_remote_document(_declared("stale")))),
                ("DELETE", f"{POLICIES_PATH}/stale"): ok(500),
            }
        )
        with pytest.raises(UnexpectedStatusError):
            ISMPolicyManager(gateway).cleanup_policies([])


class TestManagerInit:
    """初始化测试."""

    def test_none_gateway(self) -> None:
        """测试 gateway 为 None 时抛出 ValueError."""
        with pytest.raises(ValueError, match="gateway 不能为 None"):
            ISMPolicyManager(None)

