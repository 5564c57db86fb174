"""
Tests for ExecutionContext.
"""

import pytest

from flow_engine.core.context import ExecutionContext
from flow_engine.models.execution import ContextSnapshot, LogLevel


@pytest.fixture
def context():
    return ExecutionContext(
        flow_id="flow-1",
        payload={"status": "active", "user": {"name": "Ann", "roles": ["admin"]}, "count": 3},
    )


class TestVariables:
    def test_reads_payload(self, context):
        assert context.get("status") == "active"
        assert context.get("user.name") == "Ann"
        assert context.get("user.roles.0") == "admin"

    def test_variables_shadow_payload(self, context):
        context.set("status", "inactive")
        assert context.get("status") == "inactive"
        assert context.payload["status"] == "active"

    def test_missing_and_non_container_segments(self, context):
        assert context.get("nope") is None
        assert context.get("status.deeper") is None
        assert context.get("user.roles.9") is None
        assert context.get("nope", "fallback") == "fallback"

    def test_set_creates_nested_maps(self, context):
        context.set("order.total", 10)
        assert context.variables == {"order": {"total": 10}}
        assert context.get("order.total") == 10

    def test_has_distinguishes_none(self, context):
        context.set("empty", None)
        assert context.has("empty")
        assert context.get("empty") is None
        assert not context.has("absent")

    def test_forget(self, context):
        context.set("a.b", 1)
        assert context.forget("a.b") is True
        assert context.get("a.b") is None
        assert context.forget("status") is False

    def test_merged_data(self, context):
        context.set("count", 4)
        merged = context.merged_data()
        assert merged["count"] == 4
        assert merged["status"] == "active"


class TestLogs:
    def test_append_log(self, context):
        entry = context.append_log("warning", "careful")
        assert entry.level == LogLevel.WARNING
        assert context.logs[-1].message == "careful"
        assert context.logs[-1].timestamp is not None

    def test_shortcuts_and_filtering(self, context):
        context.info("one")
        context.error("two")
        context.info("three")
        assert [e.message for e in context.logs_at("info")] == ["one", "three"]

    def test_fail_records_error_and_stops(self, context):
        context.fail("bad input")
        assert context.errors == ["bad input"]
        assert context.stop_requested
        assert context.logs_at(LogLevel.ERROR)[0].message == "bad input"


class TestPause:
    def test_mark_paused(self, context):
        assert not context.is_paused()
        context.mark_paused("n2")
        assert context.is_paused()
        assert context.pause_cursor == "n2"

    def test_resume_clears_cursor(self, context):
        context.mark_paused("n2")
        context.resume()
        assert not context.is_paused()
        assert context.pause_cursor is None

    def test_resume_points_keep_first_cursor(self, context):
        context.mark_paused()
        assert context.pending_pause()
        context.add_resume_point("p1")
        assert not context.pending_pause()

        context.mark_paused("target")
        context.add_resume_point("p2")

        assert context.pause_cursor == "p1"
        assert context.paused_by == "p1"
        assert context.resume_points == [
            {"cursor": "p1", "paused_by": "p1"},
            {"cursor": "target", "paused_by": "p2"},
        ]
        context.resume()
        assert context.resume_points == []


class TestGateInputs:
    def test_accumulates_per_gate(self, context):
        context.record_gate_input("g", "c1", True)
        assert not context.has_all_inputs("g", 2)
        context.record_gate_input("g", "c2", False)
        assert context.has_all_inputs("g", 2)
        assert context.gate_inputs_for("g") == {"c1": True, "c2": False}

    def test_same_source_counts_once(self, context):
        context.record_gate_input("g", "c1", True)
        context.record_gate_input("g", "c1", False)
        assert context.gate_inputs_for("g") == {"c1": False}
        assert not context.has_all_inputs("g", 2)

    def test_clear(self, context):
        context.record_gate_input("g", "c1", True)
        context.clear_gate_inputs("g")
        assert context.gate_inputs_for("g") == {}


class TestSnapshot:
    def test_snapshot_restore_preserves_state(self, context):
        context.set("v", {"x": [1, 2]})
        context.info("hello")
        context.record_gate_input("g", "c1", True)
        context.record_execution("t")
        context.mark_paused()
        context.add_resume_point("a")

        restored = ExecutionContext.restore(context.snapshot())

        assert restored.run_id == context.run_id
        assert restored.flow_id == "flow-1"
        assert restored.get("v.x") == [1, 2]
        assert restored.get("status") == "active"
        assert [e.message for e in restored.logs] == ["hello"]
        assert restored.gate_inputs_for("g") == {"c1": True}
        assert restored.is_paused()
        assert restored.pause_cursor == "a"
        assert restored.paused_by == "a"
        assert restored.resume_points == [{"cursor": "a", "paused_by": "a"}]
        assert restored.executed_nodes == ["t"]
        assert restored.started_at == context.started_at

    def test_snapshot_is_a_copy(self, context):
        context.set("list", [1])
        snapshot = context.snapshot()
        context.get("list").append(2)
        assert snapshot.variables["list"] == [1]

    def test_restore_from_json(self, context):
        context.set("n", 1)
        raw = context.snapshot().to_json()
        restored = ExecutionContext.restore(ContextSnapshot.from_json(raw))
        assert restored.get("n") == 1

    def test_restore_from_dict(self, context):
        data = context.snapshot().model_dump(mode="json")
        assert ExecutionContext.restore(data).run_id == context.run_id


def test_run_ids_are_unique():
    assert ExecutionContext().run_id != ExecutionContext().run_id
