"""Unit tests for docflow.flow.classifier — task discovery in fixed and
inferred mode, discriminators, legacy kinds and template validation.
"""
from __future__ import annotations

import pytest

from docflow.document import Document, Path, TypeOf
from docflow.flow import (
    LEGACY_KINDS,
    ClassificationError,
    Classifier,
    FlowConfig,
    RunnerNotFoundError,
    TaskValidationError,
    task_kind,
)
from docflow.tasks import RunnerRegistry


def _classify(
    registry: RunnerRegistry, data: dict, root: str = "cmd", infer: bool = False
) -> list[str]:
    config = FlowConfig(root=root, infer_tasks=infer)
    tasks = Classifier(registry, config).classify(Document(data))
    return [str(task.path) for task in tasks]


# ===========================================================================
# task_kind
# ===========================================================================


class TestTaskKind:
    def test_id_field(self) -> None:
        assert task_kind({"$id": "tool/exec.Run"}, Path()) == "tool/exec.Run"

    def test_id_takes_precedence_over_legacy(self) -> None:
        node = {"$id": "tool/cli.Ask", "kind": "print"}
        assert task_kind(node, Path()) == "tool/cli.Ask"

    @pytest.mark.parametrize(("legacy", "kind"), sorted(LEGACY_KINDS.items()))
    def test_legacy_aliases(self, legacy: str, kind: str) -> None:
        assert task_kind({"kind": legacy}, Path()) == kind

    def test_unknown_legacy_ignored_by_default(self) -> None:
        assert task_kind({"kind": "Deployment"}, Path()) is None

    def test_unknown_legacy_passed_through(self) -> None:
        assert task_kind({"kind": "Deployment"}, Path(), passthrough_legacy=True) == "Deployment"

    def test_non_string_legacy_is_not_a_task(self) -> None:
        assert task_kind({"kind": 3}, Path(), passthrough_legacy=True) is None

    @pytest.mark.parametrize("node", ["text", 1, None, ["$id"], {"name": "x"}])
    def test_non_tasks(self, node: object) -> None:
        assert task_kind(node, Path()) is None

    @pytest.mark.parametrize("kind", [TypeOf("string"), 3, ""])
    def test_malformed_id_raises(self, kind: object) -> None:
        with pytest.raises(ClassificationError, match=r"\$id must be a non-empty string"):
            task_kind({"$id": kind}, Path.parse("cmd.t"))


# ===========================================================================
# Fixed discovery
# ===========================================================================


class TestFixedDiscovery:
    def test_direct_children_in_document_order(self, registry: RunnerRegistry) -> None:
        data = {
            "cmd": {
                "print": {"$id": "tool/cli.Print", "text": "hi"},
                "note": "not a task",
                "ask": {"kind": "ask", "prompt": "?", "response": TypeOf("string")},
            }
        }
        assert _classify(registry, data) == ["cmd.print", "cmd.ask"]

    def test_task_kind_and_entry(self, registry: RunnerRegistry) -> None:
        config = FlowConfig(root="cmd")
        doc = Document({"cmd": {"p": {"kind": "print", "text": "hi"}}})
        (task,) = Classifier(registry, config).classify(doc)
        assert task.kind == "tool/cli.Print"
        assert task.entry is registry.get("tool/cli.Print")
        assert task.index == 0

    def test_root_itself_is_never_a_task(self, registry: RunnerRegistry) -> None:
        data = {"cmd": {"$id": "docflow/testing.Echo", "value": 1}}
        assert _classify(registry, data) == []

    def test_nested_tasks_not_found(self, registry: RunnerRegistry) -> None:
        data = {"cmd": {"group": {"inner": {"$id": "tool/cli.Print", "text": "hi"}}}}
        assert _classify(registry, data) == []

    def test_unknown_kind_raises_not_found(self, registry: RunnerRegistry) -> None:
        data = {"cmd": {"t": {"$id": "acme.Missing"}}}
        with pytest.raises(RunnerNotFoundError) as excinfo:
            _classify(registry, data)
        assert excinfo.value.kind == "acme.Missing"
        assert excinfo.value.path == Path.parse("cmd.t")
        assert 'runner of kind "acme.Missing" not found' in str(excinfo.value)

    def test_unknown_legacy_kind_raises_not_found(self, registry: RunnerRegistry) -> None:
        data = {"cmd": {"t": {"kind": "bogus"}}}
        with pytest.raises(RunnerNotFoundError, match="bogus"):
            _classify(registry, data)

    def test_template_conflict_raises_validation_error(self, registry: RunnerRegistry) -> None:
        data = {"cmd": {"p": {"$id": "tool/cli.Print", "text": 5}}}
        with pytest.raises(TaskValidationError) as excinfo:
            _classify(registry, data)
        assert excinfo.value.path == Path.parse("cmd.p")
        assert "invalid tool/cli.Print task" in str(excinfo.value)

    def test_missing_root_raises(self, registry: RunnerRegistry) -> None:
        with pytest.raises(ClassificationError, match="command not found"):
            _classify(registry, {"other": {}})

    def test_scalar_root_raises(self, registry: RunnerRegistry) -> None:
        with pytest.raises(ClassificationError, match="must be a struct"):
            _classify(registry, {"cmd": "text"})

    def test_empty_root_path_addresses_whole_document(self, registry: RunnerRegistry) -> None:
        data = {"p": {"$id": "tool/cli.Print", "text": "hi"}}
        assert _classify(registry, data, root="") == ["p"]


# ===========================================================================
# Inferred discovery
# ===========================================================================


class TestInferredDiscovery:
    def test_nested_tasks_found(self, registry: RunnerRegistry) -> None:
        data = {
            "cmd": {
                "group": {"inner": {"$id": "tool/cli.Print", "text": "hi"}},
                "plain": {"x": 1},
            }
        }
        assert _classify(registry, data, infer=True) == ["cmd.group.inner"]

    def test_list_elements(self, registry: RunnerRegistry) -> None:
        data = {
            "cmd": {
                "steps": [
                    {"$id": "tool/cli.Print", "text": "one"},
                    {"$id": "tool/cli.Print", "text": "two"},
                ]
            }
        }
        assert _classify(registry, data, infer=True) == ["cmd.steps.0", "cmd.steps.1"]

    def test_does_not_descend_into_tasks(self, registry: RunnerRegistry) -> None:
        data = {
            "cmd": {
                "outer": {
                    "$id": "docflow/testing.Echo",
                    "value": {"$id": "tool/cli.Print", "text": "hi"},
                }
            }
        }
        assert _classify(registry, data, infer=True) == ["cmd.outer"]

    def test_unknown_legacy_kind_is_data(self, registry: RunnerRegistry) -> None:
        data = {"cmd": {"manifest": {"kind": "Deployment", "name": "web"}}}
        assert _classify(registry, data, infer=True) == []

    def test_unknown_id_still_raises(self, registry: RunnerRegistry) -> None:
        data = {"cmd": {"deep": {"t": {"$id": "acme.Missing"}}}}
        with pytest.raises(RunnerNotFoundError):
            _classify(registry, data, infer=True)
