"""Unit tests for docflow.document.unify and the TypeOf placeholder."""
from __future__ import annotations

import pytest

from docflow.document.errors import ConflictError
from docflow.document.nodes import Ref, TypeOf
from docflow.document.path import Path
from docflow.document.unify import unify


class TestTypeOf:
    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown type"):
            TypeOf("text")

    @pytest.mark.parametrize(
        ("name", "value", "expected"),
        [
            ("string", "x", True),
            ("string", 1, False),
            ("int", 3, True),
            ("int", True, False),
            ("bool", False, True),
            ("number", 1.5, True),
            ("struct", {}, True),
            ("list", [], True),
            ("any", None, True),
        ],
    )
    def test_accepts(self, name: str, value: object, expected: bool) -> None:
        assert TypeOf(name).accepts(value) is expected

    def test_meet_narrows_number(self) -> None:
        assert TypeOf("number").meet(TypeOf("int")) == TypeOf("int")
        assert TypeOf("any").meet(TypeOf("string")) == TypeOf("string")
        assert TypeOf("string").meet(TypeOf("int")) is None


class TestUnify:
    def test_placeholder_refined_by_value(self) -> None:
        assert unify(TypeOf("string"), "hi") == "hi"
        assert unify("hi", TypeOf("string")) == "hi"

    def test_placeholder_rejects_wrong_type(self) -> None:
        with pytest.raises(ConflictError, match="conflicting values"):
            unify(TypeOf("int"), "hi")

    def test_equal_scalars(self) -> None:
        assert unify(3, 3) == 3
        assert unify(1, 1.0) == 1

    def test_bool_does_not_unify_with_int(self) -> None:
        with pytest.raises(ConflictError):
            unify(True, 1)

    def test_different_scalars_conflict(self) -> None:
        with pytest.raises(ConflictError) as excinfo:
            unify("a", "b", Path.parse("x.y"))
        assert excinfo.value.path == Path.parse("x.y")
        assert str(excinfo.value) == "x.y: conflicting values 'a' and 'b'"

    def test_mappings_merge(self) -> None:
        left = {"cmd": "ls", "stdout": TypeOf("string")}
        right = {"stdout": "out", "success": True}
        assert unify(left, right) == {"cmd": "ls", "stdout": "out", "success": True}
        assert left == {"cmd": "ls", "stdout": TypeOf("string")}

    def test_nested_conflict_reports_inner_path(self) -> None:
        with pytest.raises(ConflictError) as excinfo:
            unify({"a": {"b": 1}}, {"a": {"b": 2}})
        assert excinfo.value.path == Path.parse("a.b")

    def test_lists_unify_elementwise(self) -> None:
        assert unify([TypeOf("int"), "x"], [1, "x"]) == [1, "x"]

    def test_lists_of_different_length_conflict(self) -> None:
        with pytest.raises(ConflictError):
            unify([1], [1, 2])

    def test_struct_and_scalar_conflict(self) -> None:
        with pytest.raises(ConflictError):
            unify({"a": 1}, "a")

    def test_unevaluated_nodes_rejected(self) -> None:
        with pytest.raises(TypeError):
            unify(Ref.to("a"), 1)
