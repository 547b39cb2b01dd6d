"""Unit tests for docflow.document.document — lookup, concreteness,
references, evaluation and fill.
"""
from __future__ import annotations

import pytest

from docflow.document import (
    ConflictError,
    Document,
    Interp,
    Path,
    PathNotFoundError,
    Ref,
    ReferenceCycleError,
    TypeOf,
)


def _sample() -> Document:
    return Document(
        {
            "city": "Amsterdam",
            "tasks": {
                "ask": {"prompt": "Name?", "response": TypeOf("string")},
                "echo": {
                    "text": Interp("Hi ${tasks.ask.response} from ${city}"),
                    "after": Ref.to("tasks.ask"),
                },
                "alias": Ref.to("tasks.ask"),
            },
        }
    )


# ===========================================================================
# Construction
# ===========================================================================


class TestDocumentConstruction:
    def test_empty_document(self) -> None:
        assert Document().root == {}

    def test_non_mapping_root_rejected(self) -> None:
        with pytest.raises(TypeError):
            Document(["a"])  # type: ignore[arg-type]

    def test_input_is_copied(self) -> None:
        data = {"a": {"b": 1}}
        doc = Document(data)
        data["a"]["b"] = 2
        assert doc.evaluate("a.b") == 1

    def test_tuples_become_lists(self) -> None:
        assert Document({"a": (1, 2)}).root == {"a": [1, 2]}

    def test_equality(self) -> None:
        assert Document({"a": 1}) == Document({"a": 1})
        assert Document({"a": 1}) != Document({"a": 2})

    def test_repr_lists_fields(self) -> None:
        assert repr(Document({"a": 1, "b": 2})) == "Document(fields=['a', 'b'])"


# ===========================================================================
# Lookup
# ===========================================================================


class TestDocumentLookup:
    def test_lookup_returns_raw_node(self) -> None:
        doc = _sample()
        assert doc.lookup("tasks.alias") == Ref.to("tasks.ask")
        assert doc.resolve("tasks.alias") == doc.lookup("tasks.ask")

    def test_lookup_follows_intermediate_refs(self) -> None:
        assert _sample().lookup("tasks.alias.prompt") == "Name?"

    def test_lookup_list_index(self) -> None:
        doc = Document({"steps": ["a", "b"]})
        assert doc.lookup("steps.1") == "b"

    def test_missing_path_raises(self) -> None:
        with pytest.raises(PathNotFoundError) as excinfo:
            _sample().lookup("tasks.nope.x")
        assert str(excinfo.value) == "tasks.nope.x: field not found"

    def test_missing_path_is_a_key_error(self) -> None:
        with pytest.raises(KeyError):
            _sample().lookup("nope")

    def test_exists(self) -> None:
        doc = _sample()
        assert doc.exists("city")
        assert not doc.exists("town")

    def test_reference_cycle_raises(self) -> None:
        doc = Document({"a": Ref.to("b"), "b": Ref.to("a")})
        with pytest.raises(ReferenceCycleError):
            doc.resolve("a")

    def test_canonical_path_follows_references(self) -> None:
        doc = Document({"t": {"out": TypeOf("string")}, "alias": Ref.to("t")})
        assert doc.canonical_path("alias.out") == Path.parse("t.out")
        assert doc.canonical_path("alias") == Path.parse("t")

    def test_canonical_path_keeps_missing_tail(self) -> None:
        doc = Document({"t": {}, "alias": Ref.to("t")})
        assert doc.canonical_path("alias.missing.x") == Path.parse("t.missing.x")


# ===========================================================================
# Concreteness and references
# ===========================================================================


class TestDocumentConcreteness:
    def test_scalars_are_concrete(self) -> None:
        assert _sample().is_concrete("city")

    def test_placeholder_is_not_concrete(self) -> None:
        doc = _sample()
        assert not doc.is_concrete("tasks.ask.response")
        assert not doc.is_concrete("tasks.ask")

    def test_interpolation_with_incomplete_hole(self) -> None:
        assert not _sample().is_concrete("tasks.echo.text")

    def test_missing_path_is_not_concrete(self) -> None:
        assert not _sample().is_concrete("tasks.ask.stdout")

    def test_reference_to_concrete_value(self) -> None:
        doc = Document({"a": 1, "b": Ref.to("a")})
        assert doc.is_concrete("b")

    def test_reference_cycle_is_not_concrete(self) -> None:
        doc = Document({"a": Ref.to("b"), "b": Ref.to("a")})
        assert not doc.is_concrete_node(Ref.to("a"))

    def test_references_in_document_order(self) -> None:
        refs = _sample().references("tasks.echo")
        assert refs == [
            Path.parse("tasks.ask.response"),
            Path.parse("city"),
            Path.parse("tasks.ask"),
        ]

    def test_references_whole_document_deduplicated(self) -> None:
        refs = _sample().references()
        assert refs.count(Path.parse("tasks.ask")) == 1


# ===========================================================================
# Evaluation
# ===========================================================================


class TestDocumentEvaluate:
    def test_evaluate_resolves_references(self) -> None:
        doc = Document({"a": {"b": 2}, "c": Ref.to("a.b")})
        assert doc.evaluate("c") == 2

    def test_incomplete_interpolation_is_string_placeholder(self) -> None:
        assert _sample().evaluate("tasks.echo.text") == TypeOf("string")

    def test_missing_reference_is_any_placeholder(self) -> None:
        doc = Document({"a": Ref.to("nowhere")})
        assert doc.evaluate("a") == TypeOf("any")

    def test_interpolation_formats_scalars(self) -> None:
        doc = Document({"n": 3, "ok": True, "s": Interp("${n} ${ok}")})
        assert doc.evaluate("s") == "3 true"

    def test_evaluate_cycle_raises(self) -> None:
        doc = Document({"a": Ref.to("b"), "b": Ref.to("a")})
        with pytest.raises(ReferenceCycleError):
            doc.to_data()


# ===========================================================================
# Fill
# ===========================================================================


class TestDocumentFill:
    def test_fill_refines_placeholder(self) -> None:
        doc = _sample()
        filled = doc.fill("tasks.ask", {"response": "Jan"})
        assert filled.evaluate("tasks.ask.response") == "Jan"
        assert filled.evaluate("tasks.echo.text") == "Hi Jan from Amsterdam"

    def test_fill_leaves_receiver_unchanged(self) -> None:
        doc = _sample()
        doc.fill("tasks.ask", {"response": "Jan"})
        assert doc.lookup("tasks.ask.response") == TypeOf("string")

    def test_fill_creates_missing_fields(self) -> None:
        doc = Document({"t": {}}).fill("t.result.code", 0)
        assert doc.evaluate("t") == {"result": {"code": 0}}

    def test_fill_same_value_is_idempotent(self) -> None:
        doc = Document({"a": {"b": 1}})
        assert doc.fill("a", {"b": 1}) == doc

    def test_fill_conflict_raises(self) -> None:
        with pytest.raises(ConflictError):
            Document({"a": {"b": 1}}).fill("a", {"b": 2})

    def test_fill_wrong_type_raises(self) -> None:
        with pytest.raises(ConflictError):
            _sample().fill("tasks.ask", {"response": 42})

    def test_fill_at_incomplete_reference_refines_a_copy(self) -> None:
        doc = _sample().fill("tasks.alias", {"response": "Jan"})
        assert doc.evaluate("tasks.alias.response") == "Jan"
        assert doc.lookup("tasks.ask.response") == TypeOf("string")

    def test_fill_below_reference(self) -> None:
        doc = _sample().fill("tasks.alias.response", "Jan")
        assert doc.evaluate("tasks.alias.response") == "Jan"

    def test_fill_agreeing_with_concrete_reference_keeps_it(self) -> None:
        doc = Document({"a": 1, "b": Ref.to("a")}).fill("b", 1)
        assert doc.lookup("b") == Ref.to("a")

    def test_fill_disagreeing_with_concrete_reference_raises(self) -> None:
        with pytest.raises(ConflictError):
            Document({"a": 1, "b": Ref.to("a")}).fill("b", 2)
