"""Tests for call-signature disambiguation, driven by the call-shape table."""

from __future__ import annotations

import pytest

from rainbird_neo4j.arguments import CALL_SHAPES, CallShape, PayloadKind, parse
from rainbird_neo4j.exceptions import SubstitutionError, UsageError
from rainbird_neo4j.statements import Statement


def _callback(*args):
    return args


_PAYLOADS = {
    PayloadKind.STRING: "MATCH (n) RETURN n",
    PayloadKind.ARRAY: ["MATCH (n)", "RETURN n"],
    PayloadKind.STATEMENTS: [
        {"statement": "RETURN $a", "parameters": {"a": 1}},
        Statement(text="RETURN 2"),
    ],
}


def _arguments_for(shape: CallShape) -> list:
    args: list = []
    if shape.transaction:
        args.append(7)
    if shape.payload is not PayloadKind.NONE:
        args.append(_PAYLOADS[shape.payload])
    if shape.mappings == 2:
        args.append({"x": "n"})
    if shape.mappings >= 1:
        args.append({"p": 1})
    args.append(_callback)
    return args


# ── Call-shape matrix ──


class TestCallShapes:
    def test_table_has_every_documented_shape(self):
        signatures = {shape.signature for shape in CALL_SHAPES}
        assert len(signatures) == len(CALL_SHAPES) == 16
        assert "(string, substitutions, parameters, callback)" in signatures
        assert "(transactionID, array, parameters, callback)" in signatures
        assert "(transactionID, statements, callback)" in signatures
        assert "(transactionID, callback)" in signatures

    @pytest.mark.parametrize("shape", CALL_SHAPES, ids=lambda shape: shape.signature)
    def test_parse_recognises_shape(self, shape: CallShape):
        parsed = parse(_arguments_for(shape))

        assert parsed.error is None
        assert parsed.shape == shape
        assert parsed.callback is _callback
        assert parsed.transaction_id == (7 if shape.transaction else None)

        if shape.payload is PayloadKind.NONE:
            assert parsed.statements == []
        elif shape.payload is PayloadKind.STATEMENTS:
            assert [s.text for s in parsed.statements] == ["RETURN $a", "RETURN 2"]
            assert parsed.statements[0].parameters == {"a": 1}
        else:
            assert len(parsed.statements) == 1
            statement = parsed.statements[0]
            assert statement.text.replace("\n", " ") == "MATCH (n) RETURN n"
            assert statement.parameters == ({"p": 1} if shape.mappings else {})


# ── Rules ──


class TestParseRules:
    def test_missing_callback_raises(self):
        with pytest.raises(UsageError):
            parse(["MATCH (n) RETURN n"])

    def test_empty_arguments_raise(self):
        with pytest.raises(UsageError):
            parse([])

    def test_transaction_id_alone_is_not_a_callback(self):
        with pytest.raises(UsageError):
            parse([3])

    def test_leading_none_means_no_transaction(self):
        parsed = parse([None, "RETURN 1", _callback])
        assert parsed.error is None
        assert parsed.transaction_id is None
        assert parsed.statements == [Statement(text="RETURN 1")]

    def test_bool_is_not_a_transaction_id(self):
        parsed = parse([True, "RETURN 1", _callback])
        assert isinstance(parsed.error, UsageError)

    def test_single_mapping_is_parameters(self):
        parsed = parse(["MATCH (n {id: $id}) RETURN n", {"id": 123}, _callback])
        assert parsed.statements[0].parameters == {"id": 123}

    def test_two_mappings_substitute_then_bind(self):
        parsed = parse(["MATCH (n:${label}) RETURN n", {"label": "Person"}, {"id": 1}, _callback])
        assert parsed.statements[0].text == "MATCH (n:Person) RETURN n"
        assert parsed.statements[0].parameters == {"id": 1}

    def test_single_mapping_is_not_used_for_substitution(self):
        parsed = parse(["MATCH (n:${label}) RETURN n", {"label": "Person"}, _callback])
        assert isinstance(parsed.error, SubstitutionError)
        assert parsed.statements == []

    def test_substitution_failure_is_returned(self):
        parsed = parse([4, "MATCH (${x}) RETURN ${y}", {}, {}, _callback])
        assert isinstance(parsed.error, SubstitutionError)
        assert parsed.statements == []
        assert parsed.transaction_id == 4
        assert parsed.callback is _callback

    def test_statements_passed_through_uncomposed(self):
        statement = {"statement": "RETURN '${not_a_placeholder}'"}
        parsed = parse([[statement], _callback])
        assert parsed.error is None
        assert parsed.statements[0].text == "RETURN '${not_a_placeholder}'"
        assert parsed.statements[0].parameters == {}

    def test_lone_statement(self):
        statement = Statement(text="RETURN 1")
        parsed = parse([statement, _callback])
        assert parsed.statements == [statement]

    def test_empty_list_has_no_statements(self):
        parsed = parse([[], _callback])
        assert parsed.error is None
        assert parsed.statements == []

    def test_mappings_with_statements_rejected(self):
        parsed = parse([[{"statement": "RETURN 1"}], {"a": 1}, _callback])
        assert isinstance(parsed.error, UsageError)
        assert parsed.statements == []

    def test_mixed_list_rejected(self):
        parsed = parse([["RETURN 1", {"statement": "RETURN 2"}], _callback])
        assert isinstance(parsed.error, UsageError)

    def test_invalid_statement_object(self):
        parsed = parse([[{"statement": ""}], _callback])
        assert isinstance(parsed.error, UsageError)

    def test_too_many_mappings(self):
        parsed = parse(["RETURN 1", {}, {}, {}, _callback])
        assert isinstance(parsed.error, UsageError)
        assert "Unsupported call signature" in str(parsed.error)

    def test_non_mapping_after_query(self):
        parsed = parse(["RETURN 1", 5, _callback])
        assert isinstance(parsed.error, UsageError)

    def test_unsupported_payload(self):
        parsed = parse([3.5, _callback])
        assert isinstance(parsed.error, UsageError)
