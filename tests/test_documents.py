"""Tests for operations document utilities."""

import pytest
from graphql import GraphQLSyntaxError, parse, print_ast

from gql_netgraph.core.documents import (
    extract_persistable_operation,
    gather_hardcoded_values,
    normalize_operations_doc,
    strip_tooling_directives,
)

PERSISTABLE_DOC = """
query GetUser @netlify(id: "q1") @netlifyCacheControl(cacheStrategy: {timeToLiveSeconds: 30}) {
  user(id: "1") {
    ...b
    ...Missing
  }
}
fragment b on User { id ...A }
fragment A on User { name }
fragment Unused on User { email }
"""


# =============================================================================
# Persistable operations
# =============================================================================


class TestExtractPersistableOperation:
    """Tests for extract_persistable_operation."""

    @pytest.fixture
    def result(self):
        document = parse(PERSISTABLE_DOC, no_location=True)
        return extract_persistable_operation(document, document.definitions[0])

    def test_operation_comes_first(self, result):
        parts = result.operation_string.split("\n\n")
        assert parts[0].startswith("query GetUser {")
        assert len(parts) == 3

    def test_tooling_directives_removed(self, result):
        first = result.operation_string.split("\n\n")[0]
        assert "@netlify" not in first

    def test_fragments_sorted_by_name(self, result):
        assert [f.name.value for f in result.fragment_dependencies] == ["A", "b"]
        parts = result.operation_string.split("\n\n")
        assert parts[1].startswith("fragment A on User")
        assert parts[2].startswith("fragment b on User")

    def test_unused_fragments_left_out(self, result):
        assert "Unused" not in result.operation_string

    def test_missing_fragment_warns(self, caplog):
        document = parse(PERSISTABLE_DOC, no_location=True)
        extract_persistable_operation(document, document.definitions[0])
        assert "Could not find fragment definition for referenced fragment: Missing" in caplog.text

    def test_fragment_cycle_terminates(self):
        document = parse(
            'query Q { user(id: "1") { ...A } }\n'
            "fragment A on User { id ...B }\n"
            "fragment B on User { name ...A }",
            no_location=True,
        )
        result = extract_persistable_operation(document, document.definitions[0])
        assert [f.name.value for f in result.fragment_dependencies] == ["A", "B"]


class TestStripToolingDirectives:
    """Tests for strip_tooling_directives."""

    def test_keeps_other_directives(self):
        fragment = parse('fragment F on User @netlify(id: "x") @custom { id }').definitions[0]
        stripped = strip_tooling_directives(fragment)
        assert [d.name.value for d in stripped.directives] == ["custom"]
        assert len(fragment.directives) == 2

    def test_printed_without_directive(self):
        operation = parse('query Q @netlify(id: "x") { meta }').definitions[0]
        assert print_ast(strip_tooling_directives(operation)) == "query Q {\n  meta\n}"

    def test_builds_a_new_node(self):
        operation = parse('query Q($id: ID!) @netlify(id: "x") { user(id: $id) { id } }').definitions[0]
        stripped = strip_tooling_directives(operation)
        assert stripped is not operation
        assert type(stripped) is type(operation)
        assert stripped.name is operation.name
        assert stripped.selection_set is operation.selection_set
        assert stripped.variable_definitions == operation.variable_definitions
        assert [d.name.value for d in operation.directives] == ["netlify"]


# =============================================================================
# Normalization
# =============================================================================


class TestNormalizeOperationsDoc:
    """Tests for normalize_operations_doc."""

    DOC = """
    query Zeta { meta }
    fragment beta on User { id }
    query alpha { search(text: "line1\\nline2") { __typename } }
    fragment Alpha on User { name }
    """

    def test_fragments_first_then_sorted(self):
        normalized = normalize_operations_doc(self.DOC)
        order = [
            normalized.index("fragment Alpha"),
            normalized.index("fragment beta"),
            normalized.index("query alpha"),
            normalized.index("query Zeta"),
        ]
        assert order == sorted(order)

    def test_trailing_newline(self):
        assert normalize_operations_doc(self.DOC).endswith("}\n")

    def test_multiline_strings_become_block_strings(self):
        assert '"""' in normalize_operations_doc(self.DOC)

    def test_idempotent(self):
        once = normalize_operations_doc(self.DOC)
        assert normalize_operations_doc(once) == once

    def test_anonymous_definitions(self):
        normalized = normalize_operations_doc("query B { meta }\n{ users { id } }")
        # Anonymous definitions sort as "__unknownDefinition"
        assert normalized.startswith("{\n  users")
        assert "query B" in normalized

    def test_syntax_error_raises(self):
        with pytest.raises(GraphQLSyntaxError):
            normalize_operations_doc("query {")


# =============================================================================
# Hard-coded values
# =============================================================================


class TestGatherHardcodedValues:
    """Tests for gather_hardcoded_values."""

    def test_collects_literals(self):
        values = gather_hardcoded_values(
            '{ user(id: "1") { posts(first: 10) { id } }'
            ' users(filter: {text: "bob"}) { id } search(text: "") { __typename } }'
        )
        assert values == [("id", "1"), ("first", "10"), ("text", "bob")]

    def test_variables_are_not_literals(self):
        assert gather_hardcoded_values("query Q($id: ID!) { user(id: $id) { id } }") == []

    def test_parse_error(self, caplog):
        assert gather_hardcoded_values("query {") == []
        assert "Error parsing query" in caplog.text
