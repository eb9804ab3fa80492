"""Tests for @netlify directive extraction."""

import itertools
import uuid

import pytest
from graphql import parse, print_ast

from gql_netgraph.core.directives import (
    DirectiveExtractor,
    capitalize_first,
    extract_functions,
    function_name_for,
)
from gql_netgraph.core.errors import MissingOperationNameError


@pytest.fixture
def extractor():
    """Extractor with predictable generated ids."""
    counter = itertools.count(1)
    return DirectiveExtractor(id_provider=lambda: f"generated-{next(counter)}")


# =============================================================================
# Naming
# =============================================================================


class TestFunctionNames:
    """Tests for generated function names."""

    @pytest.mark.parametrize(
        "kind, name, expected",
        [
            ("query", "getUser", "fetchGetUser"),
            ("mutation", "UpdateUser", "executeUpdateUser"),
            ("subscription", "UserUpdated", "subscribeToUserUpdated"),
        ],
    )
    def test_prefixes(self, kind, name, expected):
        assert function_name_for(kind, name) == expected

    def test_anonymous_raises(self):
        with pytest.raises(MissingOperationNameError, match="Anonymous query"):
            function_name_for("query", None)

    def test_capitalize_first(self):
        assert capitalize_first("userFields") == "UserFields"
        assert capitalize_first("") == ""


# =============================================================================
# Extraction
# =============================================================================


class TestExtractAll:
    """Tests for DirectiveExtractor.extract_all."""

    def test_only_annotated_definitions(self, extractor, operations_doc):
        functions, fragments = extractor.extract_all(operations_doc)
        assert set(functions) == {"q1", "m1", "s1"}
        assert set(fragments) == {"f1"}

    def test_function_record(self, extractor, operations_doc):
        function = extractor.extract(operations_doc)["q1"]
        assert function.operation_name == "GetUser"
        assert function.description == "Fetch one user"
        assert function.kind == "query"
        assert "@netlify" in function.operation_string
        assert "@netlify" not in function.operation_string_without_netlify_directive
        assert function.execution_strategy == "DYNAMIC"
        assert function.fetch_strategy == "POST"

    def test_persistable_string_includes_fragments(self, extractor, operations_doc):
        function = extractor.extract(operations_doc)["q1"]
        assert function.persistable_operation_string.startswith("query GetUser($id: ID!) {")
        assert "fragment UserFields on User" in function.persistable_operation_string

    def test_fragment_record(self, extractor, operations_doc):
        fragment = extractor.extract_fragments(operations_doc)["f1"]
        assert fragment.fragment_name == "UserFields"
        assert fragment.type_condition == "User"
        assert fragment.description == "Basic user fields"
        assert fragment.kind == "fragment"

    def test_generated_ids(self, extractor):
        functions = extractor.extract("query A @netlify { meta }\nquery B @netlify { meta }")
        assert list(functions) == ["generated-1", "generated-2"]

    def test_default_ids_are_unique(self):
        functions = extract_functions("query A @netlify { meta }\nquery B @netlify { meta }")
        assert len(functions) == 2

    def test_anonymous_key(self, extractor):
        functions = extractor.extract('{ user(id: "1") { id } } query Named @netlify(id: "n") { meta }')
        assert set(functions) == {"n"}
        anonymous = extractor.extract('query @netlify(id: "a") { meta }')
        assert anonymous["a"].operation_name == "unknown"

    def test_duplicate_ids_last_wins(self, extractor, caplog):
        functions = extractor.extract(
            'query First @netlify(id: "same") { meta }\nquery Second @netlify(id: "same") { meta }'
        )
        assert functions["same"].operation_name == "Second"
        assert "Duplicate function id same" in caplog.text

    def test_unparsable_text_yields_nothing(self, extractor, caplog):
        assert extractor.extract_all("query Q @netlify(id: ") == ({}, {})
        assert "Unable to parse operations document" in caplog.text

    def test_accepts_document_node(self, extractor, operations_doc):
        functions = extractor.extract(parse(operations_doc))
        assert "q1" in functions


class TestExecutionStrategy:
    """Tests for executionStrategy and cache control."""

    def test_persisted_with_ttl_uses_get(self, extractor):
        function = extractor.extract(
            'query Q @netlify(id: "q", executionStrategy: PERSISTED)'
            " @netlifyCacheControl(cacheStrategy: {timeToLiveSeconds: 60, enabled: true}) { meta }"
        )["q"]
        assert function.execution_strategy == "PERSISTED"
        assert function.cache_strategy.time_to_live_seconds == 60
        assert function.cache_strategy.enabled
        assert function.fetch_strategy == "GET"

    def test_persisted_without_ttl_uses_post(self, extractor):
        function = extractor.extract(
            'query Q @netlify(id: "q", executionStrategy: PERSISTED) { meta }'
        )["q"]
        assert function.cache_strategy is None
        assert function.fetch_strategy == "POST"

    def test_zero_ttl_uses_post(self, extractor):
        function = extractor.extract(
            'query Q @netlify(id: "q", executionStrategy: PERSISTED)'
            " @netlifyCacheControl(cacheStrategy: {timeToLiveSeconds: 0}) { meta }"
        )["q"]
        assert function.fetch_strategy == "POST"

    def test_fallback_on_error(self, extractor):
        function = extractor.extract(
            'query Q @netlify(id: "q")'
            " @netlifyCacheControl(cacheStrategy: {timeToLiveSeconds: 5.5}, fallbackOnError: true) { meta }"
        )["q"]
        assert function.fallback_on_error
        assert function.cache_strategy.time_to_live_seconds == 5.5

    def test_cache_control_ignored_on_mutations(self, extractor):
        function = extractor.extract(
            'mutation M @netlify(id: "m")'
            " @netlifyCacheControl(cacheStrategy: {timeToLiveSeconds: 60}) { updateUser(id: \"1\") { id } }"
        )["m"]
        assert function.cache_strategy is None

    def test_unknown_strategy_falls_back(self, extractor, caplog):
        function = extractor.extract(
            'query Q @netlify(id: "q", executionStrategy: CACHED) { meta }'
        )["q"]
        assert function.execution_strategy == "DYNAMIC"
        assert "Unknown executionStrategy CACHED" in caplog.text


class TestExtractionProperties:
    """Tests for generated ids and printed operation text."""

    def test_missing_id_is_a_fresh_uuid(self):
        doc = 'query Foo @netlify(doc: "d") { x }'
        first = extract_functions(doc)
        second = extract_functions(doc)
        (first_id, function), = first.items()
        (second_id, _), = second.items()
        assert function.description == "d"
        assert str(uuid.UUID(first_id)) == first_id
        assert first_id != second_id

    def test_operation_string_round_trips(self, extractor, operations_doc):
        for function in extractor.extract(operations_doc).values():
            assert print_ast(parse(function.operation_string)) == function.operation_string
