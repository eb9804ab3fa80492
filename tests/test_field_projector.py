"""Tests for selection set projection."""

import pytest
from graphql import FragmentDefinitionNode, build_schema, parse

from gql_netgraph.core.field_projector import (
    DATA_DESCRIPTION,
    FieldProjector,
    merge_field,
    project_selection,
    project_variables,
)
from gql_netgraph.core.ir import ANY, EnumShape, ListShape, ObjectShape, ScalarShape, ShapeField


def first_definition(text):
    return parse(text, no_location=True).definitions[0]


def fragments_of(text):
    return {
        d.name.value: d
        for d in parse(text, no_location=True).definitions
        if isinstance(d, FragmentDefinitionNode)
    }


def data_of(schema, text, fragments=None):
    return project_selection(schema, first_definition(text), fragments)["data"].type


# =============================================================================
# Envelope
# =============================================================================


class TestEnvelope:
    """Tests for the {data, errors} wrapper."""

    def test_data_and_errors(self, schema):
        shape = project_selection(schema, first_definition("{ meta }"))
        assert list(shape.fields) == ["data", "errors"]
        assert not shape["data"].nullable
        assert shape["data"].description == DATA_DESCRIPTION
        assert shape["errors"].nullable
        assert shape["errors"].type == ListShape(ANY)

    def test_missing_root_type(self, caplog):
        schema = build_schema("type Query { a: Int }")
        shape = project_selection(schema, first_definition("mutation M { a }"))
        assert shape["data"].type is ANY
        assert "Unable to find root type for M" in caplog.text

    def test_nothing_resolved(self, schema):
        shape = project_selection(schema, first_definition("{ nope }"))
        assert shape["data"].type is ANY


# =============================================================================
# Fields
# =============================================================================


class TestFieldSelection:
    """Tests for plain field selections."""

    def test_only_selected_fields(self, schema):
        data = data_of(schema, 'query GetUser { user(id: "1") { id name } }')
        user = data["user"]
        assert user.nullable
        assert list(user.type.fields) == ["id", "name"]
        assert not user.type["id"].nullable
        assert user.type["id"].type == ScalarShape("string")
        assert user.type["name"].description == "The display name"

    def test_alias_is_the_key(self, schema):
        data = data_of(schema, '{ me: user(id: "1") { id } }')
        assert "me" in data
        assert "user" not in data

    def test_typename(self, schema):
        data = data_of(schema, '{ user(id: "1") { __typename } }')
        entry = data["user"].type["__typename"]
        assert entry.type is ANY
        assert not entry.nullable

    def test_enum_leaf(self, schema):
        data = data_of(schema, '{ user(id: "1") { role } }')
        assert data["user"].type["role"].type == EnumShape(("ADMIN", "MEMBER"))

    def test_list_of_objects(self, schema):
        data = data_of(schema, "{ users { id } }")
        users = data["users"]
        assert not users.nullable
        assert isinstance(users.type, ListShape)
        assert list(users.type.of.fields) == ["id"]

    def test_repeated_field_is_merged(self, schema):
        data = data_of(schema, '{ user(id: "1") { id } user(id: "1") { name } }')
        assert list(data["user"].type.fields) == ["id", "name"]

    def test_unknown_field_is_skipped(self, schema, caplog):
        data = data_of(schema, '{ user(id: "1") { id missing } }')
        assert list(data["user"].type.fields) == ["id"]
        assert "Could not find field missing on User" in caplog.text


# =============================================================================
# Fragments
# =============================================================================


class TestFragments:
    """Tests for fragment spreads and inline fragments."""

    def test_spread_on_concrete_type(self, schema):
        text = """
        query Q { user(id: "1") { id ...UserFields } }
        fragment UserFields on User { name email }
        """
        data = data_of(schema, text, fragments_of(text))
        user = data["user"].type
        assert list(user.fields) == ["id", "name", "email"]
        assert not user["email"].nullable

    def test_inline_fragment_on_interface_is_optional(self, schema):
        data = data_of(schema, '{ node(id: "1") { id ... on User { email } } }')
        node = data["node"].type
        assert not node["id"].nullable
        assert node["email"].nullable

    def test_inline_fragment_without_condition(self, schema):
        data = data_of(schema, '{ user(id: "1") { ... { email } } }')
        assert not data["user"].type["email"].nullable

    def test_union_members(self, schema):
        data = data_of(schema, '{ search(text: "x") { __typename ... on Post { title } } }')
        search = data["search"].type
        assert isinstance(search, ListShape)
        assert list(search.of.fields) == ["__typename", "title"]
        assert search.of["title"].nullable

    def test_unknown_fragment_is_ignored(self, schema):
        data = data_of(schema, '{ user(id: "1") { id ...Nowhere } }')
        assert list(data["user"].type.fields) == ["id"]

    def test_self_spread_is_cut(self, schema, caplog):
        text = "fragment Loop on User { id friends { ...Loop } }"
        fragments = fragments_of(text)
        shape = FieldProjector(schema, fragments).project(fragments["Loop"])
        data = shape["data"].type
        assert data["friends"].type == ListShape(ObjectShape({}, description="A person using the site"))
        assert "spreads itself" in caplog.text

    def test_fragment_root(self, schema):
        text = "fragment PostFields on Post { title author { name } }"
        data = data_of(schema, text)
        assert list(data.fields) == ["title", "author"]
        assert list(data["author"].type.fields) == ["name"]


# =============================================================================
# Variables
# =============================================================================


class TestVariables:
    """Tests for variable projection."""

    def test_types_and_nullability(self, schema):
        operation = first_definition(
            "query Q($id: ID!, $limit: Int, $filter: UserFilter) {"
            " user(id: $id) { id } users(filter: $filter, limit: $limit) { id } }"
        )
        shape = project_variables(schema, operation)
        assert list(shape.fields) == ["id", "limit", "filter"]
        assert not shape["id"].nullable
        assert shape["limit"].nullable
        assert isinstance(shape["filter"].type, ObjectShape)

    def test_description_from_argument(self, schema):
        operation = first_definition("query Q($id: ID!) { user(id: $id) { id } }")
        assert project_variables(schema, operation)["id"].description == "The user id"

    def test_description_from_input_field(self, schema):
        operation = first_definition("query Q($text: String) { users(filter: {text: $text}) { id } }")
        assert project_variables(schema, operation)["text"].description == "Search text"

    def test_conflicting_descriptions_are_dropped(self, schema):
        operation = first_definition(
            "query Q($id: ID!) { user(id: $id) { id } node(id: $id) { id } }"
        )
        assert project_variables(schema, operation)["id"].description is None

    def test_undefined_variable(self, schema, caplog):
        operation = first_definition("query Q { user(id: $missing) { id } }")
        shape = project_variables(schema, operation)
        assert shape.fields == {}
        assert "Undefined variable $missing found in operation Q" in caplog.text

    def test_unknown_variable_type(self, schema, caplog):
        operation = first_definition("query Q($x: Nope) { meta }")
        assert project_variables(schema, operation).fields == {}
        assert "Unknown type for variable $x" in caplog.text


# =============================================================================
# Merging
# =============================================================================


class TestMergeField:
    """Tests for merge_field."""

    @pytest.mark.parametrize(
        "first, second, expected",
        [(True, True, True), (True, False, False), (False, True, False), (False, False, False)],
    )
    def test_nullability_table(self, first, second, expected):
        fields = {"a": ShapeField("a", ANY, nullable=first)}
        merge_field(fields, ShapeField("a", ANY, nullable=second))
        assert fields["a"].nullable is expected

    def test_nested_objects_merge(self):
        fields = {"a": ShapeField("a", ObjectShape({"x": ShapeField("x", ANY)}))}
        merge_field(fields, ShapeField("a", ObjectShape({"y": ShapeField("y", ANY)})))
        assert list(fields["a"].type.fields) == ["x", "y"]

    def test_new_key_is_added(self):
        fields = {}
        merge_field(fields, ShapeField("b", ANY))
        assert list(fields) == ["b"]


class TestMetaFields:
    """Tests for meta fields at the root."""

    def test_typename_only_query(self, schema):
        shape = project_selection(schema, first_definition("query Foo { __typename }"))
        data = shape["data"].type
        assert list(data.fields) == ["__typename"]
        assert data["__typename"].type is ANY
        assert shape["errors"].type == ListShape(ANY)
