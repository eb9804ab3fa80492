"""Projects GraphQL schema types into type shapes.

This is the "full type" projection: object and input types expand to every
field they declare, regardless of what an operation selects. It is used for
operation variables and for scalar / enum leaves of selection projections.
"""

from graphql import (
    GraphQLSchema,
    GraphQLType,
    is_enum_type,
    is_input_object_type,
    is_interface_type,
    is_list_type,
    is_non_null_type,
    is_object_type,
    is_scalar_type,
    is_union_type,
    is_wrapping_type,
    specified_scalar_types,
)

from .console import get_logger
from .ir import ANY, INFINITE, EnumShape, ListShape, ObjectShape, ShapeField, TypeShape
from .scalars import DEFAULT_SCALARS, ScalarRegistry

# Maximum number of nested list / non-null wrappers before bailing out
MAX_WRAPPER_DEPTH = 30
INFINITE_LIST_DEPTH = -99


def list_depth(gql_type: GraphQLType) -> int:
    """Count the list wrappers around a type.

    ``[[Int!]!]!`` has a list depth of 2. Returns ``INFINITE_LIST_DEPTH``
    when more than ``MAX_WRAPPER_DEPTH`` wrappers are stacked.
    """
    count = 0
    total = 0
    inspected = gql_type
    while is_wrapping_type(inspected):
        if is_list_type(inspected):
            count += 1
        total += 1
        if total > MAX_WRAPPER_DEPTH:
            get_logger(__name__).warning("Bailing on potential infinite recursion")
            return INFINITE_LIST_DEPTH
        inspected = inspected.of_type
    return count


class TypeProjector:
    """Projects GraphQL types of one schema into type shapes."""

    def __init__(self, schema: GraphQLSchema, scalars: ScalarRegistry | None = None):
        self.schema = schema
        self.scalars = scalars or DEFAULT_SCALARS

    def project(self, gql_type: GraphQLType | str) -> TypeShape:
        """Project a type, or a type name looked up in the schema."""
        if isinstance(gql_type, str):
            named = self.schema.get_type(gql_type) or specified_scalar_types.get(gql_type)
            if named is None:
                get_logger(__name__).warning("Unknown type %s in schema", gql_type)
                return ANY
            gql_type = named
        return self._project(gql_type, 0, frozenset())

    def _project(self, gql_type: GraphQLType, depth: int, seen: frozenset[str]) -> TypeShape:
        if is_wrapping_type(gql_type):
            if depth >= MAX_WRAPPER_DEPTH:
                get_logger(__name__).warning("Bailing on potential infinite recursion")
                return INFINITE
            inner = self._project(gql_type.of_type, depth + 1, seen)
            if is_list_type(gql_type):
                return ListShape(inner)
            # Non-null is tracked on the field, not the shape
            return inner

        if is_object_type(gql_type) or is_interface_type(gql_type) or is_input_object_type(gql_type):
            return self._project_object(gql_type, seen)

        if is_enum_type(gql_type):
            return EnumShape(tuple(gql_type.values), description=gql_type.description)

        if is_scalar_type(gql_type):
            return self.scalars.shape_for(gql_type.name)

        if is_union_type(gql_type):
            return ANY

        get_logger(__name__).warning("Unrecognized type %s", gql_type)
        return ANY

    def _project_object(self, gql_type, seen: frozenset[str]) -> TypeShape:
        if gql_type.name in seen:
            get_logger(__name__).warning(
                "Type %s refers to itself, projecting the nested occurrence as any",
                gql_type.name,
            )
            return ANY

        nested_seen = seen | {gql_type.name}
        fields = {}
        for name, field in gql_type.fields.items():
            fields[name] = ShapeField(
                name=name,
                type=self._project(field.type, 0, nested_seen),
                nullable=not is_non_null_type(field.type),
                description=field.description,
            )
        return ObjectShape(fields, description=gql_type.description)


def project_type(
    schema: GraphQLSchema,
    gql_type: GraphQLType | str,
    scalars: ScalarRegistry | None = None,
) -> TypeShape:
    """Project a GraphQL type through ``schema`` into a type shape."""
    return TypeProjector(schema, scalars).project(gql_type)
