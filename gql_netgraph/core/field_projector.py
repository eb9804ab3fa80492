"""Projects operation selection sets into response shapes.

Unlike the full type projection, object-typed fields are restricted to the
sub-selection the operation asks for. Inline fragments and fragment spreads
are flattened into the enclosing object.
"""

from collections.abc import Mapping
from dataclasses import replace

from graphql import (
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    GraphQLNamedType,
    GraphQLSchema,
    GraphQLType,
    InlineFragmentNode,
    OperationDefinitionNode,
    SelectionSetNode,
    TypeInfo,
    TypeInfoVisitor,
    VariableNode,
    Visitor,
    get_named_type,
    is_abstract_type,
    is_input_object_type,
    is_interface_type,
    is_list_type,
    is_non_null_type,
    is_object_type,
    is_union_type,
    is_wrapping_type,
    type_from_ast,
    visit,
)

from .console import get_logger
from .ir import (
    ANY,
    INFINITE,
    ExecutableDefinition,
    ListShape,
    ObjectShape,
    ShapeField,
    TypeShape,
)
from .scalars import ScalarRegistry
from .type_projector import MAX_WRAPPER_DEPTH, TypeProjector

DATA_DESCRIPTION = "Any data from the function will be returned here"
ERRORS_DESCRIPTION = "Any errors from the function will be returned here"


def merge_shapes(left: TypeShape, right: TypeShape) -> TypeShape:
    """Merge two shapes selected under the same response key."""
    if isinstance(left, ObjectShape) and isinstance(right, ObjectShape):
        fields = dict(left.fields)
        for entry in right.fields.values():
            merge_field(fields, entry)
        return ObjectShape(fields, description=left.description or right.description)
    if isinstance(left, ListShape) and isinstance(right, ListShape):
        return ListShape(merge_shapes(left.of, right.of))
    return left


def merge_field(fields: dict[str, ShapeField], entry: ShapeField):
    """Add ``entry`` to ``fields``, merging with an existing entry of the same key."""
    existing = fields.get(entry.name)
    if existing is None:
        fields[entry.name] = entry
        return
    fields[entry.name] = ShapeField(
        name=entry.name,
        type=merge_shapes(existing.type, entry.type),
        nullable=existing.nullable and entry.nullable,
        description=existing.description or entry.description,
    )


class FieldProjector:
    """Computes the response shape of operations and fragments.

    Args:
        schema: The schema operations are validated against
        fragments: Fragment definitions available to spreads, keyed by name
        scalars: Optional scalar table (defaults to the built-in scalars)
    """

    def __init__(
        self,
        schema: GraphQLSchema,
        fragments: Mapping[str, FragmentDefinitionNode] | None = None,
        scalars: ScalarRegistry | None = None,
    ):
        self.schema = schema
        self.fragments = dict(fragments or {})
        self.types = TypeProjector(schema, scalars)

    def project(self, definition: ExecutableDefinition) -> ObjectShape:
        """Return the ``{data, errors}`` shape for an operation or fragment."""
        data: TypeShape = ANY
        root = self._root_type(definition)

        if root is None:
            get_logger(__name__).warning(
                "Unable to find root type for %s", _definition_label(definition)
            )
        else:
            expanding = frozenset()
            if isinstance(definition, FragmentDefinitionNode):
                expanding = frozenset({definition.name.value})
            fields = self._project_selections(root, definition.selection_set, expanding)
            if fields:
                data = ObjectShape(fields)

        return ObjectShape({
            "data": ShapeField("data", data, nullable=False, description=DATA_DESCRIPTION),
            "errors": ShapeField(
                "errors", ListShape(ANY), nullable=True, description=ERRORS_DESCRIPTION
            ),
        })

    def project_variables(self, operation: OperationDefinitionNode) -> ObjectShape:
        """Return the shape of the variables object an operation accepts."""
        names = [d.variable.name.value for d in operation.variable_definitions or ()]
        descriptions = guess_variable_descriptions(self.schema, operation, names)

        fields = {}
        for variable_definition in operation.variable_definitions or ():
            name = variable_definition.variable.name.value
            gql_type = type_from_ast(self.schema, variable_definition.type)
            if gql_type is None:
                get_logger(__name__).warning(
                    "Unknown type for variable $%s in %s", name, _definition_label(operation)
                )
                continue

            found = descriptions.get(name, set())
            fields[name] = ShapeField(
                name=name,
                type=self.types.project(gql_type),
                nullable=not is_non_null_type(gql_type),
                description=next(iter(found)) if len(found) == 1 else None,
            )
        return ObjectShape(fields)

    def _root_type(self, definition: ExecutableDefinition) -> GraphQLNamedType | None:
        if isinstance(definition, FragmentDefinitionNode):
            return self.schema.get_type(definition.type_condition.name.value)
        operation = definition.operation.value
        if operation == "query":
            return self.schema.query_type
        if operation == "mutation":
            return self.schema.mutation_type
        if operation == "subscription":
            return self.schema.subscription_type
        return None

    def _project_selections(
        self,
        parent_type: GraphQLNamedType,
        selection_set: SelectionSetNode,
        expanding: frozenset[str],
    ) -> dict[str, ShapeField]:
        fields: dict[str, ShapeField] = {}

        for selection in selection_set.selections:
            if isinstance(selection, FieldNode):
                entry = self._project_field(parent_type, selection, expanding)
                if entry is not None:
                    merge_field(fields, entry)

            elif isinstance(selection, InlineFragmentNode):
                condition_type = parent_type
                if selection.type_condition is not None:
                    condition_type = type_from_ast(self.schema, selection.type_condition)
                if condition_type is None:
                    get_logger(__name__).debug(
                        "Skipping inline fragment on unknown type %s",
                        selection.type_condition.name.value,
                    )
                    continue
                spliced = self._project_selections(
                    condition_type, selection.selection_set, expanding
                )
                self._splice(fields, spliced, parent_type, condition_type)

            elif isinstance(selection, FragmentSpreadNode):
                name = selection.name.value
                fragment = self.fragments.get(name)
                if fragment is None:
                    get_logger(__name__).debug("Ignoring spread of unknown fragment %s", name)
                    continue
                if name in expanding:
                    get_logger(__name__).warning(
                        "Fragment %s spreads itself, skipping the nested spread", name
                    )
                    continue
                condition_type = type_from_ast(self.schema, fragment.type_condition)
                if condition_type is None:
                    get_logger(__name__).warning(
                        "Unknown type condition %s on fragment %s",
                        fragment.type_condition.name.value,
                        name,
                    )
                    continue
                spliced = self._project_selections(
                    condition_type, fragment.selection_set, expanding | {name}
                )
                self._splice(fields, spliced, parent_type, condition_type)

        return fields

    @staticmethod
    def _splice(
        fields: dict[str, ShapeField],
        spliced: dict[str, ShapeField],
        parent_type: GraphQLNamedType,
        condition_type: GraphQLNamedType,
    ):
        # Fields selected on one concrete type of an abstract parent may be absent
        optional = is_abstract_type(parent_type) and condition_type.name != parent_type.name
        for entry in spliced.values():
            merge_field(fields, replace(entry, nullable=True) if optional else entry)

    def _project_field(
        self,
        parent_type: GraphQLNamedType,
        node: FieldNode,
        expanding: frozenset[str],
    ) -> ShapeField | None:
        name = node.name.value
        key = node.alias.value if node.alias else name

        if name.startswith("__"):
            return ShapeField(key, ANY, nullable=False, description="Internal GraphQL field")

        if not (is_object_type(parent_type) or is_interface_type(parent_type)):
            get_logger(__name__).warning(
                "Could not find field %s on %s", name, getattr(parent_type, "name", parent_type)
            )
            return None

        field = parent_type.fields.get(name)
        if field is None:
            get_logger(__name__).warning(
                "Could not find field %s on %s among %s",
                name,
                parent_type.name,
                ", ".join(parent_type.fields),
            )
            return None

        return ShapeField(
            name=key,
            type=self._project_output(field.type, node.selection_set, expanding, 0),
            nullable=not is_non_null_type(field.type),
            description=field.description,
        )

    def _project_output(
        self,
        gql_type: GraphQLType,
        selection_set: SelectionSetNode | None,
        expanding: frozenset[str],
        depth: int,
    ) -> TypeShape:
        if is_wrapping_type(gql_type):
            if depth >= MAX_WRAPPER_DEPTH:
                get_logger(__name__).warning("Bailing on potential infinite recursion")
                return INFINITE
            inner = self._project_output(gql_type.of_type, selection_set, expanding, depth + 1)
            return ListShape(inner) if is_list_type(gql_type) else inner

        if is_object_type(gql_type) or is_interface_type(gql_type) or is_union_type(gql_type):
            if selection_set is None:
                get_logger(__name__).warning("Missing selection set for %s", gql_type.name)
                return ANY
            fields = self._project_selections(gql_type, selection_set, expanding)
            return ObjectShape(fields, description=gql_type.description)

        return self.types.project(gql_type)


class _VariableUsageVisitor(Visitor):
    """Collects argument / input field descriptions for each variable."""

    def __init__(self, type_info: TypeInfo, operation_label: str, variable_names: list[str]):
        super().__init__()
        self.type_info = type_info
        self.operation_label = operation_label
        self.descriptions: dict[str, set[str]] = {name: set() for name in variable_names}

    def _record(self, variable_name: str, description: str | None):
        found = self.descriptions.get(variable_name)
        if found is None:
            get_logger(__name__).warning(
                "Undefined variable $%s found in operation %s",
                variable_name,
                self.operation_label,
            )
            return
        if description:
            found.add(description)

    def enter_argument(self, node, *_args):
        if isinstance(node.value, VariableNode):
            argument = self.type_info.get_argument()
            self._record(node.value.name.value, argument.description if argument else None)

    def enter_object_field(self, node, *_args):
        if isinstance(node.value, VariableNode):
            parent = get_named_type(self.type_info.get_parent_input_type())
            if not is_input_object_type(parent):
                return
            field = parent.fields.get(node.name.value)
            self._record(node.value.name.value, field.description if field else None)


def guess_variable_descriptions(
    schema: GraphQLSchema,
    operation: OperationDefinitionNode,
    variable_names: list[str],
) -> dict[str, set[str]]:
    """Find the descriptions of the arguments each variable is bound to."""
    type_info = TypeInfo(schema)
    visitor = _VariableUsageVisitor(type_info, _definition_label(operation), variable_names)
    visit(operation, TypeInfoVisitor(type_info, visitor))
    return visitor.descriptions


def project_selection(
    schema: GraphQLSchema,
    definition: ExecutableDefinition,
    fragments: Mapping[str, FragmentDefinitionNode] | None = None,
    scalars: ScalarRegistry | None = None,
) -> ObjectShape:
    """Project an operation or fragment into its ``{data, errors}`` shape."""
    return FieldProjector(schema, fragments, scalars).project(definition)


def project_variables(
    schema: GraphQLSchema,
    operation: OperationDefinitionNode,
    scalars: ScalarRegistry | None = None,
) -> ObjectShape:
    """Project the variable definitions of an operation."""
    return FieldProjector(schema, scalars=scalars).project_variables(operation)


def _definition_label(definition: ExecutableDefinition) -> str:
    if definition.name is not None:
        return definition.name.value
    return f"<Unnamed:{definition.operation.value}>"
