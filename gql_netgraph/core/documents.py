"""Operations document utilities.

Helpers that work on whole documents rather than single definitions:
normalizing a document for stable diffs, building the persistable text of
an operation and collecting literal argument values.
"""

from dataclasses import dataclass, field

from graphql import (
    ArgumentNode,
    DocumentNode,
    FloatValueNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    GraphQLSyntaxError,
    IntValueNode,
    ObjectFieldNode,
    OperationDefinitionNode,
    StringValueNode,
    Visitor,
    parse,
    print_ast,
    visit,
)
from graphql.language import REMOVE

from .console import get_logger

NETLIFY_DIRECTIVE_NAME = "netlify"
NETLIFY_CACHE_CONTROL_DIRECTIVE_NAME = "netlifyCacheControl"
TOOLING_DIRECTIVES = frozenset({NETLIFY_DIRECTIVE_NAME, NETLIFY_CACHE_CONTROL_DIRECTIVE_NAME})


def strip_tooling_directives(definition):
    """Return a new definition node without its own tooling directives.

    AST nodes are treated as immutable, so the node is rebuilt from its keys.
    """
    directives = tuple(
        d for d in definition.directives or () if d.name.value not in TOOLING_DIRECTIVES
    )
    attributes = {
        key: getattr(definition, key, None) for key in definition.keys if key != "directives"
    }
    return definition.__class__(directives=directives, **attributes)


class _ToolingDirectiveRemover(Visitor):
    def enter_directive(self, node, *_args):
        if node.name.value in TOOLING_DIRECTIVES:
            return REMOVE
        return None


class _BlockStringNormalizer(Visitor):
    def enter_string_value(self, node, *_args):
        if "\n" in node.value and not node.block:
            return StringValueNode(value=node.value, block=True)
        return None


@dataclass
class PersistableOperation:
    """An operation printed together with every fragment it needs."""
    operation_string: str
    fragment_dependencies: list[FragmentDefinitionNode] = field(default_factory=list)


def _sort_key(name: str) -> tuple[str, str]:
    return (name.casefold(), name)


def extract_persistable_operation(
    document: DocumentNode,
    operation: OperationDefinitionNode,
) -> PersistableOperation:
    """Build the self-contained text of an operation.

    Tooling directives are removed anywhere in the operation. The operation
    comes first, followed by the fragments it spreads (directly or through
    other fragments) sorted by name, separated by blank lines.
    """
    fragments_by_name = {
        d.name.value: d for d in document.definitions if isinstance(d, FragmentDefinitionNode)
    }
    found: dict[str, FragmentDefinitionNode] = {}

    def collect(node):
        for name in _spread_names(node):
            if name in found:
                continue
            fragment = fragments_by_name.get(name)
            if fragment is None:
                get_logger(__name__).warning(
                    "Could not find fragment definition for referenced fragment: %s", name
                )
                continue
            found[name] = fragment
            collect(fragment)

    collect(operation)

    printed_operation = print_ast(visit(operation, _ToolingDirectiveRemover()))
    fragments = [found[name] for name in sorted(found, key=_sort_key)]
    parts = [printed_operation] + [print_ast(fragment) for fragment in fragments]
    return PersistableOperation("\n\n".join(parts), fragments)


class _SpreadCollector(Visitor):
    def __init__(self):
        super().__init__()
        self.names: list[str] = []

    def enter_fragment_spread(self, node: FragmentSpreadNode, *_args):
        self.names.append(node.name.value)


def _spread_names(node) -> list[str]:
    collector = _SpreadCollector()
    visit(node, collector)
    return collector.names


def _definition_sort_name(definition) -> str:
    name = getattr(definition, "name", None)
    return name.value if name is not None else "__unknownDefinition"


def normalize_operations_doc(text: str) -> str:
    """Print a document in a canonical form.

    Definitions are sorted by name, multi-line strings become block strings
    and fragments are printed before operations.

    Raises:
        GraphQLSyntaxError: If the document does not parse
    """
    document = parse(text, no_location=True)
    ordered = sorted(
        document.definitions, key=lambda d: _sort_key(_definition_sort_name(d))
    )

    fragments = []
    operations = []
    for definition in ordered:
        normalized = visit(definition, _BlockStringNormalizer())
        if isinstance(normalized, FragmentDefinitionNode):
            fragments.append(print_ast(normalized))
        elif isinstance(normalized, OperationDefinitionNode):
            operations.append(print_ast(normalized))

    return "\n\n".join(fragments + operations) + "\n"


def gather_hardcoded_values(text: str) -> list[tuple[str, str]]:
    """Collect ``(name, value)`` pairs of literal string and number arguments.

    Input object fields are included. Text that does not parse yields an
    empty list.
    """
    try:
        document = parse(text, no_location=True)
    except GraphQLSyntaxError as e:
        get_logger(__name__).warning("Error parsing query: %s", e.message)
        return []

    values: list[tuple[str, str]] = []

    class Collector(Visitor):
        def _record(self, node: ArgumentNode | ObjectFieldNode):
            if isinstance(node.value, (StringValueNode, IntValueNode, FloatValueNode)):
                if node.value.value:
                    values.append((node.name.value, node.value.value))

        def enter_argument(self, node, *_args):
            self._record(node)

        def enter_object_field(self, node, *_args):
            self._record(node)

    visit(document, Collector())
    return values
