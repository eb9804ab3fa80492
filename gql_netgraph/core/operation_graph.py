"""Operation graph resolution.

Builds the list of executable definitions of a document, resolves the
fragments each one spreads and orders them so that every fragment comes
before the definitions that depend on it.

Example usage:
    from gql_netgraph.core.operation_graph import OperationGraphBuilder

    result = OperationGraphBuilder().build(document_text)
    print(result.names())   # ['UserFields', 'GetUser']
"""

import hashlib
import logging
from collections import OrderedDict
from collections.abc import Mapping
from typing import Any

from graphql import (
    DocumentNode,
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    GraphQLSyntaxError,
    InlineFragmentNode,
    OperationDefinitionNode,
    SelectionSetNode,
    parse,
    print_ast,
)

from .console import get_logger
from .errors import DuplicateDefinitionError
from .ir import ExecutableDefinition, OperationData, OperationDataList


def definition_kind(definition: ExecutableDefinition) -> str:
    """Return 'query', 'mutation', 'subscription' or 'fragment'."""
    if isinstance(definition, FragmentDefinitionNode):
        return "fragment"
    return definition.operation.value


def definition_name(definition: ExecutableDefinition) -> str:
    """Name of a definition, or its kind when it is anonymous."""
    if definition.name is not None:
        return definition.name.value
    return definition_kind(definition)


def display_name(definition: ExecutableDefinition) -> str:
    """Human readable name, ``<Unnamed:query>`` for anonymous definitions."""
    if definition.name is not None:
        return definition.name.value
    return f"<Unnamed:{definition_kind(definition)}>"


def format_variable_name(name: str) -> str:
    """Convert an operation name into a constant-style identifier.

    ``getUserById`` becomes ``GET_USER_BY_ID``.
    """
    if not name:
        return name
    rest = "".join(f"_{char}" if char.isupper() else char for char in name[1:])
    return (name[0].upper() + rest).upper()


def used_variables(variables: Mapping[str, Any], definition: ExecutableDefinition) -> dict[str, Any]:
    """Pick the caller-supplied values for the variables a definition declares."""
    used = {}
    for variable_definition in getattr(definition, "variable_definitions", None) or ():
        name = variable_definition.variable.name.value
        if name in variables:
            used[name] = variables[name]
    return used


def spread_names(selection_set: SelectionSetNode | None) -> list[str]:
    """Names of fragments spread anywhere inside a selection set, in order."""
    names: list[str] = []
    if selection_set is None:
        return names
    for selection in selection_set.selections:
        if isinstance(selection, FragmentSpreadNode):
            names.append(selection.name.value)
        elif isinstance(selection, (FieldNode, InlineFragmentNode)):
            names.extend(spread_names(selection.selection_set))
    return names


def find_fragment_dependencies(
    fragments: Mapping[str, FragmentDefinitionNode],
    definition: ExecutableDefinition,
) -> list[FragmentDefinitionNode]:
    """Fragments reachable from a definition, following spreads transitively.

    Unknown fragment names are skipped. The result is deduplicated, keeps
    discovery order and never contains the definition itself.
    """
    own_name = definition.name.value if isinstance(definition, FragmentDefinitionNode) else None
    found: dict[str, FragmentDefinitionNode] = {}
    pending = spread_names(definition.selection_set)

    while pending:
        name = pending.pop(0)
        if name in found or name == own_name:
            continue
        fragment = fragments.get(name)
        if fragment is None:
            continue
        found[name] = fragment
        pending.extend(spread_names(fragment.selection_set))

    return list(found.values())


class ParsedDocumentCache:
    """Memo of parsed documents keyed by the SHA-256 of their text.

    Holds at most ``max_entries`` documents and evicts the oldest first.
    """

    def __init__(self, max_entries: int = 1):
        self.max_entries = max_entries
        self._entries: OrderedDict[str, tuple[str, list[ExecutableDefinition]]] = OrderedDict()

    @staticmethod
    def _key(text: str) -> str:
        return hashlib.sha256(text.encode("utf-8")).hexdigest()

    def get(self, text: str) -> list[ExecutableDefinition] | None:
        entry = self._entries.get(self._key(text))
        if entry is None or entry[0] != text:
            return None
        return entry[1]

    def put(self, text: str, definitions: list[ExecutableDefinition]):
        key = self._key(text)
        self._entries[key] = (text, definitions)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def clear(self):
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class OperationGraphBuilder:
    """Resolves the fragment dependency graph of an operations document.

    Args:
        cache: Parsed document memo (a fresh single-entry cache by default)
        logger: Logger for diagnostics (defaults to the package logger)
        strict_names: Raise on duplicate definition names instead of logging
    """

    def __init__(
        self,
        cache: ParsedDocumentCache | None = None,
        logger: logging.Logger | None = None,
        strict_names: bool = False,
    ):
        self.cache = cache if cache is not None else ParsedDocumentCache()
        self.logger = logger or get_logger(__name__)
        self.strict_names = strict_names

    def definitions(self, document: str | DocumentNode) -> list[ExecutableDefinition]:
        """Executable definitions of a document in source order.

        Text that fails to parse yields an empty list.
        """
        if isinstance(document, DocumentNode):
            return _executable_definitions(document)

        cached = self.cache.get(document)
        if cached is not None:
            return cached

        try:
            definitions = _executable_definitions(parse(document, no_location=True))
        except GraphQLSyntaxError as e:
            self.logger.warning("Unable to parse operations document: %s", e.message)
            definitions = []

        self.cache.put(document, definitions)
        return definitions

    def build(
        self,
        document: str | DocumentNode,
        variables: Mapping[str, Any] | None = None,
    ) -> OperationDataList:
        """Build the ordered operation data list for a document."""
        variables = variables or {}
        definitions = self.definitions(document)

        operation_definitions = [d for d in definitions if isinstance(d, OperationDefinitionNode)]
        fragment_definitions = [d for d in definitions if isinstance(d, FragmentDefinitionNode)]

        fragments_by_name: dict[str, FragmentDefinitionNode] = {}
        for fragment in fragment_definitions:
            fragments_by_name.setdefault(fragment.name.value, fragment)

        raw = []
        for definition in definitions:
            name = definition_name(definition)
            raw.append(OperationData(
                name=name,
                display_name=display_name(definition),
                type=definition_kind(definition),
                variable_name=format_variable_name(name),
                variables=used_variables(variables, definition),
                operation_definition=definition,
                fragment_dependencies=find_fragment_dependencies(fragments_by_name, definition),
                query=print_ast(definition),
            ))

        self._check_names(raw)

        return OperationDataList(
            definitions=definitions,
            operation_definitions=operation_definitions,
            fragment_definitions=fragment_definitions,
            raw_operation_data_list=raw,
            operation_data_list=self.sort(raw),
        )

    def _check_names(self, nodes: list[OperationData]):
        seen: set[str] = set()
        for node in nodes:
            if not node.is_named:
                continue
            if node.name in seen:
                if self.strict_names:
                    raise DuplicateDefinitionError(node.name)
                self.logger.warning(
                    "Duplicate definition name %s, dependencies resolve to the first one",
                    node.name,
                )
            seen.add(node.name)

    def sort(self, nodes: list[OperationData]) -> list[OperationData]:
        """Order nodes so fragment dependencies precede their dependents.

        Depth-first in document order. A dependency that is still being
        visited closes a cycle; the edge is skipped with a warning. A fragment
        spreading itself is reported the same way.
        """
        by_name: dict[str, int] = {}
        for index, node in enumerate(nodes):
            if node.type == "fragment":
                by_name.setdefault(node.name, index)

        in_progress: set[int] = set()
        done: set[int] = set()
        result: list[OperationData] = []

        def visit(index: int):
            in_progress.add(index)
            node = nodes[index]
            if node.is_fragment and node.name in spread_names(node.operation_definition.selection_set):
                self.logger.warning(
                    "The operation graph has a cycle: %s -> %s", node.display_name, node.display_name
                )
            for dependency in node.fragment_dependencies:
                target = by_name.get(dependency.name.value)
                if target is None or target in done:
                    continue
                if target in in_progress:
                    self.logger.warning(
                        "The operation graph has a cycle: %s -> %s",
                        node.display_name,
                        nodes[target].display_name,
                    )
                    continue
                visit(target)
            in_progress.discard(index)
            done.add(index)
            result.append(node)

        for index in range(len(nodes)):
            if index not in done:
                visit(index)
        return result


def _executable_definitions(document: DocumentNode) -> list[ExecutableDefinition]:
    return [
        definition
        for definition in document.definitions
        if isinstance(definition, (OperationDefinitionNode, FragmentDefinitionNode))
    ]


def compute_operation_data_list(
    document: str | DocumentNode,
    variables: Mapping[str, Any] | None = None,
) -> OperationDataList:
    """Build the operation data list of a document with a fresh builder."""
    return OperationGraphBuilder().build(document, variables)
