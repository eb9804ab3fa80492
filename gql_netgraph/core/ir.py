"""Intermediate Representation (IR) for resolved GraphQL operations.

This module defines the dataclasses produced by the graph builder, the
directive extractor and the type projectors. Generators only consume these
records; they never walk the GraphQL AST themselves.
"""

from dataclasses import dataclass, field
from typing import Any, Union

from graphql import FragmentDefinitionNode, OperationDefinitionNode

ExecutableDefinition = Union[OperationDefinitionNode, FragmentDefinitionNode]


# =============================================================================
# Type shapes
# =============================================================================


@dataclass(frozen=True)
class ScalarShape:
    """A target-language scalar, e.g. ``string`` or ``any``."""
    type: str
    description: str | None = None


@dataclass(frozen=True)
class EnumShape:
    """A closed set of string literals taken from a GraphQL enum."""
    values: tuple[str, ...]
    description: str | None = None


@dataclass(frozen=True)
class ListShape:
    """One list wrapper around an inner shape."""
    of: "TypeShape"
    description: str | None = None


@dataclass
class ShapeField:
    """A keyed entry of an object shape."""
    name: str
    type: "TypeShape"
    nullable: bool = True
    description: str | None = None


@dataclass
class ObjectShape:
    """An object literal keyed by response name (alias or field name)."""
    fields: dict[str, ShapeField] = field(default_factory=dict)
    description: str | None = None

    def __contains__(self, key: str) -> bool:
        return key in self.fields

    def __getitem__(self, key: str) -> ShapeField:
        return self.fields[key]


TypeShape = Union[ScalarShape, EnumShape, ListShape, ObjectShape]

ANY = ScalarShape("any")
# Emitted when wrapper types nest deeper than the projector is willing to go
INFINITE = ScalarShape("never", description="Bailed on potential infinite type nesting")


# =============================================================================
# Operation graph
# =============================================================================


@dataclass
class OperationData:
    """Per-definition record consumed by the framework exporters."""
    name: str
    display_name: str
    type: str  # 'query', 'mutation', 'subscription' or 'fragment'
    variable_name: str
    variables: dict[str, Any]
    operation_definition: ExecutableDefinition
    fragment_dependencies: list[FragmentDefinitionNode] = field(default_factory=list)
    query: str = ""

    @property
    def is_named(self) -> bool:
        return self.operation_definition.name is not None

    @property
    def is_fragment(self) -> bool:
        return self.type == "fragment"


@dataclass
class OperationDataList:
    """Result of one graph build over a document."""
    definitions: list[ExecutableDefinition] = field(default_factory=list)
    operation_definitions: list[OperationDefinitionNode] = field(default_factory=list)
    fragment_definitions: list[FragmentDefinitionNode] = field(default_factory=list)
    raw_operation_data_list: list[OperationData] = field(default_factory=list)
    operation_data_list: list[OperationData] = field(default_factory=list)

    def names(self) -> list[str]:
        """Return definition names in dependency order."""
        return [op.name for op in self.operation_data_list]


# =============================================================================
# Extracted functions
# =============================================================================


@dataclass
class CacheStrategy:
    """Cache settings read from ``@netlifyCacheControl``."""
    enabled: bool
    time_to_live_seconds: float


@dataclass
class ExtractedFunction:
    """An ``@netlify`` annotated operation picked out of a document.

    The id is stable across regenerations only when the directive carries an
    explicit ``id`` argument; otherwise a new one is minted per extraction.
    """
    id: str
    operation_name: str
    description: str
    kind: str  # 'query', 'mutation' or 'subscription'
    parsed_operation: OperationDefinitionNode
    operation_string: str
    operation_string_without_netlify_directive: str
    persistable_operation_string: str = ""
    execution_strategy: str = "DYNAMIC"
    cache_strategy: CacheStrategy | None = None
    fallback_on_error: bool = False

    @property
    def fetch_strategy(self) -> str:
        """HTTP method the runtime should use for this function."""
        ttl = self.cache_strategy.time_to_live_seconds if self.cache_strategy else 0
        if self.execution_strategy == "PERSISTED" and ttl > 0:
            return "GET"
        return "POST"


@dataclass
class ExtractedFragment:
    """An ``@netlify`` annotated fragment picked out of a document."""
    id: str
    fragment_name: str
    type_condition: str
    description: str
    parsed_operation: FragmentDefinitionNode
    operation_string: str
    operation_string_without_netlify_directive: str
    kind: str = "fragment"


@dataclass
class ParsedFunction:
    """An extracted function with its generated names and signatures."""
    function: ExtractedFunction
    fn_name: str
    safe_body: str
    return_signature: str
    variable_signature: str
    variable_names: list[str] = field(default_factory=list)

    def __getattr__(self, name: str) -> Any:
        # Delegate id, operation_name, description, ... to the extracted record
        function = self.__dict__.get("function")
        if function is None:
            raise AttributeError(name)
        return getattr(function, name)

    @property
    def has_variables(self) -> bool:
        return self.variable_signature != "{}"


@dataclass
class ParsedFragment:
    """An extracted fragment with its generated return signature."""
    fragment: ExtractedFragment
    safe_body: str
    return_signature: str

    def __getattr__(self, name: str) -> Any:
        fragment = self.__dict__.get("fragment")
        if fragment is None:
            raise AttributeError(name)
        return getattr(fragment, name)


@dataclass
class ExportedFile:
    """A generated source file.

    ``name`` is a path split into segments; it is empty for snippets the
    user is expected to place themselves.
    """
    content: str
    language: str
    name: list[str] = field(default_factory=list)

    @property
    def is_named(self) -> bool:
        return bool(self.name)

    @property
    def path(self) -> str:
        return "/".join(segment for segment in self.name if segment not in ("", ".", "./"))
