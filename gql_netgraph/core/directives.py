"""Directive metadata extraction.

Picks the definitions annotated with ``@netlify`` out of an operations
document and turns them into ``ExtractedFunction`` / ``ExtractedFragment``
records keyed by id.

    query GetUser($id: ID!) @netlify(id: "a1b2", doc: "Fetch one user") {
      user(id: $id) { name }
    }
"""

import logging
import uuid
from collections.abc import Callable

from graphql import (
    BooleanValueNode,
    DirectiveNode,
    DocumentNode,
    EnumValueNode,
    FloatValueNode,
    FragmentDefinitionNode,
    GraphQLSyntaxError,
    IntValueNode,
    ObjectValueNode,
    OperationDefinitionNode,
    StringValueNode,
    parse,
    print_ast,
)

from .console import get_logger
from .documents import (
    NETLIFY_CACHE_CONTROL_DIRECTIVE_NAME,
    NETLIFY_DIRECTIVE_NAME,
    extract_persistable_operation,
    strip_tooling_directives,
)
from .errors import MissingOperationNameError
from .ir import CacheStrategy, ExtractedFragment, ExtractedFunction

EXECUTION_STRATEGIES = ("DYNAMIC", "PERSISTED")

FUNCTION_PREFIXES = {
    "query": "fetch",
    "mutation": "execute",
    "subscription": "subscribeTo",
}


def capitalize_first(text: str) -> str:
    """Upper-case the first character only."""
    return text[:1].upper() + text[1:]


def function_name_for(kind: str, operation_name: str | None) -> str:
    """Name of the generated function for an operation.

    Raises:
        MissingOperationNameError: If the operation has no name
    """
    if not operation_name:
        raise MissingOperationNameError(kind)
    prefix = FUNCTION_PREFIXES.get(kind)
    if prefix is None:
        return capitalize_first(operation_name)
    return f"{prefix}{capitalize_first(operation_name)}"


def find_directive(definition, name: str) -> DirectiveNode | None:
    for directive in definition.directives or ():
        if directive.name.value == name:
            return directive
    return None


def _argument_value(directive: DirectiveNode, name: str):
    for argument in directive.arguments or ():
        if argument.name.value == name:
            return argument.value
    return None


def directive_string_argument(directive: DirectiveNode, name: str) -> str | None:
    value = _argument_value(directive, name)
    return value.value if isinstance(value, StringValueNode) else None


def directive_enum_argument(directive: DirectiveNode, name: str) -> str | None:
    value = _argument_value(directive, name)
    return value.value if isinstance(value, EnumValueNode) else None


def directive_boolean_argument(directive: DirectiveNode, name: str) -> bool | None:
    value = _argument_value(directive, name)
    return value.value if isinstance(value, BooleanValueNode) else None


def _default_id() -> str:
    return str(uuid.uuid4())


class DirectiveExtractor:
    """Extracts ``@netlify`` annotated definitions from documents.

    Args:
        id_provider: Called for every annotated definition without an ``id:``
            argument. Defaults to a random UUID4 string.
        logger: Logger for diagnostics (defaults to the package logger)
    """

    def __init__(
        self,
        id_provider: Callable[[], str] | None = None,
        logger: logging.Logger | None = None,
    ):
        self.id_provider = id_provider or _default_id
        self.logger = logger or get_logger(__name__)

    def _document(self, document: str | DocumentNode) -> DocumentNode | None:
        if isinstance(document, DocumentNode):
            return document
        try:
            return parse(document, no_location=True)
        except GraphQLSyntaxError as e:
            self.logger.warning("Unable to parse operations document: %s", e.message)
            return None

    def read_netlify_directive(self, definition) -> dict | None:
        """Read ``id``, ``doc`` and ``executionStrategy`` from ``@netlify``."""
        directive = find_directive(definition, NETLIFY_DIRECTIVE_NAME)
        if directive is None:
            return None

        function_id = directive_string_argument(directive, "id")
        if function_id is None:
            function_id = self.id_provider()

        strategy = directive_enum_argument(directive, "executionStrategy")
        if strategy not in EXECUTION_STRATEGIES:
            if strategy is not None:
                self.logger.warning(
                    "Unknown executionStrategy %s, falling back to DYNAMIC", strategy
                )
            strategy = "DYNAMIC"

        return {
            "id": function_id,
            "description": directive_string_argument(directive, "doc") or "",
            "execution_strategy": strategy,
        }

    def read_cache_control(self, definition: OperationDefinitionNode) -> tuple[CacheStrategy | None, bool]:
        """Read ``@netlifyCacheControl`` into ``(cache_strategy, fallback_on_error)``."""
        directive = find_directive(definition, NETLIFY_CACHE_CONTROL_DIRECTIVE_NAME)
        if directive is None:
            return None, False

        fallback_on_error = directive_boolean_argument(directive, "fallbackOnError") or False

        raw = _argument_value(directive, "cacheStrategy")
        if not isinstance(raw, ObjectValueNode):
            return None, fallback_on_error

        ttl = None
        enabled = False
        for object_field in raw.fields:
            value = object_field.value
            if object_field.name.value == "timeToLiveSeconds":
                if isinstance(value, (IntValueNode, FloatValueNode)):
                    ttl = float(value.value)
            elif object_field.name.value == "enabled":
                if isinstance(value, BooleanValueNode):
                    enabled = value.value

        if ttl is None:
            return None, fallback_on_error
        return CacheStrategy(enabled=enabled, time_to_live_seconds=ttl), fallback_on_error

    def extract(self, document: str | DocumentNode) -> dict[str, ExtractedFunction]:
        """Extract annotated operations, keyed by id."""
        return self.extract_all(document)[0]

    def extract_fragments(self, document: str | DocumentNode) -> dict[str, ExtractedFragment]:
        """Extract annotated fragments, keyed by id."""
        return self.extract_all(document)[1]

    def extract_all(
        self, document: str | DocumentNode
    ) -> tuple[dict[str, ExtractedFunction], dict[str, ExtractedFragment]]:
        """Extract annotated operations and fragments in one pass.

        Text that fails to parse yields two empty mappings.
        """
        parsed = self._document(document)
        functions: dict[str, ExtractedFunction] = {}
        fragments: dict[str, ExtractedFragment] = {}
        if parsed is None:
            return functions, fragments

        for definition in parsed.definitions:
            if not isinstance(definition, (OperationDefinitionNode, FragmentDefinitionNode)):
                continue
            netlify = self.read_netlify_directive(definition)
            if netlify is None:
                continue

            key = definition.name.value if definition.name else "unknown"
            without_directive = print_ast(strip_tooling_directives(definition))

            if isinstance(definition, FragmentDefinitionNode):
                if netlify["id"] in fragments:
                    self.logger.warning("Duplicate fragment id %s, keeping %s", netlify["id"], key)
                fragments[netlify["id"]] = ExtractedFragment(
                    id=netlify["id"],
                    fragment_name=key,
                    type_condition=definition.type_condition.name.value,
                    description=netlify["description"],
                    parsed_operation=definition,
                    operation_string=print_ast(definition),
                    operation_string_without_netlify_directive=without_directive,
                )
                continue

            cache_strategy, fallback_on_error = None, False
            if definition.operation.value == "query":
                cache_strategy, fallback_on_error = self.read_cache_control(definition)

            if netlify["id"] in functions:
                self.logger.warning("Duplicate function id %s, keeping %s", netlify["id"], key)
            functions[netlify["id"]] = ExtractedFunction(
                id=netlify["id"],
                operation_name=key,
                description=netlify["description"],
                kind=definition.operation.value,
                parsed_operation=definition,
                operation_string=print_ast(definition),
                operation_string_without_netlify_directive=without_directive,
                persistable_operation_string=extract_persistable_operation(
                    parsed, definition
                ).operation_string,
                execution_strategy=netlify["execution_strategy"],
                cache_strategy=cache_strategy,
                fallback_on_error=fallback_on_error,
            )

        return functions, fragments


def extract_functions(document: str | DocumentNode) -> dict[str, ExtractedFunction]:
    """Extract annotated operations with a default extractor."""
    return DirectiveExtractor().extract(document)
