"""Exceptions raised by the generation pipeline.

Most problems found while resolving a document (parse failures, fragment
cycles, fields missing from the schema) are logged and skipped. The
exceptions here are reserved for conditions the caller has to act on.
"""


class NetGraphError(Exception):
    """Base class for all gql-netgraph errors."""


class MissingOperationNameError(NetGraphError):
    """An operation needs a name to become a generated function."""

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(
            f"Anonymous {kind} cannot be turned into a function; give it a name"
        )


class DuplicateDefinitionError(NetGraphError):
    """Two definitions in one document share a name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Definition name {name!r} is used more than once")


class OperationNotFoundError(NetGraphError):
    """No extracted operation matches the requested id."""

    def __init__(self, operation_id: str, known: list[str]):
        self.operation_id = operation_id
        self.known = known
        super().__init__(
            f"Operation {operation_id} not found, found: {', '.join(known)}"
        )


class ConfigError(NetGraphError):
    """The codegen configuration file could not be loaded."""


class GraphQLResponseError(NetGraphError):
    """The GraphQL endpoint answered with an unexpected status."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"GraphQL request failed with status {status_code}")
