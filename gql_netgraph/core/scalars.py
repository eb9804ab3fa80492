"""Scalar table for GraphQL → TypeScript projection.

Maps GraphQL scalar names to the TypeScript type the generated declarations
use. Only the five built-in scalars are known by default; every other scalar
(``JSON``, ``DateTime``, ...) projects to the open type ``any`` unless a
mapping is registered for it.

Example usage:
    from gql_netgraph.core.scalars import ScalarRegistry

    registry = ScalarRegistry()
    registry.register("DateTime", "string")
    registry.register("JSONObject", "Record<string, unknown>")
"""

from .ir import ANY, ScalarShape

BUILTIN_SCALARS: dict[str, str] = {
    "String": "string",
    "ID": "string",
    "Int": "number",
    "Float": "number",
    "Boolean": "boolean",
}


class ScalarRegistry:
    """Registry of GraphQL scalar name → TypeScript type.

    Example:
        registry = ScalarRegistry()
        registry.shape_for("Int")      # ScalarShape("number")
        registry.shape_for("JSON")     # ScalarShape("any")
    """

    def __init__(self, mappings: dict[str, str] | None = None):
        self._types: dict[str, str] = dict(BUILTIN_SCALARS)
        if mappings:
            self._types.update(mappings)

    def register(self, scalar_name: str, ts_type: str):
        """Register the TypeScript type for a scalar."""
        self._types[scalar_name] = ts_type

    def get(self, scalar_name: str) -> str | None:
        """Get the TypeScript type for a scalar, or None if unknown."""
        return self._types.get(scalar_name)

    def has(self, scalar_name: str) -> bool:
        """Check if a mapping is registered for a scalar."""
        return scalar_name in self._types

    def shape_for(self, scalar_name: str) -> ScalarShape:
        """Project a scalar name, falling back to the open type."""
        ts_type = self._types.get(scalar_name)
        if ts_type is None:
            return ANY
        return ScalarShape(ts_type)


DEFAULT_SCALARS = ScalarRegistry()
