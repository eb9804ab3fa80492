"""Schema loading.

Accepts SDL files (``.graphql`` / ``.graphqls``), a directory of SDL files
or an introspection result saved as JSON.
"""

import json
import os

from graphql import GraphQLSchema, build_client_schema, build_schema

from .console import get_logger

SDL_EXTENSIONS = (".graphql", ".graphqls")


def collect_schema_files(schema_path: str) -> list[str]:
    """Collect all SDL files from a file or directory path."""
    files = []
    if os.path.isfile(schema_path):
        files.append(schema_path)
    else:
        for root, _, filenames in os.walk(schema_path):
            for filename in filenames:
                if filename.endswith(SDL_EXTENSIONS):
                    files.append(os.path.join(root, filename))
    return sorted(files)


def schema_from_introspection(payload: dict) -> GraphQLSchema:
    """Build a schema from an introspection result (with or without ``data``)."""
    data = payload.get("data", payload)
    return build_client_schema(data)


def load_schema(schema_path: str) -> GraphQLSchema:
    """Load a schema from SDL or introspection JSON.

    Raises:
        FileNotFoundError: If no schema file is found at the path
        GraphQLError: If the SDL is invalid
    """
    files = collect_schema_files(schema_path)
    if not files:
        raise FileNotFoundError(f"No GraphQL schema found at {schema_path}")

    if len(files) == 1 and files[0].endswith(".json"):
        with open(files[0], encoding="utf-8") as f:
            return schema_from_introspection(json.load(f))

    sources = []
    for file_path in files:
        get_logger(__name__).debug("Reading schema file %s", file_path)
        with open(file_path, encoding="utf-8") as f:
            sources.append(f.read())
    return build_schema("\n\n".join(sources))
