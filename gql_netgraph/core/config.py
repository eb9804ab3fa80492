"""Code generation settings.

Settings are read from a JSON file. Keys may be written in camelCase (as in
``netlify.toml`` style configs) or snake_case:

    {
      "framework": "Next.js",
      "language": "typescript",
      "netlifyGraphPath": ["lib", "netlifyGraph"]
    }
"""

import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from .errors import ConfigError

DEFAULT_SCHEMA_FILENAME = "netlifyGraphSchema.graphql"
DEFAULT_OPERATIONS_FILENAME = "netlifyGraphOperationsLibrary.graphql"


class CodegenConfig(BaseModel):
    """Where and how generated files are laid out.

    Path-like settings are lists of segments so they can be joined for any
    target platform.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    extension: str = "js"
    functions_path: list[str] = Field(default_factory=lambda: ["netlify", "functions"])
    netlify_graph_path: list[str] = Field(
        default_factory=lambda: ["netlify", "functions", "netlifyGraph"]
    )
    webhook_base_path: str = "/.netlify/functions"
    netlify_graph_implementation_filename: list[str] = Field(
        default_factory=lambda: ["netlify", "functions", "netlifyGraph", "index.js"]
    )
    netlify_graph_type_definitions_filename: list[str] = Field(
        default_factory=lambda: ["netlify", "functions", "netlifyGraph", "index.d.ts"]
    )
    graphql_operations_source_directory: list[str] = Field(
        default_factory=lambda: ["netlify", "functions", "netlifyGraph", "operations"],
        alias="graphQLOperationsSourceDirectory",
    )
    graphql_schema_filename: list[str] = Field(
        default_factory=lambda: ["netlify", "functions", "netlifyGraph", DEFAULT_SCHEMA_FILENAME],
        alias="graphQLSchemaFilename",
    )
    netlify_graph_require_path: list[str] = Field(default_factory=lambda: ["./netlifyGraph"])
    framework: Literal["custom", "Next.js", "Remix"] = "custom"
    module_type: Literal["commonjs", "esm"] = "commonjs"
    language: Literal["javascript", "typescript"] = "javascript"
    runtime_target_env: Literal["node", "browser"] = "node"
    schema_id: str = ""

    @property
    def require_path(self) -> str:
        return "/".join(self.netlify_graph_require_path)


def load_config(path: str | Path | None) -> CodegenConfig:
    """Load settings from a JSON file.

    A missing path or file yields the defaults.

    Raises:
        ConfigError: If the file is not valid JSON or has invalid values
    """
    if path is None:
        return CodegenConfig()

    config_path = Path(path)
    if not config_path.is_file():
        return CodegenConfig()

    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"{config_path} is not valid JSON: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"{config_path} must contain a JSON object")

    try:
        return CodegenConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid config in {config_path}:\n{e}") from e
