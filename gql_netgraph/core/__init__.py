"""Core modules for operation graph resolution and code generation."""

from .config import CodegenConfig, load_config
from .console import get_logger, register_logger
from .directives import DirectiveExtractor, extract_functions, function_name_for
from .documents import (
    extract_persistable_operation,
    gather_hardcoded_values,
    normalize_operations_doc,
)
from .errors import (
    ConfigError,
    DuplicateDefinitionError,
    GraphQLResponseError,
    MissingOperationNameError,
    NetGraphError,
    OperationNotFoundError,
)
from .executor import GraphQLResult, NetlifyGraphClient
from .field_projector import FieldProjector, project_selection, project_variables
from .generator import CodeGenerator, GeneratedLibrary, HandlerOptions, HandlerResult
from .hooks import (
    AddBannerHook,
    FilterOperationsHook,
    HookRunner,
    PostGenerateHook,
    PreGenerateHook,
)
from .ir import (
    ANY,
    INFINITE,
    EnumShape,
    ExportedFile,
    ExtractedFragment,
    ExtractedFunction,
    ListShape,
    ObjectShape,
    OperationData,
    OperationDataList,
    ParsedFragment,
    ParsedFunction,
    ScalarShape,
    ShapeField,
)
from .lockfile import create_lockfile, is_lockfile_current, read_lockfile, write_lockfile
from .operation_graph import (
    OperationGraphBuilder,
    ParsedDocumentCache,
    compute_operation_data_list,
    format_variable_name,
)
from .printer import print_shape
from .scalars import ScalarRegistry
from .schema import load_schema
from .type_projector import TypeProjector, list_depth, project_type

__all__ = [
    # Type shapes
    "ANY",
    "INFINITE",
    "ScalarShape",
    "EnumShape",
    "ListShape",
    "ObjectShape",
    "ShapeField",
    # IR records
    "OperationData",
    "OperationDataList",
    "ExtractedFunction",
    "ExtractedFragment",
    "ParsedFunction",
    "ParsedFragment",
    "ExportedFile",
    # Projection
    "ScalarRegistry",
    "TypeProjector",
    "project_type",
    "list_depth",
    "FieldProjector",
    "project_selection",
    "project_variables",
    "print_shape",
    # Operation graph
    "OperationGraphBuilder",
    "ParsedDocumentCache",
    "compute_operation_data_list",
    "format_variable_name",
    # Directives
    "DirectiveExtractor",
    "extract_functions",
    "function_name_for",
    # Documents
    "normalize_operations_doc",
    "extract_persistable_operation",
    "gather_hardcoded_values",
    # Generation
    "CodeGenerator",
    "GeneratedLibrary",
    "HandlerOptions",
    "HandlerResult",
    # Hooks
    "PreGenerateHook",
    "PostGenerateHook",
    "AddBannerHook",
    "FilterOperationsHook",
    "HookRunner",
    # Config, schema and lockfile
    "CodegenConfig",
    "load_config",
    "load_schema",
    "create_lockfile",
    "read_lockfile",
    "write_lockfile",
    "is_lockfile_current",
    # Runtime client
    "GraphQLResult",
    "NetlifyGraphClient",
    # Logging
    "get_logger",
    "register_logger",
    # Errors
    "NetGraphError",
    "MissingOperationNameError",
    "DuplicateDefinitionError",
    "OperationNotFoundError",
    "ConfigError",
    "GraphQLResponseError",
]
