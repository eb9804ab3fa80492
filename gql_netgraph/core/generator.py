"""Code generator for Netlify Graph libraries.

Renders Jinja2 templates to produce the JavaScript runtime, its TypeScript
declarations and framework handler snippets from extracted functions.

Supports custom templates via the template_dir parameter:
    generator = CodeGenerator(schema, config, template_dir="./my_templates")

Template lookup order:
1. User's template directory (if provided)
2. Package default templates
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from graphql import (
    DocumentNode,
    FragmentDefinitionNode,
    GraphQLSchema,
    OperationDefinitionNode,
    parse,
    print_ast,
)
from jinja2 import ChoiceLoader, Environment, FileSystemLoader, PackageLoader, select_autoescape

from .config import CodegenConfig
from .console import get_logger
from .directives import DirectiveExtractor, capitalize_first, function_name_for
from .errors import MissingOperationNameError, OperationNotFoundError
from .field_projector import FieldProjector
from .hooks import HookRunner
from .ir import (
    ExportedFile,
    ExtractedFragment,
    ExtractedFunction,
    OperationData,
    ParsedFragment,
    ParsedFunction,
)
from .operation_graph import OperationGraphBuilder
from .printer import print_shape
from .scalars import ScalarRegistry

# JavaScript / TypeScript reserved words that cannot be used as variable names
JS_RESERVED_WORDS = {
    "abstract", "any", "as", "async", "await", "boolean", "break", "case",
    "catch", "class", "const", "constructor", "continue", "debugger", "declare",
    "default", "delete", "do", "else", "enum", "export", "extends", "false",
    "finally", "for", "from", "function", "get", "if", "implements", "import",
    "in", "instanceof", "interface", "is", "let", "module", "namespace", "new",
    "null", "number", "of", "package", "private", "protected", "public",
    "require", "return", "set", "static", "string", "super", "switch", "symbol",
    "this", "throw", "true", "try", "type", "typeof", "var", "void", "while",
    "with", "yield",
}

UNNAMED_KINDS = {"query", "mutation", "subscription"}


def munge(name: str) -> str:
    """Make a name safe as a JS identifier by prefixing reserved words with underscore."""
    if name in JS_RESERVED_WORDS:
        return f"_{name}"
    return name


def js_doc(text: str | None) -> str:
    """Make text safe for the body of a ``/** */`` comment."""
    if not text:
        return ""
    return text.replace("*/", "").replace("\n", "\n * ")


def safe_template_literal(text: str) -> str:
    """Escape text for use inside a JS template literal."""
    return text.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")


def coercer_for(type_text: str, expression: str) -> str:
    """JS expression coercing a query string parameter to a variable type."""
    type_name = re.sub(r"\W+", "", type_text).lower()
    if type_name == "int":
        return f"parseInt({expression})"
    if type_name == "float":
        return f"parseFloat({expression})"
    if type_name == "boolean":
        return f"{expression} === 'true'"
    return expression


@dataclass
class HandlerOptions:
    """Options for handler snippets."""
    post_http_method: bool = False
    use_client_auth: bool = False

    @classmethod
    def from_value(cls, value: "HandlerOptions | dict[str, Any] | None") -> "HandlerOptions":
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        return cls(
            post_http_method=bool(value.get("post_http_method", value.get("postHttpMethod", False))),
            use_client_auth=bool(value.get("use_client_auth", value.get("useClientAuth", False))),
        )


@dataclass
class GeneratedLibrary:
    """Runtime and declarations generated for one operations document."""
    runtime: ExportedFile
    type_definitions: ExportedFile
    functions: list[ParsedFunction] = field(default_factory=list)
    fragments: list[ParsedFragment] = field(default_factory=list)

    @property
    def files(self) -> list[ExportedFile]:
        return [self.runtime, self.type_definitions]


@dataclass
class HandlerResult:
    """Handler files generated for one operation."""
    files: list[ExportedFile]
    operation: OperationDefinitionNode | FragmentDefinitionNode | None
    suggested_filename: str


class CodeGenerator:
    """Generates the Netlify Graph library and handlers from an operations document.

    Supports custom templates via the template_dir parameter.
    Templates in template_dir take precedence over built-in templates.

    Available templates to override:
        - runtime.js.j2: JavaScript runtime with one function per operation
        - index.d.ts.j2: TypeScript declarations for the runtime
        - handlers/netlify_function.js.j2: Netlify function handler
        - handlers/nextjs.ts.j2: Next.js API route
        - handlers/remix.tsx.j2: Remix route
        - handlers/*_webhook.*: subscription webhook handlers

    Example:
        generator = CodeGenerator(
            schema=schema,
            config=CodegenConfig(framework="Next.js"),
            template_dir="./my_templates"
        )
    """

    HANDLER_TEMPLATES = {
        "custom": ("handlers/netlify_function.js.j2", "handlers/netlify_webhook.js.j2"),
        "Next.js": ("handlers/nextjs.ts.j2", "handlers/nextjs_webhook.ts.j2"),
        "Remix": ("handlers/remix.tsx.j2", "handlers/remix_webhook.tsx.j2"),
    }

    def __init__(
        self,
        schema: GraphQLSchema,
        config: CodegenConfig | None = None,
        template_dir: str | None = None,
        hooks: HookRunner | None = None,
        logger: logging.Logger | None = None,
        scalars: ScalarRegistry | None = None,
        extractor: DirectiveExtractor | None = None,
    ):
        """Initialize the code generator.

        Args:
            schema: The schema the operations are written against
            config: Output layout and target settings
            template_dir: Optional directory with custom Jinja2 templates.
                          Templates here override the built-in templates.
            hooks: Optional pre/post generation hooks
            logger: Logger for diagnostics (defaults to the package logger)
            scalars: Optional scalar table for type projection
            extractor: Directive extractor (a default one is created)
        """
        self.schema = schema
        self.config = config or CodegenConfig()
        self.template_dir = template_dir
        self.hooks = hooks or HookRunner()
        self.logger = logger or get_logger(__name__)
        self.scalars = scalars
        self.extractor = extractor or DirectiveExtractor(logger=self.logger)
        self.graph_builder = OperationGraphBuilder(logger=self.logger)

        # Build template loader - custom templates take precedence
        loaders = []
        if template_dir:
            template_path = Path(template_dir)
            if template_path.is_dir():
                loaders.append(FileSystemLoader(str(template_path)))
        loaders.append(PackageLoader("gql_netgraph", "templates"))

        self.env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=select_autoescape(),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        # Register custom filters
        self.env.filters["capitalize_first"] = capitalize_first
        self.env.filters["munge"] = munge
        self.env.filters["js_doc"] = js_doc
        self.env.filters["safe_template_literal"] = safe_template_literal

    # -------------------------------------------------------------------------
    # Functions
    # -------------------------------------------------------------------------

    def parse_functions(
        self,
        functions: dict[str, ExtractedFunction],
        fragments: dict[str, ExtractedFragment],
        fragment_definitions: dict[str, FragmentDefinitionNode] | None = None,
    ) -> tuple[list[ParsedFunction], list[ParsedFragment]]:
        """Attach generated names and type signatures to extracted records.

        Anonymous operations cannot be given a function name; they are
        reported and left out.

        Returns:
            Parsed functions and parsed fragments, each sorted by id
        """
        if fragment_definitions is None:
            fragment_definitions = {f.fragment_name: f.parsed_operation for f in fragments.values()}
        projector = FieldProjector(self.schema, fragment_definitions, self.scalars)

        parsed_fragments = []
        for fragment in sorted(fragments.values(), key=lambda f: f.id):
            data = projector.project(fragment.parsed_operation)["data"].type
            parsed_fragments.append(ParsedFragment(
                fragment=fragment,
                safe_body=safe_template_literal(fragment.operation_string_without_netlify_directive),
                return_signature=print_shape(data),
            ))

        parsed_functions = []
        for function in sorted(functions.values(), key=lambda f: f.id):
            operation = function.parsed_operation
            name = operation.name.value if operation.name else None
            try:
                fn_name = function_name_for(function.kind, name)
            except MissingOperationNameError as e:
                self.logger.error("Skipping function %s: %s", function.id, e)
                continue

            variables = projector.project_variables(operation)
            parsed_functions.append(ParsedFunction(
                function=function,
                fn_name=fn_name,
                safe_body=safe_template_literal(function.persistable_operation_string),
                return_signature=print_shape(projector.project(operation)),
                variable_signature=print_shape(variables) if variables.fields else "{}",
                variable_names=[d.variable.name.value for d in operation.variable_definitions or ()],
            ))

        return parsed_functions, parsed_fragments

    def generate_functions_source(self, operations_doc: str | DocumentNode) -> GeneratedLibrary:
        """Generate the runtime library and its declarations.

        Raises:
            GraphQLSyntaxError: If the operations document does not parse
        """
        document = operations_doc
        if not isinstance(document, DocumentNode):
            document = parse(operations_doc, no_location=True)

        functions, fragments = self.extractor.extract_all(document)
        fragment_definitions = {
            d.name.value: d for d in document.definitions if isinstance(d, FragmentDefinitionNode)
        }
        parsed_functions, parsed_fragments = self.parse_functions(
            functions, fragments, fragment_definitions
        )
        parsed_functions = self.hooks.run_pre_hooks(parsed_functions)

        context = {
            "config": self.config,
            "schema_id": self.config.schema_id,
            "functions": parsed_functions,
            "fragments": parsed_fragments,
            "has_subscriptions": any(f.kind == "subscription" for f in parsed_functions),
        }

        runtime_name = list(self.config.netlify_graph_implementation_filename)
        stem = runtime_name[-1].rsplit(".", 1)[0]
        declarations_name = runtime_name[:-1] + [f"{stem}.d.ts"]

        runtime = self._render_file("runtime.js.j2", runtime_name, "javascript", context)
        declarations = self._render_file("index.d.ts.j2", declarations_name, "typescript", context)

        self.logger.debug(
            "Generated %d functions and %d fragments", len(parsed_functions), len(parsed_fragments)
        )
        return GeneratedLibrary(runtime, declarations, parsed_functions, parsed_fragments)

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    def generate_handler(
        self,
        operations_doc: str,
        operation_id: str,
        options: HandlerOptions | dict[str, Any] | None = None,
    ) -> HandlerResult:
        """Generate handler files for one annotated operation.

        Raises:
            OperationNotFoundError: If no annotated definition has the id
        """
        handler_options = HandlerOptions.from_value(options)
        document = parse(operations_doc, no_location=True)
        functions, fragments = self.extractor.extract_all(document)

        found = functions.get(operation_id) or fragments.get(operation_id)
        if found is None:
            raise OperationNotFoundError(operation_id, list(functions))

        odl = self.graph_builder.build(found.operation_string)
        operations = self._rename_unnamed(odl.operation_data_list)

        first = next((op for op in operations if op.type != "fragment"), None)
        if first is None:
            return HandlerResult(
                [ExportedFile("// No operation found", "javascript")],
                found.parsed_operation,
                "",
            )

        filename = f"{first.name}.{self.config.extension}"
        framework = self.config.framework
        handler_template, webhook_template = self.HANDLER_TEMPLATES.get(
            framework, self.HANDLER_TEMPLATES["custom"]
        )
        language = "javascript" if framework == "custom" else self.config.language

        context = {
            "config": self.config,
            "options": handler_options,
            "filename": filename,
            "first": self._handler_operation(first, handler_options),
            "operations": [
                self._handler_operation(op, handler_options)
                for op in operations
                if op.type in UNNAMED_KINDS
            ],
            "is_typescript": self.config.language == "typescript",
            "is_commonjs": self.config.module_type == "commonjs",
        }

        if first.type == "subscription":
            name = self._handler_file_name(framework, first, webhook=True)
            files = [self._render_file(webhook_template, name, language, context)]
        else:
            name = self._handler_file_name(framework, first, webhook=False)
            files = [self._render_file(handler_template, name, language, context)]

        return HandlerResult(files, found.parsed_operation, filename)

    def _handler_file_name(self, framework: str, operation: OperationData, webhook: bool) -> list[str]:
        if framework != "Remix":
            return []
        extension = "tsx" if self.config.language == "typescript" else "js"
        route = ["app", "routes", "webhooks"] if webhook else ["app", "routes"]
        return route + [f"{operation.display_name}.{extension}"]

    @staticmethod
    def _rename_unnamed(operations: list[OperationData]) -> list[OperationData]:
        renamed = []
        for index, op in enumerate(operations):
            if op.name.strip() not in UNNAMED_KINDS:
                renamed.append(op)
                continue
            name = f"unnamed{capitalize_first(op.type)}{index + 1}"
            body = re.sub(r"^(query|mutation|subscription) ", "", op.query.strip(), flags=re.I)
            renamed.append(OperationData(
                name=name,
                display_name=name,
                type=op.type,
                variable_name=op.variable_name,
                variables=op.variables,
                operation_definition=op.operation_definition,
                fragment_dependencies=op.fragment_dependencies,
                query=(
                    f"# Consider giving this {op.type} a unique, descriptive\n"
                    f"# name in your application as a best practice\n"
                    f"{op.type} {name} {body}"
                ),
            ))
        return renamed

    @staticmethod
    def _handler_operation(op: OperationData, options: HandlerOptions) -> dict[str, Any]:
        variables = []
        for definition in getattr(op.operation_definition, "variable_definitions", None) or ():
            name = definition.variable.name.value
            type_text = print_ast(definition.type)
            variables.append({
                "name": name,
                "munged": munge(name),
                "required": type_text.endswith("!"),
                "from_query": coercer_for(type_text, f"event.queryStringParameters?.{name}"),
                "from_search_params": coercer_for(type_text, f"url.searchParams.get('{name}')"),
                "from_form": coercer_for(type_text, f"formData.get('{name}')"),
            })

        required = [v for v in variables if v["required"]]
        return {
            "name": op.name,
            "display_name": op.display_name,
            "type": op.type,
            "fn_name": function_name_for(op.type, op.name),
            "query": op.query,
            "variables": variables,
            "required_condition": " || ".join(
                f"{v['munged']} === undefined || {v['munged']} === null" for v in required
            ),
            "required_message": ", ".join(f"`{v['name']}`" for v in required),
            "invocation_params": ", ".join(f"{v['name']}: {v['munged']}" for v in variables),
            "query_string": "&".join(f"{v['name']}=${{{v['name']}}}" for v in variables),
            "post_body": ", ".join(f'"{v["name"]}": {v["name"]}' for v in variables),
            "method": "POST" if options.post_http_method else "GET",
        }

    # -------------------------------------------------------------------------
    # Rendering and output
    # -------------------------------------------------------------------------

    def _render_file(
        self, template_name: str, name: list[str], language: str, context: dict[str, Any]
    ) -> ExportedFile:
        """Render a template into an exported file, running post hooks."""
        template = self.env.get_template(template_name)
        content = _collapse_blank_lines(template.render(context))
        exported = ExportedFile(content=content, language=language, name=name)
        exported.content = self.hooks.run_post_hooks(exported.path or template_name, content)
        return exported

    def write(self, files: list[ExportedFile], output_dir: str) -> list[str]:
        """Write named files below output_dir, returning the written paths."""
        written = []
        for exported in files:
            if not exported.is_named:
                self.logger.warning("Skipping unnamed %s file", exported.language)
                continue
            full_path = os.path.join(output_dir, exported.path)
            os.makedirs(os.path.dirname(full_path) or ".", exist_ok=True)
            with open(full_path, "w", encoding="utf-8") as f:
                f.write(exported.content)
            written.append(full_path)
        return written


def _collapse_blank_lines(text: str) -> str:
    return re.sub(r"\n{3,}", "\n\n", text)


