"""Prints type shapes as TypeScript type expressions."""

import re

from .ir import EnumShape, ListShape, ObjectShape, ScalarShape, ShapeField, TypeShape

EMPTY_OBJECT = "/** No fields found */ Record<string, unknown>"
INDENT = "  "

_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def doc_comment(description: str | None, indent: str = "") -> str:
    """Render a description as a ``/** */`` block, or '' when there is none."""
    if not description:
        return ""
    lines = description.replace("*/", "*\\/").splitlines() or [""]
    body = "\n".join(f"{indent} * {line}".rstrip() for line in lines)
    return f"{indent}/**\n{body}\n{indent} */\n"


def property_name(name: str) -> str:
    """Quote a property name unless it is a plain identifier."""
    if _IDENTIFIER.match(name):
        return name
    return '"' + name.replace("\\", "\\\\").replace('"', '\\"') + '"'


def print_shape(shape: TypeShape, level: int = 0) -> str:
    """Render a type shape.

    Args:
        shape: The shape to print
        level: Nesting level used to indent object members

    Returns:
        A TypeScript type expression, e.g. ``{ id: string; tags?: Array<string>; }``
    """
    if isinstance(shape, ScalarShape):
        return shape.type
    if isinstance(shape, EnumShape):
        if not shape.values:
            return "never"
        return " | ".join(f'"{value}"' for value in shape.values)
    if isinstance(shape, ListShape):
        return f"Array<{print_shape(shape.of, level)}>"
    if isinstance(shape, ObjectShape):
        return _print_object(shape, level)
    raise TypeError(f"Unknown shape: {shape!r}")


def _print_object(shape: ObjectShape, level: int) -> str:
    if not shape.fields:
        return EMPTY_OBJECT

    indent = INDENT * (level + 1)
    members = [_print_member(entry, indent, level + 1) for entry in shape.fields.values()]
    closing = INDENT * level
    return "{\n" + "\n".join(members) + "\n" + closing + "}"


def _print_member(entry: ShapeField, indent: str, level: int) -> str:
    optional = "?" if entry.nullable else ""
    value = print_shape(entry.type, level)
    return f"{doc_comment(entry.description, indent)}{indent}{property_name(entry.name)}{optional}: {value};"
