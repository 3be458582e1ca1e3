"""Fluent enum extension generator for C#.

Generates `Is*` / `Has*` predicate extension methods for enums marked with
`[Macaron.FluentEnum.Fluent]`, driven purely by a compiler metadata export.
Produces one `<qualified-name>.g.cs` file per eligible enum plus the
`FluentAttribute.g.cs` marker declaration.

Usage:
    python enumgen.py --metadata obj/enum-metadata.xml --output-dir Generated
    python enumgen.py --metadata obj/enum-metadata.xml --list-enums
"""

import argparse
import re
import sys
import xml.etree.ElementTree as ET
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import NamedTuple, TextIO

TOOL_NAME = "fluent-enum-gen"
DEFAULT_OUTPUT_DIR = Path("Generated")
DEFAULT_INDENT_SIZE = 4
MAX_INDENT_SIZE = 16


# ===--- CLI config contracts ---=== #


@dataclass(frozen=True)
class GenerateConfig:
    metadata: Path
    output_dir: Path
    indent: str
    write_attribute: bool


@dataclass(frozen=True)
class DiscoveryConfig:
    metadata: Path
    filter_text: str | None


VALID_ERROR_CODES = {
    "MISSING_METADATA",
    "PATH_NOT_FOUND",
    "INVALID_INDENT",
    "FILTER_WITHOUT_LIST",
    "CONFLICT_GENERATE_DISCOVERY",
}


class ConfigError(Exception):
    def __init__(self, code: str, message: str, suggestion: str | None = None):
        if code not in VALID_ERROR_CODES:
            raise ValueError(f"Unknown config error code: {code}")
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion


def validate_path_exists(
    path: Path | None, flag: str, suggestion: str | None = None
) -> Path:
    if path is None:
        raise ConfigError(
            "MISSING_METADATA",
            f"{flag} is required: no path provided.",
            suggestion or f"Pass the path explicitly: {flag} /path/to/resource",
        )
    if path.exists():
        return path
    raise ConfigError(
        "PATH_NOT_FOUND",
        f"Path for {flag} does not exist: {path}",
        suggestion or "Provide an existing path for this flag.",
    )


def parse_indent_size(raw: int | None) -> str:
    size = DEFAULT_INDENT_SIZE if raw is None else raw
    if not 1 <= size <= MAX_INDENT_SIZE:
        raise ConfigError(
            "INVALID_INDENT",
            f"Unsupported indent size: {size}",
            f"Use a value between 1 and {MAX_INDENT_SIZE}.",
        )
    return " " * size


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=TOOL_NAME, description="Generate fluent enum extensions for C#"
    )

    parser.add_argument("--metadata", type=Path, default=None)
    parser.add_argument("--output-dir", type=Path, default=DEFAULT_OUTPUT_DIR)
    parser.add_argument("--indent-size", type=int, default=None)
    parser.add_argument("--skip-attribute", action="store_true", default=False)

    parser.add_argument("--list-enums", action="store_true", default=False)
    parser.add_argument("--filter", type=str, default=None)

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_argument_parser()
    return parser.parse_args(argv)


def validate_config(args: argparse.Namespace) -> GenerateConfig | DiscoveryConfig:
    has_generate_input = bool(args.skip_attribute or args.indent_size is not None)

    if args.filter and not args.list_enums:
        raise ConfigError(
            "FILTER_WITHOUT_LIST",
            "--filter requires --list-enums.",
            "Add --list-enums or remove --filter.",
        )

    if has_generate_input and args.list_enums:
        raise ConfigError(
            "CONFLICT_GENERATE_DISCOVERY",
            "Generate flags cannot be combined with --list-enums.",
            "Choose either generate mode or --list-enums.",
        )

    metadata = validate_path_exists(
        args.metadata,
        "--metadata",
        "Export enum metadata from your build first, then pass it:\n"
        "  --metadata obj/enum-metadata.xml",
    )

    if args.list_enums:
        return DiscoveryConfig(metadata=metadata, filter_text=args.filter)

    return GenerateConfig(
        metadata=metadata,
        output_dir=args.output_dir,
        indent=parse_indent_size(args.indent_size),
        write_attribute=not args.skip_attribute,
    )


def build_config(argv: list[str] | None = None) -> GenerateConfig | DiscoveryConfig:
    return validate_config(parse_args(argv))


# ===--- Constants ---=== #

FLUENT_ATTRIBUTE_DISPLAY_STRING = "Macaron.FluentEnum.FluentAttribute"
FLAGS_ATTRIBUTE_DISPLAY_STRING = "System.FlagsAttribute"
FLUENT_ATTRIBUTE_HINT_NAME = "FluentAttribute.g.cs"

FLUENT_ATTRIBUTE_SOURCE = """\
// <auto-generated/>
using System;

namespace Macaron.FluentEnum
{
    [AttributeUsage(AttributeTargets.Enum)]
    internal class FluentAttribute : Attribute
    {
    }
}
"""

DEFAULT_INDENT = " " * DEFAULT_INDENT_SIZE

CSHARP_KEYWORDS = frozenset({
    "abstract", "as", "base", "bool", "break", "byte", "case", "catch",
    "char", "checked", "class", "const", "continue", "decimal", "default",
    "delegate", "do", "double", "else", "enum", "event", "explicit",
    "extern", "false", "finally", "fixed", "float", "for", "foreach",
    "goto", "if", "implicit", "in", "int", "interface", "internal", "is",
    "lock", "long", "namespace", "new", "null", "object", "operator",
    "out", "override", "params", "private", "protected", "public",
    "readonly", "ref", "return", "sbyte", "sealed", "short", "sizeof",
    "stackalloc", "static", "string", "struct", "switch", "this", "throw",
    "true", "try", "typeof", "uint", "ulong", "unchecked", "unsafe",
    "ushort", "using", "virtual", "void", "volatile", "while",
    "__arglist", "__makeref", "__reftype", "__refvalue",
})

CSHARP_CONTEXTUAL_KEYWORDS = frozenset({
    "add", "alias", "allows", "and", "ascending", "assembly", "async",
    "await", "by", "descending", "equals", "field", "file", "from", "get",
    "global", "group", "init", "into", "join", "let", "managed", "method",
    "module", "nameof", "not", "on", "or", "orderby", "param", "partial",
    "property", "record", "remove", "required", "scoped", "select", "set",
    "type", "typevar", "unmanaged", "when", "where", "with", "yield",
})


# ===--- Identifier helpers ---=== #


def to_lower_camel(name: str) -> str:
    if not name or name.isspace():
        return name
    first = name[0].lower()
    # Some characters lower to several code points (e.g. "\u0130").
    if len(first) != 1:
        first = name[0]
    return first + name[1:]


def escape_if_reserved(identifier: str) -> str:
    if identifier in CSHARP_KEYWORDS or identifier in CSHARP_CONTEXTUAL_KEYWORDS:
        return "@" + identifier
    return identifier


# ===--- Symbol descriptors ---=== #


class Accessibility(Enum):
    PUBLIC = "public"
    INTERNAL = "internal"
    OTHER = "other"


_ACCESSIBILITY_KEYWORDS = {
    "public": Accessibility.PUBLIC,
    "internal": Accessibility.INTERNAL,
    "protected": Accessibility.OTHER,
    "private": Accessibility.OTHER,
    "protected internal": Accessibility.OTHER,
    "private protected": Accessibility.OTHER,
}


@dataclass(frozen=True)
class TypeParameterDescriptor:
    """One generic type parameter as reported by the compiler.

    Attributes:
        name: Declared parameter name, e.g. "T".
        constraint_types: Fully qualified constraint type display strings in
            declaration order, e.g. ("global::System.IDisposable",).
    """

    name: str
    has_reference_type_constraint: bool = False
    has_value_type_constraint: bool = False
    has_unmanaged_type_constraint: bool = False
    has_constructor_constraint: bool = False
    has_not_null_constraint: bool = False
    constraint_types: tuple[str, ...] = ()


@dataclass(frozen=True)
class ContainerTypeDescriptor:
    """One level of a possibly nested type, innermost pointing outward.

    The enum itself is represented as a ContainerTypeDescriptor with no type
    parameters; its containing_type links to the enclosing class or struct.

    Attributes:
        name: Simple (unqualified) type name.
        type_parameters: Parameters declared on this level only.
        containing_type: Enclosing type, or None at namespace level.
        accessibility: Declared accessibility of this level.
        namespace: Containing namespace display string, "" for global.
    """

    name: str
    type_parameters: tuple[TypeParameterDescriptor, ...] = ()
    containing_type: "ContainerTypeDescriptor | None" = None
    accessibility: Accessibility = Accessibility.PUBLIC
    namespace: str = ""

    @property
    def arity(self) -> int:
        return len(self.type_parameters)


@dataclass(frozen=True)
class AttributeDescriptor:
    name: str
    location: str | None = None


@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    is_static: bool = True
    has_constant_value: bool = True


@dataclass(frozen=True)
class EnumCandidate:
    """Raw compiler view of one enum declaration, before validation."""

    symbol: ContainerTypeDescriptor
    attributes: tuple[AttributeDescriptor, ...]
    fields: tuple[FieldDescriptor, ...]


@dataclass(frozen=True)
class EnumDescriptor:
    """Validated subject of generation.

    Attributes:
        symbol: The enum's own descriptor (innermost level of its chain).
        access_modifier: "public" or "internal", narrowest across the chain.
        members: Constant member names in declaration order, duplicate-free.
        has_flags: True when the enum carries System.FlagsAttribute.
    """

    symbol: ContainerTypeDescriptor
    access_modifier: str
    members: tuple[str, ...]
    has_flags: bool


@dataclass(frozen=True)
class ResolvedSignature:
    """Type reference and generic signature shared by every generated method.

    Attributes:
        type_reference: Globally rooted reference to the enum, usable as a
            parameter type, e.g. "global::Demo.Outer<T0>.Inner<T1>.Color".
        generic_parameters: Method generic parameter list including angle
            brackets, or "" when the chain declares no type parameters.
        constraint_clauses: "where ..." clauses in flattened parameter order.
    """

    type_reference: str
    generic_parameters: str
    constraint_clauses: tuple[str, ...]


def qualified_name(symbol: ContainerTypeDescriptor) -> str:
    names = [level.name for level in nested_type_chain(symbol)]
    if symbol.namespace:
        names.insert(0, symbol.namespace)
    return ".".join(names)


# ===--- Diagnostics ---=== #


class Severity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class DiagnosticDescriptor:
    id: str
    title: str
    message_format: str
    category: str
    severity: Severity


@dataclass(frozen=True)
class Diagnostic:
    descriptor: DiagnosticDescriptor
    location: str | None
    message_args: tuple[str, ...]

    @property
    def code(self) -> str:
        return self.descriptor.id

    @property
    def severity(self) -> Severity:
        return self.descriptor.severity

    @property
    def message(self) -> str:
        return self.descriptor.message_format.format(*self.message_args)


INVALID_ENUM_ACCESSIBILITY = DiagnosticDescriptor(
    id="MAFE0001",
    title="Unsupported enum accessibility",
    message_format=(
        "Enum '{0}' is declared with unsupported accessibility and cannot be "
        "processed by generator."
    ),
    category="Usage",
    severity=Severity.ERROR,
)


def format_diagnostic(diagnostic: Diagnostic) -> str:
    """Render a diagnostic in compiler style, e.g.

        Color.cs(3,6): error MAFE0001: Enum 'Color' is declared with ...

    Diagnostics without a location are attributed to the tool itself.
    """
    origin = diagnostic.location or TOOL_NAME
    return (
        f"{origin}: {diagnostic.severity.value} {diagnostic.code}: "
        f"{diagnostic.message}"
    )


def report_diagnostics(
    diagnostics: tuple[Diagnostic, ...], stream: TextIO | None = None
) -> None:
    out = sys.stderr if stream is None else stream
    for diagnostic in diagnostics:
        print(format_diagnostic(diagnostic), file=out)


# ===--- Metadata feed ---=== #


VALID_METADATA_ERROR_CODES = {
    "INVALID_ROOT",
    "MISSING_NAME",
    "INVALID_ACCESSIBILITY",
    "INVALID_BOOLEAN",
}


class MetadataError(Exception):
    def __init__(self, code: str, message: str):
        if code not in VALID_METADATA_ERROR_CODES:
            raise ValueError(f"Unknown metadata error code: {code}")
        super().__init__(message)
        self.code = code
        self.message = message


class CandidateEntry(NamedTuple):
    """Unvalidated position of one <enum> element in the metadata tree."""

    namespace_parts: tuple[str, ...]
    containers: tuple[ET.Element, ...]
    element: ET.Element

    @property
    def label(self) -> str:
        names = [*self.namespace_parts]
        names.extend(el.get("name") or "?" for el in self.containers)
        names.append(self.element.get("name") or "?")
        return ".".join(name for name in names if name)


def load_metadata(path: Path) -> ET.Element:
    return ET.parse(path).getroot()


def collect_candidates(root: ET.Element) -> list[CandidateEntry]:
    """Return every <enum> element with its namespace and container ancestry.

    Only the document shape is inspected here; attribute values are
    validated per candidate by parse_candidate so one malformed declaration
    cannot hide the others.

    Raises:
        MetadataError: If the root element is not <compilation>.
    """
    if root.tag != "compilation":
        raise MetadataError(
            "INVALID_ROOT",
            f"Expected <compilation> root element, got <{root.tag}>",
        )

    entries: list[CandidateEntry] = []

    def _walk(
        element: ET.Element,
        namespace_parts: tuple[str, ...],
        containers: tuple[ET.Element, ...],
    ) -> None:
        for child in element:
            if child.tag == "namespace" and not containers:
                _walk(child, (*namespace_parts, child.get("name", "")), containers)
            elif child.tag == "type":
                _walk(child, namespace_parts, (*containers, child))
            elif child.tag == "enum":
                entries.append(CandidateEntry(namespace_parts, containers, child))

    _walk(root, (), ())
    return entries


def _require_name(element: ET.Element) -> str:
    name = (element.get("name") or "").strip()
    if not name:
        raise MetadataError(
            "MISSING_NAME", f"<{element.tag}> is missing required attribute 'name'"
        )
    return name


def _parse_bool(element: ET.Element, attr: str, default: bool) -> bool:
    raw = element.get(attr)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value == "true":
        return True
    if value == "false":
        return False
    raise MetadataError(
        "INVALID_BOOLEAN",
        f"<{element.tag} name={element.get('name')!r}> attribute '{attr}' "
        f"must be 'true' or 'false', got {raw!r}",
    )


def _parse_accessibility(element: ET.Element, nested: bool) -> Accessibility:
    # C# defaults: internal at namespace level, private when nested.
    raw = element.get("accessibility")
    if raw is None:
        return Accessibility.OTHER if nested else Accessibility.INTERNAL
    keyword = " ".join(raw.split()).lower()
    accessibility = _ACCESSIBILITY_KEYWORDS.get(keyword)
    if accessibility is None:
        raise MetadataError(
            "INVALID_ACCESSIBILITY",
            f"<{element.tag} name={element.get('name')!r}> has unknown "
            f"accessibility {raw!r}",
        )
    return accessibility


def parse_type_parameter(element: ET.Element) -> TypeParameterDescriptor:
    return TypeParameterDescriptor(
        name=_require_name(element),
        has_reference_type_constraint=_parse_bool(element, "class", False),
        has_value_type_constraint=_parse_bool(element, "struct", False),
        has_unmanaged_type_constraint=_parse_bool(element, "unmanaged", False),
        has_constructor_constraint=_parse_bool(element, "new", False),
        has_not_null_constraint=_parse_bool(element, "notnull", False),
        constraint_types=tuple(
            (c.text or "").strip()
            for c in element.findall("constraint-type")
            if (c.text or "").strip()
        ),
    )


def parse_candidate(entry: CandidateEntry) -> EnumCandidate:
    """Build an EnumCandidate from one collected <enum> element.

    Raises:
        MetadataError: On a missing name, unknown accessibility keyword or
            malformed boolean attribute anywhere in the candidate's ancestry.
    """
    for part in entry.namespace_parts:
        if not part.strip():
            raise MetadataError(
                "MISSING_NAME", "<namespace> is missing required attribute 'name'"
            )
    namespace = ".".join(part.strip() for part in entry.namespace_parts)

    parent: ContainerTypeDescriptor | None = None
    for depth, container in enumerate(entry.containers):
        parent = ContainerTypeDescriptor(
            name=_require_name(container),
            type_parameters=tuple(
                parse_type_parameter(p) for p in container.findall("type-parameter")
            ),
            containing_type=parent,
            accessibility=_parse_accessibility(container, nested=depth > 0),
            namespace=namespace,
        )

    element = entry.element
    symbol = ContainerTypeDescriptor(
        name=_require_name(element),
        containing_type=parent,
        accessibility=_parse_accessibility(element, nested=parent is not None),
        namespace=namespace,
    )
    attributes = tuple(
        AttributeDescriptor(name=_require_name(a), location=a.get("location"))
        for a in element.findall("attribute")
    )
    fields = tuple(
        FieldDescriptor(
            name=_require_name(f),
            is_static=_parse_bool(f, "static", True),
            has_constant_value=_parse_bool(f, "constant", True),
        )
        for f in element.findall("field")
    )
    return EnumCandidate(symbol=symbol, attributes=attributes, fields=fields)


# ===--- Type descriptor resolution ---=== #


def nested_type_chain(
    symbol: ContainerTypeDescriptor,
) -> tuple[ContainerTypeDescriptor, ...]:
    """Return the containing-type chain of symbol, outermost first."""
    chain: list[ContainerTypeDescriptor] = []
    current: ContainerTypeDescriptor | None = symbol
    while current is not None:
        chain.append(current)
        current = current.containing_type
    chain.reverse()
    return tuple(chain)


def has_duplicated_type_parameter_name(
    chain: tuple[ContainerTypeDescriptor, ...],
) -> bool:
    seen: set[str] = set()
    for level in chain:
        for parameter in level.type_parameters:
            if parameter.name in seen:
                return True
            seen.add(parameter.name)
    return False


def format_constraint_clause(
    parameter: TypeParameterDescriptor,
    name_selector: Callable[[str], str],
    type_selector: Callable[[str], str] | None = None,
) -> str:
    """Format the `where` clause for one type parameter.

    Term order: primary constraint (class, unmanaged or struct; at most one,
    since unmanaged already implies struct), constraint types in declaration
    order, new(), notnull.

    Args:
        parameter: Parameter whose constraints are rendered.
        name_selector: Maps the declared name to the name used in the clause.
        type_selector: Optional rewrite applied to each constraint type.

    Returns:
        "where <name> : <terms>", or "" when the parameter is unconstrained.
    """
    constraints: list[str] = []

    if parameter.has_reference_type_constraint:
        constraints.append("class")
    elif parameter.has_unmanaged_type_constraint:
        constraints.append("unmanaged")
    elif parameter.has_value_type_constraint:
        constraints.append("struct")

    for constraint_type in parameter.constraint_types:
        constraints.append(
            type_selector(constraint_type) if type_selector else constraint_type
        )

    if parameter.has_constructor_constraint:
        constraints.append("new()")

    if parameter.has_not_null_constraint:
        constraints.append("notnull")

    if not constraints:
        return ""
    return f"where {name_selector(parameter.name)} : {', '.join(constraints)}"


_IDENTIFIER_RE = re.compile(r"(?<![\w.:@])([A-Za-z_]\w*)(?!\w)")


def _rename_type_parameters(text: str, mapping: dict[str, str]) -> str:
    # Qualified names (after "." or "::") are never type parameters.
    return _IDENTIFIER_RE.sub(lambda m: mapping.get(m.group(1), m.group(1)), text)


def _escape_namespace(namespace: str) -> str:
    return ".".join(escape_if_reserved(p) for p in namespace.split("."))


def _type_reference(
    chain: tuple[ContainerTypeDescriptor, ...], level_arguments: list[list[str]]
) -> str:
    segments = []
    for level, arguments in zip(chain, level_arguments):
        segment = escape_if_reserved(level.name)
        if arguments:
            segment += f"<{', '.join(arguments)}>"
        segments.append(segment)

    namespace = chain[-1].namespace
    prefix = ""
    if namespace:
        prefix = _escape_namespace(namespace) + "."
    return f"global::{prefix}{'.'.join(segments)}"


def resolve_signature(
    chain: tuple[ContainerTypeDescriptor, ...],
) -> ResolvedSignature:
    """Resolve the type reference and generic signature for an enum's chain.

    Extension methods live in a top-level static class, so every type
    parameter of every enclosing level becomes a method type parameter. When
    two levels declare the same name the flattened list would be invalid, so
    every parameter is renamed to T0, T1, ... (outer to inner, left to right)
    and constraint clauses are rewritten against the renamed parameters.
    Within a constraint type, an unqualified parameter name resolves to the
    innermost level that declares it, matching C# shadowing.

    Args:
        chain: Containing-type chain, outermost first, enum last.

    Returns:
        ResolvedSignature. Resolution never fails.
    """
    if not has_duplicated_type_parameter_name(chain):
        level_arguments = [[p.name for p in level.type_parameters] for level in chain]
        names = [name for arguments in level_arguments for name in arguments]
        clauses = (
            format_constraint_clause(p, lambda name: name)
            for level in chain
            for p in level.type_parameters
        )
        return ResolvedSignature(
            type_reference=_type_reference(chain, level_arguments),
            generic_parameters=f"<{', '.join(names)}>" if names else "",
            constraint_clauses=tuple(c for c in clauses if c),
        )

    level_arguments = []
    constraint_clauses: list[str] = []
    scope: dict[str, str] = {}
    type_parameter_index = 0

    for level in chain:
        mapper: dict[str, str] = {}
        for i, parameter in enumerate(level.type_parameters):
            mapper[parameter.name] = f"T{type_parameter_index + i}"
        type_parameter_index += level.arity
        scope = {**scope, **mapper}
        level_scope = scope

        for parameter in level.type_parameters:
            clause = format_constraint_clause(
                parameter,
                lambda name, m=mapper: m[name],
                lambda text, s=level_scope: _rename_type_parameters(text, s),
            )
            if clause:
                constraint_clauses.append(clause)

        level_arguments.append(list(mapper.values()))

    synthetic_names = [f"T{index}" for index in range(type_parameter_index)]
    return ResolvedSignature(
        type_reference=_type_reference(chain, level_arguments),
        generic_parameters=f"<{', '.join(synthetic_names)}>" if synthetic_names else "",
        constraint_clauses=tuple(constraint_clauses),
    )


# ===--- Enum context ---=== #


def resolve_access_modifier(symbol: ContainerTypeDescriptor) -> str | None:
    """Narrowest access modifier across symbol and every containing type.

    Returns None when any level is neither public nor internal.
    """
    result = "public"
    current: ContainerTypeDescriptor | None = symbol
    while current is not None:
        if current.accessibility is Accessibility.INTERNAL:
            result = "internal"
        elif current.accessibility is not Accessibility.PUBLIC:
            return None
        current = current.containing_type
    return result


def build_enum_context(
    candidate: EnumCandidate,
) -> tuple[EnumDescriptor | None, tuple[Diagnostic, ...]]:
    """Validate a candidate and build its EnumDescriptor.

    Candidates without the Fluent marker or without constant members are
    skipped silently. A marked enum that is not reachable as public or
    internal through its whole containing chain is rejected with exactly one
    MAFE0001 diagnostic located at the marker attribute.

    Returns:
        (descriptor, ()) on success, (None, ()) on skip, or
        (None, (diagnostic,)) on rejection.
    """
    fluent_attribute: AttributeDescriptor | None = None
    has_flags = False

    for attribute in candidate.attributes:
        if attribute.name == FLUENT_ATTRIBUTE_DISPLAY_STRING:
            fluent_attribute = attribute
        if attribute.name == FLAGS_ATTRIBUTE_DISPLAY_STRING:
            has_flags = True

    if fluent_attribute is None:
        return None, ()

    symbol = candidate.symbol
    access_modifier = resolve_access_modifier(symbol)
    if access_modifier is None:
        diagnostic = Diagnostic(
            descriptor=INVALID_ENUM_ACCESSIBILITY,
            location=fluent_attribute.location,
            message_args=(symbol.name,),
        )
        return None, (diagnostic,)

    members = tuple(
        dict.fromkeys(
            field.name
            for field in candidate.fields
            if field.is_static and field.has_constant_value
        )
    )
    if not members:
        return None, ()

    descriptor = EnumDescriptor(
        symbol=symbol,
        access_modifier=access_modifier,
        members=members,
        has_flags=has_flags,
    )
    return descriptor, ()


# ===--- Extension method emission ---=== #


def _unique_identifier(preferred: str, taken: set[str]) -> str:
    candidate = preferred
    suffix = 1
    while candidate in taken:
        candidate = f"{preferred}{suffix}"
        suffix += 1
    return candidate


def generate_extension_code(
    descriptor: EnumDescriptor,
    signature: ResolvedSignature,
    indent: str = DEFAULT_INDENT,
) -> tuple[str, ...]:
    """Emit the predicate extension methods for one enum.

    Block order: Is, Is<Member> per member, then for flags enums only Has and
    Has<Member> per member. Blocks are separated by a single blank line.
    Lines carry no outer indentation; indent is applied to constraint clauses
    and method bodies only.
    """
    type_reference = signature.type_reference
    generic_parameters = signature.generic_parameters
    # Parameter names must not repeat each other or any method type parameter.
    taken = {
        name.lstrip("@")
        for name in generic_parameters.strip("<>").split(", ")
        if name
    }
    receiver_name = _unique_identifier(to_lower_camel(descriptor.symbol.name), taken)
    taken.add(receiver_name)
    argument_name = "value" if "value" not in taken else _unique_identifier("other", taken)
    receiver = escape_if_reserved(receiver_name)
    argument = escape_if_reserved(argument_name)

    lines: list[str] = []

    def _method(header: str, body: str) -> None:
        if lines:
            lines.append("")
        lines.append(f"public static bool {header}")
        for clause in signature.constraint_clauses:
            lines.append(f"{indent}{clause}")
        lines.append("{")
        lines.append(f"{indent}{body}")
        lines.append("}")

    # Is
    _method(
        f"Is{generic_parameters}(this {type_reference} {receiver}, "
        f"{type_reference} {argument})",
        f"return {receiver} == {argument};",
    )

    # IsXXX
    for member in descriptor.members:
        _method(
            f"Is{member}{generic_parameters}(this {type_reference} {receiver})",
            f"return {receiver} == {type_reference}.{escape_if_reserved(member)};",
        )

    if descriptor.has_flags:
        # Has
        _method(
            f"Has{generic_parameters}(this {type_reference} {receiver}, "
            f"{type_reference} {argument})",
            f"return ({receiver} & {argument}) != 0;",
        )

        # HasXXX
        for member in descriptor.members:
            _method(
                f"Has{member}{generic_parameters}(this {type_reference} {receiver})",
                f"return ({receiver} & {type_reference}."
                f"{escape_if_reserved(member)}) != 0;",
            )

    return tuple(lines)


# ===--- Source assembly ---=== #


def hint_name_for(symbol: ContainerTypeDescriptor) -> str:
    """Output file name for an enum, e.g. "Demo.Outer`1.Inner`1.Color.g.cs"."""
    names = [
        f"{level.name}`{level.arity}" if level.arity else level.name
        for level in nested_type_chain(symbol)
    ]
    if symbol.namespace:
        names.insert(0, symbol.namespace)
    return ".".join(names) + ".g.cs"


def extension_class_name(symbol: ContainerTypeDescriptor) -> str:
    names = [
        f"{level.name}{level.arity}" if level.arity else level.name
        for level in nested_type_chain(symbol)
    ]
    return "_".join(names) + "Extensions"


def format_file_header() -> list[str]:
    return ["// <auto-generated/>", "#nullable enable"]


def assemble_extension_source(
    descriptor: EnumDescriptor,
    lines: tuple[str, ...],
    indent: str = DEFAULT_INDENT,
) -> str:
    """Wrap emitted method lines in a namespace and static extensions class.

    Output structure:
        // <auto-generated/>
        #nullable enable

        namespace Demo            <- omitted in the global namespace
        {
            public static partial class ColorExtensions
            {
                <lines>
            }
        }

    Blank lines in lines stay empty. Returns text with a trailing newline.
    """
    symbol = descriptor.symbol
    parts: list[str] = list(format_file_header())
    parts.append("")

    depth = 0
    if symbol.namespace:
        parts.append(f"namespace {_escape_namespace(symbol.namespace)}")
        parts.append("{")
        depth = 1

    outer = indent * depth
    inner = indent * (depth + 1)
    parts.append(
        f"{outer}{descriptor.access_modifier} static partial class "
        f"{extension_class_name(symbol)}"
    )
    parts.append(f"{outer}{{")
    parts.extend(f"{inner}{line}" if line else "" for line in lines)
    parts.append(f"{outer}}}")

    if symbol.namespace:
        parts.append("}")

    return "\n".join(parts) + "\n"


# ===--- Writer I/O ---=== #


@dataclass(frozen=True)
class FileWriteResult:
    """Result of writing a single generated file.

    Attributes:
        filename: Hint name written, e.g. "Demo.Color.g.cs".
        path: Absolute path of the written file.
        line_count: Number of newline characters in the written content.
        byte_count: Number of bytes written (UTF-8 encoded).
    """

    filename: str
    path: Path
    line_count: int
    byte_count: int


def write_source(output_dir: Path, hint_name: str, content: str) -> FileWriteResult:
    """Write one generated source file, creating output_dir if absent.

    Raises:
        OSError: Propagated directly if the filesystem write fails.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    file_path = output_dir / hint_name
    file_path.write_text(content, encoding="utf-8")
    resolved = file_path.resolve()
    return FileWriteResult(
        filename=hint_name,
        path=resolved,
        line_count=content.count("\n"),
        byte_count=len(resolved.read_bytes()),
    )


# ===--- Pipeline ---=== #

STATUS_GENERATED = "generated"
STATUS_SKIPPED = "skipped"
STATUS_REJECTED = "rejected"


@dataclass(frozen=True)
class CandidateOutcome:
    """Result of running one candidate through context, resolution and emission.

    Attributes:
        qualified_name: Dotted namespace and type chain of the enum.
        status: STATUS_GENERATED, STATUS_SKIPPED or STATUS_REJECTED.
        descriptor: Validated descriptor; None unless generated.
        diagnostics: Zero or one diagnostic (one only when rejected).
        hint_name: Output file name; None unless generated.
        source: Complete generated source text; None unless generated.
    """

    qualified_name: str
    status: str
    descriptor: EnumDescriptor | None = None
    diagnostics: tuple[Diagnostic, ...] = ()
    hint_name: str | None = None
    source: str | None = None


@dataclass(frozen=True)
class CandidateFailure:
    """A candidate whose metadata could not be parsed."""

    label: str
    code: str
    message: str


@dataclass(frozen=True)
class GenerationResult:
    output_dir: Path
    outcomes: tuple[CandidateOutcome, ...]
    failures: tuple[CandidateFailure, ...]
    files: tuple[FileWriteResult, ...]

    @property
    def diagnostics(self) -> tuple[Diagnostic, ...]:
        return tuple(d for outcome in self.outcomes for d in outcome.diagnostics)

    @property
    def has_errors(self) -> bool:
        return bool(self.failures) or any(
            d.severity is Severity.ERROR for d in self.diagnostics
        )

    @property
    def total_lines(self) -> int:
        return sum(f.line_count for f in self.files)

    def count(self, status: str) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)


def process_candidate(
    candidate: EnumCandidate, indent: str = DEFAULT_INDENT
) -> CandidateOutcome:
    name = qualified_name(candidate.symbol)
    descriptor, diagnostics = build_enum_context(candidate)
    if descriptor is None:
        status = STATUS_REJECTED if diagnostics else STATUS_SKIPPED
        return CandidateOutcome(name, status, diagnostics=diagnostics)

    signature = resolve_signature(nested_type_chain(descriptor.symbol))
    lines = generate_extension_code(descriptor, signature, indent)
    return CandidateOutcome(
        qualified_name=name,
        status=STATUS_GENERATED,
        descriptor=descriptor,
        hint_name=hint_name_for(descriptor.symbol),
        source=assemble_extension_source(descriptor, lines, indent),
    )


def process_entries(
    entries: list[CandidateEntry], indent: str = DEFAULT_INDENT
) -> tuple[tuple[CandidateOutcome, ...], tuple[CandidateFailure, ...]]:
    """Parse and process every entry independently.

    A MetadataError in one entry is recorded as a CandidateFailure and never
    prevents the remaining entries from being processed.
    """
    outcomes: list[CandidateOutcome] = []
    failures: list[CandidateFailure] = []
    for entry in entries:
        try:
            candidate = parse_candidate(entry)
        except MetadataError as err:
            failures.append(CandidateFailure(entry.label, err.code, err.message))
            continue
        outcomes.append(process_candidate(candidate, indent))
    return tuple(outcomes), tuple(failures)


def run_generate(config: GenerateConfig) -> GenerationResult:
    """Execute the complete generation pipeline for a GenerateConfig.

    Stages: parse metadata -> collect candidates -> per-candidate context,
    resolution and emission -> write attribute source and generated files
    -> report diagnostics and summary.

    Raises:
        OSError: Metadata not readable or filesystem write failure.
        ET.ParseError: Malformed metadata XML.
        MetadataError: Metadata root is not <compilation>.
    """
    print(f"Parsing: {config.metadata}")
    root = load_metadata(config.metadata)
    entries = collect_candidates(root)
    print(f"  Candidates: {len(entries)}")

    outcomes, failures = process_entries(entries, config.indent)

    files: list[FileWriteResult] = []
    if config.write_attribute:
        files.append(
            write_source(
                config.output_dir, FLUENT_ATTRIBUTE_HINT_NAME, FLUENT_ATTRIBUTE_SOURCE
            )
        )
    for outcome in outcomes:
        if outcome.status == STATUS_GENERATED:
            assert outcome.hint_name is not None and outcome.source is not None
            files.append(write_source(config.output_dir, outcome.hint_name, outcome.source))

    result = GenerationResult(
        output_dir=Path(config.output_dir),
        outcomes=outcomes,
        failures=failures,
        files=tuple(files),
    )
    print(
        f"  Written: {len(result.files)} files, "
        f"{result.total_lines} lines to {result.output_dir}"
    )

    for failure in failures:
        print(
            f"{TOOL_NAME}: error [{failure.code}] {failure.label}: {failure.message}",
            file=sys.stderr,
        )
    report_diagnostics(result.diagnostics)

    summary = build_generation_summary(config, result)
    print(format_generation_summary(summary), end="")
    return result


# ===--- Discovery ---=== #


@dataclass(frozen=True)
class EnumSummary:
    """One row of the --list-enums table.

    Attributes:
        qualified_name: Dotted name, or the best-effort label for invalid rows.
        status: "ok", "skipped", "rejected" or "invalid".
        access_modifier: Resolved modifier, or "-" when not generated.
        has_flags: True for [Flags] enums that will be generated.
        member_count: Number of constant members, 0 when not generated.
    """

    qualified_name: str
    status: str
    access_modifier: str
    has_flags: bool
    member_count: int


def gather_enum_summaries(entries: list[CandidateEntry]) -> list[EnumSummary]:
    """One summary per entry, in document order; malformed entries are "invalid"."""
    summaries = []
    for entry in entries:
        try:
            candidate = parse_candidate(entry)
        except MetadataError:
            summaries.append(EnumSummary(entry.label, "invalid", "-", False, 0))
            continue
        outcome = process_candidate(candidate)
        descriptor = outcome.descriptor
        if descriptor is not None:
            summaries.append(
                EnumSummary(
                    qualified_name=outcome.qualified_name,
                    status="ok",
                    access_modifier=descriptor.access_modifier,
                    has_flags=descriptor.has_flags,
                    member_count=len(descriptor.members),
                )
            )
        else:
            summaries.append(
                EnumSummary(outcome.qualified_name, outcome.status, "-", False, 0)
            )
    return summaries


def filter_enums_by_text(
    summaries: list[EnumSummary], filter_text: str
) -> list[EnumSummary]:
    needle = filter_text.lower()
    return [s for s in summaries if needle in s.qualified_name.lower()]


def format_enums_table(summaries: list[EnumSummary], source_label: str) -> str:
    """Return the complete --list-enums output as a single string.

    Output format:

        3 enum candidates in enum-metadata.xml:

          Demo.Color     ok        public     3 members
          Demo.Perm      ok        internal   2 members  flags
          Demo.Hidden    rejected  -          0 members

    The name column width is derived from the widest name.
    """
    lines = [f"{len(summaries)} enum candidates in {source_label}:", ""]
    name_width = max((len(s.qualified_name) for s in summaries), default=0)
    for row in summaries:
        line = (
            f"  {row.qualified_name:<{name_width}}  {row.status:<9} "
            f"{row.access_modifier:<10} {row.member_count} members"
        )
        if row.has_flags:
            line += "  flags"
        lines.append(line)
    lines.append("")
    return "\n".join(lines)


def run_discovery(config: DiscoveryConfig) -> None:
    """Print the candidate table for config.metadata to stdout.

    Nothing is written to disk. Malformed XML propagates as ET.ParseError.
    """
    root = load_metadata(config.metadata)
    summaries = gather_enum_summaries(collect_candidates(root))
    if config.filter_text is not None:
        summaries = filter_enums_by_text(summaries, config.filter_text)
    print(format_enums_table(summaries, config.metadata.name), end="")


# ===--- Summary report ---=== #


@dataclass(frozen=True)
class GenerationSummary:
    """Immutable data for the post-generation console report."""

    metadata_label: str
    output_dir: str
    generated: int
    skipped: int
    rejected: int
    invalid: int
    files: tuple[FileWriteResult, ...]


def build_generation_summary(
    config: GenerateConfig, result: GenerationResult
) -> GenerationSummary:
    return GenerationSummary(
        metadata_label=str(config.metadata),
        output_dir=str(result.output_dir),
        generated=result.count(STATUS_GENERATED),
        skipped=result.count(STATUS_SKIPPED),
        rejected=result.count(STATUS_REJECTED),
        invalid=len(result.failures),
        files=result.files,
    )


def format_generation_summary(summary: GenerationSummary) -> str:
    """Render a GenerationSummary; returns text with one trailing newline."""
    lines: list[str] = []
    lines.append("Fluent enum extensions generated:")
    lines.append("")
    lines.append(f"  Metadata:   {summary.metadata_label}")
    lines.append(f"  Output:     {summary.output_dir}")
    lines.append("")
    lines.append("  Candidates:")
    lines.append(f"    {'Generated:':<11}{summary.generated:>6}")
    lines.append(f"    {'Skipped:':<11}{summary.skipped:>6}")
    lines.append(f"    {'Rejected:':<11}{summary.rejected:>6}")
    lines.append(f"    {'Invalid:':<11}{summary.invalid:>6}")

    lines.append("")
    lines.append("  Files written:")
    name_width = max((len(f.filename) for f in summary.files), default=0)
    for file_result in summary.files:
        lines.append(
            f"    {file_result.filename:<{name_width}} "
            f"{file_result.line_count:>6,} lines"
        )

    total_lines = sum(f.line_count for f in summary.files)
    lines.append("")
    lines.append(f"  Total: {total_lines:,} lines across {len(summary.files)} files")
    lines.append("")

    return "\n".join(lines)


# ===--- Main generation ---=== #


def main():
    try:
        config = build_config()
    except ConfigError as err:
        print(f"Config error [{err.code}]: {err.message}")
        if err.suggestion:
            print(f"Hint: {err.suggestion}")
        raise SystemExit(1) from err

    try:
        if isinstance(config, DiscoveryConfig):
            run_discovery(config)
            return
        result = run_generate(config)
    except (OSError, ET.ParseError) as err:
        print(f"Error: {err}")
        raise SystemExit(1) from err
    except MetadataError as err:
        print(f"Metadata error [{err.code}]: {err.message}")
        raise SystemExit(1) from err

    if result.has_errors:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
