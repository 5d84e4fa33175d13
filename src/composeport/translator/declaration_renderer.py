"""
Non-UI declaration renderer.

Classes, interfaces, objects, enums, top-level functions and properties are
rendered to Dart through the type mapper and the body rewriter. Nested
classes are lifted to the top level because Dart has no nested types.
"""

import logging
import re
from typing import Callable

from composeport.ir.source import Declaration, DeclarationKind, Parameter, to_source
from composeport.knowledge.dart_syntax import indent
from composeport.knowledge.type_mapper import TypeMapper, split_top_level
from composeport.translator.body_rewriter import format_block, rewrite_block, rewrite_expression

logger = logging.getLogger(__name__)

TypeObserver = Callable[[str], None]

_LITERAL = re.compile(r"-?\d+(\.\d+)?|true|false|null|'[^'$]*'|\"[^\"$]*\"")


def is_const_value(text: str) -> bool:
    """True for literals (and collections of literals) usable in const contexts."""
    value = text.strip()
    if not value:
        return False
    if _LITERAL.fullmatch(value):
        return True
    if re.fullmatch(r"const .+", value):
        return True
    if value[:1] in "[{" and value[-1:] in "]}":
        return all(is_const_value(v.split(":", 1)[-1]) for v in split_top_level(value[1:-1]))
    return False


def const_default(text: str) -> str | None:
    """Dart default value text, None when the value cannot be a const default."""
    value = rewrite_expression(text.strip())
    if value[:1] in "[{" and is_const_value(value):
        return f"const {value}"
    if is_const_value(value):
        return value
    # Enum-style constants such as Colors.red or Status.idle
    if re.fullmatch(r"[A-Z]\w*\.\w+", value):
        return value
    return None


def super_clause(super_types: tuple[str, ...]) -> str:
    """``extends``/``implements`` clause; a constructor call marks the superclass."""
    extends = None
    implements = []
    for super_type in super_types:
        text = super_type.strip()
        if "(" in text and extends is None:
            extends = text.split("(", 1)[0].strip()
        else:
            implements.append(text)
    clause = ""
    if extends:
        clause += f" extends {extends}"
    if implements:
        clause += f" implements {', '.join(implements)}"
    return clause


class DeclarationRenderer:
    """Renders non-composable declarations."""

    def __init__(self, type_mapper: TypeMapper | None = None, observe_type: TypeObserver | None = None):
        self.type_mapper = type_mapper or TypeMapper()
        self.observe_type = observe_type

    def render(self, declaration: Declaration) -> str:
        kind = declaration.kind
        if kind in (DeclarationKind.CLASS, DeclarationKind.INTERFACE, DeclarationKind.OBJECT):
            return "\n\n".join(self.render_class(declaration))
        if kind == DeclarationKind.FUNCTION:
            return self.render_function(declaration, top_level=True)
        return self.render_property(declaration)

    def map_type(self, type_text: str | None, fallback: str = "dynamic") -> str:
        if not type_text:
            return fallback
        if self.observe_type is not None:
            self.observe_type(type_text)
        return self.type_mapper.map(type_text)

    # =========================================================================
    # Classes
    # =========================================================================

    def render_class(self, declaration: Declaration) -> list[str]:
        """The class itself followed by its lifted nested classes."""
        nested = [
            m
            for m in declaration.members
            if m.kind in (DeclarationKind.CLASS, DeclarationKind.INTERFACE, DeclarationKind.OBJECT)
            and not self._is_companion(m)
        ]
        if declaration.has_modifier("enum"):
            rendered = self._enum(declaration)
        elif declaration.kind == DeclarationKind.INTERFACE:
            rendered = self._interface(declaration)
        elif declaration.kind == DeclarationKind.OBJECT:
            rendered = self._object(declaration)
        elif declaration.has_modifier("data"):
            rendered = self._data_class(declaration)
        else:
            rendered = self._regular_class(declaration)

        result = [rendered]
        for member in nested:
            logger.debug(f"Lifting nested {member.name} out of {declaration.name}")
            result.extend(self.render_class(member))
        return result

    @staticmethod
    def _is_companion(declaration: Declaration) -> bool:
        return declaration.kind == DeclarationKind.OBJECT and (
            declaration.has_modifier("companion") or declaration.name == "Companion"
        )

    def _header(self, declaration: Declaration, keyword: str = "class") -> str:
        prefix = ""
        if declaration.has_modifier("sealed"):
            prefix = "sealed "
        elif declaration.has_modifier("abstract"):
            prefix = "abstract "
        return f"{prefix}{keyword} {declaration.name}{super_clause(declaration.super_types)}"

    def _fields(self, declaration: Declaration) -> list[str]:
        fields = []
        for param in declaration.parameters:
            if param.is_property:
                keyword = "" if param.mutable else "final "
                fields.append(f"{keyword}{self.map_type(param.type)} {param.name};")
        return fields

    def _constructor(self, declaration: Declaration, const: bool = False) -> str | None:
        if not declaration.parameters:
            return None
        params = []
        initializers = []
        for param in declaration.parameters:
            params.append(self._named_parameter(param, initializers, field=param.is_property))
        prefix = "const " if const and not initializers else ""
        text = f"{prefix}{declaration.name}({{{', '.join(params)}}})"
        if initializers:
            text += f" : {', '.join(initializers)}"
        return text + ";"

    def _named_parameter(self, param: Parameter, initializers: list[str], field: bool) -> str:
        dart_type = self.map_type(param.type)
        if param.default_text is None:
            if param.nullable:
                return f"this.{param.name}" if field else f"{dart_type} {param.name}"
            return f"required this.{param.name}" if field else f"required {dart_type} {param.name}"
        default = const_default(param.default_text)
        if default is not None:
            return f"this.{param.name} = {default}" if field else f"{dart_type} {param.name} = {default}"
        # Non-constant defaults move to the initializer list
        nullable_type = dart_type if dart_type.endswith("?") else f"{dart_type}?"
        if field:
            initializers.append(f"{param.name} = {param.name} ?? {rewrite_expression(param.default_text)}")
        return f"{nullable_type} {param.name}"

    def _members(self, declaration: Declaration, static: bool = False) -> list[str]:
        rendered = []
        for member in declaration.members:
            if member.kind == DeclarationKind.PROPERTY:
                rendered.append(self.render_property(member, static=static, member=True))
            elif member.kind == DeclarationKind.FUNCTION:
                rendered.append(self.render_function(member, static=static))
            elif self._is_companion(member):
                rendered.extend(self._members(member, static=True))
        return rendered

    def _class_body(self, header: str, sections: list[list[str]]) -> str:
        blocks = ["\n".join(section) for section in sections if section]
        if not blocks:
            return f"{header} {{}}"
        body = "\n\n".join(blocks)
        return f"{header} {{\n{indent(body)}\n}}"

    def _regular_class(self, declaration: Declaration) -> str:
        constructor = self._constructor(declaration)
        return self._class_body(
            self._header(declaration),
            [self._fields(declaration), [constructor] if constructor else [], self._members(declaration)],
        )

    def _data_class(self, declaration: Declaration) -> str:
        name = declaration.name
        properties = [p for p in declaration.parameters if p.is_property]
        all_final = all(not p.mutable for p in properties)
        constructor = self._constructor(declaration, const=all_final)

        copy_params = []
        copy_args = []
        for param in properties:
            dart_type = self.map_type(param.type)
            copy_params.append(f"{dart_type if dart_type.endswith('?') else dart_type + '?'} {param.name}")
            copy_args.append(f"{param.name}: {param.name} ?? this.{param.name},")
        if copy_params:
            arguments = "\n".join(copy_args)
            copy_with = [
                f"{name} copyWith({{{', '.join(copy_params)}}}) {{",
                indent(f"return {name}(\n{indent(arguments)}\n);"),
                "}",
            ]
        else:
            copy_with = [f"{name} copyWith() => {name}();"]

        comparisons = " && ".join(f"other.{p.name} == {p.name}" for p in properties)
        equality = [
            "@override",
            "bool operator ==(Object other) =>",
            indent("identical(this, other) ||", 2),
            indent(f"other is {name}" + (f" && {comparisons};" if comparisons else ";"), 2),
        ]
        hash_code = [
            "@override",
            f"int get hashCode => Object.hashAll([{', '.join(p.name for p in properties)}]);",
        ]
        fields_text = ", ".join(f"{p.name}: ${p.name}" for p in properties)
        to_string = ["@override", f"String toString() => '{name}({fields_text})';"]

        return self._class_body(
            self._header(declaration),
            [
                self._fields(declaration),
                [constructor] if constructor else [],
                copy_with,
                equality,
                hash_code,
                to_string,
                self._members(declaration),
            ],
        )

    def _enum(self, declaration: Declaration) -> str:
        entries = []
        for entry in declaration.enum_entries:
            head, _, args = entry.partition("(")
            if args:
                values = ", ".join(rewrite_expression(a) for a in split_top_level(args.rstrip(")")))
                entries.append(f"{head.strip()}({values})")
            else:
                entries.append(head.strip())
        interfaces = tuple(s for s in declaration.super_types if "(" not in s)
        header = f"enum {declaration.name}{super_clause(interfaces)}"
        fields = self._fields(declaration)
        members = self._members(declaration)
        if not fields and not members:
            return f"{header} {{\n{indent(', '.join(entries))}\n}}"

        sections = [[", ".join(entries) + ";"], fields]
        if declaration.parameters:
            params = ", ".join(f"this.{p.name}" for p in declaration.parameters if p.is_property)
            sections.append([f"const {declaration.name}({params});"])
        sections.append(members)
        return self._class_body(header, sections)

    def _interface(self, declaration: Declaration) -> str:
        members = []
        for member in declaration.members:
            if member.kind == DeclarationKind.FUNCTION:
                members.append(self.render_function(member))
            elif member.kind == DeclarationKind.PROPERTY:
                if member.initializer is None and member.body_text is None:
                    members.append(f"{self.map_type(member.type)} get {member.name};")
                else:
                    members.append(self.render_property(member))
        header = f"abstract class {declaration.name}{super_clause(declaration.super_types)}"
        return self._class_body(header, [members])

    def _object(self, declaration: Declaration) -> str:
        """Members become static next to a private constructor and a singleton instance."""
        name = declaration.name
        header = self._header(declaration)
        singleton = [f"{name}._();", f"static final {name} instance = {name}._();"]
        return self._class_body(header, [singleton, self._members(declaration, static=True)])

    # =========================================================================
    # Functions and properties
    # =========================================================================

    def _parameter_list(self, parameters: tuple[Parameter, ...]) -> str:
        positional = []
        named = []
        for param in parameters:
            dart_type = self.map_type(param.type)
            if param.default_text is None:
                positional.append(f"{dart_type} {param.name}")
                continue
            default = const_default(param.default_text)
            if default is None:
                named.append(f"{dart_type if dart_type.endswith('?') else dart_type + '?'} {param.name}")
            else:
                named.append(f"{dart_type} {param.name} = {default}")
        parts = list(positional)
        if named:
            parts.append(f"{{{', '.join(named)}}}")
        return ", ".join(parts)

    def _body_source(self, declaration: Declaration) -> str:
        if declaration.body_text is not None:
            return declaration.body_text.strip()
        if declaration.body is not None:
            return "{\n" + to_source(declaration.body) + "\n}"
        return ""

    def render_function(
        self, declaration: Declaration, static: bool = False, top_level: bool = False
    ) -> str:
        is_async = declaration.has_modifier("suspend")
        body = self._body_source(declaration)
        expression_body = body.startswith("=")

        if declaration.type:
            return_type = self.map_type(declaration.type)
        else:
            return_type = "dynamic" if expression_body else "void"
        if is_async:
            return_type = f"Future<{return_type}>"

        prefix = ""
        if declaration.has_modifier("override"):
            prefix = "@override\n"
        if static:
            prefix += "static "
        signature = f"{prefix}{return_type} {declaration.name}({self._parameter_list(declaration.parameters)})"
        if is_async and body:
            signature += " async"

        if not body:
            # Abstract and interface members have no body
            return f"{signature} {{}}" if top_level else f"{signature};"
        if expression_body:
            return f"{signature} => {rewrite_expression(body[1:].strip())};"
        inner = body[1:-1] if body.startswith("{") and body.endswith("}") else body
        return f"{signature} {format_block(rewrite_block(inner, self.type_mapper))}"

    def render_property(
        self, declaration: Declaration, static: bool = False, member: bool = False
    ) -> str:
        dart_type = self.map_type(declaration.type, fallback="")
        prefix = "static " if static else ""
        initializer = declaration.initializer
        if initializer is None and declaration.body_text:
            # Custom getter: val total get() = ...
            getter = declaration.body_text.strip().removeprefix("get()").strip().removeprefix("=").strip()
            return f"{prefix}{dart_type or 'dynamic'} get {declaration.name} => {rewrite_expression(getter)};"

        value = rewrite_expression(initializer) if initializer is not None else None
        if declaration.has_modifier("const") and value is not None:
            keyword = "const"
        elif declaration.mutable:
            keyword = "" if dart_type else "var"
        else:
            keyword = "final"
        if value is None and not dart_type.endswith("?"):
            keyword = f"late {keyword}".strip()
        elif member and not static and keyword != "const" and not is_const_value(value or ""):
            # Instance field initializers cannot read other members unless late
            keyword = f"late {keyword}".strip()

        head = " ".join(part for part in (prefix.strip(), keyword, dart_type, declaration.name) if part)
        if value is None:
            return f"{head};"
        return f"{head} = {value};"
