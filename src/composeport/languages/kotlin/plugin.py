"""
Kotlin front-end.

Parses ``.kt`` files with tree-sitter (tree-sitter-kotlin grammar) and lowers
the concrete syntax tree into SourceUnits: package, imports, declarations
with their parameters and defaults, and body expression trees. Constructs the
lowering does not structure are kept as Raw nodes carrying their source text.
"""

import logging
import re
from pathlib import Path
from typing import Any

from composeport.ir.source import (
    Block,
    Call,
    Constant,
    Declaration,
    DeclarationKind,
    Expression,
    For,
    If,
    Lambda,
    LiteralKind,
    LocalProperty,
    NameRef,
    Parameter,
    Qualified,
    Raw,
    SourceUnit,
    Try,
    ValueArgument,
    When,
    WhenEntry,
    While,
)
from composeport.knowledge.type_mapper import split_top_level
from composeport.languages.base.plugin import FrontEnd, FrontEndError

logger = logging.getLogger(__name__)

_INT_LITERALS = frozenset({"integer_literal", "long_literal", "hex_literal", "bin_literal", "unsigned_literal"})
_DECLARATION_NODES = frozenset(
    {"class_declaration", "object_declaration", "companion_object", "function_declaration", "property_declaration"}
)
_PARAMETER = re.compile(
    r"^(?:@[\w.]+(?:\([^)]*\))?\s+)*"
    r"(?:(?:private|public|internal|protected|override|open|vararg|crossinline|noinline)\s+)*"
    r"(?:(val|var)\s+)?(\w+)\s*(?::\s*(.+))?$",
    re.DOTALL,
)


def split_default(text: str) -> tuple[str, str | None]:
    """Split ``name: Type = default`` at the top-level ``=``."""
    depth = 0
    for i, ch in enumerate(text):
        if ch in "([{<":
            depth += 1
        elif ch in ")]}" or (ch == ">" and text[i - 1 : i] != "-"):
            depth -= 1
        elif ch == "=" and depth == 0:
            before = text[i - 1 : i]
            after = text[i + 1 : i + 2]
            if before not in ("=", "!", "<", ">") and after != "=":
                return text[:i].strip(), text[i + 1 :].strip()
    return text.strip(), None


def parse_parameter(text: str) -> Parameter | None:
    """Parse one ``[val|var] name: Type [= default]`` parameter."""
    head, default = split_default(" ".join(text.split()))
    match = _PARAMETER.match(head)
    if match is None:
        return None
    keyword, name, type_text = match.groups()
    return Parameter(
        name=name,
        type=(type_text or "Any").strip(),
        default_text=default,
        is_property=keyword is not None,
        mutable=keyword == "var",
    )


class _UnitBuilder:
    """Lowers one parsed file; holds the file's bytes for text slicing."""

    def __init__(self, source: bytes):
        self.source = source

    def text(self, node: Any) -> str:
        return self.source[node.start_byte : node.end_byte].decode("utf-8")

    @staticmethod
    def child(node: Any, *types: str) -> Any | None:
        for child in node.children:
            if child.type in types:
                return child
        return None

    @staticmethod
    def has_token(node: Any, token: str) -> bool:
        return any(not c.is_named and c.type == token for c in node.children)

    # =========================================================================
    # File level
    # =========================================================================

    def unit(self, root: Any, path: str, text: str) -> SourceUnit:
        package = ""
        imports = []
        declarations = []
        for node in root.children:
            if node.type == "package_header":
                identifier = self.child(node, "identifier")
                package = self.text(identifier) if identifier else ""
            elif node.type in ("import_list", "import_header"):
                headers = [node] if node.type == "import_header" else node.named_children
                for header in headers:
                    if header.type == "import_header":
                        imports.append(self._import(header))
            elif node.type in _DECLARATION_NODES:
                declaration = self.declaration(node)
                if declaration is not None:
                    declarations.append(declaration)
        return SourceUnit(
            path=path,
            package=package,
            imports=tuple(i for i in imports if i),
            declarations=tuple(declarations),
            text=text,
        )

    def _import(self, header: Any) -> str:
        identifier = self.child(header, "identifier")
        if identifier is None:
            return ""
        name = self.text(identifier)
        if self.child(header, "wildcard_import") is not None or self.text(header).rstrip().endswith(".*"):
            name += ".*"
        return name

    # =========================================================================
    # Declarations
    # =========================================================================

    def declaration(self, node: Any) -> Declaration | None:
        if node.type in ("class_declaration", "object_declaration", "companion_object"):
            return self._class(node)
        if node.type == "function_declaration":
            return self._function(node)
        if node.type == "property_declaration":
            return self._property(node)
        return None

    def _modifiers(self, node: Any) -> tuple[tuple[str, ...], tuple[str, ...]]:
        modifiers: list[str] = []
        annotations: list[str] = []
        block = self.child(node, "modifiers")
        if block is not None:
            for child in block.named_children:
                if child.type == "annotation":
                    annotations.append(self.text(child))
                else:
                    modifiers.extend(self.text(child).split())
        return tuple(modifiers), tuple(annotations)

    def _class(self, node: Any) -> Declaration:
        modifiers, annotations = self._modifiers(node)
        if node.type == "class_declaration":
            kind = DeclarationKind.INTERFACE if self.has_token(node, "interface") else DeclarationKind.CLASS
            if self.has_token(node, "enum"):
                modifiers += ("enum",)
        else:
            kind = DeclarationKind.OBJECT
            if node.type == "companion_object":
                modifiers += ("companion",)

        name_node = self.child(node, "type_identifier", "simple_identifier")
        name = self.text(name_node) if name_node else "Companion"

        parameters = []
        constructor = self.child(node, "primary_constructor")
        if constructor is not None:
            holder = self.child(constructor, "class_parameters") or constructor
            for param_node in holder.named_children:
                if param_node.type == "class_parameter":
                    parameter = parse_parameter(self.text(param_node))
                    if parameter is not None:
                        parameters.append(parameter)

        super_types = []
        for child in node.children:
            specifiers = child.named_children if child.type == "delegation_specifiers" else [child]
            for specifier in specifiers:
                if specifier.type == "delegation_specifier":
                    super_types.append(self.text(specifier))

        members = []
        entries = []
        body = self.child(node, "class_body", "enum_class_body")
        if body is not None:
            for child in body.named_children:
                if child.type == "enum_entry":
                    entries.append(self.text(child).split("{", 1)[0].strip())
                elif child.type in _DECLARATION_NODES:
                    member = self.declaration(child)
                    if member is not None:
                        members.append(member)

        return Declaration(
            kind=kind,
            name=name,
            modifiers=modifiers,
            annotations=annotations,
            super_types=tuple(super_types),
            parameters=tuple(parameters),
            members=tuple(members),
            enum_entries=tuple(entries),
            start_line=node.start_point[0] + 1,
            end_line=node.end_point[0] + 1,
        )

    def _function_parameters(self, node: Any) -> list[Parameter]:
        parameters: list[Parameter] = []
        pending: str | None = None
        expect_default = False
        for child in node.children:
            if child.type == "parameter":
                if pending is not None:
                    parameters.extend(p for p in [parse_parameter(pending)] if p)
                pending = self.text(child)
                expect_default = False
            elif not child.is_named and child.type == "=":
                expect_default = True
            elif child.is_named and expect_default and pending is not None:
                pending = f"{pending} = {self.text(child)}"
                expect_default = False
        if pending is not None:
            parameters.extend(p for p in [parse_parameter(pending)] if p)
        return parameters

    def _function(self, node: Any) -> Declaration:
        modifiers, annotations = self._modifiers(node)
        value_parameters = self.child(node, "function_value_parameters")
        name = ""
        for child in node.children:
            if child is value_parameters:
                break
            if child.type == "simple_identifier":
                name = self.text(child)

        body_node = self.child(node, "function_body")
        return_type = None
        if value_parameters is not None:
            end = body_node.start_byte if body_node is not None else node.end_byte
            between = self.source[value_parameters.end_byte : end].decode("utf-8").strip()
            if between.startswith(":"):
                return_type = between[1:].split(" where ", 1)[0].strip() or None

        body = None
        body_text = None
        if body_node is not None:
            block = self.child(body_node, "block")
            if block is not None:
                body = self.block(block)
                body_text = self.text(block)
            elif body_node.named_children:
                expression = body_node.named_children[-1]
                body = self.expression(expression)
                body_text = f"= {self.text(expression)}"

        return Declaration(
            kind=DeclarationKind.FUNCTION,
            name=name,
            modifiers=modifiers,
            annotations=annotations,
            parameters=tuple(self._function_parameters(value_parameters)) if value_parameters else (),
            type=return_type,
            body=body,
            body_text=body_text,
            start_line=node.start_point[0] + 1,
            end_line=node.end_point[0] + 1,
        )

    def _binding(self, node: Any) -> tuple[str, str | None]:
        variable = self.child(node, "variable_declaration", "multi_variable_declaration")
        if variable is None:
            return "", None
        name_text, _, type_text = self.text(variable).partition(":")
        return name_text.strip(), (type_text.strip() or None)

    def _initializer(self, node: Any) -> tuple[Any | None, bool]:
        """Initializer node of a property and whether it is a delegate."""
        delegate = self.child(node, "property_delegate")
        if delegate is not None and delegate.named_children:
            return delegate.named_children[-1], True
        seen_equals = False
        for child in node.children:
            if not child.is_named and child.type == "=":
                seen_equals = True
            elif seen_equals and child.is_named:
                return child, False
        return None, False

    def _property(self, node: Any) -> Declaration:
        modifiers, annotations = self._modifiers(node)
        name, type_text = self._binding(node)
        initializer_node, delegated = self._initializer(node)
        initializer = self.text(initializer_node) if initializer_node is not None else None
        if delegated and initializer is not None and initializer.startswith("lazy"):
            match = re.match(r"lazy\s*(?:\([^)]*\))?\s*\{(.*)\}\s*$", initializer, re.DOTALL)
            initializer = match.group(1).strip() if match else initializer

        getter = self.child(node, "getter")
        return Declaration(
            kind=DeclarationKind.PROPERTY,
            name=name,
            modifiers=modifiers,
            annotations=annotations,
            type=type_text,
            initializer=initializer,
            body_text=self.text(getter) if getter is not None and initializer is None else None,
            mutable=self.has_token(node, "var"),
            start_line=node.start_point[0] + 1,
            end_line=node.end_point[0] + 1,
        )

    # =========================================================================
    # Expressions
    # =========================================================================

    def block(self, node: Any) -> Block:
        statements = self.child(node, "statements")
        if statements is None:
            return Block(text="")
        return Block(
            text=self.text(statements),
            statements=tuple(self.statement(s) for s in statements.named_children),
        )

    def body(self, node: Any | None) -> Expression | None:
        """A control-structure body: a block or a single statement."""
        if node is None:
            return None
        if node.type == "control_structure_body":
            inner = node.named_children
            if not inner:
                return Block()
            node = inner[0]
        if node.type == "block":
            return self.block(node)
        return self.statement(node)

    def statement(self, node: Any) -> Expression:
        if node.type == "property_declaration":
            name, type_text = self._binding(node)
            initializer, delegated = self._initializer(node)
            return LocalProperty(
                text=self.text(node),
                name=name,
                type=type_text,
                initializer=self.expression(initializer) if initializer is not None else None,
                mutable=self.has_token(node, "var"),
                delegated=delegated,
            )
        if node.type == "for_statement":
            return self._for(node)
        if node.type in ("while_statement", "do_while_statement"):
            return self._while(node)
        return self.expression(node)

    def expression(self, node: Any) -> Expression:
        kind = node.type
        text = self.text(node)
        if kind == "parenthesized_expression" and node.named_children:
            return self.expression(node.named_children[0])
        if kind == "simple_identifier":
            return NameRef(text=text, name=text)
        if kind == "string_literal":
            quote = 3 if text.startswith('"""') else 1
            return Constant(text=text, literal_kind=LiteralKind.STRING, value=text[quote:-quote])
        if kind == "character_literal":
            return Constant(text=text, literal_kind=LiteralKind.CHAR, value=text[1:-1])
        if kind in _INT_LITERALS:
            return Constant(text=text, literal_kind=LiteralKind.INT, value=text)
        if kind == "real_literal":
            return Constant(text=text, literal_kind=LiteralKind.DOUBLE, value=text)
        if kind == "boolean_literal":
            return Constant(text=text, literal_kind=LiteralKind.BOOL, value=text)
        if text == "null":
            return Constant(text=text, literal_kind=LiteralKind.NULL, value="null")
        if kind == "call_expression":
            return self._call_expression(node)
        if kind == "navigation_expression":
            return self._navigation(node)
        if kind == "lambda_literal":
            return self._lambda(node)
        if kind == "annotated_lambda":
            literal = self.child(node, "lambda_literal")
            return self._lambda(literal) if literal is not None else Raw(text=text)
        if kind == "if_expression":
            return self._if(node)
        if kind == "when_expression":
            return self._when(node)
        if kind == "try_expression":
            return self._try(node)
        if kind in ("for_statement", "while_statement", "do_while_statement", "property_declaration"):
            return self.statement(node)
        return Raw(text=text)

    def _navigation(self, node: Any) -> Expression:
        receiver, suffix = node.named_children[0], node.named_children[-1]
        selector = self.child(suffix, "simple_identifier")
        name = self.text(selector) if selector is not None else self.text(suffix).lstrip("?.:")
        return Qualified(
            text=self.text(node),
            receiver=self.expression(receiver),
            selector=NameRef(text=name, name=name),
            safe=self.has_token(suffix, "?."),
        )

    def _call_expression(self, node: Any) -> Expression:
        callee, suffix = node.named_children[0], node.named_children[-1]
        if callee.type == "navigation_expression":
            nav_suffix = callee.named_children[-1]
            selector = self.child(nav_suffix, "simple_identifier")
            if selector is not None:
                call = self._call(self.text(selector), suffix, self.source[selector.start_byte : node.end_byte])
                return Qualified(
                    text=self.text(node),
                    receiver=self.expression(callee.named_children[0]),
                    selector=call,
                    safe=self.has_token(nav_suffix, "?."),
                )
        return self._call(self.text(callee), suffix, self.source[node.start_byte : node.end_byte])

    def _call(self, callee: str, suffix: Any, text: bytes) -> Call:
        arguments = []
        type_arguments: tuple[str, ...] = ()
        trailing = None
        for part in suffix.named_children:
            if part.type == "type_arguments":
                type_arguments = tuple(self.text(t) for t in part.named_children)
            elif part.type == "value_arguments":
                for argument in part.named_children:
                    if argument.type == "value_argument":
                        arguments.append(self._value_argument(argument))
            elif part.type in ("annotated_lambda", "lambda_literal"):
                literal = part if part.type == "lambda_literal" else self.child(part, "lambda_literal")
                if literal is not None:
                    trailing = self._lambda(literal)
        return Call(
            text=text.decode("utf-8"),
            callee=callee,
            arguments=tuple(arguments),
            trailing_lambda=trailing,
            type_arguments=type_arguments,
        )

    def _value_argument(self, node: Any) -> ValueArgument:
        named = [c for c in node.named_children if c.type != "annotation"]
        value_node = named[-1]
        name = None
        if self.has_token(node, "=") and len(named) >= 2 and named[0].type == "simple_identifier":
            name = self.text(named[0])
        return ValueArgument(name=name, value=self.expression(value_node))

    def _lambda(self, node: Any) -> Lambda:
        parameters: tuple[str, ...] = ()
        header = self.child(node, "lambda_parameters")
        if header is not None:
            names = []
            for part in split_top_level(self.text(header)):
                part = part.strip()
                names.append(part if part.startswith("(") else part.split(":", 1)[0].strip())
            parameters = tuple(n for n in names if n)
        statements = self.child(node, "statements")
        body = Block()
        if statements is not None:
            body = Block(
                text=self.text(statements),
                statements=tuple(self.statement(s) for s in statements.named_children),
            )
        return Lambda(text=self.text(node), parameters=parameters, body=body)

    def _if(self, node: Any) -> If:
        condition = ""
        then_branch = None
        else_branch = None
        in_else = False
        for child in node.children:
            if not child.is_named:
                in_else = in_else or child.type == "else"
                continue
            if not condition:
                condition = self.text(child)
            elif in_else:
                else_branch = self.body(child)
            elif then_branch is None:
                then_branch = self.body(child)
        return If(text=self.text(node), condition=condition, then_branch=then_branch, else_branch=else_branch)

    def _when(self, node: Any) -> When:
        subject = None
        subject_node = self.child(node, "when_subject")
        if subject_node is not None:
            subject = self.text(subject_node).strip()
            if subject.startswith("(") and subject.endswith(")"):
                subject = subject[1:-1].strip()
        entries = []
        for entry in node.named_children:
            if entry.type != "when_entry":
                continue
            conditions = tuple(self.text(c) for c in entry.named_children if c.type == "when_condition")
            body = self.child(entry, "control_structure_body")
            entries.append(
                WhenEntry(
                    conditions=conditions,
                    body=self.body(body),
                    is_else=self.has_token(entry, "else"),
                )
            )
        return When(text=self.text(node), subject=subject, entries=tuple(entries))

    def _for(self, node: Any) -> For:
        variable_node = self.child(node, "variable_declaration", "multi_variable_declaration")
        variable = None
        if variable_node is not None:
            variable = self.text(variable_node).split(":", 1)[0].strip()
        iterable = ""
        seen_in = False
        for child in node.children:
            if not child.is_named and child.type == "in":
                seen_in = True
            elif seen_in and child.is_named:
                iterable = self.text(child)
                break
        return For(
            text=self.text(node),
            variable=variable,
            iterable=iterable,
            body=self.body(self.child(node, "control_structure_body", "block")),
        )

    def _while(self, node: Any) -> While:
        condition = ""
        for child in node.named_children:
            if child.type not in ("control_structure_body", "block"):
                condition = self.text(child)
                break
        return While(
            text=self.text(node),
            condition=condition,
            body=self.body(self.child(node, "control_structure_body", "block")),
            do_while=node.type == "do_while_statement",
        )

    def _try(self, node: Any) -> Try:
        block = self.child(node, "block")
        return Try(
            text=self.text(node),
            body=self.block(block) if block is not None else None,
            catch_count=sum(1 for c in node.named_children if c.type == "catch_block"),
            has_finally=self.child(node, "finally_block") is not None,
        )


class KotlinFrontEnd(FrontEnd):
    """Front-end for Kotlin (Jetpack Compose) sources."""

    def __init__(self, exclude_patterns: list[str] | None = None):
        super().__init__(exclude_patterns)
        self._parser = None

    @property
    def name(self) -> str:
        return "kotlin"

    @property
    def file_extensions(self) -> list[str]:
        return [".kt"]

    def _get_parser(self):
        """Lazy initialization of tree-sitter parser."""
        if self._parser is None:
            try:
                import tree_sitter_kotlin as tskotlin
                from tree_sitter import Language, Parser
            except ImportError as e:
                raise FrontEndError(
                    "tree-sitter-kotlin not installed. Run: pip install tree-sitter-kotlin"
                ) from e
            self._parser = Parser(Language(tskotlin.language()))
        return self._parser

    def parse_file(self, file_path: Path, source_root: Path) -> list[SourceUnit]:
        try:
            source = file_path.read_bytes()
        except OSError as e:
            raise FrontEndError(f"Cannot read {file_path}: {e}") from e
        return [self.parse_source(source.decode("utf-8"), self.unit_key(file_path, source_root))]

    def parse_source(self, source_code: str, path: str = "Main.kt") -> SourceUnit:
        """Parse Kotlin source text into one SourceUnit."""
        source = source_code.encode("utf-8")
        tree = self._get_parser().parse(source)
        if tree.root_node.has_error:
            logger.warning(f"Syntax errors in {path}; unparsed regions are kept as raw text")
        return _UnitBuilder(source).unit(tree.root_node, path, source_code)
