"""
Code generator.

Unit-level facade over the renderers: composable functions become Flutter
widgets (stateless, or stateful when their body captures reactive state),
every other declaration goes through the declaration renderer, and the
results are assembled into a UnitOutput with imports, target path, shapes
and diagnostics.
"""

import logging
import posixpath
import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Iterable

from composeport.analyzer.ui_extractor import UITreeExtractor, lambda_body
from composeport.config.models import (
    ComponentShape,
    ConventionOptions,
    ConversionIssue,
    Severity,
    UnitOutput,
)
from composeport.ir.source import (
    Block,
    Declaration,
    DeclarationKind,
    LocalProperty,
    SourceUnit,
    to_source,
)
from composeport.ir.ui_tree import ComponentParameter, StateFlavor, StateVariable, UITree
from composeport.knowledge import mappings
from composeport.knowledge.dart_syntax import indent, to_snake_case
from composeport.knowledge.type_mapper import TypeMapper
from composeport.translator.body_rewriter import rewrite_block, rewrite_expression
from composeport.translator.declaration_renderer import DeclarationRenderer, const_default, is_const_value
from composeport.translator.widget_renderer import EMPTY_WIDGET, WidgetRenderer

logger = logging.getLogger(__name__)

UNMAPPED_TYPE = "UNMAPPED_TYPE"

_TYPE_NAME = re.compile(r"\b[A-Z]\w*")
_SLOT_TYPE = re.compile(r"@Composable\s*(?:\w+\.)?\(\s*\)\s*->\s*Unit")
_SKIPPED_LOCALS = re.compile(
    r"\bLocal\w+\.current\b|\brememberCoroutineScope\b|\brememberScrollState\b|\brememberLazy\w*State\b"
)
_DART_NAMES = frozenset(
    {
        "Widget",
        "BuildContext",
        "VoidCallback",
        "Function",
        "Future",
        "Stream",
        "StreamController",
        "ValueNotifier",
        "Object",
        "Never",
        "DateTime",
        "Duration",
        "Color",
        "EdgeInsets",
        "TextStyle",
        "IconData",
        "Key",
        "Iterable",
        "List",
        "Set",
        "Map",
        "String",
        "Composable",
    }
)


def _mapped_names() -> frozenset[str]:
    names = set(_DART_NAMES)
    for table in (mappings.DOMAIN_TYPES, mappings.PRIMITIVE_TYPES, mappings.COLLECTION_TYPES):
        for value in table.values():
            names.update(_TYPE_NAME.findall(value))
    return frozenset(names)


TARGET_TYPE_NAMES = _mapped_names()


def target_path_for(source_path: str) -> str:
    """``ui/HomeScreen.kt`` -> ``ui/home_screen.dart``."""
    path = PurePosixPath(source_path.replace("\\", "/"))
    file_name = to_snake_case(path.name.split(".", 1)[0]) + ".dart"
    parent = str(path.parent)
    return file_name if parent in (".", "") else f"{parent}/{file_name}"


def relative_import(from_target: str, to_target: str) -> str:
    start = posixpath.dirname(from_target) or "."
    return posixpath.relpath(to_target, start)


def is_slot_parameter(parameter: ComponentParameter) -> bool:
    """True for ``@Composable () -> Unit`` parameters (content, topBar, ...)."""
    return _SLOT_TYPE.search(parameter.type) is not None


def is_modifier_parameter(parameter: ComponentParameter) -> bool:
    return parameter.name == "modifier" or parameter.type.strip().rstrip("?") == "Modifier"


def is_component(declaration: Declaration) -> bool:
    """Composable functions that emit UI; ``@Composable fun rememberX(): X`` does not."""
    if declaration.kind != DeclarationKind.FUNCTION or not declaration.is_composable:
        return False
    returns_value = declaration.type is not None and declaration.type.strip() not in ("Unit", "")
    return not (returns_value and declaration.name[:1].islower())


def is_preview(declaration: Declaration) -> bool:
    return any(a.lstrip("@").split("(")[0].endswith("Preview") for a in declaration.annotations)


def component_signatures(units: Iterable[SourceUnit]) -> dict[str, tuple[str, ...]]:
    """Component name -> parameter names (without the modifier) for every unit."""
    signatures = {}
    for unit in units:
        for declaration in unit.declarations:
            if is_component(declaration) and not is_preview(declaration):
                signatures[declaration.name] = tuple(
                    p.name
                    for p in declaration.parameters
                    if not is_modifier_parameter(
                        ComponentParameter(name=p.name, type=p.type, default_text=p.default_text)
                    )
                )
    return signatures


@dataclass
class FieldSpec:
    """One widget field and its constructor entry."""

    name: str
    dart_type: str
    entry: str
    initializer: str | None = None


@dataclass
class RenderedComponent:
    text: str
    shape: ComponentShape
    imports: set[str] = field(default_factory=set)
    warnings: list[tuple[str, str]] = field(default_factory=list)


class CodeGenerator:
    """
    Generates the Dart text for one SourceUnit at a time.

    ``components`` lists the composables of the whole project so that calls
    across units bind positional arguments by name; ``project_symbols`` are the
    names the SymbolIndex knows, which are not reported as unmapped types.
    """

    def __init__(
        self,
        type_mapper: TypeMapper | None = None,
        options: ConventionOptions | None = None,
        components: dict[str, tuple[str, ...]] | None = None,
        project_symbols: Iterable[str] = (),
    ):
        self.type_mapper = type_mapper or TypeMapper()
        self.options = options or ConventionOptions()
        self.components = dict(components or {})
        self.project_symbols = frozenset(project_symbols)

    def generate(self, unit: SourceUnit, dependencies: Iterable[str] = ()) -> UnitOutput:
        """Render a unit; ``dependencies`` are the unit paths it imports."""
        target_path = target_path_for(unit.path)
        local_names = {d.name for d in unit.declarations} | {
            m.name for d in unit.declarations for m in d.members
        }
        unmapped: list[str] = []

        def observe(type_text: str) -> None:
            for name in _TYPE_NAME.findall(type_text):
                if (
                    len(name) > 1
                    and name not in unmapped
                    and name not in local_names
                    and name not in self.project_symbols
                    and name not in TARGET_TYPE_NAMES
                    and not self.type_mapper.is_known(name)
                ):
                    logger.debug(f"No Dart mapping for type '{name}' in {unit.path}")
                    unmapped.append(name)

        declarations = DeclarationRenderer(self.type_mapper, observe_type=observe)
        components = {**self.components, **component_signatures([unit])}

        sections: list[str] = []
        imports = {mappings.MATERIAL_IMPORT}
        shapes: dict[str, ComponentShape] = {}
        raw_warnings: list[tuple[str, str]] = []

        for declaration in unit.declarations:
            if is_component(declaration):
                if is_preview(declaration):
                    logger.debug(f"Skipping preview {declaration.name} in {unit.path}")
                    continue
                rendered = self.render_component(declaration, declarations, components)
                sections.append(rendered.text)
                shapes[declaration.name] = rendered.shape
                imports |= rendered.imports
                raw_warnings.extend(rendered.warnings)
            else:
                sections.append(declarations.render(declaration))

        raw_warnings.extend(
            (UNMAPPED_TYPE, f"Type '{name}' has no Dart mapping") for name in unmapped
        )
        warnings = [
            ConversionIssue(code=code, message=message, unit_path=unit.path, severity=Severity.WARNING)
            for code, message in raw_warnings
        ]

        output = UnitOutput(
            source_path=unit.path,
            target_file_name=PurePosixPath(target_path).name,
            target_path=target_path,
            imports=self._imports(imports, target_path, dependencies, unit.path),
            content="\n\n".join(s for s in sections if s) + "\n",
            component_shape=self._overall_shape(shapes),
            components=shapes,
            source_lines=unit.line_count,
            warnings=warnings,
        )
        output.generated_lines = len(output.render().splitlines())
        return output

    @staticmethod
    def _imports(
        imports: set[str], target_path: str, dependencies: Iterable[str], unit_path: str
    ) -> list[str]:
        dart = sorted(i for i in imports if i.startswith("dart:"))
        packages = sorted(i for i in imports if i.startswith("package:"))
        relative = []
        for dependency in dependencies:
            if dependency == unit_path:
                continue
            path = relative_import(target_path, target_path_for(dependency))
            if path not in relative:
                relative.append(path)
        return dart + packages + relative

    @staticmethod
    def _overall_shape(shapes: dict[str, ComponentShape]) -> ComponentShape:
        if ComponentShape.STATEFUL in shapes.values():
            return ComponentShape.STATEFUL
        if shapes:
            return ComponentShape.STATELESS
        return ComponentShape.NONE

    # =========================================================================
    # Components
    # =========================================================================

    def render_component(
        self,
        declaration: Declaration,
        declarations: DeclarationRenderer | None = None,
        components: dict[str, tuple[str, ...]] | None = None,
    ) -> RenderedComponent:
        """Render one composable as a StatelessWidget or StatefulWidget."""
        declarations = declarations or DeclarationRenderer(self.type_mapper)
        parameters = [
            ComponentParameter(name=p.name, type=p.type, default_text=p.default_text)
            for p in declaration.parameters
        ]
        slots = frozenset(p.name for p in parameters if is_slot_parameter(p))
        extractor = UITreeExtractor(known_widgets=mappings.KNOWN_WIDGETS | slots)
        tree = extractor.extract(declaration)
        state_names = frozenset(s.name for s in tree.state)

        renderer = WidgetRenderer(
            self.type_mapper,
            self.options,
            state_names=state_names,
            components=components if components is not None else self.components,
            slot_parameters=slots,
        )
        fields = self.component_fields(tree, renderer, declarations)
        build = self._build_method(declaration, tree, renderer)

        if tree.is_stateful:
            imports: set[str] = set()
            text = self._stateful(tree, fields, build, renderer, declarations, imports)
            shape = ComponentShape.STATEFUL
        else:
            text = self._widget_class(tree.component, "StatelessWidget", fields, [build])
            shape = ComponentShape.STATELESS
            imports = set()
        return RenderedComponent(
            text=text,
            shape=shape,
            imports=imports | renderer.imports,
            warnings=list(renderer.warnings),
        )

    def component_fields(
        self, tree: UITree, renderer: WidgetRenderer, declarations: DeclarationRenderer
    ) -> list[FieldSpec]:
        """
        Fields and constructor entries of a component.

        Slot parameters become ``Widget`` fields. Defaults that cannot be
        const move into the initializer list behind a nullable parameter.
        """
        fields = []
        for param in tree.parameters:
            if is_modifier_parameter(param):
                continue
            slot = is_slot_parameter(param)
            function_type = "->" in param.type
            if slot:
                dart_type = "Widget?" if param.nullable else "Widget"
            else:
                dart_type = declarations.map_type(param.type)
            base_type = dart_type.removesuffix("?")

            default = param.default_text.strip() if param.default_text is not None else None
            if default is None or default == "null":
                entry = f"this.{param.name}" if param.nullable else f"required this.{param.name}"
                fields.append(FieldSpec(param.name, dart_type, entry))
                continue

            constant = None if function_type else const_default(default)
            if constant is not None:
                fields.append(FieldSpec(param.name, dart_type, f"this.{param.name} = {constant}"))
                continue

            if slot:
                value = EMPTY_WIDGET
            elif function_type:
                value = f"({renderer.arguments.callback(default)})"
            else:
                value = rewrite_expression(default)
            fields.append(
                FieldSpec(
                    param.name,
                    dart_type if param.nullable else base_type,
                    f"{base_type}? {param.name}",
                    f"{param.name} = {param.name} ?? {value}",
                )
            )
        return fields

    def _constructor(self, name: str, fields: list[FieldSpec]) -> str:
        entries = ", ".join(["super.key", *(f.entry for f in fields)])
        initializers = [f.initializer for f in fields if f.initializer]
        if initializers:
            return f"{name}({{{entries}}}) : {', '.join(initializers)};"
        return f"const {name}({{{entries}}});"

    def _widget_class(
        self, name: str, base: str, fields: list[FieldSpec], members: list[str]
    ) -> str:
        sections = [self._constructor(name, fields)]
        if fields:
            sections.append("\n".join(f"final {f.dart_type} {f.name};" for f in fields))
        sections.extend(members)
        body = "\n\n".join(sections)
        return f"class {name} extends {base} {{\n{indent(body)}\n}}"

    def _build_method(self, declaration: Declaration, tree: UITree, renderer: WidgetRenderer) -> str:
        lines = self.build_locals(declaration, frozenset(s.name for s in tree.state), renderer)
        lines.append(f"return {renderer.render_nodes(tree.roots)};")
        body = indent("\n".join(lines))
        return f"@override\nWidget build(BuildContext context) {{\n{body}\n}}"

    def build_locals(
        self, declaration: Declaration, state_names: frozenset[str], renderer: WidgetRenderer
    ) -> list[str]:
        """Non-state local bindings of the body as ``final`` locals of ``build``."""
        body = declaration.body
        statements = body.statements if isinstance(body, Block) else ()
        lines = []
        for statement in statements:
            if not isinstance(statement, LocalProperty) or statement.name in state_names:
                continue
            if statement.initializer is None:
                continue
            text = to_source(statement.initializer).strip()
            if statement.name == "context" or _SKIPPED_LOCALS.search(text):
                logger.debug(f"Dropping local '{statement.name}' of {declaration.name}")
                continue
            if text.startswith("remember"):
                text = lambda_body(text, "remember") or text
            lines.append(f"final {statement.name} = {renderer.arguments.expression(text)};")
        return lines

    # =========================================================================
    # Stateful components
    # =========================================================================

    def _stateful(
        self,
        tree: UITree,
        fields: list[FieldSpec],
        build: str,
        renderer: WidgetRenderer,
        declarations: DeclarationRenderer,
        imports: set[str],
    ) -> str:
        name = tree.component
        state_class = f"_{name}State"
        create_state = f"@override\nState<{name}> createState() => {state_class}();"
        widget = self._widget_class(name, "StatefulWidget", fields, [create_state])

        sections = []
        if fields:
            sections.append("\n".join(f"{f.dart_type} get {f.name} => widget.{f.name};" for f in fields))

        cells: list[str] = []
        getters: list[str] = []
        subscriptions: list[StateVariable] = []
        for variable in tree.state:
            if variable.flavor == StateFlavor.DERIVED:
                getters.append(self._derived_getter(variable, renderer, declarations))
                continue
            cells.append(self._state_field(variable, renderer, declarations))
            if variable.flavor == StateFlavor.STREAM_PROJECTED:
                if variable.source:
                    cells.append(f"StreamSubscription? _{variable.name}Subscription;")
                    subscriptions.append(variable)
                else:
                    logger.debug(f"State '{variable.name}' of {name} has no stream to collect")
        for group in (cells, getters):
            if group:
                sections.append("\n".join(group))

        if subscriptions:
            imports.add(mappings.ASYNC_IMPORT)
            sections.append(self._init_state(subscriptions, renderer))
            sections.append(self._dispose(subscriptions))
        sections.append(build)

        body = "\n\n".join(sections)
        state = f"class {state_class} extends State<{name}> {{\n{indent(body)}\n}}"
        return f"{widget}\n\n{state}"

    def _state_type(self, variable: StateVariable, declarations: DeclarationRenderer) -> str | None:
        if variable.type is None:
            return None
        return declarations.map_type(variable.type)

    def _state_field(
        self, variable: StateVariable, renderer: WidgetRenderer, declarations: DeclarationRenderer
    ) -> str:
        dart_type = self._state_type(variable, declarations)
        initial = variable.initializer.strip()
        if variable.flavor == StateFlavor.LIST_CELL:
            value = rewrite_expression(f"listOf({initial})")
        elif variable.flavor == StateFlavor.MAP_CELL:
            value = rewrite_expression(f"mapOf({initial})")
        elif initial:
            value = renderer.arguments.expression(initial)
        else:
            value = self.type_mapper.default_value(dart_type or "dynamic")

        if variable.flavor == StateFlavor.STREAM_PROJECTED and dart_type and value == "null":
            dart_type = dart_type if dart_type.endswith("?") else f"{dart_type}?"

        keyword = dart_type or ("dynamic" if variable.flavor == StateFlavor.STREAM_PROJECTED else "var")
        if not is_const_value(value):
            # Initializers may read widget parameters
            keyword = f"late {keyword}"
        return f"{keyword} {variable.name} = {value};"

    def _derived_getter(
        self, variable: StateVariable, renderer: WidgetRenderer, declarations: DeclarationRenderer
    ) -> str:
        dart_type = self._state_type(variable, declarations)
        head = f"{dart_type} get {variable.name}" if dart_type else f"get {variable.name}"
        lines = rewrite_block(renderer.arguments.expression(variable.initializer))
        if len(lines) <= 1:
            value = lines[0].rstrip(";") if lines else "null"
            return f"{head} => {value};"
        lines[-1] = f"return {lines[-1]}"
        block = "\n".join(lines)
        return f"{head} {{\n{indent(block)}\n}}"

    @staticmethod
    def _init_state(subscriptions: list[StateVariable], renderer: WidgetRenderer) -> str:
        lines = ["super.initState();"]
        for variable in subscriptions:
            source = renderer.arguments.expression(variable.source or "")
            lines.append(f"_{variable.name}Subscription = {source}.listen((value) {{")
            lines.append(indent(f"setState(() => {variable.name} = value);"))
            lines.append("});")
        body = indent("\n".join(lines))
        return f"@override\nvoid initState() {{\n{body}\n}}"

    @staticmethod
    def _dispose(subscriptions: list[StateVariable]) -> str:
        lines = [f"_{v.name}Subscription?.cancel();" for v in subscriptions]
        lines.append("super.dispose();")
        body = indent("\n".join(lines))
        return f"@override\nvoid dispose() {{\n{body}\n}}"
