"""
Built-in Compose -> Flutter lookup tables.

Plain dictionaries and sets; the type mapper, UI extractor, modifier resolver
and renderers read them and users may override the name tables through the
``mappings`` configuration section.
"""

# =============================================================================
# Types
# =============================================================================

# Compose, Android and coroutine types. Checked first.
DOMAIN_TYPES: dict[str, str] = {
    "Dp": "double",
    "Sp": "double",
    "TextUnit": "double",
    "Modifier": "Widget",
    "Color": "Color",
    "PaddingValues": "EdgeInsets",
    "Shape": "ShapeBorder",
    "RoundedCornerShape": "RoundedRectangleBorder",
    "TextStyle": "TextStyle",
    "FontWeight": "FontWeight",
    "TextAlign": "TextAlign",
    "Alignment": "Alignment",
    "Arrangement": "MainAxisAlignment",
    "ContentScale": "BoxFit",
    "ImageVector": "IconData",
    "Painter": "ImageProvider",
    "Offset": "Offset",
    "Size": "Size",
    "Rect": "Rect",
    "State": "ValueNotifier",
    "MutableState": "ValueNotifier",
    "LiveData": "ValueNotifier",
    "MutableLiveData": "ValueNotifier",
    "Flow": "Stream",
    "StateFlow": "Stream",
    "SharedFlow": "Stream",
    "MutableStateFlow": "StreamController",
    "MutableSharedFlow": "StreamController",
    "Deferred": "Future",
    "Job": "Future<void>",
    "CoroutineScope": "Object",
    "Context": "BuildContext",
    "NavController": "GoRouter",
    "NavHostController": "GoRouter",
    "ViewModel": "ChangeNotifier",
    "Uri": "Uri",
    "Date": "DateTime",
    "LocalDate": "DateTime",
    "LocalDateTime": "DateTime",
    "Instant": "DateTime",
    "Duration": "Duration",
    "Regex": "RegExp",
    "Throwable": "Exception",
    "Exception": "Exception",
}

PRIMITIVE_TYPES: dict[str, str] = {
    "Int": "int",
    "Long": "int",
    "Short": "int",
    "Byte": "int",
    "UInt": "int",
    "ULong": "int",
    "Float": "double",
    "Double": "double",
    "Number": "num",
    "Char": "String",
    "String": "String",
    "CharSequence": "String",
    "Boolean": "bool",
    "Unit": "void",
    "Nothing": "Never",
    "Any": "Object",
}

COLLECTION_TYPES: dict[str, str] = {
    "List": "List",
    "MutableList": "List",
    "ArrayList": "List",
    "Array": "List",
    "Collection": "Iterable",
    "Iterable": "Iterable",
    "Sequence": "Iterable",
    "Set": "Set",
    "MutableSet": "Set",
    "HashSet": "Set",
    "LinkedHashSet": "Set",
    "Map": "Map",
    "MutableMap": "Map",
    "HashMap": "Map",
    "LinkedHashMap": "Map",
    "IntArray": "List<int>",
    "LongArray": "List<int>",
    "FloatArray": "List<double>",
    "DoubleArray": "List<double>",
    "BooleanArray": "List<bool>",
    "CharArray": "List<String>",
    "SnapshotStateList": "List",
    "SnapshotStateMap": "Map",
}

# =============================================================================
# Widgets and parameters
# =============================================================================

WIDGET_NAMES: dict[str, str] = {
    # basic
    "Text": "Text",
    "Button": "ElevatedButton",
    "TextButton": "TextButton",
    "OutlinedButton": "OutlinedButton",
    "ElevatedButton": "ElevatedButton",
    "FilledButton": "FilledButton",
    "IconButton": "IconButton",
    "FloatingActionButton": "FloatingActionButton",
    "ExtendedFloatingActionButton": "FloatingActionButton.extended",
    "Image": "Image",
    "AsyncImage": "Image.network",
    "Icon": "Icon",
    "TextField": "TextField",
    "OutlinedTextField": "TextField",
    "BasicTextField": "TextField",
    "Checkbox": "Checkbox",
    "Switch": "Switch",
    "RadioButton": "Radio",
    "Slider": "Slider",
    "CircularProgressIndicator": "CircularProgressIndicator",
    "LinearProgressIndicator": "LinearProgressIndicator",
    # layout
    "Column": "Column",
    "Row": "Row",
    "Box": "Stack",
    "BoxWithConstraints": "LayoutBuilder",
    "Spacer": "Spacer",
    "LazyColumn": "ListView",
    "LazyRow": "ListView",
    "LazyVerticalGrid": "GridView",
    "LazyHorizontalGrid": "GridView",
    "FlowRow": "Wrap",
    "FlowColumn": "Wrap",
    "ConstraintLayout": "Stack",
    # material
    "Scaffold": "Scaffold",
    "TopAppBar": "AppBar",
    "CenterAlignedTopAppBar": "AppBar",
    "LargeTopAppBar": "SliverAppBar.large",
    "BottomAppBar": "BottomAppBar",
    "NavigationBar": "NavigationBar",
    "NavigationBarItem": "NavigationDestination",
    "BottomNavigation": "BottomNavigationBar",
    "BottomNavigationItem": "BottomNavigationBarItem",
    "NavigationRail": "NavigationRail",
    "ModalNavigationDrawer": "Drawer",
    "ModalDrawerSheet": "Drawer",
    "Card": "Card",
    "ElevatedCard": "Card",
    "OutlinedCard": "Card.outlined",
    "Surface": "Material",
    "Divider": "Divider",
    "HorizontalDivider": "Divider",
    "VerticalDivider": "VerticalDivider",
    "AlertDialog": "AlertDialog",
    "Dialog": "Dialog",
    "DropdownMenu": "DropdownMenu",
    "DropdownMenuItem": "DropdownMenuItem",
    "Chip": "Chip",
    "AssistChip": "ActionChip",
    "FilterChip": "FilterChip",
    "Badge": "Badge",
    "Snackbar": "SnackBar",
    "Tab": "Tab",
    "TabRow": "TabBar",
    "ListItem": "ListTile",
}

PARAMETER_NAMES: dict[str, str] = {
    "onClick": "onPressed",
    "onValueChange": "onChanged",
    "onCheckedChange": "onChanged",
    "checked": "value",
    "selected": "selected",
    "enabled": "enabled",
    "contentDescription": "semanticLabel",
    "imageVector": "icon",
    "painter": "image",
    "tint": "color",
    "containerColor": "backgroundColor",
    "contentColor": "foregroundColor",
    "onDismissRequest": "onDismiss",
    "valueRange": "range",
    "maxLines": "maxLines",
    "overflow": "overflow",
}

# =============================================================================
# UI extraction
# =============================================================================

KNOWN_WIDGETS: frozenset[str] = frozenset(WIDGET_NAMES) | frozenset(
    {
        # lazy-list DSL entries keep virtualized containers populated
        "item",
        "items",
        "itemsIndexed",
        "stickyHeader",
    }
)

TRANSPARENT_SCOPES: frozenset[str] = frozenset(
    {
        "remember",
        "rememberSaveable",
        "rememberCoroutineScope",
        "LaunchedEffect",
        "SideEffect",
        "DisposableEffect",
        "derivedStateOf",
        "produceState",
        "snapshotFlow",
        "key",
        "CompositionLocalProvider",
        "AnimatedVisibility",
        "AnimatedContent",
        "Crossfade",
        "MaterialTheme",
        "let",
        "run",
        "with",
    }
)

# Initializer markers of reactive state cells, most specific first.
STATE_MARKERS: tuple[tuple[str, str], ...] = (
    ("rememberSaveable", "persisted"),
    ("mutableStateListOf", "listCell"),
    ("mutableStateMapOf", "mapCell"),
    ("derivedStateOf", "derived"),
    ("collectAsStateWithLifecycle", "streamProjected"),
    ("collectAsState", "streamProjected"),
    ("produceState", "streamProjected"),
    ("observeAsState", "streamProjected"),
    ("mutableIntStateOf", "plain"),
    ("mutableLongStateOf", "plain"),
    ("mutableFloatStateOf", "plain"),
    ("mutableDoubleStateOf", "plain"),
    ("mutableStateOf", "plain"),
)

STATE_MARKER_TYPES: dict[str, str] = {
    "mutableIntStateOf": "Int",
    "mutableLongStateOf": "Long",
    "mutableFloatStateOf": "Float",
    "mutableDoubleStateOf": "Double",
}

# =============================================================================
# Symbol analysis
# =============================================================================

BUILTIN_TYPES: frozenset[str] = frozenset(
    {
        "String", "Int", "Long", "Float", "Double", "Boolean", "Char", "Byte", "Short",
        "Unit", "Any", "Nothing", "List", "Set", "Map", "Array", "Pair", "Triple",
        "Sequence", "Iterable", "Collection", "MutableList", "MutableSet", "MutableMap",
        "Result", "Lazy", "Comparable", "Throwable", "Exception", "Error",
        "Modifier", "Color", "Dp", "Sp", "TextUnit", "IntOffset", "IntSize", "Offset",
        "Size", "Alignment", "Arrangement", "ContentScale", "PaddingValues", "CornerSize",
        "Shape", "TextStyle", "FontWeight",
    }
)

COMPOSE_KEYWORDS: frozenset[str] = frozenset(
    {
        "Column", "Row", "Box", "Text", "Button", "Image", "Icon", "Scaffold", "TopAppBar",
        "LazyColumn", "LazyRow", "Card", "Surface", "Spacer", "Divider", "Checkbox",
        "Switch", "TextField", "Composable",
    }
)

# =============================================================================
# Domain constants
# =============================================================================

COLOR_NAMES: dict[str, str] = {
    "Red": "Colors.red",
    "Blue": "Colors.blue",
    "Green": "Colors.green",
    "Yellow": "Colors.yellow",
    "Cyan": "Colors.cyan",
    "Magenta": "Colors.pink",
    "Black": "Colors.black",
    "White": "Colors.white",
    "Gray": "Colors.grey",
    "LightGray": "Colors.grey.shade300",
    "DarkGray": "Colors.grey.shade800",
    "Transparent": "Colors.transparent",
    "Unspecified": "Colors.transparent",
}

ALIGNMENTS: dict[str, str] = {
    "TopStart": "Alignment.topLeft",
    "TopCenter": "Alignment.topCenter",
    "TopEnd": "Alignment.topRight",
    "CenterStart": "Alignment.centerLeft",
    "Center": "Alignment.center",
    "CenterEnd": "Alignment.centerRight",
    "BottomStart": "Alignment.bottomLeft",
    "BottomCenter": "Alignment.bottomCenter",
    "BottomEnd": "Alignment.bottomRight",
    # one-dimensional alignments
    "Start": "Alignment.centerLeft",
    "End": "Alignment.centerRight",
    "Top": "Alignment.topCenter",
    "Bottom": "Alignment.bottomCenter",
    "CenterHorizontally": "Alignment.center",
    "CenterVertically": "Alignment.center",
}

# One-dimensional alignments used as cross-axis alignment of Column/Row.
CROSS_AXIS_ALIGNMENTS: dict[str, str] = {
    "Start": "CrossAxisAlignment.start",
    "Top": "CrossAxisAlignment.start",
    "CenterHorizontally": "CrossAxisAlignment.center",
    "CenterVertically": "CrossAxisAlignment.center",
    "End": "CrossAxisAlignment.end",
    "Bottom": "CrossAxisAlignment.end",
}

ARRANGEMENTS: dict[str, str] = {
    "Top": "MainAxisAlignment.start",
    "Start": "MainAxisAlignment.start",
    "Center": "MainAxisAlignment.center",
    "Bottom": "MainAxisAlignment.end",
    "End": "MainAxisAlignment.end",
    "SpaceBetween": "MainAxisAlignment.spaceBetween",
    "SpaceAround": "MainAxisAlignment.spaceAround",
    "SpaceEvenly": "MainAxisAlignment.spaceEvenly",
}

FONT_WEIGHTS: dict[str, str] = {
    "Thin": "FontWeight.w100",
    "ExtraLight": "FontWeight.w200",
    "Light": "FontWeight.w300",
    "Normal": "FontWeight.normal",
    "Medium": "FontWeight.w500",
    "SemiBold": "FontWeight.w600",
    "Bold": "FontWeight.bold",
    "ExtraBold": "FontWeight.w800",
    "Black": "FontWeight.w900",
}

TEXT_ALIGNS: dict[str, str] = {
    "Start": "TextAlign.start",
    "Left": "TextAlign.left",
    "Center": "TextAlign.center",
    "End": "TextAlign.end",
    "Right": "TextAlign.right",
    "Justify": "TextAlign.justify",
}

CONTENT_SCALES: dict[str, str] = {
    "Crop": "BoxFit.cover",
    "Fit": "BoxFit.contain",
    "FillBounds": "BoxFit.fill",
    "FillWidth": "BoxFit.fitWidth",
    "FillHeight": "BoxFit.fitHeight",
    "Inside": "BoxFit.scaleDown",
    "None": "BoxFit.none",
}

TEXT_OVERFLOWS: dict[str, str] = {
    "Ellipsis": "TextOverflow.ellipsis",
    "Clip": "TextOverflow.clip",
    "Visible": "TextOverflow.visible",
}

# Icons.Default.X / Icons.Filled.X -> Icons.x ; style families get a suffix
ICON_STYLES: dict[str, str] = {
    "Default": "",
    "Filled": "",
    "Outlined": "_outlined",
    "Rounded": "_rounded",
    "Sharp": "_sharp",
    "TwoTone": "_outlined",
    "AutoMirrored": "",
}

# Typography styles keep their Material 3 names in Flutter's TextTheme.
TYPOGRAPHY_STYLES: frozenset[str] = frozenset(
    {
        "displayLarge", "displayMedium", "displaySmall",
        "headlineLarge", "headlineMedium", "headlineSmall",
        "titleLarge", "titleMedium", "titleSmall",
        "bodyLarge", "bodyMedium", "bodySmall",
        "labelLarge", "labelMedium", "labelSmall",
    }
)

# =============================================================================
# Imports
# =============================================================================

MATERIAL_IMPORT = "package:flutter/material.dart"
ASYNC_IMPORT = "dart:async"
CACHED_IMAGE_IMPORT = "package:cached_network_image/cached_network_image.dart"
