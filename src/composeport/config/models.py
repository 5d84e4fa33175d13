"""
Core configuration and result models for composeport.

Defines configuration structures and the records produced by the analysis and
conversion phases using Pydantic for validation.
"""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class SourceFormat(str, Enum):
    """Front-ends able to produce source units."""

    KOTLIN = "kotlin"
    JSON = "json"


class StateManagement(str, Enum):
    RIVERPOD = "riverpod"
    PROVIDER = "provider"
    BLOC = "bloc"
    GETX = "getx"


class NavigationStyle(str, Enum):
    GO_ROUTER = "go_router"
    AUTO_ROUTE = "auto_route"
    NAVIGATOR = "navigator"


class NetworkingLibrary(str, Enum):
    DIO = "dio"
    HTTP = "http"
    CHOPPER = "chopper"


class ImageLoading(str, Enum):
    CACHED_NETWORK_IMAGE = "cached_network_image"
    NETWORK = "network"


class LLMProvider(str, Enum):
    """LLM provider options for the AI fallback."""

    OPENROUTER = "openrouter"
    OPENAI = "openai"
    OLLAMA = "ollama"


# =============================================================================
# Configuration
# =============================================================================


class ProjectConfig(BaseModel):
    """Project-level configuration."""

    name: str = Field(default="composeport_project", description="Project name")
    source_root: Path = Field(default=Path("."), description="Source code root directory")
    output_dir: Path = Field(default=Path("./flutter_output"), description="Output directory")
    state_dir: Path = Field(
        default=Path(".composeport"), description="Directory for reports and analysis state"
    )
    source_format: SourceFormat = Field(default=SourceFormat.KOTLIN)
    exclude_patterns: list[str] = Field(
        default_factory=lambda: ["/build/", "/test/", "/androidTest/", "/.gradle/"],
        description="Path fragments to exclude",
    )


class ConventionOptions(BaseModel):
    """Target-ecosystem conventions passed to generators and the AI fallback."""

    state_management: StateManagement = Field(default=StateManagement.RIVERPOD)
    navigation: NavigationStyle = Field(default=NavigationStyle.GO_ROUTER)
    networking: NetworkingLibrary = Field(default=NetworkingLibrary.DIO)
    image_loading: ImageLoading = Field(default=ImageLoading.CACHED_NETWORK_IMAGE)


class MappingOverrides(BaseModel):
    """User-supplied name mappings that take precedence over the built-in tables."""

    widget_mappings: dict[str, str] = Field(default_factory=dict)
    type_mappings: dict[str, str] = Field(default_factory=dict)


class AIConfig(BaseModel):
    """AI fallback configuration."""

    enabled: bool = Field(default=False, description="Hand flagged units to an LLM")
    provider: LLMProvider = Field(default=LLMProvider.OPENROUTER, description="LLM provider")
    host: str = Field(default="http://localhost:11434", description="Ollama server URL (for Ollama)")
    api_key: str | None = Field(default=None, description="API key (for OpenRouter/OpenAI)")
    model: str = Field(default="openai/gpt-4o-mini", description="Model to use")
    temperature: float = Field(default=0.2, ge=0.0, le=2.0, description="Sampling temperature")
    timeout: int = Field(default=300, description="Request timeout in seconds")
    complexity_threshold: int = Field(
        default=20, description="Units scoring above this are flagged for AI assistance"
    )


class ConversionConfig(BaseModel):
    max_workers: int = Field(default=1, ge=1, description="Units converted in parallel")
    write_files: bool = Field(default=True, description="Write generated files and reports")


class PorterConfig(BaseModel):
    """Root configuration object."""

    project: ProjectConfig = Field(default_factory=ProjectConfig)
    options: ConventionOptions = Field(default_factory=ConventionOptions)
    mappings: MappingOverrides = Field(default_factory=MappingOverrides)
    ai: AIConfig = Field(default_factory=AIConfig)
    conversion: ConversionConfig = Field(default_factory=ConversionConfig)


# =============================================================================
# Analysis records
# =============================================================================


class Priority(int, Enum):
    """Scheduling tier; lower values are converted first."""

    HIGH = 0
    MEDIUM = 1
    LOW = 2


class DependencyEdge(BaseModel):
    """``from_unit`` depends on ``to_unit``."""

    model_config = ConfigDict(frozen=True)

    from_unit: str
    to_unit: str


class SymbolConflict(BaseModel):
    """A short name defined by more than one unit."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    previous_unit: str
    winning_unit: str


class ConversionTask(BaseModel):
    model_config = ConfigDict(frozen=True)

    unit_path: str
    priority: Priority
    dependency_count: int = 0
    complexity: int = 0
    requires_ai: bool = False
    dependencies: tuple[str, ...] = ()


class ScheduleResult(BaseModel):
    """Output of the scheduler plus its diagnostics."""

    order: list[str] = Field(default_factory=list, description="Dependencies-first unit order")
    tasks: list[ConversionTask] = Field(default_factory=list)
    cycles: list[list[str]] = Field(default_factory=list)
    complexity_scores: dict[str, int] = Field(default_factory=dict)


class AnalysisResult(BaseModel):
    """Result of the analysis phase."""

    units: list[str] = Field(default_factory=list)
    edges: list[DependencyEdge] = Field(default_factory=list)
    schedule: ScheduleResult = Field(default_factory=ScheduleResult)
    conflicts: list[SymbolConflict] = Field(default_factory=list)
    strongly_connected: list[list[str]] = Field(
        default_factory=list, description="Groups of mutually dependent units"
    )


# =============================================================================
# Conversion records
# =============================================================================


class ComponentShape(str, Enum):
    STATEFUL = "stateful"
    STATELESS = "stateless"
    NONE = "none"


class GenerationMethod(str, Enum):
    RULE_BASED = "rule_based"
    AI_ASSISTED = "ai_assisted"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class ConversionIssue(BaseModel):
    """An error or warning attached to a unit."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    unit_path: str | None = None
    severity: Severity = Severity.WARNING


class UnitOutput(BaseModel):
    """Everything generated for one source unit."""

    source_path: str
    target_file_name: str
    target_path: str = Field(description="Target path relative to lib/")
    imports: list[str] = Field(default_factory=list)
    content: str = Field(default="", description="Rendered declarations")
    component_shape: ComponentShape = ComponentShape.NONE
    components: dict[str, ComponentShape] = Field(default_factory=dict)
    source_lines: int = 0
    generated_lines: int = 0
    method: GenerationMethod = GenerationMethod.RULE_BASED
    warnings: list[ConversionIssue] = Field(default_factory=list)

    def render(self) -> str:
        """Full file text: imports followed by declarations."""
        if self.method == GenerationMethod.AI_ASSISTED:
            return self.content
        header = "\n".join(f"import '{imp}';" for imp in self.imports)
        return f"{header}\n\n{self.content}" if header else self.content


class ConversionStats(BaseModel):
    total_units: int = 0
    converted_units: int = 0
    failed_units: int = 0
    source_lines: int = 0
    generated_lines: int = 0
    ai_assisted_lines: int = 0
    duration_seconds: float = 0.0


class ProjectReport(BaseModel):
    """Aggregated result of converting a project."""

    success: bool = True
    outputs: list[UnitOutput] = Field(default_factory=list)
    errors: list[ConversionIssue] = Field(default_factory=list)
    warnings: list[ConversionIssue] = Field(default_factory=list)
    cycles: list[list[str]] = Field(default_factory=list)
    complexity_scores: dict[str, int] = Field(default_factory=dict)
    stats: ConversionStats = Field(default_factory=ConversionStats)
