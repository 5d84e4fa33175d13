"""
Front-end registry.

Central registry for all front-ends. Handles lookup and instantiation by
source format.
"""

from typing import Type

from composeport.config.models import SourceFormat
from composeport.languages.base.plugin import FrontEnd
from composeport.languages.json_units.plugin import JsonUnitFrontEnd
from composeport.languages.kotlin.plugin import KotlinFrontEnd


class FrontEndRegistry:
    """Registry for front-ends."""

    _front_ends: dict[SourceFormat, Type[FrontEnd]] = {
        SourceFormat.KOTLIN: KotlinFrontEnd,
        SourceFormat.JSON: JsonUnitFrontEnd,
    }

    @classmethod
    def get_front_end(cls, source_format: SourceFormat, exclude_patterns: list[str] | None = None) -> FrontEnd:
        """
        Get a front-end instance.

        Raises:
            ValueError: If the format is not supported
        """
        if source_format not in cls._front_ends:
            raise ValueError(
                f"Unsupported source format: {source_format}. "
                f"Supported formats: {cls.list_supported_formats()}"
            )
        return cls._front_ends[source_format](exclude_patterns=exclude_patterns)

    @classmethod
    def register_front_end(cls, source_format: SourceFormat, front_end_class: Type[FrontEnd]):
        """Register a new front-end for a source format."""
        if not issubclass(front_end_class, FrontEnd):
            raise TypeError(f"{front_end_class} must extend FrontEnd")
        cls._front_ends[source_format] = front_end_class

    @classmethod
    def list_supported_formats(cls) -> list[str]:
        return [fmt.value for fmt in cls._front_ends]
