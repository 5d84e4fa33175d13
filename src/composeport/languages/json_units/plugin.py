"""
Serialized-unit front-end.

Loads SourceUnit documents produced by any external parser. A ``*.unit.json``
file holds one unit object or a list of them.
"""

import logging
from pathlib import Path

import orjson
from pydantic import ValidationError

from composeport.ir.source import SourceUnit
from composeport.languages.base.plugin import FrontEnd, FrontEndError

logger = logging.getLogger(__name__)


class JsonUnitFrontEnd(FrontEnd):
    """Front-end for pre-parsed unit documents."""

    @property
    def name(self) -> str:
        return "json"

    @property
    def file_extensions(self) -> list[str]:
        return [".unit.json"]

    def parse_file(self, file_path: Path, source_root: Path) -> list[SourceUnit]:
        try:
            document = orjson.loads(file_path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as e:
            raise FrontEndError(f"Cannot read unit document {file_path}: {e}") from e

        items = document if isinstance(document, list) else [document]
        units = []
        for item in items:
            if isinstance(item, dict) and "path" not in item:
                item = {**item, "path": self.unit_key(file_path, source_root).removesuffix(".unit.json")}
            try:
                units.append(SourceUnit.model_validate(item))
            except ValidationError as e:
                raise FrontEndError(f"Invalid unit document {file_path}: {e}") from e
        logger.debug(f"Loaded {len(units)} unit(s) from {file_path}")
        return units


def dump_units(units: list[SourceUnit], output_path: Path) -> None:
    """Write units as a ``*.unit.json`` document."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = [unit.model_dump(mode="json") for unit in units]
    output_path.write_bytes(orjson.dumps(payload, option=orjson.OPT_INDENT_2))
