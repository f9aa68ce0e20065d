"""Industry template catalog (Stage 03a of the analysis pipeline).

Templates are JSON documents under ``callscope/resources/industries``. They
are loaded once at startup into an immutable :class:`IndustryCatalog`; lookups
of unknown industries resolve to the ``general`` entry instead of failing.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Tuple

logger = logging.getLogger("callscope.services.analysis_pipeline")

_RESOURCE_ROOT = Path(__file__).resolve().parents[2] / "resources"
_INDUSTRY_ROOT = _RESOURCE_ROOT / "industries"

GENERAL_INDUSTRY_ID = "general"
_INDUSTRY_ID_PATTERN = re.compile(r"[^a-z_]")


@dataclass(frozen=True)
class IndustryTemplate:
    """Static analysis template for one business domain."""

    id: str
    name: str
    description: str
    context: str
    evaluation_criteria: Tuple[str, ...] = ()
    compliance_requirements: Tuple[str, ...] = ()
    key_terminology: Tuple[str, ...] = ()
    common_objections: Tuple[str, ...] = ()
    red_flag_indicators: Tuple[str, ...] = ()
    quality_markers: Tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, fallback_id: str) -> "IndustryTemplate":
        def _strings(key: str) -> Tuple[str, ...]:
            values = data.get(key) or ()
            return tuple(str(item) for item in values if isinstance(item, str) and item.strip())

        return cls(
            id=str(data.get("id") or fallback_id),
            name=str(data.get("name") or fallback_id),
            description=str(data.get("description") or ""),
            context=str(data.get("context") or "").strip(),
            evaluation_criteria=_strings("evaluation_criteria"),
            compliance_requirements=_strings("compliance_requirements"),
            key_terminology=_strings("key_terminology"),
            common_objections=_strings("common_objections"),
            red_flag_indicators=_strings("red_flag_indicators"),
            quality_markers=_strings("quality_markers"),
        )


def normalize_industry_id(industry: str | None) -> str:
    """Lowercase and replace anything but ``[a-z_]`` with underscores."""

    if not industry:
        return GENERAL_INDUSTRY_ID
    return _INDUSTRY_ID_PATTERN.sub("_", industry.strip().lower())


class IndustryCatalog:
    """Read-only map of industry id to template with a mandatory fallback."""

    def __init__(self, templates: Iterable[IndustryTemplate]) -> None:
        entries = {template.id: template for template in templates}
        if GENERAL_INDUSTRY_ID not in entries:
            raise ValueError("Industry catalog requires a 'general' template.")
        self._templates: Mapping[str, IndustryTemplate] = MappingProxyType(entries)

    @classmethod
    def load(cls, root: Path | None = None) -> "IndustryCatalog":
        """Disk-backed catalog built from every ``*.json`` file under ``root``."""

        directory = root or _INDUSTRY_ROOT
        templates = []
        for template_path in sorted(directory.glob("*.json")):
            try:
                with template_path.open("r", encoding="utf-8") as template_file:
                    data = json.load(template_file)
            except (OSError, json.JSONDecodeError) as exc:
                logger.warning("Plantilla de industria inválida %s: %s", template_path, exc)
                continue
            templates.append(IndustryTemplate.from_mapping(data, fallback_id=template_path.stem))
        logger.info("Catálogo de industrias cargado: %s plantillas", len(templates))
        return cls(templates)

    def get(self, industry: str | None) -> IndustryTemplate:
        """Resolve an industry id; unknown ids yield the general template."""

        normalized = normalize_industry_id(industry)
        template = self._templates.get(normalized)
        if template is None:
            return self._templates[GENERAL_INDUSTRY_ID]
        return template

    def available(self) -> Tuple[IndustryTemplate, ...]:
        return tuple(self._templates.values())

    def __contains__(self, industry: object) -> bool:
        return industry in self._templates

    def __len__(self) -> int:
        return len(self._templates)


__all__ = [
    "GENERAL_INDUSTRY_ID",
    "IndustryCatalog",
    "IndustryTemplate",
    "normalize_industry_id",
]
