"""Layered context resolution (Stage 03b of the analysis pipeline).

Merges an organization's analysis settings onto its industry template.
Industry compliance requirements are never dropped, only appended to;
terminology is deduplicated and truncated so the prompt length stays bounded.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from callscope.domain.models import (
    AISettings,
    CustomerContext,
    OrganizationProfile,
    Strictness,
)

from .catalog import IndustryCatalog, IndustryTemplate

logger = logging.getLogger("callscope.services.analysis_pipeline")

_DEFAULT_FOCUS_AREA_COUNT = 5


@dataclass(frozen=True)
class ResolvedContext:
    """Everything the prompt composer needs, already merged and defaulted."""

    template: IndustryTemplate
    strictness: Strictness
    compliance: Tuple[str, ...]
    terminology: Tuple[str, ...]
    focus_areas: Tuple[str, ...]
    organization_name: Optional[str] = None
    organization_context: Optional[str] = None
    products: Tuple[str, ...] = ()
    competitors: Tuple[str, ...] = ()
    guidelines: Optional[str] = None
    customer_context: Optional[CustomerContext] = None


def _dedupe(values: Iterable[str]) -> Tuple[str, ...]:
    seen: set[str] = set()
    unique = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        unique.append(value)
    return tuple(unique)


class ContextResolver:
    """Resolve the industry template and apply organization overrides."""

    def __init__(
        self,
        catalog: IndustryCatalog,
        *,
        default_strictness: Strictness = Strictness.STRICT,
        max_terminology: int = 30,
    ) -> None:
        self._catalog = catalog
        self._default_strictness = default_strictness
        self._max_terminology = max_terminology

    def resolve(self, organization: OrganizationProfile | None) -> ResolvedContext:
        industry = organization.industry if organization else None
        template = self._catalog.get(industry)
        ai_settings = organization.ai_settings if organization else AISettings()
        preferences = ai_settings.scoring_preferences

        strictness = preferences.strictness or self._default_strictness
        compliance = template.compliance_requirements + tuple(ai_settings.compliance_scripts)
        terminology = _dedupe(
            template.key_terminology + tuple(ai_settings.custom_terminology)
        )[: self._max_terminology]
        if preferences.focus_areas:
            focus_areas = tuple(preferences.focus_areas)
        else:
            focus_areas = template.evaluation_criteria[:_DEFAULT_FOCUS_AREA_COUNT]

        customer_context = ai_settings.customer_context
        if customer_context is not None and customer_context.is_empty:
            customer_context = None

        logger.info(
            "Contexto resuelto industry=%s plantilla=%s strictness=%s compliance=%s terminos=%s",
            industry,
            template.id,
            strictness.value,
            len(compliance),
            len(terminology),
        )
        return ResolvedContext(
            template=template,
            strictness=strictness,
            compliance=compliance,
            terminology=terminology,
            focus_areas=focus_areas,
            organization_name=organization.name if organization else None,
            organization_context=ai_settings.context,
            products=tuple(ai_settings.products),
            competitors=tuple(ai_settings.competitors),
            guidelines=ai_settings.guidelines,
            customer_context=customer_context,
        )


__all__ = ["ContextResolver", "ResolvedContext"]
