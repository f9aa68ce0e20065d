"""Merging organization settings onto industry templates."""

from __future__ import annotations

from callscope.domain.models import OrganizationProfile, Strictness
from callscope.pipelines.analysis import ContextResolver


def test_no_organization_uses_general_template_and_default_strictness(catalog):
    resolved = ContextResolver(catalog).resolve(None)

    assert resolved.template.id == "general"
    assert resolved.strictness is Strictness.STRICT
    assert resolved.organization_name is None
    assert resolved.focus_areas == catalog.get("general").evaluation_criteria[:5]


def test_compliance_scripts_are_appended_after_template_requirements(catalog, organization):
    resolved = ContextResolver(catalog).resolve(organization)

    assert resolved.compliance == (
        "Verify patient identity",
        "Protect PHI",
        "Read the recording disclosure",
    )


def test_terminology_is_deduplicated_in_order(catalog, organization):
    resolved = ContextResolver(catalog).resolve(organization)

    assert resolved.terminology == ("PHI", "HIPAA", "copay", "EHR")


def test_terminology_is_truncated(catalog, organization):
    resolved = ContextResolver(catalog, max_terminology=2).resolve(organization)

    assert resolved.terminology == ("PHI", "HIPAA")


def test_organization_strictness_overrides_default(catalog, organization):
    resolved = ContextResolver(catalog, default_strictness=Strictness.LENIENT).resolve(
        organization
    )

    assert resolved.strictness is Strictness.MODERATE


def test_focus_areas_from_scoring_preferences(catalog):
    organization = OrganizationProfile.model_validate(
        {
            "id": 7,
            "name": "Acme",
            "industry": "healthcare",
            "aiSettings": {"scoringPreferences": {"focusAreas": ["Empathy", " ", "Accuracy"]}},
        }
    )

    resolved = ContextResolver(catalog).resolve(organization)

    assert organization.id == "7"
    assert resolved.focus_areas == ("Empathy", "Accuracy")


def test_empty_customer_context_is_dropped(catalog):
    organization = OrganizationProfile.model_validate(
        {
            "id": "org-2",
            "name": "Acme",
            "aiSettings": {"customerContext": {"typicalProfiles": [], "commonIssues": []}},
        }
    )

    resolved = ContextResolver(catalog).resolve(organization)

    assert resolved.customer_context is None


def test_unknown_organization_industry_falls_back_to_general(catalog):
    organization = OrganizationProfile(id="org-3", name="Orbital", industry="aerospace")

    resolved = ContextResolver(catalog).resolve(organization)

    assert resolved.template.id == "general"
    assert resolved.organization_name == "Orbital"
