"""Deterministic prompt composition."""

from __future__ import annotations

from callscope.domain.models import CallType, OrganizationProfile, Strictness
from callscope.pipelines.analysis import ContextResolver, PromptConfig, compose_prompt
from callscope.pipelines.analysis.prompts import OUTPUT_SCHEMA_CONTRACT


def _compose(catalog, organization=None, **config):
    resolved = ContextResolver(catalog).resolve(organization)
    return compose_prompt(PromptConfig(organization=organization, **config), resolved)


def test_same_inputs_produce_identical_text(catalog, organization):
    first = _compose(catalog, organization, call_type=CallType.SALES, language="Spanish")
    second = _compose(catalog, organization, call_type=CallType.SALES, language="Spanish")

    assert first.text == second.text


def test_sections_appear_in_fixed_order(catalog, organization):
    prompt = _compose(
        catalog,
        organization,
        call_type=CallType.SUPPORT,
        additional_instructions="Focus on refunds.",
    ).text

    markers = [
        "call quality analyst",
        "--- INDUSTRY CONTEXT: Healthcare ---",
        "--- ORGANIZATION: Acme Health ---",
        "--- PRODUCTS & SERVICES ---",
        "--- COMPLIANCE REQUIREMENTS ---",
        "--- KEY TERMINOLOGY ---",
        "--- SUPPORT CALL ANALYSIS ---",
        "--- LANGUAGE HANDLING ---",
        "--- EVALUATION FOCUS AREAS ---",
        "--- ADDITIONAL INSTRUCTIONS ---",
        "--- OUTPUT FORMAT ---",
        "--- SCORING GUIDELINES (MODERATE) ---",
        "ANALYSIS REQUIREMENTS:",
    ]
    positions = [prompt.index(marker) for marker in markers]
    assert positions == sorted(positions)


def test_compliance_lists_template_then_organization_scripts(catalog, organization):
    prompt = _compose(catalog, organization).text

    assert "1. Verify patient identity\n2. Protect PHI\n3. Read the recording disclosure" in prompt


def test_general_call_type_has_no_call_type_section(catalog):
    prompt = _compose(catalog, call_type=CallType.GENERAL).text

    assert "CALL ANALYSIS ---" not in prompt


def test_optional_sections_are_omitted_without_data(catalog):
    prompt = _compose(catalog).text

    assert "--- ORGANIZATION:" not in prompt
    assert "--- PRODUCTS & SERVICES ---" not in prompt
    assert "--- COMPETITOR AWARENESS ---" not in prompt
    assert "--- CUSTOMER CONTEXT ---" not in prompt
    assert "--- ADDITIONAL INSTRUCTIONS ---" not in prompt
    assert "--- SPECIFIC GUIDELINES ---" not in prompt
    assert "--- COMPLIANCE REQUIREMENTS ---" in prompt


def test_strict_tier_is_default(catalog):
    prompt = _compose(catalog).text

    assert "EXTREMELY STRICT and CRITICAL" in prompt
    assert "THIS IS WHERE MOST CALLS SHOULD FALL" in prompt
    assert "BE HARSH" in prompt


def test_lenient_tier_wording(catalog):
    organization = OrganizationProfile.model_validate(
        {
            "id": "org-9",
            "name": "Gentle Co",
            "aiSettings": {"scoringPreferences": {"strictness": "lenient"}},
        }
    )

    prompt = _compose(catalog, organization).text

    assert "fair and balanced" in prompt
    assert "BE HARSH" not in prompt
    assert ContextResolver(catalog).resolve(organization).strictness is Strictness.LENIENT


def test_output_contract_and_empty_red_flags_instruction(catalog):
    prompt = _compose(catalog)

    assert prompt.schema_contract == OUTPUT_SCHEMA_CONTRACT
    assert OUTPUT_SCHEMA_CONTRACT in prompt.text
    assert '"redFlags"' in OUTPUT_SCHEMA_CONTRACT
    assert "return an EMPTY ARRAY []" in prompt.text


def test_language_hint_and_guidelines(catalog):
    organization = OrganizationProfile.model_validate(
        {
            "id": "org-4",
            "name": "Acme",
            "aiSettings": {"guidelines": "Always offer a callback.", "competitors": ["Globex"]},
        }
    )

    prompt = _compose(catalog, organization, language="Portuguese").text

    assert "Hinglish (Hindi-English mix), or Portuguese." in prompt
    assert "--- SPECIFIC GUIDELINES ---\nAlways offer a callback." in prompt
    assert "• Globex" in prompt


def test_instructions_and_guidelines_are_rendered_verbatim(catalog):
    organization = OrganizationProfile.model_validate(
        {"id": "org-5", "name": "Acme", "aiSettings": {"guidelines": "  Greet by name.\n"}}
    )

    prompt = _compose(
        catalog, organization, additional_instructions="  Focus on the refund.  "
    ).text

    assert "--- ADDITIONAL INSTRUCTIONS ---\n  Focus on the refund.  \n" in prompt
    assert "--- SPECIFIC GUIDELINES ---\n  Greet by name.\n\n" in prompt


def test_blank_additional_instructions_are_omitted(catalog):
    prompt = _compose(catalog, additional_instructions="   ").text

    assert "ADDITIONAL INSTRUCTIONS" not in prompt
