import sys
import os
sys.path.append(os.getcwd())

from callscope.domain.models import CallType, OrganizationProfile, Strictness
from callscope.pipelines.analysis import ContextResolver, IndustryCatalog, PromptConfig, compose_prompt


def preview(industry: str, call_type: str) -> None:
    catalog = IndustryCatalog.load()
    print(f"Loaded {len(catalog)} industry templates.\n")

    for strictness in Strictness:
        organization = OrganizationProfile.model_validate(
            {
                "id": "preview",
                "name": "Preview Org",
                "industry": industry,
                "aiSettings": {"scoringPreferences": {"strictness": strictness.value}},
            }
        )
        resolved = ContextResolver(catalog).resolve(organization)
        prompt = compose_prompt(
            PromptConfig(organization=organization, call_type=CallType.parse(call_type)),
            resolved,
        )

        print(f"--- Strictness {strictness.value} ---")
        print(f"Template: {resolved.template.id} | compliance items: {len(resolved.compliance)}")
        print(f"Prompt length: {len(prompt)} chars")
        if "BE HARSH" in prompt.text:
            print("Found harsh evaluation mindset (expected only for strict)")
        print()

    print("--- Full prompt (strict) ---")
    print(prompt.text)


if __name__ == "__main__":
    industry_arg = sys.argv[1] if len(sys.argv) > 1 else "general"
    call_type_arg = sys.argv[2] if len(sys.argv) > 2 else "general"
    preview(industry_arg, call_type_arg)
