"""Prompt composition stage for the analysis pipeline (Stage 04).

Turns the resolved context, call type and strictness tier into the single
instruction sent alongside the audio. Composition is a pure function: the
same inputs always produce byte-identical text, which is what keeps repeat
analyses of one call consistently scored.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional

from callscope.domain.models import CallType, CustomerContext, Strictness

from .context import ResolvedContext
from .types import ComposedPrompt, PromptConfig

logger = logging.getLogger("callscope.services.analysis_pipeline")

_STRICTNESS_DESCRIPTIONS: Mapping[Strictness, str] = {
    Strictness.LENIENT: "fair and balanced",
    Strictness.MODERATE: "moderately critical",
    Strictness.STRICT: "EXTREMELY STRICT and CRITICAL",
}

_CALL_TYPE_FOCUS: Mapping[CallType, tuple[str, tuple[str, ...]]] = {
    CallType.SALES: (
        "SALES CALL ANALYSIS",
        (
            "Discovery and needs assessment quality",
            "Value proposition articulation",
            "Objection handling effectiveness",
            "Closing technique appropriateness",
            "Pipeline advancement achieved",
            "Next steps clarity",
        ),
    ),
    CallType.SUPPORT: (
        "SUPPORT CALL ANALYSIS",
        (
            "Issue identification speed",
            "Problem resolution effectiveness",
            "Technical explanation clarity",
            "Escalation appropriateness",
            "Customer satisfaction achieved",
            "Follow-up commitment",
        ),
    ),
    CallType.CONSULTATION: (
        "CONSULTATION CALL ANALYSIS",
        (
            "Needs understanding depth",
            "Advisory quality",
            "Recommendation appropriateness",
            "Trust building",
            "Expertise demonstration",
            "Action plan clarity",
        ),
    ),
    CallType.FOLLOW_UP: (
        "FOLLOW-UP CALL ANALYSIS",
        (
            "Context retention from previous interactions",
            "Progress update delivery",
            "Commitment follow-through",
            "Relationship maintenance",
            "Next steps agreement",
            "Value continuation",
        ),
    ),
}

OUTPUT_SCHEMA_CONTRACT = """{
  "language": string,
  "durationSec": number,
  "transcription": string,
  "summary": string,
  "mom": { "participants": string[], "decisions": string[], "actionItems": string[], "nextSteps": string[] },
  "insights": { "sentiment": "Positive" | "Neutral" | "Negative", "sentimentScore": number, "topics": string[], "keywords": string[] },
  "conversationMetrics": { "agentTalkRatio": number, "customerTalkRatio": number, "silenceRatio": number, "totalQuestions": number, "openQuestions": number, "closedQuestions": number, "agentInterruptions": number, "customerInterruptions": number, "avgResponseTimeSec": number, "longestPauseSec": number, "wordsPerMinuteAgent": number, "wordsPerMinuteCustomer": number },
  "conversationSegments": [ { "name": string, "startTime": string, "endTime": string, "durationSec": number, "quality": "excellent" | "good" | "average" | "poor", "notes": string } ],
  "keyMoments": [ { "timestamp": string, "type": "complaint" | "compliment" | "objection" | "competitor_mention" | "pricing_discussion" | "commitment" | "breakthrough" | "escalation_risk" | "pain_point" | "positive_signal", "speaker": "agent" | "customer", "text": string, "sentiment": "positive" | "neutral" | "negative", "importance": "high" | "medium" | "low" } ],
  "coaching": { "overallScore": number, "categoryScores": { "opening": number, "discovery": number, "solutionPresentation": number, "objectionHandling": number, "closing": number, "empathy": number, "clarity": number, "compliance": number }, "strengths": string[], "weaknesses": string[], "missedOpportunities": string[], "customerHandling": { "score": number, "feedback": string }, "communicationQuality": { "score": number, "feedback": string }, "pitchEffectiveness": { "score": number, "feedback": string }, "objectionHandling": { "score": number, "feedback": string }, "forcedSale": { "detected": boolean, "severity": "none" | "mild" | "moderate" | "severe", "indicators": string[], "feedback": string }, "improvementSuggestions": string[], "scriptRecommendations": string[], "redFlags": string[], "coachingSummary": string },
  "predictions": { "conversionProbability": number, "churnRisk": "high" | "medium" | "low", "escalationRisk": "high" | "medium" | "low", "satisfactionLikely": "high" | "medium" | "low", "followUpNeeded": boolean, "urgencyLevel": "high" | "medium" | "low" },
  "customerProfile": { "communicationStyle": "detailed" | "brief" | "emotional" | "analytical", "decisionStyle": "quick" | "deliberate" | "needs_reassurance" | "price_focused", "engagementLevel": "high" | "medium" | "low", "pricesSensitivity": "high" | "medium" | "low", "concerns": string[], "preferences": string[] },
  "actionItems": { "forAgent": string[], "forManager": string[], "forFollowUp": string[] },
  "industrySpecific": { "complianceScore": number, "complianceNotes": string[], "industryBestPractices": { "followed": string[], "missed": string[] } }
}"""

_SCORING_GUIDELINES: Mapping[Strictness, str] = {
    Strictness.LENIENT: """
--- SCORING GUIDELINES (BALANCED) ---
- 90-100: EXCEPTIONAL - Outstanding performance with minimal issues
- 80-89: VERY GOOD - Strong performance with minor areas for improvement
- 70-79: GOOD - Solid performance meeting expectations. THIS IS WHERE A TYPICAL CALL SHOULD FALL.
- 60-69: SATISFACTORY - Acceptable but with noticeable improvement areas
- 50-59: NEEDS IMPROVEMENT - Several issues requiring attention
- Below 50: POOR - Significant concerns requiring immediate action
""",
    Strictness.MODERATE: """
--- SCORING GUIDELINES (MODERATE) ---
- 90-100: EXCEPTIONAL - Flawless execution, very rare
- 80-89: VERY GOOD - Minor issues only, mostly excellent
- 70-79: GOOD - Solid performance with some areas for improvement
- 60-69: AVERAGE - Did the job but nothing special. THIS IS WHERE A TYPICAL CALL SHOULD FALL.
- 50-59: BELOW AVERAGE - Significant issues needing training
- Below 50: POOR - Serious concerns, immediate coaching needed
""",
    Strictness.STRICT: """
--- SCORING GUIDELINES (STRICT) ---
- 90-100: EXCEPTIONAL - Flawless execution, exceeded expectations, built strong rapport, no missed opportunities. VERY RARE.
- 80-89: VERY GOOD - Minor issues only, mostly excellent
- 70-79: GOOD - Solid performance with some areas for improvement
- 60-69: AVERAGE - Did the job but nothing special, several improvement areas. THIS IS WHERE MOST CALLS SHOULD FALL.
- 50-59: BELOW AVERAGE - Significant issues that need training
- Below 50: POOR - Serious concerns, immediate coaching needed

CRITICAL EVALUATION MINDSET:
- BE HARSH. A score of 90+ should be EXCEPTIONAL and rare.
- Average performance = 60-70 score, NOT 80+.
- Always look for what the agent COULD have done better.
- If the agent missed ANY opportunity to help, upsell, or improve the experience, note it.
- Don't give the benefit of the doubt - judge based on what actually happened.
""",
}

_ANALYSIS_REQUIREMENTS = (
    "TRANSCRIPTION: Full verbatim transcription with speaker labels (A: for Agent, C: for Customer).",
    "SUMMARY: 6-10 bullet points covering key discussion points.",
    "CONVERSATION METRICS: Calculate talk ratios as percentages (e.g., 45 for 45%, NOT 0.45).",
    "CONVERSATION SEGMENTS: Break call into distinct phases.",
    "KEY MOMENTS: Identify 5-10 critical moments.",
    "COACHING SCORES: Be consistent with the scoring guidelines above.",
    "WEAKNESSES: Always find at least 2-3 areas for improvement, even in good calls.",
    "MISSED OPPORTUNITIES: What could the agent have done better? Always find something.",
    "RED FLAGS: Serious issues only. Leave array EMPTY [] if none exist.",
    "FORCED SALE DETECTION: Check for high-pressure tactics, urgency manipulation.",
    "PREDICTIONS: Be realistic, not optimistic.",
    "ACTION ITEMS: Specific, actionable follow-ups.",
    "INDUSTRY COMPLIANCE: Evaluate against industry-specific requirements.",
)


def _bullets(items: Iterable[str], marker: str = "•") -> str:
    return "\n".join(f"{marker} {item}" for item in items)


def _numbered(items: Iterable[str]) -> str:
    return "\n".join(f"{index}. {item}" for index, item in enumerate(items, start=1))


def _role_preamble(strictness: Strictness) -> str:
    return (
        f"\nYou are an {_STRICTNESS_DESCRIPTIONS[strictness]} call quality analyst with very "
        "high standards. You analyze calls to help agents improve their performance and "
        "deliver better customer experiences.\n"
    )


def _industry_section(context: ResolvedContext) -> str:
    template = context.template
    return (
        f"\n--- INDUSTRY CONTEXT: {template.name} ---\n"
        f"{template.context}\n\n"
        "KEY EVALUATION CRITERIA FOR THIS INDUSTRY:\n"
        f"{_numbered(template.evaluation_criteria)}\n\n"
        "COMPLIANCE REQUIREMENTS:\n"
        f"{_bullets(template.compliance_requirements)}\n\n"
        "RED FLAGS TO WATCH FOR:\n"
        f"{_bullets(template.red_flag_indicators, '⚠️')}\n\n"
        "QUALITY MARKERS TO RECOGNIZE:\n"
        f"{_bullets(template.quality_markers, '✓')}\n"
    )


def _organization_section(context: ResolvedContext) -> Optional[str]:
    if not context.organization_name and not context.organization_context:
        return None
    parts = [f"\n--- ORGANIZATION: {context.organization_name or 'Unnamed'} ---"]
    if context.organization_context:
        parts.append(f"\nCOMPANY BACKGROUND:\n{context.organization_context}")
    return "\n".join(parts)


def _products_section(products: tuple[str, ...]) -> str:
    return (
        "\n--- PRODUCTS & SERVICES ---\n"
        "The company offers these products/services. Listen for mentions and evaluate how "
        "well the agent presents them:\n"
        f"{_bullets(products)}\n\n"
        "Evaluate:\n"
        "- Product knowledge accuracy\n"
        "- Appropriate product matching to customer needs\n"
        "- Cross-sell/upsell opportunities identified\n"
        "- Feature explanation clarity\n"
    )


def _competitors_section(competitors: tuple[str, ...]) -> str:
    return (
        "\n--- COMPETITOR AWARENESS ---\n"
        "Known competitors to watch for in the conversation:\n"
        f"{_bullets(competitors)}\n\n"
        "When competitors are mentioned, evaluate:\n"
        "- Professional handling (no disparagement)\n"
        "- Value differentiation articulation\n"
        "- Comparison accuracy\n"
        "- Competitive positioning effectiveness\n"
    )


def _compliance_section(compliance: tuple[str, ...]) -> str:
    return (
        "\n--- COMPLIANCE REQUIREMENTS ---\n"
        "The agent MUST adhere to these compliance requirements. Check if they were followed:\n"
        f"{_numbered(compliance)}\n\n"
        "COMPLIANCE SCORING:\n"
        "- Verify each requirement was met\n"
        "- Note any deviations or omissions\n"
        "- Compliance score should reflect adherence to these specific requirements\n"
        "- Any compliance failure is a RED FLAG\n"
    )


def _terminology_section(terminology: tuple[str, ...]) -> str:
    return (
        "\n--- KEY TERMINOLOGY ---\n"
        "Listen for and understand these industry/company-specific terms:\n"
        f"{', '.join(terminology)}\n\n"
        "Note any misuse or misunderstanding of terminology in the analysis.\n"
    )


def _customer_context_section(customer: CustomerContext) -> str:
    parts = ["\n--- CUSTOMER CONTEXT ---"]
    if customer.typical_profiles:
        parts.append(f"\nTypical Customer Profiles:\n{_bullets(customer.typical_profiles)}")
    if customer.common_issues:
        parts.append(f"\nCommon Customer Issues:\n{_bullets(customer.common_issues)}")
    if customer.preferred_tone:
        parts.append(f"\nPreferred Communication Tone: {customer.preferred_tone.value}")
    return "\n".join(parts)


def _call_type_section(call_type: CallType) -> Optional[str]:
    focus = _CALL_TYPE_FOCUS.get(call_type)
    if focus is None:
        return None
    title, items = focus
    lines = "\n".join(f"- {item}" for item in items)
    return f"\n--- {title} ---\nFocus on:\n{lines}\n"


def _language_section(language: Optional[str]) -> str:
    return (
        "\n--- LANGUAGE HANDLING ---\n"
        "The audio may be in English, Hindi, Hinglish (Hindi-English mix), or "
        f"{language or 'other languages'}.\n\n"
        "Instructions:\n"
        "- Transcribe in the original language spoken\n"
        "- Use speaker labels: A: for Agent, C: for Customer\n"
        "- Note code-switching between languages\n"
        "- Maintain meaning accuracy in analysis\n"
        "- Identify sentiment across language variations\n"
    )


def _evaluation_section(context: ResolvedContext) -> str:
    return (
        "\n--- EVALUATION FOCUS AREAS ---\n"
        "Prioritize evaluation of:\n"
        f"{_numbered(context.focus_areas)}\n\n"
        "Common objections in this industry to watch for:\n"
        f"{_bullets(context.template.common_objections)}\n\n"
        "Assess how well these objections are handled if they arise.\n"
    )


def _output_format_section() -> str:
    return (
        "\n--- OUTPUT FORMAT ---\n"
        "Respond ONLY with strict JSON in this exact shape:\n"
        f"{OUTPUT_SCHEMA_CONTRACT}\n\n"
        "IMPORTANT: For redFlags array - if there are no red flags, return an EMPTY ARRAY []. "
        'Do NOT return ["None detected"] or ["None"] or similar.\n'
    )


def _scoring_section(strictness: Strictness) -> str:
    return (
        f"{_SCORING_GUIDELINES[strictness]}\n\n"
        "ANALYSIS REQUIREMENTS:\n"
        f"{_numbered(_ANALYSIS_REQUIREMENTS)}\n"
    )


def compose_prompt(config: PromptConfig, context: ResolvedContext) -> ComposedPrompt:
    """Render every section in its fixed order and join them."""

    sections: list[Optional[str]] = [
        _role_preamble(context.strictness),
        _industry_section(context),
        _organization_section(context),
        _products_section(context.products) if context.products else None,
        _competitors_section(context.competitors) if context.competitors else None,
        _compliance_section(context.compliance),
        _terminology_section(context.terminology),
        _customer_context_section(context.customer_context) if context.customer_context else None,
        _call_type_section(config.call_type),
        _language_section(config.language),
        _evaluation_section(context),
    ]
    if config.additional_instructions and config.additional_instructions.strip():
        sections.append(f"\n--- ADDITIONAL INSTRUCTIONS ---\n{config.additional_instructions}\n")
    if context.guidelines:
        sections.append(f"\n--- SPECIFIC GUIDELINES ---\n{context.guidelines}\n")
    sections.append(_output_format_section())
    sections.append(_scoring_section(context.strictness))

    text = "\n".join(section for section in sections if section)
    logger.info(
        "Prompt generado industry=%s call_type=%s strictness=%s chars=%s",
        context.template.id,
        config.call_type.value,
        context.strictness.value,
        len(text),
    )
    return ComposedPrompt(text=text, schema_contract=OUTPUT_SCHEMA_CONTRACT)


__all__ = ["OUTPUT_SCHEMA_CONTRACT", "compose_prompt"]
