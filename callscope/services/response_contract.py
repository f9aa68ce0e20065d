"""Pydantic models for the canonical call analysis report.

Model output is untrusted: every field is optional on input and falls back to
a documented default when it is missing or has the wrong type. Enum fields
outside their allowed set take their default, 0-100 scores are clamped and
list items of the wrong type are dropped. Validation therefore never fails
for any JSON object.
"""

import math
from typing import Annotated, Any, Callable, List, Mapping, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _number_or(default: float) -> Callable[[Any], float]:
    def _coerce(value: Any) -> float:
        if isinstance(value, bool):
            return default
        if isinstance(value, str):
            value = value.strip().rstrip("%")
        elif not isinstance(value, (int, float)):
            return default
        try:
            number = float(value)
        except (OverflowError, ValueError):
            return default
        return number if math.isfinite(number) else default

    return _coerce


def _score_or(default: float) -> Callable[[Any], float]:
    to_number = _number_or(default)

    def _coerce(value: Any) -> float:
        return max(0.0, min(100.0, to_number(value)))

    return _coerce


def _text_or(default: str) -> Callable[[Any], str]:
    def _coerce(value: Any) -> str:
        if isinstance(value, str):
            return value if value.strip() else default
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return default

    return _coerce


def _choice_or(default: str, *allowed: str) -> Callable[[Any], str]:
    lookup = {choice.lower(): choice for choice in allowed}

    def _coerce(value: Any) -> str:
        if isinstance(value, str):
            return lookup.get(value.strip().lower(), default)
        return default

    return _coerce


def _flag_or(default: bool) -> Callable[[Any], bool]:
    def _coerce(value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in {"true", "yes"}:
                return True
            if lowered in {"false", "no"}:
                return False
        return default

    return _coerce


def _string_items(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, str)]


def _mapping_or_empty(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _mapping_items(value: Any) -> List[Mapping[str, Any]]:
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, Mapping)]


Number = Annotated[float, BeforeValidator(_number_or(0))]
Score = Annotated[float, BeforeValidator(_score_or(0))]
Text = Annotated[str, BeforeValidator(_text_or(""))]
StringList = Annotated[List[str], BeforeValidator(_string_items)]
Level = Annotated[str, BeforeValidator(_choice_or("medium", "high", "medium", "low"))]


class _ContractModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class MinutesOfMeeting(_ContractModel):
    participants: StringList = Field(default_factory=list)
    decisions: StringList = Field(default_factory=list)
    action_items: StringList = Field(default_factory=list)
    next_steps: StringList = Field(default_factory=list)


class Insights(_ContractModel):
    sentiment: Annotated[
        str, BeforeValidator(_choice_or("Neutral", "Positive", "Neutral", "Negative"))
    ] = "Neutral"
    sentiment_score: Annotated[float, BeforeValidator(_score_or(50))] = 50
    topics: StringList = Field(default_factory=list)
    keywords: StringList = Field(default_factory=list)


class ConversationMetrics(_ContractModel):
    """Talk ratios are percentages (45 means 45%)."""

    agent_talk_ratio: Number = 0
    customer_talk_ratio: Number = 0
    silence_ratio: Number = 0
    total_questions: Number = 0
    open_questions: Number = 0
    closed_questions: Number = 0
    agent_interruptions: Number = 0
    customer_interruptions: Number = 0
    avg_response_time_sec: Number = 0
    longest_pause_sec: Number = 0
    words_per_minute_agent: Number = 0
    words_per_minute_customer: Number = 0


class ConversationSegment(_ContractModel):
    name: Text = ""
    start_time: Annotated[str, BeforeValidator(_text_or("0:00"))] = "0:00"
    end_time: Annotated[str, BeforeValidator(_text_or("0:00"))] = "0:00"
    duration_sec: Number = 0
    quality: Annotated[
        str, BeforeValidator(_choice_or("average", "excellent", "good", "average", "poor"))
    ] = "average"
    notes: Text = ""


KEY_MOMENT_TYPES = (
    "complaint",
    "compliment",
    "objection",
    "competitor_mention",
    "pricing_discussion",
    "commitment",
    "breakthrough",
    "escalation_risk",
    "pain_point",
    "positive_signal",
)


class KeyMoment(_ContractModel):
    timestamp: Annotated[str, BeforeValidator(_text_or("0:00"))] = "0:00"
    type: Annotated[str, BeforeValidator(_choice_or("pain_point", *KEY_MOMENT_TYPES))] = "pain_point"
    speaker: Annotated[str, BeforeValidator(_choice_or("customer", "agent", "customer"))] = "customer"
    text: Text = ""
    sentiment: Annotated[
        str, BeforeValidator(_choice_or("neutral", "positive", "neutral", "negative"))
    ] = "neutral"
    importance: Level = "medium"


class CategoryScores(_ContractModel):
    opening: Score = 0
    discovery: Score = 0
    solution_presentation: Score = 0
    objection_handling: Score = 0
    closing: Score = 0
    empathy: Score = 0
    clarity: Score = 0
    compliance: Score = 0


class ScoredFeedback(_ContractModel):
    score: Score = 0
    feedback: Text = ""


class ForcedSale(_ContractModel):
    detected: Annotated[bool, BeforeValidator(_flag_or(False))] = False
    severity: Annotated[
        str, BeforeValidator(_choice_or("none", "none", "mild", "moderate", "severe"))
    ] = "none"
    indicators: StringList = Field(default_factory=list)
    feedback: Annotated[
        str, BeforeValidator(_text_or("No forced sale tactics detected."))
    ] = "No forced sale tactics detected."


def _sub_model(model: type[BaseModel]) -> Any:
    return Annotated[model, BeforeValidator(_mapping_or_empty)]


class Coaching(_ContractModel):
    overall_score: Score = 0
    category_scores: _sub_model(CategoryScores) = Field(default_factory=CategoryScores)
    strengths: StringList = Field(default_factory=list)
    weaknesses: StringList = Field(default_factory=list)
    missed_opportunities: StringList = Field(default_factory=list)
    customer_handling: _sub_model(ScoredFeedback) = Field(default_factory=ScoredFeedback)
    communication_quality: _sub_model(ScoredFeedback) = Field(default_factory=ScoredFeedback)
    pitch_effectiveness: _sub_model(ScoredFeedback) = Field(default_factory=ScoredFeedback)
    objection_handling: _sub_model(ScoredFeedback) = Field(default_factory=ScoredFeedback)
    forced_sale: _sub_model(ForcedSale) = Field(default_factory=ForcedSale)
    improvement_suggestions: StringList = Field(default_factory=list)
    script_recommendations: StringList = Field(default_factory=list)
    red_flags: StringList = Field(default_factory=list)
    coaching_summary: Text = ""


class Predictions(_ContractModel):
    conversion_probability: Score = 0
    churn_risk: Level = "medium"
    escalation_risk: Annotated[str, BeforeValidator(_choice_or("low", "high", "medium", "low"))] = "low"
    satisfaction_likely: Level = "medium"
    follow_up_needed: Annotated[bool, BeforeValidator(_flag_or(False))] = False
    urgency_level: Level = "medium"


class CustomerProfile(_ContractModel):
    communication_style: Annotated[
        str,
        BeforeValidator(_choice_or("brief", "detailed", "brief", "emotional", "analytical")),
    ] = "brief"
    decision_style: Annotated[
        str,
        BeforeValidator(
            _choice_or("deliberate", "quick", "deliberate", "needs_reassurance", "price_focused")
        ),
    ] = "deliberate"
    engagement_level: Level = "medium"
    prices_sensitivity: Level = "medium"
    concerns: StringList = Field(default_factory=list)
    preferences: StringList = Field(default_factory=list)


class ActionItems(_ContractModel):
    for_agent: StringList = Field(default_factory=list)
    for_manager: StringList = Field(default_factory=list)
    for_follow_up: StringList = Field(default_factory=list)


class BestPractices(_ContractModel):
    followed: StringList = Field(default_factory=list)
    missed: StringList = Field(default_factory=list)


class IndustrySpecific(_ContractModel):
    compliance_score: Score = 0
    compliance_notes: StringList = Field(default_factory=list)
    industry_best_practices: _sub_model(BestPractices) = Field(default_factory=BestPractices)


class NormalizedAnalysis(_ContractModel):
    """Canonical, fully defaulted analysis report."""

    model_used: Optional[str] = None
    language: Annotated[str, BeforeValidator(_text_or("unknown"))] = "unknown"
    duration_sec: Number = 0
    transcription: Text = ""
    summary: Text = ""
    mom: _sub_model(MinutesOfMeeting) = Field(default_factory=MinutesOfMeeting)
    insights: _sub_model(Insights) = Field(default_factory=Insights)
    conversation_metrics: _sub_model(ConversationMetrics) = Field(
        default_factory=ConversationMetrics
    )
    conversation_segments: Annotated[
        List[ConversationSegment], BeforeValidator(_mapping_items)
    ] = Field(default_factory=list)
    key_moments: Annotated[List[KeyMoment], BeforeValidator(_mapping_items)] = Field(
        default_factory=list
    )
    coaching: _sub_model(Coaching) = Field(default_factory=Coaching)
    predictions: _sub_model(Predictions) = Field(default_factory=Predictions)
    customer_profile: _sub_model(CustomerProfile) = Field(default_factory=CustomerProfile)
    action_items: _sub_model(ActionItems) = Field(default_factory=ActionItems)
    industry_specific: _sub_model(IndustrySpecific) = Field(default_factory=IndustrySpecific)

    def to_payload(self) -> dict[str, Any]:
        """camelCase JSON-ready document, as stored and returned to clients."""

        return self.model_dump(by_alias=True, mode="json")


def clean_json_payload(payload: str) -> str:
    """Strip Markdown code blocks and find the first/last brace to extract JSON."""
    if not payload:
        return ""

    cleaned = payload.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]

    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]

    cleaned = cleaned.strip()

    start = cleaned.find("{")
    end = cleaned.rfind("}")

    if start != -1 and end != -1 and end > start:
        cleaned = cleaned[start : end + 1]

    return cleaned


__all__ = [
    "ActionItems",
    "Coaching",
    "ConversationMetrics",
    "ConversationSegment",
    "CustomerProfile",
    "ForcedSale",
    "IndustrySpecific",
    "Insights",
    "KeyMoment",
    "MinutesOfMeeting",
    "NormalizedAnalysis",
    "clean_json_payload",
    "Predictions",
]
