"""Defensive parsing of model answers into the canonical report."""

from __future__ import annotations

import json

import pytest

from callscope.pipelines.analysis import MalformedModelOutput, filter_sentinels, normalize_result


def test_empty_object_yields_fully_defaulted_report():
    analysis = normalize_result("{}", "model-a")
    payload = analysis.to_payload()

    assert payload["modelUsed"] == "model-a"
    assert payload["language"] == "unknown"
    assert payload["durationSec"] == 0
    assert payload["transcription"] == ""
    assert payload["mom"] == {
        "participants": [],
        "decisions": [],
        "actionItems": [],
        "nextSteps": [],
    }
    assert payload["insights"]["sentiment"] == "Neutral"
    assert payload["insights"]["sentimentScore"] == 50
    assert len(payload["conversationMetrics"]) == 12
    assert payload["conversationSegments"] == []
    assert payload["keyMoments"] == []
    assert payload["coaching"]["overallScore"] == 0
    assert len(payload["coaching"]["categoryScores"]) == 8
    assert payload["coaching"]["forcedSale"] == {
        "detected": False,
        "severity": "none",
        "indicators": [],
        "feedback": "No forced sale tactics detected.",
    }
    assert payload["coaching"]["redFlags"] == []
    assert payload["predictions"] == {
        "conversionProbability": 0,
        "churnRisk": "medium",
        "escalationRisk": "low",
        "satisfactionLikely": "medium",
        "followUpNeeded": False,
        "urgencyLevel": "medium",
    }
    assert payload["customerProfile"]["communicationStyle"] == "brief"
    assert payload["customerProfile"]["pricesSensitivity"] == "medium"
    assert payload["actionItems"] == {"forAgent": [], "forManager": [], "forFollowUp": []}
    assert payload["industrySpecific"]["industryBestPractices"] == {
        "followed": [],
        "missed": [],
    }


def test_sentinel_red_flags_are_removed():
    raw = json.dumps({"coaching": {"redFlags": ["None detected", "  n/a ", "Agent lied about price"]}})

    analysis = normalize_result(raw, "model-a")

    assert analysis.coaching.red_flags == ["Agent lied about price"]


def test_sentinels_filtered_from_every_flagged_array():
    raw = json.dumps(
        {
            "coaching": {
                "missedOpportunities": ["None", "Did not offer upgrade"],
                "forcedSale": {"detected": True, "indicators": ["NO RED FLAGS DETECTED.", ""]},
                "strengths": ["None"],
            }
        }
    )

    coaching = normalize_result(raw).coaching

    assert coaching.missed_opportunities == ["Did not offer upgrade"]
    assert coaching.forced_sale.indicators == []
    assert coaching.forced_sale.detected is True
    assert coaching.strengths == ["None"]


def test_code_fence_is_stripped():
    raw = '```json\n{"summary": "Short call", "language": "Hindi"}\n```'

    analysis = normalize_result(raw, "model-b")

    assert analysis.summary == "Short call"
    assert analysis.language == "Hindi"


@pytest.mark.parametrize("raw", ["not json at all", "", "[1, 2, 3]", '"just a string"'])
def test_non_object_answers_are_malformed(raw):
    with pytest.raises(MalformedModelOutput) as excinfo:
        normalize_result(raw, "model-a")

    assert excinfo.value.kind == "malformed_model_output"
    assert excinfo.value.status_code == 502


def test_out_of_range_and_wrongly_typed_fields_fall_back():
    raw = json.dumps(
        {
            "durationSec": "abc",
            "insights": {"sentiment": "ecstatic", "sentimentScore": 0, "topics": ["pricing", 3]},
            "coaching": {"overallScore": 140, "categoryScores": {"empathy": -5}},
            "predictions": {"churnRisk": "HIGH", "followUpNeeded": "yes"},
            "keyMoments": [{"type": "unknown", "text": "Hi"}, "garbage"],
            "mom": "not an object",
        }
    )

    analysis = normalize_result(raw)

    assert analysis.duration_sec == 0
    assert analysis.insights.sentiment == "Neutral"
    assert analysis.insights.sentiment_score == 0
    assert analysis.insights.topics == ["pricing"]
    assert analysis.coaching.overall_score == 100
    assert analysis.coaching.category_scores.empathy == 0
    assert analysis.predictions.churn_risk == "high"
    assert analysis.predictions.follow_up_needed is True
    assert len(analysis.key_moments) == 1
    assert analysis.key_moments[0].type == "pain_point"
    assert analysis.mom.participants == []


def test_filter_sentinels_keeps_original_text():
    assert filter_sentinels([" Rude tone ", "N/A", "none"]) == [" Rude tone "]


def test_sentinel_example_keeps_only_real_issue():
    assert filter_sentinels(["None detected.", "Rude tone", "N/A"]) == ["Rude tone"]


def test_partial_answer_keeps_real_red_flag_and_defaults_everything_else():
    raw = '{"coaching":{"redFlags":["None","Interrupted customer twice"]}}'

    payload = normalize_result(raw, "model-c").to_payload()

    assert payload["coaching"]["redFlags"] == ["Interrupted customer twice"]
    assert payload["coaching"]["overallScore"] == 0
    assert payload["coaching"]["coachingSummary"] == ""
    assert payload["summary"] == ""
    assert payload["insights"]["sentimentScore"] == 50
    assert payload["predictions"]["escalationRisk"] == "low"


def test_number_too_large_for_a_float_falls_back_to_default():
    raw = '{"coaching": {"overallScore": 1' + "0" * 400 + '}, "durationSec": 1' + "0" * 400 + "}"

    analysis = normalize_result(raw, "model-a")

    assert analysis.coaching.overall_score == 0
    assert analysis.duration_sec == 0


def test_integer_literal_beyond_parser_limit_is_malformed():
    with pytest.raises(MalformedModelOutput):
        normalize_result('{"durationSec": 1' + "0" * 5000 + "}", "model-a")
