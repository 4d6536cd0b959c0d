# tests/test_ai_agent.py
import json

import pytest

from dealflow.analysis.metrics import analyze_property
from dealflow.domain.property import parse_property_location, parse_property_parameters
from dealflow.services.ai_agent import (
    AIResponseParseError,
    AIServiceError,
    PropertyAIAgent,
    ai_unavailable,
    decode_json_reply,
)

RAW = {
    "address": "12 Elm St",
    "city": "Austin",
    "state": "TX",
    "zipCode": "78701",
    "purchasePrice": 300000,
    "monthlyRent": 2000,
    "propertyTax": 3000,
    "insurance": 1200,
}

ULTRA = {"investmentGrade": "C", "finalVerdict": "PASS - negative cash flow", "confidenceLevel": "High"}
MARKET = {"trend": "Warm", "rentGrowth": "3%", "outlook": "Neutral"}
RISK = {"risks": [{"type": "Financial", "level": "HIGH", "description": "x", "mitigation": "y"}], "overallRisk": "HIGH"}
DEMO = {"population": "960,000", "crimeRate": "Medium"}


def _inputs():
    params = parse_property_parameters(RAW)
    return parse_property_location(RAW), params, analyze_property(params)


def test_decode_plain_json():
    assert decode_json_reply('{"a": 1}') == {"a": 1}


def test_decode_fenced_json():
    reply = "```json\n{\"trend\": \"Hot\"}\n```"
    assert decode_json_reply(reply) == {"trend": "Hot"}


def test_decode_json_with_surrounding_prose():
    reply = 'Here is the analysis:\n{"grade": "A", "notes": {"x": 1}}\nHope this helps.'
    assert decode_json_reply(reply) == {"grade": "A", "notes": {"x": 1}}


@pytest.mark.parametrize("reply", ["", "no json here", "[1, 2, 3]", "{broken"])
def test_decode_rejects_unusable_replies(reply):
    with pytest.raises(AIResponseParseError):
        decode_json_reply(reply)


def test_analyze_combines_four_insights(fake_llm):
    client = fake_llm(
        replies={
            "ultra": json.dumps(ULTRA),
            "market": "```json\n" + json.dumps(MARKET) + "\n```",
            "risk": json.dumps(RISK),
            "demographics": json.dumps(DEMO),
        }
    )
    out = PropertyAIAgent(client).analyze(*_inputs())

    assert out["aiPowered"] is True
    assert out["ultraThink"] == ULTRA
    assert out["marketSentiment"] == MARKET
    assert out["riskAssessment"] == RISK
    assert out["demographics"] == DEMO
    assert out["timestamp"]
    assert sorted(client.calls) == ["demographics", "market", "risk", "ultra"]


def test_unparsable_ultra_think_falls_back_to_hold(fake_llm):
    client = fake_llm(replies={"ultra": "I think this is a decent deal overall."})
    out = PropertyAIAgent(client).ultra_think_analysis(*_inputs())

    assert out["investmentGrade"] == "B"
    assert out["finalVerdict"].startswith("HOLD")


def test_ultra_think_request_failure_propagates(fake_llm):
    client = fake_llm(errors={"ultra"})
    agent = PropertyAIAgent(client)

    with pytest.raises(AIServiceError):
        agent.ultra_think_analysis(*_inputs())
    with pytest.raises(AIServiceError):
        agent.analyze(*_inputs())


def test_secondary_failures_degrade_to_fallbacks(fake_llm):
    client = fake_llm(
        replies={"ultra": json.dumps(ULTRA), "demographics": "not json"},
        errors={"market", "risk"},
    )
    out = PropertyAIAgent(client).analyze(*_inputs())

    assert out["ultraThink"] == ULTRA
    assert out["marketSentiment"]["trend"] == "Unknown"
    assert out["marketSentiment"]["jobMarket"] == "Unknown"
    assert out["riskAssessment"]["overallRisk"] == "MEDIUM"
    assert out["riskAssessment"]["risks"][0]["type"] == "System Error"
    assert out["demographics"]["industries"] == "Data unavailable"


def test_market_data_uses_city_and_state(fake_llm):
    client = fake_llm(replies={"market": json.dumps(MARKET), "demographics": json.dumps(DEMO)})
    out = PropertyAIAgent(client).market_data("Austin", "TX")

    assert out == {"marketSentiment": MARKET, "demographics": DEMO}


def test_prompts_carry_the_computed_metrics():
    seen = {}

    class Recorder:
        def complete(self, *, system, prompt, temperature, max_tokens):
            seen["prompt"] = prompt
            seen["temperature"] = temperature
            return "{}"

    PropertyAIAgent(Recorder()).ultra_think_analysis(*_inputs())
    assert "12 Elm St, Austin, TX 78701" in seen["prompt"]
    assert "$300,000.00" in seen["prompt"]
    assert "AVOID" in seen["prompt"]
    assert seen["temperature"] == 0.3


def test_ai_unavailable_record():
    assert ai_unavailable("down") == {"aiPowered": False, "error": "down"}
