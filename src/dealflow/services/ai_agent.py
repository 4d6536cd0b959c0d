# src/dealflow/services/ai_agent.py
from __future__ import annotations

import json
import re
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any

from dealflow.adapters.logging_utils import get_logger
from dealflow.domain.ports import CompletionClient
from dealflow.domain.property import PropertyLocation, PropertyParameters
from dealflow.domain.report import FinancialReport

logger = get_logger(__name__)


class AIServiceError(RuntimeError):
    pass


class AIResponseParseError(ValueError):
    pass


_FENCE_RE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


def decode_json_reply(text: str) -> dict[str, Any]:
    """
    Models are told to answer with bare JSON but often wrap it in ``` fences
    or add a sentence around it. Strip fences, then fall back to the outermost {...}.
    """
    cleaned = _FENCE_RE.sub("", text or "").strip()
    if not cleaned:
        raise AIResponseParseError("empty reply")

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            raise AIResponseParseError("no JSON object in reply") from None
        try:
            data = json.loads(cleaned[start:end + 1])
        except json.JSONDecodeError as e:
            raise AIResponseParseError(f"invalid JSON: {e.msg}") from e

    if not isinstance(data, dict):
        raise AIResponseParseError(f"expected a JSON object, got {type(data).__name__}")
    return data


# ---------------------------------------------------------------------
# Fallback records (returned when a reply cannot be used)
# ---------------------------------------------------------------------

def _ultra_think_fallback() -> dict[str, Any]:
    return {
        "investmentGrade": "B",
        "riskLevel": "Medium",
        "marketPosition": "Fair market value",
        "cashFlowAnalysis": "Analysis unavailable",
        "whyInvest": ["Unable to generate detailed analysis"],
        "whyNotInvest": ["AI parsing error - review metrics manually"],
        "comparableAnalysis": "Manual review recommended",
        "fiveYearProjection": "Consult with local market experts",
        "alternativeStrategies": ["Review deal parameters"],
        "finalVerdict": "HOLD - Further analysis needed",
        "confidenceLevel": "Low",
    }


def _market_fallback(job_market: str = "Moderate", population: str = "Stable") -> dict[str, Any]:
    return {
        "trend": "Unknown",
        "rentGrowth": "N/A",
        "appreciation": "N/A",
        "jobMarket": job_market,
        "populationTrend": population,
        "outlook": "Neutral",
    }


def _risk_fallback(kind: str, description: str, mitigation: str) -> dict[str, Any]:
    return {
        "risks": [
            {
                "type": kind,
                "level": "MEDIUM",
                "description": description,
                "mitigation": mitigation,
            }
        ],
        "overallRisk": "MEDIUM",
    }


def _demographics_fallback() -> dict[str, Any]:
    return {
        "population": "N/A",
        "growthRate": "N/A",
        "medianIncome": "N/A",
        "medianAge": "N/A",
        "education": "N/A",
        "employment": "N/A",
        "industries": "Data unavailable",
        "renterRatio": "N/A",
        "crimeRate": "Unknown",
        "schoolRating": "N/A",
        "walkability": "N/A",
    }


# ---------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------

def _money(v: float) -> str:
    return f"${v:,.2f}"


def _pct(v: float | None) -> str:
    return "N/A (no cash invested)" if v is None else f"{v}%"


def _ultra_think_prompt(loc: PropertyLocation, params: PropertyParameters, report: FinancialReport) -> str:
    return f"""You are an expert real estate investment advisor with 20+ years of experience. Analyze this property investment opportunity and provide detailed reasoning.

PROPERTY DATA:
- Location: {loc.label()}
- Purchase Price: {_money(params.purchase_price)}
- Monthly Rent: {_money(params.monthly_rent)}
- Down Payment: {params.down_payment_percent}%
- Interest Rate: {params.interest_rate}%
- Loan Term: {params.loan_term} years

CALCULATED METRICS:
- Monthly Cash Flow: {_money(report.monthly_numbers.cash_flow)}
- Cap Rate: {_pct(report.metrics.cap_rate)}
- Cash-on-Cash Return: {_pct(report.metrics.cash_on_cash_return)}
- ROI: {_pct(report.metrics.roi)}
- Net Operating Income (Annual): {_money(report.annual_numbers.noi)}
- Rule-based verdict: {report.recommendation.verdict}

Respond with a single JSON object with these keys:
investmentGrade (A+ to F), riskLevel (Low/Medium/High), marketPosition,
cashFlowAnalysis, whyInvest (3-5 strings), whyNotInvest (3-5 strings),
comparableAnalysis, fiveYearProjection, alternativeStrategies (list of strings),
finalVerdict (BUY/HOLD/PASS with a short reason), confidenceLevel (Low/Medium/High).

Be brutally honest. If it's a bad deal, say so clearly. If it's excellent, explain why.
Return ONLY valid JSON, no markdown or additional text."""


def _market_prompt(city: str, state: str) -> str:
    return f"""Analyze the real estate market for {city}, {state}. Provide:
1. trend: current market trend (Hot/Warm/Cool/Cold)
2. rentGrowth: average rent growth (% annually)
3. appreciation: average property appreciation (% annually)
4. jobMarket: job market strength (Strong/Moderate/Weak)
5. populationTrend: population trend (Growing/Stable/Declining)
6. outlook: investment outlook (Bullish/Neutral/Bearish)

Return as JSON only."""


def _risk_prompt(loc: PropertyLocation, params: PropertyParameters, report: FinancialReport) -> str:
    return f"""Analyze investment risks for this property:

Location: {loc.city or 'Unknown'}, {loc.state or 'Unknown'}
Purchase Price: {_money(params.purchase_price)}
Monthly Cash Flow: {_money(report.monthly_numbers.cash_flow)}
Cap Rate: {_pct(report.metrics.cap_rate)}

Identify:
1. Financial risks (e.g., negative cash flow, low cap rate)
2. Market risks (e.g., declining area, oversupply)
3. Property risks (e.g., age, maintenance, tenant issues)
4. Economic risks (e.g., job market, interest rate sensitivity)
5. Exit strategy risks

Rate each risk: LOW/MEDIUM/HIGH
Provide mitigation strategies.

Return as JSON with: {{"risks": [{{"type", "level", "description", "mitigation"}}], "overallRisk": "LOW/MEDIUM/HIGH"}}"""


def _demographics_prompt(city: str, state: str, zip_code: str) -> str:
    return f"""Provide demographic insights for {city}, {state} {zip_code}:

1. population: population size
2. growthRate: population growth rate
3. medianIncome: median household income
4. medianAge: median age
5. education: % college educated
6. employment: employment rate
7. industries: major industries/employers
8. renterRatio: renter vs homeowner ratio
9. crimeRate: Low/Medium/High
10. schoolRating: 1-10
11. walkability: walkability/transit score

Return as JSON only."""


_SYSTEM_ANALYST = "You are an expert real estate investment analyst. Always respond with valid JSON only."
_SYSTEM_MARKET = "You are a real estate market analyst. Respond with JSON only."
_SYSTEM_RISK = "You are a risk assessment expert for real estate. Respond with JSON only."
_SYSTEM_DEMOGRAPHICS = "You are a demographic analyst. Provide accurate data when available. Return JSON only."


class PropertyAIAgent:
    """
    Narrative layer on top of the metrics engine.

    Every call goes through an injected CompletionClient so tests (and the tool
    server) never need network access.
    """

    def __init__(self, client: CompletionClient, *, max_workers: int = 4) -> None:
        self.client = client
        self.max_workers = max_workers

    def _ask(self, *, system: str, prompt: str, temperature: float, max_tokens: int) -> str:
        try:
            return self.client.complete(
                system=system,
                prompt=prompt,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except Exception as e:
            raise AIServiceError(str(e)) from e

    def _decode_or_fallback(self, call: str, reply: str, fallback: dict[str, Any]) -> dict[str, Any]:
        try:
            return decode_json_reply(reply)
        except AIResponseParseError as e:
            logger.warning(
                "ai_reply_unparsable",
                extra={"context": {"call": call, "error": str(e), "reply_head": (reply or "")[:200]}},
            )
            return fallback

    def ultra_think_analysis(
        self,
        location: PropertyLocation,
        params: PropertyParameters,
        report: FinancialReport,
    ) -> dict[str, Any]:
        """
        Deep buy/hold/pass reasoning. A failed request raises AIServiceError;
        an unusable reply degrades to a HOLD fallback record.
        """
        reply = self._ask(
            system=_SYSTEM_ANALYST,
            prompt=_ultra_think_prompt(location, params, report),
            temperature=0.3,
            max_tokens=4000,
        )
        return self._decode_or_fallback("ultra_think", reply, _ultra_think_fallback())

    def market_sentiment(self, city: str, state: str) -> dict[str, Any]:
        try:
            reply = self._ask(
                system=_SYSTEM_MARKET,
                prompt=_market_prompt(city, state),
                temperature=0.2,
                max_tokens=1000,
            )
        except AIServiceError as e:
            logger.warning("ai_call_failed", extra={"context": {"call": "market_sentiment", "error": str(e)}})
            return _market_fallback(job_market="Unknown", population="Unknown")
        return self._decode_or_fallback("market_sentiment", reply, _market_fallback())

    def assess_risks(
        self,
        location: PropertyLocation,
        params: PropertyParameters,
        report: FinancialReport,
    ) -> dict[str, Any]:
        try:
            reply = self._ask(
                system=_SYSTEM_RISK,
                prompt=_risk_prompt(location, params, report),
                temperature=0.2,
                max_tokens=2000,
            )
        except AIServiceError as e:
            logger.warning("ai_call_failed", extra={"context": {"call": "assess_risks", "error": str(e)}})
            return _risk_fallback(
                "System Error",
                "Risk analysis temporarily unavailable",
                "Manual review recommended",
            )
        return self._decode_or_fallback(
            "assess_risks",
            reply,
            _risk_fallback(
                "Analysis Error",
                "Unable to perform automated risk analysis",
                "Consult with a local real estate professional",
            ),
        )

    def demographic_insights(self, city: str, state: str, zip_code: str = "") -> dict[str, Any]:
        try:
            reply = self._ask(
                system=_SYSTEM_DEMOGRAPHICS,
                prompt=_demographics_prompt(city, state, zip_code),
                temperature=0.1,
                max_tokens=1500,
            )
        except AIServiceError as e:
            logger.warning("ai_call_failed", extra={"context": {"call": "demographics", "error": str(e)}})
            return _demographics_fallback()
        return self._decode_or_fallback("demographics", reply, _demographics_fallback())

    def analyze(
        self,
        location: PropertyLocation,
        params: PropertyParameters,
        report: FinancialReport,
    ) -> dict[str, Any]:
        """
        Run the four insight calls in parallel and combine them.
        Only an ultra-think request failure propagates (AIServiceError).
        """
        city = location.city or ""
        state = location.state or ""
        zip_code = location.zip_code or ""

        logger.info("ai_analysis_started", extra={"context": {"location": location.label()}})

        with ThreadPoolExecutor(max_workers=self.max_workers) as ex:
            f_ultra = ex.submit(self.ultra_think_analysis, location, params, report)
            f_market = ex.submit(self.market_sentiment, city, state)
            f_risk = ex.submit(self.assess_risks, location, params, report)
            f_demo = ex.submit(self.demographic_insights, city, state, zip_code)

            result = {
                "ultraThink": f_ultra.result(),
                "marketSentiment": f_market.result(),
                "riskAssessment": f_risk.result(),
                "demographics": f_demo.result(),
                "aiPowered": True,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }

        logger.info("ai_analysis_complete", extra={"context": {"location": location.label()}})
        return result

    def market_data(self, city: str, state: str) -> dict[str, Any]:
        return {
            "marketSentiment": self.market_sentiment(city, state),
            "demographics": self.demographic_insights(city, state, ""),
        }


def ai_unavailable(reason: str) -> dict[str, Any]:
    return {"aiPowered": False, "error": reason}
