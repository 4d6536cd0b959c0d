# src/dealflow/services/tool_server.py
from __future__ import annotations

import json
from typing import Any, Callable, TextIO

from dealflow.adapters.logging_utils import get_logger
from dealflow.analysis.comparison import compare_properties
from dealflow.analysis.metrics import analyze_property
from dealflow.domain.property import parse_property_location, parse_property_parameters
from dealflow.services.ai_agent import AIServiceError, PropertyAIAgent, ai_unavailable

logger = get_logger(__name__)

ToolFn = Callable[[dict[str, Any]], dict[str, Any]]


class ToolServer:
    """
    Line-delimited JSON tool protocol for agent integrations.

    Request:  {"method": "list_tools"}
              {"method": "call_tool", "params": {"tool": "...", "arguments": {...}}}
    Response: one JSON object per request line.
    """

    def __init__(self, agent: PropertyAIAgent | None = None) -> None:
        self.agent = agent
        self.tools: dict[str, tuple[ToolFn, str]] = {
            "analyze_property": (
                self.analyze_property,
                "Compute investment metrics for a property and add AI insights.",
            ),
            "get_market_data": (
                self.get_market_data,
                "Market sentiment and demographics for a city/state.",
            ),
            "compare_properties": (
                self.compare_properties,
                "Analyse several properties and rank them by ROI.",
            ),
        }

    # -----------------------------
    # tools
    # -----------------------------
    def analyze_property(self, args: dict[str, Any]) -> dict[str, Any]:
        try:
            location = parse_property_location(args)
            params = parse_property_parameters(args)
            report = analyze_property(params)

            if self.agent is None:
                insights = ai_unavailable("AI insights are not configured")
            else:
                try:
                    insights = self.agent.analyze(location, params, report)
                except AIServiceError as e:
                    logger.warning("tool_ai_failed", extra={"context": {"error": str(e)}})
                    insights = ai_unavailable(f"Failed to generate AI analysis: {e}")

            return {
                "success": True,
                "property": location.model_dump(by_alias=True),
                "financialMetrics": report.to_dict(),
                "aiInsights": insights,
            }
        except ValueError as e:
            return {"success": False, "error": str(e)}

    def get_market_data(self, args: dict[str, Any]) -> dict[str, Any]:
        city = str(args.get("city") or "").strip()
        state = str(args.get("state") or "").strip()
        if not city or not state:
            return {"success": False, "error": "city and state are required"}
        if self.agent is None:
            return {"success": False, "error": "AI insights are not configured"}

        data = self.agent.market_data(city, state)
        return {"success": True, "location": {"city": city, "state": state}, **data}

    def compare_properties(self, args: dict[str, Any]) -> dict[str, Any]:
        props = args.get("properties")
        if not isinstance(props, list) or not all(isinstance(p, dict) for p in props):
            return {"success": False, "error": "properties must be a list of objects"}
        try:
            return compare_properties(props)
        except ValueError as e:
            return {"success": False, "error": str(e)}

    # -----------------------------
    # protocol
    # -----------------------------
    def handle_message(self, message: str) -> str:
        try:
            request = json.loads(message)
            if not isinstance(request, dict):
                raise ValueError("request must be a JSON object")

            method = request.get("method")
            params = request.get("params") or {}
            if not isinstance(params, dict):
                raise ValueError("params must be a JSON object")

            if method == "list_tools":
                return json.dumps(
                    {"tools": [{"name": name, "description": desc} for name, (_, desc) in self.tools.items()]}
                )

            if method == "call_tool":
                tool = params.get("tool")
                entry = self.tools.get(tool) if isinstance(tool, str) else None
                if entry is None:
                    raise ValueError(f"Tool not found: {tool}")
                arguments = params.get("arguments") or {}
                if not isinstance(arguments, dict):
                    raise ValueError("arguments must be a JSON object")
                fn, _ = entry
                return json.dumps(self._run_tool(tool, fn, arguments))

            raise ValueError(f"Unknown method: {method}")
        except ValueError as e:
            # json.JSONDecodeError is a ValueError
            return json.dumps({"error": str(e)})

    def _run_tool(self, name: str, fn: ToolFn, arguments: dict[str, Any]) -> dict[str, Any]:
        # one failing call must not end the session
        try:
            return fn(arguments)
        except Exception as e:
            logger.exception("tool_failed", extra={"context": {"tool": name}})
            return {"success": False, "error": f"{name} failed: {e}"}

    def serve(self, stdin: TextIO, stdout: TextIO) -> None:
        logger.info("tool_server_started", extra={"context": {"tools": list(self.tools)}})
        for line in stdin:
            if not line.strip():
                continue
            stdout.write(self.handle_message(line) + "\n")
            stdout.flush()
