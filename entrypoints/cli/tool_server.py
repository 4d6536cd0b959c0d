# entrypoints/cli/tool_server.py
from __future__ import annotations

import sys

import typer

from dealflow.adapters.config import config
from dealflow.adapters.llm_client import make_completion_client
from dealflow.services.ai_agent import PropertyAIAgent
from dealflow.services.tool_server import ToolServer

app = typer.Typer(help="DealFlow tool server (line-delimited JSON over stdin/stdout).")


@app.command()
def main(
    no_ai: bool = typer.Option(False, "--no-ai", help="Serve metrics only, never call the LLM."),
) -> None:
    """
    Read one JSON request per line on stdin, write one JSON response per line on stdout.
    Logs go to stderr so they never corrupt the protocol stream.
    """
    agent = None
    if not no_ai:
        client = make_completion_client()
        if client is not None:
            agent = PropertyAIAgent(client, max_workers=config.AI_MAX_WORKERS)
        else:
            typer.echo("DEALFLOW_ANTHROPIC_API_KEY not set; AI tools disabled.", err=True)

    ToolServer(agent).serve(sys.stdin, sys.stdout)


if __name__ == "__main__":
    app()
