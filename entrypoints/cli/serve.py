# entrypoints/cli/serve.py
from __future__ import annotations

import typer
import uvicorn

from dealflow.adapters.config import config

app = typer.Typer(help="Run the DealFlow HTTP API.")


@app.command()
def main(
    host: str = typer.Option("127.0.0.1", help="Bind address"),
    port: int = typer.Option(5000, help="Port"),
    reload: bool = typer.Option(False, help="Auto-reload on code changes (dev only)"),
) -> None:
    typer.echo(f"DealFlow API on http://{host}:{port}/api (env={config.ENV}, db={config.DB_URI})", err=True)
    uvicorn.run(
        "dealflow.api.http:app",
        host=host,
        port=port,
        reload=reload,
        log_level=config.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    app()
