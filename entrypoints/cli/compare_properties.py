# entrypoints/cli/compare_properties.py
from __future__ import annotations

from typing import Optional

import typer

from dealflow.adapters.storage import read_properties, write_ranking
from dealflow.analysis.comparison import compare_frame

app = typer.Typer(help="Rank a CSV/parquet/JSON(L) file of properties by ROI.")


@app.command()
def main(
    input_path: str = typer.Argument(..., help="Properties file (one row per property)"),
    output: Optional[str] = typer.Option(None, "--out", help="Write the ranking here (csv/parquet/json)"),
    top: int = typer.Option(20, help="Rows to print"),
) -> None:
    """
    Columns may be camelCase (purchasePrice) or snake_case (purchase_price);
    missing optional columns fall back to the standard defaults.
    """
    df = read_properties(input_path)
    if df.empty:
        raise typer.BadParameter(f"{input_path} has no rows")

    ranked = compare_frame(df)

    failed = int(ranked["error"].notna().sum())
    typer.echo(f"Analysed {len(ranked)} properties ({failed} rejected)")
    typer.echo(ranked.head(top).to_string(index=False))

    if output:
        write_ranking(ranked, output)
        typer.echo(f"Wrote {output}")


if __name__ == "__main__":
    app()
