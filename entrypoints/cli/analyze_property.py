# entrypoints/cli/analyze_property.py
from __future__ import annotations

import json
from typing import Optional

import typer

from dealflow.analysis.metrics import analyze_property
from dealflow.domain.property import InvalidPropertyParameters, parse_property_parameters

app = typer.Typer(help="Analyse one rental property from the command line.")


@app.command()
def main(
    purchase_price: float = typer.Option(..., "--price", help="Purchase price"),
    monthly_rent: float = typer.Option(..., "--rent", help="Monthly rent"),
    down_payment_percent: float = typer.Option(20.0, "--down", help="Down payment, percent"),
    interest_rate: float = typer.Option(7.0, "--rate", help="Annual interest rate, percent"),
    loan_term: int = typer.Option(30, "--term", help="Loan term in years"),
    property_tax: float = typer.Option(0.0, "--tax", help="Annual property tax"),
    insurance: float = typer.Option(0.0, "--insurance", help="Annual insurance"),
    hoa_fees: float = typer.Option(0.0, "--hoa", help="Monthly HOA fees"),
    maintenance_percent: float = typer.Option(1.0, "--maintenance", help="Maintenance, percent of rent"),
    vacancy_percent: float = typer.Option(5.0, "--vacancy", help="Vacancy, percent of rent"),
    management_percent: float = typer.Option(10.0, "--management", help="Management, percent of rent"),
    output: Optional[str] = typer.Option(None, "--out", help="Write the JSON report here instead of stdout"),
) -> None:
    try:
        params = parse_property_parameters(
            {
                "purchasePrice": purchase_price,
                "monthlyRent": monthly_rent,
                "downPaymentPercent": down_payment_percent,
                "interestRate": interest_rate,
                "loanTerm": loan_term,
                "propertyTax": property_tax,
                "insurance": insurance,
                "hoaFees": hoa_fees,
                "maintenancePercent": maintenance_percent,
                "vacancyPercent": vacancy_percent,
                "propertyManagementPercent": management_percent,
            }
        )
        report = analyze_property(params).to_dict()
    except InvalidPropertyParameters as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=2)

    text = json.dumps(report, indent=2)

    if output:
        with open(output, "w", encoding="utf-8") as fh:
            fh.write(text + "\n")
        typer.echo(f"Wrote {output}")
    else:
        typer.echo(text)

    rec = report["recommendation"]
    typer.echo(f"{rec['verdict']}: {rec['reason']}", err=True)


if __name__ == "__main__":
    app()
