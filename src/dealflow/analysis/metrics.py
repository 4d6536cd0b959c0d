import math
from typing import Dict, Optional

from dealflow.domain.property import InvalidPropertyParameters, PropertyParameters
from dealflow.domain.report import (
    AnnualNumbers,
    FinancialReport,
    Metrics,
    MonthlyNumbers,
    PurchaseInfo,
    Recommendation,
)


def monthly_mortgage_payment(principal: float, annual_rate_pct: float, years: int) -> float:
    """
    Standard fixed-rate amortization formula:
    M = P * [ r(1+r)^n / ((1+r)^n - 1) ]
    P = loan principal
    r = monthly interest rate (annual percent / 100 / 12)
    n = number of payments (months)

    A 0% loan is repaid straight-line: P / n.
    """
    r = annual_rate_pct / 100.0 / 12.0
    n = years * 12

    if r == 0:
        return principal / n

    # (1+r)^n - 1 without cancellation, so tiny rates stay finite
    growth_less_one = math.expm1(n * math.log1p(r))
    if growth_less_one == 0:
        return principal / n
    return principal * (r / growth_less_one) * (growth_less_one + 1)


def monthly_expenses(params: PropertyParameters, mortgage: float) -> Dict[str, float]:
    """
    Every monthly outflow, mortgage included.
    Percent-of-rent lines are charged on gross scheduled rent.
    """
    rent = params.monthly_rent

    property_tax = params.property_tax / 12.0
    insurance = params.insurance / 12.0
    hoa = params.hoa_fees
    maintenance = rent * params.maintenance_percent / 100.0
    vacancy = rent * params.vacancy_percent / 100.0
    management = rent * params.property_management_percent / 100.0

    total = mortgage + property_tax + insurance + hoa + maintenance + vacancy + management

    return {
        "mortgage": mortgage,
        "property_tax": property_tax,
        "insurance": insurance,
        "hoa": hoa,
        "maintenance": maintenance,
        "vacancy": vacancy,
        "management": management,
        "total": total,
    }


def net_operating_income(params: PropertyParameters) -> float:
    """
    Annual NOI: rent minus operating expenses. Mortgage is financing, not operations,
    so it is not subtracted here.
    """
    annual_rent = params.monthly_rent * 12.0
    rent_pct = params.maintenance_percent + params.vacancy_percent + params.property_management_percent

    annual_expenses = (
        params.property_tax
        + params.insurance
        + params.hoa_fees * 12.0
        + annual_rent * rent_pct / 100.0
    )
    return annual_rent - annual_expenses


def _pct(numerator: float, denominator: float) -> Optional[float]:
    if denominator == 0:
        return None
    return round(numerator / denominator * 100.0, 2)


def classify_recommendation(monthly_cash_flow: float, roi: Optional[float]) -> Recommendation:
    """
    First matching rule wins:
      1. negative cash flow                -> AVOID
      2. cash flow < $100 or roi < 5%      -> MARGINAL
      3. roi >= 10% and cash flow >= $200  -> EXCELLENT
      4. anything else                     -> GOOD

    roi is None for zero-down deals; the roi clauses are then skipped.
    """
    if monthly_cash_flow < 0:
        return Recommendation(
            verdict="AVOID",
            reason="Negative cash flow - This property will cost you money every month.",
            color="red",
        )
    if monthly_cash_flow < 100 or (roi is not None and roi < 5):
        return Recommendation(
            verdict="MARGINAL",
            reason="Low returns - Consider negotiating a better price or finding higher rent.",
            color="yellow",
        )
    if roi is not None and roi >= 10 and monthly_cash_flow >= 200:
        return Recommendation(
            verdict="EXCELLENT",
            reason="Strong deal! This meets the 1% rule and provides solid cash flow.",
            color="green",
        )
    return Recommendation(
        verdict="GOOD",
        reason="Decent investment with positive cash flow.",
        color="blue",
    )


def _check_finite(report: FinancialReport) -> None:
    figures = {
        "mortgage": report.monthly_numbers.mortgage,
        "totalExpenses": report.monthly_numbers.total_expenses,
        "cashFlow": report.annual_numbers.cash_flow,
        "noi": report.annual_numbers.noi,
        "capRate": report.metrics.cap_rate,
        "roi": report.metrics.roi,
    }
    bad = {
        name: "result is not a finite number"
        for name, value in figures.items()
        if value is not None and not math.isfinite(value)
    }
    if bad:
        raise InvalidPropertyParameters(bad)


def analyze_property(params: PropertyParameters) -> FinancialReport:
    """
    Core underwriting brain. Pure: same parameters, same report.

    Raises InvalidPropertyParameters when the parameters would produce a
    figure that is not a finite number (the API reports it as a 400).
    """

    # --- financing basics ---
    purchase_price = params.purchase_price
    down_payment = purchase_price * params.down_payment_percent / 100.0
    loan_amount = purchase_price - down_payment

    try:
        mortgage = monthly_mortgage_payment(
            principal=loan_amount,
            annual_rate_pct=params.interest_rate,
            years=params.loan_term,
        )
    except OverflowError as e:
        raise InvalidPropertyParameters(
            {"loanTerm": "interest rate and loan term overflow the payment schedule"}
        ) from e

    # --- monthly picture ---
    opx = monthly_expenses(params, mortgage)
    monthly_cash_flow = params.monthly_rent - opx["total"]
    annual_cash_flow = monthly_cash_flow * 12

    # --- NOI / returns ---
    noi = net_operating_income(params)

    cap_rate = _pct(noi, purchase_price)

    # Cash-on-cash and ROI share one formula: annual cash flow / cash invested.
    cash_on_cash = _pct(annual_cash_flow, down_payment)
    roi = _pct(annual_cash_flow, down_payment)

    report = FinancialReport(
        purchase_info=PurchaseInfo(
            purchase_price=purchase_price,
            down_payment=down_payment,
            down_payment_percent=params.down_payment_percent,
            loan_amount=loan_amount,
            interest_rate=params.interest_rate,
            loan_term=params.loan_term,
        ),
        monthly_numbers=MonthlyNumbers(
            rent=params.monthly_rent,
            mortgage=opx["mortgage"],
            property_tax=opx["property_tax"],
            insurance=opx["insurance"],
            hoa=opx["hoa"],
            maintenance=opx["maintenance"],
            vacancy=opx["vacancy"],
            management=opx["management"],
            total_expenses=opx["total"],
            cash_flow=monthly_cash_flow,
        ),
        annual_numbers=AnnualNumbers(
            rent=params.monthly_rent * 12,
            cash_flow=annual_cash_flow,
            noi=noi,
        ),
        metrics=Metrics(
            cap_rate=cap_rate,
            cash_on_cash_return=cash_on_cash,
            roi=roi,
        ),
        recommendation=classify_recommendation(monthly_cash_flow, roi),
    )
    _check_finite(report)
    return report
