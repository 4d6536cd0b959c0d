from dataclasses import dataclass
from typing import Any, Literal, Optional

Verdict = Literal["AVOID", "MARGINAL", "GOOD", "EXCELLENT"]


@dataclass(frozen=True)
class PurchaseInfo:
    purchase_price: float
    down_payment: float
    down_payment_percent: float
    loan_amount: float
    interest_rate: float     # annual, percent
    loan_term: int           # years

    def to_dict(self) -> dict[str, Any]:
        return {
            "purchasePrice": self.purchase_price,
            "downPayment": self.down_payment,
            "downPaymentPercent": self.down_payment_percent,
            "loanAmount": self.loan_amount,
            "interestRate": self.interest_rate,
            "loanTerm": self.loan_term,
        }


@dataclass(frozen=True)
class MonthlyNumbers:
    rent: float
    mortgage: float          # principal + interest
    property_tax: float
    insurance: float
    hoa: float
    maintenance: float
    vacancy: float
    management: float
    total_expenses: float    # sum of the seven lines above
    cash_flow: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "rent": self.rent,
            "mortgage": self.mortgage,
            "propertyTax": self.property_tax,
            "insurance": self.insurance,
            "hoa": self.hoa,
            "maintenance": self.maintenance,
            "vacancy": self.vacancy,
            "management": self.management,
            "totalExpenses": self.total_expenses,
            "cashFlow": self.cash_flow,
        }


@dataclass(frozen=True)
class AnnualNumbers:
    rent: float
    cash_flow: float
    noi: float               # excludes debt service

    def to_dict(self) -> dict[str, Any]:
        return {"rent": self.rent, "cashFlow": self.cash_flow, "noi": self.noi}


@dataclass(frozen=True)
class Metrics:
    # percents rounded to 2 decimals; None when the denominator is zero
    cap_rate: Optional[float]
    cash_on_cash_return: Optional[float]
    roi: Optional[float]

    def to_dict(self) -> dict[str, Any]:
        return {
            "capRate": self.cap_rate,
            "cashOnCashReturn": self.cash_on_cash_return,
            "roi": self.roi,
        }


@dataclass(frozen=True)
class Recommendation:
    verdict: Verdict
    reason: str
    color: str

    def to_dict(self) -> dict[str, Any]:
        return {"verdict": self.verdict, "reason": self.reason, "color": self.color}


@dataclass(frozen=True)
class FinancialReport:
    purchase_info: PurchaseInfo
    monthly_numbers: MonthlyNumbers
    annual_numbers: AnnualNumbers
    metrics: Metrics
    recommendation: Recommendation

    def to_dict(self) -> dict[str, Any]:
        return {
            "purchaseInfo": self.purchase_info.to_dict(),
            "monthlyNumbers": self.monthly_numbers.to_dict(),
            "annualNumbers": self.annual_numbers.to_dict(),
            "metrics": self.metrics.to_dict(),
            "recommendation": self.recommendation.to_dict(),
        }
