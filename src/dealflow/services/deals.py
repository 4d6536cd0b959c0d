# src/dealflow/services/deals.py
from __future__ import annotations

from dealflow.adapters.logging_utils import get_logger
from dealflow.domain.ports import DealRecord, DealRepository
from dealflow.domain.property import PropertyLocation, PropertyParameters
from dealflow.domain.report import FinancialReport

logger = get_logger(__name__)


def build_deal_record(
    *,
    user_id: int,
    location: PropertyLocation,
    params: PropertyParameters,
    report: FinancialReport,
) -> DealRecord:
    """
    Flatten one analysis into the saved-deal row.

    Only a subset of the report is kept (monthly cash flow + the three return metrics);
    the full report can always be recomputed from the stored parameters.
    """
    if not location.address:
        raise ValueError("Missing required field: address")

    return DealRecord(
        user_id=user_id,
        address=location.address,
        city=location.city,
        state=location.state,
        zip_code=location.zip_code,
        purchase_price=params.purchase_price,
        down_payment_percent=params.down_payment_percent,
        interest_rate=params.interest_rate,
        loan_term=params.loan_term,
        monthly_rent=params.monthly_rent,
        property_tax=params.property_tax,
        insurance=params.insurance,
        hoa_fees=params.hoa_fees,
        maintenance_percent=params.maintenance_percent,
        vacancy_percent=params.vacancy_percent,
        property_management_percent=params.property_management_percent,
        cash_flow=report.monthly_numbers.cash_flow,
        roi=report.metrics.roi,
        cap_rate=report.metrics.cap_rate,
        cash_on_cash_return=report.metrics.cash_on_cash_return,
    )


def save_deal(
    repo: DealRepository,
    *,
    user_id: int,
    location: PropertyLocation,
    params: PropertyParameters,
    report: FinancialReport,
) -> int:
    record = build_deal_record(user_id=user_id, location=location, params=params, report=report)
    deal_id = repo.save(record)
    logger.info("deal_saved", extra={"context": {"deal_id": deal_id, "user_id": user_id}})
    return deal_id


def list_deals(repo: DealRepository, *, user_id: int) -> list[DealRecord]:
    return repo.list_for_user(user_id)


def delete_deal(repo: DealRepository, *, user_id: int, deal_id: int) -> bool:
    """Delete a saved deal. Returns False when it does not exist or belongs to someone else."""
    deleted = repo.delete_for_user(deal_id=deal_id, user_id=user_id)
    if not deleted:
        logger.info("deal_delete_miss", extra={"context": {"deal_id": deal_id, "user_id": user_id}})
    return deleted
