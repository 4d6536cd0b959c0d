# tests/test_deals_service.py
import pytest

from dealflow.adapters.memory_repo import InMemoryDealRepository
from dealflow.analysis.metrics import analyze_property
from dealflow.domain.property import parse_property_location, parse_property_parameters
from dealflow.services.deals import build_deal_record, delete_deal, list_deals, save_deal


def _deal(address="12 Elm St", **overrides):
    raw = {"address": address, "city": "Austin", "state": "TX", "purchasePrice": 200000, "monthlyRent": 1900}
    raw.update(overrides)
    params = parse_property_parameters(raw)
    return parse_property_location(raw), params, analyze_property(params)


def test_record_keeps_inputs_and_headline_metrics():
    location, params, report = _deal()
    rec = build_deal_record(user_id=7, location=location, params=params, report=report)

    assert rec["user_id"] == 7
    assert rec["address"] == "12 Elm St"
    assert rec["purchase_price"] == 200000
    assert rec["loan_term"] == 30
    assert rec["cash_flow"] == report.monthly_numbers.cash_flow
    assert rec["roi"] == report.metrics.roi
    assert rec["cap_rate"] == report.metrics.cap_rate


def test_address_is_required():
    location, params, report = _deal(address="  ")
    with pytest.raises(ValueError, match="Missing required field: address"):
        build_deal_record(user_id=1, location=location, params=params, report=report)


def test_deals_are_scoped_to_their_owner():
    repo = InMemoryDealRepository()
    location, params, report = _deal()

    first = save_deal(repo, user_id=1, location=location, params=params, report=report)
    second = save_deal(repo, user_id=1, location=location, params=params, report=report)
    save_deal(repo, user_id=2, location=location, params=params, report=report)

    mine = list_deals(repo, user_id=1)
    assert [d["id"] for d in mine] == [second, first]

    # someone else's delete is a miss and leaves the deal in place
    assert delete_deal(repo, user_id=2, deal_id=first) is False
    assert len(list_deals(repo, user_id=1)) == 2

    assert delete_deal(repo, user_id=1, deal_id=first) is True
    assert [d["id"] for d in list_deals(repo, user_id=1)] == [second]
    assert delete_deal(repo, user_id=1, deal_id=first) is False
    assert len(repo.all()) == 2
