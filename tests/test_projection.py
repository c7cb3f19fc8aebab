"""Tests for the five-year start projection."""

import pytest

from storage_mogul.simulation.projection import PROJECTION_MONTHS, compute_start_projection
from storage_mogul.simulation.start import build_start_config
from storage_mogul.state.schemas.start import FinancingSelection, RateType


class TestProjection:
    """Monthly preview of a purchase."""

    def test_default_purchase_survives(self, start_config):
        projection = compute_start_projection(start_config)

        assert len(projection.timeline) == PROJECTION_MONTHS
        assert projection.forced_sale_month is None
        assert projection.runway_months is None
        assert projection.defaulted is False
        assert projection.cash_after_purchase == pytest.approx(10_000)
        assert projection.net_worth_after_purchase == pytest.approx(10_000 + 450_000 - 360_000)

    def test_credit_stays_bounded(self, start_config):
        projection = compute_start_projection(start_config)
        for month in projection.timeline:
            assert 300 <= month.credit_score <= 850
        assert projection.final_credit_score == projection.timeline[-1].credit_score

    def test_loan_amortizes(self, start_config):
        projection = compute_start_projection(start_config)
        balances = [m.loan_balance for m in projection.timeline]

        assert balances == sorted(balances, reverse=True)
        assert balances[-1] < start_config.loan.loan_amount

    def test_losing_facility_forced_sale(self, start_config):
        listing = start_config.facility.model_copy(update={"expenses_annual": 1_000_000})
        config = start_config.model_copy(update={"facility": listing})

        projection = compute_start_projection(config)

        assert projection.forced_sale_month == 1
        assert len(projection.timeline) == 1
        assert projection.defaulted is True
        assert 0 <= projection.runway_months < 1

    def test_variable_rate_reprices_yearly(self):
        config = build_start_config(financing=FinancingSelection(rate_type=RateType.VARIABLE))
        projection = compute_start_projection(config)
        timeline = projection.timeline

        assert timeline[12].debt_service != pytest.approx(timeline[11].debt_service)
        assert timeline[1].debt_service == pytest.approx(timeline[0].debt_service)
