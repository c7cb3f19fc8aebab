"""Tests for pricing and delinquency normalizers."""

import math

import pytest

from storage_mogul.data.regions import create_default_delinquency, create_default_pricing
from storage_mogul.simulation.facility import (
    eviction_mitigation,
    eviction_urgency_factor,
    mix_average_rent,
    normalize_delinquency_policy,
    normalize_facility_pricing,
    normalize_pricing_tier,
    payment_plan_collection_rate,
    sanitize_specials,
    sanitize_tier,
    specials_discount_factor,
)
from storage_mogul.state.schema import (
    DelinquencyPolicy,
    FacilityMix,
    MixCategory,
    PricingSpecials,
    PricingTier,
    SpecialsOffer,
)


class TestSanitizeTier:
    """Test tier clamping."""

    def test_low_values_clamped(self):
        tier = sanitize_tier(10, 5, 2)

        assert tier.standard == 40
        assert tier.prime == 50
        assert tier.prime_share == 0.6

    def test_prime_keeps_minimum_spread(self):
        """Prime is always at least 5 above standard."""
        tier = sanitize_tier(100, 100, 0.2)
        assert tier.prime == 105

    def test_non_finite_standard(self):
        tier = sanitize_tier(math.nan, 120, 0.2)
        assert tier.standard == 40

    def test_missing_prime_defaults_above_standard(self):
        tier = sanitize_tier(200, None, None)

        assert tier.prime == 210
        assert tier.prime_share == 0.2

    def test_high_values_clamped(self):
        tier = sanitize_tier(9999, 9999, 0.3)

        assert tier.standard == 600
        assert tier.prime == 800

    def test_partial_update_keeps_fallback(self):
        fallback = PricingTier(standard=142, prime=175, prime_share=0.25)
        tier = normalize_pricing_tier({"standard": 150}, fallback)

        assert tier.standard == 150
        assert tier.prime == 175
        assert tier.prime_share == 0.25


class TestSpecials:
    """Test move-in special sanitizing."""

    def test_adoption_clamped(self):
        specials = sanitize_specials({"offer": "one_month_free", "adoption_rate": 1.5})

        assert specials.offer is SpecialsOffer.ONE_MONTH_FREE
        assert specials.adoption_rate == 1.0

    def test_unknown_offer_is_none(self):
        specials = sanitize_specials({"offer": "bogus", "adoption_rate": 0.5})

        assert specials.offer is SpecialsOffer.NONE
        assert specials.adoption_rate == 0.0

    def test_discount_is_one_month_over_a_year(self):
        pricing = create_default_pricing()
        pricing.specials = PricingSpecials(offer=SpecialsOffer.ONE_MONTH_FREE, adoption_rate=0.6)

        assert specials_discount_factor(pricing) == pytest.approx(0.05)

    def test_no_offer_no_discount(self):
        assert specials_discount_factor(create_default_pricing()) == 0.0

    def test_facility_pricing_normalized_from_partial(self):
        fallback = create_default_pricing()
        pricing = normalize_facility_pricing({"vault": {"standard": 1}}, fallback)

        assert pricing.vault.standard == 40
        assert pricing.climate_controlled == fallback.climate_controlled


class TestDelinquencyPolicy:
    """Test delinquency normalization and derived rates."""

    def test_values_clamped(self):
        policy = normalize_delinquency_policy(
            {"eviction_days": 5, "rate": 0.9},
            create_default_delinquency(),
        )

        assert policy.eviction_days == 15
        assert policy.rate == 0.3
        assert policy.allow_payment_plans is True

    def test_eviction_urgency(self):
        policy = DelinquencyPolicy(eviction_days=45)
        assert eviction_urgency_factor(policy) == pytest.approx(0.7)

    def test_eviction_urgency_capped(self):
        assert eviction_urgency_factor(DelinquencyPolicy(eviction_days=15)) == 0.85

    def test_long_grace_period_no_urgency(self):
        assert eviction_urgency_factor(DelinquencyPolicy(eviction_days=180)) == 0.0

    def test_payment_plans(self):
        with_plans = DelinquencyPolicy(allow_payment_plans=True)
        without = DelinquencyPolicy(allow_payment_plans=False)

        assert payment_plan_collection_rate(with_plans) == 0.55
        assert payment_plan_collection_rate(without) == 0.0
        assert eviction_mitigation(with_plans) == 0.5
        assert eviction_mitigation(without) == 1.0


class TestAverageRent:
    """Test unit-weighted rent."""

    def test_weighted_by_mix(self):
        pricing = create_default_pricing()
        mix = FacilityMix(
            climate_controlled=MixCategory(units=1),
            drive_up=MixCategory(units=1),
            vault=MixCategory(units=0),
        )
        # 142*0.75 + 175*0.25 = 150.25; 105*0.8 + 125*0.2 = 109
        assert mix_average_rent(mix, pricing) == pytest.approx((150.25 + 109) / 2)

    def test_empty_mix(self):
        assert mix_average_rent(FacilityMix(), create_default_pricing()) == 0.0
