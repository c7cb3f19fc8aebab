"""
Pricing and delinquency normalizers.

Every function here is total: inputs may be partial dicts, models, out of
range or non-finite, and the result is always a fully valid structure.
Derived rates (average rent, specials discount, eviction urgency,
collection rate) are pure functions of the sanitized values.
"""

from pydantic import BaseModel

from ..state.schema import (
    DelinquencyPolicy,
    FacilityMix,
    FacilityPricing,
    FacilityState,
    PricingSpecials,
    PricingTier,
    SpecialsOffer,
)
from .helpers import clamp, finite_or


STANDARD_RANGE = (40.0, 600.0)
PRIME_RANGE = (50.0, 800.0)
PRIME_MIN_SPREAD = 5.0
PRIME_SHARE_RANGE = (0.0, 0.6)
DELINQUENCY_RATE_RANGE = (0.0, 0.3)
LIVE_DELINQUENCY_RANGE = (0.01, 0.25)  # Where the tick keeps the current rate
EVICTION_DAYS_RANGE = (15.0, 180.0)
PAYMENT_PLAN_COLLECTION = 0.55
EVICTION_URGENCY_MAX = 0.85

PRICING_KEYS = ("climate_controlled", "drive_up", "vault")


def _as_dict(value) -> dict:
    if value is None:
        return {}
    if isinstance(value, BaseModel):
        return value.model_dump()
    if isinstance(value, dict):
        return value
    return {}


# -----------------------------------------------------------------------------
# Sanitizers
# -----------------------------------------------------------------------------

def sanitize_tier(standard, prime, prime_share) -> PricingTier:
    standard = clamp(finite_or(standard, 0.0), *STANDARD_RANGE)
    prime_base = clamp(finite_or(prime, standard + 10), *PRIME_RANGE)
    prime = max(prime_base, standard + PRIME_MIN_SPREAD)
    share = clamp(finite_or(prime_share, 0.2), *PRIME_SHARE_RANGE)
    return PricingTier(standard=standard, prime=prime, prime_share=share)


def sanitize_specials(specials) -> PricingSpecials:
    data = _as_dict(specials)
    raw_offer = data.get("offer")
    if isinstance(raw_offer, SpecialsOffer):
        raw_offer = raw_offer.value
    offer = SpecialsOffer.ONE_MONTH_FREE if raw_offer == SpecialsOffer.ONE_MONTH_FREE.value else SpecialsOffer.NONE
    if offer is SpecialsOffer.NONE:
        adoption = 0.0
    else:
        adoption = clamp(finite_or(data.get("adoption_rate"), 0.0), 0.0, 1.0)
    return PricingSpecials(offer=offer, adoption_rate=adoption)


def normalize_pricing_tier(tier, fallback: PricingTier) -> PricingTier:
    """Fill missing fields from fallback, then sanitize."""
    data = _as_dict(tier)
    return sanitize_tier(
        data.get("standard", fallback.standard),
        data.get("prime", fallback.prime),
        data.get("prime_share", fallback.prime_share),
    )


def normalize_facility_pricing(pricing, fallback: FacilityPricing) -> FacilityPricing:
    data = _as_dict(pricing)
    return FacilityPricing(
        climate_controlled=normalize_pricing_tier(data.get("climate_controlled"), fallback.climate_controlled),
        drive_up=normalize_pricing_tier(data.get("drive_up"), fallback.drive_up),
        vault=normalize_pricing_tier(data.get("vault"), fallback.vault),
        specials=sanitize_specials(data.get("specials") or fallback.specials),
    )


def normalize_delinquency_policy(incoming, fallback: DelinquencyPolicy) -> DelinquencyPolicy:
    data = _as_dict(incoming)
    allow = data.get("allow_payment_plans")
    return DelinquencyPolicy(
        base_rate=clamp(finite_or(data.get("base_rate"), fallback.base_rate), *DELINQUENCY_RATE_RANGE),
        rate=clamp(finite_or(data.get("rate"), fallback.rate), *DELINQUENCY_RATE_RANGE),
        allow_payment_plans=bool(fallback.allow_payment_plans if allow is None else allow),
        eviction_days=clamp(finite_or(data.get("eviction_days"), fallback.eviction_days), *EVICTION_DAYS_RANGE),
    )


# -----------------------------------------------------------------------------
# Derived rates
# -----------------------------------------------------------------------------

def tier_average_rate(tier: PricingTier) -> float:
    sanitized = sanitize_tier(tier.standard, tier.prime, tier.prime_share)
    return sanitized.standard * (1 - sanitized.prime_share) + sanitized.prime * sanitized.prime_share


def mix_average_rent(mix: FacilityMix, pricing: FacilityPricing) -> float:
    """Unit-weighted average monthly rent across the three categories."""
    total = mix.total_units
    if total <= 0:
        return 0.0
    weighted = (
        mix.climate_controlled.units * tier_average_rate(pricing.climate_controlled)
        + mix.drive_up.units * tier_average_rate(pricing.drive_up)
        + mix.vault.units * tier_average_rate(pricing.vault)
    )
    return weighted / total


def facility_average_rent(facility: FacilityState) -> float:
    return mix_average_rent(facility.mix, facility.pricing)


def specials_discount_factor(pricing: FacilityPricing) -> float:
    """One free month amortized over a year, scaled by adoption."""
    specials = sanitize_specials(pricing.specials)
    if specials.offer is not SpecialsOffer.ONE_MONTH_FREE:
        return 0.0
    return specials.adoption_rate / 12


def specials_adoption(pricing: FacilityPricing) -> float:
    return sanitize_specials(pricing.specials).adoption_rate


def payment_plan_collection_rate(policy: DelinquencyPolicy) -> float:
    return PAYMENT_PLAN_COLLECTION if policy.allow_payment_plans else 0.0


def eviction_urgency_factor(policy: DelinquencyPolicy) -> float:
    """Shorter grace periods evict delinquent tenants faster."""
    days = clamp(policy.eviction_days, *EVICTION_DAYS_RANGE)
    return clamp(1 - days / 150, 0.0, EVICTION_URGENCY_MAX)


def eviction_mitigation(policy: DelinquencyPolicy) -> float:
    return 0.5 if policy.allow_payment_plans else 1.0
