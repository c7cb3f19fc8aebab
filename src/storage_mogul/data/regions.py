"""
Trade areas and facilities available at game start.

The default pricing and delinquency templates are scaled to each facility's
rent level when a game is created.
"""

from ..state.schema import DelinquencyPolicy, FacilityPricing, PricingSpecials, PricingTier
from ..state.schemas.start import StartFacility, TradeArea, UnitMixCounts


TRADE_AREAS: list[TradeArea] = [
    TradeArea(
        id="harbor_district",
        name="Harbor District",
        demand_index=0.92,
        competition=0.35,
        operating_cost_factor=1.0,
        base_rate=0.055,
        climate_risk=0.28,
        avg_cap_rate=0.062,
        description="Dense waterfront condos with tiny closets and a steady stream of movers.",
    ),
    TradeArea(
        id="desert_ring",
        name="Desert Ring",
        demand_index=0.78,
        competition=0.22,
        operating_cost_factor=0.9,
        base_rate=0.058,
        climate_risk=0.18,
        avg_cap_rate=0.068,
        description="Sprawling exurbs where RVs and boats need somewhere to sleep.",
    ),
    TradeArea(
        id="summit_valley",
        name="Summit Valley",
        demand_index=1.05,
        competition=0.5,
        operating_cost_factor=1.15,
        base_rate=0.052,
        climate_risk=0.42,
        avg_cap_rate=0.055,
        description="Tech campus boomtown with flood-prone lowlands and fierce competition.",
    ),
]

START_FACILITIES: list[StartFacility] = [
    StartFacility(
        id="harbor_one",
        region_id="harbor_district",
        name="Harbor One Storage",
        city="Port Calder",
        price=450_000,
        size_sqft=16_000,
        occupancy=0.78,
        avg_rent_per_sqft=1.4,
        expenses_annual=96_000,
        issues=["Leaky roll-up doors"],
        expansion_potential=0.3,
        total_units=160,
        mix=UnitMixCounts(climate_controlled=72, drive_up=64, vault=24),
    ),
    StartFacility(
        id="mesa_lockers",
        region_id="desert_ring",
        name="Mesa Lockers",
        city="Dry Fork",
        price=380_000,
        size_sqft=21_000,
        occupancy=0.7,
        avg_rent_per_sqft=0.95,
        expenses_annual=78_000,
        issues=["Gate keypad failures", "Unpaved RV lot"],
        expansion_potential=0.6,
        total_units=150,
        mix=UnitMixCounts(climate_controlled=30, drive_up=105, vault=15),
    ),
    StartFacility(
        id="summit_vaults",
        region_id="summit_valley",
        name="Summit Vaults",
        city="Ridgecrest",
        price=720_000,
        size_sqft=18_000,
        occupancy=0.84,
        avg_rent_per_sqft=1.75,
        expenses_annual=150_000,
        issues=[],
        expansion_potential=0.15,
        total_units=180,
        mix=UnitMixCounts(climate_controlled=100, drive_up=40, vault=40),
    ),
]


def create_default_pricing() -> FacilityPricing:
    return FacilityPricing(
        climate_controlled=PricingTier(standard=142, prime=175, prime_share=0.25),
        drive_up=PricingTier(standard=105, prime=125, prime_share=0.2),
        vault=PricingTier(standard=200, prime=240, prime_share=0.35),
        specials=PricingSpecials(),
    )


def create_default_delinquency() -> DelinquencyPolicy:
    return DelinquencyPolicy(base_rate=0.045, rate=0.045, allow_payment_plans=True, eviction_days=45)


def find_trade_area(region_id: str) -> TradeArea | None:
    return next((area for area in TRADE_AREAS if area.id == region_id), None)


def find_facility(facility_id: str) -> StartFacility | None:
    return next((f for f in START_FACILITIES if f.id == facility_id), None)
