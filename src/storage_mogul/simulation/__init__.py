"""
Simulation core for Storage Mogul.

Deterministic engine: PRNG, pricing/delinquency normalizers, cash-flow
calculator, action resolver and the per-day tick. Modules are imported
directly (e.g. ``from storage_mogul.simulation.tick import advance_tick``)
because they depend on the state schema, which itself depends on the PRNG.
"""
