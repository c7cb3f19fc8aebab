"""Staged objectives: stabilize, then automate, then scale."""

from ..state.schema import GameState, GoalId, GoalMetric, GoalState


FINAL_GOAL_STAGE = 2


def goal_for_stage(stage: int) -> GoalState:
    """Fresh goal for a stage. Stages past the last one stay on the last."""
    if stage <= 0:
        return GoalState(
            id=GoalId.STABILIZE,
            label="Stabilize Harbor One",
            description="Hold occupancy above 85% to prove the market.",
            metric=GoalMetric.OCCUPANCY,
            target=0.85,
        )
    if stage == 1:
        return GoalState(
            id=GoalId.AUTOMATE,
            label="Automate the Depot",
            description="Lift automation to 60% so the facility runs itself overnight.",
            metric=GoalMetric.AUTOMATION,
            target=0.6,
        )
    return GoalState(
        id=GoalId.SCALE,
        label="Scale Toward Megaplex",
        description="Reach a $2.5M valuation and tee up multi-city expansion.",
        metric=GoalMetric.VALUATION,
        target=2_500_000,
    )


def goal_metric_value(metric: GoalMetric, state: GameState) -> float:
    if metric is GoalMetric.OCCUPANCY:
        return state.facility.occupancy_rate
    if metric is GoalMetric.AUTOMATION:
        return state.automation.level
    return state.financials.valuation


def refresh_goal_progress(state: GameState) -> None:
    """Recompute progress and completion without advancing the stage."""
    state.goals.progress = goal_metric_value(state.goals.metric, state)
    state.goals.completed = state.goals.progress >= state.goals.target
