"""Plan and apply a whole manifest against the state file."""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from chalsync.challenges.planner import Action, Plan, plan_change
from chalsync.challenges.reconciler import ChallengeReconciler, ReconcileResult
from chalsync.challenges.schemas import Challenge
from chalsync.diagnostics import Diagnostics
from chalsync.state import StateFile

logger = structlog.get_logger()


@dataclass
class Outcome:
    plan: Plan
    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    @property
    def ok(self) -> bool:
        return not self.diagnostics.has_error()


async def plan_all(
    reconciler: ChallengeReconciler,
    desired: dict[str, Challenge],
    state: StateFile,
) -> list[Outcome]:
    """Read every stored challenge back and plan each name of the manifest or state."""
    outcomes: list[Outcome] = []
    for name in sorted(set(desired) | set(state.challenges)):
        stored = state.get(name)
        observed: Challenge | None = None
        diags = Diagnostics()

        if stored is not None:
            result = await reconciler.read(stored)
            diags.extend(result.diagnostics)
            if diags.has_error():
                outcomes.append(Outcome(Plan(name, Action.NOOP), diags))
                continue
            if not result.missing:
                observed = result.model

        plan = plan_change(name, desired.get(name), stored, observed, reconciler.policy)
        logger.info("challenge_planned", name=name, action=plan.action.value, drift=plan.drift)
        outcomes.append(Outcome(plan, diags))
    return outcomes


async def apply_all(
    reconciler: ChallengeReconciler,
    desired: dict[str, Challenge],
    state: StateFile,
) -> list[Outcome]:
    """Converge every challenge, saving the state after each change."""
    outcomes = await plan_all(reconciler, desired, state)
    for outcome in outcomes:
        if not outcome.ok or outcome.plan.action is Action.NOOP:
            continue
        name = outcome.plan.name
        stored = state.get(name)
        target = desired.get(name)

        if outcome.plan.action in (Action.DELETE, Action.REPLACE) and stored is not None:
            result = await reconciler.delete(stored)
            outcome.diagnostics.extend(result.diagnostics)
            if not result.ok:
                continue
            state.remove(name)
            state.save()

        if target is None:
            continue

        if outcome.plan.action is Action.UPDATE and stored is not None:
            result = await reconciler.update(target, stored)
        else:
            result = await reconciler.create(target.model_copy(update={"id": ""}))
        outcome.diagnostics.extend(result.diagnostics)
        _record(state, name, result)
    return outcomes


def _record(state: StateFile, name: str, result: ReconcileResult) -> None:
    """Persist whatever exists remotely, even after a partial failure."""
    if result.model is not None and result.model.is_created:
        state.put(name, result.model)
        state.save()
