"""Planner unit tests: action selection and drift detection."""

from __future__ import annotations

from chalsync.challenges.planner import Action, diff_challenges, plan_change
from chalsync.challenges.policy import FieldPolicy
from helpers.builders import make_challenge, make_dynamic


def _converged(**overrides):
    """A desired model and its normalized, created counterpart."""
    desired = make_challenge(**overrides)
    observed, _ = FieldPolicy().validate(desired)
    observed.id = "1"
    return desired, observed


class TestDiff:
    def test_identical(self):
        desired, observed = _converged(tags=["a", "b"])
        assert diff_challenges(desired, observed) == []

    def test_scalar_drift(self):
        desired, observed = _converged()
        observed.value = 1
        observed.state = "visible"
        assert diff_challenges(desired, observed) == ["value", "state"]

    def test_collections_compared_as_sets(self):
        desired, observed = _converged(tags=["web", "easy"], topics=["sqli"])
        observed.tags = ["easy", "web", "web"]
        assert diff_challenges(desired, observed) == []

    def test_tag_drift(self):
        desired, observed = _converged(tags=["web", "easy"])
        observed.tags = ["web"]
        assert diff_challenges(desired, observed) == ["tags"]

    def test_prerequisites_order_ignored(self):
        desired, observed = _converged(requirements={"behavior": "hidden", "prerequisites": ["3", "5"]})
        observed.requirements.prerequisites = ["5", "3"]
        assert diff_challenges(desired, observed) == []

    def test_requirements_removed_remotely(self):
        desired, observed = _converged(requirements={"behavior": "hidden", "prerequisites": ["3"]})
        observed.requirements = None
        assert diff_challenges(desired, observed) == ["requirements"]

    def test_behavior_drift(self):
        desired, observed = _converged(requirements={"behavior": "anonymized", "prerequisites": ["3"]})
        observed.requirements.behavior = "hidden"
        assert diff_challenges(desired, observed) == ["requirements"]


class TestPlanChange:
    def test_new_challenge(self):
        assert plan_change("x", make_challenge(), None, None).action is Action.CREATE

    def test_removed_from_manifest(self):
        stored = make_challenge(id="4")
        assert plan_change("x", None, stored, stored).action is Action.DELETE

    def test_unknown_everywhere(self):
        assert plan_change("x", None, None, None).action is Action.NOOP

    def test_type_change_replaces(self):
        stored = make_challenge(id="4")
        plan = plan_change("x", make_dynamic(), stored, stored)
        assert plan.action is Action.REPLACE
        assert plan.drift == ["type"]

    def test_missing_remotely_recreates(self):
        stored = make_challenge(id="4")
        assert plan_change("x", make_challenge(), stored, None).action is Action.CREATE

    def test_converged_is_noop(self):
        desired, observed = _converged(tags=["a"])
        plan = plan_change("x", desired, observed, observed)
        assert plan.action is Action.NOOP
        assert plan.drift == []

    def test_dynamic_defaults_do_not_drift(self):
        """An unset function matches the defaulted remote one."""
        desired = make_dynamic()
        observed, _ = FieldPolicy().validate(desired)
        observed.id = "2"
        assert plan_change("x", desired, observed, observed).action is Action.NOOP

    def test_drift_updates(self):
        desired, observed = _converged(tags=["a"])
        stale = observed.model_copy(update={"tags": ["b"], "description": "old"})
        plan = plan_change("x", desired, observed, stale)
        assert plan.action is Action.UPDATE
        assert plan.drift == ["description", "tags"]
