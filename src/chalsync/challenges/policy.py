"""Field policy for the scoring-type discriminant.

Dynamic challenges need ``decay`` and ``minimum`` and get a default decay
``function``. Standard challenges carry none of the three. The policy runs
before any remote call on create and again on every update.
"""

from __future__ import annotations

from chalsync.challenges.schemas import Behavior, Challenge, ChallengeType, DecayFunction
from chalsync.config import Settings
from chalsync.diagnostics import Diagnostics

CONFIGURATION_ERROR = "Configuration error"


class FieldPolicy:
    """Validates and normalizes a desired challenge."""

    def __init__(
        self,
        default_function: DecayFunction = DecayFunction.LOGARITHMIC,
        default_behavior: Behavior = Behavior.HIDDEN,
    ) -> None:
        self.default_function = default_function
        self.default_behavior = default_behavior

    @classmethod
    def from_settings(cls, settings: Settings) -> FieldPolicy:
        return cls(
            default_function=settings.default_function,
            default_behavior=settings.default_behavior,
        )

    def validate(self, model: Challenge) -> tuple[Challenge, Diagnostics]:
        """Return a normalized copy of ``model`` and the configuration diagnostics.

        The input model is left untouched.
        """
        diags = Diagnostics()
        normalized = model.model_copy(deep=True)

        if normalized.type is ChallengeType.DYNAMIC:
            if normalized.decay is None:
                diags.add_error(CONFIGURATION_ERROR, "decay must be set for dynamic challenges")
            if normalized.minimum is None:
                diags.add_error(CONFIGURATION_ERROR, "minimum must be set for dynamic challenges")
            if normalized.function is None:
                normalized.function = self.default_function
        else:
            # Provided values are discarded, not rejected
            normalized.function = None
            normalized.decay = None
            normalized.minimum = None

        if normalized.requirements is not None and normalized.requirements.behavior is None:
            normalized.requirements.behavior = self.default_behavior

        return normalized, diags
