"""
Fold per-provider failures into one reportable error.
"""
from typing import Iterable

from pydantic import BaseModel, Field

from .models import AttemptOutcome


class AggregatedFailure(BaseModel):
    """Every tried provider mapped to the detail of its last failure."""
    message: str
    per_provider: dict[str, str] = Field(default_factory=dict)

    def envelope(self) -> dict:
        """Error body returned to callers."""
        return {"error": self.message, "details": dict(self.per_provider)}


def aggregate(
    outcomes: Iterable[AttemptOutcome],
    message: str = "All providers failed",
) -> AggregatedFailure:
    per_provider: dict[str, str] = {}
    for outcome in outcomes:
        if outcome.succeeded:
            continue
        # Later attempts overwrite earlier ones; insertion order is kept
        per_provider[outcome.provider_name] = outcome.error_detail or "Unknown error"
    return AggregatedFailure(message=message, per_provider=per_provider)
