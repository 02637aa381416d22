"""Anti-cheat plausibility gate for submitted game states.

The validator is a pure rule engine: it never touches disk and keeps no state.
It distinguishes two outcomes that callers must not conflate:

- a *malformed* document (not JSON, not an object, required fields missing or
  not integers) raises :class:`~lifevault.errors.MalformedInputError`;
- a well-formed but *implausible* document returns ``False``.

Known limitation: these are heuristic range checks over values the client
reports about itself. They reject statistically implausible states; they do
not prove a state was reached legitimately and are no substitute for
authoritative server-side simulation in multiplayer.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError, field_validator

from .errors import MalformedInputError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidatorLimits:
    """Inclusive plausibility ranges; defaults match the shipped game balance."""

    min_level: int = 1
    max_level: int = 100
    max_xp: int = 1_000_000
    max_total_earnings: int = 10_000_000


class ProfileDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    level: StrictInt
    xp: StrictInt
    total_earnings: int = Field(default=0, alias="totalEarnings")

    @field_validator("total_earnings", mode="before")
    @classmethod
    def _lenient_earnings(cls, v: Any) -> int:
        # Optional field: anything that is not a real integer counts as 0
        if isinstance(v, bool) or not isinstance(v, int):
            return 0
        return v


class GameStateDocument(BaseModel):
    """The slice of a game state the validator understands; other keys are ignored."""

    model_config = ConfigDict(extra="ignore")

    wallet: StrictInt
    bank: StrictInt
    profile: ProfileDocument


@dataclass
class RuleViolation:
    rule: str
    field: str
    value: int


@dataclass
class ValidationReport:
    violations: List[RuleViolation] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations


def parse_document(document: Any) -> GameStateDocument:
    """Check presence and types of every required field before any range check."""
    if not isinstance(document, Mapping):
        raise MalformedInputError("game state must be a JSON object", operation="validate game state")
    try:
        return GameStateDocument.model_validate(dict(document))
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise MalformedInputError(f"invalid game state: {problems}", operation="validate game state") from e


class StateValidator:
    def __init__(self, limits: ValidatorLimits | None = None) -> None:
        self.limits = limits or ValidatorLimits()

    def check(self, document: Any) -> ValidationReport:
        """Evaluate every rule and report all violations."""
        state = parse_document(document)
        lim = self.limits
        report = ValidationReport()

        def violate(rule: str, field_name: str, value: int) -> None:
            report.violations.append(RuleViolation(rule=rule, field=field_name, value=value))

        if state.wallet < 0:
            violate("negative_money", "wallet", state.wallet)
        if state.bank < 0:
            violate("negative_money", "bank", state.bank)
        level = state.profile.level
        if level < lim.min_level or level > lim.max_level:
            violate("level_range", "profile.level", level)
        xp = state.profile.xp
        if xp < 0 or xp > lim.max_xp:
            violate("xp_range", "profile.xp", xp)
        earnings = state.profile.total_earnings
        if earnings < 0 or earnings > lim.max_total_earnings:
            violate("earnings_range", "profile.totalEarnings", earnings)
        return report

    def validate(self, document: Any) -> bool:
        report = self.check(document)
        if not report.ok:
            logger.info(
                "Game state rejected: %s",
                ", ".join(f"{v.field}={v.value} ({v.rule})" for v in report.violations),
            )
        return report.ok

    def validate_json(self, text: str) -> bool:
        try:
            document = json.loads(text)
        except (TypeError, json.JSONDecodeError) as e:
            raise MalformedInputError(f"Invalid game state JSON: {e}", operation="validate game state") from e
        return self.validate(document)


_default = StateValidator()


def validate(document: Any) -> bool:
    """Validate with the default limits."""
    return _default.validate(document)


def validate_json(text: str) -> bool:
    return _default.validate_json(text)
