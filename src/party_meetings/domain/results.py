"""
Результаты шагов пайплайна завершения встречи.

Назначение:
- явное различие ok / skipped / fatal вместо соглашений в логах
- сводный отчёт по одному вызову end
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from party_meetings.domain.enums import StepOutcome
from party_meetings.domain.models import MeetingSession


@dataclass(frozen=True)
class StepResult:
    step: str
    outcome: StepOutcome
    value: Any = None
    reason: str | None = None

    @classmethod
    def ok(cls, step: str, value: Any = None) -> StepResult:
        return cls(step=step, outcome=StepOutcome.ok, value=value)

    @classmethod
    def skipped(cls, step: str, reason: str, value: Any = None) -> StepResult:
        return cls(step=step, outcome=StepOutcome.skipped, value=value, reason=reason)

    @classmethod
    def fatal(cls, step: str, reason: str) -> StepResult:
        return cls(step=step, outcome=StepOutcome.fatal, reason=reason)

    @property
    def is_fatal(self) -> bool:
        return self.outcome == StepOutcome.fatal


@dataclass
class EndReport:
    ended: MeetingSession
    successor: MeetingSession | None = None
    steps: list[StepResult] = field(default_factory=list)

    def outcome_of(self, step: str) -> StepOutcome | None:
        for r in self.steps:
            if r.step == step:
                return r.outcome
        return None
