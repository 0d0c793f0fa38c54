"""
Доменные перечисления (enum).

Используются во всей системе:
- capability-скоупы провайдера
- статус встречи в backend
- тип участника и тип артефакта
- исход шага пайплайна
"""

from __future__ import annotations

import enum


class Capability(str, enum.Enum):
    """
    Класс операций провайдера, требующий отдельного скоупа.
    """

    space_creation = "space-creation"
    record_read = "record-read"
    participant_read = "participant-read"
    transcript_read = "transcript-read"
    document_read = "document-read"


# Всё, что нужно на эпизод create -> end: запрашивается одним токеном
EPISODE_CAPABILITIES: frozenset[Capability] = frozenset(
    {
        Capability.space_creation,
        Capability.record_read,
        Capability.participant_read,
        Capability.transcript_read,
    }
)

READ_CAPABILITIES: frozenset[Capability] = frozenset(
    {
        Capability.record_read,
        Capability.participant_read,
        Capability.transcript_read,
    }
)


class MeetingStatus(str, enum.Enum):
    """
    Статус встречи в backend.
    """

    scheduled = "Scheduled"
    active = "Active"
    ended_processing = "EndedProcessing"
    completed = "Completed"


class AttendeeType(str, enum.Enum):
    signed_in = "signedin"
    anonymous = "anonymous"
    phone = "phone"


class ArtifactType(str, enum.Enum):
    recording = "recording"
    transcript = "transcript"
    notes = "notes"


class StepOutcome(str, enum.Enum):
    """
    Исход шага пайплайна завершения встречи.
    """

    ok = "ok"
    skipped = "skipped"
    fatal = "fatal"
