"""
Базовый интерфейс провайдера видеовстреч.

Назначение:
- стандартизировать адаптеры (Google Meet REST, mock)
- отделить "как ходим к провайдеру" от reconciliation-логики

Методы возвращают сырые payload'ы провайдера: схема у провайдера плавает,
разбор с допусками живёт в connectors/meet/payloads.py.
"""

from __future__ import annotations

from typing import Any, Protocol


class ConferencingProvider(Protocol):
    """
    Контракт провайдера встреч. token: bearer-значение AccessToken.
    """

    def create_space(self, token: str, config: dict[str, Any] | None = None) -> dict:
        """Создать пространство встречи; вернуть name/meetingUri/meetingCode."""
        ...

    def get_space(self, token: str, name_or_code: str) -> dict:
        """Получить пространство по spaces/<id>, id или коду встречи."""
        ...

    def end_active_conference(self, token: str, space_or_code: str) -> None:
        """Завершить идущую конференцию в пространстве."""
        ...

    def list_conference_records(
        self, token: str, *, page_size: int, page_token: str | None = None
    ) -> dict:
        """Записи конференций, новые первыми."""
        ...

    def get_conference_record(self, token: str, conference_id: str) -> dict:
        ...

    def list_participants(self, token: str, conference_id: str) -> dict:
        ...

    def list_transcripts(self, token: str, conference_id: str) -> dict:
        ...

    def list_transcript_entries(self, token: str, conference_id: str, transcript_id: str) -> dict:
        ...

    def list_recordings(self, token: str, conference_id: str) -> dict:
        ...
