"""
Единые ошибки и коды ошибок.

Назначение:
- предсказуемые коды для HTTP и пайплайна завершения встречи
- единый стиль исключений по проекту
"""

from __future__ import annotations

from dataclasses import dataclass


class ErrCode:
    # Общие
    UNKNOWN = "unknown"
    VALIDATION = "validation"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    CANCELLED = "cancelled"

    # Провайдеры
    CONNECTOR_PROVIDER_ERROR = "connector_provider_error"
    TOKEN_ERROR = "token_error"
    PERSISTENCE_ERROR = "persistence_error"

    # Жизненный цикл сессии
    SESSION_FINALIZE_FAILED = "session_finalize_failed"


@dataclass
class AppError(Exception):
    """
    Базовая ошибка приложения.
    - code: стабильный код ошибки
    - message: безопасное сообщение
    - details: доп. данные (без секретов/PII)
    """

    code: str
    message: str
    details: dict | None = None

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code}: {self.message}"


class ValidationError(AppError):
    def __init__(self, message: str = "Ошибка валидации", details: dict | None = None) -> None:
        super().__init__(ErrCode.VALIDATION, message, details)


class UnauthorizedError(AppError):
    def __init__(self, message: str = "Не авторизован", details: dict | None = None) -> None:
        super().__init__(ErrCode.UNAUTHORIZED, message, details)


class NotFoundError(AppError):
    def __init__(self, message: str = "Не найдено", details: dict | None = None) -> None:
        super().__init__(ErrCode.NOT_FOUND, message, details)


class ConflictError(AppError):
    def __init__(self, message: str = "Конфликт", details: dict | None = None) -> None:
        super().__init__(ErrCode.CONFLICT, message, details)


class CancelledError(AppError):
    def __init__(self, message: str = "Операция отменена", details: dict | None = None) -> None:
        super().__init__(ErrCode.CANCELLED, message, details)


class ProviderError(AppError):
    def __init__(self, code: str, message: str, details: dict | None = None) -> None:
        super().__init__(code, message, details)


class SessionFinalizeError(AppError):
    def __init__(
        self, message: str = "Не удалось завершить сессию", details: dict | None = None
    ) -> None:
        super().__init__(ErrCode.SESSION_FINALIZE_FAILED, message, details)
