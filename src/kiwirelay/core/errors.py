from __future__ import annotations


class RelayError(Exception):
    """kiwirelay 예외의 공통 부모."""


class ConfigError(RelayError):
    """필수 설정(API key 등)이 없음. 요청 단위로 500."""


class AuthError(RelayError):
    pass


class Unauthorized(AuthError):
    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class ValidationError(RelayError):
    pass


class MalformedPayload(ValidationError):
    def __init__(self, message: str = "Invalid JSON payload") -> None:
        super().__init__(message)


class MissingEmail(ValidationError):
    def __init__(self, message: str = "No email in payload") -> None:
        super().__init__(message)


class RemoteCallError(RelayError):
    """MailerLite 호출 실패 (non-2xx 또는 transport error)."""

    def __init__(
        self,
        method: str,
        path: str,
        *,
        status_code: int | None = None,
        detail: str | None = None,
    ) -> None:
        self.method = method
        self.path = path
        self.status_code = status_code
        self.detail = detail

        status = status_code if status_code is not None else "transport"
        message = f"{method} {path} failed ({status})"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class ReconcileError(RelayError):
    """subscriber id를 확보하지 못해 reconcile 전체를 중단한 경우."""
