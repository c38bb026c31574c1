"""API 오류 분류. 서비스 레이어는 아래 예외를 올리고 FastAPI가 HTTP 응답으로 변환합니다."""

from fastapi import HTTPException, status


class ApiError(HTTPException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "요청을 처리할 수 없습니다."

    def __init__(self, detail: str | None = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)


class Unauthorized(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "로그인이 필요합니다."


class Forbidden(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "권한이 없습니다."


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "대상을 찾을 수 없습니다."


class ValidationFailed(ApiError):
    default_detail = "입력값이 올바르지 않습니다."


class Conflict(ApiError):
    default_detail = "요청이 현재 상태와 충돌합니다."


class InsufficientTickets(Conflict):
    default_detail = "티켓 잔여 수량이 부족합니다."


class QuotaExceeded(Conflict):
    default_detail = "초대 가능한 인원을 모두 사용했습니다."


class InvitationAlreadyUsed(Conflict):
    default_detail = "이미 사용된 초대 코드입니다."


class InvitationExpired(Conflict):
    default_detail = "만료된 초대 코드입니다."
