# recipe_community/core/errors.py
"""
커뮤니티 피드 서비스의 예외 계층.

서비스 계층은 이 예외들만 던지고, HTTP 상태 코드와 응답 본문으로의 변환은
register_error_handlers()가 등록하는 전역 핸들러가 담당합니다.
"""
import logging
from flask import Flask, jsonify
from marshmallow import ValidationError as SchemaValidationError
from werkzeug.exceptions import HTTPException


class CommunityError(Exception):
    """모든 도메인 예외의 기반 클래스."""
    status_code = 500
    error_code = "INTERNAL_SERVER_ERROR"
    default_message = "서버 내부에서 예상치 못한 오류가 발생했습니다."

    def __init__(self, message: str = None, details=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details

    def to_dict(self) -> dict:
        body = {"error_code": self.error_code, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(CommunityError):
    """입력 형식/크기 오류 (400)."""
    status_code = 400
    error_code = "VALIDATION_ERROR"
    default_message = "요청 값이 올바르지 않습니다."


class NotAuthorizedError(CommunityError):
    """소유권 위반 (403)."""
    status_code = 403
    error_code = "FORBIDDEN"
    default_message = "이 작업을 수행할 권한이 없습니다."


class NotFoundError(CommunityError):
    """게시글 또는 댓글이 존재하지 않음 (404)."""
    status_code = 404
    error_code = "NOT_FOUND"
    default_message = "요청한 리소스를 찾을 수 없습니다."


class UpstreamFailure(CommunityError):
    """외부 서비스(오브젝트 스토리지 등) 장애 (502)."""
    status_code = 502
    error_code = "UPSTREAM_FAILURE"
    default_message = "외부 서비스 호출에 실패했습니다. 잠시 후 다시 시도해주세요."


class InternalError(CommunityError):
    """예상치 못한 저장소 오류 (500)."""


class ConflictError(InternalError):
    """동시 수정으로 인해 재시도 횟수 안에 쓰기를 완료하지 못한 경우."""
    default_message = "다른 요청과 충돌하여 처리하지 못했습니다. 다시 시도해주세요."


def register_error_handlers(app: Flask):
    """도메인 예외, marshmallow 검증 오류, 처리되지 않은 예외를 JSON 응답으로 변환합니다."""

    @app.errorhandler(CommunityError)
    def handle_community_error(err: CommunityError):
        if err.status_code >= 500:
            logging.error(f"{type(err).__name__}: {err.message}", exc_info=True)
        body = err.to_dict()
        # 내부 오류의 상세 정보는 디버그 모드에서만 노출합니다.
        if err.status_code >= 500 and not app.debug:
            body.pop("details", None)
        return jsonify(body), err.status_code

    @app.errorhandler(SchemaValidationError)
    def handle_marshmallow_validation(err):
        response = {"error_code": "VALIDATION_ERROR", "details": err.messages}
        return jsonify(response), 400

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        # HTTP 예외(404 라우팅 실패, 405 등)는 Werkzeug 기본 응답을 그대로 사용
        if isinstance(err, HTTPException):
            return err
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {"error_code": "INTERNAL_SERVER_ERROR", "message": InternalError.default_message}
        if app.debug:
            response["details"] = str(err)
        return jsonify(response), 500
