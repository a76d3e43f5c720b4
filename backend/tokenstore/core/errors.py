"""Centralized JSON (RFC 7807) error handling for callers exposed over HTTP."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any, cast
from uuid import uuid4

from flask import Flask, Response, g, jsonify, request
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError
from werkzeug.exceptions import HTTPException

from tokenstore.services._shared.errors import EntropyUnavailableError, InvalidArgumentError

log = logging.getLogger(__name__)


def _ensure_request_id() -> str:
    """
    Get or generate a request-scoped correlation identifier.

    The function reads standard correlation headers and falls back
    to a newly generated UUID4. The value is stored in ``g.request_id``.

    :returns: Correlation/request identifier.
    :rtype: str
    """
    if hasattr(g, "request_id"):
        return cast(str, g.request_id)

    hdr = request.headers.get("X-Request-Id") or request.headers.get("X-Correlation-Id")
    req_id = hdr or str(uuid4())
    g.request_id = req_id
    return req_id


def _http_status_to_code(status_code: int) -> str:
    """Map common HTTP status codes to canonical, stable error codes."""
    mapping = {
        400: "bad_request",
        404: "not_found",
        405: "method_not_allowed",
        409: "conflict",
        500: "internal_server_error",
        503: "service_unavailable",
    }
    return mapping.get(status_code, "error")


def _as_problem(
    *,
    status: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Build an RFC 7807 Problem Details dict.

    :param status: HTTP status code.
    :param code: Stable machine-consumable error code.
    :param message: Human-readable error summary (safe for clients).
    :param details: Optional safe, structured details.
    :returns: Problem+JSON dictionary.
    :rtype: dict
    """
    problem = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": status,
        "detail": message,
        "instance": request.path if request else None,
        "code": code,
    }
    if details:
        problem["details"] = details
    problem["request_id"] = _ensure_request_id()
    return problem


def _problem_response(problem: dict[str, Any]) -> Response:
    """
    Return a Flask response with ``application/problem+json`` media type.

    :param problem: Problem details payload.
    :returns: Flask JSON Response with proper MIME type.
    :rtype: flask.Response
    """
    resp = jsonify(problem)
    resp.mimetype = "application/problem+json"
    return resp


def init_app(app: Flask) -> None:
    """
    Attach JSON error handlers to the Flask app.

    Notes
    -----
    - Guarantees RFC 7807 responses for all handled errors.
    - Ensures a correlation ``request_id`` is present on every error.
    - Emits 5xx with ``exc_info`` for traceability; 4xx as warnings.
    - Store errors are mapped here only; the repository layer never wraps them.
    """

    @app.before_request
    def _seed_request_id() -> None:
        _ensure_request_id()

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        error_code = _http_status_to_code(status)
        message = (err.description or error_code.replace("_", " ").capitalize()).strip()
        if status == HTTPStatus.NOT_FOUND and request:
            message = f"Route '{request.path}' not found"
        problem = _as_problem(status=status, code=error_code, message=message)
        level = log.error if status >= 500 else log.warning
        level(
            "HTTPException: code=%s status=%s detail=%s request_id=%s",
            error_code,
            status,
            message,
            problem.get("request_id"),
        )
        return _problem_response(problem), status

    @app.errorhandler(InvalidArgumentError)
    def handle_invalid_argument(err: InvalidArgumentError):
        problem = _as_problem(
            status=HTTPStatus.BAD_REQUEST,
            code="invalid_argument",
            message=str(err),
        )
        log.warning("InvalidArgumentError: %s request_id=%s", err, problem.get("request_id"))
        return _problem_response(problem), HTTPStatus.BAD_REQUEST

    @app.errorhandler(StaleDataError)
    def handle_stale_data(err: StaleDataError):
        # Lost an optimistic-concurrency race; the caller decides whether to retry
        problem = _as_problem(
            status=HTTPStatus.CONFLICT,
            code="conflict",
            message="Token was modified concurrently",
        )
        log.warning("StaleDataError: request_id=%s", problem.get("request_id"))
        return _problem_response(problem), HTTPStatus.CONFLICT

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        # Do not leak raw DB error to clients
        problem = _as_problem(
            status=HTTPStatus.CONFLICT,
            code="conflict",
            message="Resource conflict",
        )
        log.error(
            "IntegrityError: request_id=%s",
            problem.get("request_id"),
            exc_info=True,
        )
        return _problem_response(problem), HTTPStatus.CONFLICT

    @app.errorhandler(OperationalError)
    def handle_operational_error(err: OperationalError):
        problem = _as_problem(
            status=HTTPStatus.SERVICE_UNAVAILABLE,
            code="service_unavailable",
            message="Service temporarily unavailable",
        )
        log.error(
            "OperationalError: request_id=%s",
            problem.get("request_id"),
            exc_info=True,
        )
        return _problem_response(problem), HTTPStatus.SERVICE_UNAVAILABLE

    @app.errorhandler(EntropyUnavailableError)
    def handle_entropy_unavailable(err: EntropyUnavailableError):
        problem = _as_problem(
            status=HTTPStatus.SERVICE_UNAVAILABLE,
            code="service_unavailable",
            message="Token issuing temporarily unavailable",
            details={"attempted": list(err.attempted)},
        )
        log.error(
            "EntropyUnavailableError: attempted=%s request_id=%s",
            ",".join(err.attempted),
            problem.get("request_id"),
        )
        return _problem_response(problem), HTTPStatus.SERVICE_UNAVAILABLE

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        # Unexpected server-side error; never leak internal details
        problem = _as_problem(
            status=HTTPStatus.INTERNAL_SERVER_ERROR,
            code="internal_server_error",
            message="Unexpected error",
        )
        log.error(
            "Unhandled exception: request_id=%s",
            problem.get("request_id"),
            exc_info=True,
        )
        return _problem_response(problem), HTTPStatus.INTERNAL_SERVER_ERROR
