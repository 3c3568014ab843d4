from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cjklint.env import env_int, env_str
from cjklint.linting.config import LintConfig, option_name
from cjklint.linting.pipeline import run_lint
from cjklint.linting.rules import DEFAULT_RULES
from cjklint.logging_setup import ensure_file_logging
from cjklint.models import ErrorEnvelope, LintOptions, LintRequest, LintResponse, RuleListResponse, RuleOut

logger = logging.getLogger(__name__)

WORKDIR = Path(__file__).resolve().parent.parent

DEFAULT_MAX_TEXT_CHARS = 2_000_000


def _log_dir() -> Path:
    raw = env_str("CJKLINT_LOG_DIR")
    return Path(raw) if raw else WORKDIR / "output" / "logs"


def _max_text_chars() -> int:
    return max(1, env_int("CJKLINT_MAX_TEXT_CHARS", DEFAULT_MAX_TEXT_CHARS))


def _error_code_for_status(status_code: int) -> str:
    if status_code == 404:
        return "not_found"
    if status_code in {400, 413, 422}:
        return "bad_request"
    return "internal_error"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": ErrorEnvelope(code=_error_code_for_status(status_code), message=message).model_dump()},
    )


def _config_from_options(opts: LintOptions) -> LintConfig:
    return LintConfig(**opts.model_dump())


@asynccontextmanager
async def _lifespan(_app: FastAPI) -> AsyncIterator[None]:
    log_file = ensure_file_logging(log_dir=_log_dir())
    logger.info("file logging enabled: %s", log_file)
    yield


app = FastAPI(lifespan=_lifespan)


# Starlette raises its own HTTPException for unknown routes (404) and methods (405).
@app.exception_handler(StarletteHTTPException)
async def _http_exception_handler(_request: Request, exc: StarletteHTTPException):
    return _error(int(exc.status_code), str(exc.detail))


@app.exception_handler(RequestValidationError)
async def _validation_exception_handler(_request: Request, exc: RequestValidationError):
    msg = "bad request"
    errors = exc.errors()
    if errors:
        msg = errors[0].get("msg") or msg
    return _error(400, msg)


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled error: %s %s", request.method, request.url.path)
    return _error(500, str(exc))


@app.get("/healthz")
async def healthz():
    return {"ok": True}


@app.get("/api/v1/rules", response_model=RuleListResponse)
async def list_rules():
    defaults = LintConfig()
    return RuleListResponse(
        rules=[
            RuleOut(
                name=rule.name,
                option=option_name(rule.name),
                default_enabled=bool(getattr(defaults, option_name(rule.name))),
            )
            for rule in DEFAULT_RULES
        ]
    )


@app.post("/api/v1/lint", response_model=LintResponse)
def lint_text(body: LintRequest = Body(...)):
    limit = _max_text_chars()
    if len(body.text) > limit:
        raise HTTPException(status_code=413, detail=f"text too large (> {limit} chars)")

    result = run_lint(body.text, _config_from_options(body.options))
    return LintResponse(text=result.text, changed=result.text != body.text, stats=result.stats)
