from __future__ import annotations

import secrets
from datetime import datetime
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from signupcodes.core.config import get_settings
from signupcodes.core.rate_limiter import rate_limit_ip
from signupcodes.domain.codes import CodeRecord, to_utc, utcnow
from signupcodes.services.errors import (
    CodeGenerationExhaustedError,
    CodeNotFoundError,
    CodeNotRedeemableError,
    InvalidCodeFormatError,
    InvalidCodeSettingsError,
    LifecycleUnavailableError,
    RedemptionUnavailableError,
)
from signupcodes.services.lifecycle_service import UNSET, CodePatch, LifecycleService
from signupcodes.services.redemption_service import RedemptionService

router = APIRouter(prefix="/signup-codes", tags=["signup-codes"])

ADMIN_TOKEN_HEADER = "x-admin-token"
NOT_REDEEMABLE_DETAIL = "Invalid or expired signup code"
UNAVAILABLE_DETAIL = "Signup codes are temporarily unavailable"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _require_future(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    normalized = to_utc(value)
    if normalized <= utcnow():
        raise ValueError("expiresAt must be in the future")
    return normalized


FutureDatetime = Annotated[Optional[datetime], AfterValidator(_require_future)]


class GenerateCodeRequest(_CamelModel):
    max_usages: int = Field(ge=1, le=10_000)
    created_by: str = Field(min_length=1, max_length=255)
    expires_at: FutureDatetime = None


class UpdateCodeRequest(_CamelModel):
    max_usages: Optional[int] = Field(None, ge=1, le=10_000)
    is_active: Optional[bool] = None
    expires_at: FutureDatetime = None


class CodeRequest(_CamelModel):
    code: str = Field(max_length=64)


class SignupCodeResponse(_CamelModel):
    code: str
    max_usages: int
    current_usages: int
    is_active: bool
    created_by: str
    expires_at: Optional[datetime]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @classmethod
    def from_record(cls, record: CodeRecord) -> "SignupCodeResponse":
        return cls(
            code=record.code,
            max_usages=record.max_usages,
            current_usages=record.current_usages,
            is_active=record.is_active,
            created_by=record.created_by,
            expires_at=record.expires_at,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class SignupCodeListResponse(_CamelModel):
    items: list[SignupCodeResponse] = Field(default_factory=list)
    next_offset: Optional[int] = None


class ValidateResponse(_CamelModel):
    valid: bool


class RedeemResponse(_CamelModel):
    code: str
    remaining_usages: int
    expires_at: Optional[datetime]


def _get_redemption_service(request: Request) -> RedemptionService:
    svc = getattr(getattr(request.app, "state", None), "redemption_service", None)
    if not svc:
        raise RuntimeError("RedemptionService not configured")
    return svc


def _get_lifecycle_service(request: Request) -> LifecycleService:
    svc = getattr(getattr(request.app, "state", None), "lifecycle_service", None)
    if not svc:
        raise RuntimeError("LifecycleService not configured")
    return svc


def require_admin(request: Request) -> None:
    expected = get_settings().admin_api_token
    supplied = (request.headers.get(ADMIN_TOKEN_HEADER) or "").strip()
    if not expected or not supplied:
        raise HTTPException(403, "Admin token required")
    if not secrets.compare_digest(expected, supplied):
        raise HTTPException(403, "Admin token invalid")


def _rate_limit(request: Request, scope: str) -> None:
    settings = get_settings()
    rate_limit_ip(
        request,
        scope,
        limit=settings.redeem_rate_limit,
        window_seconds=settings.redeem_rate_window_seconds,
    )


# -------------------------- public --------------------------
@router.post("/validate", response_model=ValidateResponse)
def validate_code(payload: CodeRequest, request: Request):
    _rate_limit(request, "signup-code-validate")
    svc = _get_redemption_service(request)
    try:
        valid = svc.check(payload.code)
    except InvalidCodeFormatError as exc:
        raise HTTPException(400, str(exc))
    except RedemptionUnavailableError:
        raise HTTPException(503, UNAVAILABLE_DETAIL)
    return ValidateResponse(valid=valid)


@router.post("/redeem", response_model=RedeemResponse)
def redeem_code(payload: CodeRequest, request: Request):
    _rate_limit(request, "signup-code-redeem")
    svc = _get_redemption_service(request)
    try:
        result = svc.redeem(payload.code)
    except InvalidCodeFormatError as exc:
        raise HTTPException(400, str(exc))
    except CodeNotRedeemableError:
        raise HTTPException(409, NOT_REDEEMABLE_DETAIL)
    except RedemptionUnavailableError:
        raise HTTPException(503, UNAVAILABLE_DETAIL)
    return RedeemResponse(code=result.code, remaining_usages=result.remaining_usages, expires_at=result.expires_at)


# -------------------------- admin --------------------------
@router.post("", response_model=SignupCodeResponse, status_code=201, dependencies=[Depends(require_admin)])
def generate_code(payload: GenerateCodeRequest, request: Request):
    svc = _get_lifecycle_service(request)
    try:
        record = svc.generate(payload.max_usages, payload.created_by, payload.expires_at)
    except InvalidCodeSettingsError as exc:
        raise HTTPException(400, exc.message)
    except CodeGenerationExhaustedError:
        raise HTTPException(500, "Could not generate a unique signup code")
    except LifecycleUnavailableError:
        raise HTTPException(503, UNAVAILABLE_DETAIL)
    return SignupCodeResponse.from_record(record)


@router.get("", response_model=SignupCodeListResponse, dependencies=[Depends(require_admin)])
def list_codes(
    request: Request,
    created_by: Optional[str] = Query(None, alias="createdBy"),
    active_only: bool = Query(False, alias="activeOnly"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    svc = _get_lifecycle_service(request)
    try:
        rows = svc.list_codes(created_by=created_by, active_only=active_only, limit=limit + 1, offset=offset)
    except LifecycleUnavailableError:
        raise HTTPException(503, UNAVAILABLE_DETAIL)
    more = len(rows) > limit
    page = rows[:limit]
    return SignupCodeListResponse(
        items=[SignupCodeResponse.from_record(r) for r in page],
        next_offset=(offset + len(page)) if more else None,
    )


@router.get("/{code}", response_model=SignupCodeResponse, dependencies=[Depends(require_admin)])
def code_status(code: str, request: Request):
    svc = _get_lifecycle_service(request)
    try:
        record = svc.get_status(code)
    except CodeNotFoundError:
        raise HTTPException(404, "Signup code not found")
    except LifecycleUnavailableError:
        raise HTTPException(503, UNAVAILABLE_DETAIL)
    return SignupCodeResponse.from_record(record)


@router.patch("/{code}", response_model=SignupCodeResponse, dependencies=[Depends(require_admin)])
def update_code(code: str, payload: UpdateCodeRequest, request: Request):
    svc = _get_lifecycle_service(request)
    sent = payload.model_fields_set
    patch = CodePatch(
        max_usages=payload.max_usages if "max_usages" in sent and payload.max_usages is not None else UNSET,
        is_active=payload.is_active if "is_active" in sent and payload.is_active is not None else UNSET,
        expires_at=payload.expires_at if "expires_at" in sent else UNSET,
    )
    try:
        record = svc.admin_update(code, patch)
    except CodeNotFoundError:
        raise HTTPException(404, "Signup code not found")
    except InvalidCodeSettingsError as exc:
        raise HTTPException(400, exc.message)
    except LifecycleUnavailableError:
        raise HTTPException(503, UNAVAILABLE_DETAIL)
    return SignupCodeResponse.from_record(record)
