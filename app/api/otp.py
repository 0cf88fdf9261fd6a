"""
app/api/otp.py

Purpose: OTP HTTP endpoints

- POST /send: send a caller-supplied code by SMS
- POST /otp/request: generate, store and send a code
- POST /otp/verify: verify a submitted code (single use)

Errors raised by the services are translated by app.core.errors.
A missing body is treated as an empty one, so the services answer 400.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from app.core.logging import get_logger
from app.db.mongo import get_otp_codes_collection
from app.schemas.otp import (
    SendOtpRequest,
    SendOtpResponse,
    RequestOtpRequest,
    RequestOtpResponse,
    VerifyOtpRequest,
    VerifyOtpResponse,
    VerificationData,
)
from app.services.code_store import CodeStore
from app.services.esms_service import EsmsService
from app.services.issuance_service import IssuanceService
from app.services.verification_service import VerificationService, VERIFY_SUCCESS_MESSAGE
from utils.validation_utils import is_blank, normalize_phone

logger = get_logger(__name__)
router = APIRouter()


def get_sms_gateway() -> EsmsService:
    return EsmsService.from_settings()


def get_code_store() -> CodeStore:
    return CodeStore(get_otp_codes_collection())


def get_issuance_service(gateway: EsmsService = Depends(get_sms_gateway)) -> IssuanceService:
    return IssuanceService.from_settings(gateway)


def get_persistent_issuance_service(
    gateway: EsmsService = Depends(get_sms_gateway),
    store: CodeStore = Depends(get_code_store),
) -> IssuanceService:
    return IssuanceService.from_settings(gateway, store)


def get_verification_service(store: CodeStore = Depends(get_code_store)) -> VerificationService:
    return VerificationService(store)


@router.post("/send", response_model=SendOtpResponse)
async def send_otp(
    body: Optional[SendOtpRequest] = None,
    service: IssuanceService = Depends(get_issuance_service),
):
    """
    Sends the given code to the given phone number.

    Responses:
        200: {"message": "Gửi mã OTP thành công", "data": <eSMS response>}
        400: {"message": "Thiếu số điện thoại hoặc mã OTP", ...}
        500: {"message": "Gửi mã OTP thất bại", "error": "<reason>", ...}
    """
    body = body or SendOtpRequest()
    return await service.issue(body.phone, body.otp)


@router.post("/otp/request", response_model=RequestOtpResponse)
async def request_otp(
    body: Optional[RequestOtpRequest] = None,
    service: IssuanceService = Depends(get_persistent_issuance_service),
):
    """
    Generates a fresh code for the phone, stores it and sends it by SMS.
    """
    body = body or RequestOtpRequest()
    return await service.request_code(body.phone)


@router.post("/otp/verify", response_model=VerifyOtpResponse)
async def verify_otp(
    body: Optional[VerifyOtpRequest] = None,
    service: VerificationService = Depends(get_verification_service),
):
    """
    Verifies a code previously issued through /otp/request.
    """
    body = body or VerifyOtpRequest()
    user_id = None if is_blank(body.phone) else normalize_phone(body.phone)
    result = await service.verify(user_id, body.otp)
    return VerifyOtpResponse(
        message=VERIFY_SUCCESS_MESSAGE,
        data=VerificationData(user_id=result.user_id, verified_at=result.verified_at),
    )
