# backend/app/routes/waivers.py
"""
Liability waiver routes.

Router Endpoints:
    GET /waivers/current - Current waiver text and version
    POST /waivers - Sign the current waiver
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, status

from ..api.dependencies import get_current_user_optional, get_waiver_service
from ..core.constants import WAIVER_VERSION
from ..core.exceptions import DomainException
from ..models.user import User
from ..schemas.waiver import WaiverResponse, WaiverSignRequest, WaiverTextResponse
from ..services.waiver_service import WaiverService
from . import handle_domain_exception

router = APIRouter(prefix="/waivers", tags=["waivers"])


@router.get("/current", response_model=WaiverTextResponse)
def get_current_waiver(
    waiver_service: WaiverService = Depends(get_waiver_service),
) -> WaiverTextResponse:
    return WaiverTextResponse(waiver_version=WAIVER_VERSION, waiver_text=waiver_service.current_text())


@router.post("", response_model=WaiverResponse, status_code=status.HTTP_201_CREATED)
def sign_waiver(
    payload: WaiverSignRequest,
    request: Request,
    current_user: Optional[User] = Depends(get_current_user_optional),
    waiver_service: WaiverService = Depends(get_waiver_service),
) -> WaiverResponse:
    try:
        waiver = waiver_service.sign(
            payload, user=current_user, user_agent=request.headers.get("user-agent")
        )
    except DomainException as e:
        handle_domain_exception(e)

    return WaiverResponse.model_validate(waiver)
