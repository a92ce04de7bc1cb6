# backend/app/services/waiver_service.py
"""
Waiver Service

Records signed liability waivers. The full waiver text and its version are
stored with every signature.
"""

from typing import Optional

from sqlalchemy.orm import Session

from ..core.constants import WAIVER_VERSION
from ..core.exceptions import NotFoundException
from ..models.liability_waiver import LiabilityWaiver
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from ..schemas.waiver import WaiverSignRequest
from .base import BaseService
from .template_service import TemplateService

WAIVER_TEMPLATE = "waivers/liability_waiver.txt"


class WaiverService(BaseService):
    def __init__(self, db: Session, template_service: Optional[TemplateService] = None):
        super().__init__(db)
        self.repository = RepositoryFactory.create_base_repository(db, LiabilityWaiver)
        self.template_service = template_service or TemplateService()

    def current_text(self) -> str:
        return self.template_service.render_template(
            WAIVER_TEMPLATE, context={"waiver_version": WAIVER_VERSION}
        )

    @BaseService.measure_operation("sign_waiver")
    def sign(
        self,
        payload: WaiverSignRequest,
        user: Optional[User] = None,
        user_agent: Optional[str] = None,
    ) -> LiabilityWaiver:
        waiver_text = self.current_text()
        with self.transaction():
            waiver = self.repository.create(
                user_id=user.id if user is not None else None,
                signer_name=payload.signer_name,
                signer_email=str(payload.signer_email),
                signer_phone=payload.signer_phone,
                emergency_contact_name=payload.emergency_contact_name,
                emergency_contact_phone=payload.emergency_contact_phone,
                waiver_version=WAIVER_VERSION,
                waiver_text=waiver_text,
                user_agent=(user_agent or "")[:500] or None,
            )
        self.log_operation("sign_waiver", waiver_id=waiver.id)
        return waiver

    def get(self, waiver_id: str) -> LiabilityWaiver:
        waiver = self.repository.get_by_id(waiver_id)
        if waiver is None:
            raise NotFoundException("Waiver not found", code="WAIVER_NOT_FOUND")
        return waiver
