import json
import logging

import httpx
from paybridge.core.config import Settings
from paybridge.core.errors import UpstreamError
from paybridge.schemas.webhook import AppointmentUpdatePayload, PaymentOutcome

logger = logging.getLogger(__name__)

LOGIN_PATH = "/api/patientportal/NewUserLogin"
PAYMENT_UPDATE_PATH = "/api/patientportal/UpdtPmtGatewayDtlPortal"
APPOINTMENT_UPDATE_PATH = "/api/patientportal/UpdtDocApptReqForPortal"


def payment_param(outcome: PaymentOutcome, pmt_rec_id: str) -> str:
    """JSON for the PmtParam query parameter of the payment status update."""
    # the booking backend stores numeric receipt ids unquoted
    rec_id: int | str = int(pmt_rec_id) if pmt_rec_id.isdigit() else pmt_rec_id
    return json.dumps(
        {
            "OnlinePmtSuccessFlg": outcome.success_flag,
            "PmtStatus": outcome.status,
            "PmtStatusDesc": outcome.description,
            "PmtRecID": rec_id,
        },
        separators=(",", ":"),
    )


class BookingClient:
    """Calls into the appointment booking backend.

    Every update fetches its own guest token; tokens are never cached.
    """

    def __init__(self, http: httpx.AsyncClient, settings: Settings):
        self.http = http
        self.settings = settings
        self.base_url = settings.booking_base_url

    async def fetch_token(self) -> str:
        try:
            r = await self.http.get(
                self.base_url + LOGIN_PATH,
                params={
                    "UId": self.settings.booking_guest_user,
                    "UPwd": self.settings.booking_guest_password,
                },
            )
            r.raise_for_status()
            body = r.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error(f"Guest login against booking backend failed: {exc!r}")
            raise UpstreamError("Booking backend login failed") from exc

        token = (body.get("data") or {}).get("token") if isinstance(body, dict) else None
        if not token:
            logger.error("Guest login response carried no token")
            raise UpstreamError("Booking backend login failed")
        return token

    async def update_payment_status(
        self, outcome: PaymentOutcome, pmt_rec_id: str
    ) -> httpx.Response:
        token = await self.fetch_token()
        try:
            return await self.http.get(
                self.base_url + PAYMENT_UPDATE_PATH,
                params={"PmtParam": payment_param(outcome, pmt_rec_id)},
                headers={"TokenHeader": token},
            )
        except httpx.HTTPError as exc:
            logger.error(f"Payment status update failed: {exc!r}")
            raise UpstreamError("Booking backend request failed") from exc

    async def update_appointment(
        self, payload: AppointmentUpdatePayload
    ) -> httpx.Response:
        token = await self.fetch_token()
        try:
            return await self.http.post(
                self.base_url + APPOINTMENT_UPDATE_PATH,
                params={"objPost": ""},
                json=payload.model_dump(),
                headers={"TokenHeader": token},
            )
        except httpx.HTTPError as exc:
            logger.error(f"Appointment status update failed: {exc!r}")
            raise UpstreamError("Booking backend request failed") from exc

    def appointment_payload(
        self, outcome: PaymentOutcome, appt_req_no: str, pmt_rec_id: str
    ) -> AppointmentUpdatePayload:
        return AppointmentUpdatePayload(
            COCD=self.settings.booking_company_code,
            LOCCD=self.settings.booking_location_code,
            DIVCD=self.settings.booking_division_code,
            ApptReqNo=appt_req_no,
            ReqStsCd=1,
            AptmSts=outcome.appointment_status,
            PmtRecID=pmt_rec_id,
            IsPmtDone=outcome.payment_done,
        )
