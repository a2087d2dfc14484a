"""OTP and messaging endpoints.

Endpoints
---------
GET /send-otp?number=...              → issue an OTP and deliver it over WhatsApp
GET /verify-otp?number=...&otp=...    → check a previously issued OTP
GET /send-message?number=...&message= → deliver a plain text message
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from whatsapp_otp_gateway.api.dependencies import get_gateway
from whatsapp_otp_gateway.otp.store import VerifyResult
from whatsapp_otp_gateway.services.gateway import NotificationGateway

router = APIRouter(tags=["otp"])


@router.get("/send-otp")
async def send_otp(
    number: str | None = Query(None, description="Recipient phone number, digits only"),
    gateway: NotificationGateway = Depends(get_gateway),
):
    """Issue a fresh OTP for *number* and send it as an interactive message."""
    delivery = await gateway.request_otp(number)
    return {
        "message": "OTP sent successfully",
        "number": number,
        "otp": delivery.code,
        "status": delivery.status,
    }


@router.get("/verify-otp")
async def verify_otp(
    number: str | None = Query(None),
    otp: str | None = Query(None),
    gateway: NotificationGateway = Depends(get_gateway),
):
    """Check *otp* against the live code for *number*; a match consumes it."""
    result = gateway.verify_otp(number, otp)

    if result is VerifyResult.NOT_FOUND:
        return JSONResponse(
            status_code=400,
            content={"error": "OTP not found. Please request OTP first."},
        )
    if result is VerifyResult.MISMATCH:
        return JSONResponse(
            status_code=400,
            content={
                "error": "Invalid OTP or OTP expired. Please try again.",
                "status": "failure",
            },
        )
    return {"message": "OTP verified successfully!", "status": "success"}


@router.get("/send-message")
async def send_message(
    number: str | None = Query(None),
    message: str | None = Query(None),
    gateway: NotificationGateway = Depends(get_gateway),
):
    """Send *message* to *number* as a plain text WhatsApp message."""
    await gateway.send_message(number, message)
    return {"message": f"Message sent to {number}", "text": message}
