import logging

from fastapi import APIRouter, Form, Request
from fastapi.responses import JSONResponse, RedirectResponse

from ops_dashboard.core.config import settings
from ops_dashboard.interfaces.IOrderFeed import TransportError
from ops_dashboard.interfaces.web import get_api, get_session_store, templates, wants_html

router = APIRouter(prefix="/admin")
logger = logging.getLogger(__name__)


def _login_page(request: Request, otp_sent: bool = False, error: str | None = None, status_code: int = 200):
    if wants_html(request):
        return templates.TemplateResponse(
            request, "login.html",
            {"otp_sent": otp_sent, "error": error, "admin_email": settings.ADMIN_EMAIL},
            status_code=status_code,
        )
    return JSONResponse({"otp_sent": otp_sent, "error": error}, status_code=status_code)


@router.get("/login")
async def login_page(request: Request, sent: bool = False):
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if get_session_store(request).check_session(token):
        return RedirectResponse("/", status_code=303)
    return _login_page(request, otp_sent=sent)


@router.post("/login/otp")
async def send_otp(request: Request):
    try:
        await get_api(request).send_otp()
    except TransportError as e:
        logger.error("Failed to send OTP: %s", e)
        return _login_page(request, error="Failed to send OTP. Please try again.", status_code=502)
    logger.info("OTP sent to %s", settings.ADMIN_EMAIL)
    if wants_html(request):
        return RedirectResponse("/admin/login?sent=true", status_code=303)
    return {"otp_sent": True, "message": f"OTP has been sent to {settings.ADMIN_EMAIL}"}


@router.post("/login/verify")
async def verify_otp(request: Request, otp: str = Form("")):
    otp = otp.strip()
    if not otp:
        return _login_page(request, otp_sent=True, error="Please enter the OTP", status_code=400)

    try:
        verification = await get_api(request).verify_otp(settings.ADMIN_EMAIL, otp)
    except TransportError as e:
        logger.error("Failed to verify OTP: %s", e)
        return _login_page(request, otp_sent=True, error="Verification failed. Please try again.", status_code=502)

    if not verification.succeeded:
        logger.warning("Rejected OTP for %s", settings.ADMIN_EMAIL)
        return _login_page(request, otp_sent=True, error="Invalid OTP. Please try again.", status_code=401)

    token = get_session_store(request).create_session()
    if wants_html(request):
        response = RedirectResponse("/", status_code=303)
    else:
        response = JSONResponse({"authenticated": True})
    response.set_cookie(
        settings.SESSION_COOKIE_NAME, token,
        max_age=settings.SESSION_TTL_SECONDS, httponly=True, samesite="lax",
    )
    logger.info("✅ Admin session created for %s", settings.ADMIN_EMAIL)
    return response


@router.post("/logout")
async def logout(request: Request):
    get_session_store(request).clear_session(request.cookies.get(settings.SESSION_COOKIE_NAME))
    if wants_html(request):
        response = RedirectResponse("/admin/login", status_code=303)
    else:
        response = JSONResponse({"authenticated": False})
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response
