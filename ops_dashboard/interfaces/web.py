from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

from fastapi import HTTPException, Request
from fastapi.templating import Jinja2Templates

from ops_dashboard.application.orchestrator import OrdersBoard
from ops_dashboard.core.config import settings
from ops_dashboard.interfaces.ICommerceApi import ICommerceApi
from ops_dashboard.interfaces.ISessionStore import ISessionStore

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))
templates.env.globals["settings"] = settings


def wants_html(request: Request) -> bool:
    return "text/html" in request.headers.get("accept", "")


def get_api(request: Request) -> ICommerceApi:
    return request.app.state.api


def get_board(request: Request) -> OrdersBoard:
    return request.app.state.board


def get_session_store(request: Request) -> ISessionStore:
    return request.app.state.session_store


def require_admin(request: Request) -> None:
    """Route guard: the admin session cookie must name a live session."""
    if not settings.AUTH_ENABLED:
        return
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if get_session_store(request).check_session(token):
        return
    if wants_html(request):
        raise HTTPException(status_code=303, headers={"Location": "/admin/login"})
    raise HTTPException(status_code=401, detail="Not authenticated")


def same_origin_referer(request: Request) -> Optional[str]:
    """The Referer as a local path, or None when it points anywhere else."""
    referer = request.headers.get("referer")
    if not referer:
        return None
    target = urlsplit(referer)
    if target.scheme not in ("", "http", "https") or target.netloc not in ("", request.url.netloc):
        return None
    # browsers read "//host" and "/\host" as another origin
    if not target.path.startswith("/") or target.path[1:2] in ("/", "\\"):
        return None
    return urlunsplit(("", "", target.path, target.query, ""))


def pager(view) -> dict:
    return {
        "page_index": view.current_page_index,
        "page_count": view.page_count,
        "has_next_page": view.has_next_page,
        "has_previous_page": view.has_previous_page,
    }
