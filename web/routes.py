"""
web/routes.py -- Jinja2 template routes for the DataWatchman pages.

These routes serve server-rendered HTML shells only. Each page talks to the
JSON API (/api/v1/...) from the browser with fetch(), so every data request
goes through the same origin and rate-limit gates as any other API client.
The pages' same-origin fetches carry a Referer, which the origin gate accepts.

Routes:
  GET /             -- home: what the project is, links to the three features
  GET /report       -- missing-identifier report form
  GET /lookup       -- USRN broadband lookup
  GET /streetworks  -- Paris street works browser
"""

import logging
from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from core.config import get_settings
from reports.models import DATASET_OWNERS, MISSING_TYPES

logger = logging.getLogger("datawatchman.web")

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
router = APIRouter()

_NAV = [
    ("/", "Home"),
    ("/report", "Report a dataset"),
    ("/lookup", "USRN lookup"),
    ("/streetworks", "Paris street works"),
]


def _render(request: Request, name: str, **context) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        name,
        {"nav": _NAV, "current_path": request.url.path, **context},
    )


@router.get("/", response_class=HTMLResponse)
def home(request: Request) -> HTMLResponse:
    return _render(request, "home.html")


@router.get("/report", response_class=HTMLResponse)
def report_form(request: Request) -> HTMLResponse:
    """Render the report form. Options mirror the API's accepted enum values."""
    return _render(
        request,
        "report.html",
        owner_options=DATASET_OWNERS,
        missing_types=MISSING_TYPES,
        description_max=500,
    )


@router.get("/lookup", response_class=HTMLResponse)
def usrn_lookup(request: Request) -> HTMLResponse:
    """Render the USRN lookup page.

    The password field is rendered server-side from settings; the page still
    re-checks /api/v1/auth-config so a cached page follows a config change.
    """
    settings = get_settings()
    return _render(
        request,
        "lookup.html",
        require_password=settings.require_password,
        enabled=settings.usrn_lookup_enabled,
    )


@router.get("/streetworks", response_class=HTMLResponse)
def street_works(request: Request) -> HTMLResponse:
    return _render(request, "streetworks.html", page_size=50)
