"""
api/routes/v1/usrn.py -- USRN broadband lookup and its page configuration.

  POST /usrn-lookup  -- BDUK gigabit availability for one street
  GET  /auth-config  -- tells the lookup page whether to show a password field

The lookup is password-protected when REQUIRE_PASSWORD is true (the default).
The password is compared in constant time. A missing password in config is a
server-side problem (500), not the caller's (401).
"""

import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request

from api.gating import USRN_LOOKUP, enforce_rate_limit, require_allowed_origin
from api.models import AuthConfigResponse, UsrnLookupRequest, UsrnLookupResponse
from bduk.summary import summarize_premises
from core.config import get_settings
from core.errors import AccessDenied, ConfigurationMissing, FeatureDisabled, NoDataFound

logger = logging.getLogger("datawatchman.usrn")

router = APIRouter()


def _check_password(supplied: Optional[str]) -> None:
    settings = get_settings()
    if not settings.require_password:
        return
    expected = settings.usrn_access_password
    if not expected:
        raise ConfigurationMissing("USRN_ACCESS_PASSWORD unset while REQUIRE_PASSWORD is true")
    if not supplied or not hmac.compare_digest(supplied.encode(), expected.encode()):
        raise AccessDenied("bad USRN access password")


@router.post(
    "/usrn-lookup",
    response_model=UsrnLookupResponse,
    dependencies=[Depends(require_allowed_origin), Depends(enforce_rate_limit(USRN_LOOKUP))],
)
def post_usrn_lookup(request: Request, body: UsrnLookupRequest) -> UsrnLookupResponse:
    """Summarize gigabit availability for every BDUK premise on a USRN.

    A USRN absent from the dataset answers 404 with no premises, not 500.
    """
    if not get_settings().usrn_lookup_enabled:
        raise FeatureDisabled("USRN_LOOKUP_ENABLED is false")

    _check_password(body.password)

    store = request.app.state.premises
    if store is None:
        raise ConfigurationMissing("premises store not configured")

    premises = store.premises_for_usrn(body.usrn)
    if not premises:
        raise NoDataFound("No data found for this USRN", detail=f"USRN {body.usrn} has no premises")

    logger.info("USRN %s: %d premises", body.usrn, len(premises))
    return UsrnLookupResponse.from_report(summarize_premises(body.usrn, premises))


@router.get(
    "/auth-config",
    response_model=AuthConfigResponse,
    dependencies=[Depends(require_allowed_origin)],
)
def get_auth_config() -> AuthConfigResponse:
    """Whether the USRN lookup expects a password. Not rate limited."""
    return AuthConfigResponse(require_password=get_settings().require_password)
