"""
api/routes/v1/submissions.py -- Missing-identifier report submission.

  POST /submissions -- append one report to the submissions table

Besides the shared origin gate and the endpoint-wide fixed-window counter,
this write endpoint carries a per-client slowapi limit
(SUBMISSION_RATE_LIMIT). The @limiter.limit() decorator sits BELOW
@router.post so FastAPI registers the wrapped function; the limit is a
callable, which SlowAPIMiddleware leaves to the decorator. It is checked
after the origin gate and body validation, so rejected requests do not
count against the client.
"""

import logging

from fastapi import APIRouter, Depends, Request

from api.gating import SUBMISSIONS, enforce_rate_limit, require_allowed_origin
from api.limiter import limiter
from api.models import SubmissionRequest, SubmissionResponse
from core.config import get_settings
from core.errors import ConfigurationMissing

logger = logging.getLogger("datawatchman.submissions")

router = APIRouter()


@router.post(
    "/submissions",
    response_model=SubmissionResponse,
    dependencies=[Depends(require_allowed_origin), Depends(enforce_rate_limit(SUBMISSIONS))],
)
@limiter.limit(lambda: get_settings().submission_rate_limit)
def post_submission(request: Request, body: SubmissionRequest) -> SubmissionResponse:
    """Store a report that a dataset is missing USRN and/or UPRN identifiers."""
    store = request.app.state.submissions
    if store is None:
        raise ConfigurationMissing("DATABASE_URL unset")

    submission_id, created_at = store.insert(body.to_submission())
    logger.info("Report %s stored (missing %s)", submission_id, body.missing_type.value)
    return SubmissionResponse(id=submission_id, created_at=created_at)
