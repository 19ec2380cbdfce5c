import logging
from datetime import datetime
from uuid import uuid4

from fastapi import APIRouter, Body, Query
from fastapi.responses import JSONResponse

from . import storage
from .config import API_PREFIX
from .schemas import FeedbackRequest

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(f"{API_PREFIX}/feedback")
def submit_feedback(request: FeedbackRequest = Body(...)):
    entry_id = uuid4().hex
    payload = {
        **request.model_dump(),
        "timestamp": datetime.utcnow().isoformat(),
    }
    storage.save_feedback(request.location, request.activity, entry_id, payload)
    logger.info("Stored feedback %s for %s / %s", entry_id, request.location, request.activity)
    return JSONResponse({"id": entry_id, **payload}, status_code=201)


@router.get(f"{API_PREFIX}/feedback")
def experience_gallery(
    location: str = Query(..., min_length=1),
    activity: str = Query(..., min_length=1),
):
    return JSONResponse(
        {
            "location": location,
            "activity": activity,
            "feedbacks": storage.list_feedback(location, activity),
        }
    )
