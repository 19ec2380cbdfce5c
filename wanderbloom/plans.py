import base64
import binascii
import json
import logging
from datetime import datetime
from typing import Any, Dict
from uuid import uuid4

from fastapi import APIRouter, Body, HTTPException, Path
from fastapi.responses import JSONResponse

from . import storage
from .config import API_PREFIX, share_base_url
from .schemas import SavedPlanRequest, SharePlanRequest

router = APIRouter()
logger = logging.getLogger(__name__)


def encode_share_token(plan: Dict[str, Any]) -> str:
    raw = json.dumps(plan, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_share_token(token: str) -> Dict[str, Any]:
    padded = token + "=" * (-len(token) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
        data = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError) as exc:
        raise ValueError("Invalid share link") from exc
    if not isinstance(data, dict) or "recommendation" not in data:
        raise ValueError("Invalid share link")
    return data


def is_already_saved(user_id: str, title: str) -> bool:
    wanted = title.strip().lower()
    return any(
        ((plan.get("recommendation") or {}).get("title") or "").strip().lower() == wanted
        for plan in storage.list_plans(user_id)
    )


@router.post(f"{API_PREFIX}/plans")
def save_plan(request: SavedPlanRequest = Body(...)):
    if is_already_saved(request.userId, request.recommendation.title):
        raise HTTPException(status_code=409, detail="Already Saved")
    plan_id = uuid4().hex
    payload = {
        "userId": request.userId,
        "recommendation": request.recommendation.model_dump(),
        "details": request.details.model_dump(),
        "savedAt": datetime.utcnow().isoformat(),
    }
    storage.save_plan(request.userId, plan_id, payload)
    logger.info("Saved plan %s (%s) for user %s", plan_id, request.recommendation.title, request.userId)
    return JSONResponse({"id": plan_id, **payload}, status_code=201)


@router.get(f"{API_PREFIX}/plans/{{user_id}}")
def list_saved_plans(user_id: str = Path(..., min_length=1)):
    return JSONResponse({"userId": user_id, "plans": storage.list_plans(user_id)})


@router.delete(f"{API_PREFIX}/plans/{{user_id}}/{{plan_id}}")
def delete_saved_plan(user_id: str, plan_id: str):
    if storage.load_plan(user_id, plan_id) is None:
        raise HTTPException(status_code=404, detail="Plan not found")
    storage.delete_plan(user_id, plan_id)
    return JSONResponse({"deleted": plan_id})


@router.post(f"{API_PREFIX}/plans/share")
def share_plan(request: SharePlanRequest = Body(...)):
    plan = {
        "recommendation": request.recommendation.model_dump(),
        "details": request.details.model_dump(),
        "timestamp": datetime.utcnow().isoformat(),
    }
    token = encode_share_token(plan)
    return JSONResponse({"token": token, "shareLink": f"{share_base_url()}/share/{token}"})


@router.get(f"{API_PREFIX}/share/{{token}}")
def open_shared_plan(token: str):
    try:
        return JSONResponse(decode_share_token(token))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
