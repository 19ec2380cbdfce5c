import os
import re
from typing import Any, Optional

from google.cloud import firestore

_client: Optional[firestore.Client] = None
_root_collection = os.getenv("FIRESTORE_COLLECTION", "wanderbloom")


def _get_client() -> firestore.Client:
    global _client
    if _client is None:
        _client = firestore.Client()
    return _client


def _root() -> firestore.DocumentReference:
    return _get_client().collection(_root_collection).document("data")


def _slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", (value or "").lower()).strip("-") or "unknown"


def _plans(user_id: str) -> firestore.CollectionReference:
    return _root().collection("users").document(user_id).collection("plans")


def _feedback(location: str, activity: str) -> firestore.CollectionReference:
    key = f"{_slug(location)}--{_slug(activity)}"
    return _root().collection("feedback").document(key).collection("entries")


def _interactions(user_id: str) -> firestore.CollectionReference:
    return _root().collection("users").document(user_id).collection("interactions")


def _stream(collection: firestore.CollectionReference) -> list[dict[str, Any]]:
    out = []
    for snapshot in collection.stream():
        data = snapshot.to_dict() or {}
        data["id"] = snapshot.id
        out.append(data)
    return out


def save_plan(user_id: str, plan_id: str, payload: dict[str, Any]) -> None:
    _plans(user_id).document(plan_id).set(payload)


def load_plan(user_id: str, plan_id: str) -> dict[str, Any] | None:
    snapshot = _plans(user_id).document(plan_id).get()
    if snapshot.exists:
        data = snapshot.to_dict() or {}
        data["id"] = plan_id
        return data
    return None


def list_plans(user_id: str) -> list[dict[str, Any]]:
    return sorted(_stream(_plans(user_id)), key=lambda plan: plan.get("savedAt") or "")


def delete_plan(user_id: str, plan_id: str) -> None:
    _plans(user_id).document(plan_id).delete()


def save_feedback(location: str, activity: str, entry_id: str, payload: dict[str, Any]) -> None:
    _feedback(location, activity).document(entry_id).set(payload)


def list_feedback(location: str, activity: str) -> list[dict[str, Any]]:
    entries = _stream(_feedback(location, activity))
    return sorted(entries, key=lambda entry: entry.get("timestamp") or "", reverse=True)


def save_interaction(user_id: str, interaction_id: str, payload: dict[str, Any]) -> None:
    _interactions(user_id).document(interaction_id).set(payload)
