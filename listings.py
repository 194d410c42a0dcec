"""
Project listings: filtered retrieval, owner-gated mutation, and the
interest/message side collections.

All functions take the database explicitly and raise errors.AppError
subclasses; main.py maps those to HTTP responses.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

import pydantic
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from config import BASE_CATEGORIES, PROJECT_DEFAULTS, REQUIRED_PROJECT_FIELDS
from database import create_document
from errors import Conflict, Forbidden, NotFound, Unauthorized, ValidationError
from filters import build_project_filter
from schemas import Project, ProjectInterest, ProjectMessage

logger = logging.getLogger(__name__)

MUTABLE_FIELDS = REQUIRED_PROJECT_FIELDS + list(PROJECT_DEFAULTS)

# Creator fields joined into listings; never email on the public list
LIST_CREATOR_FIELDS = ("name", "image")
DETAIL_CREATOR_FIELDS = ("name", "email", "image", "githubUsername")

NEWEST_FIRST = [("createdAt", -1), ("_id", -1)]


# --------- Utilities ---------

def oid(id_str: Optional[str]) -> Optional[ObjectId]:
    if id_str and ObjectId.is_valid(id_str):
        return ObjectId(id_str)
    return None


def serialize(doc: dict) -> dict:
    if not doc:
        return doc
    doc["id"] = str(doc.get("_id"))
    doc.pop("_id", None)
    return doc


def validated(model, data: dict):
    try:
        return model(**data)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        field = str(first["loc"][-1]) if first.get("loc") else "body"
        raise ValidationError(field, f"Invalid value for field: {field}")


def _creator_summary(user: Optional[dict], fields) -> Optional[dict]:
    if not user:
        return None
    summary = {"id": str(user["_id"])}
    for f in fields:
        summary[f] = user.get(f)
    return summary


def _find_project(db, project_id: Optional[str]) -> dict:
    key = oid(project_id)
    project = db["project"].find_one({"_id": key}) if key else None
    if not project:
        raise NotFound("Project not found")
    return project


def _require_owner(db, caller_id: Optional[str], project_id: str, action: str) -> dict:
    if not caller_id:
        raise Unauthorized()
    project = _find_project(db, project_id)
    if project["creatorId"] != caller_id:
        raise Forbidden(f"You do not have permission to {action} this project")
    return project


# --------- Projects ---------

def list_projects(db, category=None, difficulty=None, title=None, search=None, creator_id=None) -> list:
    query = build_project_filter(
        category=category, difficulty=difficulty, title=title, search=search, creator_id=creator_id
    )
    items = list(db["project"].find(query).sort(NEWEST_FIRST))

    creator_keys = [k for k in {oid(i.get("creatorId")) for i in items} if k]
    projection = {f: 1 for f in LIST_CREATOR_FIELDS}
    creators = {
        str(u["_id"]): u for u in db["user"].find({"_id": {"$in": creator_keys}}, projection)
    } if creator_keys else {}

    results = []
    for item in items:
        item = serialize(item)
        item["creator"] = _creator_summary(creators.get(item.get("creatorId")), LIST_CREATOR_FIELDS)
        results.append(item)
    return results


def get_project(db, project_id: str) -> dict:
    project = serialize(_find_project(db, project_id))
    creator = None
    key = oid(project.get("creatorId"))
    if key:
        creator = db["user"].find_one({"_id": key}, {f: 1 for f in DETAIL_CREATOR_FIELDS})
    project["creator"] = _creator_summary(creator, DETAIL_CREATOR_FIELDS)
    return project


def create_project(db, caller_id: Optional[str], payload: dict) -> dict:
    if not caller_id:
        raise Unauthorized()
    for field in REQUIRED_PROJECT_FIELDS:
        if not payload.get(field):
            raise ValidationError(field)

    data = {f: payload[f] for f in REQUIRED_PROJECT_FIELDS}
    for field, default in PROJECT_DEFAULTS.items():
        data[field] = payload.get(field) or default
    data["creatorId"] = caller_id

    doc = validated(Project, data).model_dump(exclude={"id", "createdAt", "updatedAt"})
    new_id = create_document(db, "project", doc)
    logger.info("Project %s created by %s", new_id, caller_id)
    return serialize(db["project"].find_one({"_id": ObjectId(new_id)}))


def update_project(db, caller_id: Optional[str], project_id: str, payload: dict) -> dict:
    existing = _require_owner(db, caller_id, project_id, "update")

    for field in REQUIRED_PROJECT_FIELDS:
        if field in payload and payload[field] is not None and not payload[field]:
            raise ValidationError(field)

    changes = {f: payload[f] for f in MUTABLE_FIELDS if payload.get(f) is not None}
    merged = {k: v for k, v in existing.items() if k != "_id"}
    merged.update(changes)
    validated(Project, merged)

    changes["updatedAt"] = datetime.now(timezone.utc)
    db["project"].update_one({"_id": existing["_id"]}, {"$set": changes})
    logger.info("Project %s updated by %s", project_id, caller_id)
    return serialize(db["project"].find_one({"_id": existing["_id"]}))


def delete_project(db, caller_id: Optional[str], project_id: str) -> None:
    existing = _require_owner(db, caller_id, project_id, "delete")
    db["project"].delete_one({"_id": existing["_id"]})
    # cleanup related
    pid = str(existing["_id"])
    interests = db["projectinterest"].delete_many({"projectId": pid}).deleted_count
    messages = db["projectmessage"].delete_many({"projectId": pid}).deleted_count
    logger.info(
        "Project %s deleted by %s (%d interests, %d messages removed)",
        pid, caller_id, interests, messages,
    )


def user_projects(db, caller_id: Optional[str]) -> list:
    if not caller_id:
        raise Unauthorized()
    projects = list_projects(db, creator_id=caller_id)
    for p in projects:
        p["interestCount"] = db["projectinterest"].count_documents({"projectId": p["id"]})
    return projects


# --------- Categories ---------

def list_categories(db) -> list:
    return list(db["project"].distinct("category"))


def category_options(in_use: list) -> list:
    """Seed categories followed by any in-use category not already among them."""
    options = list(BASE_CATEGORIES)
    for c in in_use:
        if c not in options:
            options.append(c)
    return options


# --------- Interest ---------

def express_interest(db, caller_id: Optional[str], project_id: Optional[str]) -> None:
    if not caller_id:
        raise Unauthorized()
    if not project_id:
        raise ValidationError("projectId", "Project ID is required")
    project = _find_project(db, project_id)
    if project["creatorId"] == caller_id:
        raise Conflict("You cannot express interest in your own project")

    if has_interest(db, caller_id, str(project["_id"])):
        raise Conflict("You have already expressed interest in this project")

    doc = ProjectInterest(userId=caller_id, projectId=str(project["_id"]))
    try:
        # concurrent inserts are settled by the unique (userId, projectId) index
        create_document(db, "projectinterest", doc.model_dump(exclude={"id", "createdAt"}))
    except DuplicateKeyError:
        raise Conflict("You have already expressed interest in this project")
    logger.info("User %s expressed interest in project %s", caller_id, project["_id"])


def has_interest(db, caller_id: Optional[str], project_id: Optional[str]) -> bool:
    if not caller_id or not project_id:
        return False
    return db["projectinterest"].find_one({"userId": caller_id, "projectId": project_id}) is not None


# --------- Messages ---------

def send_message(db, caller_id: Optional[str], project_id: Optional[str], content: Optional[str]) -> dict:
    if not caller_id:
        raise Unauthorized()
    if not project_id or not (content and content.strip()):
        raise ValidationError(
            "projectId" if not project_id else "message",
            "Project ID and message are required",
        )
    project = _find_project(db, project_id)
    creator_id = project["creatorId"]
    if creator_id == caller_id:
        raise Conflict("You cannot message your own project")

    sender_key = oid(caller_id)
    sender = db["user"].find_one({"_id": sender_key}) if sender_key else None
    if not sender:
        raise NotFound("Sender not found")

    doc = ProjectMessage(
        content=content,
        projectId=str(project["_id"]),
        senderId=caller_id,
        recipientId=creator_id,
    )
    message_id = create_document(db, "projectmessage", doc.model_dump(exclude={"id", "createdAt"}))
    logger.info("Message %s sent by %s on project %s", message_id, caller_id, project["_id"])

    recipient_key = oid(creator_id)
    recipient = db["user"].find_one({"_id": recipient_key}) if recipient_key else None
    recipient_name = None
    if recipient:
        recipient_name = recipient.get("name") or recipient.get("email")
    return {
        "messageId": message_id,
        "projectTitle": project["title"],
        "recipientId": creator_id,
        "recipientName": recipient_name,
    }
