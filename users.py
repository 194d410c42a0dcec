"""Registration, login and profile management"""
import logging
from datetime import datetime, timezone
from typing import Optional

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from auth import create_access_token, hash_password, verify_password
from database import create_document
from errors import Conflict, NotFound, Unauthorized, ValidationError
from listings import oid, validated
from schemas import Link, User

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("name", "email", "githubUsername", "bio", "links")
EDITABLE_FIELDS = ("name", "bio", "githubUsername", "links")


def serialize_user(user_doc: dict) -> dict:
    data = {"id": str(user_doc.get("_id"))}
    for f in PROFILE_FIELDS:
        data[f] = user_doc.get(f)
    data["links"] = data["links"] or []
    return data


def _find_user(db, user_id: Optional[str]) -> dict:
    key = oid(user_id)
    user = db["user"].find_one({"_id": key}) if key else None
    if not user:
        raise NotFound("User not found")
    return user


def register_user(db, name: Optional[str], email: Optional[str], password: Optional[str]) -> dict:
    for field, value in (("name", name), ("email", email), ("password", password)):
        if not value:
            raise ValidationError(field)

    email = email.strip().lower()
    if db["user"].find_one({"email": email}, {"_id": 1}):
        raise Conflict("User with this email already exists")
    doc = validated(User, {"name": name, "email": email, "passwordHash": hash_password(password)})
    try:
        new_id = create_document(db, "user", doc.model_dump(exclude={"id", "createdAt", "updatedAt"}))
    except DuplicateKeyError:
        raise Conflict("User with this email already exists")
    logger.info("Registered user %s", new_id)
    return serialize_user(db["user"].find_one({"_id": ObjectId(new_id)}))


def login(db, email: Optional[str], password: Optional[str]) -> dict:
    if not email or not password:
        raise Unauthorized("Invalid credentials")
    user = db["user"].find_one({"email": email.strip().lower()})
    if not user or not verify_password(password, user.get("passwordHash", "")):
        raise Unauthorized("Invalid credentials")
    user_id = str(user["_id"])
    return {
        "access_token": create_access_token(user_id),
        "token_type": "bearer",
        "user": serialize_user(user),
    }


def get_profile(db, caller_id: Optional[str]) -> dict:
    if not caller_id:
        raise Unauthorized()
    return serialize_user(_find_user(db, caller_id))


def update_profile(db, caller_id: Optional[str], changes: dict) -> dict:
    """Set only the profile fields present in `changes`; absent fields keep their values."""
    if not caller_id:
        raise Unauthorized()
    user = _find_user(db, caller_id)
    update_doc = {f: changes[f] for f in EDITABLE_FIELDS if f in changes}
    if not update_doc.get("name"):
        update_doc.pop("name", None)
    if "links" in update_doc:
        update_doc["links"] = [
            l.model_dump() if isinstance(l, Link) else dict(l) for l in update_doc["links"] or []
        ]
    update_doc["updatedAt"] = datetime.now(timezone.utc)
    db["user"].update_one({"_id": user["_id"]}, {"$set": update_doc})
    logger.info("Profile updated for %s", caller_id)
    return serialize_user(db["user"].find_one({"_id": user["_id"]}))
