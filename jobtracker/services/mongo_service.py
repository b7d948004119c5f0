"""
MongoDB Service - CRUD operations for the document collections.

Collections in this database:
1. users - accounts; email is unique
2. jobs  - job application records, referenced to their owner by created_by

Every job query is filtered by owner, so one user's records never surface in
another user's results.
"""

import math
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from jobtracker.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from jobtracker.db.mongodb import COLLECTIONS
from jobtracker.schemas.schemas import JobResponse, JobSort, JobStatus, UserResponse

JOB_SORTS = {
    JobSort.latest: [("created_at", DESCENDING)],
    JobSort.oldest: [("created_at", ASCENDING)],
    JobSort.a_z: [("position", ASCENDING)],
    JobSort.z_a: [("position", DESCENDING)],
}

STATS_MONTHS = 6


def utcnow() -> datetime:
    return as_utc(datetime.now(timezone.utc))


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """MongoDB hands back naive UTC datetimes with millisecond precision; normalise to that, tz-aware."""
    if value is None:
        return None
    value = value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value.astimezone(timezone.utc)
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def to_object_id(value: str) -> Optional[ObjectId]:
    """Parse a client-supplied id; None when it isn't a valid ObjectId."""
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        return None
    return ObjectId(value)


# ============================================================
# HELPER: Convert documents to API responses
# ============================================================

def serialize_user(doc: dict) -> UserResponse:
    """Public view of a user document. The password hash never leaves here."""
    return UserResponse(
        id=str(doc["_id"]),
        email=doc["email"],
        name=doc.get("name"),
        last_name=doc.get("last_name"),
        location=doc.get("location"),
        created_at=as_utc(doc["created_at"]),
    )


def serialize_job(doc: dict) -> JobResponse:
    return JobResponse(
        id=str(doc["_id"]),
        created_by=str(doc["created_by"]),
        company=doc["company"],
        position=doc["position"],
        status=doc["status"],
        job_type=doc["job_type"],
        job_location=doc.get("job_location"),
        applied_date=as_utc(doc.get("applied_date") or doc["created_at"]),
        created_at=as_utc(doc["created_at"]),
        updated_at=as_utc(doc.get("updated_at") or doc["created_at"]),
    )


# ============================================================
# USERS COLLECTION
# ============================================================

class UserService:
    """
    Handles user account storage.
    Passwords arrive here already hashed.
    """

    def __init__(self, db: Database):
        self.collection: Collection = db[COLLECTIONS["users"]]

    def get_by_email(self, email: str) -> Optional[dict]:
        return self.collection.find_one({"email": email})

    def get_by_id(self, user_id: str) -> Optional[dict]:
        oid = to_object_id(user_id)
        if oid is None:
            return None
        return self.collection.find_one({"_id": oid})

    def create(self, email: str, password_hash: str, profile: Dict[str, Any]) -> dict:
        """
        Insert a new user.

        Raises:
            ConflictError: email already registered
        """
        now = utcnow()
        doc = {
            "email": email,
            "password": password_hash,
            "name": profile.get("name"),
            "last_name": profile.get("last_name"),
            "location": profile.get("location"),
            "created_at": now,
            "updated_at": now,
        }
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError:
            # Lost a race with a concurrent registration for the same email
            raise ConflictError("Email already in use")
        doc["_id"] = result.inserted_id
        return doc

    def update(self, user_id: str, fields: Dict[str, Any]) -> Optional[dict]:
        """Apply profile changes; returns the updated document, or None if the user is gone."""
        oid = to_object_id(user_id)
        if oid is None:
            return None
        try:
            return self.collection.find_one_and_update(
                {"_id": oid},
                {"$set": {**fields, "updated_at": utcnow()}},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            raise ConflictError("Email already in use")


# ============================================================
# JOBS COLLECTION
# ============================================================

class JobService:
    """
    Handles job application records.
    All lookups take the caller's user id and enforce ownership.
    """

    def __init__(self, db: Database):
        self.collection: Collection = db[COLLECTIONS["jobs"]]

    def list_for_user(
        self,
        user_id: str,
        status: Optional[str] = None,
        job_type: Optional[str] = None,
        search: Optional[str] = None,
        sort: JobSort = JobSort.latest,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[dict], int, int]:
        """
        Fetch one page of the caller's jobs.

        Returns:
            (documents, total matching jobs, number of pages)
        """
        query: Dict[str, Any] = {"created_by": ObjectId(user_id)}
        if status and status != "all":
            query["status"] = status
        if job_type and job_type != "all":
            query["job_type"] = job_type
        if search:
            query["position"] = {"$regex": re.escape(search), "$options": "i"}

        total = self.collection.count_documents(query)
        cursor = (
            self.collection.find(query)
            .sort(JOB_SORTS[sort])
            .skip((page - 1) * limit)
            .limit(limit)
        )
        return list(cursor), total, math.ceil(total / limit)

    def create(self, user_id: str, data: Dict[str, Any]) -> dict:
        now = utcnow()
        doc = {
            "company": data["company"],
            "position": data["position"],
            "status": data.get("status") or JobStatus.pending.value,
            "job_type": data["job_type"],
            "job_location": data.get("job_location"),
            "applied_date": data.get("applied_date") or now,
            "created_by": ObjectId(user_id),
            "created_at": now,
            "updated_at": now,
        }
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    def get_for_user(self, job_id: str, user_id: str) -> dict:
        """
        Fetch a job the caller owns.

        Raises:
            NotFoundError: malformed id or no such job
            ForbiddenError: the job belongs to another user
        """
        oid = to_object_id(job_id)
        doc = self.collection.find_one({"_id": oid}) if oid is not None else None
        if doc is None:
            raise NotFoundError(f"No job with id {job_id}")
        if str(doc["created_by"]) != user_id:
            raise ForbiddenError("Not authorized to access this job")
        return doc

    def update_for_user(self, job_id: str, user_id: str, fields: Dict[str, Any]) -> dict:
        doc = self.get_for_user(job_id, user_id)

        for required in ("company", "position"):
            if required in fields and fields[required] is None:
                raise ValidationError(f"{required}: cannot be empty")
        # A null status/type/date means "leave as is"; a null location clears it
        changes = {
            key: value
            for key, value in fields.items()
            if value is not None or key == "job_location"
        }
        if not changes:
            return doc

        changes["updated_at"] = utcnow()
        updated = self.collection.find_one_and_update(
            {"_id": doc["_id"], "created_by": doc["created_by"]},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            # Deleted between the ownership check and the write
            raise NotFoundError(f"No job with id {job_id}")
        return updated

    def delete_for_user(self, job_id: str, user_id: str) -> None:
        doc = self.get_for_user(job_id, user_id)
        result = self.collection.delete_one({"_id": doc["_id"], "created_by": doc["created_by"]})
        if result.deleted_count == 0:
            raise NotFoundError(f"No job with id {job_id}")

    def stats_for_user(self, user_id: str) -> Tuple[Dict[str, int], List[Dict[str, Any]]]:
        """
        Count the caller's jobs per status, and per month for the last
        STATS_MONTHS months that have any applications (oldest first).
        """
        owner = ObjectId(user_id)

        status_counts = {status.value: 0 for status in JobStatus}
        for row in self.collection.aggregate([
            {"$match": {"created_by": owner}},
            {"$group": {"_id": "$status", "count": {"$sum": 1}}},
        ]):
            if row["_id"] in status_counts:
                status_counts[row["_id"]] = row["count"]

        monthly = list(self.collection.aggregate([
            {"$match": {"created_by": owner}},
            {"$group": {
                "_id": {"year": {"$year": "$created_at"}, "month": {"$month": "$created_at"}},
                "count": {"$sum": 1},
            }},
            {"$sort": {"_id.year": -1, "_id.month": -1}},
            {"$limit": STATS_MONTHS},
        ]))
        monthly_applications = [
            {
                "date": datetime(row["_id"]["year"], row["_id"]["month"], 1).strftime("%b %Y"),
                "count": row["count"],
            }
            for row in reversed(monthly)
        ]
        return status_counts, monthly_applications
