import logging
from datetime import datetime
from typing import List, Optional

from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from mockly.core.config import settings
from mockly.core.database import parse_object_id
from mockly.models.interview import (
    CompletedInterview,
    CompletedInterviewCreate,
    SaveInterviewResponse,
    compute_total_score,
)

logger = logging.getLogger(__name__)


class InterviewRepository:
    """Completed interview records, readable only by the user who created them"""

    def __init__(self, collection):
        self.collection = collection

    def save(self, user_id: str, data: CompletedInterviewCreate) -> SaveInterviewResponse:
        doc = data.model_dump(by_alias=True)
        doc["totalScore"] = compute_total_score(data.category_scores)
        doc["userId"] = user_id
        doc["completedAt"] = datetime.now()

        try:
            result = self.collection.insert_one(doc)
        except PyMongoError as e:
            logger.error(f"❌ [DB] Error saving interview: {e}")
            return SaveInterviewResponse(success=False, message="Failed to save interview")

        interview_id = str(result.inserted_id)
        logger.info(f"✅ [DB] Saved completed interview {interview_id} for user {user_id}")
        return SaveInterviewResponse(success=True, message="Interview saved successfully", interview_id=interview_id)

    def list_for_user(self, user_id: str, limit: Optional[int] = None) -> List[CompletedInterview]:
        limit = limit or settings.RECENT_INTERVIEWS_LIMIT
        try:
            cursor = self.collection.find({"userId": user_id}).sort("completedAt", DESCENDING).limit(limit)
            return [self._to_model(doc) for doc in cursor]
        except PyMongoError as e:
            logger.error(f"❌ [DB] Error fetching completed interviews: {e}")
            return []

    def get_by_id(self, interview_id: str, user_id: str) -> Optional[CompletedInterview]:
        object_id = parse_object_id(interview_id)
        if object_id is None:
            return None

        try:
            doc = self.collection.find_one({"_id": object_id})
        except PyMongoError as e:
            logger.error(f"❌ [DB] Error fetching interview {interview_id}: {e}")
            return None

        if doc is None or doc.get("userId") != user_id:
            return None
        return self._to_model(doc)

    @staticmethod
    def _to_model(doc: dict) -> CompletedInterview:
        doc = dict(doc)
        doc["id"] = str(doc.pop("_id"))
        return CompletedInterview.model_validate(doc)
