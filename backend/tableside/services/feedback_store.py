"""Diner feedback persistence.

Feedback is kept as one JSON list per tenant in the key-value store. Each
write reads the whole list, appends, and writes it back.
"""

import logging
from abc import ABC, abstractmethod
from typing import List

from pydantic import ValidationError

from tableside.core.exceptions import BackendUnavailable, ValidationFailure
from tableside.schemas.feedback import FeedbackRecord

logger = logging.getLogger(__name__)

FEEDBACK_KEY = "feedbacks"


class FeedbackStore(ABC):
    @abstractmethod
    def store(self, record: FeedbackRecord) -> None:
        ...

    @abstractmethod
    def list(self) -> List[FeedbackRecord]:
        ...


class KeyValueFeedbackStore(FeedbackStore):
    def __init__(self, kv, tenant_id: int):
        self.kv = kv
        self.key = f"{FEEDBACK_KEY}:{tenant_id}"

    def _load(self) -> list:
        try:
            return self.kv.get(self.key) or []
        except Exception as e:
            logger.error(f"Failed to read feedback list {self.key}: {e}")
            raise BackendUnavailable("Failed to load feedback")

    def store(self, record: FeedbackRecord) -> None:
        records = self._load()
        records.append(record.model_dump(mode="json"))
        try:
            self.kv.set(self.key, records)
        except Exception as e:
            logger.error(f"Failed to write feedback list {self.key}: {e}")
            raise BackendUnavailable("Failed to save feedback")

    def list(self) -> List[FeedbackRecord]:
        try:
            return [FeedbackRecord.model_validate(r) for r in self._load()]
        except ValidationError as e:
            raise ValidationFailure(f"Malformed feedback record: {e}")
