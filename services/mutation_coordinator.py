"""Drive the upload and compare operations against the contract.

Both coordinators follow ``idle -> pending -> (success | failure)``. A failed
upload keeps its draft so it can be retried; a successful one clears the draft
and marks the baseline feed and count reads stale. A successful comparison
moves to ``result_shown``; its result is never written to the read cache.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional

from dal.contract_gateway import ContractGatewayError
from dal.image_dal import ImageDAL
from models.image_record import ComparisonResult
from services.query_resolver import COUNT_METHOD, RECENT_METHOD
from services.result_cache import ResultCache
from utils.media_validation import UploadValidationError, encode_image_payload, validate_image_upload

DEFAULT_UPLOADER = "Anonymous"


class MutationStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    RESULT_SHOWN = "result_shown"


class MutationFailedError(RuntimeError):
    """Raised when the remote service rejects or never answers a mutation."""


class MutationInProgressError(RuntimeError):
    """Raised when a mutation is submitted while the previous one is pending."""


class CompareValidationError(ValueError):
    """Raised when a comparison request is rejected locally.

    Attributes:
        reason: ``"insufficient_selection"`` or ``"same_image"``.
    """

    def __init__(self, message: str, reason: str) -> None:
        super().__init__(message)
        self.reason = reason


@dataclass(frozen=True)
class UploadDraft:
    """An image waiting to be submitted, kept across failed attempts."""

    content: bytes
    content_type: str
    filename: str = "upload"
    title: str = ""
    uploader: str = ""

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class UploadReceipt:
    confirmation: Any
    title: str
    uploader: str
    timestamp: str


def utc_timestamp(moment: datetime) -> str:
    """Format `moment` as ISO-8601 UTC with millisecond precision and a Z suffix."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class UploadCoordinator:
    """Validate, encode and submit image uploads.

    Args:
        dal: Data access layer used for the write call.
        cache: Read cache to invalidate after a successful upload.
        now: Source of the submission time, injectable for tests.
    """

    INVALIDATED_PREFIXES = (RECENT_METHOD, COUNT_METHOD)

    def __init__(
        self,
        dal: ImageDAL,
        cache: ResultCache,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._dal = dal
        self._cache = cache
        self._now = now
        self.status = MutationStatus.IDLE
        self.draft: Optional[UploadDraft] = None
        self.last_error: Optional[str] = None

    def stage(
        self,
        content: bytes,
        content_type: Optional[str] = None,
        filename: Optional[str] = None,
        title: str = "",
        uploader: str = "",
    ) -> UploadDraft:
        """Pre-check an image and hold it as the pending draft.

        Raises:
            MutationInProgressError: If the current draft is being uploaded.
            UploadValidationError: If the type or size is not accepted. The
                previous draft, if any, is left untouched.
        """
        if self.status is MutationStatus.PENDING:
            raise MutationInProgressError("An upload is already in progress.")
        mime_type = validate_image_upload(content, content_type)
        self.draft = UploadDraft(
            content=content,
            content_type=mime_type,
            filename=filename or "upload",
            title=title,
            uploader=uploader,
        )
        return self.draft

    def discard(self) -> None:
        if self.status is MutationStatus.PENDING:
            raise MutationInProgressError("An upload is already in progress.")
        self.draft = None
        self.last_error = None

    async def submit(self, title: Optional[str] = None, uploader: Optional[str] = None) -> UploadReceipt:
        """Send the staged draft to the contract.

        `title` and `uploader` override what the draft holds. The draft keeps
        the effective values so a retry after failure resubmits the same input.

        Raises:
            MutationInProgressError: If an upload is already pending.
            UploadValidationError: If no image is staged or the title is blank.
            MutationFailedError: If the remote write fails.
        """
        if self.status is MutationStatus.PENDING:
            raise MutationInProgressError("An upload is already in progress.")
        draft = self.draft
        effective_title = (title if title is not None else (draft.title if draft else "")).strip()
        if draft is None or not effective_title:
            raise UploadValidationError("Please provide an image and title")
        effective_uploader = (uploader if uploader is not None else draft.uploader).strip() or DEFAULT_UPLOADER

        draft = self.draft = replace(draft, title=effective_title, uploader=effective_uploader)
        payload = encode_image_payload(draft.content)
        timestamp = utc_timestamp(self._now())

        self.status = MutationStatus.PENDING
        try:
            confirmation = await self._dal.add_image_and_rate(payload, draft.title, draft.uploader, timestamp)
        except ContractGatewayError as exc:
            self.last_error = str(exc)
            logging.error("Upload of %r failed: %s", draft.title, exc)
            raise MutationFailedError("Upload failed. Please try again.") from exc
        finally:
            self.status = MutationStatus.IDLE

        for prefix in self.INVALIDATED_PREFIXES:
            self._cache.invalidate(prefix)
        if self.draft is draft:
            self.draft = None
        self.last_error = None
        logging.info("Uploaded %r by %s", draft.title, draft.uploader)
        return UploadReceipt(
            confirmation=confirmation,
            title=draft.title,
            uploader=draft.uploader,
            timestamp=timestamp,
        )


class CompareCoordinator:
    """Hold the two-slot selection and run comparisons."""

    def __init__(self, dal: ImageDAL) -> None:
        self._dal = dal
        self.status = MutationStatus.IDLE
        self.image_a: Optional[str] = None
        self.image_b: Optional[str] = None
        self.result: Optional[ComparisonResult] = None
        self.last_error: Optional[str] = None

    def select(self, record_id: Optional[str], slot: str = "a") -> None:
        if slot not in ("a", "b"):
            raise ValueError(f"Unknown comparison slot: {slot}")
        if self.status is MutationStatus.PENDING:
            raise MutationInProgressError("A comparison is already in progress.")
        setattr(self, f"image_{slot}", record_id or None)

    def reset(self, initial_id: Optional[str] = None) -> None:
        if self.status is MutationStatus.PENDING:
            raise MutationInProgressError("A comparison is already in progress.")
        self.image_a = initial_id
        self.image_b = None
        self.result = None
        self.last_error = None
        self.status = MutationStatus.IDLE

    async def compare(self, id_a: Optional[str] = None, id_b: Optional[str] = None) -> ComparisonResult:
        """Compare two records; falls back to the current selection.

        Raises:
            CompareValidationError: Fewer than two ids, or the same id twice.
            MutationInProgressError: If a comparison is already pending.
            MutationFailedError: If the remote call fails.
        """
        # The selection belongs to the pending call until it settles.
        if self.status is MutationStatus.PENDING:
            raise MutationInProgressError("A comparison is already in progress.")
        if id_a is not None or id_b is not None:
            self.image_a, self.image_b = id_a or None, id_b or None
        if not self.image_a or not self.image_b:
            raise CompareValidationError("Please select two images to compare", reason="insufficient_selection")
        if self.image_a == self.image_b:
            raise CompareValidationError("Please select two different images", reason="same_image")

        self.status = MutationStatus.PENDING
        self.result = None
        try:
            result = await self._dal.compare_images(self.image_a, self.image_b)
        except ContractGatewayError as exc:
            self.last_error = str(exc)
            logging.error("Comparison of %s and %s failed: %s", self.image_a, self.image_b, exc)
            raise MutationFailedError("Comparison failed. Please try again.") from exc
        finally:
            self.status = MutationStatus.IDLE

        self.result = result
        self.last_error = None
        self.status = MutationStatus.RESULT_SHOWN
        return result
