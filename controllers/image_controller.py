from dataclasses import asdict
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, UploadFile

from controllers.gallery_controller import get_archive
from services.mutation_coordinator import MutationFailedError, MutationInProgressError, UploadReceipt
from utils.media_validation import UploadValidationError, read_image_bytes


async def upload_image(
    request: Request,
    file: UploadFile,
    title: Optional[str] = None,
    uploader: Optional[str] = None,
) -> Dict[str, Any]:
    """Handle an image upload: pre-check, stage as draft, submit to the contract.

    Args:
        request: FastAPI Request object (used to access app.state.archive).
        file: Uploaded JPEG, PNG or WebP image, at most 10 MiB.
        title: Required, non-blank title.
        uploader: Optional uploader name; "Anonymous" when blank.

    Returns:
        A dict containing: confirmation, title, uploader, timestamp

    Raises:
        HTTPException(400) on local validation failures, 409 when an upload is
        already pending, 502 when the contract write fails (the draft is kept).
    """
    archive = get_archive(request)
    raw = await read_image_bytes(file)

    try:
        archive.uploads.stage(
            raw,
            content_type=file.content_type,
            filename=file.filename,
            title=title or "",
            uploader=uploader or "",
        )
    except UploadValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except MutationInProgressError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc

    return await _submit(request, title, uploader)


async def retry_upload(request: Request) -> Dict[str, Any]:
    """Resubmit the draft kept from a failed upload."""
    if get_archive(request).uploads.draft is None:
        raise HTTPException(status_code=404, detail="No pending upload draft")
    return await _submit(request)


def get_draft(request: Request) -> Dict[str, Any]:
    """Describe the pending upload draft without its image bytes."""
    uploads = get_archive(request).uploads
    draft = uploads.draft
    if draft is None:
        raise HTTPException(status_code=404, detail="No pending upload draft")
    return {
        "filename": draft.filename,
        "content_type": draft.content_type,
        "size": draft.size,
        "title": draft.title,
        "uploader": draft.uploader,
        "status": uploads.status.value,
        "last_error": uploads.last_error,
    }


def discard_draft(request: Request) -> Dict[str, Any]:
    try:
        get_archive(request).uploads.discard()
    except MutationInProgressError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return {"discarded": True}


async def get_image(request: Request, image_id: str) -> Dict[str, Any]:
    """Controller to fetch one record through the read cache.

    Raises:
        HTTPException(404) if the contract holds no such record, 502 if the
        read failed.
    """
    result = await get_archive(request).get_record(image_id)
    if result.is_error:
        raise HTTPException(status_code=502, detail=str(result.error))
    if result.data is None:
        raise HTTPException(status_code=404, detail="Image not found")
    return asdict(result.data)


async def get_image_count(request: Request) -> Dict[str, Any]:
    result = await get_archive(request).count_images()
    if result.is_error:
        raise HTTPException(status_code=502, detail=str(result.error))
    return {"count": result.data}


async def _submit(request: Request, title: Optional[str] = None, uploader: Optional[str] = None) -> Dict[str, Any]:
    uploads = get_archive(request).uploads
    try:
        receipt: UploadReceipt = await uploads.submit(title=title, uploader=uploader)
    except UploadValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except MutationInProgressError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except MutationFailedError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return {
        "confirmation": receipt.confirmation,
        "title": receipt.title,
        "uploader": receipt.uploader,
        "timestamp": receipt.timestamp,
    }
