from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile

from controllers.image_controller import (
	discard_draft,
	get_draft,
	get_image,
	get_image_count,
	retry_upload,
	upload_image,
)

router = APIRouter(prefix="/images")


@router.post("")
async def upload_image_route(
	request: Request,
	file: UploadFile = File(...),
	title: Optional[str] = Form(None),
	uploader: Optional[str] = Form(None),
):
	"""Upload an image with its title for remote analysis."""
	try:
		return await upload_image(request, file, title, uploader)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/retry")
async def retry_upload_route(request: Request):
	"""Resubmit the draft kept after a failed upload."""
	try:
		return await retry_upload(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/draft")
async def get_draft_route(request: Request):
	return get_draft(request)


@router.delete("/draft")
async def discard_draft_route(request: Request):
	return discard_draft(request)


@router.get("/count")
async def image_count_route(request: Request):
	"""Return the number of records held by the contract."""
	try:
		return await get_image_count(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{image_id}")
async def get_image_route(request: Request, image_id: str):
	"""Return one record with its analysis."""
	try:
		return await get_image(request, image_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
