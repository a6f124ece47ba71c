"""FastAPI route for head-to-head comparisons."""

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from controllers.compare_controller import compare_images

router = APIRouter()


class ComparePayload(BaseModel):
	id_a: str = ""
	id_b: str = ""


@router.post("/compare")
async def compare_route(request: Request, payload: ComparePayload):
	try:
		return await compare_images(request, payload.id_a, payload.id_b)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
