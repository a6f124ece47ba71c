"""FastAPI routes for the gallery view, filter edits and statistics."""

from typing import Literal, Optional, Union

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel

from controllers.gallery_controller import edit_filters, get_gallery, get_statistics
from models.image_record import Rarity
from models.search_models import SearchFilters

router = APIRouter()


class FilterEditPayload(BaseModel):
	action: Literal["keyword", "rarity", "min_rating", "style_tag", "dominant_color", "remove", "clear"]
	value: Optional[Union[float, str]] = None


@router.get("/gallery")
async def gallery_route(
	request: Request,
	rarity: Optional[Rarity] = None,
	min_rating: Optional[float] = Query(None, ge=0, le=10),
	keyword: Optional[str] = None,
	style_tag: Optional[str] = None,
	dominant_color: Optional[str] = None,
):
	"""Return the reconciled gallery; query params, when given, replace the filters."""
	params = dict(
		rarity=rarity,
		# A zero minimum means no rating filter, as in the filter editor.
		min_rating=min_rating or None,
		keyword=keyword,
		style_tag=style_tag,
		dominant_color=dominant_color,
	)
	filters = SearchFilters(**params) if any(v is not None for v in params.values()) else None
	try:
		return await get_gallery(request, filters)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/gallery/filters")
async def filter_edit_route(request: Request, payload: FilterEditPayload):
	try:
		return await edit_filters(request, payload.action, payload.value)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/stats")
async def stats_route(request: Request):
	try:
		return await get_statistics(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
