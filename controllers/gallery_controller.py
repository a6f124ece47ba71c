"""Gallery, filter-edit and statistics helpers for the local API."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional, Union

from fastapi import HTTPException, Request

from models.search_models import SearchFilters
from services.archive_client import ArchiveClient
from services.view_reconciler import GalleryView


def get_archive(request: Request) -> ArchiveClient:
	archive = getattr(request.app.state, "archive", None)
	if archive is None:
		raise HTTPException(status_code=500, detail="Archive client not initialized.")
	return archive


def serialize_view(view: GalleryView) -> Dict[str, Any]:
	"""Convert a reconciled gallery view into a JSON-friendly dict."""
	return {
		"status": view.status.value,
		"source": view.identity.method,
		"filters": view.filters.as_dict(),
		"active_filter_count": view.filters.active_count,
		"result_count": view.result_count,
		"error": view.error,
		"images": [asdict(record) for record in view.records],
	}


async def get_gallery(request: Request, filters: Optional[SearchFilters] = None) -> Dict[str, Any]:
	"""Return the current gallery view, applying `filters` at once when given."""
	archive = get_archive(request)
	if filters is None:
		view = await archive.gallery.refresh()
	else:
		view = await archive.filters.replace(filters, immediate=True)
	return serialize_view(view)


async def edit_filters(request: Request, action: str, value: Optional[Union[str, float]] = None) -> Dict[str, Any]:
	"""Apply one raw filter-panel edit; the search runs after the debounce window."""
	archive = get_archive(request)
	editor = archive.filters
	try:
		if action == "clear":
			return serialize_view(await editor.clear())
		if action == "keyword":
			editor.set_keyword(_as_text(value))
		elif action == "rarity":
			if value is None:
				editor.remove("rarity")
			else:
				editor.toggle_rarity(str(value))
		elif action == "min_rating":
			editor.set_min_rating(float(value) if value is not None else None)
		elif action == "style_tag":
			editor.set_style_tag(_as_text(value))
		elif action == "dominant_color":
			editor.set_dominant_color(_as_text(value))
		elif action == "remove":
			editor.remove(str(value))
		else:
			raise ValueError(f"Unsupported filter action: {action}")
	except ValueError as exc:
		raise HTTPException(status_code=400, detail=str(exc)) from exc

	return {
		"draft": editor.draft.as_dict(),
		"active_filter_count": editor.active_filter_count,
		"pending": editor.debouncer.pending,
	}


async def get_statistics(request: Request) -> Dict[str, Any]:
	"""Summarise the records currently on display."""
	archive = get_archive(request)
	stats = await archive.statistics()
	return {
		"total_images": stats.total_images,
		"average_rating": round(stats.average_rating, 1),
		"rarity_distribution": {rarity: asdict(share) for rarity, share in stats.rarity_distribution.items()},
		"top_style_tags": [{"tag": tag, "count": count} for tag, count in stats.top_style_tags],
		"remote_total": stats.remote_total,
	}


def _as_text(value: Optional[Union[str, float]]) -> Optional[str]:
	return None if value is None else str(value)
