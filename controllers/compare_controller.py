"""Head-to-head comparison helpers."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from fastapi import HTTPException, Request

from controllers.gallery_controller import get_archive
from services.mutation_coordinator import CompareValidationError, MutationFailedError, MutationInProgressError


async def compare_images(request: Request, id_a: str, id_b: str) -> Dict[str, Any]:
	"""Compare two records and return the verdict with both records."""
	comparisons = get_archive(request).comparisons
	try:
		result = await comparisons.compare(id_a, id_b)
	except CompareValidationError as exc:
		raise HTTPException(status_code=400, detail={"message": str(exc), "reason": exc.reason}) from exc
	except MutationInProgressError as exc:
		raise HTTPException(status_code=409, detail=str(exc)) from exc
	except MutationFailedError as exc:
		raise HTTPException(status_code=502, detail=str(exc)) from exc

	return {
		"verdict": result.verdict,
		"image_a": asdict(result.image_a),
		"image_b": asdict(result.image_b),
		"status": comparisons.status.value,
	}
