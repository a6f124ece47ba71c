"""Search and query-cache models for the gallery workflow."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Optional, Tuple

from models.image_record import Rarity


@dataclass(frozen=True)
class SearchFilters:
	"""The user's current search intent.

	A field set to ``None`` is absent. A filter with every field absent is the
	"no filter" state, which shows the baseline feed instead of searching.
	"""

	rarity: Optional[Rarity] = None
	min_rating: Optional[float] = None
	keyword: Optional[str] = None
	style_tag: Optional[str] = None
	dominant_color: Optional[str] = None

	def __post_init__(self) -> None:
		# Blank text is the same as absent so activeness checks stay exact.
		for name in ("keyword", "style_tag", "dominant_color"):
			value = getattr(self, name)
			if value is not None and not str(value).strip():
				object.__setattr__(self, name, None)
		if self.rarity is not None and not isinstance(self.rarity, Rarity):
			object.__setattr__(self, "rarity", Rarity(self.rarity))
		if self.min_rating is not None:
			object.__setattr__(self, "min_rating", float(self.min_rating))

	@property
	def is_active(self) -> bool:
		return self.active_count > 0

	@property
	def active_count(self) -> int:
		return sum(1 for f in fields(self) if getattr(self, f.name) is not None)

	def with_changes(self, **changes: Any) -> "SearchFilters":
		return replace(self, **changes)

	def as_dict(self) -> dict:
		"""Return only the defined fields, with the rarity as its string value."""
		result = {}
		for f in fields(self):
			value = getattr(self, f.name)
			if value is None:
				continue
			result[f.name] = value.value if isinstance(value, Rarity) else value
		return result


@dataclass(frozen=True)
class QueryIdentity:
	"""Cache key: a remote read method paired with its concrete arguments."""

	method: str
	args: Tuple[str, ...] = ()

	def __post_init__(self) -> None:
		object.__setattr__(self, "args", tuple(str(arg) for arg in self.args))

	def matches(self, prefix: str) -> bool:
		return self.method.startswith(prefix)

	def __str__(self) -> str:
		return f"{self.method}({', '.join(self.args)})"


class QueryStatus(str, Enum):
	IDLE = "idle"
	LOADING = "loading"
	SUCCESS = "success"
	ERROR = "error"


@dataclass(frozen=True)
class QueryResult:
	"""Snapshot of one cache identity as observers see it."""

	identity: QueryIdentity
	status: QueryStatus
	data: Any = None
	error: Optional[BaseException] = None
	fetched_at: Optional[float] = None

	@property
	def is_loading(self) -> bool:
		return self.status is QueryStatus.LOADING

	@property
	def is_success(self) -> bool:
		return self.status is QueryStatus.SUCCESS

	@property
	def is_error(self) -> bool:
		return self.status is QueryStatus.ERROR
