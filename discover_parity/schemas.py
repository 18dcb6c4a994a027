"""
Pydantic schemas for the TMDB responses consumed by the client.

Result items are kept as plain dictionaries; turning them into typed
records is the normalizer's job.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, Field


class DiscoverResponse(BaseModel):
    """One page of /discover/movie (or a list endpoint with the same shape)."""

    page: int = Field(1, ge=0, description="Page number returned")
    results: List[Dict[str, Any]] = Field(default_factory=list)
    total_pages: int = Field(0, ge=0, description="Total pages available")
    total_results: int = Field(0, ge=0, description="Total results available")

    @property
    def is_last_page(self) -> bool:
        return not self.results or self.page >= self.total_pages


class Genre(BaseModel):
    """Movie genre as listed by TMDB."""

    id: int
    name: str


class GenreListResponse(BaseModel):
    """Response for /genre/movie/list."""

    genres: List[Genre] = Field(default_factory=list)

    def as_mapping(self) -> Dict[int, str]:
        return {g.id: g.name for g in self.genres}
