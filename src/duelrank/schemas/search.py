# src/duelrank/schemas/search.py

"""Player search filters."""

from pydantic import BaseModel, Field

from .common import CharacterClass


class PlayerSearchFilters(BaseModel):
    """Criteria for ``search_players``.

    Range checks (``min_rating <= max_rating``, ``offset >= 0``) are done by
    the query builder so they raise ``InvalidRangeError``.
    """

    username: str | None = Field(
        default=None, description="Case-insensitive substring of the username"
    )
    prefix_only: bool = Field(
        default=False, description="Match the username as a prefix only"
    )
    min_rating: int | None = None
    max_rating: int | None = None
    class_filter: CharacterClass | None = None
    min_matches: int = 0
    include_inactive: bool = False
    include_anonymous: bool = False
    limit: int | None = None
    offset: int = 0
