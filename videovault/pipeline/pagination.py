"""
Pagination contract shared by every listing operation.
"""
import math
from typing import Optional

from pydantic import BaseModel

from videovault.core.exceptions import ValidationError
from videovault.models.schemas import PaginationMeta

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


class PageRequest(BaseModel):
    """Validated page/limit window."""

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @classmethod
    def from_params(
        cls,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        max_limit: Optional[int] = None,
    ) -> "PageRequest":
        """
        Build a page request from raw query values.

        Raises:
            ValidationError: If page or limit resolves to less than 1
        """
        page = DEFAULT_PAGE if page is None else page
        limit = DEFAULT_LIMIT if limit is None else limit

        if page < 1 or limit < 1:
            raise ValidationError(
                "Invalid pagination parameters",
                details={"page": page, "limit": limit},
            )

        if max_limit is not None:
            limit = min(limit, max_limit)

        return cls(page=page, limit=limit)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    def metadata(self, total_matches: int, returned_count: int) -> PaginationMeta:
        """Metadata for a window of `returned_count` items out of `total_matches`."""
        return PaginationMeta(
            current_page=self.page,
            total_pages=math.ceil(total_matches / self.limit),
            total_results=total_matches,
            has_next_page=self.skip + returned_count < total_matches,
            has_prev_page=self.page > 1,
        )
