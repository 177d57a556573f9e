"""Shared path and query parameter types.

Ids are bounded before they reach a query, so an id no row can hold is a
400 instead of a driver overflow.
"""

from typing import Annotated, Optional

from fastapi import Path, Query

from crmdesk.schemas.common import MAX_ID

PathId = Annotated[int, Path(gt=0, le=MAX_ID)]

ContactFilter = Annotated[
    Optional[int],
    Query(gt=0, le=MAX_ID, description="Only this contact's addresses"),
]
