from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..repositories import Repository, get_repository
from ..schemas import SummaryOut
from ..summary import get_summary

router = APIRouter(
    prefix="/api/summary",
    tags=["summary"],
)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=SummaryOut,
    summary="Daily Summary",
    description=(
        "Per-day focus/break minutes and session counts for the inclusive range "
        "[from, to]. Days without sessions are reported with zeros."
    ),
    responses={
        200: {"description": "Summary computed"},
        400: {"description": "Invalid date format, or 'to' before 'from'"},
    },
)
def read_summary(
    from_: Optional[str] = Query(None, alias="from", description="First day, YYYY-MM-DD"),
    to: Optional[str] = Query(None, description="Last day, YYYY-MM-DD"),
    repo: Repository = Depends(get_repository),
) -> SummaryOut:
    """
    Summarize sessions per UTC day over [from, to].
    """
    return get_summary(repo, from_, to)
