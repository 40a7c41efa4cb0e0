from __future__ import annotations

from fastapi import APIRouter, Depends

from ...breakdown import BreakdownService
from ..deps import client_id, get_breakdown
from ..schemas import BreakdownOut, BreakdownRequest

router = APIRouter(prefix="/api/v1", tags=["breakdown"])


@router.post("/breakdown", response_model=BreakdownOut)
def breakdown(
    payload: BreakdownRequest,
    client: str = Depends(client_id),
    service: BreakdownService = Depends(get_breakdown),
) -> BreakdownOut:
    result = service.breakdown(payload.taskTitle, client_id=client)
    return BreakdownOut(**result.to_dict())
