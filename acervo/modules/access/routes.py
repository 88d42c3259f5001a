from fastapi import APIRouter, Depends

from acervo.core.dependencies import get_access_session
from acervo.modules.access.schemas import AccessSnapshotResponse
from acervo.modules.access.session import AccessSession

router = APIRouter(prefix="/access", tags=["access"])


@router.get("/me", response_model=AccessSnapshotResponse)
async def get_my_access(session: AccessSession = Depends(get_access_session)):
    """Combined approval and capability snapshot of the caller (anonymous callers get no capabilities)."""
    return AccessSnapshotResponse.from_access(session.access)
