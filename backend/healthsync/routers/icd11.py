from fastapi import APIRouter, Depends, Query

from healthsync.dependencies import get_icd11_client
from healthsync.services.icd11_service import Icd11Client

router = APIRouter()


@router.get("/search")
async def search_codes(
    terms: str = Query("", description="Free text or code fragment"),
    max_list: int = Query(15, alias="maxList", ge=1, le=500),
    client: Icd11Client = Depends(get_icd11_client),
):
    return await client.search(terms, max_list)
