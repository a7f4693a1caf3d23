# routers/adrs.py — Architecture Decision Records
from typing import List

from fastapi import APIRouter, Depends

from exceptions import NotFoundError
from recorder import Recorder, get_recorder
from schemas import AdrCreate, AdrUpdate, AdrOut, adr_out
from storage import Storage, get_storage

router = APIRouter(prefix="/api/v1/adrs", tags=["ADRs"])


@router.get("", response_model=List[AdrOut])
async def list_adrs(store: Storage = Depends(get_storage)):
    return [adr_out(a) for a in await store.list_adrs()]


@router.get("/{adr_id}", response_model=AdrOut)
async def get_adr(adr_id: str, store: Storage = Depends(get_storage)):
    adr = await store.get_adr(adr_id)
    if not adr:
        raise NotFoundError("ADR not found")
    return adr_out(adr)


@router.post("", response_model=AdrOut, status_code=201)
async def create_adr(
    data: AdrCreate,
    store: Storage = Depends(get_storage),
    recorder: Recorder = Depends(get_recorder),
):
    """Propose an ADR; the author's "proposed" feed entry commits with it"""
    async with store.atomic():
        adr = await store.create_adr(data)
        await recorder.record_activity(adr.author_id, "proposed", adr.title)
    return adr_out(adr)


@router.patch("/{adr_id}", response_model=AdrOut)
async def update_adr(adr_id: str, data: AdrUpdate, store: Storage = Depends(get_storage)):
    return adr_out(await store.update_adr(adr_id, data.model_dump(exclude_unset=True)))
