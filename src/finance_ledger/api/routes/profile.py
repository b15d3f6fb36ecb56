from typing import Annotated

from fastapi import APIRouter, Depends

from finance_ledger.api.dependencies import get_store
from finance_ledger.models import Profile
from finance_ledger.storage.base import BlobStore
from finance_ledger.storage.blobs import load_profile, save_profile

router = APIRouter()


@router.get("/api/profile", response_model=Profile)
async def get_profile(store: Annotated[BlobStore, Depends(get_store)]) -> Profile:
    return load_profile(store)


@router.put("/api/profile", response_model=Profile)
async def update_profile(
    profile: Profile,
    store: Annotated[BlobStore, Depends(get_store)],
) -> Profile:
    cleaned = Profile(
        name=profile.name.strip(),
        email=profile.email.strip(),
        photo=profile.photo,
    )
    save_profile(store, cleaned)
    return cleaned
