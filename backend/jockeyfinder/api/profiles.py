from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from jockeyfinder.api.deps import get_caller_id
from jockeyfinder.database import get_db
from jockeyfinder.schemas.profile import ProfileSchema, ProfileStatusUpdate
from jockeyfinder.services import identity
from jockeyfinder.storage import ObjectStorage, get_storage

router = APIRouter(prefix="/api", tags=["profiles"])


@router.post("/profiles", response_model=ProfileSchema, status_code=201)
async def sign_up(
    full_name: str = Form(...),
    role: str = Form("jockey"),
    email: str | None = Form(None),
    phone: str | None = Form(None),
    licence: UploadFile | None = File(None),
    caller_id: str = Depends(get_caller_id),
    storage: ObjectStorage = Depends(get_storage),
    db: AsyncSession = Depends(get_db),
):
    """Crée le profil de l'utilisateur fraîchement inscrit auprès du
    fournisseur d'identité."""
    doc = None
    if licence is not None:
        doc = identity.Licence(filename=licence.filename or "licence", data=await licence.read())
    profile = await identity.register_profile(
        db, storage, caller_id, full_name, role, email=email, phone=phone, licence=doc,
    )
    return ProfileSchema.model_validate(profile)


@router.get("/profiles/me", response_model=ProfileSchema)
async def my_profile(
    caller_id: str = Depends(get_caller_id),
    db: AsyncSession = Depends(get_db),
):
    return ProfileSchema.model_validate(await identity.get_profile(db, caller_id))


@router.put("/admin/profiles/{profile_id}/status", response_model=ProfileSchema)
async def set_status(
    profile_id: str,
    body: ProfileStatusUpdate,
    caller_id: str = Depends(get_caller_id),
    db: AsyncSession = Depends(get_db),
):
    profile = await identity.set_profile_status(db, caller_id, profile_id, body.status)
    return ProfileSchema.model_validate(profile)
