import os
from uuid import UUID
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.config import settings
from vidtube.db.repositories import user_repo
from vidtube.db.session import get_db
from vidtube.dependencies import get_current_user
from vidtube.models.user import User
from vidtube.schemas.common import MessageResponse
from vidtube.schemas.user import PasswordUpdate, ProfileResponse, PublicProfile
from vidtube.services import account_service, upload_service
from vidtube.services.auth_service import hash_password, verify_password
from vidtube.services.upload_service import AVATARS

router = APIRouter()

MIN_PASSWORD_LENGTH = 6


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/profile", response_model=ProfileResponse)
async def update_profile(
    username: str | None = Form(default=None),
    bio: str | None = Form(default=None),
    avatar: UploadFile | None = File(default=None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if username:
        username = username.strip()
        if await user_repo.username_taken(db, username, exclude_user_id=current_user.id):
            raise HTTPException(status_code=400, detail="Username already taken")

    old_avatar = current_user.avatar
    new_avatar = await upload_service.save_upload("avatar", avatar) if avatar is not None else None
    try:
        user = await user_repo.update_profile(
            db, current_user, username=username or None, bio=bio, avatar=new_avatar
        )
        await db.commit()
    except IntegrityError as e:
        upload_service.delete_blob(AVATARS, new_avatar)
        # another request claimed the username after the check above
        raise HTTPException(status_code=400, detail="Username already taken") from e
    except Exception:
        upload_service.delete_blob(AVATARS, new_avatar)
        raise
    if new_avatar and old_avatar:
        upload_service.delete_blob(AVATARS, old_avatar)
    return user


@router.put("/password", response_model=MessageResponse)
async def update_password(
    body: PasswordUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not body.current_password or not body.new_password:
        raise HTTPException(status_code=400, detail="Current and new passwords are required")
    if not verify_password(body.current_password, current_user.password_hash):
        raise HTTPException(status_code=401, detail="Current password is incorrect")
    if len(body.new_password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"New password must be at least {MIN_PASSWORD_LENGTH} characters long",
        )
    await user_repo.set_password_hash(db, current_user, hash_password(body.new_password))
    await db.commit()
    return MessageResponse(message="Password updated successfully")


@router.delete("/account", response_model=MessageResponse)
async def delete_account(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    blobs = await account_service.delete_account(db, current_user)
    await db.commit()
    upload_service.delete_blobs(blobs)
    return MessageResponse(message="Account deleted successfully")


@router.get("/{user_id}", response_model=PublicProfile)
async def get_user(user_id: UUID, db: AsyncSession = Depends(get_db)):
    user = await user_repo.get_user_by_id(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("/{user_id}/avatar")
async def get_avatar(user_id: UUID, db: AsyncSession = Depends(get_db)):
    user = await user_repo.get_user_by_id(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if user.avatar:
        path = upload_service.blob_path(AVATARS, user.avatar)
        if os.path.isfile(path):
            return FileResponse(path)
    default = os.path.join(settings.upload_dir, "default-avatar.png")
    if not os.path.isfile(default):
        raise HTTPException(status_code=404, detail="Avatar not found")
    return FileResponse(default)
