"""
Passport post endpoints for API v1.

Every route requires a bearer token.  Routes addressing a single
passport entry (``/passport/{passport_id}``) and the batch delete
(``/passports``) are declared before the ``/{post_id}`` routes so the
literal path segments win.
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, status

from passport_posts_api.app.core.errors import validate_body
from passport_posts_api.app.core.security import get_current_user
from passport_posts_api.app.schemas.base import DataResponse, ListResponse, MessageDataResponse, MessageResponse
from passport_posts_api.app.schemas.passport import (
    BatchDeleteResponse,
    PassportDeleteResult,
    PassportEntryIn,
    PassportIdList,
    PassportLookup,
    PassportPostRead,
    PassportPostWrite,
    PassportUpdateResult,
)
from passport_posts_api.app.services.passport_service import PassportService


router = APIRouter()


# ---------------------------------------------------------------------------
# Single passport entries
# ---------------------------------------------------------------------------

@router.get("/passport/{passport_id}", response_model=DataResponse[PassportLookup])
async def get_passport(
    passport_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> DataResponse[PassportLookup]:
    """Find one passport entry and the post that holds it."""
    return DataResponse(data=await PassportService.get_entry(passport_id, current_user))


@router.put("/passport/{passport_id}", response_model=DataResponse[PassportUpdateResult])
async def update_passport(
    passport_id: str,
    body: Any = Body(None),
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> DataResponse[PassportUpdateResult]:
    """Replace one entry; its ``_id`` and ``postDate`` are kept."""
    await PassportService.check_entry_update(passport_id, current_user)
    entry = validate_body(PassportEntryIn, body)
    return DataResponse(data=await PassportService.update_entry(passport_id, entry, current_user))


@router.delete("/passport/{passport_id}", response_model=MessageDataResponse[PassportDeleteResult])
async def delete_passport(
    passport_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> MessageDataResponse[PassportDeleteResult]:
    """Delete one entry.  Deleting the last entry of a post deletes the post."""
    result = await PassportService.delete_entry(passport_id, current_user)
    return MessageDataResponse(message="Passport deleted successfully", data=result)


@router.delete("/passports", response_model=BatchDeleteResponse)
async def delete_passports(
    body: PassportIdList,
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> BatchDeleteResponse:
    """Delete several entries; ids that fail are listed under ``errors``."""
    return await PassportService.delete_entries(body.passport_ids, current_user)


@router.get("/country/{country_name}", response_model=ListResponse[PassportPostRead])
async def posts_by_country(
    country_name: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> ListResponse[PassportPostRead]:
    """Posts with an entry issued by a matching country.

    Matching is a case‑insensitive substring test.  Regular users only
    see their own posts.
    """
    posts = await PassportService.posts_by_country(country_name, current_user)
    return ListResponse(count=len(posts), data=posts)


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------

@router.post("", response_model=DataResponse[PassportPostRead], status_code=status.HTTP_201_CREATED)
async def create_post(
    body: PassportPostWrite,
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> DataResponse[PassportPostRead]:
    return DataResponse(data=await PassportService.create_post(body.passports, current_user))


@router.get("", response_model=ListResponse[PassportPostRead])
async def list_posts(current_user: Dict[str, Any] = Depends(get_current_user)) -> ListResponse[PassportPostRead]:
    """All posts, newest first."""
    posts = await PassportService.list_posts()
    return ListResponse(count=len(posts), data=posts)


@router.get("/{post_id}", response_model=DataResponse[PassportPostRead])
async def get_post(
    post_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> DataResponse[PassportPostRead]:
    return DataResponse(data=await PassportService.get_post(post_id, current_user))


@router.put("/{post_id}", response_model=DataResponse[PassportPostRead])
async def update_post(
    post_id: str,
    body: Any = Body(None),
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> DataResponse[PassportPostRead]:
    """Replace the entry list of a post.

    Entries carrying the ``_id`` of an existing entry keep that id and
    its ``postDate``; all others are added as new entries.  A missing
    post (404) or a foreign one (403) is reported before the body is
    validated.
    """
    await PassportService.check_post_update(post_id, current_user)
    write = validate_body(PassportPostWrite, body)
    return DataResponse(data=await PassportService.update_post(post_id, write.passports, current_user))


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post(
    post_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> MessageResponse:
    await PassportService.delete_post(post_id, current_user)
    return MessageResponse(message="Passport post deleted successfully")
