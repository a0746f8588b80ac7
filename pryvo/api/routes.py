"""HTTP routes. The caller is identified by the `X-User-Id` header set by the auth gateway."""

from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, Query, Request
from pydantic import BaseModel, Field

from pryvo.application import PryvoApplication
from pryvo.models.comment import CommentResponse, CommentTarget
from pryvo.models.discovery import DiscoveryFilters, DiscoveryOptions, SortBy
from pryvo.models.message import MediaKind
from pryvo.models.swipe import LikedContent
from pryvo.services.push_service import register_device_token
from pryvo.utils.errors import ValidationError
from pryvo.utils.logging import bind_context

router = APIRouter()


def get_core(request: Request) -> PryvoApplication:
    return request.app.state.pryvo


async def current_user(x_user_id: str = Header(..., alias="X-User-Id")) -> str:
    user_id = x_user_id.strip()
    if not user_id:
        raise ValidationError("Missing X-User-Id header")
    bind_context(user_id=user_id)
    return user_id


class SendMessageRequest(BaseModel):
    receiver_id: str
    text: Optional[str] = None
    media_url: Optional[str] = None
    media_type: Optional[MediaKind] = None


class BoostRequest(BaseModel):
    duration_minutes: Optional[int] = None


class BlockRequest(BaseModel):
    user_id: str
    reason: Optional[str] = Field(default=None, max_length=500)


class CommentRequest(BaseModel):
    receiver_id: str
    comment: str
    target: Optional[CommentTarget] = None


class CommentReply(BaseModel):
    response: CommentResponse


class DeviceTokenRequest(BaseModel):
    token: str
    platform: Optional[str] = None


# Profiles


@router.post("/profiles", status_code=201)
async def create_profile(
    data: Dict[str, Any], user_id: str = Depends(current_user), core: PryvoApplication = Depends(get_core)
) -> Dict[str, Any]:
    profile = await core.profiles.save_profile(user_id, data)
    return {"success": True, "profile": profile}


@router.get("/profiles/me")
async def my_profile(user_id: str = Depends(current_user), core: PryvoApplication = Depends(get_core)) -> Dict[str, Any]:
    return {"success": True, "profile": await core.profiles.require_profile(user_id)}


@router.patch("/profiles/me")
async def update_my_profile(
    changes: Dict[str, Any], user_id: str = Depends(current_user), core: PryvoApplication = Depends(get_core)
) -> Dict[str, Any]:
    return {"success": True, "profile": await core.profiles.update_profile(user_id, changes)}


@router.post("/devices", status_code=201)
async def register_device(
    body: DeviceTokenRequest, user_id: str = Depends(current_user), core: PryvoApplication = Depends(get_core)
) -> Dict[str, Any]:
    await register_device_token(core.db, user_id, body.token, body.platform, core.clock)
    return {"success": True}


# Discovery


@router.get("/discovery")
async def discover(
    min_score: int = Query(default=0, ge=0, le=100),
    max_distance: Optional[float] = Query(default=None, gt=0),
    sort_by: SortBy = SortBy.SCORE,
    limit: Optional[int] = Query(default=None, gt=0),
    education_level: Optional[str] = None,
    drink: Optional[str] = None,
    smoke_tobacco: Optional[str] = None,
    smoke_weed: Optional[str] = None,
    religious_beliefs: Optional[str] = None,
    political_beliefs: Optional[str] = None,
    user_id: str = Depends(current_user),
    core: PryvoApplication = Depends(get_core),
) -> Dict[str, Any]:
    filters = DiscoveryFilters(
        education_level=education_level,
        drink=drink,
        smoke_tobacco=smoke_tobacco,
        smoke_weed=smoke_weed,
        religious_beliefs=religious_beliefs,
        political_beliefs=political_beliefs,
    )
    options = DiscoveryOptions(
        min_score_percent=min_score,
        max_distance_km=max_distance,
        sort_by=sort_by,
        limit=limit,
        filters=None if filters.is_empty() else filters,
    )
    candidates = await core.discovery.discover(user_id, options)
    return {
        "success": True,
        "count": len(candidates),
        "profiles": [
            {
                "profile": c.profile,
                "age": c.age,
                "compatibilityScore": c.percentage,
                "compatibility": c.compatibility,
                "distanceKm": c.distance_km,
                "isBoosted": c.is_boosted,
            }
            for c in candidates
        ],
    }


# Swipes


@router.post("/swipes/{target_id}/like")
async def like(
    target_id: str,
    liked_content: Optional[LikedContent] = None,
    user_id: str = Depends(current_user),
    core: PryvoApplication = Depends(get_core),
) -> Dict[str, Any]:
    result = await core.swipes.like(user_id, target_id, liked_content)
    return {"success": True, **result.model_dump(mode="json")}


@router.post("/swipes/{target_id}/pass")
async def pass_user(
    target_id: str, user_id: str = Depends(current_user), core: PryvoApplication = Depends(get_core)
) -> Dict[str, Any]:
    created = await core.swipes.pass_user(user_id, target_id)
    return {"success": True, "alreadyPassed": not created}


@router.post("/swipes/undo")
async def undo(user_id: str = Depends(current_user), core: PryvoApplication = Depends(get_core)) -> Dict[str, Any]:
    result = await core.swipes.undo(user_id)
    return {"success": True, **result.model_dump(mode="json")}


@router.post("/swipes/passes/reset")
async def reset_passes(
    user_id: str = Depends(current_user), core: PryvoApplication = Depends(get_core)
) -> Dict[str, Any]:
    return {"success": True, "removed": await core.swipes.reset_passes(user_id)}


@router.get("/likes/remaining")
async def likes_remaining(
    user_id: str = Depends(current_user), core: PryvoApplication = Depends(get_core)
) -> Dict[str, Any]:
    return {
        "success": True,
        "remaining": await core.swipes.likes_remaining(user_id),
        "limit": await core.swipes.daily_like_limit(user_id),
    }


@router.get("/likes/received/count")
async def likes_received_count(
    user_id: str = Depends(current_user), core: PryvoApplication = Depends(get_core)
) -> Dict[str, Any]:
    return {"success": True, "count": await core.swipes.received_like_count(user_id)}


# Boosts


@router.post("/boosts", status_code=201)
async def create_boost(
    body: Optional[BoostRequest] = None,
    user_id: str = Depends(current_user),
    core: PryvoApplication = Depends(get_core),
) -> Dict[str, Any]:
    boost = await core.boosts.create_boost(user_id, body.duration_minutes if body else None)
    return {"success": True, "boost": boost}


@router.get("/boosts/active")
async def active_boost(
    user_id: str = Depends(current_user), core: PryvoApplication = Depends(get_core)
) -> Dict[str, Any]:
    boost = await core.boosts.get_active_boost(user_id)
    return {"success": True, "isBoosted": boost is not None, "boost": boost}


@router.get("/boosts/history")
async def boost_history(
    limit: int = Query(default=10, gt=0, le=100),
    user_id: str = Depends(current_user),
    core: PryvoApplication = Depends(get_core),
) -> Dict[str, Any]:
    return {"success": True, "boosts": await core.boosts.boost_history(user_id, limit)}


# Matches and chat


@router.get("/matches")
async def list_matches(
    user_id: str = Depends(current_user), core: PryvoApplication = Depends(get_core)
) -> Dict[str, Any]:
    return {"success": True, "matches": await core.matches.list_matches(user_id)}


@router.get("/matches/{match_id}")
async def get_match(
    match_id: str, user_id: str = Depends(current_user), core: PryvoApplication = Depends(get_core)
) -> Dict[str, Any]:
    return {"success": True, "match": await core.matches.get_match(match_id, user_id)}


@router.delete("/matches/{match_id}")
async def unmatch(
    match_id: str, user_id: str = Depends(current_user), core: PryvoApplication = Depends(get_core)
) -> Dict[str, Any]:
    await core.matches.unmatch(match_id, user_id)
    return {"success": True}


@router.get("/matches/{match_id}/messages")
async def list_messages(
    match_id: str,
    limit: int = Query(default=50, gt=0, le=200),
    before: Optional[datetime] = None,
    user_id: str = Depends(current_user),
    core: PryvoApplication = Depends(get_core),
) -> Dict[str, Any]:
    messages = await core.chat.list_messages(match_id, user_id, limit, before)
    return {"success": True, "messages": messages}


@router.post("/matches/{match_id}/messages", status_code=201)
async def send_message(
    match_id: str,
    body: SendMessageRequest,
    user_id: str = Depends(current_user),
    core: PryvoApplication = Depends(get_core),
) -> Dict[str, Any]:
    message = await core.chat.send(match_id, user_id, body.receiver_id, body.text, body.media_url, body.media_type)
    return {"success": True, "message": message}


@router.post("/matches/{match_id}/seen")
async def mark_seen(
    match_id: str, user_id: str = Depends(current_user), core: PryvoApplication = Depends(get_core)
) -> Dict[str, Any]:
    return {"success": True, "count": await core.chat.mark_seen(match_id, user_id)}


@router.get("/conversations")
async def conversations(
    user_id: str = Depends(current_user), core: PryvoApplication = Depends(get_core)
) -> Dict[str, Any]:
    return {"success": True, "conversations": await core.chat.last_messages(user_id)}


@router.delete("/messages/{message_id}")
async def delete_message(
    message_id: str, user_id: str = Depends(current_user), core: PryvoApplication = Depends(get_core)
) -> Dict[str, Any]:
    await core.chat.delete_message(message_id, user_id)
    return {"success": True}


# Blocks


@router.post("/blocks", status_code=201)
async def block_user(
    body: BlockRequest, user_id: str = Depends(current_user), core: PryvoApplication = Depends(get_core)
) -> Dict[str, Any]:
    return {"success": True, "block": await core.blocks.block(user_id, body.user_id, body.reason)}


@router.delete("/blocks/{blocked_id}")
async def unblock_user(
    blocked_id: str, user_id: str = Depends(current_user), core: PryvoApplication = Depends(get_core)
) -> Dict[str, Any]:
    return {"success": True, "removed": await core.blocks.unblock(user_id, blocked_id)}


@router.get("/blocks")
async def list_blocked(
    user_id: str = Depends(current_user), core: PryvoApplication = Depends(get_core)
) -> Dict[str, Any]:
    return {"success": True, "blocks": await core.blocks.list_blocked(user_id)}


# Profile comments


@router.post("/comments", status_code=201)
async def send_comment(
    body: CommentRequest, user_id: str = Depends(current_user), core: PryvoApplication = Depends(get_core)
) -> Dict[str, Any]:
    result = await core.comments.send_comment(user_id, body.receiver_id, body.comment, body.target)
    return {"success": True, **result.model_dump(mode="json")}


@router.post("/comments/{comment_id}/respond")
async def respond_to_comment(
    comment_id: str,
    body: CommentReply,
    user_id: str = Depends(current_user),
    core: PryvoApplication = Depends(get_core),
) -> Dict[str, Any]:
    result = await core.comments.respond_to_comment(comment_id, user_id, body.response)
    return {"success": True, **result.model_dump(mode="json")}


@router.get("/comments")
async def received_comments(
    user_id: str = Depends(current_user), core: PryvoApplication = Depends(get_core)
) -> Dict[str, Any]:
    return {"success": True, "comments": await core.comments.list_received(user_id)}
