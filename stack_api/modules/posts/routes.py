from fastapi import APIRouter, Depends
from stack_api.database.supabase_client import get_supabase
from stack_api.modules.posts.schemas import (
    PostCreate, PostResponse, LikeResponse, CommentCreate, CommentResponse
)
from stack_api.modules.posts.service import PostService
from stack_api.core.dependencies import get_current_user_id, require_verified_user
from supabase import Client
from typing import List, Dict, Optional
from datetime import datetime

router = APIRouter(prefix="/posts", tags=["posts"])


def get_post_service(supabase: Client = Depends(get_supabase)) -> PostService:
    return PostService(supabase)


@router.post("", response_model=PostResponse, status_code=201)
async def create_post(
    post_data: PostCreate,
    user_data: Dict = Depends(require_verified_user),
    service: PostService = Depends(get_post_service)
):
    return service.create_post(user_data["id"], post_data)


@router.get("/feed", response_model=List[PostResponse])
async def get_feed(
    before: Optional[datetime] = None,
    limit: Optional[int] = None,
    user_data: Dict = Depends(get_current_user_id),
    service: PostService = Depends(get_post_service)
):
    """Posts from people you follow and your own, newest first"""
    return service.get_feed(user_data["id"], before=before, limit=limit)


@router.get("/user/{user_id}", response_model=List[PostResponse])
async def get_user_posts(
    user_id: str,
    before: Optional[datetime] = None,
    limit: Optional[int] = None,
    user_data: Dict = Depends(get_current_user_id),
    service: PostService = Depends(get_post_service)
):
    return service.get_user_posts(user_id, before=before, limit=limit)


@router.get("/session/{session_id}", response_model=List[PostResponse])
async def get_session_posts(
    session_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: PostService = Depends(get_post_service)
):
    return service.get_session_posts(session_id)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: PostService = Depends(get_post_service)
):
    return service.get_post(post_id)


@router.delete("/{post_id}", status_code=204)
async def delete_post(
    post_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: PostService = Depends(get_post_service)
):
    service.delete_post(post_id, user_data["id"])


@router.post("/{post_id}/like", response_model=LikeResponse)
async def toggle_like(
    post_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: PostService = Depends(get_post_service)
):
    return service.toggle_like(post_id, user_data["id"])


@router.get("/{post_id}/comments", response_model=List[CommentResponse])
async def list_comments(
    post_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: PostService = Depends(get_post_service)
):
    return service.list_comments(post_id)


@router.post("/{post_id}/comments", response_model=CommentResponse, status_code=201)
async def add_comment(
    post_id: str,
    comment_data: CommentCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: PostService = Depends(get_post_service)
):
    return service.add_comment(post_id, user_data["id"], comment_data)


@router.get("/comments/{comment_id}/replies", response_model=List[CommentResponse])
async def list_replies(
    comment_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: PostService = Depends(get_post_service)
):
    return service.list_replies(comment_id)


@router.delete("/comments/{comment_id}", status_code=204)
async def delete_comment(
    comment_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: PostService = Depends(get_post_service)
):
    service.delete_comment(comment_id, user_data["id"])
