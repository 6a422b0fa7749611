from supabase import Client
from stack_api.modules.posts.schemas import (
    PostCreate, PostResponse, PostType, LikeResponse, CommentCreate, CommentResponse
)
from stack_api.modules.follows.service import FollowService
from stack_api.modules.users.service import UserService, ID_CHUNK_SIZE
from stack_api.core.exceptions import NotFoundError, PermissionDeniedError, InvalidDataError, classify_backend_error
from stack_api.config.settings import settings
from typing import List, Optional
from datetime import datetime, timezone
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class PostService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.users = UserService(supabase)
        self.follows = FollowService(supabase)

    def create_post(self, user_id: str, post_data: PostCreate) -> PostResponse:
        """Publish a post; author details are copied onto the row"""
        if post_data.post_type == PostType.HAND and not post_data.hand_history:
            raise InvalidDataError("Hand posts need a hand history")
        if not post_data.content.strip() and not post_data.image_urls and not post_data.hand_history:
            raise InvalidDataError("Post is empty")

        author = self.users.get_profile(user_id)
        data = post_data.model_dump(mode="json")
        data.update({
            "user_id": user_id,
            "username": author.username,
            "display_name": author.display_name,
            "profile_image": author.avatar_url,
            "likes": 0,
            "comments": 0,
            "created_at": datetime.now(timezone.utc).isoformat()
        })
        try:
            result = self.supabase.table("posts").insert(data).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create post")
            post = PostResponse(**result.data[0])
            logger.info(f"Post {post.id} ({post.post_type.value}) created by {user_id}")
            return post
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    def _posts_by_users(self, user_ids: List[str], before: Optional[datetime], limit: int) -> List[PostResponse]:
        posts = []
        try:
            for start in range(0, len(user_ids), ID_CHUNK_SIZE):
                query = self.supabase.table("posts")\
                    .select("*")\
                    .in_("user_id", user_ids[start:start + ID_CHUNK_SIZE])
                if before is not None:
                    query = query.lt("created_at", before.isoformat())
                result = query.order("created_at", desc=True)\
                    .limit(limit)\
                    .execute()
                posts.extend(PostResponse(**row) for row in result.data or [])
        except Exception as e:
            raise classify_backend_error(e)
        posts.sort(key=lambda p: p.created_at, reverse=True)
        return posts[:limit]

    def get_feed(self, user_id: str, before: Optional[datetime] = None, limit: Optional[int] = None) -> List[PostResponse]:
        """
        Posts by the people the user follows and by the user, newest first.

        Pass the ``created_at`` of the oldest post already shown as
        ``before`` to load the next page.
        """
        author_ids = list(dict.fromkeys(self.follows.get_following_ids(user_id) + [user_id]))
        return self._posts_by_users(author_ids, before, limit or settings.feed_page_size)

    def get_user_posts(self, user_id: str, before: Optional[datetime] = None, limit: Optional[int] = None) -> List[PostResponse]:
        return self._posts_by_users([user_id], before, limit or settings.feed_page_size)

    def get_post(self, post_id: str) -> PostResponse:
        try:
            result = self.supabase.table("posts")\
                .select("*")\
                .eq("id", post_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise classify_backend_error(e)
        if not result.data:
            raise NotFoundError("Post not found")
        return PostResponse(**result.data[0])

    def get_session_posts(self, session_id: str) -> List[PostResponse]:
        try:
            result = self.supabase.table("posts")\
                .select("*")\
                .eq("session_id", session_id)\
                .order("created_at", desc=True)\
                .execute()
            return [PostResponse(**row) for row in result.data or []]
        except Exception as e:
            raise classify_backend_error(e)

    def _set_counter(self, table: str, row_id: str, column: str, value: int) -> None:
        self.supabase.table(table)\
            .update({column: max(value, 0)})\
            .eq("id", row_id)\
            .execute()

    def toggle_like(self, post_id: str, user_id: str) -> LikeResponse:
        """Like the post, or remove the like when it is already there"""
        post = self.get_post(post_id)
        try:
            existing = self.supabase.table("post_likes")\
                .select("post_id")\
                .eq("post_id", post_id)\
                .eq("user_id", user_id)\
                .limit(1)\
                .execute()
            if existing.data:
                self.supabase.table("post_likes")\
                    .delete()\
                    .eq("post_id", post_id)\
                    .eq("user_id", user_id)\
                    .execute()
                liked, likes = False, max(post.likes - 1, 0)
            else:
                self.supabase.table("post_likes").insert({
                    "post_id": post_id,
                    "user_id": user_id,
                    "timestamp": datetime.now(timezone.utc).isoformat()
                }).execute()
                liked, likes = True, post.likes + 1
            self._set_counter("posts", post_id, "likes", likes)
        except Exception as e:
            raise classify_backend_error(e)
        return LikeResponse(post_id=post_id, liked=liked, likes=likes)

    def is_liked(self, post_id: str, user_id: str) -> bool:
        try:
            result = self.supabase.table("post_likes")\
                .select("post_id")\
                .eq("post_id", post_id)\
                .eq("user_id", user_id)\
                .limit(1)\
                .execute()
            return bool(result.data)
        except Exception as e:
            raise classify_backend_error(e)

    def delete_post(self, post_id: str, user_id: str) -> bool:
        post = self.get_post(post_id)
        if post.user_id != user_id:
            raise PermissionDeniedError("You can only delete your own posts")
        try:
            self.supabase.table("post_comments").delete().eq("post_id", post_id).execute()
            self.supabase.table("post_likes").delete().eq("post_id", post_id).execute()
            result = self.supabase.table("posts").delete().eq("id", post_id).execute()
            logger.info(f"Post {post_id} deleted by {user_id}")
            return len(result.data or []) > 0
        except Exception as e:
            raise classify_backend_error(e)

    # Comments

    def _get_comment(self, comment_id: str) -> CommentResponse:
        try:
            result = self.supabase.table("post_comments")\
                .select("*")\
                .eq("id", comment_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise classify_backend_error(e)
        if not result.data:
            raise NotFoundError("Comment not found")
        return CommentResponse(**result.data[0])

    def add_comment(self, post_id: str, user_id: str, comment_data: CommentCreate) -> CommentResponse:
        """
        Add a top-level comment or a reply.

        Top-level comments bump the post's comment count; replies bump the
        parent's reply count instead. Replies cannot be replied to.
        """
        post = self.get_post(post_id)
        parent = None
        if comment_data.parent_comment_id:
            parent = self._get_comment(comment_data.parent_comment_id)
            if parent.post_id != post_id:
                raise InvalidDataError("Parent comment belongs to another post")
            if not parent.is_replyable:
                raise InvalidDataError("Replies cannot be replied to")

        author = self.users.get_profile(user_id)
        try:
            result = self.supabase.table("post_comments").insert({
                "post_id": post_id,
                "user_id": user_id,
                "username": author.username,
                "profile_image": author.avatar_url,
                "content": comment_data.content,
                "parent_comment_id": comment_data.parent_comment_id,
                "replies": 0,
                "is_replyable": parent is None,
                "created_at": datetime.now(timezone.utc).isoformat()
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to add comment")

            if parent is not None:
                self._set_counter("post_comments", parent.id, "replies", parent.replies + 1)
            else:
                self._set_counter("posts", post_id, "comments", post.comments + 1)
            return CommentResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)

    def list_comments(self, post_id: str) -> List[CommentResponse]:
        """Top-level comments, oldest first"""
        try:
            result = self.supabase.table("post_comments")\
                .select("*")\
                .eq("post_id", post_id)\
                .order("created_at")\
                .execute()
        except Exception as e:
            raise classify_backend_error(e)
        return [CommentResponse(**row) for row in result.data or [] if not row.get("parent_comment_id")]

    def list_replies(self, comment_id: str) -> List[CommentResponse]:
        try:
            result = self.supabase.table("post_comments")\
                .select("*")\
                .eq("parent_comment_id", comment_id)\
                .order("created_at")\
                .execute()
            return [CommentResponse(**row) for row in result.data or []]
        except Exception as e:
            raise classify_backend_error(e)

    def delete_comment(self, comment_id: str, user_id: str) -> bool:
        """Delete a comment; a top-level comment takes its replies with it"""
        comment = self._get_comment(comment_id)
        if comment.user_id != user_id:
            raise PermissionDeniedError("You can only delete your own comments")
        try:
            self.supabase.table("post_comments").delete().eq("id", comment_id).execute()
            if comment.parent_comment_id:
                parent = self._get_comment(comment.parent_comment_id)
                self._set_counter("post_comments", parent.id, "replies", parent.replies - 1)
            else:
                post = self.get_post(comment.post_id)
                self._set_counter("posts", post.id, "comments", post.comments - 1)
                self.supabase.table("post_comments")\
                    .delete()\
                    .eq("parent_comment_id", comment_id)\
                    .execute()
            return True
        except HTTPException:
            raise
        except Exception as e:
            raise classify_backend_error(e)
