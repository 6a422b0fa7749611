from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum


class PostType(str, Enum):
    TEXT = "text"
    HAND = "hand"
    LOCATION = "location"


class PostCreate(BaseModel):
    content: str = Field(..., max_length=5000)
    post_type: PostType = PostType.TEXT
    image_urls: Optional[List[str]] = None
    hand_history: Optional[Dict[str, Any]] = None
    session_id: Optional[str] = None
    location: Optional[str] = None
    is_note: bool = False


class PostResponse(BaseModel):
    id: str
    user_id: str
    content: str
    username: str
    display_name: Optional[str] = None
    profile_image: Optional[str] = None
    image_urls: Optional[List[str]] = None
    likes: int = 0
    comments: int = 0
    post_type: PostType = PostType.TEXT
    hand_history: Optional[Dict[str, Any]] = None
    session_id: Optional[str] = None
    location: Optional[str] = None
    is_note: bool = False
    created_at: datetime

    class Config:
        from_attributes = True


class LikeResponse(BaseModel):
    post_id: str
    liked: bool
    likes: int


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)
    parent_comment_id: Optional[str] = None


class CommentResponse(BaseModel):
    id: str
    post_id: str
    user_id: str
    username: str
    profile_image: Optional[str] = None
    content: str
    parent_comment_id: Optional[str] = None
    replies: int = 0
    is_replyable: bool = True
    created_at: datetime

    class Config:
        from_attributes = True
