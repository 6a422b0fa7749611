from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum
from stack_api.modules.users.schemas import UserProfileResponse


class LeaderboardType(str, Enum):
    MOST_HOURS = "most_hours"
    MOST_PROFIT = "most_profit"


class MemberRole(str, Enum):
    OWNER = "owner"
    MEMBER = "member"


class InviteStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class MessageType(str, Enum):
    TEXT = "text"
    HAND = "hand"


class GroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    leaderboard_type: LeaderboardType = LeaderboardType.MOST_HOURS


class GroupAvatarUpdate(BaseModel):
    avatar_url: str


class LeaderboardTypeUpdate(BaseModel):
    leaderboard_type: LeaderboardType


class GroupResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = ""
    owner_id: str
    avatar_url: Optional[str] = None
    member_count: int = 1
    leaderboard_type: LeaderboardType = LeaderboardType.MOST_HOURS
    last_message: Optional[str] = None
    last_message_time: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class GroupMemberResponse(BaseModel):
    id: str
    group_id: str
    user_id: str
    role: MemberRole
    joined_at: datetime

    class Config:
        from_attributes = True


class GroupMemberInfo(BaseModel):
    user_id: str
    role: MemberRole
    joined_at: datetime
    profile: Optional[UserProfileResponse] = None


class InviteCreate(BaseModel):
    username: str


class GroupInviteResponse(BaseModel):
    id: str
    group_id: str
    group_name: str
    inviter_id: str
    inviter_name: str
    invitee_id: str
    status: InviteStatus
    created_at: datetime

    class Config:
        from_attributes = True


class TextMessageCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=2000)


class HandMessageCreate(BaseModel):
    hand_history_id: str


class GroupMessageResponse(BaseModel):
    id: str
    group_id: str
    sender_id: str
    sender_name: str
    sender_avatar_url: Optional[str] = None
    message_type: MessageType
    text: Optional[str] = None
    hand_history_id: Optional[str] = None
    hand_owner_user_id: Optional[str] = None
    timestamp: datetime

    class Config:
        from_attributes = True


class LeaderboardEntry(BaseModel):
    user: UserProfileResponse
    total_hours: float = 0
    total_profit: float = 0
    rank: int


class LeaderboardResponse(BaseModel):
    group_id: str
    leaderboard_type: LeaderboardType
    entries: List[LeaderboardEntry]
