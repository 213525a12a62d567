"""
Twitch stream and streamer models.

LiveStream mirrors a Helix `streams` entry; unknown upstream fields are kept
and passed through to the dashboard untouched. StreamerProfile is the
enriched per-channel view recomputed on every request.
"""

from typing import Any, Dict, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LiveStream(BaseModel):
    """A currently-live Twitch stream."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., description="Upstream stream identifier")
    user_login: str = Field("", description="Channel login")
    user_name: str = Field("", description="Channel display name")
    title: str = Field("", description="Stream title")
    viewer_count: int = Field(0, description="Current viewers")
    thumbnail_url: str = Field("", description="Thumbnail URL template")

    @field_validator('id', mode='before')
    @classmethod
    def validate_id(cls, v):
        """Helix sends ids as strings but tolerate numbers."""
        if v is None or str(v).strip() == "":
            raise ValueError("Stream id cannot be empty")
        return str(v)

    @field_validator('user_login', 'user_name', 'title', 'thumbnail_url', mode='before')
    @classmethod
    def none_to_empty(cls, v):
        return "" if v is None else v

    @field_validator('viewer_count')
    @classmethod
    def validate_viewer_count(cls, v):
        """Validate viewer count is non-negative."""
        if v < 0:
            raise ValueError("Viewer count cannot be negative")
        return v

    def matches_any(self, keywords: Iterable[str]) -> bool:
        """Case-insensitive substring match on title or display name."""
        title = self.title.lower()
        user_name = self.user_name.lower()
        return any(kw in title or kw in user_name for kw in keywords)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class StreamerProfile(BaseModel):
    """Configured channel enriched with followers, top clip and live state."""

    model_config = ConfigDict(extra="ignore")

    id: str
    login: str
    display_name: str = ""
    description: str = ""
    profile_image_url: str = ""
    view_count: int = 0
    follower_count: int = Field(0, ge=0)
    top_clip: Optional[Dict[str, Any]] = None
    is_live: bool = False
    last_stream: Optional[Dict[str, Any]] = None

    @field_validator('id', mode='before')
    @classmethod
    def validate_id(cls, v):
        return str(v)

    @field_validator('display_name', 'description', 'profile_image_url', mode='before')
    @classmethod
    def none_to_empty(cls, v):
        return "" if v is None else v

    @field_validator('view_count', mode='before')
    @classmethod
    def coerce_view_count(cls, v):
        try:
            return int(v)
        except (TypeError, ValueError):
            return 0

    @classmethod
    def from_user(cls, user: Dict[str, Any], **enrichment: Any) -> "StreamerProfile":
        """Build a profile from a Helix `users` entry plus enrichment fields."""
        base = {
            'id': user.get('id'),
            'login': user.get('login') or str(user.get('id', '')),
            'display_name': user.get('display_name'),
            'description': user.get('description'),
            'profile_image_url': user.get('profile_image_url'),
            'view_count': user.get('view_count'),
        }
        base.update(enrichment)
        return cls(**base)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()
