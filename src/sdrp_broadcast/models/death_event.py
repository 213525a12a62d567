"""
Death broadcast event models.

Death events are posted by the game server plugin and kept in a bounded,
newest-first log for the dashboard ticker.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

UNKNOWN = "unknown"


class DeathEventCreate(BaseModel):
    """Incoming death notification payload."""

    model_config = ConfigDict(extra="ignore")

    message: str = Field(..., min_length=1, description="Human-readable death line")
    player: Optional[str] = None
    killer: Optional[str] = None
    weapon: Optional[str] = None
    location: Optional[Any] = None
    timestamp: Optional[str] = Field(None, description="Caller-side event time")

    @field_validator('player', 'killer', 'weapon', mode='before')
    @classmethod
    def default_unknown(cls, v):
        """Absent or empty participants become the unknown sentinel."""
        if v is None or v == "":
            return UNKNOWN
        return str(v)

    @field_validator('location', mode='before')
    @classmethod
    def empty_location_to_none(cls, v):
        return v or None

    @field_validator('timestamp', mode='before')
    @classmethod
    def empty_timestamp_to_none(cls, v):
        if not v:
            return None
        return str(v)


class DeathEvent(BaseModel):
    """Stored death event."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    message: str
    player: str = UNKNOWN
    killer: str = UNKNOWN
    weapon: str = UNKNOWN
    location: Optional[Any] = None
    timestamp: str
    received_at: str = Field(..., alias="receivedAt")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class RankedName(BaseModel):
    """One row of a frequency ranking."""

    name: str
    count: int


class DeathStats(BaseModel):
    """Aggregates derived from the current death log contents."""

    total_messages: int
    last_message: Optional[DeathEvent] = None
    oldest_message: Optional[DeathEvent] = None
    top_killers: List[RankedName] = Field(default_factory=list)
    top_weapons: List[RankedName] = Field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalMessages': self.total_messages,
            'lastMessage': self.last_message.to_dict() if self.last_message else None,
            'oldestMessage': self.oldest_message.to_dict() if self.oldest_message else None,
            'topKillers': [{'name': r.name, 'kills': r.count} for r in self.top_killers],
            'topWeapons': [{'name': r.name, 'uses': r.count} for r in self.top_weapons],
        }
