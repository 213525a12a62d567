"""
Minecraft player record models.

Records are keyed by username and merged on every update: fields present
in the update win, absent fields keep the stored value, and brand-new
records start from the defaults declared on PlayerRecord.
"""

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

Duration = Union[str, int, float]


class PlayerRecord(BaseModel):
    """Stored player statistics."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    uuid: str = "unknown"
    username: str = Field(..., min_length=1)
    deaths: int = 0
    player_kills: int = Field(0, alias="playerKills")
    alive_since: Duration = Field("0h", alias="aliveSince")
    awake_since: Duration = Field("0h", alias="awakeSince")
    mined: Dict[str, int] = Field(default_factory=dict)
    killed: Dict[str, int] = Field(default_factory=dict)
    last_seen: Optional[str] = Field(None, alias="lastSeen")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class PlayerUpdate(BaseModel):
    """Partial player payload posted by the server plugin."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    username: str = Field(..., min_length=1)
    uuid: Optional[str] = None
    deaths: Optional[int] = None
    player_kills: Optional[int] = Field(None, alias="playerKills")
    alive_since: Optional[Duration] = Field(None, alias="aliveSince")
    awake_since: Optional[Duration] = Field(None, alias="awakeSince")
    mined: Optional[Dict[str, int]] = None
    killed: Optional[Dict[str, int]] = None

    def merge_into(self, existing: Optional[PlayerRecord], seen_at: str) -> PlayerRecord:
        """
        Produce the record to store for this update.

        Counters and uuid fall back only when absent, so an explicit 0
        overwrites. Durations and maps also fall back when empty.
        """
        base = existing or PlayerRecord(username=self.username)

        def present(value, fallback):
            return value if value is not None else fallback

        def non_empty(value, fallback):
            return value if value else fallback

        return PlayerRecord(
            uuid=present(self.uuid, base.uuid),
            username=self.username,
            deaths=present(self.deaths, base.deaths),
            player_kills=present(self.player_kills, base.player_kills),
            alive_since=non_empty(self.alive_since, base.alive_since),
            awake_since=non_empty(self.awake_since, base.awake_since),
            mined=non_empty(self.mined, base.mined),
            killed=non_empty(self.killed, base.killed),
            last_seen=seen_at,
        )
