"""
FiveM game server status model.

The status is either a full online snapshot or the fixed offline default;
a partially populated status is never produced.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_MAX_PLAYERS = 128


class GameServerStatus(BaseModel):
    """Normalized game server population snapshot."""

    model_config = ConfigDict(populate_by_name=True)

    online: bool = False
    players: int = Field(0, ge=0)
    max_players: int = Field(DEFAULT_MAX_PLAYERS, alias="maxPlayers")
    server_name: str = Field(..., alias="serverName")
    uptime: Optional[Any] = None
    connect_endpoint: Optional[str] = Field(None, alias="connectEndpoint")
    error: Optional[str] = None

    @classmethod
    def offline(cls, server_name: str, error: Optional[str] = None) -> "GameServerStatus":
        """The degraded default returned whenever the upstream lookup fails."""
        return cls(
            online=False,
            players=0,
            max_players=DEFAULT_MAX_PLAYERS,
            server_name=server_name,
            error=error,
        )

    @property
    def is_degraded(self) -> bool:
        return self.error is not None

    def to_response(self) -> Dict[str, Any]:
        """Wire shape; the degraded form omits uptime and connect endpoint."""
        if self.is_degraded:
            return self.model_dump(
                by_alias=True,
                include={'online', 'players', 'max_players', 'server_name', 'error'},
            )
        return self.model_dump(by_alias=True, exclude={'error'})
