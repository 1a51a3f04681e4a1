from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class HealthResult(BaseModel):
    """
    Outcome of a health probe round trip.
    """

    up: bool
    latency: float


class UserRecord(BaseModel):
    """
    One entry of the backend's /users listing. Only the two presence flags are read.
    """

    model_config = ConfigDict(strict=True, populate_by_name=True)

    is_online: bool = Field(default=False, alias="isOnline")
    is_in_game: bool = Field(default=False, alias="isInGame")


class CensusResult(BaseModel):
    online_count: int = 0
    in_game_count: int = 0


class LatencyResult(BaseModel):
    rtt: float


class CycleOutcome(BaseModel):
    """
    Aggregate of what one scrape cycle observed.

    ``error`` is set only when the cycle was aborted; a WebSocket failure is
    recorded in ``websocket_error`` and never aborts the cycle.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    health: Optional[HealthResult] = None
    census: Optional[CensusResult] = None
    latency: Optional[LatencyResult] = None
    websocket_error: Optional[Exception] = None
    error: Optional[Exception] = None
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None
