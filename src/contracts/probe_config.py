from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class ProbeConfig(BaseModel):
    """
    Immutable settings shared read-only by every scrape cycle.

    Timeouts are expressed in seconds.
    """

    model_config = ConfigDict(frozen=True)

    backend_base_url: str
    websocket_url: str
    bearer_token: Optional[str] = None
    http_timeout: float = 2.0
    websocket_handshake_timeout: float = 3.0

    @field_validator("backend_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    def auth_headers(self) -> Dict[str, str]:
        """
        Return the Authorization header to attach to outbound requests, if any.
        """
        if self.bearer_token:
            return {"Authorization": f"Bearer {self.bearer_token}"}
        return {}
