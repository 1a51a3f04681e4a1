import logging
from typing import Iterable, List, Optional

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from contracts.probe_config import ProbeConfig
from contracts.probe_results import CensusResult, UserRecord
from core.errors import CensusTransportError, DecodeError, StatusError

logger = logging.getLogger(__name__)

# Only this much of an error body is kept for the log line
ERROR_BODY_LIMIT = 1024

_UserList = TypeAdapter(Optional[List[Optional[UserRecord]]])


class _WrappedUsers(BaseModel):
    users: Optional[List[Optional[UserRecord]]] = None


def decode_users(body: bytes) -> List[UserRecord]:
    """
    Decode a /users body that is either a bare array of records or an object
    holding the array under ``users``. The bare array is tried first.

    Raises:
        DecodeError: If neither shape matches, carrying both failure reasons.
    """
    try:
        records = _UserList.validate_json(body)
    except ValidationError as array_error:
        try:
            records = _WrappedUsers.model_validate_json(body).users
        except ValidationError as wrapped_error:
            raise DecodeError(
                _first_error(array_error), _first_error(wrapped_error)
            ) from wrapped_error
    return [r for r in records or () if r is not None]


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    err = errors[0]
    loc = ".".join(str(p) for p in err.get("loc", ()))
    return f"{loc}: {err['msg']}" if loc else err["msg"]


def count_users(records: Iterable[UserRecord]) -> CensusResult:
    """
    Count online and in-game users in a single pass. A record may count
    toward both totals.
    """
    online = 0
    in_game = 0
    for record in records:
        if record.is_online:
            online += 1
        if record.is_in_game:
            in_game += 1
    return CensusResult(online_count=online, in_game_count=in_game)


class CensusProbe:
    """
    Collects online and in-game user counts from the backend's /users listing.
    """

    def __init__(
        self,
        config: ProbeConfig,
        users_path: str = "/users",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self.url = f"{config.backend_base_url}{users_path}"
        self._transport = transport

    async def collect_users(self) -> CensusResult:
        """
        Fetch the user listing and reduce it to two counts.

        Returns:
            CensusResult: online and in-game counts.

        Raises:
            CensusTransportError: If the request failed before a full response arrived.
            StatusError: If the backend answered with a non-2xx status.
            DecodeError: If the body is neither accepted JSON shape.
        """
        async with httpx.AsyncClient(
            timeout=self.config.http_timeout,
            transport=self._transport,
            follow_redirects=True,
        ) as client:
            try:
                async with client.stream(
                    "GET", self.url, headers=self.config.auth_headers()
                ) as resp:
                    if not resp.is_success:
                        snippet = await _read_prefix(resp, ERROR_BODY_LIMIT)
                        raise StatusError(
                            resp.status_code, snippet.decode("utf-8", "replace")
                        )
                    body = await resp.aread()
            except httpx.HTTPError as e:
                logger.error(f"Census probe transport error for {self.url}: {e}")
                raise CensusTransportError(f"users: {e}") from e

        result = count_users(decode_users(body))
        logger.debug(
            f"Census probe {self.url}: online={result.online_count}, in_game={result.in_game_count}"
        )
        return result


async def _read_prefix(resp: httpx.Response, limit: int) -> bytes:
    buf = b""
    try:
        async for chunk in resp.aiter_bytes():
            buf += chunk
            if len(buf) >= limit:
                break
    except httpx.HTTPError:
        # body is diagnostic only
        pass
    return buf[:limit]
