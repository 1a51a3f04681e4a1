class ProbeError(Exception):
    """
    Base class for every failure raised by a probe.
    """


class TransportError(ProbeError):
    """
    The request could not be sent or no response arrived before the timeout.
    """


class CensusError(ProbeError):
    """
    The /users census could not be collected.
    """


class CensusTransportError(CensusError, TransportError):
    pass


class StatusError(CensusError):
    """
    The backend answered with a non-2xx status.
    """

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"users: unexpected status {status_code}: {body}")


class DecodeError(CensusError):
    """
    The body matched neither a bare user array nor a {"users": [...]} wrapper.
    """

    def __init__(self, array_error: str, wrapped_error: str):
        self.array_error = array_error
        self.wrapped_error = wrapped_error
        super().__init__(
            f"users: decode failed: {array_error} / wrapped: {wrapped_error}"
        )


class WSError(ProbeError):
    """
    Base class for WebSocket ping probe failures.
    """


class WSHandshakeError(WSError):
    pass


class WSWriteError(WSError):
    pass


class WSTimeoutError(WSError):
    pass


class WSReadError(WSError):
    pass
