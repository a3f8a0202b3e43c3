class RankingError(Exception):
    """Base error for a remote ranking attempt that produced nothing usable."""

    kind = "ranking"


class RankingTransportError(RankingError):
    """The request could not complete (connection, DNS, protocol-level I/O)."""

    kind = "transport"


class RankingTimeoutError(RankingError):
    """No response within the ranking time budget."""

    kind = "timeout"


class RankingProtocolError(RankingError):
    """Non-success answer or a payload that does not follow the contract."""

    kind = "protocol"


class EmptyRankingError(RankingError):
    """Well-formed success answer without a single usable recommendation."""

    kind = "empty"


class RankingCancelledError(RankingError):
    """The attempt was abandoned before it finished; its result is discarded."""

    kind = "cancelled"


class RankingRequestError(Exception):
    """Invalid ranking request on the serving side; mapped to an HTTP error body."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
