"""ledger_data contracts, transports and resilient reads."""

from ledger_data.config import (
    BackoffPolicy,
    HintConfig,
    LedgerConfig,
    validate_backoff,
    validate_hint,
    validate_ledger,
)
from ledger_data.contracts import (
    DEFAULT_OWNER,
    PARTICIPANT_COUNT,
    ContestSnapshot,
    MarketState,
    ParticipantState,
    UnclaimedWinning,
    UserPosition,
)
from ledger_data.decoder import (
    DecodeError,
    DecodeFailureDetail,
    decode_contest_snapshot,
    decode_market_state,
    decode_user_position,
)
from ledger_data.errors import (
    ErrorKind,
    LedgerError,
    LedgerReadError,
    NotFoundError,
    RateLimitedError,
    TransientFailure,
    classify_error,
)
from ledger_data.fetcher import ResilientFetcher
from ledger_data.hint import HintClient, HintSource
from ledger_data.keys import battle_key, contest_id_bytes, global_key, market_key, position_key
from ledger_data.observability import NullLogger, NullMetrics, Observability, StdlibLogger
from ledger_data.source import SnapshotSource
from ledger_data.transport import (
    HttpLedgerReader,
    LedgerReader,
    WebSocketLedgerReader,
    build_reader,
)

__all__ = [
    "BackoffPolicy",
    "HintConfig",
    "LedgerConfig",
    "validate_backoff",
    "validate_hint",
    "validate_ledger",
    "DEFAULT_OWNER",
    "PARTICIPANT_COUNT",
    "ContestSnapshot",
    "MarketState",
    "ParticipantState",
    "UnclaimedWinning",
    "UserPosition",
    "DecodeError",
    "DecodeFailureDetail",
    "decode_contest_snapshot",
    "decode_market_state",
    "decode_user_position",
    "ErrorKind",
    "LedgerError",
    "LedgerReadError",
    "NotFoundError",
    "RateLimitedError",
    "TransientFailure",
    "classify_error",
    "ResilientFetcher",
    "HintClient",
    "HintSource",
    "battle_key",
    "contest_id_bytes",
    "global_key",
    "market_key",
    "position_key",
    "NullLogger",
    "NullMetrics",
    "Observability",
    "StdlibLogger",
    "SnapshotSource",
    "HttpLedgerReader",
    "LedgerReader",
    "WebSocketLedgerReader",
    "build_reader",
]
