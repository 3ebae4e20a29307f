from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from battle_tracker.observability import NullMetrics as TrackerNullMetrics
from battle_tracker.observability import Observability as TrackerObservability
from battle_tracker.observability import StdlibLogger as TrackerStdlibLogger
from battle_tracker.retention import LogRecord
from ledger_data.observability import NullMetrics as LedgerNullMetrics
from ledger_data.observability import Observability as LedgerObservability
from ledger_data.observability import StdlibLogger as LedgerStdlibLogger

LOG_FILE_NAME = "arena-watch.log"


@dataclass(frozen=True)
class RuntimeObservability:
    logger: logging.Logger

    def log_runtime_started(self, *, endpoint: str, hint_url: str | None, streams: int) -> None:
        self.logger.info(
            "runtime.started",
            extra={"fields": {"endpoint": endpoint, "hint_url": hint_url, "streams": streams}},
        )

    def log_runtime_stopped(self) -> None:
        self.logger.info("runtime.stopped", extra={"fields": {}})

    def log_battle_event(self, record: LogRecord) -> None:
        event = record.event
        self.logger.info(
            event.message,
            extra={
                "fields": {
                    "log_seq": record.log_seq,
                    "turn": event.turn,
                    "kind": event.kind.value,
                    "sequence": event.sequence,
                }
            },
        )


@dataclass(frozen=True)
class ObservabilityBundle:
    runtime: RuntimeObservability
    ledger_data: LedgerObservability
    battle_tracker: TrackerObservability


class _FieldsFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "fields"):
            record.fields = {}
        return True


def bootstrap_observability(*, log_dir: str) -> ObservabilityBundle:
    _setup_logging(log_dir=log_dir)
    return ObservabilityBundle(
        runtime=RuntimeObservability(logger=logging.getLogger("runtime")),
        ledger_data=LedgerObservability(
            logger=LedgerStdlibLogger(logging.getLogger("ledger_data")),
            metrics=LedgerNullMetrics(),
        ),
        battle_tracker=TrackerObservability(
            logger=TrackerStdlibLogger(logging.getLogger("battle_tracker")),
            metrics=TrackerNullMetrics(),
        ),
    )


def _setup_logging(*, log_dir: str) -> None:
    os.makedirs(log_dir, exist_ok=True)
    handler = logging.FileHandler(os.path.join(log_dir, LOG_FILE_NAME))
    handler.addFilter(_FieldsFilter())
    handler.setFormatter(
        logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s | %(fields)s")
    )
    logging.basicConfig(level=logging.INFO, handlers=[handler])
    logging.getLogger("ledger_data").setLevel(logging.INFO)
    logging.getLogger("battle_tracker").setLevel(logging.DEBUG)
    logging.getLogger("runtime").setLevel(logging.DEBUG)
