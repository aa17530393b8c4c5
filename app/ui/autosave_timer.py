from __future__ import annotations

import datetime
from typing import Callable, Mapping, Optional

from PySide6.QtCore import QObject, QTimer, Signal

from observations import AUTO, DaypartInput, ObservationLog, build_observation, has_entries
from targets import TargetStrategy


HOURLY_INTERVAL_MS = 60 * 60 * 1000


class AutoSaveTimer(QObject):
    """Polls the log's autosave decision on a Qt timer.

    The log decides whether anything is written; this object only supplies the
    clock and whatever the dashboard currently holds.
    """

    autosaved = Signal(object)

    def __init__(
        self,
        log: ObservationLog,
        strategy: TargetStrategy,
        current_inputs: Callable[[], Mapping[str, DaypartInput]],
        *,
        interval_ms: int = HOURLY_INTERVAL_MS,
        clock: Callable[[], datetime.datetime] = datetime.datetime.now,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self.log = log
        self.strategy = strategy
        self.current_inputs = current_inputs
        self.clock = clock
        self.timer = QTimer(self)
        self.timer.setInterval(interval_ms)
        self.timer.timeout.connect(self.check_now)

    def start(self) -> None:
        self.timer.start()

    def stop(self) -> None:
        self.timer.stop()

    def is_active(self) -> bool:
        return self.timer.isActive()

    def check_now(self) -> bool:
        inputs = self.current_inputs()
        fired = self.log.maybe_auto_save(
            self.clock(),
            has_entries(inputs),
            lambda moment: build_observation(self.strategy, inputs, when=moment, saved_by=AUTO),
        )
        if fired:
            self.autosaved.emit(self.log.load_all()[0])
        return fired
