"""Snowflake-style ID generator for listing and transaction ids.

IDs are zero-padded to a fixed width so that TEXT ordering in PostgreSQL
matches numeric (creation) ordering — keyset cursors compare ids as strings.
"""

import threading
import time

ID_WIDTH = 20


class SnowflakeIdGenerator:
    """Layout (63 bits):
      - 41 bits: millisecond timestamp (since custom epoch)
      - 10 bits: machine_id (0-1023)
      - 12 bits: sequence (0-4095 per millisecond)
    """

    _EPOCH_MS = 1_700_000_000_000
    _MACHINE_BITS = 10
    _SEQUENCE_BITS = 12
    _MAX_SEQUENCE = (1 << _SEQUENCE_BITS) - 1

    def __init__(self, machine_id: int = 0) -> None:
        if not (0 <= machine_id < (1 << self._MACHINE_BITS)):
            raise ValueError(f"machine_id must be 0-{(1 << self._MACHINE_BITS) - 1}")
        self._machine_id = machine_id
        self._sequence = 0
        self._last_ms = -1
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            now_ms = int(time.time() * 1000)
            if now_ms < self._last_ms:
                # Clock stepped backwards; keep issuing from the last timestamp.
                now_ms = self._last_ms
            if now_ms == self._last_ms:
                self._sequence = (self._sequence + 1) & self._MAX_SEQUENCE
                if self._sequence == 0:
                    while now_ms <= self._last_ms:
                        now_ms = int(time.time() * 1000)
            else:
                self._sequence = 0

            self._last_ms = now_ms
            value = (
                ((now_ms - self._EPOCH_MS) << (self._MACHINE_BITS + self._SEQUENCE_BITS))
                | (self._machine_id << self._SEQUENCE_BITS)
                | self._sequence
            )
            return str(value).zfill(ID_WIDTH)


_default_generator = SnowflakeIdGenerator()


def generate_id() -> str:
    """Next id from the process-wide generator."""
    return _default_generator.next_id()
