"""Snowflake-style ids for accounts and purchase transactions.

Ids are decimal strings of a 63-bit integer, increasing per process:

    | 41 bits ms since 2023-11-14 | 10 bits worker | 12 bits sequence |

Run each API worker with a distinct ID_WORKER_ID; two workers sharing one
would be able to mint the same purchase id within the same millisecond.
"""

import threading
import time

from config.settings import settings

EPOCH_MS = 1_700_000_000_000
WORKER_BITS = 10
SEQUENCE_BITS = 12
MAX_WORKER_ID = (1 << WORKER_BITS) - 1
_SEQUENCE_MASK = (1 << SEQUENCE_BITS) - 1


class SnowflakeIdGenerator:
    def __init__(self, worker_id: int = 0) -> None:
        if not 0 <= worker_id <= MAX_WORKER_ID:
            raise ValueError(f"worker_id must be 0-{MAX_WORKER_ID}, got {worker_id}")
        self._worker_id = worker_id
        self._last_ms = -1
        self._sequence = 0
        self._mutex = threading.Lock()

    def next_id(self) -> str:
        with self._mutex:
            # A clock stepping backwards keeps minting from the last seen ms.
            now_ms = max(int(time.time() * 1000), self._last_ms)
            if now_ms == self._last_ms:
                self._sequence = (self._sequence + 1) & _SEQUENCE_MASK
                if self._sequence == 0:
                    while now_ms <= self._last_ms:
                        now_ms = int(time.time() * 1000)
            else:
                self._sequence = 0
            self._last_ms = now_ms
            elapsed = now_ms - EPOCH_MS
            return str(
                (elapsed << (WORKER_BITS + SEQUENCE_BITS))
                | (self._worker_id << SEQUENCE_BITS)
                | self._sequence
            )


_generator = SnowflakeIdGenerator(settings.ID_WORKER_ID)


def generate_id() -> str:
    return _generator.next_id()
