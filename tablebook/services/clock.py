"""Wall-clock source, injectable so past-slot checks can be tested"""

from datetime import datetime


class SystemClock:
    """Local wall-clock time of the server"""

    def now(self) -> datetime:
        return datetime.now()


def get_clock() -> SystemClock:
    """FastAPI dependency; tests override it with a fixed clock"""
    return SystemClock()
