# presenter.py
"""
Presentation boundary: refresh cycles push snapshots and errors here.

``DashboardState`` is the in-process presenter behind the HTTP/WebSocket
endpoints. It keeps the latest snapshot and error and bumps ``version`` on
every change so WebSocket clients can tell when to resend.
"""

from abc import ABC, abstractmethod
from typing import Optional

from models import DashboardSnapshot


class Presenter(ABC):
    @abstractmethod
    def render(self, snapshot: DashboardSnapshot) -> None: ...

    @abstractmethod
    def show_error(self, message: str) -> None: ...


class DashboardState(Presenter):
    def __init__(self) -> None:
        self.snapshot: Optional[DashboardSnapshot] = None
        self.error: Optional[str] = None
        self.version: int = 0

    @property
    def last_update(self) -> Optional[int]:
        return self.snapshot.timestamp if self.snapshot else None

    def render(self, snapshot: DashboardSnapshot) -> None:
        self.snapshot = snapshot
        self.error = None
        self.version += 1

    def show_error(self, message: str) -> None:
        # Previous snapshot stays visible alongside the error
        self.error = message
        self.version += 1
