"""
Display-mode collaborator
scat_engine/services/display.py

The immersive presentation surface is external. The engine only asks it to
show or hide and reads ``is_shown`` once a request returns. A display that
confirms later forwards the change to SessionOrchestrator.on_display_changed().
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class DisplayMode(Protocol):
    is_shown: bool

    async def request_show(self) -> None:
        ...

    async def request_hide(self) -> None:
        ...


class NullDisplay:
    """Headless display: every request succeeds immediately and flips ``is_shown``."""

    def __init__(self):
        self.is_shown = False
        self.show_requests = 0
        self.hide_requests = 0

    async def request_show(self) -> None:
        self.show_requests += 1
        self.is_shown = True

    async def request_hide(self) -> None:
        self.hide_requests += 1
        self.is_shown = False
