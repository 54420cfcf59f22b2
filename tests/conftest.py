# tests/conftest.py

"""
Pytest Fixtures - Shared collaborators and settings for engine tests

FakeDisplay stands in for the immersive display. By default every request
is confirmed at once; flags let a test hold back confirmation, make a
request fail, or make it hang past the timeout.
"""

import asyncio

import pytest

from scat_engine.commands.router import CommandRouter
from scat_engine.config import Settings
from scat_engine.models.enumerations import ModuleKind
from scat_engine.models.session import Session
from scat_engine.services.result_store import InMemoryResultStore


# =============================================================================
# DISPLAY FAKE
# =============================================================================

class FakeDisplay:
    """Display collaborator with request counters and controllable confirmation."""

    def __init__(
        self,
        confirm_show: bool = True,
        confirm_hide: bool = True,
        fail_show: bool = False,
        hang_show: bool = False,
    ):
        self.is_shown = False
        self.show_requests = 0
        self.hide_requests = 0
        self.confirm_show = confirm_show
        self.confirm_hide = confirm_hide
        self.fail_show = fail_show
        self.hang_show = hang_show

    async def request_show(self) -> None:
        self.show_requests += 1
        if self.hang_show:
            await asyncio.sleep(3600)
        if self.fail_show:
            raise RuntimeError("presentation surface unavailable")
        if self.confirm_show:
            self.is_shown = True

    async def request_hide(self) -> None:
        self.hide_requests += 1
        if self.confirm_hide:
            self.is_shown = False


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def display():
    return FakeDisplay()


@pytest.fixture
def make_display():
    """Factory for displays with non-default confirmation behaviour."""
    return FakeDisplay


@pytest.fixture
def store():
    return InMemoryResultStore()


@pytest.fixture
def router():
    """Strict router so controller invariant violations surface in tests."""
    return CommandRouter(help_auto_hide_seconds=0, strict=True)


@pytest.fixture
def engine_settings():
    """Short display timeout and two short digit sequences."""
    return Settings(
        DISPLAY_TIMEOUT_SECONDS=0.1,
        DISPLAY_RETRY_ATTEMPTS=1,
        DIGIT_SEQUENCES=[[4, 2, 7], [8, 1, 5, 3]],
    )


@pytest.fixture
def three_module_session():
    """Orientation → concentration → balance."""
    return Session.create(
        modules=[ModuleKind.ORIENTATION, ModuleKind.CONCENTRATION, ModuleKind.BALANCE]
    )
