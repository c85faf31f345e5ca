"""Shared test fixtures for the encode orchestrator."""

import shutil
import tempfile
from collections.abc import Callable
from pathlib import Path

import pytest

from encode_orchestrator.backend.stub import StubBackend
from encode_orchestrator.config.models import EncodeOptions
from encode_orchestrator.models import EncodedPacket
from encode_orchestrator.session import EncodeSession


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test isolation."""
    dir_path = tempfile.mkdtemp()
    yield Path(dir_path)
    shutil.rmtree(dir_path, ignore_errors=True)


@pytest.fixture
def stub_backend() -> StubBackend:
    """Return a fresh stub backend without fault injection."""
    return StubBackend()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_options(temp_dir: Path) -> Callable[..., EncodeOptions]:
    """Factory for EncodeOptions writing into temp_dir.

    The file argument is a name relative to temp_dir.
    """

    def _make(file: str = "out.mkv", **kwargs) -> EncodeOptions:
        return EncodeOptions(file=str(temp_dir / file), **kwargs)

    return _make


@pytest.fixture
def make_session(
    make_options: Callable[..., EncodeOptions],
    stub_backend: StubBackend,
    clock: FakeClock,
) -> Callable[..., EncodeSession]:
    """Factory for sessions on the stub backend.

    Keyword arguments go to EncodeOptions; pass backend= to use a
    differently configured stub.
    """
    sessions: list[EncodeSession] = []

    def _make(file: str = "out.mkv", backend: StubBackend | None = None, **kwargs):
        session = EncodeSession(
            make_options(file, **kwargs),
            backend if backend is not None else stub_backend,
            clock=clock,
        )
        sessions.append(session)
        return session

    yield _make

    for session in sessions:
        session.finish()


@pytest.fixture
def make_packet() -> Callable[..., EncodedPacket]:
    """Factory for packets of a given payload size on a stream."""

    def _make(stream, size: int, duration: int = 1, pts: int = 0) -> EncodedPacket:
        return EncodedPacket(
            stream_index=stream.index,
            data=b"\x00" * size,
            pts=pts,
            dts=pts,
            duration=duration,
        )

    return _make
