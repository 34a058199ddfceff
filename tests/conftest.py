from collections.abc import Callable
import io
from pathlib import Path

import pytest
from sqlalchemy.orm import Session, sessionmaker

from pstitle.config import Settings
from pstitle.database import build_session_factory
from pstitle.interrupts import InterruptSource
from pstitle.pipeline import Stages
from pstitle.runner import LookupRunner
from pstitle.styles import Palette


@pytest.fixture()
def test_settings(tmp_path: Path) -> Settings:
    return Settings(
        app_name="pstitle",
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        log_level="INFO",
        api_token="test-token",
        record_count=10,
        skip=0,
        delay_rate_limit_ms=0,
        delay_auth_ms=0,
        delay_retrieve_ms=0,
        delay_persist_ms=0,
        persist_workers=10,
        event_timeout_seconds=5,
        backend="threads",
        show_progress=False,
        use_color=False,
    )


@pytest.fixture()
def session_factory(test_settings: Settings) -> sessionmaker[Session]:
    return build_session_factory(test_settings.database_url)


@pytest.fixture()
def report_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture()
def make_runner(
    session_factory: sessionmaker[Session], report_stream: io.StringIO
) -> Callable[..., LookupRunner]:
    def _make(
        settings: Settings,
        *,
        stages: Stages | None = None,
        interrupt: InterruptSource | None = None,
    ) -> LookupRunner:
        return LookupRunner(
            settings,
            session_factory,
            stages=stages,
            palette=Palette.plain(),
            stream=report_stream,
            interrupt=interrupt,
        )

    return _make
