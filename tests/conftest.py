import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

SRC_ROOT = Path(__file__).resolve().parent.parent / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from bigset import SetStore, create  # noqa: E402


@pytest.fixture(autouse=True)
def configure_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.delenv("BIGSET_PATH", raising=False)
    monkeypatch.setenv("BIGSET_TEMP_DIR", str(tmp_path / "tmp"))
    monkeypatch.setenv("BIGSET_JOURNAL_MODE", "WAL")
    monkeypatch.setenv("BIGSET_SYNCHRONOUS", "NORMAL")
    monkeypatch.setenv("BIGSET_BUSY_TIMEOUT", "5")
    monkeypatch.setenv("BIGSET_PROGRESS_INTERVAL", "1000")
    monkeypatch.setenv("BIGSET_FETCH_SIZE", "4")
    monkeypatch.setenv("BIGSET_WARN_ON_DRIFT", "true")
    yield


@pytest.fixture
def int_store() -> Iterator[SetStore[int]]:
    with create(int) as store:
        yield store
