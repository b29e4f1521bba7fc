from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from catalog_diff.api.app_factory import create_app
from catalog_diff.config.settings import Settings

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _test_settings(tmp_path: Path, **overrides: object) -> Settings:
    values: dict[str, object] = {
        "data_dir": tmp_path / "data",
        "uploads_dir": tmp_path / "uploads",
        "job_start_delay_seconds": 0,
        "persist_debounce_seconds": 0.01,
        "max_workers": 2,
    }
    values.update(overrides)
    return Settings(**values)  # type: ignore[arg-type]


@pytest.fixture()
def test_settings(tmp_path: Path) -> Settings:
    return _test_settings(tmp_path)


@pytest.fixture()
def make_settings(tmp_path: Path) -> Callable[..., Settings]:
    def _make(**overrides: object) -> Settings:
        return _test_settings(tmp_path, **overrides)

    return _make


@pytest.fixture()
def client(test_settings: Settings) -> Generator[TestClient, None, None]:
    with TestClient(create_app(test_settings)) as test_client:
        yield test_client


@pytest.fixture()
def wait_for_jobs(client: TestClient) -> Callable[[], None]:
    """Block until every scheduled validation job of the app has finished."""

    def _wait() -> None:
        assert client.app.state.services.runner.wait_for_pending(timeout=15)

    return _wait


@pytest.fixture()
def upload(client: TestClient) -> Callable[..., dict]:
    """Submit a file and return the accepted upload record."""

    def _upload(content: bytes, filename: str = "catalog.xlsx") -> dict:
        response = client.post(
            "/api/uploads",
            files={"file": (filename, content, XLSX_CONTENT_TYPE)},
        )
        assert response.status_code == 200, response.text
        return response.json()

    return _upload
