"""Tests for the FastAPI service mode."""

from __future__ import annotations

import asyncio
import threading
from pathlib import Path

import pytest

try:
    from fastapi.testclient import TestClient
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    pytest.skip("fastapi not installed", allow_module_level=True)

from vaultsite.models import DocumentFailure, GenerationReport, OutputArtifact
from vaultsite.orchestrator import GenerationError
from vaultsite.service import create_app
from vaultsite.service.app import GenerateRequest


class _StubOrchestrator:
    def __init__(self) -> None:
        self.calls: list[dict[str, object]] = []
        self.failures: list[DocumentFailure] = []
        self.error: Exception | None = None
        self.release: threading.Event | None = None
        self.started = threading.Event()

    def generate(self, path: str, **overrides: object) -> GenerationReport:
        self.calls.append({"path": path, **overrides})
        self.started.set()
        if self.release is not None:
            self.release.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return GenerationReport(
            output_root=Path(path) / "dist",
            artifacts=[
                OutputArtifact(source_path="index.md", output_path="index.html", kind="page"),
                OutputArtifact(source_path="", output_path="assets/style.css", kind="asset"),
            ],
            failures=list(self.failures),
        )


@pytest.fixture
def orchestrator() -> _StubOrchestrator:
    return _StubOrchestrator()


@pytest.fixture
def client(orchestrator: _StubOrchestrator) -> TestClient:
    return TestClient(create_app(lambda: orchestrator))


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "running": False}


def test_generate_endpoint(client: TestClient, orchestrator: _StubOrchestrator, tmp_path: Path) -> None:
    response = client.post(
        "/generate",
        json={"vault": str(tmp_path), "site_name": "Garden", "allow_private_folders": True},
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["output_root"] == str(tmp_path / "dist")
    assert payload["pages"] == 1
    assert payload["assets"] == 1
    assert payload["failures"] == []
    assert orchestrator.calls == [
        {
            "path": str(tmp_path),
            "output_dir": None,
            "site_name": "Garden",
            "allow_private_folders": True,
            "check_fonts": None,
        }
    ]


def test_generate_reports_partial_failures(
    client: TestClient, orchestrator: _StubOrchestrator, tmp_path: Path
) -> None:
    orchestrator.failures = [DocumentFailure(path="notes/b.md", error="boom")]
    response = client.post("/generate", json={"vault": str(tmp_path)})
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "partial"
    assert payload["failures"] == [{"path": "notes/b.md", "error": "boom"}]


def test_generation_error_maps_to_400(
    client: TestClient, orchestrator: _StubOrchestrator, tmp_path: Path
) -> None:
    orchestrator.error = GenerationError("Vault path is not a directory")
    response = client.post("/generate", json={"vault": str(tmp_path / "missing")})
    assert response.status_code == 400
    assert "not a directory" in response.json()["detail"]

    # The run lock is released after a failed run.
    orchestrator.error = None
    assert client.post("/generate", json={"vault": str(tmp_path)}).status_code == 200


def test_concurrent_run_rejected(orchestrator: _StubOrchestrator, tmp_path: Path) -> None:
    orchestrator.release = threading.Event()
    app = create_app(lambda: orchestrator)
    results: dict[str, int] = {}

    with TestClient(app) as first_client, TestClient(app) as second_client:

        def _first() -> None:
            results["first"] = first_client.post("/generate", json={"vault": str(tmp_path)}).status_code

        worker = threading.Thread(target=_first)
        worker.start()
        assert orchestrator.started.wait(timeout=5)

        assert second_client.get("/health").json()["running"] is True
        second = second_client.post("/generate", json={"vault": str(tmp_path)})
        assert second.status_code == 409

        orchestrator.release.set()
        worker.join(timeout=5)

    assert results["first"] == 200


def _endpoint(app, path: str):
    return next(route.endpoint for route in app.routes if getattr(route, "path", None) == path)


def test_cancelled_request_keeps_lock_until_run_finishes(
    orchestrator: _StubOrchestrator, tmp_path: Path
) -> None:
    orchestrator.release = threading.Event()
    app = create_app(lambda: orchestrator)
    generate = _endpoint(app, "/generate")
    health = _endpoint(app, "/health")

    async def scenario() -> None:
        task = asyncio.create_task(
            generate(GenerateRequest(vault=str(tmp_path)), orchestrator=orchestrator)
        )
        assert await asyncio.to_thread(orchestrator.started.wait, 5)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert (await health()).running is True
        orchestrator.release.set()
        for _ in range(200):
            if not (await health()).running:
                break
            await asyncio.sleep(0.01)
        assert (await health()).running is False

    asyncio.run(scenario())
