"""Tests for the HTTP API."""

from collections.abc import Generator
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from listpro.api.deps import get_listing_pipeline
from listpro.services.content_generator import ContentGenerator
from listpro.services.frame_analysis import FrameAnalysisService
from listpro.services.fusion import FusionService
from listpro.services.listing_assembler import ListingAssembler
from listpro.services.pipeline import ListingPipeline
from listpro.services.transcription import TranscriptionService


@pytest.fixture
def stub_pipeline(stub_llm, fake_sampler, memory_store, stub_transcription) -> ListingPipeline:
    return ListingPipeline(
        sampler=fake_sampler,
        transcription=TranscriptionService(provider=stub_transcription),
        frame_analysis=FrameAnalysisService(llm_provider=stub_llm),
        fusion=FusionService(llm_provider=stub_llm),
        content_generator=ContentGenerator(llm_provider=stub_llm),
        assembler=ListingAssembler(store=memory_store),
    )


@pytest.fixture
def client(
    test_client: TestClient, stub_pipeline: ListingPipeline
) -> Generator[TestClient, None, None]:
    from listpro.main import app

    app.dependency_overrides[get_listing_pipeline] = lambda: stub_pipeline
    yield test_client
    app.dependency_overrides.clear()


class TestHealthEndpoints:
    """Test the health endpoints."""

    def test_health_endpoint(self, test_client: TestClient) -> None:
        response = test_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["components"] == {"llm": False, "transcription": False}

    def test_liveness_endpoint(self, test_client: TestClient) -> None:
        response = test_client.get("/health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "alive"

    def test_readiness_with_in_process_backends(self, test_client: TestClient) -> None:
        response = test_client.get("/health/ready")

        assert response.status_code == 200
        assert response.json() == {"ready": True, "store": True, "broker": True}

    def test_root_endpoint(self, test_client: TestClient) -> None:
        response = test_client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "ListPro"
        assert "version" in data


class TestListingEndpoints:
    """Test the listing endpoints."""

    def test_process_video(self, client: TestClient, memory_store) -> None:
        response = client.post(
            "/api/v1/listings/process",
            json={"video_url": "bag.mp4", "owner_id": "user-1", "platforms": ["ebay"]},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["platformContent"]["ebay"]["platform"] == "ebay"
        assert len(memory_store.listings) == 1

    def test_process_video_validation(self, client: TestClient) -> None:
        response = client.post("/api/v1/listings/process", json={"video_url": "bag.mp4"})

        assert response.status_code == 422

    def test_fusion_failure_maps_to_422(
        self, client: TestClient, stub_pipeline: ListingPipeline, fusion_payload
    ) -> None:
        import json

        del fusion_payload["sellingPoints"]
        stub_pipeline.fusion.llm.fusion_content = json.dumps(fusion_payload)

        response = client.post(
            "/api/v1/listings/process",
            json={"video_url": "bag.mp4", "owner_id": "user-1"},
        )

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["stage"] == "fusion"
        assert detail["error_type"] == "FusionParseError"

    def test_frame_failure_maps_to_502(
        self, client: TestClient, stub_pipeline: ListingPipeline
    ) -> None:
        stub_pipeline.frame_analysis.llm.fail_frames = (0, 1, 2, 3, 4)

        response = client.post(
            "/api/v1/listings/process",
            json={"video_url": "bag.mp4", "owner_id": "user-1"},
        )

        assert response.status_code == 502
        assert response.json()["detail"]["stage"] == "frame_analysis"

    def test_process_video_async(self, client: TestClient, monkeypatch) -> None:
        from listpro.api.routes import listings

        calls = []

        def fake_delay(**kwargs):
            calls.append(kwargs)
            return SimpleNamespace(id="task-123")

        monkeypatch.setattr(
            listings, "process_video_listing_task", SimpleNamespace(delay=fake_delay)
        )

        response = client.post(
            "/api/v1/listings/process/async",
            json={"video_url": "https://cdn.example.com/bag.mp4", "owner_id": "user-1"},
        )

        assert response.status_code == 202
        assert response.json()["task_id"] == "task-123"
        assert calls == [
            {
                "video_url": "https://cdn.example.com/bag.mp4",
                "owner_id": "user-1",
                "platforms": None,
            }
        ]

    @pytest.mark.parametrize(
        ("state", "result", "expected"),
        [
            ("PENDING", None, "pending"),
            ("STARTED", None, "running"),
            ("SUCCESS", {"success": True, "listingId": "abc"}, "completed"),
            ("SUCCESS", {"success": False, "error": "boom", "stage": "fusion"}, "failed"),
            ("RETRY", None, "retry"),
        ],
    )
    def test_job_status(self, client: TestClient, monkeypatch, state, result, expected) -> None:
        from listpro.api.routes import listings

        monkeypatch.setattr(
            listings,
            "AsyncResult",
            lambda task_id, app: SimpleNamespace(state=state, result=result),
        )

        response = client.get("/api/v1/listings/jobs/task-123")

        assert response.status_code == 200
        assert response.json()["status"] == expected

    def test_list_platforms(self, client: TestClient) -> None:
        response = client.get("/api/v1/platforms")

        assert response.status_code == 200
        platforms = {p["platform"]: p for p in response.json()}
        assert set(platforms) == {"ebay", "etsy", "poshmark", "instagram", "facebook", "mercari"}
        assert platforms["ebay"]["title_limit"] == 80
        assert platforms["instagram"]["title_limit"] is None
        assert platforms["mercari"]["default"] is False
