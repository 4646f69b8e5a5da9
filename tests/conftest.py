"""Shared fixtures: a fake guideline-compliant backend and client factories."""

from typing import Any, Callable

import httpx
import pytest
from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from compliant_api_client import ClientSettings, CompliantApiClient
from compliant_api_client.wrapper import wrap_response

BASE_URL = "http://testserver/wp-json/fitcopilot/v1"


@pytest.fixture
def anyio_backend():
    return "asyncio"


def build_backend() -> FastAPI:
    """Minimal backend that speaks the envelope contract and records what it received."""
    app = FastAPI()
    app.state.received = []

    router = APIRouter(prefix="/wp-json/fitcopilot/v1")

    @router.post("/generate")
    async def generate(request: Request):
        body = await request.json()
        app.state.received.append({"body": body, "headers": dict(request.headers)})
        workout = body["workout"]
        return wrap_response(
            {
                "id": 1,
                "title": f"{workout['goals'].title()} Session",
                "date": "2024-05-01T10:00:00Z",
                "duration": workout["duration"],
                "difficulty": workout["difficulty"],
            },
            True,
            "Workout generated successfully",
        )

    @router.get("/workouts")
    async def list_workouts(request: Request):
        app.state.received.append({"params": dict(request.query_params), "headers": dict(request.headers)})
        return wrap_response(
            [
                {"id": 1, "title": "Leg Day", "created_at": "2024-05-01", "workout_data": {"total_sets": 12}},
                {"id": 2, "title": "Upper Body", "created_at": "2024-05-02", "workout_data": {"total_sets": 9}},
            ],
            True,
            "Workouts retrieved",
        )

    @router.get("/workouts/{workout_id}")
    async def get_workout(workout_id: int):
        if workout_id == 404:
            return JSONResponse(
                status_code=404,
                content=wrap_response(None, False, "Workout not found", "not_found"),
            )
        return wrap_response(
            {
                "id": workout_id,
                "title": "Leg Day",
                "date": "2024-05-01T10:00:00Z",
                "duration": 45,
                "difficulty": "advanced",
            },
            True,
            "Workout retrieved",
        )

    @router.delete("/workouts/{workout_id}")
    async def delete_workout(workout_id: int):
        return wrap_response({"deleted": True, "post_id": workout_id}, True, "Workout deleted")

    @router.put("/profile")
    async def update_profile(request: Request):
        body = await request.json()
        app.state.received.append({"body": body, "headers": dict(request.headers)})
        return wrap_response({"id": 7, **body["profile"]}, True, "Profile updated")

    app.include_router(router)
    return app


@pytest.fixture
def backend() -> FastAPI:
    return build_backend()


@pytest.fixture
def test_settings() -> ClientSettings:
    return ClientSettings(base_url=BASE_URL, retries=2, timeout=5.0, credential=None)


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def fake_sleep(sleeps) -> Callable[[float], Any]:
    async def _sleep(delay: float) -> None:
        sleeps.append(delay)

    return _sleep


@pytest.fixture
def make_client(test_settings, fake_sleep) -> Callable[..., CompliantApiClient]:
    """Build a client over either an ASGI app or a MockTransport handler."""

    def factory(
        app: FastAPI | None = None,
        handler: Callable[[httpx.Request], httpx.Response] | None = None,
        **kwargs: Any,
    ) -> CompliantApiClient:
        if app is not None:
            transport = httpx.ASGITransport(app=app)
        else:
            transport = httpx.MockTransport(handler)
        kwargs.setdefault("credential_provider", lambda: "nonce-123")
        return CompliantApiClient(
            kwargs.pop("config", test_settings),
            http_client=httpx.AsyncClient(transport=transport),
            sleep=fake_sleep,
            **kwargs,
        )

    return factory
