"""Unit tests for the backend client against MockTransport handlers."""

from __future__ import annotations

import httpx
import pytest

from postsiva.api.client import BackendClient, create_backend_client
from postsiva.api.errors import ApiError, ErrorKind, ProviderDisabledError, is_thumbnail_only_failure
from postsiva.api.fakes import FakeBackend
from postsiva.api.schemas import AllInOneSaveRequest, PrivacyStatus, Timestamp
from postsiva.config import reset_settings_cache
from postsiva.storage.keys import AUTH_TOKEN


def _client(handler, store=None) -> BackendClient:
    return BackendClient(
        base_url="http://testserver", store=store, transport=httpx.MockTransport(handler)
    )


@pytest.mark.asyncio
async def test_bearer_token_comes_from_store(client, fake_backend, store) -> None:
    store.set(AUTH_TOKEN, "tok-123")
    await client.generate_titles("vid-1")

    call = fake_backend.calls_for("titles.generate")[0]
    assert call.headers["authorization"] == "Bearer tok-123"
    assert call.video_id == "vid-1"


@pytest.mark.asyncio
async def test_no_authorization_header_without_token(client, fake_backend) -> None:
    await client.generate_description("vid-1")
    assert "authorization" not in fake_backend.calls[0].headers


@pytest.mark.asyncio
async def test_upload_video_reports_monotonic_progress(client, fake_backend, video_file) -> None:
    seen: list[int] = []
    response = await client.upload_video(video_file, on_progress=seen.append)

    assert response.id == "vid-1"
    assert seen
    assert seen == sorted(seen)
    assert seen[-1] == 100
    assert fake_backend.calls[0].body["multipart_bytes"] > video_file.stat().st_size


@pytest.mark.asyncio
async def test_numeric_video_id_is_stringified(video_file) -> None:
    client = _client(lambda request: httpx.Response(200, json={"id": 42}))
    response = await client.upload_video(video_file)
    assert response.id == "42"


@pytest.mark.asyncio
async def test_save_payloads(client, fake_backend) -> None:
    await client.save_title("vid-1", "A title")
    await client.save_description("vid-1", "Body")
    await client.save_timestamps("vid-1", [Timestamp(time="00:00", title="Intro")])
    await client.save_thumbnail("vid-1", "https://cdn/x.png")
    await client.set_privacy_status("vid-1", PrivacyStatus.PRIVATE)

    bodies = {c.operation: c.body for c in fake_backend.calls}
    assert bodies["titles.save"] == {"selected_title": "A title"}
    assert bodies["description.save"] == {"description": "Body"}
    assert bodies["timestamps.save"] == {"timestamps": [{"time": "00:00", "title": "Intro"}]}
    assert bodies["thumbnail.save"] == {"thumbnail_url": "https://cdn/x.png"}
    assert bodies["privacy.set"] == {"privacy_status": "private"}


@pytest.mark.asyncio
async def test_playlist_select_sends_json_string(client, fake_backend) -> None:
    response = await client.select_playlist("vid-1", "PL1")

    call = fake_backend.calls_for("playlist.select")[0]
    assert call.body == "PL1"
    assert call.headers["content-type"] == "application/json"
    assert response.playlist_name == "Tutorials"
    assert response.playlist_exists is True


@pytest.mark.asyncio
async def test_publish_sends_empty_body(client, fake_backend) -> None:
    response = await client.publish_to_youtube("vid-1")
    assert response.success is True
    assert response.youtube_video_id == "yt-vid-1"
    assert fake_backend.calls_for("youtube.upload")[0].body is None


@pytest.mark.asyncio
async def test_video_id_is_path_quoted() -> None:
    seen: list[bytes] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.raw_path)
        return httpx.Response(200, json={"success": True})

    await _client(_handler).generate_titles("a/b")
    assert seen == [b"/titles/a%2Fb/generate"]


@pytest.mark.asyncio
async def test_upload_thumbnail_returns_path(client, image_file) -> None:
    response = await client.upload_thumbnail("vid-1", image_file)
    assert response.thumbnail_path == "uploads/thumbnails/vid-1/custom.png"
    assert client.thumbnail_url_for(response.thumbnail_path) == (
        "http://testserver/uploads/thumbnails/vid-1/custom.png"
    )


@pytest.mark.asyncio
async def test_all_in_one_save_omits_empty_optionals(client, fake_backend) -> None:
    request = AllInOneSaveRequest(
        selected_title="T",
        description="D",
        timestamps=[],
        selected_thumbnail_url="",
        privacy_status=PrivacyStatus.PUBLIC,
        playlist_name="  ",
    )
    await client.save_all_in_one("vid-1", request)

    body = fake_backend.calls_for("all_in_one.save")[0].body
    assert body == {"selected_title": "T", "description": "D", "timestamps": [], "privacy_status": "public"}


@pytest.mark.asyncio
async def test_all_in_one_process_accepts_unwrapped_results() -> None:
    payload = {"titles": {"success": True, "generated_titles": ["One"]}}
    client = _client(lambda request: httpx.Response(200, json=payload))

    response = await client.process_all_in_one("vid-1")

    assert response.results.titles.generated_titles == ["One"]
    assert response.results.thumbnails.generated_thumbnails == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "kind"),
    [
        (400, ErrorKind.BAD_REQUEST),
        (401, ErrorKind.AUTH),
        (403, ErrorKind.FORBIDDEN),
        (404, ErrorKind.NOT_FOUND),
        (500, ErrorKind.SERVER),
        (503, ErrorKind.SERVER),
    ],
)
async def test_http_errors_map_to_kinds(client, fake_backend, status, kind) -> None:
    fake_backend.fail("titles.generate", status)

    with pytest.raises(ApiError) as excinfo:
        await client.generate_titles("vid-1")

    err = excinfo.value
    assert err.kind is kind
    assert err.status_code == status
    assert err.operation == "titles.generate"
    assert err.message


@pytest.mark.asyncio
async def test_unmapped_status_keeps_server_message(client, fake_backend) -> None:
    fake_backend.fail("titles.save", 409, {"message": "Title already saved"})
    with pytest.raises(ApiError) as excinfo:
        await client.save_title("vid-1", "T")
    assert excinfo.value.kind is ErrorKind.UNKNOWN
    assert excinfo.value.message == "Title already saved"


@pytest.mark.asyncio
async def test_fastapi_detail_payload_is_unwrapped() -> None:
    detail = {"code": "UPLOAD_005", "message": "thumbnail failed", "details": {"youtube_video_id": "yt1"}}
    client = _client(lambda request: httpx.Response(500, json={"detail": detail}))

    with pytest.raises(ApiError) as excinfo:
        await client.publish_to_youtube("vid-1")

    assert excinfo.value.payload == detail
    assert is_thumbnail_only_failure(excinfo.value)


@pytest.mark.asyncio
async def test_long_error_bodies_are_truncated() -> None:
    client = _client(lambda request: httpx.Response(500, text="x" * 5000))
    with pytest.raises(ApiError) as excinfo:
        await client.generate_titles("vid-1")
    assert len(excinfo.value.detail) < 1300


@pytest.mark.asyncio
async def test_timeout_and_network_errors() -> None:
    def _timeout(request):
        raise httpx.ReadTimeout("slow", request=request)

    def _refused(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ApiError) as excinfo:
        await _client(_timeout).generate_titles("vid-1")
    assert excinfo.value.kind is ErrorKind.TIMEOUT

    with pytest.raises(ApiError) as excinfo:
        await _client(_refused).generate_titles("vid-1")
    assert excinfo.value.kind is ErrorKind.NETWORK


@pytest.mark.asyncio
async def test_invalid_bodies_raise_invalid_response() -> None:
    with pytest.raises(ApiError) as excinfo:
        await _client(lambda request: httpx.Response(200, text="<html>")).generate_titles("v")
    assert excinfo.value.kind is ErrorKind.INVALID_RESPONSE

    with pytest.raises(ApiError) as excinfo:
        await _client(lambda request: httpx.Response(200, json=[1, 2])).generate_titles("v")
    assert excinfo.value.kind is ErrorKind.INVALID_RESPONSE

    with pytest.raises(ApiError) as excinfo:
        await _client(lambda request: httpx.Response(200, json={"youtube_video_id": "x"})).publish_to_youtube("v")
    assert excinfo.value.kind is ErrorKind.INVALID_RESPONSE


def _api_error(payload) -> ApiError:
    return ApiError("x", kind=ErrorKind.SERVER, operation="youtube.upload", payload=payload)


def test_thumbnail_only_failure_detection() -> None:
    details = {"youtube_video_id": "yt1"}
    assert is_thumbnail_only_failure(_api_error({"code": "UPLOAD_005", "details": details}))
    assert is_thumbnail_only_failure(
        _api_error({"details": {**details, "error_type": "thumbnail_upload_failure"}})
    )
    assert is_thumbnail_only_failure(_api_error({"message": "Thumbnail rejected", "details": details}))

    assert not is_thumbnail_only_failure(_api_error({"code": "UPLOAD_005"}))
    assert not is_thumbnail_only_failure(_api_error({"message": "quota exceeded", "details": details}))
    assert not is_thumbnail_only_failure(ValueError("thumbnail"))


def test_create_backend_client_modes(monkeypatch, store) -> None:
    client = create_backend_client(store)
    assert isinstance(client, BackendClient)
    assert isinstance(client._transport, httpx.MockTransport)

    monkeypatch.setenv("BACKEND_PROVIDER", "off")
    reset_settings_cache()
    with pytest.raises(ProviderDisabledError):
        create_backend_client(store)


@pytest.mark.asyncio
async def test_fake_backend_failures_can_be_limited(client, fake_backend) -> None:
    fake_backend.fail("titles.generate", 500, times=1)

    with pytest.raises(ApiError):
        await client.generate_titles("vid-1")
    response = await client.generate_titles("vid-1")

    assert response.generated_titles == FakeBackend().titles
    assert fake_backend.operations() ==["titles.generate", "titles.generate"]
