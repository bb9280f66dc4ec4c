import asyncio
import hashlib

import httpx
import pytest

from ecofinds.utils import media_client as mc
from ecofinds.utils.media_client import (
    AVATAR_PRESET, LISTING_IMAGE_PRESET, CloudinaryClient, MediaHostError,
    api_sign_request, transformation_string,
)


def test_transformation_string_presets():
    assert transformation_string(LISTING_IMAGE_PRESET) == "c_limit,h_800,w_800/q_auto/f_auto"
    assert transformation_string(AVATAR_PRESET) == "c_fill,g_face,h_300,w_300/q_auto/f_auto"
    assert transformation_string(None) == ""
    assert transformation_string({"width": 100, "quality": None}) == "w_100"


def test_sign_request_sorts_params_and_skips_empty():
    params = {"timestamp": 1700000000, "folder": "ecofinds/1", "public_id": None, "overwrite": True}
    expected = hashlib.sha1(b"folder=ecofinds/1&overwrite=true&timestamp=1700000000secret").hexdigest()
    assert api_sign_request(params, "secret") == expected


def test_delivery_url():
    client = CloudinaryClient()
    url = client.url("ecofinds/1/chair", {"width": 200})
    assert url == f"{client.delivery_url}/{client.cloud_name}/image/upload/w_200/ecofinds/1/chair"
    assert client.url("x") == f"{client.delivery_url}/{client.cloud_name}/image/upload/x"


def _patch_transport(monkeypatch, handler):
    real_client = httpx.AsyncClient

    def factory(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(handler)
        return real_client(*args, **kwargs)

    monkeypatch.setattr(mc.httpx, "AsyncClient", factory)


def test_upload_posts_signed_form(monkeypatch):
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = request.content.decode()
        return httpx.Response(200, json={"public_id": "ecofinds/1/abc", "secure_url": "https://x/abc"})

    _patch_transport(monkeypatch, handler)
    client = CloudinaryClient()

    result = asyncio.run(client.upload("data:image/png;base64,AAAA", folder="ecofinds/1",
                                       transformation=LISTING_IMAGE_PRESET))

    assert result["public_id"] == "ecofinds/1/abc"
    assert seen["url"].endswith(f"/{client.cloud_name}/image/upload")
    assert "signature=" in seen["body"]
    assert "api_key=" in seen["body"]


def test_provider_error_message_is_surfaced(monkeypatch):
    def handler(request):
        return httpx.Response(400, json={"error": {"message": "Invalid image file"}})

    _patch_transport(monkeypatch, handler)
    client = CloudinaryClient()

    with pytest.raises(MediaHostError) as exc:
        asyncio.run(client.destroy("ecofinds/1/abc"))
    assert exc.value.message == "Invalid image file"
    assert exc.value.status_code == 400
