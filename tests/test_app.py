import base64

import pytest
from fastapi.testclient import TestClient

from recolor.app import app, get_recolor_service
from recolor.gemini_service import EmptyResponse, NoImageReturned, RecolorService
from tests.fakes import (
    FakeModel,
    empty_response,
    image_part,
    make_image_bytes,
    response_with_parts,
    text_part,
)

RESULT_PNG = make_image_bytes("PNG", color=(10, 200, 10))


@pytest.fixture
def fake_model():
    return FakeModel(response=response_with_parts(text_part("Done"), image_part(RESULT_PNG)))


@pytest.fixture
def client(fake_model):
    app.dependency_overrides[get_recolor_service] = lambda: RecolorService(api_key="test-key", model=fake_model)
    yield TestClient(app)
    app.dependency_overrides.clear()


def _b64(data):
    return base64.b64encode(data).decode("ascii")


class TestPages:
    def test_healthz(self, client):
        assert client.get("/healthz").json() == {"status": "ok"}

    def test_colors(self, client):
        colors = client.get("/api/colors").json()
        assert colors[0] == {"id": "white", "name": "White", "hex": "#FFFFFF", "textColor": "#000000"}
        assert len(colors) == 11

    def test_index_renders_disabled_form(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "Light Brown" in response.text
        assert "Please upload a photo first" in response.text
        assert 'id="submit" type="submit" disabled' in response.text


class TestFormSubmit:
    def test_upload_and_recolor(self, client, fake_model):
        response = client.post(
            "/",
            data={"color_id": "light_brown", "instruction": "only the sleeves"},
            files={"file": ("shirt.jpg", make_image_bytes("JPEG"), "image/jpeg")},
        )
        assert response.status_code == 200
        assert 'download="product-color-light-brown.png"' in response.text
        assert _b64(RESULT_PNG) in response.text
        assert len(fake_model.calls) == 1
        assert fake_model.calls[0]["contents"][0]["mime_type"] == "image/jpeg"

    def test_carried_over_image_is_reused(self, client, fake_model):
        original = make_image_bytes("PNG")
        response = client.post(
            "/",
            data={"image_data": _b64(original), "image_mime": "image/png", "color_id": "custom", "custom_hex": "#112233"},
        )
        assert response.status_code == 200
        assert 'download="product-color-custom.png"' in response.text
        blob, prompt = fake_model.calls[0]["contents"]
        assert blob == {"mime_type": "image/png", "data": original}
        assert "hex color #112233" in prompt

    def test_missing_color_shows_error_without_calling_model(self, client, fake_model):
        response = client.post("/", files={"file": ("shirt.png", make_image_bytes("PNG"), "image/png")})
        assert response.status_code == 400
        assert "Choose a target color" in response.text
        assert fake_model.calls == []

    def test_generation_failure_shows_error_panel(self, client, fake_model):
        fake_model.response = empty_response()
        response = client.post(
            "/",
            data={"color_id": "red"},
            files={"file": ("shirt.png", make_image_bytes("PNG"), "image/png")},
        )
        assert response.status_code == 200
        assert EmptyResponse.default_message in response.text
        assert "Download Photo" not in response.text

    def test_unreadable_result_is_reported_as_no_image(self, client, fake_model):
        fake_model.response = response_with_parts(image_part(b"garbage bytes"))
        response = client.post(
            "/",
            data={"color_id": "red"},
            files={"file": ("shirt.png", make_image_bytes("PNG"), "image/png")},
        )
        assert NoImageReturned.default_message in response.text

    def test_undecodable_inline_data_shows_error_panel(self, client, fake_model):
        fake_model.response = response_with_parts(image_part("abc"))
        response = client.post(
            "/",
            data={"color_id": "red"},
            files={"file": ("shirt.png", make_image_bytes("PNG"), "image/png")},
        )
        assert response.status_code == 200
        assert "not valid base64" in response.text
        assert "Download Photo" not in response.text


class TestApi:
    def _payload(self, **overrides):
        payload = {"image": _b64(make_image_bytes("PNG")), "mimeType": "image/png", "colorId": "blue"}
        payload.update(overrides)
        return payload

    def test_returns_png_attachment(self, client):
        response = client.post("/api/recolor", json=self._payload())
        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.headers["content-disposition"] == 'attachment; filename="product-color-blue.png"'
        assert response.content == RESULT_PNG

    def test_bad_color_is_400(self, client, fake_model):
        response = client.post("/api/recolor", json=self._payload(colorId="custom", customHex="blue"))
        assert response.status_code == 400
        assert fake_model.calls == []

    def test_bad_image_is_400(self, client):
        response = client.post("/api/recolor", json=self._payload(image="???"))
        assert response.status_code == 400

    def test_text_only_response_is_502(self, client, fake_model):
        fake_model.response = response_with_parts(text_part("I refuse."))
        response = client.post("/api/recolor", json=self._payload())
        assert response.status_code == 502
        assert response.json()["detail"] == NoImageReturned.default_message

    def test_missing_credential_is_500(self, client, fake_model):
        app.dependency_overrides[get_recolor_service] = lambda: RecolorService(api_key=None, model=fake_model)
        response = client.post("/api/recolor", json=self._payload())
        assert response.status_code == 500
        assert "GEMINI_API_KEY" in response.json()["detail"]
        assert fake_model.calls == []
