import json

import pytest
from fastapi.testclient import TestClient

from bagua.algo.config import Settings
from bagua.algo.errors import TransportError
from bagua.fastapi.app import _parse_yaos, create_app

from conftest import ScriptedClient


def _client(*scripts):
    fake = ScriptedClient(*scripts)
    app = create_app(client=fake, settings=Settings(cast_delay=0))
    return TestClient(app), fake


def test_health():
    client, _ = _client()
    with client:
        assert client.get("/").json() == {"status": "ok"}


def test_generate_with_given_lines():
    client, _ = _client()
    with client:
        resp = client.post("/api/generate", json={"yaos": [9, 9, 9, 9, 9, 9]})
    assert resp.status_code == 200
    body = resp.json()
    assert body["primary"]["number"] == 1
    assert body["changed"]["number"] == 2
    assert body["primary"]["changing_lines"] == [0, 1, 2, 3, 4, 5]
    assert body["primary"]["lines"][0]["name"] == "初九"
    assert body["changed"]["changing_lines"] == []


def test_generate_accepts_enum_names():
    client, _ = _client()
    with client:
        resp = client.post("/api/generate", json={"yaos": ["Jeune_Lune"] * 5 + ["8"]})
    assert resp.json()["primary"]["number"] == 2


def test_generate_random():
    client, _ = _client()
    with client:
        body = client.post("/api/generate", json={}).json()
    assert 1 <= body["primary"]["number"] <= 64
    assert len(body["primary"]["lines"]) == 6


@pytest.mark.parametrize("yaos", [[5, 7, 7, 7, 7, 7], [7, 7, 7], ["bogus"] * 6])
def test_generate_rejects_bad_lines(yaos):
    client, _ = _client()
    with client:
        resp = client.post("/api/generate", json={"yaos": yaos})
    assert resp.status_code == 400


def test_parse_yaos_passes_none_through():
    assert _parse_yaos(None) is None


def test_stream_sends_accumulated_text():
    client, fake = _client({"fragments": ["你", "好"]})
    with client:
        resp = client.post("/api/stream", json={"yaos": [7, 7, 7, 7, 7, 7]})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/event-stream")
    assert 'data: {"text": "你"}' in resp.text
    assert 'data: {"text": "你好"}' in resp.text
    assert resp.text.rstrip().endswith("data: [DONE]")
    assert fake.calls[0][0].number == 1


def test_stream_reports_error_frame():
    client, _ = _client({"error": TransportError(503, "busy")})
    with client:
        resp = client.post("/api/stream", json={"yaos": [8, 8, 8, 8, 8, 8]})
    assert '"error"' in resp.text
    assert "503" in resp.text


def test_cast_toggle_and_reset():
    client, _ = _client({"fragments": ["吉"]})
    with client:
        assert client.get("/api/cast").json()["state"] == "idle"
        cast = client.post("/api/cast").json()
        assert cast["state"] == "resulted"
        assert cast["primary"]["number"] in range(1, 65)
        assert cast["token"] == 1
        toggled = client.post("/api/cast").json()
        assert toggled["state"] == "idle"
        assert toggled["primary"] is None
        reset = client.post("/api/cast/reset").json()
    assert reset["token"] == 3


def test_retry_endpoint():
    client, fake = _client({"error": TransportError(500, "down")}, {"fragments": ["再", "占"]})
    with client:
        assert client.post("/api/cast/retry").status_code == 409
        cast = client.post("/api/cast").json()
        assert cast["text"].startswith("解读失败")
        assert cast["can_retry"] is True
        retried = client.post("/api/cast/retry")
    assert retried.status_code == 200
    assert retried.json()["text"] == "再占"
    assert len(fake.calls) == 2


def _write_dataset(path):
    rows = [{"id": i, "name": f"N{i}", "title": f"T{i}", "guaCi": f"G{i}"} for i in range(1, 65)]
    path.write_text(json.dumps(rows), encoding="utf-8")
    return str(path)


def test_settings_dataset_path_is_used(tmp_path):
    data_path = _write_dataset(tmp_path / "custom.json")
    app = create_app(client=ScriptedClient(), settings=Settings(cast_delay=0, data_path=data_path))
    with TestClient(app) as client:
        generated = client.post("/api/generate", json={"yaos": [7] * 6}).json()
        cast = client.post("/api/cast").json()
    assert generated["primary"]["title"] == "T1"
    assert generated["changed"]["gua_ci"] == "G1"
    assert cast["primary"]["title"].startswith("T")


def test_stream_reports_unexpected_error_frame():
    client, _ = _client({"error": RuntimeError("client bug")})
    with client:
        resp = client.post("/api/stream", json={"yaos": [7] * 6})
    assert '"error": "client bug"' in resp.text
    assert resp.text.rstrip().endswith("data: [DONE]")
