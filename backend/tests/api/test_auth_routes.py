"""Auth & Store Routes: index, token verification and the store list."""


async def test_index_echoes_url(client):
    res = await client.get("/")
    assert res.status_code == 200
    assert res.text == "http://test/"
    assert res.headers["content-type"].startswith("text/html")
    assert res.headers["cache-control"] == "public, max-age=86400"


async def test_verify_token_accepts_correct_token(client):
    res = await client.post("/api/verifyToken", json={"token": "test-token"})
    assert res.status_code == 200
    assert res.json()["message"] == "AUTH_TOKEN is correct"


async def test_verify_token_rejects_wrong_token(client):
    res = await client.post("/api/verifyToken", json={"token": "guess"})
    assert res.status_code == 401


async def test_verify_token_requires_token_field(client):
    res = await client.post("/api/verifyToken", json={})
    assert res.status_code == 400
    assert "Token Not Found" in res.json()["message"]


async def test_verify_token_is_post_only(client):
    res = await client.get("/api/verifyToken")
    assert res.status_code == 405


async def test_verify_token_fails_when_auth_token_unset(client, settings):
    settings.auth_token = ""
    res = await client.post("/api/verifyToken", json={"token": "anything"})
    assert res.status_code == 401


async def test_store_list_returns_options(client, auth_headers):
    res = await client.get(
        "/api/getKvList", headers={"Authorization": auth_headers["Authorization"]},
    )
    assert res.status_code == 200
    assert res.json()["data"] == [
        {"label": "NOTES", "value": "NOTES"},
        {"label": "FILES", "value": "FILES"},
    ]


async def test_store_list_requires_token(client):
    res = await client.get("/api/getKvList")
    assert res.status_code == 401


async def test_store_list_rejects_when_nothing_configured(client, auth_headers, settings):
    settings.kv_namespaces = {}
    res = await client.get("/api/getKvList", headers=auth_headers)
    assert res.status_code == 400
    assert res.json()["message"] == "No KV namespaces configured"
