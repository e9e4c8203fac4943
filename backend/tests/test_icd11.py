import httpx
import pytest

from healthsync.exceptions import UpstreamError, UpstreamTimeout
from healthsync.services import icd11_service
from healthsync.services.icd11_service import Icd11Client

API_URL = "https://icd11.test/search"


def client_for(handler) -> Icd11Client:
    return Icd11Client(API_URL, timeout=1.0, transport=httpx.MockTransport(handler))


class TestIcd11Client:
    async def test_forwards_terms_and_returns_upstream_body(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=[2, ["BA00", "BA01"], None, [["BA00", "Hypertension"]]])

        body = await client_for(handler).search("hypert", 5)

        assert seen["params"] == {"terms": "hypert", "maxList": "5"}
        assert body[1] == ["BA00", "BA01"]

    async def test_upstream_error_status(self):
        client = client_for(lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(UpstreamError) as excinfo:
            await client.search("x")
        assert excinfo.value.status_code == 502

    async def test_timeout_maps_to_504(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(UpstreamTimeout) as excinfo:
            await client_for(handler).search("x")
        assert excinfo.value.status_code == 504

    async def test_connection_error_maps_to_502(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(UpstreamError) as excinfo:
            await client_for(handler).search("x")
        assert excinfo.value.status_code == 502

    def test_explicit_arguments_skip_settings(self, monkeypatch):
        def no_settings():
            raise AssertionError("settings should not be loaded")

        monkeypatch.setattr(icd11_service, "get_settings", no_settings)
        client = Icd11Client(API_URL, 2.5)
        assert (client.api_url, client.timeout) == (API_URL, 2.5)

    def test_zero_timeout_is_kept(self):
        assert Icd11Client(API_URL, 0).timeout == 0


class TestIcd11Endpoint:
    def test_search_proxies_upstream(self, client):
        client.app.state.icd11_client = client_for(
            lambda request: httpx.Response(200, json=[1, ["BA00"], None, [["BA00", "Essential hypertension"]]])
        )
        response = client.get("/api/icd11/search", params={"terms": "hypertension", "maxList": 5})
        assert response.status_code == 200
        assert response.json()[1] == ["BA00"]

    def test_upstream_failure_is_502(self, client):
        client.app.state.icd11_client = client_for(lambda request: httpx.Response(503))
        response = client.get("/api/icd11/search", params={"terms": "x"})
        assert response.status_code == 502
        assert response.json()["error"] == "icd11 proxy failed"
