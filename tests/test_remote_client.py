"""
Tests for the shared-data HTTP client, using a stub requests session.
"""

import pytest
import requests

from cinco_billing.core.exceptions import SyncError
from cinco_billing.models.billing import SharedData, Site
from cinco_billing.services.sync.remote import SharedDataClient

URL = "http://shared.test/api/shared-data"


class StubResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self._text = text

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if self._text is not None:
            raise ValueError("Expecting value")
        return self._payload


class StubSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []
        self.closed = False

    def _respond(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    def get(self, url, **kwargs):
        return self._respond("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._respond("POST", url, **kwargs)

    def close(self):
        self.closed = True


def make_client(**session_kwargs):
    session = StubSession(**session_kwargs)
    return SharedDataClient(url=URL, timeout=2, session=session), session


class TestFetch:

    def test_parses_camel_case_snapshot(self):
        payload = {
            "sites": [{"id": "s1", "name": "Laguna", "address": "", "totalUnits": 6}],
            "tenants": [{"id": "t1", "name": "Juan", "siteId": "s1", "doorNumber": "A-1",
                         "baseRent": 15000, "status": "active"}],
            "billingRecords": [],
            "lastUpdated": "2025-03-01T08:00:00.000Z",
        }
        client, session = make_client(response=StubResponse(payload=payload))

        data = client.fetch()

        assert data.sites[0].total_units == 6
        assert data.tenants[0].site_id == "s1"
        assert data.last_updated == "2025-03-01T08:00:00.000Z"
        assert session.calls == [("GET", URL, {"timeout": 2})]

    def test_missing_collections_default_to_empty(self):
        client, _ = make_client(response=StubResponse(payload={}))
        data = client.fetch()
        assert data.sites == [] and data.tenants == [] and data.billing_records == []

    def test_accepts_tenant_with_negative_rent(self):
        payload = {
            "sites": [{"id": "remote-site", "name": "Pidanna"}],
            "tenants": [{"id": "t1", "siteId": "remote-site", "baseRent": -1}],
        }
        client, _ = make_client(response=StubResponse(payload=payload))
        data = client.fetch()
        assert [s.id for s in data.sites] == ["remote-site"]
        assert data.tenants[0].base_rent == -1

    def test_connection_error_raises_sync_error(self):
        client, _ = make_client(error=requests.ConnectionError("refused"))
        with pytest.raises(SyncError):
            client.fetch()

    def test_non_2xx_raises_sync_error(self):
        client, _ = make_client(response=StubResponse(status_code=503))
        with pytest.raises(SyncError):
            client.fetch()

    def test_invalid_json_raises_sync_error(self):
        client, _ = make_client(response=StubResponse(text="<html>"))
        with pytest.raises(SyncError):
            client.fetch()

    def test_malformed_payload_raises_sync_error(self):
        client, _ = make_client(response=StubResponse(payload={"sites": "not a list"}))
        with pytest.raises(SyncError, match="Malformed"):
            client.fetch()


class TestPush:

    def test_posts_camel_case_body(self):
        client, session = make_client(response=StubResponse())
        client.push(SharedData(sites=[Site(id="s1", name="Laguna", total_units=6)]))

        method, url, kwargs = session.calls[0]
        assert (method, url) == ("POST", URL)
        assert kwargs["json"]["sites"] == [{"id": "s1", "name": "Laguna", "address": "", "totalUnits": 6}]
        assert "billingRecords" in kwargs["json"]
        assert "lastUpdated" in kwargs["json"]

    def test_rejected_push_raises_sync_error(self):
        client, _ = make_client(response=StubResponse(status_code=500))
        with pytest.raises(SyncError):
            client.push(SharedData())

    def test_timeout_raises_sync_error(self):
        client, _ = make_client(error=requests.Timeout("slow"))
        with pytest.raises(SyncError):
            client.push(SharedData())


def test_close_releases_session():
    client, session = make_client(response=StubResponse())
    client.close()
    assert session.closed
