"""
tests/test_submissions_route.py -- Integration tests for POST /api/v1/submissions.

Covers:
  - Happy path: report stored, camelCase response with id and createdAt
  - Validation: enums, URL, lengths, missing fields -> 400
  - Gating: origin 403, per-client slowapi limit 429 with Retry-After
  - Store unavailable -> 500 configuration_missing
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from tests.helpers import ORIGIN_HEADERS

_URL = "/api/v1/submissions"


def _report(**overrides) -> dict:
    body = {
        "datasetName": "NaPTAN Data",
        "datasetUrl": "https://beta-naptan.dft.gov.uk/",
        "datasetOwner": "Public Sector",
        "ownerName": "Department for Transport",
        "description": "Bus stop locations are published without the USRN of the street they are on.",
        "missingType": "USRN",
        "sector": "Private Sector",
    }
    body.update(overrides)
    return body


class TestSubmissionHappyPath:
    def test_report_is_stored(self, client: TestClient) -> None:
        store = client.app.state.submissions
        before = store.count()

        resp = client.post(_URL, json=_report(), headers=ORIGIN_HEADERS)

        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["success"] is True
        assert body["message"] == "Report submitted successfully!"
        assert isinstance(body["id"], int)
        assert body["createdAt"]
        assert store.count() == before + 1

    def test_optional_job_title_accepted(self, client: TestClient) -> None:
        resp = client.post(_URL, json=_report(jobTitle="Data Engineer"), headers=ORIGIN_HEADERS)
        assert resp.status_code == 200

    def test_blank_job_title_accepted(self, client: TestClient) -> None:
        resp = client.post(_URL, json=_report(jobTitle="   "), headers=ORIGIN_HEADERS)
        assert resp.status_code == 200


class TestSubmissionValidation:
    def test_unknown_owner_type(self, client: TestClient) -> None:
        resp = client.post(_URL, json=_report(datasetOwner="Government"), headers=ORIGIN_HEADERS)
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "validation_error"

    def test_unknown_missing_type(self, client: TestClient) -> None:
        resp = client.post(_URL, json=_report(missingType="usrn-and-uprn"), headers=ORIGIN_HEADERS)
        assert resp.status_code == 400

    def test_invalid_url(self, client: TestClient) -> None:
        resp = client.post(_URL, json=_report(datasetUrl="not a url"), headers=ORIGIN_HEADERS)
        assert resp.status_code == 400
        assert "datasetUrl" in resp.json()["error"]["detail"]

    @pytest.mark.parametrize("url", ["https://example.com", "ftp://data.example.org/roads.csv"])
    def test_url_stored_as_submitted(self, client: TestClient, url: str) -> None:
        store = client.app.state.submissions
        with patch.object(store, "insert", wraps=store.insert) as mock_insert:
            resp = client.post(_URL, json=_report(datasetUrl=url), headers=ORIGIN_HEADERS)
        assert resp.status_code == 200, resp.text
        assert mock_insert.call_args.args[0].dataset_url == url

    def test_description_too_long(self, client: TestClient) -> None:
        resp = client.post(_URL, json=_report(description="x" * 501), headers=ORIGIN_HEADERS)
        assert resp.status_code == 400

    def test_blank_required_field(self, client: TestClient) -> None:
        resp = client.post(_URL, json=_report(ownerName="   "), headers=ORIGIN_HEADERS)
        assert resp.status_code == 400

    def test_missing_field(self, client: TestClient) -> None:
        body = _report()
        del body["sector"]
        resp = client.post(_URL, json=body, headers=ORIGIN_HEADERS)
        assert resp.status_code == 400

    def test_invalid_report_not_stored(self, client: TestClient) -> None:
        store = client.app.state.submissions
        before = store.count()
        client.post(_URL, json=_report(datasetOwner="nobody"), headers=ORIGIN_HEADERS)
        assert store.count() == before


class TestSubmissionGating:
    def test_disallowed_origin_is_403_and_not_stored(self, client: TestClient) -> None:
        store = client.app.state.submissions
        before = store.count()
        resp = client.post(_URL, json=_report(), headers={"Origin": "https://evil.example"})
        assert resp.status_code == 403
        assert store.count() == before

    def test_per_client_limit(self, client: TestClient) -> None:
        codes = [client.post(_URL, json=_report(), headers=ORIGIN_HEADERS).status_code for _ in range(6)]
        assert codes[:5] == [200] * 5
        assert codes[5] == 429

    def test_per_client_limit_envelope(self, client: TestClient) -> None:
        for _ in range(5):
            client.post(_URL, json=_report(), headers=ORIGIN_HEADERS)
        resp = client.post(_URL, json=_report(), headers=ORIGIN_HEADERS)
        assert resp.status_code == 429
        assert resp.json()["error"]["code"] == "rate_limited"
        assert "Retry-After" in resp.headers

    def test_unconfigured_store_is_500(self, client: TestClient) -> None:
        client.app.state.submissions = None
        resp = client.post(_URL, json=_report(), headers=ORIGIN_HEADERS)
        assert resp.status_code == 500
        assert resp.json()["error"]["code"] == "configuration_missing"
