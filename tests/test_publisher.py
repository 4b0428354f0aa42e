# tests/test_publisher.py
from unittest.mock import MagicMock, patch

import requests

from hr_api.fingerprint import call_site, fingerprint
from hr_api.schemas import EventCreate
from publisher import generator


def test_generate_report_is_valid_event():
    """Payload generator harus lolos validasi schema ingest"""
    report = EventCreate.model_validate(generator.generate_report())
    assert report.title.endswith(report.message)
    assert report.environment in generator.ENVIRONMENTS
    assert call_site(report.stack)[0].endswith(".js")


def test_templates_dedup_to_one_fingerprint_each():
    """Metadata acak berbeda, tapi fingerprint hanya bergantung pada template"""
    fingerprints = set()
    for _ in range(200):
        report = generator.generate_report()
        fingerprints.add(fingerprint(report["title"], report["message"], report["stack"]))
    assert len(fingerprints) <= len(generator.ERROR_TEMPLATES)


def test_send_report_uses_api_key():
    response = MagicMock(status_code=202)
    response.json.return_value = {"fingerprint": "abc", "count": 1}
    with patch.object(generator.requests, "post", return_value=response) as post:
        assert generator.send_report(generator.generate_report()) is response

    _, kwargs = post.call_args
    assert kwargs["headers"] == {"X-API-Key": generator.API_KEY}
    assert kwargs["timeout"] == 5


def test_send_report_swallows_network_errors():
    with patch.object(generator.requests, "post", side_effect=requests.ConnectionError("down")):
        assert generator.send_report(generator.generate_report()) is None
