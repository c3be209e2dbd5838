from evalq.config.settings import settings
from evalq.core.state import JobStatus
from evalq.core.verdict import decide


def test_threshold_boundary():
    assert decide(79.999) is JobStatus.FAILURE
    assert decide(80) is JobStatus.SUCCESS
    assert decide(100) is JobStatus.SUCCESS


def test_no_clamping_and_zero():
    assert decide(0) is JobStatus.FAILURE
    assert decide(150) is JobStatus.SUCCESS
    assert decide(1) is JobStatus.FAILURE


def test_threshold_comes_from_settings(monkeypatch):
    monkeypatch.setattr(settings, "PASS_THRESHOLD", 50.0)
    assert decide(55) is JobStatus.SUCCESS
    assert decide(55, threshold=60) is JobStatus.FAILURE
