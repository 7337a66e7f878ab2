import pytest

from teachgen.services.errors import InvalidInput
from teachgen.utils.fingerprint import canonical_json, fingerprint


def test_key_order_does_not_change_fingerprint():
    a = {"prompt": "Photosynthesis", "grade": "5", "subject": "Science", "meta": {"x": 1, "y": [1, 2]}}
    b = {"meta": {"y": [1, 2], "x": 1}, "subject": "Science", "grade": "5", "prompt": "Photosynthesis"}
    assert fingerprint(a) == fingerprint(b)
    assert canonical_json(a) == canonical_json(b)


def test_value_change_changes_fingerprint():
    base = {"prompt": "Photosynthesis", "grade": "5"}
    assert fingerprint(base) != fingerprint({"prompt": "Photosynthesis", "grade": "6"})
    # list order is part of the request
    assert fingerprint({"formats": ["multiple", "short"]}) != fingerprint({"formats": ["short", "multiple"]})


def test_fingerprint_is_md5_hex():
    fp = fingerprint({"prompt": "é"})
    assert len(fp) == 32
    assert all(c in "0123456789abcdef" for c in fp)
    assert canonical_json({"prompt": "é"}) == '{"prompt":"é"}'


def test_unserializable_requests_are_invalid_input():
    with pytest.raises(InvalidInput):
        fingerprint(["not", "a", "mapping"])
    with pytest.raises(InvalidInput):
        fingerprint({"score": float("nan")})
    with pytest.raises(InvalidInput):
        fingerprint({"when": object()})
