# tests/test_fingerprint.py
import hashlib

import pytest

from hr_api.fingerprint import call_site, canonical_string, fingerprint

STACK = "TypeError: x\n at foo (/app/src/bar.js:10:5)"


def test_example_report():
    """Contoh lengkap: call-site, canonical string, dan hash 16 hex"""
    assert call_site(STACK) == ("bar.js", "10", "5")
    assert canonical_string("x is not a function", STACK) == f"{STACK}|x is not a function|bar.js|10:5"

    fp = fingerprint("TypeError: x", "x is not a function", STACK)
    expected = hashlib.md5(f"{STACK}|x is not a function|bar.js|10:5".encode()).hexdigest()[:16]
    assert fp == expected
    assert len(fp) == 16
    assert fp == fp.lower()


def test_deterministic():
    first = fingerprint("TypeError: x", "x is not a function", STACK)
    for _ in range(5):
        assert fingerprint("TypeError: x", "x is not a function", STACK) == first


def test_first_stack_line_is_skipped():
    a = "TypeError: x\n    at foo (/app/src/bar.js:10:5)"
    b = "Error: something else\n    at foo (/app/src/bar.js:10:5)"
    assert call_site(a) == call_site(b) == ("bar.js", "10", "5")


def test_basename_ignores_directories():
    assert call_site("E\n at foo (/home/ci/build/src/bar.js:10:5)") == ("bar.js", "10", "5")
    assert call_site("E\n at foo (/app/bar.js:10:5)") == ("bar.js", "10", "5")


def test_full_stack_text_participates():
    """Call-site sama tapi rantai pemanggil berbeda -> fingerprint berbeda"""
    a = STACK + "\n at main (/app/src/main.js:1:1)"
    b = STACK + "\n at other (/app/src/other.js:2:2)"
    assert fingerprint("t", "m", a) != fingerprint("t", "m", b)


def test_stackless_errors_collapse_by_message():
    a = fingerprint("TypeError: one", "boom", "")
    b = fingerprint("Completely different title", "boom", None)
    assert a == b
    assert a == hashlib.md5("|boom||:".encode()).hexdigest()[:16]
    assert fingerprint("t", "other message", "") != a


@pytest.mark.parametrize("stack", [
    "",
    "only one line",
    "Error\n    at UserProfile.js:45:12",  # tanpa tanda kurung
    "Error\n    at foo (bar.js:abc:5)",
    "Error\n",
])
def test_unmatched_call_site_is_empty(stack):
    assert call_site(stack) == ("", "", "")
    assert len(fingerprint("t", "m", stack)) == 16


def test_message_changes_fingerprint():
    assert fingerprint("t", "a", STACK) != fingerprint("t", "b", STACK)
