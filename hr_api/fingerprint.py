# hr_api/fingerprint.py
"""
Fingerprint untuk deduplikasi error.

Error yang "sama" (stack, message, file dan posisi call-site yang sama)
harus menghasilkan fingerprint yang sama di setiap kemunculannya.
Fungsi di sini murni: tanpa I/O, tanpa random, tanpa jam.
"""
import hashlib
import re

FINGERPRINT_LENGTH = 16

# Pola lokasi frame: "at <frame> (<path>:<line>:<column>)"
_LOCATION = re.compile(r"at\s+.*?\(([^:]+):(\d+):(\d+)\)")


def call_site(stack: str):
    """
    Mengambil (basename, line, column) dari baris kedua stack trace.
    Baris pertama biasanya hanya mengulang tipe/pesan error, jadi dilewati.
    """
    lines = (stack or "").split("\n")
    site_line = lines[1] if len(lines) > 1 else ""

    match = _LOCATION.search(site_line)
    if not match:
        return "", "", ""

    path, line, column = match.groups()
    # Hanya nama file; path direktori tidak ikut identitas
    basename = path.split("/")[-1]
    return basename, line, column


def canonical_string(message: str, stack: str = "") -> str:
    stack = stack or ""
    basename, line, column = call_site(stack)
    return f"{stack}|{message}|{basename}|{line}:{column}"


def fingerprint(title: str, message: str, stack: str = "") -> str:
    """
    Fingerprint 16 karakter hex. `title` sengaja tidak dipakai: error tanpa
    stack dengan message yang sama akan digabung menjadi satu agregat.
    """
    data = canonical_string(message, stack)
    return hashlib.md5(data.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]
