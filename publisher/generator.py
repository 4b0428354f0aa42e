# publisher/generator.py
import logging
import os
import random
import time

import requests
from faker import Faker

# Konfigurasi
TARGET_URL = os.getenv("TARGET_URL", "http://localhost:4000/api/events")
API_KEY = os.getenv("API_KEY", "sample-api-key-12345")
EVENT_COUNT = int(os.getenv("EVENT_COUNT", "1000"))  # Jumlah event yg akan dikirim
DELAY = float(os.getenv("DELAY", "0.1"))  # Delay antar request (detik)
RETRY_RATE = float(os.getenv("RETRY_RATE", "0.30"))

logger = logging.getLogger("publisher")
fake = Faker()

# Pool error "asli": setiap template akan muncul berkali-kali, jadi harus
# ter-dedup menjadi satu agregat per template di sisi server.
ERROR_TEMPLATES = [
    ("TypeError", "Cannot read properties of undefined (reading 'id')", "UserProfile.js", "render"),
    ("ReferenceError", "config is not defined", "settings.js", "loadSettings"),
    ("Error", "Failed to fetch", "api.js", "fetchUserData"),
    ("RangeError", "Maximum call stack size exceeded", "tree.js", "walk"),
    ("SyntaxError", "Unexpected token < in JSON at position 0", "http.js", "parseResponse"),
]
ENVIRONMENTS = ["production", "staging", "development"]


def build_stack(error_type, message, filename, frame, line, column):
    return (
        f"{error_type}: {message}\n"
        f"    at {frame} (/app/src/{filename}:{line}:{column})\n"
        f"    at processTicksAndRejections (node:internal/process/task_queues:95:5)"
    )


def generate_report():
    """Membuat payload error report dari salah satu template"""
    error_type, message, filename, frame = random.choice(ERROR_TEMPLATES)
    line = (len(filename) * 7) % 200 + 1  # posisi tetap per template
    column = len(frame) + 3
    return {
        "title": f"{error_type}: {message}",
        "message": message,
        "stack": build_stack(error_type, message, filename, frame, line, column),
        "release": f"1.0.{fake.random_int(min=0, max=9)}",
        "environment": random.choice(ENVIRONMENTS),
        "url": fake.url(),
        "userAgent": fake.user_agent(),
        "metadata": {
            "userId": fake.random_int(min=1, max=1000),
            "ip": fake.ipv4(),
        },
    }


def send_report(report, is_retry=False):
    """Mengirim error report ke API via HTTP POST"""
    try:
        response = requests.post(
            TARGET_URL, json=report, headers={"X-API-Key": API_KEY}, timeout=5
        )
    except requests.RequestException as e:
        logger.error("[ERROR] Failed to send %s: %s", report["title"], e)
        return None

    tag = "[DUPLICATE/RETRY]" if is_retry else "[SENT]"
    if response.status_code == 202:
        body = response.json()
        logger.info("%s %s | fingerprint=%s count=%s", tag, report["title"], body["fingerprint"], body["count"])
    else:
        logger.warning("%s %s | Status: %s", tag, report["title"], response.status_code)
    return response


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    logger.info("Starting Publisher... Target: %s", TARGET_URL)

    for _ in range(EVENT_COUNT):
        report = generate_report()
        send_report(report)

        # SIMULASI DUPLIKASI: 'network glitch' sehingga report dikirim ulang
        if random.random() < RETRY_RATE:
            time.sleep(0.05)
            send_report(report, is_retry=True)

        time.sleep(DELAY)

    logger.info("Publisher finished generating %d reports.", EVENT_COUNT)


if __name__ == "__main__":
    main()
