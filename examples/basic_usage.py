"""Minimal engine setup writing to the console and a local NDJSON file.

Run with:
    python examples/basic_usage.py

Output:
    Readable lines on stdout, and one JSON object per line in
    ./logs/logfanout.ndjson once the engine is flushed.
"""

import time
from pathlib import Path

from logfanout import Engine, EngineConfig

config = EngineConfig.development(
    app_version="1.4.0",
    log_dir=Path("logs"),
    stats_interval_seconds=0,
)

with Engine(config) as engine:
    engine.context_builder.register("current_screen", lambda: "checkout")
    engine.set_user_id("user-123")

    engine.info("Server started", tag="BOOT", data={"port": 8080})
    engine.user_action("tap_buy", details={"sku": "A1"})

    with engine.timed("load_cart") as op:
        time.sleep(0.05)
        op.metrics["items"] = 3

    engine.network_event("GET", "https://api.example.com/cart", 404, 0.12)
    engine.security_event("login_failed", "high", {"attempts": 2})

    try:
        {}["missing"]
    except KeyError as exc:
        engine.error("Cart lookup failed", tag="CART", error=exc)

    engine.report_stats()
