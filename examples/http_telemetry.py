"""Forward entries to an HTTP telemetry endpoint and bridge stdlib logging.

Run with:
    python examples/http_telemetry.py

The endpoint is simulated with httpx.MockTransport so the example runs
without a network. Replace ``client`` with None and point ``url`` at a real
collector to ship NDJSON batches for real.
"""

import logging

import httpx

from logfanout import (
    Engine,
    EngineConfig,
    HttpTelemetryTransport,
    LogFanoutHandler,
)


def collector(request: httpx.Request) -> httpx.Response:
    lines = request.content.decode().splitlines()
    print(f"collector received {len(lines)} entries")
    return httpx.Response(202)


transport = HttpTelemetryTransport(
    "https://telemetry.example.com/ingest",
    headers={"authorization": "Bearer example-token"},
    client=httpx.Client(transport=httpx.MockTransport(collector)),
)

config = EngineConfig.release(
    remote_transport=transport,
    remote_flush_interval_seconds=0.5,
    stats_interval_seconds=0,
)


def page_on_call(kind: str, payload: object) -> None:
    print(f"ALERT ({kind}): {payload}")


engine = Engine(config, alert_hooks=[page_on_call])
engine.initialize()

# Route records from libraries using the logging module into the engine.
logging.basicConfig(level=logging.INFO, handlers=[LogFanoutHandler(engine)])
log = logging.getLogger("billing")

log.info("Invoice generated", extra={"invoice_id": "inv-42"})
engine.debug("not forwarded: below the release minimum level")
engine.security_event("token_reuse", "critical", {"token_id": "t-9"})

engine.flush()
engine.dispose()
