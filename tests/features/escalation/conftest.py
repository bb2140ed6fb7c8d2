"""BDD step definitions for escalation and sink isolation features."""

import io
from collections.abc import Generator
from dataclasses import dataclass, field

import pytest
from pytest_bdd import given, parsers, then, when
from tests.support import FailingSink, RecordingAlerts, RecordingReporter

from logfanout.adapters.sinks.console import ConsoleSink
from logfanout.adapters.sinks.crash import CrashSink
from logfanout.adapters.sinks.memory import InMemorySink
from logfanout.core.config import EngineConfig
from logfanout.core.levels import LogLevel
from logfanout.core.ports import SinkPort
from logfanout.engine import Engine


@dataclass
class EscalationScenarioContext:
    """State shared between the steps of one scenario."""

    console: io.StringIO = field(default_factory=io.StringIO)
    sinks: dict[str, SinkPort] = field(default_factory=dict)
    reporter: RecordingReporter = field(default_factory=RecordingReporter)
    alerts: RecordingAlerts = field(default_factory=RecordingAlerts)
    engine: Engine | None = None

    def start(self, config: EngineConfig) -> Engine:
        factories = [lambda _c: ConsoleSink(self.console, colorize=False)]
        factories += [lambda _c, sink=sink: sink for sink in self.sinks.values()]
        self.engine = Engine(config, sink_factories=factories, alert_hooks=[self.alerts])
        self.engine.initialize()
        return self.engine


@pytest.fixture
def ctx() -> Generator[EscalationScenarioContext]:
    """Fresh scenario context; the engine is disposed afterwards."""
    context = EscalationScenarioContext()
    yield context
    if context.engine is not None:
        context.engine.dispose()


# --- Given ---


@given("an engine with a durable sink and a crash reporter")
def given_durable_and_crash(ctx: EscalationScenarioContext) -> None:
    ctx.sinks["durable"] = InMemorySink(name="durable", durable=True)
    ctx.sinks["crash"] = CrashSink(ctx.reporter)
    ctx.start(EngineConfig.development(stats_interval_seconds=0))


@given(parsers.parse("a {mode} engine with an alert hook"))
def given_engine_in_mode(ctx: EscalationScenarioContext, mode: str) -> None:
    ctx.start(EngineConfig(build_mode=mode, stats_interval_seconds=0))


@given(parsers.parse('an engine with sinks "{first}", "{second}" and "{third}"'))
def given_three_sinks(ctx: EscalationScenarioContext, first: str, second: str, third: str) -> None:
    for name in (first, second, third):
        if name == "broken":
            ctx.sinks[name] = FailingSink(name=name, fail_on=())
        else:
            ctx.sinks[name] = InMemorySink(name=name)
    ctx.start(EngineConfig.development(stats_interval_seconds=0))


@given(parsers.parse('the "{name}" sink fails on write'))
def given_sink_fails(ctx: EscalationScenarioContext, name: str) -> None:
    sink = ctx.sinks[name]
    assert isinstance(sink, FailingSink)
    sink.fail_on = ("write",)


@given(parsers.parse("the minimum level is {level}"))
def given_minimum_level(ctx: EscalationScenarioContext, level: str) -> None:
    assert ctx.engine is not None
    ctx.engine.set_minimum_level(level)


# --- When ---


@when(parsers.re(r'an? (?P<level>[A-Z]+) "(?P<message>[^"]+)" is logged'))
def when_logged(ctx: EscalationScenarioContext, level: str, message: str) -> None:
    assert ctx.engine is not None
    ctx.engine.log(LogLevel.parse(level), message, tag="SCENARIO")


# --- Then ---


@then(parsers.re(r"the durable sink has been flushed (?P<count>\d+) times?"))
def then_durable_flushed(ctx: EscalationScenarioContext, count: str) -> None:
    sink = ctx.sinks["durable"]
    assert isinstance(sink, InMemorySink)
    assert sink.flush_count == int(count)


@then(parsers.parse('the crash reporter received the breadcrumb "{breadcrumb}"'))
def then_breadcrumb(ctx: EscalationScenarioContext, breadcrumb: str) -> None:
    assert ctx.reporter.messages == [breadcrumb]


@then("the crash reporter received no breadcrumbs")
def then_no_breadcrumbs(ctx: EscalationScenarioContext) -> None:
    assert ctx.reporter.messages == []


@then(parsers.parse("{count:d} fatal alerts are raised"))
def then_fatal_alerts(ctx: EscalationScenarioContext, count: int) -> None:
    assert [kind for kind, _ in ctx.alerts.calls].count("fatal") == count


@then(parsers.re(r'the "(?P<name>[^"]+)" sink received (?P<count>\d+) entr(y|ies)'))
def then_sink_received(ctx: EscalationScenarioContext, name: str, count: str) -> None:
    sink = ctx.sinks[name]
    assert isinstance(sink, InMemorySink)
    assert len(sink.entries) == int(count)


@then(parsers.parse('the console shows a notice about "{name}"'))
def then_console_notice(ctx: EscalationScenarioContext, name: str) -> None:
    assert f"[logfanout] Sink '{name}' write failed" in ctx.console.getvalue()


@then(parsers.re(r"the stats count (?P<count>\d+) (?P<level>[A-Z]+) entr(y|ies)"))
def then_stats_count(ctx: EscalationScenarioContext, count: str, level: str) -> None:
    assert ctx.engine is not None
    assert ctx.engine.stats.snapshot().get(level, 0) == int(count)
