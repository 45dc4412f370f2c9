import logging
import os
from typing import Any

import pytest
from rich.console import Console
from rich.traceback import Traceback
import structlog

from storyroute.animation.pool import ContinuityPool
from storyroute.animation.scheduler import ManualFrameScheduler
from storyroute.animation.surface import RecordingSurface, SurfaceHandle
from storyroute.logging import configure_logging
from storyroute.route.models import RouteAnimationSpec

PYTEST_LOGGERS = [
    "pytest",
    "_pytest",
    "_pytest.logging",
    "_pytest.capture",
    "_pytest.main",
    "_pytest.runner",
    "_pytest.terminal",
]


def _configure_pytest_loggers() -> None:
    """Route pytest's internal loggers through the structlog handler."""
    structlog_handler = next(
        (
            handler
            for handler in logging.getLogger().handlers
            if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter)
        ),
        None,
    )
    if structlog_handler is None:
        return

    for logger_name in PYTEST_LOGGERS:
        logger = logging.getLogger(logger_name)
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        logger.addHandler(structlog_handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False


def pytest_configure(config: pytest.Config) -> None:
    configure_logging(level="INFO", format_json=False)

    config.option.log_cli = True
    config.option.log_cli_level = "INFO"
    config.option.log_cli_format = "%(message)s"
    config.option.log_cli_date_format = "%Y-%m-%d %H:%M:%S"

    _configure_pytest_loggers()


def pytest_runtest_logreport(report: pytest.TestReport) -> None:
    # Failures are reported by pytest_exception_interact
    if report.when == "call" and report.outcome != "failed":
        structlog.get_logger("pytest").info(
            "Test completed",
            test_name=report.nodeid,
            outcome=report.outcome,
            duration=getattr(report, "duration", None),
        )


def pytest_exception_interact(node: pytest.Item, call: pytest.CallInfo) -> None:  # pyright: ignore[reportMissingTypeArgument]
    """Render failures as Rich tracebacks with locals."""
    if call.excinfo is None:
        return

    structlog.get_logger("pytest").error(
        "Test exception occurred",
        test_name=node.nodeid,
        exception_type=call.excinfo.typename,
        exception_message=str(call.excinfo.value),
    )
    traceback = Traceback.from_exception(
        call.excinfo.type,
        call.excinfo.value,
        call.excinfo.tb,
        show_locals=True,
        max_frames=5,
    )
    Console().print(traceback)


def pytest_runtest_makereport(item: pytest.Item, call: pytest.CallInfo) -> pytest.TestReport:  # pyright: ignore[reportMissingTypeArgument]
    report = pytest.TestReport.from_item_and_call(item, call)

    # Keep pytest's own traceback on CI, where Rich output is hard to read
    is_ci = os.getenv("GITHUB_ACTIONS") == "true"
    if report.outcome == "failed" and call.excinfo is not None and not is_ci:
        report.longrepr = None

    return report


@pytest.fixture
def scheduler() -> ManualFrameScheduler:
    return ManualFrameScheduler()


@pytest.fixture
def surface() -> RecordingSurface:
    return RecordingSurface()


@pytest.fixture
def handle(surface: RecordingSurface) -> SurfaceHandle:
    return SurfaceHandle(surface)


@pytest.fixture
def pool(handle: SurfaceHandle) -> ContinuityPool:
    return ContinuityPool(handle)


@pytest.fixture
def make_spec():
    """Factory for route animation specs along an explicit path."""

    def _make(
        path: list[list[float]] | None = None,
        route_id: str = "route-1",
        duration_ms: float = 1000,
        **overrides: Any,
    ) -> RouteAnimationSpec:
        points = [tuple(point) for point in (path or [[0.0, 0.0], [0.0, 1.0]])]
        return RouteAnimationSpec(
            route_id=route_id,
            origin=points[0],
            destination=points[-1],
            path=tuple(points),
            duration_ms=duration_ms,
            **overrides,
        )

    return _make
