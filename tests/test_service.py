"""
RenderService tests: validate -> session -> pipeline -> release orchestration.

Sessions come from a FakeSessionFactory, so acquire/release pairing is
checked on every exit path without a browser.

Usage:
    pytest tests/test_service.py -v
"""

import asyncio
import logging

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from html2png.render import (
    PNG_MIME_TYPE,
    ErrorKind,
    LaunchError,
    PipelineState,
    RenderService,
    Viewport,
)

from fakes import FAKE_ELEMENT_PNG, FAKE_PNG, FakeElement, FakePage, FakeSessionFactory


def make_service(settings, factory: FakeSessionFactory, pipeline=None) -> RenderService:
    return RenderService(settings=settings, session_factory=factory, pipeline=pipeline)


# ---------------------------------------------------------------------------
# Success
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_raw_render_returns_png(settings):
    factory = FakeSessionFactory()
    result = await make_service(settings, factory).handle_raw_render(b"<p>hello</p>")

    assert result.ok
    assert result.image_bytes == FAKE_PNG
    assert result.mime_type == PNG_MIME_TYPE
    assert result.error is None
    assert factory.release_counts == [1]
    assert factory.viewports == [Viewport(1200, 800, 1.0)]


@pytest.mark.asyncio
async def test_structured_render_passes_viewport_to_session(settings):
    factory = FakeSessionFactory()
    result = await make_service(settings, factory).handle_structured_render(
        {"html": "<p/>", "viewport": {"width": 640, "deviceScaleFactor": 2}},
    )
    assert result.ok
    assert factory.viewports == [Viewport(640, 800, 2.0)]
    assert factory.sessions[0].page.args_of("set_viewport_size") == ({"width": 640, "height": 800},)


@pytest.mark.asyncio
async def test_structured_render_with_selector(settings):
    page = FakePage(elements={"#card": FakeElement()})
    factory = FakeSessionFactory(page=page)
    result = await make_service(settings, factory).handle_structured_render(
        {"html": "<div id='card'></div>", "css": "#card{width:10px}", "selector": "#card"},
    )
    assert result.image_bytes == FAKE_ELEMENT_PNG
    assert factory.release_counts == [1]
    assert factory.sessions[0].state == PipelineState.CAPTURED


# ---------------------------------------------------------------------------
# Validation failures never reach the browser
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
@pytest.mark.parametrize("body", [b"", b"   ", None])
async def test_empty_raw_body_is_client_fault_without_session(body, settings):
    factory = FakeSessionFactory()
    result = await make_service(settings, factory).handle_raw_render(body)

    assert not result.ok
    assert result.image_bytes is None
    assert result.error.kind == ErrorKind.EMPTY_BODY
    assert result.error.client_fault
    assert factory.calls == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("payload, kind", [
    ({"html": "  "}, ErrorKind.MISSING_HTML),
    ({"html": "<p/>", "css": 5}, ErrorKind.INVALID_CSS_TYPE),
    ({"html": "<p/>", "selector": 5}, ErrorKind.INVALID_SELECTOR_TYPE),
    (["<p/>"], ErrorKind.INVALID_JSON),
])
async def test_structured_validation_errors(payload, kind, settings):
    factory = FakeSessionFactory()
    result = await make_service(settings, factory).handle_structured_render(payload)
    assert result.error.kind == kind
    assert result.error.client_fault
    assert factory.calls == 0


# ---------------------------------------------------------------------------
# Pipeline failures: release exactly once, map fault side
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
@pytest.mark.parametrize("fail, kind, client_fault", [
    ({"set_viewport_size": PlaywrightError("x")}, ErrorKind.VIEWPORT_FAILURE, False),
    ({"set_content": PlaywrightTimeoutError("Timeout")}, ErrorKind.LOAD_TIMEOUT, False),
    ({"set_content": PlaywrightError("x")}, ErrorKind.LOAD_FAILURE, False),
    ({"add_style_tag": PlaywrightError("x")}, ErrorKind.STYLE_INJECTION_FAILURE, False),
    ({"screenshot": PlaywrightError("x")}, ErrorKind.CAPTURE_FAILURE, False),
])
async def test_pipeline_failure_releases_session_once(fail, kind, client_fault, settings):
    factory = FakeSessionFactory(page=FakePage(fail=fail))
    result = await make_service(settings, factory).handle_structured_render({"html": "<p/>", "css": "p{}"})

    assert result.error.kind == kind
    assert result.error.client_fault is client_fault
    assert result.image_bytes is None
    assert factory.release_counts == [1]


@pytest.mark.asyncio
async def test_selector_not_found_is_client_fault_and_released(settings):
    factory = FakeSessionFactory()
    result = await make_service(settings, factory).handle_structured_render(
        {"html": "<p/>", "selector": "#nope"},
    )
    assert result.error.kind == ErrorKind.SELECTOR_NOT_FOUND
    assert result.error.client_fault
    assert "#nope" in result.error.message
    assert result.image_bytes is None
    assert factory.release_counts == [1]


@pytest.mark.asyncio
async def test_launch_error_is_server_fault(settings):
    factory = FakeSessionFactory(launch_error=LaunchError("chromium missing"))
    result = await make_service(settings, factory).handle_raw_render(b"<p/>")

    assert result.error.kind == ErrorKind.LAUNCH_ERROR
    assert not result.error.client_fault
    assert factory.sessions == []


@pytest.mark.asyncio
async def test_unexpected_pipeline_fault_is_internal_error(settings):
    class ExplodingPipeline:
        async def run(self, session, request):
            raise KeyError("surprise")

    factory = FakeSessionFactory()
    result = await make_service(settings, factory, ExplodingPipeline()).handle_raw_render(b"<p/>")

    assert result.error.kind == ErrorKind.INTERNAL_ERROR
    assert not result.error.client_fault
    assert factory.release_counts == [1]


@pytest.mark.asyncio
async def test_release_failure_does_not_change_success(settings, caplog):
    factory = FakeSessionFactory(release_error=RuntimeError("zombie process"))
    with caplog.at_level(logging.ERROR):
        result = await make_service(settings, factory).handle_raw_render(b"<p/>")

    assert result.ok
    assert result.image_bytes == FAKE_PNG
    assert factory.release_counts == [1]
    assert "ReleaseError" in caplog.text


@pytest.mark.asyncio
async def test_release_failure_does_not_change_error(settings):
    factory = FakeSessionFactory(
        page=FakePage(fail={"set_content": PlaywrightTimeoutError("Timeout")}),
        release_error=RuntimeError("zombie process"),
    )
    result = await make_service(settings, factory).handle_raw_render(b"<p/>")
    assert result.error.kind == ErrorKind.LOAD_TIMEOUT


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_server_fault_logged_as_error(settings, caplog):
    factory = FakeSessionFactory(page=FakePage(fail={"set_content": PlaywrightError("net::ERR_FAILED")}))
    with caplog.at_level(logging.INFO, logger="html2png"):
        await make_service(settings, factory).handle_raw_render(b"<p/>")

    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert "LoadFailure" in errors[0].getMessage()
    assert "net::ERR_FAILED" in errors[0].getMessage()


@pytest.mark.asyncio
async def test_client_fault_not_logged_as_error(settings, caplog):
    factory = FakeSessionFactory()
    with caplog.at_level(logging.INFO, logger="html2png"):
        await make_service(settings, factory).handle_structured_render({"html": "<p/>", "selector": "#x"})
        await make_service(settings, factory).handle_raw_render(b"")

    assert not [r for r in caplog.records if r.levelno >= logging.WARNING]


# ---------------------------------------------------------------------------
# Concurrency: one session per request, never shared
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_concurrent_requests_get_their_own_sessions(settings):
    factory = FakeSessionFactory()
    service = make_service(settings, factory)

    results = await asyncio.gather(*[
        service.handle_structured_render({"html": f"<p>{i}</p>", "selector": "#none" if i % 2 else None})
        for i in range(6)
    ])

    assert len(factory.sessions) == 6
    assert len({id(s) for s in factory.sessions}) == 6
    assert factory.release_counts == [1] * 6
    assert [r.ok for r in results] == [True, False] * 3
