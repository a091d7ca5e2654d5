"""Unit tests for the response policy."""

from __future__ import annotations

import json
import logging

import pytest
from fakes import FakeClock, Recorder

from discord_rest.core.errors import TransportAppError
from discord_rest.limiter.descriptor import RequestDescriptor
from discord_rest.limiter.handler import ResponseHandler, is_response_success
from discord_rest.limiter.state import LimiterSnapshot, LimiterState


def _setup(clock: FakeClock, **state_kwargs) -> tuple[LimiterState, ResponseHandler, RequestDescriptor, Recorder]:
    state = LimiterState(**state_kwargs)
    handler = ResponseHandler(state, cooldown_seconds=5.0, clock=clock)
    recorder = Recorder()
    descriptor = RequestDescriptor.build("GET", "https://discord.test/api/users/1", on_complete=recorder)
    return state, handler, descriptor, recorder


@pytest.mark.parametrize(
    ("status", "expected"),
    [(199, False), (200, True), (204, True), (299, True), (300, False), (429, False), (0, False)],
)
def test_is_response_success(status: int, expected: bool) -> None:
    assert is_response_success(status) is expected


class TestSuccessResponses:
    def test_headers_are_authoritative(self, clock: FakeClock) -> None:
        state, handler, descriptor, _ = _setup(clock, remaining=40, reset_epoch=900.0)

        handler.handle(
            descriptor,
            200,
            b"{}",
            {"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "1234.5"},
        )

        assert state.snapshot() == LimiterSnapshot(remaining=0, reset_epoch=1234.5)

    def test_missing_headers_leave_state_untouched(self, clock: FakeClock) -> None:
        state, handler, descriptor, _ = _setup(clock, remaining=7, reset_epoch=1500.0)

        handler.handle(descriptor, 204, b"", {})

        assert state.snapshot() == LimiterSnapshot(remaining=7, reset_epoch=1500.0)

    def test_non_numeric_headers_are_ignored(self, clock: FakeClock) -> None:
        state, handler, descriptor, _ = _setup(clock, remaining=7, reset_epoch=1500.0)

        handler.handle(
            descriptor,
            200,
            b"",
            {"x-ratelimit-remaining": "lots", "x-ratelimit-reset": "nan"},
        )

        assert state.snapshot() == LimiterSnapshot(remaining=7, reset_epoch=1500.0)

    def test_only_remaining_header(self, clock: FakeClock) -> None:
        state, handler, descriptor, _ = _setup(clock, remaining=0, reset_epoch=1500.0)

        handler.handle(descriptor, 200, b"", {"x-ratelimit-remaining": "3"})

        assert state.snapshot() == LimiterSnapshot(remaining=3, reset_epoch=1500.0)


class TestErrorResponses:
    def test_429_without_hint_uses_cooldown(self, clock: FakeClock) -> None:
        state, handler, descriptor, recorder = _setup(clock, remaining=10)

        handler.handle(descriptor, 429, b"", {})

        assert state.snapshot() == LimiterSnapshot(remaining=0, reset_epoch=1005.0)
        assert recorder.calls == [(429, b"", {})]

    def test_429_absolute_reset_header_later_than_retry_after(self, clock: FakeClock) -> None:
        state, handler, descriptor, _ = _setup(clock)

        handler.handle(
            descriptor,
            429,
            b"",
            {"x-ratelimit-reset": "1042", "retry-after": "1"},
        )

        assert state.reset_epoch == 1042.0

    def test_429_takes_latest_of_mixed_hints(self, clock: FakeClock) -> None:
        state, handler, descriptor, _ = _setup(clock)

        handler.handle(
            descriptor,
            429,
            b"",
            {"x-ratelimit-reset": "1001", "retry-after": "30"},
        )

        assert state.reset_epoch == 1030.0

    def test_429_past_reset_header_falls_back_to_cooldown(self, clock: FakeClock) -> None:
        state, handler, descriptor, _ = _setup(clock)

        handler.handle(descriptor, 429, b"", {"x-ratelimit-reset": "990"})

        assert state.snapshot() == LimiterSnapshot(remaining=0, reset_epoch=1005.0)

    def test_429_uses_relative_reset_after(self, clock: FakeClock) -> None:
        state, handler, descriptor, _ = _setup(clock)

        handler.handle(descriptor, 429, b"", {"X-RateLimit-Reset-After": "2.5"})

        assert state.reset_epoch == 1002.5

    def test_429_uses_retry_after_header(self, clock: FakeClock) -> None:
        state, handler, descriptor, _ = _setup(clock)

        handler.handle(descriptor, 429, b"", {"Retry-After": "12"})

        assert state.reset_epoch == 1012.0

    def test_429_uses_json_body_retry_after(self, clock: FakeClock) -> None:
        state, handler, descriptor, _ = _setup(clock)
        body = json.dumps({"message": "You are being rate limited.", "retry_after": 0.75, "global": True})

        handler.handle(descriptor, 429, body.encode(), {})

        assert state.reset_epoch == 1000.75

    def test_429_with_garbage_body_falls_back_to_cooldown(self, clock: FakeClock) -> None:
        state, handler, descriptor, _ = _setup(clock)

        handler.handle(descriptor, 429, b"<html>slow down</html>", {})

        assert state.reset_epoch == 1005.0

    def test_other_errors_do_not_touch_state(self, clock: FakeClock) -> None:
        state, handler, descriptor, recorder = _setup(clock, remaining=4, reset_epoch=1200.0)

        handler.handle(descriptor, 404, b'{"message": "Unknown Channel"}', {"x-ratelimit-remaining": "0"})

        assert state.snapshot() == LimiterSnapshot(remaining=4, reset_epoch=1200.0)
        assert recorder.calls[0][0] == 404

    def test_error_emits_diagnostic_record(self, clock: FakeClock, caplog: pytest.LogCaptureFixture) -> None:
        _, handler, descriptor, _ = _setup(clock)
        caplog.set_level(logging.WARNING, logger="discord_rest.limiter.handler")

        handler.handle(descriptor, 403, b'{"message": "Missing Access"}', {})

        records = [r for r in caplog.records if r.getMessage() == "rest.response_error"]
        assert len(records) == 1
        assert records[0].status == 403
        assert "Missing Access" in records[0].body
        assert records[0].request_id == descriptor.request_id


class TestContinuation:
    def test_invoked_once_with_lowercased_headers(self, clock: FakeClock) -> None:
        _, handler, descriptor, recorder = _setup(clock)

        handler.handle(descriptor, 200, b'{"id": "1"}', {"Content-Type": "application/json"})

        assert recorder.calls == [(200, b'{"id": "1"}', {"content-type": "application/json"})]

    def test_second_handle_does_not_reinvoke(self, clock: FakeClock) -> None:
        _, handler, descriptor, recorder = _setup(clock)

        handler.handle(descriptor, 200, b"", {})
        handler.handle(descriptor, 500, b"", {})

        assert len(recorder.calls) == 1

    def test_callback_exception_is_contained(self, clock: FakeClock, caplog: pytest.LogCaptureFixture) -> None:
        state = LimiterState()
        handler = ResponseHandler(state, clock=clock)

        def broken(status, body, headers):
            raise RuntimeError("boom")

        descriptor = RequestDescriptor.build("GET", "https://discord.test/api/users/1", on_complete=broken)

        handler.handle(descriptor, 200, b"", {"x-ratelimit-remaining": "2"})

        assert state.remaining == 2
        assert descriptor.on_complete.done is True
        assert any(r.getMessage() == "rest.callback_failed" for r in caplog.records)

    def test_transport_failure_resolves_with_status_zero(self, clock: FakeClock) -> None:
        state, handler, descriptor, recorder = _setup(clock, remaining=3, reset_epoch=1100.0)

        handler.handle_transport_failure(
            descriptor,
            TransportAppError(code="transport_failed", message="ConnectError"),
            attempts=3,
        )

        assert recorder.calls == [(0, b"", {})]
        assert state.snapshot() == LimiterSnapshot(remaining=3, reset_epoch=1100.0)
