"""
Tests for the handler dispatch state machine.

Tests cover:
- Reporting mask, throw mode and direct rendering in handle_error
- Redirect verdicts (Continue, Handled, RenderWith)
- Response emission order, headers and exit codes
- Shutdown handling of fatal errors
- SilentHandler policy
"""

import json
from unittest.mock import MagicMock

import pytest

from blunder.exceptions import BlunderErrorException, PreconditionError
from blunder.handlers import (
    CliHandler,
    HtmlHandler,
    JsonHandler,
    PlainTextHandler,
    SilentHandler,
    TextHandler,
    XmlHandler,
)
from blunder.handlers.base import HandlerState
from blunder.http import HttpMessaging, Response, Stream
from blunder.metadata import MAX_TRACE_LEVEL, StackFrame
from blunder.pool import SeverityLevelPool
from blunder.redirect import Continue, Handled, RenderWith
from blunder.severity import Severity
from tests.conftest import raised


class TestHandlerState:

    def test_defaults(self):
        state = HandlerState()
        assert state.throw_mode is True
        assert state.exit_code is None
        assert state.event_callback is None
        assert state.severity_mask == Severity.ALL

    @pytest.mark.parametrize("handler_class, expected", [
        (HtmlHandler, True),
        (JsonHandler, True),
        (XmlHandler, True),
        (TextHandler, True),
        (PlainTextHandler, True),
        (CliHandler, False),
        (SilentHandler, False),
    ])
    def test_trace_line_defaults(self, handler_class, expected):
        assert handler_class().state.trace_enabled is expected

    def test_state_is_per_instance(self):
        first, second = JsonHandler(), JsonHandler()
        first.set_exit_code(3)
        assert second.state.exit_code is None

    def test_set_severity_caches_mask(self):
        pool = SeverityLevelPool().exclude([Severity.WARNING])
        handler = JsonHandler().set_severity(pool)
        assert handler.state.severity_mask == pool.mask()


class TestHandleError:

    def test_suppressed_by_reporting_mask(self, make_handler, platform):
        handler = make_handler(TextHandler)
        platform.set_error_reporting(Severity.ERROR)

        assert handler.handle_error(Severity.WARNING, "ignored", "app.py", 1) is False
        assert platform.output == ""
        assert handler.get_exception() is None

    def test_throw_mode_raises_promoted_error(self, make_handler, platform):
        handler = make_handler(TextHandler)

        with pytest.raises(BlunderErrorException) as info:
            handler.handle_error(Severity.WARNING, "Undefined index: id", "app.py", 12)

        exc = info.value
        assert exc.severity == Severity.WARNING
        assert exc.file == "app.py"
        assert exc.line == 12
        assert exc.code == 0
        assert "Uncaught exception 'BlunderErrorException (E_WARNING)'" in exc.pretty_message
        assert handler.get_exception() is exc
        assert platform.output == ""

    def test_direct_render_when_not_throwing(self, make_handler, platform):
        handler = make_handler(PlainTextHandler)
        handler.state.throw_mode = False

        assert handler.handle_error(Severity.NOTICE, "Undefined offset", "app.py", 3) is True
        assert "Undefined offset" in platform.output
        assert "<strong>" not in platform.output

    def test_output_buffers_are_cleaned_before_rendering(self, make_handler, platform):
        handler = make_handler(PlainTextHandler)
        handler.state.throw_mode = False
        platform.ob_start()
        platform.write("half-rendered page")

        handler.handle_error(Severity.WARNING, "careful", "app.py", 3)

        assert platform.ob_get_level() == 0
        assert "half-rendered page" not in platform.output
        assert "careful" in platform.output

    def test_stack_from_context_is_kept(self, make_handler):
        handler = make_handler(JsonHandler)
        stack = [StackFrame(file="caller.py", line=8, function="caller")]

        with pytest.raises(BlunderErrorException) as info:
            handler.handle_error(Severity.USER_WARNING, "x", "app.py", 1, {"stack": stack})

        assert info.value.stack == stack

    def test_stack_is_captured_without_context(self, make_handler):
        handler = make_handler(JsonHandler)

        with pytest.raises(BlunderErrorException) as info:
            handler.handle_error(Severity.USER_WARNING, "x", "app.py", 1)

        assert info.value.stack[0].function == "test_stack_is_captured_without_context"

    @pytest.mark.parametrize("depth,expected", [(5, 5), (None, MAX_TRACE_LEVEL)])
    def test_captured_stack_is_bounded(self, make_handler, depth, expected):
        handler = make_handler(JsonHandler).set_max_trace_depth(depth)

        def recurse(level):
            if level <= 0:
                handler.handle_error(Severity.USER_WARNING, "deep", "app.py", 1)
            recurse(level - 1)

        with pytest.raises(BlunderErrorException) as info:
            recurse(MAX_TRACE_LEVEL + 20)

        assert len(info.value.stack) == expected
        assert info.value.stack[0].function == "recurse"


class TestRedirect:

    def make_redirecting(self, make_handler, verdict, exit_code=None):
        calls = []

        def callback(code, message, file, line, context):
            calls.append((code, message, file, line, context))
            return verdict

        handler = make_handler(TextHandler)
        pool = SeverityLevelPool().exclude([Severity.WARNING]).redirect_to(callback)
        handler.set_severity(pool)
        handler.set_exit_code(exit_code)
        return handler, calls

    def test_handled_short_circuits(self, make_handler, platform):
        handler, calls = self.make_redirecting(make_handler, False)

        assert handler.handle_error(Severity.WARNING, "redirected", "app.py", 5, {"k": "v"}) is False
        assert calls == [(Severity.WARNING, "redirected", "app.py", 5, {"k": "v"})]
        assert platform.output == ""

    def test_explicit_handled_variant(self, make_handler):
        handler, _ = self.make_redirecting(make_handler, Handled(True))
        assert handler.handle_error(Severity.WARNING, "redirected", "app.py", 5) is True

    @pytest.mark.parametrize("verdict", [None, Continue()])
    def test_continue_falls_through(self, make_handler, verdict):
        handler, calls = self.make_redirecting(make_handler, verdict)

        with pytest.raises(BlunderErrorException):
            handler.handle_error(Severity.WARNING, "falls through", "app.py", 5)
        assert len(calls) == 1

    def test_codes_not_redirected_skip_callback(self, make_handler):
        handler, calls = self.make_redirecting(make_handler, True)

        with pytest.raises(BlunderErrorException):
            handler.handle_error(Severity.NOTICE, "normal", "app.py", 5)
        assert calls == []

    def test_render_with_renders_and_terminates(self, make_handler, platform, http):
        handler, _ = self.make_redirecting(make_handler, JsonHandler())

        with pytest.raises(SystemExit) as info:
            handler.handle_error(Severity.WARNING, "to json", "app.py", 5)

        assert info.value.code == 0
        assert platform.terminations == [0]
        body = json.loads(platform.output)
        assert body["message"] == "to json"
        assert body["flag"] == "E_WARNING"

    def test_render_with_uses_configured_exit_code(self, make_handler, platform):
        handler, _ = self.make_redirecting(make_handler, RenderWith(PlainTextHandler()), exit_code=9)

        with pytest.raises(SystemExit):
            handler.handle_error(Severity.WARNING, "to text", "app.py", 5)

        assert platform.terminations == [9]
        assert "to text" in platform.output

    def test_invalid_verdict_raises(self, make_handler):
        handler, _ = self.make_redirecting(make_handler, "yes")

        with pytest.raises(TypeError):
            handler.handle_error(Severity.WARNING, "bad", "app.py", 5)


class TestEmit:

    def make_http(self):
        writer = MagicMock()
        response = Response(Stream(), header_writer=writer)
        response.with_header("Location", "/login")
        return HttpMessaging(response), writer

    def test_headers_and_status(self, make_handler):
        http, writer = self.make_http()
        handler = make_handler(JsonHandler)
        handler.set_http(http)

        handler.handle_uncaught_exception(raised(ValueError("boom")))

        response = http.response()
        assert response.status == 500
        assert response.get_header("location") is None
        assert response.get_header("content-type") == "application/json; charset=utf-8"
        writer.assert_called_once()
        assert writer.call_args[0][0] == 500

    def test_sent_headers_are_left_alone(self, make_handler):
        http, writer = self.make_http()
        http.response().send_headers()
        handler = make_handler(JsonHandler)
        handler.set_http(http)

        handler.handle_uncaught_exception(raised(ValueError("boom")))

        assert http.response().status == 200
        assert http.response().get_header("location") == "/login"
        writer.assert_called_once()

    def test_event_callback_receives_item_and_http(self, make_handler, http, events, platform):
        handler = make_handler(JsonHandler)
        handler.on_event(events)

        handler.handle_uncaught_exception(raised(ValueError("boom")))

        assert len(events.calls) == 1
        item, received_http = events.calls[0]
        assert item.message == "boom"
        assert received_http is http
        assert platform.output

    def test_event_failure_aborts_emit(self, make_handler, platform):
        handler = make_handler(JsonHandler)
        handler.set_exit_code(1)
        handler.on_event(MagicMock(side_effect=RuntimeError("listener broke")))

        with pytest.raises(RuntimeError, match="listener broke"):
            handler.handle_uncaught_exception(raised(ValueError("boom")))

        assert platform.output == ""
        assert platform.terminations == []

    def test_exit_code_after_output(self, make_handler, platform):
        handler = make_handler(TextHandler)
        handler.set_exit_code(3)

        with pytest.raises(SystemExit) as info:
            handler.handle_uncaught_exception(raised(ValueError("boom")))

        assert info.value.code == 3
        assert platform.terminations == [3]
        assert "boom" in platform.output

    def test_no_exit_code_keeps_running(self, make_handler, platform):
        handler = make_handler(TextHandler)
        handler.handle_uncaught_exception(raised(ValueError("boom")))
        assert platform.terminations == []

    def test_body_is_replaced_per_dispatch(self, make_handler, platform, http):
        handler = make_handler(PlainTextHandler)
        handler.handle_uncaught_exception(raised(ValueError("first")))
        handler.handle_uncaught_exception(raised(ValueError("second")))

        assert "first" not in http.response().body.get_contents()
        assert "second" in http.response().body.get_contents()


class TestCollaborator:

    def test_get_stream_requires_http(self):
        with pytest.raises(PreconditionError):
            JsonHandler().get_stream()

    def test_get_stream_returns_body(self, make_handler, http):
        handler = make_handler(JsonHandler)
        assert handler.get_stream() is http.response().body

    def test_get_http_is_lazy(self):
        handler = JsonHandler()
        http = handler.get_http()
        assert isinstance(http, HttpMessaging)
        assert handler.get_http() is http


class TestShutdown:

    def test_fatal_error_is_rendered(self, make_handler, platform, events):
        handler = make_handler(PlainTextHandler)
        handler.on_event(events)
        platform.record_error(Severity.PARSE, "syntax error, unexpected '}'", "app.py", 20)

        handler.handle_shutdown()

        assert handler.throw_mode is False
        assert "syntax error" in platform.output
        assert len(events.calls) == 1
        assert events.calls[0][0].is_fatal

    def test_non_fatal_error_is_ignored(self, make_handler, platform):
        handler = make_handler(PlainTextHandler)
        platform.record_error(Severity.WARNING, "just a warning", "app.py", 20)

        handler.handle_shutdown()

        assert platform.output == ""

    def test_fatal_error_outside_mask_is_ignored(self, make_handler, platform):
        handler = make_handler(PlainTextHandler)
        handler.set_severity(SeverityLevelPool([Severity.WARNING]))
        platform.record_error(Severity.ERROR, "out of memory", "app.py", 20)

        handler.handle_shutdown()

        assert platform.output == ""

    def test_exit_code_applies_to_clean_shutdown(self, make_handler, platform):
        handler = make_handler(PlainTextHandler)
        handler.set_exit_code(4)

        with pytest.raises(SystemExit):
            handler.handle_shutdown()

        assert platform.terminations == [4]
        assert platform.output == ""

    def test_clean_shutdown_without_exit_code(self, make_handler, platform):
        handler = make_handler(PlainTextHandler)
        handler.handle_shutdown()
        assert platform.terminations == []


class TestSilentHandler:

    def test_throw_mode_starts_off(self):
        assert SilentHandler().throw_mode is False

    def test_warning_only_reaches_event(self, make_handler, platform, events):
        handler = make_handler(SilentHandler)
        handler.on_event(events)

        assert handler.handle_error(Severity.WARNING, "quiet", "app.py", 2) is True

        assert platform.writes == []
        assert len(events.calls) == 1
        assert events.calls[0][0].status == "warning"

    def test_fatal_errors_stay_silent_by_default(self, make_handler, platform, events):
        handler = make_handler(SilentHandler)
        handler.on_event(events)

        handler.handle_uncaught_exception(raised(ValueError("hidden")))

        assert platform.writes == []
        assert len(events.calls) == 1

    def test_show_fatal_errors_renders_error_status(self, make_handler, platform, events):
        handler = make_handler(SilentHandler, show_fatal_errors=True)
        handler.on_event(events)

        handler.handle_error(Severity.USER_ERROR, "shown", "app.py", 2)

        assert "shown" in platform.output
        assert platform.output.startswith("<pre>")
        assert len(events.calls) == 1

    def test_show_fatal_errors_still_silences_warnings(self, make_handler, platform):
        handler = make_handler(SilentHandler, show_fatal_errors=True)
        handler.handle_error(Severity.USER_WARNING, "quiet", "app.py", 2)
        assert platform.writes == []
