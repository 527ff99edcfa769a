"""Tests for tracing helpers."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from spacetraders_operator import tracing


class TestAgentSpan:
    def test_no_tracer(self):
        """Test spans are no-ops before tracing is initialized."""
        with patch.object(tracing, "_tracer", None):
            with tracing.agent_span("reconcile", "default", "engineer") as span:
                assert span is None

    def test_attributes(self):
        """Test Agent identity and extra attributes are recorded under the operator prefix."""
        tracer = MagicMock()

        with patch.object(tracing, "_tracer", tracer):
            with tracing.agent_span("register", "default", "engineer", symbol="ENGINEER", faction=None):
                pass

        tracer.start_as_current_span.assert_called_once_with(
            "agent.register",
            attributes={
                "k8s.namespace.name": "default",
                "spacetraders.agent.name": "engineer",
                "spacetraders.symbol": "ENGINEER",
            },
        )

    def test_exception_propagates(self):
        with patch.object(tracing, "_tracer", None):
            with pytest.raises(RuntimeError):
                with tracing.agent_span("register", "default", "engineer"):
                    raise RuntimeError("boom")


class TestInitializeTracing:
    @pytest.mark.parametrize("value", ["false", "FALSE", "0", "no"])
    def test_disabled(self, monkeypatch, value):
        monkeypatch.setenv("OTEL_TRACES_ENABLED", value)

        with patch.object(tracing, "_tracer", None):
            assert tracing.initialize_tracing() is False
            assert tracing._tracer is None

    def test_exporter_failure_keeps_tracing_off(self, monkeypatch):
        monkeypatch.setenv("OTEL_TRACES_ENABLED", "true")

        with patch.object(tracing, "_tracer", None), patch.object(
            tracing, "_build_provider", side_effect=RuntimeError("bad endpoint")
        ):
            assert tracing.initialize_tracing() is False
            assert tracing._tracer is None

    def test_enabled(self, monkeypatch):
        monkeypatch.setenv("OTEL_TRACES_ENABLED", "true")
        monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://collector:4317")
        monkeypatch.delenv("OTEL_SERVICE_NAME", raising=False)
        provider = MagicMock()

        with patch.object(tracing, "_tracer", None), patch.object(
            tracing, "_build_provider", return_value=provider
        ) as build, patch.object(tracing.trace, "set_tracer_provider") as set_provider:
            assert tracing.initialize_tracing() is True
            assert tracing._tracer is provider.get_tracer.return_value

        build.assert_called_once_with("spacetraders-operator", "http://collector:4317")
        set_provider.assert_called_once_with(provider)


class TestSetSpanAttribute:
    def test_without_span(self):
        # No active span: nothing is recorded and nothing raises
        tracing.set_span_attribute("account_id", "acct-1")

    def test_prefixed_on_recording_span(self):
        span = MagicMock()
        span.is_recording.return_value = True

        with patch.object(tracing.trace, "get_current_span", return_value=span):
            tracing.set_span_attribute("account_id", "acct-1")
            tracing.set_span_attribute("headquarters", None)

        span.set_attribute.assert_called_once_with("spacetraders.account_id", "acct-1")
