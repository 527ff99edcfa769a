"""Tests for operator entry point wiring."""

from __future__ import annotations

from unittest.mock import Mock, patch

import kopf
import pytest

from spacetraders_operator import main
from spacetraders_operator.config import OperatorConfig
from spacetraders_operator.handlers.agent import InvalidAgentSpecError, ReconcileResult
from spacetraders_operator.services.spacetraders.errors import SpaceTradersTransportError
from spacetraders_operator.services.spacetraders.models import ServiceStatus


def make_reconciler(result=None, error=None):
    reconciler = Mock()
    reconciler.config = OperatorConfig(account_email="captain@example.com", requeue_delay=1.0)

    def reconcile_with_metrics(body, fn):
        return fn()

    reconciler.reconcile_with_metrics.side_effect = reconcile_with_metrics
    if error is not None:
        reconciler.reconcile.side_effect = error
    else:
        reconciler.reconcile.return_value = result or ReconcileResult()
    return reconciler


class TestRetryDelay:
    """Test cases for retry_delay."""

    def test_backoff(self):
        assert main.retry_delay(0) == 1.0
        assert main.retry_delay(1) == 2.0
        assert main.retry_delay(3) == 8.0

    def test_capped(self):
        assert main.retry_delay(10) == 60.0
        assert main.retry_delay(100) == 60.0


class TestRunReconcile:
    """Test cases for run_reconcile."""

    def test_done(self):
        reconciler = make_reconciler()

        main.run_reconcile(reconciler, {"metadata": {}}, "default", "engineer")

        reconciler.reconcile.assert_called_once_with("default", "engineer")

    def test_requeue(self):
        """Test a requeue result is turned into a delayed retry."""
        reconciler = make_reconciler(ReconcileResult(requeue=True, requeue_after=1.0))

        with pytest.raises(kopf.TemporaryError) as exc_info:
            main.run_reconcile(reconciler, {"metadata": {}}, "default", "engineer")

        assert exc_info.value.delay == 1.0

    def test_requeue_default_delay(self):
        reconciler = make_reconciler(ReconcileResult(requeue=True))

        with pytest.raises(kopf.TemporaryError) as exc_info:
            main.run_reconcile(reconciler, {"metadata": {}}, "default", "engineer")

        assert exc_info.value.delay == reconciler.config.requeue_delay

    def test_invalid_spec_is_permanent(self):
        reconciler = make_reconciler(error=InvalidAgentSpecError("spec.symbol is required"))

        with pytest.raises(kopf.PermanentError):
            main.run_reconcile(reconciler, {"metadata": {}}, "default", "engineer")

    def test_failure_backs_off(self):
        """Test failures are retried with exponential backoff and a sanitized message."""
        reconciler = make_reconciler(error=SpaceTradersTransportError("Authorization: Bearer tok-abc"))

        with pytest.raises(kopf.TemporaryError) as exc_info:
            main.run_reconcile(reconciler, {"metadata": {}}, "default", "engineer", retry=2)

        assert exc_info.value.delay == 4.0
        assert "tok-abc" not in str(exc_info.value)


class TestGetReconciler:
    def test_not_started(self):
        with patch.object(main, "_reconciler", None):
            with pytest.raises(kopf.TemporaryError):
                main.get_reconciler()


class TestConnect:
    """Test cases for the connect startup handler."""

    @patch.dict("os.environ", {"ACCOUNT_EMAIL": "captain@example.com"})
    @patch("spacetraders_operator.main.health")
    @patch("spacetraders_operator.main.build_reconciler")
    def test_connect_ready(self, mock_build, mock_health):
        reconciler = Mock()
        reconciler.spacetraders.get_status.return_value = ServiceStatus("online", "v2.2.0", "2026-10-12")
        mock_build.return_value = reconciler

        with patch.object(main, "_reconciler", None):
            main.connect()
            assert main.get_reconciler() is reconciler

        mock_health.set_ready.assert_called_once_with(True)

    @patch.dict("os.environ", {"ACCOUNT_EMAIL": "captain@example.com"})
    @patch("spacetraders_operator.main.health")
    @patch("spacetraders_operator.main.build_reconciler")
    def test_connect_unavailable(self, mock_build, mock_health):
        """Test an unreachable API keeps the operator unready and retries."""
        reconciler = Mock()
        reconciler.spacetraders.get_status.side_effect = SpaceTradersTransportError("connection refused")
        mock_build.return_value = reconciler

        with patch.object(main, "_reconciler", None):
            with pytest.raises(kopf.TemporaryError):
                main.connect()
            assert main._reconciler is None

        mock_health.set_ready.assert_called_once_with(False)


class TestBuildReconciler:
    @patch("spacetraders_operator.main.configure_spacetraders_rate_limit")
    @patch("spacetraders_operator.main.get_k8s_api_client")
    def test_applies_rate_limit(self, mock_api_client, mock_configure):
        config = OperatorConfig(account_email="captain@example.com", spacetraders_rate_limit=0.5, request_timeout=7)

        reconciler = main.build_reconciler(config)

        mock_configure.assert_called_once_with(0.5)
        assert reconciler.spacetraders.timeout == 7
        assert reconciler.agents.request_timeout == 7


class TestHandleSecretEvent:
    """Test cases for handle_secret_event."""

    OWNER = {
        "apiVersion": "spacetraders.hafer.dev/v1alpha1",
        "kind": "Agent",
        "name": "engineer",
        "uid": "agent-uid-1",
        "controller": True,
    }

    def make_meta(self, owner=None):
        return {
            "name": "engineer",
            "namespace": "default",
            "labels": {"app.kubernetes.io/name": "spacetraders-operator"},
            "ownerReferences": [owner or self.OWNER],
        }

    def make_reconciler(self, agent_meta=None):
        reconciler = make_reconciler()
        if agent_meta is False:
            reconciler.agents.get.return_value = None
        else:
            reconciler.agents.get.return_value = {
                "metadata": {"name": "engineer", "namespace": "default", "uid": "agent-uid-1", **(agent_meta or {})}
            }
        return reconciler

    def test_registered_for_raw_secret_events(self):
        """Test the handler is registered as a raw event handler on labelled secrets."""
        registry = kopf.get_default_registry()

        watching = [h.fn for h in registry._watching.get_all_handlers()]
        changing = [h.fn for h in registry._changing.get_all_handlers()]

        assert main.handle_secret_event in watching
        assert main.handle_secret_event not in changing

    def test_deleted_secret_requests_reconciliation(self):
        """Test a DELETED event annotates the owning Agent so its handler runs again."""
        reconciler = self.make_reconciler()
        meta = self.make_meta()

        with patch.object(main, "_reconciler", reconciler):
            main.handle_secret_event(event={"type": "DELETED", "object": {"metadata": meta}}, meta=meta)

        reconciler.agents.get.assert_called_once_with("default", "engineer")
        namespace, name, annotations = reconciler.agents.annotate.call_args[0]
        assert (namespace, name) == ("default", "engineer")
        assert list(annotations) == ["spacetraders.hafer.dev/reconcile-requested-at"]
        reconciler.reconcile.assert_not_called()

    @pytest.mark.parametrize("event_type", ["ADDED", "MODIFIED", None])
    def test_other_events_ignored(self, event_type):
        reconciler = self.make_reconciler()
        meta = self.make_meta()

        with patch.object(main, "_reconciler", reconciler):
            main.handle_secret_event(event={"type": event_type, "object": {"metadata": meta}}, meta=meta)

        reconciler.agents.get.assert_not_called()
        reconciler.agents.annotate.assert_not_called()

    def test_agent_being_deleted(self):
        """Test cascading deletion of the Agent does not trigger a new registration."""
        reconciler = self.make_reconciler({"deletionTimestamp": "2026-10-19T10:00:00Z"})
        meta = self.make_meta()

        with patch.object(main, "_reconciler", reconciler):
            main.handle_secret_event(event={"type": "DELETED"}, meta=meta)

        reconciler.agents.annotate.assert_not_called()

    def test_agent_gone(self):
        reconciler = self.make_reconciler(False)
        meta = self.make_meta()

        with patch.object(main, "_reconciler", reconciler):
            main.handle_secret_event(event={"type": "DELETED"}, meta=meta)

        reconciler.agents.annotate.assert_not_called()

    def test_agent_recreated_with_same_name(self):
        reconciler = self.make_reconciler({"uid": "agent-uid-2"})
        meta = self.make_meta()

        with patch.object(main, "_reconciler", reconciler):
            main.handle_secret_event(event={"type": "DELETED"}, meta=meta)

        reconciler.agents.annotate.assert_not_called()

    def test_not_owned_by_agent(self):
        reconciler = self.make_reconciler()
        meta = self.make_meta({**self.OWNER, "kind": "Deployment", "apiVersion": "apps/v1"})

        with patch.object(main, "_reconciler", reconciler):
            main.handle_secret_event(event={"type": "DELETED"}, meta=meta)

        reconciler.agents.get.assert_not_called()


class TestControllingAgent:
    def test_ignores_non_controller_references(self):
        ref = {**TestHandleSecretEvent.OWNER, "controller": False}

        assert main.controlling_agent({"ownerReferences": [ref]}) is None

    def test_no_references(self):
        assert main.controlling_agent({}) is None
