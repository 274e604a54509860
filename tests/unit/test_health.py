"""Tests for health check endpoints."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

from rollouts_manager.health import create_combined_wsgi_app, start_server


def _environ(path: str) -> dict:
    return {
        "REQUEST_METHOD": "GET",
        "PATH_INFO": path,
        "SCRIPT_NAME": "",
        "SERVER_NAME": "localhost",
        "SERVER_PORT": "8080",
        "SERVER_PROTOCOL": "HTTP/1.1",
        "wsgi.url_scheme": "http",
    }


class TestCombinedApp:
    """Test cases for the combined metrics and health WSGI app."""

    def test_healthz(self):
        app = create_combined_wsgi_app()
        start_response = MagicMock()

        body = b"".join(app(_environ("/healthz"), start_response))

        assert b'"status":"ok"' in body
        assert "200" in start_response.call_args[0][0]

    def test_readyz(self):
        app = create_combined_wsgi_app()
        start_response = MagicMock()

        body = b"".join(app(_environ("/readyz"), start_response))

        assert b'"status":"ready"' in body
        assert "200" in start_response.call_args[0][0]

    def test_metrics_delegated_to_prometheus(self):
        """Any other path is served by the prometheus app."""
        from rollouts_manager import metrics

        metrics.reconcile_total.labels(kind="RolloutManager", result="success").inc()
        app = create_combined_wsgi_app()
        start_response = MagicMock()

        body = b"".join(app(_environ("/metrics"), start_response))

        assert b"argo_rollouts_manager_reconcile_total" in body
        assert "200" in start_response.call_args[0][0]


class TestStartServer:
    """Test cases for start_server."""

    @patch("rollouts_manager.health.threading.Thread")
    @patch("rollouts_manager.health.make_server")
    def test_starts_daemon_thread(self, mock_make_server, mock_thread):
        server = start_server(8080)

        assert server is mock_make_server.return_value
        args, kwargs = mock_make_server.call_args
        assert args[0] == ""
        assert args[1] == 8080
        assert kwargs["threaded"] is True
        assert mock_thread.call_args.kwargs["daemon"] is True
        mock_thread.return_value.start.assert_called_once()
