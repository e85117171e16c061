"""Web dashboard served from inside the running worklog session."""

import threading
from pathlib import Path
from typing import Optional

from werkzeug.serving import BaseWSGIServer, make_server

from config import DASHBOARD_PORT


class DashboardThread:
    """
    Serves the read-only dashboard on a background thread.

    The app re-reads the task slot on every request, so it only shows what
    the session has saved; with autosave off that lags until 'save'.
    """

    def __init__(self, data_dir: Path, storage_key: str,
                 export_fallback: Optional[str] = None,
                 host: str = "127.0.0.1", port: int = DASHBOARD_PORT):
        self.data_dir = Path(data_dir)
        self.storage_key = storage_key
        self.export_fallback = export_fallback
        self.host = host
        self.port = port
        self._server: Optional[BaseWSGIServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def start(self) -> bool:
        """
        Bind and start serving.

        Returns:
            False if already running or the port could not be bound.
        """
        if self.running:
            print(f"Dashboard already running on {self.url}")
            return False

        # Imported here so `python -m dashboard.server` does not load it twice
        from dashboard.server import create_app

        app = create_app(self.data_dir, self.storage_key, self.export_fallback)
        try:
            self._server = make_server(self.host, self.port, app, threaded=True)
        except OSError as e:
            print(f"Error: Dashboard could not bind port {self.port}: {e}")
            self._server = None
            return False

        # Port 0 asks the OS for a free port
        self.port = self._server.server_port
        self._thread = threading.Thread(target=self._server.serve_forever,
                                        name="worklog-dashboard", daemon=True)
        self._thread.start()
        print(f"Dashboard running on {self.url}")
        return True

    def stop(self) -> bool:
        """Shut the server down and wait for its thread. False if it was not running."""
        if not self.running:
            print("Dashboard not running")
            return False
        self._server.shutdown()
        self._server.server_close()
        self._thread.join()
        self._server = None
        self._thread = None
        print("Dashboard stopped")
        return True
