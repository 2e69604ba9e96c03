"""Preview server for Teaser.

Builds the blog, serves the output directory over HTTP and rebuilds when
source files change:
- Missing paths and directories without an index get a 404 (serving
  ``404.html`` when the site has one); directory listings are never shown.
- A watchdog observer triggers debounced rebuilds into a staging directory
  that is swapped in once the build succeeds.

Key classes:
- PreviewServer: Runs the HTTP server and the rebuild watcher.
- _PreviewHandler: HTTP request handler enforcing 404s.
- _RebuildHandler: File system event handler that requests rebuilds.
"""

from __future__ import annotations

import functools
import os
import shutil
import threading
import time
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .build import build_site, load_config
from .errors import BuildError


class _PreviewHandler(SimpleHTTPRequestHandler):
    """Serves the built site without caching or directory listings."""

    def end_headers(self):
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        super().end_headers()

    def list_directory(self, path):  # pragma: no cover - exercised via send_head
        return self._serve_404()

    def _serve_404(self):
        error_page = Path(self.directory) / "404.html"
        if not error_page.exists():
            self.send_error(404, "File not found")
            return None
        encoded = error_page.read_bytes()
        self.send_response(404)
        self.send_header("Content-type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(encoded)))
        self.end_headers()
        self.wfile.write(encoded)
        return None

    def send_head(self):
        path = Path(self.translate_path(self.path))
        if path.is_dir() and not (path / "index.html").exists():
            return self._serve_404()
        if not path.exists():
            return self._serve_404()
        return super().send_head()


class PreviewServer:
    """Local preview server with rebuild on change.

    Attributes:
        project_root: Root directory of the blog.
        config: Site configuration.
        output_dir: Directory being served.
        port: HTTP port.
    """

    watched_ignores = ("node_modules", ".git")

    def __init__(self, project_root: Path, port: int | None = None):
        self.project_root = project_root
        self.config = load_config(project_root)
        self.output_dir = project_root / self.config.get("output_dir", "_site")
        self._staging_dir = self.output_dir.with_name(self.output_dir.name + ".staging")
        self.port = int(port or self.config.get("port", 4000))
        self._observer: Observer | None = None
        self._httpd: ThreadingHTTPServer | None = None
        self._lock = threading.Lock()
        self._last_rebuild_at = 0.0
        self._debounce_seconds = 0.2
        self._trailing: threading.Timer | None = None

    def start(self, include_drafts: bool = False) -> None:  # pragma: no cover - integration path
        self.rebuild(include_drafts, force=True)
        threading.Thread(target=self._serve, daemon=True).start()
        self._start_watcher(include_drafts)
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            self.stop()

    def stop(self) -> None:
        if self._trailing:
            self._trailing.cancel()
        if self._observer:
            self._observer.stop()
            self._observer.join()
        if self._httpd:
            self._httpd.shutdown()

    def _serve(self) -> None:  # pragma: no cover - integration path
        handler = functools.partial(_PreviewHandler, directory=str(self.output_dir))
        self._httpd = ThreadingHTTPServer(("", self.port), handler)
        print(f"Serving {self.output_dir} at http://localhost:{self.port}")
        self._httpd.serve_forever()

    def _start_watcher(self, include_drafts: bool) -> None:
        observer = Observer()
        observer.schedule(
            _RebuildHandler(self, include_drafts), str(self.project_root), recursive=True
        )
        observer.start()
        self._observer = observer

    def is_ignored(self, path: Path) -> bool:
        """True for build output and tooling paths that must not trigger rebuilds."""
        for ignored in (self.output_dir, self._staging_dir):
            try:
                path.relative_to(ignored)
                return True
            except ValueError:
                pass
        return any(part in self.watched_ignores for part in path.parts)

    def rebuild(self, include_drafts: bool, force: bool = False) -> bool:
        """Rebuild into a staging directory and swap it in.

        Rebuilds are serialized and debounced. A request that arrives while
        a rebuild runs, or inside the debounce window, schedules one trailing
        rebuild so the last change is never lost. A failed build is reported
        and the previous output keeps being served.

        Returns:
            True if a rebuild ran and succeeded.
        """
        now = time.time()
        if not force and now - self._last_rebuild_at < self._debounce_seconds:
            self._schedule_trailing(include_drafts)
            return False
        if not self._lock.acquire(blocking=False):
            self._schedule_trailing(include_drafts)
            return False
        try:
            staging = self._staging_dir
            if staging.exists():
                shutil.rmtree(staging)
            try:
                build_site(
                    self.project_root,
                    include_drafts=include_drafts,
                    root_url="",
                    output_dir_override=staging,
                )
            except BuildError as exc:
                print(f"Build failed: {exc}")
                return False
            if self.output_dir.exists():
                shutil.rmtree(self.output_dir)
            os.replace(staging, self.output_dir)
            return True
        finally:
            self._last_rebuild_at = time.time()
            self._lock.release()

    def _schedule_trailing(self, include_drafts: bool) -> None:
        if self._trailing is not None and self._trailing.is_alive():
            return
        timer = threading.Timer(
            self._debounce_seconds, self._run_trailing, args=(include_drafts,)
        )
        timer.daemon = True
        self._trailing = timer
        timer.start()

    def _run_trailing(self, include_drafts: bool) -> None:
        self._trailing = None
        if self.rebuild(include_drafts, force=True):
            print("Change detected; site rebuilt.")


class _RebuildHandler(FileSystemEventHandler):
    def __init__(self, server: PreviewServer, include_drafts: bool):
        super().__init__()
        self.server = server
        self.include_drafts = include_drafts

    def on_any_event(self, event):
        if event.is_directory:
            return
        if self.server.is_ignored(Path(os.fsdecode(event.src_path))):
            return
        if self.server.rebuild(self.include_drafts):
            print("Change detected; site rebuilt.")
