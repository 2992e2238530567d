from __future__ import annotations

import logging
import os
import shutil
import socket
import subprocess
import threading
import time
from pathlib import Path

from card_app.config import AppConfig
from card_app.home import CardAppPaths

logger = logging.getLogger(__name__)


class BackendError(RuntimeError):
    pass


class BackendNotFoundError(BackendError):
    pass


class BackendExitedError(BackendError):
    def __init__(self, returncode: int) -> None:
        super().__init__(f"PocketBase exited with status {returncode}")
        self.returncode = returncode


def _is_windows() -> bool:
    return os.name == "nt"


def resolve_pocketbase_executable(paths: CardAppPaths, config: AppConfig) -> Path | None:
    tools_dir = Path(paths.tools_dir)

    raw = (config.pocketbase.executable or "").strip()
    if raw:
        p = Path(raw).expanduser()
        p = p if p.is_absolute() else (tools_dir / p)
        p = p.resolve()
        return p if p.exists() else None

    name = "pocketbase.exe" if _is_windows() else "pocketbase"
    for c in (tools_dir / name, tools_dir / "pocketbase" / name):
        if c.exists():
            return c

    found = shutil.which("pocketbase")
    return Path(found) if found else None


def resolve_pocketbase_data_dir(paths: CardAppPaths, config: AppConfig) -> Path:
    raw = (config.pocketbase.data_dir or "").strip()
    if not raw:
        return Path(paths.pb_data_dir).resolve()

    p = Path(raw).expanduser()
    p = p if p.is_absolute() else (Path(paths.home) / p)
    return p.resolve()


def build_pocketbase_serve_args(paths: CardAppPaths, config: AppConfig) -> list[str]:
    data_dir = resolve_pocketbase_data_dir(paths, config)
    pb = config.pocketbase
    return [
        "serve",
        f"--http={pb.http_host}:{pb.http_port}",
        f"--dir={str(data_dir)}",
        *pb.extra_args,
    ]


def tcp_port_open(host: str, port: int, *, timeout_s: float = 0.2) -> bool:
    try:
        with socket.create_connection((host, port), timeout=timeout_s):
            return True
    except OSError:
        return False


class EmbeddedBackend:
    """Handle on a PocketBase subprocess.

    `run()` blocks for the lifetime of the process, so callers normally go
    through `start_in_background()`. `shutdown()` may be called from any thread.
    """

    def __init__(
        self,
        executable: Path | None,
        args: list[str],
        *,
        data_dir: Path | None = None,
        http_host: str = "127.0.0.1",
        http_port: int = 8090,
        ready_timeout_s: float = 3.0,
    ) -> None:
        self.executable = executable
        self.args = list(args)
        self.data_dir = data_dir
        self.http_host = http_host
        self.http_port = http_port
        self.ready_timeout_s = ready_timeout_s
        self._popen: subprocess.Popen | None = None
        self._stopping = threading.Event()
        self._lock = threading.Lock()

    @property
    def url(self) -> str:
        return f"http://{self.http_host}:{self.http_port}"

    @property
    def running(self) -> bool:
        return self._popen is not None and self._popen.poll() is None

    def healthy(self, *, timeout_s: float = 0.2) -> bool:
        return tcp_port_open(self.http_host, self.http_port, timeout_s=timeout_s)

    def start(self) -> None:
        if self.executable is None:
            raise BackendNotFoundError(
                "PocketBase binary not found. Expected under CARD_APP_HOME/tools, on PATH, "
                "or configured via pocketbase.executable."
            )
        if self.data_dir is not None:
            self.data_dir.mkdir(parents=True, exist_ok=True)

        with self._lock:
            if self._stopping.is_set():
                return
            self._popen = subprocess.Popen(
                [str(self.executable), *self.args],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                creationflags=subprocess.CREATE_NEW_PROCESS_GROUP if _is_windows() else 0,
            )
        logger.info("PocketBase started (pid %s) at %s", self._popen.pid, self.url)

        # Best-effort: wait briefly for the HTTP port to come up.
        deadline = time.monotonic() + self.ready_timeout_s
        while time.monotonic() < deadline:
            if not self.running or self.healthy():
                break
            time.sleep(0.1)

    def run(self) -> None:
        self.start()
        popen = self._popen
        if popen is None:
            return

        returncode = popen.wait()
        if self._stopping.is_set():
            return
        if returncode != 0:
            raise BackendExitedError(returncode)
        logger.info("PocketBase exited")

    def shutdown(self) -> None:
        with self._lock:
            self._stopping.set()
            popen = self._popen

        if popen is None or popen.poll() is not None:
            return

        popen.terminate()
        try:
            popen.wait(timeout=3)
        except subprocess.TimeoutExpired:
            logger.warning("PocketBase did not stop in time; killing pid %s", popen.pid)
            popen.kill()
            popen.wait()


def build_embedded_backend(paths: CardAppPaths, config: AppConfig) -> EmbeddedBackend | None:
    if not config.pocketbase.enabled:
        return None

    return EmbeddedBackend(
        resolve_pocketbase_executable(paths, config),
        build_pocketbase_serve_args(paths, config),
        data_dir=resolve_pocketbase_data_dir(paths, config),
        http_host=config.pocketbase.http_host,
        http_port=config.pocketbase.http_port,
    )


def _supervise(backend: EmbeddedBackend) -> None:
    try:
        backend.run()
    except Exception as exc:
        logger.error("PocketBase error: %s", exc)


def start_in_background(backend: EmbeddedBackend) -> threading.Thread:
    """Run the backend in a daemon thread; its errors are logged, never raised."""

    thread = threading.Thread(target=_supervise, args=(backend,), name="pocketbase", daemon=True)
    thread.start()
    return thread
