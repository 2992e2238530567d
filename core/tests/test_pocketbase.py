from __future__ import annotations

import logging
import socket
import sys
from pathlib import Path

import pytest

from card_app.config import AppConfig
from card_app.home import ensure_card_app_layout
from card_app.pocketbase import (
    BackendExitedError,
    BackendNotFoundError,
    EmbeddedBackend,
    build_embedded_backend,
    build_pocketbase_serve_args,
    resolve_pocketbase_executable,
    start_in_background,
    tcp_port_open,
)


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def _python_backend(code: str) -> EmbeddedBackend:
    return EmbeddedBackend(
        Path(sys.executable),
        ["-c", code],
        http_port=_free_port(),
        ready_timeout_s=0.3,
    )


def test_serve_args_use_defaults(tmp_path: Path) -> None:
    paths = ensure_card_app_layout(tmp_path)
    args = build_pocketbase_serve_args(paths, AppConfig())

    assert args == [
        "serve",
        "--http=127.0.0.1:8090",
        f"--dir={paths.pb_data_dir.resolve()}",
    ]


def test_serve_args_relative_data_dir_and_extra_args(tmp_path: Path) -> None:
    paths = ensure_card_app_layout(tmp_path)
    cfg = AppConfig.model_validate(
        {"pocketbase": {"http_port": 9090, "data_dir": "pb", "extra_args": ["--dev"]}}
    )

    args = build_pocketbase_serve_args(paths, cfg)

    assert args == [
        "serve",
        "--http=127.0.0.1:9090",
        f"--dir={(tmp_path / 'pb').resolve()}",
        "--dev",
    ]
    # The data dir is only created when the backend starts.
    assert not (tmp_path / "pb").exists()


def test_resolve_executable_from_tools_dir(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("PATH", "")
    paths = ensure_card_app_layout(tmp_path)
    assert resolve_pocketbase_executable(paths, AppConfig()) is None

    name = "pocketbase.exe" if sys.platform.startswith("win") else "pocketbase"
    binary = paths.tools_dir / name
    binary.write_text("")

    assert resolve_pocketbase_executable(paths, AppConfig()) == binary


def test_resolve_executable_explicit_relative_path(tmp_path: Path) -> None:
    paths = ensure_card_app_layout(tmp_path)
    cfg = AppConfig.model_validate({"pocketbase": {"executable": "bin/pb"}})

    assert resolve_pocketbase_executable(paths, cfg) is None

    (paths.tools_dir / "bin").mkdir()
    (paths.tools_dir / "bin" / "pb").write_text("")
    assert resolve_pocketbase_executable(paths, cfg) == (paths.tools_dir / "bin" / "pb").resolve()


def test_build_embedded_backend_disabled(tmp_path: Path) -> None:
    paths = ensure_card_app_layout(tmp_path)
    cfg = AppConfig.model_validate({"pocketbase": {"enabled": False}})
    assert build_embedded_backend(paths, cfg) is None


def test_build_embedded_backend_enabled(tmp_path: Path) -> None:
    paths = ensure_card_app_layout(tmp_path)
    backend = build_embedded_backend(paths, AppConfig())

    assert backend is not None
    assert backend.url == "http://127.0.0.1:8090"
    assert backend.args[0] == "serve"
    assert backend.data_dir == paths.pb_data_dir


def test_start_without_executable_raises() -> None:
    with pytest.raises(BackendNotFoundError):
        EmbeddedBackend(None, []).start()


def test_start_creates_data_dir(tmp_path: Path) -> None:
    backend = EmbeddedBackend(
        Path(sys.executable),
        ["-c", "pass"],
        data_dir=tmp_path / "pb" / "data",
        http_port=_free_port(),
        ready_timeout_s=0.3,
    )

    backend.start()
    backend.shutdown()

    assert (tmp_path / "pb" / "data").is_dir()


def test_start_fails_when_data_dir_is_a_file(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    backend = EmbeddedBackend(Path(sys.executable), ["-c", "pass"], data_dir=blocker)

    with pytest.raises(OSError):
        backend.start()

    assert not backend.running


@pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX exec permissions")
def test_start_fails_when_binary_is_not_executable(tmp_path: Path) -> None:
    binary = tmp_path / "pocketbase"
    binary.write_text("not a program")
    binary.chmod(0o644)

    with pytest.raises(OSError):
        EmbeddedBackend(binary, ["serve"]).start()


def test_start_and_shutdown_subprocess() -> None:
    backend = _python_backend("import time; time.sleep(30)")

    backend.start()
    assert backend.running

    backend.shutdown()
    assert not backend.running

    # Idempotent.
    backend.shutdown()


def test_run_raises_on_non_zero_exit() -> None:
    backend = _python_backend("raise SystemExit(3)")

    with pytest.raises(BackendExitedError) as excinfo:
        backend.run()

    assert excinfo.value.returncode == 3


def test_run_returns_after_requested_shutdown() -> None:
    backend = _python_backend("import time; time.sleep(30)")

    thread = start_in_background(backend)
    for _ in range(50):
        if backend.running:
            break
        thread.join(timeout=0.1)
    backend.shutdown()
    thread.join(timeout=5)

    assert not thread.is_alive()
    assert not backend.running


def test_background_errors_are_logged_not_raised(caplog) -> None:
    caplog.set_level(logging.ERROR, logger="card_app.pocketbase")

    thread = start_in_background(_python_backend("raise SystemExit(2)"))
    thread.join(timeout=5)

    assert not thread.is_alive()
    assert "PocketBase error: PocketBase exited with status 2" in caplog.text


def test_healthy_probes_http_port() -> None:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as listener:
        listener.bind(("127.0.0.1", 0))
        listener.listen()
        port = listener.getsockname()[1]

        backend = EmbeddedBackend(None, [], http_port=port)
        assert backend.healthy()
        assert tcp_port_open("127.0.0.1", port)

    assert not tcp_port_open("127.0.0.1", port)
