import logging
import sys
import textwrap

import pytest

from guibundler.bundler import GUIBUNDLER_PYINSTALLER_ENV, BundlerCommand
from guibundler.logging_utils import LOGGER_NAME
from guibundler.paths import GUIBUNDLER_DIST_ENV, GUIBUNDLER_LOG_ENV, GUIBUNDLER_WORK_ENV


@pytest.fixture(autouse=True)
def _isolate_dirs(monkeypatch, tmp_path_factory):
    """Keep work/log directories out of the real home directory."""

    root = tmp_path_factory.mktemp("guibundler-dirs")
    monkeypatch.setenv(GUIBUNDLER_WORK_ENV, str(root / "work"))
    monkeypatch.setenv(GUIBUNDLER_LOG_ENV, str(root / "logs"))
    monkeypatch.delenv(GUIBUNDLER_DIST_ENV, raising=False)
    monkeypatch.delenv(GUIBUNDLER_PYINSTALLER_ENV, raising=False)


@pytest.fixture(autouse=True)
def _reset_logging():
    """Drop handlers installed by setup_logging so each test starts clean."""

    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def script(tmp_path):
    path = tmp_path / "app.py"
    path.write_text("import tkinter\n", encoding="utf-8")
    return path


@pytest.fixture
def fake_bundler(tmp_path):
    """A Python stand-in for PyInstaller that echoes its arguments.

    FAKE_BUNDLER_EXIT and FAKE_BUNDLER_SLEEP control its behaviour.
    """

    stub = tmp_path / "fake_pyinstaller.py"
    stub.write_text(
        textwrap.dedent(
            """
            import os
            import sys
            import time

            print("fake-pyinstaller " + " ".join(sys.argv[1:]), flush=True)
            time.sleep(float(os.environ.get("FAKE_BUNDLER_SLEEP", "0")))
            code = int(os.environ.get("FAKE_BUNDLER_EXIT", "0"))
            if code:
                print("boom", file=sys.stderr, flush=True)
            sys.exit(code)
            """
        ),
        encoding="utf-8",
    )
    return BundlerCommand(executable=sys.executable, prefix=(str(stub),))
