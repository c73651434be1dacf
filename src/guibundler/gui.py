"""PySide6 front-end over the resolve/build/invoke pipeline."""

from __future__ import annotations

import logging
import sys
import threading
from pathlib import Path
from typing import Callable, List, Optional

from PySide6 import QtCore, QtGui, QtWidgets

from .bundler import BundlerCommand, detect_bundler
from .command import build_config, format_command
from .errors import BuildCancelled, BundlerError, ConfigurationError, ExternalToolError
from .invoker import invoke
from .logging_utils import setup_logging
from .models import BuildTarget, InvocationDescriptor, InvocationResult, ResourceMapping, ToolkitKind
from .overrides import BuildConfig, load_overrides
from .paths import PathConfig, resolve_path_config

IS_MAC = sys.platform == "darwin"

logger = logging.getLogger(__name__)

InvokeFn = Callable[..., InvocationResult]


class BuildWorker(QtCore.QObject):
    """Runs one invocation off the UI thread."""

    output = QtCore.Signal(str)
    finished = QtCore.Signal(object)
    failed = QtCore.Signal(object)

    def __init__(self, descriptor: InvocationDescriptor, invoke_fn: InvokeFn) -> None:
        super().__init__()
        self._descriptor = descriptor
        self._invoke = invoke_fn
        self.cancel_event = threading.Event()

    @QtCore.Slot()
    def run(self) -> None:
        try:
            result = self._invoke(
                self._descriptor,
                cancel_event=self.cancel_event,
                on_output=self.output.emit,
            )
        except BundlerError as exc:
            self.failed.emit(exc)
            return
        except Exception as exc:
            # Anything else would leave the window stuck in the running state.
            logger.exception("Build worker crashed")
            self.failed.emit(exc)
            return
        self.finished.emit(result)


class BundlerWindow(QtWidgets.QMainWindow):
    """Form for a single build with a live log of the bundler output."""

    def __init__(
        self,
        invoke_fn: Optional[InvokeFn] = None,
        path_config: PathConfig | None = None,
        bundler: BundlerCommand | None = None,
    ) -> None:
        super().__init__()
        self.setWindowTitle("GUI Bundler")

        self._invoke = invoke_fn or invoke
        self._config = (path_config or resolve_path_config()).ensure()
        self._bundler = bundler or detect_bundler()
        self._thread: Optional[QtCore.QThread] = None
        self._worker: Optional[BuildWorker] = None

        self.script_edit: QtWidgets.QLineEdit
        self.toolkit_combo: QtWidgets.QComboBox
        self.name_edit: QtWidgets.QLineEdit
        self.onefile_check: QtWidgets.QCheckBox
        self.windowed_check: QtWidgets.QCheckBox
        self.icon_edit: QtWidgets.QLineEdit
        self.resources_edit: QtWidgets.QPlainTextEdit
        self.overrides_edit: QtWidgets.QLineEdit
        self.build_btn: QtWidgets.QPushButton
        self.cancel_btn: QtWidgets.QPushButton
        self.log_view: QtWidgets.QPlainTextEdit

        central = QtWidgets.QWidget()
        layout = QtWidgets.QVBoxLayout(central)
        layout.addLayout(self._build_form())
        layout.addLayout(self._build_buttons())
        layout.addWidget(QtWidgets.QLabel("Log"))
        self.log_view = QtWidgets.QPlainTextEdit()
        self.log_view.setReadOnly(True)
        layout.addWidget(self.log_view)
        self.setCentralWidget(central)

        self._append_log("Select a script to package.")
        self._notify_bundler_missing()

    def _build_form(self) -> QtWidgets.QFormLayout:
        form = QtWidgets.QFormLayout()

        self.script_edit = QtWidgets.QLineEdit()
        self.script_edit.textChanged.connect(self._update_build_enabled)
        script_btn = QtWidgets.QPushButton("Browse…")
        script_btn.clicked.connect(self._choose_script)
        form.addRow("Script", self._row_widget(self.script_edit, script_btn))

        self.toolkit_combo = QtWidgets.QComboBox()
        self.toolkit_combo.addItem("tkinter", ToolkitKind.PLAIN.value)
        self.toolkit_combo.addItem("customtkinter", ToolkitKind.EXTENDED.value)
        form.addRow("Toolkit", self.toolkit_combo)

        self.name_edit = QtWidgets.QLineEdit()
        self.name_edit.setPlaceholderText("Defaults to the script name")
        form.addRow("Name", self.name_edit)

        self.onefile_check = QtWidgets.QCheckBox("Single file")
        self.windowed_check = QtWidgets.QCheckBox("No console window")
        self.windowed_check.setChecked(True)
        flags = QtWidgets.QHBoxLayout()
        flags.addWidget(self.onefile_check)
        flags.addWidget(self.windowed_check)
        flags.addStretch(1)
        form.addRow("Options", flags)

        self.icon_edit = QtWidgets.QLineEdit()
        icon_btn = QtWidgets.QPushButton("Browse…")
        icon_btn.clicked.connect(self._choose_icon)
        form.addRow("Icon", self._row_widget(self.icon_edit, icon_btn))

        self.resources_edit = QtWidgets.QPlainTextEdit()
        self.resources_edit.setPlaceholderText("One SRC:DST per line")
        self.resources_edit.setMaximumHeight(80)
        form.addRow("Data files", self.resources_edit)

        self.overrides_edit = QtWidgets.QLineEdit()
        overrides_btn = QtWidgets.QPushButton("Browse…")
        overrides_btn.clicked.connect(self._choose_overrides)
        form.addRow("Build file", self._row_widget(self.overrides_edit, overrides_btn))
        return form

    def _build_buttons(self) -> QtWidgets.QHBoxLayout:
        row = QtWidgets.QHBoxLayout()
        row.addStretch(1)
        self.build_btn = QtWidgets.QPushButton("Build")
        self.build_btn.setEnabled(False)
        self.build_btn.setShortcut(self._platform_shortcut("B"))
        self.build_btn.clicked.connect(self._handle_build)
        self.cancel_btn = QtWidgets.QPushButton("Cancel")
        self.cancel_btn.setEnabled(False)
        self.cancel_btn.clicked.connect(self._handle_cancel)
        row.addWidget(self.build_btn)
        row.addWidget(self.cancel_btn)
        return row

    @staticmethod
    def _row_widget(edit: QtWidgets.QWidget, button: QtWidgets.QWidget) -> QtWidgets.QWidget:
        container = QtWidgets.QWidget()
        layout = QtWidgets.QHBoxLayout(container)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(edit)
        layout.addWidget(button)
        return container

    def _choose_script(self) -> None:
        path, _ = QtWidgets.QFileDialog.getOpenFileName(
            self, "Select script", str(Path.home()), "Python scripts (*.py *.pyw)"
        )
        if path:
            self.script_edit.setText(path)

    def _choose_icon(self) -> None:
        path, _ = QtWidgets.QFileDialog.getOpenFileName(
            self, "Select icon", str(Path.home()), "Icons (*.ico *.icns *.png)"
        )
        if path:
            self.icon_edit.setText(path)

    def _choose_overrides(self) -> None:
        path, _ = QtWidgets.QFileDialog.getOpenFileName(
            self, "Select build file", str(Path.home()), "YAML (*.yaml *.yml)"
        )
        if path:
            self.overrides_edit.setText(path)

    def _resources(self) -> List[ResourceMapping]:
        lines = self.resources_edit.toPlainText().splitlines()
        return [ResourceMapping.parse(line.strip()) for line in lines if line.strip()]

    def current_config(self) -> BuildConfig:
        """Resolve the form contents; raises ConfigurationError or ValueError."""

        icon = self.icon_edit.text().strip()
        target = BuildTarget(
            script_path=Path(self.script_edit.text().strip()),
            toolkit_kind=ToolkitKind.parse(self.toolkit_combo.currentData()),
            output_name=self.name_edit.text().strip(),
            one_file=self.onefile_check.isChecked(),
            windowed=self.windowed_check.isChecked(),
            icon_path=Path(icon) if icon else None,
            extra_resources=tuple(self._resources()),
            dist_dir=self._config.dist_dir,
            work_dir=self._config.work_dir,
        )
        config = BuildConfig.resolve(target)
        overrides = self.overrides_edit.text().strip()
        if overrides:
            config = config.merged(load_overrides(overrides))
        return config

    def _handle_build(self) -> None:
        if self._thread is not None:
            return
        try:
            config = self.current_config()
            descriptor = build_config(config, bundler=self._bundler)
        except (ConfigurationError, ValueError) as exc:
            self._append_log(f"✗ {exc}")
            self._show_error("Invalid build settings", str(exc))
            return

        self._append_log(f"$ {format_command(descriptor)}")
        self._set_running(True)

        self._thread = QtCore.QThread(self)
        self._worker = BuildWorker(descriptor, self._invoke)
        self._worker.moveToThread(self._thread)
        self._thread.started.connect(self._worker.run)
        self._worker.output.connect(self._append_log)
        self._worker.finished.connect(self._on_finished)
        self._worker.failed.connect(self._on_failed)
        self._thread.start()

    def _handle_cancel(self) -> None:
        if self._worker is not None:
            self._append_log("Cancelling…")
            self._worker.cancel_event.set()

    def _on_finished(self, result: InvocationResult) -> None:
        self._teardown_thread()
        self._append_log(f"✓ Build finished in {result.duration:.1f}s")
        self._show_info("Build complete", "The bundle was created successfully.")

    def _on_failed(self, exc: Exception) -> None:
        self._teardown_thread()
        if isinstance(exc, BuildCancelled):
            self._append_log("Build cancelled.")
            return
        if isinstance(exc, ExternalToolError):
            self._append_log(f"✗ Bundler exited with code {exc.exit_code}")
        else:
            self._append_log(f"✗ {exc}")
        self._show_error("Build failed", str(exc))

    def _teardown_thread(self) -> None:
        if self._thread is not None:
            self._thread.quit()
            self._thread.wait()
        self._thread = None
        self._worker = None
        self._set_running(False)

    def _set_running(self, running: bool) -> None:
        self.cancel_btn.setEnabled(running)
        self._update_build_enabled()

    def is_running(self) -> bool:
        return self._thread is not None

    def _show_info(self, title: str, message: str) -> None:
        QtWidgets.QMessageBox.information(self, title, message)

    def _show_error(self, title: str, message: str) -> None:
        QtWidgets.QMessageBox.critical(self, title, message)

    def _append_log(self, message: str) -> None:
        self.log_view.appendPlainText(message)
        self.log_view.verticalScrollBar().setValue(self.log_view.verticalScrollBar().maximum())

    def _update_build_enabled(self) -> None:
        has_script = bool(self.script_edit.text().strip())
        self.build_btn.setEnabled(has_script and self._thread is None)

    def _notify_bundler_missing(self) -> None:
        if self._bundler is None:
            self._append_log("PyInstaller not found. Install it with 'pip install pyinstaller'.")
        else:
            self._append_log(f"Bundler: {self._bundler.describe()}")

    def _platform_shortcut(self, key: str) -> QtGui.QKeySequence:
        modifier = "Meta" if IS_MAC else "Ctrl"
        return QtGui.QKeySequence(f"{modifier}+{key}")

    def closeEvent(self, event: QtGui.QCloseEvent) -> None:  # noqa: N802
        if self._worker is not None:
            self._worker.cancel_event.set()
        if self._thread is not None:
            self._thread.quit()
            self._thread.wait()
        self._thread = None
        self._worker = None
        super().closeEvent(event)


def run(argv: list[str] | None = None) -> int:
    argv = argv or sys.argv
    config = resolve_path_config()
    setup_logging(log_dir=config.log_dir)
    app = _bootstrap_app(argv)
    window = BundlerWindow(path_config=config)
    window.show()
    return app.exec()


def entry_point() -> None:
    raise SystemExit(run())


def _bootstrap_app(argv: list[str]) -> QtWidgets.QApplication:
    app = QtWidgets.QApplication.instance()
    if app:
        return app
    app = QtWidgets.QApplication(argv)
    app.setApplicationName("GUI Bundler")
    app.setOrganizationName("guibundler")
    icon = app.style().standardIcon(QtWidgets.QStyle.SP_ComputerIcon)
    app.setWindowIcon(icon)
    return app
