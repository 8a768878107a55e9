"""Main application window for ResidueScope."""

import logging
from pathlib import Path

from PyQt6.QtCore import Qt, QThread, pyqtSignal
from PyQt6.QtGui import QAction, QKeySequence
from PyQt6.QtWidgets import (
    QMainWindow,
    QSplitter,
    QWidget,
    QVBoxLayout,
    QStatusBar,
    QFileDialog,
    QMessageBox,
)

from residuescope.config.color_schemes import get_available_schemes
from residuescope.config.settings import (
    APP_NAME,
    APP_VERSION,
    DEFAULT_WINDOW_WIDTH,
    DEFAULT_WINDOW_HEIGHT,
    RIGHT_PANEL_RATIO,
)
from residuescope.config.user_config import load_config, save_config
from residuescope.models.interactions import AnalysisResult
from residuescope.models.protein import Protein
from residuescope.models.proximity import CandidateList
from residuescope.models.residues import ResidueDataset
from residuescope.models.session import AnalysisSession, ViewerHooks
from residuescope.ui.qt_scheduler import QtScheduler
from residuescope.ui.residue_panel import ResiduePanel
from residuescope.ui.viewer import StructureViewer
from residuescope.utils.file_utils import file_dialog_filter, is_file_too_large

logger = logging.getLogger(__name__)


class StructureLoadWorker(QThread):
    """Worker thread parsing a structure file without blocking the UI.

    The request token travels with the result so stale loads can be dropped.
    """

    finished = pyqtSignal(int, object)  # token, Protein
    error = pyqtSignal(int, str)  # token, error message

    def __init__(self, token: int, file_path: str):
        super().__init__()
        self._token = token
        self._file_path = file_path

    def run(self):
        try:
            protein = Protein(self._file_path)
            _ = protein.structure
            self.finished.emit(self._token, protein)
        except Exception as e:
            logger.error(f"Failed to parse {self._file_path}: {e}")
            self.error.emit(self._token, str(e))


class WindowHooks(ViewerHooks):
    """Forwards session callbacks to the viewer and residue panel."""

    def __init__(self, window: "MainWindow"):
        self._window = window

    def structure_changed(self, dataset: ResidueDataset) -> None:
        self._window._panel.clear_state()

    def candidates_changed(self, candidates: CandidateList) -> None:
        window = self._window
        session = window._session
        window._panel.set_candidates(candidates, len(session.selection))
        window._panel.set_analyze_enabled(session.can_analyze)
        window._viewer.set_residue_states(session.selection.selected, session.projection)

    def show_interactions(self, result: AnalysisResult) -> None:
        self._window._viewer.show_interactions(result)
        self._window._panel.show_result(result)

    def clear_interactions(self) -> None:
        self._window._viewer.clear_interactions()
        self._window._panel.clear_results()

    def announce(self, message: str) -> None:
        self._window._panel.set_status(message)
        self._window._statusbar.showMessage(message, 5000)


class MainWindow(QMainWindow):
    """Main application window with the structure viewer and residue panel."""

    def __init__(self):
        super().__init__()
        self._current_protein: Protein | None = None
        self._pending_path: str | None = None
        self._load_workers: list[StructureLoadWorker] = []
        self._user_config = load_config()
        self._init_ui()
        self._init_menu()
        self._init_statusbar()
        self._init_session()
        self._connect_signals()
        self._restore_settings()

    def _init_ui(self):
        self.setWindowTitle(f"{APP_NAME} v{APP_VERSION}")
        self.resize(DEFAULT_WINDOW_WIDTH, DEFAULT_WINDOW_HEIGHT)

        central_widget = QWidget()
        self.setCentralWidget(central_widget)
        layout = QVBoxLayout(central_widget)
        layout.setContentsMargins(0, 0, 0, 0)

        self._splitter = QSplitter(Qt.Orientation.Horizontal)
        self._splitter.setHandleWidth(8)
        self._splitter.setChildrenCollapsible(False)

        self._viewer = StructureViewer()
        self._splitter.addWidget(self._viewer)

        self._panel = ResiduePanel()
        self._splitter.addWidget(self._panel)

        right_width = int(DEFAULT_WINDOW_WIDTH * RIGHT_PANEL_RATIO)
        self._splitter.setSizes([DEFAULT_WINDOW_WIDTH - right_width, right_width])

        layout.addWidget(self._splitter)

    def _init_menu(self):
        menubar = self.menuBar()

        file_menu = menubar.addMenu("&File")

        open_action = QAction("&Open Structure...", self)
        open_action.setShortcut(QKeySequence("Ctrl+O"))
        open_action.setStatusTip("Open a PDB or mmCIF structure file")
        open_action.triggered.connect(self._on_open_structure)
        file_menu.addAction(open_action)

        close_action = QAction("&Close Structure", self)
        close_action.setStatusTip("Clear the current structure")
        close_action.triggered.connect(self._on_close_structure)
        file_menu.addAction(close_action)

        file_menu.addSeparator()

        quit_action = QAction("&Quit", self)
        quit_action.setShortcut(QKeySequence("Ctrl+Q"))
        quit_action.setStatusTip("Exit the application")
        quit_action.triggered.connect(self.close)
        file_menu.addAction(quit_action)

        view_menu = menubar.addMenu("&View")

        color_menu = view_menu.addMenu("&Color Scheme")
        for scheme_id in get_available_schemes():
            action = QAction(scheme_id.replace("_", " ").title(), self)
            action.triggered.connect(
                lambda checked, s=scheme_id: self._on_color_scheme_menu(s)
            )
            color_menu.addAction(action)

        center_action = QAction("Center &View", self)
        center_action.setShortcut(QKeySequence("C"))
        center_action.triggered.connect(self._viewer.center_view)
        view_menu.addAction(center_action)

        analysis_menu = menubar.addMenu("&Analysis")

        analyze_action = QAction("&Analyze Selection", self)
        analyze_action.setShortcut(QKeySequence("Ctrl+Return"))
        analyze_action.triggered.connect(self._on_analyze)
        analysis_menu.addAction(analyze_action)

        clear_selection_action = QAction("Clear &Selection", self)
        clear_selection_action.setShortcut(QKeySequence("Escape"))
        clear_selection_action.triggered.connect(self._on_clear_selection)
        analysis_menu.addAction(clear_selection_action)

    def _init_statusbar(self):
        self._statusbar = QStatusBar()
        self.setStatusBar(self._statusbar)
        self._statusbar.showMessage("Ready")

    def _init_session(self):
        analysis = self._user_config.analysis
        self._session = AnalysisSession(
            scheduler=QtScheduler(self),
            hooks=WindowHooks(self),
            threshold=analysis.proximity_threshold,
            filter_enabled=analysis.filter_enabled,
        )

    def _connect_signals(self):
        self._viewer.residue_clicked.connect(self._on_residue_clicked)

        self._panel.residue_toggled.connect(self._session.toggle)
        self._panel.search_submitted.connect(self._on_search_submitted)
        self._panel.filter_toggled.connect(self._session.set_filter_enabled)
        self._panel.threshold_changed.connect(self._session.set_threshold)
        self._panel.analyze_requested.connect(self._on_analyze)
        self._panel.clear_requested.connect(self._on_clear_selection)

    def _restore_settings(self) -> None:
        """Restore saved user settings."""
        analysis = self._user_config.analysis
        self._panel.set_threshold(analysis.proximity_threshold)
        self._panel.set_filter_enabled(analysis.filter_enabled)
        self._viewer.set_color_scheme(analysis.color_scheme)

        geometry = self._user_config.window_geometry
        if geometry:
            self.setGeometry(
                geometry.get("x", 100),
                geometry.get("y", 100),
                geometry.get("width", DEFAULT_WINDOW_WIDTH),
                geometry.get("height", DEFAULT_WINDOW_HEIGHT),
            )

        logger.debug(
            f"Restored analysis prefs: threshold={analysis.proximity_threshold}, "
            f"filter_enabled={analysis.filter_enabled}, color_scheme={analysis.color_scheme}"
        )

    # Structure loading

    def _on_open_structure(self):
        start_dir = self._user_config.last_folder or str(Path.home())
        file_path, _ = QFileDialog.getOpenFileName(
            self, "Open Structure", start_dir, file_dialog_filter()
        )
        if file_path:
            self.load_file(file_path)

    def load_file(self, file_path: str) -> None:
        """Parse a structure file in the background and install it in the session.

        Args:
            file_path: Path to a PDB or mmCIF file.
        """
        try:
            if is_file_too_large(file_path):
                reply = QMessageBox.question(
                    self,
                    "Large File",
                    f"{Path(file_path).name} is very large and may be slow to analyse. Continue?",
                )
                if reply != QMessageBox.StandardButton.Yes:
                    return
        except OSError as e:
            self._show_error("File Not Found", str(e))
            return

        self._user_config.last_folder = str(Path(file_path).parent)
        self._pending_path = file_path
        token = self._session.begin_load()
        logger.info(f"Loading {file_path} (request {token})")
        self._statusbar.showMessage(f"Loading: {file_path}")

        worker = StructureLoadWorker(token, file_path)
        worker.finished.connect(self._on_structure_parsed)
        worker.error.connect(self._on_structure_failed)
        worker.finished.connect(lambda *_: self._release_worker(worker))
        worker.error.connect(lambda *_: self._release_worker(worker))
        self._load_workers.append(worker)
        worker.start()

    def _release_worker(self, worker: StructureLoadWorker) -> None:
        if worker in self._load_workers:
            self._load_workers.remove(worker)
        worker.deleteLater()

    def _on_structure_parsed(self, token: int, protein: Protein) -> None:
        if not self._session.complete_load(token, protein.structure):
            return
        self._current_protein = protein
        try:
            self._viewer.load_structure(str(protein.file_path))
        except (FileNotFoundError, ValueError) as e:
            logger.error(f"Failed to display {protein.file_path}: {e}")
            self._session.fail_load(token)
            self._current_protein = None
            self._show_error("Error Loading Structure", str(e))
            return

        self._viewer.set_color_scheme(
            self._user_config.analysis.color_scheme, protein.get_chains()
        )
        dataset = self._session.dataset
        if dataset.is_empty:
            message = f"Loaded: {protein.name} (no protein residues found)"
        else:
            message = f"Loaded: {protein.name} ({len(dataset)} residues)"
        self._statusbar.showMessage(message)

    def _on_structure_failed(self, token: int, message: str) -> None:
        if not self._session.fail_load(token):
            return
        self._current_protein = None
        self._viewer.clear()
        self._show_error("Error Loading Structure", message)

    def _on_close_structure(self):
        self._session.unload()
        self._current_protein = None
        self._viewer.clear()
        self._statusbar.showMessage("Ready")

    # Selection and analysis

    def _on_residue_clicked(self, key) -> None:
        if key in self._session.selection:
            self._session.deselect(key)
        else:
            self._session.select(key)

    def _on_search_submitted(self, query: str) -> None:
        event = self._session.select_from_search(query)
        if event is None:
            self._panel.set_status(f"No residue matches '{query}'.")
        elif event.accepted:
            self._panel.clear_search()

    def _on_analyze(self) -> None:
        self._session.analyze()

    def _on_clear_selection(self) -> None:
        self._session.clear()

    def _on_color_scheme_menu(self, scheme_name: str) -> None:
        chains = self._current_protein.get_chains() if self._current_protein else None
        self._viewer.set_color_scheme(scheme_name, chains)
        self._user_config.analysis.color_scheme = scheme_name

    def _show_error(self, title: str, message: str) -> None:
        self._statusbar.showMessage(f"Error: {message}")
        QMessageBox.critical(self, title, message)

    def closeEvent(self, event) -> None:
        """Save preferences on close."""
        analysis = self._user_config.analysis
        analysis.proximity_threshold = self._session.pending_threshold
        analysis.filter_enabled = self._session.filter_enabled

        geometry = self.geometry()
        self._user_config.window_geometry = {
            "x": geometry.x(),
            "y": geometry.y(),
            "width": geometry.width(),
            "height": geometry.height(),
        }

        save_config(self._user_config)
        event.accept()
