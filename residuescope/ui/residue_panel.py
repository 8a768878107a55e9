"""Residue candidate list, proximity controls and interaction results."""

from PyQt6.QtCore import Qt, QTimer, pyqtSignal
from PyQt6.QtGui import QColor
from PyQt6.QtWidgets import (
    QWidget,
    QVBoxLayout,
    QHBoxLayout,
    QGroupBox,
    QLabel,
    QPushButton,
    QLineEdit,
    QFrame,
    QDoubleSpinBox,
    QCheckBox,
    QListWidget,
    QListWidgetItem,
    QTableWidget,
    QTableWidgetItem,
    QHeaderView,
    QAbstractItemView,
)

from residuescope.config.color_schemes import (
    RESIDUE_STATE_COLORS,
    ColorLegendItem,
    get_interaction_color,
    get_interaction_legend,
)
from residuescope.config.settings import (
    DEFAULT_PROXIMITY_THRESHOLD,
    MAX_PROXIMITY_THRESHOLD,
    MIN_PROXIMITY_THRESHOLD,
    PROXIMITY_THRESHOLD_STEP,
)
from residuescope.models.announcements import describe_selection_count
from residuescope.models.interactions import AnalysisResult
from residuescope.models.proximity import EMPTY_CANDIDATES, CandidateList
from residuescope.models.search import filter_candidates

# Item data role holding the ResidueKey of a list row
KEY_ROLE = Qt.ItemDataRole.UserRole


class ColorLegendWidget(QWidget):
    """Widget displaying a color legend."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self._layout = QVBoxLayout(self)
        self._layout.setContentsMargins(5, 5, 5, 5)
        self._layout.setSpacing(3)
        self._items: list[QWidget] = []

    def set_legend(self, items: list[ColorLegendItem]) -> None:
        """Replace the legend items.

        Args:
            items: List of ColorLegendItem with label and color.
        """
        for item in self._items:
            self._layout.removeWidget(item)
            item.deleteLater()
        self._items.clear()

        for legend_item in items:
            row = QWidget()
            row_layout = QHBoxLayout(row)
            row_layout.setContentsMargins(0, 0, 0, 0)
            row_layout.setSpacing(5)

            swatch = QFrame()
            swatch.setFixedSize(16, 16)
            swatch.setStyleSheet(
                f"background-color: {legend_item.color}; border: 1px solid #999;"
            )
            row_layout.addWidget(swatch)

            label = QLabel(legend_item.label)
            label.setStyleSheet("font-size: 11px;")
            row_layout.addWidget(label)
            row_layout.addStretch()

            self._layout.addWidget(row)
            self._items.append(row)


class ResiduePanel(QWidget):
    """Panel for picking residues and showing their interactions.

    Signals:
        residue_toggled: Emitted with (ResidueKey, checked) when a row's checkbox changes.
        search_submitted: Emitted with the query when Enter is pressed in the search box.
        filter_toggled: Emitted when neighbor filtering is switched on or off.
        threshold_changed: Emitted with the new proximity threshold (Å).
        analyze_requested: Emitted when Analyze is clicked.
        clear_requested: Emitted when Clear is clicked.
    """

    residue_toggled = pyqtSignal(object, bool)
    search_submitted = pyqtSignal(str)
    filter_toggled = pyqtSignal(bool)
    threshold_changed = pyqtSignal(float)
    analyze_requested = pyqtSignal()
    clear_requested = pyqtSignal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self._candidates: CandidateList = EMPTY_CANDIDATES
        self._updating = False
        self._init_ui()

    def _init_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(6, 6, 6, 6)

        # Candidate residues
        residues_group = QGroupBox("Residues")
        residues_layout = QVBoxLayout(residues_group)

        self._search_edit = QLineEdit()
        self._search_edit.setPlaceholderText("Search residues (e.g. ARG A42)")
        self._search_edit.setClearButtonEnabled(True)
        self._search_edit.textChanged.connect(self._on_search_text_changed)
        self._search_edit.returnPressed.connect(self._on_search_return)
        residues_layout.addWidget(self._search_edit)

        filter_row = QHBoxLayout()
        self._filter_check = QCheckBox("Filter neighbors")
        self._filter_check.setChecked(True)
        self._filter_check.toggled.connect(self._on_filter_toggled)
        filter_row.addWidget(self._filter_check)
        filter_row.addStretch()
        filter_row.addWidget(QLabel("Limit:"))
        self._threshold_spin = QDoubleSpinBox()
        self._threshold_spin.setRange(MIN_PROXIMITY_THRESHOLD, MAX_PROXIMITY_THRESHOLD)
        self._threshold_spin.setSingleStep(PROXIMITY_THRESHOLD_STEP)
        self._threshold_spin.setDecimals(1)
        self._threshold_spin.setSuffix(" Å")
        self._threshold_spin.setValue(DEFAULT_PROXIMITY_THRESHOLD)
        self._threshold_spin.valueChanged.connect(self._on_threshold_changed)
        filter_row.addWidget(self._threshold_spin)
        residues_layout.addLayout(filter_row)

        self._residue_list = QListWidget()
        self._residue_list.setSelectionMode(QAbstractItemView.SelectionMode.NoSelection)
        self._residue_list.itemChanged.connect(self._on_item_changed)
        residues_layout.addWidget(self._residue_list, 1)

        button_row = QHBoxLayout()
        self._analyze_btn = QPushButton("Analyze")
        self._analyze_btn.setEnabled(False)
        self._analyze_btn.clicked.connect(self.analyze_requested)
        button_row.addWidget(self._analyze_btn)
        self._clear_btn = QPushButton("Clear")
        self._clear_btn.clicked.connect(self.clear_requested)
        button_row.addWidget(self._clear_btn)
        residues_layout.addLayout(button_row)

        self._count_label = QLabel(describe_selection_count(0))
        self._count_label.setStyleSheet("color: #666; font-size: 11px;")
        residues_layout.addWidget(self._count_label)

        # Announcements for screen readers
        self._status_label = QLabel("")
        self._status_label.setWordWrap(True)
        self._status_label.setAccessibleName("Status")
        residues_layout.addWidget(self._status_label)

        layout.addWidget(residues_group, 3)

        # Interaction results
        results_group = QGroupBox("Interactions")
        results_layout = QVBoxLayout(results_group)

        self._results_table = QTableWidget(0, 4)
        self._results_table.setHorizontalHeaderLabels(["Type", "Residue 1", "Residue 2", "Distance (Å)"])
        self._results_table.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeMode.Stretch)
        self._results_table.verticalHeader().setVisible(False)
        self._results_table.setEditTriggers(QAbstractItemView.EditTrigger.NoEditTriggers)
        results_layout.addWidget(self._results_table, 1)

        self._legend = ColorLegendWidget()
        self._legend.set_legend(get_interaction_legend())
        results_layout.addWidget(self._legend)

        layout.addWidget(results_group, 2)

    # Candidate list

    def set_candidates(self, candidates: CandidateList, selection_count: int) -> None:
        """Show a new candidate list.

        Args:
            candidates: Ordered candidate rows with divider position.
            selection_count: Number of currently selected residues.
        """
        self._candidates = candidates
        self._count_label.setText(describe_selection_count(selection_count))
        self._render_candidates()

    def _render_candidates(self) -> None:
        query = self._search_edit.text().strip()
        items = filter_candidates(self._candidates, query)
        show_divider = not query and self._candidates.divider_index is not None

        self._updating = True
        try:
            self._residue_list.clear()
            for index, candidate in enumerate(items):
                if show_divider and index == self._candidates.divider_index:
                    self._add_divider(self._candidates.divider_label)

                row = QListWidgetItem(candidate.label)
                row.setData(KEY_ROLE, candidate.key)
                flags = Qt.ItemFlag.ItemIsUserCheckable
                if not candidate.disabled:
                    flags |= Qt.ItemFlag.ItemIsEnabled
                row.setFlags(flags)
                row.setCheckState(
                    Qt.CheckState.Checked if candidate.selected else Qt.CheckState.Unchecked
                )
                if candidate.has_interaction and not candidate.selected:
                    row.setForeground(QColor(RESIDUE_STATE_COLORS["has_interaction"]))
                    row.setToolTip("Interacts with the selection")
                elif candidate.in_proximity and not candidate.selected:
                    row.setToolTip("Within the proximity limit")
                self._residue_list.addItem(row)
        finally:
            self._updating = False

    def _add_divider(self, text: str) -> None:
        divider = QListWidgetItem(text)
        divider.setFlags(Qt.ItemFlag.NoItemFlags)
        divider.setTextAlignment(Qt.AlignmentFlag.AlignCenter)
        divider.setForeground(QColor(RESIDUE_STATE_COLORS["disabled"]))
        self._residue_list.addItem(divider)

    def _on_item_changed(self, item: QListWidgetItem) -> None:
        if self._updating:
            return
        key = item.data(KEY_ROLE)
        if key is None:
            return
        checked = item.checkState() == Qt.CheckState.Checked
        # The list is rebuilt in response, so emit outside the item signal
        QTimer.singleShot(0, lambda: self.residue_toggled.emit(key, checked))

    def _on_search_text_changed(self, _text: str) -> None:
        self._render_candidates()

    def _on_search_return(self) -> None:
        query = self._search_edit.text().strip()
        if query:
            self.search_submitted.emit(query)

    def _on_filter_toggled(self, checked: bool) -> None:
        if not self._updating:
            self.filter_toggled.emit(checked)

    def _on_threshold_changed(self, value: float) -> None:
        if not self._updating:
            self.threshold_changed.emit(value)

    # State setters

    def set_threshold(self, value: float) -> None:
        self._updating = True
        try:
            self._threshold_spin.setValue(value)
        finally:
            self._updating = False

    def set_filter_enabled(self, enabled: bool) -> None:
        self._updating = True
        try:
            self._filter_check.setChecked(enabled)
        finally:
            self._updating = False

    @property
    def threshold(self) -> float:
        return self._threshold_spin.value()

    @property
    def filter_enabled(self) -> bool:
        return self._filter_check.isChecked()

    def set_analyze_enabled(self, enabled: bool) -> None:
        self._analyze_btn.setEnabled(enabled)

    def set_status(self, message: str) -> None:
        """Show an announcement in the live status label."""
        self._status_label.setText(message)

    def clear_search(self) -> None:
        self._search_edit.clear()

    # Results

    def show_result(self, result: AnalysisResult) -> None:
        """Fill the results table with one row per interaction."""
        rows = result.to_rows()
        self._results_table.setRowCount(len(rows))
        for i, (record, row) in enumerate(zip(result.records, rows)):
            type_item = QTableWidgetItem(str(row["type"]))
            type_item.setForeground(QColor(get_interaction_color(record.type)))
            type_item.setToolTip(record.description)
            self._results_table.setItem(i, 0, type_item)
            self._results_table.setItem(i, 1, QTableWidgetItem(f"{row['residue_a']} {row['atom_a']}"))
            self._results_table.setItem(i, 2, QTableWidgetItem(f"{row['residue_b']} {row['atom_b']}"))
            self._results_table.setItem(i, 3, QTableWidgetItem(f"{row['distance']:.2f}"))

    def clear_results(self) -> None:
        self._results_table.setRowCount(0)

    def clear_state(self) -> None:
        """Reset the panel for a new structure."""
        self._candidates = EMPTY_CANDIDATES
        self._updating = True
        try:
            self._search_edit.clear()
            self._residue_list.clear()
        finally:
            self._updating = False
        self._count_label.setText(describe_selection_count(0))
        self._status_label.setText("")
        self._analyze_btn.setEnabled(False)
        self.clear_results()
