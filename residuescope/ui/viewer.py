"""3D structure viewer widget using 3Dmol.js."""

import json
import logging
from pathlib import Path

from PyQt6.QtCore import pyqtSignal, pyqtSlot, QObject
from PyQt6.QtWebEngineWidgets import QWebEngineView
from PyQt6.QtWebChannel import QWebChannel
from PyQt6.QtWidgets import QVBoxLayout, QWidget, QLabel

from residuescope.config.settings import DEFAULT_BACKGROUND_COLOR
from residuescope.config.color_schemes import (
    RESIDUE_STATE_COLORS,
    ColorScheme,
    SpectrumScheme,
    get_color_scheme,
    get_interaction_color,
)
from residuescope.models.interactions import AnalysisResult
from residuescope.models.proximity import ProximityProjection
from residuescope.models.residues import ResidueKey
from residuescope.utils.file_utils import get_file_format, read_structure_file

logger = logging.getLogger(__name__)


# HTML template for the 3Dmol.js viewer with residue state and interaction support
VIEWER_HTML = """
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <style>
        * { margin: 0; padding: 0; }
        html, body { width: 100%; height: 100%; overflow: hidden; }
        #viewer { width: 100%; height: 100%; position: absolute; cursor: crosshair; }
    </style>
    <script src="https://3Dmol.csb.pitt.edu/build/3Dmol-min.js"></script>
    <script src="qrc:///qtwebchannel/qwebchannel.js"></script>
</head>
<body>
    <div id="viewer"></div>
    <script>
        var pyBridge = null;
        new QWebChannel(qt.webChannelTransport, function(channel) {
            pyBridge = channel.objects.pyBridge;
            window.pyBridge = pyBridge;
        });
    </script>
    <script>
        let viewer = null;
        let baseStyle = {cartoon: {color: 'spectrum'}};
        // {selected: [...], has_interaction: [...], in_proximity: [...]}, each [{chain, resi, inscode}]
        let residueStates = {};
        let stateColors = {};
        let interactionShapes = [];

        function residueSel(res) {
            let sel = {chain: res.chain, resi: res.resi};
            if (res.inscode) sel.icode = res.inscode;
            return sel;
        }

        function initViewer() {
            let element = document.getElementById('viewer');
            viewer = $3Dmol.createViewer(element, { backgroundColor: 'BACKGROUND_COLOR' });
            viewer.render();
        }

        function loadStructure(data, format) {
            if (!viewer) initViewer();
            viewer.clear();
            residueStates = {};
            interactionShapes = [];
            viewer.addModel(data, format);

            viewer.setClickable({}, true, function(atom, viewer, event, container) {
                if (atom && window.pyBridge) {
                    window.pyBridge.onResidueClicked(
                        JSON.stringify({chain: atom.chain, resi: atom.resi, inscode: atom.icode || ''})
                    );
                }
            });

            applyStyles();
            viewer.zoomTo();
            viewer.render();
        }

        function clearViewer() {
            if (viewer) {
                viewer.clear();
                residueStates = {};
                interactionShapes = [];
                viewer.render();
            }
        }

        function setBackgroundColor(color) {
            if (viewer) {
                viewer.setBackgroundColor(color);
                viewer.render();
            }
        }

        function setBaseStyle(styleSpec) {
            baseStyle = styleSpec;
            applyStyles();
        }

        function applyStyles() {
            if (!viewer) return;
            viewer.setStyle({}, baseStyle);
            ['in_proximity', 'has_interaction', 'selected'].forEach(function(state) {
                let color = stateColors[state];
                (residueStates[state] || []).forEach(function(res) {
                    viewer.addStyle(residueSel(res), {
                        stick: {color: color, radius: state === 'selected' ? 0.25 : 0.15}
                    });
                });
            });
            viewer.render();
        }

        function setResidueStates(states, colors) {
            residueStates = states;
            stateColors = colors;
            applyStyles();
        }

        function clearInteractions() {
            if (!viewer) return;
            interactionShapes.forEach(function(shape) { viewer.removeShape(shape); });
            interactionShapes = [];
            viewer.render();
        }

        // items: [{start: [x,y,z], end: [x,y,z], color, label}]
        function showInteractions(items) {
            clearInteractions();
            if (!viewer) return;
            items.forEach(function(item) {
                let start = {x: item.start[0], y: item.start[1], z: item.start[2]};
                let end = {x: item.end[0], y: item.end[1], z: item.end[2]};
                interactionShapes.push(viewer.addCylinder({
                    start: start, end: end, radius: 0.08, color: item.color,
                    dashed: true, fromCap: 1, toCap: 1
                }));
                interactionShapes.push(viewer.addSphere({center: start, radius: 0.25, color: item.color}));
                interactionShapes.push(viewer.addSphere({center: end, radius: 0.25, color: item.color}));
            });
            viewer.render();
        }

        function zoomToResidues(residues) {
            if (!viewer || residues.length === 0) return;
            viewer.zoomTo({or: residues.map(residueSel)});
            viewer.render();
        }

        function centerView() {
            if (viewer) {
                viewer.zoomTo();
                viewer.render();
            }
        }

        document.addEventListener('DOMContentLoaded', initViewer);
    </script>
</body>
</html>
""".replace('BACKGROUND_COLOR', DEFAULT_BACKGROUND_COLOR)


def _residue_js(key: ResidueKey) -> dict:
    return {"chain": key.chain, "resi": key.number, "inscode": key.ins_code}


class ClickBridge(QObject):
    """Bridge object for receiving residue clicks from JavaScript."""

    residue_clicked = pyqtSignal(object)  # ResidueKey

    @pyqtSlot(str)
    def onResidueClicked(self, residue_json: str):
        """Called from JavaScript when an atom is clicked.

        Args:
            residue_json: JSON object with chain, resi and inscode.
        """
        try:
            data = json.loads(residue_json)
            key = ResidueKey(str(data["chain"]), int(data["resi"]), str(data.get("inscode") or ""))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Error parsing residue click: {e}")
            return
        self.residue_clicked.emit(key)


class StructureViewer(QWidget):
    """Widget displaying a structure with residue and interaction highlights.

    Signals:
        structure_loaded: Emitted with the file path after a structure is sent to the view.
        residue_clicked: Emitted with the ResidueKey of a clicked atom.
    """

    structure_loaded = pyqtSignal(str)
    residue_clicked = pyqtSignal(object)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._current_file: str | None = None
        self._current_scheme: ColorScheme = SpectrumScheme()
        self._pending_js: list[str] = []
        self._web_ready = False
        self._init_ui()

    def _init_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        self._header = QLabel("No structure loaded")
        self._header.setStyleSheet("QLabel { padding: 8px; font-weight: bold; }")
        layout.addWidget(self._header)

        self._web_view = QWebEngineView()

        self._click_bridge = ClickBridge()
        self._click_bridge.residue_clicked.connect(self.residue_clicked)
        self._web_channel = QWebChannel()
        self._web_channel.registerObject("pyBridge", self._click_bridge)
        self._web_view.page().setWebChannel(self._web_channel)

        self._web_view.loadFinished.connect(self._on_web_load_finished)
        self._web_view.setHtml(VIEWER_HTML)
        layout.addWidget(self._web_view, 1)

    def _run_js(self, code: str) -> None:
        """Run JavaScript now, or queue it until the page has loaded."""
        if self._web_ready:
            self._web_view.page().runJavaScript(code)
        else:
            self._pending_js.append(code)

    def _on_web_load_finished(self, ok: bool) -> None:
        if not ok:
            logger.error("Viewer page failed to load")
            return
        self._web_ready = True
        pending, self._pending_js = self._pending_js, []
        for code in pending:
            self._web_view.page().runJavaScript(code)

    def load_structure(self, file_path: str) -> None:
        """Send a structure file to the 3D view.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the file format is not supported.
        """
        data = read_structure_file(file_path)
        mol_format = get_file_format(file_path)

        self._run_js(f"loadStructure({json.dumps(data)}, '{mol_format}');")
        self._run_js(f"setBaseStyle({self._current_scheme.get_3dmol_style()});")

        self._header.setText(f"Structure: {Path(file_path).stem}")
        self._current_file = file_path
        self.structure_loaded.emit(file_path)

    def clear(self) -> None:
        """Clear the current structure from the viewer."""
        self._run_js("clearViewer();")
        self._header.setText("No structure loaded")
        self._current_file = None

    def set_color_scheme(self, scheme_name: str, chain_ids: list[str] | None = None) -> None:
        """Set the cartoon color scheme ('spectrum', 'chain' or 'secondary_structure')."""
        try:
            self._current_scheme = get_color_scheme(scheme_name, chain_ids)
        except ValueError as e:
            logger.warning(str(e))
            return
        self._run_js(f"setBaseStyle({self._current_scheme.get_3dmol_style()});")

    def set_residue_states(self, selected, projection: ProximityProjection) -> None:
        """Highlight selected, interacting and nearby residues."""
        selected = set(selected)
        states = {
            "selected": [_residue_js(k) for k in sorted(selected)],
            "has_interaction": [
                _residue_js(k) for k in sorted(projection.has_interaction - selected)
            ],
            "in_proximity": [
                _residue_js(k)
                for k in sorted(projection.in_proximity - projection.has_interaction - selected)
            ],
        }
        self._run_js(
            f"setResidueStates({json.dumps(states)}, {json.dumps(RESIDUE_STATE_COLORS)});"
        )

    def show_interactions(self, result: AnalysisResult) -> None:
        """Draw a dashed cylinder with end spheres for each interaction."""
        items = [
            {
                "start": [float(v) for v in record.coord_a],
                "end": [float(v) for v in record.coord_b],
                "color": get_interaction_color(record.type),
                "label": record.description,
            }
            for record in result.records
        ]
        self._run_js(f"showInteractions({json.dumps(items)});")
        self._run_js(f"zoomToResidues({json.dumps([_residue_js(k) for k in result.residues])});")

    def clear_interactions(self) -> None:
        self._run_js("clearInteractions();")

    def center_view(self) -> None:
        self._run_js("centerView();")

    @property
    def current_file(self) -> str | None:
        return self._current_file
