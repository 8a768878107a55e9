"""Color definitions for structure and interaction rendering."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from residuescope.models.interactions import InteractionType

# Chain colors (for multi-chain structures)
CHAIN_COLORS = [
    "#1f77b4",  # blue
    "#ff7f0e",  # orange
    "#2ca02c",  # green
    "#d62728",  # red
    "#9467bd",  # purple
    "#8c564b",  # brown
    "#e377c2",  # pink
    "#7f7f7f",  # gray
    "#bcbd22",  # olive
    "#17becf",  # cyan
]

# Secondary structure colors (matching 3Dmol.js ssJmol scheme)
SECONDARY_STRUCTURE_COLORS = {
    "helix": "#ff0080",
    "sheet": "#ffc800",
    "coil": "#ffffff",
}

# Keyed by InteractionType.color_class
INTERACTION_COLORS = {
    "hydrogen-bond": "#1e90ff",
    "salt-bridge": "#ff4500",
    "ionic": "#9932cc",
    "disulfide": "#daa520",
}

DEFAULT_INTERACTION_COLOR = "#808080"

RESIDUE_STATE_COLORS = {
    "selected": "#00c853",
    "has_interaction": "#ffab00",
    "in_proximity": "#80d8ff",
    "disabled": "#9e9e9e",
}


@dataclass
class ColorLegendItem:
    """Single item in a color legend."""
    label: str
    color: str


def get_interaction_color(kind: InteractionType | str) -> str:
    """Look up the display color for an interaction type or color class."""
    color_class = kind.color_class if isinstance(kind, InteractionType) else str(kind)
    return INTERACTION_COLORS.get(color_class, DEFAULT_INTERACTION_COLOR)


def get_interaction_legend() -> list[ColorLegendItem]:
    """Legend entries for every interaction type, in classification order."""
    return [ColorLegendItem(kind.value, get_interaction_color(kind)) for kind in InteractionType]


class ColorScheme(ABC):
    """Base cartoon coloring for the loaded structure."""

    name: str = "base"
    description: str = "Base color scheme"

    @abstractmethod
    def get_3dmol_style(self) -> str:
        """Get the 3Dmol.js style as a JavaScript literal."""

    @abstractmethod
    def get_legend(self) -> list[ColorLegendItem]:
        pass


class SpectrumScheme(ColorScheme):
    """Rainbow coloring from N-terminus to C-terminus."""

    name = "spectrum"
    description = "Rainbow gradient (N→C terminus)"

    def get_3dmol_style(self) -> str:
        return "{cartoon: {color: 'spectrum'}}"

    def get_legend(self) -> list[ColorLegendItem]:
        return [
            ColorLegendItem("N-terminus", "#0000ff"),
            ColorLegendItem("Middle", "#00ff00"),
            ColorLegendItem("C-terminus", "#ff0000"),
        ]


class ChainScheme(ColorScheme):
    """Different color for each chain."""

    name = "chain"
    description = "Color by chain"

    def __init__(self, chain_ids: list[str] | None = None):
        self._chain_ids = chain_ids

    def get_3dmol_style(self) -> str:
        return "{cartoon: {colorscheme: 'chain'}}"

    def get_legend(self) -> list[ColorLegendItem]:
        if self._chain_ids:
            return [
                ColorLegendItem(f"Chain {cid}", CHAIN_COLORS[i % len(CHAIN_COLORS)])
                for i, cid in enumerate(self._chain_ids)
            ]
        return [
            ColorLegendItem(f"Chain {i+1}", color)
            for i, color in enumerate(CHAIN_COLORS[:6])
        ]


class SecondaryStructureScheme(ColorScheme):
    """Color by secondary structure type."""

    name = "secondary_structure"
    description = "Color by secondary structure"

    def get_3dmol_style(self) -> str:
        return "{cartoon: {colorscheme: 'ssJmol'}}"

    def get_legend(self) -> list[ColorLegendItem]:
        return [
            ColorLegendItem("Helix (α)", SECONDARY_STRUCTURE_COLORS["helix"]),
            ColorLegendItem("Sheet (β)", SECONDARY_STRUCTURE_COLORS["sheet"]),
            ColorLegendItem("Coil", SECONDARY_STRUCTURE_COLORS["coil"]),
        ]


COLOR_SCHEMES: dict[str, type[ColorScheme]] = {
    "spectrum": SpectrumScheme,
    "chain": ChainScheme,
    "secondary_structure": SecondaryStructureScheme,
}


def get_color_scheme(name: str, chain_ids: list[str] | None = None) -> ColorScheme:
    """Get a color scheme instance by name.

    Args:
        name: Color scheme name.
        chain_ids: Optional chain IDs for the chain scheme legend.

    Returns:
        ColorScheme instance.

    Raises:
        ValueError: If the scheme name is not recognized.
    """
    if name not in COLOR_SCHEMES:
        raise ValueError(f"Unknown color scheme: {name}. Available: {list(COLOR_SCHEMES.keys())}")

    if name == "chain":
        return ChainScheme(chain_ids=chain_ids)
    return COLOR_SCHEMES[name]()


def get_available_schemes() -> list[str]:
    return list(COLOR_SCHEMES.keys())
