"""File handling utilities for structure files."""

from pathlib import Path

from residuescope.config.settings import SUPPORTED_FORMATS, MAX_FILE_SIZE_WARNING


def validate_file_path(file_path: str | Path) -> bool:
    """Check that a path points to an existing regular file."""
    file_path = Path(file_path)
    return file_path.exists() and file_path.is_file()


def get_file_format(file_path: str | Path) -> str:
    """Map a file extension to the parser format name.

    Args:
        file_path: Path to the file.

    Returns:
        ``"pdb"`` or ``"cif"``.

    Raises:
        ValueError: If the extension is not supported.
    """
    extension = Path(file_path).suffix.lower()
    try:
        return SUPPORTED_FORMATS[extension]
    except KeyError:
        raise ValueError(
            f"Unsupported file format: {extension or '(none)'}. "
            f"Supported formats: {', '.join(SUPPORTED_FORMATS)}"
        ) from None


def file_dialog_filter() -> str:
    """Name filter string for Qt file dialogs."""
    patterns = " ".join(f"*{ext}" for ext in SUPPORTED_FORMATS)
    return f"Structure files ({patterns});;All files (*)"


def read_structure_file(file_path: str | Path) -> str:
    """Read the text of a structure file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file format is not supported.
    """
    file_path = Path(file_path)

    if not validate_file_path(file_path):
        raise FileNotFoundError(f"File not found: {file_path}")
    get_file_format(file_path)

    with open(file_path, "r", encoding="utf-8") as f:
        return f.read()


def get_file_size(file_path: str | Path) -> int:
    return Path(file_path).stat().st_size


def is_file_too_large(file_path: str | Path) -> bool:
    """Check whether a file exceeds MAX_FILE_SIZE_WARNING bytes."""
    return get_file_size(file_path) > MAX_FILE_SIZE_WARNING
