from __future__ import annotations

from pathlib import Path
from typing import Dict, Tuple, Union

from .errors import SetupError


PathLike = Union[str, Path]


def load_labels(labels_path: PathLike) -> Tuple[str, ...]:
    """
    Load the label table. Index in the returned tuple is the model's class index.

    Two formats are understood:

    - plain text, one class name per line (reading stops at the first empty
      line, the way TFLite label files are usually written)
    - `.yaml`/`.yml` with an Ultralytics-style `names:` mapping:

        names:
          0: person
          1: bicycle

    This function intentionally avoids adding a PyYAML dependency.
    """

    path = Path(labels_path)
    if not path.exists():
        raise SetupError(f"Label file not found: {path}")

    if path.suffix.lower() in {".yaml", ".yml"}:
        labels = _labels_from_names_mapping(path)
    else:
        labels = _labels_from_lines(path)

    if not labels:
        raise SetupError(f"Label file is empty: {path}")
    return labels


def _labels_from_lines(path: Path) -> Tuple[str, ...]:
    labels = []
    with open(path, "r", encoding="utf-8") as f:
        for raw in f:
            line = raw.strip()
            if not line:
                break
            labels.append(line)
    return tuple(labels)


def _labels_from_names_mapping(path: Path) -> Tuple[str, ...]:
    names: Dict[int, str] = {}
    in_names = False

    with open(path, "r", encoding="utf-8") as f:
        for raw in f:
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            if line == "names:":
                in_names = True
                continue
            if not in_names:
                continue

            # Parse "id: label"
            if ":" not in line:
                continue
            left, right = line.split(":", 1)
            left = left.strip()
            if not left.isdigit():
                # Next top-level key ends the mapping.
                if not raw[:1].isspace():
                    break
                continue
            names[int(left)] = right.strip().strip("'").strip('"')

    if sorted(names) != list(range(len(names))):
        raise SetupError(f"Class ids in {path} must be contiguous from 0 (got {sorted(names)}).")
    return tuple(names[i] for i in range(len(names)))
