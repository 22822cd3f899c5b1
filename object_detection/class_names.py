"""
Class name table for the detection system.

Responsibility:
    Load the ordered list of class names (one per line, e.g. coco.names)
    once at startup and map class ids to names.

Failure behavior:
    - A missing file raises FileNotFoundError; an empty one raises
      ValueError. Both are startup failures.
    - A class id outside the table raises IndexError. The network and
      the name table disagree, which is a configuration error, so the
      label is never silently left blank.
"""

import logging
from typing import Iterable, Optional, Sequence, Tuple

from object_detection.config import resolve_path
from object_detection.detection import Detection

logger = logging.getLogger(__name__)


def load_class_names(path: Optional[str]) -> Tuple[str, ...]:
    """Read class names from a text file, one name per line.

    Args:
        path: Path to the names file (relative to project root), or None
              to run without class names.

    Returns:
        Tuple of names indexed by class id. Empty if ``path`` is None.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file contains no names.
    """
    if path is None:
        logger.info("No class names configured; labels will show confidence only.")
        return ()

    resolved = resolve_path(path)
    if not resolved.is_file():
        raise FileNotFoundError(
            f"Class names file not found.\n"
            f"  Expected: {resolved}\n"
            f"  Provide the file or update 'model.class_names_path' in your config."
        )

    with open(resolved, "r", encoding="utf-8") as f:
        names = tuple(f.read().splitlines())

    if not names:
        raise ValueError(f"Class names file is empty: {resolved}")

    logger.info("Loaded %d class names from %s", len(names), resolved)
    return names


def class_name_for(class_id: int, class_names: Sequence[str]) -> str:
    """Look up the name for a class id.

    Raises:
        IndexError: If class_id is outside the table.
    """
    if not 0 <= class_id < len(class_names):
        raise IndexError(
            f"Class id {class_id} is out of range for a table of "
            f"{len(class_names)} class names. Check that 'model.class_names_path' "
            f"matches the loaded network."
        )
    return class_names[class_id]


def check_class_ids(detections: Iterable[Detection], class_names: Sequence[str]) -> None:
    """Fail if any detection's class id is outside a configured name table.

    Without a name table there is nothing to check against.

    Raises:
        IndexError: On the first out-of-range class id.
    """
    if not class_names:
        return
    for det in detections:
        class_name_for(det.class_id, class_names)
