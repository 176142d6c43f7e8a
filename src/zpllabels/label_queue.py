"""
Pending label queue.

Keeps committed labels in display order and persists them as JSON so the
queue survives between CLI invocations.
"""

import json
import logging
from pathlib import Path
from typing import Iterator, Optional

from .label import LabelDraft, LabelError, QueuedLabel

logger = logging.getLogger(__name__)

# Config directory location
CONFIG_DIR = Path.home() / ".config" / "zpl-labels"
QUEUE_FILE = CONFIG_DIR / "queue.json"


class LabelQueue:
    """Ordered collection of queued labels, keyed by id."""

    def __init__(self, labels: tuple = (), path: Optional[Path] = None):
        """
        Args:
            labels: Initial labels, in display order
            path: File used by save(); None keeps the queue in memory only
        """
        self._labels: list[QueuedLabel] = []
        self.path = path
        for label in labels:
            self.add(label)

    def __len__(self) -> int:
        return len(self._labels)

    def __iter__(self) -> Iterator[QueuedLabel]:
        return iter(tuple(self._labels))

    def __contains__(self, label_id: object) -> bool:
        return any(label.id == label_id for label in self._labels)

    @property
    def labels(self) -> tuple[QueuedLabel, ...]:
        """Snapshot of the queue in display order."""
        return tuple(self._labels)

    def get(self, label_id: str) -> QueuedLabel:
        """
        Raises:
            KeyError: If no label has this id
        """
        for label in self._labels:
            if label.id == label_id:
                return label
        raise KeyError(label_id)

    def add(self, label: QueuedLabel) -> QueuedLabel:
        """
        Append a committed label.

        Raises:
            LabelError: If a label with the same id is already queued
        """
        if not isinstance(label, QueuedLabel):
            raise LabelError("Only committed labels can be queued; call commit() first")
        if label.id in self:
            raise LabelError(f"Label {label.id} is already queued")
        self._labels.append(label)
        return label

    def remove(self, label_id: str) -> QueuedLabel:
        """
        Remove one label by id. Other labels are left untouched.

        Raises:
            KeyError: If no label has this id
        """
        label = self.get(label_id)
        self._labels = [item for item in self._labels if item.id != label_id]
        return label

    def edit(self, label_id: str) -> LabelDraft:
        """Take a label out of the queue and return its content as a draft."""
        return self.remove(label_id).to_draft()

    def clear(self):
        """Remove all labels."""
        self._labels.clear()

    # ---- Persistence ----

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "LabelQueue":
        """
        Load a queue from a JSON file (default QUEUE_FILE).

        A missing file gives an empty queue. A corrupt file is logged and
        treated as empty as well.
        """
        path = Path(path) if path is not None else QUEUE_FILE
        if not path.exists():
            return cls(path=path)

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            labels = tuple(QueuedLabel.from_dict(item) for item in data["labels"])
            return cls(labels, path=path)
        except (OSError, json.JSONDecodeError, KeyError, TypeError, LabelError) as e:
            logger.warning("Failed to load queue from %s: %s", path, e)
            return cls(path=path)

    def save(self, path: Optional[Path] = None):
        """
        Write the queue to JSON, creating the directory if needed.

        Raises:
            ValueError: If the queue has no path and none is given
        """
        path = Path(path) if path is not None else self.path
        if path is None:
            raise ValueError("No queue file configured")

        path.parent.mkdir(parents=True, exist_ok=True)
        data = {"labels": [label.to_dict() for label in self._labels]}
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        self.path = path
