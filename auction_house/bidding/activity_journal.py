"""
Append-only journal of auction activities.

Uses JSONL (JSON Lines) format where each line is one Activity. The journal
is an optional side log: the in-memory store keeps only the most recent
activities, while the journal keeps every one written during a session.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import pandas as pd

from .models import Activity

logger = logging.getLogger(__name__)


class ActivityJournal:
    """Append-only JSONL log of activities."""

    def __init__(self, filepath: Path):
        """
        Initialize journal.

        Args:
            filepath: Path to JSONL file for activity storage
        """
        self.filepath = Path(filepath)
        self.filepath.parent.mkdir(parents=True, exist_ok=True)

    def append_activity(self, activity: Activity) -> None:
        """Append a single activity as one line of JSON."""
        with open(self.filepath, 'a', encoding='utf-8') as f:
            f.write(activity.to_json() + '\n')
        logger.debug(f"Journaled {activity.activity_id}: {activity.message}")

    def load_all(self) -> List[Activity]:
        """
        Load every journaled activity in the order written.

        Returns empty list if file doesn't exist.
        """
        if not self.filepath.exists():
            logger.debug(f"Journal file does not exist: {self.filepath}")
            return []

        activities = []
        with open(self.filepath, 'r', encoding='utf-8') as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue

                try:
                    activities.append(Activity.from_json(line))
                except (json.JSONDecodeError, KeyError, ValueError) as e:
                    logger.error(
                        f"Failed to parse activity at line {line_num}: {e}\n"
                        f"Line content: {line}"
                    )
                    # Continue processing remaining lines

        logger.info(f"Loaded {len(activities)} activities from {self.filepath}")
        return activities

    def get_count(self) -> int:
        """Number of journaled activities, without parsing them."""
        if not self.filepath.exists():
            return 0

        with open(self.filepath, 'r', encoding='utf-8') as f:
            return sum(1 for line in f if line.strip())

    def export_to_csv(self, output_path: Path) -> None:
        """
        Export the journal to CSV for analysis.

        Args:
            output_path: Path for CSV output file
        """
        activities = self.load_all()
        if not activities:
            logger.warning("No activities to export")
            return

        df = pd.DataFrame([a.to_dict() for a in activities])
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(output_path, index=False)

        logger.info(f"Exported {len(df)} activities to {output_path}")


def create_session_filepath(base_dir: Path, session_id: Optional[str] = None) -> Path:
    """
    Generate a filepath for an auction session journal.

    Args:
        base_dir: Base directory for journals
        session_id: Optional session identifier (uses timestamp if None)
    """
    if session_id is None:
        session_id = datetime.now().strftime('%Y%m%d_%H%M%S')

    return Path(base_dir) / f"auction_{session_id}.jsonl"
