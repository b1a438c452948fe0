import glob
import logging
import os
from typing import Any, Dict, List, Optional

import pandas as pd

logger = logging.getLogger(__name__)

# Menu order and labels of the learning screens.
TOPIC_NAMES: Dict[str, str] = {
    "alphabet": "Alphabet",
    "number_spellings": "Number Spelling",
    "two_letter_words": "Two Letter Words",
    "three_letter_words": "Three Letter Words",
    "shapes": "Shapes",
    "stories": "Stories",
    "poems": "Poetry",
}


# --- Service Layer: Content Catalog ---
class ContentCatalog:
    """Read-only learning content, one CSV file per topic.

    Files are read on first use, or up front when ``load_all`` is called
    at startup.
    """

    def __init__(self, directory: str):
        self.directory = directory
        self._topics: Optional[Dict[str, List[Dict[str, Any]]]] = None

    @property
    def topics(self) -> Dict[str, List[Dict[str, Any]]]:
        if self._topics is None:
            self.load_all()
        return self._topics

    def load_all(self):
        self._topics = {}
        if not os.path.isdir(self.directory):
            logger.warning(f"Content directory {self.directory} not found.")
            return

        for file_path in sorted(glob.glob(os.path.join(self.directory, "*.csv"))):
            topic = os.path.splitext(os.path.basename(file_path))[0]
            try:
                df = pd.read_csv(file_path, encoding="utf-8", keep_default_na=False)
            except (OSError, pd.errors.ParserError) as e:
                logger.error(f"Failed to load {file_path}: {e}")
                continue
            if df.empty:
                logger.error(f"Skipping {topic}: no rows.")
                continue
            self._topics[topic] = df.to_dict("records")
        logger.info(f"Content catalog ready: {len(self._topics)} topics")

    def get_items(self, topic: str) -> List[Dict[str, Any]]:
        return self.topics.get(topic, [])

    def get_topics(self) -> List[Dict[str, Any]]:
        known = [t for t in TOPIC_NAMES if t in self.topics]
        extra = sorted(t for t in self.topics if t not in TOPIC_NAMES)
        return [
            {
                "id": topic,
                "name": TOPIC_NAMES.get(topic, topic.replace("_", " ").capitalize()),
                "count": len(self.topics[topic]),
            }
            for topic in known + extra
        ]
