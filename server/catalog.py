"""Static subject -> category -> channel catalog.

The built-in catalog lists the channels provisioned for the current
semester. A JSON file with the same shape (optionally with "links") can
replace it through NOTES_CATALOG_PATH:

    {"Math": {"Main": -100, "Theory": -101, "links": {"Theory": "https://t.me/+abc"}}}
"""

import json
from pathlib import Path
from typing import Dict, List, Optional

from common.constants import MAIN_CATEGORY, PUBLIC_CATEGORY
from common.identifiers import canonical_location
from common.logging_config import get_logger
from common.types import DirectoryRecord, SubLocation
from server import config

logger = get_logger(__name__)


DEFAULT_CATALOG: Dict[str, Dict[str, int]] = {
    "Advanced Java": {
        "Main": -1002392486470,
        "Theory": -1002390876365,
        "Practical": -1002254568649,
        "Public": -1002829954272,
    },
    "Data Analytics with Python": {
        "Main": -1002428431170,
        "Theory": -1002355222084,
        "Practical": -1002301366458,
        "Public": -1002893139466,
    },
    "Human Computer Interface": {
        "Main": -1002274201455,
        "Theory": -1002428841710,
        "Practical": -1002462133059,
        "Public": -1002589895149,
    },
    "Mobile Application Development": {
        "Main": -1002390629719,
        "Theory": -1002313593362,
        "Practical": -1002453803465,
        "Public": -1002745625135,
    },
    "Probability Statistics": {
        "Main": -1002277439553,
        "Theory": -1002466989253,
        "Practical": -1002260169268,
        "Public": -1002720939522,
    },
    "Software Engineering": {
        "Main": -1002342125939,
        "Theory": -1002345923267,
        "Practical": -1002449513822,
        "Public": -1002810729508,
    },
}


class SubjectCatalog:
    """
    Read-only lookup of the channels backing each (subject, category).
    All ids are held in canonical negative form.
    """

    def __init__(
        self,
        channels: Dict[str, Dict[str, int]],
        links: Optional[Dict[str, Dict[str, str]]] = None,
    ):
        self._channels: Dict[str, Dict[str, int]] = {
            subject: {category: canonical_location(location) for category, location in categories.items()}
            for subject, categories in channels.items()
        }
        self._links = links or {}

    @classmethod
    def from_file(cls, path: Path) -> "SubjectCatalog":
        with open(path, 'r') as f:
            data = json.load(f)

        channels = {}
        links = {}
        for subject, categories in data.items():
            categories = dict(categories)
            links[subject] = categories.pop("links", {})
            channels[subject] = categories

        logger.info(f"Loaded subject catalog from {path} ({len(channels)} subjects)")
        return cls(channels, links)

    def has_subject(self, subject: str) -> bool:
        return subject in self._channels

    def subjects(self) -> List[str]:
        return list(self._channels.keys())

    def categories(self, subject: str) -> List[str]:
        return list(self._channels.get(subject, {}).keys())

    def location(self, subject: str, category: str) -> Optional[int]:
        return self._channels.get(subject, {}).get(category)

    def share_link(self, subject: str, category: str) -> Optional[str]:
        return self._links.get(subject, {}).get(category)

    def public_locations(self, subject: Optional[str] = None) -> Dict[str, int]:
        """Public channel per subject, optionally restricted to one subject."""
        subjects = [subject] if subject else self.subjects()
        result = {}
        for name in subjects:
            location = self.location(name, PUBLIC_CATEGORY)
            if location is None:
                logger.warning(f"No public channel configured for subject: {name}")
                continue
            result[name] = location
        return result

    def directory_record(self, subject: str, categories: List[str]) -> Optional[DirectoryRecord]:
        """
        Build the directory record for the given subscribed categories of a subject.
        """
        main = self.location(subject, MAIN_CATEGORY)
        if main is None:
            return None

        sub_locations = [
            SubLocation(
                name=f"{subject}-{category}",
                location=self.location(subject, category),
                share_link=self.share_link(subject, category),
            )
            for category in categories
            if category != MAIN_CATEGORY and self.location(subject, category) is not None
        ]
        return DirectoryRecord(subject=subject, main_location=main, sub_locations=sub_locations)


def load_catalog() -> SubjectCatalog:
    if config.CATALOG_PATH:
        return SubjectCatalog.from_file(Path(config.CATALOG_PATH))
    return SubjectCatalog(DEFAULT_CATALOG)
