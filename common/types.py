"""Shared data type definitions (DirectoryRecord, SubLocation)."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from common.identifiers import normalize


@dataclass(frozen=True)
class SubLocation:
    """
    One named channel of a subject (e.g. "Theory").
    """
    name: str
    location: int
    share_link: Optional[str] = None


@dataclass(frozen=True)
class DirectoryRecord:
    """
    Mapping from one subject to its main channel and its category channels.

    The JSON form keeps the field names used by the web client
    (subject, mainChannelId, subChannels[name, id, inviteLink]).
    """
    subject: str
    main_location: int
    sub_locations: List[SubLocation] = field(default_factory=list)

    def normalized(self) -> "DirectoryRecord":
        return DirectoryRecord(
            subject=self.subject,
            main_location=normalize(self.main_location),
            sub_locations=[
                SubLocation(name=sub.name, location=normalize(sub.location), share_link=sub.share_link)
                for sub in self.sub_locations
            ],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject": self.subject,
            "mainChannelId": self.main_location,
            "subChannels": [
                {"name": sub.name, "id": sub.location, "inviteLink": sub.share_link}
                for sub in self.sub_locations
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DirectoryRecord":
        """
        Build a record from its JSON form.

        Raises:
            KeyError, TypeError, ValueError: If the payload is malformed
        """
        subject = data["subject"]
        if not isinstance(subject, str) or not subject:
            raise ValueError(f"Invalid subject: {subject!r}")

        return cls(
            subject=subject,
            main_location=int(data["mainChannelId"]),
            sub_locations=[
                SubLocation(
                    name=str(sub["name"]),
                    location=int(sub["id"]),
                    share_link=sub.get("inviteLink"),
                )
                for sub in data.get("subChannels", [])
            ],
        )
