"""
Models for the outcome of an update run.
"""
from typing import Dict, List, Optional
from enum import Enum
from pydantic import BaseModel
from .policy import Mode


class SkipReason(str, Enum):
    """
    Why an image kept its current tag.
    """
    UNRECOGNIZED = "unrecognized"
    PINNED = "pinned"
    MAJOR_UPGRADE = "major_upgrade"
    LOOKUP_FAILED = "lookup_failed"


class SkippedUpgrade(BaseModel):
    """
    A major-version upgrade that was found but not applied.
    """
    repository: str
    current_tag: str
    candidate_tag: str

    def __str__(self) -> str:
        return f"{self.current_tag} → {self.candidate_tag} (requires manual migration)"


class Resolution(BaseModel):
    """
    Result of resolving one image against its policy.
    """
    tag: str
    reason: Optional[SkipReason] = None
    skipped_upgrade: Optional[SkippedUpgrade] = None


class ReportEntry(BaseModel):
    """
    One line of the final report.
    """
    image: str
    old_tag: str
    new_tag: str
    applied: bool = False
    reason: Optional[SkipReason] = None

    @property
    def changed(self) -> bool:
        return self.old_tag != self.new_tag


# old `repo:tag` -> new `repo:tag`
UpdatePlan = Dict[str, str]


class RunReport(BaseModel):
    """
    Everything a single run did, in the order images were first seen.
    """
    mode: Mode
    compose_file: str
    backup_path: Optional[str] = None
    entries: List[ReportEntry] = []
    skipped_upgrades: List[SkippedUpgrade] = []

    @property
    def updated(self) -> List[ReportEntry]:
        return [e for e in self.entries if e.applied]

    @property
    def updated_count(self) -> int:
        return len(self.updated)

    @property
    def unrecognized(self) -> List[ReportEntry]:
        return [e for e in self.entries if e.reason == SkipReason.UNRECOGNIZED]
