"""
Rule-based classification of job-related emails.
"""
import re
from typing import Dict, List, Optional, Pattern

from .schemas import EmailEventType

# Families are checked in this order and the first family with a match wins,
# so an email that reads like both an offer and a rejection is an OFFER.
EVENT_PRIORITY = [
    EmailEventType.OFFER,
    EmailEventType.REJECTION,
    EmailEventType.INTERVIEW_SCHEDULED,
    EmailEventType.OA_SENT,
    EmailEventType.APPLICATION_RECEIVED,
    EmailEventType.FEEDBACK,
]

DEFAULT_EMAIL_PATTERNS: Dict[EmailEventType, List[str]] = {
    EmailEventType.APPLICATION_RECEIVED: [
        r"confirmation.*receipt|received.*application|application.*confirm",
        r"thanks.*applying|thank you for your interest|application.*submitted",
    ],
    EmailEventType.INTERVIEW_SCHEDULED: [
        r"interview.*scheduled|schedule.*interview|interview.*today|interview.*tomorrow",
        r"meeting.*set|call.*scheduled|let's talk|technical round",
    ],
    EmailEventType.OFFER: [
        r"offer|congratul|excited to extend|we're pleased|we'd like to offer",
        r"joining.*team|start date|compensation",
    ],
    EmailEventType.REJECTION: [
        r"reject|unfortunately|not move forward|decline|passing|don't go forward",
        r"selected other candidates|pursued other candidates|other applicants",
    ],
    EmailEventType.OA_SENT: [
        # bare "oa" is a substring match, so "onboarding" or "road" also hit
        r"coding challenge|assignment|take-home|assessment|oa|online assessment",
        r"test.*available|complete.*test|problem.*solve",
    ],
    EmailEventType.FEEDBACK: [
        r"feedback|next round|advance|interview feedback|consideration",
    ],
}


class EmailClassifier:
    """Buckets an email into one event type using ordered regex families."""

    def __init__(self, patterns: Optional[Dict[EmailEventType, List[str]]] = None):
        """
        Args:
            patterns: Event type -> list of regex strings. Defaults to
                DEFAULT_EMAIL_PATTERNS. Families absent from the mapping are
                never returned.
        """
        catalog = DEFAULT_EMAIL_PATTERNS if patterns is None else patterns
        self._families: List[tuple] = []
        for event_type in EVENT_PRIORITY:
            compiled: List[Pattern] = [re.compile(p, re.IGNORECASE) for p in catalog.get(event_type, [])]
            if compiled:
                self._families.append((event_type, compiled))

    def classify(self, subject: str, body: str) -> EmailEventType:
        content = f"{subject or ''} {body or ''}".lower()

        for event_type, family in self._families:
            if any(pattern.search(content) for pattern in family):
                return event_type

        return EmailEventType.UNKNOWN
