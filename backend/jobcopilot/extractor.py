import re
from typing import NamedTuple, Optional

COMPANY_PATTERN = re.compile(
    r"(?:from|at|with)\s+([A-Z][A-Za-z\s&.,-]+?)(?:\s+(?:for|role|position|job|–|-|:)|\s*$)",
    re.IGNORECASE,
)
ROLE_PATTERN = re.compile(
    r"(?:for|role|position|job)\s+([A-Za-z\s]+?)(?:\s+(?:at|from|role|position)|\s*$)",
    re.IGNORECASE,
)


class ExtractedFields(NamedTuple):
    company: Optional[str]
    role: Optional[str]


def extract_company_and_role(subject: str) -> ExtractedFields:
    """Pull company and role out of an email subject line.

    Only the subject is used. Missing values come back as None, never as an
    empty string; a missing company means the email cannot be matched.
    """
    subject = subject or ""

    company_match = COMPANY_PATTERN.search(subject)
    company = company_match.group(1).strip() if company_match else None

    role_match = ROLE_PATTERN.search(subject)
    role = role_match.group(1).strip() if role_match else None

    return ExtractedFields(company=company or None, role=role or None)
