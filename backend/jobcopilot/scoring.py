import re
from typing import Iterable, Optional, Tuple

SALARY_NUMBER = re.compile(r"\$?([\d,]+)")


def calculate_match_score(title: str, description: str, skills: Iterable[str]) -> float:
    """Percentage of the user's skills that appear in the posting text.

    A skill counts when it occurs anywhere in title + description as a
    case-insensitive substring. Always within [0, 100]; 0 for no skills.
    """
    skills = [skill for skill in skills if skill]
    content = f"{title or ''} {description or ''}".lower()

    matches = sum(1 for skill in skills if skill.lower() in content)
    return min(100.0, (matches / max(len(skills), 1)) * 100)


def _parse_amount(text: str) -> Optional[int]:
    match = SALARY_NUMBER.search(text)
    if not match:
        return None
    digits = match.group(1).replace(",", "")
    return int(digits) if digits else None


def extract_salary_range(salary: Optional[str]) -> Tuple[Optional[int], Optional[int]]:
    """Split a salary string like "$120,000 - $160,000" into (min, max).

    The maximum is only read from the part after a dash.
    """
    if not salary:
        return None, None

    salary_min = _parse_amount(salary)
    parts = salary.split("-")
    salary_max = _parse_amount(parts[1]) if len(parts) > 1 else None
    return salary_min, salary_max
