"""
Skill keyword catalog and the frequency counting built on it.
"""
import re
from typing import Dict, Iterable, List, Optional

from .schemas import SkillCluster

DEFAULT_SKILL_THEMES: Dict[str, List[str]] = {
    "Java Core": ["java", "jvm", "jar", "maven", "gradle"],
    "Spring Framework": ["spring", "spring-boot", "spring-data", "spring-cloud", "spring-security"],
    "Microservices": ["microservices", "spring-cloud", "docker", "kubernetes", "service-mesh"],
    "Cloud": ["aws", "gcp", "azure", "cloud", "ec2", "s3", "lambda", "rds"],
    "System Design": ["system design", "scalability", "distributed systems", "architecture", "design patterns"],
    "Testing": ["junit", "mockito", "testng", "testing", "unit test", "integration test", "test-driven development"],
    "Databases": ["sql", "postgresql", "mysql", "mongodb", "cassandra", "redis", "database"],
    "DevOps & CI/CD": ["docker", "kubernetes", "jenkins", "gitlab-ci", "github-actions", "devops", "ci/cd"],
    "Frontend": ["react", "angular", "vue", "javascript", "typescript", "html", "css"],
    "Soft Skills": ["communication", "leadership", "collaboration", "problem-solving", "analytical"],
}

# Languages and tools outside the themed catalog, matched without word boundaries
DEFAULT_EXTRA_PATTERNS: List[str] = [
    r"(\w+\.js|node\.js|nodejs)",
    r"(python|golang|rust|c\+\+|c#|kotlin)",
    r"(apache|nginx|tomcat)",
    r"(git|svn|mercurial)",
]

DEFAULT_RELATED_ROLES: Dict[str, List[str]] = {
    "Java Core": ["Software Engineer", "Backend Developer", "Senior Engineer"],
    "Spring Framework": ["Backend Engineer", "Spring Boot Developer", "Java Architect"],
    "Microservices": ["Microservices Architect", "Cloud Engineer", "DevOps Engineer"],
    "Cloud": ["Cloud Architect", "DevOps Engineer", "Infrastructure Engineer"],
    "System Design": ["Senior Engineer", "Architect", "Tech Lead"],
    "Testing": ["QA Engineer", "Test Automation Engineer", "Quality Assurance Lead"],
    "Databases": ["Database Administrator", "Data Engineer", "Backend Developer"],
    "DevOps & CI/CD": ["DevOps Engineer", "CI/CD Engineer", "Release Manager"],
    "Frontend": ["Frontend Engineer", "React Developer", "UI/UX Developer"],
    "Soft Skills": ["Team Lead", "Engineering Manager", "Technical Manager"],
}


class SkillCatalog:
    """Themed skill keywords plus free-form patterns."""

    def __init__(
        self,
        themes: Dict[str, List[str]],
        extra_patterns: Optional[List[str]] = None,
        related_roles: Optional[Dict[str, List[str]]] = None,
    ):
        self.themes = themes
        self.related_roles = related_roles or {}
        self._keyword_patterns = {
            keyword: re.compile(rf"\b{re.escape(keyword)}\b", re.IGNORECASE)
            for keywords in themes.values()
            for keyword in keywords
        }
        self._extra_patterns = [re.compile(p, re.IGNORECASE) for p in (extra_patterns or [])]

    def count_skills(self, descriptions: Iterable[str]) -> Dict[str, int]:
        """Total occurrences of each skill across all descriptions.

        Skills that never occur are left out of the result.
        """
        frequency: Dict[str, int] = {}

        for description in descriptions:
            content = (description or "").lower()

            for keyword, pattern in self._keyword_patterns.items():
                matches = pattern.findall(content)
                if matches:
                    frequency[keyword] = frequency.get(keyword, 0) + len(matches)

            for pattern in self._extra_patterns:
                for match in pattern.findall(content):
                    skill = match.lower()
                    frequency[skill] = frequency.get(skill, 0) + 1

        return frequency

    def categorize(self, skill: str) -> Optional[str]:
        """First theme with a keyword containing, or contained in, the skill."""
        skill_lower = skill.lower()
        for theme, keywords in self.themes.items():
            if any(keyword in skill_lower or skill_lower in keyword for keyword in keywords):
                return theme
        return None

    def cluster(self, frequency: Dict[str, int]) -> List[SkillCluster]:
        clusters = []

        for theme, keywords in self.themes.items():
            theme_skills: Dict[str, int] = {}
            total = 0
            hits = 0
            for keyword in keywords:
                for skill, count in frequency.items():
                    skill_lower = skill.lower()
                    # a skill matching several keywords of one theme weighs once per keyword
                    if keyword in skill_lower or skill_lower in keyword:
                        theme_skills[skill] = count
                        total += count
                        hits += 1

            if hits:
                clusters.append(
                    SkillCluster(
                        theme=theme,
                        skills=theme_skills,
                        average_frequency=total / hits,
                        related_roles=self.related_roles.get(theme, []),
                    )
                )

        return sorted(clusters, key=lambda c: c.average_frequency, reverse=True)


DEFAULT_SKILL_CATALOG = SkillCatalog(DEFAULT_SKILL_THEMES, DEFAULT_EXTRA_PATTERNS, DEFAULT_RELATED_ROLES)


def count_skills(descriptions: Iterable[str], catalog: SkillCatalog = DEFAULT_SKILL_CATALOG) -> Dict[str, int]:
    return catalog.count_skills(descriptions)


def categorize_skill(skill: str, catalog: SkillCatalog = DEFAULT_SKILL_CATALOG) -> Optional[str]:
    return catalog.categorize(skill)


def cluster_skills(frequency: Dict[str, int], catalog: SkillCatalog = DEFAULT_SKILL_CATALOG) -> List[SkillCluster]:
    return catalog.cluster(frequency)
