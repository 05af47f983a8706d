"""
Learning planner agent: turns trending skills and repeated rejections into
learning tasks and interview prep packs.

Cannot apply to jobs or change application statuses.
"""
import logging
from collections import OrderedDict
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Set, Tuple

from sqlalchemy.orm import Session

from ..models import utcnow
from ..schemas import (
    ApplicationRecord,
    ApplicationStatus,
    AuditStatus,
    InterviewPrepPack,
    LearningPlanItem,
    LearningPlanResult,
    Priority,
    SkillDemandRecord,
)
from ..store import AgentCapability, Store

logger = logging.getLogger(__name__)

INTERVIEW_QUESTIONS: Dict[str, List[str]] = {
    "System Design": [
        "Design a URL shortening service like bit.ly",
        "Design a chat messaging system",
        "Design an e-commerce platform",
        "Design a social media feed",
        "Design a distributed cache",
    ],
    "Behavioral/Soft Skills": [
        "Tell me about a time you handled conflict with a teammate",
        "Describe a situation where you had to learn something new quickly",
        "Tell me about your greatest achievement",
        "How do you handle failure?",
        "Describe your approach to solving a difficult problem",
    ],
    "Data Structures & Algorithms": [
        "Implement a binary search tree",
        "Solve the longest substring without repeating characters",
        "Design a LRU cache",
        "Merge K sorted lists",
        "Find the median of two sorted arrays",
    ],
    "Microservices": [
        "How would you design a microservices architecture?",
        "How do you handle service discovery?",
        "What are the challenges of distributed transactions?",
        "How do you monitor a microservices system?",
        "How do you handle versioning in APIs?",
    ],
}

LEARNING_RESOURCES: Dict[str, List[str]] = {
    "System Design": [
        "https://www.youtube.com/watch?v=xpDnVSmNFwY (Grokking System Design)",
        "https://github.com/donnemartin/system-design-primer",
        "System Design Interview by Alex Xu",
    ],
    "Java Core": [
        "Effective Java by Joshua Bloch",
        "Java Concurrency in Practice",
        "Oracle Java Documentation",
        "LeetCode Java Problems",
    ],
    "Spring Framework": ["Spring in Action", "Baeldung Spring Tutorials", "Spring Official Documentation"],
    "Microservices": [
        "Building Microservices by Sam Newman",
        "Docker & Kubernetes Documentation",
        "Cloud Native Patterns",
    ],
    "Cloud": [
        "AWS Certified Solutions Architect",
        "Google Cloud Architecture Guide",
        "Azure Architecture Center",
    ],
    "Testing": [
        "Working Effectively with Legacy Code by Michael Feathers",
        "Test Driven Development by Kent Beck",
        "JUnit Documentation",
    ],
    "Data Structures & Algorithms": [
        "Introduction to Algorithms (CLRS)",
        "LeetCode",
        "HackerRank",
        "InterviewBit",
    ],
}

DEFAULT_RESOURCES = ["Official Documentation", "Online Courses"]

COMPANY_FOCUS = {
    "google": "scalable systems and AI/ML",
    "amazon": "cloud infrastructure and AWS services",
    "microsoft": "enterprise solutions and cloud",
    "facebook": "social networks and distributed systems",
    "apple": "mobile and user experience",
}

ROLE_TECH_SKILLS = {
    "backend": "database optimization",
    "frontend": "React performance optimization",
    "fullstack": "system integration",
    "devops": "container orchestration",
    "system engineer": "distributed systems",
}

BASE_PRACTICE_PROBLEMS = [
    "LeetCode Medium Array/String Problems",
    "LeetCode Medium Dynamic Programming Problems",
    "System Design: Design a Cache",
    "System Design: Design a Rate Limiter",
    "Coding Interview: Implement a Trie",
    "Coding Interview: Merge K Sorted Lists",
    "Behavioral: Tell me about a time you overcame a challenge",
]

ROLE_PRACTICE_PROBLEMS = {
    "senior": [
        "Design a distributed system for the given use case",
        "Architecture Review: Identify bottlenecks and propose solutions",
    ],
    "backend": ["Database Design: Design a schema for a complex domain", "API Design: Design a REST API"],
    "frontend": ["Optimize React Component Performance", "Implement a Form with Validation"],
}

TRENDING_SKILLS_PER_WEEK = 3
REPEATED_REJECTIONS = 2
SKILL_TASK_DUE_DAYS = 7
PREP_TASK_DUE_DAYS = 3
PREP_TASK_HOURS = 8
PREP_PLAN_HOURS = 5


def generate_model_answers(job_title: str, company: str) -> Dict[str, str]:
    focus = COMPANY_FOCUS.get(company.lower(), "innovative technology solutions")
    tech_skill = next(
        (skill for key, skill in ROLE_TECH_SKILLS.items() if key in job_title.lower()),
        "scalable system design",
    )
    return {
        "Why do you want to join us?": (
            f"I'm interested in {company} because of your work in {focus}. "
            f"The {job_title} role aligns perfectly with my skills and career goals."
        ),
        "Tell me about a challenging project": (
            f"I worked on a project involving {tech_skill}. The challenge was scalability, and I solved it "
            "by implementing caching strategies and optimizing database queries."
        ),
        "How do you handle disagreements?": (
            "I focus on understanding different perspectives. I present data-driven arguments and work "
            "collaboratively to find solutions that benefit the team and product."
        ),
        "What's your learning approach?": (
            "I'm a proactive learner. I follow blogs, contribute to open source, and regularly practice "
            "coding problems to stay updated with industry trends."
        ),
        "Describe your technical expertise": (
            f"I specialize in {job_title} with strong fundamentals in system design, data structures, and "
            "algorithms. I'm also experienced with various frameworks and tools relevant to this role."
        ),
    }


def generate_practice_problems(job_title: str) -> List[str]:
    problems = list(BASE_PRACTICE_PROBLEMS)
    title = job_title.lower()
    for keyword, extra in ROLE_PRACTICE_PROBLEMS.items():
        if keyword in title:
            problems.extend(extra)
    return problems


def group_rejections(applications: List[ApplicationRecord]) -> "OrderedDict[Tuple[str, str], List[ApplicationRecord]]":
    groups: "OrderedDict[Tuple[str, str], List[ApplicationRecord]]" = OrderedDict()
    for app in applications:
        groups.setdefault((app.job_title, app.company_name), []).append(app)
    return groups


class LearningPlannerAgent:
    def __init__(self, db: Session, user_id: str):
        self.store = Store(db, user_id, AgentCapability.LEARNING_PLANNER)
        self.user_id = user_id

    def generate_weekly_learning_plan(self, now: Optional[datetime] = None) -> LearningPlanResult:
        """Build this week's plan from trending skills and repeated rejections."""
        today = (now or utcnow()).date()
        logger.info("Generating weekly learning plan for user %s", self.user_id)

        result = LearningPlanResult()
        open_titles = {task.title for task in self.store.get_learning_tasks(completed=False)}

        for skill in self.store.get_trending_skills()[:TRENDING_SKILLS_PER_WEEK]:
            result.plan.append(self._plan_for_skill(skill, today, open_titles, result))

        rejected = self.store.get_applications_by_status(ApplicationStatus.REJECTED)
        for (job_title, company), apps in group_rejections(rejected).items():
            if len(apps) < REPEATED_REJECTIONS:
                continue
            pack = self._prep_pack(job_title, company, apps[0], today, open_titles, result)
            result.prep_packs.append(pack)
            result.plan.append(
                LearningPlanItem(
                    topic=f"Interview Prep: {pack.role}",
                    estimated_hours=PREP_PLAN_HOURS,
                    resources=pack.study_resources,
                    priority=Priority.HIGH,
                )
            )

        status = AuditStatus.ERROR if result.errors else AuditStatus.SUCCESS
        self.store.log_agent_action(
            {"week_of": today.isoformat()},
            result.model_dump(mode="json", include={"success", "errors", "tasks_created"}),
            status,
        )
        return result

    def _plan_for_skill(
        self, skill: SkillDemandRecord, today: date, open_titles: Set[str], result: LearningPlanResult
    ) -> LearningPlanItem:
        resources = LEARNING_RESOURCES.get(skill.skill_category or "", DEFAULT_RESOURCES)
        hours = 20 if skill.rising_trend else 10
        priority = Priority.HIGH if skill.rising_trend else Priority.MEDIUM
        topic = skill.skill_category or skill.skill_name

        item = LearningPlanItem(topic=topic, estimated_hours=hours, resources=resources, priority=priority)
        task = self._create_task(
            open_titles,
            result,
            title=f"Master {skill.skill_name}",
            description=(
                f"Learn and practice {skill.skill_name}. This skill appears in {skill.frequency} "
                "job listings and is trending in the market."
            ),
            topic=topic,
            difficulty_level="INTERMEDIATE" if skill.rising_trend else "BEGINNER",
            estimated_hours=hours,
            resources=resources,
            priority=priority,
            due_date=today + timedelta(days=SKILL_TASK_DUE_DAYS),
        )
        if task is not None:
            item.tasks.append(task)
        return item

    def _prep_pack(
        self,
        job_title: str,
        company: str,
        first_application: ApplicationRecord,
        today: date,
        open_titles: Set[str],
        result: LearningPlanResult,
    ) -> InterviewPrepPack:
        pack = InterviewPrepPack(
            role=job_title.strip(),
            company=company.strip(),
            expected_questions=INTERVIEW_QUESTIONS["Behavioral/Soft Skills"][:3],
            model_answers=generate_model_answers(job_title, company),
            study_resources=LEARNING_RESOURCES.get(job_title.strip(), LEARNING_RESOURCES["System Design"]),
            practice_problems=generate_practice_problems(job_title),
        )
        self._create_task(
            open_titles,
            result,
            application_id=first_application.id,
            title=f"Interview Prep: {job_title}",
            description=(
                f"Prepare for {job_title} interviews at {company}. "
                "Review expected questions and practice problem-solving."
            ),
            topic="Interview Preparation",
            difficulty_level="ADVANCED",
            estimated_hours=PREP_TASK_HOURS,
            resources=pack.study_resources,
            priority=Priority.HIGH,
            due_date=today + timedelta(days=PREP_TASK_DUE_DAYS),
        )
        logger.info("Created interview prep pack for %s at %s", job_title, company)
        return pack

    def _create_task(self, open_titles: Set[str], result: LearningPlanResult, **fields):
        title = fields["title"]
        if title in open_titles:
            logger.info("Learning task %r already open, skipping", title)
            return None

        task = self.store.create_learning_task(completed=False, **fields)
        if task is None:
            result.errors.append(f"Failed to create learning task {title}")
            result.success = False
            return None

        open_titles.add(title)
        result.tasks_created += 1
        return task
