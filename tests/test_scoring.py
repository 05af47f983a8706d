"""
Tests for match scoring, salary parsing and skill counting.
"""
from jobcopilot.scoring import calculate_match_score, extract_salary_range
from jobcopilot.skills import (
    DEFAULT_SKILL_CATALOG,
    SkillCatalog,
    categorize_skill,
    cluster_skills,
    count_skills,
)


def test_half_the_skills_match():
    description = "We build services with Spring Boot and deploy them to AWS."
    assert calculate_match_score("Backend Engineer", description, ["Java", "AWS"]) == 50


def test_match_is_case_insensitive_substring():
    assert calculate_match_score("PYTHON developer", "", ["python", "Py"]) == 100


def test_no_skills_scores_zero():
    assert calculate_match_score("Engineer", "Java everywhere", []) == 0


def test_score_is_capped_and_bounded():
    score = calculate_match_score("Java Java Java", "java", ["java", "java"])
    assert 0 <= score <= 100


def test_salary_range():
    assert extract_salary_range("$150,000 - $200,000") == (150000, 200000)


def test_salary_without_dash_has_no_max():
    assert extract_salary_range("$95,000") == (95000, None)


def test_missing_salary():
    assert extract_salary_range(None) == (None, None)
    assert extract_salary_range("") == (None, None)


def test_count_skills_uses_word_boundaries():
    frequency = count_skills(["Java and JavaScript. More java!"])
    assert frequency["java"] == 2
    assert frequency["javascript"] == 1


def test_count_skills_counts_keywords_in_several_themes_once():
    # docker is listed under two themes
    assert count_skills(["docker"])["docker"] == 1


def test_count_skills_extra_patterns():
    frequency = count_skills(["Python services behind nginx"])
    assert frequency["python"] == 1
    assert frequency["nginx"] == 1


def test_categorize_skill():
    assert categorize_skill("aws") == "Cloud"
    assert categorize_skill("spring-boot") == "Spring Framework"
    assert categorize_skill("cobol") is None


def test_cluster_skills_sorted_by_average_frequency():
    clusters = cluster_skills({"react": 2, "aws": 8})
    assert [c.theme for c in clusters][:2] == ["Cloud", "Frontend"]
    cloud = clusters[0]
    assert cloud.skills == {"aws": 8}
    assert cloud.average_frequency == 8
    assert "Cloud Architect" in cloud.related_roles


def test_custom_catalog():
    catalog = SkillCatalog({"Data": ["pandas", "numpy"]})
    assert catalog.count_skills(["pandas, numpy and more pandas"]) == {"pandas": 2, "numpy": 1}
    assert catalog.categorize("numpy") == "Data"
    assert catalog.cluster({"pandas": 2})[0].related_roles == []


def test_default_catalog_has_ten_themes():
    assert len(DEFAULT_SKILL_CATALOG.themes) == 10
