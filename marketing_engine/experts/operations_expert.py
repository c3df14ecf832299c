"""
Operations expert: team capability, process execution and tool utilisation.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from marketing_engine.analysis.context import AssessmentContext
from marketing_engine.analysis.models import (
    ExpertAnalysisResult,
    ImpactTag,
    Insight,
    Priority,
    Recommendation,
)
from marketing_engine.core.values import get_bool, get_numeric, get_str, round_half_up
from marketing_engine.experts.base import (
    build_result,
    calculate_confidence,
    impact_for,
    lookup,
    make_insight,
    make_recommendation,
    parse_enum,
    score_label,
)


class ProcessEfficiency(str, Enum):
    OPTIMIZED = "optimized"
    STREAMLINED = "streamlined"
    FUNCTIONAL = "functional"
    DEVELOPING = "developing"
    CHAOTIC = "chaotic"


class TeamSkills(str, Enum):
    EXPERT = "expert"
    ADVANCED = "advanced"
    INTERMEDIATE = "intermediate"
    BASIC = "basic"
    BEGINNER = "beginner"


class Outsourcing(str, Enum):
    EXTENSIVE = "extensive"
    SELECTIVE = "selective"
    MINIMAL = "minimal"
    NONE = "none"


class ExecutionSpeed(str, Enum):
    VERY_FAST = "very_fast"
    FAST = "fast"
    MODERATE = "moderate"
    SLOW = "slow"
    VERY_SLOW = "very_slow"


class ToolUsage(str, Enum):
    COMPREHENSIVE = "comprehensive"
    ADVANCED = "advanced"
    MODERATE = "moderate"
    BASIC = "basic"
    MINIMAL = "minimal"
    NONE = "none"


EFFICIENCY_SCORES = {
    ProcessEfficiency.OPTIMIZED: 95,
    ProcessEfficiency.STREAMLINED: 75,
    ProcessEfficiency.FUNCTIONAL: 55,
    ProcessEfficiency.DEVELOPING: 35,
    ProcessEfficiency.CHAOTIC: 15,
}
SKILL_SCORES = {
    TeamSkills.EXPERT: 90,
    TeamSkills.ADVANCED: 75,
    TeamSkills.INTERMEDIATE: 55,
    TeamSkills.BASIC: 30,
    TeamSkills.BEGINNER: 15,
}
# Tool utilisation uses a flatter skill scale below "basic"
UTILIZATION_SKILL_SCORES = {
    TeamSkills.EXPERT: 90,
    TeamSkills.ADVANCED: 75,
    TeamSkills.INTERMEDIATE: 55,
    TeamSkills.BASIC: 30,
}
OUTSOURCING_BONUS = {
    Outsourcing.EXTENSIVE: 20,
    Outsourcing.SELECTIVE: 12,
    Outsourcing.MINIMAL: 5,
    Outsourcing.NONE: 0,
}
SPEED_SCORES = {
    ExecutionSpeed.VERY_FAST: 90,
    ExecutionSpeed.FAST: 75,
    ExecutionSpeed.MODERATE: 55,
    ExecutionSpeed.SLOW: 30,
    ExecutionSpeed.VERY_SLOW: 10,
}
TOOL_SCORES = {
    ToolUsage.COMPREHENSIVE: 90,
    ToolUsage.ADVANCED: 75,
    ToolUsage.MODERATE: 55,
    ToolUsage.BASIC: 35,
    ToolUsage.MINIMAL: 15,
    ToolUsage.NONE: 5,
}
TEAM_SIZE_BANDS = (
    (20, "large"),
    (8, "medium"),
    (3, "small"),
    (1, "micro"),
)
TEAM_SIZE_FLOOR = "solo"

OTHER_SKILL_SCORE = 25
OTHER_UTILIZATION_SKILL_SCORE = 20
OTHER_SPEED_SCORE = 35
OTHER_TOOL_SCORE = 20
DOCUMENTED_SCORE = 75
UNDOCUMENTED_SCORE = 25
POINTS_PER_TEAM_MEMBER = 12
DEFAULT_TEAM_SIZE = 1


def team_size_band(size: float) -> str:
    for threshold, band in TEAM_SIZE_BANDS:
        if size >= threshold:
            return band
    return TEAM_SIZE_FLOOR


class OperationsExpert:
    expert_id = "operations_expert"
    name = "Operations Expert"
    role = "Evaluates team capability, marketing processes and execution"
    expertise = (
        "process_optimization",
        "team_management",
        "workflow_design",
        "resource_planning",
        "marketing_operations",
    )
    decision_weight = 0.7

    def analyze(
        self,
        answers: Mapping[str, Any],
        context: AssessmentContext,
        scores: Mapping[str, float],
    ) -> ExpertAnalysisResult:
        documented = answers.get("workflow_documented")
        data = {
            "team_size": get_numeric(answers, "team_size", "marketing_team_size"),
            "team_skills": get_str(answers, "team_skills"),
            "process_efficiency": get_str(answers, "process_efficiency"),
            "tool_usage": get_str(answers, "tool_usage"),
            "execution_speed": get_str(answers, "execution_speed"),
            "outsourcing": get_str(answers, "outsourcing"),
            "workflow_documented": None if documented is None else get_bool(answers, "workflow_documented"),
        }
        team = self._team(data)
        process = self._process(data)
        resources = self._resources(data)
        readiness = (
            team["capability_score"] * 0.35
            + process["execution_score"] * 0.40
            + resources["utilization_score"] * 0.25
        )
        return build_result(
            self,
            scores={
                "operational_readiness": round_half_up(readiness, 1),
                "team_capability": team["capability_score"],
                "execution_score": process["execution_score"],
            },
            sections={
                "team_assessment": team,
                "process_efficiency": process,
                "resource_utilization": resources,
            },
            confidence=calculate_confidence(data),
        )

    def generate_insights(self, result: ExpertAnalysisResult) -> list[Insight]:
        readiness = result.scores.get("operational_readiness", 50)
        insights = [
            make_insight(
                self,
                "Operational readiness",
                f"Operational readiness: {score_label(readiness)} ({readiness:.0f}/100)",
                impact_for(readiness),
                0.85,
            )
        ]
        capability = result.scores.get("team_capability", 50)
        if capability < 40:
            insights.append(
                make_insight(
                    self,
                    "Limited team capability",
                    "The marketing team lacks the size or skills to execute a full plan",
                    ImpactTag.WARNING,
                    0.83,
                )
            )
        elif capability >= 75:
            insights.append(
                make_insight(
                    self,
                    "Strong marketing team",
                    "The team is equipped to deliver an ambitious plan",
                    ImpactTag.POSITIVE,
                    0.83,
                )
            )
        if result.scores.get("execution_score", 50) < 40:
            insights.append(
                make_insight(
                    self,
                    "Slow or unstructured execution",
                    "Processes are too slow or undocumented to run campaigns reliably",
                    ImpactTag.WARNING,
                    0.82,
                )
            )
        if result.sections.get("resource_utilization", {}).get("tool_score", 50) < 35:
            insights.append(
                make_insight(
                    self,
                    "Tools are underused",
                    "Few marketing tools are in use, so work stays manual",
                    ImpactTag.NEUTRAL,
                    0.78,
                )
            )
        return insights

    def generate_recommendations(self, result: ExpertAnalysisResult) -> list[Recommendation]:
        recommendations: list[Recommendation] = []
        capability = result.scores.get("team_capability", 50)
        if capability < 40:
            recommendations.append(
                make_recommendation(
                    self,
                    "Build marketing capability",
                    "The team cannot carry the plan without new skills or support",
                    Priority.CRITICAL,
                    [
                        "Hire or contract a marketing specialist",
                        "Outsource specialised tasks such as design and ads",
                        "Train the team in the core digital skills",
                    ],
                )
            )
        elif capability < 65:
            recommendations.append(
                make_recommendation(
                    self,
                    "Develop the team's skills",
                    "The team can execute the basics but needs to level up",
                    Priority.HIGH,
                    [
                        "Run a skills gap review",
                        "Set a monthly training plan",
                    ],
                )
            )
        if result.scores.get("execution_score", 50) < 50:
            recommendations.append(
                make_recommendation(
                    self,
                    "Improve marketing processes",
                    "Execution is slow and inconsistent",
                    Priority.HIGH,
                    [
                        "Document the core campaign workflow",
                        "Adopt a task management tool",
                        "Hold a weekly marketing review",
                    ],
                )
            )
        if result.scores.get("operational_readiness", 50) >= 70:
            recommendations.append(
                make_recommendation(
                    self,
                    "Scale operations",
                    "Operations are ready to support more activity",
                    Priority.MEDIUM,
                    [
                        "Automate repetitive marketing tasks",
                        "Add capacity for new channels",
                    ],
                )
            )
        return recommendations

    @staticmethod
    def _team(data: Mapping[str, Any]) -> dict[str, Any]:
        size = data["team_size"]
        size = DEFAULT_TEAM_SIZE if size is None else size
        size_score = min(100, size * POINTS_PER_TEAM_MEMBER)
        skills = parse_enum(TeamSkills, data["team_skills"] or TeamSkills.BASIC.value)
        skill_score = lookup(SKILL_SCORES, skills, OTHER_SKILL_SCORE)
        outsourcing = lookup(OUTSOURCING_BONUS, parse_enum(Outsourcing, data["outsourcing"]), 0)
        capability = size_score * 0.30 + skill_score * 0.55 + outsourcing * 0.15
        return {
            "team_size": size,
            "size_band": team_size_band(size),
            "size_score": size_score,
            "skill_score": skill_score,
            "capability_score": round_half_up(capability, 1),
        }

    @staticmethod
    def _process(data: Mapping[str, Any]) -> dict[str, Any]:
        efficiency = parse_enum(ProcessEfficiency, data["process_efficiency"]) or ProcessEfficiency.DEVELOPING
        speed = lookup(
            SPEED_SCORES,
            parse_enum(ExecutionSpeed, data["execution_speed"] or ExecutionSpeed.SLOW.value),
            OTHER_SPEED_SCORE,
        )
        documentation = DOCUMENTED_SCORE if data["workflow_documented"] else UNDOCUMENTED_SCORE
        execution = EFFICIENCY_SCORES[efficiency] * 0.40 + speed * 0.40 + documentation * 0.20
        return {
            "efficiency_level": efficiency.value,
            "efficiency_score": EFFICIENCY_SCORES[efficiency],
            "speed_score": speed,
            "documentation_score": documentation,
            "execution_score": round_half_up(execution, 1),
        }

    @staticmethod
    def _resources(data: Mapping[str, Any]) -> dict[str, Any]:
        tool = lookup(
            TOOL_SCORES,
            parse_enum(ToolUsage, data["tool_usage"] or ToolUsage.MINIMAL.value),
            OTHER_TOOL_SCORE,
        )
        skill = lookup(
            UTILIZATION_SKILL_SCORES,
            parse_enum(TeamSkills, data["team_skills"] or TeamSkills.BASIC.value),
            OTHER_UTILIZATION_SKILL_SCORE,
        )
        utilization = tool * 0.45 + skill * 0.55
        return {
            "tool_score": tool,
            "skill_score": skill,
            "utilization_score": round_half_up(utilization, 1),
        }
