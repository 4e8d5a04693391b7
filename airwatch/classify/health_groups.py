"""Advice for sensitive population groups at a given AQI."""

from dataclasses import dataclass

from airwatch.classify.aqi import AqiCategory, classify_index


@dataclass(frozen=True)
class HealthGroup:
    name: str
    aqi_threshold: int
    description: str
    recommendations: dict[AqiCategory, str]


@dataclass(frozen=True)
class GroupStatus:
    group: HealthGroup
    recommendation: str
    risk_level: str  # "low", "moderate", "high", "very-high"


HEALTH_GROUPS: list[HealthGroup] = [
    HealthGroup(
        name="athletes",
        aqi_threshold=100,
        description="Guidance for sport and outdoor exercise",
        recommendations={
            AqiCategory.GOOD: "Ideal conditions for all outdoor training.",
            AqiCategory.MODERATE: "Fine for most activities. Take breaks if you feel discomfort.",
            AqiCategory.UNHEALTHY_FOR_SENSITIVE_GROUPS: "Limit intense training. Prefer indoor venues.",
            AqiCategory.UNHEALTHY: "Avoid outdoor training. Use gyms and indoor facilities.",
            AqiCategory.VERY_UNHEALTHY: "Train only indoors with air filtration.",
            AqiCategory.HAZARDOUS: "Cancel all outdoor activity and stay indoors.",
        },
    ),
    HealthGroup(
        name="children",
        aqi_threshold=75,
        description="Protecting children from air pollution",
        recommendations={
            AqiCategory.GOOD: "Children can play outside freely.",
            AqiCategory.MODERATE: "Most children can play outside; watch those with respiratory issues.",
            AqiCategory.UNHEALTHY_FOR_SENSITIVE_GROUPS: "Limit time outdoors. Short walks are fine.",
            AqiCategory.UNHEALTHY: "Keep children indoors and avoid outdoor activity.",
            AqiCategory.VERY_UNHEALTHY: "Keep children indoors, close windows, run air purifiers.",
            AqiCategory.HAZARDOUS: "All children stay indoors. Wear masks if going out is unavoidable.",
        },
    ),
    HealthGroup(
        name="elderly",
        aqi_threshold=75,
        description="Advice for people over 65 and those with chronic illness",
        recommendations={
            AqiCategory.GOOD: "Safe for all outdoor activities.",
            AqiCategory.MODERATE: "Limit strenuous outdoor activity. Short walks are fine.",
            AqiCategory.UNHEALTHY_FOR_SENSITIVE_GROUPS: "Stay indoors if you have heart or lung disease.",
            AqiCategory.UNHEALTHY: "Stay indoors and avoid all outdoor activity.",
            AqiCategory.VERY_UNHEALTHY: "Stay indoors with windows closed. Contact a doctor if symptoms appear.",
            AqiCategory.HAZARDOUS: "Stay indoors. Call a doctor if you feel any symptoms.",
        },
    ),
    HealthGroup(
        name="asthmatics",
        aqi_threshold=50,
        description="Advice for people with asthma and respiratory conditions",
        recommendations={
            AqiCategory.GOOD: "Safe for all activities. Keep taking regular medication.",
            AqiCategory.MODERATE: "Be careful with physical activity. Keep an inhaler at hand.",
            AqiCategory.UNHEALTHY_FOR_SENSITIVE_GROUPS: "Limit outdoor activity. Follow your medication plan.",
            AqiCategory.UNHEALTHY: "Stay indoors. Use your inhaler as prescribed and contact a doctor.",
            AqiCategory.VERY_UNHEALTHY: "Stay indoors. Keep rescue medication ready and call a doctor.",
            AqiCategory.HAZARDOUS: "Stay indoors. Have emergency medication ready; call emergency services if needed.",
        },
    ),
]


def risk_level(index: int, threshold: int) -> str:
    if index <= 50:
        return "low"
    if index <= 100:
        return "low" if index <= threshold else "moderate"
    if index <= 150:
        return "moderate"
    if index <= 200:
        return "high"
    return "very-high"


def group_statuses(index: int) -> list[GroupStatus]:
    """Build the per-group recommendation and risk level for an AQI value."""
    category = classify_index(index).category
    return [
        GroupStatus(
            group=group,
            recommendation=group.recommendations[category],
            risk_level=risk_level(index, group.aqi_threshold),
        )
        for group in HEALTH_GROUPS
    ]
