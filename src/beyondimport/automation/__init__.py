"""Spell automation: activity classification and scaling synthesis."""

from .activities import (
    Activity,
    AttackActivity,
    HealActivity,
    SaveActivity,
    ScalingRule,
    UtilityActivity,
)
from .synthesis import build_activities, synthesize

__all__ = [
    "Activity",
    "AttackActivity",
    "HealActivity",
    "SaveActivity",
    "ScalingRule",
    "UtilityActivity",
    "build_activities",
    "synthesize",
]
