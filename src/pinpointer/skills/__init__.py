"""Audit categories and their reviewer prompts."""

from .registry import DEFAULT_SKILLS, SkillDefinition, SkillRegistry, get_skill_registry

__all__ = ["DEFAULT_SKILLS", "SkillDefinition", "SkillRegistry", "get_skill_registry"]
