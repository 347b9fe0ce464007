"""
Audit category registry.

The category table (names, short keys, weights, vision flag) is fixed in
code; each category's reviewer prompt is loaded once from a markdown file in
SKILLS_DIR whose YAML front matter names the category key.
"""
import re
from dataclasses import dataclass, replace
from decimal import Decimal
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence

import yaml

from ..core.config import settings
from ..core.errors import ConfigurationError
from ..core.logging import logger

_FRONT_MATTER = re.compile(r"^---\s*\n(.*?)\n---\s*\n(.*)$", re.DOTALL)


@dataclass(frozen=True)
class SkillDefinition:
    key: str
    name: str
    short_key: str
    weight: float
    vision: bool = False
    prompt: Optional[str] = None


DEFAULT_SKILLS: List[SkillDefinition] = [
    SkillDefinition("seo_analyzer", "SEO Analyzer", "seo", 0.15),
    SkillDefinition("ux_auditor", "UX Auditor", "ux", 0.12, vision=True),
    SkillDefinition("ui_auditor", "UI Auditor", "ui", 0.10, vision=True),
    SkillDefinition("cro_analyzer", "CRO Analyzer", "cro", 0.12),
    SkillDefinition("accessibility_auditor", "Accessibility Auditor", "accessibility", 0.10),
    SkillDefinition("performance_analyzer", "Performance Analyzer", "performance", 0.12),
    SkillDefinition("content_quality", "Content Quality", "content", 0.10),
    SkillDefinition("security_auditor", "Security Auditor", "security", 0.08),
    SkillDefinition("mobile_responsiveness", "Mobile Responsiveness", "mobile", 0.06),
    SkillDefinition("competitive_benchmark", "Competitive Benchmark", "benchmark", 0.05),
]


def parse_prompt_file(text: str):
    """
    Split a prompt file into (front matter dict, body).

    Returns None when the file has no front matter block.
    """
    match = _FRONT_MATTER.match(text.replace("\r\n", "\n"))
    if not match:
        return None
    meta = yaml.safe_load(match.group(1)) or {}
    if not isinstance(meta, dict):
        return None
    return meta, match.group(2).strip()


def load_prompts(directory: Path) -> Dict[str, str]:
    """Read every ``*.md`` prompt in ``directory`` keyed by its front-matter ``key``."""
    prompts: Dict[str, str] = {}
    if not directory.is_dir():
        logger.warning(f"Skill prompt directory not found: {directory}")
        return prompts

    for path in sorted(directory.glob("*.md")):
        try:
            parsed = parse_prompt_file(path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Skipping unreadable skill prompt {path.name}: {e}")
            continue
        if parsed is None or not parsed[0].get("key"):
            logger.warning(f"Skipping skill prompt without front matter key: {path.name}")
            continue
        meta, body = parsed
        key = str(meta["key"])
        if key in prompts:
            logger.warning(f"Duplicate skill prompt for '{key}' in {path.name}, keeping the first")
            continue
        prompts[key] = body
    return prompts


class SkillRegistry:
    """Ordered, validated set of audit categories."""

    def __init__(self, skills: Sequence[SkillDefinition]):
        keys = [s.key for s in skills]
        if len(set(keys)) != len(keys):
            raise ConfigurationError("Duplicate skill keys", details={"keys": keys})
        total = sum(Decimal(str(s.weight)) for s in skills)
        if skills and total != Decimal("1"):
            raise ConfigurationError(
                f"Skill weights must sum to 1.0, got {total}",
                details={"total": str(total)},
            )
        self._skills = list(skills)
        self._by_key = {s.key: s for s in self._skills}

    @classmethod
    def load(
        cls,
        directory: Optional[str] = None,
        skills: Sequence[SkillDefinition] = DEFAULT_SKILLS,
    ) -> "SkillRegistry":
        """Build the registry, attaching prompts from ``directory`` (default SKILLS_DIR)."""
        prompts = load_prompts(Path(directory or settings.SKILLS_DIR))
        known = {s.key for s in skills}
        for key in prompts:
            if key not in known:
                logger.warning(f"Ignoring prompt for unknown skill '{key}'")
        registry = cls([replace(s, prompt=prompts.get(s.key, s.prompt)) for s in skills])
        missing = [s.key for s in registry if not s.prompt]
        if missing:
            logger.warning(f"No reviewer prompt for: {', '.join(missing)}")
        logger.info(f"Loaded {len(registry)} skills ({len(registry) - len(missing)} with prompts)")
        return registry

    def __iter__(self) -> Iterator[SkillDefinition]:
        return iter(self._skills)

    def __len__(self) -> int:
        return len(self._skills)

    def get(self, key: str) -> Optional[SkillDefinition]:
        return self._by_key.get(key)

    @property
    def weights(self) -> Dict[str, float]:
        return {s.key: s.weight for s in self._skills}

    @property
    def names(self) -> Dict[str, str]:
        return {s.key: s.name for s in self._skills}


_registry_instance: Optional[SkillRegistry] = None


def get_skill_registry() -> SkillRegistry:
    """Get or create the process-wide skill registry."""
    global _registry_instance
    if _registry_instance is None:
        _registry_instance = SkillRegistry.load()
    return _registry_instance
