"""Tests for the audit category registry and prompt loading."""

import pytest

from pinpointer.core.errors import ConfigurationError
from pinpointer.skills.registry import (
    DEFAULT_SKILLS,
    SkillDefinition,
    SkillRegistry,
    load_prompts,
    parse_prompt_file,
)


def write_prompt(directory, filename, key, body="Review the page."):
    (directory / filename).write_text(f"---\nkey: {key}\nname: Test\n---\n\n{body}\n", encoding="utf-8")


class TestParsePromptFile:

    def test_front_matter_and_body(self):
        meta, body = parse_prompt_file("---\nkey: seo_analyzer\nname: SEO\n---\n\nBody text\n")
        assert meta == {"key": "seo_analyzer", "name": "SEO"}
        assert body == "Body text"

    def test_windows_line_endings(self):
        meta, body = parse_prompt_file("---\r\nkey: ux_auditor\r\n---\r\nBody\r\n")
        assert meta["key"] == "ux_auditor"
        assert body == "Body"

    @pytest.mark.parametrize("text", [
        "No front matter at all",
        "---\n- just\n- a list\n---\nBody",
    ])
    def test_invalid_front_matter(self, text):
        assert parse_prompt_file(text) is None


class TestLoadPrompts:

    def test_keyed_by_front_matter(self, temp_dir):
        write_prompt(temp_dir, "a.md", "seo_analyzer", "SEO body")
        write_prompt(temp_dir, "b.md", "ux_auditor", "UX body")
        (temp_dir / "notes.txt").write_text("ignored", encoding="utf-8")

        assert load_prompts(temp_dir) == {"seo_analyzer": "SEO body", "ux_auditor": "UX body"}

    def test_skips_files_without_key_and_duplicates(self, temp_dir):
        write_prompt(temp_dir, "a.md", "seo_analyzer", "first")
        write_prompt(temp_dir, "b.md", "seo_analyzer", "second")
        (temp_dir / "c.md").write_text("plain markdown", encoding="utf-8")

        assert load_prompts(temp_dir) == {"seo_analyzer": "first"}

    def test_missing_directory(self, temp_dir):
        assert load_prompts(temp_dir / "absent") == {}


class TestSkillRegistry:

    def test_default_weights_sum_to_one(self):
        registry = SkillRegistry(DEFAULT_SKILLS)
        assert len(registry) == 10
        assert sum(registry.weights.values()) == pytest.approx(1.0)

    def test_order_and_lookup(self):
        registry = SkillRegistry(DEFAULT_SKILLS)
        assert [s.key for s in registry][:3] == ["seo_analyzer", "ux_auditor", "ui_auditor"]
        assert registry.get("security_auditor").short_key == "security"
        assert registry.get("nope") is None
        assert registry.names["cro_analyzer"] == "CRO Analyzer"

    def test_vision_categories(self):
        vision = {s.key for s in DEFAULT_SKILLS if s.vision}
        assert vision == {"ux_auditor", "ui_auditor"}

    def test_bad_weights_rejected(self):
        skills = [SkillDefinition("a", "A", "a", 0.5), SkillDefinition("b", "B", "b", 0.4)]
        with pytest.raises(ConfigurationError):
            SkillRegistry(skills)

    def test_duplicate_keys_rejected(self):
        skills = [SkillDefinition("a", "A", "a", 0.5), SkillDefinition("a", "A2", "a2", 0.5)]
        with pytest.raises(ConfigurationError):
            SkillRegistry(skills)

    def test_load_attaches_prompts(self, temp_dir):
        write_prompt(temp_dir, "seo.md", "seo_analyzer", "SEO body")
        write_prompt(temp_dir, "stray.md", "not_a_category", "ignored")

        registry = SkillRegistry.load(str(temp_dir))

        assert registry.get("seo_analyzer").prompt == "SEO body"
        assert registry.get("ux_auditor").prompt is None
        assert registry.get("not_a_category") is None

    def test_packaged_prompts_cover_every_category(self):
        registry = SkillRegistry.load()
        assert all(skill.prompt for skill in registry)
