"""
Tests for tear_core/styles.py prompt building.
"""

import pytest

from tear_core.styles import (
    CONTENT_RULES,
    DEFAULT_STYLE_PROMPT,
    NEGATIVE_CONSTRAINTS,
    STYLE_LABELS,
    STYLE_PROMPTS,
    TearingStyle,
    build_prompt,
    style_prompt,
)


class TestStyleTables:
    def test_every_style_has_label_and_prompt(self):
        for style in TearingStyle:
            assert STYLE_LABELS[style]
            assert STYLE_PROMPTS[style]

    def test_style_values_are_names(self):
        assert TearingStyle("BURNT") is TearingStyle.BURNT
        assert TearingStyle.WILD == "WILD"


class TestStylePrompt:
    @pytest.mark.parametrize("style", list(TearingStyle))
    def test_enum_member(self, style):
        assert style_prompt(style) == STYLE_PROMPTS[style]

    def test_name_string(self):
        assert style_prompt("CLAW") == STYLE_PROMPTS[TearingStyle.CLAW]

    def test_unknown_style_falls_back(self):
        assert style_prompt("SPARKLES") == DEFAULT_STYLE_PROMPT


class TestBuildPrompt:
    def test_contains_style_and_rules(self):
        prompt = build_prompt(TearingStyle.MELTING)
        assert STYLE_PROMPTS[TearingStyle.MELTING] in prompt
        assert NEGATIVE_CONSTRAINTS in prompt
        assert CONTENT_RULES in prompt
        assert "red pixels" in prompt

    def test_styles_produce_different_prompts(self):
        prompts = {build_prompt(style) for style in TearingStyle}
        assert len(prompts) == len(TearingStyle)
