"""Tests für prompts.py - System-Prompt und Domänen-Presets."""

import pytest

from prompts import (
    BASE_INSTRUCTION,
    DOMAINS,
    VOICE_COMMANDS_INSTRUCTION,
    build_system_prompt,
    get_domain_label,
    normalize_domain,
)


class TestBuildSystemPrompt:
    """Tests für build_system_prompt() - Basis + Domänen-Kontext."""

    @pytest.mark.parametrize("domain", list(DOMAINS))
    def test_contains_base_and_domain_context(self, domain):
        label, instruction = DOMAINS[domain]
        prompt = build_system_prompt(domain)
        assert prompt == f"{BASE_INSTRUCTION}\n\nDomain Context: {label}\n{instruction}"

    def test_default_domain_is_general(self):
        assert build_system_prompt() == build_system_prompt("general")
        assert "Domain Context: General Conversation" in build_system_prompt(None)

    def test_domain_is_case_insensitive(self):
        assert build_system_prompt("DEV") == build_system_prompt("dev")

    def test_voice_commands_appended(self):
        prompt = build_system_prompt("dev", voice_commands=True)
        assert prompt.startswith(build_system_prompt("dev"))
        assert prompt.endswith(VOICE_COMMANDS_INSTRUCTION)

    def test_voice_commands_off_by_default(self):
        assert VOICE_COMMANDS_INSTRUCTION not in build_system_prompt("general")

    def test_unknown_domain_raises(self):
        with pytest.raises(ValueError, match="Unbekannte Domäne"):
            build_system_prompt("astrology")


class TestDomains:
    def test_all_presets_present(self):
        assert set(DOMAINS) == {"general", "dev", "medical", "legal", "finance"}

    @pytest.mark.parametrize(
        "domain,label",
        [
            ("dev", "Software Engineering"),
            ("medical", "Medical / Healthcare"),
            ("finance", "Finance"),
        ],
    )
    def test_labels(self, domain, label):
        assert get_domain_label(domain) == label

    def test_normalize_strips_whitespace(self):
        assert normalize_domain("  Legal ") == "legal"
