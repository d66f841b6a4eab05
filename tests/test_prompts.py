"""
Tests for the system prompt override store.
Run with: pytest tests/test_prompts.py
"""

from cidchat.models import NO_SYSTEM_PROMPT
from cidchat.prompts import PromptOverrideStore


class TestEffectivePrompt:
    def test_explicit_beats_everything(self):
        store = PromptOverrideStore()
        store.set_override("O")
        assert store.effective_prompt("D", explicit="E") == "E"

    def test_override_beats_default(self):
        store = PromptOverrideStore()
        store.set_override("O")
        assert store.effective_prompt("D") == "O"

    def test_default_when_nothing_else(self):
        assert PromptOverrideStore().effective_prompt("D") == "D"

    def test_nothing_set_means_no_system_turn(self):
        assert PromptOverrideStore().effective_prompt(None) is None

    def test_sentinel_default_means_no_system_turn(self):
        assert PromptOverrideStore().effective_prompt(NO_SYSTEM_PROMPT) is None

    def test_empty_explicit_falls_through(self):
        store = PromptOverrideStore()
        store.set_override("O")
        assert store.effective_prompt("D", explicit="") == "O"


class TestOverrideSlot:
    def test_last_write_wins(self):
        store = PromptOverrideStore()
        store.set_override("first")
        store.set_override("second")
        assert store.get_override() == "second"

    def test_empty_string_clears(self):
        store = PromptOverrideStore()
        store.set_override("O")
        store.set_override("")
        assert store.get_override() is None
        assert store.effective_prompt("D") == "D"

    def test_clear(self):
        store = PromptOverrideStore()
        store.set_override("O")
        store.clear()
        assert store.get_override() is None

    def test_display_prompt(self):
        store = PromptOverrideStore()
        assert store.display_prompt(None) == NO_SYSTEM_PROMPT
        assert store.display_prompt("D") == "D"
        store.set_override("O")
        assert store.display_prompt("D") == "O"
