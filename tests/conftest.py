"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from pathlib import Path
from typing import Callable, Sequence

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import Settings  # noqa: E402
from learnhub.ai.model_settings import ModelSettings  # noqa: E402
from learnhub.ai.models import ChatTurn, ProviderKind, TutorContext  # noqa: E402
from learnhub.ai.preference_store import PreferenceStore  # noqa: E402
from learnhub.ai.providers.base import TextProvider  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


class ScriptedProvider(TextProvider):
    """
    Provider double that replays scripted outcomes.

    Each entry is either a string (returned) or an exception (raised).
    """

    def __init__(self, kind: ProviderKind, outcomes: Sequence[object] = ()):
        self.kind = kind
        self.outcomes = list(outcomes)
        self.calls: list[tuple[str, object]] = []
        self.closed = False

    def _next(self) -> str:
        if not self.outcomes:
            raise AssertionError(f"Unexpected call to {self.kind.value} provider")
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        return self._next()

    async def converse(self, system_prompt: str, messages: Sequence[ChatTurn]) -> str:
        self.calls.append((system_prompt, list(messages)))
        return self._next()

    async def close(self) -> None:
        self.closed = True


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings isolated from the environment and the user's home directory."""
    return Settings(
        _env_file=None,
        groq_api_key="",
        groq_model="openai/gpt-oss-20b",
        groq_vision_model="meta-llama/llama-4-maverick-17b-128e-instruct",
        model_preference="automatic",
        local_model_enabled=False,
        local_model_name="llama3.2",
        rate_limit_delay_min_ms=0,
        rate_limit_delay_max_ms=0,
        preferences_path=tmp_path / "preferences.json",
    )


@pytest.fixture
def preference_store() -> PreferenceStore:
    """In-memory preference store."""
    return PreferenceStore(None)


@pytest.fixture
def make_model_settings(settings, preference_store) -> Callable[..., ModelSettings]:
    """Factory for ModelSettings with a configurable on-device availability."""

    def factory(on_device_available: bool = False) -> ModelSettings:
        return ModelSettings(
            settings=settings,
            store=preference_store,
            local_availability=lambda: on_device_available,
        )

    return factory


@pytest.fixture
def make_provider() -> Callable[..., ScriptedProvider]:
    """Factory for scripted provider doubles."""

    def factory(kind: ProviderKind, *outcomes: object) -> ScriptedProvider:
        return ScriptedProvider(kind, outcomes)

    return factory


@pytest.fixture
def tutor_context() -> TutorContext:
    """Provide sample study material for tutor tests."""
    return TutorContext(
        original_text="Photosynthesis converts light energy into chemical energy in chloroplasts.",
        study_set_title="Biology 101",
        summary="Plants make glucose from light, water and CO2.",
    )


@pytest.fixture
def sample_question_output() -> str:
    """Well-formed tagged question output."""
    return (
        "[QUESTION]\nWhat organelle performs photosynthesis?\n"
        "[ANSWER]\nChloroplast\n"
        "[OPTION]\nMitochondrion\n"
        "[OPTION]\nChloroplast\n"
        "[OPTION]\nRibosome\n"
        "[OPTION]\nNucleus\n"
        "[EXPLANATION]\nChloroplasts contain chlorophyll.\n"
        "[END]\n"
    )


@pytest.fixture
def sample_flashcard_output() -> str:
    """Well-formed tagged flashcard output."""
    return (
        "[FRONT]\nPhotosynthesis\n[BACK]\nLight to chemical energy.\n[END]\n"
        "[FRONT]\nChlorophyll\n[BACK]\nGreen pigment absorbing light.\n[END]\n"
    )
