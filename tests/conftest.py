"""Configuração do pytest para o projeto ponte-crm."""

import sys
from pathlib import Path

import pytest

# Adiciona src/ (imports absolutos) e a raiz (tests.fakes) ao PYTHONPATH
root_path = Path(__file__).parent.parent
for path in (root_path / "src", root_path):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from tests.fakes.clock import FakeClock  # noqa: E402
from tests.fakes.collaborators import FakeChatClient, FakeCrmClient  # noqa: E402


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def crm() -> FakeCrmClient:
    return FakeCrmClient()


@pytest.fixture
def chat() -> FakeChatClient:
    return FakeChatClient()
