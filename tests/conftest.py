import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from grantlang.compiler.iam import IamPolicyCompiler  # noqa: E402
from grantlang.persistence.registry import PolicyRegistry  # noqa: E402
from grantlang.persistence.store import MemoryStore  # noqa: E402


@pytest.fixture(autouse=True)
def _clear_grantlang_env(monkeypatch):
    for name in (
        "GRANTLANG_REGISTRY_PATH",
        "GRANTLANG_REGISTRY_PRUNE",
        "GRANTLANG_PARSER_STRICT",
        "GRANTLANG_AWS_PARTITION",
        "GRANTLANG_AWS_REGION",
        "GRANTLANG_AWS_ACCOUNT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def registry(memory_store: MemoryStore) -> PolicyRegistry:
    return PolicyRegistry.load(memory_store)


@pytest.fixture
def compiler() -> IamPolicyCompiler:
    return IamPolicyCompiler()
