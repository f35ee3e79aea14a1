import sys
import random
from pathlib import Path
import importlib
import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture()
def m():
    """Lazily import the main module for tests to avoid module-level import."""
    return importlib.import_module("main")


@pytest.fixture()
def no_progress(monkeypatch, m):
    """Suppress progress rendering in main module during tests."""
    calls = []

    def _stub(line: str):
        calls.append(line)

    monkeypatch.setattr(m, "_print_progress", _stub)
    return calls


@pytest.fixture()
def progress_recorder():
    """Provide a reusable progress callback and its call log."""
    calls = []

    def cb(done, total):
        calls.append((done, total))

    return cb, calls


@pytest.fixture()
def random_bytes():
    """Return a factory of deterministic pseudo-random byte strings."""

    def _make(size: int, seed: int = 1234) -> bytes:
        rng = random.Random(seed)
        return bytes(rng.getrandbits(8) for _ in range(size))

    return _make


@pytest.fixture()
def sample_file(tmp_path: Path):
    """Create a small, compressible input file."""
    path = tmp_path / "sample.txt"
    path.write_bytes(b"Hello World! " * 40 + b"\x00\x01\x02\x03")
    return path


def parse_tokens(stream: bytes):
    """Return the list of tokens in ``stream``."""
    from tokenio import TokenReader

    return list(TokenReader(stream))


@pytest.fixture()
def tokens_of():
    """Fixture that provides the parse_tokens helper."""
    return parse_tokens
