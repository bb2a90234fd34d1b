# tether/tests/conftest.py
import os
import tempfile

# Must happen before tether is imported anywhere: the logger and preferences
# resolve TETHER_HOME on first use.
os.environ["TETHER_HOME"] = tempfile.mkdtemp(prefix="tether_test_home_")

import pytest  # noqa: E402


# ───────────────────────────────────────────────────────────────
#  Preferences reset (per-test)
# ───────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def reset_prefs():
    """Every test starts from an empty, already-loaded preferences document."""
    from tether.preferences import prefs

    saved = prefs.prefs
    prefs.prefs = {}
    prefs.initialized = True
    try:
        yield prefs
    finally:
        prefs.prefs = saved


# ───────────────────────────────────────────────────────────────
#  Sandbox directory used as allowed base
# ───────────────────────────────────────────────────────────────
@pytest.fixture
def base(tmp_path):
    """Canonical temp directory to confine path validation to."""
    root = tmp_path / "base"
    root.mkdir()
    return root.resolve()


@pytest.fixture
def home_base(monkeypatch, base):
    """Point $HOME at the sandbox so default-base code paths stay inside it."""
    monkeypatch.setenv("HOME", str(base))
    monkeypatch.chdir(base)
    return base


@pytest.fixture
def outside(tmp_path):
    root = tmp_path / "outside"
    root.mkdir()
    (root / "secret.txt").write_text("top secret\n")
    return root.resolve()
