import os

import pytest

from tether import paths
from tether.errors import AccessDenied, FilesystemError, TraversalDetected
from tether.paths import (
    PathValidator,
    expand_path,
    get_allowed_base,
    open_validated,
    validate_path,
    validate_path_for_write,
)


# ───────────────────────────────────────────────────────────────
#  Containment
# ───────────────────────────────────────────────────────────────
def test_existing_file_inside_base(base):
    target = base / "a.txt"
    target.write_text("x")
    assert validate_path(target, base) == target


def test_base_itself_is_allowed(base):
    assert validate_path(base, base) == base


def test_new_file_with_existing_parent(base):
    assert validate_path(base / "new.txt", base) == base / "new.txt"


def test_result_is_idempotent(base):
    (base / "sub").mkdir()
    first = validate_path(base / "sub", base)
    assert validate_path(first, base) == first


@pytest.mark.parametrize("raw", ["../etc/passwd", "a/../b", "..", "foo..bar"])
def test_any_dotdot_is_traversal(base, raw):
    with pytest.raises(TraversalDetected) as exc:
        validate_path(raw, base)
    assert exc.value.path == raw


def test_absolute_path_outside_base(base, outside):
    with pytest.raises(AccessDenied) as exc:
        validate_path(outside / "secret.txt", base)
    assert str(outside / "secret.txt") in str(exc.value)
    assert exc.value.allowed_base == base


def test_symlink_escape_is_denied(base, outside):
    link = base / "link"
    link.symlink_to(outside / "secret.txt")
    with pytest.raises(AccessDenied):
        validate_path(link, base)


def test_symlinked_parent_escape_for_new_file(base, outside):
    (base / "out").symlink_to(outside, target_is_directory=True)
    with pytest.raises(AccessDenied, match="parent directory outside allowed base"):
        validate_path(base / "out" / "new.txt", base)


def test_symlink_inside_base_resolves(base):
    (base / "real.txt").write_text("x")
    (base / "alias").symlink_to(base / "real.txt")
    assert validate_path(base / "alias", base) == base / "real.txt"


def test_dangling_symlink_is_not_a_new_file(base, tmp_path):
    (base / "dangling").symlink_to(tmp_path / "nowhere")
    with pytest.raises(FilesystemError, match="Could not canonicalize"):
        validate_path(base / "dangling", base)


def test_missing_parent(base):
    with pytest.raises(FilesystemError, match="Parent directory does not exist"):
        validate_path(base / "nope" / "file.txt", base)


def test_relative_paths_join_cwd(base, monkeypatch):
    monkeypatch.chdir(base)
    (base / "rel.txt").write_text("x")
    assert validate_path("rel.txt", base) == base / "rel.txt"


def test_nul_byte_rejected(base):
    with pytest.raises(FilesystemError, match="NUL"):
        validate_path("a\x00b", base)


def test_validator_repr(base):
    assert str(base) in repr(PathValidator(base))


# ───────────────────────────────────────────────────────────────
#  Home expansion / default base
# ───────────────────────────────────────────────────────────────
def test_tilde_expands_from_home(home_base):
    (home_base / "doc.md").write_text("x")
    assert validate_path("~/doc.md") == home_base / "doc.md"
    assert validate_path("~") == home_base


def test_default_base_is_home(home_base, outside):
    assert get_allowed_base() == home_base
    with pytest.raises(AccessDenied):
        validate_path(outside / "secret.txt")


def test_prefs_override_base(reset_prefs, home_base, outside):
    reset_prefs.set("paths", "allowed_base", value=str(outside))
    assert get_allowed_base() == outside
    assert validate_path(outside / "secret.txt") == outside / "secret.txt"


def test_unset_home_is_hard_error(monkeypatch, base):
    monkeypatch.delenv("HOME", raising=False)
    with pytest.raises(FilesystemError, match="HOME"):
        validate_path("~/x", base)
    with pytest.raises(FilesystemError, match="HOME"):
        get_allowed_base()


def test_expand_path_joins_given_cwd(base):
    assert expand_path("x/y.txt", base) == base / "x" / "y.txt"


# ───────────────────────────────────────────────────────────────
#  Write protection
# ───────────────────────────────────────────────────────────────
def test_protected_targets_refused(base):
    ssh = base / ".ssh"
    ssh.mkdir()
    with pytest.raises(AccessDenied, match="sensitive file"):
        validate_path_for_write(ssh / "authorized_keys", base)
    with pytest.raises(AccessDenied):
        validate_path_for_write(base / ".bashrc", base)


def test_plain_files_writable(base):
    assert validate_path_for_write(base / "notes.txt", base) == base / "notes.txt"


def test_custom_protected_patterns(base):
    with pytest.raises(AccessDenied):
        validate_path_for_write(base / "prod.env", base, protected=["*.env"])
    assert validate_path_for_write(base / ".bashrc", base, protected=[]) == base / ".bashrc"


# ───────────────────────────────────────────────────────────────
#  open_validated
# ───────────────────────────────────────────────────────────────
def test_open_validated_roundtrip(base):
    with open_validated(base / "f.txt", "w", allowed_base=base) as fh:
        fh.write("hello")
    with open_validated(base / "f.txt", allowed_base=base) as fh:
        assert fh.read() == "hello"
    with open_validated(base / "f.txt", "ab", allowed_base=base) as fh:
        fh.write(b"!")
    assert (base / "f.txt").read_text() == "hello!"


def test_open_validated_rejects_escape(base, outside):
    (base / "link").symlink_to(outside / "secret.txt")
    with pytest.raises(AccessDenied):
        open_validated(base / "link", allowed_base=base)


def test_open_validated_refuses_protected_write(base):
    with pytest.raises(AccessDenied):
        open_validated(base / ".zshrc", "w", allowed_base=base)


def test_open_validated_unknown_mode(base):
    with pytest.raises(ValueError):
        open_validated(base / "f.txt", "r+", allowed_base=base)


def test_swap_between_validate_and_open_is_detected(base, outside, monkeypatch):
    target = base / "f.txt"
    target.write_text("mine")

    real_open = os.open

    def swapping_open(path, flags, mode=0o777):
        fd = real_open(path, flags, mode)
        # replace the file after open: the path no longer names the same inode
        os.unlink(target)
        target.write_text("swapped")
        return fd

    monkeypatch.setattr(paths.os, "open", swapping_open)
    with pytest.raises(AccessDenied, match="changed while being opened"):
        open_validated(target, allowed_base=base)


def test_write_mode_still_truncates(base):
    target = base / "f.txt"
    target.write_text("a much longer original")
    with open_validated(target, "w", allowed_base=base) as fh:
        fh.write("short")
    assert target.read_text() == "short"


def test_swapped_write_target_is_not_truncated(base, outside, monkeypatch):
    target = base / "f.txt"
    target.write_text("mine")
    real_open = os.open

    def raced_open(path, flags, mode=0o777):
        # the path named an outside file at the moment of open
        return real_open(outside / "secret.txt", flags, mode)

    monkeypatch.setattr(paths.os, "open", raced_open)
    with pytest.raises(AccessDenied, match="changed while being opened"):
        open_validated(target, "w", allowed_base=base)
    assert (outside / "secret.txt").read_text() == "top secret\n"
    assert target.read_text() == "mine"
