import shutil
from pathlib import Path

import pytest

from stackseed.copier import CopyError, copy_tree


def _make_template(root: Path) -> None:
    (root / "src" / "components").mkdir(parents=True)
    (root / "src" / "components" / "Header.jsx").write_text("header", encoding="utf-8")
    (root / "package.json").write_text("{}", encoding="utf-8")
    (root / "node_modules" / "react").mkdir(parents=True)
    (root / "node_modules" / "react" / "index.js").write_text("react", encoding="utf-8")
    (root / "src" / ".git").mkdir()
    (root / "src" / ".git" / "HEAD").write_text("ref", encoding="utf-8")
    (root / "src" / "components" / "package-lock.json").write_text("{}", encoding="utf-8")
    (root / ".env.local").write_text("SECRET=1", encoding="utf-8")
    (root / ".next" / "cache").mkdir(parents=True)


def test_copy_tree_mirrors_and_excludes_at_any_depth(tmp_path: Path):
    source = tmp_path / "template"
    destination = tmp_path / "project"
    _make_template(source)

    copied = copy_tree(source, destination)

    assert (destination / "src" / "components" / "Header.jsx").read_text(encoding="utf-8") == "header"
    assert (destination / "package.json").exists()
    for excluded in ("node_modules", ".git", "package-lock.json", ".env.local", ".next"):
        assert not any(excluded in path.relative_to(destination).parts for path in destination.rglob("*"))
    assert sorted(str(path) for path in copied) == ["package.json", "src/components/Header.jsx"]


def test_copy_tree_overwrites_existing_files(tmp_path: Path):
    source = tmp_path / "template"
    source.mkdir()
    (source / "README.md").write_text("new", encoding="utf-8")
    destination = tmp_path / "project"
    destination.mkdir()
    (destination / "README.md").write_text("old", encoding="utf-8")

    copy_tree(source, destination)

    assert (destination / "README.md").read_text(encoding="utf-8") == "new"


def test_copy_tree_missing_source_raises(tmp_path: Path):
    with pytest.raises(CopyError) as excinfo:
        copy_tree(tmp_path / "missing", tmp_path / "project")

    assert excinfo.value.path == tmp_path / "missing"


def test_copy_tree_failure_reports_offending_path(tmp_path: Path, monkeypatch):
    source = tmp_path / "template"
    source.mkdir()
    (source / "a.txt").write_text("a", encoding="utf-8")
    (source / "b.txt").write_text("b", encoding="utf-8")
    real_copy2 = shutil.copy2

    def flaky_copy2(src, dst, *args, **kwargs):
        if Path(src).name == "b.txt":
            raise PermissionError("denied")
        return real_copy2(src, dst, *args, **kwargs)

    monkeypatch.setattr(shutil, "copy2", flaky_copy2)

    with pytest.raises(CopyError) as excinfo:
        copy_tree(source, tmp_path / "project")

    assert excinfo.value.path == source / "b.txt"
    assert (tmp_path / "project" / "a.txt").exists()


def test_copy_tree_follows_symlinked_directories(tmp_path: Path):
    source = tmp_path / "template"
    (source / "real").mkdir(parents=True)
    (source / "real" / "a.js").write_text("a", encoding="utf-8")
    (source / "linked").symlink_to("real", target_is_directory=True)
    destination = tmp_path / "project"

    copied = copy_tree(source, destination)

    assert (destination / "linked" / "a.js").read_text(encoding="utf-8") == "a"
    assert not (destination / "linked").is_symlink()
    assert sorted(str(path) for path in copied) == ["linked/a.js", "real/a.js"]


def test_copy_tree_skips_symlink_loops(tmp_path: Path):
    source = tmp_path / "template"
    (source / "src").mkdir(parents=True)
    (source / "src" / "index.js").write_text("index", encoding="utf-8")
    (source / "src" / "loop").symlink_to("..", target_is_directory=True)
    destination = tmp_path / "project"

    copied = copy_tree(source, destination)

    assert [str(path) for path in copied] == ["src/index.js"]
    assert not (destination / "src" / "loop").exists()
