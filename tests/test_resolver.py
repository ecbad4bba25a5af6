from pathlib import Path

from stackseed.config import template_search_roots, templates_root
from stackseed.resolver import resolve_template


def test_resolve_template_returns_first_existing_root(tmp_path: Path):
    first = tmp_path / "first"
    second = tmp_path / "second"
    (second / "portfolio").mkdir(parents=True)
    (first / "ecom").mkdir(parents=True)
    (first / "portfolio").write_text("not a directory", encoding="utf-8")

    assert resolve_template("portfolio", [first, second]) == second / "portfolio"
    assert resolve_template("ecom", [first, second]) == first / "ecom"


def test_resolve_template_not_found_returns_none(tmp_path: Path):
    assert resolve_template("dashboard", [tmp_path / "nowhere", tmp_path]) is None


def test_template_search_roots_orders_user_roots_first(tmp_path: Path):
    roots = template_search_roots([tmp_path, tmp_path])

    assert roots[0] == tmp_path
    assert roots.count(tmp_path) == 1
    assert templates_root() in roots
    assert roots.index(templates_root()) == 1
