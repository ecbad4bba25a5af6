import pytest

from stackseed.naming import validate_project_name


@pytest.mark.parametrize("name", ["my-site", "shop2", "@acme/dashboard", "portfolio.site"])
def test_valid_names(name: str):
    result = validate_project_name(name)

    assert result.valid_for_new_packages
    assert result.errors == ()


@pytest.mark.parametrize(
    "name, message",
    [
        ("", "name length must be greater than zero"),
        (".hidden", "name cannot start with a period"),
        ("_private", "name cannot start with an underscore"),
        (" padded", "name cannot contain leading or trailing spaces"),
        ("node_modules", "node_modules is a blacklisted name"),
        ("my site", "name can only contain URL-friendly characters"),
    ],
)
def test_names_with_errors(name: str, message: str):
    result = validate_project_name(name)

    assert not result.valid_for_new_packages
    assert message in result.errors


@pytest.mark.parametrize(
    "name, message",
    [
        ("MySite", "name can no longer contain capital letters"),
        ("fs", "fs is a core module name"),
        ("a" * 215, "name can no longer contain more than 214 characters"),
        ("wow!", 'name can no longer contain special characters ("~\'!()*")'),
    ],
)
def test_names_with_warnings(name: str, message: str):
    result = validate_project_name(name)

    assert not result.valid_for_new_packages
    assert result.errors == ()
    assert message in result.warnings
