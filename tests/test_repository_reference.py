"""
Repository Reference Parsing Tests.
"""

import pytest

from errors import InvalidRepoURLError
from miners.github_miner import parse_repository_reference


@pytest.mark.parametrize(
    "reference",
    [
        "https://github.com/octocat/hello-world",
        "https://github.com/octocat/hello-world/",
        "https://github.com/octocat/hello-world.git",
        "http://github.com/octocat/hello-world",
        "github.com/octocat/hello-world",
        "github.com/octocat/hello-world/tree/main",
        "github.com/octocat/hello-world.git",
        "octocat/hello-world",
        "  octocat/hello-world  ",
    ],
)
def test_accepted_forms(reference):
    ref = parse_repository_reference(reference)
    assert ref.owner == "octocat"
    assert ref.repo == "hello-world"
    assert ref.full_name == "octocat/hello-world"


def test_url_with_extra_path_segments():
    ref = parse_repository_reference("https://github.com/octocat/hello-world/tree/main")
    assert (ref.owner, ref.repo) == ("octocat", "hello-world")


def test_dots_and_underscores_in_names():
    ref = parse_repository_reference("my_org/my.repo-name")
    assert (ref.owner, ref.repo) == ("my_org", "my.repo-name")


@pytest.mark.parametrize(
    "reference",
    [
        "",
        "not a repo",
        "octocat",
        "https://github.com/octocat",
        "github.com/octocat",
        "owner/repo/extra",
        "https:///octocat/repo",
        "octo cat/repo",
        "owner/re$po",
    ],
)
def test_rejected_forms(reference):
    with pytest.raises(InvalidRepoURLError):
        parse_repository_reference(reference)


def test_non_string_is_rejected():
    with pytest.raises(InvalidRepoURLError):
        parse_repository_reference(None)
