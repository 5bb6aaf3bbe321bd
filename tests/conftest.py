"""Shared pytest fixtures for bugmark tests."""

from pathlib import Path

import pytest

from bugmark.core.models import LocationFact
from bugmark.core.tree import BookmarkNode, FolderNode, RootNode


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Return an empty workspace directory."""
    root = tmp_path / "ws"
    root.mkdir()
    return root


@pytest.fixture
def sample_source() -> list[str]:
    """Return the lines of a small source file."""
    return [
        "import os",
        "",
        "def main():",
        "    path = os.getcwd()",
        "    print(path)",
        "    return 0",
        "",
        "if __name__ == '__main__':",
        "    main()",
    ]


@pytest.fixture
def sample_tree() -> RootNode:
    """
    Return a small record tree::

        api/
          get    -> a.py:3
          post   -> a.py:5
        core/
          util/
            helper -> b.py:0
        top      -> a.py:0
    """
    return RootNode(
        [
            FolderNode(
                "api",
                [
                    BookmarkNode("get", LocationFact(file="a.py", lineno=3, content="    path = os.getcwd()")),
                    BookmarkNode("post", LocationFact(file="a.py", lineno=5, content="    return 0")),
                ],
            ),
            FolderNode(
                "core",
                [
                    FolderNode(
                        "util",
                        [BookmarkNode("helper", LocationFact(file="b.py", lineno=0, content="x = 1"))],
                    )
                ],
            ),
            BookmarkNode("top", LocationFact(file="a.py", lineno=0, content="import os")),
        ]
    )
