"""Tests for the click command-line interface."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from graphnorm.cli import main

SCHEMAS_YAML = """
schemas:
  users: {id_key: username}
  comments:
    relationships:
      author: {has_one: users}
  posts:
    relationships:
      author: {has_one: users}
      comments: {has_many: comments}
"""


@pytest.fixture
def workspace(tmp_path: Path, blog_data) -> Path:
    (tmp_path / "schemas.yaml").write_text(SCHEMAS_YAML)
    (tmp_path / "config.yaml").write_text(
        "schemas:\n  path: schemas.yaml\nlogging:\n  level: WARNING\n"
    )
    (tmp_path / "posts.json").write_text(json.dumps(blog_data))
    return tmp_path


def _run(workspace: Path, *args: str):
    runner = CliRunner()
    return runner.invoke(main, ["-c", str(workspace / "config.yaml"), *args])


class TestNormalizeCommand:
    def test_outputs_normalized_json(self, workspace):
        result = _run(workspace, "normalize", str(workspace / "posts.json"), "--type", "posts")
        assert result.exit_code == 0, result.output
        out = json.loads(result.stdout)
        assert out["result"] == ["post1", "post2"]
        assert len(out["entities"]["users"]) == 3
        assert out["entities"]["posts"]["post1"]["comments"] == ["comment1", "comment2"]

    def test_unknown_type(self, workspace):
        result = _run(workspace, "normalize", str(workspace / "posts.json"), "-t", "articles")
        assert result.exit_code != 0
        assert "Schema not found" in result.output


class TestDenormalizeCommand:
    def test_single(self, workspace):
        result = _run(
            workspace, "denormalize", str(workspace / "posts.json"),
            "-t", "posts", "--id", "post1",
        )
        assert result.exit_code == 0, result.output
        post = json.loads(result.stdout)
        assert post["author"]["name"] == "User 1"
        assert [c["id"] for c in post["comments"]] == ["comment1", "comment2"]

    def test_all(self, workspace):
        result = _run(
            workspace, "denormalize", str(workspace / "posts.json"), "-t", "users", "-r", "posts",
        )
        assert result.exit_code == 0, result.output
        assert [u["username"] for u in json.loads(result.stdout)] == ["user1", "user2", "user3"]

    def test_several_ids(self, workspace):
        result = _run(
            workspace, "denormalize", str(workspace / "posts.json"),
            "-t", "comments", "-r", "posts", "--id", "comment5", "--id", "ghost", "--id", "comment1",
        )
        assert result.exit_code == 0, result.output
        assert [c["id"] for c in json.loads(result.stdout)] == ["comment5", "comment1"]

    def test_nested_author_through_root(self, workspace):
        result = _run(
            workspace, "denormalize", str(workspace / "posts.json"),
            "-t", "comments", "--root", "posts", "--id", "comment3",
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["author"]["username"] == "user3"

    def test_not_found(self, workspace):
        result = _run(
            workspace, "denormalize", str(workspace / "posts.json"),
            "-t", "posts", "--id", "ghost",
        )
        assert result.exit_code != 0
        assert "not found" in result.output

    def test_integer_ids(self, workspace):
        (workspace / "tags.json").write_text(json.dumps([{"id": 1, "label": "a"}]))
        (workspace / "tags.yaml").write_text("schemas:\n  tags: {}\n")
        runner = CliRunner()
        result = runner.invoke(main, [
            "-c", str(workspace / "config.yaml"), "-s", str(workspace / "tags.yaml"),
            "denormalize", str(workspace / "tags.json"), "-t", "tags", "--id", "1",
        ])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {"id": 1, "label": "a"}


class TestStatsCommand:
    def test_counts(self, workspace):
        result = _run(workspace, "stats", str(workspace / "posts.json"), "-t", "posts")
        assert result.exit_code == 0, result.output
        assert "comments" in result.output
        lines = {l.split()[0]: l.split()[1] for l in result.stdout.splitlines()[1:]}
        assert lines == {"users": "3", "comments": "5", "posts": "2"}


class TestValidateSchemasCommand:
    def test_closed(self, workspace):
        result = _run(workspace, "validate-schemas")
        assert result.exit_code == 0, result.output
        assert "3 schema(s)" in result.output

    def test_open(self, workspace):
        (workspace / "broken.yaml").write_text(
            "schemas:\n  posts:\n    relationships:\n      tags: {has_many: tags}\n"
        )
        result = _run(workspace, "-s", str(workspace / "broken.yaml"), "validate-schemas")
        assert result.exit_code != 0
        assert "posts.tags" in result.output


class TestBadConfig:
    def test_unparseable_config_is_click_error(self, workspace):
        (workspace / "config.yaml").write_text("schemas: [unclosed\n")
        result = _run(workspace, "validate-schemas")
        assert result.exit_code == 1
        assert "Cannot parse config file" in result.output
        assert isinstance(result.exception, SystemExit)
