"""Unit tests for the command-line interface."""

import pytest
import typer
from typer.testing import CliRunner

from draftsmith import __version__
from draftsmith.cli import _resolve_post_type, app, document_id_for
from draftsmith.models import PostType

runner = CliRunner()


@pytest.mark.unit
class TestCommands:
    """Tests for CLI commands that need no vendor access."""

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_unknown_vendor_exits(self):
        result = runner.invoke(app, ["models", "--vendor", "anthropic"])

        assert result.exit_code == 1
        assert "Unknown vendor" in result.output


@pytest.mark.unit
class TestHelpers:
    """Tests for CLI helper functions."""

    def test_document_id_is_stable_per_path(self, tmp_path):
        path = tmp_path / "notes.md"

        assert document_id_for(path) == document_id_for(path)
        assert document_id_for(path) != document_id_for(tmp_path / "other.md")

    @pytest.mark.parametrize(
        "name,expected",
        [("post", PostType.POST), ("COMMENT", PostType.COMMENT)],
    )
    def test_resolve_post_type(self, name, expected):
        assert _resolve_post_type(name) is expected

    def test_resolve_unknown_post_type(self):
        with pytest.raises(typer.Exit):
            _resolve_post_type("thread")
