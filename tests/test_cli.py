"""Tests for the admin CLI against a throwaway sqlite file."""

from click.testing import CliRunner

from adelia_cli import cli
from db_main import PostStore
from db_meta import DB


def _uri(tmp_path):
    return "sqlite:///%s" % (tmp_path / "board.sqlite")


def test_initdb_then_list_threads(tmp_path):
    uri = _uri(tmp_path)
    runner = CliRunner()
    result = runner.invoke(cli, ["--db", uri, "initdb"])
    assert result.exit_code == 0

    store = PostStore(DB(uri))
    tid = store.create_post(0, "c", "Hello there", "op body", now=1)
    store.create_post(tid, "d", None, "a reply", now=2)

    result = runner.invoke(cli, ["--db", uri, "threads"])
    assert result.exit_code == 0
    assert "Hello there" in result.output

    result = runner.invoke(cli, ["--db", uri, "thread", str(tid)])
    assert result.exit_code == 0
    assert "a reply" in result.output


def test_missing_thread_exits_nonzero(tmp_path):
    uri = _uri(tmp_path)
    runner = CliRunner()
    runner.invoke(cli, ["--db", uri, "initdb"])
    result = runner.invoke(cli, ["--db", uri, "thread", "99"])
    assert result.exit_code == 1
