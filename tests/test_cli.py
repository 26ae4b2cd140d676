"""Tests for the command line interface."""

import orjson
import pytest
from typer.testing import CliRunner

from sfmc_graph import __version__, cli
from sfmc_graph.clients.transport import TransportStats
from sfmc_graph.core.errors import AuthenticationError, CrawlCancelledError, RetryExhaustedError
from sfmc_graph.crawler.context import CrawlContext
from sfmc_graph.output.serializer import serialize

runner = CliRunner()


@pytest.fixture(autouse=True)
def sfmc_env(monkeypatch):
    monkeypatch.setenv("SFMC_SUBDOMAIN", "mc-cli")
    monkeypatch.setenv("SFMC_ACCESS_TOKEN", "cli-token-abcdef")
    monkeypatch.delenv("SFMC_SOAP_TOKEN", raising=False)
    monkeypatch.delenv("SFMC_CRAWL_TIMEOUT", raising=False)


def stub_crawl(monkeypatch, result=None, error=None):
    seen = {}

    async def fake_run_crawl(config):
        seen["config"] = config
        if error is not None:
            raise error
        return result

    monkeypatch.setattr(cli, "run_crawl", fake_run_crawl)
    return seen


class TestCrawlCommand:
    def test_writes_graph(self, monkeypatch, tmp_path):
        graph = serialize(CrawlContext(), TransportStats(), 0.5)
        seen = stub_crawl(monkeypatch, result=graph)
        output = tmp_path / "graph.json"

        result = runner.invoke(cli.app, ["crawl", "--output", str(output), "--timeout", "60"])

        assert result.exit_code == 0, result.output
        assert orjson.loads(output.read_bytes())["metadata"]["totalNodes"] == 0
        assert seen["config"].crawl_timeout == 60.0
        assert seen["config"].subdomain == "mc-cli"

    def test_options_override_environment(self, monkeypatch, tmp_path):
        seen = stub_crawl(monkeypatch, result=serialize(CrawlContext(), TransportStats(), 0.5))

        runner.invoke(
            cli.app,
            ["crawl", "-s", "other", "-t", "other-token", "--soap-token", "soap", "-o", str(tmp_path / "g.json")],
        )

        assert seen["config"].subdomain == "other"
        assert seen["config"].access_token == "other-token"
        assert seen["config"].fueloauth_token == "soap"

    def test_missing_config(self, monkeypatch):
        monkeypatch.setenv("SFMC_ACCESS_TOKEN", "")
        stub_crawl(monkeypatch)

        result = runner.invoke(cli.app, ["crawl"])

        assert result.exit_code == 1
        assert "SFMC_ACCESS_TOKEN" in result.output

    def test_authentication_error(self, monkeypatch, tmp_path):
        stub_crawl(monkeypatch, error=AuthenticationError("rejected", status_code=401, phase="folders"))

        result = runner.invoke(cli.app, ["crawl", "-o", str(tmp_path / "g.json")])

        assert result.exit_code == 2
        assert not (tmp_path / "g.json").exists()

    def test_phase_failure(self, monkeypatch, tmp_path):
        stub_crawl(monkeypatch, error=RetryExhaustedError("still 503", attempts=4, phase="automations"))

        result = runner.invoke(cli.app, ["crawl", "-o", str(tmp_path / "g.json")])

        assert result.exit_code == 1
        assert "automations" in result.output

    def test_cancelled(self, monkeypatch, tmp_path):
        stub_crawl(monkeypatch, error=CrawlCancelledError("Crawl exceeded deadline", phase="journeys"))

        result = runner.invoke(cli.app, ["crawl", "-o", str(tmp_path / "g.json")])

        assert result.exit_code == 1


class TestOtherCommands:
    def test_version(self):
        result = runner.invoke(cli.app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_check(self):
        result = runner.invoke(cli.app, ["check"])

        assert result.exit_code == 0
        assert "mc-cli" in result.output
        assert "cli-toke..." in result.output

    def test_check_missing(self, monkeypatch):
        monkeypatch.setenv("SFMC_SUBDOMAIN", "")

        result = runner.invoke(cli.app, ["check"])

        assert result.exit_code == 1
