"""CLI tests with typer's CliRunner."""

from datetime import timedelta

import pytest
from typer.testing import CliRunner

from conftest import NOW
from vibein import cli
from vibein.api.deps import build_services
from vibein.auth.tokens import ActorRole, verify_token
from vibein.notifications import NullNotifier
from vibein.storage import MemoryDocumentStore

runner = CliRunner()


@pytest.fixture
def services(monkeypatch, clock):
    services = build_services(MemoryDocumentStore(), clock=clock, notifier=NullNotifier())
    monkeypatch.setattr(cli, "get_services", lambda: services)
    return services


class TestCommands:

    def test_expire_offers(self, services, clock):
        services.offers.create_offer("biz", ["Google"], "Fries", NOW + timedelta(hours=1))
        clock.advance(hours=2)

        result = runner.invoke(cli.app, ["expire-offers"])

        assert result.exit_code == 0
        assert "Deactivated 1 expired offer(s)" in result.output

    def test_offers_table(self, services):
        services.offers.create_offer("biz", ["Google"], "Fries", NOW + timedelta(days=1), 5)

        result = runner.invoke(cli.app, ["offers", "biz"])

        assert result.exit_code == 0
        assert "Fries" in result.output
        assert "0/5" in result.output

    def test_stats(self, services):
        offer_id = services.offers.create_offer("biz", ["Google"], "Fries", NOW + timedelta(days=1))
        services.ledger.join(offer_id, "inf-a", "Ana", "Google")

        result = runner.invoke(cli.app, ["stats", "biz"])

        assert result.exit_code == 0
        assert "Pending:" in result.output

    def test_token(self, services):
        offer_id = services.offers.create_offer("biz", ["Google"], "Fries", NOW + timedelta(days=1))
        participation = services.ledger.join(offer_id, "inf-a", "Ana", "Google")

        result = runner.invoke(cli.app, ["token", offer_id, "inf-a"])

        assert result.exit_code == 0
        assert participation.redemption_token in result.output

    def test_token_not_joined(self, services):
        result = runner.invoke(cli.app, ["token", "nope", "inf-a"])
        assert result.exit_code == 1

    def test_issue_jwt(self):
        result = runner.invoke(cli.app, ["issue-jwt", "--sub", "biz-1", "--role", "business", "--name", "Taco Shack"])

        assert result.exit_code == 0
        payload = verify_token(result.output.strip().splitlines()[-1])
        assert payload["sub"] == "biz-1"
        assert payload["role"] == ActorRole.BUSINESS.value


class TestServe:

    def test_runs_uvicorn_with_app_path(self, monkeypatch):
        calls = []
        monkeypatch.setattr(cli.uvicorn, "run", lambda target, **kwargs: calls.append((target, kwargs)))

        result = runner.invoke(cli.app, ["serve", "--host", "0.0.0.0", "--port", "9000"])

        assert result.exit_code == 0
        assert calls == [
            (
                "vibein.api.main:app",
                {"host": "0.0.0.0", "port": 9000, "reload": False, "log_level": cli.settings.log_level.lower()},
            )
        ]
