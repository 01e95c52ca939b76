"""Tests for subscriber matching and subscriptions."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from conftest import make_record
from petrescue.alerts.matcher import AlertMatcher, subscription_matches
from petrescue.alerts.notify import LogNotifier, SendGridNotifier, alert_body, alert_subject, build_notifier
from petrescue.config import Settings
from petrescue.errors import SubscriptionError
from petrescue.service import PetRescueService
from petrescue.storage.repository import Subscription


class TestSubscriptionMatches:
    def test_species_only(self):
        sub = Subscription(email="a@example.com", regions=frozenset(), species=frozenset({"Dog"}))

        assert subscription_matches(sub, make_record(species="Dog", location="Miami, FL"))
        assert subscription_matches(sub, make_record(species="Dog", location="Portland, OR"))
        assert not subscription_matches(sub, make_record(species="Cat", location="Miami, FL"))

    def test_region_only(self):
        sub = Subscription(email="a@example.com", regions=frozenset({"TX"}))

        assert subscription_matches(sub, make_record(location="Dallas, TX"))
        assert not subscription_matches(sub, make_record(location="Miami, FL"))

    def test_region_set_does_not_admit_unknown_region(self):
        sub = Subscription(email="a@example.com", regions=frozenset({"TX"}))
        assert not subscription_matches(sub, make_record(location="Somewhere"))

    def test_empty_sets_match_everything(self):
        sub = Subscription(email="a@example.com")
        assert subscription_matches(sub, make_record(species="Cat", location="Nowhere"))

    def test_both_constraints(self):
        sub = Subscription(email="a@example.com", regions=frozenset({"FL"}), species=frozenset({"Cat"}))

        assert subscription_matches(sub, make_record(species="Cat", location="Miami, FL"))
        assert not subscription_matches(sub, make_record(species="Dog", location="Miami, FL"))
        assert not subscription_matches(sub, make_record(species="Cat", location="Dallas, TX"))


class TestAlertMatcher:
    def test_returns_sorted_emails(self, repository):
        repository.upsert_subscription("zed@example.com", [], [])
        repository.upsert_subscription("amy@example.com", ["TX"], ["Dog"])
        repository.upsert_subscription("cat@example.com", [], ["Cat"])

        emails = AlertMatcher(repository).match(make_record(species="Dog", location="Dallas, TX"))

        assert emails == ["amy@example.com", "zed@example.com"]

    def test_lookup_failure_yields_no_recipients(self):
        source = MagicMock()
        source.get_subscriptions.side_effect = OperationalError("SELECT", {}, Exception("db down"))

        assert AlertMatcher(source).match(make_record()) == []


class TestSubscribe:
    @pytest.fixture
    def service(self, repository):
        return PetRescueService(repository, [], LogNotifier())

    def test_normalizes_input(self, service, repository):
        saved = service.subscribe("  Foo@Example.com ", ["tx", "TX", "fl"], ["dogs", "Dog"])

        assert saved.email == "foo@example.com"
        assert saved.regions == ["FL", "TX"]
        assert saved.species == ["Dog"]
        assert repository.get_subscriptions()[0].regions == frozenset({"FL", "TX"})

    def test_resubscribe_replaces(self, service, repository):
        service.subscribe("foo@example.com", ["TX"], ["Dog"])
        service.subscribe("foo@example.com", [], ["Cat"])

        subs = repository.get_subscriptions()
        assert len(subs) == 1
        assert subs[0].regions == frozenset()
        assert subs[0].species == frozenset({"Cat"})

    @pytest.mark.parametrize("email", ["", "not-an-email", "foo@bar"])
    def test_invalid_email(self, service, email):
        with pytest.raises(SubscriptionError):
            service.subscribe(email)

    def test_invalid_region(self, service):
        with pytest.raises(SubscriptionError):
            service.subscribe("foo@example.com", ["Texas"])

    def test_unrecognised_species(self, service, repository):
        with pytest.raises(SubscriptionError):
            service.subscribe("foo@example.com", [], ["bird"])
        assert repository.get_subscriptions() == []


class TestAlertContent:
    def test_subject(self):
        record = make_record(name="Rex", location="Dallas, TX")
        assert alert_subject(record) == "URGENT: Rex (Dog) in Dallas, TX needs help"

    def test_body_escapes_and_reports_overdue(self):
        record = make_record(name="<Rex>", days_until_deadline=-2)
        body = alert_body(record)

        assert "&lt;Rex&gt;" in body
        assert "overdue by 2 day(s)" in body


class TestBuildNotifier:
    def test_sendgrid_when_configured(self):
        config = Settings(_env_file=None, alerts_enabled=True, sendgrid_api_key="SG.test", sender_email="alerts@example.org")

        assert isinstance(build_notifier(config), SendGridNotifier)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"alerts_enabled": False, "sendgrid_api_key": "SG.test", "sender_email": "alerts@example.org"},
            {"alerts_enabled": True, "sendgrid_api_key": None, "sender_email": "alerts@example.org"},
            {"alerts_enabled": True, "sendgrid_api_key": "SG.test", "sender_email": None},
        ],
    )
    def test_falls_back_to_log(self, overrides):
        assert isinstance(build_notifier(Settings(_env_file=None, **overrides)), LogNotifier)

    def test_sendgrid_failure_is_logged_not_raised(self):
        notifier = SendGridNotifier("SG.test", "alerts@example.org")
        notifier._client = MagicMock()
        notifier._client.send.side_effect = RuntimeError("sendgrid down")

        notifier.notify(["a@example.com"], make_record(name="Rex"))

        notifier._client.send.assert_called_once()
