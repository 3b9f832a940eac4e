"""Tests for the Orchestrator module.

Tests the coordination between functional core and imperative shell.
Uses mocks for shell components to test orchestration logic.
"""

import time
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest
import requests

from src.core.config import Config, SmtpSettings
from src.core.sites import SiteDetails
from src.core.tracker import SpillTracker
from src.core.watercourse import WatercourseFilter
from src.orchestrator import CycleState, Orchestrator, ProcessingResult
from src.shell.email_client import EmailResponse


NOW = datetime(2024, 6, 20, 12, 0, 0, tzinfo=timezone.utc)


def _feature(site_id, watercourse="River Avon", status_start=1718870400000, ended=None):
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [-1.9467, 52.0922]},
        "properties": {
            "Id": site_id,
            "StatusStart": status_start,
            "LatestEventStart": status_start,
            "LatestEventEnd": ended,
            "ReceivingWaterCourse": watercourse,
        },
    }


def _payload(*features):
    return {"type": "FeatureCollection", "features": list(features)}


@pytest.fixture
def sample_config():
    """Create a sample configuration."""
    return Config(
        feed_url="https://example.com/overflows",
        watercourses=WatercourseFilter(names=("river avon", "badsey brook")),
        smtp=SmtpSettings(
            host="smtp.example.com",
            from_address="alerts@example.com",
            recipients=["a@example.com"],
        ),
        sites={"SVT1": SiteDetails(name="Evesham STW", asset_type="Storm Tank")},
    )


@pytest.fixture
def mock_feed_client():
    """Create a mock feed client with one active and one ended spill."""
    client = Mock()
    client.fetch.return_value = _payload(
        _feature("SVT1"),
        _feature("SVT2", ended=1718880000000),
    )
    return client


@pytest.fixture
def mock_email_client():
    """Create a mock email client that always succeeds."""
    client = Mock()
    client.send_digest.return_value = EmailResponse(success=True, recipients=1)
    return client


@pytest.fixture
def orchestrator(sample_config, mock_feed_client, mock_email_client):
    """Create an orchestrator wired to mocks."""
    return Orchestrator(
        sample_config,
        feed_client=mock_feed_client,
        email_client=mock_email_client,
    )


def _steady(orchestrator):
    """Run an empty first cycle so the next one can notify."""
    feed = orchestrator.feed_client.fetch.return_value
    orchestrator.feed_client.fetch.return_value = _payload()
    orchestrator.process(now=NOW - timedelta(minutes=5))
    orchestrator.feed_client.fetch.return_value = feed
    assert orchestrator.state is CycleState.STEADY_STATE


class TestProcessingResult:
    """Tests for ProcessingResult dataclass."""

    def test_success_when_no_errors(self):
        """success property returns True when no errors."""
        assert ProcessingResult(spills_fetched=5).success is True

    def test_failure_when_errors(self):
        """success property returns False when errors present."""
        assert ProcessingResult(errors=["Failed to connect"]).success is False

    def test_summary_format(self):
        """summary property returns readable string."""
        result = ProcessingResult(
            spills_fetched=10,
            spills_active=3,
            new_spills=[Mock()],
            email=EmailResponse(success=True),
        )

        assert result.summary == "Fetched 10 sites, 3 active, 1 new, digest sent"
        assert result.notified is True


class TestOrchestratorInit:
    """Tests for Orchestrator initialization."""

    def test_creates_default_clients(self, sample_config):
        """Creates default clients if not provided."""
        orchestrator = Orchestrator(sample_config)

        assert orchestrator.feed_client.base_url == "https://example.com/overflows"
        assert orchestrator.email_client.settings is sample_config.smtp
        assert orchestrator.geocoding_client is None
        assert orchestrator.tracker.retention == timedelta(hours=12)
        assert orchestrator.state is CycleState.FIRST_CYCLE

    def test_creates_geocoder_when_enabled(self, sample_config):
        """Geocoding client is created only when enabled."""
        sample_config.geocoding_enabled = True

        orchestrator = Orchestrator(sample_config)

        assert orchestrator.geocoding_client is not None


class TestFirstCycle:
    """The first cycle after startup never notifies."""

    def test_first_cycle_suppressed(self, orchestrator, mock_email_client):
        """Active spills are recorded but no email is sent."""
        result = orchestrator.process(now=NOW)

        assert result.suppressed is True
        assert result.spills_new == 1
        mock_email_client.send_digest.assert_not_called()
        assert orchestrator.state is CycleState.STEADY_STATE
        assert "SVT1" in orchestrator.tracker

    def test_second_cycle_with_same_data_finds_nothing(
        self, orchestrator, mock_email_client
    ):
        """Spills recorded in cycle one are not new in cycle two."""
        orchestrator.process(now=NOW)
        result = orchestrator.process(now=NOW + timedelta(minutes=5))

        assert result.suppressed is False
        assert result.spills_new == 0
        mock_email_client.send_digest.assert_not_called()

    def test_failed_first_fetch_keeps_first_cycle(self, orchestrator, mock_email_client):
        """A first cycle that never fetched doesn't count as the first run."""
        orchestrator.feed_client.fetch.side_effect = requests.ConnectionError("down")
        orchestrator.process(now=NOW)
        assert orchestrator.state is CycleState.FIRST_CYCLE

        orchestrator.feed_client.fetch.side_effect = None
        result = orchestrator.process(now=NOW + timedelta(minutes=5))

        assert result.suppressed is True
        mock_email_client.send_digest.assert_not_called()

    def test_error_body_on_first_cycle_keeps_first_cycle(
        self, orchestrator, mock_email_client
    ):
        """An error body served with HTTP 200 is a failed fetch, not an empty feed."""
        orchestrator.feed_client.fetch.return_value = {
            "error": {"code": 500, "message": "Error performing query operation"}
        }
        result = orchestrator.process(now=NOW)

        assert result.success is False
        assert orchestrator.state is CycleState.FIRST_CYCLE

        orchestrator.feed_client.fetch.return_value = _payload(
            *[_feature(f"SVT{i}") for i in range(10, 15)]
        )
        result = orchestrator.process(now=NOW + timedelta(minutes=5))

        assert result.suppressed is True
        assert result.spills_new == 5
        mock_email_client.send_digest.assert_not_called()


class TestNotification:
    """Tests for steady-state notification."""

    def test_sends_one_digest_for_all_new_spills(
        self, orchestrator, mock_email_client
    ):
        """New spills are batched into a single email."""
        _steady(orchestrator)
        orchestrator.feed_client.fetch.return_value = _payload(
            _feature("SVT1"),
            _feature("SVT3", watercourse="Tributary of Badsey Brook"),
            _feature("SVT4", watercourse="River Severn"),
        )

        result = orchestrator.process(now=NOW)

        assert [s.id for s in result.new_spills] == ["SVT1", "SVT3"]
        assert result.notified is True
        mock_email_client.send_digest.assert_called_once()

        subject, html_body, text_body = mock_email_client.send_digest.call_args.args
        assert subject == "New Sewage Spills Found (2)"
        assert "Evesham STW" in html_body
        assert "Unknown Site" in html_body
        assert "SVT4" not in html_body
        assert "Storm Tank" in text_body

    def test_no_email_without_new_spills(self, orchestrator, mock_email_client):
        """Nothing is sent when there are no new spills."""
        _steady(orchestrator)
        orchestrator.feed_client.fetch.return_value = _payload(
            _feature("SVT2", ended=1718880000000),
        )

        result = orchestrator.process(now=NOW)

        assert result.spills_new == 0
        assert result.email is None
        mock_email_client.send_digest.assert_not_called()

    def test_restarted_spill_notified(self, orchestrator, mock_email_client):
        """A spill with a new status_start is notified again."""
        orchestrator.process(now=NOW)
        orchestrator.feed_client.fetch.return_value = _payload(
            _feature("SVT1", status_start=1718890000000),
        )

        result = orchestrator.process(now=NOW + timedelta(minutes=5))

        assert [s.id for s in result.new_spills] == ["SVT1"]
        mock_email_client.send_digest.assert_called_once()

    def test_send_failure_recorded_and_not_retried(
        self, orchestrator, mock_email_client
    ):
        """A failed send is logged; the spill is not re-sent next cycle."""
        _steady(orchestrator)
        mock_email_client.send_digest.return_value = EmailResponse(
            success=False, error="SMTP down"
        )

        first = orchestrator.process(now=NOW)
        second = orchestrator.process(now=NOW + timedelta(minutes=5))

        assert first.success is False
        assert "SMTP down" in first.errors[0]
        assert second.spills_new == 0
        assert mock_email_client.send_digest.call_count == 1

    def test_notifier_exception_does_not_escape(
        self, orchestrator, mock_email_client
    ):
        """An exception from the notifier completes the cycle."""
        _steady(orchestrator)
        mock_email_client.send_digest.side_effect = RuntimeError("boom")

        result = orchestrator.process(now=NOW)

        assert result.notified is False
        assert result.email.error == "boom"
        assert "SVT1" in orchestrator.tracker


class TestLocationResolution:
    """Tests for display name resolution."""

    def test_geocodes_unknown_sites(self, sample_config, mock_email_client):
        """Sites without a configured name are reverse geocoded."""
        geocoder = Mock()
        geocoder.reverse.return_value = "Pershore, Worcestershire"
        feed = Mock()
        feed.fetch.return_value = _payload(_feature("SVT1"), _feature("SVT9"))

        orchestrator = Orchestrator(
            sample_config,
            feed_client=feed,
            email_client=mock_email_client,
            geocoding_client=geocoder,
        )
        _steady(orchestrator)
        orchestrator.process(now=NOW)

        # Only the site without configured details is looked up
        geocoder.reverse.assert_called_once_with(52.0922, -1.9467)
        html_body = mock_email_client.send_digest.call_args.args[1]
        assert "Pershore, Worcestershire" in html_body
        assert "Evesham STW" in html_body

    def test_concurrent_resolution_keeps_feed_order(
        self, sample_config, mock_email_client
    ):
        """Lookups finishing out of order still list spills in feed order."""
        sample_config.sites = {}
        delays = {"A": 0.15, "B": 0.05, "C": 0.0}
        coords = {}

        features = []
        for i, site_id in enumerate(["A", "B", "C"]):
            feature = _feature(site_id)
            feature["geometry"]["coordinates"] = [-1.0 - i, 52.0 + i]
            coords[(52.0 + i, -1.0 - i)] = site_id
            features.append(feature)

        completed = []

        def slow_reverse(lat, lon):
            site_id = coords[(lat, lon)]
            time.sleep(delays[site_id])
            completed.append(site_id)
            return f"Place {site_id}"

        geocoder = Mock()
        geocoder.reverse.side_effect = slow_reverse
        feed = Mock()
        feed.fetch.return_value = _payload(*features)

        orchestrator = Orchestrator(
            sample_config,
            feed_client=feed,
            email_client=mock_email_client,
            geocoding_client=geocoder,
        )
        _steady(orchestrator)
        orchestrator.process(now=NOW)

        assert completed != ["A", "B", "C"]
        html_body = mock_email_client.send_digest.call_args.args[1]
        assert (
            html_body.index("Place A")
            < html_body.index("Place B")
            < html_body.index("Place C")
        )


class TestFeedFailure:
    """Fetch and decode failures skip the cycle."""

    def test_network_error_skips_cycle(self, orchestrator, mock_email_client):
        """A network error is recorded and nothing is sent."""
        orchestrator.feed_client.fetch.side_effect = requests.ConnectionError("down")

        result = orchestrator.process(now=NOW)

        assert result.success is False
        assert "down" in result.errors[0]
        mock_email_client.send_digest.assert_not_called()

    def test_failure_leaves_tracker_untouched(self, orchestrator):
        """No partial updates from an incomplete cycle."""
        orchestrator.process(now=NOW)
        before = orchestrator.tracker.snapshot()

        orchestrator.feed_client.fetch.return_value = {"features": "corrupt"}
        result = orchestrator.process(now=NOW + timedelta(hours=13))

        assert result.success is False
        assert orchestrator.tracker.snapshot() == before

    def test_malformed_json_skips_cycle(self, orchestrator):
        """A decode error from the client is handled like a network error."""
        orchestrator.feed_client.fetch.side_effect = ValueError("Expecting value")

        result = orchestrator.process(now=NOW)

        assert result.success is False
        assert len(orchestrator.tracker) == 0


class TestExpiry:
    """Tracker memory is expired at the end of each cycle."""

    def test_unseen_spill_expires_after_retention(self, orchestrator):
        """A spill gone from the feed is forgotten after 12 hours."""
        orchestrator.process(now=NOW)
        orchestrator.feed_client.fetch.return_value = _payload()

        orchestrator.process(now=NOW + timedelta(hours=11))
        assert "SVT1" in orchestrator.tracker

        orchestrator.process(now=NOW + timedelta(hours=13))
        assert "SVT1" not in orchestrator.tracker

    def test_uses_clock_when_no_time_given(self, sample_config, mock_feed_client, mock_email_client):
        """process() without now uses the injected clock."""
        tracker = SpillTracker()
        orchestrator = Orchestrator(
            sample_config,
            feed_client=mock_feed_client,
            email_client=mock_email_client,
            tracker=tracker,
            clock=lambda: NOW,
        )

        orchestrator.process()

        assert tracker.get("SVT1").last_seen == NOW
