"""Tests for the alert model and message rendering."""

from datetime import datetime, timedelta, timezone

import pytest

from prom_tg_alerts.alerter import (
    MESSAGE_SIZE_LIMIT,
    Alert,
    AlertState,
    LabelSet,
    alert_text,
    build_messages,
    escape_markdown,
    group_key,
    render_group,
    truncate_message,
)

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_alert(
    labels: dict[str, str] | list[tuple[str, str]],
    annotations: dict[str, str] | None = None,
    starts_at: datetime | None = T0,
) -> Alert:
    pairs = labels.items() if isinstance(labels, dict) else labels
    return Alert(
        labels=LabelSet(pairs),
        annotations=LabelSet((annotations or {}).items()),
        starts_at=starts_at,
    )


class TestLabelSet:
    """Tests for LabelSet."""

    def test_get_returns_first_match(self):
        labels = LabelSet([("instance", "a:1"), ("instance", "b:2")])
        assert labels.get("instance") == "a:1"

    def test_get_missing(self):
        assert LabelSet([("job", "node")]).get("instance") is None
        assert LabelSet().get("instance", "") == ""

    def test_canonical_keeps_order(self):
        """Pairs are serialized in the order they were given."""
        labels = LabelSet([("job", "node"), ("alertname", "Down")])
        assert labels.canonical() == '{job="node", alertname="Down"}'
        assert str(labels) == labels.canonical()

    def test_canonical_escapes_quotes(self):
        labels = LabelSet([("msg", 'say "hi"')])
        assert labels.canonical() == '{msg="say \\"hi\\""}'

    def test_empty(self):
        labels = LabelSet()
        assert not labels
        assert len(labels) == 0
        assert labels.canonical() == "{}"

    def test_from_mapping_sorts_by_name(self):
        """JSON objects are unordered, so keys are sorted on the way in."""
        labels = LabelSet.from_mapping({"job": "node", "alertname": "Down"})
        assert list(labels) == [("alertname", "Down"), ("job", "node")]

    def test_equality_follows_canonical(self):
        assert LabelSet([("a", "1")]) == LabelSet([("a", "1")])
        assert LabelSet([("a", "1"), ("b", "2")]) != LabelSet([("b", "2"), ("a", "1")])
        assert hash(LabelSet([("a", "1")])) == hash(LabelSet([("a", "1")]))


class TestSorting:
    """Tests for AlertState.sorted_alerts."""

    def test_sorted_by_start_time(self):
        late = make_alert({"alertname": "Late"}, starts_at=T0 + timedelta(minutes=5))
        early = make_alert({"alertname": "Early"}, starts_at=T0)
        state = AlertState(alerts=[late, early])
        assert state.sorted_alerts() == [early, late]

    def test_ties_broken_by_labels(self):
        b = make_alert({"alertname": "B"})
        a = make_alert({"alertname": "A"})
        state = AlertState(alerts=[b, a])
        assert state.sorted_alerts() == [a, b]

    def test_missing_start_time_sorts_first(self):
        timed = make_alert({"alertname": "A"}, starts_at=T0)
        untimed = make_alert({"alertname": "Z"}, starts_at=None)
        state = AlertState(alerts=[timed, untimed])
        assert state.sorted_alerts() == [untimed, timed]

    def test_idempotent(self):
        alerts = [
            make_alert({"alertname": name}, starts_at=T0 + timedelta(seconds=i % 3))
            for i, name in enumerate("QWERTYUIOP")
        ]
        state = AlertState(alerts=alerts)
        first = state.sorted_alerts()
        assert state.sorted_alerts() == first
        assert AlertState(alerts=first).sorted_alerts() == first

    def test_does_not_mutate(self):
        b = make_alert({"alertname": "B"})
        a = make_alert({"alertname": "A"})
        state = AlertState(alerts=[b, a])
        state.sorted_alerts()
        assert state.alerts == [b, a]


class TestGrouping:
    """Tests for AlertState.grouped."""

    def test_group_key_strips_port(self):
        assert group_key("host-1:9090") == "host-1"
        assert group_key("host-1") == "host-1"
        assert group_key("a:b:c") == "a"

    def test_groups_by_label(self):
        a = make_alert({"alertname": "A", "instance": "host-1:9100"})
        b = make_alert({"alertname": "B", "instance": "host-1:9090"})
        c = make_alert({"alertname": "C", "instance": "host-2"})
        groups = AlertState(alerts=[c, b, a]).grouped("instance")
        assert groups == {"host-1": [a, b], "host-2": [c]}

    def test_alert_without_label_excluded(self):
        a = make_alert({"alertname": "A", "instance": "host-1"})
        orphan = make_alert({"alertname": "Orphan"})
        groups = AlertState(alerts=[a, orphan]).grouped("instance")
        assert groups == {"host-1": [a]}

    def test_repeated_label_fans_out(self):
        """An alert with two instance labels appears in both groups."""
        alert = make_alert([("alertname", "A"), ("instance", "a:1"), ("instance", "b:2")])
        groups = AlertState(alerts=[alert]).grouped("instance")
        assert groups == {"a": [alert], "b": [alert]}


class TestFingerprint:
    """Tests for AlertState.fingerprint."""

    def test_empty_state(self):
        assert AlertState().fingerprint() == ""

    def test_independent_of_input_order(self):
        a = make_alert({"alertname": "A"})
        b = make_alert({"alertname": "B"}, starts_at=T0 + timedelta(seconds=1))
        assert AlertState(alerts=[a, b]).fingerprint() == AlertState(alerts=[b, a]).fingerprint()

    def test_membership_change(self):
        a = make_alert({"alertname": "A"})
        b = make_alert({"alertname": "B"})
        assert AlertState(alerts=[a, b]).fingerprint() != AlertState(alerts=[a]).fingerprint()

    def test_label_change(self):
        a = make_alert({"alertname": "A", "severity": "warning"})
        a2 = make_alert({"alertname": "A", "severity": "critical"})
        assert AlertState(alerts=[a]).fingerprint() != AlertState(alerts=[a2]).fingerprint()

    def test_error_change(self):
        assert AlertState(error="boom").fingerprint() != AlertState(error="bang").fingerprint()
        assert AlertState(error="boom").fingerprint() == AlertState(error="boom").fingerprint()
        assert AlertState(error="boom").fingerprint() != AlertState().fingerprint()

    def test_format(self):
        a = make_alert({"alertname": "A"})
        state = AlertState(alerts=[a], error="boom")
        assert state.fingerprint() == '&error=boom&{alertname="A"}'


class TestAlertText:
    """Tests for alert_text."""

    def test_summary_and_description(self):
        alert = make_alert({"alertname": "A"}, {"summary": "X", "description": "Y"})
        assert alert_text(alert) == "• *X*\nY"

    def test_summary_only(self):
        alert = make_alert({"alertname": "A"}, {"summary": "X"})
        assert alert_text(alert) == "• *X*"

    def test_description_only(self):
        alert = make_alert({"alertname": "A"}, {"description": "Y"})
        assert alert_text(alert) == "Y"

    def test_other_annotations(self):
        alert = make_alert({"alertname": "A"}, {"foo": "bar"})
        assert alert_text(alert) == '{foo="bar"}'

    def test_empty_summary_ignored(self):
        alert = make_alert({"alertname": "A"}, {"summary": "", "runbook": "r"})
        assert alert_text(alert) == '{summary="", runbook="r"}'

    def test_no_annotations(self):
        alert = make_alert({"alertname": "A", "instance": "h"})
        assert alert_text(alert) == '{alertname="A", instance="h"}'


class TestRenderGroup:
    """Tests for render_group."""

    def test_empty(self):
        assert render_group([]) == ""

    def test_joins_with_newlines(self):
        a = make_alert({"alertname": "A"}, {"summary": "one"})
        b = make_alert({"alertname": "B"}, {"summary": "two"})
        assert render_group([a, b]) == "• *one*\n• *two*"

    def test_last_alert_crosses_cap(self):
        """The cap is checked before each alert, so the crossing alert is kept whole."""
        # 34 alerts of 98 chars + 2 separator = 3400 units, under the cap
        small = [make_alert({"alertname": f"S{i}"}, {"description": "x" * 98}) for i in range(34)]
        big = make_alert({"alertname": "Big"}, {"description": "y" * 200})
        after = make_alert({"alertname": "After"}, {"description": "z" * 10})

        body = render_group(small + [big, after])

        assert body.endswith("y" * 200 + "...")
        assert "z" * 10 not in body
        assert len(body) >= MESSAGE_SIZE_LIMIT

    def test_under_cap_no_ellipsis(self):
        alerts = [make_alert({"alertname": f"A{i}"}, {"description": "x" * 100}) for i in range(5)]
        body = render_group(alerts)
        assert not body.endswith("...")
        assert body.count("\n") == 4

    def test_stops_after_cap(self):
        alerts = [make_alert({"alertname": f"A{i}"}, {"description": "x" * 1000}) for i in range(10)]
        body = render_group(alerts)
        # 3 alerts reach 3006 units; the 4th crosses the cap; the rest are dropped
        assert body.count("x" * 1000) == 4
        assert body.endswith("...")


class TestBuildMessages:
    """Tests for build_messages."""

    def test_no_alerts(self):
        assert build_messages(AlertState(), "instance") == {"": "NO ALERTS"}

    def test_no_matching_group(self):
        state = AlertState(alerts=[make_alert({"alertname": "A"})])
        assert build_messages(state, "instance") == {"": "NO ALERTS"}

    def test_error(self):
        assert build_messages(AlertState(error="boom"), "instance") == {"": "ERROR: boom"}

    def test_error_ignores_alerts(self):
        state = AlertState(
            alerts=[make_alert({"alertname": "A", "instance": "h"})],
            error="boom",
        )
        assert build_messages(state, "instance") == {"": "ERROR: boom"}

    def test_one_message_per_group(self):
        a = make_alert({"alertname": "A", "instance": "h1:9100"}, {"summary": "a"})
        b = make_alert({"alertname": "B", "instance": "h2:9100"}, {"summary": "b"})
        c = make_alert({"alertname": "C", "instance": "h1:9090"}, {"summary": "c"})
        messages = build_messages(AlertState(alerts=[a, b, c]), "instance")
        assert messages == {"h1": "• *a*\n• *c*", "h2": "• *b*"}

    def test_custom_group_label(self):
        a = make_alert({"alertname": "A", "job": "node"})
        messages = build_messages(AlertState(alerts=[a]), "job")
        assert list(messages) == ["node"]


class TestTruncateMessage:
    """Tests for truncate_message."""

    def test_short_message_unchanged(self):
        assert truncate_message("hello") == "hello"

    def test_clips_to_limit(self):
        body = truncate_message("x" * 5000)
        assert len(body) == 3600
        assert body.endswith("...")

    @pytest.mark.parametrize("length", [3600, 3599])
    def test_at_limit_unchanged(self, length: int):
        assert truncate_message("x" * length) == "x" * length

    def test_cuts_at_line_break(self):
        """A summary line is dropped whole rather than losing its closing asterisk."""
        lines = [f"• *alert {i}*" for i in range(400)]
        body = truncate_message("\n".join(lines))

        assert len(body) <= 3600
        assert body.endswith("*\n...")
        kept = body[: -len("...")].splitlines()
        assert all(line.endswith("*") for line in kept)


class TestMarkdown:
    """Tests for Telegram Markdown escaping."""

    def test_escape_markdown(self):
        assert escape_markdown('{job="node_exporter"}') == '{job="node\\_exporter"}'
        assert escape_markdown("a*b`c[d") == "a\\*b\\`c\\[d"
        assert escape_markdown("plain") == "plain"

    def test_label_fallback_escaped(self):
        alert = make_alert({"alertname": "Disk_Full", "job": "node_exporter"})
        assert alert_text(alert, markdown=True) == (
            '{alertname="Disk\\_Full", job="node\\_exporter"}'
        )

    def test_annotation_fallback_escaped(self):
        alert = make_alert({"alertname": "A"}, {"runbook_url": "http://x/a_b"})
        assert alert_text(alert, markdown=True) == '{runbook\\_url="http://x/a\\_b"}'

    def test_summary_passed_through(self):
        """Authored summary and description keep their own formatting."""
        alert = make_alert({"alertname": "A"}, {"summary": "disk_full", "description": "_low_"})
        assert alert_text(alert, markdown=True) == "• *disk_full*\n_low_"

    def test_plain_mode_unescaped(self):
        alert = make_alert({"job": "node_exporter"})
        assert alert_text(alert) == '{job="node_exporter"}'

    def test_messages_escaped(self):
        state = AlertState(alerts=[make_alert({"instance": "h1", "job": "node_exporter"})])
        assert build_messages(state, "instance", markdown=True) == {
            "h1": '{instance="h1", job="node\\_exporter"}'
        }

    def test_error_escaped(self):
        state = AlertState(error="dial tcp: lookup prom_host")
        assert build_messages(state, "instance", markdown=True) == {
            "": "ERROR: dial tcp: lookup prom\\_host"
        }
