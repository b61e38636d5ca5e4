"""Unit tests for webhook signature verification and payload parsing."""

import hashlib
import hmac

from hypothesis import given, settings, strategies as st

from src.autofix.webhook import WebhookHandler
from tests.autofix.fakes import make_comment_payload, make_issue_payload


def _sign(secret: str, body: bytes) -> str:
    return "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


class TestVerifySignature:
    def test_no_secret_accepts_everything(self):
        handler = WebhookHandler(secret=None)

        assert handler.verify_signature(b"{}", None)
        assert handler.verify_signature(b"{}", "sha256=garbage")

    def test_valid_signature(self):
        handler = WebhookHandler(secret="s3cret")
        body = b'{"action": "opened"}'

        assert handler.verify_signature(body, _sign("s3cret", body))

    def test_missing_header_rejected(self):
        handler = WebhookHandler(secret="s3cret")

        assert not handler.verify_signature(b"{}", None)

    def test_wrong_secret_rejected(self):
        handler = WebhookHandler(secret="s3cret")
        body = b"{}"

        assert not handler.verify_signature(body, _sign("other", body))

    @settings(max_examples=100)
    @given(body=st.binary(max_size=512), secret=st.text(min_size=1, max_size=40))
    def test_computed_signature_always_verifies(self, body, secret):
        handler = WebhookHandler(secret=secret)

        assert handler.verify_signature(body, handler.compute_signature(body))

    @settings(max_examples=100)
    @given(body=st.binary(min_size=1, max_size=512))
    def test_tampered_body_rejected(self, body):
        handler = WebhookHandler(secret="s3cret")
        signature = handler.compute_signature(body)

        assert not handler.verify_signature(body + b"x", signature)


class TestParseIssueEvent:
    def test_parses_issue_and_repository(self):
        handler = WebhookHandler()

        event = handler.parse_issue_event(
            make_issue_payload(number=5, labels=["bug", "auto-fix"])
        )

        assert event is not None
        assert event.action == "opened"
        assert event.issue.number == 5
        assert event.issue.labels == ["bug", "auto-fix"]
        assert event.repository.full_name == "acme/widgets"
        assert event.issue_id == "acme/widgets#5"
        assert event.is_trigger

    def test_null_body_becomes_empty(self):
        event = WebhookHandler().parse_issue_event(make_issue_payload(body=None))

        assert event.issue.body == ""

    def test_closed_is_not_a_trigger(self):
        event = WebhookHandler().parse_issue_event(make_issue_payload(action="closed"))

        assert event is not None
        assert not event.is_trigger

    def test_repository_falls_back_to_full_name(self):
        payload = make_issue_payload()
        payload["repository"] = {"full_name": "octo/cat"}

        event = WebhookHandler().parse_issue_event(payload)

        assert event.repository.owner == "octo"
        assert event.repository.name == "cat"

    def test_missing_issue_returns_none(self):
        payload = make_issue_payload()
        del payload["issue"]

        assert WebhookHandler().parse_issue_event(payload) is None

    def test_invalid_number_returns_none(self):
        payload = make_issue_payload()
        payload["issue"]["number"] = "12"

        assert WebhookHandler().parse_issue_event(payload) is None

    def test_non_dict_payload_returns_none(self):
        assert WebhookHandler().parse_issue_event([1, 2]) is None


class TestParseOtherEvents:
    def test_comment_event(self):
        event = WebhookHandler().parse_issue_comment_event(
            make_comment_payload(comment="please /auto-fix")
        )

        assert event.action == "created"
        assert event.comment_body == "please /auto-fix"
        assert event.issue_id == "acme/widgets#7"

    def test_comment_without_comment_object(self):
        payload = make_comment_payload()
        del payload["comment"]

        event = WebhookHandler().parse_issue_comment_event(payload)

        assert event.comment_body == ""

    def test_push_event(self):
        event = WebhookHandler().parse_push_event(
            {
                "ref": "refs/heads/main",
                "commits": [{}, {}, {}],
                "repository": {"full_name": "acme/widgets"},
            }
        )

        assert event.ref == "refs/heads/main"
        assert event.commit_count == 3
        assert event.repository == "acme/widgets"

    def test_push_event_without_fields(self):
        event = WebhookHandler().parse_push_event({})

        assert event.commit_count == 0
        assert event.ref == ""
