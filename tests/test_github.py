"""Tests for GitHub integration."""

import hashlib
import hmac
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from cyclone_bot.github.client import MAX_FILE_CHANGES, GitHubClient, format_diff, is_binary_file
from cyclone_bot.github.webhook import PREvent, create_webhook_app, handle_pr_event, verify_signature
from cyclone_bot.models.review import ReviewComment, ReviewResult


def _file(filename, patch_text="@@ -1 +1 @@\n+x", changes=1):
    f = MagicMock()
    f.filename = filename
    f.patch = patch_text
    f.changes = changes
    return f


class TestFormatDiff:
    """Tests for format_diff and file filtering."""

    def test_frames_each_file(self, sample_patch):
        diff = format_diff([_file("auth/login.py", sample_patch, 6), _file("README.md")])

        assert diff == (
            f"=== auth/login.py ===\n{sample_patch}\n\n"
            "=== README.md ===\n@@ -1 +1 @@\n+x\n\n"
        )

    def test_skips_files_without_patch(self):
        assert format_diff([_file("big.json", patch_text=None), _file("empty.txt", "")]) == ""

    def test_skips_large_files(self):
        diff = format_diff(
            [_file("huge.py", changes=MAX_FILE_CHANGES + 1), _file("ok.py", changes=MAX_FILE_CHANGES)]
        )

        assert "huge.py" not in diff
        assert "=== ok.py ===" in diff

    def test_skips_binary_files(self):
        diff = format_diff([_file("logo.PNG"), _file("app.py")])

        assert "logo.PNG" not in diff
        assert "app.py" in diff

    def test_no_files(self):
        assert format_diff([]) == ""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("image.png", True),
            ("lib/native.so", True),
            ("fonts/a.woff2", True),
            ("Main.class", True),
            ("main.go", False),
            ("package.json", False),
            ("png.py", False),
        ],
    )
    def test_is_binary_file(self, name, expected):
        assert is_binary_file(name) is expected


class TestGitHubClient:
    """Tests for GitHub API client."""

    def test_extracts_pr_diff(self):
        """Test extracting diff from a PR."""
        mock_pr = MagicMock()
        mock_pr.get_files.return_value = [_file("auth/login.py", "@@ -10,6 +10,12 @@\n+new code", 6)]

        with patch("cyclone_bot.github.client.Github"):
            client = GitHubClient(token="test-token")
            diff = client.get_pr_diff(mock_pr)

        assert "=== auth/login.py ===" in diff
        assert "+new code" in diff

    def test_get_pull_request_info(self):
        mock_pr = MagicMock()
        mock_pr.number = 42
        mock_pr.title = "Add authentication"
        mock_pr.body = None
        mock_pr.draft = False
        mock_pr.changed_files = 5
        mock_pr.additions = 100
        mock_pr.deletions = 10

        with patch("cyclone_bot.github.client.Github") as mock_github:
            mock_github.return_value.get_repo.return_value.get_pull.return_value = mock_pr
            client = GitHubClient(token="test-token")
            info = client.get_pull_request_info("acme", "svc", 42)

        mock_github.return_value.get_repo.assert_called_once_with("acme/svc")
        assert info.full_name == "acme/svc"
        assert info.body == ""
        assert info.stats.files_changed == 5
        assert info.stats.total_changes == 110

    def test_post_review_sends_one_comment_review(self):
        mock_pr = MagicMock()
        review = ReviewResult(
            summary="## summary",
            comments=[
                ReviewComment(path="a.py", line=3, body="⚠️ **issue**:\n\nfix"),
                ReviewComment(path="b.py", line=9, body="🧰 **nit**:\n\nrename"),
            ],
        )

        with patch("cyclone_bot.github.client.Github"):
            GitHubClient(token="t").post_review(mock_pr, review)

        mock_pr.create_review.assert_called_once_with(
            body="## summary",
            event="COMMENT",
            comments=[
                {"path": "a.py", "line": 3, "side": "RIGHT", "body": "⚠️ **issue**:\n\nfix"},
                {"path": "b.py", "line": 9, "side": "RIGHT", "body": "🧰 **nit**:\n\nrename"},
            ],
        )

    def test_post_review_without_comments(self):
        mock_pr = MagicMock()

        with patch("cyclone_bot.github.client.Github"):
            GitHubClient(token="t").post_review(mock_pr, ReviewResult(summary="s"))

        assert mock_pr.create_review.call_args.kwargs["comments"] == []

    def test_post_comment(self):
        mock_pr = MagicMock()

        with patch("cyclone_bot.github.client.Github"):
            GitHubClient(token="t").post_comment(mock_pr, "too big")

        mock_pr.create_issue_comment.assert_called_once_with("too big")

    def test_enterprise_base_url(self):
        with patch("cyclone_bot.github.client.Github") as mock_github:
            GitHubClient(token="t", base_url="https://ghe.example.com/api/v3")

        mock_github.assert_called_once_with("t", base_url="https://ghe.example.com/api/v3")


class TestPREvent:
    """Tests for webhook payload parsing."""

    def test_from_payload(self, webhook_payload):
        event = PREvent.from_payload(webhook_payload)

        assert event.action == "opened"
        assert event.is_draft is False
        assert event.pull_request.full_name == "acme/svc"
        assert event.pull_request.stats.additions == 15

    def test_missing_repository(self, webhook_payload):
        del webhook_payload["repository"]

        with pytest.raises(KeyError):
            PREvent.from_payload(webhook_payload)


class TestHandlePREvent:
    """Tests for handle_pr_event."""

    @pytest.mark.asyncio
    async def test_calls_handler(self, webhook_payload):
        handler = AsyncMock()
        event = PREvent.from_payload(webhook_payload)

        await handle_pr_event(event, handler)

        handler.assert_awaited_once_with(event.pull_request)

    @pytest.mark.asyncio
    async def test_handler_errors_are_logged(self, webhook_payload, caplog):
        handler = AsyncMock(side_effect=RuntimeError("boom"))

        await handle_pr_event(PREvent.from_payload(webhook_payload), handler)

        assert "boom" in caplog.text


def _sign(body: bytes, secret: str) -> str:
    return "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


class TestWebhookApp:
    """Tests for the webhook HTTP surface."""

    @pytest.fixture
    def dispatch(self):
        with patch(
            "cyclone_bot.github.webhook.handle_pr_event", new_callable=AsyncMock
        ) as mock_handle:
            yield mock_handle

    def test_health(self):
        client = TestClient(create_webhook_app(AsyncMock()))

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "cyclone"}

    def test_opened_pr_is_dispatched(self, webhook_payload, dispatch):
        mock_handle = dispatch
        handler = AsyncMock()
        client = TestClient(create_webhook_app(handler))

        response = client.post(
            "/webhook", json=webhook_payload, headers={"X-GitHub-Event": "pull_request"}
        )

        assert response.json() == {"status": "accepted"}
        event, passed_handler = mock_handle.call_args.args
        assert event.pull_request.number == 42
        assert passed_handler is handler

    def test_ready_for_review_is_dispatched(self, webhook_payload, dispatch):
        webhook_payload["action"] = "ready_for_review"
        client = TestClient(create_webhook_app(AsyncMock()))

        response = client.post("/webhook", json=webhook_payload)

        assert response.json() == {"status": "accepted"}

    @pytest.mark.parametrize("action", ["synchronize", "closed", "edited"])
    def test_other_actions_ignored(self, webhook_payload, dispatch, action):
        mock_handle = dispatch
        webhook_payload["action"] = action
        client = TestClient(create_webhook_app(AsyncMock()))

        response = client.post("/webhook", json=webhook_payload)

        assert response.json() == {"status": "ignored"}
        mock_handle.assert_not_called()

    def test_draft_ignored(self, webhook_payload, dispatch):
        mock_handle = dispatch
        webhook_payload["pull_request"]["draft"] = True
        client = TestClient(create_webhook_app(AsyncMock()))

        response = client.post("/webhook", json=webhook_payload)

        assert response.json() == {"status": "ignored"}
        mock_handle.assert_not_called()

    def test_non_pr_event_ignored(self, webhook_payload, dispatch):
        mock_handle = dispatch
        client = TestClient(create_webhook_app(AsyncMock()))

        response = client.post("/webhook", json=webhook_payload, headers={"X-GitHub-Event": "push"})

        assert response.json() == {"status": "ignored"}
        mock_handle.assert_not_called()

    def test_ping(self):
        client = TestClient(create_webhook_app(AsyncMock()))

        response = client.post("/webhook", json={"zen": "hi"}, headers={"X-GitHub-Event": "ping"})

        assert response.json() == {"status": "pong"}

    def test_invalid_json(self):
        client = TestClient(create_webhook_app(AsyncMock()))

        response = client.post("/webhook", content=b"{not json")

        assert response.status_code == 400

    def test_malformed_payload(self):
        client = TestClient(create_webhook_app(AsyncMock()))

        response = client.post("/webhook", json={"action": "opened"})

        assert response.status_code == 400

    def test_bad_signature_rejected(self, webhook_payload, dispatch):
        mock_handle = dispatch
        client = TestClient(create_webhook_app(AsyncMock(), webhook_secret="s3cret"))

        response = client.post(
            "/webhook", json=webhook_payload, headers={"X-Hub-Signature-256": "sha256=deadbeef"}
        )

        assert response.status_code == 401
        mock_handle.assert_not_called()

    def test_valid_signature_accepted(self, webhook_payload, dispatch):
        body = json.dumps(webhook_payload).encode()
        client = TestClient(create_webhook_app(AsyncMock(), webhook_secret="s3cret"))

        response = client.post(
            "/webhook",
            content=body,
            headers={
                "X-Hub-Signature-256": _sign(body, "s3cret"),
                "Content-Type": "application/json",
            },
        )

        assert response.status_code == 200
        assert response.json() == {"status": "accepted"}


class TestVerifySignature:
    """Tests for verify_signature."""

    def test_valid(self):
        assert verify_signature(b"payload", _sign(b"payload", "k"), "k") is True

    def test_wrong_secret(self):
        assert verify_signature(b"payload", _sign(b"payload", "k"), "other") is False

    def test_missing_prefix(self):
        assert verify_signature(b"payload", "abc", "k") is False
