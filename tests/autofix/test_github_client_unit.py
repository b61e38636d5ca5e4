"""Unit tests for the GitHub API client using an httpx mock transport."""

import json
from typing import Callable, List

import httpx
import pytest

from src.autofix.github import GitHubAPIError, GitHubClient, RateLimitError
from tests.autofix.fakes import run_async


def _make_client(
    handler: Callable[[httpx.Request], httpx.Response],
) -> GitHubClient:
    return GitHubClient(
        token="ghp_test",
        base_url="https://api.github.test",
        transport=httpx.MockTransport(handler),
    )


def _call(handler, method_name, *args):
    async def go():
        client = _make_client(handler)
        try:
            return await getattr(client, method_name)(*args)
        finally:
            await client.close()

    return run_async(go())


class TestCreateComment:
    def test_posts_comment_body(self):
        requests: List[httpx.Request] = []

        def handler(request):
            requests.append(request)
            return httpx.Response(201, json={"id": 99})

        result = _call(handler, "create_comment", "acme", "widgets", 42, "Hello")

        assert result == {"id": 99}
        request = requests[0]
        assert request.method == "POST"
        assert request.url.path == "/repos/acme/widgets/issues/42/comments"
        assert json.loads(request.content) == {"body": "Hello"}
        assert request.headers["Authorization"] == "Bearer ghp_test"

    def test_server_error_raises(self):
        def handler(request):
            return httpx.Response(500, text="oops")

        with pytest.raises(GitHubAPIError) as exc_info:
            _call(handler, "create_comment", "acme", "widgets", 42, "Hello")

        assert exc_info.value.status_code == 500
        assert not isinstance(exc_info.value, RateLimitError)

    def test_network_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        with pytest.raises(GitHubAPIError):
            _call(handler, "create_comment", "acme", "widgets", 42, "Hello")

    def test_single_attempt_only(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(502)

        with pytest.raises(GitHubAPIError):
            _call(handler, "create_comment", "acme", "widgets", 1, "x")

        assert len(calls) == 1


class TestRateLimit:
    def test_429_raises_rate_limit_error(self):
        def handler(request):
            return httpx.Response(429, headers={"retry-after": "30"})

        with pytest.raises(RateLimitError) as exc_info:
            _call(handler, "add_labels", "acme", "widgets", 1, ["bug"])

        assert exc_info.value.retry_after == 30

    def test_403_with_exhausted_quota(self):
        def handler(request):
            return httpx.Response(
                403,
                headers={"x-ratelimit-remaining": "0", "x-ratelimit-reset": "0"},
            )

        with pytest.raises(RateLimitError):
            _call(handler, "add_labels", "acme", "widgets", 1, ["bug"])

    def test_plain_403_is_api_error(self):
        def handler(request):
            return httpx.Response(403, headers={"x-ratelimit-remaining": "10"})

        with pytest.raises(GitHubAPIError) as exc_info:
            _call(handler, "add_labels", "acme", "widgets", 1, ["bug"])

        assert not isinstance(exc_info.value, RateLimitError)


class TestLabels:
    def test_add_labels(self):
        requests: List[httpx.Request] = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json=[{"name": "auto-fixing"}])

        result = _call(handler, "add_labels", "acme", "widgets", 3, ["auto-fixing"])

        assert result == [{"name": "auto-fixing"}]
        assert requests[0].url.path == "/repos/acme/widgets/issues/3/labels"
        assert json.loads(requests[0].content) == {"labels": ["auto-fixing"]}

    def test_remove_label_encodes_name(self):
        requests: List[httpx.Request] = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json=[])

        _call(handler, "remove_label", "acme", "widgets", 3, "good first issue")

        assert requests[0].method == "DELETE"
        assert requests[0].url.raw_path == (
            b"/repos/acme/widgets/issues/3/labels/good%20first%20issue"
        )

    def test_remove_missing_label_ignored(self):
        def handler(request):
            return httpx.Response(404, json={"message": "Label does not exist"})

        assert _call(handler, "remove_label", "acme", "widgets", 3, "auto-fixing") is None

    def test_remove_label_other_errors_raise(self):
        def handler(request):
            return httpx.Response(500)

        with pytest.raises(GitHubAPIError):
            _call(handler, "remove_label", "acme", "widgets", 3, "auto-fixing")
