"""
Tests for the rate-limited AI assistant endpoint.
"""
import json
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from conftest import alert_records, chat_response, suggestions_call, usage_records

URL = "/v1/ai-grant-assistant"

POLISH_BODY = {
    "type": "polish",
    "question_text": "Describe your impact",
    "user_rough_answer": "we helped 50 people",
    "word_limit": 100,
}

SUGGEST_BODY = {
    "type": "suggest",
    "question_text": "Describe your impact",
    "user_rough_answer": "we helped 50 people",
    "word_limit": 100,
    "current_word_count": 4,
}


def mock_upstream(**kwargs):
    return patch("grant_assist.core.assistant.call_chat_completion", new_callable=AsyncMock, **kwargs)


class TestAuthentication:

    def test_missing_credential_is_rejected(self, client):
        with mock_upstream() as upstream:
            response = client.post(URL, json=POLISH_BODY)

        assert response.status_code == 401
        assert response.json()["code"] == "unauthenticated"
        assert "error" in response.json()
        upstream.assert_not_called()
        assert usage_records() == []

    def test_invalid_credential_is_rejected(self, client):
        with mock_upstream() as upstream:
            response = client.post(URL, json=POLISH_BODY, headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401
        upstream.assert_not_called()
        assert usage_records() == []

    def test_non_bearer_scheme_is_rejected(self, client):
        response = client.post(URL, json=POLISH_BODY, headers={"Authorization": "Basic dXNlcjpwYXNz"})
        assert response.status_code == 401


class TestPolish:

    def test_happy_path(self, client, auth_headers):
        with mock_upstream(return_value=chat_response("We served 50 community members.")) as upstream:
            response = client.post(URL, json=POLISH_BODY, headers=auth_headers())

        assert response.status_code == 200
        data = response.json()
        assert data["polished_answer"] == "We served 50 community members."
        assert data["rate_limit"] == {"remaining": 49, "limit": 50, "windowMinutes": 60}
        assert response.headers["X-RateLimit-Remaining"] == "49"
        upstream.assert_awaited_once()

    def test_prompt_includes_request_fields(self, client, auth_headers):
        body = dict(POLISH_BODY, user_clarification="Mostly veterans")
        with mock_upstream(return_value=chat_response("Polished.")) as upstream:
            client.post(URL, json=body, headers=auth_headers())

        payload = upstream.await_args.args[0]
        roles = [m["role"] for m in payload["messages"]]
        assert roles == ["system", "user"]
        user_prompt = payload["messages"][1]["content"]
        assert "Describe your impact" in user_prompt
        assert "we helped 50 people" in user_prompt
        assert "Additional Clarification: Mostly veterans" in user_prompt
        assert "Word Limit: 100 words" in user_prompt
        assert "tools" not in payload

    def test_records_one_usage_row(self, client, auth_headers):
        raw = json.dumps(POLISH_BODY)
        with mock_upstream(return_value=chat_response("Polished.")):
            client.post(URL, content=raw, headers={**auth_headers("user-9"), "Content-Type": "application/json"})

        records = usage_records("user-9")
        assert len(records) == 1
        assert records[0].function_name == "ai-grant-assistant"
        assert records[0].request_size == len(raw.encode("utf-8"))
        assert records[0].response_size == len(json.dumps({"polished_answer": "Polished."}).encode("utf-8"))

    def test_remaining_counts_prior_usage(self, client, auth_headers, seed_usage):
        seed_usage(count=10)
        with mock_upstream(return_value=chat_response("Polished.")):
            response = client.post(URL, json=POLISH_BODY, headers=auth_headers())

        assert response.json()["rate_limit"]["remaining"] == 39

    def test_usage_write_failure_still_returns_result(self, client, auth_headers):
        with mock_upstream(return_value=chat_response("Polished.")), \
                patch("grant_assist.core.usage_logger.Session", side_effect=OperationalError("insert", {}, Exception("disk full"))):
            response = client.post(URL, json=POLISH_BODY, headers=auth_headers())

        assert response.status_code == 200
        assert response.json()["polished_answer"] == "Polished."

    def test_empty_upstream_content_is_upstream_error(self, client, auth_headers):
        with mock_upstream(return_value=chat_response("")):
            response = client.post(URL, json=POLISH_BODY, headers=auth_headers())

        assert response.status_code == 500
        assert response.json()["code"] == "upstream_error"


class TestSuggest:

    def test_happy_path(self, client, auth_headers):
        arguments = json.dumps({"suggestions": ["Add numbers", "Name the program", "State outcomes", "Use active voice"]})
        with mock_upstream(return_value=chat_response(tool_calls=suggestions_call(arguments))) as upstream:
            response = client.post(URL, json=SUGGEST_BODY, headers=auth_headers())

        assert response.status_code == 200
        data = response.json()
        assert 3 <= len(data["suggestions"]) <= 5
        assert data["suggestions"][0] == "Add numbers"
        assert data["rate_limit"]["limit"] == 50

        payload = upstream.await_args.args[0]
        assert payload["tool_choice"] == {"type": "function", "function": {"name": "provide_suggestions"}}
        assert payload["tools"][0]["function"]["name"] == "provide_suggestions"

    def test_too_few_suggestions_is_upstream_error(self, client, auth_headers):
        arguments = json.dumps({"suggestions": ["Only one"]})
        with mock_upstream(return_value=chat_response(tool_calls=suggestions_call(arguments))):
            response = client.post(URL, json=SUGGEST_BODY, headers=auth_headers())

        assert response.status_code == 500
        assert response.json()["code"] == "upstream_error"
        assert "suggestions" not in response.json()

    def test_prose_instead_of_tool_call_is_upstream_error(self, client, auth_headers):
        with mock_upstream(return_value=chat_response("1. Add numbers\n2. Be specific\n3. Shorten")):
            response = client.post(URL, json=SUGGEST_BODY, headers=auth_headers())

        assert response.status_code == 500
        assert response.json()["code"] == "upstream_error"

    def test_upstream_failure_counts_the_attempt(self, client, auth_headers):
        from grant_assist.core.errors import UpstreamError

        with mock_upstream(side_effect=UpstreamError("AI service error: 503", 503)) as upstream:
            response = client.post(URL, json=SUGGEST_BODY, headers=auth_headers())

        assert response.status_code == 500
        assert response.json() == {"error": "AI service error: 503", "code": "upstream_error"}
        upstream.assert_awaited_once()
        assert len(usage_records("user-1")) == 1

    @pytest.mark.parametrize("upstream_body", [
        [],
        {"choices": [{"message": {"tool_calls": [{"function": "provide_suggestions"}]}}]},
        {"choices": [{"message": {"tool_calls": 5}}]},
    ])
    def test_unexpected_upstream_shape_is_upstream_error(self, client, auth_headers, upstream_body):
        with mock_upstream(return_value=upstream_body):
            response = client.post(URL, json=SUGGEST_BODY, headers=auth_headers())

        assert response.status_code == 500
        assert response.json()["code"] == "upstream_error"
        assert len(usage_records("user-1")) == 1

    def test_zero_word_limit_allowed(self, client, auth_headers):
        arguments = json.dumps({"suggestions": ["Add numbers", "Name the program", "State outcomes"]})
        body = dict(SUGGEST_BODY, word_limit=0)
        with mock_upstream(return_value=chat_response(tool_calls=suggestions_call(arguments))):
            response = client.post(URL, json=body, headers=auth_headers())

        assert response.status_code == 200


class TestRateLimiting:

    def test_quota_exhausted(self, client, auth_headers, seed_usage):
        seed_usage(user_id="heavy-user", count=50, minutes_ago=30)

        with mock_upstream() as upstream:
            response = client.post(URL, json=POLISH_BODY, headers=auth_headers("heavy-user"))

        assert response.status_code == 429
        data = response.json()
        assert data["code"] == "rate_limited"
        assert data["rate_limit"] == {"remaining": 0, "limit": 50, "windowMinutes": 60}
        assert response.headers["Retry-After"] == "3600"
        upstream.assert_not_called()
        assert len(usage_records("heavy-user")) == 50

        alerts = alert_records("rate_limit")
        assert len(alerts) == 1
        assert alerts[0].user_id == "heavy-user"
        assert alerts[0].alert_metadata == {"limit": 50, "window_minutes": 60}

    def test_quota_exhausted_does_not_need_a_valid_body(self, client, auth_headers, seed_usage):
        seed_usage(count=50)
        response = client.post(
            URL, content="{not valid", headers={**auth_headers(), "Content-Type": "application/json"}
        )
        assert response.status_code == 429

    def test_old_usage_does_not_count(self, client, auth_headers, seed_usage):
        seed_usage(count=50, minutes_ago=61)
        with mock_upstream(return_value=chat_response("Polished.")):
            response = client.post(URL, json=POLISH_BODY, headers=auth_headers())

        assert response.status_code == 200
        assert response.json()["rate_limit"]["remaining"] == 49

    def test_alert_failure_does_not_change_response(self, client, auth_headers, seed_usage):
        seed_usage(count=50)
        with patch("grant_assist.core.alerts.send_admin_alert", new_callable=AsyncMock, side_effect=RuntimeError("smtp down")):
            response = client.post(URL, json=POLISH_BODY, headers=auth_headers())

        assert response.status_code == 429
        assert response.json()["rate_limit"]["remaining"] == 0

    def test_store_failure_fails_closed(self, client, auth_headers):
        with mock_upstream() as upstream, \
                patch("grant_assist.core.rate_limiter.count_recent_usage", side_effect=OperationalError("select", {}, Exception("db down"))):
            response = client.post(URL, json=POLISH_BODY, headers=auth_headers())

        assert response.status_code == 500
        assert response.json()["code"] == "internal_error"
        upstream.assert_not_called()


class TestRequestErrors:

    def test_malformed_json(self, client, auth_headers):
        with mock_upstream() as upstream:
            response = client.post(
                URL, content="{not valid", headers={**auth_headers(), "Content-Type": "application/json"}
            )

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "malformed_json"
        assert "details" not in data
        upstream.assert_not_called()
        assert usage_records() == []

    def test_question_too_long(self, client, auth_headers):
        body = dict(POLISH_BODY, question_text="x" * 1001)
        response = client.post(URL, json=body, headers=auth_headers())

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "validation_failed"
        assert any(d["field"] == "question_text" for d in data["details"])
        assert usage_records() == []

    def test_all_violations_reported_together(self, client, auth_headers):
        body = {"type": "suggest", "question_text": "", "user_rough_answer": "draft"}
        response = client.post(URL, json=body, headers=auth_headers())

        fields = {d["field"] for d in response.json()["details"]}
        assert fields == {"question_text", "current_word_count"}

    def test_unknown_type(self, client, auth_headers):
        body = dict(POLISH_BODY, type="rewrite")
        response = client.post(URL, json=body, headers=auth_headers())

        assert response.status_code == 400
        assert [d["field"] for d in response.json()["details"]] == ["type"]
