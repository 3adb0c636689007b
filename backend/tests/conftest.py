"""
Shared fixtures: a throwaway SQLite database, a test client and helpers for
issuing credentials and seeding usage.
"""
import os
import tempfile
from datetime import datetime, timedelta, timezone

_tmp_dir = tempfile.mkdtemp(prefix="grant-assist-tests-")
os.environ["GA_DB_PATH"] = os.path.join(_tmp_dir, "test.db")
os.environ["GA_LOG_DIR"] = _tmp_dir
os.environ["AI_GATEWAY_API_KEY"] = "test-gateway-key"
os.environ["SERVICE_ROLE_KEY"] = "test-service-key"
os.environ.pop("RESEND_API_KEY", None)
os.environ.pop("ADMIN_ALERT_EMAILS", None)

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session, select

from grant_assist.core.auth import create_access_token
from grant_assist.core.database import engine
from grant_assist.main import app
from grant_assist.models.alert import AlertRecord
from grant_assist.models.usage import UsageRecord

FUNCTION_NAME = "ai-grant-assistant"


@pytest.fixture(autouse=True)
def reset_db():
    """Start every test with empty tables."""
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def auth_headers():
    def _headers(user_id="user-1"):
        token = create_access_token({"sub": user_id})
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def seed_usage():
    """Insert `count` usage records for a user, `minutes_ago` in the past."""
    def _seed(user_id="user-1", count=1, minutes_ago=1, function_name=FUNCTION_NAME, request_size=100):
        created_at = datetime.now(timezone.utc) - timedelta(minutes=minutes_ago)
        with Session(engine) as session:
            for _ in range(count):
                session.add(UsageRecord(
                    user_id=user_id,
                    function_name=function_name,
                    request_size=request_size,
                    response_size=200,
                    created_at=created_at,
                ))
            session.commit()
    return _seed


def usage_records(user_id=None):
    with Session(engine) as session:
        statement = select(UsageRecord)
        if user_id:
            statement = statement.where(UsageRecord.user_id == user_id)
        return session.exec(statement).all()


def alert_records(alert_type=None):
    with Session(engine) as session:
        statement = select(AlertRecord)
        if alert_type:
            statement = statement.where(AlertRecord.alert_type == alert_type)
        return session.exec(statement).all()


def chat_response(content=None, tool_calls=None):
    """Build an OpenAI-style chat completion body."""
    message = {"role": "assistant", "content": content}
    if tool_calls is not None:
        message["tool_calls"] = tool_calls
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "choices": [{"index": 0, "message": message, "finish_reason": "stop"}],
    }


def suggestions_call(arguments):
    return [{
        "id": "call_1",
        "type": "function",
        "function": {"name": "provide_suggestions", "arguments": arguments},
    }]
