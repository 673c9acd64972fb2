"""
Pytest 공통 설정 및 fixtures
실행: pytest tests/pytest -v

외부 서비스 없이 동작하도록
- DB: in-memory SQLite (StaticPool, teams/users 시드)
- LLM: 미리 정한 문자열을 돌려주는 FakeGenerationClient
"""
import os
import sys

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

# 프로젝트 루트를 path에 추가
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, os.path.join(PROJECT_ROOT, "src"))

from chat2sql.config import Settings  # noqa: E402
from chat2sql.db.session import Database  # noqa: E402

SEED_SQL = [
    """
    CREATE TABLE teams (
        id INTEGER NOT NULL PRIMARY KEY,
        name VARCHAR(50) NOT NULL,
        UNIQUE (name)
    )
    """,
    """
    CREATE TABLE users (
        id INTEGER NOT NULL PRIMARY KEY,
        email VARCHAR(100) NOT NULL,
        name TEXT,
        team_id INTEGER,
        UNIQUE (email),
        FOREIGN KEY (team_id) REFERENCES teams (id)
    )
    """,
    "INSERT INTO teams (id, name) VALUES (1, 'platform'), (2, 'data')",
    """
    INSERT INTO users (id, email, name, team_id) VALUES
        (1, 'ada@example.com', 'Ada', 1),
        (2, 'linus@example.com', 'Linus', 1),
        (3, 'grace@example.com', 'Grace', 2)
    """,
]


class FakeGenerationClient:
    """GenerationClient 대역: 준비된 출력(또는 예외)을 반환하고 프롬프트를 기록"""

    def __init__(self, output=""):
        self.output = output
        self.prompts = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if isinstance(self.output, Exception):
            raise self.output
        return self.output


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    with engine.begin() as conn:
        for stmt in SEED_SQL:
            conn.exec_driver_sql(stmt)
    yield engine
    engine.dispose()


@pytest.fixture
def database(engine):
    return Database(engine)


@pytest.fixture
def settings():
    return Settings(sql_dialect="sqlite", log_level="WARNING")


@pytest.fixture
def fake_llm():
    return FakeGenerationClient()


@pytest.fixture
def make_client(settings):
    """create_app + TestClient 팩토리 (서비스는 직접 주입)"""
    from fastapi.testclient import TestClient
    from chat2sql.main import create_app

    clients = []

    def _make(database=None, generation_client=None):
        app = create_app(
            settings,
            database=database,
            generation_client=generation_client,
            init_services=False,
        )
        c = TestClient(app)
        c.__enter__()
        clients.append(c)
        return c

    yield _make
    for c in clients:
        c.__exit__(None, None, None)


@pytest.fixture
def client(make_client, database, fake_llm):
    """DB + LLM 모두 준비된 클라이언트"""
    return make_client(database=database, generation_client=fake_llm)
