"""
API 엔드포인트 테스트
- Health check
- Chat endpoint (시나리오 A~E)
- Debug schema endpoint

실행: pytest tests/pytest/test_api.py -v
"""
import base64
import json

import pytest
from sqlalchemy import create_engine

from chat2sql.db.session import Database
from chat2sql.errors import GenerationError, GenerationTimeout
from chat2sql.services.query.sql_validator import SECURITY_MESSAGE


def _model_output(sql, response, needs_query=True):
    return json.dumps({"sqlQuery": sql, "response": response, "needsQuery": needs_query})


class TestHealthCheck:
    """API 상태 확인 테스트"""

    def test_health_with_services(self, client):
        """GET /api/health - 서비스 초기화 상태"""
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "OK"
        assert data["gemini"] is True
        assert data["database"] is True
        assert data["timestamp"]

    def test_health_without_services(self, make_client):
        """초기화 실패 상태에서도 200"""
        response = make_client().get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "OK"
        assert data["gemini"] is False
        assert data["database"] is False


class TestChatValidation:
    """입력/서비스 상태 검사"""

    @pytest.mark.parametrize("body", [{}, {"message": ""}, {"message": "   "}, {"message": None}])
    def test_message_required(self, client, body):
        response = client.post("/api/chat", json=body)
        assert response.status_code == 400
        assert response.json() == {"error": "Message is required"}

    def test_missing_body(self, client):
        response = client.post("/api/chat")
        assert response.status_code == 400
        assert response.json() == {"error": "Message is required"}

    @pytest.mark.parametrize("message", [123, ["hi"], {"text": "hi"}])
    def test_non_string_message(self, client, fake_llm, message):
        response = client.post("/api/chat", json={"message": message})
        assert response.status_code == 400
        assert response.json() == {"error": "Message is required"}
        assert fake_llm.prompts == []

    def test_generation_unavailable(self, make_client, database):
        response = make_client(database=database).post("/api/chat", json={"message": "hi"})
        assert response.status_code == 500
        assert response.json()["error"] == "Gemini AI not initialized"

    def test_database_unavailable(self, make_client, fake_llm):
        """시나리오 E: DB 풀 없음 → 500"""
        response = make_client(generation_client=fake_llm).post(
            "/api/chat", json={"message": "show me all users"}
        )
        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "Database not connected"
        assert "details" in data
        assert fake_llm.prompts == []


class TestChatScenarios:
    """채팅 엔드포인트 시나리오"""

    def test_select_returns_rows(self, client, fake_llm):
        """시나리오 A: 코드블럭 JSON + 3행"""
        fake_llm.output = (
            "```json\n"
            + _model_output("SELECT * FROM users", "Here are all users")
            + "\n```"
        )
        response = client.post("/api/chat", json={"message": "show me all users"})
        assert response.status_code == 200
        data = response.json()
        assert data["sqlQuery"] == "SELECT * FROM users"
        assert data["response"] == "Found 3 result(s). Here are all users"
        assert data["needsQuery"] is True
        assert data["error"] is None
        assert len(data["data"]) == 3
        assert data["data"][0] == {"id": 1, "email": "ada@example.com", "name": "Ada", "team_id": 1}

    def test_drop_is_blocked(self, client, fake_llm, database):
        """시나리오 B: DROP 거부, sqlQuery 는 그대로 반환"""
        fake_llm.output = _model_output("DROP TABLE users", "Dropping the table")
        response = client.post("/api/chat", json={"message": "delete the users table"})
        assert response.status_code == 200
        data = response.json()
        assert data["sqlQuery"] == "DROP TABLE users"
        assert data["response"] == SECURITY_MESSAGE
        assert data["needsQuery"] is False
        assert data["data"] is None

        with database.connect() as conn:
            assert conn.exec_driver_sql("SELECT COUNT(*) FROM users").scalar() == 3

    def test_unparseable_prose(self, client, fake_llm):
        """시나리오 C: JSON/SQL 없는 텍스트"""
        fake_llm.output = "Sorry, I am not sure how to answer that."
        response = client.post("/api/chat", json={"message": "what's the weather?"})
        assert response.status_code == 200
        data = response.json()
        assert data["sqlQuery"] is None
        assert data["needsQuery"] is False
        assert data["response"] == "Sorry, I am not sure how to answer that."
        assert data["data"] is None

    def test_execution_error(self, client, fake_llm):
        """시나리오 D: 없는 컬럼 → error 채움, 200"""
        fake_llm.output = _model_output("SELECT nickname FROM users", "Nicknames")
        response = client.post("/api/chat", json={"message": "list nicknames"})
        assert response.status_code == 200
        data = response.json()
        assert data["sqlQuery"] == "SELECT nickname FROM users"
        assert "nickname" in data["error"]
        assert data["data"] is None
        assert data["response"].startswith("I encountered an error while querying the database: ")
        assert data["error"] in data["response"]
        assert "table names and column names" in data["response"]

    def test_no_results(self, client, fake_llm):
        fake_llm.output = _model_output("SELECT * FROM users WHERE id = 999", "User 999")
        data = client.post("/api/chat", json={"message": "who is user 999?"}).json()
        assert data["response"] == "No results found. User 999"
        assert data["data"] == []

    def test_binary_column(self, client, fake_llm):
        """bytea/BLOB 컬럼은 base64 문자열로 직렬화"""
        fake_llm.output = _model_output("SELECT x'FF' AS b", "bytes")
        response = client.post("/api/chat", json={"message": "raw bytes please"})
        assert response.status_code == 200
        data = response.json()
        assert data["response"] == "Found 1 result(s). bytes"
        assert base64.b64decode(data["data"][0]["b"], altchars=b"-_") == b"\xff"

    def test_no_query_needed(self, client, fake_llm):
        fake_llm.output = _model_output(None, "There are two tables: teams and users.", False)
        data = client.post("/api/chat", json={"message": "which tables exist?"}).json()
        assert data["sqlQuery"] is None
        assert data["response"] == "There are two tables: teams and users."
        assert data["data"] is None

    def test_prompt_carries_schema_and_question(self, client, fake_llm):
        fake_llm.output = _model_output(None, "ok", False)
        client.post("/api/chat", json={"message": "how many teams?"})
        prompt = fake_llm.prompts[0]
        assert "Table: teams" in prompt
        assert "Table: users" in prompt
        assert "User Question: how many teams?" in prompt

    def test_generation_timeout_is_reported(self, client, fake_llm):
        fake_llm.output = GenerationTimeout(30)
        response = client.post("/api/chat", json={"message": "show me all users"})
        assert response.status_code == 200
        data = response.json()
        assert data["sqlQuery"] is None
        assert data["error"] == "no response within 30 seconds"
        assert data["data"] is None

    def test_generation_error_is_500(self, client, fake_llm):
        fake_llm.output = GenerationError("invalid api key")
        response = client.post("/api/chat", json={"message": "show me all users"})
        assert response.status_code == 500
        assert response.json()["details"] == "invalid api key"


class TestDebugSchema:
    """스키마 디버그 엔드포인트"""

    def test_schema_text(self, client):
        response = client.get("/api/debug/schema")
        assert response.status_code == 200
        data = response.json()
        assert "Table: teams" in data["schema"]
        assert "  - team_id: INTEGER NULL (FOREIGN KEY -> teams.id)" in data["schema"]
        assert data["timestamp"]

    def test_schema_without_database(self, make_client):
        response = make_client().get("/api/debug/schema")
        assert response.status_code == 500
        assert response.json()["error"] == "Database not connected"

    def test_schema_introspection_failure(self, make_client, tmp_path):
        broken = Database(create_engine(f"sqlite:///{tmp_path}/missing/dir/app.db"))
        response = make_client(database=broken).get("/api/debug/schema")
        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "Failed to get schema"
        assert data["details"]
