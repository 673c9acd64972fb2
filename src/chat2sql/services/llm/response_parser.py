"""
LLM 출력 → GenerationCandidate 변환

모델 출력 형식은 보장되지 않으므로 어떤 문자열이 와도 예외 없이 후보를 만든다.
1. 코드블럭(```json ... ```) 제거
2. 첫 `{` ~ 마지막 `}` 구간만 JSON 파싱
3. 실패 시 SELECT ... ; 구간을 휴리스틱으로 추출
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)

MISSING_RESPONSE_TEXT = "I received your question but couldn't generate a proper response."
EMPTY_OUTPUT_TEXT = "I'm having trouble processing your request. Please try rephrasing your question."

_FENCE_RE = re.compile(r"^```[\w+-]*[ \t]*\n?(.*?)\n?[ \t]*```$", re.DOTALL)
_SELECT_RE = re.compile(r"\bSELECT\b.*?(?:;|$)", re.IGNORECASE | re.DOTALL)


@dataclass
class GenerationCandidate:
    sql_query: Optional[str]
    response_text: str
    needs_query: bool


def strip_code_fence(text: str) -> str:
    text = text.strip()
    m = _FENCE_RE.match(text)
    if m:
        return m.group(1).strip()
    return text


def _json_span(text: str) -> Optional[str]:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start : end + 1]


def extract_select(text: str) -> Optional[str]:
    """텍스트에서 첫 SELECT 문을 찾아 종결자(;) 없이 반환"""
    m = _SELECT_RE.search(text)
    if not m:
        return None
    sql = m.group(0).strip()
    if sql.endswith(";"):
        sql = sql[:-1].rstrip()
    return sql or None


def _clean_sql(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _from_object(data: dict) -> GenerationCandidate:
    sql = _clean_sql(data.get("sqlQuery"))

    response = data.get("response")
    if not isinstance(response, str) or not response.strip():
        response = MISSING_RESPONSE_TEXT

    needs_query = data.get("needsQuery")
    if not isinstance(needs_query, bool):
        needs_query = sql is not None

    return GenerationCandidate(
        sql_query=sql,
        response_text=response,
        needs_query=needs_query and sql is not None,
    )


def interpret_response(raw_text: Optional[str]) -> GenerationCandidate:
    content = strip_code_fence(raw_text or "")

    span = _json_span(content)
    if span is not None:
        try:
            data = json.loads(span)
        # 4300자리 초과 정수(ValueError), 과도한 중첩(RecursionError) 도 파싱 실패로 취급
        except (ValueError, RecursionError) as e:
            logger.warning("JSON parsing failed: %s. Content: %s", e, content)
        else:
            return _from_object(data)
    else:
        logger.warning("No JSON object in generation output: %s", content)

    sql = extract_select(content)
    return GenerationCandidate(
        sql_query=sql,
        response_text=content or EMPTY_OUTPUT_TEXT,
        needs_query=sql is not None,
    )
