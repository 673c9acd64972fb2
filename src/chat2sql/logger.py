import json
import logging

# 파이프라인 로그가 extra= 로 싣는 필드 (JSON 모드에서 별도 키로 출력)
CONTEXT_FIELDS = ("path", "sql", "gate_reason", "row_count")

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class JsonFormatter(logging.Formatter):
    """One JSON line per record; chat2sql context fields become top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=False)


def _is_ours(handler: logging.Handler) -> bool:
    return getattr(handler, "_chat2sql", False)


def configure_logging(level: str = "INFO", json_format: bool = False) -> None:
    """
    루트 로거 설정
    - create_app 을 여러 번 호출해도 chat2sql 핸들러는 하나만 유지
    - uvicorn, pytest 등이 붙인 핸들러는 건드리지 않음
    """
    root = logging.getLogger()
    root.setLevel(level)

    for handler in [h for h in root.handlers if _is_ours(h)]:
        root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter() if json_format else logging.Formatter(TEXT_FORMAT))
    handler._chat2sql = True
    root.addHandler(handler)
