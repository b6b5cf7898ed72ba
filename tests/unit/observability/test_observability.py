"""
Observability 모듈 단위 테스트

이 모듈은 로깅 설정, 요청 단위 성능 카운터와 메트릭을 테스트합니다.
"""

import json
import logging
import pytest
from loguru import logger
from seawater.observability import metrics
from seawater.observability.logging_setup import InterceptHandler, get_logger, request_scope, setup_logging
from seawater.observability.perf import PerformanceMetrics


class TestLogging:
    """로깅 설정 테스트"""

    def test_setup_intercepts_stdlib(self):
        setup_logging("DEBUG")
        assert any(isinstance(h, InterceptHandler) for h in logging.getLogger().handlers)
        assert isinstance(logging.getLogger("aiosqlite").handlers[0], InterceptHandler)

    def test_bound_logger_carries_name_and_request_id(self):
        setup_logging("DEBUG")
        records = []
        sink_id = logger.add(lambda m: records.append(m.record), level="DEBUG")
        try:
            with request_scope("req-42"):
                get_logger("seawater.test", address="1 Ocean Ave").info("조회")
        finally:
            logger.remove(sink_id)

        record = records[-1]
        assert record["extra"]["name"] == "seawater.test"
        assert record["extra"]["request_id"] == "req-42"
        assert record["extra"]["address"] == "1 Ocean Ave"

    def test_json_sink_serializes(self, capsys):
        setup_logging("INFO", json_logs=True, service_name="test-service", build_version="1.0.0")
        get_logger("seawater.test").info("hello")

        line = capsys.readouterr().err.strip().splitlines()[-1]
        payload = json.loads(line)
        assert payload["record"]["message"] == "hello"
        assert payload["record"]["extra"]["service"] == "test-service"
        setup_logging("INFO")


class TestPerformanceMetrics:
    """요청 단위 성능 카운터 테스트"""

    def test_counters(self):
        perf = PerformanceMetrics()
        perf.add("cache_hits")
        perf.add_provider_stats(external_api_calls=3, cache_hits=1, cache_misses=2)
        assert perf.get("cache_hits") == 2
        assert perf.get("external_api_calls") == 3
        assert perf.get("unknown") == 0.0

    def test_timer_accumulates(self):
        perf = PerformanceMetrics()
        with perf.timer("database_time"):
            pass
        with perf.timer("database_time"):
            pass
        assert perf.get("database_time") >= 0
        assert set(perf.as_dict()) == {"database_time"}

    def test_timer_records_on_error(self):
        perf = PerformanceMetrics()
        with pytest.raises(RuntimeError):
            with perf.timer("geocoding_time"):
                raise RuntimeError("boom")
        assert "geocoding_time" in perf.as_dict()


class TestMetrics:
    def test_counter_labels(self):
        before = metrics.risk_cache_lookups.labels(result="hit")._value.get()
        metrics.risk_cache_lookups.labels(result="hit").inc()
        assert metrics.risk_cache_lookups.labels(result="hit")._value.get() == before + 1
