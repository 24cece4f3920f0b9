from datetime import datetime, timezone

import pytest

from agents.tools.builtin import build_default_registry
from agents.tools.builtin.calculator import CalculatorTool, evaluate_expression
from agents.tools.builtin.current_time import CurrentTimeTool
from agents.tools.builtin.human_handoff import HumanHandoffTool, InMemoryHandoffService
from agents.tools.builtin.json_processor import JsonProcessorTool, extract_path, split_path
from agents.tools.builtin.knowledge_base import Document, InMemoryKnowledgeBase, RagSearchTool
from agents.tools.exceptions import ToolConfigurationError, ToolExecutionError
from tests.conftest import DummyLLM


# calculator

@pytest.mark.parametrize(
    "expression, expected",
    [("2 + 3 * 4", 14), ("(1 + 1) ** 3", 8), ("10 / 4", 2.5), ("-7 % 3", 2)],
)
def test_evaluate_expression(expression, expected):
    assert evaluate_expression(expression) == expected


def test_calculator_result_shape():
    assert CalculatorTool().execute({"expression": "6*7"}, {}) == {"expression": "6*7", "result": 42, "type": "number"}


def test_calculator_rejects_names_and_calls():
    with pytest.raises(ToolConfigurationError, match="Calculator error"):
        CalculatorTool().execute({"expression": "__import__('os')"}, {})


def test_calculator_division_by_zero():
    with pytest.raises(ToolExecutionError, match="division by zero"):
        CalculatorTool().execute({"expression": "1/0"}, {})


def test_calculator_caps_exponent():
    with pytest.raises(ValueError, match="Exponent too large"):
        evaluate_expression("2 ** 100000")


# current_time

def _fixed_clock():
    return datetime(2025, 3, 14, 15, 9, 26, tzinfo=timezone.utc)


def test_current_time_iso_in_timezone():
    result = CurrentTimeTool(clock=_fixed_clock).execute({"timezone": "Europe/Paris"}, {})

    assert result["current_date"] == "2025-03-14"
    assert result["current_time"] == "2025-03-14T16:09:26+01:00"
    assert result["timezone"] == "Europe/Paris"
    assert result["unix_timestamp"] == int(_fixed_clock().timestamp())
    assert result["message"] == "Current time retrieved successfully: 2025-03-14"


def test_current_time_unix_format_and_config_timezone():
    result = CurrentTimeTool(clock=_fixed_clock).execute({"format": "unix"}, {"timezone": "UTC"})
    assert result["current_time"] == int(_fixed_clock().timestamp())
    assert result["timezone"] == "UTC"


def test_current_time_unknown_timezone_and_format():
    tool = CurrentTimeTool(clock=_fixed_clock)
    with pytest.raises(ToolConfigurationError, match="Unknown timezone"):
        tool.execute({"timezone": "Mars/Olympus"}, {})
    with pytest.raises(ToolConfigurationError, match="Unsupported format"):
        tool.validate({"format": "roman"})


# json_processor

def test_split_and_extract_path():
    data = {"users": [{"name": "Ada"}, {"name": "Linus"}]}
    assert split_path("users[1].name") == ["users", "1", "name"]
    assert extract_path(data, "users[1].name") == "Linus"
    assert extract_path(data, "users.0.name") == "Ada"
    assert extract_path(data, "users[5].name") is None


def test_json_processor_operations():
    tool = JsonProcessorTool()
    assert tool.execute({"data": '{"a": 1}', "operation": "parse"}, {})["result"] == {"a": 1}
    assert tool.execute({"data": {"a": 1}, "operation": "stringify"}, {})["result"] == '{\n  "a": 1\n}'
    assert tool.execute({"data": '{"a": {"b": 2}}', "operation": "extract", "path": "a.b"}, {})["result"] == 2
    assert tool.execute({"data": '{"a": 1, "b": 2}', "operation": "validate"}, {})["result"] == {
        "valid": True,
        "type": "object",
        "keys": ["a", "b"],
    }
    assert tool.execute({"data": "{oops", "operation": "validate"}, {})["result"]["valid"] is False


def test_json_processor_parse_error_and_validation():
    tool = JsonProcessorTool()
    with pytest.raises(ToolExecutionError):
        tool.execute({"data": "{oops"}, {})
    with pytest.raises(ToolConfigurationError, match="Path parameter required"):
        tool.validate({"data": "{}", "operation": "extract"})
    with pytest.raises(ToolConfigurationError, match="Unsupported operation"):
        tool.validate({"data": "{}", "operation": "merge"})


# rag_search

def _kb():
    return InMemoryKnowledgeBase(
        [
            Document("d1", "refund policy for damaged items", "org-1", "p-1", {"source": "policy.md"}),
            Document("d2", "shipping times for europe", "org-1", "p-1"),
            Document("d3", "refund policy for another org", "org-2", "p-1"),
        ]
    )


def test_rag_search_scopes_by_org_and_project():
    config = {"organization_id": "org-1", "project_id": "p-1", "_agent_api_key_id": "agent-1", "include_stats": True}
    result = RagSearchTool(_kb()).execute({"query": "refund policy", "threshold": 0.5}, config)

    assert [r["id"] for r in result["results"]] == ["d1"]
    assert result["results"][0]["metadata"] == {"source": "policy.md"}
    assert result["knowledge_base_stats"] == {"total_documents": 2}
    assert "execution_time_ms" in result


def test_rag_search_requires_scope_and_agent_key():
    tool = RagSearchTool(_kb())
    with pytest.raises(ToolConfigurationError, match="Organization and project context required"):
        tool.execute({"query": "refund"}, {"_agent_api_key_id": "agent-1"})
    with pytest.raises(ToolConfigurationError, match="Agent API key not configured"):
        tool.execute({"query": "refund"}, {"organization_id": "org-1", "project_id": "p-1"})


def test_rag_search_hybrid_passes_weights_and_wraps_failures():
    class CapturingService:
        def __init__(self):
            self.options = None

        def search(self, query, organization_id, project_id, api_key_id, options):
            self.options = options
            raise RuntimeError("vector db offline")

    service = CapturingService()
    config = {"organization_id": "o", "project_id": "p", "_agent_api_key_id": "a", "semantic_weight": 0.9}
    with pytest.raises(ToolExecutionError, match="vector db offline"):
        RagSearchTool(service).execute({"query": "x", "search_type": "hybrid"}, config)

    assert service.options["semantic_weight"] == 0.9
    assert service.options["keyword_weight"] == 0.3


def test_rag_search_rejects_unknown_search_type():
    with pytest.raises(ToolConfigurationError):
        RagSearchTool().validate({"query": "x", "search_type": "fuzzy"})


# request_human_handoff

def test_handoff_with_conversation_calls_service():
    service = InMemoryHandoffService()
    result = HumanHandoffTool(service).execute(
        {"reason": "billing dispute", "urgency": "high"}, {"conversation_id": "c-1", "agent_id": "a-1"}
    )

    assert result["handoff_requested"] is True
    assert result["conversation_status"] == "handoff_requested"
    assert service.requests[0]["conversation_id"] == "c-1"
    assert service.requests[0]["urgency"] == "high"


def test_handoff_without_conversation_is_logged_only():
    service = InMemoryHandoffService()
    result = HumanHandoffTool(service).execute({"reason": "angry user"}, {})

    assert result["success"] is True
    assert "note" in result
    assert service.requests == []


def test_handoff_invalid_urgency_and_service_failure():
    class BrokenService:
        def request_handoff(self, *args):
            raise ConnectionError("db down")

    tool = HumanHandoffTool(BrokenService())
    with pytest.raises(ToolConfigurationError):
        tool.validate({"reason": "x", "urgency": "whenever"})
    with pytest.raises(ToolExecutionError, match="Failed to request human handoff"):
        tool.execute({"reason": "x"}, {"conversation_id": "c-1"})


# registry factory

def test_build_default_registry_registers_every_builtin():
    registry = build_default_registry(llm=DummyLLM())
    assert set(registry.names()) == {
        "api_caller",
        "calculator",
        "current_time",
        "json_processor",
        "faq",
        "rag_search",
        "request_human_handoff",
        "google_calendar",
    }
