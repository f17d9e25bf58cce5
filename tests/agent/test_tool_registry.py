"""
Tests for the tool registry and parameter validation.

Tests cover:
- Registration and duplicate ids
- Schema validation before execution
- Execution errors returned as failed results
- Agent tool declarations
- Usage counters
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.advisor.agent.domain.entities import AgentCapability, ToolDefinition
from src.advisor.agent.tools import build_default_registry
from src.advisor.agent.tools.registry import ToolRegistry
from src.advisor.agent.tools.schema import collect_errors, validate_params
from src.advisor.core.exceptions import ConfigurationError, ValidationError

ECHO_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "count": {"type": "integer", "minimum": 1, "maximum": 5},
        "mode": {"type": "string", "enum": ["fast", "slow"]},
        "tags": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["name"],
    "additionalProperties": False,
}


def make_tool(tool_id="echo", handler=None, category="general"):
    return ToolDefinition(
        id=tool_id,
        name=tool_id.title(),
        description="Echo the parameters back",
        parameters=ECHO_SCHEMA,
        handler=handler or (lambda params: dict(params)),
        category=category,
    )


# =============================================================================
# Schema validation
# =============================================================================


class TestSchemaValidation:
    """Tests for the JSON Schema subset."""

    def test_valid_params(self):
        assert collect_errors({"name": "x", "count": 3, "mode": "fast", "tags": ["a"]}, ECHO_SCHEMA) == {}

    def test_missing_required(self):
        assert collect_errors({}, ECHO_SCHEMA) == {"name": "is required"}

    def test_none_counts_as_missing(self):
        assert collect_errors({"name": None}, ECHO_SCHEMA) == {"name": "is required"}

    def test_wrong_type(self):
        errors = collect_errors({"name": "x", "count": "3"}, ECHO_SCHEMA)

        assert errors["count"] == "expected integer, got str"

    def test_bool_is_not_a_number(self):
        errors = collect_errors({"name": "x", "count": True}, ECHO_SCHEMA)

        assert "count" in errors

    def test_range_and_enum(self):
        errors = collect_errors({"name": "x", "count": 9, "mode": "turbo"}, ECHO_SCHEMA)

        assert errors["count"] == "must be <= 5"
        assert errors["mode"].startswith("must be one of")

    def test_array_items(self):
        errors = collect_errors({"name": "x", "tags": ["ok", 3]}, ECHO_SCHEMA)

        assert "tags[1]" in errors

    def test_unknown_parameter_rejected(self):
        errors = collect_errors({"name": "x", "extra": 1}, ECHO_SCHEMA)

        assert errors == {"extra": "is not an allowed parameter"}

    def test_non_object_params(self):
        assert "$" in collect_errors(["name"], ECHO_SCHEMA)

    def test_validate_params_raises_with_all_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_params("echo", {"count": 0}, ECHO_SCHEMA)

        error = exc_info.value
        assert set(error.errors) == {"name", "count"}
        assert error.field == "name"
        assert "echo" in error.message


# =============================================================================
# Registry
# =============================================================================


class TestRegistration:
    """Tests for tool registration."""

    def test_duplicate_id_rejected(self):
        registry = ToolRegistry([make_tool()])

        with pytest.raises(ConfigurationError):
            registry.register_tool(make_tool())

    def test_list_by_category(self):
        registry = ToolRegistry([make_tool("a", category="finance"), make_tool("b")])

        assert [t.id for t in registry.list_tools("finance")] == ["a"]
        assert len(registry.list_tools()) == 2

    def test_default_registry_contents(self):
        registry = build_default_registry()

        assert {t.id for t in registry.list_tools()} == {
            "market-analysis",
            "valuation-estimator",
            "business-plan-generator",
            "pitch-deck-generator",
            "kpi-dashboard",
            "knowledge-base-search",
        }

    def test_tools_for_agent(self):
        """Only registered tools from the agent's declared list are returned."""
        registry = ToolRegistry([make_tool("a"), make_tool("b")])
        registry.register_capability(
            AgentCapability(id="agent-1", name="Agent", tools=("b", "missing"))
        )

        assert [t.id for t in registry.get_tools_for_agent("agent-1")] == ["b"]
        assert registry.get_tools_for_agent("unknown-agent") == []


class TestExecution:
    """Tests for tool execution."""

    @pytest.mark.asyncio
    async def test_valuation_scenario(self):
        """Fintech, revenue 10, growth 0.2 gives a 144 base and +/-20% range."""
        registry = build_default_registry()

        result = await registry.execute_tool(
            "valuation-estimator", {"industry": "fintech", "revenue": 10, "growth": 0.2}
        )

        assert result.success is True
        assert result.data["base_valuation"] == pytest.approx(144.0)
        assert result.data["low"] == pytest.approx(115.2)
        assert result.data["high"] == pytest.approx(172.8)
        assert result.latency_ms is not None

    @pytest.mark.asyncio
    async def test_invalid_params_do_not_invoke_handler(self):
        """Validation happens before the handler runs."""
        handler = MagicMock(return_value={})
        registry = ToolRegistry([make_tool(handler=handler)])

        with pytest.raises(ValidationError):
            await registry.execute_tool("echo", {"count": 2})

        handler.assert_not_called()
        assert registry.get_usage_stats()["echo"]["calls"] == 0

    @pytest.mark.asyncio
    async def test_async_handler(self):
        handler = AsyncMock(return_value={"ok": True})
        registry = ToolRegistry([make_tool(handler=handler)])

        result = await registry.execute_tool("echo", {"name": "x"})

        assert result.data == {"ok": True}
        handler.assert_awaited_once_with({"name": "x"})

    @pytest.mark.asyncio
    async def test_handler_exception_becomes_failed_result(self):
        """Execution errors never escape the registry."""
        def broken(params):
            raise ZeroDivisionError("division by zero")

        registry = ToolRegistry([make_tool(handler=broken)])

        result = await registry.execute_tool("echo", {"name": "x"})

        assert result.success is False
        assert "division by zero" in result.error
        assert registry.get_usage_stats()["echo"] == {"calls": 1, "failures": 1}

    @pytest.mark.asyncio
    async def test_unknown_tool(self):
        result = await ToolRegistry().execute_tool("nope", {})

        assert result.success is False
        assert result.error == "Tool not found: nope"

    @pytest.mark.asyncio
    async def test_unknown_industry_is_execution_failure(self):
        registry = build_default_registry()

        result = await registry.execute_tool("market-analysis", {"industry": "underwater-basket"})

        assert result.success is False
        assert "No market data" in result.error


class TestAgentExecution:
    """Tests for execution on behalf of an agent."""

    @pytest.mark.asyncio
    async def test_undeclared_tool_refused(self):
        registry = ToolRegistry([make_tool()])
        registry.set_agent_tools("agent-1", [])

        result = await registry.execute_tool_for_agent("agent-1", "echo", {"name": "x"})

        assert result.success is False
        assert "not available" in result.error

    @pytest.mark.asyncio
    async def test_validation_error_returned_as_result(self):
        registry = ToolRegistry([make_tool()])
        registry.set_agent_tools("agent-1", ["echo"])

        result = await registry.execute_tool_for_agent("agent-1", "echo", {"count": 1})

        assert result.success is False
        assert result.errors == {"name": "is required"}

    @pytest.mark.asyncio
    async def test_declared_tool_runs(self):
        registry = ToolRegistry([make_tool()])
        registry.set_agent_tools("agent-1", ["echo"])

        result = await registry.execute_tool_for_agent("agent-1", "echo", {"name": "x"})

        assert result.success is True
        assert result.data == {"name": "x"}
