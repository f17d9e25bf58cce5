"""
Tool Registry.

Schema-validated registry of the callable tools agents use to produce
structured data (market analysis, valuations, plans, decks, KPI
commentary, knowledge search).
"""

from __future__ import annotations

import inspect
import logging
import time
from typing import Any, Iterable, Optional

from ...core.exceptions import (
    ConfigurationError,
    ToolExecutionError,
    ToolNotFoundError,
    ValidationError,
)
from ..domain.entities import AgentCapability, ToolDefinition, ToolResult
from .schema import validate_params

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Registry of all agent tools.

    Usage:
        registry = ToolRegistry()
        registry.register_tool(valuation_tool)
        registry.set_agent_tools("meta3-financial", ["valuation-estimator"])

        # Structured result, never raises for execution failures
        result = await registry.execute_tool(
            "valuation-estimator",
            {"industry": "fintech", "revenue": 10, "growth": 0.2},
        )

    Tool ids are unique; registering a duplicate is a startup error.
    """

    def __init__(self, tools: Optional[Iterable[ToolDefinition]] = None):
        """Initialize the tool registry.

        Args:
            tools: Tools to register immediately
        """
        self._tools: dict[str, ToolDefinition] = {}
        self._agent_tools: dict[str, tuple[str, ...]] = {}
        self._usage: dict[str, dict[str, int]] = {}
        for tool in tools or []:
            self.register_tool(tool)

    def register_tool(self, tool: ToolDefinition) -> None:
        """Register a tool.

        Raises:
            ConfigurationError: If the tool id is already registered
        """
        if tool.id in self._tools:
            raise ConfigurationError(f"Duplicate tool id: {tool.id}")
        self._tools[tool.id] = tool
        self._usage[tool.id] = {"calls": 0, "failures": 0}
        logger.debug(f"Registered tool {tool.id}")

    def set_agent_tools(self, agent_id: str, tool_ids: Iterable[str]) -> None:
        """Declare which tools an agent may use."""
        tool_ids = tuple(tool_ids)
        unknown = [t for t in tool_ids if t not in self._tools]
        if unknown:
            logger.warning(f"Agent {agent_id} declares unregistered tools: {unknown}")
        self._agent_tools[agent_id] = tool_ids

    def register_capability(self, capability: AgentCapability) -> None:
        self.set_agent_tools(capability.id, capability.tools)

    def get_tool(self, tool_id: str) -> Optional[ToolDefinition]:
        return self._tools.get(tool_id)

    def list_tools(self, category: Optional[str] = None) -> list[ToolDefinition]:
        tools = list(self._tools.values())
        if category:
            tools = [t for t in tools if t.category == category]
        return tools

    def get_tools_for_agent(self, agent_id: str) -> list[ToolDefinition]:
        """Return the registered tools from the agent's declared list."""
        return [
            self._tools[tool_id]
            for tool_id in self._agent_tools.get(agent_id, ())
            if tool_id in self._tools
        ]

    async def execute_tool(self, tool_id: str, params: dict[str, Any]) -> ToolResult:
        """Validate parameters and run a tool.

        Args:
            tool_id: Registered tool id
            params: Parameters for the tool

        Returns:
            ToolResult with data on success, or the error on execution failure

        Raises:
            ValidationError: If params do not match the tool's schema. The
                tool is not invoked.
        """
        tool = self._tools.get(tool_id)
        if tool is None:
            error = ToolNotFoundError(tool_id)
            logger.warning(str(error))
            return ToolResult(tool_id=tool_id, success=False, error=error.message)

        validate_params(tool_id, params, tool.parameters)

        start_time = time.perf_counter()
        self._usage[tool_id]["calls"] += 1
        try:
            data = await self._invoke(tool, params)
        except ToolExecutionError as e:
            return self._failed(tool_id, e, start_time)
        except Exception as e:
            return self._failed(
                tool_id, ToolExecutionError(str(e), tool_id=tool_id, cause=e), start_time
            )

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info(f"Tool {tool_id} completed in {latency_ms}ms")
        return ToolResult(tool_id=tool_id, success=True, data=data, latency_ms=latency_ms)

    async def execute_tool_for_agent(
        self, agent_id: str, tool_id: str, params: dict[str, Any]
    ) -> ToolResult:
        """Run a tool on behalf of an agent.

        Validation failures and undeclared tools come back as failed results
        so nothing escapes to the orchestrator.
        """
        if tool_id not in self._agent_tools.get(agent_id, ()):
            return ToolResult(
                tool_id=tool_id,
                success=False,
                error=f"Tool {tool_id} is not available to agent {agent_id}",
            )
        try:
            return await self.execute_tool(tool_id, params)
        except ValidationError as e:
            logger.info(f"Agent {agent_id} sent invalid params to {tool_id}: {e.errors}")
            return ToolResult(tool_id=tool_id, success=False, error=e.message, errors=e.errors)

    async def _invoke(self, tool: ToolDefinition, params: dict[str, Any]) -> Any:
        result = tool.handler(params)
        if inspect.isawaitable(result):
            result = await result
        return result

    def _failed(self, tool_id: str, error: ToolExecutionError, start_time: float) -> ToolResult:
        self._usage[tool_id]["failures"] += 1
        latency_ms = int((time.perf_counter() - start_time) * 1000)
        logger.error(f"Tool {tool_id} failed: {error.message}")
        return ToolResult(
            tool_id=tool_id,
            success=False,
            error=error.message,
            latency_ms=latency_ms,
        )

    def get_usage_stats(self) -> dict[str, dict[str, int]]:
        return {tool_id: dict(stats) for tool_id, stats in self._usage.items()}
