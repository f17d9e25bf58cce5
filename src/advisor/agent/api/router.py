"""
FastAPI Router for the advisor agents.

Provides REST endpoints for chatting, provider health, sessions,
tools and registry administration.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ...core.error_sanitizer import sanitize_error_message
from ...core.exceptions import ConfigurationError, ValidationError
from ..app import AdvisorApp
from .schemas import (
    ChatRequest,
    ChatResponse,
    ProviderStatusResponse,
    RegistryReloadResponse,
    SessionResponse,
    ToolExecuteRequest,
    ToolExecuteResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/agent", tags=["agent"])


# =============================================================================
# Dependencies
# =============================================================================


def get_advisor(request: Request) -> AdvisorApp:
    """Get the advisor application stored on ``app.state`` at startup."""
    advisor = getattr(request.app.state, "advisor", None)
    if advisor is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Agent not initialized",
        )
    return advisor


# =============================================================================
# Chat
# =============================================================================


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    advisor: AdvisorApp = Depends(get_advisor),
) -> ChatResponse:
    """Send one message and wait for the selected agent's reply."""
    reply = await advisor.orchestrator.process_message(
        request.message,
        request.session_id,
        user_id=request.user_id,
        metadata=request.metadata,
    )
    return ChatResponse(
        content=reply.content,
        agent_id=reply.agent_id,
        timestamp=reply.timestamp,
        confidence=reply.confidence,
        success=reply.success,
        metadata=reply.metadata,
    )


@router.get("/agents")
async def list_agents(advisor: AdvisorApp = Depends(get_advisor)) -> list[dict[str, Any]]:
    return advisor.orchestrator.get_agent_list()


@router.get("/stats")
async def get_stats(advisor: AdvisorApp = Depends(get_advisor)) -> dict[str, Any]:
    """Orchestrator, session, LLM and interaction metrics in one payload."""
    stats = advisor.orchestrator.get_system_stats()
    stats["metrics"] = advisor.metrics.get_summary()
    stats["tools"] = advisor.tools.get_usage_stats()
    return stats


# =============================================================================
# Providers
# =============================================================================


@router.get("/providers", response_model=list[ProviderStatusResponse])
async def get_providers(
    refresh: bool = False,
    advisor: AdvisorApp = Depends(get_advisor),
) -> list[ProviderStatusResponse]:
    """Provider statuses, probing every provider first when ``refresh`` is set."""
    if refresh:
        statuses = await advisor.llm_service.get_available_providers()
    else:
        statuses = advisor.llm_service.get_provider_status()
    responses = []
    for s in statuses:
        data = s.to_dict()
        if data["last_error"]:
            data["last_error"] = sanitize_error_message(data["last_error"])
        responses.append(ProviderStatusResponse(**data))
    return responses


@router.post("/providers/{provider_id}/test")
async def test_provider(
    provider_id: str,
    advisor: AdvisorApp = Depends(get_advisor),
) -> dict[str, Any]:
    if advisor.llm_service.get_provider(provider_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Provider {provider_id} not found",
        )
    result = await advisor.llm_service.test_connection(provider_id)
    if result.get("error"):
        result["error"] = sanitize_error_message(result["error"])
    return result


# =============================================================================
# Sessions
# =============================================================================


@router.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    advisor: AdvisorApp = Depends(get_advisor),
) -> SessionResponse:
    exported = advisor.sessions.export_session(session_id)
    if exported is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session {session_id} not found",
        )
    return SessionResponse(**exported)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: str,
    advisor: AdvisorApp = Depends(get_advisor),
) -> None:
    if not advisor.sessions.clear_session(session_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session {session_id} not found",
        )


# =============================================================================
# Tools
# =============================================================================


@router.get("/tools")
async def list_tools(
    category: Optional[str] = None,
    advisor: AdvisorApp = Depends(get_advisor),
) -> list[dict[str, Any]]:
    return [
        {
            "id": tool.id,
            "name": tool.name,
            "description": tool.description,
            "category": tool.category,
            "parameters": tool.parameters,
        }
        for tool in advisor.tools.list_tools(category)
    ]


@router.post("/tools/{tool_id}", response_model=ToolExecuteResponse)
async def execute_tool(
    tool_id: str,
    request: ToolExecuteRequest,
    advisor: AdvisorApp = Depends(get_advisor),
) -> ToolExecuteResponse:
    """Run a tool directly. Invalid parameters are rejected with 422."""
    if advisor.tools.get_tool(tool_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Tool {tool_id} not found",
        )
    try:
        result = await advisor.tools.execute_tool(tool_id, request.params)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": e.message, "errors": e.errors},
        )
    return ToolExecuteResponse(
        tool_id=result.tool_id,
        success=result.success,
        data=result.data,
        error=sanitize_error_message(result.error) if result.error else None,
        errors=result.errors,
    )


# =============================================================================
# Registry administration
# =============================================================================


@router.post("/registry/reload", response_model=RegistryReloadResponse)
async def reload_registry(advisor: AdvisorApp = Depends(get_advisor)) -> RegistryReloadResponse:
    """Re-read the registry file and swap in its agents and providers."""
    try:
        agents = await advisor.reload_registry()
    except ConfigurationError as e:
        logger.warning(f"Registry reload rejected: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=sanitize_error_message(e.message, "Invalid registry"),
        )
    return RegistryReloadResponse(agents=agents)
