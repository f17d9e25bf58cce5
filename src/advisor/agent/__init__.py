"""Venture advisor agents.

Subpackages:
- domain: entities and ports
- providers: LLM provider adapters and the synthetic fallback
- llm: provider failover service
- tools: tool registry and business tools
- agents: specialized advisor agents
- memory: chat sessions
- orchestrator: message routing
- admin: registry file and interaction metrics
- api: FastAPI router
"""
