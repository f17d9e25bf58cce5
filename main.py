#!/usr/bin/env python3
"""Venture Advisor Agents CLI.

Command-line access to the advisor agents without running the API server.

Architecture:
    - AdvisorApp wires providers, tools, sessions and the orchestrator
    - Providers come from the registry file or from environment variables
    - The synthetic fallback provider answers when every provider is down

Environment Variables (all optional):
    - OLLAMA_BASE_URL / OLLAMA_MODEL: Local Ollama server
    - VLLM_BASE_URL: Local vLLM (OpenAI-compatible) server
    - GROQ_API_KEY, OPENAI_API_KEY, ANTHROPIC_API_KEY: Cloud providers
    - ADVISOR_PREFERRED_PROVIDER: Provider tried first
    - ADVISOR_REGISTRY_PATH: YAML agent/provider registry

Example Usage:
    $ python main.py chat                                  # Interactive chat
    $ python main.py chat -m "Value my fintech startup"    # One message
    $ python main.py providers                             # Provider health
    $ python main.py agents "market size for edtech"       # Explain routing
    $ python main.py tool valuation-estimator --params '{"industry": "saas", "revenue": 2, "growth": 0.4}'
"""
import argparse
import asyncio
import json
import logging
import os
import sys
import uuid

from dotenv import load_dotenv

load_dotenv()

# Local imports
from src.advisor.agent.app import AdvisorApp
from src.advisor.core import AdvisorError, AdvisorSettings


async def run_chat(app: AdvisorApp, args: argparse.Namespace) -> int:
    session_id = args.session or f"cli-{uuid.uuid4().hex[:8]}"

    async def ask(message: str) -> None:
        reply = await app.orchestrator.process_message(message, session_id, user_id=args.user)
        provider = reply.metadata.get("provider", "-")
        print(f"\n[{reply.agent_id} via {provider}] {reply.content}\n")

    if args.message:
        await ask(args.message)
        return 0

    print(f"[Main] Session {session_id}. Empty line or Ctrl-D to quit.")
    while True:
        try:
            line = await asyncio.to_thread(input, "you> ")
        except EOFError:
            break
        if not line.strip():
            break
        await ask(line)
    return 0


async def run_providers(app: AdvisorApp, args: argparse.Namespace) -> int:
    statuses = await app.llm_service.get_available_providers()
    for status in statuses:
        marker = "up" if status.is_healthy else "down"
        print(f"{status.provider_id:<12} {status.kind.value:<10} {status.model:<32} {marker}")
    return 0


async def run_agents(app: AdvisorApp, args: argparse.Namespace) -> int:
    if not args.message:
        for capability in app.orchestrator.get_agent_list():
            print(f"{capability['id']:<24} priority={capability['priority']:<3} {capability['name']}")
        return 0
    for row in app.orchestrator.explain_selection(args.message):
        flag = "*" if row["selected"] else " "
        print(f"{flag} {row['agent_id']:<24} priority={row['priority']:<3} score={row['score']}")
    return 0


async def run_tool(app: AdvisorApp, args: argparse.Namespace) -> int:
    try:
        params = json.loads(args.params)
    except json.JSONDecodeError as e:
        print(f"[Main] --params is not valid JSON: {e}", file=sys.stderr)
        return 2
    result = await app.tools.execute_tool(args.tool_id, params)
    print(json.dumps(result.to_dict(), indent=2, default=str))
    return 0 if result.success else 1


COMMANDS = {
    "chat": run_chat,
    "providers": run_providers,
    "agents": run_agents,
    "tool": run_tool,
}


async def run(args: argparse.Namespace) -> int:
    settings = AdvisorSettings()
    if args.registry:
        settings.registry_path = args.registry
    if args.provider:
        settings.preferred_provider = args.provider

    try:
        app = AdvisorApp.create(settings)
    except AdvisorError as e:
        print(f"[Main] {e}", file=sys.stderr)
        return 1

    try:
        return await COMMANDS[args.command](app, args)
    except AdvisorError as e:
        print(f"[Main] {e}", file=sys.stderr)
        return 1
    finally:
        await app.aclose()


def main():
    parser = argparse.ArgumentParser(
        description="Chat with the venture advisor agents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py chat                               # Interactive chat
  python main.py chat -m "Build me a pitch deck"    # One-shot message
  python main.py providers                          # Probe every provider
  python main.py agents "churn and runway"          # Show agent routing
  python main.py tool market-analysis --params '{"industry": "ai"}'
        """
    )
    parser.add_argument("--registry", metavar="FILE", help="Agent/provider registry YAML")
    parser.add_argument("--provider", metavar="ID", help="Preferred provider id")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    chat_parser = subparsers.add_parser("chat", help="Chat with the agents")
    chat_parser.add_argument("-m", "--message", help="Send one message and exit")
    chat_parser.add_argument("--session", help="Session id to continue")
    chat_parser.add_argument("--user", default="cli", help="User id")

    subparsers.add_parser("providers", help="Probe provider health")

    agents_parser = subparsers.add_parser("agents", help="List agents or explain routing")
    agents_parser.add_argument("message", nargs="?", help="Message to route")

    tool_parser = subparsers.add_parser("tool", help="Run a tool directly")
    tool_parser.add_argument("tool_id", help="Tool id, e.g. market-analysis")
    tool_parser.add_argument("--params", default="{}", help="JSON object of parameters")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else os.getenv("LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
