"""Integration tests for the MCP server.

Tools are called through the MCP protocol using FastMCP's in-memory Client.
"""

from __future__ import annotations

import json

import pytest
import pytest_asyncio
from fastmcp import Client

from onboarding_mcp.identity import EMAIL_ENV_VARS
from onboarding_mcp.mcp.server import _components, configure, mcp


# ---------------------------------------------------------------------------
# Fixture: temporary configuration + in-memory MCP Client
# ---------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _configured_server(settings, monkeypatch):
    for var in (*EMAIL_ENV_VARS, "USERNAME", "USERDOMAIN"):
        monkeypatch.delenv(var, raising=False)
    configure(settings)
    yield
    _components.clear()


@pytest_asyncio.fixture
async def client():
    """Create an in-memory MCP client."""
    async with Client(mcp) as c:
        yield c


def _payload(result) -> dict:
    return json.loads(result.content[0].text)


# ===================================================================
# Tool discovery
# ===================================================================
class TestMCPToolDiscovery:
    @pytest.mark.asyncio
    async def test_list_tools(self, client: Client):
        tools = await client.list_tools()
        tool_names = sorted(t.name for t in tools)

        assert tool_names == [
            "complete_step",
            "get_all_steps",
            "get_current_step",
            "get_progress",
            "list_employees",
            "record_step_data",
            "register_employee",
            "start_onboarding",
        ]

    @pytest.mark.asyncio
    async def test_tools_have_descriptions(self, client: Client):
        tools = await client.list_tools()

        for tool in tools:
            assert tool.description, f"{tool.name} has no description"
            assert len(tool.description) > 10, f"{tool.name} description too short"


# ===================================================================
# Tool calls through the protocol
# ===================================================================
class TestMCPToolCalls:
    @pytest.mark.asyncio
    async def test_onboarding_flow(self, client: Client):
        email = "jane.doe@company.com"

        started = _payload(await client.call_tool("start_onboarding", {"email": email}))
        assert started["status"] == "ok"

        done = _payload(
            await client.call_tool(
                "complete_step", {"email": email, "step_id": 1, "data": {"mfa": True}}
            )
        )
        assert done["next_step"] == 2

        progress = _payload(await client.call_tool("get_progress", {"email": email}))
        assert progress["completed_steps"] == [1]

    @pytest.mark.asyncio
    async def test_get_all_steps(self, client: Client):
        result = _payload(await client.call_tool("get_all_steps", {}))

        assert result["count"] == 3

    @pytest.mark.asyncio
    async def test_registration_prompt(self, client: Client):
        result = _payload(await client.call_tool("get_current_step", {}))

        assert result["status"] == "registration_required"
