"""Tests for MCP server functionality."""

import asyncio
import json

import pytest

from tabsearch_mcp import server
from tabsearch_mcp.workspace import WorkspaceContext


DOCUMENTS = [
    {"filename": "b.ts", "content": "const b = 2;"},
    {"filename": "app.ts", "content": "const x = 1;\n// const y = 2;\nconst z = 3;"},
    {"filename": "style.css", "content": ".const { color: red }"},
]


@pytest.fixture(autouse=True)
def workspace(tmp_path, monkeypatch):
    """Give every test a fresh workspace rooted in a temp directory."""
    ws = WorkspaceContext(root=tmp_path)
    monkeypatch.setattr(server, "ctx", ws)
    return ws


def call(name: str, arguments: dict | None = None) -> dict:
    """Invoke a tool the way an MCP client would and decode the response."""
    contents = asyncio.run(server.call_tool(name, arguments or {}))
    return json.loads(contents[0].text)


class TestMCPTools:
    """Tests for MCP tool registration."""

    def test_tools_registered(self):
        """Core tools are listed."""
        tools = asyncio.run(server.list_tools())
        tool_names = {t.name for t in tools}

        assert {
            "tabsearch_set_documents",
            "tabsearch_search",
            "tabsearch_navigate",
            "tabsearch_history",
            "tabsearch_save_snippet",
            "tabsearch_run_snippet",
            "tabsearch_clear",
        } <= tool_names

    def test_unknown_tool(self):
        """Unknown tool names return an error response."""
        response = call("tabsearch_nope")
        assert response["success"] is False
        assert "Unknown tool" in response["error"]


class TestSearchTool:
    """Tests for tabsearch_search."""

    def test_no_documents_is_zero_results(self):
        """Searching with nothing open succeeds with zero matches and is recorded."""
        response = call("tabsearch_search", {"query": "const"})
        assert response["success"] is True
        assert response["data"]["searched"] is True
        assert response["data"]["totalCount"] == 0
        assert response["next_step"]["tool"] == "tabsearch_set_documents"
        assert call("tabsearch_history")["data"]["history"][0]["query"] == "const"

    def test_explicit_empty_documents(self):
        """An empty document list is a normal search, not an error."""
        call("tabsearch_set_documents", {"documents": DOCUMENTS})
        response = call("tabsearch_search", {"query": "const", "documents": []})
        assert response["success"] is True
        assert response["data"]["totalCount"] == 0

    def test_blank_query_without_documents(self):
        """A blank query is an empty no-op even with nothing open."""
        response = call("tabsearch_search", {"query": "   "})
        assert response["success"] is True
        assert response["data"]["searched"] is False
        assert call("tabsearch_history")["data"]["count"] == 0

    def test_snake_case_filter_keys(self):
        """snake_case filter keys override the defaults like camelCase ones."""
        docs = [{"filename": "a.ts", "content": "let abc = 1"}]
        response = call("tabsearch_search", {
            "query": "ABC",
            "documents": docs,
            "filters": {"case_sensitive": True},
        })
        assert response["data"]["totalCount"] == 0
        assert response["data"]["filters"]["caseSensitive"] is True

    def test_search_with_inline_documents(self):
        """Documents passed inline are searched and grouped by file."""
        response = call("tabsearch_search", {"query": "const", "documents": DOCUMENTS})
        assert response["success"] is True

        data = response["data"]
        assert data["totalCount"] == 5
        assert [m["filename"] for m in data["matches"]] == [
            "app.ts", "app.ts", "app.ts", "b.ts", "style.css",
        ]
        assert data["groups"][0] == {"filename": "app.ts", "count": 3, "expanded": True}
        assert data["groups"][1]["expanded"] is False

    def test_filters_and_max_results(self):
        """Filters apply and max_results truncates the returned matches."""
        call("tabsearch_set_documents", {"documents": DOCUMENTS})
        response = call("tabsearch_search", {
            "query": "const",
            "filters": {"fileTypes": ["ts"], "excludeComments": True},
            "max_results": 1,
        })
        data = response["data"]
        assert data["totalCount"] == 3
        assert len(data["matches"]) == 1
        assert data["truncated"] is True

    def test_blank_query(self):
        """Blank queries are not searched or recorded."""
        call("tabsearch_set_documents", {"documents": DOCUMENTS})
        response = call("tabsearch_search", {"query": " "})
        assert response["success"] is True
        assert response["data"]["searched"] is False
        assert call("tabsearch_history")["data"]["count"] == 0

    def test_invalid_regex_reports_fallback(self):
        """A bad regex is searched literally and flagged."""
        call("tabsearch_set_documents", {"documents": [{"filename": "a.js", "content": "f(unclosed"}]})
        response = call("tabsearch_search", {"query": "(unclosed", "filters": {"useRegex": True}})
        assert response["data"]["usedFallback"] is True
        assert response["data"]["totalCount"] == 1

    def test_malformed_documents_are_an_error(self):
        """Documents without content are rejected."""
        response = call("tabsearch_set_documents", {"documents": [{"filename": "a.ts"}]})
        assert response["success"] is False


class TestNavigationTools:
    """Tests for navigation and group tools."""

    def test_navigate_wraps_and_returns_coordinates(self):
        """Navigation returns editor coordinates and wraps around."""
        call("tabsearch_search", {"query": "const", "documents": DOCUMENTS[:2]})

        first = call("tabsearch_navigate", {"direction": "next"})
        assert first["data"]["selected"] == {
            "filename": "app.ts", "line": 1, "column": 1, "matchLength": 5,
        }
        last = call("tabsearch_navigate", {"direction": "prev"})
        assert last["data"]["active_index"] == 3
        assert last["data"]["selected"]["filename"] == "b.ts"

    def test_navigate_without_results(self):
        """Navigating with no results selects nothing."""
        response = call("tabsearch_navigate", {"direction": "next"})
        assert response["success"] is True
        assert response["data"]["selected"] is None

    def test_select_match(self, workspace):
        """Selecting by coordinates activates the match and records the selection."""
        call("tabsearch_search", {"query": "const", "documents": DOCUMENTS[:2]})
        response = call("tabsearch_select_match", {"filename": "app.ts", "line": 2, "column": 4})
        assert response["data"]["active_index"] == 1
        assert workspace.last_selection.line == 2

        missing = call("tabsearch_select_match", {"filename": "app.ts", "line": 9, "column": 1})
        assert missing["success"] is False

    def test_group_toggles(self):
        """Group tools report the new expansion state."""
        call("tabsearch_search", {"query": "const", "documents": DOCUMENTS})
        assert call("tabsearch_toggle_group", {"filename": "b.ts"})["data"]["expanded"] is True
        assert call("tabsearch_toggle_all_groups")["data"]["expanded"] is True
        assert call("tabsearch_toggle_all_groups")["data"]["expanded"] is False


class TestHistoryAndSnippetTools:
    """Tests for history and snippet tools."""

    def test_history_newest_first(self):
        """History lists the newest query first."""
        call("tabsearch_set_documents", {"documents": DOCUMENTS})
        call("tabsearch_search", {"query": "const"})
        call("tabsearch_search", {"query": "color"})

        history = call("tabsearch_history")["data"]["history"]
        assert [h["query"] for h in history] == ["color", "const"]

    def test_replay_history(self):
        """Replays reuse the recorded filters."""
        call("tabsearch_set_documents", {"documents": DOCUMENTS})
        call("tabsearch_search", {"query": "const", "filters": {"fileTypes": ["css"]}})

        response = call("tabsearch_replay_history", {"query": "const"})
        assert response["data"]["totalCount"] == 1
        assert call("tabsearch_replay_history", {"query": "nope"})["success"] is False

    def test_save_and_run_snippet(self):
        """Saved snippets run with their stored filters."""
        call("tabsearch_set_documents", {"documents": DOCUMENTS})
        saved = call("tabsearch_save_snippet", {
            "name": "ts-consts",
            "query": "const",
            "filters": {"fileTypes": ["ts"], "wholeWord": True},
        })
        assert saved["next_step"]["tool"] == "tabsearch_run_snippet"

        response = call("tabsearch_run_snippet", {"name": "ts-consts"})
        assert response["data"]["totalCount"] == 4

        listed = call("tabsearch_list_snippets")["data"]
        assert listed["snippets"]["ts-consts"]["wholeWord"] is True
        assert call("tabsearch_run_snippet", {"name": "missing"})["success"] is False

    def test_replay_and_snippet_without_documents(self):
        """Replays and snippets run against an empty workspace return zero results."""
        call("tabsearch_search", {"query": "const", "documents": DOCUMENTS})
        call("tabsearch_save_snippet", {"name": "consts", "query": "const"})
        call("tabsearch_clear")

        replay = call("tabsearch_replay_history", {"query": "const"})
        assert replay["success"] is True
        assert replay["data"]["totalCount"] == 0

        snippet = call("tabsearch_run_snippet", {"name": "consts"})
        assert snippet["success"] is True
        assert snippet["data"]["totalCount"] == 0

    def test_clear(self, workspace):
        """Clearing drops documents and results but keeps history."""
        call("tabsearch_search", {"query": "const", "documents": DOCUMENTS})
        call("tabsearch_navigate", {"direction": "next"})

        response = call("tabsearch_clear")
        assert response["success"] is True
        assert workspace.documents == []
        assert workspace.last_selection is None
        assert call("tabsearch_navigate", {"direction": "next"})["data"]["selected"] is None
        assert call("tabsearch_history")["data"]["count"] == 1

    def test_file_types(self):
        """File types come from the loaded documents."""
        call("tabsearch_set_documents", {"documents": DOCUMENTS})
        assert call("tabsearch_file_types")["data"]["file_types"] == ["css", "ts"]
