"""tabsearch MCP Server - Searches the open documents of an editor."""

import json
import logging
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from .search import SearchFilters, SearchResult, available_file_types
from .workspace import WorkspaceContext

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 200

# Global workspace context
ctx = WorkspaceContext()

# Create MCP server
server = Server("tabsearch-mcp")


FILTERS_SCHEMA = {
    "type": "object",
    "description": "Match options. Omitted fields use the configured defaults.",
    "properties": {
        "caseSensitive": {"type": "boolean"},
        "wholeWord": {"type": "boolean"},
        "useRegex": {"type": "boolean"},
        "includeContent": {"type": "boolean"},
        "fileTypes": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Extension allow-list, e.g. [\"ts\", \"css\"]. Empty means all files.",
        },
        "excludeComments": {"type": "boolean"},
    },
}

DOCUMENTS_SCHEMA = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "filename": {"type": "string"},
            "content": {"type": "string"},
        },
        "required": ["filename", "content"],
    },
}


def make_response(
    success: bool,
    data: Any = None,
    error: str | None = None,
    next_step: dict | None = None,
) -> dict:
    """Create standardized response with next_step guidance."""
    response = {
        "success": success,
        "data": data,
        "error": error,
    }
    if next_step:
        response["next_step"] = next_step
    return response


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List available tabsearch tools."""
    return [
        Tool(
            name="tabsearch_set_documents",
            description="Set the open documents to search. Must be called before searching unless documents are passed to tabsearch_search.",
            inputSchema={
                "type": "object",
                "properties": {
                    "documents": DOCUMENTS_SCHEMA,
                    "replace": {
                        "type": "boolean",
                        "description": "Replace the snapshot (default) or upsert by filename",
                    },
                },
                "required": ["documents"],
            },
        ),
        Tool(
            name="tabsearch_search",
            description="Search the open documents. Returns matches sorted by filename and line, grouped by file.",
            inputSchema={
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "Text or regex to find"},
                    "filters": FILTERS_SCHEMA,
                    "documents": DOCUMENTS_SCHEMA,
                    "max_results": {
                        "type": "integer",
                        "description": f"Maximum matches to return (default {DEFAULT_MAX_RESULTS})",
                    },
                },
                "required": ["query"],
            },
        ),
        Tool(
            name="tabsearch_navigate",
            description="Move to the next or previous match (wraps around). Returns the location to jump to.",
            inputSchema={
                "type": "object",
                "properties": {
                    "direction": {"type": "string", "enum": ["next", "prev"]},
                },
                "required": ["direction"],
            },
        ),
        Tool(
            name="tabsearch_select_match",
            description="Select a specific match by file, line and column.",
            inputSchema={
                "type": "object",
                "properties": {
                    "filename": {"type": "string"},
                    "line": {"type": "integer"},
                    "column": {"type": "integer"},
                },
                "required": ["filename", "line", "column"],
            },
        ),
        Tool(
            name="tabsearch_toggle_group",
            description="Expand or collapse the results of one file.",
            inputSchema={
                "type": "object",
                "properties": {
                    "filename": {"type": "string"},
                },
                "required": ["filename"],
            },
        ),
        Tool(
            name="tabsearch_toggle_all_groups",
            description="Collapse all result groups if all are expanded, otherwise expand all.",
            inputSchema={
                "type": "object",
                "properties": {},
            },
        ),
        Tool(
            name="tabsearch_history",
            description="List recent queries, newest first.",
            inputSchema={
                "type": "object",
                "properties": {},
            },
        ),
        Tool(
            name="tabsearch_replay_history",
            description="Re-run a query from the history with the filters it was run with.",
            inputSchema={
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "Query text of the history entry"},
                },
                "required": ["query"],
            },
        ),
        Tool(
            name="tabsearch_save_snippet",
            description="Save a query and filters under a name. Existing names are overwritten.",
            inputSchema={
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "query": {"type": "string"},
                    "filters": FILTERS_SCHEMA,
                },
                "required": ["name", "query"],
            },
        ),
        Tool(
            name="tabsearch_run_snippet",
            description="Run a saved snippet against the open documents.",
            inputSchema={
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                },
                "required": ["name"],
            },
        ),
        Tool(
            name="tabsearch_list_snippets",
            description="List saved snippets.",
            inputSchema={
                "type": "object",
                "properties": {},
            },
        ),
        Tool(
            name="tabsearch_clear",
            description="Close all documents and clear the current results. History and snippets are kept.",
            inputSchema={
                "type": "object",
                "properties": {},
            },
        ),
        Tool(
            name="tabsearch_file_types",
            description="List the file extensions present in the open documents (choices for the fileTypes filter).",
            inputSchema={
                "type": "object",
                "properties": {},
            },
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    """Handle tool calls."""
    try:
        result = await _handle_tool(name, arguments or {})
        return [TextContent(type="text", text=json.dumps(result, indent=2))]
    except Exception as e:
        logger.warning(f"Tool {name} failed: {e}")
        error_response = make_response(False, error=str(e))
        return [TextContent(type="text", text=json.dumps(error_response, indent=2))]


async def _handle_tool(name: str, arguments: dict) -> dict:
    """Route tool calls to handlers."""

    if name == "tabsearch_set_documents":
        return await handle_set_documents(
            arguments["documents"],
            replace=arguments.get("replace", True),
        )
    elif name == "tabsearch_search":
        return await handle_search(
            arguments["query"],
            filters=arguments.get("filters"),
            documents=arguments.get("documents"),
            max_results=arguments.get("max_results", DEFAULT_MAX_RESULTS),
        )
    elif name == "tabsearch_navigate":
        return await handle_navigate(arguments["direction"])
    elif name == "tabsearch_select_match":
        return await handle_select_match(
            arguments["filename"],
            arguments["line"],
            arguments["column"],
        )
    elif name == "tabsearch_toggle_group":
        return await handle_toggle_group(arguments["filename"])
    elif name == "tabsearch_toggle_all_groups":
        return await handle_toggle_all_groups()
    elif name == "tabsearch_history":
        return await handle_history()
    elif name == "tabsearch_replay_history":
        return await handle_replay_history(arguments["query"])
    elif name == "tabsearch_save_snippet":
        return await handle_save_snippet(
            arguments["name"],
            arguments["query"],
            filters=arguments.get("filters"),
        )
    elif name == "tabsearch_run_snippet":
        return await handle_run_snippet(arguments["name"])
    elif name == "tabsearch_list_snippets":
        return await handle_list_snippets()
    elif name == "tabsearch_clear":
        return await handle_clear()
    elif name == "tabsearch_file_types":
        return await handle_file_types()
    else:
        return make_response(False, error=f"Unknown tool: {name}")


def _merge_filters(filters: dict | None) -> SearchFilters:
    """Overlay user-supplied filter fields on the configured defaults."""
    return ctx.session.default_filters.merged(filters)


def _set_documents_hint() -> dict:
    return {
        "action": "Provide the open documents",
        "tool": "tabsearch_set_documents",
        "example": {"documents": [{"filename": "app.ts", "content": "const x = 1;"}]},
    }


def _format_result(result: SearchResult, max_results: int) -> dict:
    """Shape a search result for the tool response."""
    navigator = ctx.session.navigator
    data = result.to_dict()
    data["matches"] = data["matches"][:max_results]
    data["truncated"] = result.total_count > max_results
    data["groups"] = [
        {
            "filename": filename,
            "count": len(matches),
            "expanded": navigator.is_expanded(filename),
        }
        for filename, matches in navigator.groups.items()
    ]
    return data


async def handle_set_documents(documents: Any, replace: bool = True) -> dict:
    """Handle tabsearch_set_documents."""
    docs = ctx.set_documents(documents, replace=replace)
    return make_response(
        True,
        data={
            "documents": len(docs),
            "filenames": [d.filename for d in docs],
            "file_types": available_file_types(docs),
        },
        next_step={
            "action": "Search the documents",
            "tool": "tabsearch_search",
            "example": {"query": "const"},
        },
    )


async def handle_search(
    query: str,
    filters: dict | None = None,
    documents: Any = None,
    max_results: int = DEFAULT_MAX_RESULTS,
) -> dict:
    """Handle tabsearch_search.

    Args:
        query: Query string
        filters: Optional filter overrides (camelCase or snake_case keys)
        documents: Optional documents replacing the current snapshot
        max_results: Cap on matches included in the response
    """
    if documents is not None:
        ctx.set_documents(documents)

    result = ctx.session.commit(ctx.documents, query, _merge_filters(filters))

    if not result.searched:
        return make_response(
            True,
            data={"query": query, "matches": [], "totalCount": 0, "searched": False},
        )

    data = _format_result(result, max_results)
    next_step = None
    if not ctx.has_documents:
        next_step = _set_documents_hint()
    elif result.matches:
        next_step = {
            "action": "Jump to the first match",
            "tool": "tabsearch_navigate",
            "example": {"direction": "next"},
        }
    return make_response(True, data=data, next_step=next_step)


async def handle_navigate(direction: str) -> dict:
    """Handle tabsearch_navigate."""
    navigator = ctx.session.navigator
    coords = navigator.navigate(direction)
    if coords is None:
        return make_response(
            True,
            data={"active_index": -1, "selected": None, "message": "No results to navigate"},
        )
    return make_response(
        True,
        data={
            "active_index": navigator.active_index,
            "total": len(navigator.matches),
            "selected": coords.to_dict(),
        },
    )


async def handle_select_match(filename: str, line: int, column: int) -> dict:
    """Handle tabsearch_select_match."""
    navigator = ctx.session.navigator
    coords = navigator.select_at(filename, line, column)
    if coords is None:
        return make_response(False, error=f"No match at {filename}:{line}:{column}")
    return make_response(
        True,
        data={"active_index": navigator.active_index, "selected": coords.to_dict()},
    )


async def handle_toggle_group(filename: str) -> dict:
    """Handle tabsearch_toggle_group."""
    expanded = ctx.session.navigator.toggle_group(filename)
    return make_response(True, data={"filename": filename, "expanded": expanded})


async def handle_toggle_all_groups() -> dict:
    """Handle tabsearch_toggle_all_groups."""
    expanded = ctx.session.navigator.toggle_all()
    return make_response(True, data={"expanded": expanded})


async def handle_history() -> dict:
    """Handle tabsearch_history."""
    entries = ctx.session.history.list_history()
    return make_response(
        True,
        data={"history": [e.to_dict() for e in entries], "count": len(entries)},
    )


async def handle_replay_history(query: str) -> dict:
    """Handle tabsearch_replay_history."""
    entry = next((e for e in ctx.session.history.list_history() if e.query == query), None)
    if entry is None:
        return make_response(False, error=f"Query not in history: {query}")

    result = ctx.session.replay(entry, ctx.documents)
    return make_response(True, data=_format_result(result, DEFAULT_MAX_RESULTS))


async def handle_save_snippet(name: str, query: str, filters: dict | None = None) -> dict:
    """Handle tabsearch_save_snippet."""
    snippet = ctx.session.save_snippet(name, query, _merge_filters(filters))
    return make_response(
        True,
        data={"name": snippet.name, "snippet": snippet.to_dict()},
        next_step={
            "action": "Run the snippet",
            "tool": "tabsearch_run_snippet",
            "example": {"name": snippet.name},
        },
    )


async def handle_run_snippet(name: str) -> dict:
    """Handle tabsearch_run_snippet."""
    if ctx.session.snippets.load_snippet(name) is None:
        return make_response(False, error=f"Snippet not found: {name}")

    result = ctx.session.run_snippet(name, ctx.documents)
    return make_response(True, data=_format_result(result, DEFAULT_MAX_RESULTS))


async def handle_list_snippets() -> dict:
    """Handle tabsearch_list_snippets."""
    snippets = ctx.session.snippets.list_snippets()
    return make_response(
        True,
        data={"snippets": {s.name: s.to_dict() for s in snippets}, "count": len(snippets)},
    )


async def handle_clear() -> dict:
    """Handle tabsearch_clear."""
    ctx.clear()
    return make_response(True, data={"cleared": True}, next_step=_set_documents_hint())


async def handle_file_types() -> dict:
    """Handle tabsearch_file_types."""
    return make_response(True, data={"file_types": available_file_types(ctx.documents)})


def main():
    """Run the MCP server."""
    import asyncio

    logging.basicConfig(level=logging.WARNING)

    async def run():
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())

    asyncio.run(run())


if __name__ == "__main__":
    main()
