from unittest.mock import AsyncMock, patch

import pytest

from toolengine.tools import ParamKind, ToolCall, ToolDefinition, ToolParameter, ToolRegistry, ToolResult
from toolengine.tools.builtin import BUILTIN_HANDLERS
from toolengine.tools.search import SearchError


@pytest.mark.asyncio
async def test_calculate(registry):
    result = await registry.execute(ToolCall("calculate", {"expression": "2 + 3"}))
    assert result.success
    assert "5" in result.output
    assert result.data == 5


@pytest.mark.asyncio
async def test_calculate_rejects_unknown_identifiers(registry):
    result = await registry.execute(ToolCall("calculate", {"expression": "abc"}))
    assert not result.success
    assert result.output == "Unsafe expression: Unknown identifier: abc"


@pytest.mark.asyncio
async def test_calculate_reports_math_errors(registry):
    result = await registry.execute(ToolCall("calculate", {"expression": "1/0"}))
    assert not result.success
    assert result.output.startswith("Calculation error:")


@pytest.mark.asyncio
async def test_invalid_call(registry):
    result = await registry.execute(ToolCall("calculate", {}))
    assert not result.success
    assert result.output == "Invalid tool call: Missing required parameter: expression"


@pytest.mark.asyncio
async def test_unknown_tool(registry):
    result = await registry.execute(ToolCall("format_disk", {}))
    assert not result.success
    assert "Unknown tool: format_disk" in result.output


@pytest.mark.asyncio
@pytest.mark.parametrize("call, message", [
    (ToolCall("execute_python", {"code": "print(1)"}), "Python runtime not available"),
    (ToolCall("execute_javascript", {"code": "1"}), "JavaScript sandbox not available"),
    (ToolCall("execute_sql", {"query": "SELECT 1"}), "SQL engine not available"),
    (ToolCall("search_documents", {"query": "q"}), "Document search not available"),
    (ToolCall("read_file", {"path": "a.txt"}), "File read not available"),
    (ToolCall("update_plan", {"target": "notes", "content": "x"}), "Plan editing not available"),
])
async def test_missing_capability(registry, call, message):
    result = await registry.execute(call)
    assert not result.success
    assert result.output == message
    assert "not available" in result.output


@pytest.mark.asyncio
async def test_context_capability_is_called_with_normalized_parameters(registry):
    run = AsyncMock(return_value="42")
    registry.set_context(execute_python=run)
    result = await registry.execute(ToolCall("execute_python", {"python_code": "print(42)"}))
    assert result == ToolResult(success=True, output="42")
    run.assert_awaited_once_with("print(42)")


@pytest.mark.asyncio
async def test_handler_exception_becomes_failed_result(registry):
    registry.set_context({"execute_python": AsyncMock(side_effect=RuntimeError("boom"))})
    result = await registry.execute(ToolCall("execute_python", {"code": "x"}))
    assert not result.success
    assert result.output == "Error executing tool 'execute_python': boom"


@pytest.mark.asyncio
async def test_set_context_never_removes(registry):
    registry.set_context(read_file=AsyncMock(return_value="hello"))
    registry.set_context(read_file=None)
    result = await registry.execute(ToolCall("read_file", {"path": "a.txt"}))
    assert result.output == "hello"


@pytest.mark.asyncio
async def test_file_tools(registry):
    write = AsyncMock(return_value=None)
    list_files = AsyncMock(return_value=["a.txt", "b.txt"])
    move = AsyncMock(return_value=None)
    registry.set_context(write_file=write, list_files=list_files, move_file=move)

    written = await registry.execute(ToolCall("write_file", {"file_path": "a.txt", "text": "hi"}))
    assert written.success
    write.assert_awaited_once_with("a.txt", "hi")

    listed = await registry.execute(ToolCall("list_files", {}))
    assert listed.output == "Files:\n  - a.txt\n  - b.txt"
    list_files.assert_awaited_once_with(None)

    moved = await registry.execute(ToolCall("move_file", {"source": "a.txt", "destination": "c.txt"}))
    assert moved.success
    move.assert_awaited_once_with("a.txt", "c.txt")


@pytest.mark.asyncio
async def test_create_file_message(registry):
    create = AsyncMock(return_value={"id": "f1"})
    registry.set_context(create_file=create)
    result = await registry.execute(ToolCall("create_file", {"type": "csv", "content": "a,b"}))
    assert result.output == 'File "download.csv" created.'
    assert result.data == {"id": "f1"}
    create.assert_awaited_once_with("csv", "a,b", None)


@pytest.mark.asyncio
async def test_search_documents_formats_results(registry):
    search = AsyncMock(return_value=[{"document_name": "manual.pdf", "page_number": 4, "text": "Torque specs"}])
    registry.set_context(search_documents=search)
    result = await registry.execute(ToolCall("search_documents", {"query": "torque"}))
    assert result.output == "manual.pdf (p. 4): Torque specs..."
    search.assert_awaited_once_with("torque", 3)


@pytest.mark.asyncio
async def test_analyze_image_serializes_structured_answers(registry):
    registry.set_context(analyze_image=AsyncMock(return_value={"labels": ["cat"]}))
    result = await registry.execute(ToolCall("analyze_image", {"question": "What is it?"}))
    assert result.output == '{"labels": ["cat"]}'


@pytest.mark.asyncio
async def test_update_plan_defaults(registry):
    update = AsyncMock(return_value={"ok": True})
    registry.set_context(update_plan=update)
    result = await registry.execute(ToolCall("update_plan", {"tasks": [{"label": "a", "status": "todo"}]}))
    assert result.output == "Plan todo updated."
    update.assert_awaited_once_with(
        target="todo", operation="replace", tasks=[{"label": "a", "status": "todo"}], title=None, content=None,
    )


@pytest.mark.asyncio
async def test_web_search(registry):
    results = [{"title": "Rust Book", "url": "https://doc.rust-lang.org/book/", "snippet": "Ownership"}]
    with patch("toolengine.tools.builtin.search_web", new_callable=AsyncMock) as search:
        search.return_value = results
        result = await registry.execute(ToolCall("web_search", {"query": "rust ownership", "limit": 2}))
    search.assert_awaited_once_with("rust ownership", 2)
    assert result.success
    assert result.data == results
    assert '## Search results for "rust ownership"' in result.output
    assert "### 1. Rust Book" in result.output


@pytest.mark.asyncio
async def test_web_search_failure(registry):
    with patch("toolengine.tools.builtin.search_web", new_callable=AsyncMock) as search:
        search.side_effect = SearchError("all search endpoints failed")
        result = await registry.execute(ToolCall("web_search", {"query": "q"}))
    assert not result.success
    assert result.output == "Web search failed: all search endpoints failed"


@pytest.mark.asyncio
async def test_web_search_without_results(registry):
    with patch("toolengine.tools.builtin.search_web", new_callable=AsyncMock) as search:
        search.return_value = []
        result = await registry.execute(ToolCall("web_search", {"query": "zzqx"}))
    assert result.success
    assert result.output == 'No results found for "zzqx".'


@pytest.mark.asyncio
async def test_browse_url_rejects_other_schemes(registry):
    result = await registry.execute(ToolCall("browse_url", {"url": "file:///etc/passwd"}))
    assert not result.success
    assert result.output == "Only http and https URLs can be browsed"


@pytest.mark.asyncio
async def test_register_custom_tool(registry):
    echo = ToolDefinition(
        name="echo",
        description="Echo text back.",
        parameters=(ToolParameter("text", ParamKind.STRING, "Text to echo", required=True),),
        handler_key="echo",
    )

    async def handler(params, context):
        return params["text"]

    registry.register("echo", echo, handler)
    assert registry.has("echo")
    assert "echo" in registry.catalog
    assert registry.get_definition("echo") is echo

    result = await registry.execute(ToolCall("echo", {"text": "hi"}))
    assert result == ToolResult(success=True, output="hi")


def test_register_rejects_mismatched_name(registry):
    with pytest.raises(ValueError):
        registry.register("other", registry.get_definition("calculate"), AsyncMock())


def test_registry_requires_a_handler_for_every_tool():
    handlers = dict(BUILTIN_HANDLERS)
    del handlers["calculate"]
    with pytest.raises(ValueError, match="calculate"):
        ToolRegistry(handlers=handlers)


def test_tool_names(registry):
    assert len(registry.tool_names()) == 16
    assert registry.has("browse_url")
    assert registry.get_definition("nope") is None


@pytest.mark.asyncio
async def test_execute_many_preserves_order(registry):
    calls = [
        ToolCall("calculate", {"expression": "1+1"}),
        ToolCall("calculate", {}),
        ToolCall("calculate", {"expression": "3*3"}),
    ]
    results = await registry.execute_many(calls)
    assert [r.success for r in results] == [True, False, True]
    assert results[0].data == 2
    assert results[2].data == 9


@pytest.mark.asyncio
async def test_unhashable_tool_name_is_a_failed_result(registry):
    result = await registry.execute(ToolCall(["calculate"], {"expression": "1"}))
    assert not result.success
    assert result.output.startswith("Invalid tool call: Unknown tool:")
