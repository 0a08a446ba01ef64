"""Built-in tool handlers: calculator, web search, URL browsing and the context-backed tools."""

import asyncio
import functools
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Union
from urllib.parse import urljoin, urlparse

import aiohttp
from bs4 import BeautifulSoup

from .context import ExecutionContext
from .evaluator import ExpressionError, UnsafeExpressionError, evaluate_expression
from .models import ToolResult
from .search import SearchError, search_web
from ..config import BROWSE_MAX_CHARS, BROWSE_TIMEOUT, DEFAULT_DOCUMENT_LIMIT, DEFAULT_SEARCH_LIMIT

logger = logging.getLogger(__name__)

Handler = Callable[[Dict[str, Any], ExecutionContext], Awaitable[Union[ToolResult, str]]]

DOCUMENT_EXCERPT_CHARS = 300


def _limit(params: Dict[str, Any], default: int) -> int:
    value = params.get("limit")
    if not value:
        return default
    return max(1, int(value))


# --- Calculator ---

async def _calculate(params: Dict[str, Any], context: ExecutionContext) -> ToolResult:
    expression = params["expression"]
    try:
        result = evaluate_expression(expression)
    except UnsafeExpressionError as e:
        return ToolResult.fail(f"Unsafe expression: {e}")
    except ExpressionError as e:
        return ToolResult.fail(f"Calculation error: {e}")
    return ToolResult.ok(f"{expression} = {result}", data=result)


# --- Web Search ---

def format_search_results(query: str, results) -> str:
    lines = [f'## Search results for "{query}"', ""]
    for i, r in enumerate(results, 1):
        lines.append(f"### {i}. {r.get('title', '')}")
        lines.append(r.get("url", ""))
        if r.get("snippet"):
            lines.append(r["snippet"])
        lines.append("")
    return "\n".join(lines).rstrip()


async def _web_search(params: Dict[str, Any], context: ExecutionContext) -> ToolResult:
    query = params["query"]
    try:
        results = await search_web(query, _limit(params, DEFAULT_SEARCH_LIMIT))
    except SearchError as e:
        return ToolResult.fail(f"Web search failed: {e}")
    if not results:
        return ToolResult.ok(f'No results found for "{query}".', data=[])
    return ToolResult.ok(format_search_results(query, results), data=results)


# --- URL Browsing ---

def _page_links(soup: BeautifulSoup, base_url: str):
    links = []
    seen = set()
    for a in soup.find_all("a", href=True):
        href = urljoin(base_url, a["href"])
        if urlparse(href).scheme not in ("http", "https") or href in seen:
            continue
        seen.add(href)
        label = a.get_text(" ", strip=True) or href
        links.append(f"- {label}: {href}")
    return links


async def _browse_url(params: Dict[str, Any], context: ExecutionContext) -> ToolResult:
    url = params["url"]
    extract = params.get("extract") or "text"
    if urlparse(url).scheme not in ("http", "https"):
        return ToolResult.fail("Only http and https URLs can be browsed")

    try:
        async with aiohttp.ClientSession() as session:
            async with session.get(url, timeout=aiohttp.ClientTimeout(total=BROWSE_TIMEOUT)) as resp:
                if resp.status != 200:
                    return ToolResult.fail(f"Failed to fetch URL: HTTP {resp.status}")
                content_type = resp.headers.get("Content-Type", "")
                raw = await resp.text()
                final_url = str(resp.url)
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        logger.info("Fetching %s failed: %s", url, e)
        return ToolResult.fail(f"URL fetch failed: {e}")

    if "html" in content_type.lower():
        text, links = render_html(raw, final_url)
    else:
        text, links = raw, []

    sections = []
    if extract in ("text", "all"):
        sections.append(text)
    if extract in ("links", "all"):
        sections.append("Links:\n" + "\n".join(links) if links else "No links found.")
    output = "\n\n".join(sections)

    if len(output) > BROWSE_MAX_CHARS:
        output = output[:BROWSE_MAX_CHARS] + "\n\n[... truncated ...]"
    return ToolResult.ok(output, data={"url": final_url, "content_type": content_type})


def render_html(raw: str, base_url: str):
    """Return (visible text, link lines) for an HTML page."""
    soup = BeautifulSoup(raw, "html.parser")
    for tag in soup(["script", "style", "nav", "footer", "header"]):
        tag.decompose()
    links = _page_links(soup, base_url)
    return soup.get_text(separator="\n", strip=True), links


# --- Context-backed tools ---

def _as_text(value) -> str:
    return "" if value is None else str(value)


def _requires_capability(capability: str, label: str):
    """Fail with '<label> not available' unless the context provides `capability`."""
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(params: Dict[str, Any], context: ExecutionContext):
            impl = context.get(capability)
            if impl is None:
                return ToolResult.fail(f"{label} not available")
            return await func(params, impl)
        return wrapper
    return decorator


@_requires_capability("execute_python", "Python runtime")
async def _execute_python(params, run):
    return ToolResult.ok(_as_text(await run(params["code"])))


@_requires_capability("execute_javascript", "JavaScript sandbox")
async def _execute_javascript(params, run):
    return ToolResult.ok(_as_text(await run(params["code"])))


@_requires_capability("execute_sql", "SQL engine")
async def _execute_sql(params, run):
    return ToolResult.ok(_as_text(await run(params["query"])))


@_requires_capability("execute_shell", "Shell")
async def _execute_shell(params, run):
    return ToolResult.ok(_as_text(await run(params["command"])))


def _document_line(doc: Dict[str, Any]) -> str:
    name = doc.get("document_name") or "Document"
    page = doc.get("page_number") or "?"
    excerpt = (doc.get("text") or "")[:DOCUMENT_EXCERPT_CHARS]
    return f"{name} (p. {page}): {excerpt}..."


@_requires_capability("search_documents", "Document search")
async def _search_documents(params, search):
    results = await search(params["query"], _limit(params, DEFAULT_DOCUMENT_LIMIT))
    if not results:
        return ToolResult.ok("No results found.", data=[])
    return ToolResult.ok("\n\n".join(_document_line(r) for r in results), data=results)


@_requires_capability("analyze_image", "Vision engine")
async def _analyze_image(params, analyze):
    result = await analyze(params["question"])
    output = result if isinstance(result, str) else json.dumps(result, ensure_ascii=False, default=str)
    return ToolResult.ok(output, data=result)


@_requires_capability("create_file", "File creation")
async def _create_file(params, create):
    filename = params.get("filename")
    data = await create(params["type"], params["content"], filename)
    return ToolResult.ok(f'File "{filename or "download"}.{params["type"]}" created.', data=data)


@_requires_capability("read_file", "File read")
async def _read_file(params, read):
    return ToolResult.ok(_as_text(await read(params["path"])))


@_requires_capability("write_file", "File write")
async def _write_file(params, write):
    await write(params["path"], params["content"])
    return ToolResult.ok(f'File "{params["path"]}" written.')


@_requires_capability("list_files", "File listing")
async def _list_files(params, list_files):
    files = await list_files(params.get("path"))
    if not files:
        return ToolResult.ok("Directory is empty.", data=[])
    return ToolResult.ok("Files:\n" + "\n".join(f"  - {f}" for f in files), data=list(files))


@_requires_capability("delete_file", "File deletion")
async def _delete_file(params, delete):
    await delete(params["path"])
    return ToolResult.ok(f'File "{params["path"]}" deleted.')


@_requires_capability("move_file", "File move")
async def _move_file(params, move):
    await move(params["source"], params["destination"])
    return ToolResult.ok(f'Moved "{params["source"]}" to "{params["destination"]}".')


@_requires_capability("update_plan", "Plan editing")
async def _update_plan(params, update):
    target = params.get("target") or "todo"
    result = await update(
        target=target,
        operation=params.get("operation") or "replace",
        tasks=params.get("tasks"),
        title=params.get("title"),
        content=params.get("content"),
    )
    if isinstance(result, str):
        return ToolResult.ok(result)
    return ToolResult.ok(f"Plan {target} updated.", data=result)


BUILTIN_HANDLERS: Dict[str, Handler] = {
    "execute_python": _execute_python,
    "search_documents": _search_documents,
    "analyze_image": _analyze_image,
    "create_file": _create_file,
    "web_search": _web_search,
    "calculate": _calculate,
    "execute_javascript": _execute_javascript,
    "execute_sql": _execute_sql,
    "read_file": _read_file,
    "write_file": _write_file,
    "list_files": _list_files,
    "browse_url": _browse_url,
    "execute_shell": _execute_shell,
    "update_plan": _update_plan,
    "delete_file": _delete_file,
    "move_file": _move_file,
}
