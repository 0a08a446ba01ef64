import pytest

from toolengine.tools import DEFAULT_CATALOG, TOOL_DEFINITIONS, Catalog, ParamKind, ToolDefinition, ToolParameter

ECHO = ToolDefinition(
    name="echo",
    description="Echo text back.",
    parameters=(ToolParameter("text", ParamKind.STRING, "Text to echo", required=True),),
    handler_key="echo",
)


def test_builtin_catalog_has_all_tools():
    assert len(DEFAULT_CATALOG) == 16
    assert DEFAULT_CATALOG.names() == [d.name for d in TOOL_DEFINITIONS]
    for name in ("calculate", "web_search", "browse_url", "update_plan", "move_file"):
        assert name in DEFAULT_CATALOG


def test_lookup():
    definition = DEFAULT_CATALOG.lookup("write_file")
    assert [p.name for p in definition.required_parameters] == ["path", "content"]
    assert DEFAULT_CATALOG.lookup("missing") is None


def test_duplicate_names_are_rejected():
    with pytest.raises(ValueError):
        Catalog([ECHO, ECHO])


def test_extended_returns_new_catalog():
    extended = DEFAULT_CATALOG.extended(ECHO)
    assert "echo" in extended
    assert "echo" not in DEFAULT_CATALOG
    assert len(extended) == len(DEFAULT_CATALOG) + 1


def test_schema_lists_enum_and_required():
    schema = DEFAULT_CATALOG.lookup("create_file").to_schema()
    assert schema["required"] == ["type", "content"]
    assert schema["properties"]["type"]["enum"] == ["csv", "html", "json", "md", "pdf", "txt"]
    assert schema["properties"]["filename"]["type"] == "string"


def test_prompt_summary():
    prompt = DEFAULT_CATALOG.prompt_summary()
    assert prompt.startswith("## TOOLS")
    assert "- calculate(expression:string*): " in prompt
    assert "- web_search(query:string*, limit:number): " in prompt
    assert "-> no tool (answer directly)" in prompt
    assert "-> calculate" in prompt
    assert '{"tool": "name", "parameters": {"key": "value"}}' in prompt


def test_prompt_summary_skips_rules_for_absent_tools():
    catalog = Catalog([DEFAULT_CATALOG.lookup("calculate")])
    prompt = catalog.prompt_summary()
    assert "-> calculate" in prompt
    assert "-> web_search" not in prompt


@pytest.mark.parametrize("kind, value, expected", [
    (ParamKind.STRING, "x", True),
    (ParamKind.STRING, 1, False),
    (ParamKind.NUMBER, 1.5, True),
    (ParamKind.NUMBER, True, False),
    (ParamKind.BOOLEAN, False, True),
    (ParamKind.ARRAY, [1], True),
    (ParamKind.OBJECT, {}, True),
    (ParamKind.OBJECT, [], False),
])
def test_param_kind_matches(kind, value, expected):
    assert kind.matches(value) is expected
