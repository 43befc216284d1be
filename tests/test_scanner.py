"""Tests for finding command definitions in Markdown."""

from commandsmd.scanner import scan_definitions

DOCUMENT = """# Tools

## `build`

Build the project.

```bash group=dev
make all
```

Trailing text.
"""


def test_single_definition_spans():
    (definition,) = scan_definitions(DOCUMENT, origin="tools.md")

    assert definition.name == "build"
    assert definition.info == "bash group=dev"
    assert definition.body == "make all\n"
    assert definition.language == "bash"
    assert definition.fields == {"group": "dev"}

    assert definition.heading_start == DOCUMENT.index("\n## ")
    assert definition.heading_stop == DOCUMENT.index("`build`") + len("`build`")
    assert definition.help_start == definition.heading_stop + 1
    assert definition.help_stop == DOCUMENT.index("```bash") - 1
    assert definition.declaration_start == definition.help_stop
    assert definition.declaration_stop == DOCUMENT.index("```\n\nTrailing") + 3

    assert definition.help == "Build the project."
    assert definition.definition == (
        "\n## `build`\n\nBuild the project.\n\n```bash group=dev\nmake all\n```"
    )
    assert definition.declaration == "\n```bash group=dev\nmake all\n```"
    assert definition.line == 7
    assert definition.location == "tools.md:7"


def test_multiple_definitions():
    source = (
        "## `one`\n\nFirst.\n\n```sh\necho 1\n```\n\n"
        "## `two`\n\nSecond.\n\n```python\nprint(2)\n```\n"
    )
    definitions = scan_definitions(source)
    assert [d.name for d in definitions] == ["one", "two"]
    assert [d.help for d in definitions] == ["First.", "Second."]
    assert definitions[1].body == "print(2)\n"


def test_heading_with_extra_text_is_ignored():
    source = "## `build` the project\n\n```sh\nmake\n```\n"
    assert scan_definitions(source) == []


def test_plain_heading_is_ignored():
    source = "## Build\n\n```sh\nmake\n```\n"
    assert scan_definitions(source) == []


def test_thematic_break_cancels_pairing():
    source = "## `build`\n\n---\n\n```sh\nmake\n```\n"
    assert scan_definitions(source) == []


def test_intervening_heading_cancels_pairing():
    source = "## `build`\n\n## Notes\n\n```sh\nmake\n```\n"
    assert scan_definitions(source) == []


def test_code_block_without_heading_is_ignored():
    source = "Some text.\n\n```sh\nmake\n```\n\n## `build`\n\nNo code here.\n"
    assert scan_definitions(source) == []


def test_only_first_code_block_pairs():
    source = "## `build`\n\n```sh\nmake\n```\n\n```sh\nmake test\n```\n"
    (definition,) = scan_definitions(source)
    assert definition.body == "make\n"


def test_indented_code_block_is_ignored():
    source = "## `build`\n\n    make\n"
    assert scan_definitions(source) == []


def test_code_block_right_after_heading():
    source = "## `build`\n```sh\nmake\n```\n"
    (definition,) = scan_definitions(source)
    assert definition.help == ""
    assert definition.help_start == definition.help_stop
    assert definition.definition == source.rstrip("\n")
    assert definition.line == 2


def test_first_line_heading():
    source = "## `build`\n\nHelp.\n\n```sh\nmake\n```"
    (definition,) = scan_definitions(source)
    assert definition.heading_start == 0
    assert definition.declaration_stop == len(source)
    assert definition.definition == source


def test_setext_heading():
    source = "`build`\n-------\n\nHelp text.\n\n```sh\nmake\n```\n"
    (definition,) = scan_definitions(source)
    assert definition.name == "build"
    assert definition.help == "Help text."


def test_empty_and_unclosed_code_blocks():
    (empty,) = scan_definitions("## `noop`\n\n```\n```\n")
    assert empty.body == ""
    assert empty.info == ""
    assert empty.language == ""

    (unclosed,) = scan_definitions("## `run`\n\n```sh\necho hi\n")
    assert unclosed.body == "echo hi\n"
    assert unclosed.declaration.strip().endswith("echo hi")


def test_multi_paragraph_help():
    source = "## `build`\n\nFirst paragraph.\n\nSecond paragraph.\n\n```sh\nmake\n```\n"
    (definition,) = scan_definitions(source)
    assert definition.help == "First paragraph.\n\nSecond paragraph."


def test_definition_inside_list_item():
    source = "- item\n\n## `build`\n\n- ```sh\n  make\n  ```\n"
    (definition,) = scan_definitions(source)
    assert definition.body == "make\n"
