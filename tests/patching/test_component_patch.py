"""Tests for component descriptor field strategies."""

from __future__ import annotations

from metabot.patching import component

SCENARIO = (
    '<component type="desktop">\n'
    "  <id>com.example.App</id>\n"
    "  <name>Test App</name>\n"
    "</component>\n"
)


def test_keywords_block_is_inserted_before_component_close() -> None:
    updated, placement = component.patch_keywords(SCENARIO, ["xml", "test", "metadata"])

    assert placement == "before-component-close"
    assert updated == (
        '<component type="desktop">\n'
        "  <id>com.example.App</id>\n"
        "  <name>Test App</name>\n"
        "    <keywords>\n"
        "        <keyword>xml</keyword>\n"
        "        <keyword>test</keyword>\n"
        "        <keyword>metadata</keyword>\n"
        "    </keywords>\n"
        "</component>\n"
    )


def test_existing_keywords_block_is_replaced_with_detected_indent() -> None:
    content = (
        "<component>\n"
        "  <name>App</name>\n"
        "  <keywords>\n"
        "    <keyword>old</keyword>\n"
        "  </keywords>\n"
        "</component>\n"
    )

    updated, placement = component.patch_keywords(content, ["new"])

    assert placement == "replace"
    assert updated == (
        "<component>\n"
        "  <name>App</name>\n"
        "  <keywords>\n"
        "      <keyword>new</keyword>\n"
        "  </keywords>\n"
        "</component>\n"
    )
    assert "old" not in updated


def test_keywords_are_escaped() -> None:
    updated, _ = component.patch_keywords(SCENARIO, ["c&c <x>", "\"a'b\""])

    assert "<keyword>c&amp;c &lt;x&gt;</keyword>" in updated
    assert "<keyword>&quot;a&apos;b&quot;</keyword>" in updated


def test_keywords_append_when_component_is_not_closed() -> None:
    content = "<component>\n  <name>App</name>\n"

    updated, placement = component.patch_keywords(content, ["a"])

    assert placement == "append"
    assert updated == content + "\n    <keywords>\n        <keyword>a</keyword>\n    </keywords>"
    again, placement = component.patch_keywords(updated, ["a"])
    assert placement == "replace"
    assert again == updated


def test_empty_keywords_produce_empty_block() -> None:
    updated, _ = component.patch_keywords(SCENARIO, [])

    assert "    <keywords></keywords>\n</component>" in updated


def test_summary_is_inserted_after_name() -> None:
    updated, placement = component.patch_summary(SCENARIO, "A test application for demonstration")

    assert placement == "after-name"
    assert (
        "  <name>Test App</name>\n"
        "    <summary>A test application for demonstration</summary>\n"
        "</component>"
    ) in updated


def test_summary_replaces_existing_element() -> None:
    content = "<component>\n  <name>App</name>\n  <summary>\n    Old\n  </summary>\n</component>\n"

    updated, placement = component.patch_summary(content, "Edit & share")

    assert placement == "replace"
    assert updated == "<component>\n  <name>App</name>\n  <summary>Edit &amp; share</summary>\n</component>\n"


def test_summary_falls_back_to_component_open_tag_then_prepend() -> None:
    content = '<component type="desktop">\n  <id>x</id>\n</component>\n'

    updated, placement = component.patch_summary(content, "Do things")

    assert placement == "after-component-open"
    assert updated == '<component type="desktop">\n    <summary>Do things</summary>\n  <id>x</id>\n</component>\n'

    updated, placement = component.patch_summary("<foo/>\n", "Do things")
    assert placement == "prepend"
    assert updated == "    <summary>Do things</summary>\n<foo/>\n"


def test_translated_summary_is_not_replaced() -> None:
    content = (
        "<component>\n"
        "  <name>App</name>\n"
        '  <summary xml:lang="de">Dinge tun</summary>\n'
        "</component>\n"
    )

    updated, placement = component.patch_summary(content, "Do things")

    assert placement == "after-name"
    assert '<summary xml:lang="de">Dinge tun</summary>' in updated
    assert "<summary>Do things</summary>" in updated


def test_description_is_reindented_and_placed_after_summary() -> None:
    content = (
        "<component>\n"
        "  <name>App</name>\n"
        "  <summary>Do things</summary>\n"
        "</component>\n"
    )
    description = "<p>\n  First paragraph.\n</p>\n\n<ul>\n<li>One</li>\n</ul>\n"

    updated, placement = component.patch_description(content, description)

    assert placement == "after-summary"
    assert updated == (
        "<component>\n"
        "  <name>App</name>\n"
        "  <summary>Do things</summary>\n"
        "    <description>\n"
        "        <p>\n"
        "        First paragraph.\n"
        "        </p>\n"
        "        <ul>\n"
        "        <li>One</li>\n"
        "        </ul>\n"
        "    </description>\n"
        "</component>\n"
    )


def test_description_inside_release_is_not_replaced() -> None:
    content = (
        "<component>\n"
        "  <name>App</name>\n"
        "  <releases>\n"
        '    <release version="1.0">\n'
        "      <description><p>Fixes</p></description>\n"
        "    </release>\n"
        "  </releases>\n"
        "</component>\n"
    )

    updated, placement = component.patch_description(content, "<p>New</p>")

    assert placement == "after-name"
    assert "      <description><p>Fixes</p></description>\n" in updated
    assert "  <name>App</name>\n    <description>\n        <p>New</p>\n    </description>\n" in updated


def test_description_falls_back_to_component_close_and_append() -> None:
    updated, placement = component.patch_description("<component>\n</component>\n", "<p>x</p>")
    assert placement == "before-component-close"
    assert updated == "<component>\n    <description>\n        <p>x</p>\n    </description>\n</component>\n"

    updated, placement = component.patch_description("<foo/>", "<p>x</p>")
    assert placement == "append"
    assert updated == "<foo/>\n    <description>\n        <p>x</p>\n    </description>"


def test_blank_description_produces_empty_element() -> None:
    updated, _ = component.patch_description(SCENARIO, "  \n\n")

    assert "    <description></description>" in updated


def test_field_patches_are_idempotent() -> None:
    for patch, value in (
        (component.patch_keywords, ["a", "b"]),
        (component.patch_summary, "Do things"),
        (component.patch_description, "<p>Body</p>"),
    ):
        once, _ = patch(SCENARIO, value)
        twice, _ = patch(once, value)
        assert once == twice


def test_keywords_block_occurs_once_after_repeated_patching() -> None:
    content = SCENARIO
    for keywords in (["a"], ["b", "c"], ["d"]):
        content, _ = component.patch_keywords(content, keywords)

    assert content.count("<keywords>") == 1
    assert content.count("</keywords>") == 1


def test_inserted_blocks_keep_crlf_line_endings() -> None:
    content = SCENARIO.replace("\n", "\r\n")

    content, _ = component.patch_keywords(content, ["a", "b"])
    content, _ = component.patch_summary(content, "Do things")
    content, _ = component.patch_description(content, "<p>Body</p>\n<ul>\n<li>One</li>\n</ul>")

    assert "\n" not in content.replace("\r\n", "")
    assert "  <name>Test App</name>\r\n    <summary>Do things</summary>\r\n    <description>\r\n" in content
    assert "    <keywords>\r\n        <keyword>a</keyword>\r\n" in content
    again, _ = component.patch_description(content, "<p>Body</p>\n<ul>\n<li>One</li>\n</ul>")
    assert again == content


def test_crlf_fallback_placements_keep_line_endings() -> None:
    unclosed = "<component>\r\n  <id>x</id>\r\n"

    appended, placement = component.patch_keywords(unclosed, ["a"])
    assert placement == "append"
    assert appended.endswith("\r\n    <keywords>\r\n        <keyword>a</keyword>\r\n    </keywords>")

    prepended, placement = component.patch_summary("<id>x</id>\r\n", "Do things")
    assert placement == "prepend"
    assert prepended == "    <summary>Do things</summary>\r\n<id>x</id>\r\n"
