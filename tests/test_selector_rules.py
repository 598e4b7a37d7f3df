from uniqueselector.selector_rules import (
    attribute_selector,
    class_selector,
    escape_css_identifier,
    escape_css_string,
    id_selector,
    is_css_safe_identifier,
    is_css_scope,
    is_distinctive_class,
    is_short_text,
    normalize_classes,
    normalize_space,
)


def test_css_safe_identifier_detection() -> None:
    assert is_css_safe_identifier("username_input")
    assert is_css_safe_identifier("-heroTitle")
    assert not is_css_safe_identifier("123-start")
    assert not is_css_safe_identifier("has space")


def test_id_selector_falls_back_to_attribute_form() -> None:
    assert id_selector("submitBtn") == "#submitBtn"
    assert id_selector("123-start") == '[id="123-start"]'
    assert id_selector('a"b\\c d') == '[id="a\\"b\\\\c d"]'


def test_escape_css_string_escapes_backslash_before_quote() -> None:
    assert escape_css_string('say "hi"') == 'say \\"hi\\"'
    assert escape_css_string("C:\\temp") == "C:\\\\temp"
    assert attribute_selector("name", "user-name") == '[name="user-name"]'


def test_escape_css_identifier_escapes_unsafe_characters() -> None:
    assert escape_css_identifier("btn_primary") == "btn_primary"
    assert escape_css_identifier("w-1/2") == "w-1\\2f 2"
    assert escape_css_identifier("2col") == "\\32 col"
    assert class_selector(["btn", "md:flex"]) == ".btn.md\\3a flex"


def test_normalize_classes_deduplicates_and_trims() -> None:
    assert normalize_classes([" btn ", "btn", "btn-primary", "", "  "]) == ["btn", "btn-primary"]
    assert normalize_classes("btn btn  btn_primary") == ["btn", "btn_primary"]
    assert normalize_classes(None) == []


def test_distinctive_class_rules() -> None:
    assert is_distinctive_class("btn_primary")
    assert is_distinctive_class("card")
    assert not is_distinctive_class("nav")
    assert not is_distinctive_class("button")
    assert not is_distinctive_class("Button")
    assert not is_distinctive_class("submit", generic_terms=("submit",))


def test_short_text_bounds() -> None:
    assert not is_short_text("")
    assert is_short_text("Login")
    assert is_short_text("x" * 49)
    assert not is_short_text("x" * 50)
    assert is_short_text("x" * 50, limit=60)


def test_normalize_space_collapses_whitespace() -> None:
    assert normalize_space("  Add \n to   cart ") == "Add to cart"
    assert normalize_space(None) == ""
    assert normalize_space("abcdef", limit=3) == "abc"


def test_css_scope_accepts_single_css_selectors() -> None:
    assert is_css_scope("button")
    assert is_css_scope(".inventory_item button")
    assert is_css_scope('input[name="user-name"]')


def test_css_scope_rejects_lists_engines_and_dangling_combinators() -> None:
    assert not is_css_scope(None)
    assert not is_css_scope("  ")
    assert not is_css_scope("a, button")
    assert not is_css_scope("form >> button")
    assert not is_css_scope("text=Login")
    assert not is_css_scope("xpath=//button")
    assert not is_css_scope("//button")
    assert not is_css_scope("ul >")
