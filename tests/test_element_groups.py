import pytest

from tests.helpers import FakeDriver, FakeElement
from uniqueselector.element_groups import ELEMENT_GROUPS, parse_group_reference, resolve_group, scan_group
from uniqueselector.errors import NotFoundError
from uniqueselector.models import BoundingBox


def test_parse_group_reference() -> None:
    assert parse_group_reference("@Buttons ") == "buttons"
    assert parse_group_reference("button") is None
    assert parse_group_reference("@") is None


def test_resolve_group_lists_available_groups_on_miss() -> None:
    assert resolve_group("links").title == "Links & navigation"
    with pytest.raises(NotFoundError) as excinfo:
        resolve_group("tables")
    assert "@buttons" in str(excinfo.value)


@pytest.mark.asyncio
async def test_scan_group_deduplicates_elements_across_selectors() -> None:
    login = FakeElement(
        tag="input",
        attributes={"type": "submit", "class": "submit-button btn_action"},
        box=BoundingBox(x=0, y=0, width=100, height=40),
    )
    menu = FakeElement(tag="button", text="Open Menu", box=BoundingBox(x=0, y=50, width=30, height=30))
    other = FakeElement(tag="button", text="Open Menu", box=BoundingBox(x=0, y=90, width=30, height=30))
    driver = FakeDriver(
        {
            "button": [menu, other],
            'input[type="submit"]': [login],
            '[class*="button"]': [login],
        },
        invalid={".btn"},
    )

    items = await scan_group(driver, ELEMENT_GROUPS["buttons"])

    assert [item.handle for item in items] == [menu, other, login]
    assert [item.scope for item in items] == ["button", "button", 'input[type="submit"]']
    assert [item.scope_index for item in items] == [0, 1, 0]
    assert driver.queries == list(ELEMENT_GROUPS["buttons"].selectors)
