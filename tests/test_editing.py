"""Tests for editor operations on EditorState."""

import pytest

from slotconfig.processor.editing import (
    add_custom_slot,
    is_custom_slot,
    move_child,
    move_major,
    remove_slot,
    resize_slot,
    restore_slot,
    section_of,
    set_classes,
    set_content,
)
from slotconfig.processor.transcoder import decode, encode
from slotconfig.schema.defaults import build_default_configuration
from slotconfig.schema.models import SlotSpan


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def state():
    return decode(build_default_configuration("cart"), page_type="cart")


# ---------------------------------------------------------------------------
# Content and classes
# ---------------------------------------------------------------------------

class TestSetContent:

    def test_replaces_text(self, state):
        set_content(state, "header.title", "Your Bag")
        assert state.contents["header.title"] == "Your Bag"

    def test_stamps_last_modified(self, state):
        before = state.slot_metadata["header.title"]["lastModified"]
        set_content(state, "header.title", "Your Bag")
        assert state.slot_metadata["header.title"]["lastModified"] >= before

    def test_unknown_slot(self, state):
        with pytest.raises(KeyError):
            set_content(state, "header.nope", "x")

    def test_updates_custom_definition(self, state):
        slot_id = add_custom_slot(state, "coupon", content="old")
        set_content(state, slot_id, "new")
        assert state.custom_slots[slot_id].content == "new"


class TestSetClasses:

    def test_alignment_moves_to_wrapper(self, state):
        set_classes(state, "header.title", "text-center font-bold")
        assert state.element_classes["header.title"] == "font-bold"
        assert state.parent_classes["header.title"] == "text-center"

    def test_plain_classes_keep_wrapper(self, state):
        set_classes(state, "emptyCart.button", "text-lg")
        assert state.element_classes["emptyCart.button"] == "text-lg"
        assert state.parent_classes["emptyCart.button"] == "text-center"

    def test_alignment_flag_clears_wrapper(self, state):
        set_classes(state, "emptyCart.button", "text-lg", alignment=True)
        assert state.parent_classes["emptyCart.button"] == ""

    def test_styles_are_merged(self, state):
        set_classes(state, "header.title", "", styles={"color": "red"})
        set_classes(state, "header.title", "", styles={"fontSize": "20px"})
        assert state.styles["header.title"] == {"color": "red", "fontSize": "20px"}

    def test_persisted_as_parent_class_name(self, state):
        set_classes(state, "header.title", "text-right")
        config = encode(state)
        assert config.slots["header.title"].parent_class_name == "text-right"
        assert config.slots["header.title"].class_name == ""


# ---------------------------------------------------------------------------
# Placement
# ---------------------------------------------------------------------------

class TestPlacement:

    def test_resize_clamps(self, state):
        span = resize_slot(state, "coupon", "coupon.input", SlotSpan(20, 0))
        assert span == SlotSpan(12, 1)
        assert state.micro_slot_spans["coupon"]["coupon.input"] == SlotSpan(12, 1)

    def test_resize_non_child(self, state):
        with pytest.raises(KeyError):
            resize_slot(state, "coupon", "header.title", SlotSpan(6, 1))

    def test_resize_unknown_section(self, state):
        with pytest.raises(KeyError):
            resize_slot(state, "sidebar", "coupon.input", SlotSpan(6, 1))

    def test_move_child(self, state):
        move_child(state, "coupon", "coupon.button", 0)
        assert state.micro_slot_orders["coupon"][0] == "coupon.button"

    def test_move_child_index_clamped(self, state):
        move_child(state, "coupon", "coupon.title", 99)
        assert state.micro_slot_orders["coupon"][-1] == "coupon.title"

    def test_move_major(self, state):
        move_major(state, "orderSummary", 0)
        assert state.major_slots[0] == "orderSummary"
        assert len(state.major_slots) == 8

    def test_section_of(self, state):
        assert section_of(state, "coupon.input") == "coupon"
        assert section_of(state, "nowhere") is None


# ---------------------------------------------------------------------------
# Adding and removing
# ---------------------------------------------------------------------------

class TestCustomSlots:

    def test_add_assigns_sequential_ids(self, state):
        first = add_custom_slot(state, "coupon", content="<p>A</p>")
        second = add_custom_slot(state, "coupon")
        assert first == "coupon.custom_1"
        assert second == "coupon.custom_2"
        assert state.micro_slot_orders["coupon"][-2:] == [first, second]

    def test_add_registers_custom_and_span(self, state):
        slot_id = add_custom_slot(state, "header", span=SlotSpan(4, 9))
        assert is_custom_slot(state, slot_id)
        assert state.micro_slot_spans["header"][slot_id] == SlotSpan(4, 4)
        config = encode(state)
        assert config.is_custom(slot_id)
        assert slot_id in config.slots

    def test_add_to_unknown_section(self, state):
        with pytest.raises(KeyError):
            add_custom_slot(state, "sidebar")

    def test_set_classes_updates_custom_definition(self, state):
        slot_id = add_custom_slot(state, "coupon", content="x")
        set_classes(state, slot_id, "font-bold text-center", styles={"color": "red"})
        set_classes(state, slot_id, "italic", styles={"margin": "4px"})

        custom = state.custom_slots[slot_id]
        assert custom.class_name == "italic"
        assert custom.parent_class_name == "text-center"
        assert custom.styles == {"color": "red", "margin": "4px"}

        config = encode(state)
        assert config.custom_slots[slot_id].class_name == config.slots[slot_id].class_name
        assert config.custom_slots[slot_id].parent_class_name == config.slots[slot_id].parent_class_name
        assert config.custom_slots[slot_id].styles == config.slots[slot_id].styles

    def test_remove_custom_purges_everything(self, state):
        slot_id = add_custom_slot(state, "coupon", content="x")
        assert remove_slot(state, slot_id) is True
        assert slot_id not in state.contents
        assert slot_id not in state.custom_slots
        assert slot_id not in state.micro_slot_orders["coupon"]
        assert slot_id not in state.micro_slot_spans["coupon"]
        assert slot_id not in encode(state).slots


class TestBuiltInSlots:

    def test_remove_only_hides(self, state):
        assert remove_slot(state, "coupon.message") is False
        assert "coupon.message" not in state.micro_slot_orders["coupon"]
        assert "coupon.message" in state.contents
        assert "coupon.message" in encode(state).slots

    def test_remove_hidden_slot_again(self, state):
        remove_slot(state, "coupon.message")
        with pytest.raises(KeyError):
            remove_slot(state, "coupon.message")

    def test_restore(self, state):
        remove_slot(state, "coupon.title")
        restore_slot(state, "coupon", "coupon.title", index=0)
        assert state.micro_slot_orders["coupon"][0] == "coupon.title"

    def test_restore_is_idempotent(self, state):
        restore_slot(state, "coupon", "coupon.title")
        assert state.micro_slot_orders["coupon"].count("coupon.title") == 1

    def test_unknown_slot(self, state):
        with pytest.raises(KeyError):
            remove_slot(state, "coupon.ghost")


class TestEditsSurviveRoundTrip:

    def test_edited_state_round_trips(self, state):
        set_content(state, "header.title", "Bag")
        set_classes(state, "header.title", "text-center italic", styles={"color": "red"})
        resize_slot(state, "coupon", "coupon.input", SlotSpan(10, 2))
        add_custom_slot(state, "orderSummary", content="<p>Gift</p>")
        remove_slot(state, "coupon.message")
        config = encode(state)
        assert encode(decode(config)) == config
