"""
Rule-by-rule tests for ClickableElementDetector.is_interactive.
"""

import pytest
from factories import ax_node, build, element, text

from dom_distill.dom.serializer.clickable_elements import ClickableElementDetector


def is_interactive(raw: dict) -> bool:
	return ClickableElementDetector.is_interactive(build(raw))


class TestRejections:
	def test_text_nodes_are_not_interactive(self):
		assert not is_interactive(text('Click me'))

	@pytest.mark.parametrize('tag', ['html', 'body'])
	def test_root_elements_are_never_interactive(self, tag):
		"""html/body are rejected even when they carry a click handler."""
		assert not is_interactive(element(tag, {'onclick': 'go()'}, cursor='pointer'))

	def test_plain_div_is_not_interactive(self):
		assert not is_interactive(element('div'))


class TestFrames:
	def test_large_iframe_is_interactive(self):
		assert is_interactive(element('iframe', bounds=(0, 0, 400, 300)))

	def test_small_iframe_is_not_interactive(self):
		assert not is_interactive(element('iframe', bounds=(0, 0, 80, 300)))

	def test_large_frame_is_interactive(self):
		assert is_interactive(element('frame', bounds=(0, 0, 101, 101)))


class TestSearchIndicators:
	@pytest.mark.parametrize(
		'attributes',
		[
			{'class': 'header-search-icon'},
			{'id': 'site-lookup'},
			{'data-role': 'query-box'},
			{'class': 'MagnifyingGlass'},
		],
	)
	def test_search_related_attributes_make_element_interactive(self, attributes):
		assert is_interactive(element('span', attributes, bounds=(0, 0, 200, 200)))

	def test_search_token_in_unrelated_attribute_is_ignored(self):
		assert not is_interactive(element('span', {'title': 'search'}, bounds=(0, 0, 200, 200)))

	def test_search_indicator_is_checked_before_accessibility_veto(self):
		node = element('span', {'class': 'search-btn'}, ax=ax_node(properties={'disabled': True}))
		assert is_interactive(node)


class TestAccessibilityProperties:
	def test_disabled_button_is_not_interactive(self):
		"""A disabled veto beats the tag allow-list."""
		node = element('button', ax=ax_node(role='button', properties={'disabled': True}))
		assert not is_interactive(node)

	def test_hidden_link_is_not_interactive(self):
		node = element('a', {'href': '/home', 'onclick': 'go()'}, cursor='pointer', ax=ax_node(properties={'hidden': True}))
		assert not is_interactive(node)

	def test_disabled_false_does_not_veto(self):
		node = element('button', ax=ax_node(properties={'disabled': False}))
		assert is_interactive(node)

	@pytest.mark.parametrize('prop', ['focusable', 'editable', 'settable'])
	def test_capability_properties_make_div_interactive(self, prop):
		assert is_interactive(element('div', ax=ax_node(properties={prop: True})))

	@pytest.mark.parametrize('prop', ['checked', 'expanded', 'pressed', 'selected'])
	def test_state_properties_count_by_presence(self, prop):
		"""Widget state properties only exist on widgets, their value does not matter."""
		assert is_interactive(element('div', ax=ax_node(properties={prop: False})))

	@pytest.mark.parametrize('prop', ['required', 'autocomplete'])
	def test_form_properties_need_a_true_value(self, prop):
		assert is_interactive(element('div', ax=ax_node(properties={prop: True})))
		assert not is_interactive(element('div', ax=ax_node(properties={prop: False})))

	def test_keyboard_shortcut_makes_element_interactive(self):
		assert is_interactive(element('div', ax=ax_node(properties={'keyshortcuts': 'Alt+S'})))

	def test_inconclusive_properties_fall_through(self):
		"""Properties that decide nothing leave the decision to the later rules."""
		assert not is_interactive(element('div', ax=ax_node(properties={'level': 2})))
		assert is_interactive(element('a', ax=ax_node(properties={'level': 2})))


class TestTagsAndAttributes:
	@pytest.mark.parametrize('tag', ['button', 'input', 'select', 'textarea', 'a', 'details', 'summary', 'option', 'optgroup'])
	def test_interactive_tags(self, tag):
		assert is_interactive(element(tag))

	def test_label_is_not_on_the_allow_list(self):
		assert not is_interactive(element('label'))

	@pytest.mark.parametrize('attribute', ['onclick', 'onmousedown', 'onmouseup', 'onkeydown', 'onkeyup', 'tabindex'])
	def test_interaction_attributes(self, attribute):
		assert is_interactive(element('div', {attribute: '0'}))

	@pytest.mark.parametrize('role', ['button', 'link', 'menuitem', 'tab', 'checkbox', 'combobox', 'searchbox'])
	def test_interactive_aria_roles(self, role):
		assert is_interactive(element('div', {'role': role}))

	def test_non_interactive_aria_role(self):
		assert not is_interactive(element('div', {'role': 'presentation'}))

	def test_listbox_counts_only_as_accessibility_role(self):
		assert not is_interactive(element('div', {'role': 'listbox'}))
		assert is_interactive(element('div', ax=ax_node(role='listbox')))

	def test_accessibility_tree_role(self):
		assert is_interactive(element('div', ax=ax_node(role='slider')))
		assert not is_interactive(element('div', ax=ax_node(role='generic')))


class TestGeometryAndCursor:
	def test_icon_sized_element_with_class_is_interactive(self):
		assert is_interactive(element('i', {'class': 'fa fa-close'}, bounds=(0, 0, 24, 24)))

	def test_icon_sized_element_without_hint_attributes_is_not_interactive(self):
		assert not is_interactive(element('i', {'title': 'close'}, bounds=(0, 0, 24, 24)))

	def test_icon_heuristic_needs_both_sides_in_range(self):
		assert not is_interactive(element('i', {'class': 'fa'}, bounds=(0, 0, 60, 24)))
		assert not is_interactive(element('i', {'class': 'fa'}, bounds=(0, 0, 24, 8)))

	def test_pointer_cursor_is_interactive(self):
		assert is_interactive(element('div', cursor='pointer'))

	def test_other_cursors_are_not_interactive(self):
		assert not is_interactive(element('div', cursor='text'))

	def test_zero_sized_button_is_still_interactive(self):
		"""No minimum size, invisible overlays can still be click targets."""
		assert is_interactive(element('button', bounds=(0, 0, 0, 0)))

	def test_missing_snapshot_is_no_signal(self):
		assert not is_interactive(element('div', with_snapshot=False))
		assert is_interactive(element('button', with_snapshot=False))
