"""
End-to-end tests for DomService: raw capture in, indexed text tree and selector map out.
"""

import logging

import pytest
from factories import ax_node, document, element, page, shadow_root, text
from pydantic import ValidationError

from dom_distill import DomService, SerializerOptions, serialize
from dom_distill.dom.service import STAGE_TIMING_KEYS


def shop_page() -> dict:
	"""A small storefront: navigation, a search form, a product card in a web component and an embedded widget."""
	return page(
		element(
			'nav',
			children=[
				element('a', {'href': '/'}, [text('Home')]),
				element('a', {'href': '/deals'}, [text('Deals')]),
			],
		),
		element(
			'form',
			children=[
				element('input', {'type': 'search', 'placeholder': 'Search products'}),
				element('button', {'type': 'submit'}, [text('Go')]),
			],
		),
		element(
			'product-card',
			shadow_roots=[
				shadow_root(
					element('h2', children=[text('Blue kettle')]),
					element('input', {'type': 'number', 'min': '1', 'max': '9'}),
					element('button', children=[text('Add to cart')], ax=ax_node(role='button', name='Add to cart')),
				)
			],
		),
		element(
			'iframe',
			bounds=(0, 300, 400, 300),
			content_document=document(
				element('html', children=[element('body', children=[element('button', children=[text('Chat with us')])])])
			),
		),
	)


class TestDomService:
	def test_none_root_raises(self):
		with pytest.raises(ValueError):
			DomService().serialize(None)  # type: ignore[arg-type]

	def test_timing_keys(self):
		_, timing = DomService().serialize(shop_page())

		assert set(timing) == {'build_enhanced_tree', *STAGE_TIMING_KEYS, 'serialize_tree', 'total'}
		assert all(value >= 0 for value in timing.values())

	def test_bbox_key_present_when_filtering_disabled(self):
		_, timing = DomService(SerializerOptions(enable_bbox_filtering=False)).serialize(shop_page())
		assert 'bbox_filtering' in timing

	def test_shop_page_output(self):
		state, _ = serialize(shop_page())

		assert state.llm_representation() == '\n'.join(
			[
				'<body />',
				'\t<nav />',
				'\t\t*[1]<a href=/ />',
				'\t\t\tHome',
				'\t\t*[2]<a href=/deals />',
				'\t\t\tDeals',
				'\t<form />',
				'\t\t*[3]<input placeholder=Search products />',
				'\t\t*[4]<button />',
				'\t\t\tGo',
				# the host is a plain wrapper around its shadow root
				'\t▼ Shadow Content (Open)',
				'\t\tBlue kettle',
				'\t\t*[5]<input compound_components=button:Increment,button:Decrement,textbox:Value:1-9 />',
				'\t\t*[6]<button />',
				'\t\t\tAdd to cart',
				'\t▲ Shadow Content End',
				'\t*[7]<iframe />',
				'\t\t*[8]<button />',
				'\t\t\tChat with us',
			]
		)

	def test_selector_map_is_keyed_by_structural_path(self):
		state, _ = serialize(shop_page())

		assert state.selector_map['//html[1]/body[1]/product-card[1]/shadow-root/button[1]'] == 6
		assert state.selector_map['//html[1]/body[1]/iframe[1]/html[1]/body[1]/button[1]'] == 8
		assert sorted(state.selector_map.values()) == list(range(1, 9))
		assert {index: node.tag_name for index, node in state.interactive_nodes.items()}[8] == 'button'

	def test_previous_map_is_not_mutated(self):
		previous = {'//html[1]/body[1]/nav[1]/a[1]': 4}
		snapshot = dict(previous)

		state, _ = serialize(shop_page(), previous)

		assert previous == snapshot
		assert state.selector_map is not previous

	def test_repeated_serialization_is_stable(self):
		# the first capture marks everything new, so stability is checked from the second call on
		first, _ = serialize(shop_page())
		second, _ = serialize(shop_page(), first.selector_map)
		third, _ = serialize(shop_page(), second.selector_map)

		first_text = first.llm_representation()
		second_text = second.llm_representation()

		assert '*[' not in second_text
		assert second_text == third.llm_representation()
		assert first_text.replace('*[', '[') == second_text
		assert first.selector_map == second.selector_map == third.selector_map

	def test_indices_survive_content_changes(self):
		first, _ = serialize(shop_page())

		changed = shop_page()
		# a banner link appears at the top of the body
		body = changed['children'][0]['children'][0]
		body['children'].insert(0, element('a', {'href': '/sale'}, [text('Sale!')]))

		second, _ = serialize(changed, first.selector_map)

		kept_paths = set(first.selector_map) & set(second.selector_map)
		assert all(first.selector_map[path] == second.selector_map[path] for path in kept_paths)
		banner_index = second.selector_map['//html[1]/body[1]/a[1]']
		assert banner_index not in first.selector_map.values()
		assert f'*[{banner_index}]<a href=/sale />' in second.llm_representation()

	def test_iframe_limits_come_from_options(self):
		state, _ = serialize(shop_page(), options=SerializerOptions(max_iframe_count=0))

		assert '//html[1]/body[1]/iframe[1]/html[1]/body[1]/button[1]' not in state.selector_map
		assert 'Chat with us' not in state.llm_representation()

	def test_include_attributes_option_is_used_for_rendering(self):
		options = SerializerOptions(include_attributes=['type'])
		state, _ = serialize(shop_page(), options=options)

		assert '<input type=search />' in state.llm_representation()
		assert state.include_attributes == ['type']

	def test_include_attributes_option_on_a_single_input(self):
		raw = page(element('input', {'type': 'search', 'placeholder': 'Find'}))
		state, _ = serialize(raw, options=SerializerOptions(include_attributes=['type']))

		assert state.llm_representation() == '*[1]<input type=search />'

	def test_debug_summary_is_logged(self, caplog):
		with caplog.at_level(logging.DEBUG, logger='dom_distill'):
			serialize(shop_page())

		assert any('interactive elements' in record.getMessage() for record in caplog.records)


class TestSerializerOptions:
	@pytest.mark.parametrize('threshold', [0, -0.5, 1.5])
	def test_threshold_must_be_a_fraction(self, threshold):
		with pytest.raises(ValidationError):
			SerializerOptions(containment_threshold=threshold)

	def test_unknown_options_are_rejected(self):
		with pytest.raises(ValidationError):
			SerializerOptions(viewport_expansion=500)  # type: ignore[call-arg]

	def test_assignment_is_validated(self):
		options = SerializerOptions()
		with pytest.raises(ValidationError):
			options.max_iframe_depth = -1
