# @file purpose: Serializes enhanced DOM trees to string format for LLM consumption

import logging
import time
from typing import Any

from dom_distill.dom.serializer.clickable_elements import ClickableElementDetector
from dom_distill.dom.serializer.paint_order import PaintOrderRemover
from dom_distill.dom.utils import cap_text_length
from dom_distill.dom.views import (
	DEFAULT_CONTAINMENT_THRESHOLD,
	DISABLED_ELEMENTS,
	PROPAGATING_ELEMENTS,
	DOMRect,
	DOMSelectorMap,
	EnhancedDOMTreeNode,
	NodeType,
	PropagatingBounds,
	SerializedDOMState,
	SimplifiedNode,
)
from dom_distill.utils import time_execution_sync

DATE_PARTS = {
	'date': [('Day', 1, 31), ('Month', 1, 12), ('Year', 1, 275760)],
	'time': [('Hour', 0, 23), ('Minute', 0, 59)],
	'datetime-local': [('Day', 1, 31), ('Month', 1, 12), ('Year', 1, 275760), ('Hour', 0, 23), ('Minute', 0, 59)],
	'month': [('Month', 1, 12), ('Year', 1, 275760)],
	'week': [('Week', 1, 53), ('Year', 1, 275760)],
}

COMPOUND_INPUT_TYPES = {*DATE_PARTS, 'range', 'number', 'color', 'file'}


class DOMTreeSerializer:
	"""Serializes enhanced DOM trees to string format.

	One instance handles a single capture: simplify, hide painted-over nodes, collapse
	wrappers, drop nodes swallowed by their link/button, then number the interactive nodes.
	"""

	def __init__(
		self,
		root_node: EnhancedDOMTreeNode,
		previous_selector_map: DOMSelectorMap | None = None,
		enable_bbox_filtering: bool = True,
		containment_threshold: float | None = None,
		paint_order_filtering: bool = True,
		logger: logging.Logger | None = None,
	):
		if root_node is None:
			raise ValueError('DOMTreeSerializer requires a root_node')

		self.root_node = root_node
		self.logger = logger or logging.getLogger(__name__)
		self._interactive_counter = 1
		self._selector_map: DOMSelectorMap = {}
		self._interactive_nodes: dict[int, EnhancedDOMTreeNode] = {}
		# read only, a fresh map is built on every run
		self._previous_cached_selector_map = previous_selector_map or {}
		self._previous_indices = set(self._previous_cached_selector_map.values())
		self.enable_bbox_filtering = enable_bbox_filtering
		self.containment_threshold = containment_threshold or DEFAULT_CONTAINMENT_THRESHOLD
		self.paint_order_filtering = paint_order_filtering
		# Add timing tracking
		self.timing_info: dict[str, float] = {}
		# Cache for clickable element detection to avoid redundant calls (keyed by backend_node_id)
		self._clickable_cache: dict[int, bool] = {}

	@time_execution_sync('--serialize_accessible_elements')
	def serialize_accessible_elements(self) -> tuple[SerializedDOMState, dict[str, float]]:
		start_total = time.time()

		# Reset state
		self._interactive_counter = 1
		self._selector_map = {}
		self._interactive_nodes = {}
		self._clickable_cache = {}  # Clear cache for new serialization
		self.timing_info = {'clickable_detection_time': 0.0}

		# Step 1: Create simplified tree (includes clickable element detection)
		start_step1 = time.time()
		simplified_tree = self._create_simplified_tree(self.root_node)
		end_step1 = time.time()
		self.timing_info['create_simplified_tree'] = end_step1 - start_step1

		# Step 2: Hide elements that are painted over
		start_step2 = time.time()
		if self.paint_order_filtering and simplified_tree:
			PaintOrderRemover(simplified_tree).calculate_paint_order()
		end_step2 = time.time()
		self.timing_info['calculate_paint_order'] = end_step2 - start_step2

		# Step 3: Optimize tree (remove unnecessary parents)
		start_step3 = time.time()
		optimized_tree = self._optimize_tree(simplified_tree)
		end_step3 = time.time()
		self.timing_info['optimize_tree'] = end_step3 - start_step3

		# Step 4: Drop children swallowed by their propagating parent
		start_step4 = time.time()
		if self.enable_bbox_filtering and optimized_tree:
			filtered_tree = self._apply_bounding_box_filtering(optimized_tree)
		else:
			filtered_tree = optimized_tree
		end_step4 = time.time()
		self.timing_info['bbox_filtering'] = end_step4 - start_step4

		# Step 5: Assign interactive indices to clickable elements
		start_step5 = time.time()
		self._assign_interactive_indices_and_mark_new_nodes(filtered_tree)
		end_step5 = time.time()
		self.timing_info['assign_interactive_indices'] = end_step5 - start_step5

		end_total = time.time()
		self.timing_info['serialize_accessible_elements_total'] = end_total - start_total

		reused = sum(1 for xpath in self._selector_map if xpath in self._previous_cached_selector_map)
		self.logger.debug(
			f'Serialized DOM: {len(self._selector_map)} interactive elements, '
			f'{len(self._selector_map) - reused} new, {reused} kept their index'
		)

		return (
			SerializedDOMState(
				_root=filtered_tree,
				selector_map=self._selector_map,
				interactive_nodes=self._interactive_nodes,
			),
			self.timing_info,
		)

	def _safe_parse_number(self, value_str: str | None, default: float) -> float:
		try:
			return float(value_str)  # type: ignore[arg-type]
		except (ValueError, TypeError):
			return default

	def _safe_parse_optional_number(self, value_str: str | None) -> float | None:
		"""Like `_safe_parse_number`, but a missing or bad value means there is no bound."""
		if not value_str:
			return None
		try:
			return float(value_str)
		except (ValueError, TypeError):
			return None

	def _add_compound_components(self, simplified: SimplifiedNode, node: EnhancedDOMTreeNode) -> None:
		"""Describe the sub-controls a native widget renders (spin buttons, sliders, player controls)."""
		# Only process elements that might have compound components
		if node.tag_name not in ['input', 'select', 'details', 'audio', 'video']:
			return

		input_type = node.attributes.get('type', '')

		# For input elements, check for compound input types
		if node.tag_name == 'input':
			if input_type not in COMPOUND_INPUT_TYPES:
				return
		# For other elements, check if they have AX child indicators
		elif not node.ax_node or not node.ax_node.child_ids:
			return

		# rebuilt on every run, the same node can be serialized more than once
		node._compound_children.clear()
		element_type = node.tag_name

		if element_type == 'input':
			if input_type in DATE_PARTS:
				node._compound_children.extend(
					_compound_child('spinbutton', name, valuemin, valuemax) for name, valuemin, valuemax in DATE_PARTS[input_type]
				)
			elif input_type == 'range':
				node._compound_children.append(
					_compound_child(
						'slider',
						'Value',
						self._safe_parse_number(node.attributes.get('min', '0'), 0.0),
						self._safe_parse_number(node.attributes.get('max', '100'), 100.0),
					)
				)
			elif input_type == 'number':
				# Number input with increment/decrement buttons
				node._compound_children.extend(
					[
						_compound_child('button', 'Increment'),
						_compound_child('button', 'Decrement'),
						_compound_child(
							'textbox',
							'Value',
							self._safe_parse_optional_number(node.attributes.get('min')),
							self._safe_parse_optional_number(node.attributes.get('max')),
						),
					]
				)
			elif input_type == 'color':
				node._compound_children.extend(
					[
						_compound_child('textbox', 'Hex Value'),
						_compound_child('button', 'Color Picker'),
					]
				)
			elif input_type == 'file':
				multiple = 'multiple' in node.attributes
				node._compound_children.extend(
					[
						_compound_child('button', 'Browse Files'),
						_compound_child('textbox', f'{"Files" if multiple else "File"} Selected'),
					]
				)

		elif element_type == 'select':
			node._compound_children.append(_compound_child('button', 'Dropdown Toggle'))

			options_component = _compound_child('listbox', 'Options')
			options_info = self._extract_select_options(node)
			if options_info:
				options_component['options_count'] = options_info['count']
				options_component['first_options'] = options_info['first_options']
				if options_info['format_hint']:
					options_component['format_hint'] = options_info['format_hint']
			node._compound_children.append(options_component)

		elif element_type == 'details':
			# Details/summary disclosure widget
			node._compound_children.extend(
				[
					_compound_child('button', 'Toggle Disclosure'),
					_compound_child('region', 'Content Area'),
				]
			)

		elif element_type in ('audio', 'video'):
			node._compound_children.extend(
				[
					_compound_child('button', 'Play/Pause'),
					_compound_child('slider', 'Progress', 0, 100),
					_compound_child('button', 'Mute'),
					_compound_child('slider', 'Volume', 0, 100),
				]
			)
			if element_type == 'video':
				node._compound_children.append(_compound_child('button', 'Fullscreen'))

		simplified.is_compound_component = bool(node._compound_children)

	def _extract_select_options(self, select_node: EnhancedDOMTreeNode) -> dict[str, Any] | None:
		"""Collect the options of a <select> (optgroups included) with a hint about their value format."""
		if not select_node.children:
			return None

		options: list[dict[str, str]] = []
		option_values: list[str] = []

		def get_direct_text_content(n: EnhancedDOMTreeNode) -> str:
			# direct text children only, nested markup would duplicate text
			parts = [child.node_value.strip() for child in n.children if child.node_type == NodeType.TEXT_NODE and child.node_value]
			return ' '.join(part for part in parts if part)

		def extract_options_recursive(node: EnhancedDOMTreeNode) -> None:
			if node.tag_name == 'option':
				option_value = node.attributes.get('value', '').strip()
				option_text = get_direct_text_content(node)

				# Use text as value if no explicit value
				if not option_value and option_text:
					option_value = option_text

				if option_text or option_value:
					options.append({'text': option_text, 'value': option_value})
					option_values.append(option_value)
				return

			# optgroups and any other wrapper
			for child in node.children:
				extract_options_recursive(child)

		for child in select_node.children:
			extract_options_recursive(child)

		if not options:
			return None

		first_options = []
		for option in options[:4]:
			if option['text'] and option['value'] and option['text'] != option['value']:
				first_options.append(f'{cap_text_length(option["text"], 20)} ({cap_text_length(option["value"], 10)})')
			elif option['text']:
				first_options.append(cap_text_length(option['text'], 25))
			else:
				first_options.append(cap_text_length(option['value'], 25))

		format_hint = None
		if len(option_values) >= 2:
			first_values = [value for value in option_values[:5] if value]
			if all(value.isdigit() for value in first_values):
				format_hint = 'numeric'
			elif all(len(value) == 2 and value.isupper() for value in first_values):
				format_hint = 'country/state codes'
			elif all('/' in value or '-' in value for value in first_values):
				format_hint = 'date/path format'
			elif any('@' in value for value in first_values):
				format_hint = 'email addresses'

		return {'count': len(options), 'first_options': first_options, 'format_hint': format_hint}

	def _is_interactive_cached(self, node: EnhancedDOMTreeNode) -> bool:
		"""Cached version of clickable element detection to avoid redundant calls."""
		if node.backend_node_id not in self._clickable_cache:
			start_time = time.time()
			result = ClickableElementDetector.is_interactive(node)
			self.timing_info['clickable_detection_time'] = self.timing_info.get('clickable_detection_time', 0.0) + (
				time.time() - start_time
			)
			self._clickable_cache[node.backend_node_id] = result

		return self._clickable_cache[node.backend_node_id]

	@time_execution_sync('--create_simplified_tree')
	def _create_simplified_tree(self, node: EnhancedDOMTreeNode) -> SimplifiedNode | None:
		"""Step 1: Keep visible, scrollable, textual and shadow content; flatten iframe documents."""

		if node.node_type == NodeType.DOCUMENT_NODE:
			# pass through to the first child that yields something
			for child in node.children_and_shadow_roots:
				simplified_child = self._create_simplified_tree(child)
				if simplified_child:
					return simplified_child
			return None

		if node.node_type == NodeType.DOCUMENT_FRAGMENT_NODE:
			simplified = SimplifiedNode(original_node=node, children=[])
			for child in node.children_and_shadow_roots:
				simplified_child = self._create_simplified_tree(child)
				if simplified_child:
					simplified.children.append(simplified_child)

			if simplified.children:
				return simplified
			return None

		if node.node_type == NodeType.ELEMENT_NODE:
			# Skip non-content elements
			if node.node_name.lower() in DISABLED_ELEMENTS:
				return None

			if node.is_depth_limit_sentinel:
				return SimplifiedNode(original_node=node, children=[])

			if node.node_name.upper() in {'IFRAME', 'FRAME'} and node.content_document:
				simplified = SimplifiedNode(original_node=node, children=[])
				content_document = node.content_document
				if content_document.is_depth_limit_sentinel:
					simplified.children.append(SimplifiedNode(original_node=content_document, children=[]))
					return simplified

				for child in content_document.children:
					simplified_child = self._create_simplified_tree(child)
					if simplified_child:
						simplified.children.append(simplified_child)
				return simplified

			is_visible = bool(node.is_visible)
			is_scrollable = node.is_actually_scrollable
			has_children = len(node.children_and_shadow_roots) > 0
			is_shadow_host = any(child.node_type == NodeType.DOCUMENT_FRAGMENT_NODE for child in node.children_and_shadow_roots)

			# aria-* / pseudo* attributes carry state worth showing even on hidden elements
			if not is_visible and any(attr.startswith(('aria-', 'pseudo')) for attr in node.attributes):
				is_visible = True

			if not (is_visible or is_scrollable or has_children or is_shadow_host):
				return None

			simplified = SimplifiedNode(original_node=node, children=[], is_shadow_host=is_shadow_host)
			for child in node.children_and_shadow_roots:
				simplified_child = self._create_simplified_tree(child)
				if simplified_child:
					simplified.children.append(simplified_child)

			self._add_compound_components(simplified, node)

			if is_shadow_host and simplified.children:
				return simplified

			if is_visible or is_scrollable or simplified.children:
				return simplified

			return None

		if node.node_type == NodeType.TEXT_NODE:
			text = node.node_value.strip() if node.node_value else ''
			if node.is_visible and len(text) > 1:
				return SimplifiedNode(original_node=node, children=[])

		return None

	@time_execution_sync('--optimize_tree')
	def _optimize_tree(self, node: SimplifiedNode | None) -> SimplifiedNode | None:
		"""Step 3: Bypass single-child wrappers and drop empty ones, bottom-up."""
		if not node:
			return None

		# Optimize children first
		optimized_children = []
		for child in node.children:
			optimized_child = self._optimize_tree(child)
			if optimized_child:
				optimized_children.append(optimized_child)

		original = node.original_node
		is_meaningful = (
			self._is_interactive_cached(original)
			or original.is_actually_scrollable
			or original.node_type in (NodeType.TEXT_NODE, NodeType.DOCUMENT_FRAGMENT_NODE)
			or original.node_name.upper() in {'IFRAME', 'FRAME'}
			or original.is_depth_limit_sentinel
		)

		if is_meaningful or len(optimized_children) > 1:
			node.children = optimized_children
			return node

		# a single child takes the place of its wrapper
		if len(optimized_children) == 1:
			return optimized_children[0]

		return None

	def _collect_interactive_elements(self, node: SimplifiedNode, elements: list[SimplifiedNode]) -> None:
		"""Recursively collect interactive elements, depth first."""
		if not node.ignored_by_paint_order and self._is_interactive_cached(node.original_node):
			elements.append(node)

		for child in node.children:
			self._collect_interactive_elements(child, elements)

	def _next_unused_index(self) -> int:
		"""Next counter value that is not already taken by the previous capture."""
		while self._interactive_counter in self._previous_indices:
			self._interactive_counter += 1
		index = self._interactive_counter
		self._interactive_counter += 1
		return index

	@time_execution_sync('--assign_interactive_indices_and_mark_new_nodes')
	def _assign_interactive_indices_and_mark_new_nodes(self, node: SimplifiedNode | None) -> None:
		"""Step 5: Reuse indices of known structural paths, number the rest."""
		if not node:
			return

		interactive_elements: list[SimplifiedNode] = []
		self._collect_interactive_elements(node, interactive_elements)

		for element in interactive_elements:
			xpath = element.original_node.xpath

			if xpath in self._previous_cached_selector_map:
				element.interactive_index = self._previous_cached_selector_map[xpath]
				element.is_new = False
			else:
				element.interactive_index = self._next_unused_index()
				element.is_new = True

			self._selector_map[xpath] = element.interactive_index
			self._interactive_nodes.setdefault(element.interactive_index, element.original_node)

	@time_execution_sync('--apply_bounding_box_filtering')
	def _apply_bounding_box_filtering(self, node: SimplifiedNode | None) -> SimplifiedNode | None:
		"""Step 4: Remove children that are fully covered by their enclosing link or button."""
		if not node:
			return None

		self._filter_tree_recursive(node)
		return node

	def _filter_tree_recursive(self, node: SimplifiedNode, active_bounds: PropagatingBounds | None = None, depth: int = 0) -> None:
		original = node.original_node
		if original.node_type == NodeType.ELEMENT_NODE and self._is_propagating_element(original):
			if original.snapshot_node and original.snapshot_node.bounds:
				# a nested link/button takes over for its own subtree
				active_bounds = PropagatingBounds(
					tag=original.tag_name,
					bounds=original.snapshot_node.bounds,
					node_id=original.node_id,
					depth=depth,
				)

		filtered_children = []
		for child in node.children:
			if active_bounds and self._should_exclude_child(child, active_bounds):
				child.excluded_by_parent = True
				continue

			self._filter_tree_recursive(child, active_bounds, depth + 1)
			filtered_children.append(child)

		node.children = filtered_children

	def _should_exclude_child(self, node: SimplifiedNode, active_bounds: PropagatingBounds) -> bool:
		original = node.original_node

		# text nodes never have their own bounds to compare, keep them
		if original.node_type != NodeType.ELEMENT_NODE:
			return False

		if not (original.snapshot_node and original.snapshot_node.bounds):
			return False

		if self._is_interactive_cached(original) and not node.ignored_by_paint_order:
			return False

		if original.is_actually_scrollable:
			return False

		return self._is_contained(original.snapshot_node.bounds, active_bounds.bounds, self.containment_threshold)

	@staticmethod
	def _is_contained(child: DOMRect, parent: DOMRect, threshold: float) -> bool:
		"""Share of the child's area that lies inside the parent, compared against `threshold`."""
		child_area = child.width * child.height
		if child_area <= 0:
			# zero-area elements are considered contained
			return True

		x_overlap = max(0.0, min(child.x + child.width, parent.x + parent.width) - max(child.x, parent.x))
		y_overlap = max(0.0, min(child.y + child.height, parent.y + parent.height) - max(child.y, parent.y))
		intersection_area = x_overlap * y_overlap

		return intersection_area / child_area >= threshold

	@staticmethod
	def _is_propagating_element(node: EnhancedDOMTreeNode) -> bool:
		tag = node.tag_name
		role = node.attributes.get('role', '').lower() or None

		for config in PROPAGATING_ELEMENTS:
			if config['tag'] == tag and (config['role'] is None or config['role'] == role):
				return True
		return False

	@staticmethod
	def serialize_tree(node: SimplifiedNode | None, include_attributes: list[str], depth: int = 0) -> str:
		"""Serialize the optimized tree to string format with shadow DOM and iframe support."""
		if not node:
			return ''

		formatted_text = []
		depth_str = depth * '\t'
		next_depth = depth
		original = node.original_node

		# Hidden nodes only contribute their children, at the same depth
		if not node.should_display:
			for child in node.children:
				child_text = DOMTreeSerializer.serialize_tree(child, include_attributes, depth)
				if child_text:
					formatted_text.append(child_text)
			return '\n'.join(formatted_text)

		if original.node_type == NodeType.ELEMENT_NODE:
			next_depth += 1
			formatted_text.append(DOMTreeSerializer._build_element_line(node, include_attributes, depth_str))

		elif original.node_type == NodeType.DOCUMENT_FRAGMENT_NODE:
			is_closed = bool(original.shadow_root_type and original.shadow_root_type.lower() == 'closed')
			formatted_text.append(f'{depth_str}▼ Shadow Content ({"Closed" if is_closed else "Open"})')
			next_depth += 1

		elif original.node_type == NodeType.TEXT_NODE:
			clean_text = original.node_value.strip() if original.node_value else ''
			if original.is_visible and len(clean_text) > 1:
				formatted_text.append(f'{depth_str}{clean_text}')

		# Process children
		for child in node.children:
			child_text = DOMTreeSerializer.serialize_tree(child, include_attributes, next_depth)
			if child_text:
				formatted_text.append(child_text)

		if original.node_type == NodeType.DOCUMENT_FRAGMENT_NODE and node.children:
			formatted_text.append(f'{depth_str}▲ Shadow Content End')

		return '\n'.join(formatted_text)

	@staticmethod
	def _build_element_line(node: SimplifiedNode, include_attributes: list[str], depth_str: str) -> str:
		original = node.original_node
		should_show_scroll = original.should_show_scroll_info

		text = ''
		if original.ax_node and original.ax_node.name:
			text = original.ax_node.name
		elif original.ax_node and original.ax_node.description:
			text = original.ax_node.description
		else:
			text = original.get_all_children_text()
		text = cap_text_length(text.strip(), 80)

		attributes_html_str = DOMTreeSerializer._build_attributes_string(original, include_attributes, text)

		if node.is_compound_component and original._compound_children:
			compound_attr = f'compound_components={",".join(_format_compound_child(c) for c in original._compound_children)}'
			attributes_html_str = f'{attributes_html_str} {compound_attr}' if attributes_html_str else compound_attr

		shadow_prefix = ''
		if node.is_shadow_host:
			has_closed_shadow = any(
				child.original_node.node_type == NodeType.DOCUMENT_FRAGMENT_NODE
				and child.original_node.shadow_root_type
				and child.original_node.shadow_root_type.lower() == 'closed'
				for child in node.children
			)
			shadow_prefix = '|SHADOW(closed)|' if has_closed_shadow else '|SHADOW(open)|'

		tag_name = original.tag_name
		if should_show_scroll and node.interactive_index is None:
			# Scrollable but not clickable
			line = f'{depth_str}{shadow_prefix}|SCROLL|<{tag_name}'
		elif node.interactive_index is not None:
			# Clickable (and possibly scrollable)
			new_prefix = '*' if node.is_new else ''
			scroll_prefix = '|SCROLL+' if should_show_scroll else '['
			line = f'{depth_str}{shadow_prefix}{new_prefix}{scroll_prefix}{node.interactive_index}]<{tag_name}'
		elif tag_name.upper() == 'IFRAME':
			line = f'{depth_str}{shadow_prefix}|IFRAME|<{tag_name}'
		elif tag_name.upper() == 'FRAME':
			line = f'{depth_str}{shadow_prefix}|FRAME|<{tag_name}'
		else:
			line = f'{depth_str}{shadow_prefix}<{tag_name}'

		if attributes_html_str:
			line += f' {attributes_html_str}'

		line += ' />'

		if should_show_scroll:
			scroll_info_text = original.get_scroll_info_text()
			if scroll_info_text:
				line += f' ({scroll_info_text})'

		return line

	@staticmethod
	def _build_attributes_string(node: EnhancedDOMTreeNode, include_attributes: list[str], text: str) -> str:
		"""Build the attributes string for an element.

		HTML attributes are listed in `include_attributes` order, accessibility properties follow them.
		"""
		attributes_to_include = {
			key: str(value).strip()
			for key, value in node.attributes.items()
			if key in include_attributes and str(value).strip() != ''
		}
		ordered_keys = [key for key in include_attributes if key in attributes_to_include]

		if node.ax_node and node.ax_node.properties:
			ax_values: dict[str, str] = {}
			for prop in node.ax_node.properties:
				if prop.name not in include_attributes or prop.value is None:
					continue
				if isinstance(prop.value, bool):
					ax_values[prop.name] = str(prop.value).lower()
				elif str(prop.value).strip():
					ax_values[prop.name] = str(prop.value).strip()

			# an AX value replaces the HTML one but keeps its position
			attributes_to_include.update(ax_values)
			ordered_keys.extend(key for key in include_attributes if key in ax_values and key not in ordered_keys)

		if not attributes_to_include:
			return ''

		# Remove duplicate values
		if len(ordered_keys) > 1:
			keys_to_remove = set()
			seen_values = {}

			for key in ordered_keys:
				value = attributes_to_include[key]
				if len(value) > 5:
					if value in seen_values:
						keys_to_remove.add(key)
					else:
						seen_values[value] = key

			for key in keys_to_remove:
				del attributes_to_include[key]

		# Remove attributes that duplicate accessibility data
		role = node.ax_node.role if node.ax_node else None
		if role and node.tag_name == role.lower():
			attributes_to_include.pop('role', None)

		attrs_to_remove_if_text_matches = ['aria-label', 'placeholder', 'title']
		for attr in attrs_to_remove_if_text_matches:
			if attributes_to_include.get(attr) and attributes_to_include.get(attr, '').strip().lower() == text.strip().lower():
				del attributes_to_include[attr]

		return ' '.join(
			f'{key}={cap_text_length(attributes_to_include[key], 100)}' for key in ordered_keys if key in attributes_to_include
		)


def _compound_child(
	role: str, name: str, valuemin: float | None = None, valuemax: float | None = None
) -> dict[str, Any]:
	return {'role': role, 'name': name, 'valuemin': valuemin, 'valuemax': valuemax, 'valuenow': None}


def _format_number(value: float) -> str:
	if isinstance(value, float) and value.is_integer():
		return str(int(value))
	return str(value)


def _format_compound_child(child: dict[str, Any]) -> str:
	"""`role:name[:min-max]`, select listboxes add `{count=..;options=..;format=..}`."""
	info = f'{child["role"]}:{child["name"]}'
	if child.get('valuemin') is not None or child.get('valuemax') is not None:
		valuemin = '' if child.get('valuemin') is None else _format_number(child['valuemin'])
		valuemax = '' if child.get('valuemax') is None else _format_number(child['valuemax'])
		info += f':{valuemin}-{valuemax}'

	if child.get('options_count') is not None:
		details = [f'count={child["options_count"]}']
		if child.get('first_options'):
			details.append(f'options={"|".join(child["first_options"])}')
		if child.get('format_hint'):
			details.append(f'format={child["format_hint"]}')
		info += '{' + ';'.join(details) + '}'

	return info
