from dom_distill.dom.views import EnhancedDOMTreeNode, NodeType

SEARCH_INDICATORS = (
	'search',
	'magnify',
	'glass',
	'lookup',
	'find',
	'query',
	'search-icon',
	'search-btn',
	'search-button',
	'searchbox',
)

INTERACTIVE_TAGS = {
	'button',
	'input',
	'select',
	'textarea',
	'a',
	'details',
	'summary',
	'option',
	'optgroup',
}

INTERACTIVE_ATTRIBUTES = {
	# Event handlers
	'onclick',
	'onmousedown',
	'onmouseup',
	'onkeydown',
	'onkeyup',
	# Interactive attributes
	'tabindex',
}

INTERACTIVE_ARIA_ROLES = {
	'button',
	'link',
	'menuitem',
	'option',
	'radio',
	'checkbox',
	'tab',
	'textbox',
	'combobox',
	'slider',
	'spinbutton',
	'search',
	'searchbox',
}

# the AX tree also reports listboxes for native selects
INTERACTIVE_AX_ROLES = INTERACTIVE_ARIA_ROLES | {'listbox'}

ICON_ATTRIBUTES = {'class', 'role', 'onclick', 'data-action', 'aria-label'}


class ClickableElementDetector:
	"""Decides whether a node is something a user could act on.

	`is_interactive` is a fixed sequence of guard clauses, the first one that decides wins.
	"""

	@staticmethod
	def _is_large_frame(node: EnhancedDOMTreeNode) -> bool:
		"""Iframes bigger than 100x100 px are likely to need scrolling."""
		if node.tag_name.upper() not in {'IFRAME', 'FRAME'}:
			return False
		if not (node.snapshot_node and node.snapshot_node.bounds):
			return False
		bounds = node.snapshot_node.bounds
		return bounds.width > 100 and bounds.height > 100

	@staticmethod
	def _has_search_indicator(node: EnhancedDOMTreeNode) -> bool:
		if not node.attributes:
			return False

		class_list = node.attributes.get('class', '').lower()
		if any(indicator in class_list for indicator in SEARCH_INDICATORS):
			return True

		element_id = node.attributes.get('id', '').lower()
		if any(indicator in element_id for indicator in SEARCH_INDICATORS):
			return True

		for attr_name, attr_value in node.attributes.items():
			if attr_name.startswith('data-') and any(indicator in attr_value.lower() for indicator in SEARCH_INDICATORS):
				return True

		return False

	@staticmethod
	def _check_accessibility_properties(node: EnhancedDOMTreeNode) -> bool | None:
		"""
		Direct accessibility indicators.

		Returns:
			False if the node is disabled or hidden (veto)
			True if a property clearly marks the node as interactive
			None if the properties are not conclusive
		"""
		if not (node.ax_node and node.ax_node.properties):
			return None

		for prop in node.ax_node.properties:
			try:
				# EXCLUSION RULES: these win over everything below
				if prop.name == 'disabled' and prop.value:
					return False
				if prop.name == 'hidden' and prop.value:
					return False

				# Direct interaction capabilities
				if prop.name in ['focusable', 'editable', 'settable'] and prop.value:
					return True

				# Widget states (only interactive elements have these)
				if prop.name in ['checked', 'expanded', 'pressed', 'selected']:
					return True

				# Form related
				if prop.name in ['required', 'autocomplete'] and prop.value:
					return True

				if prop.name == 'keyshortcuts' and prop.value:
					return True

			except (AttributeError, ValueError):
				# Skip properties we can't process
				continue

		return None

	@staticmethod
	def _has_event_handlers_or_interactive_attributes(node: EnhancedDOMTreeNode) -> bool:
		"""
		Check for event handlers, interactive attributes or an interactive ARIA role.
		"""
		if not node.attributes:
			return False

		if any(attr in node.attributes for attr in INTERACTIVE_ATTRIBUTES):
			return True

		return node.attributes.get('role') in INTERACTIVE_ARIA_ROLES

	@staticmethod
	def _has_interactive_ax_role(node: EnhancedDOMTreeNode) -> bool:
		return bool(node.ax_node and node.ax_node.role in INTERACTIVE_AX_ROLES)

	@staticmethod
	def _is_icon_like(node: EnhancedDOMTreeNode) -> bool:
		"""Icon-sized (10-50 px both ways) elements carrying an attribute that hints at a handler."""
		if not (node.snapshot_node and node.snapshot_node.bounds):
			return False

		bounds = node.snapshot_node.bounds
		if not (10 <= bounds.width <= 50 and 10 <= bounds.height <= 50):
			return False

		return any(attr in node.attributes for attr in ICON_ATTRIBUTES)

	@staticmethod
	def _has_interactive_cursor(node: EnhancedDOMTreeNode) -> bool:
		return bool(node.snapshot_node and node.snapshot_node.cursor_style == 'pointer')

	@staticmethod
	def is_interactive(node: EnhancedDOMTreeNode) -> bool:
		"""Check if this node is clickable/interactive."""

		# Skip non-element nodes
		if node.node_type != NodeType.ELEMENT_NODE:
			return False

		# remove html and body nodes
		if node.tag_name in {'html', 'body'}:
			return False

		if ClickableElementDetector._is_large_frame(node):
			return True

		# No size check: zero-sized overlays can still receive clicks
		if ClickableElementDetector._has_search_indicator(node):
			return True

		ax_decision = ClickableElementDetector._check_accessibility_properties(node)
		if ax_decision is not None:
			return ax_decision

		if node.tag_name in INTERACTIVE_TAGS:
			return True

		if ClickableElementDetector._has_event_handlers_or_interactive_attributes(node):
			return True

		if ClickableElementDetector._has_interactive_ax_role(node):
			return True

		if ClickableElementDetector._is_icon_like(node):
			return True

		# Final fallback: cursor style indicates interactivity
		if ClickableElementDetector._has_interactive_cursor(node):
			return True

		return False
