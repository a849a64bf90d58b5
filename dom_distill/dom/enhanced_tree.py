import logging
from typing import Any

from cdp_use.cdp.accessibility.types import AXNode

from dom_distill.dom.views import (
	IFRAME_DEPTH_LIMIT_NODE_NAME,
	DOMRect,
	EnhancedAXNode,
	EnhancedAXProperty,
	EnhancedDOMTreeNode,
	EnhancedSnapshotNode,
	NodeType,
	RawCapturedNode,
	RawRect,
	RawSnapshotData,
)
from dom_distill.utils import time_execution_sync

logger = logging.getLogger(__name__)


class EnhancedTreeBuilder:
	"""Builds the `EnhancedDOMTreeNode` tree from an already captured page.

	Iframe documents are expanded up to `max_iframe_depth` levels deep and `max_iframe_count`
	documents in total. A document past the depth limit is replaced by an `IFRAME_DEPTH_LIMIT`
	sentinel element, a document past the count limit is left out.
	"""

	def __init__(self, max_iframe_depth: int = 3, max_iframe_count: int = 15, logger: logging.Logger | None = None):
		self.max_iframe_depth = max_iframe_depth
		self.max_iframe_count = max_iframe_count
		self.logger = logger or logging.getLogger(__name__)

		self._expanded_iframe_count = 0

	@time_execution_sync('--build_enhanced_tree')
	def build(self, root: RawCapturedNode) -> EnhancedDOMTreeNode:
		if root is None:
			raise ValueError('Cannot build an enhanced DOM tree without a root node')

		self._expanded_iframe_count = 0
		return self._construct_enhanced_node(root, parent=None, frame_offset=(0.0, 0.0), iframe_depth=0)

	def _construct_enhanced_node(
		self,
		node: RawCapturedNode,
		parent: EnhancedDOMTreeNode | None,
		frame_offset: tuple[float, float],
		iframe_depth: int,
	) -> EnhancedDOMTreeNode:
		snapshot_node = self._build_enhanced_snapshot_node(node['snapshot']) if node.get('snapshot') else None
		ax_node = self._build_enhanced_ax_node(node['axNode']) if node.get('axNode') else None

		dom_tree_node = EnhancedDOMTreeNode(
			node_id=node.get('nodeId', 0),
			backend_node_id=node.get('backendNodeId', 0),
			node_type=NodeType(node['nodeType']),
			node_name=node['nodeName'],
			node_value=node.get('nodeValue') or '',
			attributes=self._parse_attributes(node.get('attributes')),
			is_scrollable=None,
			is_visible=None,
			absolute_position=None,
			frame_id=node.get('frameId') or (parent.frame_id if parent else None),
			content_document=None,
			shadow_root_type=node.get('shadowRootType') or None,  # type: ignore[arg-type]
			shadow_roots=None,
			parent_node=parent,
			children_nodes=None,
			ax_node=ax_node,
			snapshot_node=snapshot_node,
		)

		if snapshot_node and snapshot_node.bounds:
			bounds = snapshot_node.bounds
			dom_tree_node.absolute_position = DOMRect(
				x=bounds.x + frame_offset[0],
				y=bounds.y + frame_offset[1],
				width=bounds.width,
				height=bounds.height,
			)

		dom_tree_node.is_scrollable = self._check_scrollability(node, snapshot_node)
		dom_tree_node.is_visible = self._check_visibility(node, snapshot_node, parent)

		if node.get('children'):
			dom_tree_node.children_nodes = [
				self._construct_enhanced_node(child, dom_tree_node, frame_offset, iframe_depth) for child in node['children']
			]

		if node.get('shadowRoots'):
			dom_tree_node.shadow_roots = [
				self._construct_enhanced_node(shadow_root, dom_tree_node, frame_offset, iframe_depth)
				for shadow_root in node['shadowRoots']
			]

		if node.get('contentDocument'):
			dom_tree_node.content_document = self._construct_content_document(
				node['contentDocument'], dom_tree_node, frame_offset, iframe_depth + 1
			)

		return dom_tree_node

	def _construct_content_document(
		self,
		document: RawCapturedNode,
		iframe_node: EnhancedDOMTreeNode,
		frame_offset: tuple[float, float],
		iframe_depth: int,
	) -> EnhancedDOMTreeNode | None:
		if iframe_depth > self.max_iframe_depth:
			self.logger.warning(f'Reached max iframe depth {self.max_iframe_depth} at {iframe_node}')
			return self._create_depth_limit_sentinel(iframe_node)

		if self._expanded_iframe_count >= self.max_iframe_count:
			self.logger.debug(f'Skipping content of {iframe_node}, already expanded {self._expanded_iframe_count} iframes')
			return None

		self._expanded_iframe_count += 1

		# everything inside the frame is positioned relative to the frame's own viewport
		iframe_offset = frame_offset
		if iframe_node.snapshot_node and iframe_node.snapshot_node.bounds:
			iframe_bounds = iframe_node.snapshot_node.bounds
			iframe_offset = (frame_offset[0] + iframe_bounds.x, frame_offset[1] + iframe_bounds.y)

		return self._construct_enhanced_node(document, iframe_node, iframe_offset, iframe_depth)

	def _create_depth_limit_sentinel(self, iframe_node: EnhancedDOMTreeNode) -> EnhancedDOMTreeNode:
		return EnhancedDOMTreeNode(
			node_id=-1,
			backend_node_id=-1,
			node_type=NodeType.ELEMENT_NODE,
			node_name=IFRAME_DEPTH_LIMIT_NODE_NAME,
			node_value='',
			attributes={},
			is_scrollable=None,
			is_visible=None,
			absolute_position=None,
			frame_id=iframe_node.frame_id,
			content_document=None,
			shadow_root_type=None,
			shadow_roots=None,
			parent_node=iframe_node,
			children_nodes=None,
			ax_node=None,
			snapshot_node=None,
		)

	@staticmethod
	def _parse_attributes(attributes: list[str] | dict[str, str] | None) -> dict[str, str]:
		"""Turn CDP's flat `[name, value, name, value, ...]` list (or a plain mapping) into a dict."""
		if not attributes:
			return {}

		if isinstance(attributes, dict):
			return {str(key): '' if value is None else str(value) for key, value in attributes.items()}

		parsed = {}
		for i in range(0, len(attributes) - 1, 2):
			parsed[attributes[i]] = attributes[i + 1]
		return parsed

	def _extract_ax_property_value(self, value: Any) -> str | bool | None:
		"""Extract value from various formats returned by the accessibility API."""
		if isinstance(value, dict):
			extracted = value.get('value', value)
			if isinstance(extracted, (str, bool)) or extracted is None:
				return extracted
			return str(extracted)  # Convert to string if not expected type
		elif isinstance(value, list) and len(value) > 0:
			# Sometimes values are returned as a list with one element
			return self._extract_ax_property_value(value[0])
		elif isinstance(value, (str, bool)) or value is None:
			return value
		else:
			return str(value)

	def _build_enhanced_ax_node(self, ax_node: AXNode) -> EnhancedAXNode:
		"""Build enhanced accessibility node from CDP AX node."""

		properties = None
		if ax_node.get('properties'):
			properties = []
			for prop in ax_node['properties']:
				prop_name = prop.get('name')
				prop_value = self._extract_ax_property_value(prop.get('value'))

				# state properties like `checked` carry meaning by presence alone
				if prop_name:
					properties.append(EnhancedAXProperty(name=prop_name, value=prop_value))

		return EnhancedAXNode(
			ax_node_id=ax_node.get('nodeId', ''),
			ignored=ax_node.get('ignored', False),
			role=self._extract_ax_text(ax_node.get('role')),
			name=self._extract_ax_text(ax_node.get('name')),
			description=self._extract_ax_text(ax_node.get('description')),
			properties=properties,
			child_ids=list(ax_node['childIds']) if ax_node.get('childIds') else None,
		)

	def _extract_ax_text(self, value: Any) -> str | None:
		extracted = self._extract_ax_property_value(value)
		if extracted is None or isinstance(extracted, bool):
			return None
		return extracted

	def _build_enhanced_snapshot_node(self, snapshot: RawSnapshotData) -> EnhancedSnapshotNode:
		computed_styles = dict(snapshot['computedStyles']) if snapshot.get('computedStyles') else None

		cursor_style = snapshot.get('cursorStyle')
		if cursor_style is None and computed_styles:
			cursor_style = computed_styles.get('cursor')

		paint_order = snapshot.get('paintOrder')
		stacking_contexts = snapshot.get('stackingContexts')

		return EnhancedSnapshotNode(
			is_clickable=snapshot.get('isClickable'),
			cursor_style=cursor_style,
			bounds=self._parse_rect(snapshot.get('bounds')),
			clientRects=self._parse_rect(snapshot.get('clientRects')),
			scrollRects=self._parse_rect(snapshot.get('scrollRects')),
			computed_styles=computed_styles,
			paint_order=_safe_parse_int(paint_order) if paint_order is not None else None,
			stacking_contexts=_safe_parse_int(stacking_contexts) if stacking_contexts is not None else None,
		)

	@staticmethod
	def _parse_rect(raw: RawRect | None) -> DOMRect | None:
		if not raw:
			return None
		try:
			return DOMRect(
				x=float(raw.get('x', 0)),
				y=float(raw.get('y', 0)),
				width=float(raw.get('width', 0)),
				height=float(raw.get('height', 0)),
			)
		except (TypeError, ValueError):
			logger.debug(f'Ignoring unparseable rect {raw!r}')
			return None

	@staticmethod
	def _check_scrollability(node: RawCapturedNode, snapshot_node: EnhancedSnapshotNode | None) -> bool | None:
		"""Use the captured flag when present, otherwise derive it from the overflow styles."""
		if 'isScrollable' in node:
			return bool(node['isScrollable'])

		if not (snapshot_node and snapshot_node.computed_styles):
			return None

		styles = snapshot_node.computed_styles
		overflow = styles.get('overflow', 'visible')
		overflow_x = styles.get('overflow-x', overflow)
		overflow_y = styles.get('overflow-y', overflow)
		return overflow_x in {'auto', 'scroll'} or overflow_y in {'auto', 'scroll'}

	@staticmethod
	def _check_visibility(
		node: RawCapturedNode,
		snapshot_node: EnhancedSnapshotNode | None,
		parent: EnhancedDOMTreeNode | None,
	) -> bool | None:
		"""Use the captured visibility when present, otherwise derive it from bounds and styles.

		Text nodes without layout data take the visibility of their parent element.
		"""
		snapshot = node.get('snapshot') or {}
		if 'isVisible' in snapshot:
			return bool(snapshot['isVisible'])

		if snapshot_node is None:
			if node.get('nodeType') == NodeType.TEXT_NODE and parent is not None:
				return parent.is_visible
			return None

		bounds = snapshot_node.bounds
		if not bounds or bounds.width <= 0 or bounds.height <= 0:
			return False

		if snapshot_node.computed_styles:
			styles = snapshot_node.computed_styles
			if styles.get('display') == 'none':
				return False
			if styles.get('visibility') in {'hidden', 'collapse'}:
				return False
			if _safe_parse_float(styles.get('opacity', '1'), 1.0) == 0:
				return False

		return True


def _safe_parse_float(value: Any, default: float) -> float:
	try:
		return float(value)
	except (TypeError, ValueError):
		return default


def _safe_parse_int(value: Any) -> int | None:
	try:
		return int(value)
	except (TypeError, ValueError):
		return None
