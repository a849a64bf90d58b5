import hashlib
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, TypedDict

from cdp_use.cdp.accessibility.types import AXNode, AXPropertyName
from cdp_use.cdp.dom.types import ShadowRootType
from pydantic import BaseModel, ConfigDict, Field
from uuid_extensions import uuid7str

from dom_distill.config import CONFIG
from dom_distill.dom.utils import cap_text_length

# Default attributes to include in the serialized output
DEFAULT_INCLUDE_ATTRIBUTES = [
	'class',
	'aria-label',
	'placeholder',
	'value',
	'href',
]

# Identity-bearing attributes that feed `EnhancedDOMTreeNode.element_hash`
STATIC_ATTRIBUTES = ['id', 'class', 'name', 'type', 'role']

DISABLED_ELEMENTS = {'head', 'style', 'script', 'noscript', '#comment'}

REQUIRED_COMPUTED_STYLES = [
	'display',
	'visibility',
	'opacity',
	'overflow',
	'overflow-x',
	'overflow-y',
	'cursor',
	'pointer-events',
	'position',
	'background-color',
]

# Elements whose bounding box is projected onto their descendants (see containment filtering)
PROPAGATING_ELEMENTS: list[dict[str, str | None]] = [
	{'tag': 'a', 'role': None},
	{'tag': 'button', 'role': None},
]
DEFAULT_CONTAINMENT_THRESHOLD = 0.99

IFRAME_DEPTH_LIMIT_NODE_NAME = 'IFRAME_DEPTH_LIMIT'

EMPTY_DOM_TREE_TEXT = 'Empty DOM tree (you might have to wait for the page to load)'


# region - raw snapshot input


class RawRect(TypedDict):
	x: float
	y: float
	width: float
	height: float


class RawSnapshotData(TypedDict, total=False):
	"""Layout/paint data captured for a single node."""

	bounds: RawRect
	clientRects: RawRect
	scrollRects: RawRect
	computedStyles: dict[str, str]
	paintOrder: int
	stackingContexts: int
	isClickable: bool
	cursorStyle: str
	isVisible: bool


class RawCapturedNode(TypedDict, total=False):
	"""One node of an already-captured page, in CDP `DOM.Node` shape.

	`attributes` may be the flat `[name, value, name, value, ...]` list CDP emits or a plain mapping.
	Accessibility and layout data travel with the node in `axNode` and `snapshot`.
	"""

	nodeId: int
	backendNodeId: int
	nodeType: int
	nodeName: str
	nodeValue: str
	attributes: list[str] | dict[str, str]
	children: list['RawCapturedNode']
	shadowRoots: list['RawCapturedNode']
	shadowRootType: str
	contentDocument: 'RawCapturedNode'
	frameId: str
	isScrollable: bool
	axNode: AXNode
	snapshot: RawSnapshotData


# endregion


class SerializerOptions(BaseModel):
	"""Knobs of a single serialization call. Defaults come from the environment config."""

	model_config = ConfigDict(extra='forbid', validate_assignment=True)

	enable_bbox_filtering: bool = Field(default_factory=lambda: CONFIG.DOM_DISTILL_BBOX_FILTERING)
	containment_threshold: float = Field(default_factory=lambda: CONFIG.DOM_DISTILL_CONTAINMENT_THRESHOLD, gt=0, le=1)
	paint_order_filtering: bool = Field(default_factory=lambda: CONFIG.DOM_DISTILL_PAINT_ORDER_FILTERING)
	include_attributes: list[str] = Field(default_factory=lambda: list(DEFAULT_INCLUDE_ATTRIBUTES))
	max_iframe_depth: int = Field(default_factory=lambda: CONFIG.DOM_DISTILL_MAX_IFRAME_DEPTH, ge=0)
	max_iframe_count: int = Field(default_factory=lambda: CONFIG.DOM_DISTILL_MAX_IFRAMES, ge=0)


@dataclass(slots=True)
class PropagatingBounds:
	"""Track bounds that propagate from parent elements to filter children."""

	tag: str  # The tag that started propagation ('a' or 'button')
	bounds: 'DOMRect'
	node_id: int
	depth: int  # How deep in tree this started (for debugging)


@dataclass(slots=True)
class SimplifiedNode:
	"""Simplified tree node for optimization."""

	original_node: 'EnhancedDOMTreeNode'
	children: list['SimplifiedNode']

	should_display: bool = True
	interactive_index: int | None = None
	is_new: bool = False
	ignored_by_paint_order: bool = False  # More info in dom/serializer/paint_order.py
	excluded_by_parent: bool = False  # Set right before the containment filter drops the node
	is_shadow_host: bool = False
	is_compound_component: bool = False

	def _clean_original_node_json(self, node_json: dict) -> dict:
		"""Recursively remove children_nodes and shadow_roots from original_node JSON."""
		node_json.pop('children_nodes', None)
		node_json.pop('shadow_roots', None)

		if node_json.get('content_document'):
			node_json['content_document'] = self._clean_original_node_json(node_json['content_document'])

		return node_json

	def __json__(self) -> dict:
		original_node_json = self.original_node.__json__()
		# children live on the SimplifiedNode, avoid duplicating them
		cleaned_original_node_json = self._clean_original_node_json(original_node_json)
		return {
			'should_display': self.should_display,
			'interactive_index': self.interactive_index,
			'is_new': self.is_new,
			'ignored_by_paint_order': self.ignored_by_paint_order,
			'excluded_by_parent': self.excluded_by_parent,
			'is_shadow_host': self.is_shadow_host,
			'is_compound_component': self.is_compound_component,
			'original_node': cleaned_original_node_json,
			'children': [c.__json__() for c in self.children],
		}


class NodeType(int, Enum):
	"""W3C DOM node types."""

	ELEMENT_NODE = 1
	ATTRIBUTE_NODE = 2
	TEXT_NODE = 3
	CDATA_SECTION_NODE = 4
	ENTITY_REFERENCE_NODE = 5
	ENTITY_NODE = 6
	PROCESSING_INSTRUCTION_NODE = 7
	COMMENT_NODE = 8
	DOCUMENT_NODE = 9
	DOCUMENT_TYPE_NODE = 10
	DOCUMENT_FRAGMENT_NODE = 11
	NOTATION_NODE = 12


@dataclass(slots=True)
class DOMRect:
	x: float
	y: float
	width: float
	height: float

	@property
	def area(self) -> float:
		return self.width * self.height

	def to_dict(self) -> dict[str, Any]:
		return {
			'x': self.x,
			'y': self.y,
			'width': self.width,
			'height': self.height,
		}

	def __json__(self) -> dict:
		return self.to_dict()


@dataclass(slots=True)
class EnhancedAXProperty:
	"""we don't need `sources` and `related_nodes` for now"""

	name: AXPropertyName
	value: str | bool | None


@dataclass(slots=True)
class EnhancedAXNode:
	ax_node_id: str
	"""Not to be confused the DOM node_id. Only useful for AX node tree"""
	ignored: bool
	role: str | None
	name: str | None
	description: str | None

	properties: list[EnhancedAXProperty] | None
	child_ids: list[str] | None


@dataclass(slots=True)
class EnhancedSnapshotNode:
	"""Snapshot data extracted from the layout capture."""

	is_clickable: bool | None
	cursor_style: str | None
	bounds: DOMRect | None
	"""
	Document coordinates (origin = top-left of the page, ignores current scroll).
	"""

	clientRects: DOMRect | None
	"""
	Viewport coordinates (origin = top-left of the visible scrollport).
	"""

	scrollRects: DOMRect | None
	"""
	Scrollable area of the element.
	"""

	computed_styles: dict[str, str] | None
	paint_order: int | None
	stacking_contexts: int | None


@dataclass(slots=True, eq=False)
class EnhancedDOMTreeNode:
	"""
	Enhanced DOM tree node that contains information from AX, DOM, and Snapshot trees.

	Children, shadow roots and the content document are owned by the node; `parent_node`
	is a back-reference only and is never walked for ownership or serialization.
	"""

	# region - DOM Node data

	node_id: int
	backend_node_id: int

	node_type: NodeType
	node_name: str
	node_value: str
	attributes: dict[str, str]
	is_scrollable: bool | None
	is_visible: bool | None

	absolute_position: DOMRect | None
	"""
	Bounds translated by the offsets of every iframe the node is nested in.
	"""

	# frames
	frame_id: str | None
	content_document: 'EnhancedDOMTreeNode | None'

	# Shadow DOM
	shadow_root_type: ShadowRootType | None
	shadow_roots: list['EnhancedDOMTreeNode'] | None

	# Navigation
	parent_node: 'EnhancedDOMTreeNode | None'
	children_nodes: list['EnhancedDOMTreeNode'] | None

	# endregion - DOM Node data

	ax_node: EnhancedAXNode | None
	snapshot_node: EnhancedSnapshotNode | None

	# Synthesized sub-controls (e.g. the spin buttons of a date input), filled by the serializer
	_compound_children: list[dict[str, Any]] = field(default_factory=list)

	uuid: str = field(default_factory=uuid7str)

	@property
	def parent(self) -> 'EnhancedDOMTreeNode | None':
		return self.parent_node

	@property
	def children(self) -> list['EnhancedDOMTreeNode']:
		return self.children_nodes or []

	@property
	def children_and_shadow_roots(self) -> list['EnhancedDOMTreeNode']:
		"""
		Returns all children nodes, including shadow roots
		"""
		# copy, callers must not be able to mutate children_nodes through this list
		children = list(self.children_nodes) if self.children_nodes else []
		if self.shadow_roots:
			children.extend(self.shadow_roots)
		return children

	@property
	def tag_name(self) -> str:
		if self.node_type == NodeType.ELEMENT_NODE:
			return self.node_name.lower()
		return self.node_name

	@property
	def is_depth_limit_sentinel(self) -> bool:
		return self.node_name == IFRAME_DEPTH_LIMIT_NODE_NAME

	@property
	def xpath(self) -> str:
		"""Structural path of this node, e.g. `//html[1]/body[1]/div[2]/shadow-root/button[1]`.

		Shadow boundaries add a `shadow-root` segment and iframe documents continue into the
		owning `iframe[n]` element, so the path is unique across the whole captured page.
		Numeric node ids are not part of it since they change between captures.
		"""
		segments: list[str] = []
		current: EnhancedDOMTreeNode | None = self

		while current is not None:
			if current.node_type == NodeType.ELEMENT_NODE:
				segments.insert(0, f'{current.tag_name}[{current._get_element_position()}]')
			elif current.node_type == NodeType.DOCUMENT_FRAGMENT_NODE and current.parent_node is not None:
				segments.insert(0, 'shadow-root')
			current = current.parent_node

		return '//' + '/'.join(segments)

	def _get_element_position(self) -> int:
		"""1-based position among the parent's element children with the same tag name."""
		parent = self.parent_node
		if not parent or not parent.children_nodes:
			return 1

		position = 1
		for sibling in parent.children_nodes:
			if sibling is self:
				return position
			if sibling.node_type == NodeType.ELEMENT_NODE and sibling.tag_name == self.tag_name:
				position += 1

		# not a regular child (e.g. the html element of an iframe document)
		return 1

	@property
	def is_actually_scrollable(self) -> bool:
		"""
		Stricter version of `is_scrollable`: needs a real area, a scrolling overflow style and,
		for generic containers, enough text that the scroll region is worth surfacing.
		"""
		if not self.is_scrollable:
			return False

		if self.snapshot_node and self.snapshot_node.bounds:
			bounds = self.snapshot_node.bounds
			if bounds.width <= 0 or bounds.height <= 0:
				return False

		if self.snapshot_node and self.snapshot_node.computed_styles:
			styles = self.snapshot_node.computed_styles
			overflow = styles.get('overflow', 'visible')
			overflow_x = styles.get('overflow-x', overflow)
			overflow_y = styles.get('overflow-y', overflow)
			if not ({overflow_x, overflow_y} & {'auto', 'scroll'}):
				return False

		# small decorative wrappers often report overflow:auto
		if self.tag_name in {'div', 'section'}:
			text = self.get_all_children_text(max_depth=3)
			if len(text) < 100:
				return False

		return True

	@property
	def should_show_scroll_info(self) -> bool:
		return self.is_actually_scrollable and self.tag_name != 'select'

	@property
	def scroll_info(self) -> dict[str, Any] | None:
		"""Calculate scroll information for this element if it's scrollable."""
		if not self.should_show_scroll_info or not self.snapshot_node:
			return None

		scroll_rects = self.snapshot_node.scrollRects
		client_rects = self.snapshot_node.clientRects
		if not scroll_rects or not client_rects:
			return None

		scroll_top = scroll_rects.y
		scroll_left = scroll_rects.x
		scrollable_height = scroll_rects.height
		scrollable_width = scroll_rects.width
		visible_height = client_rects.height
		visible_width = client_rects.width

		content_above = max(0, scroll_top)
		content_below = max(0, scrollable_height - visible_height - scroll_top)
		content_left = max(0, scroll_left)
		content_right = max(0, scrollable_width - visible_width - scroll_left)

		horizontal_percent = 0
		if scrollable_width > visible_width:
			max_scroll_x = scrollable_width - visible_width
			horizontal_percent = (scroll_left / max_scroll_x) * 100 if max_scroll_x > 0 else 0

		return {
			'scroll_top': scroll_top,
			'scroll_left': scroll_left,
			'scrollable_height': scrollable_height,
			'scrollable_width': scrollable_width,
			'visible_height': visible_height,
			'visible_width': visible_width,
			'content_above': content_above,
			'content_below': content_below,
			'content_left': content_left,
			'content_right': content_right,
			'horizontal_scroll_percentage': round(horizontal_percent, 1),
			'pages_above': round(content_above / visible_height, 1) if visible_height > 0 else 0,
			'pages_below': round(content_below / visible_height, 1) if visible_height > 0 else 0,
		}

	def get_scroll_info_text(self) -> str:
		"""Get human-readable scroll information text for this element."""
		if not self.should_show_scroll_info:
			return ''

		info = self.scroll_info
		if not info:
			return 'scrollable'

		parts = []
		if info['scrollable_height'] > info['visible_height']:
			parts.append(f'{info["pages_above"]:.1f} pages above, {info["pages_below"]:.1f} pages below')
		if info['scrollable_width'] > info['visible_width']:
			parts.append(f'horizontal {info["horizontal_scroll_percentage"]:.0f}%')

		return ' '.join(parts) or 'scrollable'

	def get_all_children_text(self, max_depth: int = -1) -> str:
		"""Space-joined text of all descendant text nodes (shadow roots included). -1 means unlimited depth."""
		collected_text_fragments: list[str] = []

		def extract_text_recursively(current_node: EnhancedDOMTreeNode, depth: int) -> None:
			if max_depth != -1 and depth > max_depth:
				return

			if current_node.node_type == NodeType.TEXT_NODE:
				text = (current_node.node_value or '').strip()
				if text:
					collected_text_fragments.append(text)
				return

			for child in current_node.children_and_shadow_roots:
				extract_text_recursively(child, depth + 1)

		extract_text_recursively(self, 0)
		return ' '.join(collected_text_fragments).strip()

	def get_meaningful_text_for_llm(self) -> str:
		"""Text the element is best described by: a labelling attribute, the AX name, or its own text."""
		for attribute_name in ('value', 'aria-label', 'placeholder'):
			if self.attributes.get(attribute_name):
				return self.attributes[attribute_name].strip()

		if self.ax_node and self.ax_node.name:
			return self.ax_node.name.strip()

		text = self.get_all_children_text(max_depth=2)
		if text:
			return text

		return (self.attributes.get('title') or '').strip()

	def llm_representation(self, max_text_length: int = 100) -> str:
		"""
		Token friendly representation of the node
		"""
		return f'<{self.tag_name}>{cap_text_length(self.get_meaningful_text_for_llm(), max_text_length) or ""}'

	@property
	def element_hash(self) -> int:
		"""Content hash over tag, identity-bearing attributes and the start of the meaningful text.

		Only used for deduplication and debugging, indices are keyed by `xpath`.
		"""
		attrs_str = ''.join(f'{key}={self.attributes[key]}' for key in STATIC_ATTRIBUTES if self.attributes.get(key))
		text = self.get_meaningful_text_for_llm()[:50] if self.node_type == NodeType.ELEMENT_NODE else ''
		hash_input_string = f'{self.tag_name}|{attrs_str}|{text}'
		hash_hex_result = hashlib.sha256(hash_input_string.encode()).hexdigest()
		return int(hash_hex_result[:16], 16)

	def __json__(self) -> dict:
		"""Serializes the node and its descendants to a dictionary, omitting parent references."""
		return {
			'node_id': self.node_id,
			'backend_node_id': self.backend_node_id,
			'node_type': self.node_type.name,
			'node_name': self.node_name,
			'node_value': self.node_value,
			'is_visible': self.is_visible,
			'attributes': self.attributes,
			'is_scrollable': self.is_scrollable,
			'frame_id': self.frame_id,
			'xpath': self.xpath,
			'absolute_position': self.absolute_position.to_dict() if self.absolute_position else None,
			'content_document': self.content_document.__json__() if self.content_document else None,
			'shadow_root_type': self.shadow_root_type,
			'ax_node': asdict(self.ax_node) if self.ax_node else None,
			'snapshot_node': asdict(self.snapshot_node) if self.snapshot_node else None,
			# these two in the end, so it's easier to read json
			'shadow_roots': [r.__json__() for r in self.shadow_roots] if self.shadow_roots else [],
			'children_nodes': [c.__json__() for c in self.children_nodes] if self.children_nodes else [],
		}

	def __repr__(self) -> str:
		attributes = ', '.join([f'{k}={v}' for k, v in self.attributes.items()])
		num_children = len(self.children_nodes or [])
		return (
			f'<{self.tag_name} {attributes} is_scrollable={self.is_scrollable} '
			f'num_children={num_children} >{self.node_value}</{self.tag_name}>'
		)

	def __str__(self) -> str:
		return f'[<{self.tag_name}>#{self.frame_id[-4:] if self.frame_id else "?"}:{self.backend_node_id}]'


DOMSelectorMap = dict[str, int]
"""Structural path (`EnhancedDOMTreeNode.xpath`) -> interactive index."""


@dataclass
class SerializedDOMState:
	_root: SimplifiedNode | None
	"""Not meant to be used directly, use `llm_representation` instead"""

	selector_map: DOMSelectorMap

	interactive_nodes: dict[int, EnhancedDOMTreeNode] = field(default_factory=dict)
	"""Interactive index -> node, for callers that act on an index"""

	include_attributes: list[str] = field(default_factory=lambda: list(DEFAULT_INCLUDE_ATTRIBUTES))
	"""Attributes rendered when `llm_representation` is called without an explicit list"""

	_text_cache: dict[tuple[str, ...], str] = field(default_factory=dict, repr=False)

	@property
	def root(self) -> SimplifiedNode | None:
		return self._root

	def llm_representation(
		self,
		include_attributes: list[str] | None = None,
	) -> str:
		"""Render the tree as indented text. The rendering is cached per attribute list."""
		from dom_distill.dom.serializer.serializer import DOMTreeSerializer

		if not self._root:
			return EMPTY_DOM_TREE_TEXT

		if include_attributes is None:
			include_attributes = self.include_attributes

		cache_key = tuple(include_attributes)
		if cache_key not in self._text_cache:
			self._text_cache[cache_key] = DOMTreeSerializer.serialize_tree(self._root, include_attributes)
		return self._text_cache[cache_key]
