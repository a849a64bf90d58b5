import logging
import time

from dom_distill.dom.enhanced_tree import EnhancedTreeBuilder
from dom_distill.dom.serializer.serializer import DOMTreeSerializer
from dom_distill.dom.views import (
	DOMSelectorMap,
	RawCapturedNode,
	SerializedDOMState,
	SerializerOptions,
)

STAGE_TIMING_KEYS = (
	'clickable_detection_time',
	'create_simplified_tree',
	'calculate_paint_order',
	'optimize_tree',
	'bbox_filtering',
	'assign_interactive_indices',
)


class DomService:
	"""
	Turns a captured page into the indexed text tree handed to the LLM.

	The service holds no state between calls: the only thing carried from one capture
	to the next is the selector map, which the caller passes back in.
	"""

	logger: logging.Logger

	def __init__(self, options: SerializerOptions | None = None, logger: logging.Logger | None = None):
		self.options = options or SerializerOptions()
		self.logger = logger or logging.getLogger(__name__)

	def serialize(
		self,
		root: RawCapturedNode,
		previous_selector_map: DOMSelectorMap | None = None,
	) -> tuple[SerializedDOMState, dict[str, float]]:
		"""Build, filter, index and render one capture.

		Returns the serialized state and the time spent per stage, in seconds.
		"""
		if root is None:
			raise ValueError('serialize() needs the root node of a captured page, got None')

		start_total = time.time()

		start_build = time.time()
		enhanced_root = EnhancedTreeBuilder(
			max_iframe_depth=self.options.max_iframe_depth,
			max_iframe_count=self.options.max_iframe_count,
			logger=self.logger,
		).build(root)
		build_time = time.time() - start_build

		serialized_dom_state, serializer_timing = DOMTreeSerializer(
			enhanced_root,
			# copy so the caller's map can never be touched
			previous_selector_map=dict(previous_selector_map) if previous_selector_map else None,
			enable_bbox_filtering=self.options.enable_bbox_filtering,
			containment_threshold=self.options.containment_threshold,
			paint_order_filtering=self.options.paint_order_filtering,
			logger=self.logger,
		).serialize_accessible_elements()

		serialized_dom_state.include_attributes = list(self.options.include_attributes)

		start_serialize = time.time()
		llm_text = serialized_dom_state.llm_representation()
		serialize_time = time.time() - start_serialize

		timing_info: dict[str, float] = {'build_enhanced_tree': build_time}
		for key in STAGE_TIMING_KEYS:
			timing_info[key] = serializer_timing.get(key, 0.0)
		timing_info['serialize_tree'] = serialize_time
		timing_info['total'] = time.time() - start_total

		self.logger.debug(
			f'Serialized page into {len(llm_text)} chars with {len(serialized_dom_state.selector_map)} '
			f'interactive elements in {timing_info["total"]:.3f}s'
		)

		return serialized_dom_state, timing_info


def serialize(
	root: RawCapturedNode,
	previous_selector_map: DOMSelectorMap | None = None,
	options: SerializerOptions | None = None,
) -> tuple[SerializedDOMState, dict[str, float]]:
	"""Serialize a captured page with a one-off `DomService`."""
	return DomService(options=options).serialize(root, previous_selector_map)
