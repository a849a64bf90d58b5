"""
Helper class for maintaining a union of rectangles (used for order of elements calculation)
"""

from collections import defaultdict
from dataclasses import dataclass

from dom_distill.dom.views import DOMRect, SimplifiedNode

TRANSPARENT_BACKGROUND = 'rgba(0, 0, 0, 0)'
MIN_OCCLUDING_OPACITY = 0.8


@dataclass(frozen=True, slots=True)
class Rect:
	"""Closed axis-aligned rectangle with (x1,y1) bottom-left, (x2,y2) top-right."""

	x1: float
	y1: float
	x2: float
	y2: float

	def __post_init__(self):
		if not (self.x1 <= self.x2 and self.y1 <= self.y2):
			raise ValueError(f'Invalid rectangle coordinates: {self}')

	def area(self) -> float:
		return (self.x2 - self.x1) * (self.y2 - self.y1)

	def intersects(self, other: 'Rect') -> bool:
		return not (self.x2 <= other.x1 or other.x2 <= self.x1 or self.y2 <= other.y1 or other.y2 <= self.y1)

	def contains(self, other: 'Rect') -> bool:
		return self.x1 <= other.x1 and self.y1 <= other.y1 and self.x2 >= other.x2 and self.y2 >= other.y2


class RectUnionPure:
	"""
	Maintains a *disjoint* set of rectangles.
	Adding a rectangle splits it against the existing ones.
	"""

	__slots__ = ('_rects',)

	def __init__(self):
		self._rects: list[Rect] = []

	def _split_diff(self, a: Rect, b: Rect) -> list[Rect]:
		r"""
		Return list of up to 4 rectangles = a \ b.
		Assumes a intersects b.
		"""
		parts = []

		# Bottom slice
		if a.y1 < b.y1:
			parts.append(Rect(a.x1, a.y1, a.x2, b.y1))
		# Top slice
		if b.y2 < a.y2:
			parts.append(Rect(a.x1, b.y2, a.x2, a.y2))

		# Middle (vertical) strip: y overlap is [max(a.y1,b.y1), min(a.y2,b.y2)]
		y_lo = max(a.y1, b.y1)
		y_hi = min(a.y2, b.y2)

		# Left slice
		if a.x1 < b.x1:
			parts.append(Rect(a.x1, y_lo, b.x1, y_hi))
		# Right slice
		if b.x2 < a.x2:
			parts.append(Rect(b.x2, y_lo, a.x2, y_hi))

		return parts

	def contains(self, r: Rect) -> bool:
		"""
		True iff r is fully covered by the current union.
		"""
		if not self._rects:
			return False

		stack = [r]
		for s in self._rects:
			new_stack = []
			for piece in stack:
				if s.contains(piece):
					# piece completely gone
					continue
				if piece.intersects(s):
					new_stack.extend(self._split_diff(piece, s))
				else:
					new_stack.append(piece)
			if not new_stack:  # everything eaten – covered
				return True
			stack = new_stack
		return False  # something survived

	def add(self, r: Rect) -> bool:
		"""
		Insert r unless it is already covered.
		Returns True if the union grew.
		"""
		if self.contains(r):
			return False

		pending = [r]
		for s in self._rects:
			new_pending = []
			for piece in pending:
				if piece.intersects(s):
					new_pending.extend(self._split_diff(piece, s))
				else:
					new_pending.append(piece)
			pending = new_pending

		# Any left-over pieces are new, non-overlapping areas
		self._rects.extend(pending)
		return True

	def __len__(self) -> int:
		return len(self._rects)


class PaintOrderRemover:
	"""
	Calculates which elements should be hidden based on the paint order parameter.

	Covered nodes are flagged, never removed, so they keep their place in the tree.
	"""

	def __init__(self, root: SimplifiedNode):
		self.root = root

	def calculate_paint_order(self) -> None:
		all_simplified_nodes_with_paint_order: list[SimplifiedNode] = []

		def collect_paint_order(node: SimplifiedNode) -> None:
			snapshot = node.original_node.snapshot_node
			if snapshot and snapshot.paint_order is not None and _screen_bounds(node) is not None:
				all_simplified_nodes_with_paint_order.append(node)

			for child in node.children:
				collect_paint_order(child)

		collect_paint_order(self.root)

		grouped_by_paint_order: defaultdict[int, list[SimplifiedNode]] = defaultdict(list)

		for node in all_simplified_nodes_with_paint_order:
			grouped_by_paint_order[node.original_node.snapshot_node.paint_order].append(node)  # type: ignore[union-attr]

		rect_union = RectUnionPure()

		# highest paint order first, it is on top
		for _, nodes in sorted(grouped_by_paint_order.items(), key=lambda x: -x[0]):
			rects_to_add = []

			for node in nodes:
				snapshot = node.original_node.snapshot_node
				bounds = _screen_bounds(node)
				if not snapshot or not bounds:
					continue  # shouldn't happen by how we filter them out in the first place

				if bounds.width < 0 or bounds.height < 0:
					continue

				rect = Rect(
					x1=bounds.x,
					y1=bounds.y,
					x2=bounds.x + bounds.width,
					y2=bounds.y + bounds.height,
				)

				if rect_union.contains(rect):
					node.ignored_by_paint_order = True
					node.should_display = False

				# see-through elements don't hide what is painted below them
				if snapshot.computed_styles:
					background_color = snapshot.computed_styles.get('background-color', TRANSPARENT_BACKGROUND)
					opacity = _parse_opacity(snapshot.computed_styles.get('opacity', '1'))
					if background_color == TRANSPARENT_BACKGROUND or opacity < MIN_OCCLUDING_OPACITY:
						continue

				rects_to_add.append(rect)

			# nodes sharing a paint order don't occlude each other
			for rect in rects_to_add:
				rect_union.add(rect)


def _screen_bounds(node: SimplifiedNode) -> DOMRect | None:
	"""Bounds in top-level page coordinates, iframe content is shifted by its frame offsets."""
	original = node.original_node
	if original.absolute_position is not None:
		return original.absolute_position
	return original.snapshot_node.bounds if original.snapshot_node else None


def _parse_opacity(value: str) -> float:
	try:
		return float(value)
	except (TypeError, ValueError):
		return 1.0
