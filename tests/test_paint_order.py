import pytest
from factories import build, element, find, page, text

from dom_distill.dom.serializer.paint_order import PaintOrderRemover, Rect, RectUnionPure
from dom_distill.dom.views import SimplifiedNode


def simplified(node) -> SimplifiedNode:
	"""Mirror an enhanced subtree as SimplifiedNodes, without any filtering."""
	return SimplifiedNode(original_node=node, children=[simplified(child) for child in node.children_and_shadow_roots])


def flatten(node: SimplifiedNode) -> list[SimplifiedNode]:
	nodes = [node]
	for child in node.children:
		nodes.extend(flatten(child))
	return nodes


def by_id(root: SimplifiedNode, element_id: str) -> SimplifiedNode:
	return next(n for n in flatten(root) if n.original_node.attributes.get('id') == element_id)


OPAQUE = {'background-color': 'rgb(255, 255, 255)'}


class TestRect:
	def test_invalid_coordinates_raise(self):
		with pytest.raises(ValueError):
			Rect(10, 0, 5, 5)

	def test_area_contains_intersects(self):
		outer = Rect(0, 0, 10, 10)
		inner = Rect(2, 2, 5, 5)
		touching = Rect(10, 0, 20, 10)

		assert outer.area() == 100
		assert outer.contains(inner)
		assert not inner.contains(outer)
		assert outer.intersects(inner)
		# shared edge only
		assert not outer.intersects(touching)


class TestRectUnionPure:
	def test_empty_union_contains_nothing(self):
		assert not RectUnionPure().contains(Rect(0, 0, 1, 1))

	def test_rect_covered_by_two_halves(self):
		union = RectUnionPure()
		union.add(Rect(0, 0, 5, 10))
		union.add(Rect(5, 0, 10, 10))

		assert union.contains(Rect(2, 2, 8, 8))
		assert not union.contains(Rect(2, 2, 12, 8))

	def test_add_keeps_rectangles_disjoint(self):
		union = RectUnionPure()
		assert union.add(Rect(0, 0, 10, 10))
		assert union.add(Rect(5, 5, 15, 15))
		# already covered, the union does not grow
		assert not union.add(Rect(6, 6, 9, 9))

		rects = union._rects
		for i, a in enumerate(rects):
			for b in rects[i + 1 :]:
				assert not a.intersects(b)
		assert sum(r.area() for r in rects) == 100 + 100 - 25

	def test_split_diff_returns_the_remaining_frame(self):
		parts = RectUnionPure()._split_diff(Rect(0, 0, 10, 10), Rect(3, 3, 6, 6))

		assert len(parts) == 4
		assert sum(p.area() for p in parts) == 100 - 9


class TestPaintOrderRemover:
	def _run(self, *body_children):
		root = simplified(find(build(page(*body_children)), 'html'))
		PaintOrderRemover(root).calculate_paint_order()
		return root

	def test_fully_covered_element_is_ignored(self):
		root = self._run(
			element('button', {'id': 'under'}, [text('Buy')], bounds=(10, 10, 80, 30), paint_order=1),
			element('div', {'id': 'overlay'}, bounds=(0, 0, 500, 500), paint_order=5, styles=OPAQUE),
		)

		under = by_id(root, 'under')
		assert under.ignored_by_paint_order
		assert not under.should_display
		assert not by_id(root, 'overlay').ignored_by_paint_order

	def test_partially_covered_element_stays(self):
		root = self._run(
			element('button', {'id': 'under'}, bounds=(400, 400, 200, 50), paint_order=1),
			element('div', {'id': 'overlay'}, bounds=(0, 0, 500, 500), paint_order=5, styles=OPAQUE),
		)

		assert not by_id(root, 'under').ignored_by_paint_order

	def test_covered_node_stays_in_tree(self):
		root = self._run(
			element('button', {'id': 'under'}, bounds=(10, 10, 80, 30), paint_order=1),
			element('div', {'id': 'overlay'}, bounds=(0, 0, 500, 500), paint_order=5, styles=OPAQUE),
		)

		assert by_id(root, 'under') in flatten(root)

	def test_transparent_overlay_does_not_hide(self):
		root = self._run(
			element('button', {'id': 'under'}, bounds=(10, 10, 80, 30), paint_order=1),
			element('div', {'id': 'overlay'}, bounds=(0, 0, 500, 500), paint_order=5, styles={'background-color': 'rgba(0, 0, 0, 0)'}),
		)

		assert not by_id(root, 'under').ignored_by_paint_order

	def test_translucent_overlay_does_not_hide(self):
		root = self._run(
			element('button', {'id': 'under'}, bounds=(10, 10, 80, 30), paint_order=1),
			element('div', {'id': 'overlay'}, bounds=(0, 0, 500, 500), paint_order=5, styles={**OPAQUE, 'opacity': '0.5'}),
		)

		assert not by_id(root, 'under').ignored_by_paint_order

	def test_same_paint_order_does_not_occlude(self):
		root = self._run(
			element('div', {'id': 'first'}, bounds=(0, 0, 100, 100), paint_order=3, styles=OPAQUE),
			element('div', {'id': 'second'}, bounds=(0, 0, 100, 100), paint_order=3, styles=OPAQUE),
		)

		assert not by_id(root, 'first').ignored_by_paint_order
		assert not by_id(root, 'second').ignored_by_paint_order

	def test_nodes_without_paint_order_are_untouched(self):
		root = self._run(
			element('button', {'id': 'under'}, bounds=(10, 10, 80, 30)),
			element('div', {'id': 'overlay'}, bounds=(0, 0, 500, 500), paint_order=5, styles=OPAQUE),
		)

		assert not by_id(root, 'under').ignored_by_paint_order
