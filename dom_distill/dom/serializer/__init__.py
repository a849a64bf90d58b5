from .clickable_elements import ClickableElementDetector
from .paint_order import PaintOrderRemover, Rect, RectUnionPure
from .serializer import DOMTreeSerializer

__all__ = [
	'ClickableElementDetector',
	'DOMTreeSerializer',
	'PaintOrderRemover',
	'Rect',
	'RectUnionPure',
]
