"""
Enhanced DOM model, tree builder and the serialization service.
"""

from .enhanced_tree import EnhancedTreeBuilder
from .service import DomService, serialize
from .views import EnhancedDOMTreeNode, NodeType, SerializedDOMState, SerializerOptions, SimplifiedNode

__all__ = [
	'DomService',
	'EnhancedDOMTreeNode',
	'EnhancedTreeBuilder',
	'NodeType',
	'SerializedDOMState',
	'SerializerOptions',
	'SimplifiedNode',
	'serialize',
]
