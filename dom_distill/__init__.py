"""
dom-distill: reduce a captured browser page to an indexed text tree for LLM agents.
"""

from .config import CONFIG
from .logging_config import setup_logging

if CONFIG.DOM_DISTILL_SETUP_LOGGING:
	setup_logging()

from .dom.service import DomService, serialize  # noqa: E402
from .dom.views import DOMSelectorMap, SerializedDOMState, SerializerOptions  # noqa: E402

__all__ = [
	'DomService',
	'DOMSelectorMap',
	'SerializedDOMState',
	'SerializerOptions',
	'serialize',
	'setup_logging',
]
