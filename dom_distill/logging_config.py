import logging
import sys

from dom_distill.config import CONFIG


def setup_logging(stream=None, log_level: str | None = None, force_setup: bool = False) -> logging.Logger:
	"""Setup logging configuration for dom-distill.

	Args:
		stream: Output stream for logs (default: sys.stdout)
		log_level: Override log level (default: uses CONFIG.DOM_DISTILL_LOGGING_LEVEL)
		force_setup: Force reconfiguration even if handlers already exist
	"""
	root = logging.getLogger()
	if root.handlers and not force_setup:
		return logging.getLogger('dom_distill')

	log_type = log_level or CONFIG.DOM_DISTILL_LOGGING_LEVEL.lower()

	class DomDistillFormatter(logging.Formatter):
		def format(self, record):
			# Shorten dom_distill.dom.serializer.serializer -> serializer
			if isinstance(record.name, str) and record.name.startswith('dom_distill.'):
				record.name = record.name.split('.')[-1]
			return super().format(record)

	console = logging.StreamHandler(stream or sys.stdout)
	console.setFormatter(DomDistillFormatter('%(levelname)-8s [%(name)s] %(message)s'))

	root.handlers = []
	root.addHandler(console)

	level = getattr(logging, log_type.upper(), logging.INFO)
	root.setLevel(level)

	dom_distill_logger = logging.getLogger('dom_distill')
	dom_distill_logger.propagate = False
	dom_distill_logger.handlers = [console]
	dom_distill_logger.setLevel(level)

	# Silence third-party loggers
	for logger_name in ['dotenv', 'pydantic', 'urllib3', 'asyncio']:
		third_party = logging.getLogger(logger_name)
		third_party.setLevel(logging.ERROR)
		third_party.propagate = False

	return dom_distill_logger
