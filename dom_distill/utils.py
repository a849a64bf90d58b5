import logging
import time
from collections.abc import Callable
from functools import wraps
from typing import ParamSpec, TypeVar

logger = logging.getLogger(__name__)

P = ParamSpec('P')
R = TypeVar('R')

SLOW_EXECUTION_THRESHOLD = 0.25  # seconds


def time_execution_sync(additional_text: str = '') -> Callable[[Callable[P, R]], Callable[P, R]]:
	"""Log a debug line when the wrapped call takes longer than SLOW_EXECUTION_THRESHOLD."""

	def decorator(func: Callable[P, R]) -> Callable[P, R]:
		@wraps(func)
		def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
			start_time = time.time()
			result = func(*args, **kwargs)
			execution_time = time.time() - start_time
			if execution_time > SLOW_EXECUTION_THRESHOLD:
				# use the instance logger when the wrapped callable is a method that has one
				self_logger = getattr(args[0], 'logger', None) if args else None
				log = self_logger if isinstance(self_logger, logging.Logger) else logger
				log.debug(f'⏳ {additional_text.strip("-")}() took {execution_time:.2f}s')
			return result

		return wrapper

	return decorator
