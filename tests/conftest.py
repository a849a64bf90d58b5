import os

import pytest

# keep pytest's own log capture working
os.environ.setdefault('DOM_DISTILL_SETUP_LOGGING', 'false')

from factories import reset_ids  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_node_ids():
	"""Every test builds its snapshots from node id 1."""
	reset_ids()
	yield
