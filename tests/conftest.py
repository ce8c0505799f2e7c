import itertools

import pytest


@pytest.fixture
def id_factory():
    counter = itertools.count(1)
    return lambda: f"L{next(counter):03d}"
