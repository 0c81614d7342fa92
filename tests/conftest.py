import pytest

from ziputil import SAMPLE_MEMBERS, build_zip


@pytest.fixture
def sample_zip():
    return build_zip(SAMPLE_MEMBERS)
