import hypothesis
import pytest

from solshell.config import ShellConfig

# disable hypothesis deadline globally
hypothesis.settings.register_profile("ci", deadline=None)
hypothesis.settings.load_profile("ci")


@pytest.fixture
def config():
    # no on-disk compiler cache in tests
    return ShellConfig(cache_dir=None)


@pytest.fixture(scope="module")
def get_filepath(request):
    def _get_filepath(filename):
        test_dir = request.path.parent
        return str(test_dir / filename)

    return _get_filepath
