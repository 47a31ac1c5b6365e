import random
import sys
from pathlib import Path

import pytest

# Make the repository root importable so `src.` and `tests.` resolve during collection.
root = Path(__file__).resolve().parent.parent
if str(root) not in sys.path:
    sys.path.insert(0, str(root))


@pytest.fixture(scope="session", autouse=True)
def factory_seed():
    """Seed Python's RNG once per session so backoff jitter is deterministic."""
    seed = 42
    random.seed(seed)
    return seed


@pytest.fixture(autouse=True)
def block_real_network(request, mocker):
    """Autouse fixture: prevent unit tests from performing real network calls.

    Tests marked ``integration`` talk to a local HTTP server and are left alone.
    """
    if request.node.get_closest_marker("integration"):
        yield
        return

    from tests._fixtures.remote_api_responses import canned_api_factory

    mocker.patch("requests.Session.post", return_value=canned_api_factory("empty"))
    yield


@pytest.fixture
def fast_retry_policy():
    """Retry policy with millisecond waits so retry paths run quickly."""
    from src.utils.core.retry import RetryPolicy

    return RetryPolicy(max_retries=3, initial_interval=0.001, max_interval=0.005, jitter=0.0)


@pytest.fixture
def tushare_client(fast_retry_policy):
    """Return a configured TushareDataClient with a page size of 2 for tests."""
    from src.data_collector.config import TushareConfig
    from src.data_collector.tushare_data.client import TushareDataClient

    conf = TushareConfig(TOKEN="test_token", BASE_URL="https://tushare.test", PAGE_LIMIT=2)
    client = TushareDataClient(config=conf, retry_policy=fast_retry_policy)
    yield client
    client.close()
