import os
import pytest
from pathlib import Path

from dotenv import load_dotenv

# load test env first
env_path = Path(__file__).resolve().parents[1] / '.env.test'
if env_path.exists():
    load_dotenv(env_path)

os.environ.setdefault('TESTING', '1')
os.environ.setdefault('LOG_FORMAT', 'plain')

try:
    from tests.fixtures import sample_data
except ImportError:
    from fixtures import sample_data


@pytest.fixture(autouse=True)
def reset_request_context():
    from modules.utils import set_request_context
    set_request_context(None)
    yield


@pytest.fixture
def default_options():
    from modules.flashcards import ParserOptions
    return ParserOptions()


@pytest.fixture
def plain_formatter():
    from modules.cloze import PlainClozeFormatter
    return PlainClozeFormatter()


@pytest.fixture
def mixed_note():
    return sample_data.MIXED_NOTE


@pytest.fixture
def mixed_note_units():
    return list(sample_data.MIXED_NOTE_UNITS)


@pytest.fixture
def frontmatter():
    return sample_data.FRONTMATTER


@pytest.fixture
def outline_note():
    return sample_data.OUTLINE_NOTE


@pytest.fixture
def no_cards_note():
    return sample_data.NO_CARDS_NOTE


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    import main as cards_main
    return TestClient(cards_main.app)
