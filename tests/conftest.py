import pytest

from wiki_collector.settings import CrawlerConfig

from fakes import RecordingSleep


@pytest.fixture
def config(tmp_path):
    return CrawlerConfig(
        api_base="http://wiki.test/api.php",
        user_agent="wiki-collector-tests/1.0",
        data_dir=str(tmp_path / "data"),
        request_timeout=None,
        cargo_page_size=500,
        cargo_table_list_limit=500,
        cargo_request_delay=1.5,
        table_cooldown=5,
        skip_existing_tables=False,
        allpages_limit=500,
        allpages_namespace=0,
        batch_size=50,
        batch_delay=2,
        stage_pause=3,
    )


@pytest.fixture
def sleeper():
    return RecordingSleep()
