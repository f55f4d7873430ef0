import logging
import os

import pytest

from map_leads.fetchers import RequestsFetcher, make_retry_session
from map_leads.provider import ApifyPlacesClient

requires_live = pytest.mark.skipif(
    os.getenv("RUN_LIVE_INTEGRATION") != "1",
    reason="Set RUN_LIVE_INTEGRATION=1 to execute live integration tests.",
)


@requires_live
def test_live_fetch_smoke() -> None:
    fetcher = RequestsFetcher(
        session=make_retry_session("map-leads-test", total=0),
        timeout=5.0,
        logger=logging.getLogger("test"),
    )
    assert "Example Domain" in fetcher.fetch("https://example.com")


@requires_live
@pytest.mark.skipif(not os.getenv("APIFY_TOKEN"), reason="APIFY_TOKEN is not set.")
def test_live_places_run_smoke() -> None:
    client = ApifyPlacesClient(
        session=make_retry_session("map-leads-test"),
        token=os.environ["APIFY_TOKEN"],
        actor_id="compass~crawler-google-places",
        base_url="https://api.apify.com/v2",
        wait_seconds=300,
        timeout=330.0,
        logger=logging.getLogger("test"),
    )
    run = client.start_run("coffee in Lima, Peru", 1)
    assert run.run_id
    if run.dataset_id:
        assert isinstance(client.fetch_items(run.dataset_id), list)
