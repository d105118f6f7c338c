import threading

from tilecache.downloader import TileDownloader
from tilecache.models import TileCoordinate

from conftest import FakeFetch

OSM_RECORD = TileCoordinate("osm", 2, 1, 1, "ru")
BING_RECORD = TileCoordinate("bing", 2, 1, 0, None)
GOOGLE_RECORD = TileCoordinate("google", 3, 5, 2, "en")

BING_URL = "https://ecn.t1.tiles.virtualearth.net/tiles/a01.png?g=1"
GOOGLE_URL = "https://mt.google.com/vt/lyrs=y&x=5&y=2&z=3&hl=en"
OSM_URL = "https://tile.openstreetmap.org/2/1/1.png"


def seed(ledger, *records):
    for record in records:
        ledger.append(record)


def test_empty_ledger_does_nothing(store, ledger, fake_fetch):
    stats = TileDownloader("osm", store=store, ledger=ledger, fetch=fake_fetch).retry_failed()
    assert stats["total"] == 0
    assert fake_fetch.calls == []


def test_retry_uses_each_records_own_provider(store, ledger, fake_fetch):
    seed(ledger, OSM_RECORD, BING_RECORD, GOOGLE_RECORD)
    dl = TileDownloader("yandex", store=store, ledger=ledger, fetch=fake_fetch, concurrency=2)

    stats = dl.retry_failed()

    assert sorted(fake_fetch.calls) == sorted([OSM_URL, BING_URL, GOOGLE_URL])
    assert stats["downloaded"] == 3
    for record in (OSM_RECORD, BING_RECORD, GOOGLE_RECORD):
        assert store.exists(record)


def test_retry_convergence(store, ledger):
    seed(ledger, OSM_RECORD, BING_RECORD, GOOGLE_RECORD)

    first = FakeFetch(fail_urls=[BING_URL])
    TileDownloader(None, store=store, ledger=ledger, fetch=first).retry_failed()
    assert ledger.drain_all() == [BING_RECORD]

    second = FakeFetch()
    TileDownloader(None, store=store, ledger=ledger, fetch=second).retry_failed()
    assert second.calls == [BING_URL]
    assert not ledger.path.exists()
    assert ledger.drain_all() == []


def test_retry_drops_records_already_cached(store, ledger, fake_fetch):
    seed(ledger, OSM_RECORD)
    store.save(OSM_RECORD, b"cached elsewhere")

    stats = TileDownloader(None, store=store, ledger=ledger, fetch=fake_fetch).retry_failed()

    assert fake_fetch.calls == []
    assert stats["skipped"] == 1
    assert not ledger.path.exists()


def test_retry_keeps_records_of_unknown_providers(store, ledger, fake_fetch):
    unknown = TileCoordinate("retired", 1, 0, 0)
    seed(ledger, unknown, OSM_RECORD)

    stats = TileDownloader(None, store=store, ledger=ledger, fetch=fake_fetch).retry_failed()

    assert fake_fetch.calls == [OSM_URL]
    assert stats["failed"] == 1
    assert ledger.drain_all() == [unknown]


def test_stopped_retry_keeps_unattempted_records(store, ledger, fake_fetch):
    records = [TileCoordinate("osm", 3, x, 0) for x in range(6)]
    seed(ledger, *records)
    stop = threading.Event()
    dl = TileDownloader(
        None, store=store, ledger=ledger, fetch=fake_fetch, concurrency=2,
        stop_event=stop, progress_callback=lambda completed, total: stop.set(),
    )

    dl.retry_failed()

    assert len(fake_fetch.calls) == 2
    assert ledger.drain_all() == records[2:]


def test_retry_before_and_after_normal_run(store, ledger):
    failing = "https://tile.openstreetmap.org/1/1/0.png"
    dl = TileDownloader("osm", store=store, ledger=ledger, fetch=FakeFetch(fail_urls=[failing]))
    dl.download_zoom_range(1)
    assert ledger.drain_all() == [TileCoordinate("osm", 1, 1, 0, "ru")]

    fetch = FakeFetch()
    dl = TileDownloader("osm", store=store, ledger=ledger, fetch=fetch)
    dl.retry_failed()
    dl.download_zoom_range(1)

    assert fetch.calls == [failing]
    assert not ledger.path.exists()
