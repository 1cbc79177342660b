import httpx
import pytest
import pytest_asyncio

from conftest import FakeFetcher, insert_rows
from genshin_dictionary.config import settings
from genshin_dictionary.database import get_db
from genshin_dictionary.dictionary.constants import Language, locator_for
from genshin_dictionary.dictionary.dependencies import get_refresher
from genshin_dictionary.dictionary.refresh import DictionaryRefresher
from genshin_dictionary.main import app

PREFIX = f"{settings.API_V1_STR}/dictionary"


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    fetcher = FakeFetcher({
        locator_for(Language.CHS): {10: "原石", 11: "原石"},
        locator_for(Language.EN): {10: "Primogem", 11: "Primogem"},
    }, failing={locator_for(Language.JP)})
    refresher = DictionaryRefresher(session_factory, fetcher, languages=[Language.CHS, Language.EN])

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_refresher] = lambda: refresher
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        client.refresher = refresher
        yield client
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_languages_in_catalog_order(client):
    response = await client.get(f"{PREFIX}/languages")
    body = response.json()
    assert response.status_code == 200
    assert body[0] == {"language": "chs", "url": locator_for(Language.CHS)}
    assert len(body) == len(Language)


@pytest.mark.asyncio
async def test_search_and_entry(client, session_factory):
    await insert_rows(session_factory, [
        (5, Language.EN, "Paimon"),
        (5, Language.CHS, "派蒙"),
        (6, Language.EN, "Paimon's Bargains"),
        (7, Language.EN, "100% Mora"),
    ])

    response = await client.get(f"{PREFIX}/search", params={"query": "paimon", "language": "en"})
    body = response.json()
    assert response.status_code == 200
    assert body["total"] == 2
    assert [item["vocabulary_id"] for item in body["results"]] == [5, 6]

    response = await client.get(f"{PREFIX}/search", params={"query": "0%"})
    assert [item["vocabulary_id"] for item in response.json()["results"]] == [7]

    response = await client.get(f"{PREFIX}/entries/5")
    assert response.status_code == 200
    assert [t["language"] for t in response.json()["translations"]] == ["chs", "en"]


@pytest.mark.asyncio
async def test_missing_entry_is_404(client):
    response = await client.get(f"{PREFIX}/entries/123456")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_refresh_endpoint_and_stats(client):
    response = await client.post(f"{PREFIX}/refresh")
    body = response.json()
    assert response.status_code == 200
    assert body["total_inserted"] == 4
    assert body["removed_rows"] == 2

    response = await client.get(f"{PREFIX}/stats")
    counts = {item["language"]: item["count"] for item in response.json()["languages"]}
    assert response.json()["total"] == 2
    assert counts["chs"] == 1 and counts["en"] == 1 and counts["jp"] == 0


@pytest.mark.asyncio
async def test_refresh_endpoint_conflict_while_running(client):
    async with client.refresher._lock:
        response = await client.post(f"{PREFIX}/refresh")
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_refresh_endpoint_reports_failed_phase(client, session_factory):
    client.refresher.languages = [Language.CHS, Language.JP]

    response = await client.post(f"{PREFIX}/refresh")

    assert response.status_code == 502
    assert "fetch [jp]" in response.json()["detail"]
