import pytest

from conftest import insert_rows, read_rows
from genshin_dictionary.dictionary.constants import Language
from sqlalchemy.dialects import postgresql

from genshin_dictionary.dictionary.reconciler import (
    Reconciler,
    build_postgres_dedup_statement,
    build_signatures,
    encode_signature,
    find_redundant_ids,
    signature_digest,
)

CHS, CHT, EN, JP = Language.CHS, Language.CHT, Language.EN, Language.JP


def test_signature_follows_catalog_order():
    rows = [(5, JP, "旅人"), (5, EN, "Traveler"), (5, CHS, "旅行者")]
    assert build_signatures(rows) == {5: ((CHS, "旅行者"), (EN, "Traveler"), (JP, "旅人"))}


def test_smallest_id_is_canonical():
    rows = [
        (30, CHS, "派蒙"), (30, EN, "Paimon"),
        (10, CHS, "派蒙"), (10, EN, "Paimon"),
        (20, CHS, "派蒙"), (20, EN, "Paimon"),
    ]
    assert find_redundant_ids(rows) == {20, 30}


def test_partial_overlap_never_collides():
    rows = [
        (1, CHS, "摩拉"), (1, EN, "Mora"),
        (2, CHS, "摩拉"),
        (3, CHS, "摩拉"), (3, EN, "Mora "),
    ]
    assert find_redundant_ids(rows) == set()


def test_same_text_in_other_language_is_not_a_duplicate():
    rows = [(1, CHS, "OK"), (2, CHT, "OK")]
    assert find_redundant_ids(rows) == set()


def test_joined_text_ambiguity_is_not_a_duplicate():
    rows = [
        (1, CHS, "a, b"), (1, EN, "c"),
        (2, CHS, "a"), (2, EN, "b, c"),
    ]
    assert find_redundant_ids(rows) == set()


def test_encoding_is_unambiguous():
    left = ((CHS, "a:1:b"),)
    right = ((CHS, "a"), (CHT, "b"))
    assert encode_signature(((CHS, "OK"),)) == "chs:2:OK"
    assert encode_signature(left) != encode_signature(right)
    assert signature_digest(((CHS, "OK"),)) != signature_digest(((CHT, "OK"),))
    assert len(signature_digest(left)) == 32


def test_postgres_statement_groups_in_the_database():
    statement = build_postgres_dedup_statement()
    sql = str(statement.compile(dialect=postgresql.dialect()))

    assert sql.startswith("DELETE FROM dictionary_items")
    assert "NOT IN" in sql
    assert "string_agg" in sql
    assert "ORDER BY CASE" in sql
    assert "min(signatures.vocabulary_id)" in sql
    assert "GROUP BY signatures.signature" in sql


@pytest.mark.asyncio
async def test_deduplicate_keeps_smallest_id(session_factory):
    await insert_rows(session_factory, [(1, CHS, "Hello World"), (2, CHS, "Hello World")])

    removed = await Reconciler(session_factory).deduplicate()

    assert removed == 1
    assert await read_rows(session_factory) == [(1, "chs", "Hello World")]


@pytest.mark.asyncio
async def test_deduplicate_across_languages(session_factory):
    await insert_rows(session_factory, [
        (7, CHS, "风之翼"), (7, EN, "Wind Glider"),
        (3, CHS, "风之翼"), (3, EN, "Wind Glider"),
        (9, CHS, "风之翼"), (9, EN, "Glider"),
        (4, CHS, "风之翼"),
    ])

    removed = await Reconciler(session_factory, chunk_size=1).deduplicate()

    assert removed == 2
    assert await read_rows(session_factory) == [
        (3, "chs", "风之翼"), (3, "en", "Wind Glider"),
        (4, "chs", "风之翼"),
        (9, "chs", "风之翼"), (9, "en", "Glider"),
    ]


@pytest.mark.asyncio
async def test_deduplicate_is_stable_on_clean_table(session_factory):
    await insert_rows(session_factory, [(1, EN, "Paimon"), (2, EN, "Traveler")])
    reconciler = Reconciler(session_factory)

    assert await reconciler.deduplicate() == 0
    assert len(await read_rows(session_factory)) == 2


@pytest.mark.asyncio
async def test_deduplicate_handles_many_ids(session_factory):
    rows = []
    for vocabulary_id in range(1, 41):
        rows.append((vocabulary_id, CHS, f"词{vocabulary_id % 4}"))
        rows.append((vocabulary_id, EN, f"word {vocabulary_id % 4}"))
    await insert_rows(session_factory, rows)

    removed = await Reconciler(session_factory, chunk_size=7).deduplicate()

    assert removed == 72
    assert sorted({row[0] for row in await read_rows(session_factory)}) == [1, 2, 3, 4]
