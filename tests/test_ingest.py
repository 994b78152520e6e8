from __future__ import annotations

from access import Action, AllowListPolicy
from ingest import Outcome, ingest


async def test_same_caption_and_size_is_a_duplicate(catalog, policy) -> None:
    first = await ingest(catalog, policy, "f1", "Inception (2010) 720p", size=700)
    second = await ingest(catalog, policy, "f2", "Inception (2010) 720p", size=700)
    assert first.outcome is Outcome.STORED
    assert second.outcome is Outcome.DUPLICATE
    assert second.record.id == first.record.id
    assert await catalog.count_all() == 1


def test_policy_grants_privileges_to_allow_list_only() -> None:
    policy = AllowListPolicy(["@Uploader_One", "uploader_two"])
    assert policy.allows("uploader_one", Action.ACK_DUPLICATE)
    assert policy.allows("@UPLOADER_TWO", Action.REWRITE_CAPTIONS)
    assert not policy.allows("someone", Action.ACK_DUPLICATE)
    assert policy.permitted(None) == frozenset()


async def test_same_caption_other_size_is_stored(catalog, policy) -> None:
    first = await ingest(catalog, policy, "f1", "Inception 2010", size=700)
    second = await ingest(catalog, policy, "f2", "Inception 2010", size=1400)
    assert first.outcome is Outcome.STORED
    assert second.outcome is Outcome.STORED
    assert await catalog.count_all() == 2


async def test_same_file_unique_id_is_a_duplicate(catalog, policy) -> None:
    await ingest(catalog, policy, "f1", "Inception 2010", size=700, file_unique_id="AgAD1")
    again = await ingest(catalog, policy, "f9", "Inception 2010 Hindi", size=900, file_unique_id="AgAD1")
    assert again.outcome is Outcome.DUPLICATE


async def test_caption_is_normalized_before_storing(catalog, policy) -> None:
    result = await ingest(catalog, policy, "f1", "🔥 Inception.2010 @someone https://t.me/x", size=1)
    assert result.record.caption == "Inception 2010 @moviecastback"
    dup = await ingest(catalog, policy, "f2", "Inception 2010 @moviecastback", size=1)
    assert dup.outcome is Outcome.DUPLICATE


async def test_only_allow_listed_submitters_are_notified(catalog, policy) -> None:
    await ingest(catalog, policy, "f1", "Pathaan 2023", size=5)
    anon = await ingest(catalog, policy, "f2", "Pathaan 2023", size=5, submitter="random")
    admin = await ingest(catalog, policy, "f3", "Pathaan 2023", size=5, submitter="uploader_one")
    assert anon.outcome is admin.outcome is Outcome.DUPLICATE
    assert anon.notify is False
    assert admin.notify is True
