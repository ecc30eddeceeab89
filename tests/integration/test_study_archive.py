"""
Integration tests for the study archive over both stores.

Covers saving, history ordering, updates, deletes and reward claims.
"""

import pytest

from oracle_store.errors import NoActiveSession, StoreUnavailable


@pytest.mark.asyncio
async def test_save_requires_session(async_service, sample_sources, sample_guide):
    with pytest.raises(NoActiveSession):
        await async_service.archive.save_study_session(sample_sources, sample_guide)


@pytest.mark.asyncio
async def test_saved_session_round_trips_payload(async_service, sample_sources, sample_guide):
    ada = async_service.accounts.signup("ada@example.com", "pw", "Ada")

    session_id = await async_service.archive.save_study_session(sample_sources, sample_guide)
    history = await async_service.archive.get_study_history(ada.id)

    assert [s.id for s in history] == [session_id]
    assert history[0].user_id == ada.id
    assert history[0].sources == sample_sources
    assert history[0].guide == sample_guide
    assert history[0].reward_claimed is False


@pytest.mark.asyncio
async def test_history_newest_first_and_per_user(async_service, sample_sources, sample_guide):
    bob = async_service.accounts.signup("bob@example.com", "pw", "Bob")
    bob_session = await async_service.archive.save_study_session(sample_sources, sample_guide)
    ada = async_service.accounts.signup("ada@example.com", "pw", "Ada")
    older = await async_service.archive.save_study_session(sample_sources, sample_guide)
    newer = await async_service.archive.save_study_session(sample_sources, {"title": "Genetics"})

    ada_history = await async_service.archive.get_study_history(ada.id)
    bob_history = await async_service.archive.get_study_history(bob.id)

    assert [s.id for s in ada_history] == [newer, older]
    assert [s.id for s in bob_history] == [bob_session]


@pytest.mark.asyncio
async def test_history_for_unknown_user_is_empty(async_service):
    assert await async_service.archive.get_study_history("nobody") == []


@pytest.mark.asyncio
async def test_update_overwrites_session(async_service, sample_sources, sample_guide):
    ada = async_service.accounts.signup("ada@example.com", "pw", "Ada")
    await async_service.archive.save_study_session(sample_sources, sample_guide)
    session = (await async_service.archive.get_study_history(ada.id))[0]

    session.reward_claimed = True
    session.guide = {"title": "Revised"}
    await async_service.archive.update_study_session(session)

    stored = (await async_service.archive.get_study_history(ada.id))[0]
    assert stored.reward_claimed is True
    assert stored.guide == {"title": "Revised"}
    assert stored.sources == sample_sources


@pytest.mark.asyncio
async def test_delete_removes_session(async_service, sample_sources, sample_guide):
    ada = async_service.accounts.signup("ada@example.com", "pw", "Ada")
    keep = await async_service.archive.save_study_session(sample_sources, sample_guide)
    drop = await async_service.archive.save_study_session(sample_sources, sample_guide)

    await async_service.archive.delete_study_session(drop)
    await async_service.archive.delete_study_session(drop)

    assert [s.id for s in await async_service.archive.get_study_history(ada.id)] == [keep]


@pytest.mark.asyncio
async def test_claim_reward_once(async_service, sample_sources, sample_guide):
    ada = async_service.accounts.signup("ada@example.com", "pw", "Ada")
    session_id = await async_service.archive.save_study_session(sample_sources, sample_guide)

    claimed = await async_service.archive.claim_session_reward(session_id)
    again = await async_service.archive.claim_session_reward(session_id)

    assert claimed is not None and claimed.reward_claimed is True
    assert again is None
    assert async_service.accounts.get_current_user().credits == 50
    assert [u.credits for u in async_service.accounts.get_all_users() if u.id == ada.id] == [50]
    history = await async_service.archive.get_study_history(ada.id)
    assert history[0].reward_claimed is True


@pytest.mark.asyncio
async def test_claim_reward_custom_amount(async_service, sample_sources, sample_guide):
    async_service.accounts.signup("ada@example.com", "pw", "Ada")
    session_id = await async_service.archive.save_study_session(sample_sources, sample_guide)

    await async_service.archive.claim_session_reward(session_id, amount=15)

    assert async_service.accounts.get_current_user().credits == 15


@pytest.mark.asyncio
async def test_cannot_claim_someone_elses_session(async_service, sample_sources, sample_guide):
    async_service.accounts.signup("bob@example.com", "pw", "Bob")
    bob_session = await async_service.archive.save_study_session(sample_sources, sample_guide)
    async_service.accounts.signup("ada@example.com", "pw", "Ada")

    assert await async_service.archive.claim_session_reward(bob_session) is None
    assert async_service.accounts.get_current_user().credits == 0


@pytest.mark.asyncio
async def test_claim_requires_session(async_service):
    with pytest.raises(NoActiveSession):
        await async_service.archive.claim_session_reward("anything")


@pytest.mark.asyncio
async def test_failed_claim_then_retry_credits_once(async_service, monkeypatch, sample_sources, sample_guide):
    async_service.accounts.signup("ada@example.com", "pw", "Ada")
    session_id = await async_service.archive.save_study_session(sample_sources, sample_guide)

    store = async_service.document_store
    real_put = store.put
    calls = {"n": 0}

    async def flaky_put(doc):
        calls["n"] += 1
        if calls["n"] == 1:
            raise StoreUnavailable("disk full")
        return await real_put(doc)

    monkeypatch.setattr(store, "put", flaky_put)

    with pytest.raises(StoreUnavailable):
        await async_service.archive.claim_session_reward(session_id)
    assert async_service.accounts.get_current_user().credits == 0

    await async_service.archive.claim_session_reward(session_id)
    await async_service.archive.claim_session_reward(session_id)

    assert async_service.accounts.get_current_user().credits == 50


@pytest.mark.asyncio
async def test_claim_looks_up_session_by_id(async_service, monkeypatch, sample_sources, sample_guide):
    async_service.accounts.signup("ada@example.com", "pw", "Ada")
    session_id = await async_service.archive.save_study_session(sample_sources, sample_guide)

    async def no_scan():
        raise AssertionError("claim should not list the whole collection")

    monkeypatch.setattr(async_service.document_store, "get_all", no_scan)

    claimed = await async_service.archive.claim_session_reward(session_id)

    assert claimed.id == session_id
    assert await async_service.archive.claim_session_reward("missing") is None
