from datetime import datetime, timedelta, timezone

from shoplist.models import RefreshToken
from shoplist.repositories.refresh_token_repository import RefreshTokenRepository

repo = RefreshTokenRepository()


def add_token(db, user, token_hash):
    return repo.save(db, RefreshToken.create(
        user.id, token_hash, datetime.now(timezone.utc) + timedelta(days=1)))


def test_save_assigns_id_and_find_by_hash(db, make_user):
    user = make_user()
    token = add_token(db, user, "hash-1")
    db.commit()

    assert token.id is not None
    assert repo.find_by_hash(db, "hash-1").id == token.id
    assert repo.find_by_id(db, token.id).tokenHash == "hash-1"
    assert repo.find_by_hash(db, "missing") is None


def test_revoke_if_active_only_succeeds_once(db, make_user):
    user = make_user()
    token = add_token(db, user, "hash-1")
    db.commit()
    now = datetime.now(timezone.utc)

    assert repo.revoke_if_active(db, token.id, now, replaced_by_id=99) is True
    assert repo.revoke_if_active(db, token.id, now) is False
    db.commit()

    stored = repo.find_by_id(db, token.id)
    assert stored.revokedAt is not None
    assert stored.replacedByTokenId == 99


def test_iter_lineage_follows_successors(db, make_user):
    user = make_user()
    first = add_token(db, user, "hash-1")
    second = add_token(db, user, "hash-2")
    third = add_token(db, user, "hash-3")
    first.replacedByTokenId = second.id
    second.replacedByTokenId = third.id
    db.commit()

    assert [t.id for t in repo.iter_lineage(db, first)] == [second.id, third.id]
    assert list(repo.iter_lineage(db, third)) == []


def test_iter_lineage_stops_on_cycle_and_missing_link(db, make_user):
    user = make_user()
    first = add_token(db, user, "hash-1")
    second = add_token(db, user, "hash-2")
    first.replacedByTokenId = second.id
    second.replacedByTokenId = first.id
    db.commit()
    assert [t.id for t in repo.iter_lineage(db, first)] == [second.id]

    second.replacedByTokenId = 12345
    db.commit()
    assert [t.id for t in repo.iter_lineage(db, first)] == [second.id]


def test_find_all_and_delete_all(db, make_user):
    user = make_user()
    add_token(db, user, "hash-1")
    add_token(db, user, "hash-2")
    db.commit()

    assert [t.tokenHash for t in repo.find_all(db)] == ["hash-1", "hash-2"]
    assert repo.delete_all(db) == 2
    db.commit()
    assert repo.find_all(db) == []
