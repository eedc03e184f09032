from stake_yield_lab.core import Pool, Position
from stake_yield_lab.journal import Journal


def _pool() -> Pool:
    return Pool(
        pool_id=0,
        position_token="LP",
        market="M",
        allocation_weight=1,
        last_settle_time=10,
        created_at=0,
    )


def test_keep_restores_record_in_place() -> None:
    pool = _pool()
    journal = Journal()
    journal.keep(pool)
    pool.acc_reward_per_share = 99
    pool.last_settle_time = 20

    journal.rollback()

    assert pool.acc_reward_per_share == 0
    assert pool.last_settle_time == 10
    assert len(journal) == 0


def test_keep_only_and_skip() -> None:
    position = Position(pool_id=0, participant="alice", amount=5)
    journal = Journal()
    journal.keep(position, only=("amount", "reward_debt"), skip=("reward_debt",))
    position.amount = 1
    position.reward_debt = 7

    journal.rollback()

    assert position.amount == 5
    assert position.reward_debt == 7


def test_keep_entry_restores_or_removes_slots() -> None:
    mapping = {"alice": 1}
    journal = Journal()
    journal.keep_entry(mapping, "alice")
    journal.keep_entry(mapping, "bob")
    mapping["alice"] = 2
    mapping["bob"] = 3

    journal.rollback()

    assert mapping == {"alice": 1}


def test_rollback_runs_newest_first() -> None:
    calls: list[int] = []
    journal = Journal()
    journal.on_undo(lambda: calls.append(1))
    journal.on_undo(lambda: calls.append(2))
    journal.rollback()
    assert calls == [2, 1]
