import threading

import pytest

from lead_importer.distribution import DistributionAssigner, DistributionMode


@pytest.mark.parametrize("leads", [1, 2, 3, 7, 9, 10, 31])
@pytest.mark.parametrize("members", [1, 2, 3, 5])
def test_auto_distribution_is_balanced(leads, members):
    member_ids = [f"sdr-{index}" for index in range(members)]
    assigner = DistributionAssigner(DistributionMode.AUTO, member_ids=member_ids)

    assigned = []
    for _ in range(leads):
        assigned.append(assigner.assign())
        assigner.confirm(assigned[-1])

    counts = assigner.counts()
    assert sum(counts.values()) == leads
    assert max(counts.values()) - min(counts.values()) <= 1
    assert assigned[:members] == member_ids[: len(assigned[:members])]
    assert assigner.cursor == leads


def test_auto_distribution_follows_roster_order():
    assigner = DistributionAssigner(DistributionMode.AUTO, member_ids=["a", "b", "c"])

    assigned = [assigner.assign() for _ in range(5)]
    for member_id in assigned:
        assigner.confirm(member_id)

    assert assigned == ["a", "b", "c", "a", "b"]
    assert assigner.counts() == {"a": 2, "b": 2, "c": 1}


def test_auto_distribution_is_balanced_across_threads():
    assigner = DistributionAssigner(DistributionMode.AUTO, member_ids=["a", "b", "c"])

    def worker():
        for _ in range(100):
            assigner.confirm(assigner.assign())

    threads = [threading.Thread(target=worker) for _ in range(6)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert assigner.counts() == {"a": 200, "b": 200, "c": 200}


def test_fixed_and_none_modes():
    fixed = DistributionAssigner(DistributionMode.FIXED, fixed_assignee_id="sdr-9")
    none = DistributionAssigner(DistributionMode.NONE)

    assert [fixed.assign() for _ in range(3)] == ["sdr-9"] * 3
    assert none.assign() is None
    assert fixed.counts() == {}


def test_invalid_configurations_raise():
    with pytest.raises(ValueError):
        DistributionAssigner(DistributionMode.AUTO)
    with pytest.raises(ValueError):
        DistributionAssigner(DistributionMode.FIXED)


def test_from_options_prefers_auto_then_fixed():
    assert DistributionAssigner.from_options(True, ["a"], "sdr-9").mode is DistributionMode.AUTO
    assert DistributionAssigner.from_options(False, ["a"], "sdr-9").mode is DistributionMode.FIXED
    assert DistributionAssigner.from_options(False, ["a"], None).mode is DistributionMode.NONE
    with pytest.raises(ValueError):
        DistributionAssigner.from_options(True, [], "sdr-9")


def test_unconfirmed_assignments_are_not_credited():
    assigner = DistributionAssigner(DistributionMode.AUTO, member_ids=["a", "b"])

    assigner.confirm(assigner.assign())
    assigner.assign()

    assert assigner.cursor == 2
    assert assigner.counts() == {"a": 1, "b": 0}


def test_confirm_is_a_no_op_outside_auto_mode():
    fixed = DistributionAssigner(DistributionMode.FIXED, fixed_assignee_id="sdr-9")

    fixed.confirm(fixed.assign())

    assert fixed.counts() == {}
