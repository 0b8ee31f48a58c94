import random

from allocopt.reconcile import (
    ALLOCATE,
    REALLOCATE,
    UNALLOCATE,
    Allocate,
    Reallocate,
    Unallocate,
    reconcile,
    summarize,
)

from conftest import make_hash


def test_overlap_is_reallocated_and_the_rest_split():
    h1, h2, h3 = make_hash(1), make_hash(2), make_hash(3)
    actions = reconcile({h1: 100.0, h2: 50.0}, {h2: "0x2", h3: "0x3"})
    assert actions == [
        Reallocate(h2, "0x2", 50.0),
        Allocate(h1, 100.0),
        Unallocate(h3, "0x3"),
    ]


def test_frozen_hashes_produce_no_action():
    h1, h2, h3 = make_hash(1), make_hash(2), make_hash(3)
    actions = reconcile({h1: 100.0, h2: 40.0}, {h2: "0x2", h3: "0x3"}, frozenlist=[h2, h3])
    assert actions == [Allocate(h1, 100.0)]


def test_empty_proposal_closes_everything_open():
    h1, h2 = make_hash(1), make_hash(2)
    actions = reconcile({}, {h1: "0x1", h2: "0x2"})
    assert actions == [Unallocate(h1, "0x1"), Unallocate(h2, "0x2")]


def test_unchanged_amount_is_still_reallocated():
    h1 = make_hash(1)
    assert reconcile({h1: 10.0}, {h1: "0x1"}) == [Reallocate(h1, "0x1", 10.0)]


def test_nothing_in_nothing_out():
    assert reconcile({}, {}) == []
    assert summarize([]) == {REALLOCATE: 0, ALLOCATE: 0, UNALLOCATE: 0}


def test_every_hash_lands_in_exactly_one_bucket():
    rng = random.Random(20240611)
    universe = [make_hash(seed) for seed in range(1, 40)]
    for _ in range(50):
        proposed = {h: rng.uniform(1, 1000) for h in rng.sample(universe, rng.randint(0, 20))}
        existing = {h: f"0x{idx:x}" for idx, h in enumerate(rng.sample(universe, rng.randint(0, 20)))}
        frozen = set(rng.sample(universe, rng.randint(0, 5)))

        actions = reconcile(proposed, existing, frozen)

        touched = [action.ipfshash for action in actions]
        assert len(touched) == len(set(touched))
        assert set(touched) == (set(proposed) | set(existing)) - frozen
        kinds = [action.kind for action in actions]
        assert kinds == sorted(kinds, key=[REALLOCATE, ALLOCATE, UNALLOCATE].index)
        for action in actions:
            if isinstance(action, Reallocate):
                assert action.ipfshash in proposed and action.ipfshash in existing
                assert action.allocation_id == existing[action.ipfshash]
            elif isinstance(action, Allocate):
                assert action.ipfshash in proposed and action.ipfshash not in existing
                assert action.amount == proposed[action.ipfshash]
            else:
                assert action.ipfshash in existing and action.ipfshash not in proposed


def test_summarize_counts_by_kind():
    h1, h2, h3 = make_hash(1), make_hash(2), make_hash(3)
    actions = reconcile({h1: 1.0, h2: 2.0}, {h2: "0x2", h3: "0x3"})
    assert summarize(actions) == {REALLOCATE: 1, ALLOCATE: 1, UNALLOCATE: 1}


def test_extra_allocations_on_one_deployment_are_closed():
    h1, h2 = make_hash(1), make_hash(2)
    actions = reconcile({h2: 100.0}, {h1: "0x1"}, surplus=[(h1, "0x2")])
    assert actions == [Allocate(h2, 100.0), Unallocate(h1, "0x1"), Unallocate(h1, "0x2")]


def test_extra_allocations_are_closed_even_when_the_deployment_is_kept():
    h1 = make_hash(1)
    actions = reconcile({h1: 10.0}, {h1: "0x1"}, surplus=[(h1, "0x2")])
    assert actions == [Reallocate(h1, "0x1", 10.0), Unallocate(h1, "0x2")]


def test_extra_allocations_on_frozen_deployments_stay_open():
    h1 = make_hash(1)
    assert reconcile({}, {}, frozenlist=[h1], surplus=[(h1, "0x2")]) == []
