import numpy as np

from permfdr.stats.fdp import count_hits, estimate_fdp, highest_rank_at_or_below, select_threshold


def test_count_hits_matches_linear_scan() -> None:
    rng = np.random.default_rng(0)
    for _ in range(50):
        p = np.sort(rng.uniform(size=int(rng.integers(0, 30))))
        p = np.round(p, 2)  # force ties
        for t in [0.0, 0.05, 0.5, 1.0, float(p[0]) if p.size else 0.3]:
            assert count_hits(p, t) == int(np.sum(p <= t))


def test_count_hits_includes_ties_at_threshold() -> None:
    assert count_hits(np.array([0.01, 0.02, 0.02, 0.5]), 0.02) == 3
    assert count_hits(np.array([0.3, 0.4]), 0.1) == 0
    assert count_hits(np.array([0.3, 0.4]), 1.0) == 2


def test_estimate_fdp_averages_hits_and_divides_by_rank() -> None:
    observed = np.array([0.01, 0.2, 0.6])
    null = np.array(
        [
            [0.005, 0.3, 0.7],  # hits: 1, 1, 2
            [0.1, 0.15, 0.9],  # hits: 0, 2, 2
        ]
    )
    mean_hits, fdp = estimate_fdp(observed, null)
    assert np.allclose(mean_hits, [0.5, 1.5, 2.0])
    assert np.allclose(fdp, [0.5, 0.75, 2.0 / 3.0])


def test_highest_rank_at_or_below() -> None:
    assert highest_rank_at_or_below(np.array([0.0, 0.2, 0.05, 0.3]), 0.1) == 2
    assert highest_rank_at_or_below(np.array([0.2, 0.3]), 0.1) == -1
    assert highest_rank_at_or_below(np.array([0.1, 0.1]), 0.1) == 1


def test_select_threshold_none_qualify() -> None:
    p = np.array([0.02, 0.3, 0.8])
    t = select_threshold(p, np.array([0.5, 0.6, 0.7]), 0.1)
    assert t == 0.01
    assert t < p.min()


def test_select_threshold_all_qualify_adds_margin() -> None:
    p = np.array([0.01, 0.2, 0.6])
    assert np.isclose(select_threshold(p, np.array([0.0, 0.01, 0.02]), 0.05), 0.65)


def test_select_threshold_all_qualify_near_one_uses_midpoint() -> None:
    p = np.array([0.01, 0.2, 0.98])
    assert np.isclose(select_threshold(p, np.array([0.0, 0.0, 0.0]), 0.05), 0.99)


def test_select_threshold_interior_midpoint() -> None:
    p = np.array([0.001, 0.004, 0.2, 0.7])
    t = select_threshold(p, np.array([0.0, 0.02, 0.4, 0.8]), 0.05)
    assert np.isclose(t, 0.102)
    assert int(np.sum(p <= t)) == 2


def test_select_threshold_permissive_target_accepts_everything() -> None:
    rng = np.random.default_rng(4)
    for _ in range(20):
        p = np.sort(rng.uniform(size=8))
        fdp = rng.uniform(0.0, 1.0, size=8)
        assert select_threshold(p, fdp, 1.0) >= p.max()


def test_select_threshold_zero_target_rejects_nothing() -> None:
    p = np.array([0.03, 0.2, 0.5])
    t = select_threshold(p, np.array([0.0, 0.1, 0.4]), 0.0)
    # rank 1 has FDP 0, so the interior branch applies
    assert np.isclose(t, 0.115)
    t = select_threshold(p, np.array([0.2, 0.1, 0.4]), 0.0)
    assert t < p.min()
