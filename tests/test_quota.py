from aggregator.quota import ProviderBucket, allocate_quotas, initial_quota, redistribute


def bucket(url, quota, supply):
    return ProviderBucket(url, quota, tuple(range(supply)))


def test_initial_quota_splits_budget():
    assert initial_quota(100, 3) == 33
    assert initial_quota(100, 2) == 50
    assert initial_quota(100, 0) == 0


def test_single_pass_reclaims_shortfall_and_absorbs_a_third():
    buckets = (bucket("b", 50, 10), bucket("a", 50, 200))

    updated, remaining = redistribute(buckets, 0)

    assert [b.quota for b in updated] == [10, 64]
    assert remaining == 26
    # 输入不被修改
    assert [b.quota for b in buckets] == [50, 50]


def test_five_passes_leak_leftover_when_starved_bucket_comes_last():
    allocation = allocate_quotas([bucket("a", 50, 200), bucket("b", 50, 10)])

    # a: 50 -> 50 -> 64 -> 73 -> 79 -> 83; 剩余 40 -> 26 -> 17 -> 11 -> 7
    assert [b.quota for b in allocation.buckets] == [83, 10]
    assert allocation.leftover == 7
    assert allocation.realized == 93


def test_five_passes_with_starved_bucket_first():
    allocation = allocate_quotas([bucket("b", 50, 10), bucket("a", 50, 200)])

    assert [b.quota for b in allocation.buckets] == [10, 86]
    assert allocation.leftover == 4


def test_absorption_is_not_clamped_to_supply():
    updated, remaining = redistribute((bucket("b", 50, 0), bucket("a", 50, 51)), 0)

    assert updated[1].quota == 67
    assert updated[1].quota > updated[1].supply
    assert remaining == 33


def test_overshoot_is_returned_on_the_next_pass():
    allocation = allocate_quotas([bucket("b", 50, 0), bucket("a", 50, 51)])

    assert [b.quota for b in allocation.buckets] == [0, 51]


def test_sufficient_supply_keeps_the_whole_budget():
    allocation = allocate_quotas([bucket("a", 25, 30), bucket("b", 25, 25), bucket("c", 25, 100), bucket("d", 25, 40)])

    assert allocation.total_quota == 100
    assert allocation.leftover == 0


def test_realized_size_never_exceeds_budget():
    supplies_cases = [
        [0, 0, 0],
        [5, 100, 3],
        [1000, 0, 1000],
        [7, 7, 7, 7],
        [0, 400],
        [33, 1, 2, 90, 0],
    ]
    for shared in (0, 1, 10, 99, 100, 250):
        for supplies in supplies_cases:
            quota = initial_quota(shared, len(supplies))
            allocation = allocate_quotas([bucket(str(i), quota, s) for i, s in enumerate(supplies)])
            assert allocation.realized <= shared
            for b in allocation.buckets:
                assert min(b.quota, b.supply) <= b.supply


def test_zero_passes_leaves_quotas_untouched():
    allocation = allocate_quotas([bucket("a", 50, 0)], passes=0)

    assert allocation.buckets[0].quota == 50
    assert allocation.leftover == 0
