import pytest

from multicore_sched.models import CoreType, Processor
from multicore_sched.policies import POLICIES, RoundRobin, get_policy
from multicore_sched.scheduler import Scheduler


def _run(policy, workload, cores=(CoreType.EFFICIENCY,)):
    sched = Scheduler([Processor(i, c) for i, c in enumerate(cores)], policy)
    for arrival, amount in workload:
        sched.create_process(arrival_time=arrival, workload=amount)
    sched.run(max_ticks=1000)
    return sched


def _history(sched, index=0):
    cpu = sched.get_processor_list()[index]
    return [
        None if p is None else p.pid
        for p in (sched.process_at_time(cpu, t) for t in range(sched.get_elapsed_time()))
    ]


def test_fcfs_is_non_preemptive():
    sched = _run(get_policy("fcfs"), [(0, 3), (1, 1)])
    assert _history(sched) == [0, 0, 0, 1]


def test_srtf_preempts_for_shorter_job():
    sched = _run(get_policy("srtf"), [(0, 5), (1, 2)])
    assert _history(sched) == [0, 1, 1, 0, 0, 0, 0]
    assert sched.get_process_list()[0].waiting_time == 2


def test_rr_rotates_after_quantum():
    sched = _run(get_policy("rr", quantum=2), [(0, 3), (0, 2)])
    assert _history(sched) == [0, 0, 1, 1, 0]


def test_rr_keeps_running_when_nobody_waits():
    sched = _run(get_policy("rr", quantum=1), [(0, 3)])
    assert _history(sched) == [0, 0, 0]
    assert sched.get_process_list()[0].continuous_burst_time == 3


def test_policies_fill_every_core():
    sched = _run(get_policy("fcfs"), [(0, 2), (0, 2)], cores=(CoreType.EFFICIENCY, CoreType.EFFICIENCY))
    assert sched.get_elapsed_time() == 2
    assert _history(sched, 0) == [0, 0]
    assert _history(sched, 1) == [1, 1]


def test_running_process_stays_on_its_core():
    sched = _run(
        get_policy("srtf"),
        [(0, 6), (0, 6), (2, 1)],
        cores=(CoreType.EFFICIENCY, CoreType.EFFICIENCY),
    )
    # the short arrival takes over one core; the survivor does not migrate
    assert _history(sched, 0)[:2] == [0, 0]
    assert _history(sched, 1)[:2] == [1, 1]
    assert _history(sched, 0)[2] == 0
    assert _history(sched, 1)[2] == 2


def test_rr_requires_positive_quantum():
    with pytest.raises(ValueError):
        RoundRobin(0)
    with pytest.raises(ValueError):
        get_policy("rr")


def test_unknown_policy():
    with pytest.raises(ValueError):
        get_policy("lottery")


def test_every_listed_policy_builds():
    for name in POLICIES:
        assert callable(get_policy(name, quantum=2))
