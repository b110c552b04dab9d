import pytest

from multicore_sched.config import SimulationConfig
from multicore_sched.errors import InvalidStateError, PlacementError, SimulationError
from multicore_sched.events import SimulationEvent
from multicore_sched.models import CoreType, Processor
from multicore_sched.policies import schedule_fcfs
from multicore_sched.scheduler import Scheduler


def _one_core(policy=schedule_fcfs, core=CoreType.EFFICIENCY):
    return Scheduler([Processor(0, core)], policy)


def _scripted(plan):
    """Policy placing plan[tick] (pids) on processors in order."""

    def policy(eligible, processors, tick):
        by_pid = {p.pid: p for p in eligible}
        return {by_pid[pid]: cpu for pid, cpu in zip(plan.get(tick, []), processors)}

    return policy


def _history(sched, cpu):
    return [
        None if p is None else p.pid
        for p in (sched.process_at_time(cpu, t) for t in range(sched.get_elapsed_time()))
    ]


def test_single_process_runs_to_completion():
    sched = _one_core()
    p = sched.create_process(arrival_time=0, workload=3)

    assert sched.run() == 3
    assert sched.finished
    assert p.burst_time == 3
    assert p.waiting_time == 0
    assert sched.completion_time(p) == 3


def test_fcfs_two_processes_on_one_core():
    sched = _one_core()
    first = sched.create_process(arrival_time=0, workload=2)
    second = sched.create_process(arrival_time=0, workload=1)
    sched.run()

    cpu = sched.get_processor_list()[0]
    assert _history(sched, cpu) == [0, 0, 1]
    assert first.turnaround_time == 2
    assert second.waiting_time == 2
    assert second.turnaround_time == 3


def test_ticks_before_arrival_are_idle_and_not_waiting():
    sched = _one_core()
    p = sched.create_process(arrival_time=2, workload=1)
    sched.run()

    assert _history(sched, sched.get_processor_list()[0]) == [None, None, 0]
    assert p.waiting_time == 0


def test_performance_core_works_faster():
    sched = _one_core(core=CoreType.PERFORMANCE)
    p = sched.create_process(arrival_time=0, workload=4)
    assert sched.run() == 2
    assert p.burst_time == 2


def test_preempted_process_is_halted():
    sched = _one_core(policy=_scripted({0: [0], 1: [0], 2: [1], 3: [0], 4: [0]}))
    a = sched.create_process(arrival_time=0, workload=4)
    b = sched.create_process(arrival_time=0, workload=1)

    for _ in range(3):
        sched.step()
    assert a.continuous_burst_time == 0
    assert a.burst_time == 2
    assert a.waiting_time == 1
    assert b.waiting_time == 2

    sched.step()
    assert a.continuous_burst_time == 1


def test_lifecycle_events_fire_once_around_the_run():
    sched = _one_core()
    sched.create_process(arrival_time=0, workload=2)
    events = []
    sched.subscribe(SimulationEvent.STARTED, lambda e: events.append((e.kind, e.tick, sched.get_elapsed_time())))
    sched.subscribe(SimulationEvent.FINISHED, lambda e: events.append((e.kind, e.tick, sched.get_elapsed_time())))

    sched.run()

    assert events == [
        (SimulationEvent.STARTED, 0, 0),
        (SimulationEvent.FINISHED, 2, 2),
    ]


def test_no_ticks_after_finish():
    sched = _one_core()
    sched.create_process(arrival_time=0, workload=1)
    sched.run()

    with pytest.raises(InvalidStateError):
        sched.step()
    assert len(sched.ledger.processor_record(sched.get_processor_list()[0])) == 1


def test_empty_run_finishes_immediately():
    sched = _one_core()
    kinds = []
    sched.subscribe(SimulationEvent.STARTED, lambda e: kinds.append(e.kind))
    sched.subscribe(SimulationEvent.FINISHED, lambda e: kinds.append(e.kind))

    assert sched.run() == 0
    assert kinds == [SimulationEvent.STARTED, SimulationEvent.FINISHED]


def test_completion_listener_sees_recorded_tick():
    sched = _one_core()
    p = sched.create_process(arrival_time=0, workload=2)
    cpu = sched.get_processor_list()[0]
    seen = []
    p.add_completion_listener(lambda: seen.append(sched.process_at_time(cpu, 1)))
    sched.run()
    assert seen == [p]


def test_pids_follow_creation_order_per_run():
    first_run = _one_core()
    second_run = _one_core()
    assert [first_run.create_process(0, 1).pid for _ in range(3)] == [0, 1, 2]
    assert second_run.create_process(0, 1).pid == 0


def test_cannot_add_processes_after_start():
    sched = _one_core()
    sched.create_process(arrival_time=0, workload=2)
    sched.step()
    with pytest.raises(InvalidStateError):
        sched.create_process(arrival_time=0, workload=1)


def test_run_gives_up_after_max_ticks():
    sched = _one_core(policy=lambda eligible, processors, tick: {})
    sched.create_process(arrival_time=0, workload=1)
    with pytest.raises(SimulationError):
        sched.run(max_ticks=5)
    assert sched.get_elapsed_time() == 5


def test_ineligible_placement_is_rejected():
    sched = _one_core()
    sched.create_process(arrival_time=0, workload=1)
    late = sched.create_process(arrival_time=5, workload=1)
    sched.policy = lambda eligible, processors, tick: {late: processors[0]}

    with pytest.raises(PlacementError):
        sched.step()


def test_double_booked_processor_is_rejected():
    sched = _one_core(policy=lambda eligible, processors, tick: {p: processors[0] for p in eligible})
    sched.create_process(arrival_time=0, workload=1)
    sched.create_process(arrival_time=0, workload=1)
    with pytest.raises(PlacementError):
        sched.step()


def test_mission_process_prefers_performance_core():
    sched = Scheduler(
        [Processor(0, CoreType.PERFORMANCE), Processor(1, CoreType.EFFICIENCY)],
        schedule_fcfs,
    )
    background = sched.create_process(arrival_time=0, workload=4)
    mission = sched.create_process(arrival_time=0, workload=4, mission=True)
    sched.step()

    p_core, e_core = sched.get_processor_list()
    assert sched.process_at_time(p_core, 0) is mission
    assert sched.process_at_time(e_core, 0) is background


def test_scheduler_from_config():
    config = SimulationConfig(performance_cores=1, efficiency_cores=3, policy="rr", quantum=1)
    sched = Scheduler.from_config(config)
    cores = [p.core for p in sched.get_processor_list()]
    assert cores == [CoreType.PERFORMANCE] + [CoreType.EFFICIENCY] * 3
    assert sched.work_rates[CoreType.PERFORMANCE] == 2


def test_duplicate_processor_ids_rejected():
    with pytest.raises(ValueError):
        Scheduler([Processor(0, CoreType.EFFICIENCY), Processor(0, CoreType.PERFORMANCE)], schedule_fcfs)
