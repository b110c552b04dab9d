from rich.console import Console

from multicore_sched.gantt import build_rich_timeline, process_color, render_timeline
from multicore_sched.models import CoreType, Process, Processor
from multicore_sched.policies import schedule_fcfs
from multicore_sched.scheduler import Scheduler
from multicore_sched.timeline import snapshot


def _frame(window_size=20):
    sched = Scheduler([Processor(0, CoreType.EFFICIENCY)], schedule_fcfs)
    sched.create_process(arrival_time=0, workload=2)
    sched.create_process(arrival_time=0, workload=1)
    sched.run()
    return snapshot(sched, window_size)


def test_render_timeline_plain_text():
    lines = render_timeline(_frame()).splitlines()
    assert lines[0] == "Timeline:"
    assert lines[1] == "CPU0 E-Core |0=1|"
    assert lines[2].strip() == "0 2"


def test_render_timeline_marks_idle_ticks():
    sched = Scheduler([Processor(0, CoreType.PERFORMANCE)], schedule_fcfs)
    sched.create_process(arrival_time=2, workload=2)
    sched.run()
    assert "|..0|" in render_timeline(snapshot(sched, 20))


def test_rich_timeline_lists_every_core():
    console = Console(record=True, width=100)
    console.print(build_rich_timeline(_frame()))
    text = console.export_text()
    assert "CPU0 E-Core" in text
    assert "t=3" in text


def test_rich_timeline_before_start():
    sched = Scheduler([Processor(0, CoreType.EFFICIENCY)], schedule_fcfs)
    console = Console(record=True, width=100)
    console.print(build_rich_timeline(snapshot(sched, 20)))
    assert "No execution yet" in console.export_text()


def test_mission_and_background_palettes_differ():
    mission = Process(0, arrival_time=0, workload=1, mission=True)
    background = Process(0, arrival_time=0, workload=1)
    assert process_color(mission) != process_color(background)
