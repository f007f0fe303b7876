import logging
import time
from datetime import timedelta

from update_scheduler import clock
from update_scheduler.domain import AnchoredTask, IntervalTask, TaskList, TimeSpan, TimeUnit

logging.basicConfig(level=logging.DEBUG)


def check_for_updates() -> None:
    print(f"Checking for updates at {clock.now().isoformat()}")


def run(schedule: TaskList, rounds: int) -> bytes:
    for _ in range(rounds):
        if not schedule.has_tasks():
            print("Nothing left to schedule.")
            break
        time.sleep(max((schedule.current_task() - clock.now()).total_seconds(), 0))
        check_for_updates()
        schedule.next_task()
    return schedule.store()


def main():
    schedule = TaskList(tasks=[
        IntervalTask(loop_delta=TimeSpan(count=2, unit=TimeUnit.SECONDS), repeat_count=3),
        AnchoredTask(time_point=clock.now() + timedelta(seconds=10), focus_unit=TimeUnit.SECONDS),
    ])
    state = run(schedule, rounds=2)
    print(f"Persisted {len(state)} bytes, restarting")

    # a fresh process would load ``state`` from disk here
    run(TaskList.from_bytes(state), rounds=4)


if __name__ == "__main__":
    main()
