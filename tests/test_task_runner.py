from anywheredoor_viewer.workers.task_runner import FunctionTask, TaskRunner


def _drain(qapp, runner):
    assert runner.wait(5000)
    for _ in range(10):
        qapp.processEvents()


def test_results_delivered_to_callback(qapp):
    runner = TaskRunner(max_threads=2)
    results = []
    runner.submit(FunctionTask(sum, [1, 2, 3]), results.append)
    _drain(qapp, runner)
    assert results == [6]
    assert runner.active_count == 0


def test_failures_delivered_as_messages(qapp):
    runner = TaskRunner()
    failures = []

    def explode():
        raise ValueError("catalogue offline")

    runner.submit(FunctionTask(explode), on_failed=failures.append)
    _drain(qapp, runner)
    assert failures == ["catalogue offline"]
