import asyncio


async def run_with_concurrency(tasks, limit: int) -> list:
    """
    Run zero-argument coroutine factories with at most `limit` in flight.

    Results come back in the order of `tasks`. The first failure is raised
    as soon as it happens; tasks already running are left to finish on
    their own and their results are discarded.
    """
    if limit < 1:
        raise ValueError(f"limit must be a positive integer, got {limit}")

    tasks = list(tasks)
    if not tasks:
        return []

    results = [None] * len(tasks)
    loop = asyncio.get_running_loop()
    done = loop.create_future()
    state = {"launched": 0, "completed": 0}

    def launch_next():
        while (
            not done.done()
            and state["launched"] < len(tasks)
            and state["launched"] - state["completed"] < limit
        ):
            index = state["launched"]
            state["launched"] += 1
            try:
                future = asyncio.ensure_future(tasks[index]())
            except Exception as e:
                done.set_exception(e)
                return
            future.add_done_callback(lambda f, i=index: on_done(i, f))

    def on_done(index, future):
        if future.cancelled():
            if not done.done():
                done.set_exception(asyncio.CancelledError())
            return
        exc = future.exception()
        if exc is not None:
            if not done.done():
                done.set_exception(exc)
            return
        results[index] = future.result()
        state["completed"] += 1
        if state["completed"] == len(tasks):
            if not done.done():
                done.set_result(results)
            return
        launch_next()

    launch_next()
    return await done
