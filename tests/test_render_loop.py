from anywheredoor_viewer.viewer.render_loop import RenderLoop


class FrameCounter:
    def __init__(self):
        self.requests = 0

    def __call__(self):
        self.requests += 1


def test_loop_requests_one_frame_per_presentation():
    counter = FrameCounter()
    loop = RenderLoop(counter)
    loop.start()
    assert counter.requests == 1
    # A second start or a spurious schedule does not double-book.
    loop.start()
    assert counter.requests == 1
    for _ in range(5):
        loop.on_frame_presented()
    assert counter.requests == 6
    assert loop.frames_requested == 6


def test_no_frames_after_cancel():
    counter = FrameCounter()
    loop = RenderLoop(counter)
    loop.start()
    loop.cancel()
    assert not loop.active
    assert not loop.pending
    for _ in range(3):
        loop.on_frame_presented()
    assert counter.requests == 1


def test_cancel_is_idempotent_and_restartable():
    counter = FrameCounter()
    loop = RenderLoop(counter)
    loop.cancel()
    loop.start()
    loop.cancel()
    loop.cancel()
    loop.start()
    assert loop.active
    assert counter.requests == 2
