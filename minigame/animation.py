"""Frame sequencer — plays a list of images onto one node at a fixed rate."""

import logging
import threading
from typing import Callable

from minigame.errors import AnimationLoadError
from minigame.renderer import ImageNode
from minigame.scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)


class FrameSequencer:
    """Loads frames through ``loader.resolve`` and plays them on ``surface``.

    Non-looping playback stops on the last frame overrun and then calls
    ``on_complete`` once. Looping playback wraps to frame 0 forever.
    """

    def __init__(
        self,
        surface,
        loader,
        scheduler: Scheduler,
        frame_rate: float,
        x: int = 0,
        y: int = 0,
        width: int | None = None,
        height: int | None = None,
        loop: bool = False,
        on_complete: Callable[[], None] | None = None,
    ):
        self.surface = surface
        self.loader = loader
        self.scheduler = scheduler
        # Rates below 1 would give an infinite or negative interval.
        self.frame_rate = max(frame_rate, 1)
        self.frame_interval_ms = 1000 / self.frame_rate
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.loop = loop
        self.on_complete = on_complete

        self.lock = threading.RLock()
        self.frames: list = []
        self.loaded = False
        self.current_frame = 0
        self.node: ImageNode | None = None
        self._interval: TimerHandle | None = None
        self._playing = False

    # ── loading ───────────────────────────────────────────────────

    def load(self, paths: list[str]) -> None:
        """Resolve every path to an image handle, all or nothing.

        Blocks until done; run it off the main thread to keep it
        asynchronous. Raises ``AnimationLoadError`` if ``paths`` is empty
        or any single path fails. A second call after success is a no-op.
        """
        with self.lock:
            if self.loaded:
                return
        try:
            frames = [self.loader.resolve(p) for p in paths]
            if not frames:
                raise AnimationLoadError("No animation frames loaded.")
        except AnimationLoadError as e:
            logger.error("Failed to load animation images: %s", e)
            raise
        except Exception as e:
            logger.error("Failed to load animation images: %s", e)
            raise AnimationLoadError(str(e)) from e

        with self.lock:
            self.frames = frames
            self.loaded = True
        logger.info("Animation loaded %d frames.", len(frames))

    # ── playback ──────────────────────────────────────────────────

    def start(self) -> None:
        with self.lock:
            if not self.loaded or not self.frames or self._playing:
                logger.warning("Animation not loaded, has no frames, or is already playing.")
                return

            if self.node is None:
                self.node = ImageNode(
                    self.frames[0], x=self.x, y=self.y,
                    width=self.width, height=self.height, name="animation",
                )
                self.surface.add_node(self.node)
            else:
                self.node.image = self.frames[0]
                self.node.visible = True

            self.current_frame = 0
            self._playing = True
            self._interval = self.scheduler.every(self.frame_interval_ms, self._tick)
        self.surface.request_redraw()

    def _tick(self) -> None:
        finished = False
        with self.lock:
            if not self._playing or self.node is None:
                self.scheduler.cancel(self._interval)
                self._interval = None
                return

            self.current_frame += 1
            if self.current_frame >= len(self.frames):
                if self.loop:
                    self.current_frame = 0
                else:
                    self.stop()
                    self.current_frame = len(self.frames) - 1
                    finished = True

            if not finished:
                frame = self.frames[self.current_frame]
                # Sparse slots keep the previous image but still redraw.
                if frame is not None:
                    self.node.image = frame

        if finished:
            if self.on_complete:
                self.on_complete()
            return
        self.surface.request_redraw()

    def stop(self) -> None:
        with self.lock:
            if self._interval is not None:
                self.scheduler.cancel(self._interval)
                self._interval = None
            self._playing = False

    def destroy(self) -> None:
        """Stop and return to the pre-load state, releasing the node."""
        with self.lock:
            self.stop()
            if self.node is not None:
                self.node.destroy()
                self.node = None
            self.frames = []
            self.loaded = False
            self.current_frame = 0

    def is_playing(self) -> bool:
        return self._playing
