"""Minigame session — intro animation, play/skip choice, timed problem round.

Flow:
  1. ``start()`` loads the intro frames off-thread and plays them
  2. animation ends (or fails to load) -> PLAY / SKIP choice
  3a. PLAY -> countdown starts, keypad input is accepted
  3b. SKIP -> result with 0 correct answers, delivered after a short delay
  4. time runs out (or the target is reached) -> results summary
  5. ``acknowledge_results()`` -> result delivered to ``on_complete``

``on_complete`` is called at most once. ``cleanup()`` may be called in any
state and cancels every timer the session owns; a session torn down that
way never calls ``on_complete``.
"""

import logging
import random
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from minigame.animation import FrameSequencer
from minigame.config import MinigameConfig
from minigame.inputs import InputBus, InputEvent, InputKind, Subscription
from minigame.problems import Problem, ShuffleBudget, get_generator
from minigame.renderer import TextNode, timer_color
from minigame.scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

COUNTDOWN_MS = 1000
FEEDBACK_CORRECT = "#27ae60"
FEEDBACK_WRONG = "#e74c3c"
MISTAKES_SHOWN = 5

GAME_NODES = ("title", "score", "timer", "problem", "input", "feedback", "shuffles")
CHOICE_NODES = ("choice", "instructions")


class SessionState(Enum):
    INTRO = "intro"
    CHOICE = "choice"
    ACTIVE = "active"
    RESULTS = "results"
    FINISHED = "finished"


class Choice(Enum):
    PLAY = "play"
    SKIP = "skip"


@dataclass(frozen=True)
class Mistake:
    question: str
    user_answer: str
    correct_answer: int


@dataclass(frozen=True)
class MinigameResult:
    correct_answers: int
    total_problems: int
    time_remaining: int
    skipped: bool = False
    reward: int = 0


def summarize(correct: int, mistakes: list[Mistake], limit: int = MISTAKES_SHOWN) -> list[str]:
    """Lines for the results summary."""
    lines = [f"Problems Solved: {correct}"]
    if not mistakes:
        lines.append("Perfect! No mistakes.")
        return lines
    lines.append("Mistakes:")
    for m in mistakes[:limit]:
        lines.append(f"{m.question} = {m.correct_answer} (Your answer: {m.user_answer})")
    if len(mistakes) > limit:
        lines.append(f"...and {len(mistakes) - limit} more.")
    return lines


class MinigameSession:
    def __init__(
        self,
        surface,
        scheduler: Scheduler,
        on_complete: Callable[[MinigameResult], None],
        config: MinigameConfig | None = None,
        *,
        loader=None,
        inputs: InputBus | None = None,
        rng: random.Random | None = None,
        sound=None,
        executor: Executor | None = None,
    ):
        self.surface = surface
        self.scheduler = scheduler
        self.on_complete = on_complete
        self.config = config or MinigameConfig()
        self.loader = loader
        self.inputs = inputs or InputBus()
        self.rng = rng or random.Random()
        self.sound = sound
        self.generate = get_generator(self.config.problem)
        self.lock = threading.RLock()

        self.state = SessionState.INTRO
        self.time_remaining = self.config.duration
        self.correct_answers = 0
        self.total_problems = 0
        self.user_input = ""
        self.mistakes: list[Mistake] = []
        self.shuffle_budget = ShuffleBudget(self.config.shuffles)
        self.current_problem: Problem | None = None
        self.result: MinigameResult | None = None

        self.sequencer: FrameSequencer | None = None
        self._executor = executor
        self._owns_executor = executor is None
        self._load_future: Future | None = None

        self._countdown: TimerHandle | None = None
        self._feedback_timers: set[TimerHandle] = set()
        self._skip_timer: TimerHandle | None = None
        self._finish_timer: TimerHandle | None = None
        self._subscription: Subscription | None = None

        self._started = False
        self._closed = False
        self._delivered = False

        self.nodes: dict[str, TextNode] = {
            "title": TextNode("title", self.config.title, "#2c3e50", 20),
            "score": TextNode("score", self._score_text(), "#34495e", 18),
            "timer": TextNode("timer", self._timer_text(), timer_color(self.time_remaining), 20),
            "problem": TextNode("problem", "", "#2c3e50", 40),
            "input": TextNode("input", "", "#2c3e50", 32),
            "feedback": TextNode("feedback", "", FEEDBACK_CORRECT, 22),
            "shuffles": TextNode("shuffles", self._shuffles_text(), "#16a085", 14),
            "choice": TextNode("choice", "", "#2c3e50", 22),
            "instructions": TextNode("instructions", self.config.instructions, "#7f8c8d", 14),
            "results": TextNode("results", "", "#2c3e50", 16),
        }
        for node in self.nodes.values():
            node.visible = False

    # ── queries ───────────────────────────────────────────────────

    @property
    def accepting_input(self) -> bool:
        return self.state is SessionState.ACTIVE and self._countdown is not None

    @property
    def reward(self) -> int:
        return self.correct_answers * self.config.reward_per_correct

    @property
    def closed(self) -> bool:
        return self._closed

    def _score_text(self) -> str:
        return f"Tips Earned: ${self.reward}"

    def _timer_text(self) -> str:
        return f"Time: {self.time_remaining}s"

    def _shuffles_text(self) -> str:
        return f"Shuffles: {self.shuffle_budget.remaining}"

    # ── display ───────────────────────────────────────────────────

    def _set_text(self, name: str, text: str, color: str | None = None) -> None:
        node = self.nodes[name]
        node.text = text
        if color is not None:
            node.color = color

    def _show_only(self, names) -> None:
        for name, node in self.nodes.items():
            node.visible = name in names

    def _redraw(self) -> None:
        self.surface.request_redraw()

    def _play(self, sfx: str) -> None:
        if self.sound is not None:
            self.sound.play(sfx)

    # ── intro ─────────────────────────────────────────────────────

    def start(self) -> None:
        """Add the session's nodes and begin the intro animation."""
        with self.lock:
            if self._started or self.state is not SessionState.INTRO:
                logger.warning("Session already started (state=%s)", self.state.value)
                return
            self._started = True
            for node in self.nodes.values():
                self.surface.add_node(node)

            intro = self.config.intro
            if not intro.frames or self.loader is None:
                logger.debug("No intro animation configured")
                self._show_choice()
                return

            self.sequencer = FrameSequencer(
                self.surface,
                self.loader,
                self.scheduler,
                intro.frame_rate,
                loop=intro.loop,
                on_complete=self._on_intro_complete,
            )
            sequencer = self.sequencer
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="intro-load")

        future = self._executor.submit(sequencer.load, list(intro.frames))
        with self.lock:
            self._load_future = future
        future.add_done_callback(self._on_intro_loaded)

    def _on_intro_loaded(self, future: Future) -> None:
        with self.lock:
            if self.state is not SessionState.INTRO:
                # Torn down or moved on while loading.
                if self.sequencer is not None:
                    self.sequencer.destroy()
                return
            if future.cancelled():
                return
            error = future.exception()
            if error is not None:
                logger.error("Animation failed to load, skipping to choice: %s", error)
                self._show_choice()
                return
            self.sequencer.start()
            if not self.sequencer.is_playing():
                self._show_choice()

    def _on_intro_complete(self) -> None:
        with self.lock:
            if self.state is SessionState.INTRO:
                self._show_choice()

    def _show_choice(self) -> None:
        if self.sequencer is not None:
            self.sequencer.destroy()
        self.state = SessionState.CHOICE
        self._set_text("choice", f"{self.config.title}\n\nWould you like to play?\nPLAY / SKIP")
        self._show_only(CHOICE_NODES)
        logger.info("Waiting for play/skip choice")
        self._redraw()

    # ── choice ────────────────────────────────────────────────────

    def choose(self, choice: Choice) -> bool:
        """PLAY starts the timed round, SKIP ends the session with no score."""
        with self.lock:
            if self.state is not SessionState.CHOICE:
                logger.warning("Choice %s ignored in state %s", choice.value, self.state.value)
                return False
            if choice is Choice.PLAY:
                self._begin_play()
            else:
                self._skip()
            return True

    def _begin_play(self) -> None:
        if self.sequencer is not None:
            self.sequencer.destroy()
        self.time_remaining = self.config.duration
        self.user_input = ""
        self.state = SessionState.ACTIVE
        self._next_problem()

        self._set_text("timer", self._timer_text(), timer_color(self.time_remaining))
        self._set_text("score", self._score_text())
        self._set_text("input", "")
        self._set_text("feedback", "")
        self._set_text("shuffles", self._shuffles_text())
        self._show_only(GAME_NODES)

        self._countdown = self.scheduler.every(COUNTDOWN_MS, self._tick)
        if self._subscription is None:
            self._subscription = self.inputs.subscribe(self.handle_input)
        logger.info("Round started: %ds", self.time_remaining)
        self._play("start")
        self._redraw()

    def _skip(self) -> None:
        self.correct_answers = 0
        if self.sequencer is not None:
            self.sequencer.stop()
        self._unsubscribe()
        self._cancel_round_timers()
        self.result = MinigameResult(
            correct_answers=0,
            total_problems=self.total_problems,
            time_remaining=self.time_remaining,
            skipped=True,
            reward=0,
        )
        self.state = SessionState.FINISHED
        logger.info("Minigame skipped")
        self._skip_timer = self.scheduler.after(self.config.skip_delay_ms, self._emit_skip)

    def _emit_skip(self) -> None:
        with self.lock:
            self._skip_timer = None
            if self._closed:
                return
            result = self.result
        self._deliver(result)

    # ── round ─────────────────────────────────────────────────────

    def _next_problem(self) -> None:
        self.current_problem = self.generate(self.rng)
        self._set_text("problem", self.current_problem.question)

    def _tick(self) -> None:
        with self.lock:
            if not self.accepting_input:
                return
            self.time_remaining -= 1
            self._set_text("timer", self._timer_text(), timer_color(self.time_remaining))
            if self.time_remaining <= 0:
                self.time_remaining = 0
                self._end_round(time_up=True)
                return
            if self.time_remaining <= 3:
                self._play("tick")
            self._redraw()

    def handle_input(self, event: InputEvent) -> None:
        """Digit / delete / submit while the countdown runs. Ignored otherwise."""
        with self.lock:
            if not self.accepting_input:
                logger.warning("Input %s ignored in state %s", event.kind.value, self.state.value)
                return

            if event.kind is InputKind.SUBMIT:
                if self.user_input:
                    self._check_answer()
                return
            if event.kind is InputKind.DELETE:
                self.user_input = self.user_input[:-1]
            elif event.kind is InputKind.DIGIT:
                if not (len(event.value) == 1 and event.value.isdigit()):
                    return
                if len(self.user_input) >= self.config.max_input_length:
                    return
                self.user_input += event.value
            self._set_text("input", self.user_input)
            self._redraw()

    def _check_answer(self) -> None:
        raw = self.user_input
        problem = self.current_problem
        try:
            answer = int(raw)
        except ValueError:
            answer = None

        self.total_problems += 1
        if answer == problem.answer:
            self.correct_answers += 1
            self._set_text("feedback", f"Correct! +${self.config.reward_per_correct} Tip ✓",
                           FEEDBACK_CORRECT)
            self._play("correct")
        else:
            self._set_text("feedback", "Wrong! ✗", FEEDBACK_WRONG)
            self.mistakes.append(Mistake(problem.question, raw, problem.answer))
            self._play("wrong")

        self._set_text("score", self._score_text())
        self.user_input = ""
        self._set_text("input", "")

        target = self.config.target_correct
        if target is not None and self.correct_answers >= target:
            self.scheduler.cancel(self._countdown)
            self._countdown = None
            self._unsubscribe()
            self._finish_timer = self.scheduler.after(self.config.feedback_delay_ms,
                                                      self._finish_early)
            self._redraw()
            return

        # Input is not locked during feedback; each submit gets its own timer.
        def _after():
            self._after_feedback(handle)

        handle = self.scheduler.after(self.config.feedback_delay_ms, _after)
        self._feedback_timers.add(handle)
        self._redraw()

    def _after_feedback(self, handle: TimerHandle) -> None:
        with self.lock:
            self._feedback_timers.discard(handle)
            if self.state is not SessionState.ACTIVE:
                return
            self._set_text("feedback", "")
            self._next_problem()
            self._redraw()

    def shuffle(self) -> bool:
        """Swap the current problem for a new one if shuffles remain."""
        with self.lock:
            if not self.accepting_input:
                logger.warning("Shuffle ignored in state %s", self.state.value)
                return False
            if not self.shuffle_budget.consume():
                logger.info("No shuffles remaining")
                return False
            self.user_input = ""
            self._set_text("input", "")
            self._set_text("feedback", "")
            self._next_problem()
            self._set_text("shuffles", self._shuffles_text())
            self._redraw()
            return True

    def _finish_early(self) -> None:
        with self.lock:
            self._finish_timer = None
            if self.state is SessionState.ACTIVE:
                self._end_round(time_up=False)

    def _end_round(self, time_up: bool) -> None:
        self._cancel_round_timers()
        self._unsubscribe()
        self.user_input = ""
        if time_up:
            self.time_remaining = 0
        self.result = MinigameResult(
            correct_answers=self.correct_answers,
            total_problems=self.total_problems,
            time_remaining=self.time_remaining,
            skipped=False,
            reward=self.reward,
        )
        self.state = SessionState.RESULTS
        header = "TIME'S UP!" if time_up else "ALL DONE!"
        lines = [header] + summarize(self.correct_answers, self.mistakes) + ["CONTINUE"]
        self._set_text("results", "\n".join(lines))
        self._show_only(("results",))
        logger.info("Round over: %d/%d correct", self.correct_answers, self.total_problems)
        self._play("timeup" if time_up else "correct")
        self._redraw()

    def acknowledge_results(self) -> bool:
        """CONTINUE on the results summary: deliver the result."""
        with self.lock:
            if self.state is not SessionState.RESULTS:
                logger.warning("No results to acknowledge (state=%s)", self.state.value)
                return False
            self.state = SessionState.FINISHED
            self.nodes["results"].visible = False
            result = self.result
            self._redraw()
        self._deliver(result)
        return True

    def _deliver(self, result: MinigameResult) -> None:
        with self.lock:
            if self._delivered:
                return
            self._delivered = True
        logger.info("Minigame complete: %s", result)
        self.on_complete(result)

    # ── teardown ──────────────────────────────────────────────────

    def _unsubscribe(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _cancel_round_timers(self) -> None:
        self.scheduler.cancel(self._countdown)
        self._countdown = None
        for handle in self._feedback_timers:
            self.scheduler.cancel(handle)
        self._feedback_timers.clear()
        self.scheduler.cancel(self._finish_timer)
        self._finish_timer = None

    def cleanup(self) -> None:
        """Release every timer, the sequencer, input and nodes. Idempotent."""
        with self.lock:
            if self._closed:
                return
            self._closed = True
            self._cancel_round_timers()
            self.scheduler.cancel(self._skip_timer)
            self._skip_timer = None
            if self.sequencer is not None:
                self.sequencer.destroy()
            self._unsubscribe()
            if self._load_future is not None:
                self._load_future.cancel()
            if self._owns_executor and self._executor is not None:
                self._executor.shutdown(wait=False)
            for node in self.nodes.values():
                node.destroy()
            self.state = SessionState.FINISHED
        logger.debug("Session cleaned up")

    destroy = cleanup
