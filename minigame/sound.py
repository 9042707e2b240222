"""8-bit sound effects for the minigames.

Effects are synthesized once into WAV files and played with ``afplay``.
Playback is process-tracked: finished players are reaped and the oldest
one is killed when too many overlap. Volume and mute come from the
``Settings`` object handed to the engine.
"""

import logging
import os
import shutil
import struct
import subprocess
import tempfile
import threading
import wave

from minigame.config import Settings

logger = logging.getLogger(__name__)

SAMPLE_RATE = 22050
MAX_CONCURRENT = 4


def _triangle(freq: float, dur: float, vol: float = 1.0) -> list[float]:
    samples = []
    n = int(SAMPLE_RATE * dur)
    for i in range(n):
        phase = (i / SAMPLE_RATE * freq) % 1.0
        env = min(1.0, i / (SAMPLE_RATE * 0.003))
        tail = max(0.0, 1.0 - (i / n) * 0.5)
        samples.append((4 * abs(phase - 0.5) - 1) * vol * env * tail)
    return samples


def _square(freq: float, dur: float, vol: float = 1.0, duty: float = 0.5) -> list[float]:
    samples = []
    n = int(SAMPLE_RATE * dur)
    for i in range(n):
        phase = (i / SAMPLE_RATE * freq) % 1.0
        env = min(1.0, i / (SAMPLE_RATE * 0.003))
        tail = max(0.0, 1.0 - (i / n) * 0.8)
        samples.append((vol if phase < duty else -vol) * env * tail)
    return samples


def _write_wav(path: str, samples: list[float]):
    with wave.open(path, "w") as w:
        w.setnchannels(1)
        w.setsampwidth(2)
        w.setframerate(SAMPLE_RATE)
        w.writeframes(b"".join(
            struct.pack("<h", int(max(-0.95, min(0.95, s)) * 32767)) for s in samples
        ))


SFX = {
    # bright blip C5 -> E5
    "start": lambda: _triangle(523, 0.06, 0.5) + _triangle(659, 0.06, 0.55),
    # rising E5 -> G5
    "correct": lambda: _triangle(659, 0.08, 0.5) + _triangle(784, 0.12, 0.6),
    # falling A4 -> E4
    "wrong": lambda: _square(440, 0.1, 0.35) + _square(330, 0.15, 0.3),
    # staccato A5 warning
    "tick": lambda: _square(880, 0.04, 0.3, 0.25),
    # C5 -> G4 -> C4
    "timeup": lambda: (_square(523, 0.1, 0.3) + _square(392, 0.1, 0.3)
                       + _square(262, 0.25, 0.3)),
}


def generate_sfx(directory: str) -> dict[str, str]:
    """Write every effect as ``<name>.wav`` into ``directory``."""
    os.makedirs(directory, exist_ok=True)
    paths = {}
    for name, synth in SFX.items():
        path = os.path.join(directory, f"{name}.wav")
        _write_wav(path, synth())
        paths[name] = path
    return paths


class SoundEngine:
    def __init__(self, settings: Settings, player: str = "afplay"):
        self.settings = settings
        self.player = player
        self.sfx: dict[str, str] = {}
        self._sfx_dir = ""
        self._processes: list[subprocess.Popen] = []
        self.lock = threading.Lock()

    def prepare(self) -> bool:
        """Generate effects into a temp dir. Returns False if that fails."""
        try:
            self._sfx_dir = tempfile.mkdtemp(prefix="minigame-sfx-")
            self.sfx = generate_sfx(self._sfx_dir)
        except OSError as e:
            logger.warning("Sound effects disabled: %s", e)
            self.sfx = {}
            return False
        return True

    def _reap(self):
        with self.lock:
            self._processes[:] = [p for p in self._processes if p.poll() is None]

    def play(self, name: str) -> None:
        """Play an effect without blocking. Unknown names are ignored."""
        if not self.settings.sfx_enabled or not self.settings.audible:
            return
        path = self.sfx.get(name)
        if not path:
            return
        self._reap()
        with self.lock:
            while len(self._processes) >= MAX_CONCURRENT:
                old = self._processes.pop(0)
                old.kill()
                old.wait()
            try:
                p = subprocess.Popen(
                    [self.player, "-v", f"{self.settings.volume:.2f}", path],
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                )
            except OSError as e:
                logger.debug("Could not play %s: %s", name, e)
                return
            self._processes.append(p)

    def stop_all(self) -> None:
        with self.lock:
            for p in self._processes:
                p.kill()
                p.wait()
            self._processes.clear()

    def close(self) -> None:
        self.stop_all()
        if self._sfx_dir and os.path.isdir(self._sfx_dir):
            shutil.rmtree(self._sfx_dir, ignore_errors=True)
        self._sfx_dir = ""
        self.sfx = {}
