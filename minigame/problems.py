"""Problem generators and the shuffle budget.

Generators are plain functions of a random source (anything with a
``randint(a, b)`` method, e.g. ``random.Random``), so a seeded source
always yields the same sequence of problems.
"""

import random
from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class Problem:
    question: str
    answer: int


def division_problem(
    rng: random.Random,
    divisor_range: tuple[int, int] = (2, 10),
    quotient_range: tuple[int, int] = (1, 12),
) -> Problem:
    """Division with no remainder: dividend = divisor * quotient.

    The quotient is the answer, e.g. divisor=7, quotient=8 -> "56 ÷ 7".
    """
    divisor = rng.randint(*divisor_range)
    quotient = rng.randint(*quotient_range)
    dividend = divisor * quotient
    return Problem(question=f"{dividend} ÷ {divisor}", answer=quotient)


def multiplication_problem(
    rng: random.Random,
    factor_range: tuple[int, int] = (1, 12),
) -> Problem:
    a = rng.randint(*factor_range)
    b = rng.randint(*factor_range)
    return Problem(question=f"{a} × {b}", answer=a * b)


PROBLEM_KINDS: dict[str, Callable[[random.Random], Problem]] = {
    "division": division_problem,
    "multiplication": multiplication_problem,
}


def get_generator(kind: str) -> Callable[[random.Random], Problem]:
    try:
        return PROBLEM_KINDS[kind]
    except KeyError:
        raise ValueError(f"Unknown problem kind: {kind!r}") from None


class ShuffleBudget:
    """How many times a session may swap the current problem for free."""

    def __init__(self, total: int = 3):
        self.total = max(0, total)
        self.remaining = self.total

    @property
    def exhausted(self) -> bool:
        return self.remaining <= 0

    def consume(self) -> bool:
        """Use one shuffle. Returns False (and changes nothing) when none are left."""
        if self.remaining <= 0:
            return False
        self.remaining -= 1
        return True

    def __repr__(self) -> str:
        return f"ShuffleBudget({self.remaining}/{self.total})"
