"""
Turtle interpreter for literal leaf sentences.

A walk scans the sentence once, left to right. ``F(len)`` moves and emits a segment,
``+``/``-`` turn by an index-biased, jittered angle, ``[``/``]`` save and restore the
turtle. The shape walk also samples boundary points at branch tips.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

import numpy as np

from .grammar import has_nonterminals

Point = Tuple[float, float]
Segment = Tuple[Point, Point]

_FORWARD = re.compile(r"F\((\d+\.?\d*)\)")


class MalformedSentenceError(ValueError):
    pass


@dataclass(frozen=True)
class TurtleParams:
    angle: float = 70.0
    global_scale: float = 8.0
    start_heading: float = -90.0
    heading_damping: float = math.pi / 180.0
    turn_jitter: float = 10.0


@dataclass
class Walk:
    segments: List[Segment] = field(default_factory=list)
    left: List[Point] = field(default_factory=list)
    right: List[Point] = field(default_factory=list)
    end: Point = (0.0, 0.0)


def find_branch_tips(sentence: str) -> Set[int]:
    """Index of the last ``F(...)`` inside every matched ``[...]`` pair.

    Raises MalformedSentenceError on an unmatched bracket or on grammar
    tokens the expansion left behind.
    """
    if has_nonterminals(sentence):
        raise MalformedSentenceError("sentence still holds A(i)/B(i) tokens")
    tips: Set[int] = set()
    stack: List[int] = []
    for i, ch in enumerate(sentence):
        if ch == "[":
            stack.append(i)
        elif ch == "]":
            if not stack:
                raise MalformedSentenceError(f"unmatched ']' at index {i}")
            start = stack.pop()
            last = None
            for m in _FORWARD.finditer(sentence, start, i + 1):
                last = m
            if last is not None:
                tips.add(last.start())
    if stack:
        raise MalformedSentenceError(f"unmatched '[' at index {stack[-1]}")
    return tips


class Turtle:
    def __init__(self, params: TurtleParams, origin: Point = (0.0, 0.0)):
        self.params = params
        self.pos: Point = (float(origin[0]), float(origin[1]))
        self.heading = params.start_heading
        self.stack: List[Tuple[Point, float]] = []

    def forward(self, length: float) -> Segment:
        scaled = length * self.params.global_scale
        # heading is damped before steering; a full 360 deg of heading bends the walk by 2*pi deg
        rad = math.radians(self.heading * self.params.heading_damping)
        start = self.pos
        self.pos = (start[0] + scaled * math.cos(rad), start[1] + scaled * math.sin(rad))
        return start, self.pos

    def rotate(self, delta: float) -> None:
        self.heading += delta

    def push(self) -> None:
        self.stack.append((self.pos, self.heading))

    def pop(self) -> None:
        if self.stack:
            self.pos, self.heading = self.stack.pop()

    def walk(self, sentence: str, rng: np.random.RandomState, collect: bool = False) -> Walk:
        """Interpret ``sentence`` once. Turn jitter is drawn from ``rng`` on every ``+``/``-``.

        With ``collect`` the positions reached by branch-tip moves are appended to the
        side (left after ``-``, right after ``+``) that was last turned towards.
        """
        p = self.params
        tips: Optional[Set[int]] = find_branch_tips(sentence) if collect else None
        out = Walk()
        side = "left"
        n = len(sentence)
        i = 0
        while i < n:
            ch = sentence[i]
            if ch == "F":
                m = _FORWARD.match(sentence, i)
                if m:
                    seg = self.forward(float(m.group(1)))
                    out.segments.append(seg)
                    if tips is not None and i in tips:
                        (out.left if side == "left" else out.right).append(self.pos)
                    i = m.end()
                    continue
            elif ch == "+":
                self.rotate(p.angle + rng.uniform(-p.turn_jitter, p.turn_jitter) + 11 * i)
                side = "right"
            elif ch == "-":
                self.rotate(-p.angle + rng.uniform(-p.turn_jitter, p.turn_jitter) - 11 * (i + 40) - 5 * (n - i))
                side = "left"
            elif ch == "[":
                self.push()
            elif ch == "]":
                self.pop()
            i += 1
        out.end = self.pos
        return out


def shape_walk(sentence: str, params: TurtleParams, rng: np.random.RandomState, origin: Point) -> Walk:
    return Turtle(params, origin).walk(sentence, rng, collect=True)


def vein_walk(sentence: str, params: TurtleParams, rng: np.random.RandomState, origin: Point) -> Walk:
    return Turtle(params, origin).walk(sentence, rng, collect=False)
