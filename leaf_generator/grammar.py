from __future__ import annotations

"""
Parametric L-system that grows the leaf skeleton.

Two non-terminals drive the growth: A(i) extends the midrib and spawns a pair of
side branches, B(i) grows a side branch one segment at a time. A generation is one
pass over the sentence: every A(i) is rewritten, then every B(i), including the
ones the A sweep just produced. Both sweeps go left to right, so the jitter drawn
for B(i) follows token order and stays reproducible for a given stream.
"""

import re
from dataclasses import dataclass

import numpy as np

AXIOM = "{.A(0)}"

_A = re.compile(r"A\((\d+)\)")
_B = re.compile(r"B\((\d+)\)")
_NONTERMINAL = re.compile(r"[AB]\(\d+\)")


@dataclass(frozen=True)
class GrowthParams:
    generations: int = 9
    b: float = 5.0
    c: float = 1.15
    d: float = 3.0
    e: float = 1.2
    f: int = 1
    branch_jitter: float = 0.2


class Grammar:
    """Rewrites A/B tokens and counts the non-empty rewrites it applied."""

    def __init__(self, params: GrowthParams, rng: np.random.RandomState):
        self.params = params
        self.rng = rng
        self.a_rewrites = 0
        self.b_rewrites = 0

    def _rewrite_a(self, m: re.Match) -> str:
        p = self.params
        i = int(m.group(1))
        if i > p.generations:
            return ""
        self.a_rewrites += 1
        return f"F({p.b * p.c ** i:.2f})[-B({i})][A({i + 1})][+B({i})]"

    def _rewrite_b(self, m: re.Match) -> str:
        p = self.params
        i = int(m.group(1))
        if i <= 0:
            return ""
        scale = 0.1 if i % 2 == 0 else 2.5
        jitter = self.rng.uniform(-p.branch_jitter, p.branch_jitter)
        length = p.d * p.e ** i * scale * (1.0 + jitter)
        self.b_rewrites += 1
        if i == p.generations - 1:
            # terminal branch: one long unbranching tip
            return f"F({length * 6:.2f})"
        return f"F({length:.2f})B({max(i - p.f, 0)})"

    def step(self, sentence: str) -> str:
        """One generation: the A sweep, then the B sweep."""
        sentence = _A.sub(self._rewrite_a, sentence)
        return _B.sub(self._rewrite_b, sentence)

    def expand(self, sentence: str = AXIOM) -> str:
        for _ in range(self.params.generations):
            sentence = self.step(sentence)
        return strip_nonterminals(sentence)


def strip_nonterminals(sentence: str) -> str:
    """Residual A(i)/B(i) tokens left after the last generation expand to nothing."""
    return _NONTERMINAL.sub("", sentence)


def has_nonterminals(sentence: str) -> bool:
    return _NONTERMINAL.search(sentence) is not None
