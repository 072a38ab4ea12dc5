import math

import numpy as np
import pytest

from leaf_generator.turtle import MalformedSentenceError, Turtle, TurtleParams, find_branch_tips


NO_JITTER = TurtleParams(turn_jitter=0.0)


def test_branch_tip_is_last_forward_in_bracket():
    # F(1) at 0, [ at 4, F(2) at 5, F(3) at 9, ] at 13
    assert find_branch_tips("F(1)[F(2)F(3)]") == {9}


def test_nested_brackets_share_tip():
    assert find_branch_tips("[F(1)[F(2)]]") == {6}


def test_bracket_without_forward_has_no_tip():
    assert find_branch_tips("[+][-]") == set()


@pytest.mark.parametrize("sentence", ["F(1)]", "[F(1)", "][", "[[F(1)]"])
def test_unmatched_brackets_fail_fast(sentence):
    with pytest.raises(MalformedSentenceError):
        find_branch_tips(sentence)


def test_forward_scales_and_damps_heading():
    t = Turtle(TurtleParams(), origin=(100.0, 50.0))
    start, end = t.forward(2.0)
    assert start == (100.0, 50.0)
    rad = math.radians(-90.0 * math.pi / 180.0)
    assert end[0] == pytest.approx(100.0 + 16.0 * math.cos(rad))
    assert end[1] == pytest.approx(50.0 + 16.0 * math.sin(rad))


def test_plus_turn_is_index_biased():
    t = Turtle(NO_JITTER)
    t.walk("F(1)+", np.random.RandomState(0))
    # '+' sits at index 4
    assert t.heading == pytest.approx(-90.0 + 70.0 + 11 * 4)


def test_minus_turn_depends_on_sentence_length():
    t = Turtle(NO_JITTER)
    t.walk("-F(1)", np.random.RandomState(0))
    assert t.heading == pytest.approx(-90.0 - 70.0 - 11 * 40 - 5 * 5)


def test_each_turn_draws_once():
    rng = np.random.RandomState(9)
    Turtle(TurtleParams()).walk("+-F(1)[+]", rng)
    ref = np.random.RandomState(9)
    for _ in range(3):
        ref.uniform(-10, 10)
    assert rng.uniform() == ref.uniform()


def test_pop_on_empty_stack_is_noop():
    t = Turtle(TurtleParams(), origin=(5.0, 5.0))
    out = t.walk("]]F(1)[", np.random.RandomState(0))
    assert len(out.segments) == 1
    assert out.segments[0][0] == (5.0, 5.0)


def test_push_pop_restores_state():
    t = Turtle(NO_JITTER)
    out = t.walk("[+F(3)]", np.random.RandomState(0))
    assert out.end == (0.0, 0.0)
    assert t.heading == -90.0


def test_shape_walk_collects_tips_by_side():
    sentence = "F(1)[-F(1)F(2)][+F(2)]"
    out = Turtle(TurtleParams()).walk(sentence, np.random.RandomState(0), collect=True)
    assert len(out.segments) == 4
    assert len(out.left) == 1
    assert len(out.right) == 1
    # the left tip is where the second move of the left branch ended
    assert out.left[0] == out.segments[2][1]
    assert out.right[0] == out.segments[3][1]


def test_vein_walk_collects_nothing():
    out = Turtle(TurtleParams()).walk("[-F(1)][+F(2)]", np.random.RandomState(0))
    assert out.left == [] and out.right == []
    assert len(out.segments) == 2


def test_unexpanded_tokens_rejected():
    with pytest.raises(MalformedSentenceError):
        find_branch_tips("F(1)[-F(2)B(3)]A(4)")


def test_malformed_sentence_rejected_only_when_collecting():
    with pytest.raises(MalformedSentenceError):
        Turtle(TurtleParams()).walk("F(1)]", np.random.RandomState(0), collect=True)
