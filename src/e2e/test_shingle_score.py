import random

import pytest

from licensematch import build_store, dice, document, normalize, shingle, upper_bound
from licensematch.score import intersection_size


# ---------- shingling ----------

def test_sliding_windows_sorted():
    assert shingle(["c", "a", "b", "a"], 2) == (("a", "b"), ("b", "a"), ("c", "a"))


def test_one_shingle_per_window():
    toks = normalize("permission is hereby granted free of charge")
    assert len(shingle(toks, 2)) == len(toks) - 1
    assert len(shingle(toks, 3)) == len(toks) - 2


def test_repeated_windows_are_kept():
    assert shingle(["a", "b", "a", "b"], 2) == (("a", "b"), ("a", "b"), ("b", "a"))


def test_short_input_becomes_single_shingle():
    assert shingle(["only"], 2) == (("only",),)
    assert shingle(["a", "b"], 3) == (("a", "b"),)


def test_no_tokens_no_shingles():
    assert shingle([], 2) == ()
    assert document("Copyright 2020 Nobody").empty


@pytest.mark.parametrize("width", [0, -1])
def test_width_must_be_positive(width):
    with pytest.raises(ValueError):
        shingle(["a", "b"], width)


# ---------- scoring ----------

def _random_doc(rng: random.Random, vocab: list[str]):
    words = [rng.choice(vocab) for _ in range(rng.randint(0, 40))]
    return document(" ".join(words), 2).shingles


def test_dice_is_commutative_and_bounded():
    rng = random.Random(7)
    vocab = ["alpha", "beta", "gamma", "delta", "eps", "zeta"]
    for _ in range(200):
        a, b = _random_doc(rng, vocab), _random_doc(rng, vocab)
        s = dice(a, b)
        assert s == dice(b, a)
        assert 0.0 <= s <= 1.0
        assert s <= upper_bound(len(a), len(b))


def test_self_match_scores_one(mit_text, apache_text):
    for text in (mit_text, apache_text, "x"):
        sh = document(text).shingles
        assert dice(sh, sh) == 1.0


def test_empty_sets():
    assert dice((), ()) == 0.0
    assert dice((), (("a", "b"),)) == 0.0
    assert upper_bound(0, 0) == 0.0


def test_duplicates_count_as_multiset():
    a = (("a", "b"), ("a", "b"), ("b", "c"))
    b = (("a", "b"), ("b", "c"), ("b", "c"))
    assert intersection_size(a, b) == 2
    assert dice(a, b) == pytest.approx(4 / 6)


def test_unrelated_text_scores_near_zero(store, prose_text):
    prose = document(prose_text).shingles
    for entry in store:
        assert dice(prose, entry.shingles) < 0.1


def test_store_entries_match_themselves(store):
    built = build_store([(e.id, e.original_text) for e in store])
    assert built == store
