"""
String and keyword-set similarity
"""

import pytest

from etl.similarity import string_similarity, keyword_pair_score, keyword_similarity


@pytest.mark.parametrize('s', ['oak', 'Concrete C30', 'Pinho Maçã', ''])
def test_identity_is_one(s):
    assert string_similarity(s, s) == 1.0


def test_equality_checked_before_emptiness():
    assert string_similarity('', '') == 1.0
    assert string_similarity('!!!', '...') == 1.0


def test_empty_against_text_is_zero():
    assert string_similarity('', 'anything') == 0.0
    assert string_similarity('anything', None) == 0.0


def test_case_and_accents_ignored():
    assert string_similarity('MADEIRA', 'madeira') == 1.0
    assert string_similarity('Maçã', 'maca') == 1.0


def test_edit_distance_ratio():
    # kitten → sitting: 3 edits over 7 characters
    assert string_similarity('kitten', 'sitting') == pytest.approx(4 / 7)


def test_bounds():
    for a, b in [('a', 'zzzzzz'), ('oak panel', 'steel beam'), ('x', 'y')]:
        assert 0.0 <= string_similarity(a, b) <= 1.0
    assert string_similarity('abc', 'xyz') == 0.0


def test_keyword_pair_rules():
    assert keyword_pair_score('oak', 'oak') == 1.0
    assert keyword_pair_score('oak', 'oaks') == 0.8
    assert keyword_pair_score('oaks', 'oak') == 0.8
    # containment needs both tokens ≥ 3 chars, otherwise edit similarity
    assert keyword_pair_score('ab', 'abc') == pytest.approx(2 / 3)


def test_keyword_similarity_empty_sets():
    assert keyword_similarity(set(), {'oak'}) == 0.0
    assert keyword_similarity({'oak'}, set()) == 0.0


def test_keyword_similarity_ignores_weak_matches():
    # premium has no partner scoring above 0.6
    score = keyword_similarity({'oak', 'flooring', 'premium'}, {'european', 'oak', 'flooring'})
    assert score == pytest.approx(2 / 3)


def test_keyword_similarity_is_asymmetric():
    """Only the first set's keywords are scored; the larger set is the denominator."""
    assert keyword_similarity({'oak', 'oaks'}, {'oak'}) == pytest.approx(0.9)
    assert keyword_similarity({'oak'}, {'oak', 'oaks'}) == pytest.approx(0.5)
