"""
Text normalization & keyword extraction
"""

import re

import pytest

from etl.normalize import normalize, extract_keywords, STOP_WORDS

SAMPLES = [
    'Madeira Tratada',
    '  Pinho-Maçã, Ltda.  ',
    'Ça Va Ñandú',
    'Oak/Panel_2x   Premium',
    'AÇO INOXIDÁVEL 304',
    '',
    '!!!',
]


def test_lowercase_and_trim():
    assert normalize('  Madeira Tratada  ') == 'madeira tratada'


def test_portuguese_and_combining_marks():
    assert normalize('Pinho-Maçã, Ltda.') == 'pinho maca ltda'
    assert normalize('AÇO INOXIDÁVEL 304') == 'aco inoxidavel 304'
    assert normalize('Ça Va Ñandú') == 'ca va nandu'


def test_punctuation_becomes_single_space():
    assert normalize('Oak/Panel_2x   Premium') == 'oak panel 2x premium'


@pytest.mark.parametrize('value', [None, 42, 3.5, ['oak'], b'oak'])
def test_non_text_input_is_empty(value):
    assert normalize(value) == ''


@pytest.mark.parametrize('text', SAMPLES)
def test_idempotent(text):
    once = normalize(text)
    assert normalize(once) == once


@pytest.mark.parametrize('text', SAMPLES)
def test_output_alphabet(text):
    out = normalize(text)
    assert re.fullmatch(r'[a-z0-9 ]*', out)
    assert '  ' not in out
    assert out == out.strip()


def test_keywords_drop_short_tokens_and_stop_words():
    assert extract_keywords('Painel de Madeira para Exterior') == {'painel', 'madeira', 'exterior'}


def test_keywords_deduplicate():
    assert extract_keywords('Oak oak OAK') == {'oak'}


def test_keywords_of_empty_input():
    assert extract_keywords('') == set()
    assert extract_keywords(None) == set()
    assert extract_keywords('a b c') == set()


def test_stop_words_are_never_keywords():
    assert extract_keywords(' '.join(sorted(STOP_WORDS))) == set()
