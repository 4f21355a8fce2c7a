import pytest

from wordtrail.services.store.codec import (
    CategoryRecord, PostLink, UserLedger,
    check_submission, decode_category, decode_ledger, decode_post_link,
    encode_category, encode_ledger, encode_post_link, normalize_words, validate_title,
)
from wordtrail.services.store.errors import CategoryFormatError, LedgerFormatError

from conftest import WORDS


def test_category_round_trip():
    record = CategoryRecord('alice', 'Animals', 4, 9, 'bob', '2', '17', 1700000000)
    encoded = encode_category(record)
    assert encoded == 'alice:Animals:4:9:bob:2:17:1700000000'
    assert decode_category(encoded) == record


def test_category_without_timestamp_round_trips():
    record = CategoryRecord('alice', 'Animals', post_id='17')
    encoded = encode_category(record)
    assert encoded == 'alice:Animals:0:0:::17'
    assert decode_category(encoded) == record


def test_missing_trailing_fields_decode_to_empty():
    record = decode_category('alice:Animals')
    assert record.play_count == 0
    assert record.high_score == 0
    assert record.high_score_username == ''
    assert record.post_id == ''
    assert record.created_at is None


def test_malformed_category_is_rejected():
    with pytest.raises(CategoryFormatError):
        decode_category('alice:Animals:x:0:::17:1')
    with pytest.raises(CategoryFormatError):
        decode_category('a:b:0:0:u:1:17:1700000000:extra')
    with pytest.raises(CategoryFormatError):
        encode_category(CategoryRecord('al:ice', 'Animals'))


def test_bare_username_ledger_has_no_categories():
    ledger = decode_ledger('bob')
    assert ledger == UserLedger('bob')
    assert not ledger.has_categories


def test_ledger_sections():
    ledger = decode_ledger('bob:c:0000001:0000002:h:0000003')
    assert ledger.username == 'bob'
    assert ledger.created == ['0000001', '0000002']
    assert ledger.high_scores == ['0000003']

    only_high = decode_ledger('bob:h:0000003')
    assert only_high.created == []
    assert only_high.high_scores == ['0000003']

    # Left behind by older deletes that stripped the last code
    assert decode_ledger('bob:c').created == []


def test_ledger_grammar_violations():
    with pytest.raises(LedgerFormatError):
        decode_ledger('bob:h:0000001:c:0000002')
    with pytest.raises(LedgerFormatError):
        decode_ledger('bob:c:0000001:c:0000002')
    with pytest.raises(LedgerFormatError):
        decode_ledger('bob:0000001')


def test_ledger_encoding_omits_empty_sections_and_duplicates():
    ledger = UserLedger('bob', created=['0000001', '0000001'], high_scores=[])
    assert encode_ledger(ledger) == 'bob:c:0000001'
    ledger.add_high_score('0000004')
    ledger.add_high_score('0000004')
    assert encode_ledger(ledger) == 'bob:c:0000001:h:0000004'
    assert ledger.discard(['0000001'])
    assert encode_ledger(ledger) == 'bob:h:0000004'
    assert not ledger.discard(['0000009'])


def test_post_link():
    link = PostLink('0000003', '12')
    assert encode_post_link(link) == '0000003:12'
    assert decode_post_link('0000003:12') == link


@pytest.mark.parametrize('title,ok', [
    ('Animals', True),
    ('My-cat_2 list', True),
    ('A' * 16, True),
    ('A' * 17, False),
    ('', False),
    ('Bad:title', False),
    ('Emoji!', False),
])
def test_validate_title(title, ok):
    assert validate_title(title) is ok


def test_normalize_words_uppercases_and_joins():
    assert normalize_words(WORDS) == 'LION,TIGER,BEAR,WOLF,FOX,SEA LION,OTTER,EAGLE,SHARK,WHALE'


def test_normalize_words_drops_invalid_entries_before_counting():
    raw = WORDS + ', supercalifragilistic, r2d2, ,'
    assert normalize_words(raw).count(',') == 9
    # Nine valid words left after dropping the long one
    nine = 'lion, tiger, bear, wolf, fox, otter, eagle, shark, whale, hippopotamuses'
    assert normalize_words(nine) is None


def test_normalize_words_limits():
    assert normalize_words(','.join(['word'] * 100)) is not None
    assert normalize_words(','.join(['word'] * 101)) is None
    assert normalize_words('sea  lion,' + ','.join(['word'] * 9)) is None
    assert normalize_words('') is None


def test_check_submission_reports_each_field():
    result = check_submission('Bad:title', 'one, two')
    assert not result.ok
    assert result.title_ok is False
    assert result.words_ok is False
    result = check_submission('Animals', WORDS)
    assert result.ok
    assert result.words.startswith('LION,')
