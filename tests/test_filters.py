import sys
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from berryadmin.core import predicates as P
from berryadmin.errors import PredicateCompilationFailure
from berryadmin.filters import (
    BooleanFilter,
    Filter,
    MultiSelectFilter,
    RangeFilter,
    RangeKind,
    SelectFilter,
    parse_datetime,
    parse_number,
)
from tests.models import PostStatus


# --- Boolean -------------------------------------------------------------------

def test_boolean_single_flag():
    assert BooleanFilter.compile('published', ['true']) == P.eq('published', True)
    assert BooleanFilter.compile('published', ['false']) == P.eq('published', False)


@pytest.mark.parametrize('raw', [['true', 'false'], [], None, ['maybe'], {'true': 1}, 1])
def test_boolean_no_filter(raw):
    assert BooleanFilter.compile('published', raw) is None


def test_boolean_scalar_alias_and_typed_values():
    assert BooleanFilter.compile('published', 'true') == P.eq('published', True)
    assert BooleanFilter.compile('published', [' FALSE ']) == P.eq('published', False)
    assert BooleanFilter.compile('published', [True]) == P.eq('published', True)
    assert BooleanFilter.compile('published', ['true', 'true']) == P.eq('published', True)


# --- Select --------------------------------------------------------------------

def test_select_string_and_enum():
    assert SelectFilter.compile('status', 'draft') == P.eq('status', 'draft')
    assert SelectFilter.compile('status', PostStatus.ARCHIVED) == P.eq('status', PostStatus.ARCHIVED)


@pytest.mark.parametrize('raw', ['', None, ['draft'], 3])
def test_select_no_filter(raw):
    assert SelectFilter.compile('status', raw) is None


# --- MultiSelect ---------------------------------------------------------------

def test_multiselect_membership():
    pred = MultiSelectFilter.compile('tags', ['x'])
    assert pred == P.Condition('tags', P.IN, ('x',))
    assert MultiSelectFilter.compile('tags', ('a', 'b')).value == ('a', 'b')


@pytest.mark.parametrize('raw', [[], None, 'x', {'x'}])
def test_multiselect_no_filter(raw):
    assert MultiSelectFilter.compile('tags', raw) is None


# --- Range ---------------------------------------------------------------------

def test_range_number_both_sides():
    pred = RangeFilter.compile('rating', {'start': '10', 'end': '100'})
    assert pred == P.And((P.gte('rating', 10), P.lte('rating', 100)))
    assert str(pred) == '(rating gte 10 AND rating lte 100)'


@pytest.mark.parametrize('raw, expected', [
    ({'start': '10', 'end': ''}, P.gte('rating', 10)),
    ({'start': '', 'end': '100'}, P.lte('rating', 100)),
    ({'start': '10', 'end': 'abc'}, P.gte('rating', 10)),
    ({'start': '3'}, P.gte('rating', 3)),
    ({'start': '2.5', 'end': None}, P.gte('rating', 2.5)),
    ({'start': ' -4 '}, P.gte('rating', -4)),
    ({'start': 7, 'end': Decimal('9.5')}, P.And((P.gte('rating', 7), P.lte('rating', Decimal('9.5'))))),
])
def test_range_number_partial(raw, expected):
    assert RangeFilter.compile('rating', raw) == expected


@pytest.mark.parametrize('raw', [
    {'start': '', 'end': ''},
    {'start': 'abc', 'end': 'abc'},
    {},
    {'start': '10abc'},
    {'start': '1,5'},
    {'start': True},
    None,
    '10',
    ['10', '100'],
])
def test_range_number_no_filter(raw):
    assert RangeFilter.compile('rating', raw) is None


def test_range_integer_parsed_before_float():
    assert type(parse_number('10')) is int
    assert type(parse_number('10.0')) is float
    assert parse_number('1e3') == 1000.0
    with pytest.raises(PredicateCompilationFailure):
        parse_number('ten')


def test_range_date_kind():
    ctx = {'range_kind': RangeKind.DATE}
    pred = RangeFilter.compile('published_on', {'start': '2024-01-01', 'end': '2024-02-30'}, ctx)
    # 2024-02-30 is not a date; only the start applies
    assert pred == P.gte('published_on', date(2024, 1, 1))
    assert RangeFilter.compile('published_on', {'start': '01/02/2024'}, ctx) is None
    typed = date(2024, 5, 1)
    assert RangeFilter.compile('published_on', {'end': typed}, ctx) == P.lte('published_on', typed)


def test_range_datetime_kind():
    ctx = {'range_kind': 'datetime'}
    pred = RangeFilter.compile('published_at', {'start': '2024-01-01T10:00', 'end': '2024-01-31 23:59:59Z'}, ctx)
    assert pred == P.And((
        P.gte('published_at', datetime(2024, 1, 1, 10, 0)),
        P.lte('published_at', datetime(2024, 1, 31, 23, 59, 59, tzinfo=timezone.utc)),
    ))
    # a bare date is not a datetime
    assert RangeFilter.compile('published_at', {'start': '2024-01-01'}, ctx) is None


def test_parse_datetime_offsets():
    assert parse_datetime('2024-03-01T08:30:00+02:00') == datetime(
        2024, 3, 1, 8, 30, tzinfo=timezone(timedelta(hours=2)),
    )
    assert parse_datetime('2024-03-01T08:30:00.250Z').microsecond == 250000
    with pytest.raises(PredicateCompilationFailure):
        parse_datetime('yesterday')


def test_range_kind_from_subclass():
    class PublishedRange(RangeFilter):
        range_kind = RangeKind.DATE

    assert PublishedRange.compile('published_on', {'start': '2024-01-01'}) == P.gte('published_on', date(2024, 1, 1))
    # context entry wins over the class attribute
    assert PublishedRange.compile('n', {'start': '5'}, {'range_kind': 'number'}) == P.gte('n', 5)


# --- shared properties ---------------------------------------------------------

@pytest.mark.parametrize('flt, raw', [
    (BooleanFilter, ['true']),
    (SelectFilter, 'draft'),
    (MultiSelectFilter, ['b', 'a']),
    (RangeFilter, {'start': '1', 'end': '2'}),
])
def test_compilation_is_idempotent(flt, raw):
    assert flt.compile('attr', raw) == flt.compile('attr', raw)


def test_inputs_are_not_mutated():
    raw = {'start': '10', 'end': 'abc'}
    RangeFilter.compile('rating', raw)
    assert raw == {'start': '10', 'end': 'abc'}
    flags = ['true']
    BooleanFilter.compile('published', flags)
    assert flags == ['true']


def test_custom_filter_failure_means_no_filter():
    class PositiveOnly(Filter):
        @classmethod
        def validate_value(cls, value, context):
            if not isinstance(value, int) or value <= 0:
                raise PredicateCompilationFailure("positive integers only")
            return value

        @classmethod
        def to_predicate(cls, attribute, value, context):
            return P.gte(attribute, value)

    assert PositiveOnly.name == 'PositiveOnly'
    assert PositiveOnly.compile('view_count', 5) == P.gte('view_count', 5)
    assert PositiveOnly.compile('view_count', -1) is None


def test_predicate_combinators():
    a, b = P.eq('a', 1), P.eq('b', 2)
    assert P.and_() is None
    assert P.and_(None, a) is a
    assert P.or_(a, None, b) == P.Or((a, b))
    assert str(P.or_(a, b)) == "(a eq 1 OR b eq 2)"


@pytest.mark.skipif(
    not hasattr(sys, 'get_int_max_str_digits') or sys.get_int_max_str_digits() == 0,
    reason="interpreter has no integer string length limit",
)
def test_range_oversized_number_side_is_absent():
    huge = '1' * (sys.get_int_max_str_digits() + 1)
    with pytest.raises(PredicateCompilationFailure):
        parse_number(huge)
    assert RangeFilter.compile('view_count', {'start': huge, 'end': '5'}) == P.lte('view_count', 5)
    assert RangeFilter.compile('view_count', {'start': huge, 'end': ''}) is None


def test_parse_datetime_compact_offset():
    assert parse_datetime('2024-03-01T08:30:00+0530') == datetime(
        2024, 3, 1, 8, 30, tzinfo=timezone(timedelta(hours=5, minutes=30)),
    )
    assert parse_datetime('2024-03-01 08:30-0100').utcoffset() == timedelta(hours=-1)
