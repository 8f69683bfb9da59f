from types import MappingProxyType

import pytest

from berryadmin.core import predicates as P
from berryadmin.filters import BooleanFilter, MultiSelectFilter, RangeFilter, RangeKind, SelectFilter
from berryadmin.query import PageSpec, QueryDescriptor, SortSpec, assemble_query, resolve_page, resolve_sort
from berryadmin.registry import FilterConfig

STATUS = FilterConfig('status', SelectFilter, 'Status')
PUBLISHED = FilterConfig('published', BooleanFilter, 'Published')
VIEWS = FilterConfig('view_count', RangeFilter, 'Views', range_kind=RangeKind.NUMBER)
DAY = FilterConfig('published_on', RangeFilter, 'Published on', range_kind=RangeKind.DATE)
TAGS = FilterConfig('tags', MultiSelectFilter, 'Tags')


def test_filters_and_combine_dropping_none():
    q = assemble_query([
        ('status', STATUS, 'draft'),
        ('published', PUBLISHED, ['true', 'false']),
        ('view_count', VIEWS, {'start': '10', 'end': 'abc'}),
    ])
    assert q.predicates == (P.eq('status', 'draft'), P.gte('view_count', 10))
    assert q.where == P.And((P.eq('status', 'draft'), P.gte('view_count', 10)))
    assert q.search_predicate is None


def test_filter_config_passes_its_range_kind():
    q = assemble_query([('published_on', DAY, {'start': '2024-01-01'})])
    assert q.predicates[0].value.year == 2024


def test_no_filters_no_where():
    q = assemble_query()
    assert q.where is None
    assert q.predicates == ()
    assert q.sort is None
    assert q.page == PageSpec(1, 15)


def test_search_or_group_and_combines_with_filters():
    q = assemble_query(
        [('status', STATUS, 'published')],
        search='  graphql ',
        searchable=['title', 'body'],
    )
    search = P.Or((P.contains('title', 'graphql'), P.contains('body', 'graphql')))
    assert q.search_predicate == search
    assert q.where == P.And((P.eq('status', 'published'), search))


@pytest.mark.parametrize('term', [None, '', '   '])
def test_blank_search_is_ignored(term):
    assert assemble_query(search=term, searchable=['title']).search_predicate is None


def test_single_searchable_field_is_not_wrapped():
    q = assemble_query(search='hello', searchable=['title'])
    assert q.where == P.contains('title', 'hello')


def test_search_without_searchable_fields():
    assert assemble_query(search='hello').search_predicate is None


def test_descriptor_is_frozen_and_inputs_untouched():
    raw = {'start': '1', 'end': '5'}
    triples = [('view_count', VIEWS, raw)]
    q = assemble_query(triples)
    assert raw == {'start': '1', 'end': '5'}
    assert len(triples) == 1
    with pytest.raises(AttributeError):
        q.sort = SortSpec('id')
    assert isinstance(q, QueryDescriptor)


def test_recompiled_per_call():
    a = assemble_query([('tags', TAGS, ['x', 'y'])])
    b = assemble_query([('tags', TAGS, ['x', 'y'])])
    assert a == b and a is not b


def test_context_reaches_filters():
    seen = []

    class Spy(SelectFilter):
        @classmethod
        def to_predicate(cls, attribute, value, context):
            seen.append(dict(context))
            return super().to_predicate(attribute, value, context)

    cfg = FilterConfig('status', Spy, 'Status')
    assemble_query([('status', cfg, 'draft')], context=MappingProxyType({'user': 'alice'}))
    assert seen == [{'user': 'alice'}]


# --- sort ----------------------------------------------------------------------

def test_sort_precedence():
    order_fn = lambda ctx: {'by': 'rating', 'direction': 'desc'} if ctx.get('top') else None
    kwargs = dict(order_fn=order_fn, init_order={'by': 'published_at', 'direction': 'desc'}, identity='id',
                  orderable=['id', 'title', 'rating', 'published_at'])
    # (a) explicit request
    assert resolve_sort({'by': 'title', 'direction': 'asc'}, context={'top': True}, **kwargs) == SortSpec('title', 'asc')
    # (b) order_fn from context
    assert resolve_sort(None, context={'top': True}, **kwargs) == SortSpec('rating', 'desc')
    # (c) static default
    assert resolve_sort(None, context={}, **kwargs) == SortSpec('published_at', 'desc')
    # (d) identity ascending
    assert resolve_sort(None, identity='id') == SortSpec('id', 'asc')


def test_invalid_requested_sort_falls_through():
    kwargs = dict(init_order=('title', 'desc'), identity='id', orderable=['id', 'title'])
    assert resolve_sort({'by': 'secret'}, **kwargs) == SortSpec('title', 'desc')
    assert resolve_sort({'by': 'id', 'direction': 'sideways'}, **kwargs) == SortSpec('title', 'desc')
    assert resolve_sort('id', **kwargs) == SortSpec('title', 'desc')


def test_sort_direction_defaults_and_normalizes():
    assert resolve_sort({'by': 'id'}, orderable=['id']) == SortSpec('id', 'asc')
    assert resolve_sort(('id', 'DESC'), orderable=['id']) == SortSpec('id', 'desc')
    assert resolve_sort(SortSpec('id', 'desc')) == SortSpec('id', 'desc')


def test_order_fn_receives_empty_context_by_default():
    calls = []
    resolve_sort(None, order_fn=lambda ctx: calls.append(ctx))
    assert calls == [{}]


# --- pagination ----------------------------------------------------------------

def test_page_defaults_and_validation():
    assert resolve_page(None) == PageSpec(1, 15)
    assert resolve_page({'page': '3', 'size': '50'}, allowed_sizes=(15, 50, 100)) == PageSpec(3, 50)
    assert resolve_page({'page': 0, 'size': 7}, allowed_sizes=(15, 50, 100)) == PageSpec(1, 15)
    assert resolve_page({'page': 'abc', 'size': True}) == PageSpec(1, 15)
    assert resolve_page(PageSpec(2, 100), default_size=50) == PageSpec(2, 100)


def test_page_limit_offset():
    page = PageSpec(3, 50)
    assert (page.limit, page.offset) == (50, 100)


def test_page_ignores_infinite_values():
    assert resolve_page({'page': float('inf'), 'size': float('-inf')}) == PageSpec(1, 15)
    assert resolve_page({'page': float('nan')}) == PageSpec(1, 15)
