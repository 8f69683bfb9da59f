import pytest

from berryadmin import build_metadata_schema
from tests.admin import admin

schema = build_metadata_schema(admin)


@pytest.mark.asyncio
async def test_resources_listing():
    res = await schema.execute("{ resources { name pluralName identity perPageDefault perPageOptions } }")
    assert res.errors is None, res.errors
    assert res.data['resources'] == [
        {'name': 'PostAdmin', 'pluralName': 'Posts', 'identity': 'id', 'perPageDefault': 15, 'perPageOptions': [15, 50, 100]},
        {'name': 'UserAdmin', 'pluralName': 'People', 'identity': 'id', 'perPageDefault': 15, 'perPageOptions': [15, 50, 100]},
    ]


@pytest.mark.asyncio
async def test_resource_fields_and_filters():
    q = """
    query {
      resource(name: "PostAdmin") {
        searchableFields
        defaultSortBy
        defaultSortDirection
        fields { attribute widget label views options { label value } }
        filters { attribute module prompt rangeKind }
      }
    }
    """
    res = await schema.execute(q)
    assert res.errors is None, res.errors
    data = res.data['resource']
    assert data['searchableFields'] == ['title', 'body']
    assert data['defaultSortBy'] == 'published_at'
    assert data['defaultSortDirection'] == 'desc'
    fields = {f['attribute']: f for f in data['fields']}
    assert fields['body']['widget'] == 'TextareaWidget'
    assert fields['body']['views'] == ['show', 'new', 'edit']
    assert fields['price']['widget'] == 'MoneyWidget'
    assert fields['status']['options'][0] == {'label': 'Draft', 'value': 'draft'}
    filters = {f['attribute']: f for f in data['filters']}
    assert filters['status'] == {'attribute': 'status', 'module': 'SelectFilter', 'prompt': 'Select...', 'rangeKind': None}
    assert filters['published_at']['rangeKind'] == 'datetime'


@pytest.mark.asyncio
async def test_unknown_resource_is_null():
    res = await schema.execute('{ resource(name: "Nope") { name } }')
    assert res.errors is None
    assert res.data['resource'] is None
