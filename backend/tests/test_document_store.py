import pytest

from db.store import StoreError
from services.query.descriptor import PopulateDirective, Projection, SortField

NO_PROJECTION = Projection()


def _find(collection, filter=None, projection=NO_PROJECTION, sort=(), populate=(), skip=0, limit=100):
    return collection.find(filter or {}, projection, sort, populate, skip, limit)


@pytest.fixture
def persons(store, person_model):
    return store.collection(person_model)


def test_insert_assigns_string_id(store):
    doc = store.insert('persons', {'name': 'asd'})
    assert isinstance(doc['_id'], str) and doc['_id']
    assert store.load('persons') == [doc]


def test_duplicate_id_is_store_error(store):
    store.insert('persons', {'_id': 'x', 'name': 'a'})
    with pytest.raises(StoreError):
        store.insert('persons', {'_id': 'x', 'name': 'b'})


def test_find_natural_order_and_pagination(store, persons):
    for name in ('a', 'b', 'c'):
        store.insert('persons', {'name': name})

    assert [d['name'] for d in _find(persons)] == ['a', 'b', 'c']
    assert [d['name'] for d in _find(persons, skip=1, limit=5)] == ['b', 'c']
    assert _find(persons, limit=0) == []


def test_collections_are_isolated(store, persons):
    store.insert('persons', {'name': 'a'})
    store.insert('cats', {'name': 'Tom'})
    assert [d['name'] for d in _find(persons)] == ['a']
    assert persons.count({}) == 1


def test_filter_sort_and_count(store, persons):
    store.insert_many('persons', [
        {'name': 'a', 'age': 30},
        {'name': 'b', 'age': 20},
        {'name': 'c', 'age': 40},
    ])
    result = _find(
        persons,
        filter={'age': {'$gte': 25}},
        sort=(SortField(field='age', direction=-1),),
    )
    assert [d['name'] for d in result] == ['c', 'a']
    assert persons.count({'age': {'$gte': 25}}) == 2
    assert persons.count({}) == 3


def test_projection(store, persons):
    store.insert('persons', {'name': 'a', 'age': 3})
    (doc,) = _find(persons, projection=Projection(include=('name',), exclude=('_id',)))
    assert doc == {'name': 'a'}


def test_invalid_filter_is_store_error(store, persons):
    store.insert('persons', {'name': 'a'})
    with pytest.raises(StoreError):
        _find(persons, filter={'name': {'$bogus': 1}})
    with pytest.raises(StoreError):
        persons.count({'name': {'$bogus': 1}})


class TestPopulate:

    def _seed(self, store, cat_count=3):
        cats = [store.insert('cats', {'name': f'cat{i}', 'age': i}) for i in range(cat_count)]
        person = store.insert('persons', {'name': 'asd', 'cats': [c['_id'] for c in cats]})
        return cats, person

    def test_array_refs_resolve_in_order(self, store, persons):
        cats, _ = self._seed(store)
        (doc,) = _find(persons, populate=(PopulateDirective(path='cats'),))
        assert doc['cats'] == cats

    def test_single_ref(self, store, persons):
        friend = store.insert('persons', {'name': 'friend'})
        store.insert('persons', {'name': 'me', 'best_friend': friend['_id']})
        store.insert('persons', {'name': 'lonely', 'best_friend': 'missing-id'})

        result = _find(
            persons,
            filter={'best_friend': {'$exists': True}},
            populate=(PopulateDirective(path='best_friend'),),
        )
        assert result[0]['best_friend'] == friend
        assert result[1]['best_friend'] is None

    def test_select_and_match(self, store, persons):
        self._seed(store, cat_count=4)
        directive = PopulateDirective(
            path='cats',
            select=Projection(include=('name',), exclude=('_id',)),
            match={'age': {'$gte': 2}},
        )
        (doc,) = _find(persons, populate=(directive,))
        assert doc['cats'] == [{'name': 'cat2'}, {'name': 'cat3'}]

    def test_unknown_relation_is_store_error(self, store, persons):
        self._seed(store)
        with pytest.raises(StoreError) as exc:
            _find(persons, populate=(PopulateDirective(path='dogs'),))
        assert 'dogs' in str(exc.value)

    def test_unknown_relation_fails_even_with_zero_limit(self, store, persons):
        with pytest.raises(StoreError):
            _find(persons, populate=(PopulateDirective(path='dogs'),), limit=0)

    def test_dangling_refs_are_skipped(self, store, persons):
        cat = store.insert('cats', {'name': 'Tom'})
        store.insert('persons', {'name': 'asd', 'cats': ['gone', cat['_id']]})
        (doc,) = _find(persons, populate=(PopulateDirective(path='cats'),))
        assert doc['cats'] == [cat]


def _nested_and(depth):
    query = {'name': 'a'}
    for _ in range(depth):
        query = {'$and': [query]}
    return query


def test_too_deep_filter_is_store_error(store, persons):
    store.insert('persons', {'name': 'a'})
    with pytest.raises(StoreError) as exc:
        _find(persons, filter=_nested_and(5000))
    assert 'nested too deeply' in str(exc.value)
    with pytest.raises(StoreError):
        persons.count(_nested_and(5000))


def test_too_deep_populate_match_is_store_error(store, persons):
    cat = store.insert('cats', {'name': 'Tom'})
    store.insert('persons', {'name': 'asd', 'cats': [cat['_id']]})
    directive = PopulateDirective(path='cats', match=_nested_and(5000))
    with pytest.raises(StoreError):
        _find(persons, populate=(directive,))
