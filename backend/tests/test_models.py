import json

import pytest

from models.resource import MODELS, ResourceModel, get_model, load_models, register_model


def test_defaults():
    model = ResourceModel(name='Cat', collection='cats')
    assert model.base_path == '/cats'
    assert model.relations == {}


def test_base_path_gets_leading_slash():
    assert ResourceModel(name='Cat', collection='cats', base_path='kittens').base_path == '/kittens'


def test_from_dict_infers_collection():
    model = ResourceModel.from_dict({'name': 'Person', 'relations': {'cats': 'Cat'}})
    assert model.collection == 'persons'
    assert model.relations == {'cats': 'Cat'}


def test_load_models(tmp_path):
    path = tmp_path / 'models.json'
    path.write_text(json.dumps([
        {'name': 'Cat', 'collection': 'cats'},
        {'name': 'Person', 'collection': 'persons', 'relations': {'cats': 'Cat'}, 'tags': ['people']},
    ]))

    cat, person = load_models(str(path))
    assert cat.name == 'Cat'
    assert person.tags == ['people']


def test_load_models_requires_array(tmp_path):
    path = tmp_path / 'models.json'
    path.write_text(json.dumps({'name': 'Cat'}))
    with pytest.raises(ValueError):
        load_models(str(path))


def test_registry(monkeypatch):
    monkeypatch.setattr('models.resource.MODELS', {})
    model = register_model(ResourceModel(name='Dog', collection='dogs'))
    assert get_model('Dog') is model
    assert get_model('Cat') is None
