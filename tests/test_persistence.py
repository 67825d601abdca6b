import uuid
from typing import Any, Optional

import pytest

from dynattr import DynamicAttributeConfig, JsonExpression, Record, on


class Article(Record):
    name: Optional[str] = None
    data: Optional[str] = None

    dynamic_attributes = DynamicAttributeConfig(
        defaults={"hasComment": False, "commentCount": 0},
    )


class Blob(Record):
    data: Optional[bytes] = None

    dynamic_attributes = DynamicAttributeConfig(codec="native", allow_arbitrary_names=True)


class Document(Record):
    data: Any = None

    dynamic_attributes = DynamicAttributeConfig(codec="json_expression", allow_arbitrary_names=True)


class Audited(Record):
    data: Optional[str] = None

    dynamic_attributes = DynamicAttributeConfig(defaults={"touched": 0})


calls = []


@on.before_create(Audited)
def _before_create(rec):
    calls.append(("before_create", rec.data))


@on.create(Audited)
def _after_create(rec):
    calls.append(("create", rec.data))


@on.before_update(Audited)
def _before_update(rec):
    calls.append(("before_update", rec.data))


@on.update(Audited)
def _after_update(rec):
    calls.append(("update", rec.data))


def test_save_requires_init():
    with pytest.raises(RuntimeError):
        Article(name="x").save()


def test_insert_dynamic_attributes(record_store):
    article = Article(name="test")
    article.hasComment = True
    article.commentCount = 10
    article.save()

    assert not article.is_new
    refreshed = Article.hydrate(article.id)
    assert refreshed.data
    assert refreshed.name == "test"
    assert refreshed.hasComment is True
    assert refreshed.commentCount == 10


def test_update_dynamic_attributes(record_store):
    article = Article(name="test")
    article.hasComment = True
    article.commentCount = 10
    article.save()

    existing = Article.hydrate(article.id)
    existing.hasComment = False
    existing.commentCount = 99
    existing.save()

    refreshed = Article.hydrate(article.id)
    assert refreshed.hasComment is False
    assert refreshed.commentCount == 99


def test_skip_if_not_initialized(record_store):
    article = Article(name="test")
    article.save()

    refreshed = Article.hydrate(article.id)
    assert refreshed.data is None
    assert record_store.fetch(article.id)["payload"] is None


def test_untouched_hydrated_record_keeps_payload(record_store):
    article = Article(name="test")
    article.commentCount = 3
    article.save()

    existing = Article.hydrate(article.id)
    existing.name = "renamed"
    existing.save()

    assert record_store.fetch(article.id)["payload"] == '{"commentCount":3,"hasComment":false}'


def test_save_filter_on_saved_payload(record_store):
    article = Article(name="test")
    article.dynamic.save_filter = True
    article.commentCount = 10
    article.save()
    assert article.data == '{"commentCount":10}'

    article = Article(name="test")
    article.commentCount = 10
    article.save()
    assert article.data == '{"commentCount":10,"hasComment":false}'


def test_save_filter_switch_between_saves(record_store):
    article = Article(name="test")
    article.dynamic.allow_arbitrary_names = True
    article.commentCount = 12
    article.some = "foo"
    article.dynamic.save_filter = True
    article.save()
    assert article.data == '{"commentCount":12,"some":"foo"}'

    def keep_some(attributes):
        return {"save": attributes["some"]}

    article.dynamic.save_filter = keep_some
    article.save()
    assert article.data == '{"save":"foo"}'
    assert record_store.fetch(article.id)["payload"] == '{"save":"foo"}'


def test_native_codec_persists_bytes(record_store):
    blob = Blob()
    blob.shape = (2, 3)
    blob.save()

    assert isinstance(record_store.fetch(blob.id)["payload"], bytes)
    assert Blob.hydrate(blob.id).shape == (2, 3)


def test_json_expression_payload_is_unwrapped(record_store):
    doc = Document()
    doc.title = "hello"
    doc.save()

    assert isinstance(doc.data, JsonExpression)
    assert record_store.fetch(doc.id)["payload"] == {"title": "hello"}
    assert Document.hydrate(doc.id).title == "hello"


def test_hydrate_unknown_id(record_store):
    with pytest.raises(KeyError):
        Article.hydrate(uuid.uuid4())


def test_update_without_row(record_store):
    article = Article(name="ghost")
    with pytest.raises(KeyError):
        record_store.update(article)


def test_find_by_class(record_store):
    first, second = Article(name="a"), Article(name="b")
    first.save()
    second.save()
    Blob().save()

    assert set(record_store.find_by_class("Article")) == {first.id, second.id}
    assert record_store.find_by_class("Missing") == []


def test_lifecycle_events_fire_in_order(record_store):
    calls.clear()
    rec = Audited()
    rec.touched = 1
    rec.save()
    rec.touched = 2
    rec.save()

    assert calls == [
        ("before_create", '{"touched":1}'),
        ("create", '{"touched":1}'),
        ("before_update", '{"touched":2}'),
        ("update", '{"touched":2}'),
    ]


def test_save_defaults_toggle(record_store):
    article = Article(name="test")
    article.dynamic.save_defaults = False
    article.commentCount = 10
    article.save()
    assert article.data == '{"commentCount":10}'

    article = Article(name="test")
    article.dynamic.save_defaults = True
    article.commentCount = 10
    article.save()
    assert article.data == '{"commentCount":10,"hasComment":false}'


def test_projection_filter_after_dropping_defaults(record_store):
    article = Article(name="test")
    article.dynamic.allow_arbitrary_names = True
    article.dynamic.save_defaults = False

    def rename(attributes):
        attributes["save"] = attributes["some"]
        del attributes["commentCount"]
        del attributes["some"]
        return attributes

    article.commentCount = 12
    article.some = "foo"
    article.dynamic.save_filter = rename
    article.save()

    assert article.data == '{"save":"foo"}'
    assert record_store.fetch(article.id)["payload"] == '{"save":"foo"}'


def test_config_save_defaults_reaches_store():
    class Quiet(Record):
        data: Optional[str] = None

        dynamic_attributes = DynamicAttributeConfig(defaults={"n": 0}, save_defaults=False)

    rec = Quiet()
    assert rec.dynamic.save_defaults is False
    rec.n = 0
    rec.before_create()
    assert rec.data == "{}"
