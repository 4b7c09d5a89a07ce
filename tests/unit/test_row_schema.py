from __future__ import annotations

import pytest

from minorm.domain.row import Row, RowSchema, define_row
from minorm.errors import (
    AmbiguousPrimaryKey,
    InvalidFieldSpec,
    MissingFieldMetadata,
    UnboundRow,
)


class User(Row):
    fields = [
        ("id", {"primary": True, "auto": True}),
        ("name", {"column": "full_name", "required": True}),
        "email",
        "age",
    ]

    age = 18

    def on_load_email(self, value):
        return value.lower()

    def on_save_email(self, value):
        return value.upper() if value else value


class Bare(Row):
    pass


def test_schema_is_resolved_once_per_type():
    assert User.schema() is User.schema()
    assert [f.attr_name for f in User.schema().fields] == ["id", "name", "email", "age"]


def test_primary_flag_sets_primary_key_column():
    schema = define_row("Keyed", [("code", {"column": "tag_code", "primary": True}), "label"]).schema()

    assert schema.primary_key_name == "tag_code"
    assert schema.primary_field.attr_name == "code"


def test_primary_key_defaults_to_id():
    schema = define_row("Plain", ["id", "name"]).schema()

    assert schema.primary_key_name == "id"
    assert schema.primary_field.attr_name == "id"


def test_default_primary_key_comes_from_settings(monkeypatch):
    monkeypatch.setenv("DEFAULT_PRIMARY_KEY", "uid")

    schema = define_row("Legacy", ["uid", "name"]).schema()

    assert schema.primary_key_name == "uid"


def test_primary_field_absent_when_not_declared():
    schema = define_row("NoKey", ["name"]).schema()

    assert schema.primary_key_name == "id"
    assert schema.primary_field is None


def test_hooks_are_discovered_by_name():
    schema = User.schema()

    assert schema.load_hooks == {"email": "on_load_email"}
    assert schema.save_hooks == {"email": "on_save_email"}


def test_missing_field_list_raises():
    with pytest.raises(MissingFieldMetadata):
        Bare()
    with pytest.raises(MissingFieldMetadata):
        RowSchema.resolve(define_row("Empty", []))


def test_several_primary_keys_are_rejected():
    row_type = define_row("TwoKeys", [("a", {"primary": True}), ("b", {"primary": True})])

    with pytest.raises(AmbiguousPrimaryKey):
        row_type.schema()


def test_duplicate_attribute_is_rejected():
    with pytest.raises(InvalidFieldSpec, match="Duplicate"):
        define_row("Dup", ["a", ("a", "other")]).schema()


@pytest.mark.parametrize("name", ["save", "to_dict", "new_item", "primary_key_name", "_private"])
def test_field_cannot_shadow_row_members(name):
    with pytest.raises(InvalidFieldSpec):
        define_row("Shadow", [name]).schema()


def test_subclass_resolves_its_own_schema():
    class Admin(User):
        fields = User.fields + ["role"]

    assert [f.attr_name for f in Admin.schema().fields][-1] == "role"
    assert len(User.schema().fields) == 4


def test_constructed_row_is_new_with_defaults():
    user = User(name="alice")

    assert user.new_item is True
    assert user.primary_key_name == "id"
    assert user.id is None
    assert user.name == "alice"
    assert user.email is None
    assert user.age == 18
    assert user.model is None


def test_unknown_constructor_data_raises():
    with pytest.raises(TypeError, match="nickname"):
        User(name="alice", nickname="al")


def test_to_dict_follows_field_order():
    user = User(name="bob", email="b@example.com", age=30)

    assert list(user.to_dict().items()) == [
        ("id", None),
        ("name", "bob"),
        ("email", "b@example.com"),
        ("age", 30),
    ]
    assert "name='bob'" in repr(user)


def test_save_without_model_raises():
    with pytest.raises(UnboundRow):
        User(name="carol").save()


def test_mutable_class_default_is_not_shared():
    class Tagged(Row):
        fields = ["id", "tags"]
        tags = []

    first = Tagged(id=1)
    first.tags.append("x")
    second = Tagged(id=2)

    assert Tagged.tags == []
    assert second.tags == []
    assert first.tags == ["x"]


def test_explicit_value_is_not_copied():
    tags = ["a"]
    row = define_row("Labelled", ["id", "tags"])(id=1, tags=tags)

    assert row.tags is tags


def test_default_primary_key_must_be_an_identifier(monkeypatch):
    monkeypatch.setenv("DEFAULT_PRIMARY_KEY", "id; DROP TABLE t")

    with pytest.raises(InvalidFieldSpec, match="Invalid primary key column"):
        define_row("Unsafe", ["name"]).schema()
