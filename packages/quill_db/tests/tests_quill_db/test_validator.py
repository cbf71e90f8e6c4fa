import pytest
from quill_db.validator import ModelValidator

from .models import Article


class NotAModel:
    pass


def test_validate_model_accepts_mapped_model():
    assert ModelValidator.validate_model(Article) is Article


def test_validate_model_rejects_instances():
    with pytest.raises(TypeError, match="object is not a quill_db.Model subclass"):
        ModelValidator.validate_model(object())


def test_validate_model_rejects_plain_classes():
    with pytest.raises(TypeError, match="NotAModel is not a quill_db.Model subclass"):
        ModelValidator.validate_model(NotAModel)


def test_field_names_include_columns_and_relationships():
    names = ModelValidator.field_names(Article)

    assert {"id", "title", "created_at", "section_id", "section"} <= names


def test_validate_fields_lists_missing_fields():
    with pytest.raises(TypeError, match="has no field\\(s\\) nope, unknown"):
        ModelValidator.validate_fields(Article, ["title", "unknown", "nope"])
