from datetime import datetime, timezone

import pytest
from quill_rest import (
    MalformedInputError,
    Projection,
    ProjectionContext,
    ValidationFailedError,
)

from .models import Author, Book


@pytest.fixture
def schemas(book_projection):
    return book_projection.bind(Book)


@pytest.fixture
def book():
    author = Author(id=7, name="Ursula")
    return Book(
        id=1,
        title="The Dispossessed",
        summary="An ambiguous utopia",
        pages=387,
        available=True,
        created_at=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
        author_id=7,
        author=author,
    )


class TestProjectionFields:
    def test_fields_per_context(self, book_projection):
        """Should return the ordered field set of each context."""
        assert book_projection.fields(ProjectionContext.COLLECTION_READ) == (
            "id",
            "title",
            "available",
        )
        assert "summary" in book_projection.fields(ProjectionContext.ITEM_READ)
        assert book_projection.fields(ProjectionContext.WRITE) == (
            "title",
            "summary",
            "pages",
            "author",
        )

    def test_relations_to_load(self, schemas):
        """Should list the relations a context renders."""
        assert schemas.relations(ProjectionContext.ITEM_READ) == ["author"]
        assert schemas.relations(ProjectionContext.COLLECTION_READ) == []

    def test_schema_names(self, schemas):
        """Should name generated schemas after model and context."""
        assert schemas.collection.__name__ == "BookCollection"
        assert schemas.item.__name__ == "BookDetail"
        assert schemas.create.__name__ == "BookCreate"
        assert schemas.update.__name__ == "BookUpdate"


class TestProjectOutput:
    def test_collection_projection_is_exact(self, schemas, book):
        """Should render exactly the collection fields."""
        data = schemas.project(ProjectionContext.COLLECTION_READ, book)

        assert data == {"id": 1, "title": "The Dispossessed", "available": True}

    def test_item_projection_uses_camel_case_and_nests_relation(self, schemas, book):
        """Should render camelCase names and the nested relation."""
        data = schemas.project(ProjectionContext.ITEM_READ, book)

        assert set(data) == {"id", "title", "summary", "pages", "createdAt", "author"}
        assert data["author"] == {"id": 7, "name": "Ursula"}
        assert data["createdAt"].startswith("2024-05-01T12:00:00")

    def test_item_projection_without_relation(self, schemas, book):
        """Should render a null relation as None."""
        book.author = None

        assert schemas.project(ProjectionContext.ITEM_READ, book)["author"] is None


class TestAcceptPayload:
    def test_unknown_fields_are_ignored(self, schemas):
        """Should drop unknown fields from a write payload."""
        data = schemas.accept(
            {"title": "Kindred", "online": True, "id": 99, "isbn": "x"},
            creating=True,
        )

        assert data == {"title": "Kindred"}

    def test_omitted_optional_fields_are_not_returned(self, schemas):
        """Should only return the write fields the payload carried."""
        assert schemas.accept({"pages": 12}, creating=False) == {"pages": 12}

    def test_title_is_required_on_create(self, schemas):
        """Should require non-nullable columns on create."""
        with pytest.raises(ValidationFailedError) as exc:
            schemas.accept({"summary": "No title"}, creating=True)

        assert exc.value.status_code == 422
        assert exc.value.fields == ["title"]

    def test_create_group_constraint_only_applies_on_create(self, schemas):
        """Should apply create-group constraints on create only."""
        with pytest.raises(ValidationFailedError) as exc:
            schemas.accept({"title": "Go"}, creating=True)
        assert exc.value.fields == ["title"]
        assert "at least 3" in exc.value.violations[0]["constraint"]

        assert schemas.accept({"title": "Go"}, creating=False) == {"title": "Go"}

    def test_write_group_constraint_applies_to_both(self, schemas):
        """Should apply write-group constraints on create and update."""
        for creating in (True, False):
            with pytest.raises(ValidationFailedError):
                schemas.accept({"title": "Valid", "pages": 0}, creating=creating)

    def test_column_length_is_enforced(self, schemas):
        """Should derive max_length from the column type."""
        with pytest.raises(ValidationFailedError) as exc:
            schemas.accept({"title": "x" * 121}, creating=False)
        assert exc.value.fields == ["title"]

    def test_explicit_null_for_required_column_is_rejected(self, schemas):
        """Should reject null for a non-nullable column."""
        with pytest.raises(ValidationFailedError):
            schemas.accept({"title": None}, creating=False)

    def test_nullable_column_accepts_null(self, schemas):
        """Should accept null for a nullable column."""
        assert schemas.accept({"summary": None}, creating=False) == {"summary": None}

    def test_non_object_payload_is_malformed(self, schemas):
        """Should raise MalformedInputError for a non-object payload."""
        for payload in ([1, 2], "title", None):
            with pytest.raises(MalformedInputError) as exc:
                schemas.accept(payload, creating=True)
            assert exc.value.status_code == 400


class TestNestedPayload:
    def test_reference_by_id(self, schemas):
        """Should accept a nested reference carrying only an id."""
        data = schemas.accept({"title": "Kindred", "author": {"id": 3}}, creating=True)

        assert data["author"] == {"id": 3}

    def test_new_nested_record(self, schemas):
        """Should accept a nested record without id."""
        data = schemas.accept(
            {"title": "Kindred", "author": {"name": "Octavia"}}, creating=True
        )

        assert data["author"] == {"name": "Octavia"}

    def test_new_nested_record_requires_its_fields(self, schemas):
        """Should require the nested record fields when no id is given."""
        with pytest.raises(ValidationFailedError) as exc:
            schemas.accept({"title": "Kindred", "author": {}}, creating=True)

        assert exc.value.fields == ["author"]
        assert "name required" in exc.value.violations[0]["constraint"]

    def test_null_detaches_relation(self, schemas):
        """Should accept null for an optional relation."""
        assert schemas.accept({"author": None}, creating=False) == {"author": None}


class TestProjectionDeclarationErrors:
    def test_unknown_field_is_rejected(self):
        """Should reject projections naming fields the model lacks."""
        projection = Projection(
            collection_read=("id", "isbn"), item_read=("id",), write=()
        )
        with pytest.raises(TypeError, match="has no field\\(s\\) isbn"):
            projection.bind(Book)

    def test_relation_without_nested_projection_is_rejected(self):
        """Should require a nested projection for relation fields."""
        projection = Projection(
            collection_read=("id",), item_read=("id", "author"), write=()
        )
        with pytest.raises(TypeError, match="declare its nested projection"):
            projection.bind(Book)

    def test_to_many_relation_is_rejected(self):
        """Should only allow many-to-one relations."""
        projection = Projection(
            collection_read=("id",),
            item_read=("id", "books"),
            write=(),
            nested={"books": Projection(("id",), ("id",), ())},
        )
        with pytest.raises(TypeError, match="only many-to-one"):
            projection.bind(Author)

    def test_non_model_is_rejected(self):
        """Should refuse to bind a class that is not a model."""
        projection = Projection(collection_read=("id",), item_read=("id",), write=())
        with pytest.raises(TypeError, match="not a quill_db.Model subclass"):
            projection.bind(dict)
