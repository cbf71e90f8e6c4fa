"""
Declaration of the ``/posts`` resource.
"""

from quill_rest import (
    ITEM_PATH,
    FilterMode,
    Operation,
    PaginationPolicy,
    Projection,
    ResourceDescriptor,
    SearchFilter,
)

from .controllers import PostCountController, PostPublishController
from .models import Post

category_projection = Projection(
    collection_read=("id", "name"),
    item_read=("id", "name"),
    write=("name",),
    constraints={"write": {"name": {"min_length": 1}}},
)

post_projection = Projection(
    collection_read=("id", "title", "slug", "online"),
    item_read=("id", "title", "slug", "content", "created_at", "category"),
    write=("title", "slug", "content", "category"),
    nested={"category": category_projection},
    constraints={
        "write": {"title": {"min_length": 1}},
        "create": {"title": {"min_length": 5}},
    },
)

post_search = SearchFilter({"id": FilterMode.EXACT, "title": FilterMode.PARTIAL})

post_pagination = PaginationPolicy(items_per_page=2, maximum_items_per_page=2)

count_operation = Operation(
    "count",
    "GET",
    "/count",
    PostCountController(),
    response_model=int,
    summary="Get counts of posts.",
    openapi_extra={
        "parameters": [
            {
                "name": "online",
                "in": "query",
                "required": False,
                "description": "1 counts online posts, any other value offline ones",
                "schema": {"type": "integer", "minimum": 0, "maximum": 1},
            }
        ],
    },
)

publish_operation = Operation(
    "publish",
    "POST",
    ITEM_PATH + "/publish",
    PostPublishController(),
    response_model=int,
    summary="Pass post status online",
    openapi_extra={
        "responses": {
            "200": {
                "description": "Id of the published post",
                "content": {
                    "application/json": {"schema": {"type": "integer", "example": 3}}
                },
            }
        }
    },
)

post_resource = ResourceDescriptor(
    Post,
    path="/posts",
    projection=post_projection,
    search=post_search,
    pagination=post_pagination,
    extra_operations=[count_operation, publish_operation],
)
