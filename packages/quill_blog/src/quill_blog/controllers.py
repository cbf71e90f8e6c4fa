"""
Post actions that bypass the generic CRUD path.
"""

import logging

from quill_rest import OperationContext

logger = logging.getLogger(__name__)

# Only this literal selects published posts; any other value selects the rest
ONLINE_TRUE = "1"


class PostCountController:
    """
    Number of posts, optionally restricted by online status.

    ``?online=1`` counts posts that are online, any other value counts posts
    explicitly offline, and no parameter counts every post (including those
    whose status was never set).
    """

    async def __call__(self, ctx: OperationContext) -> int:
        online = ctx.query.get("online")
        lookups = {} if online is None else {"online": online == ONLINE_TRUE}
        count = await ctx.resource.repository.count(ctx.db, **lookups)
        logger.debug("Counted %s posts (online=%r)", count, online)
        return count


class PostPublishController:
    """
    Put a post online and return its id.

    Only the ``online`` column is written, so ``updated_at`` keeps its value.
    Publishing an already published post is a no-op.
    """

    async def __call__(self, ctx: OperationContext) -> int:
        pk = ctx.pk
        await ctx.resource.repository.set_fields(ctx.db, pk, online=True)
        logger.info("Published post id=%s", pk)
        return pk
