"""
Entry point of the blog administration API.

Run this application with:
    uvicorn main:app --reload

Configuration is read from the environment or a ``.env`` file
(``DATABASE_URL``, ``LOG_LEVEL``, ``DEFAULT_ITEMS_PER_PAGE``...).
"""

import uvicorn
from quill_blog import blog_settings, create_app

app = create_app(blog_settings)

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=blog_settings.is_development(),
        log_level=blog_settings.LOG_LEVEL.lower(),
    )
