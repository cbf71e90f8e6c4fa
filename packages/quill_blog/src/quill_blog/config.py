from quill_core import QuillSettings


class BlogSettings(QuillSettings):
    APP_TITLE: str = "Blog admin API"
    DATABASE_URL: str = "sqlite+aiosqlite:///blog.db"


blog_settings = BlogSettings()
