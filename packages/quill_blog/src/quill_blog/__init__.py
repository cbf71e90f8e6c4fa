from .app import create_app
from .config import BlogSettings, blog_settings
from .models import Category, Post
from .resources import post_resource

__all__ = [
    "BlogSettings",
    "Category",
    "Post",
    "blog_settings",
    "create_app",
    "post_resource",
]
