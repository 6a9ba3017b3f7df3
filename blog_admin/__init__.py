"""
Backend package for the blog administration panel.

This package provides a FastAPI application that proxies blog-post CRUD to a
remote WordPress REST API and keeps a local priority value for every post so
the admin frontend can sort the list.
"""
