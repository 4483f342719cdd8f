from pagebuilder.routers import catalog, collab, editor, pages

__all__ = [
    "catalog",
    "collab",
    "editor",
    "pages",
]
