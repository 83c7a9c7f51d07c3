"""CLI tools for the site knowledge base.

- ``python -m src.cli.ingest`` -- ingest sitemaps, URLs and blog posts,
  rebuild partitions, purge URLs, show statistics, and run searches.

Commands build their own component graph via ``src.bootstrap`` and close
it before exiting.
"""
