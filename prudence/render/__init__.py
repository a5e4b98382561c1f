"""Content renderers (Markdown)."""