"""projgen -- generate projects from Jinja2 templates with typed placeholders."""

__version__ = "0.1.0"
