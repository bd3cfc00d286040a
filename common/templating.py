"""
Storefront - Template Configuration
====================================
Jinja2 environment for notification bodies (email HTML, WhatsApp text),
with custom filters.
"""

import os

from jinja2 import Environment, FileSystemLoader, select_autoescape

from common.helpers import format_rupiah

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "templates")

templates = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


# ==========================================
# Register Filters
# ==========================================

# Filters (usage in template: {{ value | rupiah }})
templates.filters["rupiah"] = format_rupiah


def render(template_name: str, **context) -> str:
    return templates.get_template(template_name).render(**context)
