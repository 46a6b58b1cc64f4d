"""Postal-code provider adapters.

GeoNamesProvider has a bespoke field mapping; TemplateProvider covers every
upstream that can be reached with a single templated GET and passes its
payload through unchanged.
"""

from postalia.providers.postal.geonames_provider import GeoNamesProvider
from postalia.providers.postal.template_provider import (
    TemplateProvider,
    TemplateProviderConfig,
    render_template,
)

__all__ = [
    "GeoNamesProvider",
    "TemplateProvider",
    "TemplateProviderConfig",
    "render_template",
]
