"""
Generate services — resolve identifiers into config entries and write them.

    from pinbin.core.services.generate import resolve_identifiers, write_packages
"""

from pinbin.core.services.generate.engine import (  # noqa: F401
    VERSION_PLACEHOLDER,
    exclude_duplicates,
    list_packages,
    normalize_identifier,
    output_entry,
    read_identifiers_file,
    resolve_identifiers,
)
from pinbin.core.services.generate.output import format_packages, write_packages  # noqa: F401
