"""BadgeForge - version constants.

Keep this module tiny and dependency-free. It is imported by many places
(core models, export, UI) and must not have side effects.
"""

APP_NAME = "BadgeForge"
APP_SHORT = "BF"

# App semantic version (must match pyproject.toml).
APP_VERSION = "0.4.0"

# Template schema version accepted by `badgeforge.core.models.Template.from_dict`.
SCHEMA_VERSION = 1

# CSS pixels per inch; used for px -> mm (PDF page size).
CSS_PPI = 96.0
MM_PER_INCH = 25.4

# Default export name when the template has none.
DEFAULT_EXPORT_NAME = "sticker"
