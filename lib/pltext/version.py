"""Version of the pl-text library."""

# For breaking changes
major = 0
# For new features without breaking changes
minor = 1
# For bug fixes without new features
patch = 0

__version__ = f"{major}.{minor}.{patch}"
