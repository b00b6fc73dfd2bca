from .admin_cog import AdminCog
from .changelog_cog import ChangelogCog
from .help_cog import HelpCog
from .misc_cog import MiscCog
from .package_cog import PackageCog
from .settings_cog import SettingsCog
from .structure_cog import StructureCog

COGS = [MiscCog, HelpCog, SettingsCog, StructureCog, PackageCog, ChangelogCog]
ADMIN_COGS = [AdminCog]

__all__ = [
    "ADMIN_COGS",
    "COGS",
    "AdminCog",
    "ChangelogCog",
    "HelpCog",
    "MiscCog",
    "PackageCog",
    "SettingsCog",
    "StructureCog",
]
