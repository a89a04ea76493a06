"""Preview synchronization: import external edits without losing the visitor's rating."""

from dataclasses import fields, replace

from .link_config import LinkConfiguration

# Every field except ``rating``, which belongs to whoever is looking at the page
SYNCED_FIELDS = tuple(f.name for f in fields(LinkConfiguration) if f.name != "rating")


class PreviewSync:
    """
    Local copy of a configuration kept in step with published edits.

    ``apply`` only replaces local state when a synced field actually differs,
    and always keeps the local rating.
    """

    def __init__(self, config: LinkConfiguration):
        self.config = config

    def differs_from(self, other: LinkConfiguration) -> bool:
        return any(getattr(self.config, name) != getattr(other, name) for name in SYNCED_FIELDS)

    def apply(self, external: LinkConfiguration) -> bool:
        if not self.differs_from(external):
            return False
        self.config = replace(external, rating=self.config.rating)
        return True

    def select_rating(self, rating: int) -> None:
        self.config = self.config.with_rating(rating)
